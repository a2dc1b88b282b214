import json
import logging
from dataclasses import dataclass
from typing import List, Optional

from .core import AssetPipeline
from .hero import HeroImagePipeline
from .models import Asset, ChatTurn, GenerationRequest, HeroImage
from .render import DEFAULT_ACCENT
from .store import Conversation, ConversationStore, Message


logger = logging.getLogger(__name__)


class EmptyMessageError(ValueError):
    """The user message has no text."""


class ConversationAccessError(PermissionError):
    """The conversation does not exist or belongs to another client."""


@dataclass(frozen=True)
class ChatReply:
    conversation_id: str
    message: Message

    @property
    def asset(self) -> Asset:
        return self.message.meta_data


class AssetChatService:
    """
    One chat turn end to end: validate, persist the user message, generate the
    asset from the conversation so far, persist and return the reply.

    Conversations are scoped by client id, stored as the conversation title.
    """

    def __init__(
        self,
        store: ConversationStore,
        assets: AssetPipeline,
        hero: Optional[HeroImagePipeline] = None,
    ) -> None:
        self.store = store
        self.assets = assets
        self.hero = hero

    def send_message(
        self,
        text: str,
        conversation_id: Optional[str] = None,
        client_id: Optional[str] = None,
        image_url: Optional[str] = None,
        model: Optional[str] = None,
    ) -> ChatReply:
        if not text or not text.strip():
            raise EmptyMessageError("Message text must not be empty")

        if conversation_id:
            self._check_access(conversation_id, client_id)
        conv = self.store.ensure_conversation(conversation_id, title=client_id)

        # History is read before the current turn is stored so it is not sent twice.
        history = tuple(
            ChatTurn(role=m.role, content=m.content) for m in self.store.list_messages(conv.id)
        )

        self.store.add_message(
            conv.id,
            role="user",
            content=text,
            message_type="image_upload" if image_url else "text",
            meta_data={"imageUrl": image_url} if image_url else None,
        )

        request = GenerationRequest(description=text, history=history, image_ref=image_url)
        asset = self.assets.generate(request, model=model)

        reply = self.store.add_message(
            conv.id,
            role="assistant",
            content=json.dumps(asset, ensure_ascii=False),
            message_type="generated_assets",
            meta_data=asset,
        )
        logger.info("Generated asset for conversation %s", conv.id)
        return ChatReply(conversation_id=conv.id, message=reply)

    def list_messages(self, conversation_id: str, client_id: Optional[str] = None) -> List[Message]:
        if client_id:
            self._check_access(conversation_id, client_id)
        return self.store.list_messages(conversation_id)

    def list_conversations(self, client_id: Optional[str] = None) -> List[Conversation]:
        return self.store.list_conversations(title=client_id)

    def generate_hero(
        self,
        image_url: str,
        asset: Asset,
        size: Optional[str] = None,
        accent_color: str = DEFAULT_ACCENT,
    ) -> HeroImage:
        if self.hero is None:
            raise RuntimeError("AssetChatService was created without a hero image pipeline")
        if not image_url:
            raise ValueError("image_url is required for hero image generation")
        return self.hero.generate(image_url, asset, size=size, accent_color=accent_color)

    def _check_access(self, conversation_id: str, client_id: Optional[str]) -> None:
        existing = self.store.get_conversation(conversation_id)
        if existing is None or (client_id and existing.title != client_id):
            raise ConversationAccessError(
                f"Conversation {conversation_id} does not exist or is not accessible"
            )
