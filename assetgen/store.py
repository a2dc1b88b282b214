"""Conversation persistence backends.

The pipelines never touch storage; the chat service talks to whichever backend
implements `ConversationStore`.
"""
import threading
import time
import uuid
from dataclasses import dataclass
from typing import Any, Dict, List, Literal, Optional, Protocol

from sqlalchemy import JSON, BigInteger, Column, ForeignKey, Integer, String, Text, create_engine, select
from sqlalchemy.orm import Session, declarative_base, sessionmaker

from .config import Settings


MessageType = Literal["text", "image_upload", "generated_assets"]


@dataclass(frozen=True)
class Conversation:
    id: str
    created_at: int  # epoch milliseconds
    title: Optional[str] = None


@dataclass(frozen=True)
class Message:
    id: str
    conversation_id: str
    role: Literal["user", "assistant"]
    content: str
    message_type: MessageType
    meta_data: Any = None
    created_at: int = 0


class ConversationStore(Protocol):
    def ensure_conversation(
        self, conversation_id: Optional[str] = None, title: Optional[str] = None
    ) -> Conversation:
        ...

    def get_conversation(self, conversation_id: str) -> Optional[Conversation]:
        ...

    def list_conversations(self, title: Optional[str] = None) -> List[Conversation]:
        ...

    def add_message(
        self,
        conversation_id: str,
        role: str,
        content: str,
        message_type: MessageType,
        meta_data: Any = None,
    ) -> Message:
        ...

    def list_messages(self, conversation_id: str) -> List[Message]:
        ...


def _now_ms() -> int:
    return int(time.time() * 1000)


class InMemoryConversationStore:
    """Process-local store, suitable for development and tests."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._conversations: Dict[str, Conversation] = {}
        self._messages: Dict[str, List[Message]] = {}

    def ensure_conversation(
        self, conversation_id: Optional[str] = None, title: Optional[str] = None
    ) -> Conversation:
        with self._lock:
            if conversation_id and conversation_id in self._conversations:
                return self._conversations[conversation_id]
            conv = Conversation(
                id=conversation_id or str(uuid.uuid4()),
                created_at=_now_ms(),
                title=title,
            )
            self._conversations[conv.id] = conv
            self._messages[conv.id] = []
            return conv

    def get_conversation(self, conversation_id: str) -> Optional[Conversation]:
        with self._lock:
            return self._conversations.get(conversation_id)

    def list_conversations(self, title: Optional[str] = None) -> List[Conversation]:
        with self._lock:
            convs = [
                c
                for c in self._conversations.values()
                if self._messages.get(c.id) and (title is None or c.title == title)
            ]
        return sorted(convs, key=lambda c: c.created_at, reverse=True)

    def add_message(
        self,
        conversation_id: str,
        role: str,
        content: str,
        message_type: MessageType,
        meta_data: Any = None,
    ) -> Message:
        with self._lock:
            if conversation_id not in self._conversations:
                raise KeyError(f"Unknown conversation {conversation_id}")
            messages = self._messages[conversation_id]
            created_at = _now_ms()
            # Keep insertion order stable when two messages share a millisecond.
            if messages and messages[-1].created_at >= created_at:
                created_at = messages[-1].created_at + 1
            msg = Message(
                id=str(uuid.uuid4()),
                conversation_id=conversation_id,
                role=role,  # type: ignore[arg-type]
                content=content,
                message_type=message_type,
                meta_data=meta_data,
                created_at=created_at,
            )
            messages.append(msg)
            return msg

    def list_messages(self, conversation_id: str) -> List[Message]:
        with self._lock:
            return list(self._messages.get(conversation_id, []))


Base = declarative_base()


class ConversationRow(Base):
    __tablename__ = "conversations"

    id = Column(String(36), primary_key=True)
    created_at = Column(BigInteger, nullable=False, index=True)
    title = Column(String(255), nullable=True, index=True)


class MessageRow(Base):
    __tablename__ = "messages"

    # Database-assigned key gives a total insertion order across writers.
    seq = Column(Integer, primary_key=True, autoincrement=True)
    id = Column(String(36), unique=True, nullable=False)
    conversation_id = Column(String(36), ForeignKey("conversations.id"), nullable=False, index=True)
    role = Column(String(16), nullable=False)
    content = Column(Text, nullable=False)
    message_type = Column(String(32), nullable=False)
    meta_data = Column(JSON, nullable=True)
    created_at = Column(BigInteger, nullable=False)


def _to_conversation(row: ConversationRow) -> Conversation:
    return Conversation(id=row.id, created_at=row.created_at, title=row.title)


def _to_message(row: MessageRow) -> Message:
    return Message(
        id=row.id,
        conversation_id=row.conversation_id,
        role=row.role,  # type: ignore[arg-type]
        content=row.content,
        message_type=row.message_type,  # type: ignore[arg-type]
        meta_data=row.meta_data,
        created_at=row.created_at,
    )


class SqlConversationStore:
    """Relational store on any SQLAlchemy URL; tables are created on startup."""

    def __init__(self, database_url: str) -> None:
        self.engine = create_engine(database_url, future=True)
        Base.metadata.create_all(self.engine)
        self._sessions = sessionmaker(bind=self.engine, expire_on_commit=False, future=True)

    def _session(self) -> Session:
        return self._sessions()

    def ensure_conversation(
        self, conversation_id: Optional[str] = None, title: Optional[str] = None
    ) -> Conversation:
        with self._session() as session, session.begin():
            if conversation_id:
                existing = session.get(ConversationRow, conversation_id)
                if existing is not None:
                    return _to_conversation(existing)
            row = ConversationRow(
                id=conversation_id or str(uuid.uuid4()),
                created_at=_now_ms(),
                title=title,
            )
            session.add(row)
        return _to_conversation(row)

    def get_conversation(self, conversation_id: str) -> Optional[Conversation]:
        with self._session() as session:
            row = session.get(ConversationRow, conversation_id)
            return _to_conversation(row) if row is not None else None

    def list_conversations(self, title: Optional[str] = None) -> List[Conversation]:
        stmt = (
            select(ConversationRow)
            .where(ConversationRow.id.in_(select(MessageRow.conversation_id)))
            .order_by(ConversationRow.created_at.desc())
        )
        if title is not None:
            stmt = stmt.where(ConversationRow.title == title)
        with self._session() as session:
            return [_to_conversation(row) for row in session.scalars(stmt)]

    def add_message(
        self,
        conversation_id: str,
        role: str,
        content: str,
        message_type: MessageType,
        meta_data: Any = None,
    ) -> Message:
        with self._session() as session, session.begin():
            if session.get(ConversationRow, conversation_id) is None:
                raise KeyError(f"Unknown conversation {conversation_id}")
            row = MessageRow(
                id=str(uuid.uuid4()),
                conversation_id=conversation_id,
                role=role,
                content=content,
                message_type=message_type,
                meta_data=meta_data,
                created_at=_now_ms(),
            )
            session.add(row)
        return _to_message(row)

    def list_messages(self, conversation_id: str) -> List[Message]:
        stmt = (
            select(MessageRow)
            .where(MessageRow.conversation_id == conversation_id)
            .order_by(MessageRow.seq)
        )
        with self._session() as session:
            return [_to_message(row) for row in session.scalars(stmt)]


def open_store(settings: Settings) -> ConversationStore:
    """SQL store when a database URL is configured, in-memory otherwise."""
    if settings.database_url:
        return SqlConversationStore(settings.database_url)
    return InMemoryConversationStore()
