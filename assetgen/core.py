import logging
from typing import Iterable, Optional

from .extract import extract_asset
from .messaging import TextGenerationClient
from .models import Asset, ChatTurn, GenerationRequest
from .prompts import SYSTEM_PROMPT, build_turns
from .results import Outcome


logger = logging.getLogger(__name__)

MOCK_TITLE_LENGTH = 24
MOCK_DEFAULT_TITLE = "优选好物"
MOCK_SELLING_POINTS = ("品质保障", "便捷实用", "性价比高", "口碑推荐")
MOCK_ATMOSPHERE = "焕新季"
MOCK_VIDEO_SCRIPT = (
    (0, "开场特写"),
    (2, "使用场景展示"),
    (6, "卖点字幕与下单引导"),
)


def mock_asset(description: str) -> Asset:
    """
    Deterministic asset built from the description alone (no network).
    """
    return {
        "title": description[:MOCK_TITLE_LENGTH] or MOCK_DEFAULT_TITLE,
        "selling_points": list(MOCK_SELLING_POINTS),
        "atmosphere": MOCK_ATMOSPHERE,
        "video_script": [{"s": s, "v": v} for s, v in MOCK_VIDEO_SCRIPT],
    }


class AssetPipeline:
    """
    Turns a product description into an `Asset`, degrading step by step:

    - full context: system instruction + conversation history + current turn
    - minimal context: system instruction + current turn only
    - local mock built from the description

    An unreachable model and an unparseable answer are treated the same way;
    either one moves the request to the next step. The last step cannot fail,
    so `generate` always returns a complete asset.
    """

    def __init__(
        self,
        client: TextGenerationClient,
        system_prompt: str = SYSTEM_PROMPT,
    ) -> None:
        self.client = client
        self.system_prompt = system_prompt

    def generate(self, request: GenerationRequest, model: Optional[str] = None) -> Asset:
        outcome = self._attempt("full", request, request.history, model)
        if outcome.ok:
            return outcome.value

        outcome = self._attempt("minimal", request, (), model)
        if outcome.ok:
            return outcome.value

        logger.info("Falling back to mock asset for description %r", request.description[:40])
        return mock_asset(request.description)

    def _attempt(
        self,
        stage: str,
        request: GenerationRequest,
        history: Iterable[ChatTurn],
        model: Optional[str],
    ) -> Outcome[Asset]:
        messages = build_turns(
            request.description,
            history=history,
            image_ref=request.image_ref,
            system_prompt=self.system_prompt,
        )

        text = self.client.generate(messages, model=model)
        if not text.ok:
            logger.warning("%s-context attempt: model unavailable (%s)", stage, text.describe())
            return Outcome.fail(text.failure, text.detail)

        parsed = extract_asset(text.value)
        if not parsed.ok:
            logger.warning("%s-context attempt: unusable answer (%s)", stage, parsed.describe())
        return parsed
