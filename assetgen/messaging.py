import logging
from typing import Any, Dict, List, Optional

import httpx
import openai

from .config import Settings
from .results import FailureKind, Outcome


logger = logging.getLogger(__name__)


class TextGenerationClient:
    """
    Adapter for the remote text/multimodal chat model.

    Every failure mode (missing configuration, HTTP error status, transport
    failure, missing or empty completion) is reported as a failed `Outcome`; nothing is
    raised to the caller.
    """

    def __init__(
        self,
        settings: Settings,
        llm: Any = None,
        http_client: Optional[httpx.Client] = None,
    ) -> None:
        self.settings = settings
        self.llm = llm
        if self.llm is None and settings.text_configured:
            self.llm = self._build_llm(settings, http_client)

    @staticmethod
    def _build_llm(settings: Settings, http_client: Optional[httpx.Client] = None) -> Any:
        from langchain_openai import ChatOpenAI

        # max_retries=0: one network call per attempt, retries belong to the pipeline.
        return ChatOpenAI(
            model=settings.text_model,
            api_key=settings.api_key,
            base_url=settings.text_base_url,
            max_completion_tokens=settings.max_completion_tokens,
            timeout=settings.timeout_seconds,
            max_retries=0,
            http_client=http_client,
        )

    @property
    def available(self) -> bool:
        return self.llm is not None

    def generate(
        self,
        messages: List[Dict[str, Any]],
        model: Optional[str] = None,
    ) -> Outcome[str]:
        if self.llm is None:
            return Outcome.fail(
                FailureKind.CONFIG_MISSING,
                "DOUBAO_API_KEY or DOUBAO_ENDPOINT is not set",
            )

        kwargs: Dict[str, Any] = {}
        if model:
            kwargs["model"] = model

        try:
            raw = self.llm.invoke(messages, **kwargs)
        except openai.APIStatusError as e:
            outcome = Outcome.fail(
                FailureKind.NON_SUCCESS_STATUS, f"HTTP {e.status_code}: {e.message}"
            )
        except (openai.OpenAIError, httpx.HTTPError) as e:
            outcome = Outcome.fail(FailureKind.TRANSPORT, f"{type(e).__name__}: {e}")
        except (ValueError, TypeError, KeyError, IndexError) as e:
            # 200 responses without a usable completion (no choices, error body).
            outcome = Outcome.fail(FailureKind.MALFORMED_PAYLOAD, f"{type(e).__name__}: {e}")
        else:
            text = getattr(raw, "content", raw)
            if isinstance(text, str) and text.strip():
                return Outcome.success(text)
            outcome = Outcome.fail(FailureKind.MALFORMED_PAYLOAD, "completion has no text content")

        logger.warning("Text model call failed (%s)", outcome.describe())
        return outcome
