import os
from dataclasses import dataclass
from typing import Mapping, Optional


DEFAULT_TEXT_MODEL = "doubao-seed-1-6-251015"
DEFAULT_IMAGE_MODEL = "doubao-seedream-4-5-251128"
DEFAULT_IMAGE_ENDPOINT = "https://ark.cn-beijing.volces.com/api/v3/images/generations"
DEFAULT_IMAGE_SIZE = "2K"
MAX_COMPLETION_TOKENS = 2048

_CHAT_PATH = "chat/completions"
_IMAGES_PATH = "images/generations"


class ConfigError(ValueError):
    """Raised when settings are present but unusable."""


@dataclass(frozen=True)
class Settings:
    """
    Provider configuration, resolved once at startup and shared read-only.

    A missing API key or text endpoint is not an error: it simply disables the
    remote paths so the pipelines answer from their local fallbacks.
    """

    api_key: Optional[str] = None
    text_endpoint: Optional[str] = None
    image_endpoint: Optional[str] = None
    text_model: str = DEFAULT_TEXT_MODEL
    image_model: str = DEFAULT_IMAGE_MODEL
    image_size: str = DEFAULT_IMAGE_SIZE
    timeout_seconds: float = 60.0
    max_completion_tokens: int = MAX_COMPLETION_TOKENS
    database_url: Optional[str] = None

    def __post_init__(self) -> None:
        # Blank values from .env files count as unset.
        for name in ("api_key", "text_endpoint", "image_endpoint", "database_url"):
            value = getattr(self, name)
            if value is not None and not value.strip():
                object.__setattr__(self, name, None)

        for name in ("text_endpoint", "image_endpoint"):
            value = getattr(self, name)
            if value and not value.startswith(("http://", "https://")):
                raise ConfigError(f"{name} must be an http(s) URL, got {value!r}")

        if self.max_completion_tokens <= 0:
            raise ConfigError("max_completion_tokens must be positive")
        if self.timeout_seconds <= 0:
            raise ConfigError("timeout_seconds must be positive")
        if not self.text_model or not self.image_model:
            raise ConfigError("model identifiers must not be empty")

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "Settings":
        env = os.environ if environ is None else environ
        timeout_raw = env.get("DOUBAO_TIMEOUT_SECONDS") or "60"
        try:
            timeout = float(timeout_raw)
        except ValueError:
            raise ConfigError(f"DOUBAO_TIMEOUT_SECONDS is not a number: {timeout_raw!r}") from None

        return cls(
            api_key=env.get("DOUBAO_API_KEY"),
            text_endpoint=env.get("DOUBAO_ENDPOINT"),
            image_endpoint=env.get("DOUBAO_IMAGE_ENDPOINT"),
            text_model=env.get("DOUBAO_MODEL") or DEFAULT_TEXT_MODEL,
            image_model=env.get("DOUBAO_IMAGE_MODEL") or DEFAULT_IMAGE_MODEL,
            image_size=env.get("DOUBAO_IMAGE_SIZE") or DEFAULT_IMAGE_SIZE,
            timeout_seconds=timeout,
            database_url=env.get("ASSETGEN_DATABASE_URL"),
        )

    @property
    def text_configured(self) -> bool:
        return bool(self.api_key and self.text_endpoint)

    @property
    def image_configured(self) -> bool:
        return bool(self.api_key)

    @property
    def text_base_url(self) -> Optional[str]:
        """Text endpoint without the chat path; the OpenAI client appends it."""
        if not self.text_endpoint:
            return None
        base = self.text_endpoint.rstrip("/")
        suffix = "/" + _CHAT_PATH
        if base.endswith(suffix):
            base = base[: -len(suffix)]
        return base

    @property
    def resolved_image_endpoint(self) -> str:
        if self.image_endpoint:
            return self.image_endpoint
        base = self.text_endpoint or ""
        if "/" + _CHAT_PATH in base:
            return base.replace(_CHAT_PATH, _IMAGES_PATH)
        return DEFAULT_IMAGE_ENDPOINT
