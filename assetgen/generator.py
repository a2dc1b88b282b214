import logging
from typing import Any, Dict, Optional

import httpx

from .config import Settings
from .models import CompositionRequest
from .results import FailureKind, Outcome


logger = logging.getLogger(__name__)


class ImageCompositionClient:
    """
    Adapter for the remote image model that restyles a product photo into a
    hero image. Returns the generated image URL, or a failed `Outcome`.
    """

    def __init__(self, settings: Settings, http_client: Optional[httpx.Client] = None) -> None:
        self.settings = settings
        self._client = http_client

    @property
    def client(self) -> httpx.Client:
        if self._client is None:
            self._client = httpx.Client(
                timeout=httpx.Timeout(self.settings.timeout_seconds, connect=10.0)
            )
        return self._client

    def close(self) -> None:
        if self._client is not None:
            self._client.close()
            self._client = None

    def compose(self, request: CompositionRequest, model: Optional[str] = None) -> Outcome[str]:
        outcome = self._compose(request, model)
        if not outcome.ok:
            logger.warning("Image model call failed (%s)", outcome.describe())
        return outcome

    def _compose(self, request: CompositionRequest, model: Optional[str]) -> Outcome[str]:
        if not self.settings.image_configured:
            return Outcome.fail(FailureKind.CONFIG_MISSING, "DOUBAO_API_KEY is not set")

        endpoint = self.settings.resolved_image_endpoint
        body = {
            "model": model or self.settings.image_model,
            "prompt": request.instruction_text,
            "image": request.source_image_ref,
            "sequential_image_generation": "disabled",
            "response_format": "url",
            "size": request.size_tag or self.settings.image_size,
            "stream": False,
            "watermark": True,
        }
        headers = {"Authorization": f"Bearer {self.settings.api_key}"}

        try:
            response = self.client.post(endpoint, json=body, headers=headers)
        except httpx.HTTPError as e:
            return Outcome.fail(FailureKind.TRANSPORT, f"{type(e).__name__}: {e}")

        if not response.is_success:
            return Outcome.fail(
                FailureKind.NON_SUCCESS_STATUS,
                f"HTTP {response.status_code}: {response.text[:200]}",
            )

        try:
            data = response.json()
        except ValueError:
            return Outcome.fail(FailureKind.MALFORMED_PAYLOAD, "response body is not JSON")

        url = _extract_url(data)
        if not url:
            return Outcome.fail(FailureKind.MALFORMED_PAYLOAD, "no image URL in response")
        return Outcome.success(url)


def _extract_url(data: Any) -> Optional[str]:
    """
    Read the image URL from either `data[0].url` or `choices[0].data[0].url`.
    """
    candidates = [
        _first(_get(data, "data")),
        _first(_get(_first(_get(data, "choices")), "data")),
    ]
    for item in candidates:
        url = _get(item, "url")
        if isinstance(url, str) and url:
            return url
    return None


def _get(obj: Any, key: str) -> Any:
    return obj.get(key) if isinstance(obj, dict) else None


def _first(items: Any) -> Optional[Dict[str, Any]]:
    if isinstance(items, list) and items:
        return items[0]
    return None
