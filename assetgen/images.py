import base64
import binascii
import io
from pathlib import Path
from typing import Optional

import httpx
from PIL import Image, UnidentifiedImageError


class ImageLoadError(RuntimeError):
    """Raised when a source image cannot be fetched or decoded."""

    def __init__(self, ref: str, reason: str) -> None:
        self.ref = ref
        self.reason = reason
        super().__init__(f"Cannot load source image {_short(ref)}: {reason}")


def load_source_image(
    ref: str,
    http_client: Optional[httpx.Client] = None,
    timeout: float = 30.0,
) -> Image.Image:
    """
    Load an image from a filesystem path, an http(s) URL or a `data:` URL.
    """
    if not ref:
        raise ImageLoadError(ref, "empty image reference")

    raw = _read_bytes(ref, http_client, timeout)
    try:
        img = Image.open(io.BytesIO(raw))
        img.load()
    except (UnidentifiedImageError, OSError) as e:
        raise ImageLoadError(ref, f"not a decodable image ({e})") from e
    return img.convert("RGB")


def _read_bytes(ref: str, http_client: Optional[httpx.Client], timeout: float) -> bytes:
    if ref.startswith("data:"):
        header, sep, payload = ref.partition(",")
        if not sep or ";base64" not in header:
            raise ImageLoadError(ref, "only base64 data URLs are supported")
        try:
            return base64.b64decode(payload, validate=True)
        except (binascii.Error, ValueError) as e:
            raise ImageLoadError(ref, f"invalid base64 payload ({e})") from e

    if ref.startswith(("http://", "https://")):
        try:
            if http_client is not None:
                response = http_client.get(ref, follow_redirects=True)
            else:
                response = httpx.get(ref, timeout=timeout, follow_redirects=True)
            response.raise_for_status()
        except httpx.HTTPError as e:
            raise ImageLoadError(ref, f"download failed ({e})") from e
        return response.content

    path = Path(ref)
    try:
        return path.read_bytes()
    except OSError as e:
        raise ImageLoadError(ref, f"cannot read file ({e.strerror or e})") from e


def _short(ref: str) -> str:
    return ref if len(ref) <= 80 else ref[:77] + "..."
