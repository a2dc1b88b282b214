import json

import httpx
import pytest

from assetgen.core import mock_asset
from assetgen.generator import ImageCompositionClient
from assetgen.hero import HeroImagePipeline
from assetgen.images import ImageLoadError


ASSET = mock_asset("降噪耳机")


class RecordingCompositor:
    def __init__(self) -> None:
        self.calls = []

    def __call__(self, source_image_ref, overlay_text, accent_color):
        self.calls.append((source_image_ref, overlay_text, accent_color))
        return "data:image/png;base64,AAAA"


def _image_client(settings, handler) -> ImageCompositionClient:
    return ImageCompositionClient(settings, http_client=httpx.Client(transport=httpx.MockTransport(handler)))


def test_remote_success_skips_local(settings) -> None:
    compositor = RecordingCompositor()
    client = _image_client(settings, lambda r: httpx.Response(200, json={"data": [{"url": "https://img/h.png"}]}))

    hero = HeroImagePipeline(client, compositor=compositor).generate("https://cdn/p.png", ASSET)

    assert hero.is_remote
    assert hero.ref == "https://img/h.png"
    assert compositor.calls == []


def test_remote_failure_falls_back_once_without_retry(settings) -> None:
    requests = []

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        return httpx.Response(500)

    compositor = RecordingCompositor()
    hero = HeroImagePipeline(_image_client(settings, handler), compositor=compositor).generate(
        "https://cdn/p.png", ASSET, accent_color="#112233"
    )

    assert len(requests) == 1
    assert len(compositor.calls) == 1
    assert compositor.calls[0] == (
        "https://cdn/p.png",
        "降噪耳机 | 品质保障 · 便捷实用 · 性价比高 | 焕新季",
        "#112233",
    )
    assert hero.source == "local"
    assert hero.ref


def test_unconfigured_goes_straight_to_local(unconfigured_settings, product_png) -> None:
    hero = HeroImagePipeline(ImageCompositionClient(unconfigured_settings)).generate(str(product_png), ASSET)

    assert hero.source == "local"
    assert hero.ref.startswith("data:image/png;base64,")


def test_load_failure_propagates(unconfigured_settings, tmp_path) -> None:
    pipeline = HeroImagePipeline(ImageCompositionClient(unconfigured_settings))
    with pytest.raises(ImageLoadError):
        pipeline.generate(str(tmp_path / "missing.png"), ASSET)


def test_size_defaults_to_settings(settings) -> None:
    sizes = []

    def handler(request: httpx.Request) -> httpx.Response:
        sizes.append(json.loads(request.content)["size"])
        return httpx.Response(200, json={"data": [{"url": "u"}]})

    pipeline = HeroImagePipeline(_image_client(settings, handler), compositor=RecordingCompositor())
    pipeline.generate("https://cdn/p.png", ASSET)
    pipeline.generate("https://cdn/p.png", ASSET, size="1024x1024")
    assert sizes == ["2K", "1024x1024"]
