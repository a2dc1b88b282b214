import io
from pathlib import Path
from typing import Any, Callable, Dict, List, Sequence

import pytest
from langchain_core.messages import AIMessage
from PIL import Image

from assetgen.config import Settings


TEXT_ENDPOINT = "https://ark.example.com/api/v3/chat/completions"


class FakeLLM:
    """Stands in for ChatOpenAI: replays canned replies and records calls."""

    def __init__(self, replies: Sequence[Any]) -> None:
        self.replies = list(replies)
        self.calls: List[Dict[str, Any]] = []

    def invoke(self, messages, **kwargs):
        self.calls.append({"messages": messages, "kwargs": kwargs})
        reply = self.replies.pop(0)
        if isinstance(reply, Exception):
            raise reply
        return AIMessage(content=reply)


@pytest.fixture
def settings() -> Settings:
    return Settings(api_key="test-key", text_endpoint=TEXT_ENDPOINT)


@pytest.fixture
def unconfigured_settings() -> Settings:
    return Settings()


@pytest.fixture
def make_llm() -> Callable[..., FakeLLM]:
    return lambda *replies: FakeLLM(replies)


@pytest.fixture
def product_png(tmp_path: Path) -> Path:
    path = tmp_path / "product.png"
    Image.new("RGB", (200, 100), color=(220, 20, 60)).save(path, format="PNG")
    return path


@pytest.fixture
def png_bytes() -> bytes:
    buf = io.BytesIO()
    Image.new("RGB", (40, 20), color=(0, 128, 0)).save(buf, format="PNG")
    return buf.getvalue()
