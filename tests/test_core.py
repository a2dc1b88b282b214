import httpx
import openai

from assetgen.core import (
    MOCK_ATMOSPHERE,
    MOCK_DEFAULT_TITLE,
    MOCK_SELLING_POINTS,
    AssetPipeline,
    mock_asset,
)
from assetgen.messaging import TextGenerationClient
from assetgen.models import ChatTurn, GenerationRequest
from assetgen.prompts import SYSTEM_PROMPT


VALID = {
    "title": "旗舰降噪蓝牙耳机，通勤出行更安静",
    "selling_points": ["主动降噪", "长续航", "轻巧佩戴"],
    "atmosphere": "焕新季",
    "video_script": [{"s": 0, "v": "特写"}, {"s": 3, "v": "佩戴"}, {"s": 7, "v": "下单"}],
}
VALID_JSON = (
    '{"title": "旗舰降噪蓝牙耳机，通勤出行更安静", "selling_points": ["主动降噪", "长续航", "轻巧佩戴"], '
    '"atmosphere": "焕新季", "video_script": [{"s": 0, "v": "特写"}, {"s": 3, "v": "佩戴"}, {"s": 7, "v": "下单"}]}'
)
HISTORY = (
    ChatTurn(role="user", content="之前的商品"),
    ChatTurn(role="assistant", content="之前的回复"),
)


def _pipeline(settings, llm) -> AssetPipeline:
    return AssetPipeline(TextGenerationClient(settings, llm=llm))


def _assert_well_formed(asset) -> None:
    assert asset["title"]
    assert asset["selling_points"]
    assert asset["video_script"]
    assert isinstance(asset["atmosphere"], str)


def test_first_attempt_result_is_returned_unchanged(settings, make_llm) -> None:
    llm = make_llm("以下是素材：" + VALID_JSON)
    request = GenerationRequest(description="降噪耳机", history=HISTORY)

    asset = _pipeline(settings, llm).generate(request)

    assert asset == VALID
    assert len(llm.calls) == 1
    assert len(llm.calls[0]["messages"]) == 4


def test_retry_uses_minimal_context(settings, make_llm) -> None:
    llm = make_llm("not json at all", VALID_JSON)
    request = GenerationRequest(
        description="降噪耳机", history=HISTORY, image_ref="https://cdn.example.com/p.png"
    )

    asset = _pipeline(settings, llm).generate(request)

    assert asset == VALID
    assert len(llm.calls) == 2
    retry_messages = llm.calls[1]["messages"]
    assert retry_messages[0] == {"role": "system", "content": SYSTEM_PROMPT}
    assert len(retry_messages) == 2
    assert retry_messages[1]["content"][1] == {"type": "text", "text": "降噪耳机"}


def test_unavailable_model_on_first_attempt_also_retries(settings, make_llm) -> None:
    error = openai.APIConnectionError(request=httpx.Request("POST", "https://ark.example.com"))
    llm = make_llm(error, VALID_JSON)

    asset = _pipeline(settings, llm).generate(GenerationRequest(description="降噪耳机"))

    assert asset == VALID
    assert len(llm.calls) == 2


def test_mock_after_two_failures(settings, make_llm) -> None:
    llm = make_llm("garbage", "[]")
    asset = _pipeline(settings, llm).generate(GenerationRequest(description="降噪耳机"))

    assert asset == mock_asset("降噪耳机")
    assert len(llm.calls) == 2


def test_unconfigured_provider_yields_mock_asset(unconfigured_settings) -> None:
    pipeline = AssetPipeline(TextGenerationClient(unconfigured_settings))
    asset = pipeline.generate(GenerationRequest(description="优质蓝牙耳机带降噪功能"))

    assert asset["title"] == "优质蓝牙耳机带降噪功能"
    assert asset["selling_points"] == list(MOCK_SELLING_POINTS)
    assert len(asset["selling_points"]) == 4
    assert asset["atmosphere"] == MOCK_ATMOSPHERE
    assert [seg["s"] for seg in asset["video_script"]] == [0, 2, 6]


def test_mock_title_is_truncated_or_defaulted() -> None:
    long_description = "超长的商品描述" * 10
    assert mock_asset(long_description)["title"] == long_description[:24]
    assert mock_asset("")["title"] == MOCK_DEFAULT_TITLE


def test_mock_returns_fresh_lists() -> None:
    first = mock_asset("a")
    first["selling_points"].append("changed")
    assert mock_asset("a")["selling_points"] == list(MOCK_SELLING_POINTS)


def test_every_availability_combination_yields_well_formed_asset(settings, make_llm) -> None:
    error = openai.APITimeoutError(request=httpx.Request("POST", "https://ark.example.com"))
    scenarios = [
        (VALID_JSON,),
        ("bad", VALID_JSON),
        (error, VALID_JSON),
        ("bad", "bad"),
        (error, error),
        ("bad", error),
        ("   ", "{broken"),
    ]
    for replies in scenarios:
        for description in ("降噪耳机", "x", "a longer english product description"):
            llm = make_llm(*replies)
            asset = _pipeline(settings, llm).generate(GenerationRequest(description=description))
            _assert_well_formed(asset)


def test_model_override_reaches_both_attempts(settings, make_llm) -> None:
    llm = make_llm("bad", "bad")
    _pipeline(settings, llm).generate(GenerationRequest(description="x"), model="doubao-pro")
    assert [call["kwargs"] for call in llm.calls] == [{"model": "doubao-pro"}] * 2
