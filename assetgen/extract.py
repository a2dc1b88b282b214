import json
import logging
from typing import cast

from .models import Asset
from .results import FailureKind, Outcome


logger = logging.getLogger(__name__)


def extract_asset(text: str) -> Outcome[Asset]:
    """
    Pull the JSON object out of free-form model output.

    Models often wrap the object in prose or code fences, so the slice from the
    first `{` to the last `}` is parsed when both exist; otherwise the whole
    text is tried. Any JSON object is accepted as-is: field presence and types
    are not checked here.
    """
    first = text.find("{")
    last = text.rfind("}")
    candidate = text[first : last + 1] if 0 <= first < last else text

    try:
        payload = json.loads(candidate)
    except ValueError as e:
        logger.warning("Model output is not valid JSON: %s", e)
        return Outcome.fail(FailureKind.PARSE_FAILURE, str(e))

    if not isinstance(payload, dict):
        logger.warning("Model output parsed to %s, expected an object", type(payload).__name__)
        return Outcome.fail(
            FailureKind.MALFORMED_PAYLOAD,
            f"expected a JSON object, got {type(payload).__name__}",
        )

    return Outcome.success(cast(Asset, payload))
