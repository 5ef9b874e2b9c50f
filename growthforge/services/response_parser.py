"""Parse raw model output into an untrusted JSON tree"""
import json
from typing import Any, Union

from growthforge.services.errors import InvalidJSON
from growthforge.utils.logger import get_logger

logger = get_logger("parser")

EXCERPT_CHARS = 200


def _excerpt(text: str) -> str:
    if len(text) <= EXCERPT_CHARS:
        return text
    return text[:EXCERPT_CHARS] + "..."


def strip_code_fence(text: str) -> str:
    """Remove a surrounding ```json ... ``` fence, if any."""
    text = text.strip()
    if text.startswith("```"):
        text = text.split("\n", 1)[1] if "\n" in text else text[3:]
        if text.rstrip().endswith("```"):
            text = text.rstrip()[:-3]
    return text.strip()


def parse_json(raw_text: str) -> Union[dict, list]:
    """
    Parse model output as JSON.

    Raises InvalidJSON when the text is not JSON, or when it is JSON
    whose root is not an object or an array.
    """
    if not isinstance(raw_text, str):
        raise InvalidJSON("AI response was not text", excerpt=_excerpt(repr(raw_text)))

    text = strip_code_fence(raw_text)
    try:
        tree: Any = json.loads(text)
    except json.JSONDecodeError as e:
        logger.warning(
            "parser.invalid_json",
            extra={"error": str(e), "reason": _excerpt(text)},
        )
        raise InvalidJSON(f"AI response is not valid JSON: {e.msg}", excerpt=_excerpt(text)) from e

    if not isinstance(tree, (dict, list)):
        logger.warning("parser.invalid_root", extra={"error_type": type(tree).__name__})
        raise InvalidJSON(
            f"AI response root must be an object or array, got {type(tree).__name__}",
            excerpt=_excerpt(text),
        )
    return tree
