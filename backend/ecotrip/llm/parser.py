import json
import logging
import re
from typing import Any

from ecotrip.llm.errors import ResponseParseError

logger = logging.getLogger(__name__)

SNIPPET_LENGTH = 200

_LEADING_FENCE = re.compile(r"^```(?:json)?[ \t]*\n?", re.IGNORECASE)
_TRAILING_FENCE = re.compile(r"\n?[ \t]*```$")


def strip_code_fence(text: str) -> str:
    """Drop one leading ```json / ``` fence and one trailing ``` fence."""
    stripped = text.strip()
    if stripped.startswith("```"):
        stripped = _LEADING_FENCE.sub("", stripped, count=1)
        stripped = _TRAILING_FENCE.sub("", stripped, count=1)
    return stripped.strip()


def parse_json(text: str) -> Any:
    """
    Strictly parse model output as JSON after removing a markdown fence.

    No repair is attempted: malformed output raises ``ResponseParseError`` so
    prompt problems show up instead of being papered over.
    """
    body = strip_code_fence(text or "")
    try:
        return json.loads(body)
    except json.JSONDecodeError as exc:
        snippet = body[:SNIPPET_LENGTH]
        logger.error("Invalid JSON from model: %s", snippet)
        raise ResponseParseError(snippet=snippet, reason=exc.msg) from exc
