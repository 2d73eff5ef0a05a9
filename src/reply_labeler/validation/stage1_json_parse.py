"""
Stage 1: JSON Parse Validation.

Parse the raw message content into a dict. Models sometimes wrap their
answer in a markdown fence even when asked for raw JSON, so a leading
```json (or bare ```) fence and a trailing ``` are stripped first.
"""

import json
import re

import structlog

from .exceptions import JSONParseError

logger = structlog.get_logger(__name__)


_FENCE_OPEN = re.compile(r"^```(?:json)?[ \t]*\n?", re.IGNORECASE)
_FENCE_CLOSE = re.compile(r"\n?```$")


def strip_code_fence(content: str) -> str:
    """Remove a surrounding markdown code fence, if present."""
    text = content.strip()
    opened = _FENCE_OPEN.match(text)
    if opened is None:
        return text
    text = text[opened.end():]
    text = _FENCE_CLOSE.sub("", text.rstrip())
    return text.strip()


class Stage1JSONParse:
    """
    Stage 1 validator: Parse JSON string to dict.

    Raises JSONParseError on malformed JSON.
    """

    def validate(self, content: str) -> dict:
        """
        Args:
            content: Raw message content from the oracle

        Returns:
            Parsed dict representation

        Raises:
            JSONParseError: If content is not a JSON object
        """
        if not content or not content.strip():
            raise JSONParseError(
                "Oracle response content is empty or whitespace-only",
                raw_content=content,
                parse_error="Empty content",
            )

        text = strip_code_fence(content)

        try:
            parsed = json.loads(text)
        except json.JSONDecodeError as e:
            raise JSONParseError(
                f"Failed to parse oracle response as JSON: {e.msg}",
                raw_content=content,
                parse_error=f"{e.msg} at line {e.lineno} col {e.colno}",
            ) from e

        if not isinstance(parsed, dict):
            raise JSONParseError(
                f"Oracle response is not a JSON object (got {type(parsed).__name__})",
                raw_content=content,
                parse_error=f"Expected dict, got {type(parsed).__name__}",
            )

        logger.debug("Stage 1: parsed oracle JSON", keys=len(parsed))
        return parsed
