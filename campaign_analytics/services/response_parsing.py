"""
Response parsing for JSON payloads embedded in free text.

Upstream services sometimes wrap a JSON object in prose or code fences.
parse_json_payload() tries the text as-is, then the outermost {...} block,
and raises ResponseParseError when neither parses.
"""

import json
import logging
import re
from typing import Any, Dict

logger = logging.getLogger(__name__)

JSON_OBJECT_PATTERN = re.compile(r'\{[\s\S]*\}')


class ResponseParseError(ValueError):
    """Raised when a response carries no parseable JSON object."""


def parse_json_payload(text: str) -> Dict[str, Any]:
    """
    Parse a JSON object out of a response body.

    Args:
        text: Raw response text.

    Returns:
        The decoded object.

    Raises:
        ResponseParseError: If no JSON object can be decoded.

    Example:
        >>> parse_json_payload('Here you go: {"count": 3} Thanks!')
        {'count': 3}
    """
    if not text or not text.strip():
        raise ResponseParseError("Empty response")

    try:
        payload = json.loads(text)
    except json.JSONDecodeError:
        match = JSON_OBJECT_PATTERN.search(text)
        if match is None:
            raise ResponseParseError("No JSON object found in response")
        try:
            payload = json.loads(match.group())
        except json.JSONDecodeError as e:
            logger.warning(f"Embedded JSON block failed to parse: {e}")
            raise ResponseParseError(f"Invalid JSON in response: {e}") from e

    if not isinstance(payload, dict):
        raise ResponseParseError(f"Expected a JSON object, got {type(payload).__name__}")
    return payload
