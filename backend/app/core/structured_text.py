"""Structured Text - pure parsing of LLM output into typed lists.

Invariants:
    - strip_markdown_fences() removes one surrounding ``` / ```json block, nothing else
    - parse_official_updates() never raises: any decode failure yields []
    - Only objects with a non-empty title survive; extra keys are dropped
"""

import json
import logging
import re

from pydantic import TypeAdapter, ValidationError as PydanticValidationError

from app.core.errors import ParseError
from app.schemas.updates import OfficialUpdate

logger = logging.getLogger(__name__)

_FENCE = re.compile(r"```(?:json)?\s*([\s\S]*?)\s*```", re.IGNORECASE)
_UPDATES = TypeAdapter(list[OfficialUpdate])


def strip_markdown_fences(text: str) -> str:
    """Return the body of the first fenced block, or the stripped text."""
    match = _FENCE.search(text)
    return match.group(1).strip() if match else text.strip()


def parse_json_array(text: str) -> list:
    """Decode a JSON array out of possibly fenced LLM text.

    Raises ParseError when the payload is not a JSON array.
    """
    body = strip_markdown_fences(text)
    try:
        data = json.loads(body)
    except json.JSONDecodeError as e:
        raise ParseError(f"invalid JSON: {e.msg}", "json") from e
    if not isinstance(data, list):
        raise ParseError(f"expected array, got {type(data).__name__}", "json")
    return data


def parse_official_updates(text: str) -> list[OfficialUpdate]:
    """LLM text -> list of OfficialUpdate ([] on any failure)."""
    try:
        raw = parse_json_array(text)
    except ParseError as e:
        logger.warning("Official updates not parseable: %s", e.message)
        return []
    items = [item for item in raw if isinstance(item, dict) and item.get("title")]
    try:
        return _UPDATES.validate_python(items)
    except PydanticValidationError as e:
        logger.warning("Official updates failed validation: %s", e.error_count())
        return []
