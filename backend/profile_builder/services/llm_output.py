"""Helpers for reading JSON out of LLM responses."""

import json

_MD_FENCE = "```"
_MD_FENCE_JSON = "```json"


def strip_markdown_fences(content: str) -> str:
    """Remove a surrounding markdown code fence from an LLM response."""
    text = content.strip()
    if text.startswith(_MD_FENCE_JSON):
        text = text[len(_MD_FENCE_JSON) :].strip()
    elif text.startswith(_MD_FENCE):
        text = text[len(_MD_FENCE) :].strip()
    else:
        return text
    if text.endswith(_MD_FENCE):
        text = text[: -len(_MD_FENCE)].strip()
    return text


def parse_json_object(content: str | None) -> dict:
    """Parse an LLM response that should be a single JSON object.

    Args:
        content: Raw response text, possibly fenced.

    Returns:
        The decoded object.

    Raises:
        ValueError: If the response is empty, not JSON, or not an object.
    """
    if not content:
        raise ValueError("Empty response")
    data = json.loads(strip_markdown_fences(content))
    if not isinstance(data, dict):
        raise ValueError("Expected a JSON object")
    return data
