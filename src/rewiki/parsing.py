"""Normalization of raw service text before it is decoded as JSON."""

from __future__ import annotations

import json
import re
from typing import Any, Dict

_FENCE_OPEN = re.compile(r"^```[\w-]*[ \t]*\n?")
_FENCE_CLOSE = re.compile(r"\n?```\s*$")


def strip_code_fences(text: str | None) -> str:
    """
    Remove a markdown code fence wrapping the whole response.

    Handles "```json ... ```", bare "``` ... ```" and a missing closing fence.
    Text without a leading fence is only trimmed.
    """
    s = (text or "").strip()
    if not s.startswith("```"):
        return s
    s = _FENCE_OPEN.sub("", s, count=1)
    s = _FENCE_CLOSE.sub("", s, count=1)
    return s.strip()


def parse_json_object(text: str | None) -> Dict[str, Any]:
    """
    Decode service text as a single JSON object.

    Raises ValueError when the text is empty, not JSON, or not an object.
    """
    cleaned = strip_code_fences(text)
    if not cleaned:
        raise ValueError("response text is empty.")
    try:
        data = json.loads(cleaned)
    except json.JSONDecodeError as exc:
        raise ValueError(f"response is not valid JSON: {exc}") from exc
    if not isinstance(data, dict):
        raise ValueError("response JSON must be a single object.")
    return data
