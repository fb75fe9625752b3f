"""Helpers to load and validate the JSON schemas for service payloads."""

from __future__ import annotations

import json
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, Iterable, Optional

from jsonschema import Draft202012Validator, FormatChecker
from jsonschema.exceptions import ValidationError

ARTICLE_SCHEMA = "article_payload.json"
VERDICT_SCHEMA = "revision_verdict.json"


def schemas_dir() -> Path:
    return Path(__file__).resolve().parent / "schemas"


@lru_cache(maxsize=None)
def load_schema(name: str = ARTICLE_SCHEMA) -> Dict[str, Any]:
    """Load and cache a packaged schema as a dictionary."""
    return json.loads((schemas_dir() / name).read_text(encoding="utf-8"))


def format_errors(errors: Iterable[ValidationError]) -> str:
    """Turn jsonschema errors into a concise human-readable string."""
    parts = []
    for err in errors:
        location = ".".join(str(piece) for piece in err.absolute_path) or "<root>"
        parts.append(f"{location}: {err.message}")
    return "; ".join(parts)


def validate_payload(
    payload: Any,
    name: str = ARTICLE_SCHEMA,
    schema: Optional[Dict[str, Any]] = None,
) -> Dict[str, Any]:
    """
    Validate a decoded service payload against one of the packaged schemas.

    Raises ValueError with a readable message if validation fails.
    """
    schema_dict = schema or load_schema(name)
    validator = Draft202012Validator(schema_dict, format_checker=FormatChecker())
    errors = list(validator.iter_errors(payload))
    if errors:
        raise ValueError(f"Schema validation failed: {format_errors(errors)}")
    return payload
