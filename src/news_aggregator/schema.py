"""Helpers to load and validate the sources manifest JSON schema."""

from __future__ import annotations

import json
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional

from jsonschema import Draft202012Validator
from jsonschema.exceptions import ValidationError


def default_schema_path() -> Path:
    """Return the path to the packaged sources manifest schema."""
    return Path(__file__).resolve().parent / "schemas" / "sources_manifest.json"


@lru_cache(maxsize=4)
def load_schema(path: Optional[Path | str] = None) -> Dict[str, Any]:
    """Load and cache the manifest schema as a dictionary."""
    schema_path = Path(path) if path else default_schema_path()
    return json.loads(schema_path.read_text(encoding="utf-8"))


def format_errors(errors: Iterable[ValidationError]) -> str:
    """Turn jsonschema errors into a concise human-readable string."""
    parts = []
    for err in errors:
        location = ".".join(str(piece) for piece in err.absolute_path) or "<root>"
        parts.append(f"{location}: {err.message}")
    return "; ".join(parts)


def duplicate_names(entries: Iterable[Dict[str, Any]]) -> List[str]:
    """Names that appear more than once, in first-seen order."""
    seen: Dict[str, int] = {}
    for entry in entries:
        name = entry.get("name")
        seen[name] = seen.get(name, 0) + 1
    return [name for name, count in seen.items() if count > 1]


def validate_manifest(
    payload: Any, schema: Optional[Dict[str, Any]] = None
) -> List[Dict[str, Any]]:
    """
    Validate a decoded manifest against the schema.

    Raises ValueError with a readable message if validation fails.
    """
    schema_dict = schema or load_schema()
    validator = Draft202012Validator(schema_dict)
    errors = list(validator.iter_errors(payload))
    if errors:
        raise ValueError(f"Schema validation failed: {format_errors(errors)}")
    duplicates = duplicate_names(payload)
    if duplicates:
        raise ValueError(f"Duplicate source names: {', '.join(duplicates)}")
    return payload
