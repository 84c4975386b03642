"""
Generic JSON value helpers shared by the request and streaming models.

Provider payloads carry open-ended sub-objects (``response``, ``item``,
``part``, ``annotation`` on the streaming side; ``metadata``, JSON-schema
``schema`` and tool ``parameters`` on the request side) whose structure is
owned by the provider. They are kept as plain JSON values built from
Python builtins:

- ``None``, ``bool``, ``int``, ``float``, ``str``
- ``list`` of JSON values
- ``dict`` mapping ``str`` to JSON values (insertion ordered)
"""

from __future__ import annotations

import json
from typing import Any

from pydantic import JsonValue, TypeAdapter

__all__ = [
    "JsonObject",
    "JsonValue",
    "dumps",
    "get_path",
    "parse_json",
    "validate_json_object",
    "validate_json_value",
]

JsonObject = dict[str, JsonValue]

_value_adapter: TypeAdapter[JsonValue] = TypeAdapter(JsonValue)
_object_adapter: TypeAdapter[JsonObject] = TypeAdapter(JsonObject)


def validate_json_value(value: Any) -> JsonValue:
    """
    Check that ``value`` is made only of JSON-compatible builtins.

    Raises:
        pydantic.ValidationError: If ``value`` contains anything else
            (sets, tuples of objects, non-string keys, custom classes).
    """
    return _value_adapter.validate_python(value)


def validate_json_object(value: Any) -> JsonObject:
    """Same as :func:`validate_json_value`, requiring a top-level object."""
    return _object_adapter.validate_python(value)


def parse_json(text: str | bytes) -> JsonValue:
    """
    Parse JSON text.

    Raises:
        ValueError: On malformed input, including nesting too deep for the
            parser (``json.JSONDecodeError`` is a ``ValueError``).
    """
    try:
        return json.loads(text)
    except RecursionError as e:
        raise ValueError("JSON nested too deeply") from e


def dumps(value: JsonValue) -> str:
    """Serialize compactly, keeping insertion key order."""
    return json.dumps(value, ensure_ascii=False, separators=(",", ":"))


def get_path(value: JsonValue, *keys: str | int) -> JsonValue:
    """
    Walk nested objects/arrays and return the value found, or ``None``.

    String keys index objects, integer keys index arrays. Any missing key,
    out-of-range index or shape mismatch yields ``None`` instead of raising.

    Example:
        >>> get_path({"error": {"message": "boom"}}, "error", "message")
        'boom'
    """
    current = value
    for key in keys:
        if isinstance(key, str):
            if not isinstance(current, dict) or key not in current:
                return None
            current = current[key]
        else:
            if not isinstance(current, list) or not -len(current) <= key < len(current):
                return None
            current = current[key]
    return current
