"""
Document utility functions for JSONDB Engine.

Helpers for turning caller-supplied data into the JSON-compatible shape that
is stored in memory and written to disk.
"""

import math
from collections.abc import Mapping
from datetime import date, datetime
from typing import Any

from bson import ObjectId

from ..constants import FILE_ENCODING
from ..exceptions import InvalidDataType


def require_mapping(value: Any, what: str) -> Mapping[str, Any]:
    """
    Ensure ``value`` is a plain mapping (not a list, string or scalar).

    Args:
        value: Value supplied by the caller
        what: Human readable name used in the error ("Document", "Filter", ...)

    Raises:
        InvalidDataType: If value is not a mapping
    """
    if not isinstance(value, Mapping):
        raise InvalidDataType(
            f"{what} must be an object, got {type(value).__name__}",
            context={"expected": "object", "received": type(value).__name__},
        )
    return value


def _check_text(text: str, path: str) -> str:
    try:
        text.encode(FILE_ENCODING)
    except UnicodeEncodeError as e:
        raise InvalidDataType(
            f"Text cannot be encoded as {FILE_ENCODING}: {e.reason}",
            context={"path": path or "root"},
        ) from e
    return text


def to_json_value(value: Any, path: str = "") -> Any:
    """
    Recursively convert a value to a JSON-compatible copy.

    - Mappings -> new dicts (keys must be strings)
    - Lists and tuples -> new lists
    - ObjectId -> str
    - datetime / date -> ISO format string
    - str, int, finite float, bool, None -> unchanged

    The result never shares containers with the input, so callers cannot
    alias stored documents.

    Example:
        ```python
        to_json_value({"tags": ("a", "b"), "at": datetime(2024, 1, 1)})
        # {"tags": ["a", "b"], "at": "2024-01-01T00:00:00"}
        ```

    Raises:
        InvalidDataType: If a value cannot be represented in JSON, including
            NaN, infinities and strings with unpaired surrogates
    """
    if value is None or isinstance(value, (bool, int)):
        return value
    if isinstance(value, str):
        return _check_text(value, path)
    if isinstance(value, float):
        if not math.isfinite(value):
            raise InvalidDataType(
                f"Number {value!r} cannot be stored in JSON",
                context={"path": path or "root"},
            )
        return value
    if isinstance(value, Mapping):
        converted: dict[str, Any] = {}
        for key, item in value.items():
            if not isinstance(key, str):
                raise InvalidDataType(
                    f"Field names must be strings, got {type(key).__name__}",
                    context={"path": path or "root"},
                )
            converted[_check_text(key, path)] = to_json_value(
                item, f"{path}.{key}" if path else key
            )
        return converted
    if isinstance(value, (list, tuple)):
        return [to_json_value(item, f"{path}[{i}]") for i, item in enumerate(value)]
    if isinstance(value, ObjectId):
        return str(value)
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    raise InvalidDataType(
        f"Value of type {type(value).__name__} cannot be stored",
        context={"path": path or "root"},
    )


def clean_document(document: Any, what: str = "Document") -> dict[str, Any]:
    """Validate that ``document`` is a mapping and return a JSON-compatible copy of it."""
    return to_json_value(require_mapping(document, what))
