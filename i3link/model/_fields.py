# i3link/model/_fields.py
from __future__ import annotations

from typing import Any, Mapping

from i3link.protocol.errors import JsonParseError

_MISSING = object()


def require_object(obj: Any, what: str) -> Mapping[str, Any]:
    if not isinstance(obj, Mapping):
        raise JsonParseError(f"{what}: expected JSON object, got {type(obj).__name__}")
    return obj


def require_list(obj: Any, what: str) -> list:
    if not isinstance(obj, list):
        raise JsonParseError(f"{what}: expected JSON array, got {type(obj).__name__}")
    return obj


def field(obj: Mapping[str, Any], name: str, kind: type, what: str, default: Any = _MISSING) -> Any:
    """
    Read one known field, ignoring everything else in the object.

    bool is rejected where an int is expected (JSON true is not a number).
    """
    if name not in obj or obj[name] is None:
        if default is not _MISSING:
            return default
        raise JsonParseError(f"{what}: missing field '{name}'")

    value = obj[name]
    if kind is int and isinstance(value, bool):
        raise JsonParseError(f"{what}: field '{name}' must be int, got bool")
    if not isinstance(value, kind):
        raise JsonParseError(f"{what}: field '{name}' must be {kind.__name__}, got {type(value).__name__}")
    return value
