"""
Canonical JSON Serialization

Deterministic JSON serialization for hashing blueprints and contexts:
- Sorted keys (lexicographic; non-string keys are tagged with their type)
- No whitespace
- UTF-8 encoding

The same object always produces the same JSON string, so the decision
engine can use content_hash() as a memoization key. Serialization is
total: values with no JSON form fall back to a type-tagged repr.
"""
from __future__ import annotations

import hashlib
import json
from collections.abc import Mapping
from dataclasses import asdict, is_dataclass
from datetime import date, datetime, timedelta
from decimal import Decimal
from enum import Enum
from pathlib import PurePath
from typing import Any
from uuid import UUID


def _canonical_key(key: Any) -> str:
    if isinstance(key, str):
        return key
    # {1: ...} and {"1": ...} must not collide
    return f"<{type(key).__name__}>{key!r}"


def _normalize(obj: Any) -> Any:
    """Stringify mapping keys recursively so sort_keys never compares mixed types."""
    if isinstance(obj, Mapping):
        return {_canonical_key(key): _normalize(value) for key, value in obj.items()}
    if isinstance(obj, (list, tuple)):
        return [_normalize(value) for value in obj]
    return obj


def _default_serializer(obj: Any) -> Any:
    """
    Custom JSON serializer for non-standard types.

    Handles:
    - datetime/date: ISO 8601 format
    - timedelta: total seconds
    - UUID: string representation
    - Decimal: string (preserves precision)
    - Enum: value
    - dataclass: dict
    - set/frozenset: sorted list
    - paths: string form
    - callables: qualified name plus identity
    - other objects: their attribute dict, else a type-tagged repr
    """
    if isinstance(obj, (datetime, date)):
        return obj.isoformat()
    if isinstance(obj, timedelta):
        return {"__type__": "timedelta", "seconds": obj.total_seconds()}
    if isinstance(obj, UUID):
        return str(obj)
    if isinstance(obj, Decimal):
        return str(obj)
    if isinstance(obj, Enum):
        return _normalize(obj.value)
    if is_dataclass(obj) and not isinstance(obj, type):
        return _normalize(asdict(obj))
    if isinstance(obj, (set, frozenset)):
        return [_normalize(value) for value in sorted(obj, key=repr)]
    if isinstance(obj, bytes):
        return obj.hex()
    if isinstance(obj, PurePath):
        return str(obj)
    if isinstance(obj, Mapping):
        return _normalize(obj)
    if callable(obj):
        # Two distinct closures with the same name must not share a key
        name = getattr(obj, "__qualname__", type(obj).__qualname__)
        return f"<callable {getattr(obj, '__module__', '')}.{name}#{id(obj)}>"
    if hasattr(obj, "__dict__"):
        return _normalize({"__type__": type(obj).__qualname__, **vars(obj)})
    return {"__type__": type(obj).__qualname__, "repr": repr(obj)}


def canonical_json(obj: Any) -> str:
    """
    Serialize object to canonical JSON string.

    Example:
        >>> canonical_json({"b": 1, "a": 2})
        '{"a":2,"b":1}'
        >>> canonical_json({1: "x", "a": 2})
        '{"<int>1":"x","a":2}'
    """
    return json.dumps(
        _normalize(obj),
        sort_keys=True,
        separators=(",", ":"),
        default=_default_serializer,
        ensure_ascii=False,
    )


def canonical_json_bytes(obj: Any) -> bytes:
    return canonical_json(obj).encode("utf-8")


def content_hash(obj: Any) -> str:
    """
    Compute SHA-256 hash of canonical JSON representation.

    Returns:
        Hex-encoded SHA-256 hash string (64 characters)
    """
    return hashlib.sha256(canonical_json_bytes(obj)).hexdigest()
