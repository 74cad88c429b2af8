"""
structpatch.formats — Convert between records and decoded payloads.

Supported conversions:
    • mapping (decoded JSON object) → record, matched by Field Key
    • record → mapping, honouring the "omitempty" tag option
    • JSON strings ↔ records
    • payload → key filter (its top-level keys)

Embedded records are flattened in both directions: their keys live at the
same level as the keys of the record that embeds them.
"""

import json
import types
import typing
from collections.abc import Mapping
from typing import Any, Optional, Union

from .errors import InvalidArgumentError
from .fields import (
    DEFAULT_TAG, OMITEMPTY,
    Embedding,
    is_record, optional_arg, record_fields, record_type_of, zero_value,
)

# Containers a JSON array is rebuilt as, following the field annotation.
_SEQUENCES = (list, tuple, set, frozenset)


# ═══════════════════════════════════════════════════════════════════
#  MAPPING → RECORD
# ═══════════════════════════════════════════════════════════════════

def _claims(cls: type, data: Mapping, tag: str) -> bool:
    """True if `data` carries any key that lands inside a `cls` record."""
    for info in record_fields(cls):
        if info.embedding is not None:
            if _claims(info.record_type, data, tag):
                return True
            continue
        key = info.key(tag)
        if key and key in data:
            return True
    return False


def _accepts_none(tp: Any) -> bool:
    if tp is Any or tp is None or tp is type(None):
        return True
    origin = typing.get_origin(tp)
    if origin is Union or origin is types.UnionType:
        return type(None) in typing.get_args(tp)
    return False


def _decode_items(tp: Any, value: list, tag: str) -> Any:
    origin = typing.get_origin(tp) or tp
    args = typing.get_args(tp)

    if origin is tuple:
        if len(args) == 2 and args[1] is Ellipsis:
            return tuple(_decode(args[0], item, tag) for item in value)
        if len(args) == len(value):
            return tuple(_decode(t, item, tag) for t, item in zip(args, value))
        return tuple(value)

    items = [_decode(args[0], item, tag) for item in value] if len(args) == 1 else value
    if origin in (set, frozenset):
        return origin(items)
    return list(items)


def _decode(tp: Any, value: Any, tag: str) -> Any:
    if value is None:
        return None

    record_cls = record_type_of(tp)
    if record_cls is not None and isinstance(value, Mapping):
        return from_python(record_cls, value, tag=tag)

    inner = optional_arg(tp) or tp
    if isinstance(value, list) and (typing.get_origin(inner) or inner) in _SEQUENCES:
        return _decode_items(inner, value, tag)

    return value


def _fill(record: Any, data: Mapping, tag: str) -> None:
    for info in record_fields(type(record)):
        if info.embedding is Embedding.RECORD:
            _fill(getattr(record, info.name), data, tag)
            continue

        if info.embedding is Embedding.OPTIONAL:
            if not _claims(info.record_type, data, tag):
                continue
            sub = getattr(record, info.name)
            if sub is None:
                sub = zero_value(info.record_type)
                object.__setattr__(record, info.name, sub)
            _fill(sub, data, tag)
            continue

        key = info.key(tag)
        if not key or key not in data:
            continue
        if data[key] is None and not _accepts_none(info.annotation):
            # null leaves a non-optional field at its zero value
            continue
        # object.__setattr__ so frozen records can be decoded too
        object.__setattr__(record, info.name, _decode(info.annotation, data[key], tag))


def from_python(cls: type, data: Mapping, *, tag: Optional[str] = None) -> Any:
    """
    Build a `cls` record from a decoded mapping.

    Fields whose key is missing from `data` keep their zero value
    (structpatch.fields.zero_value).  An optional embedded record is only
    created when `data` carries at least one of its keys.  A null only
    lands in fields annotated Optional (or Any); any other field keeps its
    zero value.  Nested record fields are built from nested mappings, and
    arrays become the list, tuple or set their annotation names; no other
    conversion takes place.
    """
    if not isinstance(data, Mapping):
        raise InvalidArgumentError(
            f"cannot build {cls.__name__} from {type(data).__name__}"
        )
    record = zero_value(cls)
    _fill(record, data, tag or DEFAULT_TAG)
    return record


# ═══════════════════════════════════════════════════════════════════
#  RECORD → MAPPING
# ═══════════════════════════════════════════════════════════════════

def _is_empty(value: Any) -> bool:
    if value is None or value is False:
        return True
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return value == 0
    if isinstance(value, (str, bytes, list, tuple, dict, set)):
        return len(value) == 0
    return False


def _encode(value: Any, tag: str) -> Any:
    if is_record(value):
        return to_python(value, tag=tag)
    if isinstance(value, (list, tuple, set, frozenset)):
        return [_encode(item, tag) for item in value]
    if isinstance(value, Mapping):
        return {k: _encode(v, tag) for k, v in value.items()}
    return value


def _dump(record: Any, out: dict, tag: str) -> None:
    for info in record_fields(type(record)):
        value = getattr(record, info.name)
        if info.embedding is not None:
            if value is not None:
                _dump(value, out, tag)
            continue

        key = info.key(tag)
        if not key:
            continue
        if OMITEMPTY in info.options(tag) and _is_empty(value):
            continue
        out[key] = _encode(value, tag)


def to_python(record: Any, *, tag: Optional[str] = None) -> dict[str, Any]:
    """
    Convert a record to a plain dict keyed by Field Key.

    Inverse of from_python for records whose fields all carry keys.
    """
    if not is_record(record):
        raise InvalidArgumentError(f"not a record: {type(record).__name__}")
    out: dict[str, Any] = {}
    _dump(record, out, tag or DEFAULT_TAG)
    return out


# ═══════════════════════════════════════════════════════════════════
#  JSON STRINGS
# ═══════════════════════════════════════════════════════════════════

def from_json(cls: type, text: Union[str, bytes], *, tag: Optional[str] = None) -> Any:
    """Parse a JSON object into a `cls` record."""
    return from_python(cls, json.loads(text), tag=tag)


def to_json(record: Any, *, tag: Optional[str] = None, **kwargs) -> str:
    """Convert a record to a JSON string."""
    return json.dumps(to_python(record, tag=tag), **kwargs)


def payload_keys(payload: Union[str, bytes, Mapping]) -> dict[str, None]:
    """
    Key filter for a PATCH payload: its top-level keys.

    Accepts a JSON string or an already decoded mapping.
    """
    if isinstance(payload, (str, bytes)):
        payload = json.loads(payload)
    if not isinstance(payload, Mapping):
        raise InvalidArgumentError(
            f"payload must be a JSON object, got {type(payload).__name__}"
        )
    return dict.fromkeys(payload)
