"""
structpatch.fields — Field descriptors for dataclass records.

A record is any dataclass instance.  The engine never looks at a record
directly; it walks the descriptor table produced by `record_fields`, which
exposes, per field and in declaration order:

    • the field name (attribute accessor / mutator)
    • the metadata mapping, from which Field Keys are read per tag namespace
    • whether the field is embedded, and if so which record class it holds

Declaring fields:

    @dataclass
    class Audit:
        created_by: str = tagged(json="created_by", default="")

    @dataclass
    class User:
        name: str = tagged(json="name,omitempty", default="")
        audit: Optional[Audit] = embedded(default=None)
"""

import dataclasses
import types
import typing
from dataclasses import MISSING, dataclass
from enum import Enum, auto
from typing import Any, Optional, Union

from .errors import UnsupportedFieldError


# Tag namespace used when the caller does not pick one.
DEFAULT_TAG = "json"

# A Field Key is the part of the tag before the first separator; what follows
# are options such as "omitempty".
TAG_SEPARATOR = ","

OMITEMPTY = "omitempty"

# Metadata entry marking a field as embedded.
EMBEDDED = "structpatch.embedded"


class Embedding(Enum):
    """How an embedded field holds its record."""
    RECORD = auto()       # always present
    OPTIONAL = auto()     # Optional[Record], may be None
    UNSUPPORTED = auto()  # marked embedded, but not a record type


@dataclass(frozen=True, slots=True)
class FieldInfo:
    """Descriptor of one record field."""
    name: str
    annotation: Any
    metadata: typing.Mapping[str, Any]
    embedding: Optional[Embedding] = None
    record_type: Optional[type] = None

    def _tag(self, tag: str) -> str:
        value = self.metadata.get(tag)
        if not isinstance(value, str):
            return ""
        return value

    def key(self, tag: str = DEFAULT_TAG) -> str:
        """Field Key under `tag`, or "" when the field has none."""
        return self._tag(tag).split(TAG_SEPARATOR, 1)[0]

    def options(self, tag: str = DEFAULT_TAG) -> tuple[str, ...]:
        """Tag options following the key, e.g. ("omitempty",)."""
        parts = self._tag(tag).split(TAG_SEPARATOR)
        return tuple(p for p in parts[1:] if p)


def tagged(*, default=MISSING, default_factory=MISSING, **tags: str) -> Any:
    """
    A dataclass field carrying one tag per namespace:

        name: str = tagged(json="name,omitempty", yaml="name", default="")
    """
    return dataclasses.field(default=default, default_factory=default_factory,
                             metadata=tags)


def embedded(*, default=MISSING, default_factory=MISSING) -> Any:
    """A dataclass field whose own fields are flattened into its owner."""
    return dataclasses.field(default=default, default_factory=default_factory,
                             metadata={EMBEDDED: True})


def is_record(obj: Any) -> bool:
    """True for dataclass instances (not dataclass classes)."""
    return dataclasses.is_dataclass(obj) and not isinstance(obj, type)


def is_record_type(tp: Any) -> bool:
    return isinstance(tp, type) and dataclasses.is_dataclass(tp)


def optional_arg(tp: Any) -> Optional[Any]:
    """X for Optional[X] / X | None, else None."""
    origin = typing.get_origin(tp)
    if origin is Union or origin is types.UnionType:
        args = typing.get_args(tp)
        rest = [a for a in args if a is not type(None)]
        if len(args) == 2 and len(rest) == 1:
            return rest[0]
    return None


def record_type_of(tp: Any) -> Optional[type]:
    """The record class behind a field type (plain or optional), if any."""
    if is_record_type(tp):
        return tp
    inner = optional_arg(tp)
    if is_record_type(inner):
        return inner
    return None


def _type_hints(cls: type) -> dict[str, Any]:
    try:
        return typing.get_type_hints(cls)
    except (NameError, TypeError):
        # Forward references that cannot be resolved; fall back to the raw
        # annotations and let embedded fields complain below.
        return {}


def describe_fields(cls: type) -> list[FieldInfo]:
    """
    Descriptor table for a record class, in declaration order.

    An embedded field that holds neither a record class nor an optional
    record class is described with Embedding.UNSUPPORTED; the traversal
    raises when it reaches it.
    """
    hints = _type_hints(cls)
    infos: list[FieldInfo] = []

    for f in dataclasses.fields(cls):
        tp = hints.get(f.name, f.type)

        if not f.metadata.get(EMBEDDED):
            infos.append(FieldInfo(f.name, tp, f.metadata))
            continue

        if is_record_type(tp):
            infos.append(FieldInfo(f.name, tp, f.metadata,
                                   Embedding.RECORD, tp))
            continue

        inner = optional_arg(tp)
        if is_record_type(inner):
            infos.append(FieldInfo(f.name, tp, f.metadata,
                                   Embedding.OPTIONAL, inner))
            continue

        infos.append(FieldInfo(f.name, tp, f.metadata, Embedding.UNSUPPORTED))

    return infos


def unsupported_embedding(cls: type, info: FieldInfo) -> UnsupportedFieldError:
    return UnsupportedFieldError(
        f"embedded field {cls.__name__}.{info.name} must hold a record "
        f"or an optional record, not {info.annotation!r}"
    )


def record_fields(cls: type) -> list[FieldInfo]:
    """
    Descriptor table for a record class, in declaration order.

    Raises UnsupportedFieldError if a field marked embedded is neither a
    record class nor an optional record class.
    """
    infos = describe_fields(cls)
    for info in infos:
        if info.embedding is Embedding.UNSUPPORTED:
            raise unsupported_embedding(cls, info)
    return infos


def is_frozen(cls: type) -> bool:
    params = getattr(cls, "__dataclass_params__", None)
    return bool(params is not None and params.frozen)


def zero_value(cls: type) -> Any:
    """
    A fresh instance of `cls` with nothing filled in.

    Fields take their declared default; embedded required records take their
    own zero value; fields without a default are set to None.
    """
    kwargs: dict[str, Any] = {}
    infos = {info.name: info for info in record_fields(cls)}

    for f in dataclasses.fields(cls):
        if not f.init:
            continue
        if f.default is not MISSING or f.default_factory is not MISSING:
            continue
        info = infos[f.name]
        if info.embedding is Embedding.RECORD:
            kwargs[f.name] = zero_value(info.record_type)
        else:
            kwargs[f.name] = None

    return cls(**kwargs)
