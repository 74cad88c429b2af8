"""
structpatch.core — Shallow record comparison
=============================================

THE TRAVERSAL
─────────────

Both `compare` and `apply` (structpatch.merge) run the same walk over two
records of the same dataclass type, field by field in declaration order:

    embedded, Record          → recurse into both sub-records
    embedded, Optional[Record]:
        update side is None   → skip the whole subtree
        target side is None   → apply: materialize zero_value() first
                                compare: every nested key counts as changed
    embedded, anything else   → UnsupportedFieldError
    not embedded:
        no key under the tag  → skip
        key not in the filter → skip
        otherwise             → deep_equal(target, source); record the key
                                when unequal; apply also assigns

A nested record that is NOT embedded is an opaque value: it is compared with
deep_equal and, when merging, replaced wholesale.

Keys come back as a list in the order they were visited.  No sorting, no
de-duplication.

EQUALITY
────────

deep_equal is a strict structural comparison:

    the same object is always equal to itself  (NaN included)
    None == None only
    different concrete types are never equal   (True ≠ 1, 1 ≠ 1.0)
    records compare every field, tagged or not
    mappings compare key sets, then values
    lists / tuples compare length, then items in order
    anything else: ==

A pair of containers met again while it is still being compared counts as
equal, so self-referencing values terminate.
"""

import dataclasses
import logging
from collections.abc import Mapping
from typing import Any, Container, Optional

from .errors import InvalidArgumentError, UnsupportedFieldError
from .fields import (
    DEFAULT_TAG,
    Embedding,
    describe_fields, is_frozen, is_record, unsupported_embedding, zero_value,
)

logger = logging.getLogger(__name__)

_OPERANDS_MSG = "target and source must be records of the same type"


# ═══════════════════════════════════════════════════════════════════
#  DEEP STRUCTURAL EQUALITY
# ═══════════════════════════════════════════════════════════════════

def deep_equal(a: Any, b: Any) -> bool:
    """Recursive structural equality (see module docstring)."""
    return _deep_equal(a, b, set())


def _deep_equal(a: Any, b: Any, visited: set[tuple[int, int]]) -> bool:
    if a is b:
        return True
    if a is None or b is None:
        return False

    # bool is a subclass of int and 1 == 1.0; neither counts as equal here.
    if type(a) is not type(b):
        return False

    if not (is_record(a) or isinstance(a, (Mapping, list, tuple))):
        return a == b

    # A pair already being compared further up counts as equal, so cyclic
    # values terminate.
    pair = (id(a), id(b))
    if pair in visited:
        return True
    visited.add(pair)

    if is_record(a):
        return all(
            _deep_equal(getattr(a, f.name), getattr(b, f.name), visited)
            for f in dataclasses.fields(a)
        )

    if isinstance(a, Mapping):
        if len(a) != len(b):
            return False
        return all(k in b and _deep_equal(v, b[k], visited) for k, v in a.items())

    if len(a) != len(b):
        return False
    return all(_deep_equal(x, y, visited) for x, y in zip(a, b))


# ═══════════════════════════════════════════════════════════════════
#  TRAVERSAL
# ═══════════════════════════════════════════════════════════════════

def _validate(target: Any, source: Any) -> None:
    if target is None or source is None:
        raise InvalidArgumentError(_OPERANDS_MSG)
    if not is_record(target) or not is_record(source):
        raise InvalidArgumentError(_OPERANDS_MSG)
    if type(target) is not type(source):
        raise InvalidArgumentError(
            f"{_OPERANDS_MSG}, got {type(target).__name__} "
            f"and {type(source).__name__}"
        )


def process(
    target: Any,
    source: Any,
    keys: Optional[Container[str]] = None,
    merge: bool = False,
    tag: Optional[str] = None,
) -> list[str]:
    """
    Shared entry point of compare and apply.

    Validates the operands, resolves the tag and walks the records.
    Either returns the full changed-key list or raises.
    """
    _validate(target, source)
    if isinstance(keys, (str, bytes)):
        # "in" on a string is a substring test, not key membership
        raise InvalidArgumentError(
            f"keys must be a collection of keys, not {type(keys).__name__}"
        )
    if merge and is_frozen(type(target)):
        raise InvalidArgumentError(
            f"cannot merge into frozen record {type(target).__name__}"
        )

    tag = tag or DEFAULT_TAG
    changed: list[str] = []
    _process_records(target, source, tag, keys, changed, merge)
    return changed


def _process_records(
    target: Any,
    source: Any,
    tag: str,
    keys: Optional[Container[str]],
    changed: list[str],
    merge: bool,
) -> None:
    """
    Walk one (target, source) pair of records.

    `target` is None only in compare mode, below an optional embedded record
    that the target lacks.
    """
    owner = type(source).__name__

    for info in describe_fields(type(source)):
        if info.embedding is Embedding.UNSUPPORTED:
            raise unsupported_embedding(type(source), info)

        if info.embedding is not None:
            sub_source = getattr(source, info.name)
            sub_target = getattr(target, info.name) if target is not None else None

            if info.embedding is Embedding.OPTIONAL:
                if sub_source is None:
                    logger.debug("skipping %s.%s: no record on the update side",
                                 owner, info.name)
                    continue
                if sub_target is None and merge:
                    sub_target = zero_value(info.record_type)
                    setattr(target, info.name, sub_target)
                    logger.debug("materialized %s.%s as %s", owner, info.name,
                                 info.record_type.__name__)
            elif sub_source is None or (target is not None and sub_target is None):
                raise UnsupportedFieldError(
                    f"embedded field {owner}.{info.name} holds no record"
                )

            if not is_record(sub_source):
                raise UnsupportedFieldError(
                    f"embedded field {owner}.{info.name} holds "
                    f"{type(sub_source).__name__}, not a record"
                )
            if merge and is_frozen(type(sub_target)):
                raise UnsupportedFieldError(
                    f"embedded field {owner}.{info.name} holds a frozen record"
                )

            _process_records(sub_target, sub_source, tag, keys, changed, merge)
            continue

        key = info.key(tag)
        if not key:
            continue
        if keys is not None and key not in keys:
            continue

        value = getattr(source, info.name)
        if target is None or not deep_equal(getattr(target, info.name), value):
            logger.debug("%s.%s changed (key %r)", owner, info.name, key)
            changed.append(key)

        if merge:
            setattr(target, info.name, value)


# ═══════════════════════════════════════════════════════════════════
#  PUBLIC API
# ═══════════════════════════════════════════════════════════════════

def compare(
    target: Any,
    source: Any,
    keys: Optional[Container[str]] = None,
    *,
    tag: Optional[str] = None,
) -> list[str]:
    """
    Keys of the fields whose values differ between two records.

    Arguments:
        target: a dataclass instance
        source: a dataclass instance of exactly the same type
        keys:   optional key filter; only fields whose key is `in` it are
                looked at.  None means every keyed field.  A bare str or
                bytes is rejected.
        tag:    metadata namespace holding the keys (default "json")

    Traverses embedded records (see structpatch.fields.embedded), including
    embedded optional records; an optional record missing on `source` is
    skipped, one missing on `target` reports all of its keys.  Other nested
    records are compared as a whole.

    Neither record is modified.

    Raises InvalidArgumentError for bad operands or a str filter, and
    UnsupportedFieldError for embedded fields that do not hold records.
    """
    return process(target, source, keys, merge=False, tag=tag)
