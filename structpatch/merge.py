"""
structpatch.merge — Partial (PATCH-style) merge of one record into another.

Typical flow for an HTTP PATCH:

    payload = request.get_data()
    update = from_json(User, payload)          # only the sent fields are set
    changed = apply(user, update, payload_keys(payload))
    if changed:
        store.save(user)

The key filter is what makes this a *partial* merge: fields the payload did
not mention keep their current value, even though `update` holds defaults
for them.
"""

from typing import Any, Container, Optional

from .core import process


def apply(
    target: Any,
    update: Any,
    keys: Optional[Container[str]] = None,
    *,
    tag: Optional[str] = None,
) -> list[str]:
    """
    Merge `update` into `target` in place and return the changed keys.

    Arguments:
        target: the dataclass instance to modify (must not be frozen)
        update: a dataclass instance of exactly the same type, read only
        keys:   optional key filter; None means every keyed field;
                a bare str or bytes is rejected
        tag:    metadata namespace holding the keys (default "json")

    Every field whose key passes the filter is assigned the update's value;
    the returned list holds only the keys whose values actually differed,
    so merging the same update twice returns [] the second time.

    Assignment is shallow: nested records, lists and dicts are shared with
    `update`, never merged.  Embedded records are walked instead.  An
    optional embedded record that is None on `update` is left alone on
    `target`; one that is None on `target` only is created first with
    structpatch.fields.zero_value.

    Fields are written as they are visited.  If an UnsupportedFieldError is
    raised part way, fields visited before it stay written.  That includes an
    embedded field whose declared type is not a record: sibling fields
    declared ahead of it are merged before the error is raised.
    """
    return process(target, update, keys, merge=True, tag=tag)
