"""
structpatch.errors — Exceptions raised by the traversal engine.

Both kinds abort the whole call: no partial changed-key list is returned.
"""


class StructPatchError(Exception):
    """Base class for every error raised by structpatch."""


class InvalidArgumentError(StructPatchError, ValueError):
    """
    The operands cannot be compared at all: one of them is None, is not a
    record instance, or the two are not of the same record type.
    """


class UnsupportedFieldError(StructPatchError, TypeError):
    """An embedded field does not hold a record (or an optional record)."""
