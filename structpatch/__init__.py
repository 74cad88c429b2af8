"""
structpatch — Shallow diff and partial merge for dataclass records
===================================================================

Find out which tagged fields of two records differ, and optionally copy them
across, without writing per-type code:

    @dataclass
    class User:
        name: str = tagged(json="name", default="")
        email: str = tagged(json="email,omitempty", default="")

    compare(User("a", "x@y"), User("b", "x@y"))          → ["name"]

    user = User("a", "x@y")
    apply(user, User("b", ""), {"name": None})           → ["name"]
    user                                                 → User("b", "x@y")

Fields are matched by their key under a tag namespace ("json" by default).
Embedded records (`embedded()`) are flattened into their owner and walked;
every other nested value is compared, and replaced, as a single unit.
"""

from structpatch.core import compare, deep_equal
from structpatch.errors import (
    InvalidArgumentError, StructPatchError, UnsupportedFieldError,
)
from structpatch.fields import (
    DEFAULT_TAG,
    Embedding, FieldInfo,
    embedded, tagged, record_fields, zero_value,
)
from structpatch.formats import (
    from_json, to_json, from_python, to_python, payload_keys,
)
from structpatch.merge import apply

__version__ = "0.1.0"
__all__ = [
    "compare", "apply", "deep_equal",
    "StructPatchError", "InvalidArgumentError", "UnsupportedFieldError",
    "DEFAULT_TAG", "Embedding", "FieldInfo",
    "embedded", "tagged", "record_fields", "zero_value",
    "from_json", "to_json", "from_python", "to_python", "payload_keys",
]
