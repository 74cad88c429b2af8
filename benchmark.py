"""
Benchmark: structpatch vs a generic structural diff tool.

This benchmark compares structpatch against:
    1. deepdiff — popular Python structural diff library
    2. hand-written per-type comparison — the boilerplate structpatch replaces

The point is NOT "we're faster" — the point is:
    structpatch answers "which PATCH keys changed?" directly, with no
    per-type code and no post-processing of a generic diff tree.
"""

import copy
import sys
import os
import time
from dataclasses import dataclass, make_dataclass
from typing import Optional

sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from structpatch import (
    apply, compare, embedded, from_json, payload_keys, tagged, to_python,
)


# ═══════════════════════════════════════════════════════════════════
#  TEST DATA
# ═══════════════════════════════════════════════════════════════════

@dataclass
class Address:
    street: str = tagged(json="street", default="")
    city: str = tagged(json="city", default="")
    zip: str = tagged(json="zip,omitempty", default="")


@dataclass
class Audit:
    created_by: str = tagged(json="created_by", default="")
    updated_by: str = tagged(json="updated_by", default="")
    version: int = tagged(json="version", default=0)


@dataclass
class Billing:
    plan: str = tagged(json="plan", default="free")
    seats: int = tagged(json="seats", default=1)
    card_last4: Optional[str] = tagged(json="card_last4", default=None)


@dataclass
class Account:
    id: int = tagged(json="id", default=0)
    name: str = tagged(json="name", default="")
    email: str = tagged(json="email", default="")
    active: bool = tagged(json="active", default=True)
    roles: list = tagged(json="roles", default_factory=list)
    address: Optional[Address] = tagged(json="address", default=None)
    audit: Audit = embedded(default_factory=Audit)
    billing: Optional[Billing] = embedded(default=None)


CURRENT = Account(
    id=7,
    name="Ada",
    email="ada@example.com",
    roles=["admin", "dev"],
    address=Address("1 Analytical St", "London", "N1"),
    audit=Audit("system", "system", 3),
    billing=Billing("pro", 5, "4242"),
)

PAYLOAD = (
    '{"email": "ada@lovelace.dev", "roles": ["admin"], '
    '"updated_by": "ada", "seats": 6, "name": "Ada"}'
)


def compare_by_hand(a: Account, b: Account, keys) -> list:
    """What callers write without structpatch."""
    changed = []
    for key, attr in (("id", "id"), ("name", "name"), ("email", "email"),
                      ("active", "active"), ("roles", "roles"),
                      ("address", "address")):
        if key in keys and getattr(a, attr) != getattr(b, attr):
            changed.append(key)
    for key in ("created_by", "updated_by", "version"):
        if key in keys and getattr(a.audit, key) != getattr(b.audit, key):
            changed.append(key)
    if b.billing is not None:
        for key, attr in (("plan", "plan"), ("seats", "seats"),
                          ("card_last4", "card_last4")):
            if key in keys and (a.billing is None
                                or getattr(a.billing, attr) != getattr(b.billing, attr)):
                changed.append(key)
    return changed


def _try_import(name):
    """Safely attempt to import an optional dependency by name."""
    import importlib
    try:
        return importlib.import_module(name)
    except ImportError:
        return None


def _timeit(fn, repeat=2000):
    t0 = time.perf_counter()
    for _ in range(repeat):
        result = fn()
    return result, (time.perf_counter() - t0) / repeat


# ═══════════════════════════════════════════════════════════════════
#  BENCHMARKS
# ═══════════════════════════════════════════════════════════════════

def benchmark_patch_flow():
    """Decode a PATCH payload, merge it, report the changed keys."""
    print("=" * 70)
    print("  §1  PATCH FLOW (decode + apply)")
    print("=" * 70)
    print()

    def run():
        target = copy.deepcopy(CURRENT)
        return apply(target, from_json(Account, PAYLOAD), payload_keys(PAYLOAD))

    changed, dt = _timeit(run)
    print(f"  Changed keys:  {changed}")
    print(f"  Time per call: {dt*1e6:.1f}µs (including deepcopy of the target)")
    print()


def benchmark_vs_hand_written():
    """structpatch.compare vs per-type code."""
    print("=" * 70)
    print("  §2  GENERIC vs HAND-WRITTEN")
    print("=" * 70)
    print()

    update = from_json(Account, PAYLOAD)
    keys = payload_keys(PAYLOAD)

    sp_keys, sp_time = _timeit(lambda: compare(CURRENT, update, keys))
    hw_keys, hw_time = _timeit(lambda: compare_by_hand(CURRENT, update, keys))

    print(f"  structpatch:   {sp_keys}  [{sp_time*1e6:.1f}µs]")
    print(f"  hand-written:  {hw_keys}  [{hw_time*1e6:.1f}µs]")
    print(f"  Same answer:   {'YES' if sp_keys == hw_keys else 'NO'}")
    print()


def benchmark_vs_deepdiff():
    """Compare with deepdiff (if available)."""
    print("=" * 70)
    print("  §3  COMPARISON WITH EXISTING TOOLS")
    print("=" * 70)
    print()

    deepdiff = _try_import("deepdiff")

    update = from_json(Account, PAYLOAD)
    keys = payload_keys(PAYLOAD)
    sp_keys, sp_time = _timeit(lambda: compare(CURRENT, update, keys))

    print(f"  structpatch:")
    print(f"    Changed keys:   {sp_keys}")
    print(f"    Time:           {sp_time*1e6:.1f}µs")
    print()

    if deepdiff:
        # deepdiff has no notion of a key filter or of embedded records:
        # diff the flattened dicts, then keep the payload's keys by hand.
        current = to_python(CURRENT)
        incoming = to_python(update)

        def run():
            result = deepdiff.DeepDiff(current, incoming, view="tree")
            found = []
            for level in (lvl for levels in result.values() for lvl in levels):
                key = level.path(output_format="list")[0]
                if key in keys and key not in found:
                    found.append(key)
            return found

        dd_keys, dd_time = _timeit(run, repeat=200)
        print(f"  deepdiff:")
        print(f"    Changed keys:   {dd_keys}")
        print(f"    Time:           {dd_time*1e6:.1f}µs")
    else:
        print(f"  deepdiff:         NOT INSTALLED (pip install deepdiff)")
    print()

    print("  KEY INSIGHT:")
    print("    deepdiff tells you every leaf that changed, anywhere.")
    print("    structpatch tells you which PATCH keys changed, in declaration order,")
    print("    and can merge exactly those keys back in place.")
    print()


def benchmark_scaling():
    """Test how compare scales with field count."""
    print("=" * 70)
    print("  §4  SCALING")
    print("=" * 70)
    print()

    for n in [10, 50, 100, 500]:
        cls = make_dataclass(
            f"Wide{n}",
            [(f"f{i}", int, tagged(json=f"f{i}", default=0)) for i in range(n)],
        )
        a = cls()
        b = cls(**{f"f{i}": i + 1 for i in range(n)})

        changed, dt = _timeit(lambda: compare(a, b), repeat=50)
        print(f"  Fields {n:>4}: changed={len(changed):>4}  time={dt*1000:>8.3f}ms")

    print()


def main():
    print()
    print("╔══════════════════════════════════════════════════════════════════════╗")
    print("║          SHALLOW RECORD DIFF / MERGE — BENCHMARK SUITE               ║")
    print("║          structpatch v0.1.0                                          ║")
    print("╚══════════════════════════════════════════════════════════════════════╝")
    print()

    benchmark_patch_flow()
    benchmark_vs_hand_written()
    benchmark_vs_deepdiff()
    benchmark_scaling()


if __name__ == "__main__":
    main()
