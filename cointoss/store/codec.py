"""
Canonical CBOR encoding for stored records.

Records expose `to_dict()` / `from_dict()`; values are plain ints, bools,
bytes, None and nested dicts, so canonical CBOR gives a stable byte image
for every record (useful for state roots and snapshot comparisons).
"""

from __future__ import annotations

from typing import Any

import cbor2


def dumps(obj: Any) -> bytes:
    return cbor2.dumps(obj, canonical=True)


def loads(data: bytes) -> Any:
    return cbor2.loads(data)


def u64(n: int) -> bytes:
    if n < 0 or n > 0xFFFFFFFFFFFFFFFF:
        raise ValueError("value out of range for u64")
    return int(n).to_bytes(8, "big")


def u256(n: int) -> bytes:
    if n < 0 or n >= 1 << 256:
        raise ValueError("value out of range for u256")
    return int(n).to_bytes(32, "big")


__all__ = ["dumps", "loads", "u64", "u256"]
