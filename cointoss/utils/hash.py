# Copyright (c) Animica.
# SPDX-License-Identifier: MIT
"""
cointoss.utils.hash
===================

SHA3 helpers and **domain-separated** hashing used for nullifiers and
addresses. Standard library `hashlib` only.

Parts are encoded in a stable, length-delimited TLV format so distinct
inputs can never collide by concatenation:

    H( DOMAIN_PREFIX || len(tag) || tag || '|' || count || len(payload) || payload )

Key pieces
----------
- :func:`sha3_256`: raw one-shot wrapper.
- :func:`dsha3_256`: domain-separated hash of arbitrary parts.
- :func:`nullifier`: consumption tag for a (kind, round, randomness) triple.
- :func:`address_from_label`: deterministic 32-byte address for tests/devnet.
"""

from __future__ import annotations

from hashlib import sha3_256 as _sha3_256
from typing import Any, Iterable, Union

from ..constants import DOMAIN_NULLIFIER, DOMAIN_PREFIX, NULLIFIER_KINDS

DomainLike = Union[str, bytes]

__all__ = [
    "sha3_256",
    "dsha3_256",
    "nullifier",
    "address_from_label",
]


def sha3_256(data: bytes) -> bytes:
    """Return SHA3-256(data)."""
    if not isinstance(data, (bytes, bytearray, memoryview)):
        raise TypeError("sha3_256 expects a bytes-like object")
    return _sha3_256(bytes(data)).digest()


# Item type tags (single-byte, stable)
_TT_BYTES = b"\x01"
_TT_STR = b"\x02"
_TT_INT = b"\x03"
_TT_BOOL = b"\x04"


def _varint_u(n: int) -> bytes:
    """LEB128 unsigned varint."""
    if n < 0:
        raise ValueError("varint only supports non-negative integers")
    out = bytearray()
    while True:
        b = n & 0x7F
        n >>= 7
        if n:
            out.append(b | 0x80)
        else:
            out.append(b)
            break
    return bytes(out)


def _int_to_be(n: int) -> bytes:
    if n < 0:
        raise ValueError("only non-negative integers are supported")
    if n == 0:
        return b"\x00"
    return n.to_bytes((n.bit_length() + 7) // 8, "big")


def _encode_one(x: Any) -> bytes:
    if isinstance(x, (bytes, bytearray, memoryview)):
        b = bytes(x)
        return _TT_BYTES + _varint_u(len(b)) + b
    if isinstance(x, str):
        b = x.encode("utf-8")
        return _TT_STR + _varint_u(len(b)) + b
    if isinstance(x, bool):
        return _TT_BOOL + (b"\x01" if x else b"\x00")
    if isinstance(x, int):
        b = _int_to_be(x)
        return _TT_INT + _varint_u(len(b)) + b
    raise TypeError(f"unsupported part type: {type(x)!r}")


def _encode_parts(parts: Iterable[Any]) -> bytes:
    items = [_encode_one(p) for p in parts]
    payload = b"".join(items)
    return _varint_u(len(items)) + _varint_u(len(payload)) + payload


def _domain_prefix(domain: DomainLike) -> bytes:
    tag = domain if isinstance(domain, bytes) else str(domain).encode("ascii", "strict")
    return DOMAIN_PREFIX + _varint_u(len(tag)) + tag + b"|"


def dsha3_256(domain: DomainLike, *parts: Any) -> bytes:
    """Domain-separated SHA3-256 over *parts*."""
    h = _sha3_256()
    h.update(_domain_prefix(domain))
    h.update(_encode_parts(parts))
    return h.digest()


def nullifier(kind: bytes, round_id: int, randomness: int) -> bytes:
    """
    32-byte consumption tag for a note.

    Only the holder of `randomness` can compute the tag ahead of time; the
    kind keeps bet creation, bet consumption and reveal consumption apart.
    """
    if kind not in NULLIFIER_KINDS:
        raise ValueError(f"unknown nullifier kind {kind!r}")
    if round_id < 0 or randomness < 0:
        raise ValueError("round_id and randomness must be non-negative")
    return dsha3_256(DOMAIN_NULLIFIER, kind, int(round_id), int(randomness))


def address_from_label(label: Union[str, bytes]) -> bytes:
    """Stable 32-byte address for a human label (devnet accounts, fixtures)."""
    return dsha3_256(b"address", label if isinstance(label, bytes) else label.encode("utf-8"))
