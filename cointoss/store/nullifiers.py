"""
Nullifier set
=============

Append-only set of 32-byte consumption tags backed by a generic KV.

Unlike a consensus replay window there is no TTL and no pruning: once a tag is
recorded, the note it guards stays consumed forever. Tags are opaque bytes,
already domain-separated upstream (see `cointoss.utils.hash.nullifier`).

    seen(nullifier) -> bool
    insert(nullifier) -> None      # raises KeyError if already present
    size() -> int

Thread-safety is not provided; the game serializes access.
"""

from __future__ import annotations

from ..constants import NULLIFIERS_PREFIX
from . import KeyValue

_PRESENT = b"\x01"
_TAG_LEN = 32


class NullifierSet:
    """
    KV-backed nullifier set.

    Key layout:
      NULLIFIERS_PREFIX | nullifier(32)  -> b"\\x01"
    """

    __slots__ = ("kv",)

    def __init__(self, kv: KeyValue):
        self.kv = kv

    def _k(self, nullifier: bytes) -> bytes:
        if not isinstance(nullifier, (bytes, bytearray)) or len(nullifier) != _TAG_LEN:
            raise ValueError("nullifier must be 32 bytes")
        return NULLIFIERS_PREFIX + bytes(nullifier)

    def seen(self, nullifier: bytes) -> bool:
        return self.kv.get(self._k(nullifier)) is not None

    def insert(self, nullifier: bytes) -> None:
        """Record `nullifier`. A second insert of the same tag is a double spend."""
        k = self._k(nullifier)
        if self.kv.get(k) is not None:
            raise KeyError("nullifier already recorded")
        self.kv.put(k, _PRESENT)

    def size(self) -> int:
        return sum(1 for _ in self.kv.iter_prefix(NULLIFIERS_PREFIX))

    def __contains__(self, nullifier: object) -> bool:
        return isinstance(nullifier, (bytes, bytearray)) and self.seen(bytes(nullifier))


__all__ = ["NullifierSet"]
