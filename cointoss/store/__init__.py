"""
cointoss.store
==============

Storage layer for the coin-toss protocol: a byte-oriented KV interface, a
journal that gives every operation all-or-nothing semantics, and typed
buckets on top of it (rounds, notes, nullifiers, ciphertexts).

Backends are pluggable; only bytes go in/out. `InMemoryKV` is the reference
backend for tests and the devnet CLI.
"""

from __future__ import annotations

from typing import Dict, Iterator, Optional, Protocol, Tuple


class KeyValue(Protocol):
    """Minimal byte-oriented KV interface."""

    def get(self, key: bytes) -> Optional[bytes]:
        """Return value for key, or None if missing."""
        ...

    def put(self, key: bytes, value: bytes) -> None:
        """Insert or replace key with value."""
        ...

    def delete(self, key: bytes) -> None:
        """Remove key if present (no-op if absent)."""
        ...

    def has(self, key: bytes) -> bool:
        """Return True if key exists."""
        ...

    def iter_prefix(self, prefix: bytes) -> Iterator[Tuple[bytes, bytes]]:
        """Yield (key, value) pairs whose keys start with prefix, sorted by key."""
        ...


class InMemoryKV:
    """A tiny in-memory KV with prefix iteration for tests/dev."""

    __slots__ = ("_m",)

    def __init__(self) -> None:
        self._m: Dict[bytes, bytes] = {}

    def get(self, key: bytes) -> Optional[bytes]:
        return self._m.get(key)

    def put(self, key: bytes, value: bytes) -> None:
        self._m[bytes(key)] = bytes(value)

    def delete(self, key: bytes) -> None:
        self._m.pop(key, None)

    def has(self, key: bytes) -> bool:
        return key in self._m

    def iter_prefix(self, prefix: bytes) -> Iterator[Tuple[bytes, bytes]]:
        for k in sorted(k for k in self._m if k.startswith(prefix)):
            yield k, self._m[k]

    def __len__(self) -> int:
        return len(self._m)


__all__ = [
    "KeyValue",
    "InMemoryKV",
]
