"""
cointoss.store.journal — journaling writes, checkpoints, revert/commit.

A deterministic write journal layered over a byte KV. It supports nested
checkpoints via a stack of overlays. Writes go to the top overlay; reads
consult overlays from top → base. `commit()` merges the top overlay into the
next layer (or the base KV if it is the last layer). `revert()` discards the
top overlay.

The journal itself satisfies the `KeyValue` protocol, so every bucket in the
store writes through it and a failed operation can be rolled back as a whole.

Intended usage
--------------
    j = Journal(InMemoryKV())
    j.begin()
    j.put(b"k", b"v")
    j.revert()          # b"k" was never written
"""

from __future__ import annotations

from contextlib import contextmanager
from typing import Dict, Iterator, List, Optional, Tuple

from . import KeyValue

# None marks a staged deletion.
_Overlay = Dict[bytes, Optional[bytes]]


class Journal:
    """
    Copy-on-write journal with nested checkpoints over a base `KeyValue`.

    The root (depth 1) layer is applied to the base on `commit()` when no
    checkpoint is open, so writes outside `begin()` behave like direct writes
    once committed.
    """

    def __init__(self, base: KeyValue) -> None:
        self._base = base
        self._layers: List[_Overlay] = [{}]

    # ------------------------------------------------------------------ #
    # Checkpointing
    # ------------------------------------------------------------------ #

    def depth(self) -> int:
        """Number of overlays (>= 1)."""
        return len(self._layers)

    def begin(self) -> int:
        """Start a new checkpoint. Returns the new depth marker."""
        self._layers.append({})
        return len(self._layers)

    def commit(self) -> None:
        """Merge the top overlay into its parent, or into the base at depth 1."""
        top = self._layers.pop()
        if self._layers:
            self._layers[-1].update(top)
            if len(self._layers) == 1:
                self._apply_to_base(self._layers[0])
                self._layers[0] = {}
            return
        self._apply_to_base(top)
        self._layers.append({})

    def revert(self) -> None:
        """Discard the top overlay (or clear it if it's the root)."""
        if len(self._layers) > 1:
            self._layers.pop()
        else:
            self._layers[0] = {}

    def revert_to(self, marker: int) -> None:
        if marker < 1:
            raise ValueError("marker must be >= 1")
        while len(self._layers) > marker:
            self.revert()

    @contextmanager
    def checkpoint(self) -> Iterator["Journal"]:
        """Run a block inside a checkpoint: commit on success, revert on any error."""
        marker = self.begin()
        try:
            yield self
        except BaseException:
            self.revert_to(marker - 1)
            raise
        else:
            self.commit()

    def _apply_to_base(self, layer: _Overlay) -> None:
        for k, v in layer.items():
            if v is None:
                self._base.delete(k)
            else:
                self._base.put(k, v)

    # ------------------------------------------------------------------ #
    # KeyValue surface
    # ------------------------------------------------------------------ #

    def get(self, key: bytes) -> Optional[bytes]:
        for layer in reversed(self._layers):
            if key in layer:
                return layer[key]
        return self._base.get(key)

    def put(self, key: bytes, value: bytes) -> None:
        if not isinstance(value, (bytes, bytearray)):
            raise TypeError("value must be bytes")
        self._layers[-1][bytes(key)] = bytes(value)

    def delete(self, key: bytes) -> None:
        self._layers[-1][bytes(key)] = None

    def has(self, key: bytes) -> bool:
        return self.get(key) is not None

    def iter_prefix(self, prefix: bytes) -> Iterator[Tuple[bytes, bytes]]:
        merged: Dict[bytes, Optional[bytes]] = dict(self._base.iter_prefix(prefix))
        for layer in self._layers:
            for k, v in layer.items():
                if k.startswith(prefix):
                    merged[k] = v
        for k in sorted(merged):
            v = merged[k]
            if v is not None:
                yield k, v


__all__ = ["Journal"]
