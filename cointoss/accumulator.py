"""
Per-round randomness accumulator.

Stores the opaque ciphertext that commits to a round's randomness. The round
opener seeds it (typically an encryption of zero); the roller replaces it with
the homomorphic aggregate of every bettor's contribution, exactly once.

No curve arithmetic happens here: ciphertexts are compared and stored, never
opened. Aggregation is a client/resolver concern (see `cointoss.elgamal`).
"""

from __future__ import annotations

from typing import Optional

from .constants import CIPHERTEXT_PREFIX
from .errors import AccumulatorFinalized, RoundNotFound
from .store import KeyValue
from .store.codec import u64
from .types.core import Ciphertext

_SEED = b"s"
_FINAL = b"f"


class RandomnessAccumulator:
    __slots__ = ("kv",)

    def __init__(self, kv: KeyValue):
        self.kv = kv

    @staticmethod
    def _k(tag: bytes, round_id: int) -> bytes:
        return CIPHERTEXT_PREFIX + tag + u64(int(round_id))

    def seed(self, round_id: int, ct: Ciphertext) -> None:
        if not isinstance(ct, Ciphertext):
            raise TypeError("seed ciphertext must be a Ciphertext")
        if self.kv.get(self._k(_SEED, round_id)) is not None:
            raise ValueError(f"round {round_id} already seeded")
        self.kv.put(self._k(_SEED, round_id), ct.to_bytes())

    def finalize(self, round_id: int, ct: Ciphertext) -> None:
        """Fix the round's final ciphertext. A second call raises AccumulatorFinalized."""
        if not isinstance(ct, Ciphertext):
            raise TypeError("final ciphertext must be a Ciphertext")
        if self.kv.get(self._k(_SEED, round_id)) is None:
            raise RoundNotFound(round_id=round_id)
        if self.is_finalized(round_id):
            raise AccumulatorFinalized(round_id=round_id)
        self.kv.put(self._k(_FINAL, round_id), ct.to_bytes())

    def is_finalized(self, round_id: int) -> bool:
        return self.kv.get(self._k(_FINAL, round_id)) is not None

    def get(self, round_id: int) -> Optional[Ciphertext]:
        """Final ciphertext once rolled, otherwise the seed (None for unknown rounds)."""
        raw = self.kv.get(self._k(_FINAL, round_id))
        if raw is None:
            raw = self.kv.get(self._k(_SEED, round_id))
        return Ciphertext.from_bytes(raw) if raw is not None else None


__all__ = ["RandomnessAccumulator"]
