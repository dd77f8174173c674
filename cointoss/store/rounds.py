"""
Round records and the game store bundle.

`RoundStore` persists whole `Round` snapshots (canonical CBOR) plus the
current-round pointer. `GameStore` wires one journal over a base KV and hangs
every bucket off it, so `GameStore.atomic()` covers rounds, notes,
nullifiers and ciphertexts in a single transaction.

Key layout
----------
  ROUNDS_PREFIX | u64(round_id)   -> cbor(Round.to_dict())
  META_PREFIX   | b"current"      -> u64(round_id)
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Iterator, Optional

from ..accumulator import RandomnessAccumulator
from ..constants import META_PREFIX, NO_ROUND, ROUNDS_PREFIX
from ..types.state import Round
from . import InMemoryKV, KeyValue
from .codec import dumps, loads, u64
from .journal import Journal
from .notes import NoteLedger
from .nullifiers import NullifierSet

log = logging.getLogger(__name__)

_CURRENT_KEY = META_PREFIX + b"current"


class RoundStore:
    __slots__ = ("kv",)

    def __init__(self, kv: KeyValue):
        self.kv = kv

    def get(self, round_id: int) -> Optional[Round]:
        raw = self.kv.get(ROUNDS_PREFIX + u64(int(round_id)))
        return Round.from_dict(loads(raw)) if raw is not None else None

    def put(self, rnd: Round) -> None:
        self.kv.put(ROUNDS_PREFIX + u64(int(rnd.id)), dumps(rnd.to_dict()))

    def current_id(self) -> int:
        raw = self.kv.get(_CURRENT_KEY)
        return int.from_bytes(raw, "big") if raw is not None else NO_ROUND

    def set_current(self, round_id: int) -> None:
        self.kv.put(_CURRENT_KEY, u64(int(round_id)))

    def current(self) -> Optional[Round]:
        rid = self.current_id()
        return self.get(rid) if rid != NO_ROUND else None


class GameStore:
    """
    Journaled storage for one game instance.

    Every bucket writes through the same `Journal`, so

        with store.atomic():
            ...

    either lands all writes in the base KV or none of them.
    """

    def __init__(self, kv: Optional[KeyValue] = None):
        self.base: KeyValue = kv if kv is not None else InMemoryKV()
        self.journal = Journal(self.base)
        self.nullifiers = NullifierSet(self.journal)
        self.notes = NoteLedger(self.journal, self.nullifiers)
        self.rounds = RoundStore(self.journal)
        self.accumulator = RandomnessAccumulator(self.journal)

    @contextmanager
    def atomic(self) -> Iterator["GameStore"]:
        """Run a block as one transaction; any exception reverts every staged write."""
        try:
            with self.journal.checkpoint():
                yield self
        except Exception:
            log.debug("store: transaction reverted depth=%d", self.journal.depth())
            raise


__all__ = ["RoundStore", "GameStore"]
