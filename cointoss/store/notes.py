"""
Private note ledger.

Holds bet notes and reveal notes in an append-only arena and tracks their
consumption through the nullifier set. Records are never physically removed;
a note is "spent" once its consumption nullifier is recorded.

Key layout
----------
  BETS_PREFIX    | u64(round_id) | u256(randomness) -> cbor(BetRecord)
  REVEALS_PREFIX | u64(round_id) | u256(randomness) -> cbor(RevealRecord)

Nullifiers
----------
  bet           inserted with the bet note; (round_id, randomness) is unique
  bet.spend     inserted when the bet note is converted into a reveal note
  reveal.spend  inserted when the reveal note is paid out by a claim

Lookups require the owner to match, so only the holder of a note can find it.
"""

from __future__ import annotations

import logging
from typing import List, Optional

from ..constants import BETS_PREFIX, KIND_BET, KIND_BET_SPEND, KIND_REVEAL_SPEND, REVEALS_PREFIX
from ..errors import BetNoteNotFound, DuplicateRandomness, RevealNoteNotFound
from ..types.core import BetRecord, RevealRecord, require_address, require_randomness
from ..utils.hash import nullifier
from . import KeyValue
from .codec import dumps, loads, u64, u256
from .nullifiers import NullifierSet

log = logging.getLogger(__name__)


def _note_key(prefix: bytes, round_id: int, randomness: int) -> bytes:
    return prefix + u64(int(round_id)) + u256(int(randomness))


class NoteLedger:
    """Bet/reveal record arena plus consumption bookkeeping."""

    __slots__ = ("kv", "nullifiers")

    def __init__(self, kv: KeyValue, nullifiers: NullifierSet):
        self.kv = kv
        self.nullifiers = nullifiers

    # ------------------------------------------------------------------ #
    # Bets
    # ------------------------------------------------------------------ #

    def has_bet(self, round_id: int, randomness: int) -> bool:
        """True if (round_id, randomness) has already been used for a bet."""
        return self.nullifiers.seen(nullifier(KIND_BET, round_id, randomness))

    def put_bet(self, record: BetRecord) -> bytes:
        """Store a new bet note and record its uniqueness nullifier; returns the nullifier."""
        tag = nullifier(KIND_BET, record.round_id, record.randomness)
        if self.nullifiers.seen(tag):
            raise DuplicateRandomness(round_id=record.round_id)
        self.nullifiers.insert(tag)
        self.kv.put(_note_key(BETS_PREFIX, record.round_id, record.randomness), dumps(record.to_dict()))
        log.debug("notes: bet note stored round=%d", record.round_id)
        return tag

    def get_bet(self, round_id: int, randomness: int) -> Optional[BetRecord]:
        raw = self.kv.get(_note_key(BETS_PREFIX, round_id, randomness))
        return BetRecord.from_dict(loads(raw)) if raw is not None else None

    def is_bet_consumed(self, round_id: int, randomness: int) -> bool:
        return self.nullifiers.seen(nullifier(KIND_BET_SPEND, round_id, randomness))

    def find_unconsumed_bet(self, owner: bytes, round_id: int, randomness: int) -> Optional[BetRecord]:
        owner = require_address("owner", owner)
        randomness = require_randomness(randomness)
        rec = self.get_bet(round_id, randomness)
        if rec is None or rec.owner != owner:
            return None
        if self.is_bet_consumed(round_id, randomness):
            return None
        return rec

    def consume_bet(self, record: BetRecord) -> bytes:
        """Mark a bet note spent. Raises BetNoteNotFound if it was already consumed."""
        tag = nullifier(KIND_BET_SPEND, record.round_id, record.randomness)
        try:
            self.nullifiers.insert(tag)
        except KeyError:
            raise BetNoteNotFound(round_id=record.round_id) from None
        log.debug("notes: bet note consumed round=%d", record.round_id)
        return tag

    def bets_for_round(self, round_id: int) -> List[BetRecord]:
        prefix = BETS_PREFIX + u64(int(round_id))
        return [BetRecord.from_dict(loads(v)) for _, v in self.kv.iter_prefix(prefix)]

    # ------------------------------------------------------------------ #
    # Reveals
    # ------------------------------------------------------------------ #

    def put_reveal(self, record: RevealRecord) -> None:
        key = _note_key(REVEALS_PREFIX, record.round_id, record.randomness)
        if self.kv.get(key) is not None:
            # The bet.spend nullifier makes this unreachable through the game.
            raise DuplicateRandomness(round_id=record.round_id)
        self.kv.put(key, dumps(record.to_dict()))
        log.debug("notes: reveal note stored round=%d", record.round_id)

    def get_reveal(self, round_id: int, randomness: int) -> Optional[RevealRecord]:
        raw = self.kv.get(_note_key(REVEALS_PREFIX, round_id, randomness))
        return RevealRecord.from_dict(loads(raw)) if raw is not None else None

    def is_reveal_consumed(self, round_id: int, randomness: int) -> bool:
        return self.nullifiers.seen(nullifier(KIND_REVEAL_SPEND, round_id, randomness))

    def find_unconsumed_reveal(self, owner: bytes, round_id: int, randomness: int) -> Optional[RevealRecord]:
        owner = require_address("owner", owner)
        randomness = require_randomness(randomness)
        rec = self.get_reveal(round_id, randomness)
        if rec is None or rec.owner != owner:
            return None
        if self.is_reveal_consumed(round_id, randomness):
            return None
        return rec

    def consume_reveal(self, record: RevealRecord) -> bytes:
        tag = nullifier(KIND_REVEAL_SPEND, record.round_id, record.randomness)
        try:
            self.nullifiers.insert(tag)
        except KeyError:
            raise RevealNoteNotFound(round_id=record.round_id) from None
        log.debug("notes: reveal note consumed round=%d", record.round_id)
        return tag

    def reveals_for_round(self, round_id: int) -> List[RevealRecord]:
        prefix = REVEALS_PREFIX + u64(int(round_id))
        return [RevealRecord.from_dict(loads(v)) for _, v in self.kv.iter_prefix(prefix)]


__all__ = ["NoteLedger"]
