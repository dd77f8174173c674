"""
Local resolver (devnet / tests).

Plays the off-protocol resolver and oracle roles in one process:

- hands out the round seed (encryption of zero) and bettor contributions
  (encryptions of random bits) under its public key;
- reads pending questions from an `OracleQueue`, decrypts the final
  ciphertext, counts the winning bet notes it received through its inbox, and
  answers the game as the configured oracle identity.

The private key is revealed in every answer, so a real deployment would rotate
it per round.
"""

from __future__ import annotations

import logging
import secrets
from typing import TYPE_CHECKING, List, Optional

from . import elgamal
from .delivery import NoteInbox
from .oracle import OracleQueue, OracleRequest
from .types.core import Address, Ciphertext, Point, ResultTriplet, require_address
from .types.state import Round

if TYPE_CHECKING:  # pragma: no cover
    from .game import CoinToss

log = logging.getLogger(__name__)


class LocalResolver:
    def __init__(
        self,
        private_key: int,
        *,
        identity: Address,
        oracle: Address,
        inbox: NoteInbox,
        queue: OracleQueue,
        max_message: int = elgamal.DEFAULT_MAX_MESSAGE,
    ) -> None:
        self._sk = int(private_key)
        self.public_key: Point = elgamal.derive_public_key(self._sk)
        self.identity = require_address("identity", identity)
        self.oracle = require_address("oracle", oracle)
        self.inbox = inbox
        self.queue = queue
        self.max_message = max_message

    # ---- client-side helpers ------------------------------------------------

    def seed(self) -> Ciphertext:
        return elgamal.encrypt_zero(self.public_key)

    def contribution(self, bit: Optional[int] = None) -> Ciphertext:
        """Encrypted coin contribution (random bit unless given)."""
        b = secrets.randbelow(2) if bit is None else int(bit) & 1
        return elgamal.encrypt(b, self.public_key)

    def aggregate(self, seed: Ciphertext, contributions: List[Ciphertext]) -> Ciphertext:
        return elgamal.aggregate(contributions, start=seed)

    # ---- answering ----------------------------------------------------------

    def decide(self, request: OracleRequest) -> ResultTriplet:
        result = elgamal.coin_side(request.ciphertext, self._sk, self.max_message)
        bets = self.inbox.bets_for(self.identity, request.round_id)
        winners = sum(1 for b in bets if b.side == result)
        return ResultTriplet(result=result, winner_count=winners, private_key=self._sk)

    def answer(self, game: "CoinToss", *, timestamp: Optional[int] = None) -> Round:
        """Answer the oldest pending question; it stays queued if the game rejects the answer."""
        request = self.queue.peek()
        if request is None:
            raise LookupError("no pending oracle questions")
        triplet = self.decide(request)
        rnd = game.oracle_callback(self.oracle, triplet, request.callback, timestamp=timestamp)
        self.queue.pop()
        log.info("resolver: answered round=%d result=%s winners=%d", request.round_id, triplet.result, triplet.winner_count)
        return rnd


__all__ = ["LocalResolver"]
