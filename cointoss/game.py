# Copyright (c) Animica.
# SPDX-License-Identifier: MIT
"""
cointoss.game
=============

Round state machine for the private coin toss.

Lifecycle of a round (stored phases in bold)::

    **BET** ──(deadline)──> ROLL_READY ──roll──> **AWAITING_ORACLE**
        ──oracle_callback──> **CLAIM**                         (default)
        ──oracle_callback──> **REVEAL** ──end_reveal_phase──> **CLAIM**
                                                     (config.reveal_phase)

- Bettors stake a fixed amount on a hidden side and receive a private bet note.
- After the bet window closes anyone may roll: the roller pays the oracle fee,
  fixes the aggregated randomness ciphertext and asks the resolver to open it.
- The oracle answers with (result, winner_count, revealed key); the key is
  authenticated against the registered resolver public key.
- Winners turn their bet note into a reveal note and claim
  `floor(bettors * stake / winners)` into their private balance.

Every public operation runs as one journaled transaction: checks first, then
the token transfer, then writes that cannot fail. A rejected operation leaves
rounds, notes, nullifiers and ciphertexts untouched. Oracle submission, note
delivery and metrics happen only after commit.
"""

from __future__ import annotations

import logging
from typing import Optional

from .config import CoinTossConfig
from .constants import NO_ROUND
from .delivery import NoteDelivery
from .errors import (
    BetNoteNotFound,
    BetPhaseEnded,
    BetPhaseNotFinished,
    CallbackMismatch,
    CoinTossError,
    DuplicateRandomness,
    LosingBet,
    NotOracle,
    PhaseMismatch,
    RevealNoteNotFound,
    RevealPhaseEnded,
    RevealPhaseNotFinished,
    RoundMismatch,
    RoundNotFinished,
    RoundNotFound,
)
from .metrics import METRICS, Metrics, outcome_for
from .oracle import Authenticator, OracleBridge, OracleRequest, OracleTransport
from .payout import PayoutCalculator
from .store.rounds import GameStore
from .token import TokenService
from .types.core import (
    Address,
    BetRecord,
    CallbackDescriptor,
    Ciphertext,
    ResultTriplet,
    RevealRecord,
    RoundId,
    address_hex,
    require_address,
    require_randomness,
)
from .types.state import Phase, Round
from .utils.time import Clock, resolve_now, validate_timestamp

log = logging.getLogger(__name__)


class CoinToss:
    """
    One game instance.

    Args:
        config:        immutable game parameters
        address:       this game's 32-byte identity (token account, callback target)
        store:         journaled storage (fresh in-memory store if None)
        token:         token ledger collaborator
        oracle:        transport the roll hands questions to
        clock:         trusted time source
        delivery:      private note delivery (optional)
        authenticator: oracle key check (BN254 `sk·G == PK` if None)
        metrics:       Prometheus instruments (module singleton if None)
    """

    def __init__(
        self,
        config: CoinTossConfig,
        address: Address,
        store: Optional[GameStore],
        token: TokenService,
        oracle: OracleTransport,
        clock: Clock,
        delivery: Optional[NoteDelivery] = None,
        authenticator: Optional[Authenticator] = None,
        metrics: Optional[Metrics] = None,
    ) -> None:
        config.validate()
        self._config = config
        self.address = require_address("address", address)
        self.store = store if store is not None else GameStore()
        self.token = token
        self.bridge = OracleBridge(oracle, authenticator)
        self.clock = clock
        self.delivery = delivery
        self.payout = PayoutCalculator(config.bet_amount)
        self.metrics = metrics if metrics is not None else METRICS

    # ------------------------------------------------------------------ #
    # Views
    # ------------------------------------------------------------------ #

    @property
    def config(self) -> CoinTossConfig:
        return self._config

    def current_round_id(self) -> int:
        """Id of the current round (0 before the first round starts)."""
        return self.store.rounds.current_id()

    def get_round(self, round_id: int) -> Round:
        rnd = self.store.rounds.get(round_id)
        if rnd is None:
            raise RoundNotFound(round_id=round_id)
        return rnd

    def effective_phase(self, round_id: int) -> Phase:
        return self.get_round(round_id).effective_phase(self.clock.now())

    def randomness_ciphertext(self, round_id: int) -> Ciphertext:
        """Seed ciphertext before the roll, the final aggregate after it."""
        ct = self.store.accumulator.get(round_id)
        if ct is None:
            raise RoundNotFound(round_id=round_id)
        return ct

    def pool_balance(self) -> int:
        return self.token.balance_of_public(self.address)

    # ------------------------------------------------------------------ #
    # Helpers
    # ------------------------------------------------------------------ #

    def _now(self, timestamp: Optional[int]) -> int:
        """Caller time for checks that only close the caller's own window (bet, reveal)."""
        return resolve_now(self.clock, timestamp, self._config.timestamp_jitter)

    def _trusted_now(self, timestamp: Optional[int]) -> int:
        """
        Trusted clock for checks and deadlines shared by every participant.

        A caller timestamp is still validated but never replaces the clock, so
        nobody can close a phase or stretch a deadline by up to `timestamp_jitter`.
        """
        if timestamp is not None:
            validate_timestamp(int(timestamp), self.clock.now(), self._config.timestamp_jitter)
        return self.clock.now()

    def _current_round(self, round_id: int) -> Round:
        current = self.store.rounds.current_id()
        if current == NO_ROUND or int(round_id) != current:
            raise RoundMismatch(round_id=round_id, current_round_id=current)
        return self.get_round(current)

    def _deliver(self, recipient: Address, record: object) -> None:
        if self.delivery is not None:
            self.delivery.deliver(recipient, record)  # type: ignore[arg-type]

    def _enter_claim(self, rnd: Round, now: int, **changes: object) -> Round:
        amount = self.payout.claim_amount(rnd.bettor_count, int(changes["winner_count"]), round_id=rnd.id)
        return rnd.evolve(phase=Phase.CLAIM, phase_deadline=now + self._config.phase_length, claim_amount=amount, **changes)

    # ------------------------------------------------------------------ #
    # Round lifecycle
    # ------------------------------------------------------------------ #

    def start_next_round(self, seed_ciphertext: Ciphertext, *, timestamp: Optional[int] = None) -> int:
        """Open round `current + 1`, seeding its randomness accumulator."""
        if not isinstance(seed_ciphertext, Ciphertext):
            raise TypeError("seed_ciphertext must be a Ciphertext")
        now = self._trusted_now(timestamp)
        with self.store.atomic() as st:
            cur = st.rounds.current()
            if cur is not None and cur.phase != Phase.CLAIM:
                raise RoundNotFinished(round_id=cur.id, phase=cur.effective_phase(now).name)
            rid = RoundId((cur.id if cur is not None else NO_ROUND) + 1)
            rnd = Round(id=rid, phase=Phase.BET, phase_deadline=now + self._config.phase_length)
            st.rounds.put(rnd)
            st.rounds.set_current(rid)
            st.accumulator.seed(rid, seed_ciphertext)
        self.metrics.record_round_started()
        log.info("cointoss: round started round=%d deadline=%d", rid, rnd.phase_deadline)
        return int(rid)

    def bet(
        self,
        caller: Address,
        side: bool,
        round_id: int,
        randomness: int,
        escrow_nonce: int,
        *,
        timestamp: Optional[int] = None,
    ) -> BetRecord:
        """
        Stake `bet_amount` on `side` in the current round.

        The stake is unshielded from the caller's private balance to the game
        using the caller's authorization witness for `escrow_nonce`. The bet
        note goes to the caller and to the resolver.
        """
        try:
            record = self._bet(caller, side, round_id, randomness, escrow_nonce, timestamp)
        except CoinTossError as e:
            self.metrics.record_bet(outcome_for(e))
            raise
        self.metrics.record_bet("accepted")
        self._deliver(record.owner, record)
        self._deliver(self._config.resolver, record)
        log.debug("cointoss: bet accepted round=%d", record.round_id)
        return record

    def _bet(
        self,
        caller: Address,
        side: bool,
        round_id: int,
        randomness: int,
        escrow_nonce: int,
        timestamp: Optional[int],
    ) -> BetRecord:
        caller = require_address("caller", caller)
        randomness = require_randomness(randomness)
        if not isinstance(side, bool):
            raise TypeError("side must be bool")
        now = self._now(timestamp)
        with self.store.atomic() as st:
            rnd = self._current_round(round_id)
            if rnd.phase != Phase.BET or now >= rnd.phase_deadline:
                raise BetPhaseEnded(round_id=rnd.id, now=now, deadline=rnd.phase_deadline)
            record = BetRecord(owner=caller, round_id=rnd.id, side=side, randomness=randomness)
            if st.notes.has_bet(rnd.id, randomness):
                raise DuplicateRandomness(round_id=rnd.id)
            self.token.unshield(caller, self.address, self._config.bet_amount, escrow_nonce, caller=self.address)
            st.notes.put_bet(record)
            st.rounds.put(rnd.evolve(bettor_count=rnd.bettor_count + 1))
        return record

    def roll(
        self,
        caller: Address,
        round_id: int,
        escrow_nonce: int,
        final_ciphertext: Ciphertext,
        *,
        timestamp: Optional[int] = None,
    ) -> OracleRequest:
        """
        Close betting and ask the oracle to resolve the round.

        The caller pays `oracle_fee` (authorized through `escrow_nonce`) and
        supplies the aggregate of the bettors' encrypted contributions.
        """
        caller = require_address("caller", caller)
        if not isinstance(final_ciphertext, Ciphertext):
            raise TypeError("final_ciphertext must be a Ciphertext")
        now = self._trusted_now(timestamp)
        with self.store.atomic() as st:
            rnd = self._current_round(round_id)
            if rnd.phase != Phase.BET:
                raise PhaseMismatch(round_id=rnd.id, phase=rnd.phase.name, expected=Phase.BET.name)
            if now < rnd.phase_deadline:
                raise BetPhaseNotFinished(round_id=rnd.id, now=now, deadline=rnd.phase_deadline)
            if st.accumulator.is_finalized(rnd.id):
                raise PhaseMismatch(round_id=rnd.id, phase=rnd.phase.name, expected=Phase.BET.name)
            callback = CallbackDescriptor(target=self.address, round_id=rnd.id)
            self.token.escrow(caller, self._config.oracle, self._config.oracle_fee, escrow_nonce, caller=self.address)
            st.accumulator.finalize(rnd.id, final_ciphertext)
            rolled = rnd.evolve(
                phase=Phase.AWAITING_ORACLE,
                phase_deadline=now + self._config.phase_length,
                callback=callback,
            )
            st.rounds.put(rolled)
        request = self.bridge.submit(
            round_id=rnd.id,
            ciphertext=final_ciphertext,
            callback=callback,
            requester=self.address,
            fee=self._config.oracle_fee,
        )
        log.info("cointoss: round rolled round=%d bettors=%d", rnd.id, rnd.bettor_count)
        return request

    def oracle_callback(
        self,
        caller: Address,
        triplet: ResultTriplet,
        callback_echo: CallbackDescriptor,
        *,
        timestamp: Optional[int] = None,
    ) -> Round:
        """Accept the resolver's answer for the round awaiting the oracle."""
        try:
            rnd = self._oracle_callback(caller, triplet, callback_echo, timestamp)
        except CoinTossError as e:
            self.metrics.record_oracle_callback(outcome_for(e))
            raise
        self.metrics.record_oracle_callback("accepted")
        if rnd.phase == Phase.CLAIM:
            self.metrics.observe_claim_amount(rnd.claim_amount)
        log.info(
            "cointoss: round resolved round=%d result=%s winners=%d phase=%s",
            rnd.id,
            rnd.result,
            rnd.winner_count,
            rnd.phase.name,
        )
        return rnd

    def _oracle_callback(
        self,
        caller: Address,
        triplet: ResultTriplet,
        callback_echo: CallbackDescriptor,
        timestamp: Optional[int],
    ) -> Round:
        caller = require_address("caller", caller)
        if caller != self._config.oracle:
            raise NotOracle(caller=address_hex(caller))
        now = self._trusted_now(timestamp)
        with self.store.atomic() as st:
            current = st.rounds.current_id()
            if callback_echo.target != self.address or int(callback_echo.round_id) != current or current == NO_ROUND:
                raise CallbackMismatch(
                    details={"round_id": int(callback_echo.round_id), "current_round_id": current}
                )
            rnd = self.get_round(current)
            if rnd.phase != Phase.AWAITING_ORACLE:
                raise PhaseMismatch(round_id=rnd.id, phase=rnd.phase.name, expected=Phase.AWAITING_ORACLE.name)
            if rnd.callback != callback_echo:
                raise CallbackMismatch(details={"round_id": int(rnd.id)})
            result, winners = self.bridge.resolve(triplet, self._config.resolver_public_key)
            if self._config.reveal_phase:
                resolved = rnd.evolve(
                    phase=Phase.REVEAL,
                    phase_deadline=now + self._config.phase_length,
                    result=result,
                    winner_count=winners,
                )
            else:
                # NoWinners aborts here and the round stays in AWAITING_ORACLE; with no
                # refund path start_next_round then raises RoundNotFinished for good.
                resolved = self._enter_claim(rnd, now, result=result, winner_count=winners)
            st.rounds.put(resolved)
        return resolved

    def reveal(
        self,
        caller: Address,
        round_id: int,
        randomness: int,
        *,
        timestamp: Optional[int] = None,
    ) -> RevealRecord:
        """
        Turn a winning bet note into a reveal note.

        Allowed while the round is in its reveal window: CLAIM in the default
        topology, REVEAL when `config.reveal_phase` is set, and before that
        phase's deadline.
        """
        try:
            record = self._reveal(caller, round_id, randomness, timestamp)
        except CoinTossError as e:
            self.metrics.record_reveal(outcome_for(e))
            raise
        self.metrics.record_reveal("accepted")
        self._deliver(record.owner, record)
        log.debug("cointoss: reveal accepted round=%d", record.round_id)
        return record

    def _reveal(self, caller: Address, round_id: int, randomness: int, timestamp: Optional[int]) -> RevealRecord:
        caller = require_address("caller", caller)
        randomness = require_randomness(randomness)
        now = self._now(timestamp)
        expected = Phase.REVEAL if self._config.reveal_phase else Phase.CLAIM
        with self.store.atomic() as st:
            rnd = self.get_round(round_id)
            if rnd.phase != expected or not rnd.is_resolved:
                raise PhaseMismatch(round_id=rnd.id, phase=rnd.effective_phase(now).name, expected=expected.name)
            if now >= rnd.phase_deadline:
                raise RevealPhaseEnded(round_id=rnd.id, now=now, deadline=rnd.phase_deadline)
            bet = st.notes.find_unconsumed_bet(caller, rnd.id, randomness)
            if bet is None:
                raise BetNoteNotFound(round_id=rnd.id)
            if bet.side != rnd.result:
                raise LosingBet(round_id=rnd.id)
            st.notes.consume_bet(bet)
            record = RevealRecord(owner=caller, round_id=rnd.id, randomness=randomness)
            st.notes.put_reveal(record)
            st.rounds.put(rnd.evolve(reveal_count=rnd.reveal_count + 1))
        return record

    def end_reveal_phase(self, *, timestamp: Optional[int] = None) -> Round:
        """Close the explicit reveal window; winners are the revealed bets."""
        now = self._trusted_now(timestamp)
        with self.store.atomic() as st:
            rnd = st.rounds.current()
            if rnd is None:
                raise RoundNotFound(round_id=NO_ROUND)
            if rnd.phase != Phase.REVEAL:
                raise PhaseMismatch(round_id=rnd.id, phase=rnd.effective_phase(now).name, expected=Phase.REVEAL.name)
            if now < rnd.phase_deadline:
                raise RevealPhaseNotFinished(round_id=rnd.id, now=now, deadline=rnd.phase_deadline)
            # Zero reveals raise NoWinners and leave the round stuck in REVEAL.
            closed = self._enter_claim(rnd, now, winner_count=rnd.reveal_count)
            st.rounds.put(closed)
        self.metrics.observe_claim_amount(closed.claim_amount)
        log.info("cointoss: reveal phase closed round=%d winners=%d", closed.id, closed.winner_count)
        return closed

    def claim(self, caller: Address, round_id: int, amount: int, randomness: int) -> int:
        """Pay `amount` (must equal the round's claim amount) for one reveal note."""
        try:
            paid = self._claim(caller, round_id, amount, randomness)
        except CoinTossError as e:
            self.metrics.record_claim(outcome_for(e))
            raise
        self.metrics.record_claim("accepted")
        log.debug("cointoss: claim paid round=%d amount=%d", round_id, paid)
        return paid

    def _claim(self, caller: Address, round_id: int, amount: int, randomness: int) -> int:
        caller = require_address("caller", caller)
        randomness = require_randomness(randomness)
        with self.store.atomic() as st:
            rnd = self.get_round(round_id)
            if rnd.phase != Phase.CLAIM:
                raise PhaseMismatch(round_id=rnd.id, phase=rnd.effective_phase(self.clock.now()).name, expected=Phase.CLAIM.name)
            rev = st.notes.find_unconsumed_reveal(caller, rnd.id, randomness)
            if rev is None:
                raise RevealNoteNotFound(round_id=rnd.id)
            self.payout.validate_claim(rnd.id, amount, rnd.claim_amount)
            self.token.shield(self.address, caller, amount, caller=self.address)
            st.notes.consume_reveal(rev)
            st.rounds.put(rnd.evolve(claim_count=rnd.claim_count + 1))
        return amount


__all__ = ["CoinToss"]
