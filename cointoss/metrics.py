"""
Prometheus metrics for the coin-toss game.

Counters and histograms for the round pipeline:
  • bets_total              — bet attempts per outcome
  • reveals_total           — reveal attempts per outcome
  • claims_total            — claim attempts per outcome
  • oracle_callbacks_total  — oracle answers per outcome
  • rounds_started_total    — rounds opened
  • claim_amount            — per-winner payout distribution (base units)

Label cardinality is kept low: only an `outcome` label with a small, finite
vocabulary. No per-round or per-address labels.

Usage
-----
    from cointoss.metrics import METRICS

    METRICS.record_bet("accepted")
    METRICS.observe_claim_amount(2005)

Tests and embedders that need isolation construct their own `Metrics` with a
fresh `CollectorRegistry`.
"""

from __future__ import annotations

from typing import Iterable

from prometheus_client import REGISTRY, Counter, Histogram

from .errors import (
    BadOracleProof,
    BetNoteNotFound,
    DuplicateRandomness,
    LivenessError,
    LosingBet,
    NoWinners,
    NotOracle,
    PayoutError,
    PhaseMismatch,
    RevealNoteNotFound,
    RoundMismatch,
    TokenError,
)

# --------- Vocabularies (kept small for bounded cardinality) ---------

_BET_OUTCOMES = (
    "accepted",
    "wrong_round",   # round id is not the current round
    "too_late",      # bet window closed / wrong phase
    "duplicate",     # (round, randomness) already used
    "token",         # escrow collaborator rejected the transfer
    "invalid",
)

_REVEAL_OUTCOMES = (
    "accepted",
    "wrong_phase",   # round not resolved yet
    "too_late",
    "not_found",     # no unconsumed bet note for the caller
    "losing",        # bet side differs from the result
    "invalid",
)

_CLAIM_OUTCOMES = (
    "accepted",
    "wrong_phase",
    "not_found",
    "bad_amount",
    "token",
    "invalid",
)

_ORACLE_OUTCOMES = (
    "accepted",
    "not_oracle",
    "bad_proof",
    "no_winners",
    "invalid",
)

# Claim payout buckets (base units); the default stake is 1337.
_CLAIM_AMOUNT_BUCKETS = (
    100.0, 500.0, 1_000.0, 1_337.0, 2_000.0, 2_674.0,
    5_000.0, 10_000.0, 50_000.0, 100_000.0, 1_000_000.0,
)


class Metrics:
    """
    Container for all coin-toss Prometheus instruments.

    Args:
        namespace: Prometheus metric namespace (prefix).
        subsystem: Prometheus metric subsystem.
        registry:  Prometheus registry to register the metrics with.
    """

    def __init__(
        self,
        *,
        namespace: str = "animica",
        subsystem: str = "cointoss",
        registry=REGISTRY,
        claim_buckets: Iterable[float] = _CLAIM_AMOUNT_BUCKETS,
    ) -> None:
        def _counter(name: str, doc: str) -> Counter:
            return Counter(name, doc, labelnames=("outcome",), namespace=namespace, subsystem=subsystem, registry=registry)

        self.bets_total = _counter("bets_total", "Bet attempts, labeled by outcome.")
        self.reveals_total = _counter("reveals_total", "Reveal attempts, labeled by outcome.")
        self.claims_total = _counter("claims_total", "Claim attempts, labeled by outcome.")
        self.oracle_callbacks_total = _counter("oracle_callbacks_total", "Oracle answers, labeled by outcome.")
        self.rounds_started_total = Counter(
            "rounds_started_total",
            "Rounds opened.",
            namespace=namespace,
            subsystem=subsystem,
            registry=registry,
        )
        self.claim_amount = Histogram(
            "claim_amount",
            "Per-winner payout fixed when a round enters CLAIM (base units).",
            buckets=tuple(claim_buckets),
            namespace=namespace,
            subsystem=subsystem,
            registry=registry,
        )

    # ----- Recording helpers -------------------------------------------------

    def record_bet(self, outcome: str) -> None:
        self.bets_total.labels(outcome=outcome if outcome in _BET_OUTCOMES else "invalid").inc()

    def record_reveal(self, outcome: str) -> None:
        self.reveals_total.labels(outcome=outcome if outcome in _REVEAL_OUTCOMES else "invalid").inc()

    def record_claim(self, outcome: str) -> None:
        self.claims_total.labels(outcome=outcome if outcome in _CLAIM_OUTCOMES else "invalid").inc()

    def record_oracle_callback(self, outcome: str) -> None:
        self.oracle_callbacks_total.labels(outcome=outcome if outcome in _ORACLE_OUTCOMES else "invalid").inc()

    def record_round_started(self) -> None:
        self.rounds_started_total.inc()

    def observe_claim_amount(self, amount: int) -> None:
        self.claim_amount.observe(float(amount))


def outcome_for(exc: BaseException) -> str:
    """Map a rejection to its metrics outcome label."""
    if isinstance(exc, RoundMismatch):
        return "wrong_round"
    if isinstance(exc, DuplicateRandomness):
        return "duplicate"
    if isinstance(exc, (BetNoteNotFound, RevealNoteNotFound)):
        return "not_found"
    if isinstance(exc, LosingBet):
        return "losing"
    if isinstance(exc, NotOracle):
        return "not_oracle"
    if isinstance(exc, BadOracleProof):
        return "bad_proof"
    if isinstance(exc, NoWinners):
        return "no_winners"
    if isinstance(exc, PayoutError):
        return "bad_amount"
    if isinstance(exc, TokenError):
        return "token"
    if isinstance(exc, PhaseMismatch):
        return "wrong_phase"
    if isinstance(exc, LivenessError):
        return "too_late"
    return "invalid"


# Singleton used by default
METRICS = Metrics()

__all__ = [
    "Metrics",
    "METRICS",
    "outcome_for",
]
