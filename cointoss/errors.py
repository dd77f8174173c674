# Copyright (c) Animica.
# SPDX-License-Identifier: MIT
"""
Coin-toss errors.

A small, typed hierarchy raised by the round state machine and its ledgers.
Callers can catch the base `CoinTossError`, a category base, or a concrete
subclass. Every error carries a stable `code` and a JSON-friendly `details`
mapping so rejections are safe to surface over RPC/logs.

Categories
----------
- LivenessError      : operation attempted outside its time window / phase
- AuthorizationError : caller or target round does not match expectations
- LedgerError        : nullifier-set or record lookup violations
- PayoutError        : claim amount computation / validation failures
- InputError         : malformed caller input (timestamps outside jitter)
- TokenError         : escrow collaborator rejections
- ConfigError        : invalid configuration
"""

from __future__ import annotations

import json
from typing import Any, Dict, Mapping, Optional


class CoinTossError(Exception):
    """Base class for coin-toss domain errors."""

    code: str = "COINTOSS_ERROR"

    def __init__(self, message: str = "", *, details: Optional[Mapping[str, Any]] = None) -> None:
        self.message = message or self.__class__.__name__
        self.details = dict(details or {})
        super().__init__(self.__str__())

    def to_dict(self) -> Dict[str, Any]:
        return {"code": self.code, "message": self.message, "details": self.details}

    def __str__(self) -> str:  # pragma: no cover - trivial
        if self.details:
            packed = json.dumps(self.details, sort_keys=True, separators=(",", ":"), default=str)
            return f"{self.code}: {self.message} [{packed}]"
        return f"{self.code}: {self.message}"


# ---------------------------------------------------------------------------
# Categories
# ---------------------------------------------------------------------------


class LivenessError(CoinTossError):
    code = "COINTOSS_LIVENESS"


class AuthorizationError(CoinTossError):
    code = "COINTOSS_AUTHORIZATION"


class LedgerError(CoinTossError):
    code = "COINTOSS_LEDGER"


class PayoutError(CoinTossError):
    code = "COINTOSS_PAYOUT"


class InputError(CoinTossError):
    code = "COINTOSS_INPUT"


class TokenError(CoinTossError):
    code = "COINTOSS_TOKEN"


class ConfigError(CoinTossError, ValueError):
    code = "COINTOSS_CONFIG"


# ---------------------------------------------------------------------------
# Liveness
# ---------------------------------------------------------------------------


def _window(round_id: Optional[int], now: Optional[int], deadline: Optional[int]) -> Dict[str, Any]:
    d: Dict[str, Any] = {}
    if round_id is not None:
        d["round_id"] = int(round_id)
    if now is not None:
        d["now"] = int(now)
    if deadline is not None:
        d["deadline"] = int(deadline)
    return d


class RoundNotFinished(LivenessError):
    """A new round was requested while the current one has not reached CLAIM."""

    code = "COINTOSS_ROUND_NOT_FINISHED"

    def __init__(self, *, round_id: int, phase: str, message: str = "current round not finished") -> None:
        super().__init__(message, details={"round_id": int(round_id), "phase": phase})


class BetPhaseNotFinished(LivenessError):
    code = "COINTOSS_BET_PHASE_NOT_FINISHED"

    def __init__(self, *, round_id: int, now: int, deadline: int, message: str = "bet phase not finished") -> None:
        super().__init__(message, details=_window(round_id, now, deadline))


class BetPhaseEnded(LivenessError):
    code = "COINTOSS_BET_PHASE_ENDED"

    def __init__(self, *, round_id: int, now: int, deadline: int, message: str = "bet phase ended") -> None:
        super().__init__(message, details=_window(round_id, now, deadline))


class RevealPhaseNotFinished(LivenessError):
    code = "COINTOSS_REVEAL_PHASE_NOT_FINISHED"

    def __init__(self, *, round_id: int, now: int, deadline: int, message: str = "reveal phase not finished") -> None:
        super().__init__(message, details=_window(round_id, now, deadline))


class RevealPhaseEnded(LivenessError):
    code = "COINTOSS_REVEAL_PHASE_ENDED"

    def __init__(self, *, round_id: int, now: int, deadline: int, message: str = "reveal phase ended") -> None:
        super().__init__(message, details=_window(round_id, now, deadline))


class PhaseMismatch(LivenessError):
    """The operation is not valid in the round's current phase."""

    code = "COINTOSS_PHASE_MISMATCH"

    def __init__(self, *, round_id: int, phase: str, expected: str, message: str = "wrong phase") -> None:
        super().__init__(
            message, details={"round_id": int(round_id), "phase": phase, "expected": expected}
        )


# ---------------------------------------------------------------------------
# Identity / authorization
# ---------------------------------------------------------------------------


class RoundMismatch(AuthorizationError):
    code = "COINTOSS_ROUND_MISMATCH"

    def __init__(self, *, round_id: int, current_round_id: int, message: str = "round id is not the current round") -> None:
        super().__init__(
            message, details={"round_id": int(round_id), "current_round_id": int(current_round_id)}
        )


class NotOracle(AuthorizationError):
    code = "COINTOSS_NOT_ORACLE"

    def __init__(self, *, caller: str, message: str = "caller is not the oracle") -> None:
        super().__init__(message, details={"caller": caller})


class BadOracleProof(AuthorizationError):
    code = "COINTOSS_BAD_ORACLE_PROOF"

    def __init__(self, message: str = "revealed key does not match the resolver public key", *, reason: Optional[str] = None) -> None:
        super().__init__(message, details={"reason": reason} if reason else None)


class CallbackMismatch(AuthorizationError):
    code = "COINTOSS_CALLBACK_MISMATCH"

    def __init__(self, message: str = "callback does not match the pending request", *, details: Optional[Mapping[str, Any]] = None) -> None:
        super().__init__(message, details=details)


# ---------------------------------------------------------------------------
# Ledger
# ---------------------------------------------------------------------------


class DuplicateRandomness(LedgerError):
    code = "COINTOSS_DUPLICATE_RANDOMNESS"

    def __init__(self, *, round_id: int, message: str = "randomness already used in this round") -> None:
        # The randomness itself is a note secret; never put it in details.
        super().__init__(message, details={"round_id": int(round_id)})


class BetNoteNotFound(LedgerError):
    code = "COINTOSS_BET_NOTE_NOT_FOUND"

    def __init__(self, *, round_id: int, message: str = "no unconsumed bet note") -> None:
        super().__init__(message, details={"round_id": int(round_id)})


class RevealNoteNotFound(LedgerError):
    code = "COINTOSS_REVEAL_NOTE_NOT_FOUND"

    def __init__(self, *, round_id: int, message: str = "no unconsumed reveal note") -> None:
        super().__init__(message, details={"round_id": int(round_id)})


class LosingBet(LedgerError):
    code = "COINTOSS_LOSING_BET"

    def __init__(self, *, round_id: int, message: str = "bet side does not match the round result") -> None:
        super().__init__(message, details={"round_id": int(round_id)})


class RoundNotFound(LedgerError):
    code = "COINTOSS_ROUND_NOT_FOUND"

    def __init__(self, *, round_id: int, message: str = "unknown round") -> None:
        super().__init__(message, details={"round_id": int(round_id)})


class AccumulatorFinalized(LedgerError):
    code = "COINTOSS_ACCUMULATOR_FINALIZED"

    def __init__(self, *, round_id: int, message: str = "randomness already finalized for round") -> None:
        super().__init__(message, details={"round_id": int(round_id)})


# ---------------------------------------------------------------------------
# Payout
# ---------------------------------------------------------------------------


class NoWinners(PayoutError):
    code = "COINTOSS_NO_WINNERS"

    def __init__(self, *, round_id: Optional[int] = None, message: str = "winner count is zero") -> None:
        super().__init__(message, details={"round_id": int(round_id)} if round_id is not None else None)


class ClaimAmountMismatch(PayoutError):
    code = "COINTOSS_CLAIM_AMOUNT_MISMATCH"

    def __init__(self, *, round_id: int, requested: int, expected: int, message: str = "claim amount mismatch") -> None:
        super().__init__(
            message,
            details={"round_id": int(round_id), "requested": int(requested), "expected": int(expected)},
        )


# ---------------------------------------------------------------------------
# Input
# ---------------------------------------------------------------------------


class PastTimestamp(InputError):
    code = "COINTOSS_PAST_TIMESTAMP"

    def __init__(self, *, provided: int, trusted_now: int, message: str = "past timestamp") -> None:
        super().__init__(message, details={"provided": int(provided), "trusted_now": int(trusted_now)})


class FutureTimestamp(InputError):
    code = "COINTOSS_FUTURE_TIMESTAMP"

    def __init__(self, *, provided: int, trusted_now: int, jitter: int, message: str = "future timestamp") -> None:
        super().__init__(
            message,
            details={"provided": int(provided), "trusted_now": int(trusted_now), "jitter": int(jitter)},
        )


# ---------------------------------------------------------------------------
# Token collaborator
# ---------------------------------------------------------------------------


class InsufficientBalance(TokenError):
    code = "COINTOSS_INSUFFICIENT_BALANCE"

    def __init__(self, *, account: str, required: int, available: int, kind: str, message: str = "insufficient balance") -> None:
        super().__init__(
            message,
            details={"account": account, "required": int(required), "available": int(available), "kind": kind},
        )


class Unauthorized(TokenError):
    code = "COINTOSS_UNAUTHORIZED"

    def __init__(self, message: str = "missing or reused authorization witness", *, details: Optional[Mapping[str, Any]] = None) -> None:
        super().__init__(message, details=details)


__all__ = [
    "CoinTossError",
    "LivenessError",
    "AuthorizationError",
    "LedgerError",
    "PayoutError",
    "InputError",
    "TokenError",
    "ConfigError",
    "RoundNotFinished",
    "BetPhaseNotFinished",
    "BetPhaseEnded",
    "RevealPhaseNotFinished",
    "RevealPhaseEnded",
    "PhaseMismatch",
    "RoundMismatch",
    "NotOracle",
    "BadOracleProof",
    "CallbackMismatch",
    "DuplicateRandomness",
    "BetNoteNotFound",
    "RevealNoteNotFound",
    "LosingBet",
    "RoundNotFound",
    "AccumulatorFinalized",
    "NoWinners",
    "ClaimAmountMismatch",
    "PastTimestamp",
    "FutureTimestamp",
    "InsufficientBalance",
    "Unauthorized",
]
