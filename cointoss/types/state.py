from __future__ import annotations

from dataclasses import dataclass, replace
from enum import IntEnum
from typing import Any, Dict, Optional

from .core import CallbackDescriptor, RoundId


class Phase(IntEnum):
    """
    Lifecycle phases of a betting round, in order.

    ROLL_READY is never stored: a stored BET round whose deadline has passed
    reports ROLL_READY as its effective phase. REVEAL is only entered when the
    explicit reveal window is enabled.
    """

    BET = 0
    ROLL_READY = 1
    AWAITING_ORACLE = 2
    REVEAL = 3
    CLAIM = 4


TERMINAL_PHASE = Phase.CLAIM


@dataclass(frozen=True, slots=True)
class Round:
    """
    Round state snapshot.

    Records are immutable; transitions produce a new Round through `evolve`,
    and the store persists whole records.

    Fields:
      id             — round id (first round is 1)
      phase          — stored phase (never ROLL_READY)
      phase_deadline — UNIX seconds at which the current phase window closes
      bettor_count   — successful bets in the round
      winner_count   — winners used for the payout division
      reveal_count   — bet notes converted into reveal notes
      claim_count    — reveal notes paid out
      claim_amount   — per-winner payout, fixed once the round reaches CLAIM
      result         — decrypted coin side (None until the oracle answered)
      callback       — descriptor handed to the oracle at roll time
    """

    id: RoundId
    phase: Phase
    phase_deadline: int
    bettor_count: int = 0
    winner_count: int = 0
    reveal_count: int = 0
    claim_count: int = 0
    claim_amount: int = 0
    result: Optional[bool] = None
    callback: Optional[CallbackDescriptor] = None

    def __post_init__(self) -> None:  # type: ignore[override]
        if int(self.id) <= 0:
            raise ValueError("round id must be positive")
        if self.phase == Phase.ROLL_READY:
            raise ValueError("ROLL_READY is a derived phase and cannot be stored")
        for name in ("phase_deadline", "bettor_count", "winner_count", "reveal_count", "claim_count", "claim_amount"):
            v = getattr(self, name)
            if not isinstance(v, int) or v < 0:
                raise ValueError(f"{name} must be a non-negative int")

    # ---------- Phase helpers --------------------------------------------------

    def effective_phase(self, now: int) -> Phase:
        if self.phase == Phase.BET and now >= self.phase_deadline:
            return Phase.ROLL_READY
        return self.phase

    @property
    def is_terminal(self) -> bool:
        return self.phase == TERMINAL_PHASE

    @property
    def is_resolved(self) -> bool:
        return self.result is not None

    def evolve(self, **changes: Any) -> "Round":
        """Return a copy with `changes`; refuses to move the phase backwards."""
        new_phase = changes.get("phase", self.phase)
        if int(new_phase) < int(self.phase):
            raise ValueError(f"phase cannot go backwards ({self.phase.name} -> {Phase(new_phase).name})")
        return replace(self, **changes)

    # ---------- Serialization --------------------------------------------------

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": int(self.id),
            "phase": int(self.phase),
            "phase_deadline": self.phase_deadline,
            "bettor_count": self.bettor_count,
            "winner_count": self.winner_count,
            "reveal_count": self.reveal_count,
            "claim_count": self.claim_count,
            "claim_amount": self.claim_amount,
            "result": self.result,
            "callback": self.callback.to_dict() if self.callback else None,
        }

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "Round":
        cb = d.get("callback")
        return cls(
            id=RoundId(int(d["id"])),
            phase=Phase(int(d["phase"])),
            phase_deadline=int(d["phase_deadline"]),
            bettor_count=int(d.get("bettor_count", 0)),
            winner_count=int(d.get("winner_count", 0)),
            reveal_count=int(d.get("reveal_count", 0)),
            claim_count=int(d.get("claim_count", 0)),
            claim_amount=int(d.get("claim_amount", 0)),
            result=d.get("result"),
            callback=CallbackDescriptor.from_dict(cb) if cb else None,
        )


__all__ = ["Phase", "Round", "TERMINAL_PHASE"]
