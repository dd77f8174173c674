# Copyright (c) Animica.
# SPDX-License-Identifier: MIT
"""
Payout math for winning claims.

Every bettor stakes the same `bet_amount`, so the pool is
`bettor_count * bet_amount` and each winner receives

    claim_amount = floor(bettor_count * bet_amount / winner_count)

Integer division only; the remainder (< winner_count base units) stays with
the game. `claim_amount * winner_count <= pool` always holds.
"""

from __future__ import annotations

from dataclasses import dataclass

from .errors import ClaimAmountMismatch, NoWinners


def compute_claim_amount(bettor_count: int, winner_count: int, bet_amount: int) -> int:
    """
    Per-winner payout.

    Raises:
        ValueError: negative inputs
        NoWinners:  winner_count == 0
    """
    for name, v in (("bettor_count", bettor_count), ("winner_count", winner_count), ("bet_amount", bet_amount)):
        if not isinstance(v, int) or v < 0:
            raise ValueError(f"{name} must be a non-negative int (got {v!r})")
    if winner_count == 0:
        raise NoWinners()
    return (bettor_count * bet_amount) // winner_count


@dataclass(frozen=True)
class PayoutCalculator:
    bet_amount: int

    def claim_amount(self, bettor_count: int, winner_count: int, *, round_id: int | None = None) -> int:
        try:
            return compute_claim_amount(bettor_count, winner_count, self.bet_amount)
        except NoWinners:
            raise NoWinners(round_id=round_id) from None

    def pool(self, bettor_count: int) -> int:
        return bettor_count * self.bet_amount

    @staticmethod
    def validate_claim(round_id: int, requested: int, expected: int) -> None:
        if requested != expected:
            raise ClaimAmountMismatch(round_id=round_id, requested=requested, expected=expected)


__all__ = ["compute_claim_amount", "PayoutCalculator"]
