# Copyright (c) Animica.
# SPDX-License-Identifier: MIT
"""
cointoss.utils.time
===================

Timestamp validation and the trusted clock abstraction.

Callers may supply their own timestamp for a time-gated operation (a private
client cannot read the chain clock). That value is only accepted when it lies
inside a jitter window starting at the trusted clock:

    trusted_now <= provided <= trusted_now + jitter      (both ends inclusive)

`validate_timestamp` is pure; `resolve_now` is the helper the state machine
uses to pick the effective "now" for a transaction.
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Optional, Protocol

from ..errors import FutureTimestamp, PastTimestamp

__all__ = [
    "Clock",
    "SystemClock",
    "ManualClock",
    "validate_timestamp",
    "resolve_now",
]


class Clock(Protocol):
    """Trusted time source (block timestamp in production, manual in tests)."""

    def now(self) -> int: ...


class SystemClock:
    """Wall clock in whole UNIX seconds."""

    def now(self) -> int:
        return int(time.time())


@dataclass
class ManualClock:
    """Deterministic clock for tests, simulations and the devnet CLI."""

    current: int = 0

    def now(self) -> int:
        return self.current

    def warp(self, ts: int) -> None:
        """Jump to an absolute timestamp. Time never runs backwards."""
        if ts < self.current:
            raise ValueError(f"cannot warp backwards ({ts} < {self.current})")
        self.current = int(ts)

    def advance(self, seconds: int) -> int:
        if seconds < 0:
            raise ValueError("seconds must be non-negative")
        self.current += int(seconds)
        return self.current


def validate_timestamp(provided: int, trusted_now: int, jitter: int) -> None:
    """
    Accept `provided` iff trusted_now <= provided <= trusted_now + jitter.

    Raises:
        PastTimestamp:   provided < trusted_now
        FutureTimestamp: provided > trusted_now + jitter
    """
    if jitter < 0:
        raise ValueError("jitter must be non-negative")
    if provided < trusted_now:
        raise PastTimestamp(provided=provided, trusted_now=trusted_now)
    if provided > trusted_now + jitter:
        raise FutureTimestamp(provided=provided, trusted_now=trusted_now, jitter=jitter)


def resolve_now(clock: Clock, provided: Optional[int], jitter: int) -> int:
    """Effective transaction time: the validated caller timestamp, else the trusted clock."""
    trusted = clock.now()
    if provided is None:
        return trusted
    validate_timestamp(int(provided), trusted, jitter)
    return int(provided)
