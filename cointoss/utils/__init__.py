"""
cointoss.utils
--------------

Small deterministic helpers:
  - hash : SHA3 / domain-separated hashing, nullifier derivation
  - time : timestamp validation and clocks
"""

from __future__ import annotations

from .hash import address_from_label, dsha3_256, nullifier, sha3_256
from .time import Clock, ManualClock, SystemClock, resolve_now, validate_timestamp

__all__ = [
    "address_from_label",
    "dsha3_256",
    "nullifier",
    "sha3_256",
    "Clock",
    "ManualClock",
    "SystemClock",
    "resolve_now",
    "validate_timestamp",
]
