"""
Coin-toss — types package

Typed primitives and records shared across the protocol:

  • core  — RoundId, Address, Point, Ciphertext, BetRecord, RevealRecord,
            CallbackDescriptor, ResultTriplet
  • state — Phase, Round

Re-exported here for convenience:
    from cointoss.types import Round, Phase, BetRecord
"""

from __future__ import annotations

from .core import (INFINITY, Address, BetRecord, CallbackDescriptor,
                   Ciphertext, Point, ResultTriplet, RevealRecord, RoundId,
                   address_hex, parse_address, require_address,
                   require_randomness)
from .state import TERMINAL_PHASE, Phase, Round

__all__ = [
    "Address",
    "BetRecord",
    "CallbackDescriptor",
    "Ciphertext",
    "INFINITY",
    "Phase",
    "Point",
    "ResultTriplet",
    "RevealRecord",
    "Round",
    "RoundId",
    "TERMINAL_PHASE",
    "address_hex",
    "parse_address",
    "require_address",
    "require_randomness",
]
