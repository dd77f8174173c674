"""
Coin-toss constants.

This module centralizes:
- Domain separation tags for nullifiers and record hashing
- Nullifier kinds (one per consumption event)
- Protocol defaults (bet amount, phase length, oracle fee, timestamp jitter)
- Storage bucket prefixes

Networks override the operational defaults via `cointoss.config.CoinTossConfig`;
the domain tags must stay stable because nullifiers are persisted.
"""

from __future__ import annotations

# -----------------------------
# Domain separation (bytes tags)
# -----------------------------
DOMAIN_PREFIX: bytes = b"animica.cointoss."

DOMAIN_NULLIFIER: bytes = DOMAIN_PREFIX + b"nullifier.v1"

# -----------------------------
# Nullifier kinds
# -----------------------------
# bet          : inserted when a bet note is created; guards (round, randomness) uniqueness
# bet.spend    : inserted when a bet note is consumed by a reveal
# reveal.spend : inserted when a reveal note is consumed by a claim
KIND_BET: bytes = b"bet"
KIND_BET_SPEND: bytes = b"bet.spend"
KIND_REVEAL_SPEND: bytes = b"reveal.spend"

NULLIFIER_KINDS = (KIND_BET, KIND_BET_SPEND, KIND_REVEAL_SPEND)

# -----------------------------
# Protocol defaults
# -----------------------------
DEFAULT_BET_AMOUNT: int = 1337
DEFAULT_PHASE_LENGTH_S: int = 10 * 60
DEFAULT_ORACLE_FEE: int = 100
DEFAULT_TIMESTAMP_JITTER_S: int = 10 * 60

# Round 0 is reserved for "no round started yet".
NO_ROUND: int = 0

# -----------------------------
# Sizes
# -----------------------------
ADDRESS_LEN: int = 32

# -----------------------------
# Storage bucket prefixes (single byte, domain-separated)
# -----------------------------
ROUNDS_PREFIX = b"\x01"       # \x01 | u64 round id            -> cbor(Round)
BETS_PREFIX = b"\x02"         # \x02 | u64 round id | u256 r   -> cbor(BetRecord)
REVEALS_PREFIX = b"\x03"      # \x03 | u64 round id | u256 r   -> cbor(RevealRecord)
NULLIFIERS_PREFIX = b"\x04"   # \x04 | 32B nullifier           -> b"\x01"
CIPHERTEXT_PREFIX = b"\x05"   # \x05 | tag | u64 round id      -> cbor(Ciphertext)
META_PREFIX = b"\x06"         # \x06 | name                    -> value

__all__ = [
    "DOMAIN_PREFIX",
    "DOMAIN_NULLIFIER",
    "KIND_BET",
    "KIND_BET_SPEND",
    "KIND_REVEAL_SPEND",
    "NULLIFIER_KINDS",
    "DEFAULT_BET_AMOUNT",
    "DEFAULT_PHASE_LENGTH_S",
    "DEFAULT_ORACLE_FEE",
    "DEFAULT_TIMESTAMP_JITTER_S",
    "NO_ROUND",
    "ADDRESS_LEN",
    "ROUNDS_PREFIX",
    "BETS_PREFIX",
    "REVEALS_PREFIX",
    "NULLIFIERS_PREFIX",
    "CIPHERTEXT_PREFIX",
    "META_PREFIX",
]
