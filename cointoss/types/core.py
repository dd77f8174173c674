from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, NewType, Sequence, Tuple

from ..constants import ADDRESS_LEN

"""
Core typed primitives for the coin-toss protocol.

These are intentionally minimal and free of heavy dependencies so they can be
shared across the state machine, the ledgers, the collaborators and tests.

Types provided:
  • RoundId            — integer-typed identifier for a betting round
  • Address            — 32-byte account / contract identity
  • Point              — affine curve point with integer coordinates ((0, 0) = infinity)
  • Ciphertext         — opaque two-point ciphertext (stored and compared, never opened)
  • BetRecord          — private bet note
  • RevealRecord       — private reveal note
  • CallbackDescriptor — where the oracle must deliver its answer
  • ResultTriplet      — the resolver's answer (result bit, winner count, revealed key)
"""

RoundId = NewType("RoundId", int)
Address = bytes

_U256 = 1 << 256


def _require_nonneg(name: str, v: int) -> None:
    if v < 0:
        raise ValueError(f"{name} must be non-negative (got {v})")


def require_address(name: str, a: Any) -> bytes:
    if not isinstance(a, (bytes, bytearray)):
        raise TypeError(f"{name} must be bytes")
    if len(a) != ADDRESS_LEN:
        raise ValueError(f"{name} must be exactly {ADDRESS_LEN} bytes (got {len(a)})")
    return bytes(a)


def require_randomness(v: Any) -> int:
    if not isinstance(v, int) or isinstance(v, bool):
        raise TypeError("randomness must be an int")
    if not (0 <= v < _U256):
        raise ValueError("randomness must fit in 256 bits")
    return v


def address_hex(a: bytes) -> str:
    return "0x" + bytes(a).hex()


def parse_address(s: str) -> bytes:
    raw = s[2:] if s.startswith(("0x", "0X")) else s
    return require_address("address", bytes.fromhex(raw))


# ---- Curve values ------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class Point:
    """Affine point. The protocol core treats it as an opaque pair of integers."""

    x: int
    y: int

    def __post_init__(self) -> None:  # type: ignore[override]
        for name in ("x", "y"):
            v = getattr(self, name)
            if not isinstance(v, int) or isinstance(v, bool):
                raise TypeError(f"point.{name} must be int")
            if not (0 <= v < _U256):
                raise ValueError(f"point.{name} out of range")

    @property
    def is_infinity(self) -> bool:
        return self.x == 0 and self.y == 0

    def to_bytes(self) -> bytes:
        return self.x.to_bytes(32, "big") + self.y.to_bytes(32, "big")

    @classmethod
    def from_bytes(cls, b: bytes) -> "Point":
        if len(b) != 64:
            raise ValueError("point encoding must be 64 bytes")
        return cls(int.from_bytes(b[:32], "big"), int.from_bytes(b[32:], "big"))

    def to_hex(self) -> str:
        return "0x" + self.to_bytes().hex()

    @classmethod
    def from_hex(cls, s: str) -> "Point":
        raw = s[2:] if s.startswith(("0x", "0X")) else s
        return cls.from_bytes(bytes.fromhex(raw))


INFINITY = Point(0, 0)


@dataclass(frozen=True, slots=True)
class Ciphertext:
    """
    Two-point ciphertext under the resolver's public key.

    The combination algebra lives off-protocol (see `cointoss.elgamal`); the
    core only stores and compares these values.
    """

    c1: Point
    c2: Point

    def to_bytes(self) -> bytes:
        return self.c1.to_bytes() + self.c2.to_bytes()

    @classmethod
    def from_bytes(cls, b: bytes) -> "Ciphertext":
        if len(b) != 128:
            raise ValueError("ciphertext encoding must be 128 bytes")
        return cls(Point.from_bytes(b[:64]), Point.from_bytes(b[64:]))

    def to_hex(self) -> str:
        return "0x" + self.to_bytes().hex()

    @classmethod
    def from_hex(cls, s: str) -> "Ciphertext":
        raw = s[2:] if s.startswith(("0x", "0X")) else s
        return cls.from_bytes(bytes.fromhex(raw))

    def to_ints(self) -> Tuple[int, int, int, int]:
        return (self.c1.x, self.c1.y, self.c2.x, self.c2.y)

    @classmethod
    def from_ints(cls, v: Sequence[int]) -> "Ciphertext":
        if len(v) != 4:
            raise ValueError("ciphertext needs 4 coordinates")
        return cls(Point(int(v[0]), int(v[1])), Point(int(v[2]), int(v[3])))


# ---- Notes -------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class BetRecord:
    """
    A bettor's private note for a round.

    Fields:
      owner      — bettor address (only the owner can reveal it)
      round_id   — round the bet belongs to
      side       — chosen coin side (False = heads, True = tails)
      randomness — per-bet secret; (round_id, randomness) is unique
    """

    owner: Address
    round_id: RoundId
    side: bool
    randomness: int

    def __post_init__(self) -> None:  # type: ignore[override]
        require_address("owner", self.owner)
        if not isinstance(self.round_id, int):
            raise TypeError("round_id must be an int (RoundId)")
        _require_nonneg("round_id", int(self.round_id))
        if not isinstance(self.side, bool):
            raise TypeError("side must be bool")
        require_randomness(self.randomness)

    def to_dict(self) -> Dict[str, Any]:
        return {"owner": bytes(self.owner), "round_id": int(self.round_id), "side": self.side, "randomness": self.randomness}

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "BetRecord":
        return cls(owner=bytes(d["owner"]), round_id=RoundId(int(d["round_id"])), side=bool(d["side"]), randomness=int(d["randomness"]))


@dataclass(frozen=True, slots=True)
class RevealRecord:
    """A winner's reveal note; consumed exactly once by a claim."""

    owner: Address
    round_id: RoundId
    randomness: int

    def __post_init__(self) -> None:  # type: ignore[override]
        require_address("owner", self.owner)
        if not isinstance(self.round_id, int):
            raise TypeError("round_id must be an int (RoundId)")
        _require_nonneg("round_id", int(self.round_id))
        require_randomness(self.randomness)

    def to_dict(self) -> Dict[str, Any]:
        return {"owner": bytes(self.owner), "round_id": int(self.round_id), "randomness": self.randomness}

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "RevealRecord":
        return cls(owner=bytes(d["owner"]), round_id=RoundId(int(d["round_id"])), randomness=int(d["randomness"]))


# ---- Oracle exchange ---------------------------------------------------------


@dataclass(frozen=True, slots=True)
class CallbackDescriptor:
    """Target of an oracle answer: the game instance and the round being resolved."""

    target: Address
    round_id: RoundId

    def __post_init__(self) -> None:  # type: ignore[override]
        require_address("target", self.target)
        _require_nonneg("round_id", int(self.round_id))

    def to_dict(self) -> Dict[str, Any]:
        return {"target": bytes(self.target), "round_id": int(self.round_id)}

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "CallbackDescriptor":
        return cls(target=bytes(d["target"]), round_id=RoundId(int(d["round_id"])))


@dataclass(frozen=True, slots=True)
class ResultTriplet:
    """
    The resolver's answer for a round.

    Fields:
      result       — decrypted coin side
      winner_count — number of bets on `result`
      private_key  — resolver private key, revealed so the answer can be authenticated
    """

    result: bool
    winner_count: int
    private_key: int

    def __post_init__(self) -> None:  # type: ignore[override]
        if not isinstance(self.result, bool):
            raise TypeError("result must be bool")
        if not isinstance(self.winner_count, int) or self.winner_count < 0:
            raise ValueError("winner_count must be a non-negative int")
        if not isinstance(self.private_key, int) or self.private_key < 0:
            raise ValueError("private_key must be a non-negative int")


__all__ = [
    "RoundId",
    "Address",
    "Point",
    "INFINITY",
    "Ciphertext",
    "BetRecord",
    "RevealRecord",
    "CallbackDescriptor",
    "ResultTriplet",
    "require_address",
    "require_randomness",
    "address_hex",
    "parse_address",
]
