"""
Oracle bridge: question submission and answer authentication.

A roll hands the round's final ciphertext to an off-protocol resolver through
an `OracleTransport`. The resolver answers with a `ResultTriplet` that
*reveals* its private key; the bridge checks that key against the registered
public key before the game accepts the decoded (result, winner_count).

Authentication is pluggable: `ECKeyAuthenticator` (default) checks
`sk·G == PK` on BN254 G1. The ciphertext itself is never re-decrypted here.

Note: the revealed key is only a one-shot secret if the resolver rotates keys
per round; a static key is acceptable for tests and devnets only.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Protocol, Tuple

from py_ecc.optimized_bn128 import G1, curve_order, eq as _eq, multiply as _mul

from .elgamal import from_point
from .errors import BadOracleProof
from .types.core import Address, CallbackDescriptor, Ciphertext, Point, ResultTriplet

log = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Authentication
# ---------------------------------------------------------------------------


class Authenticator(Protocol):
    def authenticate(self, private_key: int, public_key: Point) -> None:
        """Raise BadOracleProof unless `private_key` matches `public_key`."""
        ...


class ECKeyAuthenticator:
    """`private_key · G1 == public_key` on BN254."""

    def authenticate(self, private_key: int, public_key: Point) -> None:
        if not isinstance(private_key, int) or isinstance(private_key, bool):
            raise BadOracleProof(reason="private key must be an int")
        if not (1 <= private_key < curve_order):
            raise BadOracleProof(reason="private key out of range")
        try:
            expected = from_point(public_key)
        except ValueError as e:
            raise BadOracleProof(reason=f"registered public key invalid: {e}") from None
        if not _eq(_mul(G1, private_key), expected):
            raise BadOracleProof(reason="key mismatch")


# ---------------------------------------------------------------------------
# Transport
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class OracleRequest:
    """A resolution question: decrypt `ciphertext` and call back `callback`."""

    round_id: int
    ciphertext: Ciphertext
    callback: CallbackDescriptor
    requester: Address
    fee: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "round_id": int(self.round_id),
            "ciphertext": self.ciphertext.to_hex(),
            "callback": {"target": "0x" + self.callback.target.hex(), "round_id": int(self.callback.round_id)},
            "requester": "0x" + bytes(self.requester).hex(),
            "fee": int(self.fee),
        }


class OracleTransport(Protocol):
    def submit_question(self, request: OracleRequest) -> None: ...


@dataclass
class OracleQueue:
    """In-memory FIFO of pending questions (tests, simulation, devnet)."""

    pending: List[OracleRequest] = field(default_factory=list)
    answered: List[int] = field(default_factory=list)

    def submit_question(self, request: OracleRequest) -> None:
        self.pending.append(request)

    def peek(self) -> Optional[OracleRequest]:
        return self.pending[0] if self.pending else None

    def pop(self) -> OracleRequest:
        if not self.pending:
            raise LookupError("no pending oracle questions")
        req = self.pending.pop(0)
        self.answered.append(int(req.round_id))
        return req

    def __len__(self) -> int:
        return len(self.pending)


# ---------------------------------------------------------------------------
# Bridge
# ---------------------------------------------------------------------------


class OracleBridge:
    """Glue between the round state machine, a transport and an authenticator."""

    def __init__(self, transport: OracleTransport, authenticator: Optional[Authenticator] = None):
        self.transport = transport
        self.authenticator: Authenticator = authenticator or ECKeyAuthenticator()

    def submit(
        self,
        *,
        round_id: int,
        ciphertext: Ciphertext,
        callback: CallbackDescriptor,
        requester: Address,
        fee: int,
    ) -> OracleRequest:
        req = OracleRequest(round_id=int(round_id), ciphertext=ciphertext, callback=callback, requester=requester, fee=int(fee))
        self.transport.submit_question(req)
        log.info("oracle: question submitted round=%d fee=%d", round_id, fee)
        return req

    def resolve(self, triplet: ResultTriplet, public_key: Point) -> Tuple[bool, int]:
        """Authenticate the revealed key and return (result, winner_count)."""
        self.authenticator.authenticate(triplet.private_key, public_key)
        return triplet.result, triplet.winner_count


__all__ = [
    "Authenticator",
    "ECKeyAuthenticator",
    "OracleRequest",
    "OracleTransport",
    "OracleQueue",
    "OracleBridge",
]
