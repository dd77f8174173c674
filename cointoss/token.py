"""
Token collaborator.

The game never holds balances itself; it drives a token ledger with private
(shielded) and public balances per address:

    escrow(payer, payee, amount, nonce, caller=...)     private -> private
    unshield(owner, recipient, amount, nonce, caller=...) private -> public
    shield(owner, recipient, amount, caller=...)        public  -> private

Moving another account's private funds needs a single-use authorization
witness registered by the owner (`authorize`). A witness binds
(owner, spender, action, amount, nonce); consuming it burns the nonce, so a
witness cannot be replayed.

`InMemoryToken` is accounting only: pure integer math, no time, suitable for
tests, simulation and the devnet CLI. Every failure is raised before any
balance moves.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, List, Protocol, Set, Tuple

from .errors import InsufficientBalance, Unauthorized
from .types.core import Address, address_hex, require_address

log = logging.getLogger(__name__)

Amount = int

ACTION_ESCROW = "escrow"
ACTION_UNSHIELD = "unshield"


class TokenService(Protocol):
    def escrow(self, payer: Address, payee: Address, amount: Amount, nonce: int, *, caller: Address) -> None: ...
    def unshield(self, owner: Address, recipient: Address, amount: Amount, nonce: int, *, caller: Address) -> None: ...
    def shield(self, owner: Address, recipient: Address, amount: Amount, *, caller: Address) -> None: ...
    def balance_of_public(self, addr: Address) -> Amount: ...
    def balance_of_private(self, addr: Address) -> Amount: ...


@dataclass(frozen=True)
class Transfer:
    action: str
    source: Address
    dest: Address
    amount: Amount


_WitnessKey = Tuple[bytes, bytes, str, int]


class InMemoryToken:
    """Deterministic private/public token ledger with delegated authorization."""

    def __init__(self) -> None:
        self._public: Dict[bytes, Amount] = {}
        self._private: Dict[bytes, Amount] = {}
        self._witnesses: Dict[_WitnessKey, Amount] = {}
        self._used_nonces: Set[Tuple[bytes, int]] = set()
        self.transfers: List[Transfer] = []

    # ---- Funding (devnet/tests) ---------------------------------------------

    def mint_private(self, addr: Address, amount: Amount) -> None:
        addr = require_address("addr", addr)
        _require_amount(amount)
        self._private[addr] = self._private.get(addr, 0) + amount

    def mint_public(self, addr: Address, amount: Amount) -> None:
        addr = require_address("addr", addr)
        _require_amount(amount)
        self._public[addr] = self._public.get(addr, 0) + amount

    # ---- Authorization ------------------------------------------------------

    def authorize(self, owner: Address, spender: Address, action: str, amount: Amount, nonce: int) -> None:
        """Register a single-use witness letting `spender` run `action` for `amount` on `owner`'s funds."""
        owner = require_address("owner", owner)
        spender = require_address("spender", spender)
        _require_amount(amount)
        if (owner, int(nonce)) in self._used_nonces:
            raise Unauthorized("nonce already used", details={"owner": address_hex(owner), "nonce": int(nonce)})
        self._witnesses[(owner, spender, action, int(nonce))] = amount

    def _check_witness(self, owner: bytes, caller: bytes, action: str, amount: Amount, nonce: int) -> None:
        if (owner, int(nonce)) in self._used_nonces:
            raise Unauthorized("nonce already used", details={"owner": address_hex(owner), "nonce": int(nonce)})
        if caller == owner:
            return
        granted = self._witnesses.get((owner, caller, action, int(nonce)))
        if granted is None or granted != amount:
            raise Unauthorized(
                details={"owner": address_hex(owner), "caller": address_hex(caller), "action": action, "nonce": int(nonce)}
            )

    def _burn_witness(self, owner: bytes, caller: bytes, action: str, nonce: int) -> None:
        self._witnesses.pop((owner, caller, action, int(nonce)), None)
        self._used_nonces.add((owner, int(nonce)))

    # ---- Movements ----------------------------------------------------------

    def escrow(self, payer: Address, payee: Address, amount: Amount, nonce: int, *, caller: Address) -> None:
        payer, payee, caller = _addrs(payer, payee, caller)
        _require_amount(amount)
        self._check_witness(payer, caller, ACTION_ESCROW, amount, nonce)
        _require_funds(self._private, payer, amount, "private")
        self._burn_witness(payer, caller, ACTION_ESCROW, nonce)
        self._private[payer] -= amount
        self._private[payee] = self._private.get(payee, 0) + amount
        self._record(ACTION_ESCROW, payer, payee, amount)

    def unshield(self, owner: Address, recipient: Address, amount: Amount, nonce: int, *, caller: Address) -> None:
        owner, recipient, caller = _addrs(owner, recipient, caller)
        _require_amount(amount)
        self._check_witness(owner, caller, ACTION_UNSHIELD, amount, nonce)
        _require_funds(self._private, owner, amount, "private")
        self._burn_witness(owner, caller, ACTION_UNSHIELD, nonce)
        self._private[owner] -= amount
        self._public[recipient] = self._public.get(recipient, 0) + amount
        self._record(ACTION_UNSHIELD, owner, recipient, amount)

    def shield(self, owner: Address, recipient: Address, amount: Amount, *, caller: Address) -> None:
        owner, recipient, caller = _addrs(owner, recipient, caller)
        _require_amount(amount)
        if caller != owner:
            raise Unauthorized("only the owner can shield its public balance", details={"owner": address_hex(owner)})
        _require_funds(self._public, owner, amount, "public")
        self._public[owner] -= amount
        self._private[recipient] = self._private.get(recipient, 0) + amount
        self._record("shield", owner, recipient, amount)

    # ---- Views --------------------------------------------------------------

    def balance_of_public(self, addr: Address) -> Amount:
        return self._public.get(bytes(addr), 0)

    def balance_of_private(self, addr: Address) -> Amount:
        return self._private.get(bytes(addr), 0)

    def total_supply(self) -> Amount:
        return sum(self._public.values()) + sum(self._private.values())

    def _record(self, action: str, source: bytes, dest: bytes, amount: Amount) -> None:
        self.transfers.append(Transfer(action, source, dest, amount))
        log.debug("token: %s amount=%d", action, amount)


def _require_amount(amount: Amount) -> None:
    if not isinstance(amount, int) or isinstance(amount, bool) or amount < 0:
        raise ValueError(f"amount must be a non-negative int, got {amount!r}")


def _require_funds(book: Dict[bytes, Amount], addr: bytes, amount: Amount, kind: str) -> None:
    available = book.get(addr, 0)
    if available < amount:
        raise InsufficientBalance(account=address_hex(addr), required=amount, available=available, kind=kind)


def _addrs(*addrs: Address) -> Tuple[bytes, ...]:
    return tuple(require_address("address", a) for a in addrs)


__all__ = [
    "Amount",
    "ACTION_ESCROW",
    "ACTION_UNSHIELD",
    "TokenService",
    "Transfer",
    "InMemoryToken",
]
