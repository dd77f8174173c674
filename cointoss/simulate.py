"""
In-memory devnet wiring and a full-round simulation.

`build_devnet()` assembles a game with the reference collaborators
(InMemoryToken, OracleQueue, NoteInbox, LocalResolver, ManualClock) and
label-derived addresses. `run_round()` drives one round end to end: fund and
authorize bettors, bet, roll after the deadline, resolve, reveal and claim.

Used by the `cointoss simulate` command and by the end-to-end tests.
"""

from __future__ import annotations

import secrets
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence

from prometheus_client import CollectorRegistry

from .config import CoinTossConfig
from .elgamal import keygen
from .errors import NoWinners
from .game import CoinToss
from .delivery import NoteInbox
from .metrics import Metrics
from .oracle import OracleQueue
from .resolver import LocalResolver
from .store.rounds import GameStore
from .token import ACTION_ESCROW, ACTION_UNSHIELD, InMemoryToken
from .types.core import Ciphertext, address_hex
from .utils.hash import address_from_label
from .utils.time import ManualClock

DEVNET_GENESIS_TIME = 1_700_000_000
_RANDOMNESS_BOUND = 1 << 254


@dataclass
class Devnet:
    game: CoinToss
    token: InMemoryToken
    resolver: LocalResolver
    inbox: NoteInbox
    queue: OracleQueue
    clock: ManualClock
    _nonce: int = 0

    def next_nonce(self) -> int:
        self._nonce += 1
        return self._nonce


def build_devnet(
    *,
    private_key: Optional[int] = None,
    start_time: int = DEVNET_GENESIS_TIME,
    metrics: Optional[Metrics] = None,
    **overrides: Any,
) -> Devnet:
    sk, pk = keygen(private_key)
    cfg = CoinTossConfig.devnet(pk, **overrides)
    clock = ManualClock(start_time)
    token = InMemoryToken()
    inbox = NoteInbox()
    queue = OracleQueue()
    game = CoinToss(
        cfg,
        address_from_label("cointoss"),
        GameStore(),
        token,
        queue,
        clock,
        delivery=inbox,
        metrics=metrics if metrics is not None else Metrics(registry=CollectorRegistry()),
    )
    resolver = LocalResolver(sk, identity=cfg.resolver, oracle=cfg.oracle, inbox=inbox, queue=queue)
    return Devnet(game=game, token=token, resolver=resolver, inbox=inbox, queue=queue, clock=clock)


def place_bet(net: Devnet, label: str, side: bool, round_id: int, randomness: Optional[int] = None) -> int:
    """Fund `label`, authorize the stake and bet. Returns the bet randomness."""
    game = net.game
    bettor = address_from_label(label)
    amount = game.config.bet_amount
    net.token.mint_private(bettor, amount)
    nonce = net.next_nonce()
    net.token.authorize(bettor, game.address, ACTION_UNSHIELD, amount, nonce)
    r = secrets.randbelow(_RANDOMNESS_BOUND) if randomness is None else randomness
    game.bet(bettor, side, round_id, r, nonce)
    return r


def roll_round(net: Devnet, label: str, round_id: int, final: Ciphertext) -> None:
    game = net.game
    roller = address_from_label(label)
    fee = game.config.oracle_fee
    net.token.mint_private(roller, fee)
    nonce = net.next_nonce()
    net.token.authorize(roller, game.address, ACTION_ESCROW, fee, nonce)
    game.roll(roller, round_id, nonce, final)


def run_round(net: Devnet, sides: Sequence[bool], *, coin: Optional[Sequence[int]] = None) -> Dict[str, Any]:
    """
    Play one round with one bettor per entry of `sides`.

    `coin` optionally fixes each bettor's encrypted contribution bit (the coin
    side is the parity of their sum); random otherwise.
    """
    game, resolver = net.game, net.resolver
    cfg = game.config
    round_id = game.start_next_round(resolver.seed())
    seed = game.randomness_ciphertext(round_id)

    labels = [f"bettor-{round_id}-{i}" for i in range(len(sides))]
    secrets_by_label: Dict[str, int] = {}
    contributions: List[Ciphertext] = []
    for i, (label, side) in enumerate(zip(labels, sides)):
        secrets_by_label[label] = place_bet(net, label, bool(side), round_id)
        contributions.append(resolver.contribution(None if coin is None else coin[i]))

    net.clock.advance(cfg.phase_length)
    roll_round(net, f"roller-{round_id}", round_id, resolver.aggregate(seed, contributions))

    summary: Dict[str, Any] = {"round_id": round_id, "bettors": len(sides), "game": address_hex(game.address)}
    try:
        resolver.answer(game)
    except NoWinners:
        rnd = game.get_round(round_id)
        summary.update(status="no_winners", phase=rnd.phase.name)
        return summary

    rnd = game.get_round(round_id)
    winners = [lbl for lbl, side in zip(labels, sides) if bool(side) == rnd.result]
    for label in winners:
        game.reveal(address_from_label(label), round_id, secrets_by_label[label])

    if cfg.reveal_phase:
        net.clock.advance(cfg.phase_length)
        game.end_reveal_phase()

    rnd = game.get_round(round_id)
    payouts: Dict[str, int] = {}
    for label in winners:
        addr = address_from_label(label)
        game.claim(addr, round_id, rnd.claim_amount, secrets_by_label[label])
        payouts[label] = net.token.balance_of_private(addr)

    rnd = game.get_round(round_id)
    summary.update(
        status="claimed",
        phase=rnd.phase.name,
        result="tails" if rnd.result else "heads",
        winner_count=rnd.winner_count,
        claim_amount=rnd.claim_amount,
        payouts=payouts,
        pool_remaining=game.pool_balance(),
    )
    return summary


__all__ = ["Devnet", "DEVNET_GENESIS_TIME", "build_devnet", "place_bet", "roll_round", "run_round"]
