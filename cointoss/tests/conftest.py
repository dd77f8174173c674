"""
cointoss.tests.conftest
=======================

Fixtures for the coin-toss tests.

- A fixed resolver key so ciphertexts and answers are reproducible.
- Isolated Prometheus registries (the module singleton is never touched).
- `net` / `net_reveal`: fully wired in-memory devnets on a manual clock, one
  per topology.
- `state_image`: a byte image of the whole base KV, for "rejected operation
  leaves the store unchanged" assertions.
"""

from __future__ import annotations

from typing import Callable, Dict, List, Sequence, Tuple

import pytest
from prometheus_client import CollectorRegistry

from cointoss.elgamal import keygen
from cointoss.metrics import Metrics
from cointoss.simulate import Devnet, build_devnet, place_bet, roll_round
from cointoss.types.core import Point
from cointoss.utils.hash import address_from_label

RESOLVER_SK = 0xC0FFEE_1337


def open_round(net: Devnet) -> int:
    return net.game.start_next_round(net.resolver.seed())


def bet_all(net: Devnet, rid: int, sides: Sequence[bool]) -> List[int]:
    """Bettor i is labelled `b{i}` and uses randomness 1000 + i."""
    return [place_bet(net, f"b{i}", side, rid, randomness=1000 + i) for i, side in enumerate(sides)]


def rolled(net: Devnet, sides: Sequence[bool], coin: Sequence[int]) -> Tuple[int, List[int]]:
    """Open a round, bet `sides`, close betting and roll with the given coin bits."""
    rid = open_round(net)
    rs = bet_all(net, rid, sides)
    seed = net.game.randomness_ciphertext(rid)
    contributions = [net.resolver.contribution(b) for b in coin]
    net.clock.advance(net.game.config.phase_length)
    roll_round(net, "roller", rid, net.resolver.aggregate(seed, contributions))
    return rid, rs


@pytest.fixture()
def resolver_keys() -> Tuple[int, Point]:
    return keygen(RESOLVER_SK)


@pytest.fixture()
def registry() -> CollectorRegistry:
    return CollectorRegistry()


@pytest.fixture()
def metrics(registry: CollectorRegistry) -> Metrics:
    return Metrics(registry=registry)


@pytest.fixture()
def net(metrics: Metrics) -> Devnet:
    return build_devnet(private_key=RESOLVER_SK, metrics=metrics)


@pytest.fixture()
def net_reveal(metrics: Metrics) -> Devnet:
    return build_devnet(private_key=RESOLVER_SK, metrics=metrics, reveal_phase=True)


@pytest.fixture()
def addr() -> Callable[[str], bytes]:
    return address_from_label


@pytest.fixture()
def state_image() -> Callable[[Devnet], Dict[bytes, bytes]]:
    def _image(n: Devnet) -> Dict[bytes, bytes]:
        return dict(n.game.store.base.iter_prefix(b""))

    return _image
