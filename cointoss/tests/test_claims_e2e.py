import pytest

from cointoss.errors import (
    BetNoteNotFound,
    ClaimAmountMismatch,
    LosingBet,
    PhaseMismatch,
    RevealNoteNotFound,
    RevealPhaseEnded,
)
from cointoss.simulate import run_round
from cointoss.types.core import RevealRecord
from cointoss.types.state import Phase
from cointoss.utils.hash import address_from_label

from .conftest import rolled

HEADS, TAILS = False, True
STAKE = 1337


def _resolved(net, sides, coin):
    rid, rs = rolled(net, sides, coin)
    net.resolver.answer(net.game)
    return rid, rs


def _sample(registry, name, **labels):
    return registry.get_sample_value(f"animica_cointoss_{name}", labels or None) or 0.0


def test_three_bettors_two_tails_winners(net, registry):
    # coin bits 1+0+0 -> odd -> tails
    summary = run_round(net, [HEADS, TAILS, TAILS], coin=[1, 0, 0])
    assert summary["status"] == "claimed"
    assert summary["result"] == "tails"
    assert summary["winner_count"] == 2
    assert summary["claim_amount"] == 2005
    assert summary["payouts"] == {"bettor-1-1": 2005, "bettor-1-2": 2005}
    # pool of 4011 minus two payouts leaves the division remainder
    assert summary["pool_remaining"] == 1
    assert summary["phase"] == "CLAIM"

    rnd = net.game.get_round(1)
    assert (rnd.bettor_count, rnd.reveal_count, rnd.claim_count) == (3, 2, 2)
    assert net.token.balance_of_private(address_from_label("bettor-1-0")) == 0
    assert _sample(registry, "claims_total", outcome="accepted") == 2
    assert _sample(registry, "reveals_total", outcome="accepted") == 2


def test_every_bettor_on_the_winning_side(net):
    summary = run_round(net, [HEADS, HEADS], coin=[1, 1])
    assert summary["result"] == "heads"
    assert summary["claim_amount"] == STAKE
    assert summary["pool_remaining"] == 0


def test_consecutive_rounds(net):
    first = run_round(net, [TAILS], coin=[1])
    second = run_round(net, [HEADS, TAILS], coin=[0, 0])
    assert (first["round_id"], second["round_id"]) == (1, 2)
    assert second["result"] == "heads"
    assert second["claim_amount"] == 2 * STAKE
    assert net.game.current_round_id() == 2


def test_no_winners_round_stays_awaiting_oracle(net):
    summary = run_round(net, [HEADS, HEADS], coin=[1, 0])
    assert summary["status"] == "no_winners"
    assert summary["phase"] == "AWAITING_ORACLE"
    assert net.game.pool_balance() == 2 * STAKE


def test_reveal_then_claim_pays_private_balance(net, state_image):
    rid, rs = _resolved(net, [HEADS, TAILS, TAILS], [1, 0, 0])
    winner = address_from_label("b1")

    rec = net.game.reveal(winner, rid, rs[1])
    assert rec == RevealRecord(owner=winner, round_id=rid, randomness=rs[1])
    assert net.inbox.notes_for(winner)[-1] == rec

    paid = net.game.claim(winner, rid, 2005, rs[1])
    assert paid == 2005
    assert net.token.balance_of_private(winner) == 2005
    assert net.game.pool_balance() == 3 * STAKE - 2005

    # a reveal note pays once
    before = state_image(net)
    with pytest.raises(RevealNoteNotFound):
        net.game.claim(winner, rid, 2005, rs[1])
    assert state_image(net) == before
    assert net.token.balance_of_private(winner) == 2005


def test_reveal_twice_is_rejected(net):
    rid, rs = _resolved(net, [TAILS], [1])
    bettor = address_from_label("b0")
    net.game.reveal(bettor, rid, rs[0])
    with pytest.raises(BetNoteNotFound):
        net.game.reveal(bettor, rid, rs[0])
    assert net.game.get_round(rid).reveal_count == 1


def test_losing_bet_cannot_reveal(net, state_image, registry):
    rid, rs = _resolved(net, [HEADS, TAILS, TAILS], [1, 0, 0])
    before = state_image(net)
    with pytest.raises(LosingBet):
        net.game.reveal(address_from_label("b0"), rid, rs[0])
    assert state_image(net) == before
    assert _sample(registry, "reveals_total", outcome="losing") == 1


def test_only_the_owner_can_reveal(net):
    rid, rs = _resolved(net, [TAILS, TAILS], [1])
    with pytest.raises(BetNoteNotFound):
        net.game.reveal(address_from_label("b0"), rid, rs[1])
    with pytest.raises(BetNoteNotFound):
        net.game.reveal(address_from_label("stranger"), rid, rs[0])


def test_claim_requires_exact_amount(net, state_image, registry):
    rid, rs = _resolved(net, [HEADS, TAILS, TAILS], [1, 0, 0])
    winner = address_from_label("b2")
    net.game.reveal(winner, rid, rs[2])
    before = state_image(net)
    for amount in (2004, 2006, 0):
        with pytest.raises(ClaimAmountMismatch):
            net.game.claim(winner, rid, amount, rs[2])
    assert state_image(net) == before
    assert net.token.balance_of_private(winner) == 0
    assert _sample(registry, "claims_total", outcome="bad_amount") == 3
    assert net.game.claim(winner, rid, 2005, rs[2]) == 2005


def test_claim_without_reveal(net):
    rid, rs = _resolved(net, [TAILS], [1])
    with pytest.raises(RevealNoteNotFound):
        net.game.claim(address_from_label("b0"), rid, STAKE, rs[0])


def test_reveal_and_claim_before_resolution(net):
    rid, rs = rolled(net, [TAILS], [1])
    bettor = address_from_label("b0")
    with pytest.raises(PhaseMismatch):
        net.game.reveal(bettor, rid, rs[0])
    with pytest.raises(PhaseMismatch):
        net.game.claim(bettor, rid, STAKE, rs[0])


def test_reveal_after_window_closes(net, state_image):
    rid, rs = _resolved(net, [TAILS, HEADS], [1])
    deadline = net.game.get_round(rid).phase_deadline
    net.clock.warp(deadline)
    before = state_image(net)
    with pytest.raises(RevealPhaseEnded):
        net.game.reveal(address_from_label("b0"), rid, rs[0])
    assert state_image(net) == before


def test_claim_has_no_deadline(net):
    rid, rs = _resolved(net, [TAILS, HEADS], [1])
    bettor = address_from_label("b0")
    net.game.reveal(bettor, rid, rs[0])
    net.clock.advance(10 * net.game.config.phase_length)
    assert net.game.claim(bettor, rid, 2 * STAKE, rs[0]) == 2 * STAKE


def test_claims_from_previous_round_after_next_round_starts(net):
    rid, rs = _resolved(net, [TAILS], [1])
    bettor = address_from_label("b0")
    net.game.reveal(bettor, rid, rs[0])
    net.game.start_next_round(net.resolver.seed())
    assert net.game.get_round(rid).phase == Phase.CLAIM
    assert net.game.claim(bettor, rid, STAKE, rs[0]) == STAKE
