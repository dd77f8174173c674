import pytest

from cointoss.errors import DuplicateRandomness
from cointoss.store import InMemoryKV
from cointoss.store.journal import Journal
from cointoss.store.rounds import GameStore
from cointoss.types.core import BetRecord, Ciphertext, INFINITY, RoundId
from cointoss.types.state import Phase, Round
from cointoss.utils.hash import address_from_label

ALICE = address_from_label("alice")


def test_writes_are_invisible_to_base_until_commit():
    base = InMemoryKV()
    j = Journal(base)
    j.begin()
    j.put(b"a", b"1")
    assert j.get(b"a") == b"1"
    assert base.get(b"a") is None
    j.commit()
    assert base.get(b"a") == b"1"
    assert j.depth() == 1


def test_revert_discards_top_layer_only():
    base = InMemoryKV()
    base.put(b"k", b"base")
    j = Journal(base)
    j.begin()
    j.put(b"k", b"outer")
    j.begin()
    j.put(b"k", b"inner")
    j.delete(b"x")
    j.revert()
    assert j.get(b"k") == b"outer"
    j.commit()
    assert base.get(b"k") == b"outer"


def test_delete_is_staged_and_hides_base_value():
    base = InMemoryKV()
    base.put(b"p1", b"v")
    base.put(b"p2", b"w")
    j = Journal(base)
    j.begin()
    j.delete(b"p1")
    j.put(b"p3", b"z")
    assert not j.has(b"p1")
    assert list(j.iter_prefix(b"p")) == [(b"p2", b"w"), (b"p3", b"z")]
    j.commit()
    assert base.get(b"p1") is None
    assert list(base.iter_prefix(b"p")) == [(b"p2", b"w"), (b"p3", b"z")]


def test_checkpoint_reverts_on_exception():
    base = InMemoryKV()
    j = Journal(base)
    with pytest.raises(RuntimeError):
        with j.checkpoint():
            j.put(b"a", b"1")
            raise RuntimeError("boom")
    assert j.get(b"a") is None
    assert len(base) == 0
    assert j.depth() == 1


def test_nested_checkpoint_failure_keeps_outer_writes():
    base = InMemoryKV()
    j = Journal(base)
    with j.checkpoint():
        j.put(b"outer", b"1")
        with pytest.raises(KeyError):
            with j.checkpoint():
                j.put(b"inner", b"2")
                raise KeyError("inner")
    assert base.get(b"outer") == b"1"
    assert base.get(b"inner") is None


def test_revert_to_marker_rejects_zero():
    j = Journal(InMemoryKV())
    with pytest.raises(ValueError):
        j.revert_to(0)


def test_game_store_atomic_rolls_back_every_bucket():
    store = GameStore()
    with store.atomic() as st:
        st.rounds.put(Round(id=RoundId(1), phase=Phase.BET, phase_deadline=10))
        st.rounds.set_current(1)
        st.accumulator.seed(1, Ciphertext(INFINITY, INFINITY))
    before = dict(store.base.iter_prefix(b""))

    bet = BetRecord(owner=ALICE, round_id=RoundId(1), side=True, randomness=42)
    with pytest.raises(DuplicateRandomness):
        with store.atomic() as st:
            st.notes.put_bet(bet)
            st.rounds.put(Round(id=RoundId(1), phase=Phase.BET, phase_deadline=10, bettor_count=1))
            st.notes.put_bet(bet)

    assert dict(store.base.iter_prefix(b"")) == before
    assert store.rounds.get(1).bettor_count == 0
    assert not store.notes.has_bet(1, 42)
    assert store.nullifiers.size() == 0
