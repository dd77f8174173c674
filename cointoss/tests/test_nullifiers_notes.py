import pytest

from cointoss.constants import KIND_BET, KIND_BET_SPEND, KIND_REVEAL_SPEND
from cointoss.errors import BetNoteNotFound, DuplicateRandomness, RevealNoteNotFound
from cointoss.store import InMemoryKV
from cointoss.store.notes import NoteLedger
from cointoss.store.nullifiers import NullifierSet
from cointoss.types.core import BetRecord, RevealRecord, RoundId
from cointoss.utils.hash import address_from_label, nullifier

ALICE = address_from_label("alice")
BOB = address_from_label("bob")


def _ledger():
    kv = InMemoryKV()
    nulls = NullifierSet(kv)
    return NoteLedger(kv, nulls), nulls


# ---------------------------------------------------------------------------
# Nullifier derivation
# ---------------------------------------------------------------------------


def test_nullifier_is_deterministic_and_32_bytes():
    a = nullifier(KIND_BET, 1, 7)
    assert a == nullifier(KIND_BET, 1, 7)
    assert len(a) == 32


def test_nullifier_kinds_rounds_and_randomness_are_separated():
    tags = {
        nullifier(KIND_BET, 1, 7),
        nullifier(KIND_BET_SPEND, 1, 7),
        nullifier(KIND_REVEAL_SPEND, 1, 7),
        nullifier(KIND_BET, 2, 7),
        nullifier(KIND_BET, 1, 8),
        # concatenation ambiguity: (1, 17) vs (11, 7)
        nullifier(KIND_BET, 11, 7),
        nullifier(KIND_BET, 1, 17),
    }
    assert len(tags) == 7


def test_nullifier_rejects_unknown_kind():
    with pytest.raises(ValueError):
        nullifier(b"mint", 1, 1)


# ---------------------------------------------------------------------------
# NullifierSet
# ---------------------------------------------------------------------------


def test_nullifier_set_is_append_only():
    nulls = NullifierSet(InMemoryKV())
    n = nullifier(KIND_BET, 1, 1)
    assert not nulls.seen(n)
    nulls.insert(n)
    assert nulls.seen(n)
    assert n in nulls
    assert nulls.size() == 1
    with pytest.raises(KeyError):
        nulls.insert(n)
    assert nulls.size() == 1


def test_nullifier_set_rejects_malformed_tags():
    nulls = NullifierSet(InMemoryKV())
    with pytest.raises(ValueError):
        nulls.insert(b"short")


# ---------------------------------------------------------------------------
# NoteLedger
# ---------------------------------------------------------------------------


def test_bet_uniqueness_per_round_and_randomness():
    ledger, _ = _ledger()
    ledger.put_bet(BetRecord(owner=ALICE, round_id=RoundId(1), side=True, randomness=5))
    with pytest.raises(DuplicateRandomness):
        # same (round, randomness) even from another owner and side
        ledger.put_bet(BetRecord(owner=BOB, round_id=RoundId(1), side=False, randomness=5))
    # same randomness in another round is fine
    ledger.put_bet(BetRecord(owner=ALICE, round_id=RoundId(2), side=True, randomness=5))
    assert ledger.has_bet(1, 5) and ledger.has_bet(2, 5)
    assert not ledger.has_bet(1, 6)


def test_bet_lookup_requires_owner_and_is_single_use():
    ledger, _ = _ledger()
    rec = BetRecord(owner=ALICE, round_id=RoundId(3), side=False, randomness=99)
    ledger.put_bet(rec)

    assert ledger.find_unconsumed_bet(BOB, 3, 99) is None
    assert ledger.find_unconsumed_bet(ALICE, 3, 98) is None
    found = ledger.find_unconsumed_bet(ALICE, 3, 99)
    assert found == rec

    ledger.consume_bet(found)
    assert ledger.is_bet_consumed(3, 99)
    assert ledger.find_unconsumed_bet(ALICE, 3, 99) is None
    with pytest.raises(BetNoteNotFound):
        ledger.consume_bet(found)
    # records are never deleted
    assert ledger.get_bet(3, 99) == rec


def test_reveal_notes_consume_once():
    ledger, nulls = _ledger()
    rec = RevealRecord(owner=ALICE, round_id=RoundId(1), randomness=1234)
    ledger.put_reveal(rec)
    assert ledger.find_unconsumed_reveal(ALICE, 1, 1234) == rec
    ledger.consume_reveal(rec)
    assert ledger.find_unconsumed_reveal(ALICE, 1, 1234) is None
    with pytest.raises(RevealNoteNotFound):
        ledger.consume_reveal(rec)
    assert nulls.seen(nullifier(KIND_REVEAL_SPEND, 1, 1234))
    assert ledger.reveals_for_round(1) == [rec]


def test_bets_for_round_lists_only_that_round():
    ledger, _ = _ledger()
    for r in (3, 1, 2):
        ledger.put_bet(BetRecord(owner=ALICE, round_id=RoundId(7), side=bool(r % 2), randomness=r))
    ledger.put_bet(BetRecord(owner=BOB, round_id=RoundId(8), side=True, randomness=1))
    got = ledger.bets_for_round(7)
    assert [b.randomness for b in got] == [1, 2, 3]
    assert all(b.round_id == 7 for b in got)
