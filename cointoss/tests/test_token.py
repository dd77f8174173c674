import pytest

from cointoss.errors import InsufficientBalance, TokenError, Unauthorized
from cointoss.token import ACTION_ESCROW, ACTION_UNSHIELD, InMemoryToken, Transfer
from cointoss.utils.hash import address_from_label

OWNER = address_from_label("owner")
GAME = address_from_label("game")
ORACLE = address_from_label("oracle")


@pytest.fixture()
def token():
    t = InMemoryToken()
    t.mint_private(OWNER, 1000)
    return t


def test_unshield_with_witness_moves_private_to_public(token):
    token.authorize(OWNER, GAME, ACTION_UNSHIELD, 300, nonce=1)
    token.unshield(OWNER, GAME, 300, 1, caller=GAME)
    assert token.balance_of_private(OWNER) == 700
    assert token.balance_of_public(GAME) == 300
    assert token.transfers == [Transfer(ACTION_UNSHIELD, OWNER, GAME, 300)]
    assert token.total_supply() == 1000


def test_witness_is_single_use(token):
    token.authorize(OWNER, GAME, ACTION_ESCROW, 10, nonce=7)
    token.escrow(OWNER, ORACLE, 10, 7, caller=GAME)
    with pytest.raises(Unauthorized):
        token.escrow(OWNER, ORACLE, 10, 7, caller=GAME)
    # a burned nonce cannot be re-authorized
    with pytest.raises(Unauthorized):
        token.authorize(OWNER, GAME, ACTION_ESCROW, 10, nonce=7)
    assert token.balance_of_private(ORACLE) == 10


@pytest.mark.parametrize(
    "spender,action,amount",
    [
        (ORACLE, ACTION_ESCROW, 10),   # wrong spender
        (GAME, ACTION_UNSHIELD, 10),   # wrong action
        (GAME, ACTION_ESCROW, 11),     # wrong amount
    ],
)
def test_witness_binds_spender_action_and_amount(token, spender, action, amount):
    token.authorize(OWNER, spender, action, amount, nonce=3)
    with pytest.raises(Unauthorized):
        token.escrow(OWNER, ORACLE, 10, 3, caller=GAME)
    assert token.balance_of_private(OWNER) == 1000


def test_owner_needs_no_witness_but_nonce_is_burned(token):
    token.escrow(OWNER, ORACLE, 5, 9, caller=OWNER)
    assert token.balance_of_private(OWNER) == 995
    with pytest.raises(Unauthorized):
        token.escrow(OWNER, ORACLE, 5, 9, caller=OWNER)


def test_insufficient_balance_keeps_the_witness(token):
    token.authorize(OWNER, GAME, ACTION_UNSHIELD, 2000, nonce=1)
    with pytest.raises(InsufficientBalance) as ei:
        token.unshield(OWNER, GAME, 2000, 1, caller=GAME)
    assert isinstance(ei.value, TokenError)
    assert ei.value.details["available"] == 1000
    assert token.transfers == []
    token.mint_private(OWNER, 1000)
    token.unshield(OWNER, GAME, 2000, 1, caller=GAME)
    assert token.balance_of_public(GAME) == 2000


def test_shield_only_by_owner(token):
    token.mint_public(GAME, 50)
    with pytest.raises(Unauthorized):
        token.shield(GAME, OWNER, 50, caller=OWNER)
    with pytest.raises(InsufficientBalance):
        token.shield(GAME, OWNER, 51, caller=GAME)
    token.shield(GAME, OWNER, 50, caller=GAME)
    assert token.balance_of_public(GAME) == 0
    assert token.balance_of_private(OWNER) == 1050


@pytest.mark.parametrize("amount", [-1, True, 1.5])
def test_amounts_must_be_non_negative_ints(token, amount):
    with pytest.raises(ValueError):
        token.mint_private(OWNER, amount)
