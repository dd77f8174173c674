import pytest
from py_ecc.optimized_bn128 import curve_order

from cointoss import elgamal
from cointoss.errors import BadOracleProof
from cointoss.oracle import ECKeyAuthenticator, OracleBridge, OracleQueue
from cointoss.types.core import INFINITY, CallbackDescriptor, Ciphertext, Point, ResultTriplet
from cointoss.utils.hash import address_from_label

from .conftest import RESOLVER_SK


# ---------------------------------------------------------------------------
# ElGamal helper
# ---------------------------------------------------------------------------


def test_keygen_is_reproducible_for_fixed_scalar():
    sk, pk = elgamal.keygen(RESOLVER_SK)
    assert sk == RESOLVER_SK
    assert pk == elgamal.derive_public_key(RESOLVER_SK)
    assert elgamal.is_valid_point(pk)
    assert not pk.is_infinity


def test_generator_round_trips_through_point():
    assert elgamal.derive_public_key(1) == elgamal.GENERATOR


@pytest.mark.parametrize("bad", [0, curve_order, -1])
def test_private_key_range(bad):
    with pytest.raises(ValueError):
        elgamal.derive_public_key(bad)


def test_off_curve_points_are_rejected():
    assert not elgamal.is_valid_point(Point(1, 1))
    assert elgamal.is_valid_point(INFINITY)


@pytest.mark.parametrize("m", [0, 1, 5])
def test_encrypt_decrypt_small(m):
    sk, pk = elgamal.keygen(RESOLVER_SK)
    ct = elgamal.encrypt(m, pk)
    assert elgamal.decrypt_small(ct, sk, max_message=8) == m


def test_encryption_is_randomized():
    _, pk = elgamal.keygen(RESOLVER_SK)
    assert elgamal.encrypt(1, pk, nonce=11) != elgamal.encrypt(1, pk, nonce=12)
    assert elgamal.encrypt(1, pk, nonce=11) == elgamal.encrypt(1, pk, nonce=11)


def test_homomorphic_sum_and_parity():
    sk, pk = elgamal.keygen(RESOLVER_SK)
    seed = elgamal.encrypt_zero(pk)
    bits = [1, 0, 1, 1]
    agg = elgamal.aggregate((elgamal.encrypt(b, pk) for b in bits), start=seed)
    assert elgamal.decrypt_small(agg, sk) == 3
    assert elgamal.coin_side(agg, sk) is True


def test_empty_aggregate_is_infinity_pair():
    agg = elgamal.aggregate([])
    assert agg == Ciphertext(INFINITY, INFINITY)


def test_decrypt_outside_search_range_raises():
    sk, pk = elgamal.keygen(RESOLVER_SK)
    ct = elgamal.encrypt(10, pk)
    with pytest.raises(ValueError):
        elgamal.decrypt_small(ct, sk, max_message=3)


def test_wrong_key_does_not_decrypt_to_plaintext():
    sk, pk = elgamal.keygen(RESOLVER_SK)
    ct = elgamal.encrypt(1, pk)
    with pytest.raises(ValueError):
        elgamal.decrypt_small(ct, sk + 1, max_message=16)


# ---------------------------------------------------------------------------
# Authentication / bridge
# ---------------------------------------------------------------------------


def test_authenticator_accepts_matching_key():
    sk, pk = elgamal.keygen(RESOLVER_SK)
    ECKeyAuthenticator().authenticate(sk, pk)


@pytest.mark.parametrize("offset", [1, -1])
def test_authenticator_rejects_other_keys(offset):
    sk, pk = elgamal.keygen(RESOLVER_SK)
    with pytest.raises(BadOracleProof):
        ECKeyAuthenticator().authenticate(sk + offset, pk)


@pytest.mark.parametrize("bad", [0, curve_order, curve_order + 5])
def test_authenticator_rejects_out_of_range_keys(bad):
    _, pk = elgamal.keygen(RESOLVER_SK)
    with pytest.raises(BadOracleProof):
        ECKeyAuthenticator().authenticate(bad, pk)


def test_authenticator_rejects_invalid_registered_key():
    with pytest.raises(BadOracleProof):
        ECKeyAuthenticator().authenticate(RESOLVER_SK, Point(1, 1))


def test_bridge_submits_and_resolves():
    sk, pk = elgamal.keygen(RESOLVER_SK)
    queue = OracleQueue()
    bridge = OracleBridge(queue)
    game = address_from_label("game")
    cb = CallbackDescriptor(target=game, round_id=4)
    ct = elgamal.encrypt_zero(pk)

    req = bridge.submit(round_id=4, ciphertext=ct, callback=cb, requester=game, fee=100)
    assert len(queue) == 1 and queue.peek() == req
    assert req.to_dict()["callback"]["round_id"] == 4

    assert bridge.resolve(ResultTriplet(result=True, winner_count=2, private_key=sk), pk) == (True, 2)
    with pytest.raises(BadOracleProof):
        bridge.resolve(ResultTriplet(result=True, winner_count=2, private_key=sk + 1), pk)

    assert queue.pop() == req
    assert queue.answered == [4]
    with pytest.raises(LookupError):
        queue.pop()


def test_bridge_uses_injected_authenticator():
    calls = []

    class _Recorder:
        def authenticate(self, private_key, public_key):
            calls.append(private_key)

    bridge = OracleBridge(OracleQueue(), authenticator=_Recorder())
    assert bridge.resolve(ResultTriplet(result=False, winner_count=1, private_key=7), INFINITY) == (False, 1)
    assert calls == [7]
