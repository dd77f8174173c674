"""
cointoss.elgamal
================

Exponential ElGamal on BN254 G1 (alt_bn128), used off-protocol by bettors,
round operators and the resolver. The round state machine never imports this
module: on-protocol, ciphertexts are opaque values.

Scheme (G = G1 generator, n = group order):

    keygen:   sk ∈ [1, n),  PK = sk·G
    encrypt:  r ∈ [1, n),   (C1, C2) = (r·G, m·G + r·PK)
    add:      (C1, C2) + (D1, D2) = (C1 + D1, C2 + D2)
    decrypt:  M = C2 - sk·C1 = m·G, then m by a bounded discrete-log search

Each bettor contributes an encryption of a random bit; the coin side is the
parity of the decrypted sum.

Points cross the module boundary as `cointoss.types.Point` (affine integer
coordinates, infinity = (0, 0)); internally `py_ecc.optimized_bn128`
Jacobian tuples are used.
"""

from __future__ import annotations

import secrets
from typing import Any, Iterable, Optional, Tuple

from py_ecc.optimized_bn128 import FQ, G1, Z1, add as _add, b as _B, curve_order, eq as _eq
from py_ecc.optimized_bn128 import field_modulus, is_inf, is_on_curve, multiply as _mul
from py_ecc.optimized_bn128 import neg as _neg, normalize

from .types.core import INFINITY, Ciphertext, Point

G1Point = Any  # opaque py_ecc Jacobian point

# Upper bound for the discrete-log search; one contribution per bettor.
DEFAULT_MAX_MESSAGE = 4096

__all__ = [
    "DEFAULT_MAX_MESSAGE",
    "GENERATOR",
    "random_scalar",
    "keygen",
    "derive_public_key",
    "is_valid_point",
    "encrypt",
    "encrypt_zero",
    "add",
    "aggregate",
    "decrypt_small",
    "coin_side",
]


# ---- conversions ------------------------------------------------------------


def to_point(P: G1Point) -> Point:
    if is_inf(P):
        return INFINITY
    x, y = normalize(P)
    return Point(int(x.n), int(y.n))


def from_point(p: Point) -> G1Point:
    if p.is_infinity:
        return Z1
    if p.x >= field_modulus or p.y >= field_modulus:
        raise ValueError("point coordinate exceeds the field modulus")
    P = (FQ(p.x), FQ(p.y), FQ(1))
    if not is_on_curve(P, _B):
        raise ValueError("point is not on BN254 G1")
    return P


GENERATOR = to_point(G1)


def is_valid_point(p: Point) -> bool:
    try:
        from_point(p)
    except ValueError:
        return False
    return True


# ---- keys -------------------------------------------------------------------


def random_scalar() -> int:
    """Uniform scalar in [1, n)."""
    return secrets.randbelow(curve_order - 1) + 1


def derive_public_key(private_key: int) -> Point:
    if not isinstance(private_key, int) or not (1 <= private_key < curve_order):
        raise ValueError("private key must be in [1, curve_order)")
    return to_point(_mul(G1, private_key))


def keygen(private_key: Optional[int] = None) -> Tuple[int, Point]:
    """Return (sk, PK). A fixed `private_key` gives reproducible devnet keys."""
    sk = random_scalar() if private_key is None else int(private_key)
    return sk, derive_public_key(sk)


# ---- encryption -------------------------------------------------------------


def encrypt(message: int, public_key: Point, nonce: Optional[int] = None) -> Ciphertext:
    if message < 0:
        raise ValueError("message must be non-negative")
    if public_key.is_infinity:
        raise ValueError("public key must not be the point at infinity")
    r = random_scalar() if nonce is None else int(nonce) % curve_order
    if r == 0:
        raise ValueError("nonce must be non-zero modulo the group order")
    pk = from_point(public_key)
    c1 = _mul(G1, r)
    c2 = _add(_mul(G1, message), _mul(pk, r))
    return Ciphertext(to_point(c1), to_point(c2))


def encrypt_zero(public_key: Point, nonce: Optional[int] = None) -> Ciphertext:
    """Encryption of 0; the usual seed for a fresh round."""
    return encrypt(0, public_key, nonce)


def add(a: Ciphertext, b: Ciphertext) -> Ciphertext:
    """Homomorphic addition of the plaintexts."""
    c1 = _add(from_point(a.c1), from_point(b.c1))
    c2 = _add(from_point(a.c2), from_point(b.c2))
    return Ciphertext(to_point(c1), to_point(c2))


def aggregate(cts: Iterable[Ciphertext], start: Optional[Ciphertext] = None) -> Ciphertext:
    acc = start if start is not None else Ciphertext(INFINITY, INFINITY)
    for ct in cts:
        acc = add(acc, ct)
    return acc


# ---- decryption -------------------------------------------------------------


def decrypt_small(ct: Ciphertext, private_key: int, max_message: int = DEFAULT_MAX_MESSAGE) -> int:
    """
    Recover m with m·G = C2 - sk·C1 for 0 <= m <= max_message.

    Raises ValueError when the plaintext lies outside the search range.
    """
    if not (1 <= private_key < curve_order):
        raise ValueError("private key must be in [1, curve_order)")
    M = _add(from_point(ct.c2), _neg(_mul(from_point(ct.c1), private_key)))
    acc = Z1
    for m in range(max_message + 1):
        if _eq(acc, M):
            return m
        acc = _add(acc, G1)
    raise ValueError(f"plaintext exceeds {max_message}")


def coin_side(ct: Ciphertext, private_key: int, max_message: int = DEFAULT_MAX_MESSAGE) -> bool:
    """Parity of the decrypted sum: False = heads, True = tails."""
    return decrypt_small(ct, private_key, max_message) % 2 == 1
