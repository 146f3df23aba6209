"""
This module is an implementation of the Schnorr's NIZK over elliptic curve SECP256k1
Please refer to https://tools.ietf.org/html/rfc8235#section-3.2

"""

from collections import namedtuple

from .ecdsa_op import ec_add, ec_scalar_mul, O, order, pub_key_from_priv, generator, valid
from .hashing import challenge
from .toyrand import int_sample


SchnorrNIZK = namedtuple('SchnorrNIZK', ['V', 'A', 'r', 'c', 'user_id'])


def _challenge(V, A, user_id: bytes) -> int:
    return challenge(b"schnorr", generator, V, A, user_id)


def prove(secret: int, user_id: bytes = b"DEFAULT") -> SchnorrNIZK:
    """
    Non Interactive zero knowledge proof that the prover knows the secret
    behind V = G * [secret].
    """
    v = int_sample(order)
    A = pub_key_from_priv(v)
    V = pub_key_from_priv(secret)
    # calculate challenge use Fiat Shamir Transform.
    c = _challenge(V, A, user_id)
    r = (v + c * secret) % order
    return SchnorrNIZK(V=V, A=A, r=r, c=c, user_id=user_id)


def verify(proof: SchnorrNIZK) -> bool:
    """
    Verify the above zero knowledge proof.
    """
    if not (valid(proof.V) and valid(proof.A)) or proof.A == O:
        return False
    if not isinstance(proof.r, int) or not 0 <= proof.r < order:
        return False
    if proof.c != _challenge(proof.V, proof.A, proof.user_id):
        return False
    # verify G * [r] = A + V * [c]
    return pub_key_from_priv(proof.r) == ec_add(proof.A, ec_scalar_mul(proof.V, proof.c))
