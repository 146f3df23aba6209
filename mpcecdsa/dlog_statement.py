"""
Setup for the range proofs: a composite modulus N~ with two generators
h1, h2 of the same subgroup, h2 = h1^xhi mod N~.

Each party publishes (N~, h1, h2) together with proofs that h2 is in the
group generated by h1 and vice versa. Without them a party could pick h1, h2
that let it forge range proofs addressed to itself.

Proof of knowledge of a discrete log modulo a composite (Girault style):
    https://eprint.iacr.org/2019/114.pdf appendix
"""

import math
from collections import namedtuple

from phe.util import powmod, invert, getprimeover

from .hashing import hash_to_int
from .paillier_keys import generate_safe_prime_pair
from .toyrand import sample_below, sample_unit

# statistical hiding of the witness in the response
SECURITY_BITS = 128
CHALLENGE_BITS = 256

DLogStatement = namedtuple('DLogStatement', ['n_tilde', 'h1', 'h2'])
CompositeDLogProof = namedtuple('CompositeDLogProof', ['x', 'y'])


def _generate_modulus(n_length: int, use_safe_prime: bool) -> (int, int):
    if use_safe_prime:
        p, q = generate_safe_prime_pair(n_length)
        return p, q
    while True:
        p = getprimeover(n_length // 2)
        q = getprimeover(n_length - n_length // 2)
        if p != q and (p * q).bit_length() == n_length:
            return p, q


def generate_h1_h2_n_tilde(n_length: int = 2048, use_safe_prime: bool = False) \
        -> (DLogStatement, int, int):
    """
    Returns the statement and the two secret exponents (xhi, xhi_inv) with
    h2 = h1^xhi and h1 = h2^xhi_inv.
    """
    p, q = _generate_modulus(n_length, use_safe_prime)
    n_tilde = p * q
    phi = (p - 1) * (q - 1)
    # a random square, so it lives in the subgroup of quadratic residues
    h1 = powmod(sample_unit(n_tilde), 2, n_tilde)
    while True:
        xhi = sample_below(phi)
        if xhi > 1 and math.gcd(xhi, phi) == 1:
            break
    xhi_inv = invert(xhi, phi)
    h2 = powmod(h1, xhi, n_tilde)
    return DLogStatement(n_tilde=n_tilde, h1=h1, h2=h2), xhi, xhi_inv


def _challenge(base: int, value: int, modulus: int, x: int) -> int:
    return hash_to_int(b"composite-dlog", base, value, modulus, x) % (1 << CHALLENGE_BITS)


def prove(base: int, value: int, modulus: int, secret: int) -> CompositeDLogProof:
    """Knowledge of secret with value = base^secret mod modulus."""
    r = sample_below(1 << (modulus.bit_length() + CHALLENGE_BITS + SECURITY_BITS))
    x = powmod(base, r, modulus)
    e = _challenge(base, value, modulus, x)
    return CompositeDLogProof(x=x, y=r + e * secret)


def verify(proof: CompositeDLogProof, base: int, value: int, modulus: int) -> bool:
    if not all(isinstance(v, int) for v in (proof.x, proof.y)):
        return False
    if not 0 < proof.x < modulus or proof.y < 0:
        return False
    if math.gcd(base, modulus) != 1 or math.gcd(value, modulus) != 1:
        return False
    e = _challenge(base, value, modulus, proof.x)
    return powmod(base, proof.y, modulus) == proof.x * powmod(value, e, modulus) % modulus


def verify_statement(statement: DLogStatement,
                     proof_base_h1: CompositeDLogProof,
                     proof_base_h2: CompositeDLogProof,
                     min_bits: int = 0) -> bool:
    n_tilde, h1, h2 = statement
    if not all(isinstance(v, int) for v in statement):
        return False
    if n_tilde.bit_length() < min_bits or not (1 < h1 < n_tilde and 1 < h2 < n_tilde) or h1 == h2:
        return False
    return (verify(proof_base_h1, h1, h2, n_tilde) and
            verify(proof_base_h2, h2, h1, n_tilde))
