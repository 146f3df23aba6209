"""
Paillier helpers on top of python-paillier (phe).

The MtA sub protocol and the range proofs need the raw ciphertexts and the
encryption randomness, so everything here works with phe's raw_encrypt /
raw_decrypt instead of EncryptedNumber.
"""

import logging
import secrets

import gmpy2
from phe import paillier
from phe.util import powmod, invert

from .errors import DomainError

logger = logging.getLogger(__name__)


def generate_safe_prime(bits: int) -> int:
    """
    Random safe prime p = 2q + 1 of exactly `bits` bits.
    """
    while True:
        candidate = secrets.randbits(bits - 1) | (1 << (bits - 2)) | 1
        q = int(gmpy2.next_prime(candidate))
        if q.bit_length() != bits - 1:
            continue
        p = 2 * q + 1
        if gmpy2.is_prime(p, 50):
            return p


def generate_safe_prime_pair(n_length: int) -> (int, int):
    while True:
        p = generate_safe_prime(n_length // 2)
        q = generate_safe_prime(n_length - n_length // 2)
        if p != q and (p * q).bit_length() == n_length:
            return p, q


def generate_paillier_keypair(n_length: int = 2048, use_safe_prime: bool = False) \
        -> (paillier.PaillierPublicKey, paillier.PaillierPrivateKey):
    if not use_safe_prime:
        return paillier.generate_paillier_keypair(n_length=n_length)
    logger.debug("searching safe primes for a %d bit Paillier modulus", n_length)
    p, q = generate_safe_prime_pair(n_length)
    public_key = paillier.PaillierPublicKey(p * q)
    return public_key, paillier.PaillierPrivateKey(public_key, p, q)


def public_key_from_n(n: int) -> paillier.PaillierPublicKey:
    return paillier.PaillierPublicKey(n)


def private_key_from_factors(p: int, q: int) -> paillier.PaillierPrivateKey:
    return paillier.PaillierPrivateKey(public_key_from_n(p * q), p, q)


def check_ciphertext(ek: paillier.PaillierPublicKey, c: int):
    if not isinstance(c, int) or not 0 < c < ek.nsquare:
        raise DomainError("Ciphertext outside of the Paillier modulus range")


def encrypt(ek: paillier.PaillierPublicKey, m: int, r: int = None) -> (int, int):
    """
    Returns (ciphertext, randomness) with ciphertext = (1 + N)^m * r^N mod N^2.
    """
    if not isinstance(m, int) or not 0 <= m < ek.n:
        raise DomainError("Plaintext outside of the Paillier modulus range")
    if r is None:
        r = ek.get_random_lt_n()
    elif not 0 < r < ek.n:
        raise DomainError("Encryption randomness outside of Z*_N")
    return int(ek.raw_encrypt(m, r_value=r)), int(r)


def decrypt(dk: paillier.PaillierPrivateKey, c: int) -> int:
    check_ciphertext(dk.public_key, c)
    return int(dk.raw_decrypt(c))


def add(ek: paillier.PaillierPublicKey, c1: int, c2: int) -> int:
    """Enc(m1) + Enc(m2) = Enc(m1 + m2)"""
    return c1 * c2 % ek.nsquare


def mul(ek: paillier.PaillierPublicKey, c: int, k: int) -> int:
    """k * Enc(m) = Enc(k * m)"""
    return powmod(c, k, ek.nsquare)


def gamma_pow(ek: paillier.PaillierPublicKey, x: int) -> int:
    """(1 + N)^x mod N^2 for any non negative x."""
    return (1 + (x % ek.n) * ek.n) % ek.nsquare


def pow_inv(base: int, e: int, modulus: int) -> int:
    """base^-e mod modulus; raises ZeroDivisionError if base is not a unit."""
    return powmod(invert(base, modulus), e, modulus)
