"""
Proof that a Paillier modulus N is square free, i.e. gcd(N, phi(N)) = 1.
Implementation of Section 3.2 of the below:
https://eprint.iacr.org/2018/057.pdf
"""

import math
from collections import namedtuple
from functools import lru_cache
from hashlib import sha256
from typing import List

from phe import paillier
from phe.util import powmod, invert


salt = b"polysign"

# below values are from sections 6.2.3
# https://eprint.iacr.org/2018/987.pdf
m = 11
alpha = 6370


CorrectKeyProof = namedtuple('CorrectKeyProof', ['sigma_vec'])


def i2osp(x: int, xLen: int) -> bytes:
    """
    https://tools.ietf.org/html/rfc8017#section-4.1
    """
    assert xLen >= 0
    assert x < pow(256, xLen), "Input integer is too big for the xLen."
    # need to return big endian of the integer left padded with zero bytes.
    return x.to_bytes(xLen, byteorder='big')


def mgf1(seed: bytes, mask_len: int) -> bytes:
    """
    This implements the below:
    https://tools.ietf.org/html/rfc8017#appendix-B.2.1
    """

    assert mask_len <= pow(2, 32), "Mask Length is too long."
    hlen = 32  # SHA-256
    res = bytearray()
    for i in range(math.ceil(mask_len / hlen)):
        res.extend(sha256(seed + i2osp(i, 4)).digest())
    return bytes(res[:mask_len])


def fiat_shamir_seed(public_key_bytes: bytes, salt: bytes, index: int) -> bytes:
    return sha256(public_key_bytes + salt + index.to_bytes(4, byteorder='big')).digest()


def calc_rho_vec(N: int, salt: bytes, m: int) -> List[int]:
    byte_size_N = math.ceil(N.bit_length() / 8)
    n_bytes = N.to_bytes(byte_size_N, byteorder='big')
    return [int.from_bytes(mgf1(fiat_shamir_seed(n_bytes, salt, index), byte_size_N), byteorder='big') % N
            for index in range(m)]


@lru_cache(maxsize=None)
def primes_under(bound: int) -> List[int]:
    """Sieve of Eratosthenes."""
    sieve = bytearray([1]) * (bound + 1)
    sieve[0:2] = b"\x00\x00"
    for i in range(2, math.isqrt(bound) + 1):
        if sieve[i]:
            sieve[i*i::i] = bytearray(len(sieve[i*i::i]))
    return [i for i, is_prime in enumerate(sieve) if is_prime]


@lru_cache(maxsize=None)
def _small_primes_product(bound: int) -> int:
    return math.prod(primes_under(bound))


def prove(private_key: paillier.PaillierPrivateKey) -> CorrectKeyProof:
    """
    Return the Nth roots of m points derived from N.
    These can later be verified by verifiers.

    The points are deterministic, the Fiat - Shamir transform of section 4:
    https://eprint.iacr.org/2018/057.pdf
    """
    p, q = private_key.p, private_key.q
    assert p != q
    N = p * q
    totient = (p - 1) * (q - 1)
    N_inv_mod_totient = invert(N, totient)
    return CorrectKeyProof(
        sigma_vec=[powmod(rho, N_inv_mod_totient, N) for rho in calc_rho_vec(N, salt, m)])


def verify(proof: CorrectKeyProof, N: int) -> bool:
    if not isinstance(N, int) or N <= 1:
        return False
    # check that N is not divisible by any prime less than alpha
    if math.gcd(_small_primes_product(alpha), N) != 1:
        return False
    rho_vec = calc_rho_vec(N, salt, m)
    if len(rho_vec) != len(proof.sigma_vec):
        return False
    for rho, sigma in zip(rho_vec, proof.sigma_vec):
        if not isinstance(sigma, int) or not 0 < sigma < N:
            return False
        if rho != powmod(sigma, N, N):
            return False
    return True
