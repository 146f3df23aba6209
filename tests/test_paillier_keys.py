import random

import gmpy2
import pytest

from mpcecdsa import paillier_keys
from mpcecdsa.errors import DomainError


def test_encrypt_decrypt(paillier_pair):
    ek, dk = paillier_pair
    m = random.randint(0, ek.n - 1)
    c, r = paillier_keys.encrypt(ek, m)
    assert paillier_keys.decrypt(dk, c) == m
    # same randomness, same ciphertext
    assert paillier_keys.encrypt(ek, m, r) == (c, r)


def test_homomorphic_ops(paillier_pair):
    ek, dk = paillier_pair
    m1, m2, k = (random.randint(0, 2**256) for _ in range(3))
    c1, _ = paillier_keys.encrypt(ek, m1)
    c2, _ = paillier_keys.encrypt(ek, m2)
    assert paillier_keys.decrypt(dk, paillier_keys.add(ek, c1, c2)) == m1 + m2
    assert paillier_keys.decrypt(dk, paillier_keys.mul(ek, c1, k)) == m1 * k


def test_gamma_pow(paillier_pair):
    ek, _ = paillier_pair
    x = random.randint(0, 2**1000)
    assert paillier_keys.gamma_pow(ek, x) == pow(ek.n + 1, x, ek.nsquare)


def test_out_of_range(paillier_pair):
    ek, dk = paillier_pair
    with pytest.raises(DomainError):
        paillier_keys.encrypt(ek, ek.n)
    with pytest.raises(DomainError):
        paillier_keys.encrypt(ek, -1)
    with pytest.raises(DomainError):
        paillier_keys.encrypt(ek, 1, r=0)
    with pytest.raises(DomainError):
        paillier_keys.decrypt(dk, ek.nsquare)
    with pytest.raises(DomainError):
        paillier_keys.decrypt(dk, 0)


def test_safe_prime():
    p = paillier_keys.generate_safe_prime(128)
    assert p.bit_length() == 128
    assert gmpy2.is_prime(p) and gmpy2.is_prime((p - 1) // 2)


def test_safe_prime_keypair():
    ek, dk = paillier_keys.generate_paillier_keypair(512, use_safe_prime=True)
    assert ek.n.bit_length() == 512
    assert gmpy2.is_prime((dk.p - 1) // 2) and gmpy2.is_prime((dk.q - 1) // 2)
    c, _ = paillier_keys.encrypt(ek, 42)
    assert paillier_keys.decrypt(dk, c) == 42


def test_private_key_from_factors(paillier_pair):
    ek, dk = paillier_pair
    restored = paillier_keys.private_key_from_factors(dk.p, dk.q)
    assert restored == dk
    assert paillier_keys.public_key_from_n(ek.n) == ek
