import random

import pytest

from mpcecdsa.ecdsa_op import order, pub_key_from_priv
from mpcecdsa.errors import ConfigurationError
from mpcecdsa.vss import (Polynomial, ShamirSecretSharing, VerifiableSS, check_parties, check_threshold,
                          lagrange_coefficient)


def generate_t_n():
    t = random.randint(1, 6)
    n = random.randint(t+1, 8)
    return t, n


def test_polynomial():
    for _ in range(5):
        t, n = generate_t_n()
        print(f"\nt={t} n={n}")
        poly = Polynomial(t, n)
        assert len(poly.coef) == t + 1
        assert len(poly.yval) == n
        assert poly.evaluate(0) == poly.secret
        x = 3
        assert poly.evaluate(x) == sum(c * x**k for k, c in enumerate(poly.coef)) % order


def test_share_and_validate():
    t, n = generate_t_n()
    secret = random.randint(1, order - 1)
    vss, shares = VerifiableSS.share(t, n, secret)
    assert vss.commitments[0] == pub_key_from_priv(secret)
    assert vss.parameters == ShamirSecretSharing(threshold=t, share_count=n)
    for i, share in enumerate(shares, start=1):
        assert vss.validate_share(share, i)
        assert not vss.validate_share((share + 1) % order, i)
    assert not vss.validate_share(shares[0], 2)


def test_reconstruct():
    t, n = 2, 5
    secret = random.randint(1, order - 1)
    vss, shares = VerifiableSS.share(t, n, secret)
    for parties in ([1, 2, 3], [5, 2, 4], [1, 2, 3, 4, 5]):
        assert vss.reconstruct(parties, [shares[i - 1] for i in parties]) == secret
    with pytest.raises(ConfigurationError):
        vss.reconstruct([1, 2], shares[:2])
    with pytest.raises(ConfigurationError):
        vss.reconstruct([1, 1, 2], [shares[0], shares[0], shares[1]])


def test_lagrange_coefficients_sum_to_one():
    parties = [2, 3, 4]
    assert sum(lagrange_coefficient(i, parties) for i in parties) % order == 1


@pytest.mark.parametrize("t,n", [(0, 3), (3, 3), (4, 3), (-1, 2)])
def test_bad_threshold(t, n):
    with pytest.raises(ConfigurationError):
        check_threshold(t, n)


@pytest.mark.parametrize("parties", [[1, 2], [1, 2, 3, 4], [1, 1, 2], [0, 1, 2], [1, 2, 5]])
def test_bad_signing_set(parties):
    with pytest.raises(ConfigurationError):
        check_parties(parties, 2, 4)


def test_well_formed():
    vss, _ = VerifiableSS.share(2, 4, 7)
    assert vss.is_well_formed()
    assert not VerifiableSS(vss.parameters, vss.commitments[:2]).is_well_formed()
