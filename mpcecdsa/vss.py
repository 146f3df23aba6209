"""
Feldman verifiable secret sharing over secp256k1.

The threshold scheme is based on values t,n
t = minimum number of participants who cannot sign
n = total number of participants.

Each dealer picks a random polynomial of degree t whose free coefficient is
the secret, hands the evaluation at x = i to party i and publishes
G * [coef] for every coefficient. Party i checks its share with

    G * [share] == sum_k commitments[k] * [i^k]

See section 2.8 in https://eprint.iacr.org/2020/540.pdf
"""

from collections import namedtuple
from typing import List, Iterable

from .ecdsa_op import Point, O, ec_add, ec_scalar_mul, order, pub_key_from_priv, scalar_inv_mod_order, valid
from .errors import ConfigurationError
from .toyrand import int_sample

ShamirSecretSharing = namedtuple('ShamirSecretSharing', ['threshold', 'share_count'])


def check_threshold(t: int, n: int):
    if not (isinstance(t, int) and isinstance(n, int)):
        raise ConfigurationError("threshold and share count must be integers")
    if not 1 <= t < n:
        raise ConfigurationError(f"expected 1 <= t < n, got t={t} n={n}")


def check_parties(parties: Iterable[int], t: int, n: int, exact: bool = True) -> List[int]:
    """
    Validate a set of 1 indexed party indices. Signing needs exactly t+1 of them,
    reconstruction at least t+1.
    """
    parties = list(parties)
    if len(set(parties)) != len(parties):
        raise ConfigurationError(f"duplicate party indices in {parties}")
    if any(not isinstance(i, int) or not 1 <= i <= n for i in parties):
        raise ConfigurationError(f"party indices must be in [1, {n}], got {parties}")
    if len(parties) < t + 1 or (exact and len(parties) != t + 1):
        raise ConfigurationError(
            f"{'exactly' if exact else 'at least'} {t + 1} parties are required, got {len(parties)}")
    return parties


class Polynomial:
    def __init__(self, t: int, n: int, secret: int = None):
        # the coefficients chosen below represent the polynomial
        # self.coef = [c, b, a] for y = ax^2 + bx + c
        self.coef = [int_sample(order) for _ in range(t+1)]
        if secret is not None:
            self.coef[0] = secret % order
        # y coordinates for x = 1, 2, 3 ... n, evaluated with Horner's rule.
        self.yval = [self.evaluate(i) for i in range(1, n+1)]
        self.secret = self.coef[0]
        # each party will publish the public points for the coefficients of their secret polynomial
        self.vss = [pub_key_from_priv(x) for x in self.coef]

    def evaluate(self, x: int) -> int:
        y = self.coef[-1]
        for c in reversed(self.coef[:-1]):
            y = (y * x + c) % order
        return y


def lagrange_coefficient(x: int, participants: Iterable[int]) -> int:
    """
    Lagrange coefficient lambda_x at 0 for the set of participants.

    If each party participating in signing multiplies its share by this
    coefficient, they all as a group hold an additive share of the
    secret. For more details refer Page 14 Section 3.2 of GG20 paper.
    """
    num = 1
    denom = 1
    for i in participants:
        if i != x:
            num = num * i % order
            denom = denom * (i - x) % order
    return num * scalar_inv_mod_order(denom) % order


class VerifiableSS:
    def __init__(self, parameters: ShamirSecretSharing, commitments: List[Point]):
        self.parameters = parameters
        self.commitments = list(commitments)

    @classmethod
    def share(cls, t: int, n: int, secret: int) -> ("VerifiableSS", List[int]):
        poly = Polynomial(t, n, secret)
        return cls(ShamirSecretSharing(threshold=t, share_count=n), poly.vss), poly.yval

    @property
    def threshold(self) -> int:
        return self.parameters.threshold

    @property
    def share_count(self) -> int:
        return self.parameters.share_count

    def is_well_formed(self) -> bool:
        return (len(self.commitments) == self.threshold + 1 and
                all(valid(c) and c != O for c in self.commitments))

    def get_point_commitment(self, index: int) -> Point:
        """sum_k commitments[k] * [index^k], i.e. G * [f(index)]"""
        point = self.commitments[-1]
        for c in reversed(self.commitments[:-1]):
            point = ec_add(ec_scalar_mul(point, index), c)
        return point

    def validate_share(self, secret_share: int, index: int) -> bool:
        if not isinstance(secret_share, int) or not 0 <= secret_share < order:
            return False
        if not self.is_well_formed():
            return False
        return pub_key_from_priv(secret_share) == self.get_point_commitment(index)

    def reconstruct(self, indices: List[int], shares: List[int]) -> int:
        """Interpolate f(0) from at least t+1 (index, share) pairs. Indices are 1 based."""
        if len(indices) != len(shares):
            raise ConfigurationError("indices and shares must have the same length")
        indices = check_parties(indices, self.threshold, self.share_count, exact=False)
        return sum(lagrange_coefficient(i, indices) * s for i, s in zip(indices, shares)) % order

    def __eq__(self, other):
        return (isinstance(other, VerifiableSS) and self.parameters == other.parameters
                and self.commitments == other.commitments)

    def __repr__(self):
        return f"VerifiableSS(t={self.threshold}, n={self.share_count}, commitments={self.commitments})"
