"""
Sigma protocols over secp256k1 made non interactive with Fiat-Shamir.

PedersenProof:
    knowledge of (m, r) such that com = G * [m] + H * [r].
HomoElGamalProof:
    for a statement (G, H, Y, D, E), knowledge of (x, r) such that
    D = H * [x] + Y * [r] and E = G * [r].
    GG18 phase 6 uses it with G = R, H = pedersen H, Y = generator to show
    that S_i = R * [sigma_i] opens the same sigma_i as T_i.
"""

from collections import namedtuple

from .ecdsa_op import O, ec_add, ec_scalar_mul, generator, order, pedersen_h, valid
from .hashing import challenge
from .toyrand import int_sample

PedersenProof = namedtuple('PedersenProof', ['e', 'a1', 'a2', 'com', 'z1', 'z2'])

HomoElGamalStatement = namedtuple('HomoElGamalStatement', ['G', 'H', 'Y', 'D', 'E'])
HomoElGamalProof = namedtuple('HomoElGamalProof', ['T', 'A3', 'z1', 'z2'])


def _is_scalar(x) -> bool:
    return isinstance(x, int) and 0 <= x < order


def pedersen_commit(m: int, r: int):
    return ec_add(ec_scalar_mul(generator, m), ec_scalar_mul(pedersen_h, r))


def prove_pedersen(m: int, r: int) -> PedersenProof:
    s1 = int_sample(order)
    s2 = int_sample(order)
    a1 = ec_scalar_mul(generator, s1)
    a2 = ec_scalar_mul(pedersen_h, s2)
    com = pedersen_commit(m, r)
    e = challenge(b"pedersen", generator, pedersen_h, com, a1, a2)
    return PedersenProof(e=e, a1=a1, a2=a2, com=com,
                         z1=(s1 + e * m) % order, z2=(s2 + e * r) % order)


def verify_pedersen(proof: PedersenProof) -> bool:
    if not all(valid(P) for P in (proof.a1, proof.a2, proof.com)):
        return False
    if not (_is_scalar(proof.z1) and _is_scalar(proof.z2)):
        return False
    e = challenge(b"pedersen", generator, pedersen_h, proof.com, proof.a1, proof.a2)
    if e != proof.e:
        return False
    lhs = pedersen_commit(proof.z1, proof.z2)
    rhs = ec_add(ec_add(proof.a1, proof.a2), ec_scalar_mul(proof.com, e))
    return lhs == rhs


def _homo_challenge(T, A3, statement: HomoElGamalStatement) -> int:
    return challenge(b"homo-elgamal", T, A3, *statement)


def prove_homo_elgamal(x: int, r: int, statement: HomoElGamalStatement) -> HomoElGamalProof:
    s1 = int_sample(order)
    s2 = int_sample(order)
    T = ec_add(ec_scalar_mul(statement.H, s1), ec_scalar_mul(statement.Y, s2))
    A3 = ec_scalar_mul(statement.G, s2)
    e = _homo_challenge(T, A3, statement)
    return HomoElGamalProof(T=T, A3=A3, z1=(s1 + e * x) % order, z2=(s2 + e * r) % order)


def verify_homo_elgamal(proof: HomoElGamalProof, statement: HomoElGamalStatement) -> bool:
    if not all(valid(P) for P in (proof.T, proof.A3) + tuple(statement)):
        return False
    if statement.G == O or not (_is_scalar(proof.z1) and _is_scalar(proof.z2)):
        return False
    e = _homo_challenge(proof.T, proof.A3, statement)
    z1H_plus_z2Y = ec_add(ec_scalar_mul(statement.H, proof.z1),
                          ec_scalar_mul(statement.Y, proof.z2))
    T_plus_eD = ec_add(proof.T, ec_scalar_mul(statement.D, e))
    z2G = ec_scalar_mul(statement.G, proof.z2)
    A3_plus_eE = ec_add(proof.A3, ec_scalar_mul(statement.E, e))
    return z1H_plus_z2Y == T_plus_eD and z2G == A3_plus_eE
