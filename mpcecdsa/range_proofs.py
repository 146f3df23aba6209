"""
Range proofs for Paillier ciphertexts, GG18 appendix A:
https://eprint.iacr.org/2019/114.pdf

All three proofs are made against the *verifier's* DLogStatement (N~, h1, h2).
Notation: N is the Paillier modulus of the ciphertext, Gamma = N + 1, q the
curve order.

AliceProof      c = Enc(m; r) with m < q^3                          (A.1)
BobProof        c2 = c1^x * Enc(y; r) with x < q^3                  (A.2)
PDLwSlackProof  c = Enc(x; r) and Q = G' * [x]  (x < q^3, slack)
                https://eprint.iacr.org/2019/114.pdf section 4.3

Provers never check their own inputs; verifiers return False on anything
malformed and never raise.
"""

import math
from collections import namedtuple

from phe import paillier
from phe.util import powmod

from .dlog_statement import DLogStatement
from .ecdsa_op import Point, ec_add, ec_inv, ec_scalar_mul, order, valid
from .hashing import challenge
from .paillier_keys import gamma_pow, pow_inv
from .toyrand import sample_below, sample_unit

q3 = order ** 3
q7 = order ** 7

AliceProof = namedtuple('AliceProof', ['z', 'e', 's', 's1', 's2'])
BobProof = namedtuple('BobProof', ['t', 'z', 'e', 's', 's1', 's2', 't1', 't2'])
PDLwSlackProof = namedtuple('PDLwSlackProof', ['z', 'e', 's1', 's2', 's3'])


def _ints(*values) -> bool:
    return all(isinstance(v, int) and not isinstance(v, bool) for v in values)


def _in_unit_range(x: int, modulus: int) -> bool:
    return 0 < x < modulus and math.gcd(x, modulus) == 1


def _h1_h2(statement: DLogStatement, x: int, y: int) -> int:
    """h1^x * h2^y mod N~"""
    n_tilde = statement.n_tilde
    return powmod(statement.h1, x, n_tilde) * powmod(statement.h2, y, n_tilde) % n_tilde


def prove_alice(m: int, c: int, r: int, ek: paillier.PaillierPublicKey,
                statement: DLogStatement) -> AliceProof:
    N, NN = ek.n, ek.nsquare
    n_tilde = statement.n_tilde
    alpha = sample_below(q3)
    beta = sample_unit(N)
    gamma = sample_below(q3 * n_tilde)
    rho = sample_below(order * n_tilde)

    z = _h1_h2(statement, m, rho)
    u = gamma_pow(ek, alpha) * powmod(beta, N, NN) % NN
    w = _h1_h2(statement, alpha, gamma)
    e = challenge(b"alice", N, c, z, u, w, *statement)
    s = powmod(r, e, N) * beta % N
    return AliceProof(z=z, e=e, s=s, s1=e * m + alpha, s2=e * rho + gamma)


def verify_alice(proof: AliceProof, c: int, ek: paillier.PaillierPublicKey,
                 statement: DLogStatement) -> bool:
    if not _ints(*proof, c, *statement):
        return False
    N, NN = ek.n, ek.nsquare
    n_tilde = statement.n_tilde
    if not 0 <= proof.s1 <= q3 or proof.s2 < 0 or not 0 <= proof.e < order:
        return False
    if not (_in_unit_range(proof.z, n_tilde) and _in_unit_range(proof.s, N)
            and _in_unit_range(c, NN)):
        return False
    u = gamma_pow(ek, proof.s1) * powmod(proof.s, N, NN) * pow_inv(c, proof.e, NN) % NN
    w = _h1_h2(statement, proof.s1, proof.s2) * pow_inv(proof.z, proof.e, n_tilde) % n_tilde
    return proof.e == challenge(b"alice", N, c, proof.z, u, w, *statement)


def prove_bob(x: int, y: int, r: int, c1: int, c2: int, ek: paillier.PaillierPublicKey,
              statement: DLogStatement) -> BobProof:
    N, NN = ek.n, ek.nsquare
    n_tilde = statement.n_tilde
    alpha = sample_below(q3)
    rho = sample_below(order * n_tilde)
    rho_prim = sample_below(q3 * n_tilde)
    sigma = sample_below(order * n_tilde)
    beta = sample_unit(N)
    gamma = sample_below(q7)
    tau = sample_below(q3 * n_tilde)

    z = _h1_h2(statement, x, rho)
    z_prim = _h1_h2(statement, alpha, rho_prim)
    t = _h1_h2(statement, y, sigma)
    v = powmod(c1, alpha, NN) * gamma_pow(ek, gamma) * powmod(beta, N, NN) % NN
    w = _h1_h2(statement, gamma, tau)
    e = challenge(b"bob", N, c1, c2, z, z_prim, t, v, w, *statement)

    return BobProof(t=t, z=z, e=e,
                    s=powmod(r, e, N) * beta % N,
                    s1=e * x + alpha,
                    s2=e * rho + rho_prim,
                    t1=e * y + gamma,
                    t2=e * sigma + tau)


def verify_bob(proof: BobProof, c1: int, c2: int, ek: paillier.PaillierPublicKey,
               statement: DLogStatement) -> bool:
    if not _ints(*proof, c1, c2, *statement):
        return False
    N, NN = ek.n, ek.nsquare
    n_tilde = statement.n_tilde
    if not 0 <= proof.s1 <= q3 or not 0 <= proof.e < order:
        return False
    if min(proof.s2, proof.t1, proof.t2) < 0:
        return False
    if not (_in_unit_range(proof.z, n_tilde) and _in_unit_range(proof.t, n_tilde)
            and _in_unit_range(proof.s, N) and _in_unit_range(c1, NN)
            and _in_unit_range(c2, NN)):
        return False

    z_prim = _h1_h2(statement, proof.s1, proof.s2) * pow_inv(proof.z, proof.e, n_tilde) % n_tilde
    w = _h1_h2(statement, proof.t1, proof.t2) * pow_inv(proof.t, proof.e, n_tilde) % n_tilde
    v = (powmod(c1, proof.s1, NN) * powmod(proof.s, N, NN) * gamma_pow(ek, proof.t1)
         * pow_inv(c2, proof.e, NN)) % NN
    return proof.e == challenge(b"bob", N, c1, c2, proof.z, z_prim, proof.t, v, w, *statement)


def prove_pdl(x: int, r: int, c: int, ek: paillier.PaillierPublicKey,
              Q: Point, G: Point, statement: DLogStatement) -> PDLwSlackProof:
    N, NN = ek.n, ek.nsquare
    n_tilde = statement.n_tilde
    alpha = sample_below(q3)
    beta = sample_unit(N)
    rho = sample_below(order * n_tilde)
    gamma = sample_below(q3 * n_tilde)

    z = _h1_h2(statement, x, rho)
    u1 = ec_scalar_mul(G, alpha)
    u2 = gamma_pow(ek, alpha) * powmod(beta, N, NN) % NN
    u3 = _h1_h2(statement, alpha, gamma)
    e = challenge(b"pdl", G, Q, N, c, z, u1, u2, u3, *statement)
    return PDLwSlackProof(z=z, e=e,
                          s1=e * x + alpha,
                          s2=powmod(r, e, N) * beta % N,
                          s3=e * rho + gamma)


def verify_pdl(proof: PDLwSlackProof, c: int, ek: paillier.PaillierPublicKey,
               Q: Point, G: Point, statement: DLogStatement) -> bool:
    if not _ints(*proof, c, *statement) or not (valid(Q) and valid(G)):
        return False
    N, NN = ek.n, ek.nsquare
    n_tilde = statement.n_tilde
    if not 0 <= proof.s1 <= q3 or proof.s3 < 0 or not 0 <= proof.e < order:
        return False
    if not (_in_unit_range(proof.z, n_tilde) and _in_unit_range(proof.s2, N)
            and _in_unit_range(c, NN)):
        return False
    u1 = ec_add(ec_scalar_mul(G, proof.s1), ec_inv(ec_scalar_mul(Q, proof.e)))
    u2 = gamma_pow(ek, proof.s1) * powmod(proof.s2, N, NN) * pow_inv(c, proof.e, NN) % NN
    u3 = _h1_h2(statement, proof.s1, proof.s3) * pow_inv(proof.z, proof.e, n_tilde) % n_tilde
    return proof.e == challenge(b"pdl", G, Q, N, c, proof.z, u1, u2, u3, *statement)
