import random

from mpcecdsa.ecdsa_op import ec_add, ec_scalar_mul, generator, order, pedersen_h, pub_key_from_priv
from mpcecdsa.sigma_proofs import (HomoElGamalStatement, pedersen_commit, prove_homo_elgamal,
                                   prove_pedersen, verify_homo_elgamal, verify_pedersen)


def rand_scalar():
    return random.randint(1, order - 1)


def test_pedersen_proof():
    m, r = rand_scalar(), rand_scalar()
    proof = prove_pedersen(m, r)
    assert proof.com == pedersen_commit(m, r)
    assert verify_pedersen(proof)
    assert not verify_pedersen(proof._replace(com=pedersen_commit(m + 1, r)))
    assert not verify_pedersen(proof._replace(z1=(proof.z1 + 1) % order))


def test_homo_elgamal_proof():
    # same shape as signing: G = R, H = pedersen H, Y = generator
    R = pub_key_from_priv(rand_scalar())
    sigma, l = rand_scalar(), rand_scalar()
    T = ec_add(ec_scalar_mul(generator, sigma), ec_scalar_mul(pedersen_h, l))
    S = ec_scalar_mul(R, sigma)
    statement = HomoElGamalStatement(G=R, H=pedersen_h, Y=generator, D=T, E=S)
    proof = prove_homo_elgamal(l, sigma, statement)
    assert verify_homo_elgamal(proof, statement)

    # S built from a different sigma
    wrong = statement._replace(E=ec_scalar_mul(R, sigma + 1))
    assert not verify_homo_elgamal(proof, wrong)
    assert not verify_homo_elgamal(prove_homo_elgamal(l, sigma + 1, wrong), wrong)
