import random

from mpcecdsa import paillier_keys
from mpcecdsa.ecdsa_op import ec_scalar_mul, order, pub_key_from_priv
from mpcecdsa.range_proofs import (q3, prove_alice, prove_bob, prove_pdl, verify_alice, verify_bob,
                                   verify_pdl)


def test_alice_proof(paillier_pair, statements):
    ek, _ = paillier_pair
    verifier_statement, other_statement = statements
    m = random.randint(0, order - 1)
    c, r = paillier_keys.encrypt(ek, m)
    proof = prove_alice(m, c, r, ek, verifier_statement)
    assert verify_alice(proof, c, ek, verifier_statement)
    # made for another verifier
    assert not verify_alice(proof, c, ek, other_statement)
    # different ciphertext
    c2, _ = paillier_keys.encrypt(ek, m)
    assert not verify_alice(proof, c2, ek, verifier_statement)


def test_alice_proof_rejects_large_plaintext(paillier_pair, statements):
    ek, _ = paillier_pair
    m = q3 * 4 + 1
    c, r = paillier_keys.encrypt(ek, m)
    proof = prove_alice(m, c, r, ek, statements[0])
    assert not verify_alice(proof, c, ek, statements[0])


def test_alice_proof_rejects_malformed_fields(paillier_pair, statements):
    ek, _ = paillier_pair
    m = random.randint(0, order - 1)
    c, r = paillier_keys.encrypt(ek, m)
    proof = prove_alice(m, c, r, ek, statements[0])
    assert not verify_alice(proof._replace(s="1"), c, ek, statements[0])
    assert not verify_alice(proof._replace(z=0), c, ek, statements[0])
    assert not verify_alice(proof, 0, ek, statements[0])


def test_bob_proof(paillier_pair, statements):
    ek, _ = paillier_pair
    alice_statement = statements[0]
    a = random.randint(0, order - 1)
    c1, _ = paillier_keys.encrypt(ek, a)
    x = random.randint(0, order - 1)
    y = random.randint(0, order ** 5)
    enc_y, r = paillier_keys.encrypt(ek, y)
    c2 = paillier_keys.add(ek, paillier_keys.mul(ek, c1, x), enc_y)

    proof = prove_bob(x, y, r, c1, c2, ek, alice_statement)
    assert verify_bob(proof, c1, c2, ek, alice_statement)
    assert not verify_bob(proof, c1, paillier_keys.add(ek, c2, c1), ek, alice_statement)
    assert not verify_bob(proof, c1, c2, ek, statements[1])


def test_pdl_proof(paillier_pair, statements):
    ek, _ = paillier_pair
    x = random.randint(1, order - 1)
    c, r = paillier_keys.encrypt(ek, x)
    base = pub_key_from_priv(random.randint(1, order - 1))
    Q = ec_scalar_mul(base, x)
    proof = prove_pdl(x, r, c, ek, Q, base, statements[1])
    assert verify_pdl(proof, c, ek, Q, base, statements[1])
    assert not verify_pdl(proof, c, ek, ec_scalar_mul(base, x + 1), base, statements[1])
    assert not verify_pdl(proof, c, ek, Q, base, statements[0])
