import random

import pytest

from mpcecdsa.ecdsa_op import order
from mpcecdsa.errors import InvalidProofError
from mpcecdsa.mta import message_a, message_b, q5, verify_proofs_get_alpha
from mpcecdsa.schnorr_nizk import prove

ALICE, BOB = 1, 2


@pytest.fixture
def mta_run(paillier_pair, statements):
    alice_ek, alice_dk = paillier_pair
    alice_statement, bob_statement = statements
    a = random.randint(1, order - 1)
    b = random.randint(1, order - 1)
    m_a, _ = message_a(a, alice_ek, {BOB: bob_statement})
    m_b, beta, _, beta_tag = message_b(b, alice_ek, m_a, BOB, bob_statement, alice_statement)
    return a, b, m_a, m_b, beta, beta_tag


def test_mta(paillier_pair, statements, mta_run):
    _, alice_dk = paillier_pair
    a, b, m_a, m_b, beta, beta_tag = mta_run
    assert beta_tag < q5
    assert beta == -beta_tag % order
    alpha, alice_share = verify_proofs_get_alpha(m_b, alice_dk, a, m_a.c, statements[0])
    assert (alpha + beta) % order == a * b % order
    assert alice_share == a * b + beta_tag


def test_alice_proof_addressed_to_someone_else(paillier_pair, statements):
    alice_ek, _ = paillier_pair
    alice_statement, bob_statement = statements
    m_a, _ = message_a(5, alice_ek, {3: bob_statement})
    with pytest.raises(InvalidProofError):
        message_b(7, alice_ek, m_a, BOB, bob_statement, alice_statement)


def test_tampered_ciphertext(paillier_pair, statements, mta_run):
    alice_ek, alice_dk = paillier_pair
    a, _, m_a, m_b, _, _ = mta_run
    tampered = m_b._replace(c=m_b.c * (alice_ek.n + 1) % alice_ek.nsquare)
    with pytest.raises(InvalidProofError):
        verify_proofs_get_alpha(tampered, alice_dk, a, m_a.c, statements[0])


def test_b_proof_for_other_value(paillier_pair, statements, mta_run):
    _, alice_dk = paillier_pair
    a, b, m_a, m_b, _, _ = mta_run
    tampered = m_b._replace(b_proof=prove(b + 1))
    with pytest.raises(InvalidProofError):
        verify_proofs_get_alpha(tampered, alice_dk, a, m_a.c, statements[0])
