import pytest

from mpcecdsa import dlog_statement
from mpcecdsa.dlog_statement import DLogStatement, generate_h1_h2_n_tilde


@pytest.fixture(scope="module")
def setup():
    return generate_h1_h2_n_tilde(1536)


def test_statement_relation(setup):
    statement, xhi, xhi_inv = setup
    n_tilde, h1, h2 = statement
    assert n_tilde.bit_length() == 1536
    assert pow(h1, xhi, n_tilde) == h2
    assert pow(h2, xhi_inv, n_tilde) == h1


def test_composite_dlog_proofs(setup):
    statement, xhi, xhi_inv = setup
    n_tilde, h1, h2 = statement
    proof_h1 = dlog_statement.prove(h1, h2, n_tilde, xhi)
    proof_h2 = dlog_statement.prove(h2, h1, n_tilde, xhi_inv)
    assert dlog_statement.verify(proof_h1, h1, h2, n_tilde)
    assert dlog_statement.verify_statement(statement, proof_h1, proof_h2, 1536)

    # proofs swapped, key too short, h1 == h2
    assert not dlog_statement.verify_statement(statement, proof_h2, proof_h1)
    assert not dlog_statement.verify_statement(statement, proof_h1, proof_h2, 2048)
    assert not dlog_statement.verify_statement(DLogStatement(n_tilde, h1, h1), proof_h1, proof_h2)


def test_wrong_witness(setup):
    statement, xhi, _ = setup
    n_tilde, h1, h2 = statement
    proof = dlog_statement.prove(h1, h2, n_tilde, xhi + 1)
    assert not dlog_statement.verify(proof, h1, h2, n_tilde)
    assert not dlog_statement.verify(proof._replace(x=0), h1, h2, n_tilde)
