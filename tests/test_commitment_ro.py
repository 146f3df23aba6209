import secrets

from mpcecdsa.commitment_ro import (Commitment, Decommitment, blind_length, commit, commit_point,
                                    verify_commitment, verify_point_commitment)
from mpcecdsa.ecdsa_op import O, Point, order, pub_key_from_priv


def test_commitment_scheme():
    value_to_commit = secrets.token_hex(32)
    print(f"value commiting to [{value_to_commit}]")
    C, R = commit(bytes.fromhex(value_to_commit))
    assert len(R) == blind_length
    assert verify_commitment(C, R, bytes.fromhex(value_to_commit))
    # should not match commitment for another value.
    another_value = secrets.token_hex(32)
    print(f"another value [{another_value}]")
    assert not verify_commitment(C, R, bytes.fromhex(another_value))


def test_commitment_rejects_malformed_blind():
    value = secrets.token_bytes(32)
    C, R = commit(value)
    assert not verify_commitment(C, R[:-1], value)
    assert not verify_commitment(C, None, value)
    assert not verify_commitment(None, R, value)
    assert not verify_commitment(C, secrets.token_bytes(blind_length), value)


def test_point_commitment():
    point = pub_key_from_priv(secrets.randbelow(order - 1) + 1)
    com, decom = commit_point(point)
    assert isinstance(com, Commitment)
    assert decom.point == point
    assert verify_point_commitment(com, decom)

    other = pub_key_from_priv(secrets.randbelow(order - 1) + 1)
    assert not verify_point_commitment(com, Decommitment(point=other, blind_factor=decom.blind_factor))
    assert not verify_point_commitment(com, Decommitment(point=O, blind_factor=decom.blind_factor))
    assert not verify_point_commitment(com, Decommitment(point=Point(1, 2), blind_factor=decom.blind_factor))
