from hashlib import sha256

import pytest

from mpcecdsa import signing
from mpcecdsa.commitment_ro import Decommitment
from mpcecdsa.ecdsa_op import ec_add, generator, order, verify_signature
from mpcecdsa.errors import (CommitmentMismatchError, ConfigurationError, InvalidProofError,
                             MissingMessageError, ProtocolError, SessionStateError)
from mpcecdsa.state_machine import SigningSession, Stage

PARTIES = [1, 2, 3]
DIGEST = sha256(b"Hello world").digest()


def make_sessions(local_keys, parties=PARTIES):
    return {i: SigningSession(local_keys[i - 1], parties) for i in parties}


def inbox(outgoing, i):
    """Broadcast messages as seen by party i."""
    return {j: m for j, m in outgoing.items() if j != i}


def drive(sessions, tamper=None):
    """
    Run every session to the end. tamper(round_name, sender, recipient, message)
    may replace any message in flight.
    """
    tamper = tamper or (lambda name, sender, recipient, message: message)

    def deliver(name, outgoing):
        return {i: {j: tamper(name, j, i, m) for j, m in inbox(outgoing, i).items()} for i in sessions}

    r1 = deliver("round1", {i: s.round1() for i, s in sessions.items()})
    p2p = {i: s.round2(r1[i]) for i, s in sessions.items()}
    r2 = {i: {j: tamper("round2", j, i, p2p[j][i]) for j in sessions if j != i} for i in sessions}
    r3 = deliver("round3", {i: s.round3(r2[i]) for i, s in sessions.items()})
    for i, s in sessions.items():
        s.round4(r3[i])
    r5 = deliver("round5", {i: s.round5() for i, s in sessions.items()})
    r6 = deliver("round6", {i: s.round6(r5[i]) for i, s in sessions.items()})
    for i, s in sessions.items():
        s.round7(r6[i])
    r8 = deliver("round8", {i: s.round8(DIGEST) for i, s in sessions.items()})
    return {i: s.round9(r8[i]) for i, s in sessions.items()}


def test_full_session(local_keys):
    sessions = make_sessions(local_keys)
    signatures = drive(sessions)
    assert len(set(signatures.values())) == 1
    assert verify_signature(local_keys[0].public_key, DIGEST, signatures[1])
    assert all(s.state is Stage.COMPLETE for s in sessions.values())
    with pytest.raises(SessionStateError):
        sessions[1].round1()


def test_out_of_order(local_keys):
    session = SigningSession(local_keys[0], PARTIES)
    assert session.state is Stage.ROUND1
    with pytest.raises(SessionStateError):
        session.round2({})
    with pytest.raises(SessionStateError):
        session.round8(DIGEST)


def test_bad_party_set(local_keys):
    with pytest.raises(ConfigurationError):
        SigningSession(local_keys[0], [2, 3, 4])
    with pytest.raises(ConfigurationError):
        SigningSession(local_keys[0], [1, 1, 2])


def test_missing_and_extra_messages(local_keys):
    sessions = make_sessions(local_keys)
    outgoing = {i: s.round1() for i, s in sessions.items()}
    with pytest.raises(MissingMessageError) as err:
        sessions[1].round2({2: outgoing[2]})
    assert err.value.party == 3
    assert sessions[1].state is Stage.ABORTED

    with pytest.raises(MissingMessageError):
        sessions[2].round2({1: outgoing[1], 3: outgoing[3], 4: outgoing[3]})
    with pytest.raises(SessionStateError):
        sessions[2].round2(inbox(outgoing, 2))


def test_malformed_message(local_keys):
    sessions = make_sessions(local_keys)
    outgoing = {i: s.round1() for i, s in sessions.items()}
    messages = inbox(outgoing, 1)
    messages[2] = ("not", "a", "message")
    with pytest.raises(InvalidProofError) as err:
        sessions[1].round2(messages)
    assert err.value.party == 2


def test_tampered_range_proof_aborts(local_keys):
    sessions = make_sessions(local_keys)

    def tamper(name, sender, recipient, message):
        if name == "round1" and sender == 3 and recipient == 1:
            m_a = message.m_a._replace(c=message.m_a.c + 1)
            return message._replace(m_a=m_a)
        return message

    with pytest.raises(InvalidProofError) as err:
        drive(sessions, tamper)
    assert err.value.party == 3
    assert err.value.stage == "sign_stage2"
    assert sessions[1].state is Stage.ABORTED
    assert sessions[1].error is err.value


def test_wrong_gamma_decommitment_aborts(local_keys):
    sessions = make_sessions(local_keys)

    def tamper(name, sender, recipient, message):
        if name == "round3" and sender == 2:
            decom1 = message.decom1
            return message._replace(decom1=Decommitment(point=ec_add(decom1.point, generator),
                                                        blind_factor=decom1.blind_factor))
        return message

    with pytest.raises(CommitmentMismatchError) as err:
        drive(sessions, tamper)
    assert err.value.party == 2
    assert err.value.stage == "sign_stage5"


def test_wrong_s_i_aborts(local_keys):
    sessions = make_sessions(local_keys)

    def tamper(name, sender, recipient, message):
        if name == "round6" and sender == 1:
            return message._replace(s_i=ec_add(message.s_i, generator))
        return message

    with pytest.raises(InvalidProofError) as err:
        drive(sessions, tamper)
    assert err.value.party == 1
    assert err.value.stage == "sign_stage7"


def test_wrong_t_i_proof_aborts(local_keys):
    sessions = make_sessions(local_keys)

    def tamper(name, sender, recipient, message):
        if name == "round3" and sender == 2:
            proof = message.t_i_proof
            return message._replace(t_i_proof=proof._replace(z1=proof.z1 ^ 1))
        return message

    with pytest.raises(InvalidProofError) as err:
        drive(sessions, tamper)
    assert err.value.party == 2
    assert err.value.stage == "sign_stage4"
    assert sessions[1].state is Stage.ABORTED


def test_wrong_pdl_proof_aborts(local_keys):
    sessions = make_sessions(local_keys)

    def tamper(name, sender, recipient, message):
        if name == "round5" and sender == 2 and recipient == 1:
            proofs = dict(message.phase5_proofs)
            proofs[1] = proofs[1]._replace(s1=proofs[1].s1 ^ 1)
            return message._replace(phase5_proofs=proofs)
        return message

    with pytest.raises(InvalidProofError) as err:
        drive(sessions, tamper)
    assert err.value.party == 2
    assert err.value.stage == "sign_stage6"


def test_inconsistent_delta_aborts(local_keys, monkeypatch):
    # party 2 publishes and uses a delta_i that does not match its k_i and gamma_i
    honest_stage3 = signing.sign_stage3

    def shifted_stage3(local_key, *args):
        out = honest_stage3(local_key, *args)
        if local_key.i == 2:
            return out._replace(delta_i=(out.delta_i + 1) % order)
        return out

    monkeypatch.setattr(signing, "sign_stage3", shifted_stage3)
    sessions = make_sessions(local_keys)
    with pytest.raises(ProtocolError) as err:
        drive(sessions)
    assert err.value.stage == "sign_stage6"
    assert err.value.party is None
    assert sessions[1].state is Stage.ABORTED


def test_w_mta_not_bound_to_public_share(local_keys):
    sessions = make_sessions(local_keys)

    # a valid MtA, but for gamma_2 instead of w_2
    def tamper(name, sender, recipient, message):
        if name == "round2" and sender == 2 and recipient == 1:
            return message._replace(m_b_w=message.m_b_gamma)
        return message

    with pytest.raises(InvalidProofError) as err:
        drive(sessions, tamper)
    assert err.value.party == 2
    assert err.value.stage == "sign_stage3"


def test_gamma_mta_not_bound_to_commitment(local_keys):
    sessions = make_sessions(local_keys)

    def tamper(name, sender, recipient, message):
        if name == "round2" and sender == 3 and recipient == 1:
            return message._replace(m_b_gamma=message.m_b_w)
        return message

    with pytest.raises(InvalidProofError) as err:
        drive(sessions, tamper)
    assert err.value.party == 3
    assert err.value.stage == "sign_stage5"
