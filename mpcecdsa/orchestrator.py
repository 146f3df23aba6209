"""
In process driver for keygen and signing.

Runs every party in one process and moves messages through an
InMemoryTransport. A networked deployment replaces the transport and runs one
party per host; the per party code (keygen stages, SigningSession) is the same.
"""

import logging
from collections import defaultdict
from typing import Dict, Iterable, List

from .config import Settings
from .ecdsa_op import Signature
from .keygen import (LocalKey, build_local_key, keygen_stage1, keygen_stage2, keygen_stage3,
                     keygen_stage4)
from .errors import ConfigurationError, ProtocolError
from .state_machine import SigningSession
from .vss import check_parties, check_threshold

logger = logging.getLogger(__name__)


class InMemoryTransport:
    """
    Mailboxes keyed by (round, recipient). A broadcast lands in every other
    party's mailbox; a point to point message only in its recipient's.
    """

    def __init__(self, parties: Iterable[int]):
        self.parties = list(parties)
        self._mailboxes = defaultdict(dict)

    def broadcast(self, round_name: str, sender: int, message):
        for j in self.parties:
            if j != sender:
                self._mailboxes[(round_name, j)][sender] = message

    def send(self, round_name: str, sender: int, recipient: int, message):
        self._mailboxes[(round_name, recipient)][sender] = message

    def receive(self, round_name: str, recipient: int) -> Dict[int, object]:
        """Everything addressed to recipient in this round, keyed by sender."""
        return dict(self._mailboxes.pop((round_name, recipient), {}))


def run_keygen(threshold: int, share_count: int, settings: Settings = None) -> List[LocalKey]:
    """
    Run the four keygen stages for parties 1..share_count and return their
    LocalKeys, in party order.
    """
    check_threshold(threshold, share_count)
    settings = settings or Settings()
    logger.info("keygen: t=%d n=%d, %d bit Paillier keys", threshold, share_count,
                settings.paillier_key_length)

    stage1 = [keygen_stage1(i, settings.use_safe_prime, settings) for i in range(1, share_count + 1)]
    bc1s = [out.bc1 for out in stage1]
    decom1s = [out.decom1 for out in stage1]

    stage2 = [keygen_stage2(out.key, bc1s, decom1s, threshold, share_count,
                            settings.paillier_key_length)
              for out in stage1]
    ys = [decom1.point for decom1 in decom1s]
    vss_schemes = [out.vss_scheme for out in stage2]

    stage3 = []
    for out in stage1:
        i = out.key.party_index
        # share dealt by party j + 1 to party i
        party_shares = [dealt.secret_shares[i - 1] for dealt in stage2]
        stage3.append(keygen_stage3(out.key, ys, vss_schemes, party_shares, threshold, share_count))

    dlog_proofs = [out.dlog_proof for out in stage3]
    keygen_stage4(ys, vss_schemes, dlog_proofs, threshold, share_count)

    local_keys = [build_local_key(s1.key, bc1s, s3.shared_key, dlog_proofs, vss_schemes,
                                  threshold, share_count)
                  for s1, s3 in zip(stage1, stage3)]
    logger.info("keygen done, public key %s", local_keys[0].public_key)
    return local_keys


def _broadcast_round(transport: InMemoryTransport, name: str, outgoing: Dict[int, object]):
    for i, message in outgoing.items():
        transport.broadcast(name, i, message)


def run_offline(local_keys: List[LocalKey], transport: InMemoryTransport = None) \
        -> Dict[int, SigningSession]:
    """
    Rounds 1 - 7 for every key in local_keys; the signing set is their indices.
    Returns the sessions, each waiting for round 8.
    """
    parties = [key.i for key in local_keys]
    if not local_keys:
        raise ConfigurationError("no local keys to sign with")
    check_parties(parties, local_keys[0].t, local_keys[0].n)
    if any(key.y_sum_s != local_keys[0].y_sum_s for key in local_keys):
        raise ConfigurationError("local keys come from different keygen runs")
    transport = transport or InMemoryTransport(parties)
    sessions = {key.i: SigningSession(key, parties) for key in local_keys}

    _broadcast_round(transport, "round1", {i: s.round1() for i, s in sessions.items()})
    for i, session in sessions.items():
        for j, message in session.round2(transport.receive("round1", i)).items():
            transport.send("round2", i, j, message)
    _broadcast_round(transport, "round3",
                     {i: s.round3(transport.receive("round2", i)) for i, s in sessions.items()})
    for i, session in sessions.items():
        session.round4(transport.receive("round3", i))
    _broadcast_round(transport, "round5", {i: s.round5() for i, s in sessions.items()})
    _broadcast_round(transport, "round6",
                     {i: s.round6(transport.receive("round5", i)) for i, s in sessions.items()})
    for i, session in sessions.items():
        session.round7(transport.receive("round6", i))
    logger.info("offline stage complete for parties %s", parties)
    return sessions


def run_online(sessions: Dict[int, SigningSession], message_digest: bytes,
               transport: InMemoryTransport = None) -> Signature:
    """Rounds 8 - 9: every session computes the same signature."""
    transport = transport or InMemoryTransport(list(sessions))
    _broadcast_round(transport, "round8", {i: s.round8(message_digest) for i, s in sessions.items()})
    signatures = [s.round9(transport.receive("round8", i)) for i, s in sessions.items()]
    signature = signatures[0]
    if any(sig != signature for sig in signatures):
        raise ProtocolError("sign_stage9", "parties disagree on the signature")
    logger.info("signature %s", signature)
    return signature


def run_signing(local_keys: List[LocalKey], message_digest: bytes,
                transport: InMemoryTransport = None) -> Signature:
    """
    Sign message_digest with exactly t+1 LocalKeys from the same keygen.
    """
    sessions = run_offline(local_keys, transport)
    return run_online(sessions, message_digest, transport)
