"""
One party's signing session as an explicit state machine.

    ROUND1 -> ROUND2 -> ... -> ROUND9 -> COMPLETE
    any round --ProtocolError--> ABORTED

Each method runs one stage: it takes the previous round's messages from the
peers (dicts keyed by sender index), returns what this party sends next, and
moves the session forward. The session never talks to the network itself.

Message flow:
    round1  broadcast      Round1Message(m_a, bc1)
    round2  point to point Round2Message(m_b_gamma, m_b_w)
    round3  broadcast      Round3Message(delta_i, t_i, t_i_proof, decom1)
    round4  local          delta^-1
    round5  broadcast      Round5Message(r_dash, phase5_proofs)
    round6  broadcast      Round6Message(s_i, homo_elgamal_proof)
    round7  local          CompletedOfflineStage
    round8  broadcast      Round8Message(partial_signature)
    round9  local          Signature
"""

import enum
import functools
import logging
from collections import namedtuple
from typing import Dict, Iterable

from . import signing
from .ecdsa_op import Signature
from .errors import InvalidProofError, ProtocolError, SessionStateError
from .keygen import LocalKey

logger = logging.getLogger(__name__)

Round1Message = namedtuple('Round1Message', ['m_a', 'bc1'])
Round2Message = namedtuple('Round2Message', ['m_b_gamma', 'm_b_w'])
Round3Message = namedtuple('Round3Message', ['delta_i', 't_i', 't_i_proof', 'decom1'])
Round5Message = namedtuple('Round5Message', ['r_dash', 'phase5_proofs'])
Round6Message = namedtuple('Round6Message', ['s_i', 'homo_elgamal_proof'])
Round8Message = namedtuple('Round8Message', ['partial_signature'])


class Stage(enum.Enum):
    ROUND1 = 1
    ROUND2 = 2
    ROUND3 = 3
    ROUND4 = 4
    ROUND5 = 5
    ROUND6 = 6
    ROUND7 = 7
    ROUND8 = 8
    ROUND9 = 9
    COMPLETE = 10
    ABORTED = 11


def _transition(expected: Stage, following: Stage):
    def decorator(method):
        @functools.wraps(method)
        def wrapper(self, *args, **kwargs):
            if self.state is not expected:
                raise SessionStateError(
                    f"{method.__name__}() called while the session is in {self.state.name}, "
                    f"expected {expected.name}")
            try:
                result = method(self, *args, **kwargs)
            except ProtocolError as err:
                self._abort(err)
                raise
            self.state = following
            if following is Stage.COMPLETE:
                self._record.clear()
            return result
        return wrapper
    return decorator


class SigningSession:
    """
    Signing session of party local_key.i with the signers in parties.
    The party set is validated here, before anything is sent.
    """

    def __init__(self, local_key: LocalKey, parties: Iterable[int]):
        self.local_key = local_key
        self.parties = signing.signing_set(local_key, parties)
        self.index = local_key.i
        self.peers = [j for j in self.parties if j != self.index]
        self.state = Stage.ROUND1
        self.error = None
        self.signature = None
        # everything accumulated so far, SignKeys included
        self._record = {}

    def _abort(self, err: ProtocolError):
        self.state = Stage.ABORTED
        self.error = err
        self._record.clear()
        logger.warning("signing session of party %d aborted: %s", self.index, err)

    def _messages(self, stage: str, messages: Dict[int, tuple], kind: type, what: str) -> Dict[int, tuple]:
        signing.expect_messages(stage, messages, self.peers, what)
        for j, message in messages.items():
            if not isinstance(message, kind):
                raise InvalidProofError(stage, f"malformed {what}", j)
        return messages

    @_transition(Stage.ROUND1, Stage.ROUND2)
    def round1(self) -> Round1Message:
        out = signing.sign_stage1(self.local_key, self.parties)
        self._record.update(sign_key=out.sign_key, m_a=out.m_a, m_a_randomness=out.m_a_randomness,
                            bc1=out.bc1, decom1=out.decom1)
        return Round1Message(m_a=out.m_a, bc1=out.bc1)

    @_transition(Stage.ROUND2, Stage.ROUND3)
    def round2(self, round1_messages: Dict[int, Round1Message]) -> Dict[int, Round2Message]:
        """Returns one message per peer, keyed by recipient."""
        messages = self._messages("sign_stage2", round1_messages, Round1Message, "round 1 message")
        m_as = {j: m.m_a for j, m in messages.items()}
        out = signing.sign_stage2(self.local_key, self.parties, self._record["sign_key"], m_as)
        m_as[self.index] = self._record["m_a"]
        bc1s = {j: m.bc1 for j, m in messages.items()}
        bc1s[self.index] = self._record["bc1"]
        self._record.update(m_as=m_as, bc1s=bc1s, betas=out.betas, nis=out.nis)
        return {j: Round2Message(m_b_gamma=out.m_b_gammas[j], m_b_w=out.m_b_ws[j]) for j in self.peers}

    @_transition(Stage.ROUND3, Stage.ROUND4)
    def round3(self, round2_messages: Dict[int, Round2Message]) -> Round3Message:
        messages = self._messages("sign_stage3", round2_messages, Round2Message, "round 2 message")
        m_b_gammas = {j: m.m_b_gamma for j, m in messages.items()}
        m_b_ws = {j: m.m_b_w for j, m in messages.items()}
        out = signing.sign_stage3(self.local_key, self.parties, self._record["sign_key"],
                                  self._record["m_a"], m_b_gammas, m_b_ws,
                                  self._record["betas"], self._record["nis"])
        message = Round3Message(delta_i=out.delta_i, t_i=out.t_i, t_i_proof=out.t_i_proof,
                                decom1=self._record["decom1"])
        self._record.update(m_b_gammas=m_b_gammas, t_i=out.t_i, l_i=out.l_i, sigma_i=out.sigma_i,
                            round3=message)
        return message

    @_transition(Stage.ROUND4, Stage.ROUND5)
    def round4(self, round3_messages: Dict[int, Round3Message]) -> int:
        messages = dict(self._messages("sign_stage4", round3_messages, Round3Message, "round 3 message"))
        messages[self.index] = self._record["round3"]
        out = signing.sign_stage4(self.parties,
                                  {j: m.delta_i for j, m in messages.items()},
                                  {j: m.t_i for j, m in messages.items()},
                                  {j: m.t_i_proof for j, m in messages.items()})
        self._record.update(delta_inv=out.delta_inv,
                            ts={j: m.t_i for j, m in messages.items()},
                            decom1s={j: m.decom1 for j, m in messages.items()})
        return out.delta_inv

    @_transition(Stage.ROUND5, Stage.ROUND6)
    def round5(self) -> Round5Message:
        rec = self._record
        out = signing.sign_stage5(self.local_key, self.parties, rec["sign_key"], rec["m_a"],
                                  rec["m_a_randomness"], rec["m_b_gammas"], rec["bc1s"],
                                  rec["decom1s"], rec["delta_inv"])
        rec.update(R=out.r, r_dash=out.r_dash)
        return Round5Message(r_dash=out.r_dash, phase5_proofs=out.phase5_proofs)

    @_transition(Stage.ROUND6, Stage.ROUND7)
    def round6(self, round5_messages: Dict[int, Round5Message]) -> Round6Message:
        messages = self._messages("sign_stage6", round5_messages, Round5Message, "round 5 message")
        rec = self._record
        r_dashes = {j: m.r_dash for j, m in messages.items()}
        r_dashes[self.index] = rec["r_dash"]
        out = signing.sign_stage6(self.local_key, self.parties, rec["m_as"], rec["t_i"], rec["l_i"],
                                  rec["sigma_i"], rec["R"], r_dashes,
                                  {j: m.phase5_proofs for j, m in messages.items()})
        message = Round6Message(s_i=out.s_i, homo_elgamal_proof=out.homo_elgamal_proof)
        rec.update(round6=message)
        return message

    @_transition(Stage.ROUND7, Stage.ROUND8)
    def round7(self, round6_messages: Dict[int, Round6Message]) -> signing.CompletedOfflineStage:
        messages = dict(self._messages("sign_stage7", round6_messages, Round6Message, "round 6 message"))
        rec = self._record
        messages[self.index] = rec["round6"]
        offline = signing.sign_stage7(self.local_key, self.parties, rec["sign_key"], rec["ts"], rec["R"],
                                      rec["sigma_i"],
                                      {j: m.s_i for j, m in messages.items()},
                                      {j: m.homo_elgamal_proof for j, m in messages.items()})
        # from here on the nonce share lives only in the offline stage
        self._record.clear()
        self._record.update(offline=offline)
        return offline

    @property
    def completed_offline_stage(self) -> signing.CompletedOfflineStage:
        return self._record.get("offline")

    @_transition(Stage.ROUND8, Stage.ROUND9)
    def round8(self, message_digest: bytes) -> Round8Message:
        out = signing.sign_stage8(self._record["offline"], message_digest)
        self._record.update(local_signature=out.local_signature)
        return Round8Message(partial_signature=out.partial_signature)

    @_transition(Stage.ROUND9, Stage.COMPLETE)
    def round9(self, round8_messages: Dict[int, Round8Message]) -> Signature:
        messages = self._messages("sign_stage9", round8_messages, Round8Message, "round 8 message")
        self.signature = signing.sign_stage9(self._record["local_signature"],
                                             [messages[j].partial_signature for j in self.peers])
        return self.signature

    def __repr__(self):
        return f"SigningSession(index={self.index}, parties={self.parties}, state={self.state.name})"
