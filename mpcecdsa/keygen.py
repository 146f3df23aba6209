"""
Distributed key generation, GG18 / GG20 keygen:
https://eprint.iacr.org/2020/540.pdf section 3.1

Four stages, every boundary is an all to all broadcast:

1. commit     each party samples u_i, builds its Paillier key and (N~, h1, h2),
              and commits to y_i = G * [u_i].
2. share      open the commitments, check every Paillier key and (N~, h1, h2)
              proof, deal u_i with Feldman VSS.
3. combine    check the shares addressed to us, x_i = sum of shares,
              y = sum y_i, prove knowledge of x_i.
4. finalize   check everyone's proof against the VSS commitments.

No trusted dealer: the secret sum(u_i) is never assembled anywhere.
"""

import logging
from collections import namedtuple
from typing import List

from phe import paillier

from . import dlog_statement
from . import paillier_squarefree_nizk
from .commitment_ro import Commitment, Decommitment, commit_point, verify_point_commitment
from .config import Settings
from .dlog_statement import DLogStatement
from .ecdsa_op import Point, ec_sum, order, pub_key_from_priv, O
from .errors import (CommitmentMismatchError, InvalidProofError, MissingMessageError)
from .paillier_keys import generate_paillier_keypair
from .schnorr_nizk import SchnorrNIZK, prove, verify
from .toyrand import int_sample
from .vss import VerifiableSS, ShamirSecretSharing, check_threshold, check_parties

logger = logging.getLogger(__name__)

KeyGenBroadcastMessage1 = namedtuple('KeyGenBroadcastMessage1', [
    'e', 'dlog_statement', 'com', 'correct_key_proof',
    'composite_dlog_proof_base_h1', 'composite_dlog_proof_base_h2'])

KeyGenStage1Output = namedtuple('KeyGenStage1Output', ['key', 'bc1', 'decom1'])
KeyGenStage2Output = namedtuple('KeyGenStage2Output', ['vss_scheme', 'secret_shares', 'index'])
KeyGenStage3Output = namedtuple('KeyGenStage3Output', ['shared_key', 'dlog_proof'])

SharedKeys = namedtuple('SharedKeys', ['y', 'x_i'])


class LocalKey(namedtuple('LocalKey', [
        'paillier_dk', 'pk_vec', 'keys_linear', 'paillier_key_vec', 'y_sum_s',
        'h1_h2_n_tilde_vec', 'vss_scheme', 'i', 't', 'n'])):
    """
    Everything a party keeps after keygen. Confidential: paillier_dk and
    keys_linear.x_i are this party's secrets. Vectors are indexed by party index - 1.
    """
    __slots__ = ()

    @property
    def public_key(self) -> Point:
        return self.y_sum_s

    def __repr__(self):
        return f"LocalKey(i={self.i}, t={self.t}, n={self.n}, y={self.y_sum_s})"


class Keys:
    """
    Party i's keygen secrets: u_i, the Paillier private key and the
    trapdoor of its (N~, h1, h2).
    """

    def __init__(self, u_i: int, dk: paillier.PaillierPrivateKey, party_index: int,
                 statement: DLogStatement, xhi: int, xhi_inv: int):
        self.u_i = u_i
        self.y_i = pub_key_from_priv(u_i)
        self.dk = dk
        self.ek = dk.public_key
        self.party_index = party_index
        self.dlog_statement = statement
        self.xhi = xhi
        self.xhi_inv = xhi_inv

    @classmethod
    def create(cls, index: int, settings: Settings = None) -> "Keys":
        settings = settings or Settings()
        _, dk = generate_paillier_keypair(settings.paillier_key_length, settings.use_safe_prime)
        statement, xhi, xhi_inv = dlog_statement.generate_h1_h2_n_tilde(
            settings.paillier_key_length, settings.use_safe_prime)
        return cls(int_sample(order), dk, index, statement, xhi, xhi_inv)

    @classmethod
    def create_safe_prime(cls, index: int, settings: Settings = None) -> "Keys":
        settings = settings or Settings()
        return cls.create(index, Settings(settings.paillier_key_length, use_safe_prime=True))

    def phase1_broadcast(self) -> (KeyGenBroadcastMessage1, Decommitment):
        """
        Commit to y_i and publish the Paillier key, (N~, h1, h2) and their proofs.
        """
        commitment, decom1 = commit_point(self.y_i)
        n_tilde, h1, h2 = self.dlog_statement
        bc1 = KeyGenBroadcastMessage1(
            e=self.ek,
            dlog_statement=self.dlog_statement,
            com=commitment,
            correct_key_proof=paillier_squarefree_nizk.prove(self.dk),
            composite_dlog_proof_base_h1=dlog_statement.prove(h1, h2, n_tilde, self.xhi),
            composite_dlog_proof_base_h2=dlog_statement.prove(h2, h1, n_tilde, self.xhi_inv))
        return bc1, decom1

    def __repr__(self):
        return f"Keys(party_index={self.party_index}, y_i={self.y_i})"


def _check_count(stage: str, what: str, values: list, share_count: int):
    if len(values) != share_count:
        raise MissingMessageError(stage, f"expected {share_count} {what}, got {len(values)}")


def keygen_stage1(index: int, use_safe_prime: bool = False, settings: Settings = None) \
        -> KeyGenStage1Output:
    settings = settings or Settings()
    if use_safe_prime:
        key = Keys.create_safe_prime(index, settings)
    else:
        key = Keys.create(index, settings)
    bc1, decom1 = key.phase1_broadcast()
    logger.debug("keygen stage 1 done for party %d", index)
    return KeyGenStage1Output(key=key, bc1=bc1, decom1=decom1)


def keygen_stage2(key: Keys, bc1s: List[KeyGenBroadcastMessage1],
                  decom1s: List[Decommitment], threshold: int, share_count: int,
                  min_key_length: int = None) -> KeyGenStage2Output:
    """
    bc1s[j] and decom1s[j] come from party j + 1.
    """
    stage = "keygen_stage2"
    check_threshold(threshold, share_count)
    check_parties([key.party_index], 0, share_count, exact=False)
    _check_count(stage, "commitments", bc1s, share_count)
    _check_count(stage, "decommitments", decom1s, share_count)
    min_bits = min_key_length if min_key_length is not None else key.ek.n.bit_length()

    for j, (bc1, decom1) in enumerate(zip(bc1s, decom1s)):
        party = j + 1
        if not isinstance(bc1.com, Commitment) or not verify_point_commitment(bc1.com, decom1):
            raise CommitmentMismatchError(stage, "decommitment does not open the commitment", party)
        N = bc1.e.n
        if N.bit_length() < min_bits:
            raise InvalidProofError(stage, f"Paillier modulus has only {N.bit_length()} bits", party)
        if not paillier_squarefree_nizk.verify(bc1.correct_key_proof, N):
            raise InvalidProofError(stage, "Paillier key proof failed", party)
        if not dlog_statement.verify_statement(bc1.dlog_statement,
                                               bc1.composite_dlog_proof_base_h1,
                                               bc1.composite_dlog_proof_base_h2,
                                               min_bits):
            raise InvalidProofError(stage, "h1, h2, N~ proofs failed", party)

    vss_scheme, secret_shares = VerifiableSS.share(threshold, share_count, key.u_i)
    logger.debug("keygen stage 2 done for party %d", key.party_index)
    return KeyGenStage2Output(vss_scheme=vss_scheme, secret_shares=secret_shares,
                              index=key.party_index)


def keygen_stage3(key: Keys, ys: List[Point], vss_schemes: List[VerifiableSS],
                  party_shares: List[int], threshold: int, share_count: int) -> KeyGenStage3Output:
    """
    ys[j], vss_schemes[j] and party_shares[j] come from party j + 1;
    party_shares[j] is the share party j + 1 dealt to us.
    """
    stage = "keygen_stage3"
    check_threshold(threshold, share_count)
    check_parties([key.party_index], 0, share_count, exact=False)
    for what, values in (("points", ys), ("VSS schemes", vss_schemes), ("shares", party_shares)):
        _check_count(stage, what, values, share_count)

    params = ShamirSecretSharing(threshold=threshold, share_count=share_count)
    for j, (y_j, vss, share) in enumerate(zip(ys, vss_schemes, party_shares)):
        party = j + 1
        if vss.parameters != params or not vss.is_well_formed():
            raise InvalidProofError(stage, "malformed VSS scheme", party)
        if vss.commitments[0] != y_j:
            raise InvalidProofError(stage, "VSS free coefficient does not match y_i", party)
        if not vss.validate_share(share, key.party_index):
            raise InvalidProofError(stage, "share failed Feldman verification", party)

    y = ec_sum(ys)
    x_i = sum(party_shares) % order
    dlog_proof = prove(x_i)
    logger.debug("keygen stage 3 done for party %d", key.party_index)
    return KeyGenStage3Output(shared_key=SharedKeys(y=y, x_i=x_i), dlog_proof=dlog_proof)


def keygen_stage4(ys: List[Point], vss_schemes: List[VerifiableSS],
                  dlog_proofs: List[SchnorrNIZK], threshold: int, share_count: int):
    """
    Check that every party proved knowledge of x_i and that G * [x_i] is the
    point the combined Feldman commitments predict for its index.
    """
    stage = "keygen_stage4"
    check_threshold(threshold, share_count)
    for what, values in (("points", ys), ("VSS schemes", vss_schemes), ("dlog proofs", dlog_proofs)):
        _check_count(stage, what, values, share_count)

    for i, proof in enumerate(dlog_proofs):
        party = i + 1
        if not isinstance(proof, SchnorrNIZK) or not verify(proof):
            raise InvalidProofError(stage, "dlog proof failed", party)
        expected = ec_sum(vss.get_point_commitment(party) for vss in vss_schemes)
        if proof.V != expected:
            raise InvalidProofError(stage, "x_i does not match the VSS commitments", party)
    if ec_sum(ys) == O:
        raise InvalidProofError(stage, "aggregate public key is the point at origin")


def build_local_key(key: Keys, bc1s: List[KeyGenBroadcastMessage1], shared_key: SharedKeys,
                    dlog_proofs: List[SchnorrNIZK], vss_schemes: List[VerifiableSS],
                    threshold: int, share_count: int) -> LocalKey:
    return LocalKey(
        paillier_dk=key.dk,
        pk_vec=[proof.V for proof in dlog_proofs],
        keys_linear=shared_key,
        paillier_key_vec=[bc1.e for bc1 in bc1s],
        y_sum_s=shared_key.y,
        h1_h2_n_tilde_vec=[bc1.dlog_statement for bc1 in bc1s],
        vss_scheme=vss_schemes[key.party_index - 1],
        i=key.party_index,
        t=threshold,
        n=share_count)


def construct_private_key(vss_scheme: VerifiableSS, parties: List[int], xs: List[int]) -> int:
    """
    Lagrange interpolate the secret from t+1 or more shares.

    Only for checking a keygen run or for operator controlled recovery.
    Signing never calls this.
    """
    check_parties(parties, vss_scheme.threshold, vss_scheme.share_count, exact=False)
    return vss_scheme.reconstruct(list(parties), list(xs))
