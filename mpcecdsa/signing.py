"""
Threshold signing, GG20 with identifiable abort at the proof level:
https://eprint.iacr.org/2020/540.pdf section 3.2 - 3.4

Nine stages. Stages 1 - 7 do not depend on the message (offline phase) and end
with a CompletedOfflineStage; stages 8 - 9 turn it into a signature (online
phase). Each stage is a plain function of its arguments; messages coming from
peers are dicts keyed by the sender's party index.

Notation for party i in the signing set S (|S| = t+1):
    w_i      = lambda_i(S) * x_i, additive share of the secret x
    k_i      nonce share, gamma_i blinding share, Gamma_i = G * [gamma_i]
    delta_i  additive share of k * gamma
    sigma_i  additive share of k * x
    R        = G * [delta^-1 * gamma] = G * [k^-1],  r = R.x mod q
    s_i      = m * k_i + r * sigma_i,  s = sum s_i
"""

import logging
from collections import namedtuple
from typing import Dict, Iterable, List

from .commitment_ro import Commitment, Decommitment, commit_point, verify_point_commitment
from .ecdsa_op import (Point, Signature, O, digest_to_int, ec_scalar_mul, ec_sum, generator, order,
                       pedersen_h, pub_key_from_priv, scalar_inv_mod_order, verify_signature)
from .errors import (CommitmentMismatchError, ConfigurationError, InvalidProofError,
                     MissingMessageError, NonceReuseError, ProtocolError)
from .keygen import LocalKey
from .mta import MessageA, MessageB, message_a, message_b, verify_proofs_get_alpha
from .range_proofs import PDLwSlackProof, prove_pdl, verify_pdl
from .sigma_proofs import (HomoElGamalProof, HomoElGamalStatement, PedersenProof, prove_homo_elgamal,
                           prove_pedersen, verify_homo_elgamal, verify_pedersen)
from .toyrand import int_sample
from .vss import check_parties, lagrange_coefficient

logger = logging.getLogger(__name__)

SignKeys = namedtuple('SignKeys', ['w_i', 'g_w_i', 'k_i', 'gamma_i', 'g_gamma_i'])

SignStage1Output = namedtuple('SignStage1Output', ['sign_key', 'm_a', 'm_a_randomness', 'bc1', 'decom1'])
SignStage2Output = namedtuple('SignStage2Output', ['m_b_gammas', 'm_b_ws', 'betas', 'nis'])
SignStage3Output = namedtuple('SignStage3Output', ['delta_i', 't_i', 'l_i', 'sigma_i', 't_i_proof'])
SignStage4Output = namedtuple('SignStage4Output', ['delta_inv'])
SignStage5Output = namedtuple('SignStage5Output', ['r', 'r_dash', 'phase5_proofs'])
SignStage6Output = namedtuple('SignStage6Output', ['s_i', 'homo_elgamal_proof'])
SignStage8Output = namedtuple('SignStage8Output', ['local_signature', 'partial_signature'])

LocalSignature = namedtuple('LocalSignature', ['r', 'R', 's_i', 'm', 'y', 'digest'])


class CompletedOfflineStage:
    """
    Result of the message independent half of signing. Can be computed ahead
    of time, but signs exactly one message: the nonce share inside is
    released once and then dropped.
    """

    def __init__(self, index: int, local_key: LocalKey, sign_key: SignKeys,
                 ts: Dict[int, Point], r: Point, sigma_i: int):
        self.index = index
        self.local_key = local_key
        self.sign_key = sign_key
        self.ts = ts
        self.r = r
        self.sigma_i = sigma_i

    @property
    def consumed(self) -> bool:
        return self.sign_key is None

    def consume(self) -> SignKeys:
        if self.sign_key is None:
            raise NonceReuseError(f"offline stage of party {self.index} was already used to sign")
        sign_key, self.sign_key = self.sign_key, None
        return sign_key

    def __repr__(self):
        return f"CompletedOfflineStage(index={self.index}, r={self.r}, consumed={self.consumed})"


def signing_set(local_key: LocalKey, parties: Iterable[int]) -> List[int]:
    parties = check_parties(parties, local_key.t, local_key.n)
    if local_key.i not in parties:
        raise ConfigurationError(f"party {local_key.i} is not in the signing set {parties}")
    return parties


def _peers(local_key: LocalKey, parties: List[int]) -> List[int]:
    return [j for j in parties if j != local_key.i]


def expect_messages(stage: str, messages: dict, senders: List[int], what: str):
    if not isinstance(messages, dict):
        raise MissingMessageError(stage, f"{what} must be keyed by party index")
    for j in senders:
        if j not in messages:
            raise MissingMessageError(stage, f"no {what}", j)
    extra = set(messages) - set(senders)
    if extra:
        raise MissingMessageError(stage, f"unexpected {what} from {sorted(extra)}")


def create_sign_keys(local_key: LocalKey, parties: List[int]) -> SignKeys:
    w_i = lagrange_coefficient(local_key.i, parties) * local_key.keys_linear.x_i % order
    gamma_i = int_sample(order)
    return SignKeys(w_i=w_i, g_w_i=pub_key_from_priv(w_i), k_i=int_sample(order),
                    gamma_i=gamma_i, g_gamma_i=pub_key_from_priv(gamma_i))


def g_w_vec(local_key: LocalKey, parties: List[int]) -> Dict[int, Point]:
    """G * [w_j] for every signer, from the public shares G * [x_j]."""
    return {j: ec_scalar_mul(local_key.pk_vec[j - 1], lagrange_coefficient(j, parties))
            for j in parties}


def sign_stage1(local_key: LocalKey, parties: Iterable[int]) -> SignStage1Output:
    """
    Sample k_i and gamma_i, commit to Gamma_i and encrypt k_i for the MtAs.
    """
    parties = signing_set(local_key, parties)
    sign_key = create_sign_keys(local_key, parties)
    bc1, decom1 = commit_point(sign_key.g_gamma_i)
    statements = {j: local_key.h1_h2_n_tilde_vec[j - 1] for j in _peers(local_key, parties)}
    m_a, randomness = message_a(sign_key.k_i, local_key.paillier_key_vec[local_key.i - 1], statements)
    logger.debug("sign stage 1 done for party %d", local_key.i)
    return SignStage1Output(sign_key=sign_key, m_a=m_a, m_a_randomness=randomness,
                            bc1=bc1, decom1=decom1)


def sign_stage2(local_key: LocalKey, parties: Iterable[int], sign_key: SignKeys,
                m_as: Dict[int, MessageA]) -> SignStage2Output:
    """
    Bob's side of two MtAs with every peer j: k_j * gamma_i and k_j * w_i.
    m_b_gammas / m_b_ws are sent point to point to j.
    """
    stage = "sign_stage2"
    parties = signing_set(local_key, parties)
    peers = _peers(local_key, parties)
    expect_messages(stage, {j: m for j, m in m_as.items() if j != local_key.i}, peers, "MessageA")
    own_statement = local_key.h1_h2_n_tilde_vec[local_key.i - 1]

    m_b_gammas, m_b_ws, betas, nis = {}, {}, {}, {}
    for j in peers:
        m_a = m_as[j]
        if not isinstance(m_a, MessageA):
            raise InvalidProofError(stage, "malformed MessageA", j)
        ek_j = local_key.paillier_key_vec[j - 1]
        statement_j = local_key.h1_h2_n_tilde_vec[j - 1]
        try:
            m_b_gammas[j], betas[j], _, _ = message_b(
                sign_key.gamma_i, ek_j, m_a, local_key.i, own_statement, statement_j)
            m_b_ws[j], nis[j], _, _ = message_b(
                sign_key.w_i, ek_j, m_a, local_key.i, own_statement, statement_j)
        except InvalidProofError as err:
            raise InvalidProofError(stage, err.reason, j) from err
    logger.debug("sign stage 2 done for party %d", local_key.i)
    return SignStage2Output(m_b_gammas=m_b_gammas, m_b_ws=m_b_ws, betas=betas, nis=nis)


def sign_stage3(local_key: LocalKey, parties: Iterable[int], sign_key: SignKeys, m_a: MessageA,
                m_b_gammas: Dict[int, MessageB], m_b_ws: Dict[int, MessageB],
                betas: Dict[int, int], nis: Dict[int, int]) -> SignStage3Output:
    """
    Alice's side of the MtAs, then delta_i, sigma_i and T_i = G * [sigma_i] + H * [l_i].
    m_a is our own stage 1 message.
    """
    stage = "sign_stage3"
    parties = signing_set(local_key, parties)
    peers = _peers(local_key, parties)
    for what, messages in (("gamma MtA", m_b_gammas), ("w MtA", m_b_ws), ("beta", betas), ("nu", nis)):
        expect_messages(stage, messages, peers, what)

    own_statement = local_key.h1_h2_n_tilde_vec[local_key.i - 1]
    g_w = g_w_vec(local_key, parties)
    alphas, mius = [], []
    for j in peers:
        m_b_gamma, m_b_w = m_b_gammas[j], m_b_ws[j]
        if not (isinstance(m_b_gamma, MessageB) and isinstance(m_b_w, MessageB)):
            raise InvalidProofError(stage, "malformed MessageB", j)
        try:
            alpha, _ = verify_proofs_get_alpha(m_b_gamma, local_key.paillier_dk, sign_key.k_i,
                                               m_a.c, own_statement)
            miu, _ = verify_proofs_get_alpha(m_b_w, local_key.paillier_dk, sign_key.k_i,
                                             m_a.c, own_statement)
        except InvalidProofError as err:
            raise InvalidProofError(stage, err.reason, j) from err
        if m_b_w.b_proof.V != g_w[j]:
            raise InvalidProofError(stage, "w MtA is not bound to the party's public share", j)
        alphas.append(alpha)
        mius.append(miu)

    delta_i = (sign_key.k_i * sign_key.gamma_i + sum(alphas) + sum(betas.values())) % order
    sigma_i = (sign_key.k_i * sign_key.w_i + sum(mius) + sum(nis.values())) % order
    l_i = int_sample(order)
    t_i_proof = prove_pedersen(sigma_i, l_i)
    logger.debug("sign stage 3 done for party %d", local_key.i)
    return SignStage3Output(delta_i=delta_i, t_i=t_i_proof.com, l_i=l_i, sigma_i=sigma_i,
                            t_i_proof=t_i_proof)


def sign_stage4(parties: Iterable[int], deltas: Dict[int, int], ts: Dict[int, Point],
                t_proofs: Dict[int, PedersenProof]) -> SignStage4Output:
    """
    Every party ends up with the same delta^-1.
    """
    stage = "sign_stage4"
    parties = list(parties)
    for what, messages in (("delta", deltas), ("T", ts), ("T proof", t_proofs)):
        expect_messages(stage, messages, parties, what)

    for j in parties:
        proof = t_proofs[j]
        if not isinstance(proof, PedersenProof) or proof.com != ts[j] or not verify_pedersen(proof):
            raise InvalidProofError(stage, "T_i proof failed", j)
        if not isinstance(deltas[j], int) or not 0 <= deltas[j] < order:
            raise InvalidProofError(stage, "delta_i is not a scalar", j)

    delta = sum(deltas.values()) % order
    if delta == 0:
        raise ProtocolError(stage, "delta is zero")
    logger.debug("sign stage 4 done")
    return SignStage4Output(delta_inv=scalar_inv_mod_order(delta))


def sign_stage5(local_key: LocalKey, parties: Iterable[int], sign_key: SignKeys, m_a: MessageA,
                m_a_randomness: int, m_b_gammas: Dict[int, MessageB],
                bc1s: Dict[int, Commitment], decom1s: Dict[int, Decommitment],
                delta_inv: int) -> SignStage5Output:
    """
    Open the Gamma_j, compute R = (sum Gamma_j) * [delta^-1] and
    R_dash_i = R * [k_i], with a PDL proof for every peer that R_dash_i and
    our MessageA hide the same k_i.
    """
    stage = "sign_stage5"
    parties = signing_set(local_key, parties)
    peers = _peers(local_key, parties)
    expect_messages(stage, bc1s, parties, "commitment")
    expect_messages(stage, decom1s, parties, "decommitment")
    expect_messages(stage, m_b_gammas, peers, "gamma MtA")

    for j in parties:
        if not isinstance(bc1s[j], Commitment) or not isinstance(decom1s[j], Decommitment) \
                or not verify_point_commitment(bc1s[j], decom1s[j]):
            raise CommitmentMismatchError(stage, "Gamma_i decommitment does not open the commitment", j)
    for j in peers:
        # the gamma the peer used in our MtA must be the one it committed to
        if m_b_gammas[j].b_proof.V != decom1s[j].point:
            raise InvalidProofError(stage, "gamma MtA is not bound to the committed Gamma_i", j)

    R = ec_scalar_mul(ec_sum(decom1s[j].point for j in parties), delta_inv)
    if R == O:
        raise ProtocolError(stage, "R is the point at origin")
    r_dash = ec_scalar_mul(R, sign_key.k_i)
    ek = local_key.paillier_key_vec[local_key.i - 1]
    phase5_proofs = {j: prove_pdl(sign_key.k_i, m_a_randomness, m_a.c, ek, r_dash, R,
                                  local_key.h1_h2_n_tilde_vec[j - 1])
                     for j in peers}
    logger.debug("sign stage 5 done for party %d", local_key.i)
    return SignStage5Output(r=R, r_dash=r_dash, phase5_proofs=phase5_proofs)


def sign_stage6(local_key: LocalKey, parties: Iterable[int], m_as: Dict[int, MessageA],
                t_i: Point, l_i: int, sigma_i: int, r: Point, r_dashes: Dict[int, Point],
                phase5_proofs: Dict[int, Dict[int, PDLwSlackProof]]) -> SignStage6Output:
    """
    Check the PDL proofs addressed to us and sum(R_dash_j) == G, then publish
    S_i = R * [sigma_i] with a proof that it uses the sigma_i inside T_i.
    """
    stage = "sign_stage6"
    parties = signing_set(local_key, parties)
    peers = _peers(local_key, parties)
    expect_messages(stage, r_dashes, parties, "R_dash")
    expect_messages(stage, {j: p for j, p in phase5_proofs.items() if j != local_key.i}, peers, "PDL proofs")
    expect_messages(stage, {j: m for j, m in m_as.items() if j != local_key.i}, peers, "MessageA")

    own_statement = local_key.h1_h2_n_tilde_vec[local_key.i - 1]
    for j in peers:
        proofs_j = phase5_proofs[j]
        proof = proofs_j.get(local_key.i) if isinstance(proofs_j, dict) else None
        if not isinstance(proof, PDLwSlackProof) or not verify_pdl(
                proof, m_as[j].c, local_key.paillier_key_vec[j - 1], r_dashes[j], r, own_statement):
            raise InvalidProofError(stage, "PDL proof failed", j)

    if ec_sum(r_dashes[j] for j in parties) != generator:
        raise ProtocolError(stage, "sum of R_dash_i is not the generator")

    s_i = ec_scalar_mul(r, sigma_i)
    statement = HomoElGamalStatement(G=r, H=pedersen_h, Y=generator, D=t_i, E=s_i)
    homo_elgamal_proof = prove_homo_elgamal(l_i, sigma_i, statement)
    logger.debug("sign stage 6 done for party %d", local_key.i)
    return SignStage6Output(s_i=s_i, homo_elgamal_proof=homo_elgamal_proof)


def sign_stage7(local_key: LocalKey, parties: Iterable[int], sign_key: SignKeys,
                ts: Dict[int, Point], r: Point, sigma_i: int, ss: Dict[int, Point],
                homo_elgamal_proofs: Dict[int, HomoElGamalProof]) -> CompletedOfflineStage:
    """
    Check every S_j against T_j and sum(S_j) == y. Ends the offline phase.
    """
    stage = "sign_stage7"
    parties = signing_set(local_key, parties)
    for what, messages in (("T", ts), ("S", ss), ("homomorphic ElGamal proof", homo_elgamal_proofs)):
        expect_messages(stage, messages, parties, what)

    for j in parties:
        statement = HomoElGamalStatement(G=r, H=pedersen_h, Y=generator, D=ts[j], E=ss[j])
        proof = homo_elgamal_proofs[j]
        if not isinstance(proof, HomoElGamalProof) or not verify_homo_elgamal(proof, statement):
            raise InvalidProofError(stage, "homomorphic ElGamal proof failed", j)

    if ec_sum(ss[j] for j in parties) != local_key.y_sum_s:
        raise ProtocolError(stage, "sum of S_i is not the public key")
    logger.debug("sign stage 7 done for party %d, offline phase complete", local_key.i)
    return CompletedOfflineStage(index=local_key.i, local_key=local_key, sign_key=sign_key,
                                 ts=dict(ts), r=r, sigma_i=sigma_i)


def sign_stage8(completed_offline_stage: CompletedOfflineStage,
                message_digest: bytes) -> SignStage8Output:
    """
    s_i = m * k_i + r * sigma_i. Consumes the offline stage.
    """
    m = digest_to_int(message_digest)
    sign_key = completed_offline_stage.consume()
    R = completed_offline_stage.r
    r = R.x % order
    s_i = (m * sign_key.k_i + r * completed_offline_stage.sigma_i) % order
    local_signature = LocalSignature(r=r, R=R, s_i=s_i, m=m,
                                     y=completed_offline_stage.local_key.y_sum_s,
                                     digest=bytes(message_digest))
    logger.debug("sign stage 8 done for party %d", completed_offline_stage.index)
    return SignStage8Output(local_signature=local_signature, partial_signature=s_i)


def sign_stage9(local_signature: LocalSignature, partial_signatures: Iterable[int]) -> Signature:
    """
    partial_signatures are the other signers' s_j. Returns a low-s signature
    with its recovery id, after checking it against the public key.
    """
    stage = "sign_stage9"
    partial_signatures = list(partial_signatures)
    if any(not isinstance(s, int) or not 0 <= s < order for s in partial_signatures):
        raise InvalidProofError(stage, "partial signature is not a scalar")
    s = (local_signature.s_i + sum(partial_signatures)) % order
    if s == 0 or local_signature.r == 0:
        raise ProtocolError(stage, "degenerate signature")

    R = local_signature.R
    recid = (R.y & 1) | (2 if R.x >= order else 0)
    if s > order // 2:
        s = order - s
        recid ^= 1
    signature = Signature(r=local_signature.r, s=s, recid=recid)
    if not verify_signature(local_signature.y, local_signature.digest, signature):
        raise ProtocolError(stage, "signature does not verify under the public key")
    logger.debug("sign stage 9 done")
    return signature
