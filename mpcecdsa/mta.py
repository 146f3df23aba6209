"""
Multiplicative to additive (MtA) share conversion, GG18 section 3 / GG20 "MtAwc".

Alice holds a, Bob holds b. Afterwards Alice holds alpha and Bob holds beta with
a * b = alpha + beta mod q.

    1. Alice -> Bob:  c_A = Enc_A(a) plus a range proof (a < q^3) for every
                      verifier, each made against that verifier's (N~, h1, h2).
    2. Bob -> Alice:  c_B = b * c_A + Enc_A(beta'), beta' < q^5, plus
                      - a range proof that b < q^3 made against Alice's (N~, h1, h2),
                      - Schnorr proofs for B = G * [b] and B' = G * [beta'].
                      Bob keeps beta = -beta' mod q.
    3. Alice:         alpha = Dec(c_B) mod q and checks G * [alpha] == B * [a] + B'.
"""

from collections import namedtuple
from typing import Dict

from phe import paillier

from .dlog_statement import DLogStatement
from .ecdsa_op import ec_add, ec_scalar_mul, order, pub_key_from_priv
from .errors import InvalidProofError
from . import paillier_keys
from .range_proofs import AliceProof, BobProof, prove_alice, verify_alice, prove_bob, verify_bob
from .schnorr_nizk import SchnorrNIZK, prove, verify
from .toyrand import sample_below


q5 = order ** 5

MessageA = namedtuple('MessageA', ['c', 'range_proofs'])
MessageB = namedtuple('MessageB', ['c', 'b_proof', 'beta_tag_proof', 'range_proof'])


def message_a(a: int, alice_ek: paillier.PaillierPublicKey,
              statements: Dict[int, DLogStatement]) -> (MessageA, int):
    """
    Encrypt a under Alice's own key. statements maps each verifier index to
    its (N~, h1, h2); one range proof is made per verifier.

    Returns the message and the encryption randomness (needed later by the
    phase 5 PDL proof).
    """
    c, randomness = paillier_keys.encrypt(alice_ek, a % order)
    range_proofs = {j: prove_alice(a % order, c, randomness, alice_ek, st)
                    for j, st in statements.items()}
    return MessageA(c=c, range_proofs=range_proofs), randomness


def message_b(b: int, alice_ek: paillier.PaillierPublicKey, m_a: MessageA, bob_index: int,
              bob_statement: DLogStatement, alice_statement: DLogStatement) \
        -> (MessageB, int, int, int):
    """
    Bob's side. Checks the range proof Alice addressed to bob_index first.

    Returns (m_b, beta, randomness, beta_tag).
    """
    alice_proof = m_a.range_proofs.get(bob_index) if isinstance(m_a.range_proofs, dict) else None
    if not isinstance(alice_proof, AliceProof) or \
            not verify_alice(alice_proof, m_a.c, alice_ek, bob_statement):
        raise InvalidProofError("mta", "Alice's range proof failed")

    b %= order
    beta_tag = sample_below(q5)
    enc_beta_tag, randomness = paillier_keys.encrypt(alice_ek, beta_tag)
    c_b = paillier_keys.add(alice_ek, paillier_keys.mul(alice_ek, m_a.c, b), enc_beta_tag)

    m_b = MessageB(c=c_b,
                   b_proof=prove(b),
                   beta_tag_proof=prove(beta_tag % order),
                   range_proof=prove_bob(b, beta_tag, randomness, m_a.c, c_b,
                                         alice_ek, alice_statement))
    beta = (-beta_tag) % order
    return m_b, beta, randomness, beta_tag


def verify_proofs_get_alpha(m_b: MessageB, dk: paillier.PaillierPrivateKey, a: int,
                            c_a: int, alice_statement: DLogStatement) -> (int, int):
    """
    Alice's side. c_a is Alice's own MessageA ciphertext.

    Returns (alpha mod q, alpha as decrypted).
    """
    ek = dk.public_key
    if not isinstance(m_b.range_proof, BobProof) or \
            not verify_bob(m_b.range_proof, c_a, m_b.c, ek, alice_statement):
        raise InvalidProofError("mta", "Bob's range proof failed")
    if not (isinstance(m_b.b_proof, SchnorrNIZK) and isinstance(m_b.beta_tag_proof, SchnorrNIZK)):
        raise InvalidProofError("mta", "missing dlog proofs")
    if not (verify(m_b.b_proof) and verify(m_b.beta_tag_proof)):
        raise InvalidProofError("mta", "dlog proof failed")

    alice_share = paillier_keys.decrypt(dk, m_b.c)
    alpha = alice_share % order
    # alice verifies Bob's Proof. Please refer to section 5 in:
    # https://eprint.iacr.org/2019/114.pdf
    g_alpha = pub_key_from_priv(alpha)
    ba_btag = ec_add(ec_scalar_mul(m_b.b_proof.V, a), m_b.beta_tag_proof.V)
    if g_alpha != ba_btag:
        raise InvalidProofError("mta", "alpha is inconsistent with B and B'")
    return alpha, alice_share
