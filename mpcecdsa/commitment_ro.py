"""
Commitment scheme using a hash function(ROM) and fixed length blinding factor.

Please refer to https://eprint.iacr.org/2020/540.pdf section 2.6
"""

import hashlib
import secrets
from collections import namedtuple

from .ecdsa_op import Point, point_to_bytes, valid, O

blind_length = 32

# Broadcast first.
Commitment = namedtuple('Commitment', ['com'])
# Broadcast once every commitment of the round has been received.
Decommitment = namedtuple('Decommitment', ['point', 'blind_factor'])


def commit(input: bytes) -> (bytes, bytes):
    r = secrets.token_bytes(blind_length)
    return hashlib.sha3_256(input + r).digest(), r


def verify_commitment(commitment: bytes, r: bytes, input: bytes) -> bool:
    if not isinstance(commitment, (bytes, bytearray)) or not commitment or not input:
        return False
    if not isinstance(r, (bytes, bytearray)) or len(r) != blind_length:
        return False
    return secrets.compare_digest(hashlib.sha3_256(input + r).digest(), commitment)


def commit_point(point: Point) -> (Commitment, Decommitment):
    com, r = commit(point_to_bytes(point))
    return Commitment(com=com), Decommitment(point=point, blind_factor=r)


def verify_point_commitment(commitment: Commitment, decommitment: Decommitment) -> bool:
    if not valid(decommitment.point) or decommitment.point == O:
        return False
    return verify_commitment(commitment.com, decommitment.blind_factor,
                             point_to_bytes(decommitment.point))
