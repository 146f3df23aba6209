"""
Fiat-Shamir challenges.

Every item is tagged and length prefixed before hashing so that
(1, 23) and (12, 3) never produce the same transcript.
"""

from hashlib import sha256

from .ecdsa_op import Point, O, order, point_to_bytes

_INT, _POINT, _BYTES = b"i", b"p", b"b"


def _encode(item) -> bytes:
    if isinstance(item, Point):
        body = b"\x00" if item == O else point_to_bytes(item)
        tag = _POINT
    elif isinstance(item, int):
        if item < 0:
            raise ValueError("Only non negative integers can be hashed")
        body = item.to_bytes((item.bit_length() + 7) // 8 or 1, byteorder='big')
        tag = _INT
    elif isinstance(item, (bytes, bytearray)):
        body = bytes(item)
        tag = _BYTES
    elif isinstance(item, str):
        body = item.encode()
        tag = _BYTES
    else:
        raise TypeError(f"Cannot hash {type(item).__name__}")
    return tag + len(body).to_bytes(4, byteorder='big') + body


def hash_to_int(*items) -> int:
    h = sha256()
    for item in items:
        h.update(_encode(item))
    return int.from_bytes(h.digest(), byteorder='big')


def challenge(*items) -> int:
    """Challenge in Z_q."""
    return hash_to_int(*items) % order
