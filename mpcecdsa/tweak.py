"""
Additive key tweaks for non hardened (BIP32 CKDpub) child keys.

A child public key is Y + G * [il]. Every party adds the same il to its
share x_i; the shared polynomial f then becomes f + il, so any t+1 parties
still sign together and the group secret becomes x + il. Public parts of the
LocalKey move by G * [il] so the signing checks keep holding.

vss_scheme is left as it is: it is this party's own dealer scheme from
keygen, committing to u_i rather than to the group secret, and only its
threshold and share count are read after keygen.
"""

import hashlib
import hmac
from typing import Iterable

from .ecdsa_op import Point, O, ec_add, order, point_to_bytes, pub_key_from_priv
from .errors import DomainError
from .keygen import LocalKey, SharedKeys

HARDENED = 0x80000000


def derive_tweak(public_key: Point, chain_code: bytes, index: int) -> (int, Point, bytes):
    """
    One CKDpub step. Returns (il, child public key, child chain code).
    Hardened indices need the private key and are rejected.
    """
    if not isinstance(index, int) or not 0 <= index < HARDENED:
        raise DomainError(f"Only non hardened child indices can be derived, got {index}")
    if len(chain_code) != 32:
        raise DomainError("Chain code must be 32 bytes")
    data = point_to_bytes(public_key) + index.to_bytes(4, byteorder='big')
    digest = hmac.new(chain_code, data, hashlib.sha512).digest()
    il = int.from_bytes(digest[:32], byteorder='big')
    child = ec_add(public_key, pub_key_from_priv(il)) if il < order else O
    if il >= order or child == O:
        # BIP32: skip to the next index
        raise DomainError(f"Index {index} gives an invalid child key")
    return il, child, digest[32:]


def derive_path_tweak(public_key: Point, chain_code: bytes, path: Iterable[int]) -> (int, Point, bytes):
    """
    Walk a non hardened path such as [0, 7]. The il of every level add up to the
    single tweak between public_key and the final child.
    """
    total = 0
    for index in path:
        il, public_key, chain_code = derive_tweak(public_key, chain_code, index)
        total = (total + il) % order
    return total, public_key, chain_code


def tweak_key(local_key: LocalKey, il: int) -> LocalKey:
    """
    Returns a new LocalKey for the child key y + G * [il].
    All parties have to apply the same il.
    """
    if not isinstance(il, int) or not 0 <= il < order:
        raise DomainError("Tweak must be a scalar below the curve order")
    delta = pub_key_from_priv(il)
    y = ec_add(local_key.y_sum_s, delta)
    if y == O:
        raise DomainError("Tweak cancels the public key")

    return local_key._replace(
        keys_linear=SharedKeys(y=y, x_i=(local_key.keys_linear.x_i + il) % order),
        y_sum_s=y,
        pk_vec=[ec_add(pk, delta) for pk in local_key.pk_vec])
