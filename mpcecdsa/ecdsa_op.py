"""
ecdsa for secp256k1.
Utilities for:
    1. EC Public Key generation
    2. EC point addition, inverse and scalar multiplication
    3. Point encoding (SEC1 compressed / uncompressed)
    4. Scalar inverse mod order and mod field size.
    5. A second generator H for Pedersen commitments.
    6. Reference single key signing, verification and public key recovery.

    Point addition is implementing:
    https://en.wikipedia.org/wiki/Elliptic_curve_point_multiplication#Point_addition

    Signature implementation is just implementing:
    https://en.wikipedia.org/wiki/Elliptic_Curve_Digital_Signature_Algorithm

"""

from collections import namedtuple
from hashlib import sha256
from typing import Iterable

from ecdsa import SECP256k1, VerifyingKey, BadSignatureError

from .errors import DomainError
from .toyrand import int_sample


class Point(namedtuple("Point", "x y")):
    __slots__ = ()

    def __repr__(self):
        """Uncompressed"""
        if self.x is None:
            return "Origin"
        return f"04{self.x:0>64X}{self.y:0>64X}"


# The point at origin. This means generator * order = O
O = Point(None, None)


# SECP256K1 domain params
p = 0xFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFEFFFFFC2F
a = 0
b = 7
generator = Point(0x79BE667EF9DCBBAC55A06295CE870B07029BFCDB2DCE28D959F2815B16F81798,
                  0x483ADA7726A3C4655DA4FBFC0E1108A8FD17B448A68554199C47D08FFB10D4B8)
order = 0xFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFEBAAEDCE6AF48A03BBFD25E8CD0364141
#############################


def valid(P) -> bool:
    """
    wiestrass curve: y^2 = x^3 + ax + b
    Determine whether we have a valid representation of a point
    on our curve.  We assume that the x and y coordinates
    are always reduced modulo p, so that we can compare
    two points for equality with a simple ==.
    """
    if not isinstance(P, Point):
        return False
    if P == O:
        return True
    if not (isinstance(P.x, int) and isinstance(P.y, int)):
        return False
    return (
        (P.y**2 - (P.x**3 + a*P.x + b)) % p == 0 and
        0 <= P.x < p and 0 <= P.y < p)


def scalar_inv_mod_p(x: int) -> int:
    """
    Compute an inverse for x modulo p, assuming that x
    is not divisible by p.
    """
    if x % p == 0:
        raise ZeroDivisionError("Impossible inverse")
    return pow(x, -1, p)


def scalar_inv_mod_order(x: int) -> int:
    """
    Compute an inverse for x modulo order, assuming that x
    is not divisible by order.
    """
    if x % order == 0:
        raise ZeroDivisionError("Impossible inverse")
    return pow(x, -1, order)


def ec_inv(P: Point) -> Point:
    """
    Inverse of the point P on the elliptic curve y^2 = x^3 + ax + b.
    https://en.wikipedia.org/wiki/Elliptic_curve_point_multiplication#Point_negation
    """
    if P == O:
        return P
    return Point(P.x, (-P.y) % p)


def ec_add(P: Point, Q: Point) -> Point:
    """
    Sum of the points P and Q on the elliptic curve y^2 = x^3 + ax + b.
    https://en.wikipedia.org/wiki/Elliptic_curve_point_multiplication#Point_addition
    """
    if not (valid(P) and valid(Q)):
        raise DomainError("Invalid inputs")

    # Deal with the special cases where either P, Q, or P + Q is
    # the origin.
    if P == O:
        return Q
    if Q == O:
        return P
    # A + A_inv is the point at origin. The slope below is undefined for it.
    if Q == ec_inv(P):
        return O
    if P == Q:
        lambdA = (3 * P.x**2 + a) * scalar_inv_mod_p(2 * P.y)
    else:
        lambdA = (Q.y - P.y) * scalar_inv_mod_p(Q.x - P.x)
    x = (lambdA**2 - P.x - Q.x) % p
    y = (lambdA * (P.x - x) - P.y) % p
    return Point(x, y)


def ec_scalar_mul(P: Point, scalar: int) -> Point:
    if not valid(P):
        raise DomainError("Invalid point")
    scalar %= order
    cache = P
    ret = O
    # keep on doubling and only add for binary 1.
    while scalar:
        if scalar & 1:
            ret = ec_add(ret, cache)
        cache = ec_add(cache, cache)
        scalar >>= 1
    return ret


def ec_sum(points: Iterable[Point]) -> Point:
    ret = O
    for P in points:
        ret = ec_add(ret, P)
    return ret


def pub_key_from_priv(private: int) -> Point:
    return ec_scalar_mul(generator, private)


def _lift_x(x: int):
    """y with y^2 = x^3 + ax + b, or None if x is not on the curve. p = 3 mod 4."""
    rhs = (x**3 + a*x + b) % p
    y = pow(rhs, (p + 1) // 4, p)
    if y * y % p != rhs:
        return None
    return y


def point_to_bytes(P: Point, compressed: bool = True) -> bytes:
    if P == O:
        raise DomainError("The point at origin has no encoding")
    if compressed:
        return bytes([2 + (P.y & 1)]) + P.x.to_bytes(32, byteorder='big')
    return b"\x04" + P.x.to_bytes(32, byteorder='big') + P.y.to_bytes(32, byteorder='big')


def point_from_bytes(data: bytes) -> Point:
    if len(data) == 33 and data[0] in (2, 3):
        x = int.from_bytes(data[1:], byteorder='big')
        y = _lift_x(x) if x < p else None
        if y is None:
            raise DomainError("x coordinate is not on the curve")
        if y & 1 != data[0] & 1:
            y = p - y
        return Point(x, y)
    if len(data) == 65 and data[0] == 4:
        P = Point(int.from_bytes(data[1:33], byteorder='big'),
                  int.from_bytes(data[33:], byteorder='big'))
        if not valid(P):
            raise DomainError("Point is not on the curve")
        return P
    raise DomainError(f"Unsupported point encoding of length {len(data)}")


def compressed_hex(point: Point) -> str:
    return point_to_bytes(point).hex().upper()


def _hash_to_point(tag: bytes) -> Point:
    counter = 0
    while True:
        seed = sha256(tag + counter.to_bytes(4, byteorder='big')).digest()
        x = int.from_bytes(seed, byteorder='big') % p
        y = _lift_x(x)
        if y is not None:
            return Point(x, y if y % 2 == 0 else p - y)
        counter += 1


# Nobody knows log_G(H).
pedersen_h = _hash_to_point(b"mpcecdsa/pedersen/" + point_to_bytes(generator))


def digest_to_int(digest: bytes) -> int:
    """Leftmost bitlen(order) bits of the digest, as ECDSA prescribes."""
    if not digest:
        raise DomainError("Empty message digest")
    e = int.from_bytes(digest, byteorder="big")
    excess = len(digest) * 8 - order.bit_length()
    return e >> excess if excess > 0 else e


class Signature(namedtuple("Signature", "r s recid", defaults=(None,))):
    __slots__ = ()

    def __repr__(self):
        return f"{self.r:0>64X}{self.s:0>64X}"


def ecdsa_sign(private: int, digest: bytes) -> Signature:
    """
    Single key signer. Used to cross check the threshold protocol.
    """
    z = digest_to_int(digest)
    r = 0
    s = 0
    while s == 0:
        r = 0
        while r == 0:
            k = int_sample(order)
            R = pub_key_from_priv(k)
            r = R.x % order
        s = scalar_inv_mod_order(k) * (z + r * private) % order
    recid = (R.y & 1) | (2 if R.x >= order else 0)
    if s > order // 2:
        s = order - s
        recid ^= 1
    return Signature(r, s, recid)


def verify_signature(public: Point, digest: bytes, signature: Signature) -> bool:
    """Plain ECDSA verification done by the ecdsa package."""
    if not 0 < signature.r < order or not 0 < signature.s < order:
        return False
    vk = VerifyingKey.from_string(point_to_bytes(public, compressed=False),
                                  curve=SECP256k1, hashfunc=sha256)
    try:
        return vk.verify_digest(bytes.fromhex(repr(signature)), digest, allow_truncate=True)
    except BadSignatureError:
        return False


def recover_public_key(digest: bytes, signature: Signature) -> Point:
    if signature.recid is None or not 0 <= signature.recid < 4:
        raise DomainError("Signature carries no usable recovery id")
    x = signature.r + (signature.recid >> 1) * order
    y = _lift_x(x) if x < p else None
    if y is None:
        raise DomainError("r does not correspond to a curve point")
    if y & 1 != signature.recid & 1:
        y = p - y
    R = Point(x, y)
    e = digest_to_int(digest)
    sR_minus_eG = ec_add(ec_scalar_mul(R, signature.s), ec_inv(pub_key_from_priv(e)))
    return ec_scalar_mul(sR_minus_eG, scalar_inv_mod_order(signature.r))
