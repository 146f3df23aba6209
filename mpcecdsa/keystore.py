"""
JSON storage for LocalKeys.

Points are stored compressed (hex), integers as hex strings. The file holds
secret material (the Paillier factors and x_i) and is written as is: protect
it at rest.
"""

import json
import logging
from typing import List

from .dlog_statement import DLogStatement
from .ecdsa_op import Point, compressed_hex, order, point_from_bytes, pub_key_from_priv
from .errors import DomainError
from .keygen import LocalKey, SharedKeys
from .paillier_keys import private_key_from_factors, public_key_from_n
from .vss import ShamirSecretSharing, VerifiableSS

logger = logging.getLogger(__name__)

FORMAT_VERSION = 1


def _int_to_hex(v: int) -> str:
    return format(v, "x")


def _hex_to_int(s) -> int:
    if not isinstance(s, str):
        raise DomainError(f"expected a hex string, got {type(s).__name__}")
    try:
        return int(s, 16)
    except ValueError:
        raise DomainError(f"not a hex string: {s!r}")


def _point_to_hex(P: Point) -> str:
    return compressed_hex(P)


def _hex_to_point(s) -> Point:
    if not isinstance(s, str):
        raise DomainError(f"expected a hex encoded point, got {type(s).__name__}")
    try:
        data = bytes.fromhex(s)
    except ValueError:
        raise DomainError(f"not a hex string: {s!r}")
    return point_from_bytes(data)


def local_key_to_dict(local_key: LocalKey) -> dict:
    dk = local_key.paillier_dk
    return {
        "version": FORMAT_VERSION,
        "i": local_key.i,
        "t": local_key.t,
        "n": local_key.n,
        "paillier_dk": {"p": _int_to_hex(dk.p), "q": _int_to_hex(dk.q)},
        "pk_vec": [_point_to_hex(P) for P in local_key.pk_vec],
        "keys_linear": {"y": _point_to_hex(local_key.keys_linear.y),
                        "x_i": _int_to_hex(local_key.keys_linear.x_i)},
        "paillier_key_vec": [_int_to_hex(ek.n) for ek in local_key.paillier_key_vec],
        "y_sum_s": _point_to_hex(local_key.y_sum_s),
        "h1_h2_n_tilde_vec": [{"n_tilde": _int_to_hex(st.n_tilde),
                               "h1": _int_to_hex(st.h1),
                               "h2": _int_to_hex(st.h2)}
                              for st in local_key.h1_h2_n_tilde_vec],
        "vss_scheme": {"threshold": local_key.vss_scheme.threshold,
                       "share_count": local_key.vss_scheme.share_count,
                       "commitments": [_point_to_hex(P) for P in local_key.vss_scheme.commitments]},
    }


def local_key_from_dict(data: dict) -> LocalKey:
    """Inverse of local_key_to_dict. Raises DomainError on anything malformed."""
    if not isinstance(data, dict):
        raise DomainError("local key record must be a JSON object")
    if data.get("version") != FORMAT_VERSION:
        raise DomainError(f"unsupported local key format version {data.get('version')!r}")
    try:
        i, t, n = data["i"], data["t"], data["n"]
        if not all(isinstance(v, int) for v in (i, t, n)) or not (1 <= t < n and 1 <= i <= n):
            raise DomainError(f"bad party parameters i={i} t={t} n={n}")

        p = _hex_to_int(data["paillier_dk"]["p"])
        q = _hex_to_int(data["paillier_dk"]["q"])
        paillier_key_vec = [public_key_from_n(_hex_to_int(v)) for v in data["paillier_key_vec"]]
        pk_vec = [_hex_to_point(v) for v in data["pk_vec"]]
        h1_h2_n_tilde_vec = [DLogStatement(n_tilde=_hex_to_int(st["n_tilde"]),
                                           h1=_hex_to_int(st["h1"]),
                                           h2=_hex_to_int(st["h2"]))
                             for st in data["h1_h2_n_tilde_vec"]]
        vss = data["vss_scheme"]
        vss_scheme = VerifiableSS(ShamirSecretSharing(threshold=vss["threshold"],
                                                      share_count=vss["share_count"]),
                                  [_hex_to_point(v) for v in vss["commitments"]])
        keys_linear = SharedKeys(y=_hex_to_point(data["keys_linear"]["y"]),
                                 x_i=_hex_to_int(data["keys_linear"]["x_i"]))
        y_sum_s = _hex_to_point(data["y_sum_s"])
    except (KeyError, TypeError) as err:
        raise DomainError(f"malformed local key record: {err!r}")

    for what, vec in (("pk_vec", pk_vec), ("paillier_key_vec", paillier_key_vec),
                      ("h1_h2_n_tilde_vec", h1_h2_n_tilde_vec)):
        if len(vec) != n:
            raise DomainError(f"{what} has {len(vec)} entries, expected {n}")
    if p * q != paillier_key_vec[i - 1].n:
        raise DomainError("Paillier factors do not match the party's public key")
    if not 0 < keys_linear.x_i < order:
        raise DomainError("x_i is not a scalar")
    if pub_key_from_priv(keys_linear.x_i) != pk_vec[i - 1]:
        raise DomainError("x_i does not match the party's public share")
    if keys_linear.y != y_sum_s:
        raise DomainError("keys_linear.y and y_sum_s differ")
    if vss_scheme.parameters != ShamirSecretSharing(threshold=t, share_count=n) or \
            not vss_scheme.is_well_formed():
        raise DomainError("malformed VSS scheme")

    try:
        paillier_dk = private_key_from_factors(p, q)
    except ValueError as err:
        raise DomainError(f"bad Paillier factors: {err}")

    return LocalKey(
        paillier_dk=paillier_dk,
        pk_vec=pk_vec,
        keys_linear=keys_linear,
        paillier_key_vec=paillier_key_vec,
        y_sum_s=y_sum_s,
        h1_h2_n_tilde_vec=h1_h2_n_tilde_vec,
        vss_scheme=vss_scheme,
        i=i,
        t=t,
        n=n)


def save_local_keys(path: str, local_keys: List[LocalKey]):
    with open(path, "w") as f:
        json.dump([local_key_to_dict(key) for key in local_keys], f, indent=2)
    logger.info("wrote %d local keys to %s", len(local_keys), path)


def load_local_keys(path: str) -> List[LocalKey]:
    with open(path) as f:
        try:
            records = json.load(f)
        except json.JSONDecodeError as err:
            raise DomainError(f"{path} is not valid JSON: {err}")
    if not isinstance(records, list):
        raise DomainError(f"{path} must hold a list of local keys")
    return [local_key_from_dict(record) for record in records]
