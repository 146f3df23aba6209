"""
Command line front end for the in process harness.

    python -m mpcecdsa keygen --threshold 2 --parties 4 --out keys.json
    python -m mpcecdsa sign --keys keys.json --parties 2 3 4 --message "Hello world"
    python -m mpcecdsa reconstruct --keys keys.json
    python -m mpcecdsa tweak --keys keys.json --il 0badc0de --out child.json

The key file holds every party's LocalKey, so this is for demos and testing
only: a real deployment keeps one LocalKey per host.
"""

import argparse
import logging
import sys
from hashlib import sha256

from .config import Settings
from .ecdsa_op import pub_key_from_priv, verify_signature
from .errors import ConfigurationError, DomainError, MPCError
from .keygen import construct_private_key
from .keystore import load_local_keys, save_local_keys
from .orchestrator import run_keygen, run_signing
from .tweak import tweak_key

logger = logging.getLogger(__name__)


def _select(local_keys, parties):
    if not local_keys:
        raise ConfigurationError("key file holds no local keys")
    if parties is None:
        return local_keys[:local_keys[0].t + 1]
    by_index = {key.i: key for key in local_keys}
    missing = [i for i in parties if i not in by_index]
    if missing:
        raise ConfigurationError(f"no local key for parties {missing}")
    return [by_index[i] for i in parties]


def cmd_keygen(args) -> int:
    settings = Settings.from_env()
    if args.safe_prime:
        settings = Settings(settings.paillier_key_length, use_safe_prime=True)
    local_keys = run_keygen(args.threshold, args.parties, settings)
    save_local_keys(args.out, local_keys)
    print(f"public key: {local_keys[0].public_key}")
    return 0


def cmd_sign(args) -> int:
    local_keys = _select(load_local_keys(args.keys), args.parties)
    digest = sha256(args.message.encode()).digest()
    signature = run_signing(local_keys, digest)
    print(f"r: {signature.r:0>64x}")
    print(f"s: {signature.s:0>64x}")
    print(f"recid: {signature.recid}")
    print(f"verified: {verify_signature(local_keys[0].public_key, digest, signature)}")
    return 0


def cmd_reconstruct(args) -> int:
    local_keys = load_local_keys(args.keys)
    selected = _select(local_keys, args.parties)
    key = selected[0]
    secret = construct_private_key(key.vss_scheme, [k.i for k in selected],
                                   [k.keys_linear.x_i for k in selected])
    public = pub_key_from_priv(secret)
    print(f"reconstructed public key: {public}")
    print(f"matches: {public == key.public_key}")
    return 0


def cmd_tweak(args) -> int:
    try:
        il = int(args.il, 16)
    except ValueError:
        raise DomainError(f"--il is not a hex string: {args.il!r}")
    local_keys = [tweak_key(key, il) for key in load_local_keys(args.keys)]
    save_local_keys(args.out, local_keys)
    print(f"public key: {local_keys[0].public_key}")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="mpcecdsa", description="Threshold ECDSA (GG20) on secp256k1")
    parser.add_argument("-v", "--verbose", action="store_true", help="Log every protocol stage.")
    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("keygen", help="Run distributed key generation for all parties.")
    p.add_argument("--threshold", type=int, required=True, help="t: any t+1 parties can sign.")
    p.add_argument("--parties", type=int, required=True, help="n: number of parties.")
    p.add_argument("--out", required=True, help="Where to write the local keys (JSON).")
    p.add_argument("--safe-prime", action="store_true", help="Build Paillier and N~ moduli from safe primes.")
    p.set_defaults(func=cmd_keygen)

    p = sub.add_parser("sign", help="Sign the SHA-256 digest of a message with t+1 parties.")
    p.add_argument("--keys", required=True, help="Local keys file written by keygen.")
    p.add_argument("--parties", type=int, nargs="+", default=None,
                   help="Signing party indices. Default: the first t+1.")
    p.add_argument("--message", required=True)
    p.set_defaults(func=cmd_sign)

    p = sub.add_parser("reconstruct", help="Check that t+1 shares interpolate to the public key.")
    p.add_argument("--keys", required=True)
    p.add_argument("--parties", type=int, nargs="+", default=None)
    p.set_defaults(func=cmd_reconstruct)

    p = sub.add_parser("tweak", help="Move every local key to the child key y + G * [il].")
    p.add_argument("--keys", required=True)
    p.add_argument("--il", required=True, help="Tweak scalar, hex.")
    p.add_argument("--out", required=True)
    p.set_defaults(func=cmd_tweak)
    return parser


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.INFO,
                        format="%(asctime)s %(name)s %(levelname)s %(message)s")
    try:
        return args.func(args)
    except (MPCError, OSError) as err:
        logger.error("%s failed: %s", args.command, err)
        return 1


if __name__ == "__main__":
    sys.exit(main())
