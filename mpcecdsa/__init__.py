"""
Threshold ECDSA on secp256k1 following GG18 / GG20:
https://eprint.iacr.org/2019/114.pdf
https://eprint.iacr.org/2020/540.pdf
"""

from .config import Settings
from .ecdsa_op import Point, Signature, verify_signature
from .errors import (MPCError, ConfigurationError, DomainError, ProtocolError, InvalidProofError,
                     CommitmentMismatchError, MissingMessageError, SessionStateError, NonceReuseError)
from .keygen import LocalKey
from .orchestrator import InMemoryTransport, run_keygen, run_signing
from .signing import CompletedOfflineStage
from .state_machine import SigningSession, Stage
from .tweak import tweak_key, derive_tweak, derive_path_tweak

__version__ = "0.1.0"
