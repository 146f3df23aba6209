"""
Runtime settings.

Values can be overridden from the environment:
    MPCECDSA_PAILLIER_BITS  bit length of Paillier and N~ moduli (default 2048)
    MPCECDSA_SAFE_PRIME     "1"/"true" to build moduli from safe primes
"""

import os
from dataclasses import dataclass

from .errors import ConfigurationError

# MtA plaintexts are below q^2 + q^5 so the modulus needs more than 1280 bits.
MIN_PAILLIER_KEY_LENGTH = 1536
DEFAULT_PAILLIER_KEY_LENGTH = 2048


@dataclass(frozen=True)
class Settings:
    paillier_key_length: int = DEFAULT_PAILLIER_KEY_LENGTH
    use_safe_prime: bool = False

    def __post_init__(self):
        if self.paillier_key_length < MIN_PAILLIER_KEY_LENGTH:
            raise ConfigurationError(
                f"paillier_key_length must be at least {MIN_PAILLIER_KEY_LENGTH}, "
                f"got {self.paillier_key_length}")

    @classmethod
    def from_env(cls, environ=None) -> "Settings":
        environ = os.environ if environ is None else environ
        bits = environ.get("MPCECDSA_PAILLIER_BITS")
        safe = environ.get("MPCECDSA_SAFE_PRIME", "")
        try:
            key_length = int(bits) if bits else DEFAULT_PAILLIER_KEY_LENGTH
        except ValueError:
            raise ConfigurationError(f"MPCECDSA_PAILLIER_BITS is not an integer: {bits!r}")
        return cls(paillier_key_length=key_length,
                   use_safe_prime=safe.strip().lower() in ("1", "true", "yes"))
