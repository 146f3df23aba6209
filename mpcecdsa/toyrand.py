"""
Sampling helpers. Everything goes through the secrets module.
"""

import math
import secrets


def int_sample(bound: int) -> int:
    """Uniform integer in [1, bound)."""
    if bound <= 1:
        raise ValueError("bound must be greater than 1")
    return secrets.randbelow(bound - 1) + 1


def sample_below(bound: int) -> int:
    """Uniform integer in [0, bound)."""
    return secrets.randbelow(bound)


def sample_unit(n: int) -> int:
    """Uniform element of Z*_n."""
    while True:
        x = int_sample(n)
        if math.gcd(x, n) == 1:
            return x
