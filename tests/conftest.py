import pytest

from mpcecdsa.config import Settings
from mpcecdsa.dlog_statement import generate_h1_h2_n_tilde
from mpcecdsa.orchestrator import run_keygen
from mpcecdsa.paillier_keys import generate_paillier_keypair

# smallest modulus the MtA plaintexts fit in; keeps key generation quick
FAST = Settings(paillier_key_length=1536)


@pytest.fixture(scope="session")
def local_keys():
    """3-of-4: t = 2, n = 4, default key length."""
    return run_keygen(2, 4)


@pytest.fixture(scope="session")
def small_local_keys():
    """2-of-2: t = 1, n = 2."""
    return run_keygen(1, 2, FAST)


@pytest.fixture(scope="session")
def paillier_pair():
    return generate_paillier_keypair(FAST.paillier_key_length)


@pytest.fixture(scope="session")
def statements():
    """Two independent (N~, h1, h2) setups, for Alice and for Bob."""
    return [generate_h1_h2_n_tilde(FAST.paillier_key_length)[0] for _ in range(2)]
