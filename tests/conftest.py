import sys
import os
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import pytest
from custody_crypto.layers.layer2_keys import generate_keypair, parse_private, parse_public


@pytest.fixture(scope="session")
def keypair():
    """PKCS#8 / SPKI PEM pair, 2048 bits."""
    return generate_keypair(2048, 8)


@pytest.fixture(scope="session")
def pkcs1_keypair():
    """PKCS#1 PEM pair, 2048 bits."""
    return generate_keypair(2048, 1)


@pytest.fixture(scope="session")
def other_keypair():
    return generate_keypair(2048, 8)


@pytest.fixture(scope="session")
def private_key(keypair):
    return parse_private(keypair[0])


@pytest.fixture(scope="session")
def public_key(keypair):
    return parse_public(keypair[1])
