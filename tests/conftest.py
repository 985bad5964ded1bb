"""Shared fixtures: local test keys and in-memory key services."""

import pytest
from cryptography.hazmat.primitives.asymmetric import ec, ed25519, rsa

from tufkms.services.inmemory import InMemoryKeyService
from tufkms.utils.retry import RetryPolicy


@pytest.fixture(scope="session")
def rsa_key():
    return rsa.generate_private_key(public_exponent=65537, key_size=2048)


@pytest.fixture(scope="session")
def other_rsa_key():
    return rsa.generate_private_key(public_exponent=65537, key_size=2048)


@pytest.fixture(scope="session")
def small_rsa_key():
    return rsa.generate_private_key(public_exponent=65537, key_size=1024)


@pytest.fixture(scope="session")
def p256_key():
    return ec.generate_private_key(ec.SECP256R1())


@pytest.fixture(scope="session")
def p384_key():
    return ec.generate_private_key(ec.SECP384R1())


@pytest.fixture(scope="session")
def p521_key():
    return ec.generate_private_key(ec.SECP521R1())


@pytest.fixture(scope="session")
def k256_key():
    return ec.generate_private_key(ec.SECP256K1())


@pytest.fixture(scope="session")
def ed25519_key():
    return ed25519.Ed25519PrivateKey.generate()


@pytest.fixture
def fast_retry():
    """Retry policy with no waiting between attempts."""
    return RetryPolicy(max_attempts=5, initial_backoff=0, max_backoff=0, jitter=0)


@pytest.fixture
def key_service(rsa_key, p256_key, p384_key, p521_key, k256_key, small_rsa_key):
    service = InMemoryKeyService()
    service.add_key("rsa-key", rsa_key)
    service.add_key("p256-key", p256_key)
    service.add_key("p384-key", p384_key)
    service.add_key("p521-key", p521_key)
    service.add_key("k256-key", k256_key)
    service.add_key("small-rsa-key", small_rsa_key)
    return service
