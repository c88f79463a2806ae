"""
Shared fixtures for BFF tests.
"""

import pytest

from service_bff.app.auth import verification_key_from_pem
from shared.test_helpers import (
    FakeBackend,
    MockTokenGenerator,
    generate_ec_keypair,
    generate_rsa_keypair,
    test_data_factory,
)


@pytest.fixture(scope="session")
def rsa_keypair():
    """Signing key pair the service trusts."""
    return generate_rsa_keypair()


@pytest.fixture(scope="session")
def foreign_rsa_keypair():
    """A second RSA key pair the service does not trust."""
    return generate_rsa_keypair()


@pytest.fixture(scope="session")
def ec_keypair():
    """EC key pair for algorithm family checks."""
    return generate_ec_keypair()


@pytest.fixture(scope="session")
def verification_key(rsa_keypair):
    return verification_key_from_pem(rsa_keypair.public_pem)


@pytest.fixture
def token_generator(rsa_keypair):
    return MockTokenGenerator(rsa_keypair.private_pem)


@pytest.fixture
def user():
    return test_data_factory.create_test_users()[0]


@pytest.fixture
def product_backend():
    backend = FakeBackend()
    for product in test_data_factory.create_test_products():
        backend.json(f"/api/products/{product['id']}", product)
    return backend


@pytest.fixture
def inventory_backend():
    backend = FakeBackend()
    for item in test_data_factory.create_test_inventory():
        backend.json(f"/inventory/{item['productId']}", item)
    return backend
