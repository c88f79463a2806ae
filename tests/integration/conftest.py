"""
Fixtures wiring the BFF to the in-process mock backends.
"""

import httpx
import pytest

from mocks.inventory_api.server import MockInventoryServer
from mocks.product_api.server import MockProductServer
from mocks.token_exchanger.server import MockTokenExchangerServer
from service_bff.app.auth import verification_key_from_pem
from service_bff.app.main import BffService
from shared.config import get_config
from shared.test_helpers import (
    INVENTORY_URL,
    PRODUCT_URL,
    MockTokenGenerator,
    generate_rsa_keypair,
    test_data_factory,
)


@pytest.fixture(scope="session")
def rsa_keypair():
    return generate_rsa_keypair()


@pytest.fixture(scope="session")
def verification_key(rsa_keypair):
    return verification_key_from_pem(rsa_keypair.public_pem)


@pytest.fixture
def token_generator(rsa_keypair):
    return MockTokenGenerator(rsa_keypair.private_pem)


@pytest.fixture
def auth_headers(token_generator):
    user = test_data_factory.create_test_users()[0]
    return {"Authorization": token_generator.bearer(user)}


@pytest.fixture
def product_server(verification_key):
    return MockProductServer(verification_key=verification_key)


@pytest.fixture
def inventory_server():
    return MockInventoryServer(delay_ms=0, fail_mode="")


@pytest.fixture
def bff_factory(verification_key, product_server):
    """Build a BFF whose downstream clients talk to the mocks over ASGI."""

    def build(inventory_server):
        config = get_config(
            "bff",
            env="test",
            product_service_url=PRODUCT_URL,
            inventory_service_url=INVENTORY_URL,
        )
        return BffService(
            config,
            verification_key=verification_key,
            product_http_client=httpx.AsyncClient(transport=httpx.ASGITransport(app=product_server.app)),
            inventory_http_client=httpx.AsyncClient(transport=httpx.ASGITransport(app=inventory_server.app)),
        )

    return build


@pytest.fixture
def exchanger_server(rsa_keypair):
    return MockTokenExchangerServer(private_key_pem=rsa_keypair.private_pem)
