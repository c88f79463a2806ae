"""
Unit tests for the BFF service HTTP surface.
"""

import asyncio
import random
from decimal import Decimal

import httpx
import pytest
from fastapi.testclient import TestClient

from service_bff.app.main import BffService
from service_bff.app.models import ProductDetail
from shared.config import get_config
from shared.test_helpers import INVENTORY_URL, PRODUCT_URL, FakeBackend, MockTokenGenerator


class TestBffService:
    """Test cases for BffService."""

    @pytest.fixture
    def config(self):
        return get_config(
            "bff",
            env="test",
            product_service_url=PRODUCT_URL,
            inventory_service_url=INVENTORY_URL,
        )

    @pytest.fixture
    def service(self, config, verification_key, product_backend, inventory_backend):
        return BffService(
            config,
            verification_key=verification_key,
            product_http_client=product_backend.client(),
            inventory_http_client=inventory_backend.client(),
        )

    @pytest.fixture
    def client(self, service):
        return TestClient(service.app)

    @pytest.fixture
    def auth_headers(self, token_generator, user):
        return {"Authorization": token_generator.bearer(user)}

    def _no_backend_calls(self, product_backend, inventory_backend):
        return product_backend.requests == [] and inventory_backend.requests == []

    def test_root_endpoint(self, client):
        response = client.get("/")
        assert response.status_code == 200
        data = response.json()
        assert data["service"] == "bff"
        assert data["message"] == "BFF API is running!"

    def test_health_endpoint(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        data = response.json()
        assert data["service"] == "bff"
        assert data["status"] == "ok"

    def test_metrics_endpoint(self, client, auth_headers):
        client.get("/products/1", headers=auth_headers)

        response = client.get("/metrics")

        assert response.status_code == 200
        assert 'endpoint="/products/{product_id}"' in response.text
        assert "token_validations_total" in response.text

    def test_request_id_echoed(self, client, auth_headers):
        response = client.get("/products/1", headers={**auth_headers, "X-Request-ID": "req-42"})

        assert response.headers["X-Request-ID"] == "req-42"

    def test_request_id_generated(self, client):
        response = client.get("/")

        assert response.headers["X-Request-ID"]

    def test_aggregated_product(self, client, auth_headers):
        """Test a successful aggregation returns the merged record."""
        response = client.get("/products/1", headers=auth_headers)

        assert response.status_code == 200
        assert response.headers["content-type"] == "application/json"
        assert response.json() == {
            "id": 1,
            "name": "Photon Laptop",
            "description": "High-performance laptop for developers.",
            "price": 1200.0,
            "stockCount": 50,
        }

    def test_response_decodes_to_product_detail(self, client, auth_headers):
        response = client.get("/products/2", headers=auth_headers)

        assert ProductDetail.model_validate_json(response.content) == ProductDetail(
            id=2,
            name="Quantum Mouse",
            description="Ergonomic wireless mouse.",
            price=Decimal("75"),
            stock_count=120,
        )

    def test_out_of_stock_product(self, client, auth_headers):
        response = client.get("/products/3", headers=auth_headers)

        assert response.status_code == 200
        assert response.json()["stockCount"] == 0

    def test_credential_forwarding(self, client, auth_headers, product_backend, inventory_backend):
        """Test the caller's header goes to the product backend and not to inventory."""
        client.get("/products/1", headers=auth_headers)

        assert product_backend.requests[0].headers["Authorization"] == auth_headers["Authorization"]
        assert "Authorization" not in inventory_backend.requests[0].headers

    def test_repeated_requests_are_byte_identical(self, client, auth_headers):
        first = client.get("/products/1", headers=auth_headers)
        second = client.get("/products/1", headers=auth_headers)

        assert first.content == second.content

    @pytest.mark.parametrize("headers", [
        {},
        {"Authorization": ""},
        {"Authorization": "Basic dXNlcjpwYXNz"},
        {"Authorization": "bearer token"},
    ])
    def test_missing_or_malformed_header(self, client, headers, product_backend, inventory_backend):
        """Test non-Bearer headers are 401 with no downstream calls."""
        response = client.get("/products/1", headers=headers)

        assert response.status_code == 401
        data = response.json()
        assert data["code"] == "AUTHENTICATION_ERROR"
        assert data["details"]["reason"] == "MissingOrMalformedHeader"
        assert self._no_backend_calls(product_backend, inventory_backend)

    def test_untrusted_signing_key(self, client, foreign_rsa_keypair, user, product_backend, inventory_backend):
        forger = MockTokenGenerator(foreign_rsa_keypair.private_pem)

        response = client.get("/products/1", headers={"Authorization": forger.bearer(user)})

        assert response.status_code == 401
        assert response.json()["details"]["reason"] == "InvalidOrExpiredToken"
        assert self._no_backend_calls(product_backend, inventory_backend)

    def test_wrong_algorithm_family(self, client, ec_keypair, user):
        generator = MockTokenGenerator(ec_keypair.private_pem, algorithm="ES256")

        response = client.get("/products/1", headers={"Authorization": generator.bearer(user)})

        assert response.status_code == 401
        assert response.json()["details"]["reason"] == "UnexpectedSigningMethod"

    def test_wrong_issuer(self, client, rsa_keypair, user):
        generator = MockTokenGenerator(rsa_keypair.private_pem, issuer="not-my-api-gateway")

        response = client.get("/products/1", headers={"Authorization": generator.bearer(user)})

        assert response.status_code == 401
        assert response.json()["details"]["reason"] == "InvalidIssuer"
        assert "reason" in response.json()["details"]

    def test_expired_token(self, client, token_generator, user):
        response = client.get("/products/1", headers={"Authorization": token_generator.bearer(user, expires_in=-5)})

        assert response.status_code == 401
        assert response.json()["message"].startswith("Invalid token")

    def test_empty_product_id(self, client, auth_headers, product_backend, inventory_backend):
        """Test an empty id is a 400 without touching either backend."""
        response = client.get("/products/", headers=auth_headers)

        assert response.status_code == 400
        data = response.json()
        assert data["message"] == "Product ID required"
        assert data["details"]["reason"] == "MissingId"
        assert self._no_backend_calls(product_backend, inventory_backend)

    def test_empty_product_id_unauthenticated(self, client):
        response = client.get("/products/")

        assert response.status_code == 401

    def test_inventory_bad_status_defaults_stock(self, client, auth_headers, inventory_backend):
        inventory_backend.json("/inventory/1", {"error": "down"}, status_code=500)

        response = client.get("/products/1", headers=auth_headers)

        assert response.status_code == 200
        assert response.json()["stockCount"] == 0
        assert response.json()["name"] == "Photon Laptop"

    def test_inventory_timeout_defaults_stock(self, client, auth_headers, inventory_backend):
        inventory_backend.timeout("/inventory/1")

        response = client.get("/products/1", headers=auth_headers)

        assert response.status_code == 200
        assert response.json()["stockCount"] == 0

    def test_inventory_decode_error_defaults_stock(self, client, auth_headers, inventory_backend):
        inventory_backend.raw("/inventory/1", b"<html>oops</html>")

        response = client.get("/products/1", headers=auth_headers)

        assert response.status_code == 200
        assert response.json()["stockCount"] == 0

    def test_unknown_product(self, client, auth_headers):
        """Test a product backend 404 becomes a 502 carrying the downstream detail."""
        response = client.get("/products/99", headers=auth_headers)

        assert response.status_code == 502
        data = response.json()
        assert data["code"] == "EXTERNAL_SERVICE_ERROR"
        assert data["details"]["service"] == "product_service"
        assert data["details"]["kind"] == "BadStatus"
        assert data["details"]["status_code"] == 404
        assert "Not Found" in data["details"]["body"]

    def test_product_timeout_with_inventory_success(self, client, auth_headers, product_backend, inventory_backend):
        product_backend.timeout("/api/products/1")

        response = client.get("/products/1", headers=auth_headers)

        assert response.status_code == 502
        assert response.json()["details"]["kind"] == "Timeout"
        assert inventory_backend.completed == ["/inventory/1"]

    def test_product_decode_error(self, client, auth_headers, product_backend):
        product_backend.json("/api/products/1", {"id": "one"})

        response = client.get("/products/1", headers=auth_headers)

        assert response.status_code == 502
        assert response.json()["details"]["kind"] == "Decode"

    def test_both_backends_failing(self, client, auth_headers, product_backend, inventory_backend):
        product_backend.json("/api/products/1", {"error": "product down"}, status_code=503)
        inventory_backend.timeout("/inventory/1")

        response = client.get("/products/1", headers=auth_headers)

        assert response.status_code == 502
        assert response.json()["details"]["status_code"] == 503

    def test_missing_key_file_fails_startup(self, config, tmp_path):
        from service_bff.app.auth import KeyLoadError

        broken = config.model_copy(update={"public_key_path": str(tmp_path / "missing.pem")})

        with pytest.raises(KeyLoadError):
            BffService(broken)

    def test_key_loaded_from_configured_path(self, config, tmp_path, rsa_keypair):
        path = tmp_path / "public_key.pem"
        path.write_bytes(rsa_keypair.public_pem)

        service = BffService(config.model_copy(update={"public_key_path": str(path)}))

        assert service.verification_key.pem == rsa_keypair.public_pem.decode("ascii")
        assert service.token_validator.issuer == "my-api-gateway"


class TestConcurrentRequests:
    """Concurrent aggregation across independent products."""

    @pytest.mark.asyncio
    async def test_concurrent_requests_are_paired(self, verification_key, token_generator, user):
        """Test N concurrent requests each get their own product and stock."""
        count = 25
        products = FakeBackend()
        inventory = FakeBackend()
        rng = random.Random(7)
        for product_id in range(1, count + 1):
            products.json(
                f"/api/products/{product_id}",
                {"id": product_id, "name": f"Product {product_id}", "description": "d", "price": product_id * 10},
                delay=rng.uniform(0, 0.02),
            )
            inventory.json(
                f"/inventory/{product_id}",
                {"productId": product_id, "stockCount": product_id * 3},
                delay=rng.uniform(0, 0.02),
            )

        config = get_config("bff", env="test", product_service_url=PRODUCT_URL, inventory_service_url=INVENTORY_URL)
        service = BffService(
            config,
            verification_key=verification_key,
            product_http_client=products.client(),
            inventory_http_client=inventory.client(),
        )
        headers = {"Authorization": token_generator.bearer(user)}
        transport = httpx.ASGITransport(app=service.app)

        async with httpx.AsyncClient(transport=transport, base_url="http://bff") as client:
            responses = await asyncio.gather(*(
                client.get(f"/products/{product_id}", headers=headers)
                for product_id in range(1, count + 1)
            ))

        for product_id, response in zip(range(1, count + 1), responses):
            assert response.status_code == 200
            data = response.json()
            assert data["id"] == product_id
            assert data["name"] == f"Product {product_id}"
            assert data["stockCount"] == product_id * 3
