"""
Mock product backend serving the product catalogue behind bearer auth.
"""

import os
from decimal import Decimal
from typing import Dict, Optional

from fastapi import FastAPI, Header, HTTPException
from fastapi.responses import JSONResponse

from service_bff.app.auth import TokenValidator, VerificationKey, load_verification_key
from service_bff.app.models import Product
from shared.config import DEFAULT_ISSUER
from shared.errors import AuthenticationError
from shared.logging import get_logger


class MockProductServer:
    """Mock product API implementation."""

    def __init__(
        self,
        verification_key: Optional[VerificationKey] = None,
        issuer: str = DEFAULT_ISSUER,
        public_key_path: Optional[str] = None,
    ):
        self.logger = get_logger("mock.product_api")
        self.app = FastAPI(title="Mock Product API", version="1.0.0")

        if verification_key is None:
            verification_key = load_verification_key(
                public_key_path or os.getenv("PUBLIC_KEY_PATH", "/app/public_key.pem")
            )
        self.validator = TokenValidator(verification_key, issuer)

        self.products: Dict[int, Product] = {
            1: Product(id=1, name="Photon Laptop", description="High-performance laptop for developers.", price=Decimal("1200")),
            2: Product(id=2, name="Quantum Mouse", description="Ergonomic wireless mouse.", price=Decimal("75")),
            3: Product(id=3, name="Singularity Keyboard", description="Mechanical keyboard with RGB.", price=Decimal("150")),
        }

        self._setup_routes()

    def _setup_routes(self):
        """Set up mock product routes."""

        @self.app.get("/")
        async def root():
            return {"service": "mock-product-api", "message": "Product API is running!"}

        @self.app.get("/api/products/{product_id}")
        async def get_product(product_id: int, authorization: Optional[str] = Header(default=None)):
            """Single product; requires a token the BFF would also accept."""
            try:
                claims = self.validator.validate(authorization)
            except AuthenticationError as e:
                raise HTTPException(status_code=401, detail=e.message)

            self.logger.info("Product request", product_id=product_id, username=claims.username)

            product = self.products.get(product_id)
            if product is None:
                raise HTTPException(status_code=404, detail="Product not found")

            return JSONResponse(content=product.to_json())


def create_app():
    """Create mock product application."""
    server = MockProductServer()
    return server.app


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(create_app(), host="0.0.0.0", port=8080)
