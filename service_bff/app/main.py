"""
Product BFF service: authenticated product + inventory aggregation.
"""

from typing import Optional

import httpx
from fastapi import Header
from fastapi.responses import JSONResponse

from shared.base_service import BaseService
from shared.config import ServiceConfig

from .adapters import inventory_client, product_client
from .auth import TokenValidator, VerificationKey, load_verification_key
from .domain import Aggregator, RequestGate


class BffService(BaseService):
    """BFF service implementation."""

    def __init__(
        self,
        config: Optional[ServiceConfig] = None,
        *,
        verification_key: Optional[VerificationKey] = None,
        product_http_client: Optional[httpx.AsyncClient] = None,
        inventory_http_client: Optional[httpx.AsyncClient] = None,
    ):
        super().__init__("bff", config)

        # Loaded once; the validator only ever reads it.
        self.verification_key = verification_key or load_verification_key(self.config.public_key_path)
        self.token_validator = TokenValidator(
            self.verification_key,
            self.config.token_issuer,
            metrics=self.metrics,
        )

        timeout = self.config.downstream_timeout_seconds
        self.product_client = product_client(
            self.config.product_service_url,
            timeout=timeout,
            client=product_http_client,
            metrics=self.metrics,
        )
        self.inventory_client = inventory_client(
            self.config.inventory_service_url,
            timeout=timeout,
            client=inventory_http_client,
            metrics=self.metrics,
        )
        self.aggregator = Aggregator(self.product_client, self.inventory_client, metrics=self.metrics)
        self.gate = RequestGate(self.token_validator, self.aggregator)

        @self.app.on_event("shutdown")
        async def _shutdown():
            await self.product_client.close()
            await self.inventory_client.close()

        self._setup_bff_routes()

        # Expose service instance via app state for introspection/testing
        self.app.state.bff_service = self

    def _setup_bff_routes(self):
        """Set up aggregation routes."""

        @self.app.get("/")
        async def root():
            """Root endpoint."""
            return {
                "service": "bff",
                "message": "BFF API is running!",
                "version": "1.0.0"
            }

        @self.app.get("/products/", include_in_schema=False)
        async def get_product_without_id(authorization: Optional[str] = Header(default=None)):
            """Empty product id: authenticated callers get a 400."""
            detail = await self.gate.handle("", authorization)
            return JSONResponse(content=detail.to_json())

        @self.app.get("/products/{product_id}")
        async def get_product(product_id: str, authorization: Optional[str] = Header(default=None)):
            """Product record merged with its stock count."""
            detail = await self.gate.handle(product_id, authorization)
            return JSONResponse(content=detail.to_json())


def create_app():
    """Create FastAPI application."""
    service = BffService()
    return service.app


if __name__ == "__main__":
    service = BffService()
    service.run()
