"""
Mock inventory backend serving stock counts without authentication.

Fault injection for local runs:

- ``INVENTORY_DELAY_MS``: sleep before answering every stock request.
- ``INVENTORY_FAIL_MODE``: ``error`` answers 500, ``garbage`` answers a
  non-JSON body, anything else (or unset) answers normally.
"""

import asyncio
import os
from typing import Dict, Optional

from fastapi import FastAPI
from fastapi.responses import JSONResponse, PlainTextResponse

from service_bff.app.models import InventoryItem
from shared.logging import get_logger


class MockInventoryServer:
    """Mock inventory API implementation."""

    def __init__(self, delay_ms: Optional[int] = None, fail_mode: Optional[str] = None):
        self.logger = get_logger("mock.inventory_api")
        self.app = FastAPI(title="Mock Inventory API", version="1.0.0")

        if delay_ms is None:
            delay_ms = int(os.getenv("INVENTORY_DELAY_MS", "0"))
        if fail_mode is None:
            fail_mode = os.getenv("INVENTORY_FAIL_MODE", "")
        self.delay_ms = delay_ms
        self.fail_mode = fail_mode.lower()

        self.inventory: Dict[int, InventoryItem] = {
            1: InventoryItem(product_id=1, stock_count=50),
            2: InventoryItem(product_id=2, stock_count=120),
            3: InventoryItem(product_id=3, stock_count=0),
        }

        self._setup_routes()

    def _setup_routes(self):
        """Set up mock inventory routes."""

        @self.app.get("/")
        async def root():
            return {"service": "mock-inventory-api", "message": "Inventory API is running!"}

        @self.app.get("/inventory/{product_id}")
        async def get_inventory(product_id: int):
            """Stock for a product; unknown products have none."""
            self.logger.info("Inventory check", product_id=product_id, fail_mode=self.fail_mode or None)

            if self.delay_ms > 0:
                await asyncio.sleep(self.delay_ms / 1000)

            if self.fail_mode == "error":
                return JSONResponse(status_code=500, content={"error": "inventory unavailable"})
            if self.fail_mode == "garbage":
                return PlainTextResponse("stock: lots")

            item = self.inventory.get(product_id) or InventoryItem(product_id=product_id, stock_count=0)
            return JSONResponse(content=item.model_dump(by_alias=True))


def create_app():
    """Create mock inventory application."""
    server = MockInventoryServer()
    return server.app


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(create_app(), host="0.0.0.0", port=8080)
