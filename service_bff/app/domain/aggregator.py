"""
Product aggregation: concurrent product and inventory fetches with an
asymmetric partial-failure policy.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Awaitable, Generic, Optional, Protocol, Tuple, TypeVar

from shared.errors import MissingProductIdError, UpstreamError
from shared.logging import get_logger
from shared.metrics import MetricsCollector

from ..auth import Claims
from ..models import InventoryItem, Product, ProductDetail
from .merger import merge


T = TypeVar("T")
T_co = TypeVar("T_co", covariant=True)

DEFAULT_STOCK_COUNT = 0


class Fetcher(Protocol[T_co]):
    async def fetch(self, resource_id: str, authorization: Optional[str] = None) -> T_co:
        ...


@dataclass(frozen=True)
class FetchOutcome(Generic[T]):
    """Settled result of one fetch: exactly one of ``value`` or ``error``."""

    value: Optional[T] = None
    error: Optional[UpstreamError] = None

    @property
    def ok(self) -> bool:
        return self.error is None


async def settle(awaitable: Awaitable[T]) -> FetchOutcome[T]:
    """Await ``awaitable`` and capture an ``UpstreamError`` instead of raising it."""
    try:
        return FetchOutcome(value=await awaitable)
    except UpstreamError as exc:
        return FetchOutcome(error=exc)


async def join_both(
    first: Awaitable[T], second: Awaitable[T]
) -> Tuple[FetchOutcome[T], FetchOutcome[T]]:
    """Run both awaitables concurrently and wait for both to settle.

    A failure of one never cancels the other; the pair is returned only once
    both have finished. An error other than ``UpstreamError`` is re-raised
    after the sibling has also finished.
    """
    first_outcome, second_outcome = await asyncio.gather(
        settle(first), settle(second), return_exceptions=True
    )
    for outcome in (first_outcome, second_outcome):
        if isinstance(outcome, BaseException):
            raise outcome
    return first_outcome, second_outcome


class Aggregator:
    """Builds a ``ProductDetail`` from the product and inventory backends."""

    def __init__(
        self,
        products: Fetcher[Product],
        inventory: Fetcher[InventoryItem],
        *,
        metrics: Optional[MetricsCollector] = None,
    ) -> None:
        self.products = products
        self.inventory = inventory
        self.metrics = metrics
        self.logger = get_logger("bff.aggregator")

    async def aggregate(
        self,
        product_id: str,
        authorization: Optional[str],
        claims: Optional[Claims] = None,
    ) -> ProductDetail:
        """Fetch, apply the partial-failure policy and merge.

        Raises ``MissingProductIdError`` before any network call when the id
        is empty, and the product ``UpstreamError`` when the product fetch
        fails. An inventory failure only downgrades the stock count to 0.
        """
        if not product_id or not product_id.strip():
            raise MissingProductIdError()

        username = claims.username if claims is not None else None
        self.logger.info("Aggregation started", product_id=product_id, username=username)

        # The caller's credential goes to the product backend only.
        product_outcome, inventory_outcome = await join_both(
            self.products.fetch(product_id, authorization),
            self.inventory.fetch(product_id),
        )

        if not product_outcome.ok:
            error = product_outcome.error
            self.logger.error(
                "Product API returned an error",
                product_id=product_id,
                kind=error.kind.value,
                error=error.message,
                upstream_status=error.upstream_status,
            )
            raise error

        stock_count = DEFAULT_STOCK_COUNT
        if inventory_outcome.ok:
            stock_count = inventory_outcome.value.stock_count
        else:
            error = inventory_outcome.error
            self.logger.warning(
                "Inventory API call failed, defaulting stock to 0",
                product_id=product_id,
                kind=error.kind.value,
                error=error.message,
            )
            if self.metrics is not None:
                self.metrics.increment_counter("inventory_fallbacks_total")

        detail = merge(product_outcome.value, stock_count)
        self.logger.info("Aggregation complete", product_id=product_id, stock_count=stock_count)
        return detail
