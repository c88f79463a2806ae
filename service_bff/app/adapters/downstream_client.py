"""
Downstream fetch-and-decode client shared by the product and inventory lookups.
"""

from __future__ import annotations

import asyncio
import time
from typing import Generic, Optional, Type, TypeVar
from urllib.parse import quote

import httpx
from pydantic import BaseModel
from pydantic import ValidationError as DecodeError

from shared.errors import UpstreamError, UpstreamFailure
from shared.logging import get_logger
from shared.metrics import MetricsCollector

from ..models import InventoryItem, Product


DEFAULT_TIMEOUT_SECONDS = 5.0
PRODUCT_PATH = "/api/products/{id}"
INVENTORY_PATH = "/inventory/{id}"

ModelT = TypeVar("ModelT", bound=BaseModel)


class DownstreamClient(Generic[ModelT]):
    """Single-shot GET against one backend, decoded into ``model``.

    One attempt per call: a timeout, a non-200 status, a transport failure or
    an undecodable body each surface as ``UpstreamError`` with the matching
    ``UpstreamFailure`` kind. Nothing is retried.
    """

    def __init__(
        self,
        service: str,
        base_url: str,
        path_template: str,
        model: Type[ModelT],
        *,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        client: Optional[httpx.AsyncClient] = None,
        metrics: Optional[MetricsCollector] = None,
    ) -> None:
        self.service = service
        self.base_url = base_url.rstrip("/")
        self.path_template = path_template
        self.model = model
        self.timeout = timeout
        self.metrics = metrics
        self.logger = get_logger(f"bff.downstream.{service}")
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(timeout=timeout)

    async def close(self) -> None:
        """Close the underlying HTTP client if this instance created it."""
        if self._owns_client:
            await self._client.aclose()

    def url_for(self, resource_id: str) -> str:
        return self.base_url + self.path_template.format(id=quote(resource_id, safe=""))

    async def fetch(self, resource_id: str, authorization: Optional[str] = None) -> ModelT:
        """Fetch and decode one resource, forwarding ``authorization`` when given."""
        url = self.url_for(resource_id)
        headers = {"Authorization": authorization} if authorization else {}

        start_time = time.time()
        try:
            # httpx bounds each phase; wait_for bounds the whole exchange.
            response = await asyncio.wait_for(
                self._client.get(url, headers=headers, timeout=self.timeout),
                self.timeout,
            )
        except (httpx.TimeoutException, asyncio.TimeoutError) as exc:
            raise self._failure(
                UpstreamFailure.TIMEOUT,
                f"request to {url} timed out after {self.timeout}s",
            ) from exc
        except httpx.RequestError as exc:
            raise self._failure(
                UpstreamFailure.UNREACHABLE,
                f"request to {url} failed: {exc}",
            ) from exc
        finally:
            self._observe_duration(time.time() - start_time)

        if response.status_code != 200:
            raise self._failure(
                UpstreamFailure.BAD_STATUS,
                f"unexpected status code: {response.status_code}",
                status_code=response.status_code,
                body=response.text,
            )

        try:
            entity = self.model.model_validate_json(response.content)
        except DecodeError as exc:
            raise self._failure(
                UpstreamFailure.DECODE,
                f"could not decode {self.model.__name__}: {exc.error_count()} error(s)",
            ) from exc

        self._count("ok")
        self.logger.debug("Downstream fetch succeeded", url=url)
        return entity

    def _failure(
        self,
        kind: UpstreamFailure,
        message: str,
        *,
        status_code: Optional[int] = None,
        body: Optional[str] = None,
    ) -> UpstreamError:
        self._count(kind.value)
        return UpstreamError(self.service, kind, message, status_code=status_code, body=body)

    def _count(self, outcome: str) -> None:
        if self.metrics is not None:
            self.metrics.increment_counter(
                "downstream_requests_total", service=self.service, outcome=outcome
            )

    def _observe_duration(self, duration: float) -> None:
        if self.metrics is not None:
            metric = self.metrics.get_metric("downstream_request_duration_seconds")
            if metric is not None:
                metric.labels(service=self.service).observe(duration)


def product_client(
    base_url: str,
    *,
    timeout: float = DEFAULT_TIMEOUT_SECONDS,
    client: Optional[httpx.AsyncClient] = None,
    metrics: Optional[MetricsCollector] = None,
) -> DownstreamClient[Product]:
    """Client for ``GET {base_url}/api/products/{id}``."""
    return DownstreamClient(
        "product_service", base_url, PRODUCT_PATH, Product,
        timeout=timeout, client=client, metrics=metrics,
    )


def inventory_client(
    base_url: str,
    *,
    timeout: float = DEFAULT_TIMEOUT_SECONDS,
    client: Optional[httpx.AsyncClient] = None,
    metrics: Optional[MetricsCollector] = None,
) -> DownstreamClient[InventoryItem]:
    """Client for ``GET {base_url}/inventory/{id}``."""
    return DownstreamClient(
        "inventory_service", base_url, INVENTORY_PATH, InventoryItem,
        timeout=timeout, client=client, metrics=metrics,
    )
