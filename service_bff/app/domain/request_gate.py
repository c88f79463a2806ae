"""
Authentication gate in front of the aggregation route.
"""

from typing import Optional

from shared.logging import set_user_context

from ..auth import TokenValidator
from ..models import ProductDetail
from .aggregator import Aggregator


class RequestGate:
    """Validates the caller's token, then delegates to the aggregator."""

    def __init__(self, validator: TokenValidator, aggregator: Aggregator):
        self.validator = validator
        self.aggregator = aggregator

    async def handle(self, product_id: str, authorization: Optional[str]) -> ProductDetail:
        claims = self.validator.validate(authorization)
        set_user_context(claims.username)
        return await self.aggregator.aggregate(product_id, authorization, claims)
