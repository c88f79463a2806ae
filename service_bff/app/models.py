"""
Wire models for the product and inventory backends and the merged response.
"""

from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field, field_serializer
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Base model reading and writing camelCase JSON keys."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
    )


class Product(CamelModel):
    """Product record as served by the product backend."""

    id: int
    name: str
    description: str
    price: Decimal

    @field_serializer("price", when_used="json")
    def _price_as_number(self, price: Decimal) -> float:
        return float(price)

    def to_json(self) -> dict:
        return self.model_dump(mode="json", by_alias=True)


class InventoryItem(CamelModel):
    """Stock record as served by the inventory backend."""

    product_id: int
    stock_count: int = Field(ge=0)


class ProductDetail(Product):
    """Aggregated product view returned to the caller."""

    stock_count: int = Field(ge=0)
