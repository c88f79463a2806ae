"""
Merge of a product record and a stock count into the response entity.
"""

from ..models import Product, ProductDetail


def merge(product: Product, stock_count: int) -> ProductDetail:
    """Copy the product fields and attach ``stock_count``."""
    return ProductDetail(
        id=product.id,
        name=product.name,
        description=product.description,
        price=product.price,
        stock_count=stock_count,
    )
