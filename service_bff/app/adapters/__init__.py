"""
Backend adapters used by the aggregation route.
"""

from .downstream_client import DownstreamClient, inventory_client, product_client

__all__ = ["DownstreamClient", "inventory_client", "product_client"]
