"""Fulfillment domain API package."""

from fulfillment.api.errors import register_exception_handlers
from fulfillment.api.routes import order_router, product_router, unshipped_item_router

__all__ = ["order_router", "product_router", "unshipped_item_router", "register_exception_handlers"]
