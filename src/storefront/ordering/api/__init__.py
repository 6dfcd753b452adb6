"""Ordering API package."""

from storefront.ordering.api.routes import checkout_router, order_router, shipping_router

__all__ = ["checkout_router", "order_router", "shipping_router"]
