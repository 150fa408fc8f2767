"""Storefront HTTP API."""

from storefront.api.errors import register_storefront_exception_handlers
from storefront.api.routes import (
    address_router,
    admin_router,
    cart_router,
    order_router,
    product_router,
    review_router,
)

ROUTERS = [product_router, address_router, cart_router, order_router, review_router, admin_router]

__all__ = ["ROUTERS", "register_storefront_exception_handlers"]
