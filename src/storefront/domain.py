"""Storefront bounded context — Cart, Checkout, Payments, Inventory and Reviews.

Handles the order lifecycle from shopping cart through checkout, payment
intent creation, webhook-driven payment confirmation, inventory adjustment,
admin fulfilment updates and post-delivery review eligibility.
"""

import structlog
from protean.domain import Domain

storefront = Domain(name="storefront")

logger = structlog.get_logger(__name__)
