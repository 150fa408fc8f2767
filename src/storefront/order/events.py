"""Domain events for the Order aggregate.

Every status change raises one of these; together with the order's
``status_history`` they form the order's event log.
"""

from protean.fields import Boolean, DateTime, Float, Identifier, String, Text

from storefront.domain import storefront


@storefront.event(part_of="Order")
class OrderPlaced:
    """An order was created from the user's cart and a payment intent was opened."""

    __version__ = 1

    order_id = Identifier(required=True)
    order_number = String(required=True)
    user_id = Identifier(required=True)
    contact_email = String()
    lines = Text(required=True)  # JSON: list of line dicts
    subtotal = Float(required=True)
    shipping_cost = Float(required=True)
    tax_amount = Float(required=True)
    total_amount = Float(required=True)
    currency = String(required=True)
    payment_method = String(required=True)
    transaction_id = String(required=True)
    placed_at = DateTime(required=True)


@storefront.event(part_of="Order")
class PaymentConfirmed:
    """The gateway reported a successful payment; the order moved to processing."""

    __version__ = 1

    order_id = Identifier(required=True)
    order_number = String(required=True)
    user_id = Identifier(required=True)
    transaction_id = String(required=True)
    confirmed_at = DateTime(required=True)


@storefront.event(part_of="Order")
class PaymentFailed:
    __version__ = 1

    order_id = Identifier(required=True)
    transaction_id = String(required=True)
    reason = String()
    failed_at = DateTime(required=True)


@storefront.event(part_of="Order")
class OrderCancelled:
    __version__ = 1

    order_id = Identifier(required=True)
    order_number = String(required=True)
    user_id = Identifier(required=True)
    previous_status = String(required=True)
    cancelled_by = Identifier(required=True)
    reason = String()
    payment_status = String(required=True)
    cancelled_at = DateTime(required=True)


@storefront.event(part_of="Order")
class OrderShipped:
    __version__ = 1

    order_id = Identifier(required=True)
    order_number = String(required=True)
    tracking_number = String()
    shipped_at = DateTime(required=True)


@storefront.event(part_of="Order")
class OrderDelivered:
    """The order reached the customer; its lines became reviewable."""

    __version__ = 1

    order_id = Identifier(required=True)
    order_number = String(required=True)
    user_id = Identifier(required=True)
    contact_email = String()
    lines = Text(required=True)  # JSON: list of line dicts
    tracking_number = String()
    delivered_at = DateTime(required=True)
    review_expires_at = DateTime(required=True)


@storefront.event(part_of="Order")
class OrderRefunded:
    __version__ = 1

    order_id = Identifier(required=True)
    order_number = String(required=True)
    user_id = Identifier(required=True)
    contact_email = String()
    lines = Text(required=True)
    amount = Float(required=True)
    currency = String(required=True)
    reason = String()
    refunded_at = DateTime(required=True)


@storefront.event(part_of="Order")
class OrderNeedsAttention:
    """Something happened that an operator must look at by hand."""

    __version__ = 1

    order_id = Identifier(required=True)
    order_number = String(required=True)
    reason = String(required=True)
    notes = Text(required=True)
    flagged_at = DateTime(required=True)


@storefront.event(part_of="Order")
class OrderLineReviewed:
    __version__ = 1

    order_id = Identifier(required=True)
    product_id = Identifier(required=True)
    variant_id = Identifier(required=True)
    review_id = Identifier(required=True)
    all_lines_reviewed = Boolean(required=True)
