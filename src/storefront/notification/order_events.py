"""Order notifications — customer emails and operator alerts.

Reacts to OrderPlaced, OrderDelivered and OrderRefunded (email to the
order's contact address) and OrderNeedsAttention (ops Slack channel).
"""

import json

import structlog
from protean.utils.mixins import handle

from storefront.domain import storefront
from storefront.notification.dispatch import alert_ops, send_email
from storefront.order.events import OrderDelivered, OrderNeedsAttention, OrderPlaced, OrderRefunded
from storefront.order.order import Order

logger = structlog.get_logger(__name__)


@storefront.event_handler(part_of=Order)
class OrderNotificationsHandler:
    @handle(OrderPlaced)
    def on_order_placed(self, event: OrderPlaced) -> None:
        send_email(
            event.contact_email,
            "order_placed",
            {
                "order_id": str(event.order_id),
                "order_number": event.order_number,
                "total_amount": f"{event.total_amount:.2f}",
                "currency": event.currency,
                "lines": json.loads(event.lines) if event.lines else [],
            },
        )

    @handle(OrderDelivered)
    def on_order_delivered(self, event: OrderDelivered) -> None:
        send_email(
            event.contact_email,
            "order_delivered",
            {
                "order_id": str(event.order_id),
                "order_number": event.order_number,
                "review_expires_at": event.review_expires_at.strftime("%B %d, %Y"),
            },
        )

    @handle(OrderRefunded)
    def on_order_refunded(self, event: OrderRefunded) -> None:
        send_email(
            event.contact_email,
            "order_refunded",
            {
                "order_id": str(event.order_id),
                "order_number": event.order_number,
                "amount": f"{event.amount:.2f}",
                "currency": event.currency,
                "reason": event.reason,
            },
        )

    @handle(OrderNeedsAttention)
    def on_order_needs_attention(self, event: OrderNeedsAttention) -> None:
        logger.warning("Order needs attention", order_id=str(event.order_id), reason=event.reason)
        alert_ops(
            "order_attention",
            {
                "order_id": str(event.order_id),
                "order_number": event.order_number,
                "reason": event.reason,
                "notes": event.notes,
            },
        )
