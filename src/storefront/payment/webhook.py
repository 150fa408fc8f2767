"""Payment webhook processing — command, handler and entry point.

The gateway calls back out of band, possibly more than once and possibly
while the customer is cancelling. ``handle_webhook`` verifies the signature
over the raw body, resolves the order by transaction id and processes the
event under the order's lock (plus the variant locks of its lines), so a
redelivered success is seen as already paid and becomes a no-op.
"""

import structlog
from protean import handle
from protean.fields import String
from protean.utils.globals import current_domain

from storefront.cart.cart import ShoppingCart
from storefront.cart.items import find_cart
from storefront.domain import storefront
from storefront.inventory.adjuster import adjust_for_order
from storefront.order.locking import with_order_lock, with_variant_locks
from storefront.order.order import Order, OrderStatus, PaymentStatus
from storefront.order.queries import find_order_by_transaction
from storefront.payment.gateway import get_gateway
from storefront.payment.gateway.port import PAYMENT_FAILED, PAYMENT_SUCCEEDED

logger = structlog.get_logger(__name__)

HANDLED_EVENT_TYPES = (PAYMENT_SUCCEEDED, PAYMENT_FAILED)


@storefront.command(part_of="Order")
class ProcessPaymentWebhook:
    """Apply a verified gateway event to the order holding its transaction id."""

    event_id = String(max_length=255)
    event_type = String(required=True, max_length=100)
    transaction_id = String(required=True, max_length=255)
    failure_reason = String(max_length=500)


@storefront.command_handler(part_of=Order)
class ProcessWebhookHandler:
    @handle(ProcessPaymentWebhook)
    def process_webhook(self, command):
        order = find_order_by_transaction(command.transaction_id)
        if order is None:
            logger.warning(
                "Webhook for unknown transaction ignored",
                event_id=command.event_id,
                transaction_id=command.transaction_id,
            )
            return "ignored"

        if command.event_type == PAYMENT_SUCCEEDED:
            return self._payment_succeeded(order, command)
        if command.event_type == PAYMENT_FAILED:
            return self._payment_failed(order, command)
        return "ignored"

    def _payment_succeeded(self, order, command):
        repo = current_domain.repository_for(Order)
        payment_status = PaymentStatus(order.payment_status)

        if payment_status in (PaymentStatus.PAID, PaymentStatus.REFUNDED):
            logger.info(
                "Duplicate payment success ignored",
                order_id=str(order.id),
                event_id=command.event_id,
                payment_status=order.payment_status,
            )
            return "duplicate"

        if OrderStatus(order.status) == OrderStatus.CANCELLED:
            self._refund_late_payment(order)
            repo.add(order)
            return "refunded_after_cancellation"

        order.confirm_payment()

        shortfalls = adjust_for_order(order)
        if shortfalls:
            order.flag_for_attention(
                "partial_fulfilment",
                "Insufficient stock after payment: " + "; ".join(s.describe() for s in shortfalls),
            )

        cart = find_cart(order.user_id)
        if cart is not None:
            cart.clear(reason="order_paid")
            current_domain.repository_for(ShoppingCart).add(cart)

        repo.add(order)
        logger.info(
            "Payment confirmed",
            order_id=str(order.id),
            order_number=order.order_number,
            shortfalls=len(shortfalls),
        )
        return "confirmed"

    def _refund_late_payment(self, order):
        """Money arrived for an order that was already cancelled: give it back, tell ops."""
        order.record_late_payment()
        result = get_gateway().refund(order.payment_transaction_id)
        if result.success:
            order.record_refund(reason="Payment received after cancellation")
            note = f"Payment received after cancellation; refunded ({result.refund_id})"
        else:
            logger.error(
                "Refund of late payment failed",
                order_id=str(order.id),
                transaction_id=order.payment_transaction_id,
                reason=result.failure_reason,
            )
            note = f"Payment received after cancellation; refund failed: {result.failure_reason}"
        order.flag_for_attention("payment_after_cancellation", note)

    def _payment_failed(self, order, command):
        if PaymentStatus(order.payment_status) != PaymentStatus.PENDING:
            logger.info(
                "Payment failure for settled payment ignored",
                order_id=str(order.id),
                payment_status=order.payment_status,
            )
            return "duplicate"

        order.record_payment_failure(command.failure_reason)
        current_domain.repository_for(Order).add(order)
        logger.info("Payment failed", order_id=str(order.id), reason=command.failure_reason)
        return "failed"


def handle_webhook(payload: bytes, signature: str) -> str:
    """Verify and apply one webhook delivery. Returns what was done.

    Raises ``InvalidWebhookSignature`` for a bad signature; everything else
    is acknowledged, including events for unknown transactions.
    """
    event = get_gateway().construct_event(payload, signature)

    if event.type not in HANDLED_EVENT_TYPES:
        logger.info("Unhandled webhook event type", event_id=event.id, event_type=event.type)
        return "ignored"

    order = find_order_by_transaction(event.external_id)
    if order is None:
        logger.warning("Webhook for unknown transaction ignored", event_id=event.id, transaction_id=event.external_id)
        return "ignored"

    variant_ids = [str(line.variant_id) for line in order.lines] if event.type == PAYMENT_SUCCEEDED else []
    with with_order_lock(order.id), with_variant_locks(variant_ids):
        return current_domain.process(
            ProcessPaymentWebhook(
                event_id=event.id,
                event_type=event.type,
                transaction_id=event.external_id,
                failure_reason=event.failure_reason,
            ),
            asynchronous=False,
        )
