"""Order cancellation and refund — commands, handler and locked entry points."""

import structlog
from protean import handle
from protean.exceptions import ValidationError
from protean.fields import Float, Identifier, String
from protean.utils.globals import current_domain

from storefront.domain import storefront
from storefront.errors import NotAuthorizedError, PaymentGatewayError
from storefront.inventory.adjuster import restore_for_order
from storefront.order.locking import with_order_lock, with_variant_locks
from storefront.order.order import Order, OrderStatus, PaymentStatus
from storefront.order.queries import is_staff, order_variant_ids
from storefront.payment.gateway import get_gateway
from storefront.utils.money import to_minor_units

logger = structlog.get_logger(__name__)


@storefront.command(part_of="Order")
class CancelOrder:
    order_id = Identifier(required=True)
    requested_by = Identifier(required=True)
    role = String(max_length=20, default="customer")
    reason = String(max_length=500)


@storefront.command(part_of="Order")
class RefundOrder:
    order_id = Identifier(required=True)
    requested_by = Identifier(required=True)
    role = String(max_length=20, default="customer")
    amount = Float(min_value=0.01)  # Optional, defaults to the order total
    reason = String(max_length=500)


def cancel(order, cancelled_by, reason=None):
    """Cancel ``order`` and settle whatever its payment state leaves behind.

    A still-pending intent is voided, best-effort: a gateway failure is
    logged and the local cancellation still goes ahead. A paid order keeps
    its payment for staff to refund; the stock it took is put back (unless
    it already shipped) and the order is flagged for attention.
    """
    previous = OrderStatus(order.status)
    was_paid = PaymentStatus(order.payment_status) == PaymentStatus.PAID
    order.cancel(cancelled_by=cancelled_by, reason=reason)

    if previous == OrderStatus.PENDING and order.payment_transaction_id:
        try:
            get_gateway().cancel_intent(order.payment_transaction_id)
        except PaymentGatewayError as exc:
            logger.warning(
                "Payment intent cancellation failed, order cancelled anyway",
                order_id=str(order.id),
                transaction_id=order.payment_transaction_id,
                reason=exc.reason,
            )
    elif was_paid:
        _flag_paid_cancellation(order, previous)

    logger.info("Order cancelled", order_id=str(order.id), cancelled_by=str(cancelled_by))


def _flag_paid_cancellation(order, previous):
    if previous == OrderStatus.PROCESSING:
        restored = restore_for_order(order)
        stock_note = f"{len(restored)} of {len(order.lines)} line(s) restocked"
    else:
        # Goods have left the warehouse; they come back through a return
        stock_note = f"stock not restored, order was {previous.value}"

    logger.warning(
        "Paid order cancelled, refund pending",
        order_id=str(order.id),
        order_number=order.order_number,
        transaction_id=order.payment_transaction_id,
    )
    order.flag_for_attention(
        "paid_order_cancelled",
        f"Order cancelled after payment; refund {order.total_amount:.2f} {order.currency.upper()} pending; {stock_note}",
    )


@storefront.command_handler(part_of=Order)
class CancelOrderHandler:
    @handle(CancelOrder)
    def cancel_order(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)

        if not is_staff(command.role) and not order.is_owned_by(command.requested_by):
            raise NotAuthorizedError("You can only cancel your own orders")

        cancel(order, command.requested_by, command.reason)
        repo.add(order)
        return order.status

    @handle(RefundOrder)
    def refund_order(self, command):
        if not is_staff(command.role):
            raise NotAuthorizedError("Only staff can issue refunds")

        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)

        if OrderStatus(order.status) != OrderStatus.CANCELLED:
            raise ValidationError({"status": ["Only cancelled orders can be refunded"]})
        if PaymentStatus(order.payment_status) != PaymentStatus.PAID:
            raise ValidationError({"payment": ["Only paid orders can be refunded"]})

        amount = command.amount if command.amount is not None else order.total_amount
        if amount > order.total_amount:
            raise ValidationError({"amount": ["Refund cannot exceed the order total"]})

        result = get_gateway().refund(order.payment_transaction_id, to_minor_units(amount))
        if not result.success:
            raise PaymentGatewayError("refund", result.failure_reason or "Unknown failure")

        order.record_refund(amount=amount, reason=command.reason)
        repo.add(order)
        logger.info("Order refunded", order_id=str(order.id), amount=amount, refund_id=result.refund_id)
        return result.refund_id


def cancel_order(order_id, requested_by, role=None, reason=None) -> str:
    """Cancel an order, serialized against webhooks and status updates for it.

    The variant locks cover the restock of a paid order's lines.
    """
    with with_order_lock(order_id), with_variant_locks(order_variant_ids(order_id)):
        return current_domain.process(
            CancelOrder(order_id=order_id, requested_by=requested_by, role=role or "customer", reason=reason),
            asynchronous=False,
        )


def refund_order(order_id, requested_by, role=None, amount=None, reason=None) -> str:
    with with_order_lock(order_id):
        return current_domain.process(
            RefundOrder(
                order_id=order_id,
                requested_by=requested_by,
                role=role or "customer",
                amount=amount,
                reason=reason,
            ),
            asynchronous=False,
        )
