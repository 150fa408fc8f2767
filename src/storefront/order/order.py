"""Order aggregate (CQRS) — the order ledger and its status state machine.

An order is written once at checkout, complete with frozen line prices and
the payment intent's transaction id, and then only moves forward:

    pending ──payment──▶ processing ──▶ shipped ──▶ delivered
       │                     │             │
       └──────────┬──────────┴─────────────┘
                  ▼
              cancelled

delivered and cancelled are terminal. pending → processing happens only on
a confirmed payment. Every transition appends a StatusChange to
``status_history`` and raises a domain event.
"""

import json
from datetime import timedelta
from enum import Enum

from protean import atomic_change, invariant
from protean.exceptions import ValidationError
from protean.fields import (
    Boolean,
    DateTime,
    Float,
    HasMany,
    Identifier,
    Integer,
    String,
    Text,
)

from storefront.domain import storefront
from storefront.order.events import (
    OrderCancelled,
    OrderDelivered,
    OrderLineReviewed,
    OrderNeedsAttention,
    OrderPlaced,
    OrderRefunded,
    OrderShipped,
    PaymentConfirmed,
    PaymentFailed,
)
from storefront.order.pricing import calculate_profit, totals_are_consistent
from storefront.utils import clock


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------
class OrderStatus(Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    SHIPPED = "shipped"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"


class PaymentStatus(Enum):
    PENDING = "pending"
    PAID = "paid"
    FAILED = "failed"
    REFUNDED = "refunded"
    CANCELLED = "cancelled"


class PaymentMethod(Enum):
    STRIPE = "stripe"
    PAYPAL = "paypal"


_VALID_TRANSITIONS = {
    OrderStatus.PENDING: {OrderStatus.PROCESSING, OrderStatus.CANCELLED},
    OrderStatus.PROCESSING: {OrderStatus.SHIPPED, OrderStatus.CANCELLED},
    OrderStatus.SHIPPED: {OrderStatus.DELIVERED, OrderStatus.CANCELLED},
    OrderStatus.DELIVERED: set(),  # Terminal
    OrderStatus.CANCELLED: set(),  # Terminal
}

TERMINAL_STATES = {OrderStatus.DELIVERED, OrderStatus.CANCELLED}


# ---------------------------------------------------------------------------
# Entities
# ---------------------------------------------------------------------------
@storefront.entity(part_of="Order")
class OrderLine:
    """A product variant and quantity with the prices frozen at checkout.

    ``reviewed`` flips to True once and never back. ``stock_taken`` records
    whether inventory was actually decremented for the line on payment.
    """

    product_id = Identifier(required=True)
    variant_id = Identifier(required=True)
    name = String(required=True, max_length=255)
    image_url = String(max_length=500)
    quantity = Integer(required=True, min_value=1)
    unit_price = Float(required=True, min_value=0.0)
    unit_cost = Float(default=0.0, min_value=0.0)
    stock_taken = Boolean(default=False)
    reviewed = Boolean(default=False)
    review_id = Identifier()

    def to_snapshot(self) -> dict:
        return {
            "product_id": str(self.product_id),
            "variant_id": str(self.variant_id),
            "name": self.name,
            "quantity": self.quantity,
            "unit_price": self.unit_price,
        }


@storefront.entity(part_of="Order")
class StatusChange:
    """One entry of the order's status history."""

    status = String(required=True, max_length=20)
    changed_at = DateTime(required=True)
    changed_by = String(max_length=100)
    note = String(max_length=500)


# ---------------------------------------------------------------------------
# Aggregate Root
# ---------------------------------------------------------------------------
@storefront.aggregate
class Order:
    order_number = String(required=True, max_length=20, unique=True)
    user_id = Identifier(required=True)
    contact_email = String(max_length=254)
    lines = HasMany(OrderLine)
    shipping_address_id = Identifier(required=True)
    billing_address_id = Identifier(required=True)
    shipping_label = Text()  # Address as it read at checkout
    payment_method = String(choices=PaymentMethod, default=PaymentMethod.STRIPE.value)
    payment_provider = String(max_length=50)
    payment_transaction_id = String(max_length=255)
    payment_status = String(choices=PaymentStatus, default=PaymentStatus.PENDING.value)
    subtotal = Float(required=True, min_value=0.0)
    shipping_cost = Float(default=0.0, min_value=0.0)
    tax_amount = Float(default=0.0, min_value=0.0)
    total_amount = Float(required=True, min_value=0.0)
    currency = String(max_length=3, default="usd")
    status = String(choices=OrderStatus, default=OrderStatus.PENDING.value)
    tracking_number = String(max_length=255)
    review_expires_at = DateTime()
    delivered_at = DateTime()
    cancelled_by = String(max_length=100)
    cancellation_reason = String(max_length=500)
    needs_attention = Boolean(default=False)
    attention_notes = Text()
    status_history = HasMany(StatusChange)
    created_at = DateTime()
    updated_at = DateTime()

    @invariant.post
    def order_must_have_lines(self):
        if not self.lines:
            raise ValidationError({"lines": ["An order must have at least one line"]})

    @invariant.post
    def total_must_equal_sum_of_parts(self):
        if self.total_amount is None:
            return
        if not totals_are_consistent(self.subtotal, self.shipping_cost or 0, self.tax_amount or 0, self.total_amount):
            raise ValidationError({"total_amount": ["Total must equal subtotal + shipping + tax"]})

    # -------------------------------------------------------------------
    # Factory
    # -------------------------------------------------------------------
    @classmethod
    def place(
        cls,
        order_number,
        user_id,
        lines_data,
        totals,
        shipping_address_id,
        billing_address_id,
        payment_method=PaymentMethod.STRIPE.value,
        currency="usd",
        contact_email=None,
        shipping_label=None,
    ):
        """Build a pending order from priced cart lines.

        The order is not yet placed: a payment intent must be attached with
        ``attach_payment_intent`` before it is persisted.

        Args:
            lines_data: List of dicts with product_id, variant_id, name,
                        image_url, quantity, unit_price, unit_cost.
            totals: OrderTotals from ``calculate_totals``.
        """
        now = clock.now()
        return cls(
            order_number=order_number,
            user_id=user_id,
            contact_email=contact_email,
            lines=[OrderLine(**line) for line in lines_data],
            shipping_address_id=shipping_address_id,
            billing_address_id=billing_address_id,
            shipping_label=shipping_label,
            payment_method=payment_method,
            payment_status=PaymentStatus.PENDING.value,
            subtotal=float(totals.subtotal),
            shipping_cost=float(totals.shipping_cost),
            tax_amount=float(totals.tax_amount),
            total_amount=float(totals.total_amount),
            currency=currency,
            status=OrderStatus.PENDING.value,
            status_history=[
                StatusChange(
                    status=OrderStatus.PENDING.value,
                    changed_at=now,
                    changed_by=str(user_id),
                    note="Order placed",
                )
            ],
            created_at=now,
            updated_at=now,
        )

    def attach_payment_intent(self, provider, transaction_id):
        """Record the gateway's intent id. Happens exactly once, before first save."""
        if self.payment_transaction_id:
            raise ValidationError({"payment": ["A payment intent is already attached"]})

        with atomic_change(self):
            self.payment_provider = provider
            self.payment_transaction_id = transaction_id

        self.raise_(
            OrderPlaced(
                order_id=str(self.id),
                order_number=self.order_number,
                user_id=str(self.user_id),
                contact_email=self.contact_email,
                lines=self.lines_json(),
                subtotal=self.subtotal,
                shipping_cost=self.shipping_cost,
                tax_amount=self.tax_amount,
                total_amount=self.total_amount,
                currency=self.currency,
                payment_method=self.payment_method,
                transaction_id=transaction_id,
                placed_at=self.created_at,
            )
        )

    # -------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------
    def lines_json(self) -> str:
        return json.dumps([line.to_snapshot() for line in self.lines])

    def is_terminal(self) -> bool:
        return OrderStatus(self.status) in TERMINAL_STATES

    def is_owned_by(self, user_id) -> bool:
        return str(self.user_id) == str(user_id)

    def payment_record(self) -> dict:
        return {
            "provider": self.payment_provider,
            "transaction_id": self.payment_transaction_id,
            "status": self.payment_status,
        }

    def find_line(self, product_id, variant_id):
        return next(
            (
                line
                for line in self.lines
                if str(line.product_id) == str(product_id) and str(line.variant_id) == str(variant_id)
            ),
            None,
        )

    def _assert_can_transition(self, target_status):
        current = OrderStatus(self.status)
        if target_status not in _VALID_TRANSITIONS.get(current, set()):
            raise ValidationError({"status": [f"Cannot transition from {current.value} to {target_status.value}"]})

    def _record_status(self, status, changed_by, note=None):
        now = clock.now()
        self.status = status.value
        self.updated_at = now
        self.add_status_history(
            StatusChange(
                status=status.value,
                changed_at=now,
                changed_by=str(changed_by) if changed_by else None,
                note=note,
            )
        )
        return now

    # -------------------------------------------------------------------
    # Payment outcome
    # -------------------------------------------------------------------
    def confirm_payment(self):
        """Payment succeeded: pending → processing, payment → paid.

        A previously failed payment may still succeed when the customer
        retries on the same intent.
        """
        if PaymentStatus(self.payment_status) not in (PaymentStatus.PENDING, PaymentStatus.FAILED):
            raise ValidationError({"payment": [f"Payment is already {self.payment_status}"]})
        self._assert_can_transition(OrderStatus.PROCESSING)

        self.payment_status = PaymentStatus.PAID.value
        now = self._record_status(OrderStatus.PROCESSING, "payment-gateway", "Payment confirmed")

        self.raise_(
            PaymentConfirmed(
                order_id=str(self.id),
                order_number=self.order_number,
                user_id=str(self.user_id),
                transaction_id=self.payment_transaction_id,
                confirmed_at=now,
            )
        )

    def record_payment_failure(self, reason=None):
        """Payment failed. The order stays pending so the customer can retry or cancel."""
        if PaymentStatus(self.payment_status) != PaymentStatus.PENDING:
            raise ValidationError({"payment": [f"Payment is already {self.payment_status}"]})

        now = clock.now()
        self.payment_status = PaymentStatus.FAILED.value
        self.updated_at = now

        self.raise_(
            PaymentFailed(
                order_id=str(self.id),
                transaction_id=self.payment_transaction_id,
                reason=reason,
                failed_at=now,
            )
        )

    def record_late_payment(self):
        """Payment succeeded after the order was cancelled. Money must go back."""
        with atomic_change(self):
            self.payment_status = PaymentStatus.PAID.value
            self.updated_at = clock.now()

    def record_refund(self, amount=None, reason=None):
        if PaymentStatus(self.payment_status) != PaymentStatus.PAID:
            raise ValidationError({"payment": ["Only paid orders can be refunded"]})

        now = clock.now()
        refund_amount = self.total_amount if amount is None else amount
        with atomic_change(self):
            self.payment_status = PaymentStatus.REFUNDED.value
            self.updated_at = now

        self.raise_(
            OrderRefunded(
                order_id=str(self.id),
                order_number=self.order_number,
                user_id=str(self.user_id),
                contact_email=self.contact_email,
                lines=self.lines_json(),
                amount=refund_amount,
                currency=self.currency,
                reason=reason,
                refunded_at=now,
            )
        )

    # -------------------------------------------------------------------
    # Status transitions
    # -------------------------------------------------------------------
    def cancel(self, cancelled_by, reason=None):
        """Cancel a non-terminal order. A still-pending payment is marked cancelled."""
        current = OrderStatus(self.status)
        if current in TERMINAL_STATES:
            raise ValidationError({"status": [f"Order cannot be cancelled once {current.value}"]})

        with atomic_change(self):
            if PaymentStatus(self.payment_status) == PaymentStatus.PENDING:
                self.payment_status = PaymentStatus.CANCELLED.value
            self.cancelled_by = str(cancelled_by)
            self.cancellation_reason = reason
            now = self._record_status(OrderStatus.CANCELLED, cancelled_by, reason)

        self.raise_(
            OrderCancelled(
                order_id=str(self.id),
                order_number=self.order_number,
                user_id=str(self.user_id),
                previous_status=current.value,
                cancelled_by=str(cancelled_by),
                reason=reason,
                payment_status=self.payment_status,
                cancelled_at=now,
            )
        )

    def ship(self, changed_by, tracking_number=None):
        self._assert_can_transition(OrderStatus.SHIPPED)

        with atomic_change(self):
            if tracking_number:
                self.tracking_number = tracking_number
            now = self._record_status(OrderStatus.SHIPPED, changed_by)

        self.raise_(
            OrderShipped(
                order_id=str(self.id),
                order_number=self.order_number,
                tracking_number=self.tracking_number,
                shipped_at=now,
            )
        )

    def deliver(self, changed_by, review_window_days=15):
        """Mark delivered and open the review window."""
        self._assert_can_transition(OrderStatus.DELIVERED)

        with atomic_change(self):
            now = self._record_status(OrderStatus.DELIVERED, changed_by)
            self.delivered_at = now
            self.review_expires_at = now + timedelta(days=review_window_days)

        self.raise_(
            OrderDelivered(
                order_id=str(self.id),
                order_number=self.order_number,
                user_id=str(self.user_id),
                contact_email=self.contact_email,
                lines=self.lines_json(),
                tracking_number=self.tracking_number,
                delivered_at=now,
                review_expires_at=self.review_expires_at,
            )
        )

    # -------------------------------------------------------------------
    # Operator attention
    # -------------------------------------------------------------------
    def flag_for_attention(self, reason, note):
        """Flag the order for manual review and append ``note`` to its notes."""
        now = clock.now()
        stamped = f"[{now.isoformat()}] {note}"
        with atomic_change(self):
            self.needs_attention = True
            self.attention_notes = f"{self.attention_notes}\n{stamped}" if self.attention_notes else stamped
            self.updated_at = now

        self.raise_(
            OrderNeedsAttention(
                order_id=str(self.id),
                order_number=self.order_number,
                reason=reason,
                notes=note,
                flagged_at=now,
            )
        )

    # -------------------------------------------------------------------
    # Review eligibility
    # -------------------------------------------------------------------
    def reviewable_line(self, product_id, variant_id, at):
        """Return the line a review may be written for, or raise ``ValidationError``.

        Ownership is checked by the caller since it is an authorization
        concern rather than an order rule.
        """
        if OrderStatus(self.status) != OrderStatus.DELIVERED:
            raise ValidationError({"order": ["Only delivered orders can be reviewed"]})

        line = self.find_line(product_id, variant_id)
        if line is None:
            raise ValidationError({"product_id": ["This product is not part of the order"]})
        if line.reviewed:
            raise ValidationError({"product_id": ["This item has already been reviewed"]})
        expires_at = clock.as_utc(self.review_expires_at)
        if expires_at is None or clock.as_utc(at) > expires_at:
            raise ValidationError({"order": ["The review period for this order has expired"]})
        return line

    def mark_line_reviewed(self, product_id, variant_id, review_id):
        line = self.find_line(product_id, variant_id)
        if line is None or line.reviewed:
            raise ValidationError({"product_id": ["This item cannot be marked as reviewed"]})

        with atomic_change(self):
            line.reviewed = True
            line.review_id = review_id
            all_reviewed = all(ln.reviewed for ln in self.lines)
            if all_reviewed:
                self.review_expires_at = None
            self.updated_at = clock.now()

        self.raise_(
            OrderLineReviewed(
                order_id=str(self.id),
                product_id=str(product_id),
                variant_id=str(variant_id),
                review_id=str(review_id),
                all_lines_reviewed=all_reviewed,
            )
        )

    # -------------------------------------------------------------------
    # Reporting
    # -------------------------------------------------------------------
    def financial_summary(self) -> dict:
        return {
            "subtotal": self.subtotal,
            "shipping_cost": self.shipping_cost,
            "tax_amount": self.tax_amount,
            "total_amount": self.total_amount,
            "currency": self.currency,
            **calculate_profit(self.lines),
        }
