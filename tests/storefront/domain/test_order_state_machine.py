"""Tests for Order status transitions, payment outcomes and cancellation rules."""

from datetime import timedelta

import pytest
from protean.exceptions import ValidationError
from storefront.order.order import Order, OrderStatus, PaymentStatus
from storefront.order.pricing import calculate_totals

LINES = [
    {
        "product_id": "prod-001",
        "variant_id": "var-001",
        "name": "Linen Shirt",
        "image_url": None,
        "quantity": 2,
        "unit_price": 20.0,
        "unit_cost": 8.0,
    }
]


def _make_order():
    order = Order.place(
        order_number="ORD-20260101-0001",
        user_id="user-001",
        lines_data=LINES,
        totals=calculate_totals(LINES, shipping_cost=5, tax_rate=0.1),
        shipping_address_id="addr-001",
        billing_address_id="addr-001",
    )
    order.attach_payment_intent("stripe", "pi_test_001")
    return order


def _order_at_state(target_status):
    order = _make_order()
    if target_status == OrderStatus.PENDING:
        return order

    order.confirm_payment()
    if target_status == OrderStatus.PROCESSING:
        return order

    order.ship("staff-1", "TRACK-1")
    if target_status == OrderStatus.SHIPPED:
        return order

    order.deliver("staff-1")
    if target_status == OrderStatus.DELIVERED:
        return order

    raise ValueError(f"Unsupported state: {target_status}")


class TestPlacement:
    def test_new_order_is_pending_with_pending_payment(self):
        order = _make_order()
        assert order.status == OrderStatus.PENDING.value
        assert order.payment_status == PaymentStatus.PENDING.value
        assert order.total_amount == 49.0

    def test_history_starts_with_pending(self):
        order = _make_order()
        assert [c.status for c in order.status_history] == ["pending"]

    def test_placed_event_raised_with_transaction(self):
        order = _make_order()
        placed = [e for e in order._events if e.__class__.__name__ == "OrderPlaced"]
        assert len(placed) == 1
        assert placed[0].transaction_id == "pi_test_001"

    def test_intent_attached_only_once(self):
        order = _make_order()
        with pytest.raises(ValidationError):
            order.attach_payment_intent("stripe", "pi_other")

    def test_order_needs_lines(self):
        with pytest.raises(ValidationError):
            Order.place(
                order_number="ORD-20260101-0002",
                user_id="user-001",
                lines_data=[],
                totals=calculate_totals([], tax_rate=0),
                shipping_address_id="addr-001",
                billing_address_id="addr-001",
            )


class TestPaymentOutcome:
    def test_confirm_moves_to_processing(self):
        order = _make_order()
        order.confirm_payment()
        assert order.status == OrderStatus.PROCESSING.value
        assert order.payment_status == PaymentStatus.PAID.value

    def test_confirm_twice_rejected(self):
        order = _order_at_state(OrderStatus.PROCESSING)
        with pytest.raises(ValidationError):
            order.confirm_payment()

    def test_failure_keeps_order_pending(self):
        order = _make_order()
        order.record_payment_failure("Card declined")
        assert order.status == OrderStatus.PENDING.value
        assert order.payment_status == PaymentStatus.FAILED.value

    def test_success_after_failure_is_accepted(self):
        order = _make_order()
        order.record_payment_failure("Card declined")
        order.confirm_payment()
        assert order.payment_status == PaymentStatus.PAID.value

    def test_refund_requires_paid(self):
        order = _make_order()
        with pytest.raises(ValidationError):
            order.record_refund()


class TestTransitions:
    def test_ship_records_tracking_number(self):
        order = _order_at_state(OrderStatus.SHIPPED)
        assert order.tracking_number == "TRACK-1"

    def test_cannot_ship_pending_order(self):
        order = _make_order()
        with pytest.raises(ValidationError) as exc:
            order.ship("staff-1")
        assert "Cannot transition from pending to shipped" in str(exc.value)

    def test_cannot_deliver_processing_order(self):
        order = _order_at_state(OrderStatus.PROCESSING)
        with pytest.raises(ValidationError):
            order.deliver("staff-1")

    def test_deliver_opens_review_window(self):
        order = _order_at_state(OrderStatus.DELIVERED)
        assert order.review_expires_at - order.delivered_at == timedelta(days=15)

    def test_deliver_with_custom_window(self):
        order = _order_at_state(OrderStatus.SHIPPED)
        order.deliver("staff-1", review_window_days=30)
        assert order.review_expires_at - order.delivered_at == timedelta(days=30)

    def test_history_tracks_every_transition(self):
        order = _order_at_state(OrderStatus.DELIVERED)
        assert [c.status for c in sorted(order.status_history, key=lambda c: c.changed_at)] == [
            "pending",
            "processing",
            "shipped",
            "delivered",
        ]


class TestCancellation:
    @pytest.mark.parametrize("state", [OrderStatus.PENDING, OrderStatus.PROCESSING, OrderStatus.SHIPPED])
    def test_non_terminal_orders_can_be_cancelled(self, state):
        order = _order_at_state(state)
        order.cancel("user-001", "Changed my mind")
        assert order.status == OrderStatus.CANCELLED.value
        assert order.cancellation_reason == "Changed my mind"

    def test_delivered_order_cannot_be_cancelled(self):
        order = _order_at_state(OrderStatus.DELIVERED)
        with pytest.raises(ValidationError):
            order.cancel("user-001")

    def test_cancelled_order_is_terminal(self):
        order = _make_order()
        order.cancel("user-001")
        with pytest.raises(ValidationError):
            order.cancel("user-001")
        with pytest.raises(ValidationError):
            order.confirm_payment()
        assert order.is_terminal()

    def test_cancel_pending_marks_payment_cancelled(self):
        order = _make_order()
        order.cancel("user-001")
        assert order.payment_status == PaymentStatus.CANCELLED.value

    def test_cancel_paid_order_keeps_payment_paid(self):
        order = _order_at_state(OrderStatus.PROCESSING)
        order.cancel("staff-1")
        assert order.payment_status == PaymentStatus.PAID.value


class TestAttention:
    def test_flag_appends_notes(self):
        order = _make_order()
        order.flag_for_attention("partial_fulfilment", "first")
        order.flag_for_attention("partial_fulfilment", "second")
        assert order.needs_attention is True
        assert "first" in order.attention_notes
        assert "second" in order.attention_notes


class TestFinancialSummary:
    def test_summary_includes_profit(self):
        summary = _make_order().financial_summary()
        assert summary["total_amount"] == 49.0
        assert summary["profit"] == 24.0
