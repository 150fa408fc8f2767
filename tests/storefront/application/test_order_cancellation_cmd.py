"""Application tests for order cancellation and refunds."""

import pytest
from protean import current_domain
from protean.exceptions import ObjectNotFoundError, ValidationError
from storefront.errors import NotAuthorizedError, PaymentGatewayError
from storefront.order.cancellation import cancel_order, refund_order
from storefront.order.order import Order, OrderStatus, PaymentStatus


def _order(order_id):
    return current_domain.repository_for(Order).get(order_id)


class TestCancelOrder:
    def test_owner_cancels_pending_order(self, make_product, checkout, gateway):
        product_id, variant_id = make_product()
        placed = checkout("user-001", [(product_id, variant_id, 1)])

        assert cancel_order(placed["order_id"], "user-001", reason="Changed my mind") == "cancelled"

        order = _order(placed["order_id"])
        assert order.status == OrderStatus.CANCELLED.value
        assert order.payment_status == PaymentStatus.CANCELLED.value
        assert order.cancelled_by == "user-001"
        assert order.cancellation_reason == "Changed my mind"

    def test_pending_cancel_voids_payment_intent(self, make_product, checkout, gateway):
        product_id, variant_id = make_product()
        placed = checkout("user-001", [(product_id, variant_id, 1)])
        transaction_id = _order(placed["order_id"]).payment_transaction_id

        cancel_order(placed["order_id"], "user-001")

        assert gateway.intents[transaction_id]["status"] == "canceled"

    def test_intent_void_failure_does_not_block_cancel(self, make_product, checkout, gateway):
        product_id, variant_id = make_product()
        placed = checkout("user-001", [(product_id, variant_id, 1)])
        gateway.configure(should_succeed=False, operations={"cancel_intent"})

        cancel_order(placed["order_id"], "user-001")

        assert _order(placed["order_id"]).status == OrderStatus.CANCELLED.value

    def test_other_users_order_forbidden(self, make_product, checkout):
        product_id, variant_id = make_product()
        placed = checkout("user-001", [(product_id, variant_id, 1)])

        with pytest.raises(NotAuthorizedError):
            cancel_order(placed["order_id"], "user-002")
        assert _order(placed["order_id"]).status == OrderStatus.PENDING.value

    def test_staff_can_cancel_any_order(self, make_product, checkout, pay):
        product_id, variant_id = make_product()
        placed = checkout("user-001", [(product_id, variant_id, 1)])
        pay(placed["order_id"])

        cancel_order(placed["order_id"], "staff-1", role="admin")

        order = _order(placed["order_id"])
        assert order.status == OrderStatus.CANCELLED.value
        assert order.payment_status == PaymentStatus.PAID.value


class TestCancelPaidOrder:
    def test_paid_order_is_flagged_with_refund_pending(self, make_product, checkout, pay, gateway):
        product_id, variant_id = make_product(price=20.0)
        placed = checkout("user-001", [(product_id, variant_id, 2)], tax_rate=0)
        pay(placed["order_id"])

        cancel_order(placed["order_id"], "user-001")

        order = _order(placed["order_id"])
        assert order.needs_attention is True
        assert "refund 40.00 USD pending" in order.attention_notes
        assert not [c for c in gateway.calls if c["method"] == "refund"]

    def test_processing_order_stock_restored(self, make_product, checkout, pay):
        from storefront.catalogue.product import Product

        product_id, variant_id = make_product(inventory=5)
        placed = checkout("user-001", [(product_id, variant_id, 2)])
        pay(placed["order_id"])
        cancel_order(placed["order_id"], "user-001")

        product = current_domain.repository_for(Product).get(product_id)
        assert product.variants[0].inventory == 5
        assert product.in_stock is True
        assert not _order(placed["order_id"]).lines[0].stock_taken

    def test_sold_out_variant_back_in_stock(self, make_product, checkout, pay):
        from storefront.catalogue.product import Product

        product_id, variant_id = make_product(inventory=2)
        placed = checkout("user-001", [(product_id, variant_id, 2)])
        pay(placed["order_id"])
        assert current_domain.repository_for(Product).get(product_id).in_stock is False

        cancel_order(placed["order_id"], "user-001")

        assert current_domain.repository_for(Product).get(product_id).in_stock is True

    def test_shortfall_line_not_restocked(self, make_product, checkout, pay):
        from storefront.catalogue.product import Product

        product_id, variant_id = make_product(inventory=1)
        placed = checkout("user-001", [(product_id, variant_id, 1)])
        repo = current_domain.repository_for(Product)
        product = repo.get(product_id)
        product.take_stock(variant_id, 1, "walk-in")
        repo.add(product)
        pay(placed["order_id"])

        cancel_order(placed["order_id"], "user-001")

        assert repo.get(product_id).variants[0].inventory == 0
        assert "0 of 1 line(s) restocked" in _order(placed["order_id"]).attention_notes

    def test_shipped_order_keeps_stock_decremented(self, make_product, checkout, pay):
        from storefront.catalogue.product import Product
        from storefront.order.status import update_order_status

        product_id, variant_id = make_product(inventory=5)
        placed = checkout("user-001", [(product_id, variant_id, 2)])
        pay(placed["order_id"])
        update_order_status(placed["order_id"], "shipped", "staff-1", role="staff")

        update_order_status(placed["order_id"], "cancelled", "staff-1", role="staff", note="Lost in transit")

        assert current_domain.repository_for(Product).get(product_id).variants[0].inventory == 3
        order = _order(placed["order_id"])
        assert order.needs_attention is True
        assert "stock not restored, order was shipped" in order.attention_notes

    def test_pending_order_cancel_not_flagged(self, make_product, checkout):
        product_id, variant_id = make_product()
        placed = checkout("user-001", [(product_id, variant_id, 1)])

        cancel_order(placed["order_id"], "user-001")

        assert not _order(placed["order_id"]).needs_attention


class TestCancelRules:
    def test_delivered_order_cannot_be_cancelled(self, delivered_order):
        order_id, _, _ = delivered_order()
        with pytest.raises(ValidationError):
            cancel_order(order_id, "user-001")

    def test_cancelled_order_cannot_be_cancelled_again(self, make_product, checkout):
        product_id, variant_id = make_product()
        placed = checkout("user-001", [(product_id, variant_id, 1)])
        cancel_order(placed["order_id"], "user-001")
        with pytest.raises(ValidationError):
            cancel_order(placed["order_id"], "user-001")

    def test_unknown_order(self):
        with pytest.raises(ObjectNotFoundError):
            cancel_order("missing", "user-001")


class TestRefundOrder:
    def _paid_and_cancelled(self, make_product, checkout, pay):
        product_id, variant_id = make_product(price=20.0)
        placed = checkout("user-001", [(product_id, variant_id, 2)], shipping_cost=5.0, tax_rate=0.1)
        pay(placed["order_id"])
        cancel_order(placed["order_id"], "user-001")
        return placed["order_id"]

    def test_full_refund(self, make_product, checkout, pay, gateway):
        order_id = self._paid_and_cancelled(make_product, checkout, pay)

        refund_id = refund_order(order_id, "staff-1", role="staff", reason="Customer request")

        assert refund_id.startswith("re_fake_")
        assert _order(order_id).payment_status == PaymentStatus.REFUNDED.value
        refund_call = next(c for c in gateway.calls if c["method"] == "refund")
        assert refund_call["amount_cents"] == 4900

    def test_refund_requires_staff(self, make_product, checkout, pay):
        order_id = self._paid_and_cancelled(make_product, checkout, pay)
        with pytest.raises(NotAuthorizedError):
            refund_order(order_id, "user-001")

    def test_refund_above_total_rejected(self, make_product, checkout, pay):
        order_id = self._paid_and_cancelled(make_product, checkout, pay)
        with pytest.raises(ValidationError):
            refund_order(order_id, "staff-1", role="staff", amount=50.0)

    def test_refund_of_active_order_rejected(self, make_product, checkout, pay):
        product_id, variant_id = make_product()
        placed = checkout("user-001", [(product_id, variant_id, 1)])
        pay(placed["order_id"])
        with pytest.raises(ValidationError):
            refund_order(placed["order_id"], "staff-1", role="staff")

    def test_unpaid_cancelled_order_cannot_be_refunded(self, make_product, checkout):
        product_id, variant_id = make_product()
        placed = checkout("user-001", [(product_id, variant_id, 1)])
        cancel_order(placed["order_id"], "user-001")
        with pytest.raises(ValidationError):
            refund_order(placed["order_id"], "staff-1", role="staff")

    def test_gateway_refund_failure(self, make_product, checkout, pay, gateway):
        order_id = self._paid_and_cancelled(make_product, checkout, pay)
        gateway.configure(should_succeed=False, failure_reason="Refund declined", operations={"refund"})

        with pytest.raises(PaymentGatewayError):
            refund_order(order_id, "staff-1", role="staff")
        assert _order(order_id).payment_status == PaymentStatus.PAID.value
