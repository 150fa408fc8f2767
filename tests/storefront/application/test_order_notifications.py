"""Application tests for customer emails and operator alerts raised by order events."""

from protean import current_domain
from storefront.notification.channel import OPS_CHANNEL, get_alerter, get_mailer
from storefront.order.cancellation import cancel_order, refund_order
from storefront.order.order import Order, OrderStatus


class TestCustomerEmails:
    def test_order_placed_email(self, make_product, checkout):
        product_id, variant_id = make_product()
        placed = checkout("user-001", [(product_id, variant_id, 2)], contact_email="ada@example.com")

        sent = get_mailer().outbox
        assert len(sent) == 1
        assert sent[0]["to"] == "ada@example.com"
        assert placed["order_number"] in sent[0]["subject"]

    def test_no_contact_email_skips_sending(self, make_product, checkout):
        product_id, variant_id = make_product()
        checkout("user-001", [(product_id, variant_id, 1)], contact_email=None)
        assert get_mailer().outbox == []

    def test_delivered_email(self, delivered_order):
        delivered_order()
        subjects = [m["subject"] for m in get_mailer().outbox]
        assert any(s.endswith("delivered") for s in subjects)

    def test_refund_email(self, make_product, checkout, pay):
        product_id, variant_id = make_product()
        placed = checkout("user-001", [(product_id, variant_id, 1)])
        pay(placed["order_id"])
        cancel_order(placed["order_id"], "user-001")
        refund_order(placed["order_id"], "staff-1", role="staff", reason="Customer request")

        refund_mail = [m for m in get_mailer().outbox if m["subject"].startswith("Refund")]
        assert len(refund_mail) == 1
        assert "Customer request" in refund_mail[0]["body"]

    def test_channel_failure_does_not_break_checkout(self, make_product, checkout):
        get_mailer().fail_with("SMTP relay unavailable")
        product_id, variant_id = make_product()

        placed = checkout("user-001", [(product_id, variant_id, 1)])

        order = current_domain.repository_for(Order).get(placed["order_id"])
        assert order.status == OrderStatus.PENDING.value
        assert get_mailer().outbox == []


class TestOpsAlerts:
    def test_partial_fulfilment_alerts_ops(self, make_product, checkout, pay):
        from storefront.catalogue.product import Product

        product_id, variant_id = make_product(inventory=1)
        placed = checkout("user-001", [(product_id, variant_id, 1)])
        repo = current_domain.repository_for(Product)
        product = repo.get(product_id)
        product.take_stock(variant_id, 1, "walk-in")
        repo.add(product)

        pay(placed["order_id"])

        alerts = get_alerter().outbox
        assert len(alerts) == 1
        assert alerts[0]["channel"] == OPS_CHANNEL
        assert "partial_fulfilment" in alerts[0]["text"]

    def test_no_alert_for_normal_payment(self, make_product, checkout, pay):
        product_id, variant_id = make_product()
        placed = checkout("user-001", [(product_id, variant_id, 1)])
        pay(placed["order_id"])
        assert get_alerter().outbox == []

    def test_cancelling_paid_order_alerts_ops(self, make_product, checkout, pay):
        product_id, variant_id = make_product()
        placed = checkout("user-001", [(product_id, variant_id, 1)])
        pay(placed["order_id"])

        cancel_order(placed["order_id"], "user-001")

        alerts = get_alerter().outbox
        assert len(alerts) == 1
        assert "paid_order_cancelled" in alerts[0]["text"]
