"""BDD tests for the payment webhook."""

from protean import current_domain
from pytest_bdd import given, parsers, scenarios, then, when
from storefront.order.cancellation import cancel_order
from storefront.order.order import Order
from storefront.payment.webhook import handle_webhook

scenarios("features/payment_webhook.feature")


def _transaction_id(order_id):
    return current_domain.repository_for(Order).get(order_id).payment_transaction_id


@given("the customer cancelled the order")
def _(order_id, user_id):
    cancel_order(order_id, user_id)


# ---------------------------------------------------------------------------
# When steps
# ---------------------------------------------------------------------------
@when("the payment succeeded webhook arrives")
def _(gateway, order_id, outcome):
    outcome["value"] = handle_webhook(*gateway.succeed(_transaction_id(order_id)))


@when("the payment failed webhook arrives")
def _(gateway, order_id, outcome):
    outcome["value"] = handle_webhook(*gateway.fail(_transaction_id(order_id), reason="Card declined"))


# ---------------------------------------------------------------------------
# Then steps
# ---------------------------------------------------------------------------
@then(parsers.cfparse('the webhook outcome is "{expected}"'))
def _(outcome, expected):
    assert outcome["value"] == expected


@then("the order needs attention")
def _(order_id):
    assert current_domain.repository_for(Order).get(order_id).needs_attention is True
