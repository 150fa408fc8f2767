"""Shared BDD fixtures and step definitions for the Storefront."""

import pytest
from protean import current_domain
from protean.exceptions import ValidationError
from pytest_bdd import given, parsers, then
from storefront.catalogue.product import Product
from storefront.errors import NotAuthorizedError, UnavailableItemsError
from storefront.order.order import Order
from storefront.order.status import update_order_status


# ---------------------------------------------------------------------------
# Scalar fixtures
# ---------------------------------------------------------------------------
@pytest.fixture()
def user_id():
    return "user-001"


@pytest.fixture()
def outcome():
    """Container for the last result or rejection of a When step."""
    return {"value": None, "exc": None}


# ---------------------------------------------------------------------------
# Given steps
# ---------------------------------------------------------------------------
@given(
    parsers.cfparse("a product priced at {price:f} with {inventory:d} units in stock"),
    target_fixture="product",
)
def _(make_product, price, inventory):
    return make_product(price=price, inventory=inventory)


@given(parsers.cfparse("the customer placed an order for {quantity:d} units"), target_fixture="order_id")
def _(checkout, user_id, product, quantity):
    product_id, variant_id = product
    return checkout(user_id, [(product_id, variant_id, quantity)])["order_id"]


@given("the order was paid")
def _(pay, order_id):
    assert pay(order_id) == "confirmed"


@given("the order was shipped")
def _(order_id):
    update_order_status(order_id, "shipped", changed_by="staff-1", role="staff", tracking_number="1Z999")


@given("the order was delivered")
def _(order_id):
    update_order_status(order_id, "delivered", changed_by="staff-1", role="staff")


# ---------------------------------------------------------------------------
# Then steps
# ---------------------------------------------------------------------------
@then(parsers.cfparse('the order status is "{status}"'))
def _(order_id, status):
    assert current_domain.repository_for(Order).get(order_id).status == status


@then(parsers.cfparse("the variant has {inventory:d} units in stock"))
def _(product, inventory):
    product_id, _variant_id = product
    assert current_domain.repository_for(Product).get(product_id).variants[0].inventory == inventory


@then("the action fails with a validation error")
def _(outcome):
    assert isinstance(outcome["exc"], ValidationError), f"Expected a validation error, got {outcome['exc']!r}"


@then("the action is forbidden")
def _(outcome):
    assert isinstance(outcome["exc"], NotAuthorizedError)


@then(parsers.cfparse('checkout is rejected for "{reason}"'))
def _(outcome, reason):
    assert isinstance(outcome["exc"], UnavailableItemsError)
    assert [line["reason"] for line in outcome["exc"].lines] == [reason]
