"""BDD tests for the review window and per-line review rules."""

from datetime import timedelta

from protean import current_domain
from protean.exceptions import ValidationError
from pytest_bdd import given, parsers, scenarios, then, when
from storefront.catalogue.product import Product
from storefront.order.order import Order
from storefront.review.submission import submit_review
from storefront.utils import clock

scenarios("features/review_window.feature")


@given(parsers.cfparse("{days:d} days have passed since delivery"))
def _(order_id, days):
    delivered_at = current_domain.repository_for(Order).get(order_id).delivered_at
    clock.freeze(delivered_at + timedelta(days=days))


# ---------------------------------------------------------------------------
# When steps
# ---------------------------------------------------------------------------
@when(parsers.cfparse("the customer reviews the product with rating {rating:d}"))
def _(order_id, user_id, product, outcome, rating):
    product_id, variant_id = product
    try:
        outcome["value"] = submit_review(order_id, product_id, variant_id, user_id, rating=rating, title="Fits well")
    except ValidationError as exc:
        outcome["exc"] = exc


# ---------------------------------------------------------------------------
# Then steps
# ---------------------------------------------------------------------------
@then(parsers.cfparse("the review is {result}"))
def _(outcome, result):
    if result == "accepted":
        assert outcome["exc"] is None
        assert outcome["value"]
    else:
        assert isinstance(outcome["exc"], ValidationError)
        assert "review period" in str(outcome["exc"].messages)


@then(parsers.cfparse("the product rating is {average:f} from {count:d} reviews"))
def _(product, average, count):
    stored = current_domain.repository_for(Product).get(product[0])
    assert stored.average_rating == average
    assert stored.total_reviews == count
