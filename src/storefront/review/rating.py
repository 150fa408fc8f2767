"""Product rating recomputation.

The average is always recomputed from the active reviews rather than
adjusted incrementally, so edits and removals cannot drift it.
"""

import structlog
from protean.utils.globals import current_domain

from storefront.catalogue.product import Product
from storefront.review.review import Review, ReviewStatus
from storefront.utils.money import round_one_decimal, to_decimal
from storefront.utils.query import scan

logger = structlog.get_logger(__name__)


def active_reviews(product_id, pending=None) -> list[Review]:
    """Active reviews for a product, with ``pending`` standing in for its stored copy.

    ``pending`` is a review changed in the current unit of work that may not
    be visible to queries yet.
    """
    reviews = {str(r.id): r for r in scan(Review, product_id=str(product_id))}
    if pending is not None:
        reviews[str(pending.id)] = pending
    return [r for r in reviews.values() if r.status == ReviewStatus.PUBLISHED.value]


def average_rating(reviews) -> float:
    if not reviews:
        return 0.0
    total = sum(to_decimal(r.rating) for r in reviews)
    return round_one_decimal(total / len(reviews))


def recalculate_product_rating(product_id, pending=None) -> tuple[float, int]:
    """Recompute and store ``average_rating`` and ``total_reviews`` on the product."""
    reviews = active_reviews(product_id, pending)
    average, count = average_rating(reviews), len(reviews)

    repo = current_domain.repository_for(Product)
    product = repo.get(product_id)
    product.record_rating(average, count)
    repo.add(product)

    logger.info("Product rating recalculated", product_id=str(product_id), average_rating=average, total_reviews=count)
    return average, count
