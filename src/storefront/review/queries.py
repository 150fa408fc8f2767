"""Read side for reviews: a product's published reviews, newest first, paginated."""

from protean.utils.globals import current_domain

from storefront.catalogue.product import Product
from storefront.review.rating import active_reviews, average_rating
from storefront.review.review import Review
from storefront.utils import clock

DEFAULT_PAGE_SIZE = 10


def review_to_dict(review: Review) -> dict:
    created_at = clock.as_utc(review.created_at)
    updated_at = clock.as_utc(review.updated_at)
    return {
        "review_id": str(review.id),
        "product_id": str(review.product_id),
        "variant_id": str(review.variant_id),
        "user_id": str(review.user_id),
        "rating": review.rating,
        "title": review.title,
        "comment": review.comment,
        "created_at": created_at.isoformat() if created_at else None,
        "updated_at": updated_at.isoformat() if updated_at else None,
    }


def list_reviews(product_id, page=1, per_page=DEFAULT_PAGE_SIZE, rating=None) -> dict:
    """Published reviews of a product with its aggregate rating.

    The aggregate always covers every published review; ``rating`` only
    narrows the page. Raises ``ObjectNotFoundError`` for an unknown product.
    """
    current_domain.repository_for(Product).get(product_id)

    reviews = active_reviews(product_id)
    summary = {"average_rating": average_rating(reviews), "total_reviews": len(reviews)}

    if rating is not None:
        reviews = [r for r in reviews if r.rating == rating]
    reviews.sort(key=lambda r: clock.as_utc(r.created_at), reverse=True)

    total = len(reviews)
    start = (page - 1) * per_page
    return {
        "product_id": str(product_id),
        **summary,
        "reviews": [review_to_dict(r) for r in reviews[start : start + per_page]],
        "pagination": {
            "page": page,
            "per_page": per_page,
            "total": total,
            "total_pages": (total + per_page - 1) // per_page,
        },
    }
