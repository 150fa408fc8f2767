"""SubmitReview — review one line of a delivered order.

Eligibility is checked against the order in a fixed order: the order exists,
belongs to the caller, is delivered, contains the product and variant, that
line has not been reviewed yet and the review window is still open. Only
then is the rating itself validated.
"""

import structlog
from protean.fields import Identifier, Integer, String
from protean.utils.globals import current_domain
from protean.utils.mixins import handle

from storefront.domain import storefront
from storefront.errors import NotAuthorizedError
from storefront.order.locking import with_order_lock, with_product_lock
from storefront.order.order import Order
from storefront.review.rating import recalculate_product_rating
from storefront.review.review import Review
from storefront.utils import clock

logger = structlog.get_logger(__name__)


@storefront.command(part_of="Review")
class SubmitReview:
    order_id = Identifier(required=True)
    product_id = Identifier(required=True)
    variant_id = Identifier(required=True)
    user_id = Identifier(required=True)
    rating = Integer()  # Range checked after eligibility
    title = String(max_length=100)
    comment = String(max_length=500)


@storefront.command_handler(part_of=Review)
class SubmitReviewHandler:
    @handle(SubmitReview)
    def submit_review(self, command):
        order_repo = current_domain.repository_for(Order)
        order = order_repo.get(command.order_id)

        if not order.is_owned_by(command.user_id):
            raise NotAuthorizedError("You can only review your own orders")

        order.reviewable_line(command.product_id, command.variant_id, clock.now())

        review = Review.submit(
            order_id=command.order_id,
            product_id=command.product_id,
            variant_id=command.variant_id,
            user_id=command.user_id,
            rating=command.rating,
            title=command.title,
            comment=command.comment,
        )
        order.mark_line_reviewed(command.product_id, command.variant_id, review.id)

        current_domain.repository_for(Review).add(review)
        order_repo.add(order)
        recalculate_product_rating(command.product_id, pending=review)

        logger.info(
            "Review submitted",
            review_id=str(review.id),
            order_id=str(command.order_id),
            product_id=str(command.product_id),
            rating=command.rating,
        )
        return str(review.id)


def submit_review(order_id, product_id, variant_id, user_id, rating, title=None, comment=None) -> str:
    """Submit a review while holding the order's lock, so a line is reviewed at most once."""
    with with_order_lock(order_id), with_product_lock(product_id):
        return current_domain.process(
            SubmitReview(
                order_id=order_id,
                product_id=product_id,
                variant_id=variant_id,
                user_id=user_id,
                rating=rating,
                title=title,
                comment=comment,
            ),
            asynchronous=False,
        )
