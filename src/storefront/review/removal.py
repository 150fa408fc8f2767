"""RemoveReview — withdraw an active review.

The author or staff can remove a review. Removal is a soft delete: the order
line stays marked as reviewed, so the customer cannot post a second review
for it.
"""

import structlog
from protean.fields import Identifier, String
from protean.utils.globals import current_domain
from protean.utils.mixins import handle

from storefront.domain import storefront
from storefront.errors import NotAuthorizedError
from storefront.order.locking import with_product_lock
from storefront.order.queries import is_staff
from storefront.review.rating import recalculate_product_rating
from storefront.review.review import Review

logger = structlog.get_logger(__name__)


@storefront.command(part_of="Review")
class RemoveReview:
    review_id = Identifier(required=True)
    removed_by = Identifier(required=True)
    role = String(max_length=20, default="customer")


@storefront.command_handler(part_of=Review)
class RemoveReviewHandler:
    @handle(RemoveReview)
    def remove_review(self, command):
        repo = current_domain.repository_for(Review)
        review = repo.get(command.review_id)

        if not is_staff(command.role) and str(review.user_id) != str(command.removed_by):
            raise NotAuthorizedError("You can only remove your own reviews")

        review.remove(removed_by=command.removed_by)
        repo.add(review)
        recalculate_product_rating(review.product_id, pending=review)

        logger.info("Review removed", review_id=str(review.id), removed_by=str(command.removed_by))
        return str(review.id)


def remove_review(review_id, removed_by, role=None) -> str:
    review = current_domain.repository_for(Review).get(review_id)
    with with_product_lock(review.product_id):
        return current_domain.process(
            RemoveReview(review_id=review_id, removed_by=removed_by, role=role or "customer"),
            asynchronous=False,
        )
