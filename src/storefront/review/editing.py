"""EditReview — change the rating, title or comment of an active review.

Only the author can edit. The product rating is recomputed afterwards.
"""

from protean.fields import Identifier, Integer, String
from protean.utils.globals import current_domain
from protean.utils.mixins import handle

from storefront.domain import storefront
from storefront.errors import NotAuthorizedError
from storefront.order.locking import with_product_lock
from storefront.review.rating import recalculate_product_rating
from storefront.review.review import Review


@storefront.command(part_of="Review")
class EditReview:
    review_id = Identifier(required=True)
    user_id = Identifier(required=True)  # Must match original author
    rating = Integer()
    title = String(max_length=100)
    comment = String(max_length=500)


@storefront.command_handler(part_of=Review)
class EditReviewHandler:
    @handle(EditReview)
    def edit_review(self, command):
        repo = current_domain.repository_for(Review)
        review = repo.get(command.review_id)

        if str(review.user_id) != str(command.user_id):
            raise NotAuthorizedError("Only the review author can edit this review")

        kwargs = {}
        if command.rating is not None:
            kwargs["rating"] = command.rating
        if command.title is not None:
            kwargs["title"] = command.title
        if command.comment is not None:
            kwargs["comment"] = command.comment

        review.edit(**kwargs)
        repo.add(review)
        recalculate_product_rating(review.product_id, pending=review)
        return str(review.id)


def edit_review(review_id, user_id, rating=None, title=None, comment=None) -> str:
    review = current_domain.repository_for(Review).get(review_id)
    with with_product_lock(review.product_id):
        return current_domain.process(
            EditReview(review_id=review_id, user_id=user_id, rating=rating, title=title, comment=comment),
            asynchronous=False,
        )
