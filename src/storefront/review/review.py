"""Review aggregate (CQRS) — a customer's rating of one delivered order line.

Exactly one review exists per (order, product, variant); the order line's
``reviewed`` flag enforces that. Removal is a soft delete so the order line
stays reviewed.

State Machine:
    PUBLISHED → REMOVED (terminal)
"""

from enum import Enum

from protean import atomic_change
from protean.exceptions import ValidationError
from protean.fields import DateTime, Identifier, Integer, String

from storefront.domain import storefront
from storefront.review.events import ReviewEdited, ReviewRemoved, ReviewSubmitted
from storefront.utils import clock

# Sentinel for distinguishing "not provided" from None in partial updates
_UNSET = object()


class ReviewStatus(Enum):
    PUBLISHED = "published"
    REMOVED = "removed"


def validate_rating(rating):
    if rating is None or isinstance(rating, bool) or not isinstance(rating, int) or not 1 <= rating <= 5:
        raise ValidationError({"rating": ["Rating must be a whole number between 1 and 5"]})


@storefront.aggregate
class Review:
    order_id = Identifier(required=True)
    product_id = Identifier(required=True)
    variant_id = Identifier(required=True)
    user_id = Identifier(required=True)
    rating = Integer(required=True, min_value=1, max_value=5)
    title = String(max_length=100)
    comment = String(max_length=500)
    status = String(choices=ReviewStatus, default=ReviewStatus.PUBLISHED.value)
    created_at = DateTime()
    updated_at = DateTime()

    @classmethod
    def submit(cls, order_id, product_id, variant_id, user_id, rating, title=None, comment=None):
        validate_rating(rating)
        now = clock.now()
        review = cls(
            order_id=order_id,
            product_id=product_id,
            variant_id=variant_id,
            user_id=user_id,
            rating=rating,
            title=title,
            comment=comment,
            status=ReviewStatus.PUBLISHED.value,
            created_at=now,
            updated_at=now,
        )
        review.raise_(
            ReviewSubmitted(
                review_id=str(review.id),
                order_id=str(order_id),
                product_id=str(product_id),
                variant_id=str(variant_id),
                user_id=str(user_id),
                rating=rating,
                title=title,
                submitted_at=now,
            )
        )
        return review

    @property
    def is_active(self) -> bool:
        return ReviewStatus(self.status) == ReviewStatus.PUBLISHED

    def edit(self, rating=_UNSET, title=_UNSET, comment=_UNSET):
        if not self.is_active:
            raise ValidationError({"status": ["A removed review cannot be edited"]})
        if rating is not _UNSET:
            validate_rating(rating)

        previous_rating = self.rating
        now = clock.now()
        with atomic_change(self):
            if rating is not _UNSET:
                self.rating = rating
            if title is not _UNSET:
                self.title = title
            if comment is not _UNSET:
                self.comment = comment
            self.updated_at = now

        self.raise_(
            ReviewEdited(
                review_id=str(self.id),
                product_id=str(self.product_id),
                rating=self.rating,
                previous_rating=previous_rating,
                edited_at=now,
            )
        )

    def remove(self, removed_by):
        if not self.is_active:
            raise ValidationError({"status": ["Review has already been removed"]})

        now = clock.now()
        with atomic_change(self):
            self.status = ReviewStatus.REMOVED.value
            self.updated_at = now

        self.raise_(
            ReviewRemoved(
                review_id=str(self.id),
                product_id=str(self.product_id),
                removed_by=str(removed_by),
                removed_at=now,
            )
        )
