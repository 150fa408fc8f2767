"""Domain events for the Review aggregate."""

from protean.fields import DateTime, Identifier, Integer, String

from storefront.domain import storefront


@storefront.event(part_of="Review")
class ReviewSubmitted:
    """A customer reviewed one line of a delivered order."""

    __version__ = 1

    review_id = Identifier(required=True)
    order_id = Identifier(required=True)
    product_id = Identifier(required=True)
    variant_id = Identifier(required=True)
    user_id = Identifier(required=True)
    rating = Integer(required=True)
    title = String()
    submitted_at = DateTime(required=True)


@storefront.event(part_of="Review")
class ReviewEdited:
    __version__ = 1

    review_id = Identifier(required=True)
    product_id = Identifier(required=True)
    rating = Integer(required=True)
    previous_rating = Integer(required=True)
    edited_at = DateTime(required=True)


@storefront.event(part_of="Review")
class ReviewRemoved:
    __version__ = 1

    review_id = Identifier(required=True)
    product_id = Identifier(required=True)
    removed_by = Identifier(required=True)
    removed_at = DateTime(required=True)
