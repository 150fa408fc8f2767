"""Tests for the Review aggregate — rating bounds, edits and soft removal."""

import pytest
from protean.exceptions import ValidationError
from storefront.review.events import ReviewEdited, ReviewRemoved, ReviewSubmitted
from storefront.review.review import Review, ReviewStatus


def _make_review(**overrides):
    defaults = {
        "order_id": "order-001",
        "product_id": "prod-001",
        "variant_id": "var-001",
        "user_id": "user-001",
        "rating": 4,
        "title": "Fits well",
        "comment": "Soft fabric, true to size.",
    }
    defaults.update(overrides)
    return Review.submit(**defaults)


class TestSubmit:
    def test_submit_publishes(self):
        review = _make_review()
        assert review.status == ReviewStatus.PUBLISHED.value
        assert review.is_active
        assert any(isinstance(e, ReviewSubmitted) for e in review._events)

    @pytest.mark.parametrize("rating", [0, 6, -1, None])
    def test_rating_out_of_range_rejected(self, rating):
        with pytest.raises(ValidationError) as exc:
            _make_review(rating=rating)
        assert "rating" in exc.value.messages

    def test_boolean_rating_rejected(self):
        with pytest.raises(ValidationError):
            _make_review(rating=True)

    def test_title_limited_to_100_chars(self):
        with pytest.raises(ValidationError):
            _make_review(title="x" * 101)

    def test_comment_limited_to_500_chars(self):
        with pytest.raises(ValidationError):
            _make_review(comment="x" * 501)


class TestEdit:
    def test_edit_rating_only(self):
        review = _make_review()
        review.edit(rating=2)
        assert review.rating == 2
        assert review.title == "Fits well"
        edited = [e for e in review._events if isinstance(e, ReviewEdited)]
        assert edited[0].previous_rating == 4

    def test_edit_invalid_rating_rejected(self):
        review = _make_review()
        with pytest.raises(ValidationError):
            review.edit(rating=9)
        assert review.rating == 4

    def test_removed_review_cannot_be_edited(self):
        review = _make_review()
        review.remove("user-001")
        with pytest.raises(ValidationError):
            review.edit(title="Changed")


class TestRemove:
    def test_remove_is_soft(self):
        review = _make_review()
        review.remove("staff-1")
        assert review.status == ReviewStatus.REMOVED.value
        assert not review.is_active
        assert any(isinstance(e, ReviewRemoved) for e in review._events)

    def test_remove_twice_rejected(self):
        review = _make_review()
        review.remove("user-001")
        with pytest.raises(ValidationError):
            review.remove("user-001")
