"""Application tests for cart commands keyed by user."""

import pytest
from protean import current_domain
from protean.exceptions import ObjectNotFoundError, ValidationError
from storefront.cart.items import ClearCart, RemoveFromCart, UpdateCartQuantity, find_cart
from storefront.catalogue.management import DeactivateProduct


class TestAddToCart:
    def test_first_add_creates_cart(self, make_product, add_to_cart):
        product_id, variant_id = make_product()
        item_id = add_to_cart("user-001", product_id, variant_id, 2)

        cart = find_cart("user-001")
        assert cart is not None
        assert str(cart.items[0].id) == item_id
        assert cart.items[0].quantity == 2

    def test_one_cart_per_user(self, make_product, add_to_cart):
        product_id, variant_id = make_product()
        add_to_cart("user-001", product_id, variant_id, 1)
        add_to_cart("user-001", product_id, variant_id, 1)

        cart = find_cart("user-001")
        assert len(cart.items) == 1
        assert cart.items[0].quantity == 2

    def test_merged_quantity_checked_against_stock(self, make_product, add_to_cart):
        product_id, variant_id = make_product(inventory=3)
        add_to_cart("user-001", product_id, variant_id, 2)
        with pytest.raises(ValidationError) as exc:
            add_to_cart("user-001", product_id, variant_id, 2)
        assert "Insufficient inventory" in str(exc.value)

    def test_unknown_product_rejected(self, add_to_cart):
        with pytest.raises(ObjectNotFoundError):
            add_to_cart("user-001", "missing", "missing", 1)

    def test_inactive_product_rejected(self, make_product, add_to_cart):
        product_id, variant_id = make_product()
        current_domain.process(DeactivateProduct(product_id=product_id), asynchronous=False)
        with pytest.raises(ObjectNotFoundError):
            add_to_cart("user-001", product_id, variant_id, 1)

    def test_unknown_variant_rejected(self, make_product, add_to_cart):
        product_id, _ = make_product()
        with pytest.raises(ObjectNotFoundError):
            add_to_cart("user-001", product_id, "missing", 1)


class TestChangeCart:
    def test_update_quantity(self, make_product, add_to_cart):
        product_id, variant_id = make_product()
        item_id = add_to_cart("user-001", product_id, variant_id, 1)
        current_domain.process(
            UpdateCartQuantity(user_id="user-001", item_id=item_id, new_quantity=3),
            asynchronous=False,
        )
        assert find_cart("user-001").items[0].quantity == 3

    def test_remove_item(self, make_product, add_to_cart):
        product_id, variant_id = make_product()
        item_id = add_to_cart("user-001", product_id, variant_id, 1)
        current_domain.process(RemoveFromCart(user_id="user-001", item_id=item_id), asynchronous=False)
        assert len(find_cart("user-001").items) == 0

    def test_clear(self, make_product, add_to_cart):
        product_id, variant_id = make_product()
        add_to_cart("user-001", product_id, variant_id, 1)
        current_domain.process(ClearCart(user_id="user-001"), asynchronous=False)
        assert len(find_cart("user-001").items) == 0

    def test_clear_without_cart_is_noop(self):
        current_domain.process(ClearCart(user_id="nobody"), asynchronous=False)
        assert find_cart("nobody") is None

    def test_update_without_cart_rejected(self):
        with pytest.raises(ObjectNotFoundError):
            current_domain.process(
                UpdateCartQuantity(user_id="nobody", item_id="x", new_quantity=1),
                asynchronous=False,
            )
