"""Shopping Cart aggregate (CQRS) — one cart per user, snapshotted at checkout.

The cart holds product/variant/quantity lines only. Prices are never stored
here; checkout reads them from the catalogue and freezes them on the order.
"""

from protean.exceptions import ValidationError
from protean.fields import DateTime, HasMany, Identifier, Integer

from storefront.cart.events import (
    CartCleared,
    CartItemAdded,
    CartItemRemoved,
    CartQuantityUpdated,
)
from storefront.domain import storefront
from storefront.utils import clock


@storefront.entity(part_of="ShoppingCart")
class CartItem:
    product_id = Identifier(required=True)
    variant_id = Identifier(required=True)
    quantity = Integer(required=True, min_value=1)
    added_at = DateTime()


@storefront.aggregate
class ShoppingCart:
    user_id = Identifier(required=True, unique=True)
    items = HasMany(CartItem)
    created_at = DateTime()
    updated_at = DateTime()

    # -------------------------------------------------------------------
    # Factory
    # -------------------------------------------------------------------
    @classmethod
    def create(cls, user_id):
        now = clock.now()
        return cls(user_id=user_id, created_at=now, updated_at=now)

    # -------------------------------------------------------------------
    # Item management
    # -------------------------------------------------------------------
    def find_item(self, product_id, variant_id):
        return next(
            (i for i in self.items if str(i.product_id) == str(product_id) and str(i.variant_id) == str(variant_id)),
            None,
        )

    def _get_item(self, item_id):
        item = next((i for i in self.items if str(i.id) == str(item_id)), None)
        if item is None:
            raise ValidationError({"item_id": ["Item not found in cart"]})
        return item

    def add_item(self, product_id, variant_id, quantity):
        """Add an item to the cart (or increase quantity if already present)."""
        if quantity < 1:
            raise ValidationError({"quantity": ["Quantity must be at least 1"]})

        existing = self.find_item(product_id, variant_id)
        now = clock.now()

        if existing:
            existing.quantity += quantity
            item_id = str(existing.id)
        else:
            item = CartItem(
                product_id=product_id,
                variant_id=variant_id,
                quantity=quantity,
                added_at=now,
            )
            self.add_items(item)
            item_id = str(item.id)

        self.updated_at = now

        self.raise_(
            CartItemAdded(
                cart_id=str(self.id),
                user_id=str(self.user_id),
                item_id=item_id,
                product_id=str(product_id),
                variant_id=str(variant_id),
                quantity=quantity,
            )
        )
        return item_id

    def update_item_quantity(self, item_id, new_quantity):
        if new_quantity < 1:
            raise ValidationError({"quantity": ["Quantity must be at least 1"]})

        item = self._get_item(item_id)
        previous_quantity = item.quantity
        item.quantity = new_quantity
        self.updated_at = clock.now()

        self.raise_(
            CartQuantityUpdated(
                cart_id=str(self.id),
                item_id=str(item_id),
                previous_quantity=previous_quantity,
                new_quantity=new_quantity,
            )
        )

    def remove_item(self, item_id):
        item = self._get_item(item_id)
        self.remove_items(item)
        self.updated_at = clock.now()

        self.raise_(CartItemRemoved(cart_id=str(self.id), item_id=str(item_id)))

    def clear(self, reason="user_request"):
        """Remove every line. A no-op on an already empty cart."""
        if not self.items:
            return

        for item in list(self.items):
            self.remove_items(item)
        now = clock.now()
        self.updated_at = now

        self.raise_(
            CartCleared(
                cart_id=str(self.id),
                user_id=str(self.user_id),
                reason=reason,
                cleared_at=now,
            )
        )

    def snapshot(self) -> list[dict]:
        return [
            {
                "product_id": str(item.product_id),
                "variant_id": str(item.variant_id),
                "quantity": item.quantity,
            }
            for item in self.items
        ]
