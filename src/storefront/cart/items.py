"""Cart item management — commands and handler.

Carts are addressed by user: the first AddToCart for a user creates the cart.
"""

from protean import handle
from protean.exceptions import ObjectNotFoundError, ValidationError
from protean.fields import Identifier, Integer
from protean.utils.globals import current_domain

from storefront.cart.cart import ShoppingCart
from storefront.catalogue.reader import find_product
from storefront.domain import storefront


def find_cart(user_id) -> ShoppingCart | None:
    """Return the user's cart, or None when they have never added anything."""
    carts = current_domain.repository_for(ShoppingCart)._dao.query.filter(user_id=str(user_id)).all().items
    return carts[0] if carts else None


def get_cart(user_id) -> ShoppingCart:
    cart = find_cart(user_id)
    if cart is None:
        raise ObjectNotFoundError(f"No cart found for user {user_id}")
    return cart


@storefront.command(part_of="ShoppingCart")
class AddToCart:
    user_id = Identifier(required=True)
    product_id = Identifier(required=True)
    variant_id = Identifier(required=True)
    quantity = Integer(required=True, min_value=1)


@storefront.command(part_of="ShoppingCart")
class UpdateCartQuantity:
    user_id = Identifier(required=True)
    item_id = Identifier(required=True)
    new_quantity = Integer(required=True, min_value=1)


@storefront.command(part_of="ShoppingCart")
class RemoveFromCart:
    user_id = Identifier(required=True)
    item_id = Identifier(required=True)


@storefront.command(part_of="ShoppingCart")
class ClearCart:
    user_id = Identifier(required=True)


@storefront.command_handler(part_of=ShoppingCart)
class ManageCartItemsHandler:
    @handle(AddToCart)
    def add_to_cart(self, command):
        product = find_product(command.product_id)
        if product is None or not product.active:
            raise ObjectNotFoundError(f"Product {command.product_id} not found")
        variant = product.find_variant(command.variant_id)
        if variant is None:
            raise ObjectNotFoundError(f"Variant {command.variant_id} not found")

        repo = current_domain.repository_for(ShoppingCart)
        cart = find_cart(command.user_id) or ShoppingCart.create(user_id=command.user_id)

        existing = cart.find_item(command.product_id, command.variant_id)
        wanted = command.quantity + (existing.quantity if existing else 0)
        if (variant.inventory or 0) < wanted:
            raise ValidationError({"quantity": ["Insufficient inventory for the selected variant"]})

        item_id = cart.add_item(
            product_id=command.product_id,
            variant_id=command.variant_id,
            quantity=command.quantity,
        )
        repo.add(cart)
        return item_id

    @handle(UpdateCartQuantity)
    def update_cart_quantity(self, command):
        repo = current_domain.repository_for(ShoppingCart)
        cart = get_cart(command.user_id)
        cart.update_item_quantity(
            item_id=command.item_id,
            new_quantity=command.new_quantity,
        )
        repo.add(cart)

    @handle(RemoveFromCart)
    def remove_from_cart(self, command):
        repo = current_domain.repository_for(ShoppingCart)
        cart = get_cart(command.user_id)
        cart.remove_item(item_id=command.item_id)
        repo.add(cart)

    @handle(ClearCart)
    def clear_cart(self, command):
        cart = find_cart(command.user_id)
        if cart is None:
            return
        cart.clear()
        current_domain.repository_for(ShoppingCart).add(cart)
