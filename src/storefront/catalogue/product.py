"""Product aggregate root with Variant entity.

Checkout reads the current sale price, import cost and inventory of a
variant; the inventory adjuster is the only writer of inventory after an
order is confirmed. ``in_stock`` is always "any variant has inventory".
"""

from protean import atomic_change, invariant
from protean.exceptions import ValidationError
from protean.fields import (
    Boolean,
    DateTime,
    Float,
    HasMany,
    Integer,
    String,
)

from storefront.catalogue.events import (
    ProductCreated,
    ProductDeactivated,
    ProductRatingRecalculated,
    ProductStockStatusChanged,
    VariantInventoryDecremented,
    VariantPriceChanged,
    VariantRestocked,
)
from storefront.domain import storefront
from storefront.utils import clock


@storefront.entity(part_of="Product")
class Variant:
    """A purchasable colour/size combination with its own price and stock."""

    sku = String(required=True, max_length=50)
    color = String(max_length=50)
    size = String(max_length=20)
    price = Float(required=True, min_value=0.0)
    sale_price = Float(min_value=0.0)
    inventory = Integer(default=0, min_value=0)
    image_url = String(max_length=500)

    @property
    def unit_price(self) -> float:
        """Price charged at checkout: the sale price when one is set."""
        return self.sale_price if self.sale_price is not None else self.price


@storefront.aggregate
class Product:
    name = String(required=True, max_length=255)
    description = String(max_length=2000)
    import_price = Float(default=0.0, min_value=0.0)
    image_url = String(max_length=500)
    active = Boolean(default=True)
    in_stock = Boolean(default=False)
    average_rating = Float(default=0.0)
    total_reviews = Integer(default=0)
    variants = HasMany(Variant)
    created_at = DateTime()
    updated_at = DateTime()

    @invariant.post
    def sale_price_cannot_exceed_price(self):
        for variant in self.variants:
            if variant.sale_price is not None and variant.sale_price > variant.price:
                raise ValidationError({"sale_price": [f"Sale price of {variant.sku} exceeds its price"]})

    @classmethod
    def create(cls, name, import_price=0.0, image_url=None, description=None, variants=None):
        """Create a product together with its initial variants.

        Args:
            variants: list of dicts with sku, color, size, price, sale_price,
                      inventory and image_url.
        """
        now = clock.now()
        product = cls(
            name=name,
            description=description,
            import_price=import_price or 0.0,
            image_url=image_url,
            active=True,
            created_at=now,
            updated_at=now,
        )
        for data in variants or []:
            product.add_variants(
                Variant(
                    sku=data["sku"],
                    color=data.get("color"),
                    size=data.get("size"),
                    price=data["price"],
                    sale_price=data.get("sale_price"),
                    inventory=data.get("inventory", 0),
                    image_url=data.get("image_url"),
                )
            )
        product.in_stock = product._any_variant_in_stock()

        product.raise_(
            ProductCreated(
                product_id=str(product.id),
                name=name,
                variant_count=len(product.variants),
                created_at=now,
            )
        )
        return product

    # -------------------------------------------------------------------
    # Lookups
    # -------------------------------------------------------------------
    def find_variant(self, variant_id):
        return next((v for v in self.variants if str(v.id) == str(variant_id)), None)

    def _get_variant(self, variant_id):
        variant = self.find_variant(variant_id)
        if variant is None:
            raise ValidationError({"variant_id": [f"Variant {variant_id} not found"]})
        return variant

    def image_for(self, variant) -> str | None:
        return variant.image_url or self.image_url

    def _any_variant_in_stock(self) -> bool:
        return any((v.inventory or 0) > 0 for v in self.variants)

    # -------------------------------------------------------------------
    # Pricing and stock administration
    # -------------------------------------------------------------------
    def change_variant_price(self, variant_id, price, sale_price=None):
        variant = self._get_variant(variant_id)
        previous_price, previous_sale_price = variant.price, variant.sale_price

        with atomic_change(self):
            variant.price = price
            variant.sale_price = sale_price
            self.updated_at = clock.now()

        self.raise_(
            VariantPriceChanged(
                product_id=str(self.id),
                variant_id=str(variant_id),
                previous_price=previous_price,
                new_price=price,
                previous_sale_price=previous_sale_price,
                new_sale_price=sale_price,
            )
        )

    def restock_variant(self, variant_id, quantity):
        if quantity < 1:
            raise ValidationError({"quantity": ["Restock quantity must be at least 1"]})

        variant = self._get_variant(variant_id)
        variant.inventory = (variant.inventory or 0) + quantity
        self.updated_at = clock.now()

        self.raise_(
            VariantRestocked(
                product_id=str(self.id),
                variant_id=str(variant_id),
                quantity=quantity,
                new_inventory=variant.inventory,
            )
        )
        self.refresh_stock_status()

    def deactivate(self):
        if not self.active:
            raise ValidationError({"active": ["Product is already inactive"]})
        self.active = False
        self.updated_at = clock.now()
        self.raise_(ProductDeactivated(product_id=str(self.id)))

    # -------------------------------------------------------------------
    # Inventory adjustment
    # -------------------------------------------------------------------
    def take_stock(self, variant_id, quantity, order_id) -> bool:
        """Conditionally decrement a variant's inventory.

        Succeeds only when current inventory covers ``quantity``; otherwise
        nothing changes and False is returned. Stock never goes negative.
        """
        variant = self.find_variant(variant_id)
        if variant is None or (variant.inventory or 0) < quantity:
            return False

        variant.inventory = variant.inventory - quantity
        self.updated_at = clock.now()

        self.raise_(
            VariantInventoryDecremented(
                product_id=str(self.id),
                variant_id=str(variant_id),
                order_id=str(order_id),
                quantity=quantity,
                new_inventory=variant.inventory,
            )
        )
        return True

    def refresh_stock_status(self):
        """Recompute ``in_stock`` from variant inventory."""
        in_stock = self._any_variant_in_stock()
        if in_stock != self.in_stock:
            self.in_stock = in_stock
            self.raise_(ProductStockStatusChanged(product_id=str(self.id), in_stock=in_stock))

    # -------------------------------------------------------------------
    # Ratings
    # -------------------------------------------------------------------
    def record_rating(self, average_rating, total_reviews):
        self.average_rating = average_rating
        self.total_reviews = total_reviews
        self.updated_at = clock.now()

        self.raise_(
            ProductRatingRecalculated(
                product_id=str(self.id),
                average_rating=average_rating,
                total_reviews=total_reviews,
            )
        )
