"""Domain events for the Product aggregate."""

from protean.fields import Boolean, DateTime, Float, Identifier, Integer, String

from storefront.domain import storefront


@storefront.event(part_of="Product")
class ProductCreated:
    """A new product was added to the catalogue."""

    __version__ = 1

    product_id = Identifier(required=True)
    name = String(required=True)
    variant_count = Integer(required=True)
    created_at = DateTime(required=True)


@storefront.event(part_of="Product")
class VariantPriceChanged:
    """A variant's list or sale price changed. Existing orders keep their snapshot."""

    __version__ = 1

    product_id = Identifier(required=True)
    variant_id = Identifier(required=True)
    previous_price = Float(required=True)
    new_price = Float(required=True)
    previous_sale_price = Float()
    new_sale_price = Float()


@storefront.event(part_of="Product")
class VariantRestocked:
    __version__ = 1

    product_id = Identifier(required=True)
    variant_id = Identifier(required=True)
    quantity = Integer(required=True)
    new_inventory = Integer(required=True)


@storefront.event(part_of="Product")
class VariantInventoryDecremented:
    """Stock was taken from a variant for a confirmed order."""

    __version__ = 1

    product_id = Identifier(required=True)
    variant_id = Identifier(required=True)
    order_id = Identifier(required=True)
    quantity = Integer(required=True)
    new_inventory = Integer(required=True)


@storefront.event(part_of="Product")
class ProductStockStatusChanged:
    __version__ = 1

    product_id = Identifier(required=True)
    in_stock = Boolean(required=True)


@storefront.event(part_of="Product")
class ProductRatingRecalculated:
    """Average rating and review count were recomputed from all reviews."""

    __version__ = 1

    product_id = Identifier(required=True)
    average_rating = Float(required=True)
    total_reviews = Integer(required=True)


@storefront.event(part_of="Product")
class ProductDeactivated:
    __version__ = 1

    product_id = Identifier(required=True)
