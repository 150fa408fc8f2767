"""Read-side access to the catalogue for checkout."""

from dataclasses import dataclass

from protean.exceptions import ObjectNotFoundError
from protean.utils.globals import current_domain

from storefront.catalogue.product import Product


@dataclass(frozen=True)
class VariantQuote:
    """Current catalogue facts for one product variant."""

    product_id: str
    variant_id: str
    name: str
    unit_price: float
    unit_cost: float
    image_url: str | None
    inventory: int


def find_product(product_id) -> Product | None:
    try:
        return current_domain.repository_for(Product).get(product_id)
    except ObjectNotFoundError:
        return None


def quote(product_id, variant_id, requested: int) -> tuple[VariantQuote | None, dict | None]:
    """Price a cart line against the catalogue.

    Returns ``(quote, None)`` when the line can be fulfilled, or
    ``(None, problem)`` with a dict describing why it cannot.
    """

    def problem(reason, available=0):
        return {
            "product_id": str(product_id),
            "variant_id": str(variant_id),
            "requested": requested,
            "available": available,
            "reason": reason,
        }

    product = find_product(product_id)
    if product is None:
        return None, problem("product_not_found")
    if not product.active:
        return None, problem("product_inactive")

    variant = product.find_variant(variant_id)
    if variant is None:
        return None, problem("variant_not_found")

    available = variant.inventory or 0
    if available < requested:
        return None, problem("insufficient_stock", available)

    return (
        VariantQuote(
            product_id=str(product.id),
            variant_id=str(variant.id),
            name=product.name,
            unit_price=variant.unit_price,
            unit_cost=product.import_price or 0.0,
            image_url=product.image_for(variant),
            inventory=available,
        ),
        None,
    )
