"""Inventory adjuster — takes stock for a paid order and gives it back on cancellation.

Runs inside the payment-confirmation unit of work, while the caller holds
the variant locks for every line of the order. Payment has already been
taken, so a line that can no longer be covered is skipped and reported
rather than failing the order.
"""

from collections import defaultdict
from dataclasses import dataclass

import structlog
from protean.utils.globals import current_domain

from storefront.catalogue.product import Product
from storefront.catalogue.reader import find_product

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class Shortfall:
    product_id: str
    variant_id: str
    requested: int
    available: int
    reason: str

    def describe(self) -> str:
        return (
            f"product {self.product_id} variant {self.variant_id}: "
            f"requested {self.requested}, available {self.available} ({self.reason})"
        )


def adjust_for_order(order) -> list[Shortfall]:
    """Decrement variant inventory for every line of ``order``.

    Each decrement is conditional on current stock covering the line, so
    inventory never goes negative. ``in_stock`` is recomputed for each
    product touched. Returns the lines that could not be covered.
    """
    lines_by_product = defaultdict(list)
    for line in order.lines:
        lines_by_product[str(line.product_id)].append(line)

    repo = current_domain.repository_for(Product)
    shortfalls = []

    for product_id, lines in lines_by_product.items():
        product = find_product(product_id)
        if product is None:
            for line in lines:
                shortfalls.append(Shortfall(product_id, str(line.variant_id), line.quantity, 0, "product_not_found"))
            continue

        for line in lines:
            if product.take_stock(line.variant_id, line.quantity, order.id):
                line.stock_taken = True
                continue

            variant = product.find_variant(line.variant_id)
            shortfall = Shortfall(
                product_id=product_id,
                variant_id=str(line.variant_id),
                requested=line.quantity,
                available=(variant.inventory or 0) if variant else 0,
                reason="insufficient_stock" if variant else "variant_not_found",
            )
            logger.warning(
                "Inventory shortfall on confirmed order",
                order_id=str(order.id),
                order_number=order.order_number,
                product_id=shortfall.product_id,
                variant_id=shortfall.variant_id,
                requested=shortfall.requested,
                available=shortfall.available,
            )
            shortfalls.append(shortfall)

        product.refresh_stock_status()
        repo.add(product)

    return shortfalls


def restore_for_order(order) -> list:
    """Put back the stock taken for ``order``. Returns the lines restocked.

    Only lines marked ``stock_taken`` are restocked, so shortfall lines
    from confirmation are left alone. The caller holds the variant locks.
    """
    lines_by_product = defaultdict(list)
    for line in order.lines:
        if line.stock_taken:
            lines_by_product[str(line.product_id)].append(line)

    repo = current_domain.repository_for(Product)
    restored = []

    for product_id, lines in lines_by_product.items():
        product = find_product(product_id)
        for line in lines:
            if product is None or product.find_variant(line.variant_id) is None:
                logger.warning(
                    "Cannot restock line of cancelled order, variant is gone",
                    order_id=str(order.id),
                    product_id=product_id,
                    variant_id=str(line.variant_id),
                    quantity=line.quantity,
                )
                continue
            product.restock_variant(line.variant_id, line.quantity)
            line.stock_taken = False
            restored.append(line)

        if product is not None:
            repo.add(product)

    return restored
