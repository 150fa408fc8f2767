"""Catalogue administration — commands and handler.

Just enough write surface to stock a store: create products, reprice and
restock variants, take a product off sale.
"""

import json

from protean import handle
from protean.fields import Float, Identifier, Integer, String, Text
from protean.utils.globals import current_domain

from storefront.catalogue.product import Product
from storefront.domain import storefront


@storefront.command(part_of="Product")
class CreateProduct:
    name = String(required=True, max_length=255)
    description = String(max_length=2000)
    import_price = Float(default=0.0)
    image_url = String(max_length=500)
    variants = Text(required=True)  # JSON: list of variant dicts


@storefront.command(part_of="Product")
class ChangeVariantPrice:
    product_id = Identifier(required=True)
    variant_id = Identifier(required=True)
    price = Float(required=True, min_value=0.0)
    sale_price = Float(min_value=0.0)


@storefront.command(part_of="Product")
class RestockVariant:
    product_id = Identifier(required=True)
    variant_id = Identifier(required=True)
    quantity = Integer(required=True, min_value=1)


@storefront.command(part_of="Product")
class DeactivateProduct:
    product_id = Identifier(required=True)


@storefront.command_handler(part_of=Product)
class CatalogueManagementHandler:
    @handle(CreateProduct)
    def create_product(self, command):
        variants = json.loads(command.variants) if isinstance(command.variants, str) else command.variants
        product = Product.create(
            name=command.name,
            description=command.description,
            import_price=command.import_price,
            image_url=command.image_url,
            variants=variants,
        )
        current_domain.repository_for(Product).add(product)
        return str(product.id)

    @handle(ChangeVariantPrice)
    def change_variant_price(self, command):
        repo = current_domain.repository_for(Product)
        product = repo.get(command.product_id)
        product.change_variant_price(
            variant_id=command.variant_id,
            price=command.price,
            sale_price=command.sale_price,
        )
        repo.add(product)

    @handle(RestockVariant)
    def restock_variant(self, command):
        repo = current_domain.repository_for(Product)
        product = repo.get(command.product_id)
        product.restock_variant(command.variant_id, command.quantity)
        repo.add(product)

    @handle(DeactivateProduct)
    def deactivate_product(self, command):
        repo = current_domain.repository_for(Product)
        product = repo.get(command.product_id)
        product.deactivate()
        repo.add(product)
