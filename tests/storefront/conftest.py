import pytest
from protean.integrations.pytest import DomainFixture


@pytest.fixture(scope="session")
def storefront_bed():
    from storefront.domain import storefront

    bed = DomainFixture(storefront)
    bed.setup()
    yield bed
    bed.teardown()


@pytest.fixture(autouse=True)
def _ctx(storefront_bed):
    with storefront_bed.domain_context():
        yield


# ---------------------------------------------------------------------------
# Workflow fixtures
# ---------------------------------------------------------------------------
@pytest.fixture()
def gateway():
    from storefront.payment.gateway import set_gateway
    from storefront.payment.gateway.fake_adapter import FakeGateway

    fake = FakeGateway()
    set_gateway(fake)
    return fake


@pytest.fixture()
def make_product():
    """Create a product with one variant and return (product_id, variant_id)."""
    from protean import current_domain
    from storefront.catalogue.product import Product

    def _make(price=20.0, inventory=5, sale_price=None, import_price=8.0, name="Linen Shirt", sku="LS-BLU-M"):
        product = Product.create(
            name=name,
            import_price=import_price,
            image_url="https://cdn.example.com/shirt.jpg",
            variants=[
                {
                    "sku": sku,
                    "color": "Blue",
                    "size": "M",
                    "price": price,
                    "sale_price": sale_price,
                    "inventory": inventory,
                }
            ],
        )
        current_domain.repository_for(Product).add(product)
        return str(product.id), str(product.variants[0].id)

    return _make


@pytest.fixture()
def make_address():
    from protean import current_domain
    from storefront.address.address import AddAddress

    def _make(user_id="user-001"):
        return current_domain.process(
            AddAddress(
                user_id=user_id,
                full_name="Ada Lovelace",
                street="12 Analytical Row",
                city="London",
                postal_code="N1 9GU",
                country="GB",
            ),
            asynchronous=False,
        )

    return _make


@pytest.fixture()
def add_to_cart():
    from protean import current_domain
    from storefront.cart.items import AddToCart

    def _add(user_id, product_id, variant_id, quantity=1):
        return current_domain.process(
            AddToCart(user_id=user_id, product_id=product_id, variant_id=variant_id, quantity=quantity),
            asynchronous=False,
        )

    return _add


@pytest.fixture()
def checkout(gateway, make_address, add_to_cart):
    """Fill a cart and place an order. Returns the placement result dict."""
    from storefront.order.placement import place_order

    def _checkout(user_id, items, shipping_cost=0.0, tax_rate=None, contact_email="ada@example.com"):
        for product_id, variant_id, quantity in items:
            add_to_cart(user_id, product_id, variant_id, quantity)
        address_id = make_address(user_id)
        return place_order(
            user_id=user_id,
            shipping_address_id=address_id,
            billing_address_id=address_id,
            shipping_cost=shipping_cost,
            tax_rate=tax_rate,
            contact_email=contact_email,
        )

    return _checkout


@pytest.fixture()
def pay(gateway):
    """Deliver a signed payment-succeeded webhook for an order."""
    from protean import current_domain
    from storefront.order.order import Order
    from storefront.payment.webhook import handle_webhook

    def _pay(order_id):
        order = current_domain.repository_for(Order).get(order_id)
        return handle_webhook(*gateway.succeed(order.payment_transaction_id))

    return _pay


@pytest.fixture()
def delivered_order(checkout, pay, make_product):
    """A paid, shipped and delivered order with a single line."""
    from storefront.order.status import update_order_status

    def _deliver(user_id="user-001", product=None):
        product_id, variant_id = product or make_product()
        placed = checkout(user_id, [(product_id, variant_id, 1)])
        pay(placed["order_id"])
        update_order_status(placed["order_id"], "shipped", changed_by="staff-1", role="staff")
        update_order_status(placed["order_id"], "delivered", changed_by="staff-1", role="staff")
        return placed["order_id"], product_id, variant_id

    return _deliver
