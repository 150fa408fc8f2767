"""Checkout — turn the user's cart into a pending order with a payment intent.

Checkout fails fast: if any cart line cannot be fulfilled the whole request
is rejected with the exact list of problem lines, and nothing is written.
The payment intent is opened before the order is saved so the order is
persisted exactly once, already carrying its transaction id; if the gateway
call fails the unit of work rolls back and no order exists.
"""

import threading
from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar

import structlog
from protean import handle
from protean.exceptions import ValidationError
from protean.fields import Float, Identifier, String
from protean.utils.globals import current_domain

from storefront.address.address import resolve_address
from storefront.cart.items import find_cart
from storefront.catalogue.reader import quote
from storefront.domain import storefront
from storefront.errors import PaymentGatewayError, UnavailableItemsError
from storefront.order.order import Order, PaymentMethod
from storefront.order.pricing import calculate_totals, order_number_candidate
from storefront.payment.gateway import get_gateway
from storefront.utils import clock
from storefront.utils.money import to_decimal, to_minor_units
from storefront.utils.settings import get_settings

logger = structlog.get_logger(__name__)

_ORDER_NUMBER_ATTEMPTS = 20


@storefront.command(part_of="Order")
class PlaceOrder:
    user_id = Identifier(required=True)
    shipping_address_id = Identifier()
    billing_address_id = Identifier()
    payment_method = String(choices=PaymentMethod, default=PaymentMethod.STRIPE.value)
    shipping_cost = Float(default=0.0, min_value=0.0)
    tax_rate = Float(min_value=0.0)  # Defaults to the configured rate
    contact_email = String(max_length=254)


# Numbers handed out to checkouts whose unit of work has not finished yet.
# The ledger query cannot see them until they commit.
_in_flight: set[str] = set()
_in_flight_guard = threading.Lock()
_checkout_reservations: ContextVar[list[str] | None] = ContextVar("checkout_reservations", default=None)


def _reserve(candidate: str) -> bool:
    reservations = _checkout_reservations.get()
    if reservations is None:
        return True
    with _in_flight_guard:
        if candidate in _in_flight:
            return False
        _in_flight.add(candidate)
    reservations.append(candidate)
    return True


def _release(candidates) -> None:
    with _in_flight_guard:
        _in_flight.difference_update(candidates)


@contextmanager
def order_number_reservations() -> Iterator[None]:
    """Hold every number allocated inside the block until the block exits.

    Wraps the whole checkout command, commit included, so two checkouts in
    this process never take the same number. The ``unique`` column covers
    writers in other processes.
    """
    reservations = []
    token = _checkout_reservations.set(reservations)
    try:
        yield
    finally:
        _checkout_reservations.reset(token)
        _release(reservations)


def generate_order_number() -> str:
    """Allocate an ``ORD-YYYYMMDD-XXXX`` number not yet used in the ledger."""
    dao = current_domain.repository_for(Order)._dao
    today = clock.now()
    for _ in range(_ORDER_NUMBER_ATTEMPTS):
        candidate = order_number_candidate(today)
        if not _reserve(candidate):
            continue
        if not dao.query.filter(order_number=candidate).all().items:
            return candidate
    raise ValidationError({"order_number": ["Could not allocate a unique order number, please retry"]})


@storefront.command_handler(part_of=Order)
class PlaceOrderHandler:
    @handle(PlaceOrder)
    def place_order(self, command):
        if not command.shipping_address_id or not command.billing_address_id:
            raise ValidationError({"address": ["Shipping and billing addresses are required"]})

        shipping = resolve_address(command.shipping_address_id, command.user_id, "shipping_address_id")
        resolve_address(command.billing_address_id, command.user_id, "billing_address_id")

        cart = find_cart(command.user_id)
        if cart is None or not cart.items:
            raise ValidationError({"cart": ["Cart is empty"]})

        lines_data = []
        unavailable = []
        for item in cart.items:
            line_quote, problem = quote(item.product_id, item.variant_id, item.quantity)
            if problem:
                unavailable.append(problem)
                continue
            lines_data.append(
                {
                    "product_id": line_quote.product_id,
                    "variant_id": line_quote.variant_id,
                    "name": line_quote.name,
                    "image_url": line_quote.image_url,
                    "quantity": item.quantity,
                    "unit_price": line_quote.unit_price,
                    "unit_cost": line_quote.unit_cost,
                }
            )

        if unavailable:
            logger.info(
                "Checkout rejected, cart has unavailable items",
                user_id=str(command.user_id),
                unavailable=len(unavailable),
            )
            raise UnavailableItemsError(unavailable)

        settings = get_settings()
        tax_rate = settings.tax_rate if command.tax_rate is None else to_decimal(command.tax_rate)
        totals = calculate_totals(lines_data, command.shipping_cost or 0, tax_rate)

        order = Order.place(
            order_number=generate_order_number(),
            user_id=command.user_id,
            lines_data=lines_data,
            totals=totals,
            shipping_address_id=command.shipping_address_id,
            billing_address_id=command.billing_address_id,
            payment_method=command.payment_method or PaymentMethod.STRIPE.value,
            currency=settings.currency,
            contact_email=command.contact_email,
            shipping_label=shipping.summary(),
        )

        gateway = get_gateway()
        try:
            intent = gateway.create_intent(
                amount_cents=to_minor_units(totals.total_amount),
                currency=settings.currency,
                metadata={
                    "order_id": str(order.id),
                    "order_number": order.order_number,
                    "user_id": str(command.user_id),
                },
            )
        except PaymentGatewayError as exc:
            logger.error(
                "Payment intent creation failed, order not created",
                user_id=str(command.user_id),
                order_number=order.order_number,
                reason=exc.reason,
            )
            raise

        order.attach_payment_intent(gateway.provider_name, intent.external_id)
        current_domain.repository_for(Order).add(order)

        logger.info(
            "Order placed",
            order_id=str(order.id),
            order_number=order.order_number,
            user_id=str(command.user_id),
            total_amount=order.total_amount,
        )
        return {
            "order_id": str(order.id),
            "order_number": order.order_number,
            "client_secret": intent.client_secret,
        }


def place_order(**kwargs) -> dict:
    """Run checkout for a user. Returns order_id, order_number and client_secret."""
    with order_number_reservations():
        return current_domain.process(PlaceOrder(**kwargs), asynchronous=False)
