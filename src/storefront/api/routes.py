"""FastAPI routes for the Storefront — catalogue, addresses, cart, orders and reviews.

The caller's identity arrives in ``X-User-Id`` / ``X-User-Role`` headers set
by the upstream auth layer.
"""

import json

from fastapi import APIRouter, Header, Query, Request
from protean.utils.globals import current_domain

from storefront.address.address import AddAddress
from storefront.api.schemas import (
    AddAddressRequest,
    AddressIdResponse,
    AddToCartRequest,
    CancelOrderRequest,
    CartItemIdResponse,
    CartItemSchema,
    CartResponse,
    ChangeVariantPriceRequest,
    CreateProductRequest,
    EditReviewRequest,
    PlaceOrderRequest,
    PlaceOrderResponse,
    ProductIdResponse,
    RefundOrderRequest,
    RefundResponse,
    RestockVariantRequest,
    ReviewIdResponse,
    StatusResponse,
    SubmitReviewRequest,
    UpdateCartQuantityRequest,
    UpdateOrderStatusRequest,
    WebhookResponse,
)
from storefront.cart.items import AddToCart, ClearCart, RemoveFromCart, UpdateCartQuantity, find_cart
from storefront.catalogue.management import ChangeVariantPrice, CreateProduct, RestockVariant
from storefront.errors import NotAuthorizedError
from storefront.order.cancellation import cancel_order, refund_order
from storefront.order.placement import place_order
from storefront.order.queries import get_order_for, is_staff, list_orders, order_summary, order_to_dict
from storefront.order.status import update_order_status
from storefront.payment.webhook import handle_webhook
from storefront.review.editing import edit_review
from storefront.review.queries import DEFAULT_PAGE_SIZE, list_reviews
from storefront.review.removal import remove_review
from storefront.review.submission import submit_review


def _require_staff(role: str) -> None:
    if not is_staff(role):
        raise NotAuthorizedError("Staff access required")


# ---------------------------------------------------------------------------
# Catalogue Router
# ---------------------------------------------------------------------------
product_router = APIRouter(prefix="/products", tags=["catalogue"])


@product_router.post("", status_code=201, response_model=ProductIdResponse)
async def create_product(body: CreateProductRequest, x_user_role: str = Header(default="customer")) -> ProductIdResponse:
    _require_staff(x_user_role)
    command = CreateProduct(
        name=body.name,
        description=body.description,
        import_price=body.import_price,
        image_url=body.image_url,
        variants=json.dumps([v.model_dump() for v in body.variants]),
    )
    product_id = current_domain.process(command, asynchronous=False)
    return ProductIdResponse(product_id=product_id)


@product_router.put("/{product_id}/variants/{variant_id}/price", response_model=StatusResponse)
async def change_variant_price(
    product_id: str,
    variant_id: str,
    body: ChangeVariantPriceRequest,
    x_user_role: str = Header(default="customer"),
) -> StatusResponse:
    _require_staff(x_user_role)
    command = ChangeVariantPrice(
        product_id=product_id,
        variant_id=variant_id,
        price=body.price,
        sale_price=body.sale_price,
    )
    current_domain.process(command, asynchronous=False)
    return StatusResponse()


@product_router.post("/{product_id}/variants/{variant_id}/restock", response_model=StatusResponse)
async def restock_variant(
    product_id: str,
    variant_id: str,
    body: RestockVariantRequest,
    x_user_role: str = Header(default="customer"),
) -> StatusResponse:
    _require_staff(x_user_role)
    command = RestockVariant(product_id=product_id, variant_id=variant_id, quantity=body.quantity)
    current_domain.process(command, asynchronous=False)
    return StatusResponse()


@product_router.get("/{product_id}/reviews")
async def get_product_reviews(
    product_id: str,
    page: int = Query(default=1, ge=1),
    per_page: int = Query(default=DEFAULT_PAGE_SIZE, ge=1, le=50),
    rating: int | None = Query(default=None, ge=1, le=5),
) -> dict:
    return list_reviews(product_id, page=page, per_page=per_page, rating=rating)


# ---------------------------------------------------------------------------
# Address Router
# ---------------------------------------------------------------------------
address_router = APIRouter(prefix="/addresses", tags=["addresses"])


@address_router.post("", status_code=201, response_model=AddressIdResponse)
async def add_address(body: AddAddressRequest, x_user_id: str = Header()) -> AddressIdResponse:
    command = AddAddress(user_id=x_user_id, **body.model_dump())
    address_id = current_domain.process(command, asynchronous=False)
    return AddressIdResponse(address_id=address_id)


# ---------------------------------------------------------------------------
# Cart Router
# ---------------------------------------------------------------------------
cart_router = APIRouter(prefix="/cart", tags=["cart"])


@cart_router.get("", response_model=CartResponse)
async def get_cart(x_user_id: str = Header()) -> CartResponse:
    cart = find_cart(x_user_id)
    if cart is None:
        return CartResponse()
    return CartResponse(
        cart_id=str(cart.id),
        items=[
            CartItemSchema(
                item_id=str(item.id),
                product_id=str(item.product_id),
                variant_id=str(item.variant_id),
                quantity=item.quantity,
            )
            for item in cart.items
        ],
    )


@cart_router.post("/items", status_code=201, response_model=CartItemIdResponse)
async def add_cart_item(body: AddToCartRequest, x_user_id: str = Header()) -> CartItemIdResponse:
    command = AddToCart(
        user_id=x_user_id,
        product_id=body.product_id,
        variant_id=body.variant_id,
        quantity=body.quantity,
    )
    item_id = current_domain.process(command, asynchronous=False)
    return CartItemIdResponse(item_id=item_id)


@cart_router.put("/items/{item_id}", response_model=StatusResponse)
async def update_cart_item(item_id: str, body: UpdateCartQuantityRequest, x_user_id: str = Header()) -> StatusResponse:
    command = UpdateCartQuantity(user_id=x_user_id, item_id=item_id, new_quantity=body.quantity)
    current_domain.process(command, asynchronous=False)
    return StatusResponse()


@cart_router.delete("/items/{item_id}", response_model=StatusResponse)
async def remove_cart_item(item_id: str, x_user_id: str = Header()) -> StatusResponse:
    current_domain.process(RemoveFromCart(user_id=x_user_id, item_id=item_id), asynchronous=False)
    return StatusResponse()


@cart_router.delete("", response_model=StatusResponse)
async def clear_cart(x_user_id: str = Header()) -> StatusResponse:
    current_domain.process(ClearCart(user_id=x_user_id), asynchronous=False)
    return StatusResponse()


# ---------------------------------------------------------------------------
# Order Router
# ---------------------------------------------------------------------------
order_router = APIRouter(prefix="/orders", tags=["orders"])


@order_router.post("", status_code=201, response_model=PlaceOrderResponse)
async def create_order(body: PlaceOrderRequest, x_user_id: str = Header()) -> PlaceOrderResponse:
    """Place an order from the caller's cart and open a payment intent."""
    result = place_order(
        user_id=x_user_id,
        shipping_address_id=body.shipping_address_id,
        billing_address_id=body.billing_address_id,
        payment_method=body.payment_method,
        shipping_cost=body.shipping_cost,
        tax_rate=body.tax_rate,
        contact_email=body.contact_email,
    )
    return PlaceOrderResponse(**result)


@order_router.post("/webhook", response_model=WebhookResponse)
async def payment_webhook(request: Request, stripe_signature: str = Header(default="")) -> WebhookResponse:
    """Receive a payment gateway callback. The signature covers the raw body."""
    payload = await request.body()
    outcome = handle_webhook(payload, stripe_signature)
    return WebhookResponse(outcome=outcome)


@order_router.get("")
async def get_my_orders(status: str | None = None, x_user_id: str = Header()) -> dict:
    orders = list_orders(user_id=x_user_id, status=status)
    return {"orders": [order_to_dict(o) for o in orders], "count": len(orders)}


@order_router.get("/{order_id}")
async def get_order(
    order_id: str,
    x_user_id: str = Header(),
    x_user_role: str = Header(default="customer"),
) -> dict:
    return order_to_dict(get_order_for(order_id, x_user_id, x_user_role))


@order_router.patch("/{order_id}/cancel", response_model=StatusResponse)
async def cancel(
    order_id: str,
    body: CancelOrderRequest | None = None,
    x_user_id: str = Header(),
    x_user_role: str = Header(default="customer"),
) -> StatusResponse:
    status = cancel_order(order_id, x_user_id, role=x_user_role, reason=body.reason if body else None)
    return StatusResponse(status=status)


@order_router.patch("/{order_id}/status", response_model=StatusResponse)
async def change_status(
    order_id: str,
    body: UpdateOrderStatusRequest,
    x_user_id: str = Header(),
    x_user_role: str = Header(default="customer"),
) -> StatusResponse:
    status = update_order_status(
        order_id,
        body.status,
        changed_by=x_user_id,
        role=x_user_role,
        tracking_number=body.tracking_number,
        note=body.note,
    )
    return StatusResponse(status=status)


@order_router.post("/{order_id}/refund", response_model=RefundResponse)
async def refund(
    order_id: str,
    body: RefundOrderRequest,
    x_user_id: str = Header(),
    x_user_role: str = Header(default="customer"),
) -> RefundResponse:
    refund_id = refund_order(order_id, x_user_id, role=x_user_role, amount=body.amount, reason=body.reason)
    return RefundResponse(refund_id=refund_id)


@order_router.post("/{order_id}/reviews", status_code=201, response_model=ReviewIdResponse)
async def review_order_line(order_id: str, body: SubmitReviewRequest, x_user_id: str = Header()) -> ReviewIdResponse:
    review_id = submit_review(
        order_id=order_id,
        product_id=body.product_id,
        variant_id=body.variant_id,
        user_id=x_user_id,
        rating=body.rating,
        title=body.title,
        comment=body.comment,
    )
    return ReviewIdResponse(review_id=review_id)


# ---------------------------------------------------------------------------
# Review Router
# ---------------------------------------------------------------------------
review_router = APIRouter(prefix="/reviews", tags=["reviews"])


@review_router.patch("/{review_id}", response_model=ReviewIdResponse)
async def update_review(review_id: str, body: EditReviewRequest, x_user_id: str = Header()) -> ReviewIdResponse:
    edit_review(review_id, x_user_id, rating=body.rating, title=body.title, comment=body.comment)
    return ReviewIdResponse(review_id=review_id)


@review_router.delete("/{review_id}", response_model=StatusResponse)
async def delete_review(
    review_id: str,
    x_user_id: str = Header(),
    x_user_role: str = Header(default="customer"),
) -> StatusResponse:
    remove_review(review_id, x_user_id, role=x_user_role)
    return StatusResponse(status="removed")


# ---------------------------------------------------------------------------
# Admin Router
# ---------------------------------------------------------------------------
admin_router = APIRouter(prefix="/admin", tags=["admin"])


@admin_router.get("/orders")
async def get_all_orders(status: str | None = None, x_user_role: str = Header(default="customer")) -> dict:
    _require_staff(x_user_role)
    orders = list_orders(status=status)
    return {"orders": [order_to_dict(o) for o in orders], "count": len(orders)}


@admin_router.get("/orders/{order_id}/summary")
async def get_order_summary(order_id: str, x_user_role: str = Header(default="customer")) -> dict:
    _require_staff(x_user_role)
    return order_summary(order_id)
