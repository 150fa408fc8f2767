"""Pydantic request/response schemas for the Storefront API.

These are external contracts (anti-corruption layer) — separate from
internal Protean commands.
"""

from pydantic import BaseModel, Field


# ---------------------------------------------------------------------------
# Shared
# ---------------------------------------------------------------------------
class StatusResponse(BaseModel):
    status: str = "ok"


# ---------------------------------------------------------------------------
# Catalogue
# ---------------------------------------------------------------------------
class VariantSchema(BaseModel):
    sku: str
    color: str | None = None
    size: str | None = None
    price: float = Field(ge=0)
    sale_price: float | None = Field(default=None, ge=0)
    inventory: int = Field(ge=0, default=0)
    image_url: str | None = None


class CreateProductRequest(BaseModel):
    name: str
    description: str | None = None
    import_price: float = Field(ge=0, default=0.0)
    image_url: str | None = None
    variants: list[VariantSchema] = Field(min_length=1)

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "name": "Linen Shirt",
                    "import_price": 9.5,
                    "variants": [{"sku": "LS-BLU-M", "color": "Blue", "size": "M", "price": 20.0, "inventory": 10}],
                }
            ]
        }
    }


class ProductIdResponse(BaseModel):
    product_id: str


class ChangeVariantPriceRequest(BaseModel):
    price: float = Field(ge=0)
    sale_price: float | None = Field(default=None, ge=0)


class RestockVariantRequest(BaseModel):
    quantity: int = Field(ge=1)


# ---------------------------------------------------------------------------
# Address
# ---------------------------------------------------------------------------
class AddAddressRequest(BaseModel):
    full_name: str
    street: str
    city: str
    state: str | None = None
    postal_code: str
    country: str
    phone: str | None = None


class AddressIdResponse(BaseModel):
    address_id: str


# ---------------------------------------------------------------------------
# Cart
# ---------------------------------------------------------------------------
class AddToCartRequest(BaseModel):
    product_id: str
    variant_id: str
    quantity: int = Field(ge=1, default=1)


class UpdateCartQuantityRequest(BaseModel):
    quantity: int = Field(ge=1)


class CartItemIdResponse(BaseModel):
    item_id: str


class CartItemSchema(BaseModel):
    item_id: str
    product_id: str
    variant_id: str
    quantity: int


class CartResponse(BaseModel):
    cart_id: str | None = None
    items: list[CartItemSchema] = []


# ---------------------------------------------------------------------------
# Orders
# ---------------------------------------------------------------------------
class PlaceOrderRequest(BaseModel):
    shipping_address_id: str | None = None
    billing_address_id: str | None = None
    payment_method: str = "stripe"
    shipping_cost: float = Field(ge=0, default=0.0)
    tax_rate: float | None = Field(default=None, ge=0)
    contact_email: str | None = None


class PlaceOrderResponse(BaseModel):
    order_id: str
    order_number: str
    client_secret: str


class CancelOrderRequest(BaseModel):
    reason: str | None = None


class UpdateOrderStatusRequest(BaseModel):
    status: str
    tracking_number: str | None = None
    note: str | None = None


class RefundOrderRequest(BaseModel):
    amount: float | None = Field(default=None, gt=0)
    reason: str | None = None


class RefundResponse(BaseModel):
    refund_id: str


class WebhookResponse(BaseModel):
    received: bool = True
    outcome: str


# ---------------------------------------------------------------------------
# Reviews
# ---------------------------------------------------------------------------
class SubmitReviewRequest(BaseModel):
    product_id: str
    variant_id: str
    # Range is enforced by the domain after eligibility checks
    rating: int
    title: str | None = Field(default=None, max_length=100)
    comment: str | None = Field(default=None, max_length=500)


class EditReviewRequest(BaseModel):
    rating: int | None = None
    title: str | None = Field(default=None, max_length=100)
    comment: str | None = Field(default=None, max_length=500)


class ReviewIdResponse(BaseModel):
    review_id: str
