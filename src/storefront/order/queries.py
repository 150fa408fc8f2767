"""Order lookups and read models for the API."""

from protean.utils.globals import current_domain

from storefront.errors import NotAuthorizedError
from storefront.order.order import Order
from storefront.order.pricing import status_info
from storefront.utils import clock
from storefront.utils.query import scan

STAFF_ROLES = frozenset({"admin", "staff"})


def is_staff(role) -> bool:
    return (role or "").lower() in STAFF_ROLES


def find_order_by_transaction(transaction_id) -> Order | None:
    if not transaction_id:
        return None
    orders = (
        current_domain.repository_for(Order)._dao.query.filter(payment_transaction_id=str(transaction_id)).all().items
    )
    return orders[0] if orders else None


def order_variant_ids(order_id) -> list[str]:
    """Variant ids on an order, for taking its variant locks before processing."""
    order = current_domain.repository_for(Order).get(order_id)
    return [str(line.variant_id) for line in order.lines]


def get_order_for(order_id, user_id, role=None) -> Order:
    """Load an order the caller may see: their own, or any order for staff."""
    order = current_domain.repository_for(Order).get(order_id)
    if not is_staff(role) and not order.is_owned_by(user_id):
        raise NotAuthorizedError("You can only view your own orders")
    return order


def list_orders(user_id=None, status=None) -> list[Order]:
    filters = {}
    if user_id is not None:
        filters["user_id"] = str(user_id)
    if status:
        filters["status"] = status
    orders = scan(Order, **filters)
    return sorted(orders, key=lambda o: clock.as_utc(o.created_at), reverse=True)


def _iso(value) -> str | None:
    value = clock.as_utc(value)
    return value.isoformat() if value else None


def order_to_dict(order: Order) -> dict:
    return {
        "order_id": str(order.id),
        "order_number": order.order_number,
        "user_id": str(order.user_id),
        "status": order.status,
        "status_info": status_info(order.status),
        "lines": [
            {
                "product_id": str(line.product_id),
                "variant_id": str(line.variant_id),
                "name": line.name,
                "image_url": line.image_url,
                "quantity": line.quantity,
                "unit_price": line.unit_price,
                "reviewed": bool(line.reviewed),
            }
            for line in order.lines
        ],
        "shipping_address_id": str(order.shipping_address_id),
        "billing_address_id": str(order.billing_address_id),
        "payment_method": order.payment_method,
        "payment": order.payment_record(),
        "subtotal": order.subtotal,
        "shipping_cost": order.shipping_cost,
        "tax_amount": order.tax_amount,
        "total_amount": order.total_amount,
        "currency": order.currency,
        "tracking_number": order.tracking_number,
        "review_expires_at": _iso(order.review_expires_at),
        "needs_attention": bool(order.needs_attention),
        "status_history": [
            {
                "status": change.status,
                "changed_at": _iso(change.changed_at),
                "changed_by": change.changed_by,
                "note": change.note,
            }
            for change in sorted(order.status_history, key=lambda c: c.changed_at)
        ],
        "created_at": _iso(order.created_at),
    }


def order_summary(order_id) -> dict:
    """Financial summary for operators, including cost and profit."""
    order = current_domain.repository_for(Order).get(order_id)
    return {
        "order_id": str(order.id),
        "order_number": order.order_number,
        "status": status_info(order.status),
        "user_id": str(order.user_id),
        "financial": order.financial_summary(),
        "items": {
            "count": len(order.lines),
            "total_quantity": sum(line.quantity for line in order.lines),
            "details": [
                {
                    "name": line.name,
                    "quantity": line.quantity,
                    "unit_price": line.unit_price,
                    "total_price": round(line.unit_price * line.quantity, 2),
                    "profit": round((line.unit_price - (line.unit_cost or 0)) * line.quantity, 2),
                }
                for line in order.lines
            ],
        },
        "payment": {"method": order.payment_method, **order.payment_record()},
        "needs_attention": bool(order.needs_attention),
        "attention_notes": order.attention_notes,
    }
