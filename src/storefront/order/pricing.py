"""Order money math: checkout totals, profit summaries, status display info."""

import random
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal

from storefront.utils.money import round_cents, to_decimal


@dataclass(frozen=True)
class OrderTotals:
    subtotal: Decimal
    shipping_cost: Decimal
    tax_amount: Decimal
    total_amount: Decimal


def calculate_totals(lines, shipping_cost=0, tax_rate=Decimal("0.10")) -> OrderTotals:
    """Compute checkout totals from priced lines.

    ``lines`` is an iterable of objects or dicts exposing ``unit_price`` and
    ``quantity``. Each component is rounded half-up to cents and the total
    is the sum of the rounded components, so the persisted figures always
    add up exactly.
    """
    raw_subtotal = Decimal("0")
    for line in lines:
        unit_price = line["unit_price"] if isinstance(line, dict) else line.unit_price
        quantity = line["quantity"] if isinstance(line, dict) else line.quantity
        raw_subtotal += to_decimal(unit_price) * quantity

    subtotal = round_cents(raw_subtotal)
    shipping = round_cents(shipping_cost or 0)
    # Tax applies to the unrounded subtotal, then rounds on its own
    tax = round_cents(raw_subtotal * to_decimal(tax_rate))
    return OrderTotals(
        subtotal=subtotal,
        shipping_cost=shipping,
        tax_amount=tax,
        total_amount=subtotal + shipping + tax,
    )


def totals_are_consistent(subtotal, shipping_cost, tax_amount, total_amount) -> bool:
    expected = round_cents(subtotal) + round_cents(shipping_cost) + round_cents(tax_amount)
    return round_cents(total_amount) == expected


def order_number_candidate(at: datetime, rng: random.Random | None = None) -> str:
    """``ORD-YYYYMMDD-XXXX`` with a random four-digit suffix."""
    rng = rng or random
    return f"ORD-{at:%Y%m%d}-{rng.randrange(10000):04d}"


def calculate_profit(lines) -> dict:
    """Revenue, cost, profit and margin (percent) over an order's lines."""
    revenue = Decimal("0")
    cost = Decimal("0")
    for line in lines:
        revenue += to_decimal(line.unit_price) * line.quantity
        cost += to_decimal(line.unit_cost or 0) * line.quantity

    profit = revenue - cost
    margin = (profit / revenue * 100) if revenue > 0 else Decimal("0")
    return {
        "total_revenue": float(round_cents(revenue)),
        "total_cost": float(round_cents(cost)),
        "profit": float(round_cents(profit)),
        "profit_margin": float(round_cents(margin)),
    }


STATUS_INFO = {
    "pending": {
        "label": "Pending",
        "description": "Order is waiting for payment confirmation",
        "can_cancel": True,
    },
    "processing": {
        "label": "Processing",
        "description": "Order is being prepared",
        "can_cancel": True,
    },
    "shipped": {
        "label": "Shipped",
        "description": "Order has been shipped",
        "can_cancel": True,
    },
    "delivered": {
        "label": "Delivered",
        "description": "Order has been delivered",
        "can_cancel": False,
    },
    "cancelled": {
        "label": "Cancelled",
        "description": "Order has been cancelled",
        "can_cancel": False,
    },
}


def status_info(status: str) -> dict:
    return STATUS_INFO.get(
        status,
        {"label": status, "description": "Unknown status", "can_cancel": False},
    )
