"""Money arithmetic helpers.

Amounts are stored as floats on aggregates (Protean ``Float`` fields) but
every calculation goes through ``Decimal`` and is rounded half-up to cents.
"""

from decimal import ROUND_HALF_UP, Decimal

CENT = Decimal("0.01")


def to_decimal(value) -> Decimal:
    if isinstance(value, Decimal):
        return value
    # str() avoids binary float artefacts such as 0.1 -> 0.1000000000000000055
    return Decimal(str(value))


def round_cents(value) -> Decimal:
    """Round half-up to two decimal places."""
    return to_decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


def to_minor_units(value) -> int:
    """Convert a major-unit amount to an integer count of cents."""
    return int((round_cents(value) * 100).to_integral_value(rounding=ROUND_HALF_UP))


def round_one_decimal(value) -> float:
    return float(to_decimal(value).quantize(Decimal("0.1"), rounding=ROUND_HALF_UP))
