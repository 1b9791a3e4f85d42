"""
Helpers for currency amounts
"""
from decimal import Decimal, ROUND_HALF_UP

CENT = Decimal('0.01')


def to_money(value) -> Decimal:
    """Quantize to cents with commercial rounding (ROUND_HALF_UP)."""
    if not isinstance(value, Decimal):
        value = Decimal(str(value))
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


def format_money(value) -> str:
    """Two-decimal string, e.g. Decimal('30') -> '30.00'."""
    return f"{to_money(value):.2f}"


def normalize_money(value) -> str:
    """Shortest exact string, e.g. Decimal('30.00') -> '30', Decimal('45.50') -> '45.5'."""
    normalized = to_money(value).normalize()
    # normalize() yields exponent notation for round tens ('3E+1')
    return f"{normalized:f}"
