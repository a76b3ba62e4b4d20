"""Decimal helpers for currency amounts."""

from decimal import ROUND_HALF_UP, Decimal
from typing import Union

CENTS = Decimal("0.01")
ZERO = Decimal("0")


def to_decimal(value: Union[Decimal, int, float, str]) -> Decimal:
    """Convert through ``str`` so floats keep their printed value (0.02, not 0.0200000000000000004)."""
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def to_money(value: Decimal) -> Decimal:
    """Round to cents, half up."""
    return value.quantize(CENTS, rounding=ROUND_HALF_UP)
