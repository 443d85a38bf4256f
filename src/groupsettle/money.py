"""Shared rounding rules for money amounts."""

from decimal import ROUND_HALF_UP, Decimal

MONEY_SCALE = 2
ROUNDING = ROUND_HALF_UP

# Anything smaller than one cent is rounding noise
EPSILON = Decimal("0.01")

_QUANTUM = Decimal(1).scaleb(-MONEY_SCALE)


def to_decimal(value: Decimal | int | str | float) -> Decimal:
    """
    Coerce a numeric value to Decimal.

    Floats go through str() so 0.1 becomes Decimal("0.1") rather than its
    binary expansion.
    """
    if isinstance(value, Decimal):
        return value
    if isinstance(value, float):
        return Decimal(str(value))
    return Decimal(value)


def round_money(amount: Decimal | int | str | float) -> Decimal:
    """
    Round an amount to cents using ROUND_HALF_UP.

    Args:
        amount: Amount in currency units

    Returns:
        Amount quantized to two decimal places
    """
    return to_decimal(amount).quantize(_QUANTUM, rounding=ROUNDING)


def is_negligible(amount: Decimal) -> bool:
    """Return True if the amount is below one cent in magnitude."""
    return abs(amount) < EPSILON


def has_money_scale(amount: Decimal) -> bool:
    """Return True if the amount has no more than two decimal places."""
    exponent = amount.as_tuple().exponent
    return isinstance(exponent, int) and exponent >= -MONEY_SCALE
