"""
stripe_payments.currency

Minor/major unit conversion for Stripe amounts.

Stripe bills in the smallest currency unit (cents), except for the
zero-decimal currencies which have no subdivision. Conversions use Decimal so
the minor-unit direction is exact.
"""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal
from typing import Union

from .enums import ZERO_DECIMAL_CURRENCIES

Number = Union[int, float, str, Decimal]

_HUNDRED = Decimal(100)


def _to_decimal(amount: Number) -> Decimal:
    if isinstance(amount, Decimal):
        return amount
    if isinstance(amount, float):
        # str() first, so 10.1 stays 10.1 instead of its binary expansion
        return Decimal(str(amount))
    return Decimal(amount)


def has_zero_decimals(currency: str | None) -> bool:
    return (currency or "").strip().upper() in ZERO_DECIMAL_CURRENCIES


def to_minor_units(amount: Number, currency: str | None) -> int:
    """
    Major units -> minor units (int), e.g. 10.50 USD -> 1050, 500 JPY -> 500.
    """
    value = _to_decimal(amount)
    if not has_zero_decimals(currency):
        value = value * _HUNDRED
    return int(value.quantize(Decimal(1), rounding=ROUND_HALF_UP))


def to_major_units(amount: Number, currency: str | None) -> Decimal:
    """
    Minor units -> major units (Decimal), e.g. 1050 USD -> 10.5, 500 JPY -> 500.
    """
    value = _to_decimal(amount)
    if has_zero_decimals(currency):
        return value
    return value / _HUNDRED
