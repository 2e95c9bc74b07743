from decimal import Decimal

import pytest

from stripe_payments.currency import has_zero_decimals, to_major_units, to_minor_units
from stripe_payments.enums import ZERO_DECIMAL_CURRENCIES


@pytest.mark.parametrize(
    "amount, currency, expected",
    [
        (Decimal("10.50"), "USD", 1050),
        (10.1, "usd", 1010),
        ("0.01", "EUR", 1),
        (500, "JPY", 500),
        (Decimal("0.005"), "USD", 1),
    ],
)
def test_to_minor_units(amount, currency, expected):
    assert to_minor_units(amount, currency) == expected


@pytest.mark.parametrize(
    "amount, currency, expected",
    [
        (1050, "USD", Decimal("10.50")),
        (1, "eur", Decimal("0.01")),
        (500, "JPY", Decimal("500")),
        (500, "krw", Decimal("500")),
    ],
)
def test_to_major_units(amount, currency, expected):
    assert to_major_units(amount, currency) == expected


def test_zero_decimal_lookup_is_case_insensitive():
    assert has_zero_decimals("jpy")
    assert has_zero_decimals(" XOF ")
    assert not has_zero_decimals("USD")
    assert not has_zero_decimals(None)


@pytest.mark.parametrize("currency", sorted(ZERO_DECIMAL_CURRENCIES))
def test_zero_decimal_currencies_pass_through(currency):
    assert to_minor_units(1234, currency) == 1234
    assert to_major_units(1234, currency) == Decimal("1234")
    assert to_minor_units(1234, currency.lower()) == 1234


@pytest.mark.parametrize(
    "amount, currency",
    [
        (Decimal("10.50"), "USD"),
        (Decimal("0.01"), "eur"),
        (Decimal("19999.99"), "GBP"),
        (Decimal("500"), "JPY"),
        (Decimal("75000"), "KRW"),
    ],
)
def test_major_minor_round_trip(amount, currency):
    assert to_major_units(to_minor_units(amount, currency), currency) == amount
