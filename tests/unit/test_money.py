"""Unit tests for currency arithmetic and phone normalization"""

import pytest
from decimal import Decimal

from data4me_wallet.domain.exceptions import ValidationError
from data4me_wallet.domain.money import format_naira, to_amount
from data4me_wallet.domain.phone import normalize_phone_number


def test_to_amount_quantizes_half_up():
    assert to_amount("10.005") == Decimal("10.01")
    assert to_amount("10.004") == Decimal("10.00")
    assert to_amount(250) == Decimal("250.00")


def test_to_amount_keeps_exact_decimal_sums():
    """0.1 + 0.2 stays 0.30, no binary float drift"""
    assert to_amount(to_amount("0.1") + to_amount("0.2")) == Decimal("0.30")


def test_to_amount_rejects_floats():
    with pytest.raises(ValidationError):
        to_amount(0.1)


@pytest.mark.parametrize("value", ["abc", "", "NaN", "Infinity", None])
def test_to_amount_rejects_non_numbers(value):
    with pytest.raises(ValidationError):
        to_amount(value)


def test_format_naira():
    assert format_naira(Decimal("500")) == "₦500"
    assert format_naira(Decimal("500.50")) == "₦500.50"


@pytest.mark.parametrize(
    "raw",
    ["+2348012345678", "2348012345678", "08012345678", "0801 234 5678", "+234-801-234-5678"],
)
def test_normalize_phone_number(raw):
    assert normalize_phone_number(raw) == "+2348012345678"


@pytest.mark.parametrize("raw", ["", "12345", "+14155550123", "+23480123456789", "0801234567"])
def test_normalize_phone_number_rejects_invalid(raw):
    with pytest.raises(ValidationError):
        normalize_phone_number(raw)
