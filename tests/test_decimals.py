from decimal import Decimal

import pytest

from libefris.decimals import count_digits, fits, is_deemed, plain, quantize, sign_of, to_decimal


@pytest.mark.parametrize(
    "value, expected",
    [
        ("150.00", Decimal("150.00")),
        ("-18", Decimal("-18")),
        (2, Decimal(2)),
        (0.18, Decimal("0.18")),
        (Decimal("1.5"), Decimal("1.5")),
    ],
)
def test_to_decimal_accepts_plain_numbers(value, expected):
    assert to_decimal(value) == expected


@pytest.mark.parametrize("value", ["", "abc", "1e5", "1.", ".5", "+1", "1\n", " 1", None, True, float("nan"), [1]])
def test_to_decimal_rejects_everything_else(value):
    assert to_decimal(value) is None


def test_float_keeps_its_short_repr():
    """0.18 must not turn into the exact binary expansion."""
    assert plain(to_decimal(0.18)) == "0.18"


def test_count_digits_measures_the_string_form():
    assert count_digits(Decimal("0.18")) == (1, 2)
    assert count_digits(Decimal("-150.00")) == (3, 2)
    assert count_digits(Decimal("123456789012")) == (12, 0)
    assert count_digits(Decimal("1E+3")) == (4, 0)


def test_fits_checks_each_cap_independently():
    assert fits(Decimal("999999999999.9999"), 12, 4)
    assert not fits(Decimal("1234567890123"), 12, 4)
    assert not fits(Decimal("1.12345"), 12, 4)
    assert fits(Decimal("1.12345"), None, None)
    assert fits(Decimal("12345678901234567890"), None, 0)


def test_trailing_zeros_count_as_decimal_digits():
    assert not fits(Decimal("1.00000"), 12, 4)


def test_quantize_rounds_half_up_and_trims():
    assert quantize(Decimal("0.30000000000000004"), 8) == Decimal("0.3")
    assert quantize(Decimal("2.00005"), 4) == Decimal("2.0001")
    assert plain(quantize(Decimal("100.0"), 4)) == "100"
    assert quantize(Decimal("2.5"), 0) == Decimal("3")


def test_plain_never_uses_an_exponent_or_negative_zero():
    assert plain(Decimal("1E+3")) == "1000"
    assert plain(Decimal("-0.00")) == "0.00"


def test_deemed_sentinels():
    assert is_deemed("-")
    assert is_deemed(" ")
    assert not is_deemed("0.18")
    assert not is_deemed("")


def test_sign_of():
    assert sign_of(Decimal("-0.01")) == -1
    assert sign_of(Decimal("0")) == 0
    assert sign_of(Decimal("3")) == 1
