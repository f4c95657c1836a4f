"""Decimal helpers.

Amounts travel as strings on the wire (``"150.00"``, ``"0.18"``) and the
digit caps of the interface tables are checked on that representation, never
on a binary float.
"""

from __future__ import annotations

import re
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any

NUMBER_RE = re.compile(r"-?\d+(\.\d+)?")

# Tax rate sentinels meaning "deemed" instead of a percentage
DEEMED_VALUES = frozenset({"-", " "})


def is_deemed(value: Any) -> bool:
    return isinstance(value, str) and value in DEEMED_VALUES


def to_decimal(value: Any) -> Decimal | None:
    """Return ``value`` as a ``Decimal`` or ``None`` when it is not a plain number.

    Floats go through ``repr`` so ``0.18`` becomes ``Decimal("0.18")`` rather
    than the exact binary expansion.
    """

    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, Decimal):
        return value if value.is_finite() else None
    if isinstance(value, int):
        return Decimal(value)
    if isinstance(value, float):
        try:
            result = Decimal(repr(value))
        except InvalidOperation:
            return None
        return result if result.is_finite() else None
    if isinstance(value, str) and NUMBER_RE.fullmatch(value):
        return Decimal(value)
    return None


def plain(value: Decimal) -> str:
    """Fixed-point text of ``value`` keeping its own scale (no exponent)."""

    text = format(value, "f")
    if text.startswith("-") and NUMBER_RE.fullmatch(text) and Decimal(text) == 0:
        return text[1:]
    return text


def count_digits(value: Decimal) -> tuple[int, int]:
    """Return (integer digits, decimal digits) of the fixed-point text.

    A zero integer part counts as one digit: ``0.18`` is ``(1, 2)``.
    """

    text = plain(value).lstrip("-")
    integer, _, fraction = text.partition(".")
    integer = integer.lstrip("0") or "0"
    return len(integer), len(fraction)


def fits(value: Decimal, integer_digits: int | None, decimal_digits: int | None) -> bool:
    whole, frac = count_digits(value)
    if integer_digits is not None and whole > integer_digits:
        return False
    if decimal_digits is not None and frac > decimal_digits:
        return False
    return True


def quantize(value: Decimal, decimal_digits: int) -> Decimal:
    """Round half-up to ``decimal_digits`` places and drop trailing zeros past the first."""

    exponent = Decimal(1).scaleb(-decimal_digits)
    rounded = value.quantize(exponent, rounding=ROUND_HALF_UP)
    if decimal_digits == 0:
        return rounded
    normalized = rounded.normalize()
    if normalized.as_tuple().exponent > 0:
        return rounded.quantize(Decimal(1))
    return normalized


def sign_of(value: Decimal) -> int:
    if value > 0:
        return 1
    if value < 0:
        return -1
    return 0
