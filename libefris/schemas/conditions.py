"""Declarative condition language used by the field rules.

Each condition is a small frozen dataclass with ``evaluate(ctx)`` and
``describe()``. Composite conditions are built with the ``&``, ``|``, ``^``
and ``~`` operators, so a rule table reads like the interface documentation::

    required=one_of("discountFlag", "1", "2")
    forbidden=eq("discountFlag", "0") | eq("discountFlag", "2")

Field references are resolved against an :class:`EvalContext`:

* ``"discountFlag"`` reads a sibling field of the object being validated;
* ``"$.basicInformation.invoiceIndustryCode"`` reads from the document root;
* ``"@tin"`` reads from the external context (the envelope ``globalInfo``).
"""

from __future__ import annotations

import re
from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from ..decimals import sign_of, to_decimal


class Sign(str, Enum):
    POSITIVE = "positive"
    NEGATIVE = "negative"
    NON_NEGATIVE = "non-negative"
    NON_POSITIVE = "non-positive"

    def accepts(self, sign: int) -> bool:
        if self is Sign.POSITIVE:
            return sign > 0
        if self is Sign.NEGATIVE:
            return sign < 0
        if self is Sign.NON_NEGATIVE:
            return sign >= 0
        return sign <= 0


@dataclass(frozen=True, slots=True)
class EvalContext:
    """Values visible to a condition while one object is being validated."""

    node: Mapping[str, Any]
    root: Mapping[str, Any] = field(default_factory=dict)
    external: Mapping[str, Any] = field(default_factory=dict)
    index: int | None = None
    count: int | None = None

    def resolve(self, ref: str) -> Any:
        if ref.startswith("@"):
            return _get(self.external, ref[1:])
        if ref.startswith("$."):
            value: Any = self.root
            for part in ref[2:].split("."):
                value = _get(value, part)
                if value is None:
                    return None
            return value
        return _get(self.node, ref)


def _get(container: Any, key: str) -> Any:
    if isinstance(container, Mapping):
        return container.get(key)
    return None


def is_present(value: Any) -> bool:
    """A value is present when it is neither null nor the empty string.

    A single space is present: it is the deemed tax rate sentinel.
    """
    if value is None:
        return False
    if isinstance(value, str) and value == "":
        return False
    return True


def _text(value: Any) -> str | None:
    if value is None:
        return None
    if isinstance(value, bool):
        return str(value).lower()
    return str(value)


def values_equal(left: Any, right: Any) -> bool:
    left_num, right_num = to_decimal(left), to_decimal(right)
    if left_num is not None and right_num is not None:
        return left_num == right_num
    return _text(left) == _text(right)


class Condition:
    """Base class for all condition variants."""

    __slots__ = ()

    def evaluate(self, ctx: EvalContext) -> bool:
        raise NotImplementedError

    def describe(self) -> str:
        raise NotImplementedError

    def __and__(self, other: Condition) -> Condition:
        return AllOf((self, other))

    def __or__(self, other: Condition) -> Condition:
        return AnyOf((self, other))

    def __xor__(self, other: Condition) -> Condition:
        return ExclusiveOr(self, other)

    def __invert__(self) -> Condition:
        return Not(self)

    def __str__(self) -> str:
        return self.describe()


@dataclass(frozen=True, slots=True)
class Always(Condition):
    def evaluate(self, ctx: EvalContext) -> bool:
        return True

    def describe(self) -> str:
        return "always"


@dataclass(frozen=True, slots=True)
class Never(Condition):
    def evaluate(self, ctx: EvalContext) -> bool:
        return False

    def describe(self) -> str:
        return "never"


ALWAYS = Always()
NEVER = Never()


@dataclass(frozen=True, slots=True)
class Equals(Condition):
    ref: str
    value: Any

    def evaluate(self, ctx: EvalContext) -> bool:
        return _text(ctx.resolve(self.ref)) == _text(self.value)

    def describe(self) -> str:
        return f"{self.ref} = {self.value}"


@dataclass(frozen=True, slots=True)
class InSet(Condition):
    ref: str
    values: frozenset[str]

    def evaluate(self, ctx: EvalContext) -> bool:
        return _text(ctx.resolve(self.ref)) in self.values

    def describe(self) -> str:
        return f"{self.ref} in {{{', '.join(sorted(self.values))}}}"


@dataclass(frozen=True, slots=True)
class Present(Condition):
    ref: str

    def evaluate(self, ctx: EvalContext) -> bool:
        return is_present(ctx.resolve(self.ref))

    def describe(self) -> str:
        return f"{self.ref} is present"


@dataclass(frozen=True, slots=True)
class Absent(Condition):
    ref: str

    def evaluate(self, ctx: EvalContext) -> bool:
        return not is_present(ctx.resolve(self.ref))

    def describe(self) -> str:
        return f"{self.ref} is empty"


@dataclass(frozen=True, slots=True)
class HasSign(Condition):
    """True when the referenced value is a number with the given sign."""

    ref: str
    sign: Sign

    def evaluate(self, ctx: EvalContext) -> bool:
        number = to_decimal(ctx.resolve(self.ref))
        if number is None:
            return False
        return self.sign.accepts(sign_of(number))

    def describe(self) -> str:
        return f"{self.ref} is {self.sign.value}"


@dataclass(frozen=True, slots=True)
class CrossFieldEquals(Condition):
    """Two references hold the same value; numbers compare by value."""

    left: str
    right: str

    def evaluate(self, ctx: EvalContext) -> bool:
        return values_equal(ctx.resolve(self.left), ctx.resolve(self.right))

    def describe(self) -> str:
        return f"{self.left} = {self.right}"


@dataclass(frozen=True, slots=True)
class Matches(Condition):
    ref: str
    pattern: str

    def evaluate(self, ctx: EvalContext) -> bool:
        value = ctx.resolve(self.ref)
        if value is None:
            return False
        return re.fullmatch(self.pattern, str(value)) is not None

    def describe(self) -> str:
        return f"{self.ref} matches {self.pattern}"


@dataclass(frozen=True, slots=True)
class ExclusiveOr(Condition):
    left: Condition
    right: Condition

    def evaluate(self, ctx: EvalContext) -> bool:
        return self.left.evaluate(ctx) != self.right.evaluate(ctx)

    def describe(self) -> str:
        return f"exactly one of ({self.left.describe()}) or ({self.right.describe()})"


@dataclass(frozen=True, slots=True)
class AllOf(Condition):
    conditions: tuple[Condition, ...]

    def evaluate(self, ctx: EvalContext) -> bool:
        return all(c.evaluate(ctx) for c in self.conditions)

    def describe(self) -> str:
        return " and ".join(f"({c.describe()})" for c in self.conditions)


@dataclass(frozen=True, slots=True)
class AnyOf(Condition):
    conditions: tuple[Condition, ...]

    def evaluate(self, ctx: EvalContext) -> bool:
        return any(c.evaluate(ctx) for c in self.conditions)

    def describe(self) -> str:
        return " or ".join(f"({c.describe()})" for c in self.conditions)


@dataclass(frozen=True, slots=True)
class Not(Condition):
    condition: Condition

    def evaluate(self, ctx: EvalContext) -> bool:
        return not self.condition.evaluate(ctx)

    def describe(self) -> str:
        return f"not ({self.condition.describe()})"


@dataclass(frozen=True, slots=True)
class IsFirst(Condition):
    """True for the first element of the array being walked."""

    def evaluate(self, ctx: EvalContext) -> bool:
        return ctx.index == 0

    def describe(self) -> str:
        return "first line"


@dataclass(frozen=True, slots=True)
class IsLast(Condition):
    def evaluate(self, ctx: EvalContext) -> bool:
        return ctx.index is not None and ctx.count is not None and ctx.index == ctx.count - 1

    def describe(self) -> str:
        return "last line"


def eq(ref: str, value: Any) -> Condition:
    return Equals(ref, value)


def one_of(ref: str, *values: str) -> Condition:
    return InSet(ref, frozenset(values))


def present(ref: str) -> Condition:
    return Present(ref)


def absent(ref: str) -> Condition:
    return Absent(ref)


def has_sign(ref: str, sign: Sign) -> Condition:
    return HasSign(ref, sign)


def same(left: str, right: str) -> Condition:
    return CrossFieldEquals(left, right)


def matches(ref: str, pattern: str) -> Condition:
    return Matches(ref, pattern)


def all_of(*conditions: Condition) -> Condition:
    return AllOf(tuple(conditions))


def any_of(*conditions: Condition) -> Condition:
    return AnyOf(tuple(conditions))
