"""Aggregate checks that need a whole object rather than a single field.

A check is a callable ``(ctx, path) -> list[Violation]`` attached to an
:class:`~libefris.schemas.rules.ObjectSchema`; ``ctx.node`` is the object the
schema describes and ``path`` its location in the document.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from typing import Any

from ..decimals import to_decimal
from ..utils import join_path
from ..validation.result import Violation
from .conditions import EvalContext
from .rules import Check

logger = logging.getLogger(__name__)

DISCOUNT_SUFFIX = " (discount)"


def _lines(ctx: EvalContext, array: str) -> Sequence[Mapping[str, Any]]:
    lines = ctx.node.get(array)
    if not isinstance(lines, list):
        return []
    return [line for line in lines if isinstance(line, Mapping)]


def item_count_matches(array: str = "goodsDetails", section: str = "summary", field: str = "itemCount") -> Check:
    """``summary.itemCount`` must equal the number of lines in ``goodsDetails``."""

    def check(ctx: EvalContext, path: str) -> list[Violation]:
        lines = ctx.node.get(array)
        summary = ctx.node.get(section)
        if not isinstance(lines, list) or not isinstance(summary, Mapping):
            return []
        count = to_decimal(summary.get(field))
        if count is None or count == len(lines):
            return []
        return [
            Violation(
                field_path=join_path(join_path(path, section), field),
                rule="item-count",
                message=f"must equal the number of {array} lines ({len(lines)})",
            )
        ]

    return check


def consecutive_order_numbers(array: str = "goodsDetails", field: str = "orderNumber") -> Check:
    """Order numbers grow by one from line to line; the first value is free."""

    def check(ctx: EvalContext, path: str) -> list[Violation]:
        violations: list[Violation] = []
        previous = None
        for index, line in enumerate(_lines(ctx, array)):
            current = to_decimal(line.get(field))
            if current is None:
                previous = None
                continue
            if previous is not None and current != previous + 1:
                violations.append(
                    Violation(
                        field_path=join_path(join_path(join_path(path, array), index), field),
                        rule="order-number",
                        message=f"must be {previous + 1} (previous line + 1)",
                    )
                )
            previous = current
        return violations

    return check


def discount_pairing(
    array: str = "goodsDetails",
    flag: str = "discountFlag",
    name: str = "item",
    amount: str = "total",
    discount: str = "discountTotal",
) -> Check:
    """Every discount line (flag 0) directly follows its discounted line (flag 1).

    The discounted line's ``abs(discountTotal)`` equals the discount line's
    ``abs(total)`` and the discount line repeats its name with `` (discount)``.
    """

    def check(ctx: EvalContext, path: str) -> list[Violation]:
        violations: list[Violation] = []
        lines = _lines(ctx, array)
        array_path = join_path(path, array)

        for index, line in enumerate(lines):
            line_path = join_path(array_path, index)
            current_flag = str(line.get(flag))

            if current_flag == "1":
                following = lines[index + 1] if index + 1 < len(lines) else None
                if following is not None and str(following.get(flag)) != "0":
                    violations.append(
                        Violation(
                            field_path=join_path(join_path(array_path, index + 1), flag),
                            rule="discount-pairing",
                            message="must be 0: a discounted line is followed by its discount line",
                        )
                    )
                continue

            if current_flag != "0" or index == 0:
                continue

            discounted = lines[index - 1]
            if str(discounted.get(flag)) != "1":
                violations.append(
                    Violation(
                        field_path=join_path(line_path, flag),
                        rule="discount-pairing",
                        message="a discount line must follow a line with discountFlag 1",
                    )
                )
                continue

            discount_total = to_decimal(discounted.get(discount))
            line_total = to_decimal(line.get(amount))
            if discount_total is not None and line_total is not None and abs(discount_total) != abs(line_total):
                violations.append(
                    Violation(
                        field_path=join_path(join_path(array_path, index - 1), discount),
                        rule="discount-pairing",
                        message=f"absolute value must equal the discount line {amount} ({abs(line_total)})",
                    )
                )

            discounted_name = discounted.get(name)
            line_name = line.get(name)
            if isinstance(discounted_name, str) and isinstance(line_name, str):
                expected = discounted_name + DISCOUNT_SUFFIX
                if line_name != expected:
                    violations.append(
                        Violation(
                            field_path=join_path(line_path, name),
                            rule="discount-pairing",
                            message=f"must be {expected!r}",
                        )
                    )

        if violations:
            logger.debug("discount pairing: %d violations under %s", len(violations), array_path)
        return violations

    return check
