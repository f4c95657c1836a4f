"""Conditional validator.

One generic interpreter walks a document against an :class:`ObjectSchema`
(or a :class:`SchemaDescriptor`) and collects every broken rule; nothing
short-circuits except that the children of a mistyped container are not
visited.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from datetime import datetime
from decimal import Decimal
from typing import Any

from ..collaborators import DictionaryService, OriginalDocumentLookup
from ..decimals import fits, is_deemed, sign_of, to_decimal
from ..schemas.conditions import ALWAYS, Condition, EvalContext, is_present, values_equal
from ..schemas.rules import FieldRule, Kind, ObjectSchema, SchemaDescriptor
from ..utils import join_path
from .result import ValidationResult, Violation

logger = logging.getLogger(__name__)

INVALID_FIELD_VALUE = "Invalid field value!"


def _when(condition: bool | Condition) -> str:
    if isinstance(condition, Condition) and condition != ALWAYS:
        return f" when {condition.describe()}"
    return ""


class Validator:
    """
    Validate decoded documents against the registry's field rules.

    Dictionary checks run only when a ``dictionary`` service is supplied and
    original-invoice checks only when an ``originals`` lookup is supplied; the
    rules that need them are skipped otherwise.
    """

    def __init__(
        self,
        dictionary: DictionaryService | None = None,
        originals: OriginalDocumentLookup | None = None,
    ):
        self.dictionary = dictionary
        self.originals = originals

    def validate(
        self,
        document: Any,
        schema: ObjectSchema | SchemaDescriptor,
        context: Mapping[str, Any] | None = None,
    ) -> ValidationResult:
        """
        Validate ``document`` and return every violation found.

        Args:
            document: The decoded content (object, array or ``None``).
            schema: An object table, or a descriptor for a whole message.
            context: Values reachable with ``@name`` references, normally the
                envelope ``globalInfo`` (``tin``, ``agentType``).

        Returns:
            A ValidationResult; an empty violation list means the document is accepted.
        """
        external = context or {}
        violations: list[Violation] = []

        if isinstance(schema, SchemaDescriptor):
            self._validate_message(document, schema, external, violations)
        else:
            self._validate_object(document, schema, "", document, external, None, None, violations)

        if violations:
            logger.debug("validation found %d violations", len(violations))
            for violation in violations:
                logger.debug("  %s [%s] %s", violation.field_path, violation.rule, violation.message)
        return ValidationResult(document=document, violations=violations)

    def _validate_message(
        self,
        document: Any,
        descriptor: SchemaDescriptor,
        external: Mapping[str, Any],
        violations: list[Violation],
    ) -> None:
        body = descriptor.body
        if body is None:
            if document not in (None, "", {}, []):
                violations.append(Violation("content", "empty", f"{descriptor.interface_code} carries no content"))
            return

        if not descriptor.many:
            if document is None:
                violations.append(Violation("content", "required", "cannot be empty"))
                return
            self._validate_object(document, body, "", document, external, None, None, violations)
            return

        if not isinstance(document, list):
            violations.append(Violation("content", "type", "must be an array"))
            return
        if not document:
            violations.append(Violation("content", "min-items", "must contain at least one item"))
        for index, item in enumerate(document):
            self._validate_object(item, body, join_path("", index), item, external, index, len(document), violations)

    def _validate_object(
        self,
        node: Any,
        schema: ObjectSchema,
        path: str,
        root: Any,
        external: Mapping[str, Any],
        index: int | None,
        count: int | None,
        violations: list[Violation],
    ) -> None:
        if not isinstance(node, Mapping):
            violations.append(Violation(path or schema.name, "type", "must be an object"))
            return

        ctx = EvalContext(
            node=node,
            root=root if isinstance(root, Mapping) else {},
            external=external,
            index=index,
            count=count,
        )
        original = self._original_line(schema, ctx, path, violations)

        for rule in schema.fields:
            self._validate_field(rule, node.get(rule.name), ctx, path, original, violations)

        for check in schema.checks:
            violations.extend(check(ctx, path))

    def _original_line(
        self,
        schema: ObjectSchema,
        ctx: EvalContext,
        path: str,
        violations: list[Violation],
    ) -> Mapping[str, Any] | None:
        if schema.original_ref is None or self.originals is None:
            return None
        invoice_id = ctx.resolve(schema.original_ref)
        order_number = ctx.node.get("orderNumber")
        if not is_present(invoice_id) or not is_present(order_number):
            return None

        line = self.originals.fetch_original_line(str(invoice_id), str(order_number))
        if line is None:
            violations.append(
                Violation(
                    join_path(path, "orderNumber"),
                    "original-line",
                    f"no line {order_number} on the original invoice {invoice_id}",
                )
            )
        return line

    def _validate_field(
        self,
        rule: FieldRule,
        value: Any,
        ctx: EvalContext,
        path: str,
        original: Mapping[str, Any] | None,
        violations: list[Violation],
    ) -> None:
        field_path = join_path(path, rule.name)

        if not is_present(value):
            if rule.is_required(ctx):
                violations.append(Violation(field_path, "required", f"cannot be empty{_when(rule.required)}"))
            return

        if rule.is_forbidden(ctx):
            violations.append(Violation(field_path, "forbidden", f"must be empty{_when(rule.forbidden)}"))
            return

        if rule.kind is Kind.OBJECT:
            if not isinstance(value, Mapping):
                violations.append(Violation(field_path, "type", "must be an object"))
            elif rule.schema is not None:
                self._validate_object(value, rule.schema, field_path, ctx.root, ctx.external, None, None, violations)
            return

        if rule.kind is Kind.ARRAY:
            if not isinstance(value, list):
                violations.append(Violation(field_path, "type", "must be an array"))
                return
            if len(value) < rule.min_items:
                violations.append(Violation(field_path, "min-items", f"must contain at least {rule.min_items} item(s)"))
            if rule.schema is not None:
                for index, item in enumerate(value):
                    self._validate_object(
                        item,
                        rule.schema,
                        join_path(field_path, index),
                        ctx.root,
                        ctx.external,
                        index,
                        len(value),
                        violations,
                    )
            return

        if isinstance(value, (Mapping, list)):
            violations.append(Violation(field_path, "type", f"must be a {rule.kind.value}"))
            return

        text = value if isinstance(value, str) else str(value)
        if rule.min_length is not None and len(text) < rule.min_length:
            violations.append(Violation(field_path, "length", f"must be at least {rule.min_length} characters"))
        if rule.max_length is not None and len(text) > rule.max_length:
            violations.append(Violation(field_path, "length", f"cannot be longer than {rule.max_length} characters"))

        number: Decimal | None = None
        if rule.kind is Kind.ENUM:
            if rule.choices is not None and text not in rule.choices:
                violations.append(Violation(field_path, "choice", INVALID_FIELD_VALUE, rule.code))
        elif rule.kind is Kind.DATE:
            self._check_date(rule, text, field_path, violations)
        elif rule.kind is Kind.NUMBER and not (rule.allow_deemed and is_deemed(value)):
            number = self._check_number(rule, value, ctx, field_path, violations)

        if rule.dictionary and self.dictionary is not None:
            if not self.dictionary.is_valid_code(rule.dictionary, text):
                violations.append(Violation(field_path, "dictionary", INVALID_FIELD_VALUE, rule.code))

        for constraint in rule.constraints:
            if constraint.when.evaluate(ctx) and not constraint.condition.evaluate(ctx):
                violations.append(Violation(field_path, "constraint", constraint.message, constraint.code))

        if original is not None:
            self._check_original(rule, value, number, original, field_path, violations)

    def _check_date(self, rule: FieldRule, text: str, field_path: str, violations: list[Violation]) -> None:
        if rule.date_format is None:
            return
        try:
            parsed = datetime.strptime(text, rule.date_format)
        except ValueError:
            parsed = None
        # strptime accepts unpadded fields
        if parsed is None or parsed.strftime(rule.date_format) != text:
            violations.append(Violation(field_path, "format", f"must match the date format {rule.date_format}"))

    def _check_number(
        self,
        rule: FieldRule,
        value: Any,
        ctx: EvalContext,
        field_path: str,
        violations: list[Violation],
    ) -> Decimal | None:
        number = to_decimal(value)
        if number is None:
            violations.append(Violation(field_path, "type", "must be a number"))
            return None

        precision = rule.precision
        if precision is not None and not fits(number, precision.integer_digits, precision.decimal_digits):
            parts = []
            if precision.integer_digits is not None:
                parts.append(f"integer digits cannot exceed {precision.integer_digits}")
            if precision.decimal_digits is not None:
                parts.append(f"decimal digits cannot exceed {precision.decimal_digits}")
            violations.append(Violation(field_path, "precision", ", ".join(parts)))

        for sign_rule in rule.signs:
            if sign_rule.when.evaluate(ctx) and not sign_rule.sign.accepts(sign_of(number)):
                violations.append(
                    Violation(field_path, "sign", f"must be {sign_rule.sign.value}{_when(sign_rule.when)}")
                )
        return number

    def _check_original(
        self,
        rule: FieldRule,
        value: Any,
        number: Decimal | None,
        original: Mapping[str, Any],
        field_path: str,
        violations: list[Violation],
    ) -> None:
        if rule.same_as_original and not values_equal(value, original.get(rule.name)):
            violations.append(
                Violation(
                    field_path,
                    "same-as-original",
                    f"must be the same as the original invoice ({original.get(rule.name)!r})",
                )
            )

        if rule.within_original and number is not None:
            limit = to_decimal(original.get(rule.within_original))
            if limit is not None and abs(number) > abs(limit):
                violations.append(
                    Violation(
                        field_path,
                        "within-original",
                        f"cannot be greater than the remaining value of the original line ({limit})",
                        rule.within_code,
                    )
                )


def validate(
    document: Any,
    schema: ObjectSchema | SchemaDescriptor,
    context: Mapping[str, Any] | None = None,
) -> ValidationResult:
    """Validate with no dictionary and no original-invoice lookup."""
    return Validator().validate(document, schema, context)

