"""Canonical serializer.

Re-emits a document in the exact key order of its schema, leaving out empty,
forbidden and unknown fields, and writes every number as a decimal string
bounded by the field's digit caps.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from typing import Any

from .decimals import fits, is_deemed, plain, quantize, to_decimal
from .errors import SerializationError
from .schemas.conditions import EvalContext, is_present
from .schemas.rules import FieldRule, Kind, ObjectSchema, SchemaDescriptor
from .utils import dumps, join_path

logger = logging.getLogger(__name__)


class CanonicalSerializer:
    def serialize(
        self,
        document: Any,
        schema: ObjectSchema | SchemaDescriptor,
        context: Mapping[str, Any] | None = None,
    ) -> str:
        """Return the canonical JSON text of ``document``; an empty message gives ``""``."""
        payload = self.to_payload(document, schema, context)
        if payload is None:
            return ""
        text = dumps(payload)
        logger.debug("serialized %s: %d characters", getattr(schema, "name", getattr(schema, "key", "")), len(text))
        return text

    def to_payload(
        self,
        document: Any,
        schema: ObjectSchema | SchemaDescriptor,
        context: Mapping[str, Any] | None = None,
    ) -> Any:
        external = context or {}
        if isinstance(schema, SchemaDescriptor):
            if schema.body is None:
                return None
            if schema.many:
                if not isinstance(document, list):
                    raise SerializationError("content", "must be an array")
                return [
                    self._object(item, schema.body, join_path("", index), item, external, index, len(document))
                    for index, item in enumerate(document)
                ]
            return self._object(document, schema.body, "", document, external, None, None)
        return self._object(document, schema, "", document, external, None, None)

    def _object(
        self,
        node: Any,
        schema: ObjectSchema,
        path: str,
        root: Any,
        external: Mapping[str, Any],
        index: int | None,
        count: int | None,
    ) -> dict[str, Any]:
        if not isinstance(node, Mapping):
            raise SerializationError(path or schema.name, "must be an object")

        ctx = EvalContext(node=node, root=root, external=external, index=index, count=count)
        payload: dict[str, Any] = {}
        for rule in schema.fields:
            value = node.get(rule.name)
            if not is_present(value) or rule.is_forbidden(ctx):
                continue
            payload[rule.name] = self._value(rule, value, join_path(path, rule.name), ctx)
        return payload

    def _value(self, rule: FieldRule, value: Any, path: str, ctx: EvalContext) -> Any:
        if rule.kind is Kind.OBJECT:
            if rule.schema is None:
                return value
            return self._object(value, rule.schema, path, ctx.root, ctx.external, None, None)

        if rule.kind is Kind.ARRAY:
            if not isinstance(value, list):
                raise SerializationError(path, "must be an array")
            if rule.schema is None:
                return list(value)
            return [
                self._object(item, rule.schema, join_path(path, i), ctx.root, ctx.external, i, len(value))
                for i, item in enumerate(value)
            ]

        if rule.kind is Kind.NUMBER:
            if rule.allow_deemed and is_deemed(value):
                return value
            text = self._number(rule, value, path)
        elif isinstance(value, (datetime, date)) and rule.date_format:
            text = value.strftime(rule.date_format)
        elif isinstance(value, (Mapping, list)):
            raise SerializationError(path, f"must be a {rule.kind.value}")
        else:
            text = value if isinstance(value, str) else str(value)

        if rule.max_length is not None and len(text) > rule.max_length:
            raise SerializationError(path, f"cannot be longer than {rule.max_length} characters")
        if rule.kind is Kind.ENUM and rule.choices is not None and text not in rule.choices:
            raise SerializationError(path, f"{text!r} is not one of {sorted(rule.choices)}")
        return text

    def _number(self, rule: FieldRule, value: Any, path: str) -> str:
        precision = rule.precision
        number: Decimal | None = to_decimal(value)
        if number is None:
            raise SerializationError(path, f"{value!r} is not a number")

        # Floats carry no scale of their own; round them to the field's cap
        if isinstance(value, float) and precision is not None and precision.decimal_digits is not None:
            try:
                number = quantize(number, precision.decimal_digits)
            except InvalidOperation as exc:
                raise SerializationError(path, f"{value!r} cannot be rounded") from exc

        if precision is not None and not fits(number, precision.integer_digits, precision.decimal_digits):
            raise SerializationError(path, f"{plain(number)} exceeds the precision {precision}")
        return plain(number)


def serialize(document: Any, schema: ObjectSchema | SchemaDescriptor, context: Mapping[str, Any] | None = None) -> str:
    return CanonicalSerializer().serialize(document, schema, context)
