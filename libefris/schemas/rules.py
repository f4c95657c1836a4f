"""Field rules and schema descriptors.

A :class:`SchemaDescriptor` describes one ``(interfaceCode, direction)``
message. Its body is an :class:`ObjectSchema`, an ordered tuple of
:class:`FieldRule` entries plus aggregate checks that need the whole object
(item counts, line ordering, discount pairing).
"""

from __future__ import annotations

from collections.abc import Callable, Iterable
from dataclasses import dataclass, replace
from enum import Enum
from typing import TYPE_CHECKING, Any

from .. import return_codes
from .conditions import ALWAYS, NEVER, Condition, EvalContext, Sign

if TYPE_CHECKING:
    from ..validation.result import Violation

REQUEST_DATETIME = "%Y-%m-%d %H:%M:%S"
RESPONSE_DATETIME = "%d/%m/%Y %H:%M:%S"
DATE_ONLY = "%Y-%m-%d"
RESPONSE_DATE = "%d/%m/%Y"


class Direction(str, Enum):
    REQUEST = "request"
    RESPONSE = "response"


class Kind(str, Enum):
    STRING = "string"
    NUMBER = "number"
    DATE = "date"
    ENUM = "enum"
    OBJECT = "object"
    ARRAY = "array"


@dataclass(frozen=True, slots=True)
class Precision:
    """Digit caps of a numeric field; ``None`` leaves that part unbounded."""

    integer_digits: int | None
    decimal_digits: int | None

    def __str__(self) -> str:
        return f"({self.integer_digits if self.integer_digits is not None else '*'},{self.decimal_digits if self.decimal_digits is not None else '*'})"


@dataclass(frozen=True, slots=True)
class SignRule:
    sign: Sign
    when: Condition = ALWAYS


@dataclass(frozen=True, slots=True)
class Constraint:
    """A condition that must hold whenever ``when`` holds and the field is present."""

    condition: Condition
    message: str
    when: Condition = ALWAYS
    code: str = return_codes.UNKNOWN_ERROR


# (context, path) -> violations. The context node is the object owning the check.
Check = Callable[[EvalContext, str], "list[Violation]"]


@dataclass(frozen=True, slots=True)
class FieldRule:
    name: str
    kind: Kind = Kind.STRING
    required: bool | Condition = False
    forbidden: Condition = NEVER
    min_length: int | None = None
    max_length: int | None = None
    precision: Precision | None = None
    choices: frozenset[str] | None = None
    dictionary: str | None = None
    signs: tuple[SignRule, ...] = ()
    date_format: str | None = None
    allow_deemed: bool = False
    constraints: tuple[Constraint, ...] = ()
    same_as_original: bool = False
    within_original: str | None = None
    within_code: str = return_codes.UNKNOWN_ERROR
    schema: ObjectSchema | None = None
    min_items: int = 0
    code: str = return_codes.INVALID_FIELD_VALUE

    def is_required(self, ctx: EvalContext) -> bool:
        if isinstance(self.required, Condition):
            return self.required.evaluate(ctx)
        return bool(self.required)

    def is_forbidden(self, ctx: EvalContext) -> bool:
        return self.forbidden.evaluate(ctx)

    def with_(self, **changes: Any) -> FieldRule:
        return replace(self, **changes)


@dataclass(frozen=True, slots=True)
class ObjectSchema:
    name: str
    fields: tuple[FieldRule, ...]
    checks: tuple[Check, ...] = ()
    # Root reference holding the original invoice id for same-as-original rules
    original_ref: str | None = None

    def __post_init__(self) -> None:
        names = [f.name for f in self.fields]
        duplicates = {n for n in names if names.count(n) > 1}
        if duplicates:
            raise ValueError(f"Duplicate fields in schema {self.name}: {sorted(duplicates)}")

    def field_names(self) -> list[str]:
        return [f.name for f in self.fields]

    def get(self, name: str) -> FieldRule | None:
        for rule in self.fields:
            if rule.name == name:
                return rule
        return None

    def derive(
        self,
        name: str | None = None,
        *,
        drop: Iterable[str] = (),
        update: dict[str, dict[str, Any]] | None = None,
        add: Iterable[FieldRule] = (),
        checks: tuple[Check, ...] | None = None,
    ) -> ObjectSchema:
        """Build a near-duplicate table, keeping declaration order.

        ``update`` maps a field name to the attributes to replace on it; added
        rules are appended at the end.
        """
        dropped = set(drop)
        changes = update or {}
        unknown = (dropped | set(changes)) - set(self.field_names())
        if unknown:
            raise KeyError(f"Unknown fields for schema {self.name}: {sorted(unknown)}")

        rules = [
            rule.with_(**changes[rule.name]) if rule.name in changes else rule
            for rule in self.fields
            if rule.name not in dropped
        ]
        rules.extend(add)
        return ObjectSchema(
            name=name or self.name,
            fields=tuple(rules),
            checks=self.checks if checks is None else checks,
            original_ref=self.original_ref,
        )


@dataclass(frozen=True, slots=True)
class SchemaDescriptor:
    """Shape of one message: ``body`` is ``None`` for an empty message.

    With ``many`` set the content is a JSON array whose elements follow ``body``.
    ``item_array`` names an array of ``body`` whose items are accepted or
    rejected one by one instead of with the whole message.
    """

    interface_code: str
    direction: Direction
    title: str
    body: ObjectSchema | None
    many: bool = False
    encrypted: bool = False
    item_array: str | None = None

    @property
    def key(self) -> tuple[str, Direction]:
        return self.interface_code, self.direction

    def header(self) -> ObjectSchema | None:
        """``body`` with the items of ``item_array`` left unchecked."""
        if self.body is None or self.item_array is None:
            return self.body
        return self.body.derive(update={self.item_array: {"schema": None}})

    def item_schema(self) -> ObjectSchema | None:
        if self.body is None or self.item_array is None:
            return None
        rule = self.body.get(self.item_array)
        return rule.schema if rule is not None else None


def text(name: str, max_length: int | None = None, **kw: Any) -> FieldRule:
    return FieldRule(name=name, kind=Kind.STRING, max_length=max_length, **kw)


def number(name: str, integer_digits: int | None, decimal_digits: int | None, **kw: Any) -> FieldRule:
    return FieldRule(name=name, kind=Kind.NUMBER, precision=Precision(integer_digits, decimal_digits), **kw)


def date(name: str, date_format: str = REQUEST_DATETIME, **kw: Any) -> FieldRule:
    return FieldRule(name=name, kind=Kind.DATE, date_format=date_format, **kw)


def choice(name: str, *values: str, **kw: Any) -> FieldRule:
    return FieldRule(name=name, kind=Kind.ENUM, choices=frozenset(values), **kw)


def obj(name: str, schema: ObjectSchema, **kw: Any) -> FieldRule:
    return FieldRule(name=name, kind=Kind.OBJECT, schema=schema, **kw)


def array(name: str, schema: ObjectSchema | None, **kw: Any) -> FieldRule:
    return FieldRule(name=name, kind=Kind.ARRAY, schema=schema, **kw)


def signed(sign: Sign, when: Condition = ALWAYS) -> tuple[SignRule, ...]:
    return (SignRule(sign, when),)
