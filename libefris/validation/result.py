from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from .. import return_codes
from ..errors import ValidationError


@dataclass(frozen=True, slots=True)
class Violation:
    """One broken rule, e.g. ``goodsDetails[1].total`` / ``sign`` / ``must be positive``."""

    field_path: str
    rule: str
    message: str
    code: str = return_codes.UNKNOWN_ERROR

    def __str__(self) -> str:
        return f"{self.field_path}:{self.message}"


@dataclass(slots=True)
class ValidationResult:
    """Violations found while validating ``document``; empty means accepted."""

    document: Any
    violations: list[Violation] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.violations

    def paths(self) -> list[str]:
        return [v.field_path for v in self.violations]

    def raise_for_violations(self) -> Any:
        """Return the accepted document or raise :class:`ValidationError`."""
        if self.violations:
            raise ValidationError(self.violations)
        return self.document
