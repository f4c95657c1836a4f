"""Exception hierarchy shared by the codec, registry, validator and serializer.

Every error carries the ``returnCode`` it maps to when a reply envelope is
built, so the message boundary never has to guess.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from . import return_codes

if TYPE_CHECKING:
    from .validation.result import Violation


class EfrisError(Exception):
    """Base class for all library errors."""

    def __init__(self, message: str, *, return_code: str = return_codes.UNKNOWN_ERROR):
        super().__init__(message)
        self.message = message
        self.return_code = return_code


class DecodeError(EfrisError):
    """Raised when an envelope or its content cannot be parsed."""


class CryptoError(EfrisError):
    """Raised when decryption, encryption or signing fails."""


class SignatureError(CryptoError):
    """Raised when a signature does not match the transmitted content."""


class UnknownInterfaceError(EfrisError, LookupError):
    """Raised when no schema is registered for an (interfaceCode, direction) pair."""

    def __init__(self, interface_code: str, direction: str):
        super().__init__(f"Unknown interface {interface_code!r} ({direction})")
        self.interface_code = interface_code
        self.direction = direction


class ValidationError(EfrisError):
    """Raised when a document breaks one or more field rules."""

    def __init__(self, violations: list[Violation]):
        self.violations = list(violations)
        code = next(
            (v.code for v in self.violations if v.code and v.code != return_codes.UNKNOWN_ERROR),
            return_codes.UNKNOWN_ERROR,
        )
        super().__init__(format_violations(self.violations), return_code=code)


class SerializationError(EfrisError):
    """Raised when a value breaks its own bounds while being serialized."""

    def __init__(self, field_path: str, message: str):
        super().__init__(f"{field_path}:{message}")
        self.field_path = field_path


def format_violations(violations: list[Violation]) -> str:
    """Join violations into a single ``returnMessage`` string."""

    return "; ".join(f"{v.field_path}:{v.message}" for v in violations)
