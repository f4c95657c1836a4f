"""Request/response boundary.

Every failure past this point becomes a ``returnStateInfo`` in a well formed
reply envelope; :meth:`MessageProcessor.process` never raises.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from typing import Any

from .. import return_codes
from ..envelope.codec import DecodedEnvelope, EncryptionConfig, EnvelopeCodec
from ..envelope.models import GlobalInfo, ReturnStateInfo
from ..errors import EfrisError, SerializationError, ValidationError
from ..schemas.registry import SchemaRegistry, default_registry
from ..schemas.rules import Direction
from ..serializer import CanonicalSerializer
from ..validation.result import Violation
from ..validation.validator import Validator

logger = logging.getLogger(__name__)

Handler = Callable[[Any, GlobalInfo], Any]


def to_return_state(exc: BaseException) -> ReturnStateInfo:
    """Map an exception to the ``returnStateInfo`` reported to the peer."""
    if isinstance(exc, EfrisError):
        return ReturnStateInfo(return_code=exc.return_code, return_message=exc.message)
    return ReturnStateInfo(
        return_code=return_codes.UNKNOWN_ERROR,
        return_message=str(exc) or return_codes.describe(return_codes.UNKNOWN_ERROR),
    )


class MessageProcessor:
    """
    Decode a request envelope, validate it, dispatch it and encode the reply.

    Args:
        codec: Envelope codec used both ways.
        registry: Schema registry, the built-in one by default.
        validator: Validator for requests and handler responses.
        serializer: Serializer of handler responses.
        handlers: Business handlers keyed by ``interfaceCode``, called as
            ``handler(content, global_info)``; the return value is the
            response content.
        response_encryption: How to wrap reply content. ``None`` mirrors the
            request's ``dataDescription``.
    """

    def __init__(
        self,
        codec: EnvelopeCodec,
        registry: SchemaRegistry | None = None,
        validator: Validator | None = None,
        serializer: CanonicalSerializer | None = None,
        handlers: Mapping[str, Handler] | None = None,
        response_encryption: EncryptionConfig | None = None,
    ):
        self.codec = codec
        self.registry = registry or default_registry()
        self.validator = validator or Validator()
        self.serializer = serializer or CanonicalSerializer()
        self.handlers = dict(handlers or {})
        self.response_encryption = response_encryption

    def process(self, raw: str | bytes | Mapping[str, Any]) -> str:
        decoded: DecodedEnvelope | None = None
        try:
            decoded = self.codec.decode(raw)
            response = self.handle(decoded)
            return self._reply(decoded, response, ReturnStateInfo.success())
        except EfrisError as exc:
            logger.warning(f"{_interface(decoded)} rejected with {exc.return_code}: {exc.message}")
            return self._failure(raw, decoded, to_return_state(exc))
        except Exception as exc:
            logger.error(f"{_interface(decoded)} failed unexpectedly: {exc}", exc_info=exc)
            return self._failure(raw, decoded, to_return_state(exc))

    def handle(self, decoded: DecodedEnvelope) -> str:
        """
        Validate, dispatch and serialize; returns the response content text.

        A handler returning ``str`` hands back ready content that is not re-checked.
        """
        global_info = decoded.global_info
        code = global_info.interface_code
        context = global_info.as_context()

        request = self.registry.lookup(code, Direction.REQUEST)
        if request.many:
            # batch items are validated one by one by their handler
            if not isinstance(decoded.content, list):
                raise ValidationError([Violation("content", "type", "must be an array")])
        elif request.item_array is not None:
            # the items are accepted or rejected one by one by their handler
            self.validator.validate(decoded.content, request.header(), context).raise_for_violations()
        else:
            self.validator.validate(decoded.content, request, context).raise_for_violations()

        handler = self.handlers.get(code)
        if handler is None:
            raise EfrisError(f"No handler registered for interface {code}")
        response = handler(decoded.content, global_info)
        if isinstance(response, str):
            return response

        descriptor = self.registry.lookup(code, Direction.RESPONSE)
        result = self.validator.validate(response, descriptor, context)
        if not result.ok:
            for violation in result.violations:
                logger.warning(f"{code} response: {violation}")
            first = result.violations[0]
            raise SerializationError(first.field_path, first.message)
        return self.serializer.serialize(response, descriptor, context)

    def _reply(self, decoded: DecodedEnvelope, content: str, state: ReturnStateInfo) -> str:
        encryption = self.response_encryption or decoded.encryption
        return self.codec.encode(decoded.global_info, content, encryption, state)

    def _failure(
        self,
        raw: str | bytes | Mapping[str, Any],
        decoded: DecodedEnvelope | None,
        state: ReturnStateInfo,
    ) -> str:
        global_info = decoded.global_info if decoded is not None else self._salvage_global_info(raw)
        return self.codec.encode(global_info, None, return_state=state)

    def _salvage_global_info(self, raw: str | bytes | Mapping[str, Any]) -> GlobalInfo:
        try:
            return self.codec.parse(raw).global_info
        except EfrisError as exc:
            logger.debug(f"No globalInfo to echo: {exc.message}")
        interface_code = ""
        if isinstance(raw, Mapping) and isinstance(raw.get("globalInfo"), Mapping):
            interface_code = str(raw["globalInfo"].get("interfaceCode") or "")
        return GlobalInfo(interface_code=interface_code)


def _interface(decoded: DecodedEnvelope | None) -> str:
    return decoded.global_info.interface_code if decoded is not None else "request"

