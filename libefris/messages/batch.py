"""Batch interfaces: T129 (invoices), T130 (goods) and T131 (goods stock).

Each item is decoded, verified and validated on its own; a failing item gets
its own return code in the same position of the result array and never stops
its siblings.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass
from typing import Any

from .. import return_codes
from ..collaborators import CryptoProvider
from ..errors import DecodeError, EfrisError, SignatureError, ValidationError
from ..schemas.registry import SchemaRegistry, default_registry
from ..schemas.rules import Direction, ObjectSchema
from ..serializer import CanonicalSerializer
from ..utils import dumps, loads
from ..validation.validator import Validator
from .processor import to_return_state

logger = logging.getLogger(__name__)

INVOICE_BATCH = "T129"
GOODS_BATCH = "T130"
STOCK_MAINTAIN = "T131"
INVOICE_UPLOAD = "T109"

InvoiceHandler = Callable[[Any, Mapping[str, Any]], Any]


@dataclass(frozen=True, slots=True)
class BatchItemResult:
    """Outcome of one batch item; ``payload`` is its slot in the reply array."""

    index: int
    return_code: str
    return_message: str
    payload: dict[str, Any]

    @property
    def ok(self) -> bool:
        return self.return_code == return_codes.SUCCESS


def process_invoice_batch(
    items: Iterable[Any],
    *,
    registry: SchemaRegistry | None = None,
    validator: Validator | None = None,
    serializer: CanonicalSerializer | None = None,
    crypto: CryptoProvider | None = None,
    peer_key: str = "server",
    handler: InvoiceHandler | None = None,
    context: Mapping[str, Any] | None = None,
) -> list[BatchItemResult]:
    """
    Run a T129 batch.

    Every item is ``{"invoiceContent": <T109 request JSON text>,
    "invoiceSignature": <base64 signature of that text>}``. The signature is
    checked only when ``crypto`` is given. ``handler(document, context)``
    returns the T109 response for an accepted invoice; without a handler the
    accepted content is echoed back.

    Returns:
        One result per item, in item order. Success is ``invoiceReturnCode``
        ``"00"`` with an empty ``invoiceReturnMessage``.
    """
    registry = registry or default_registry()
    validator = validator or Validator()
    serializer = serializer or CanonicalSerializer()
    external = context or {}
    wrapper = registry.lookup(INVOICE_BATCH, Direction.REQUEST).body
    request = registry.lookup(INVOICE_UPLOAD, Direction.REQUEST)
    response = registry.lookup(INVOICE_UPLOAD, Direction.RESPONSE)

    results: list[BatchItemResult] = []
    for index, item in enumerate(items):
        content = item.get("invoiceContent", "") if isinstance(item, Mapping) else ""
        try:
            if not isinstance(item, Mapping):
                raise DecodeError("batch item must be an object")
            validator.validate(item, wrapper, external).raise_for_violations()
            if crypto is not None:
                if not crypto.verify_signature(str(content).encode("utf-8"), item["invoiceSignature"], peer_key):
                    raise SignatureError("invoiceSignature does not match invoiceContent")
            try:
                document = loads(str(content))
            except ValueError as exc:
                raise DecodeError(f"invoiceContent is not valid JSON: {exc}") from exc

            validator.validate(document, request, external).raise_for_violations()
            if handler is not None:
                answer = handler(document, external)
                validator.validate(answer, response, external).raise_for_violations()
                content = serializer.serialize(answer, response, external)
        except EfrisError as exc:
            logger.info(f"T129 item {index} rejected with {exc.return_code}: {exc.message}")
            results.append(_invoice_result(index, content, to_return_state(exc).return_code, exc.message))
        except Exception as exc:
            logger.error(f"T129 item {index} failed unexpectedly: {exc}", exc_info=exc)
            state = to_return_state(exc)
            results.append(_invoice_result(index, content, state.return_code, state.return_message))
        else:
            results.append(_invoice_result(index, content, return_codes.SUCCESS, ""))

    logger.debug(f"T129 batch: {sum(r.ok for r in results)} of {len(results)} invoices accepted")
    return results


def process_goods_batch(
    items: Iterable[Any],
    *,
    failures_only: bool = False,
    registry: SchemaRegistry | None = None,
    validator: Validator | None = None,
    context: Mapping[str, Any] | None = None,
) -> list[BatchItemResult]:
    """
    Run a T130 batch.

    Each goods item is echoed back with ``returnCode`` and ``returnMessage``,
    both empty when the item is accepted. With ``failures_only`` accepted
    items are left out, the service's "return failed goods only" mode.
    """
    registry = registry or default_registry()
    schema = registry.lookup(GOODS_BATCH, Direction.REQUEST).body
    return _item_results(GOODS_BATCH, "goods", items, schema, validator or Validator(), context or {}, failures_only)


def process_stock_batch(
    document: Any,
    *,
    failures_only: bool = False,
    registry: SchemaRegistry | None = None,
    validator: Validator | None = None,
    context: Mapping[str, Any] | None = None,
) -> list[BatchItemResult]:
    """
    Run a T131 stock maintenance request.

    The ``goodsStockIn`` header applies to every item, so a broken header
    rejects the whole message with :class:`ValidationError`. Each
    ``goodsStockInItem`` entry is then echoed back the way T130 goods are.
    """
    registry = registry or default_registry()
    validator = validator or Validator()
    external = context or {}
    descriptor = registry.lookup(STOCK_MAINTAIN, Direction.REQUEST)

    validator.validate(document, descriptor.header(), external).raise_for_violations()
    items = document[descriptor.item_array]
    return _item_results(STOCK_MAINTAIN, "stock", items, descriptor.item_schema(), validator, external, failures_only)


def _item_results(
    interface_code: str,
    noun: str,
    items: Iterable[Any],
    schema: ObjectSchema,
    validator: Validator,
    external: Mapping[str, Any],
    failures_only: bool,
) -> list[BatchItemResult]:
    results: list[BatchItemResult] = []
    for index, item in enumerate(items):
        echo = dict(item) if isinstance(item, Mapping) else {}
        if not isinstance(item, Mapping):
            code, message = return_codes.UNKNOWN_ERROR, f"{noun} item must be an object"
        else:
            result = validator.validate(item, schema, external)
            if result.ok:
                code, message = return_codes.SUCCESS, ""
            else:
                state = to_return_state(ValidationError(result.violations))
                code, message = state.return_code, state.return_message

        if code == return_codes.SUCCESS:
            if failures_only:
                continue
            echo.update(returnCode="", returnMessage="")
        else:
            logger.info(f"{interface_code} item {index} rejected with {code}: {message}")
            echo.update(returnCode=code, returnMessage=message)
        results.append(BatchItemResult(index, code, message, echo))

    return results


def batch_content(results: Iterable[BatchItemResult]) -> str:
    """Reply content text of a batch: the result payloads as a JSON array."""
    return dumps([result.payload for result in results])


def batch_handlers(
    *,
    registry: SchemaRegistry | None = None,
    validator: Validator | None = None,
    crypto: CryptoProvider | None = None,
    peer_key: str = "server",
    invoice_handler: InvoiceHandler | None = None,
    failures_only: bool = False,
) -> dict[str, Callable[[Any, Any], str]]:
    """T129, T130 and T131 handlers ready for :class:`~libefris.messages.processor.MessageProcessor`."""

    def invoices(content: Any, global_info: Any) -> str:
        results = process_invoice_batch(
            content,
            registry=registry,
            validator=validator,
            crypto=crypto,
            peer_key=peer_key,
            handler=invoice_handler,
            context=global_info.as_context(),
        )
        return batch_content(results)

    def goods(content: Any, global_info: Any) -> str:
        results = process_goods_batch(
            content,
            failures_only=failures_only,
            registry=registry,
            validator=validator,
            context=global_info.as_context(),
        )
        return batch_content(results)

    def stock(content: Any, global_info: Any) -> str:
        results = process_stock_batch(
            content,
            failures_only=failures_only,
            registry=registry,
            validator=validator,
            context=global_info.as_context(),
        )
        return batch_content(results)

    return {INVOICE_BATCH: invoices, GOODS_BATCH: goods, STOCK_MAINTAIN: stock}


def _invoice_result(index: int, content: Any, code: str, message: str) -> BatchItemResult:
    payload = {
        "invoiceContent": content if isinstance(content, str) else "",
        "invoiceReturnCode": code,
        "invoiceReturnMessage": message,
    }
    return BatchItemResult(index, code, message, payload)

