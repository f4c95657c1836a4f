"""Collaborator contracts and in-memory implementations.

The validator and codec never fetch keys, dictionaries or original invoices
themselves; they call the objects described here. The in-memory versions are
built from the service's own T115 (system dictionary), T123 (commodity
categories), T125 (excise duties) and T186 (invoice remain details) responses.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from typing import Any, Protocol, runtime_checkable

logger = logging.getLogger(__name__)

COMMODITY_CATEGORY = "commodityCategory"
EXCISE_DUTY = "exciseDuty"


@runtime_checkable
class CryptoProvider(Protocol):
    def decrypt(self, ciphertext: bytes, key_ref: str, algorithm: str) -> bytes: ...

    def encrypt(self, plaintext: bytes, key_ref: str, algorithm: str) -> bytes: ...

    def sign(self, content: bytes, key_ref: str) -> str: ...

    def verify_signature(self, content: bytes, signature: str, key_ref: str) -> bool: ...


@runtime_checkable
class OriginalDocumentLookup(Protocol):
    def fetch_original_line(self, invoice_id: str, order_number: str) -> Mapping[str, Any] | None: ...


@runtime_checkable
class DictionaryService(Protocol):
    def is_valid_code(self, dictionary_name: str, code: str) -> bool: ...


class StaticDictionary:
    """
    Code tables held in memory.

    Tables are addressed by name (``rateUnit``) for their primary value and by
    ``name.attribute`` (``currencyType.name``) for any other attribute.
    """

    def __init__(self, tables: Mapping[str, Iterable[str]] | None = None):
        self._tables: dict[str, frozenset[str]] = {
            name: frozenset(str(code) for code in codes) for name, codes in (tables or {}).items()
        }

    @classmethod
    def from_system_dictionary(cls, payload: Mapping[str, Any]) -> StaticDictionary:
        """Index a T115 response.

        List sections are keyed by ``value`` (``code`` for ``sector``); every
        other attribute becomes its own ``section.attribute`` table.
        """
        tables: dict[str, set[str]] = {}
        for section, entries in payload.items():
            if not isinstance(entries, list):
                continue
            for entry in entries:
                if not isinstance(entry, Mapping):
                    continue
                primary = entry.get("value", entry.get("code"))
                if primary is not None:
                    tables.setdefault(section, set()).add(str(primary))
                for attribute, value in entry.items():
                    if value is not None and value != "":
                        tables.setdefault(f"{section}.{attribute}", set()).add(str(value))
        logger.debug("system dictionary: indexed %d tables", len(tables))
        return cls(tables)

    @classmethod
    def from_commodity_categories(cls, payload: Any) -> StaticDictionary:
        """Index a T123 response as the ``commodityCategory`` table; disabled categories are left out."""
        if not isinstance(payload, list):
            raise ValueError("a T123 response must be a JSON array")
        codes = [
            entry["commodityCategoryCode"]
            for entry in payload
            if isinstance(entry, Mapping)
            and entry.get("commodityCategoryCode")
            and str(entry.get("enableStatusCode", "1")) != "0"
        ]
        logger.debug("commodity categories: indexed %d codes", len(codes))
        return cls({COMMODITY_CATEGORY: codes})

    @classmethod
    def from_excise_duties(cls, payload: Any) -> StaticDictionary:
        """Index a T125 response (``exciseDutyList``) as the ``exciseDuty`` table."""
        if not isinstance(payload, Mapping):
            raise ValueError("a T125 response must be a JSON object")
        entries = payload.get("exciseDutyList") or []
        codes = [entry["exciseDutyCode"] for entry in entries if isinstance(entry, Mapping) and entry.get("exciseDutyCode")]
        logger.debug("excise duties: indexed %d codes", len(codes))
        return cls({EXCISE_DUTY: codes})

    def merged(self, *others: StaticDictionary) -> StaticDictionary:
        """A new dictionary holding the tables of ``self`` and ``others``; later tables win."""
        tables: dict[str, frozenset[str]] = dict(self._tables)
        for other in others:
            tables.update(other._tables)
        return StaticDictionary(tables)

    def is_valid_code(self, dictionary_name: str, code: str) -> bool:
        table = self._tables.get(dictionary_name)
        if table is None:
            # Unknown tables are not enforced
            logger.debug("dictionary %s not loaded, accepting %r", dictionary_name, code)
            return True
        return str(code) in table

    def tables(self) -> list[str]:
        return sorted(self._tables)


class RemainDetailsLookup:
    """Original invoice lines keyed by (invoiceId, orderNumber)."""

    def __init__(self, lines: Mapping[tuple[str, str], Mapping[str, Any]] | None = None):
        self._lines: dict[tuple[str, str], Mapping[str, Any]] = dict(lines or {})

    def add_invoice(self, payload: Mapping[str, Any]) -> None:
        """Index the goods lines of a T108 or T186 response."""
        basic = payload.get("basicInformation") or {}
        invoice_id = basic.get("invoiceId")
        if not invoice_id:
            raise ValueError("basicInformation.invoiceId is required to index original lines")
        for line in payload.get("goodsDetails") or []:
            order_number = line.get("orderNumber")
            if order_number is None:
                continue
            self._lines[(str(invoice_id), str(order_number))] = line

    @classmethod
    def from_remain_details(cls, *payloads: Mapping[str, Any]) -> RemainDetailsLookup:
        lookup = cls()
        for payload in payloads:
            lookup.add_invoice(payload)
        return lookup

    def fetch_original_line(self, invoice_id: str, order_number: str) -> Mapping[str, Any] | None:
        return self._lines.get((str(invoice_id), str(order_number)))

    def __len__(self) -> int:
        return len(self._lines)
