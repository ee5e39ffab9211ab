"""Record store for suppliers and invoices.

The aggregation engine only ever sees the lists returned by a
:class:`RecordStore`. :class:`JsonRecordStore` keeps both collections in a
single JSON document, loaded and written wholesale on every operation.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
import uuid
from dataclasses import fields, replace
from datetime import datetime
from pathlib import Path
from typing import Any, Callable, Iterable, Protocol, TypeVar

from .models import (
    Invoice,
    RecordValidationError,
    Supplier,
    invoice_from_record,
    invoice_to_record,
    supplier_from_record,
    supplier_to_record,
    validate_invoice,
    validate_supplier,
)
from .utils import resolve_now

LOGGER = logging.getLogger(__name__)

SUPPLIERS_KEY = "suppliers"
INVOICES_KEY = "invoices"

_IMMUTABLE_FIELDS = frozenset({"id", "created_at", "updated_at"})

RecordT = TypeVar("RecordT", Supplier, Invoice)


class StoreError(Exception):
    """The backing document could not be read or written."""


class RecordStore(Protocol):
    """Minimal persistence interface used by the commands."""

    def list_suppliers(self) -> list[Supplier]:
        ...

    def list_invoices(self) -> list[Invoice]:
        ...

    def save_suppliers(self, suppliers: Iterable[Supplier]) -> None:
        ...

    def save_invoices(self, invoices: Iterable[Invoice]) -> None:
        ...


class JsonRecordStore:
    """Store both collections in one JSON document at *path*."""

    def __init__(self, path: Path) -> None:
        self.path = Path(path)

    def _read(self) -> dict[str, Any]:
        if not self.path.exists():
            LOGGER.debug("Store %s does not exist yet; using empty collections", self.path)
            return {SUPPLIERS_KEY: [], INVOICES_KEY: []}
        try:
            data = json.loads(self.path.read_text(encoding="utf-8") or "{}")
        except (OSError, json.JSONDecodeError) as exc:
            raise StoreError(f"Cannot read store {self.path}: {exc}") from exc
        if not isinstance(data, dict):
            raise StoreError(f"Store {self.path} must contain a JSON object")
        return data

    def _write(self, key: str, records: list[dict[str, Any]]) -> None:
        data = self._read()
        data[key] = records
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(dir=self.path.parent, prefix=self.path.name, suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                json.dump(data, handle, ensure_ascii=False, indent=2)
            os.replace(tmp_name, self.path)
        except OSError as exc:
            raise StoreError(f"Cannot write store {self.path}: {exc}") from exc
        finally:
            Path(tmp_name).unlink(missing_ok=True)
        LOGGER.debug("Saved %d %s to %s", len(records), key, self.path)

    def _records(self, key: str) -> list[dict[str, Any]]:
        records = self._read().get(key, [])
        if not isinstance(records, list):
            raise StoreError(f"Store key '{key}' must hold a list")
        return records

    def _load(self, key: str, factory: Callable[[dict[str, Any]], RecordT]) -> list[RecordT]:
        loaded: list[RecordT] = []
        for position, record in enumerate(self._records(key)):
            try:
                if not isinstance(record, dict):
                    raise RecordValidationError(f"Expected an object, got {type(record).__name__}")
                loaded.append(factory(record))
            except RecordValidationError as exc:
                LOGGER.warning("Rejected %s entry #%d (id=%s): %s", key, position, exc.record_id, exc)
                raise
        return loaded

    def list_suppliers(self) -> list[Supplier]:
        suppliers = self._load(SUPPLIERS_KEY, supplier_from_record)
        LOGGER.debug("Loaded %d suppliers from %s", len(suppliers), self.path)
        return suppliers

    def list_invoices(self) -> list[Invoice]:
        invoices = self._load(INVOICES_KEY, invoice_from_record)
        LOGGER.debug("Loaded %d invoices from %s", len(invoices), self.path)
        return invoices

    def save_suppliers(self, suppliers: Iterable[Supplier]) -> None:
        self._write(SUPPLIERS_KEY, [supplier_to_record(item) for item in suppliers])

    def save_invoices(self, invoices: Iterable[Invoice]) -> None:
        self._write(INVOICES_KEY, [invoice_to_record(item) for item in invoices])


# --------------------------------------------------------------------------
# CRUD helpers over any RecordStore
# --------------------------------------------------------------------------


def _new_id() -> str:
    return str(uuid.uuid4())


def _merge(
    record: RecordT, updates: dict[str, Any], now: datetime, validate: Callable[[RecordT], RecordT]
) -> RecordT:
    """Apply *updates* and re-check the result before anything is saved."""

    known = {item.name for item in fields(record)}
    unknown = set(updates) - known
    if unknown:
        raise ValueError(f"Unknown fields for {type(record).__name__}: {sorted(unknown)}")
    blocked = set(updates) & _IMMUTABLE_FIELDS
    if blocked:
        raise ValueError(f"Fields cannot be updated: {sorted(blocked)}")
    return validate(replace(record, **updates, updated_at=now))


def add_supplier(store: RecordStore, supplier: Supplier, *, now: datetime | None = None) -> Supplier:
    """Persist *supplier* under a freshly generated id and return it."""

    stamp = resolve_now(now)
    created = replace(supplier, id=_new_id(), created_at=stamp, updated_at=stamp)
    suppliers = store.list_suppliers()
    suppliers.append(created)
    store.save_suppliers(suppliers)
    LOGGER.info("Supplier %s (%s) added", created.id, created.name)
    return created


def update_supplier(
    store: RecordStore, supplier_id: str, *, now: datetime | None = None, **updates: Any
) -> Supplier | None:
    """Apply *updates* to the supplier with *supplier_id*.

    Returns the updated supplier, or ``None`` when no supplier has that id.
    """

    suppliers = store.list_suppliers()
    for index, supplier in enumerate(suppliers):
        if supplier.id == supplier_id:
            suppliers[index] = _merge(supplier, updates, resolve_now(now), validate_supplier)
            store.save_suppliers(suppliers)
            LOGGER.info("Supplier %s updated: %s", supplier_id, ", ".join(sorted(updates)))
            return suppliers[index]
    LOGGER.warning("Supplier %s not found for update", supplier_id)
    return None


def delete_supplier(store: RecordStore, supplier_id: str) -> list[Invoice]:
    """Remove the supplier and return the invoices left pointing at it.

    Invoices are never deleted with their supplier; they stay in the store
    and render as ``"Unknown Supplier"``.
    """

    suppliers = store.list_suppliers()
    remaining = [supplier for supplier in suppliers if supplier.id != supplier_id]
    store.save_suppliers(remaining)
    orphans = [invoice for invoice in store.list_invoices() if invoice.supplier_id == supplier_id]
    if len(remaining) != len(suppliers):
        LOGGER.info("Supplier %s deleted", supplier_id)
    if orphans:
        LOGGER.warning(
            "Supplier %s deleted with %d invoice(s) still referencing it", supplier_id, len(orphans)
        )
    return orphans


def add_invoice(store: RecordStore, invoice: Invoice, *, now: datetime | None = None) -> Invoice:
    """Persist *invoice* under a freshly generated id and return it."""

    stamp = resolve_now(now)
    created = replace(invoice, id=_new_id(), created_at=stamp, updated_at=stamp)
    invoices = store.list_invoices()
    invoices.append(created)
    store.save_invoices(invoices)
    LOGGER.info("Invoice %s (%s) added", created.id, created.invoice_number)
    return created


def update_invoice(
    store: RecordStore, invoice_id: str, *, now: datetime | None = None, **updates: Any
) -> Invoice | None:
    """Apply *updates* to the invoice with *invoice_id*.

    Amounts are stored as given; callers recompute ``vat_amount`` and
    ``total`` with :func:`vatledger.models.compute_vat_amounts` when they
    change the subtotal or rate.

    Raises :class:`~vatledger.models.RecordValidationError` and leaves the
    store untouched when an update does not fit the field type.
    """

    invoices = store.list_invoices()
    for index, invoice in enumerate(invoices):
        if invoice.id == invoice_id:
            invoices[index] = _merge(invoice, updates, resolve_now(now), validate_invoice)
            store.save_invoices(invoices)
            LOGGER.info("Invoice %s updated: %s", invoice_id, ", ".join(sorted(updates)))
            return invoices[index]
    LOGGER.warning("Invoice %s not found for update", invoice_id)
    return None


def delete_invoice(store: RecordStore, invoice_id: str) -> None:
    invoices = store.list_invoices()
    store.save_invoices([invoice for invoice in invoices if invoice.id != invoice_id])
    LOGGER.info("Invoice %s deleted", invoice_id)


def orphaned_invoices(suppliers: Iterable[Supplier], invoices: Iterable[Invoice]) -> list[Invoice]:
    """Invoices whose ``supplier_id`` matches no supplier."""

    known = {supplier.id for supplier in suppliers}
    return [invoice for invoice in invoices if invoice.supplier_id not in known]


__all__ = [
    "INVOICES_KEY",
    "SUPPLIERS_KEY",
    "JsonRecordStore",
    "RecordStore",
    "StoreError",
    "add_invoice",
    "add_supplier",
    "delete_invoice",
    "delete_supplier",
    "orphaned_invoices",
    "update_invoice",
    "update_supplier",
]
