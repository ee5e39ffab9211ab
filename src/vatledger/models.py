"""Supplier and invoice records.

Records reach the aggregation engine as instances of the dataclasses below.
Raw mappings (as read from the JSON store or produced by an import) are
validated once by :func:`supplier_from_record` / :func:`invoice_from_record`
through the pydantic :class:`SupplierRecord` / :class:`InvoiceRecord` models,
so the engine never has to cope with missing dates or non-numeric amounts.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from datetime import datetime, timedelta
from decimal import Decimal
from enum import Enum
from typing import Annotated, Any, Mapping, TypeVar

from pydantic import (
    AfterValidator,
    BaseModel,
    BeforeValidator,
    ConfigDict,
    Field,
    StringConstraints,
    ValidationError,
    field_validator,
)
from pydantic.alias_generators import to_camel

from .utils import HUNDRED, naive_utc, resolve_now

UNKNOWN_SUPPLIER = "Unknown Supplier"


class InvoiceStatus(str, Enum):
    """Stored invoice status. ``OVERDUE`` is also derived on display."""

    PENDING = "pending"
    APPROVED = "approved"
    PAID = "paid"
    OVERDUE = "overdue"


class RecordValidationError(ValueError):
    """A raw record could not be turned into a typed entity."""

    def __init__(self, message: str, *, record_id: str | None = None, field: str | None = None) -> None:
        super().__init__(message)
        self.record_id = record_id
        self.field = field


@dataclass
class Supplier:
    """Supplier master record."""

    id: str
    name: str
    address: str = ""
    vat_number: str = ""
    contact_person: str = ""
    email: str = ""
    phone: str = ""
    payment_terms: int = 30
    created_at: datetime = field(default_factory=datetime.now)
    updated_at: datetime = field(default_factory=datetime.now)


@dataclass
class Invoice:
    """Purchase invoice issued by a :class:`Supplier`."""

    id: str
    supplier_id: str
    invoice_number: str
    date: datetime
    due_date: datetime
    subtotal: Decimal
    vat_rate: Decimal
    vat_amount: Decimal
    total: Decimal
    status: InvoiceStatus = InvoiceStatus.PENDING
    description: str = ""
    attachments: list[str] = field(default_factory=list)
    created_at: datetime = field(default_factory=datetime.now)
    updated_at: datetime = field(default_factory=datetime.now)


def compute_vat_amounts(subtotal: Decimal, vat_rate: Decimal) -> tuple[Decimal, Decimal]:
    """Return ``(vat_amount, total)`` for *subtotal* taxed at *vat_rate* percent."""

    vat_amount = subtotal * vat_rate / HUNDRED
    return vat_amount, subtotal + vat_amount


def due_date_for(invoice_date: datetime, supplier: Supplier | None) -> datetime:
    """Default due date: invoice date plus the supplier's payment terms."""

    days = supplier.payment_terms if supplier is not None else 0
    return invoice_date + timedelta(days=days)


def is_overdue(invoice: Invoice, now: datetime) -> bool:
    """An unpaid invoice whose due date lies strictly before *now*."""

    return invoice.status is not InvoiceStatus.PAID and invoice.due_date < naive_utc(now)


def effective_status(invoice: Invoice, now: datetime) -> InvoiceStatus:
    if is_overdue(invoice, now):
        return InvoiceStatus.OVERDUE
    return invoice.status


# --------------------------------------------------------------------------
# Boundary conversion
# --------------------------------------------------------------------------

RequiredText = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1)]
Text = Annotated[str, BeforeValidator(lambda value: "" if value is None else value)]
Timestamp = Annotated[datetime, AfterValidator(naive_utc)]


class _Record(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        allow_inf_nan=False,
        extra="ignore",
    )


class SupplierRecord(_Record):
    """Serialised (camelCase) form of a :class:`Supplier`."""

    id: RequiredText
    name: RequiredText
    address: Text = ""
    vat_number: Text = ""
    contact_person: Text = ""
    email: Text = ""
    phone: Text = ""
    payment_terms: int = 30
    created_at: Timestamp = Field(default_factory=datetime.now)
    updated_at: Timestamp = Field(default_factory=datetime.now)

    def to_supplier(self) -> Supplier:
        return Supplier(**dict(self))


class InvoiceRecord(_Record):
    """Serialised (camelCase) form of an :class:`Invoice`.

    ``vatAmount`` and ``total`` are read as stored; they are not recomputed,
    so a record inconsistent with its rate is accepted.
    """

    id: RequiredText
    supplier_id: RequiredText
    invoice_number: Text = ""
    date: Timestamp
    due_date: Timestamp
    subtotal: Decimal
    vat_rate: Decimal
    vat_amount: Decimal
    total: Decimal
    status: InvoiceStatus = InvoiceStatus.PENDING
    description: Text = ""
    attachments: list[str] = Field(default_factory=list)
    created_at: Timestamp = Field(default_factory=datetime.now)
    updated_at: Timestamp = Field(default_factory=datetime.now)

    @field_validator("attachments", mode="before")
    @classmethod
    def _no_attachments(cls, value: Any) -> Any:
        return [] if value is None else value

    def to_invoice(self) -> Invoice:
        return Invoice(**dict(self))


RecordModelT = TypeVar("RecordModelT", SupplierRecord, InvoiceRecord)


def _validate(schema: type[RecordModelT], data: Mapping[str, Any]) -> RecordModelT:
    try:
        return schema.model_validate(data)
    except ValidationError as exc:
        record_id = data.get("id")
        error = exc.errors()[0]
        field_name = str(error["loc"][0]) if error["loc"] else None
        raise RecordValidationError(
            f"Invalid {schema.__name__} field '{field_name}': {error['msg']}",
            record_id=str(record_id) if record_id is not None else None,
            field=field_name,
        ) from exc


def supplier_from_record(record: Mapping[str, Any]) -> Supplier:
    """Build a :class:`Supplier` from its serialised (camelCase) form."""

    return _validate(SupplierRecord, record).to_supplier()


def invoice_from_record(record: Mapping[str, Any]) -> Invoice:
    """Build an :class:`Invoice` from its serialised (camelCase) form."""

    return _validate(InvoiceRecord, record).to_invoice()


def validate_supplier(supplier: Supplier) -> Supplier:
    """Re-check *supplier*, returning a copy with coerced field types."""

    return _validate(SupplierRecord, asdict(supplier)).to_supplier()


def validate_invoice(invoice: Invoice) -> Invoice:
    """Re-check *invoice*, returning a copy with coerced field types."""

    return _validate(InvoiceRecord, asdict(invoice)).to_invoice()


def supplier_to_record(supplier: Supplier) -> dict[str, Any]:
    return _validate(SupplierRecord, asdict(supplier)).model_dump(by_alias=True, mode="json")


def invoice_to_record(invoice: Invoice) -> dict[str, Any]:
    """Serialise *invoice*; amounts are written as strings to keep precision."""

    return _validate(InvoiceRecord, asdict(invoice)).model_dump(by_alias=True, mode="json")


def new_invoice(
    *,
    id: str,
    supplier_id: str,
    invoice_number: str,
    date: datetime,
    subtotal: Decimal,
    vat_rate: Decimal,
    due_date: datetime | None = None,
    supplier: Supplier | None = None,
    vat_amount: Decimal | None = None,
    total: Decimal | None = None,
    status: InvoiceStatus = InvoiceStatus.PENDING,
    description: str = "",
    attachments: list[str] | None = None,
    now: datetime | None = None,
) -> Invoice:
    """Create an invoice the way the entry form does.

    Missing ``vat_amount``/``total`` are derived from the subtotal and rate,
    and a missing ``due_date`` follows the supplier's payment terms.
    """

    if vat_amount is None:
        vat_amount, _ = compute_vat_amounts(subtotal, vat_rate)
    if total is None:
        total = subtotal + vat_amount
    stamp = resolve_now(now)
    return Invoice(
        id=id,
        supplier_id=supplier_id,
        invoice_number=invoice_number,
        date=date,
        due_date=due_date if due_date is not None else due_date_for(date, supplier),
        subtotal=subtotal,
        vat_rate=vat_rate,
        vat_amount=vat_amount,
        total=total,
        status=status,
        description=description,
        attachments=list(attachments or []),
        created_at=stamp,
        updated_at=stamp,
    )


__all__ = [
    "UNKNOWN_SUPPLIER",
    "Invoice",
    "InvoiceRecord",
    "InvoiceStatus",
    "RecordValidationError",
    "Supplier",
    "SupplierRecord",
    "compute_vat_amounts",
    "due_date_for",
    "effective_status",
    "invoice_from_record",
    "invoice_to_record",
    "is_overdue",
    "new_invoice",
    "supplier_from_record",
    "supplier_to_record",
    "validate_invoice",
    "validate_supplier",
]
