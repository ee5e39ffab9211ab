"""Supplier, payment and financial reports over invoice collections.

Like :mod:`vatledger.vat`, these functions never modify their inputs.
Anything that depends on the current time takes an explicit ``now``
argument and falls back to :meth:`datetime.now` only when it is omitted.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from decimal import Decimal
from typing import Iterable, Sequence

from .models import UNKNOWN_SUPPLIER, Invoice, InvoiceStatus, Supplier, is_overdue
from .utils import HUNDRED, ZERO, resolve_now, shift_month
from .vat import MONTH_NAMES

TOP_SUPPLIERS = 5
PAYMENT_TREND_MONTHS = 6
FINANCIAL_TREND_MONTHS = 12

_ONE_DAY = timedelta(days=1)


def _percentage(part: Decimal | int, whole: Decimal | int) -> Decimal:
    if not whole:
        return ZERO
    return Decimal(part) / Decimal(whole) * HUNDRED


def _sum_totals(invoices: Iterable[Invoice]) -> Decimal:
    return sum((invoice.total for invoice in invoices), ZERO)


def _sum_vat(invoices: Iterable[Invoice]) -> Decimal:
    return sum((invoice.vat_amount for invoice in invoices), ZERO)


def _month_abbr(month: int) -> str:
    return MONTH_NAMES[month - 1][:3]


def _trailing_months(now: datetime, count: int) -> list[tuple[int, int]]:
    """The *count* calendar months ending with the month of *now*, oldest first."""

    return [shift_month(now.year, now.month, -offset) for offset in range(count - 1, -1, -1)]


def _in_month(invoice: Invoice, year: int, month: int) -> bool:
    return invoice.date.year == year and invoice.date.month == month


def supplier_name(suppliers: Iterable[Supplier], supplier_id: str) -> str:
    """Name of the supplier with *supplier_id*, or ``"Unknown Supplier"``."""

    for supplier in suppliers:
        if supplier.id == supplier_id:
            return supplier.name
    return UNKNOWN_SUPPLIER


# --------------------------------------------------------------------------
# Supplier performance
# --------------------------------------------------------------------------


@dataclass
class SupplierReport:
    supplier: Supplier
    total_invoices: int
    total_amount: Decimal
    total_vat: Decimal
    average_invoice_value: Decimal
    last_invoice_date: datetime | None
    payment_terms_compliance: Decimal


def _paid_on_terms(invoice: Invoice, now: datetime) -> bool:
    # Measured against the clock: there is no recorded payment date.
    return (now - invoice.due_date) // _ONE_DAY <= 0


def generate_supplier_reports(
    suppliers: Sequence[Supplier], invoices: Sequence[Invoice], now: datetime | None = None
) -> list[SupplierReport]:
    """One :class:`SupplierReport` per supplier, in supplier order.

    ``payment_terms_compliance`` is the share (0-100) of the supplier's paid
    invoices that are not overdue by a full day relative to *now*. Because it
    depends on *now* rather than on when the invoice was paid, the figure for
    the same data drifts as time passes.
    """

    now = resolve_now(now)
    reports: list[SupplierReport] = []

    for supplier in suppliers:
        own = [invoice for invoice in invoices if invoice.supplier_id == supplier.id]
        total_amount = _sum_totals(own)
        paid = [invoice for invoice in own if invoice.status is InvoiceStatus.PAID]
        on_terms = [invoice for invoice in paid if _paid_on_terms(invoice, now)]

        reports.append(
            SupplierReport(
                supplier=supplier,
                total_invoices=len(own),
                total_amount=total_amount,
                total_vat=_sum_vat(own),
                average_invoice_value=total_amount / len(own) if own else ZERO,
                last_invoice_date=max((invoice.date for invoice in own), default=None),
                payment_terms_compliance=_percentage(len(on_terms), len(paid)),
            )
        )

    return reports


# --------------------------------------------------------------------------
# Payment status
# --------------------------------------------------------------------------


@dataclass
class PaymentTrend:
    year: int
    month: int
    label: str
    paid_total: Decimal
    pending_total: Decimal


@dataclass
class PaymentReport:
    total_paid: Decimal
    total_pending: Decimal
    overdue_count: int
    overdue_amount: Decimal
    payment_trends: list[PaymentTrend] = field(default_factory=list)


def generate_payment_report(invoices: Sequence[Invoice], now: datetime | None = None) -> PaymentReport:
    """Paid / pending / overdue totals plus a trailing six-month series.

    In the monthly series every status other than ``paid`` counts as pending.
    """

    now = resolve_now(now)
    paid = [invoice for invoice in invoices if invoice.status is InvoiceStatus.PAID]
    pending = [
        invoice
        for invoice in invoices
        if invoice.status in (InvoiceStatus.PENDING, InvoiceStatus.APPROVED)
    ]
    overdue = [invoice for invoice in invoices if is_overdue(invoice, now)]

    trends: list[PaymentTrend] = []
    for year, month in _trailing_months(now, PAYMENT_TREND_MONTHS):
        in_month = [invoice for invoice in invoices if _in_month(invoice, year, month)]
        trends.append(
            PaymentTrend(
                year=year,
                month=month,
                label=f"{_month_abbr(month)} {year % 100:02d}",
                paid_total=_sum_totals(i for i in in_month if i.status is InvoiceStatus.PAID),
                pending_total=_sum_totals(i for i in in_month if i.status is not InvoiceStatus.PAID),
            )
        )

    return PaymentReport(
        total_paid=_sum_totals(paid),
        total_pending=_sum_totals(pending),
        overdue_count=len(overdue),
        overdue_amount=_sum_totals(overdue),
        payment_trends=trends,
    )


# --------------------------------------------------------------------------
# Financial trends
# --------------------------------------------------------------------------


@dataclass
class MonthlyTrend:
    year: int
    month: int
    label: str
    revenue: Decimal
    vat_total: Decimal
    invoice_count: int


@dataclass
class SupplierTotal:
    supplier: Supplier
    amount: Decimal


@dataclass
class RateShare:
    rate: Decimal
    amount: Decimal
    percentage: Decimal


@dataclass
class FinancialSummary:
    total_revenue: Decimal
    total_vat: Decimal
    monthly_trends: list[MonthlyTrend] = field(default_factory=list)
    top_suppliers: list[SupplierTotal] = field(default_factory=list)
    vat_by_rate: list[RateShare] = field(default_factory=list)


def top_suppliers(
    suppliers: Sequence[Supplier], invoices: Sequence[Invoice], limit: int = TOP_SUPPLIERS
) -> list[SupplierTotal]:
    """Suppliers ranked by invoiced total; ties keep their original order."""

    totals = [
        SupplierTotal(
            supplier=supplier,
            amount=_sum_totals(invoice for invoice in invoices if invoice.supplier_id == supplier.id),
        )
        for supplier in suppliers
    ]
    # sorted() is stable, also with reverse=True
    return sorted(totals, key=lambda item: item.amount, reverse=True)[:limit]


def vat_rate_shares(invoices: Sequence[Invoice]) -> list[RateShare]:
    """VAT per observed rate, ascending by rate, with its share of total VAT."""

    by_rate: dict[Decimal, Decimal] = {}
    for invoice in invoices:
        by_rate[invoice.vat_rate] = by_rate.get(invoice.vat_rate, ZERO) + invoice.vat_amount

    total_vat = _sum_vat(invoices)
    return [
        RateShare(
            rate=rate,
            amount=amount,
            percentage=_percentage(amount, total_vat) if total_vat > 0 else ZERO,
        )
        for rate, amount in sorted(by_rate.items())
    ]


def generate_financial_summary(
    invoices: Sequence[Invoice], suppliers: Sequence[Supplier], now: datetime | None = None
) -> FinancialSummary:
    """Revenue and VAT totals, a trailing 12-month series, top suppliers and rate shares."""

    now = resolve_now(now)

    trends: list[MonthlyTrend] = []
    for year, month in _trailing_months(now, FINANCIAL_TREND_MONTHS):
        in_month = [invoice for invoice in invoices if _in_month(invoice, year, month)]
        trends.append(
            MonthlyTrend(
                year=year,
                month=month,
                label=_month_abbr(month),
                revenue=_sum_totals(in_month),
                vat_total=_sum_vat(in_month),
                invoice_count=len(in_month),
            )
        )

    return FinancialSummary(
        total_revenue=_sum_totals(invoices),
        total_vat=_sum_vat(invoices),
        monthly_trends=trends,
        top_suppliers=top_suppliers(suppliers, invoices),
        vat_by_rate=vat_rate_shares(invoices),
    )


# --------------------------------------------------------------------------
# Dashboard helpers
# --------------------------------------------------------------------------


@dataclass
class DashboardOverview:
    total_suppliers: int
    pending_invoices: int
    monthly_vat: Decimal
    total_processed: Decimal


def dashboard_overview(
    suppliers: Sequence[Supplier], invoices: Sequence[Invoice], now: datetime | None = None
) -> DashboardOverview:
    now = resolve_now(now)
    return DashboardOverview(
        total_suppliers=len(suppliers),
        pending_invoices=sum(1 for invoice in invoices if invoice.status is InvoiceStatus.PENDING),
        monthly_vat=_sum_vat(invoice for invoice in invoices if _in_month(invoice, now.year, now.month)),
        total_processed=_sum_totals(invoices),
    )


def search_suppliers(suppliers: Sequence[Supplier], term: str = "") -> list[Supplier]:
    """Suppliers whose name, VAT number or contact person contains *term*.

    Matching is case-insensitive and keeps the input order.
    """

    needle = term.strip().lower()
    return [
        supplier
        for supplier in suppliers
        if needle in supplier.name.lower()
        or needle in supplier.vat_number.lower()
        or needle in supplier.contact_person.lower()
    ]


def search_invoices(
    invoices: Sequence[Invoice],
    suppliers: Sequence[Supplier],
    term: str = "",
    status: InvoiceStatus | None = None,
) -> list[Invoice]:
    """Filter by free text and stored status, newest first.

    *term* matches case-insensitively against the invoice number, the
    supplier name and the description.
    """

    needle = term.strip().lower()
    names = {supplier.id: supplier.name.lower() for supplier in suppliers}

    def _matches(invoice: Invoice) -> bool:
        if status is not None and invoice.status is not status:
            return False
        if not needle:
            return True
        return (
            needle in invoice.invoice_number.lower()
            or needle in names.get(invoice.supplier_id, "")
            or needle in invoice.description.lower()
        )

    return sorted((invoice for invoice in invoices if _matches(invoice)), key=lambda i: i.date, reverse=True)


__all__ = [
    "DashboardOverview",
    "FinancialSummary",
    "MonthlyTrend",
    "PaymentReport",
    "PaymentTrend",
    "RateShare",
    "SupplierReport",
    "SupplierTotal",
    "dashboard_overview",
    "generate_financial_summary",
    "generate_payment_report",
    "generate_supplier_reports",
    "search_invoices",
    "search_suppliers",
    "supplier_name",
    "top_suppliers",
    "vat_rate_shares",
]
