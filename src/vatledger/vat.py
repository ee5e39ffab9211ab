"""Period VAT summaries over invoice collections.

Every function here is pure: invoices are read, never modified, and the
clock is only consulted by :func:`get_current_month_vat` when no ``now`` is
given.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import date, datetime
from decimal import Decimal
from typing import Iterable, Sequence

from .models import Invoice
from .utils import end_of_day, last_day_of_month, naive_utc, resolve_now, start_of_day

MONTH_NAMES = (
    "January",
    "February",
    "March",
    "April",
    "May",
    "June",
    "July",
    "August",
    "September",
    "October",
    "November",
    "December",
)


@dataclass
class RateTotals:
    """Aggregate of the invoices sharing one VAT rate."""

    vat: Decimal = field(default_factory=lambda: Decimal("0"))
    subtotal: Decimal = field(default_factory=lambda: Decimal("0"))
    count: int = 0

    def add(self, invoice: Invoice) -> None:
        self.vat += invoice.vat_amount
        self.subtotal += invoice.subtotal
        self.count += 1


@dataclass
class VATSummary:
    """Totals for the invoices dated inside ``[start, end]``."""

    period: str
    start: datetime
    end: datetime
    total_vat: Decimal = field(default_factory=lambda: Decimal("0"))
    total_subtotal: Decimal = field(default_factory=lambda: Decimal("0"))
    total_amount: Decimal = field(default_factory=lambda: Decimal("0"))
    invoice_count: int = 0
    vat_by_rate: dict[Decimal, RateTotals] = field(default_factory=dict)
    suppliers: list[str] = field(default_factory=list)


@dataclass
class VATReport:
    """A summary bundled with the invoices it covers, ready for export."""

    summary: VATSummary
    invoices: list[Invoice]
    generated_at: datetime


def period_label(start: datetime, end: datetime) -> str:
    return f"{start:%Y-%m-%d} - {end:%Y-%m-%d}"


def invoices_in_period(invoices: Iterable[Invoice], start: datetime, end: datetime) -> list[Invoice]:
    """Invoices whose date lies in ``[start, end]``, both bounds inclusive."""

    return [invoice for invoice in invoices if start <= invoice.date <= end]


def calculate_vat_for_period(invoices: Iterable[Invoice], start: datetime, end: datetime) -> VATSummary:
    """Summarise the VAT of the invoices dated between *start* and *end*.

    The comparison is done at full timestamp precision. Each invoice is
    counted once, under its own rate.
    """

    start, end = naive_utc(start), naive_utc(end)
    summary = VATSummary(period=period_label(start, end), start=start, end=end)
    seen_suppliers: set[str] = set()

    for invoice in invoices_in_period(invoices, start, end):
        summary.total_vat += invoice.vat_amount
        summary.total_subtotal += invoice.subtotal
        summary.total_amount += invoice.total
        summary.invoice_count += 1

        if invoice.supplier_id not in seen_suppliers:
            seen_suppliers.add(invoice.supplier_id)
            summary.suppliers.append(invoice.supplier_id)

        if invoice.vat_rate not in summary.vat_by_rate:
            summary.vat_by_rate[invoice.vat_rate] = RateTotals()
        summary.vat_by_rate[invoice.vat_rate].add(invoice)

    return summary


def _check_month(month: int) -> None:
    if not 1 <= month <= 12:
        raise ValueError(f"Month must be between 1 and 12, got {month}")


def month_window(year: int, month: int) -> tuple[datetime, datetime]:
    """First moment and last moment of *month* (1-12) in *year*."""

    _check_month(month)
    first = start_of_day(date(year, month, 1))
    return first, end_of_day(last_day_of_month(year, month))


def quarter_window(year: int, quarter: int) -> tuple[datetime, datetime]:
    """Window for *quarter* (1-4): Q1 is January to March."""

    if not 1 <= quarter <= 4:
        raise ValueError(f"Quarter must be between 1 and 4, got {quarter}")
    first_month = (quarter - 1) * 3 + 1
    start, _ = month_window(year, first_month)
    _, end = month_window(year, first_month + 2)
    return start, end


def year_window(year: int) -> tuple[datetime, datetime]:
    start, _ = month_window(year, 1)
    _, end = month_window(year, 12)
    return start, end


def get_monthly_vat(invoices: Iterable[Invoice], year: int, month: int) -> VATSummary:
    start, end = month_window(year, month)
    summary = calculate_vat_for_period(invoices, start, end)
    return replace(summary, period=f"{MONTH_NAMES[month - 1]} {year}")


def get_quarterly_vat(invoices: Iterable[Invoice], year: int, quarter: int) -> VATSummary:
    start, end = quarter_window(year, quarter)
    summary = calculate_vat_for_period(invoices, start, end)
    return replace(summary, period=f"Q{quarter} {year}")


def get_yearly_vat(invoices: Iterable[Invoice], year: int) -> VATSummary:
    start, end = year_window(year)
    summary = calculate_vat_for_period(invoices, start, end)
    return replace(summary, period=str(year))


def get_current_month_vat(invoices: Iterable[Invoice], now: datetime | None = None) -> VATSummary:
    """Monthly summary for the month containing *now* (the clock by default)."""

    now = resolve_now(now)
    return get_monthly_vat(invoices, now.year, now.month)


def build_vat_report(
    invoices: Sequence[Invoice], summary: VATSummary, *, generated_at: datetime | None = None
) -> VATReport:
    """Bundle *summary* with the invoices of its period for export."""

    return VATReport(
        summary=summary,
        invoices=invoices_in_period(invoices, summary.start, summary.end),
        generated_at=generated_at or datetime.now(),
    )


def rate_totals_sum(summary: VATSummary) -> RateTotals:
    """Sum of every rate bucket; matches the summary totals."""

    combined = RateTotals()
    for bucket in summary.vat_by_rate.values():
        combined.vat += bucket.vat
        combined.subtotal += bucket.subtotal
        combined.count += bucket.count
    return combined


__all__ = [
    "MONTH_NAMES",
    "RateTotals",
    "VATReport",
    "VATSummary",
    "build_vat_report",
    "calculate_vat_for_period",
    "get_current_month_vat",
    "get_monthly_vat",
    "get_quarterly_vat",
    "get_yearly_vat",
    "invoices_in_period",
    "month_window",
    "period_label",
    "quarter_window",
    "rate_totals_sum",
    "year_window",
]
