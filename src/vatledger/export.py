"""Text and Excel renditions of VAT summaries and reports."""

from __future__ import annotations

import re
from datetime import datetime
from pathlib import Path
from typing import Sequence

from openpyxl import Workbook

from .models import Supplier
from .reports import FinancialSummary, PaymentReport, SupplierReport, supplier_name
from .utils import fmt2, fmt_rate
from .vat import VATReport

REPORT_SUPPLIER = "Supplier Performance"
REPORT_PAYMENT = "Payment Analysis"
REPORT_FINANCIAL = "Financial Summary"
REPORT_TYPES = (REPORT_SUPPLIER, REPORT_PAYMENT, REPORT_FINANCIAL)

DEFAULT_CURRENCY = "€"


def _stamp(value: datetime) -> str:
    return f"{value:%Y-%m-%d %H:%M:%S}"


def _day(value: datetime | None) -> str:
    return f"{value:%Y-%m-%d}" if value is not None else "N/A"


def _slug(text: str) -> str:
    return re.sub(r"[^a-z0-9]+", "-", text.lower()).strip("-")


def default_report_filename(
    kind: str, generated_at: datetime, suffix: str = "txt", *, period: str | None = None
) -> str:
    """``<kind>-report[-<period>]-YYYY-MM-DD.<suffix>`` with slugified parts."""

    parts = [_slug(kind), "report"]
    if period:
        parts.append(_slug(period))
    parts.append(f"{generated_at:%Y-%m-%d}")
    return "-".join(parts) + f".{suffix}"


def export_vat_report(
    report: VATReport,
    *,
    suppliers: Sequence[Supplier] | None = None,
    currency: str = DEFAULT_CURRENCY,
) -> str:
    """Render *report* as a header block followed by comma-separated rows.

    When *suppliers* is given the supplier column carries names, otherwise
    the raw supplier ids.
    """

    summary = report.summary
    lines = [
        "VAT Report",
        f"Generated: {_stamp(report.generated_at)}",
        f"Period: {summary.period}",
        "",
        "Summary:",
        f"Total Invoices: {summary.invoice_count}",
        f"Total Subtotal: {currency}{fmt2(summary.total_subtotal)}",
        f"Total VAT: {currency}{fmt2(summary.total_vat)}",
        f"Total Amount: {currency}{fmt2(summary.total_amount)}",
        "",
        "VAT by Rate:",
    ]

    for rate in sorted(summary.vat_by_rate):
        bucket = summary.vat_by_rate[rate]
        lines.append(
            f"{fmt_rate(rate)}%: {currency}{fmt2(bucket.vat)} "
            f"({bucket.count} invoices, {currency}{fmt2(bucket.subtotal)} subtotal)"
        )

    lines.extend(["", "Invoice Details:"])
    lines.append("Invoice Number,Date,Supplier,Subtotal,VAT Rate,VAT Amount,Total")
    for invoice in report.invoices:
        supplier = (
            supplier_name(suppliers, invoice.supplier_id) if suppliers is not None else invoice.supplier_id
        )
        lines.append(
            ",".join(
                [
                    invoice.invoice_number,
                    _day(invoice.date),
                    supplier,
                    fmt2(invoice.subtotal),
                    f"{fmt_rate(invoice.vat_rate)}%",
                    fmt2(invoice.vat_amount),
                    fmt2(invoice.total),
                ]
            )
        )

    return "\n".join(lines)


def _supplier_lines(reports: Sequence[SupplierReport], currency: str) -> list[str]:
    lines = ["Supplier,Total Invoices,Total Amount,Average Invoice,Last Invoice,Payment Compliance"]
    for item in reports:
        lines.append(
            f"{item.supplier.name},{item.total_invoices},{currency}{fmt2(item.total_amount)},"
            f"{currency}{fmt2(item.average_invoice_value)},{_day(item.last_invoice_date)},"
            f"{item.payment_terms_compliance:.1f}%"
        )
    return lines


def _payment_lines(report: PaymentReport, currency: str) -> list[str]:
    lines = [
        f"Total Paid: {currency}{fmt2(report.total_paid)}",
        f"Total Pending: {currency}{fmt2(report.total_pending)}",
        f"Overdue Invoices: {report.overdue_count}",
        f"Overdue Amount: {currency}{fmt2(report.overdue_amount)}",
        "",
        "Monthly Trends:",
        "Month,Paid,Pending",
    ]
    for trend in report.payment_trends:
        lines.append(f"{trend.label},{currency}{fmt2(trend.paid_total)},{currency}{fmt2(trend.pending_total)}")
    return lines


def _financial_lines(summary: FinancialSummary, currency: str) -> list[str]:
    lines = [
        f"Total Revenue: {currency}{fmt2(summary.total_revenue)}",
        f"Total VAT: {currency}{fmt2(summary.total_vat)}",
        "",
        "Top Suppliers:",
    ]
    for entry in summary.top_suppliers:
        lines.append(f"{entry.supplier.name}: {currency}{fmt2(entry.amount)}")
    lines.extend(["", "VAT by Rate:", "Rate,Amount,Share"])
    for share in summary.vat_by_rate:
        lines.append(f"{fmt_rate(share.rate)}%,{currency}{fmt2(share.amount)},{share.percentage:.1f}%")
    return lines


def export_report(
    report_type: str,
    data: Sequence[SupplierReport] | PaymentReport | FinancialSummary,
    *,
    generated_at: datetime | None = None,
    currency: str = DEFAULT_CURRENCY,
) -> str:
    """Render one of :data:`REPORT_TYPES` as text.

    Raises ``ValueError`` for an unknown *report_type*.
    """

    generated_at = generated_at or datetime.now()
    header = [f"{report_type} Report", f"Generated: {_stamp(generated_at)}", ""]

    if report_type == REPORT_SUPPLIER:
        body = _supplier_lines(data, currency)  # type: ignore[arg-type]
    elif report_type == REPORT_PAYMENT:
        body = _payment_lines(data, currency)  # type: ignore[arg-type]
    elif report_type == REPORT_FINANCIAL:
        body = _financial_lines(data, currency)  # type: ignore[arg-type]
    else:
        raise ValueError(f"Unknown report type: {report_type}")

    return "\n".join(header + body) + "\n"


# --------------------------------------------------------------------------
# Excel
# --------------------------------------------------------------------------


def write_vat_workbook(
    report: VATReport,
    destination: Path,
    *,
    suppliers: Sequence[Supplier] | None = None,
) -> Path:
    """Write *report* to an Excel workbook with a summary and a detail sheet."""

    destination.parent.mkdir(parents=True, exist_ok=True)
    summary = report.summary

    workbook = Workbook()
    summary_ws = workbook.active
    summary_ws.title = "Summary"
    summary_ws.append(["Period", summary.period])
    summary_ws.append(["Generated", report.generated_at])
    summary_ws.append([])
    summary_ws.append(["VAT Rate", "Invoices", "Subtotal", "VAT"])
    for rate in sorted(summary.vat_by_rate):
        bucket = summary.vat_by_rate[rate]
        summary_ws.append([float(rate), bucket.count, bucket.subtotal, bucket.vat])
    summary_ws.append([])
    summary_ws.append(["Totals", summary.invoice_count, summary.total_subtotal, summary.total_vat])
    summary_ws.append(["Total Amount", None, None, summary.total_amount])

    detail_ws = workbook.create_sheet(title="Invoices")
    detail_ws.append(["Invoice Number", "Date", "Supplier", "Subtotal", "VAT Rate", "VAT Amount", "Total"])
    for invoice in report.invoices:
        supplier = (
            supplier_name(suppliers, invoice.supplier_id) if suppliers is not None else invoice.supplier_id
        )
        detail_ws.append(
            [
                invoice.invoice_number,
                invoice.date,
                supplier,
                invoice.subtotal,
                float(invoice.vat_rate),
                invoice.vat_amount,
                invoice.total,
            ]
        )

    workbook.save(destination)
    return destination


def write_reports_workbook(
    destination: Path,
    *,
    supplier_reports: Sequence[SupplierReport] | None = None,
    payment_report: PaymentReport | None = None,
    financial_summary: FinancialSummary | None = None,
) -> Path:
    """Write whichever reports are given, one sheet each."""

    destination.parent.mkdir(parents=True, exist_ok=True)
    workbook = Workbook()
    workbook.remove(workbook.active)

    if supplier_reports is not None:
        ws = workbook.create_sheet(title="Suppliers")
        ws.append(
            [
                "Supplier",
                "Total Invoices",
                "Total Amount",
                "Total VAT",
                "Average Invoice",
                "Last Invoice",
                "Payment Compliance (%)",
            ]
        )
        for item in supplier_reports:
            ws.append(
                [
                    item.supplier.name,
                    item.total_invoices,
                    item.total_amount,
                    item.total_vat,
                    item.average_invoice_value,
                    item.last_invoice_date,
                    item.payment_terms_compliance,
                ]
            )

    if payment_report is not None:
        ws = workbook.create_sheet(title="Payments")
        ws.append(["Total Paid", payment_report.total_paid])
        ws.append(["Total Pending", payment_report.total_pending])
        ws.append(["Overdue Invoices", payment_report.overdue_count])
        ws.append(["Overdue Amount", payment_report.overdue_amount])
        ws.append([])
        ws.append(["Month", "Paid", "Pending"])
        for trend in payment_report.payment_trends:
            ws.append([trend.label, trend.paid_total, trend.pending_total])

    if financial_summary is not None:
        ws = workbook.create_sheet(title="Financial")
        ws.append(["Total Revenue", financial_summary.total_revenue])
        ws.append(["Total VAT", financial_summary.total_vat])
        ws.append([])
        ws.append(["Month", "Revenue", "VAT", "Invoices"])
        for trend in financial_summary.monthly_trends:
            ws.append([f"{trend.year}-{trend.month:02d}", trend.revenue, trend.vat_total, trend.invoice_count])
        ws.append([])
        ws.append(["Top Supplier", "Amount"])
        for entry in financial_summary.top_suppliers:
            ws.append([entry.supplier.name, entry.amount])
        ws.append([])
        ws.append(["VAT Rate", "Amount", "Share (%)"])
        for share in financial_summary.vat_by_rate:
            ws.append([float(share.rate), share.amount, share.percentage])

    if not workbook.sheetnames:
        raise ValueError("No report given to write")

    workbook.save(destination)
    return destination


__all__ = [
    "DEFAULT_CURRENCY",
    "REPORT_FINANCIAL",
    "REPORT_PAYMENT",
    "REPORT_SUPPLIER",
    "REPORT_TYPES",
    "default_report_filename",
    "export_report",
    "export_vat_report",
    "write_reports_workbook",
    "write_vat_workbook",
]
