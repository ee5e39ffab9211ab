from __future__ import annotations

import copy
from datetime import datetime, timedelta, timezone
from decimal import Decimal

from vatledger.models import Invoice, InvoiceStatus, Supplier
from vatledger.reports import (
    dashboard_overview,
    generate_financial_summary,
    generate_payment_report,
    generate_supplier_reports,
    search_invoices,
    search_suppliers,
    supplier_name,
    top_suppliers,
    vat_rate_shares,
)

NOW = datetime(2024, 6, 15, 12, 0)


def _supplier(identifier: str, name: str | None = None) -> Supplier:
    return Supplier(id=identifier, name=name or f"Supplier {identifier}")


def _invoice(
    identifier: str,
    supplier_id: str,
    when: datetime,
    total: str,
    *,
    vat: str = "0",
    rate: str = "21",
    status: InvoiceStatus = InvoiceStatus.PENDING,
    due: datetime | None = None,
    description: str = "",
) -> Invoice:
    total_value = Decimal(total)
    vat_value = Decimal(vat)
    return Invoice(
        id=identifier,
        supplier_id=supplier_id,
        invoice_number=f"INV-{identifier}",
        date=when,
        due_date=due or when + timedelta(days=30),
        subtotal=total_value - vat_value,
        vat_rate=Decimal(rate),
        vat_amount=vat_value,
        total=total_value,
        status=status,
        description=description,
    )


# --------------------------------------------------------------------------
# Supplier performance
# --------------------------------------------------------------------------


def test_supplier_without_invoices_has_zeroed_metrics() -> None:
    reports = generate_supplier_reports([_supplier("s1")], [], NOW)

    assert len(reports) == 1
    report = reports[0]
    assert report.total_invoices == 0
    assert report.total_amount == 0
    assert report.average_invoice_value == 0
    assert report.payment_terms_compliance == 0
    assert report.last_invoice_date is None


def test_supplier_report_totals_and_last_date() -> None:
    suppliers = [_supplier("s1"), _supplier("s2")]
    invoices = [
        _invoice("1", "s1", datetime(2024, 1, 10), "121", vat="21"),
        _invoice("2", "s1", datetime(2024, 5, 2), "60.5", vat="10.5"),
        _invoice("3", "s1", datetime(2024, 3, 1), "100", vat="0"),
        _invoice("4", "s2", datetime(2024, 2, 1), "50", vat="5"),
    ]

    reports = generate_supplier_reports(suppliers, invoices, NOW)

    first, second = reports
    assert first.supplier.id == "s1"
    assert first.total_invoices == 3
    assert first.total_amount == Decimal("281.5")
    assert first.total_vat == Decimal("31.5")
    assert first.average_invoice_value == Decimal("281.5") / 3
    assert first.last_invoice_date == datetime(2024, 5, 2)
    assert second.total_invoices == 1
    assert [invoice.id for invoice in invoices] == ["1", "2", "3", "4"]


def test_payment_terms_compliance_is_measured_against_now() -> None:
    invoices = [
        # due in the future: compliant
        _invoice("1", "s1", datetime(2024, 6, 1), "10", status=InvoiceStatus.PAID, due=NOW + timedelta(days=5)),
        # due less than a day ago: still compliant
        _invoice("2", "s1", datetime(2024, 6, 1), "10", status=InvoiceStatus.PAID, due=NOW - timedelta(hours=5)),
        # due two days ago: not compliant
        _invoice("3", "s1", datetime(2024, 5, 1), "10", status=InvoiceStatus.PAID, due=NOW - timedelta(days=2)),
        # unpaid invoices do not count
        _invoice("4", "s1", datetime(2024, 5, 1), "10", due=NOW - timedelta(days=20)),
    ]

    (report,) = generate_supplier_reports([_supplier("s1")], invoices, NOW)

    assert report.payment_terms_compliance == Decimal(2) / Decimal(3) * 100


def test_payment_terms_compliance_without_paid_invoices_is_zero() -> None:
    invoices = [_invoice("1", "s1", datetime(2024, 6, 1), "10", status=InvoiceStatus.APPROVED)]

    (report,) = generate_supplier_reports([_supplier("s1")], invoices, NOW)

    assert report.payment_terms_compliance == 0


# --------------------------------------------------------------------------
# Payment status
# --------------------------------------------------------------------------


def test_payment_report_partitions_and_overdue() -> None:
    invoices = [
        _invoice("1", "s1", datetime(2024, 6, 1), "100", status=InvoiceStatus.PAID, due=NOW - timedelta(days=3)),
        _invoice("2", "s1", datetime(2024, 6, 2), "40", status=InvoiceStatus.PENDING, due=NOW + timedelta(days=3)),
        _invoice("3", "s1", datetime(2024, 5, 2), "25", status=InvoiceStatus.APPROVED, due=NOW - timedelta(days=1)),
        _invoice("4", "s1", datetime(2024, 4, 2), "7", status=InvoiceStatus.OVERDUE, due=NOW - timedelta(days=10)),
    ]

    report = generate_payment_report(invoices, NOW)

    assert report.total_paid == Decimal("100")
    assert report.total_pending == Decimal("65")
    assert report.overdue_count == 2
    assert report.overdue_amount == Decimal("32")


def test_payment_trends_cover_six_months_ending_now() -> None:
    invoices = [
        _invoice("1", "s1", datetime(2024, 6, 1), "100", status=InvoiceStatus.PAID),
        _invoice("2", "s1", datetime(2024, 6, 3), "40"),
        _invoice("3", "s1", datetime(2024, 1, 15), "25", status=InvoiceStatus.OVERDUE),
        _invoice("4", "s1", datetime(2023, 6, 15), "999", status=InvoiceStatus.PAID),
        _invoice("5", "s1", datetime(2023, 12, 31), "5"),
    ]

    trends = generate_payment_report(invoices, NOW).payment_trends

    assert [(trend.year, trend.month) for trend in trends] == [
        (2024, 1),
        (2024, 2),
        (2024, 3),
        (2024, 4),
        (2024, 5),
        (2024, 6),
    ]
    assert trends[0].label == "Jan 24"
    assert trends[0].pending_total == Decimal("25")
    assert trends[-1].paid_total == Decimal("100")
    assert trends[-1].pending_total == Decimal("40")
    assert all(trend.paid_total == 0 for trend in trends[1:-1])


def test_trailing_months_cross_year_boundary() -> None:
    now = datetime(2024, 2, 29, 8, 0)

    trends = generate_payment_report([], now).payment_trends

    assert [(trend.year, trend.month) for trend in trends][:2] == [(2023, 9), (2023, 10)]
    assert trends[-1].label == "Feb 24"


def test_empty_payment_report() -> None:
    report = generate_payment_report([], NOW)

    assert report.total_paid == 0
    assert report.total_pending == 0
    assert report.overdue_count == 0
    assert report.overdue_amount == 0
    assert len(report.payment_trends) == 6


# --------------------------------------------------------------------------
# Financial trends
# --------------------------------------------------------------------------


def test_financial_summary_monthly_series() -> None:
    invoices = [
        _invoice("1", "s1", datetime(2024, 6, 1), "121", vat="21"),
        _invoice("2", "s1", datetime(2024, 6, 20), "60.5", vat="10.5"),
        _invoice("3", "s1", datetime(2023, 7, 4), "10", vat="1"),
        _invoice("4", "s1", datetime(2023, 6, 30), "1000", vat="100"),
    ]

    summary = generate_financial_summary(invoices, [_supplier("s1")], NOW)

    assert summary.total_revenue == Decimal("1191.5")
    assert summary.total_vat == Decimal("132.5")
    assert len(summary.monthly_trends) == 12
    oldest, newest = summary.monthly_trends[0], summary.monthly_trends[-1]
    assert (oldest.year, oldest.month, oldest.label) == (2023, 7, "Jul")
    assert oldest.revenue == Decimal("10")
    assert (newest.year, newest.month) == (2024, 6)
    assert newest.revenue == Decimal("181.5")
    assert newest.vat_total == Decimal("31.5")
    assert newest.invoice_count == 2


def test_top_suppliers_are_limited_and_stable_on_ties() -> None:
    suppliers = [_supplier(f"s{index}") for index in range(1, 8)]
    amounts = {"s1": "50", "s2": "80", "s3": "50", "s4": "10", "s5": "50", "s6": "80", "s7": "50"}
    invoices = [
        _invoice(f"i{supplier_id}", supplier_id, datetime(2024, 6, 1), amount)
        for supplier_id, amount in amounts.items()
    ]

    ranking = top_suppliers(suppliers, invoices)

    assert [entry.supplier.id for entry in ranking] == ["s2", "s6", "s1", "s3", "s5"]
    assert ranking[0].amount == Decimal("80")


def test_vat_rate_shares_use_observed_rates() -> None:
    invoices = [
        _invoice("1", "s1", datetime(2024, 6, 1), "121", vat="21", rate="21"),
        _invoice("2", "s1", datetime(2024, 6, 1), "106", vat="6", rate="6"),
        _invoice("3", "s1", datetime(2024, 6, 1), "10.55", vat="0.55", rate="5.5"),
        _invoice("4", "s1", datetime(2024, 6, 1), "121", vat="21", rate="21"),
    ]

    shares = vat_rate_shares(invoices)

    assert [share.rate for share in shares] == [Decimal("5.5"), Decimal("6"), Decimal("21")]
    assert shares[2].amount == Decimal("42")
    assert shares[2].percentage == Decimal("42") / Decimal("48.55") * 100


def test_vat_rate_shares_with_zero_vat() -> None:
    invoices = [_invoice("1", "s1", datetime(2024, 6, 1), "40", vat="0", rate="0")]

    (share,) = vat_rate_shares(invoices)

    assert share.amount == 0
    assert share.percentage == 0


def test_empty_financial_summary() -> None:
    summary = generate_financial_summary([], [], NOW)

    assert summary.total_revenue == 0
    assert summary.total_vat == 0
    assert summary.top_suppliers == []
    assert summary.vat_by_rate == []
    assert all(trend.invoice_count == 0 for trend in summary.monthly_trends)


def test_reports_do_not_mutate_inputs() -> None:
    suppliers = [_supplier("s1"), _supplier("s2")]
    invoices = [
        _invoice("1", "s2", datetime(2024, 1, 1), "10", status=InvoiceStatus.PAID),
        _invoice("2", "s1", datetime(2024, 6, 1), "20"),
    ]
    snapshot = (copy.deepcopy(suppliers), copy.deepcopy(invoices))

    generate_supplier_reports(suppliers, invoices, NOW)
    generate_payment_report(invoices, NOW)
    generate_financial_summary(invoices, suppliers, NOW)

    assert (suppliers, invoices) == snapshot


# --------------------------------------------------------------------------
# Dashboard helpers
# --------------------------------------------------------------------------


def test_dashboard_overview_counts_current_month_only() -> None:
    invoices = [
        _invoice("1", "s1", datetime(2024, 6, 2), "121", vat="21"),
        _invoice("2", "s1", datetime(2023, 6, 2), "60.5", vat="10.5"),
        _invoice("3", "s1", datetime(2024, 5, 2), "10", vat="1", status=InvoiceStatus.PAID),
    ]

    overview = dashboard_overview([_supplier("s1")], invoices, NOW)

    assert overview.total_suppliers == 1
    assert overview.pending_invoices == 2
    assert overview.monthly_vat == Decimal("21")
    assert overview.total_processed == Decimal("191.5")


def test_search_invoices_matches_supplier_name_and_sorts_newest_first() -> None:
    suppliers = [_supplier("s1", "Acme Office"), _supplier("s2", "Globex")]
    invoices = [
        _invoice("1", "s1", datetime(2024, 1, 1), "10"),
        _invoice("2", "s2", datetime(2024, 2, 1), "10", description="Acme-branded paper"),
        _invoice("3", "s1", datetime(2024, 3, 1), "10", status=InvoiceStatus.PAID),
        _invoice("4", "s2", datetime(2024, 4, 1), "10"),
    ]

    found = search_invoices(invoices, suppliers, "acme")
    assert [invoice.id for invoice in found] == ["3", "2", "1"]

    paid = search_invoices(invoices, suppliers, status=InvoiceStatus.PAID)
    assert [invoice.id for invoice in paid] == ["3"]

    by_number = search_invoices(invoices, suppliers, "inv-4")
    assert [invoice.id for invoice in by_number] == ["4"]


def test_supplier_name_falls_back_for_dangling_reference() -> None:
    suppliers = [_supplier("s1", "Acme")]

    assert supplier_name(suppliers, "s1") == "Acme"
    assert supplier_name(suppliers, "gone") == "Unknown Supplier"


def test_search_suppliers_matches_name_vat_number_and_contact() -> None:
    suppliers = [
        Supplier(id="s1", name="Acme Office", vat_number="BE0123456789", contact_person="Jane Roe"),
        Supplier(id="s2", name="Globex", vat_number="NL999", contact_person="Acme liaison"),
        Supplier(id="s3", name="Initech", vat_number="", contact_person=""),
    ]

    assert [supplier.id for supplier in search_suppliers(suppliers, "ACME")] == ["s1", "s2"]
    assert [supplier.id for supplier in search_suppliers(suppliers, "be0123")] == ["s1"]
    assert [supplier.id for supplier in search_suppliers(suppliers, "roe")] == ["s1"]
    assert search_suppliers(suppliers, "") == suppliers
    assert search_suppliers(suppliers, "umbrella") == []


def test_timezone_aware_now_is_compared_in_utc() -> None:
    supplier = _supplier("s1")
    invoices = [
        _invoice("1", "s1", datetime(2024, 5, 1), "121", vat="21", due=datetime(2024, 5, 31, 23, 0)),
        _invoice("2", "s1", datetime(2024, 6, 1), "50", status=InvoiceStatus.PAID, due=datetime(2024, 6, 1)),
    ]
    # 01:30 at UTC+2 is 23:30 UTC on 31 May
    aware_now = datetime(2024, 6, 1, 1, 30, tzinfo=timezone(timedelta(hours=2)))

    payment = generate_payment_report(invoices, aware_now)
    assert payment.overdue_count == 1
    assert payment.payment_trends[-1].label == "May 24"

    (report,) = generate_supplier_reports([supplier], invoices, aware_now)
    assert report.payment_terms_compliance == Decimal("100")

    financial = generate_financial_summary(invoices, [supplier], aware_now)
    assert (financial.monthly_trends[-1].year, financial.monthly_trends[-1].month) == (2024, 5)

    assert dashboard_overview([supplier], invoices, aware_now).monthly_vat == Decimal("21")
