"""Generate supplier, payment or financial reports from the record store."""

from __future__ import annotations

import argparse
import logging
import sys
from datetime import datetime
from pathlib import Path
from typing import Sequence

from ..config import load_settings
from ..export import (
    REPORT_FINANCIAL,
    REPORT_PAYMENT,
    REPORT_SUPPLIER,
    default_report_filename,
    export_report,
    write_reports_workbook,
)
from ..logging import configure_logging
from ..models import RecordValidationError
from ..reports import (
    generate_financial_summary,
    generate_payment_report,
    generate_supplier_reports,
)
from ..store import JsonRecordStore, StoreError

LOGGER = logging.getLogger(__name__)

REPORT_CHOICES = {
    "supplier": REPORT_SUPPLIER,
    "payment": REPORT_PAYMENT,
    "financial": REPORT_FINANCIAL,
}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Generate supplier performance, payment or financial reports."
    )
    parser.add_argument("--data", type=Path, help="JSON store with suppliers and invoices")
    parser.add_argument("--type", dest="report_type", choices=sorted(REPORT_CHOICES), required=True)
    parser.add_argument("--xlsx", action="store_true", help="Write an Excel workbook instead of text")
    parser.add_argument("--output-dir", type=Path, help="Folder for the generated file")
    return parser


def main(argv: Sequence[str] | None = None, *, now: datetime | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    settings = load_settings().with_overrides(data_file=args.data, output_dir=args.output_dir)
    configure_logging(settings.log_dir, settings.log_level)
    now = now or datetime.now()

    store = JsonRecordStore(settings.data_file)
    try:
        suppliers = store.list_suppliers()
        invoices = store.list_invoices()
    except (StoreError, RecordValidationError) as exc:
        LOGGER.error("Cannot load records: %s", exc)
        print(f"Error: {exc}", file=sys.stderr)
        return 1

    report_type = REPORT_CHOICES[args.report_type]
    if args.report_type == "supplier":
        data = generate_supplier_reports(suppliers, invoices, now)
        sheets = {"supplier_reports": data}
    elif args.report_type == "payment":
        data = generate_payment_report(invoices, now)
        sheets = {"payment_report": data}
    else:
        data = generate_financial_summary(invoices, suppliers, now)
        sheets = {"financial_summary": data}
    LOGGER.info("%s report generated over %d invoice(s)", report_type, len(invoices))

    if args.xlsx:
        destination = settings.output_dir / default_report_filename(report_type, now, "xlsx")
        write_reports_workbook(destination, **sheets)
        print(f"{report_type} report saved to: {destination}")
    else:
        print(export_report(report_type, data, generated_at=now, currency=settings.currency), end="")

    return 0


if __name__ == "__main__":  # pragma: no cover - direct execution
    raise SystemExit(main())
