"""Compute the VAT summary of a month, quarter or year."""

from __future__ import annotations

import argparse
import logging
import sys
from datetime import datetime
from pathlib import Path
from typing import Sequence

from ..config import load_settings
from ..export import default_report_filename, export_vat_report, write_vat_workbook
from ..logging import configure_logging
from ..models import RecordValidationError
from ..store import JsonRecordStore, StoreError
from ..vat import (
    build_vat_report,
    get_current_month_vat,
    get_monthly_vat,
    get_quarterly_vat,
    get_yearly_vat,
)

LOGGER = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Print or save the VAT summary of the invoices in a period."
    )
    parser.add_argument("--data", type=Path, help="JSON store with suppliers and invoices")
    parser.add_argument("--year", type=int, help="Year of the period (default: current year)")
    period = parser.add_mutually_exclusive_group()
    period.add_argument("--month", type=int, choices=range(1, 13), metavar="1-12")
    period.add_argument("--quarter", type=int, choices=range(1, 5), metavar="1-4")
    period.add_argument("--yearly", action="store_true", help="Summarise the whole year")
    parser.add_argument("--xlsx", action="store_true", help="Write an Excel workbook instead of text")
    parser.add_argument("--output-dir", type=Path, help="Folder for the generated file")
    return parser


def main(argv: Sequence[str] | None = None, *, now: datetime | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    settings = load_settings().with_overrides(data_file=args.data, output_dir=args.output_dir)
    configure_logging(settings.log_dir, settings.log_level)
    now = now or datetime.now()
    year = args.year or now.year

    store = JsonRecordStore(settings.data_file)
    try:
        suppliers = store.list_suppliers()
        invoices = store.list_invoices()
    except (StoreError, RecordValidationError) as exc:
        LOGGER.error("Cannot load records: %s", exc)
        print(f"Error: {exc}", file=sys.stderr)
        return 1

    if args.month:
        summary = get_monthly_vat(invoices, year, args.month)
    elif args.quarter:
        summary = get_quarterly_vat(invoices, year, args.quarter)
    elif args.yearly:
        summary = get_yearly_vat(invoices, year)
    elif args.year:
        summary = get_monthly_vat(invoices, year, now.month)
    else:
        summary = get_current_month_vat(invoices, now)

    report = build_vat_report(invoices, summary, generated_at=now)
    LOGGER.info("VAT summary for %s: %d invoice(s)", summary.period, summary.invoice_count)

    if args.xlsx:
        destination = settings.output_dir / default_report_filename("vat", now, "xlsx", period=summary.period)
        write_vat_workbook(report, destination, suppliers=suppliers)
        print(f"VAT report saved to: {destination}")
    else:
        print(export_vat_report(report, suppliers=suppliers, currency=settings.currency))

    return 0


if __name__ == "__main__":  # pragma: no cover - direct execution
    raise SystemExit(main())
