"""Supplier invoice tracking, VAT summaries and reporting.

The aggregation engine lives in :mod:`vatledger.vat` and
:mod:`vatledger.reports`; it works on the typed records of
:mod:`vatledger.models` as returned by a :mod:`vatledger.store` backend.
"""

__version__ = "0.1.0"

__all__ = [
    "cli",
    "commands",
    "config",
    "export",
    "logging",
    "models",
    "reports",
    "store",
    "utils",
    "vat",
]
