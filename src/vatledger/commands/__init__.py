"""Command implementations exposed through :mod:`vatledger.cli`."""

__all__ = ["report", "vat"]
