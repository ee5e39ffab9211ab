#!/usr/bin/env python3
"""Wrapper for the VAT summary command."""

from __future__ import annotations

import sys
from pathlib import Path

# Make the ``src`` package importable when run straight from the repository
# without installing it first.
_PROJECT_ROOT = Path(__file__).resolve().parents[1]
_SRC_PATH = _PROJECT_ROOT / "src"
if _SRC_PATH.exists() and str(_SRC_PATH) not in sys.path:
    sys.path.insert(0, str(_SRC_PATH))

from vatledger.commands.vat import main

if __name__ == "__main__":  # pragma: no cover - direct execution
    raise SystemExit(main())
