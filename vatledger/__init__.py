"""Compatibility package to expose the project modules without installation."""

from __future__ import annotations

import importlib.util
import sys
from pathlib import Path

_pkg_dir = Path(__file__).resolve().parent.parent / "src" / "vatledger"
_spec = importlib.util.spec_from_file_location(
    __name__,
    _pkg_dir / "__init__.py",
    submodule_search_locations=[str(_pkg_dir)],
)
if _spec is None or _spec.loader is None:
    raise ImportError(f"Cannot load vatledger from {_pkg_dir}")
_module = importlib.util.module_from_spec(_spec)
sys.modules[__name__] = _module
_spec.loader.exec_module(_module)
