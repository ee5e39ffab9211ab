"""Runtime settings read from the environment."""

from __future__ import annotations

import os
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Mapping

ENV_PREFIX = "VATLEDGER_"

DEFAULT_DATA_FILE = Path("data") / "vatledger.json"
DEFAULT_OUTPUT_DIR = Path("work") / "reports"
DEFAULT_LOG_DIR = Path("work") / "logs"


@dataclass(frozen=True)
class Settings:
    """Locations and presentation options shared by the commands."""

    data_file: Path = DEFAULT_DATA_FILE
    output_dir: Path = DEFAULT_OUTPUT_DIR
    log_dir: Path = DEFAULT_LOG_DIR
    log_level: str = "INFO"
    currency: str = "€"

    def with_overrides(self, **overrides: object) -> "Settings":
        """Return a copy with every non-``None`` override applied."""

        values = {key: value for key, value in overrides.items() if value is not None}
        return replace(self, **values)


def load_settings(environ: Mapping[str, str] | None = None) -> Settings:
    """Build :class:`Settings` from ``VATLEDGER_*`` environment variables."""

    env = os.environ if environ is None else environ

    def _get(name: str) -> str | None:
        value = env.get(ENV_PREFIX + name, "").strip()
        return value or None

    settings = Settings()
    return settings.with_overrides(
        data_file=Path(_get("DATA_FILE")) if _get("DATA_FILE") else None,
        output_dir=Path(_get("OUTPUT_DIR")) if _get("OUTPUT_DIR") else None,
        log_dir=Path(_get("LOG_DIR")) if _get("LOG_DIR") else None,
        log_level=_get("LOG_LEVEL").upper() if _get("LOG_LEVEL") else None,
        currency=_get("CURRENCY"),
    )


__all__ = ["ENV_PREFIX", "Settings", "load_settings"]
