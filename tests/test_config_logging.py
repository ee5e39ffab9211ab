from __future__ import annotations

import logging
from pathlib import Path

import pytest

from vatledger.config import Settings, load_settings
from vatledger.logging import LOG_FILENAME, PACKAGE_LOGGER, configure_logging


@pytest.fixture(autouse=True)
def _reset_package_logger():
    logger = logging.getLogger(PACKAGE_LOGGER)
    yield
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.propagate = True
    logger.setLevel(logging.NOTSET)


def test_load_settings_defaults() -> None:
    settings = load_settings({})

    assert settings == Settings()
    assert settings.data_file == Path("data") / "vatledger.json"
    assert settings.currency == "€"


def test_load_settings_reads_environment() -> None:
    settings = load_settings(
        {
            "VATLEDGER_DATA_FILE": "/srv/ledger.json",
            "VATLEDGER_OUTPUT_DIR": "/srv/out",
            "VATLEDGER_LOG_LEVEL": "debug",
            "VATLEDGER_CURRENCY": "$",
            "VATLEDGER_LOG_DIR": "   ",
        }
    )

    assert settings.data_file == Path("/srv/ledger.json")
    assert settings.output_dir == Path("/srv/out")
    assert settings.log_level == "DEBUG"
    assert settings.currency == "$"
    assert settings.log_dir == Settings().log_dir


def test_with_overrides_ignores_none() -> None:
    settings = Settings().with_overrides(data_file=Path("other.json"), output_dir=None)

    assert settings.data_file == Path("other.json")
    assert settings.output_dir == Settings().output_dir


def test_configure_logging_writes_to_file(tmp_path: Path) -> None:
    logger = configure_logging(tmp_path / "logs", "warning")
    configure_logging(tmp_path / "logs", "debug")

    assert len(logger.handlers) == 1
    assert logger.level == logging.DEBUG

    logging.getLogger("vatledger.store").warning("Store unavailable")
    for handler in logger.handlers:
        handler.flush()

    content = (tmp_path / "logs" / LOG_FILENAME).read_text(encoding="utf-8")
    assert "WARNING [vatledger.store] Store unavailable" in content
