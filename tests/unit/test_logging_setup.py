"""Unit tests for loguru sink configuration."""

import sys

from loguru import logger

from chitfund.config.settings import settings
from chitfund.logging_setup import setup_logging


def test_file_sink(tmp_path, monkeypatch):
    log_file = tmp_path / "chitfund.log"
    monkeypatch.setattr(settings, "log_file", str(log_file))

    try:
        setup_logging()
        assert log_file.exists()
    finally:
        logger.remove()
        logger.add(sys.stderr)


def test_stderr_only(monkeypatch):
    monkeypatch.setattr(settings, "log_file", None)

    try:
        setup_logging()
    finally:
        logger.remove()
        logger.add(sys.stderr)
