"""Logging setup shared by the CLI, the import/export workflow and the store."""
from __future__ import annotations

import logging
import os

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def configure_logging(level: str | None = None) -> None:
    """Initialize basic logging with a shared format and log level.

    ``level`` wins over the ``LOG_LEVEL`` environment variable, which
    defaults to ``INFO``. openpyxl reports odd workbook styling through the
    ``warnings`` module; those are routed into the log as well.
    """

    resolved_level = (level or os.getenv("LOG_LEVEL", "INFO")).upper()
    logging.basicConfig(level=resolved_level, format=LOG_FORMAT)
    logging.captureWarnings(True)
