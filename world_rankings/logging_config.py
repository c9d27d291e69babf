"""Root logger setup for the Shiny app.

Records are written to stderr either as JSON objects (the default) or as
plain text lines for local development.
"""

from __future__ import annotations

import logging
import os
from typing import Optional

from pythonjsonlogger.json import JsonFormatter

from .config import (
    DEFAULT_LOG_FORMAT,
    LOG_FIELDS,
    LOG_FORMAT_ENV,
    LOG_LEVEL_ENV,
    PLAIN_LOG_FORMAT,
)


def _build_formatter(log_format: str) -> logging.Formatter:
    if log_format == "plain":
        return logging.Formatter(PLAIN_LOG_FORMAT)
    return JsonFormatter(LOG_FIELDS, rename_fields={"levelname": "level"})


def configure_logging(
    level: Optional[int | str] = None, log_format: Optional[str] = None
) -> None:
    """Install a single stderr handler on the root logger.

    Parameters
    ----------
    level : int or str, optional
        Logging level.  Falls back to the ``WORLD_RANKINGS_LOG_LEVEL``
        environment variable, then ``INFO``.
    log_format : {"json", "plain"}, optional
        Output format.  Falls back to ``WORLD_RANKINGS_LOG_FORMAT``, then
        ``"json"``.
    """
    if level is None:
        level = os.getenv(LOG_LEVEL_ENV, "INFO").upper()
    if log_format is None:
        log_format = os.getenv(LOG_FORMAT_ENV, DEFAULT_LOG_FORMAT)

    handler = logging.StreamHandler()
    handler.setFormatter(_build_formatter(log_format.lower()))

    root = logging.getLogger()
    root.setLevel(level)
    # Replace any existing handlers to avoid duplicate logs
    root.handlers.clear()
    root.addHandler(handler)
