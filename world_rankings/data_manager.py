"""Data manager for loading and caching the flat row set.

This module owns the only long-lived data of the application: the
flattened rows, computed once per dataset source and reused by every
pipeline run.  The cache lives in memory only; nothing is written to disk.
"""

import logging
from pathlib import Path
from functools import lru_cache
from typing import Union

import pandas as pd

from . import pipeline
from .config import DATA_SOURCE
from .loader import load_raw_countries

logger = logging.getLogger(__name__)


@lru_cache(maxsize=4)
def _compute_flat_rows(source: str) -> pd.DataFrame:
    """Loads and flattens the raw dataset."""
    raw = load_raw_countries(source)
    rows = pipeline.flatten(raw)
    logger.info("Flattened %d countries into %d rows", len(raw), len(rows))
    return rows


def load_rows(
    source: Union[str, Path] = DATA_SOURCE, force_reload: bool = False
) -> pd.DataFrame:
    """
    Return the cached flat rows for ``source``, loading them on first use.

    Parameters
    ----------
    source : str or Path, optional
        Dataset path or URL.  Defaults to ``config.DATA_SOURCE``.
    force_reload : bool, optional
        If ``True``, drop every cached row set and load again.

    Returns
    -------
    pd.DataFrame
        The flat rows.  Callers must treat the frame as read-only since it
        is shared between pipeline runs.
    """
    if force_reload:
        _compute_flat_rows.cache_clear()

    key = str(source)
    hits = _compute_flat_rows.cache_info().hits
    rows = _compute_flat_rows(key)
    if _compute_flat_rows.cache_info().hits > hits:
        logger.debug("Using cached rows for %s", key)
    return rows
