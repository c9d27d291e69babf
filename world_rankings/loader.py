"""
Loads the nested per-country dataset from a local file or a URL.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Mapping

import requests

from .config import COUNTRY_FIELDS, DATA_SOURCE, REQUEST_TIMEOUT, YEAR_FIELDS

logger = logging.getLogger(__name__)


def ensure_fields(record: Mapping[str, Any], required: List[str], *, where: str) -> None:
    """Raise an error if the record lacks any of the required fields."""
    missing = [field for field in required if field not in record]
    if missing:
        raise KeyError(f"Missing expected fields in {where}: {missing}")


def _read_source(source: str | Path) -> Any:
    """
    Return the decoded JSON document behind ``source``.

    URLs are fetched with ``requests``; anything else is treated as a path.
    """
    source_str = str(source)
    if source_str.lower().startswith(("http://", "https://")):
        logger.info("Fetching dataset from %s", source_str)
        response = requests.get(source_str, timeout=REQUEST_TIMEOUT)
        response.raise_for_status()
        return response.json()

    path = Path(source)
    if not path.exists():
        raise FileNotFoundError(f"Dataset not found at {path}")
    logger.info("Reading dataset from %s", path)
    with path.open(encoding="utf-8") as fh:
        return json.load(fh)


def load_raw_countries(source: str | Path = DATA_SOURCE) -> List[Dict[str, Any]]:
    """Load and validate the raw country records.

    Parameters
    ----------
    source : str or Path
        Path or URL to a JSON document holding a list of countries, each
        with ``name``, ``continent`` and a ``years`` list of records with
        ``year``, ``gdp``, ``life_expectancy`` and ``population``.

    Returns
    -------
    List[Dict[str, Any]]
        The country records, in source order.
    """
    data = _read_source(source)
    if not isinstance(data, list):
        raise ValueError(
            f"Expected a JSON list of countries, got {type(data).__name__}."
        )

    for i, country in enumerate(data):
        ensure_fields(country, COUNTRY_FIELDS, where=f"country #{i}")
        for record in country["years"]:
            ensure_fields(record, YEAR_FIELDS, where=f"country {country['name']!r}")

    logger.info("Loaded %d countries", len(data))
    return data
