"""
Configuration constants for the World Countries Ranking pipeline.
"""

import os
from pathlib import Path
from typing import List, Tuple

# ======================================================
#  DATA SOURCES / CONSTANTS
# ======================================================
# Bundled sample dataset; point WORLD_RANKINGS_DATA at the full
# countries_1995_2012.json (local path or URL) to use real data.
BUNDLED_SOURCE: Path = Path(__file__).resolve().parent.parent / "data" / "countries_sample.json"

DATA_SOURCE: str = os.getenv("WORLD_RANKINGS_DATA", str(BUNDLED_SOURCE))

REQUEST_TIMEOUT: int = 30

# Column order matters: it is both the data access key and the display order
DEFAULT_COLUMNS: List[str] = [
    "name",
    "continent",
    "gdp",
    "life_expectancy",
    "population",
    "year",
]

COUNTRY_FIELDS: List[str] = ["name", "continent", "years"]
YEAR_FIELDS: List[str] = ["year", "gdp", "life_expectancy", "population"]

# Only grouping mode offered by the UI
AGGREGATE_FIELD: str = "continent"

# ======================================================
#  UI DEFAULTS
# ======================================================
CONTINENT_OPTIONS: List[str] = [
    "Africa",
    "Americas",
    "Asia",
    "Europe",
    "Oceania",
]

CHART_FIELD_OPTIONS: List[Tuple[str, str]] = [
    ("Life expectancy", "life_expectancy"),
    ("GDP", "gdp"),
    ("Population", "population"),
]

DEFAULT_CHART_FIELD: str = "life_expectancy"

GLOBAL_YEAR_MIN: int = 1995
GLOBAL_YEAR_MAX: int = 2012
DEFAULT_YEAR: int = GLOBAL_YEAR_MIN

TABLE_CAPTION: str = "World Countries Ranking"

# ======================================================
#  LOGGING
# ======================================================
LOG_FORMAT_ENV: str = "WORLD_RANKINGS_LOG_FORMAT"
LOG_LEVEL_ENV: str = "WORLD_RANKINGS_LOG_LEVEL"

DEFAULT_LOG_FORMAT: str = "json"
LOG_FIELDS: str = "%(asctime)s %(levelname)s %(name)s %(message)s"
PLAIN_LOG_FORMAT: str = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
