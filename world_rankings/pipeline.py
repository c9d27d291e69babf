"""Core pipeline logic: flatten, filter and aggregate country rows.

This module turns the nested per-country dataset into a flat table and
applies the user-driven transformations on top of it:

* Flattening, which emits one row per (country, year) pair.
* Filtering by year and by continent membership.  An empty continent
  selection means "no filter", not "exclude everything".
* Optional aggregation by a category column, rolling each
  (category, year) cell up into a single row with summed ``gdp`` and
  ``population`` and the minimum ``life_expectancy``.

The primary entry point is :func:`run_pipeline`, which is recomputed from
the cached flat rows on every user interaction.  Every function returns a
new DataFrame (or its input unchanged) and never mutates its input.
"""

from __future__ import annotations

import logging
import math
import numbers
from typing import Any, Collection, Dict, Iterable, List, Mapping, Optional

import pandas as pd

from .config import DEFAULT_COLUMNS

# Module‑level logger
logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Flattening
# ---------------------------------------------------------------------------


def flatten(raw: Iterable[Mapping[str, Any]]) -> pd.DataFrame:
    """Convert nested country records into one row per (country, year).

    Parameters
    ----------
    raw : Iterable[Mapping[str, Any]]
        Country records with ``name``, ``continent`` and a ``years`` list of
        records holding ``year``, ``gdp``, ``life_expectancy`` and
        ``population``.

    Returns
    -------
    pd.DataFrame
        A DataFrame with the columns of ``DEFAULT_COLUMNS``.  Countries keep
        their source order and years keep their order within a country.
        Values are copied verbatim; nothing is dropped or deduplicated.
    """
    records = [
        {
            "name": country["name"],
            "continent": country["continent"],
            "gdp": year["gdp"],
            "life_expectancy": year["life_expectancy"],
            "population": year["population"],
            "year": year["year"],
        }
        for country in raw
        for year in country["years"]
    ]
    return pd.DataFrame.from_records(records, columns=DEFAULT_COLUMNS)


# ---------------------------------------------------------------------------
# Filters
# ---------------------------------------------------------------------------


def apply_filter(
    rows: pd.DataFrame, allowed_values: Collection[Any], field: str
) -> pd.DataFrame:
    """Return the rows whose ``field`` value is one of ``allowed_values``.

    Relative order of the retained rows is preserved; the result has a fresh
    positional index.
    """
    mask = rows[field].isin(list(allowed_values))
    return rows.loc[mask].reset_index(drop=True)


def filter_by_year(rows: pd.DataFrame, year: int) -> pd.DataFrame:
    """Keep the rows of a single year."""
    return apply_filter(rows, [year], "year")


def filter_by_continent(
    rows: pd.DataFrame, continents: Collection[str]
) -> pd.DataFrame:
    """Keep the rows of the selected continents.

    An empty selection selects everything: ``rows`` is returned unchanged.
    """
    if not continents:
        return rows
    return apply_filter(rows, continents, "continent")


# ---------------------------------------------------------------------------
# Aggregation
# ---------------------------------------------------------------------------


def round_half_up(number: float, decimals: int = 0) -> float:
    """Round with ties going up, so ``72.25`` becomes ``72.3``.

    Non-finite numbers are returned unchanged.
    """
    if not math.isfinite(number):
        return number
    factor = 10**decimals
    return math.floor(number * factor + 0.5) / factor


def to_number(value: Any) -> float:
    """Coerce a cell value to a float, returning ``NaN`` when it is not numeric.

    Booleans and numbers convert directly.  Strings are stripped first; an
    empty string counts as ``0.0`` and so does ``None`` (a JSON ``null``).
    Anything else is ``NaN``.  This function never raises.
    """
    if value is None:
        return 0.0
    if isinstance(value, bool):
        return float(value)
    if isinstance(value, numbers.Real):
        return float(value)
    if isinstance(value, str):
        text = value.strip()
        if not text:
            return 0.0
        try:
            return float(text)
        except ValueError:
            return math.nan
    return math.nan


def _numeric(series: pd.Series) -> pd.Series:
    # Missing cells are JSON nulls (pandas stores them as NaN), which count as 0
    nulls_as_none = series.astype(object).where(series.notna(), None)
    return nulls_as_none.map(to_number).astype(float)


def group_cells(
    rows: pd.DataFrame, group_field: str
) -> Dict[Any, Dict[Any, pd.DataFrame]]:
    """Group rows by ``group_field`` and then by ``year``.

    Parameters
    ----------
    rows : pd.DataFrame
        Flat rows, typically already filtered.
    group_field : str
        Column providing the primary grouping key.

    Returns
    -------
    Dict[Any, Dict[Any, pd.DataFrame]]
        ``cells[key][year]`` holds the member rows of one leaf cell in
        their upstream order.  Both levels iterate in first-seen order, so
        all years of the first key come before any year of the second key.
    """
    positions: Dict[Any, Dict[Any, List[int]]] = {}
    for pos, (key, year) in enumerate(zip(rows[group_field], rows["year"])):
        positions.setdefault(key, {}).setdefault(year, []).append(pos)

    return {
        key: {year: rows.iloc[members] for year, members in by_year.items()}
        for key, by_year in positions.items()
    }


def rollup(leaves: pd.DataFrame, key: Any) -> Dict[str, Any]:
    """Summarise one leaf cell into a single row labelled with ``key``.

    ``gdp`` and ``population`` are summed and ``life_expectancy`` takes the
    minimum.  Missing values count as 0.  A value that does not coerce to a
    number makes its sum ``NaN`` instead of raising; the minimum skips such
    values.
    """
    return {
        "name": key,
        "continent": leaves["continent"].iloc[0],
        "gdp": _numeric(leaves["gdp"]).sum(skipna=False),
        "life_expectancy": _numeric(leaves["life_expectancy"]).min(),
        "population": _numeric(leaves["population"]).sum(skipna=False),
        "year": leaves["year"].iloc[0],
    }


def aggregate(rows: pd.DataFrame, group_field: Optional[str]) -> pd.DataFrame:
    """Aggregate rows per (``group_field``, year) cell.

    Parameters
    ----------
    rows : pd.DataFrame
        Flat rows with the columns of ``DEFAULT_COLUMNS``.
    group_field : Optional[str]
        Column to group on, e.g. ``"continent"``.  ``None`` disables
        aggregation and returns ``rows`` unchanged.

    Returns
    -------
    pd.DataFrame
        One row per distinct (group, year) pair, ordered by first-seen
        group and then by first-seen year within the group.  See
        :func:`rollup` for the per-column summaries.
    """
    if group_field is None:
        return rows

    records = [
        rollup(leaves, key)
        for key, by_year in group_cells(rows, group_field).items()
        for leaves in by_year.values()
    ]
    return pd.DataFrame.from_records(records, columns=DEFAULT_COLUMNS)


# ---------------------------------------------------------------------------
# Driver
# ---------------------------------------------------------------------------


def run_pipeline(
    rows: pd.DataFrame,
    *,
    year: int,
    continents: Collection[str] = (),
    aggregate_by: Optional[str] = None,
) -> pd.DataFrame:
    """Filter the cached flat rows and optionally aggregate them.

    Parameters
    ----------
    rows : pd.DataFrame
        The cached output of :func:`flatten`.
    year : int
        Year selected on the slider.
    continents : Collection[str], optional
        Selected continents; empty means all continents.
    aggregate_by : Optional[str], optional
        Grouping column when aggregation is switched on, else ``None``.

    Returns
    -------
    pd.DataFrame
        Rows ready for :func:`world_rankings.presentation.present`.
    """
    # 1. Filter on the time slider
    by_year = filter_by_year(rows, year)
    # 2. Filter on the continent selection
    selected = filter_by_continent(by_year, continents)
    logger.debug(
        "Filtered %d rows to %d (year=%s, continents=%s)",
        len(rows),
        len(selected),
        year,
        sorted(continents),
    )
    # 3. Aggregate only when a grouping is requested
    if not aggregate_by:
        return selected
    return aggregate(selected, aggregate_by)
