"""Table presentation: cell formatting, header sorting and table rendering.

Every call to :func:`present` rebuilds the table from scratch.  Sorting is
driven by a per-column comparator table and an explicit
:class:`TableViewState` whose toggle flips on every header activation,
whichever column is clicked.
"""

from __future__ import annotations

import html
import logging
import math
from dataclasses import dataclass, replace
from functools import cmp_to_key
from typing import Any, Callable, Dict, List, Literal, Mapping, Optional, Sequence, Tuple

import pandas as pd

from .config import TABLE_CAPTION
from .pipeline import round_half_up, to_number

logger = logging.getLogger(__name__)

Comparator = Callable[[Any, Any], int]

SI_PREFIXES: Dict[int, str] = {
    -24: "y",
    -21: "z",
    -18: "a",
    -15: "f",
    -12: "p",
    -9: "n",
    -6: "µ",
    -3: "m",
    0: "",
    3: "k",
    6: "M",
    9: "G",
    12: "T",
    15: "P",
    18: "E",
    21: "Z",
    24: "Y",
}


# ============================================================
# Cell formatting
# ============================================================


def format_decimal(value: Any, decimals: int = 1) -> str:
    """Round to ``decimals`` places, dropping a trailing ``.0``."""
    number = to_number(value)
    if math.isnan(number):
        return "NaN"
    rounded = round_half_up(number, decimals)
    if rounded.is_integer():
        return str(int(rounded))
    return f"{rounded:.{decimals}f}"


def format_thousands(value: Any) -> str:
    """Integer with ``,`` as the thousands separator."""
    number = to_number(value)
    if math.isnan(number):
        return "NaN"
    return f"{number:,.0f}"


def _si_exponent(number: float) -> int:
    if number == 0:
        return 0
    exponent = math.floor(math.log10(abs(number)) / 3) * 3
    return max(-24, min(24, exponent))


def format_si(value: Any, decimals: int = 1, width: int = 4) -> str:
    """Abbreviate with an SI prefix, e.g. ``2.3e12`` -> ``"2.3T"``.

    The prefix is chosen again after rounding so that ``999990`` becomes
    ``"1.0M"`` rather than ``"1000.0k"``.  The result is right-aligned to
    ``width`` characters.
    """
    number = to_number(value)
    if math.isnan(number):
        return "NaN"
    if math.isinf(number):
        return str(number)

    exponent = _si_exponent(number)
    scaled = round_half_up(number / 10**exponent, decimals)
    if abs(scaled) >= 1000 and exponent < 24:
        exponent += 3
        scaled = round_half_up(number / 10**exponent, decimals)
    return f"{scaled:.{decimals}f}{SI_PREFIXES[exponent]}".rjust(width)


FORMATTERS: Dict[str, Callable[[Any], str]] = {
    "life_expectancy": format_decimal,
    "population": format_thousands,
    "gdp": format_si,
}


def format_cell(column: str, value: Any) -> Any:
    """Format one cell for display; unlisted columns pass through unchanged."""
    formatter = FORMATTERS.get(column)
    if formatter is None:
        return value
    return formatter(value)


# ============================================================
# Comparator table
# ============================================================


def _ascending(a: Any, b: Any) -> int:
    if a < b:
        return -1
    if a > b:
        return 1
    return 0


def _descending(a: Any, b: Any) -> int:
    return _ascending(b, a)


def _subtract(a: Any, b: Any) -> int:
    # Incomparable (NaN) pairs compare equal
    diff = to_number(a) - to_number(b)
    if math.isnan(diff):
        return 0
    return (diff > 0) - (diff < 0)


def _reverse_subtract(a: Any, b: Any) -> int:
    return _subtract(b, a)


@dataclass(frozen=True)
class ColumnSpec:
    """Sorting behaviour of one table column."""

    name: str
    kind: Literal["text", "numeric"]
    ascending: Comparator
    descending: Comparator


def _text_column(name: str) -> ColumnSpec:
    return ColumnSpec(name, "text", _ascending, _descending)


def _numeric_column(name: str) -> ColumnSpec:
    return ColumnSpec(name, "numeric", _subtract, _reverse_subtract)


COLUMN_SPECS: Dict[str, ColumnSpec] = {
    spec.name: spec
    for spec in (
        _text_column("name"),
        _text_column("continent"),
        _numeric_column("gdp"),
        _numeric_column("life_expectancy"),
        _numeric_column("population"),
        _numeric_column("year"),
    )
}


def compare_rows(
    a: Mapping[str, Any], b: Mapping[str, Any], header: str, sort_toggle: bool
) -> int:
    """Compare two rows on ``header``.

    Equal values fall back to ascending ``name`` whatever the toggle.  Text
    columns sort descending when the toggle is set and numeric columns sort
    ascending when it is set; the two kinds read the toggle in
    opposite directions.
    """
    spec = COLUMN_SPECS[header]
    left, right = a[header], b[header]

    if left == right:
        return _ascending(a["name"], b["name"])

    if spec.kind == "text":
        return spec.descending(left, right) if sort_toggle else spec.ascending(left, right)
    return spec.ascending(left, right) if sort_toggle else spec.descending(left, right)


# ============================================================
# Sort state
# ============================================================


@dataclass(frozen=True)
class TableViewState:
    """
    Sort state of the rendered table.

    Fields:

    - sort_toggle: Direction flag read by :func:`compare_rows`.
    - sort_column: Header activated last, ``None`` before any click.
    """

    sort_toggle: bool = True
    sort_column: Optional[str] = None

    def activate(self, header: str) -> TableViewState:
        """Return the state after a click on ``header``: the toggle always flips."""
        if header not in COLUMN_SPECS:
            raise KeyError(f"Unknown column: {header!r}")
        return replace(self, sort_toggle=not self.sort_toggle, sort_column=header)


def sort_rows(
    rows: pd.DataFrame, header: str, state: TableViewState
) -> Tuple[pd.DataFrame, TableViewState]:
    """Activate ``header`` and stably sort the rows under the new state.

    Returns the sorted rows (fresh positional index) and the new state.
    """
    new_state = state.activate(header)
    records = rows.to_dict("records")

    def _cmp(i: int, j: int) -> int:
        return compare_rows(records[i], records[j], header, new_state.sort_toggle)

    order = sorted(range(len(records)), key=cmp_to_key(_cmp))
    logger.debug(
        "Sorted %d rows on %s (sort_toggle=%s)", len(order), header, new_state.sort_toggle
    )
    return rows.iloc[order].reset_index(drop=True), new_state


def rows_for_display(
    base: pd.DataFrame, last_sort: Optional[Tuple[pd.DataFrame, pd.DataFrame]]
) -> pd.DataFrame:
    """Return the last sorted rows if they were sorted from ``base``, else ``base``.

    ``last_sort`` pairs the pipeline result on screen at the last header
    click with its sorted rows.  A new pipeline result is a different object, so an older sort never leaks
    into a rebuilt table.
    """
    if last_sort is None:
        return base
    source, sorted_rows = last_sort
    return sorted_rows if source is base else base


# ============================================================
# Table rendering
# ============================================================


@dataclass(frozen=True)
class Table:
    """A rendered table: header labels and a body of display values."""

    columns: List[str]
    body: pd.DataFrame
    caption: str = TABLE_CAPTION

    def to_html(self) -> str:
        header = "".join(
            f'<th data-column="{html.escape(col)}">{html.escape(col)}</th>'
            for col in self.columns
        )
        body_rows = []
        for values in self.body.itertuples(index=False, name=None):
            cells = "".join(f"<td>{html.escape(str(v))}</td>" for v in values)
            body_rows.append(f'<tr class="row">{cells}</tr>')
        return (
            "<table>"
            f"<caption>{html.escape(self.caption)}</caption>"
            f'<thead class="thead"><tr>{header}</tr></thead>'
            f"<tbody>{''.join(body_rows)}</tbody>"
            "</table>"
        )


def present(columns: Sequence[str], rows: pd.DataFrame) -> Table:
    """Build the display table for ``columns`` from scratch.

    Parameters
    ----------
    columns : Sequence[str]
        Columns to show, in display order.
    rows : pd.DataFrame
        Flat or aggregated rows, already in display order.

    Returns
    -------
    Table
        One body row per input row holding the output of
        :func:`format_cell` for each column.  An empty ``rows`` gives an
        empty body under an intact header.
    """
    unknown = [col for col in columns if col not in COLUMN_SPECS]
    if unknown:
        raise KeyError(f"Unknown columns: {unknown}")

    body = pd.DataFrame(
        {col: [format_cell(col, value) for value in rows[col]] for col in columns},
        columns=list(columns),
    )
    return Table(columns=list(columns), body=body)
