from __future__ import annotations

import math

import pandas as pd
import pytest

from world_rankings.config import DEFAULT_COLUMNS
from world_rankings.presentation import (
    COLUMN_SPECS,
    TableViewState,
    compare_rows,
    format_cell,
    format_si,
    present,
    rows_for_display,
    sort_rows,
)


def _make_rows():
    return pd.DataFrame(
        {
            "name": ["Chile", "Angola", "Belgium", "Denmark"],
            "continent": ["Americas", "Africa", "Europe", "Europe"],
            "gdp": [2.5e11, 1.0e11, 5.0e11, 1.0e11],
            "life_expectancy": [79.1, 51.2, 80.4, 80.4],
            "population": [17_000_000, 25_000_000, 11_000_000, 5_600_000],
            "year": [2012, 2012, 2012, 2012],
        },
        columns=DEFAULT_COLUMNS,
    )


# ---------------------------------------------------------------------------
# formatting
# ---------------------------------------------------------------------------


def test_format_life_expectancy_rounds_to_one_decimal():
    assert format_cell("life_expectancy", 72.345) == "72.3"
    assert format_cell("life_expectancy", 70) == "70"
    assert format_cell("life_expectancy", 64.96) == "65"


def test_format_life_expectancy_rounds_ties_up():
    assert format_cell("life_expectancy", 72.25) == "72.3"
    assert format_cell("life_expectancy", 68.75) == "68.8"
    assert format_cell("life_expectancy", 59.95) == "60"


def test_format_population_groups_thousands():
    assert format_cell("population", 1234567) == "1,234,567"
    assert format_cell("population", 999) == "999"


def test_format_gdp_uses_si_prefix_with_one_decimal():
    assert format_cell("gdp", 2.3e12) == "2.3T"
    assert format_cell("gdp", 1234567) == "1.2M"
    assert format_cell("gdp", 1500) == "1.5k"
    assert format_cell("gdp", 4.56e9) == "4.6G"


def test_format_si_moves_to_next_prefix_after_rounding():
    assert format_si(999990) == "1.0M"


def test_format_si_rounds_ties_up():
    assert format_si(1250) == "1.3k"


def test_format_si_pads_to_width():
    assert format_si(0) == " 0.0"
    assert format_si(5) == " 5.0"


def test_format_nan_values():
    nan = float("nan")

    assert format_cell("gdp", nan) == "NaN"
    assert format_cell("population", nan) == "NaN"
    assert format_cell("life_expectancy", "n/a") == "NaN"


def test_format_other_columns_pass_through():
    assert format_cell("name", "Chile") == "Chile"
    assert format_cell("year", 2012) == 2012


# ---------------------------------------------------------------------------
# comparator table
# ---------------------------------------------------------------------------


def test_column_specs_cover_all_columns():
    assert list(COLUMN_SPECS) == DEFAULT_COLUMNS
    assert COLUMN_SPECS["name"].kind == "text"
    assert COLUMN_SPECS["continent"].kind == "text"
    assert {COLUMN_SPECS[c].kind for c in ("gdp", "life_expectancy", "population", "year")} == {
        "numeric"
    }


def test_compare_rows_text_descends_when_toggle_set():
    a, b = {"name": "Angola"}, {"name": "Belgium"}

    assert compare_rows(a, b, "name", True) > 0
    assert compare_rows(a, b, "name", False) < 0


def test_compare_rows_numeric_ascends_when_toggle_set():
    a, b = {"name": "x", "gdp": 1.0}, {"name": "y", "gdp": 2.0}

    assert compare_rows(a, b, "gdp", True) < 0
    assert compare_rows(a, b, "gdp", False) > 0


def test_compare_rows_ties_break_on_ascending_name():
    a, b = {"name": "Zambia", "year": 2000}, {"name": "Austria", "year": 2000}

    assert compare_rows(a, b, "year", True) > 0
    assert compare_rows(a, b, "year", False) > 0


def test_compare_rows_nan_compares_equal():
    a, b = {"name": "x", "gdp": float("nan")}, {"name": "y", "gdp": 3.0}

    assert compare_rows(a, b, "gdp", True) == 0


# ---------------------------------------------------------------------------
# sort state
# ---------------------------------------------------------------------------


def test_activate_flips_toggle_and_records_header():
    state = TableViewState()
    assert state.sort_toggle is True

    state = state.activate("gdp")
    assert state == TableViewState(sort_toggle=False, sort_column="gdp")

    state = state.activate("gdp")
    assert state.sort_toggle is True


def test_activate_unknown_header_raises():
    with pytest.raises(KeyError):
        TableViewState().activate("area")


def test_first_sort_on_numeric_column_is_descending():
    rows, state = sort_rows(_make_rows(), "gdp", TableViewState())

    assert state.sort_toggle is False
    assert list(rows["name"]) == ["Belgium", "Chile", "Angola", "Denmark"]


def test_first_sort_on_text_column_is_ascending():
    rows, _ = sort_rows(_make_rows(), "continent", TableViewState())

    assert list(rows["continent"]) == ["Africa", "Americas", "Europe", "Europe"]
    assert list(rows["name"]) == ["Angola", "Chile", "Belgium", "Denmark"]


def test_second_sort_on_same_column_flips_back():
    rows, state = sort_rows(_make_rows(), "gdp", TableViewState())
    rows, state = sort_rows(rows, "gdp", state)

    assert state.sort_toggle is True
    assert list(rows["name"]) == ["Angola", "Denmark", "Chile", "Belgium"]


def test_toggle_persists_across_columns():
    _, state = sort_rows(_make_rows(), "name", TableViewState())
    rows, state = sort_rows(_make_rows(), "population", state)

    # Two clicks in total: toggle is set again, numeric sorts ascend
    assert state.sort_toggle is True
    assert list(rows["population"]) == [5_600_000, 11_000_000, 17_000_000, 25_000_000]


@pytest.mark.parametrize("toggle", [True, False])
def test_tied_rows_follow_ascending_name(toggle):
    rows = _make_rows().iloc[::-1].reset_index(drop=True)
    sorted_rows, _ = sort_rows(rows, "life_expectancy", TableViewState(sort_toggle=toggle))

    tied = sorted_rows[sorted_rows["life_expectancy"] == 80.4]
    assert list(tied["name"]) == ["Belgium", "Denmark"]


def test_sort_rows_does_not_mutate_input():
    rows = _make_rows()
    before = rows.copy()
    sort_rows(rows, "name", TableViewState())

    pd.testing.assert_frame_equal(rows, before)


def test_sort_rows_empty():
    rows, state = sort_rows(_make_rows().iloc[0:0], "gdp", TableViewState())

    assert rows.empty
    assert state.sort_column == "gdp"


# ---------------------------------------------------------------------------
# present
# ---------------------------------------------------------------------------


def test_present_formats_every_cell_in_column_order():
    table = present(DEFAULT_COLUMNS, _make_rows())

    assert table.columns == DEFAULT_COLUMNS
    assert list(table.body.columns) == DEFAULT_COLUMNS
    assert table.body.iloc[0].tolist() == [
        "Chile",
        "Americas",
        "250.0G",
        "79.1",
        "17,000,000",
        2012,
    ]


def test_present_subset_of_columns():
    table = present(["population", "name"], _make_rows())

    assert table.body.iloc[1].tolist() == ["25,000,000", "Angola"]


def test_present_empty_rows_keeps_header():
    table = present(DEFAULT_COLUMNS, _make_rows().iloc[0:0])

    assert table.body.empty
    assert table.columns == DEFAULT_COLUMNS
    assert 'data-column="gdp"' in table.to_html()
    assert '<tr class="row">' not in table.to_html()


def test_present_unknown_column_raises():
    with pytest.raises(KeyError):
        present(["name", "area"], _make_rows())


def test_present_renders_nan_cells():
    rows = _make_rows()
    rows["gdp"] = [math.nan, 1.0, 2.0, 3.0]
    table = present(["gdp"], rows)

    assert table.body["gdp"].iloc[0] == "NaN"


def test_to_html_has_caption_header_and_rows():
    html = present(DEFAULT_COLUMNS, _make_rows()).to_html()

    assert "<caption>World Countries Ranking</caption>" in html
    assert html.count("<th ") == len(DEFAULT_COLUMNS)
    assert html.count('<tr class="row">') == 4
    assert "<td>17,000,000</td>" in html


def test_to_html_escapes_cell_text():
    rows = _make_rows()
    rows.loc[0, "name"] = "<b>Chile</b>"
    html = present(["name"], rows).to_html()

    assert "&lt;b&gt;Chile&lt;/b&gt;" in html
    assert "<b>" not in html


# ---------------------------------------------------------------------------
# rows_for_display
# ---------------------------------------------------------------------------


def test_rows_for_display_without_sort_returns_base():
    base = _make_rows()

    assert rows_for_display(base, None) is base


def test_rows_for_display_uses_sort_of_same_base():
    base = _make_rows()
    ordered, _ = sort_rows(base, "gdp", TableViewState())

    assert rows_for_display(base, (base, ordered)) is ordered


def test_rows_for_display_drops_sort_of_previous_base():
    previous = _make_rows()
    ordered, _ = sort_rows(previous, "gdp", TableViewState())
    rebuilt = _make_rows().iloc[:2].reset_index(drop=True)

    assert rows_for_display(rebuilt, (previous, ordered)) is rebuilt
