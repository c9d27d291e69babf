from shiny import reactive, render
from shiny.express import input, ui
from shinywidgets import render_plotly

# Import organized modules
from world_rankings.config import (
    AGGREGATE_FIELD,
    CHART_FIELD_OPTIONS,
    CONTINENT_OPTIONS,
    DEFAULT_CHART_FIELD,
    DEFAULT_COLUMNS,
    DEFAULT_YEAR,
    GLOBAL_YEAR_MAX,
    GLOBAL_YEAR_MIN,
    TABLE_CAPTION,
)
from world_rankings.data_manager import load_rows
from world_rankings.logging_config import configure_logging
from world_rankings.pipeline import run_pipeline
from world_rankings.plotting import create_ranking_chart
from world_rankings.presentation import (
    TableViewState,
    present,
    rows_for_display,
    sort_rows,
)

configure_logging()

# Helpers for UI mapping
CHART_FIELD_MAPPING = {value: label for label, value in CHART_FIELD_OPTIONS}

# Sends the clicked header name to input.header_click
HEADER_CLICK_JS = """
document.addEventListener("click", function (event) {
  var th = event.target.closest("th[data-column]");
  if (th) {
    Shiny.setInputValue("header_click", th.dataset.column, {priority: "event"});
  }
});
"""

# ======================================================
#  REACTIVE STATE
# ======================================================
# Flat rows are loaded once on startup and shared by every pipeline run.
flat_rows = load_rows()

# The toggle survives table rebuilds and flips on every header click.
view_state = reactive.Value(TableViewState())
# (pipeline result, its reordering) after the last header click; None until
# the user sorts.
last_sort = reactive.Value(None)


@reactive.calc
def pipeline_rows():
    # 1. Filter based on the year slider
    # 2. Filter based on the continent selection
    # 3. Aggregate when the switch is on
    aggregate_by = AGGREGATE_FIELD if input.aggregate() else None
    return run_pipeline(
        flat_rows,
        year=int(input.year()),
        continents=list(input.continents()),
        aggregate_by=aggregate_by,
    )


@reactive.effect
@reactive.event(input.header_click)
def _sort_on_header():
    base = pipeline_rows()
    rows = rows_for_display(base, last_sort.get())
    rows, state = sort_rows(rows, input.header_click(), view_state.get())
    view_state.set(state)
    last_sort.set((base, rows))


@reactive.calc
def display_rows():
    # A new pipeline result is a full rebuild; a sort of an older result is ignored.
    return rows_for_display(pipeline_rows(), last_sort.get())


# ======================================================
#  UI LAYOUT
# ======================================================
ui.tags.head(ui.tags.script(HEADER_CLICK_JS))

ui.page_opts(
    title=TABLE_CAPTION,
    fillable=False,
    fillable_mobile=True,
    full_width=True,
    id="page",
    lang="en",
)

with ui.sidebar(open="always", position="right"):
    ui.input_slider(
        "year",
        "Year",
        min=GLOBAL_YEAR_MIN,
        max=GLOBAL_YEAR_MAX,
        value=DEFAULT_YEAR,
        step=1,
        sep="",
    )
    ui.input_checkbox_group(
        "continents",
        "Continents (none selected shows all)",
        CONTINENT_OPTIONS,
        selected=[],
    )
    ui.input_switch("aggregate", "Aggregate by continent", value=False)
    ui.input_select(
        "chart_field", "Chart field", CHART_FIELD_MAPPING, selected=DEFAULT_CHART_FIELD
    )
    ui.input_action_button(
        "reset_filters",
        "Reset filters",
        class_="btn-primary mt-3",
    )


@reactive.effect
@reactive.event(input.reset_filters)
def _reset_filters():
    ui.update_slider("year", value=DEFAULT_YEAR)
    ui.update_checkbox_group("continents", selected=[])
    ui.update_switch("aggregate", value=False)
    ui.update_select("chart_field", selected=DEFAULT_CHART_FIELD)


with ui.navset_tab(id="main_tabs"):
    with ui.nav_panel("Table"):

        @render.ui
        def ranking_table():
            return ui.HTML(present(DEFAULT_COLUMNS, display_rows()).to_html())

    with ui.nav_panel("Chart"):

        @render_plotly
        def ranking_chart():
            return create_ranking_chart(display_rows(), input.chart_field())
