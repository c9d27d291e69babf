import pandas as pd
import plotly.graph_objects as go

from .pipeline import round_half_up, to_number


# ============================================================
# Configuration / constants
# ============================================================

BAR_COLOR: str = "#1f77b4"
BAR_HEIGHT: int = 22

FIELD_LABELS: dict[str, str] = {
    "life_expectancy": "Life expectancy (years)",
    "gdp": "GDP",
    "population": "Population",
}

HOVER_TEMPLATE = "%{y}<br>%{customdata}: %{x:,.1f}<extra></extra>"


# ============================================================
# Main plotting function
# ============================================================


def create_ranking_chart(
    rows: pd.DataFrame,
    field: str = "life_expectancy",
    *,
    title: str | None = None,
    bar_color: str = BAR_COLOR,
) -> go.Figure:
    """
    Draw one horizontal bar per row, labelled by ``name``.

    Parameters
    ----------
    rows : pd.DataFrame
        Flat or aggregated rows with a ``name`` column and ``field``.
    field : str, default "life_expectancy"
        Numeric column giving the bar length.
    title : str | None, default None
        Figure title; defaults to the field label.
    bar_color : str, default BAR_COLOR
        Fill color of the bars.

    Returns
    -------
    go.Figure
        Bars on a linear axis from 0 to the largest value, each annotated
        with its value rounded to one decimal.  Empty rows give an empty
        figure.
    """
    if field not in rows.columns:
        raise KeyError(f"Unknown chart field: {field!r}")
    if rows.empty:
        return go.Figure()

    values = rows[field].map(to_number).astype(float)
    names = rows["name"].astype(str)
    label = FIELD_LABELS.get(field, field)
    x_max = values.max()

    fig = go.Figure(
        go.Bar(
            x=values,
            y=names,
            orientation="h",
            marker=dict(color=bar_color),
            text=[round_half_up(value, 1) for value in values],
            textposition="outside",
            customdata=[label] * len(values),
            hovertemplate=HOVER_TEMPLATE,
        )
    )

    fig.update_xaxes(
        title_text=label,
        range=[0, x_max if pd.notna(x_max) and x_max > 0 else 1],
    )
    # First row on top, matching the table order
    fig.update_yaxes(autorange="reversed", type="category")
    fig.update_layout(
        title=title or label,
        height=max(300, BAR_HEIGHT * len(values) + 100),
        margin=dict(t=60, l=160, r=60, b=40),
        plot_bgcolor="#f5f7fb",
        showlegend=False,
    )
    return fig
