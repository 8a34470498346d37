"""Plotly figures for the pollutant vs transit comparison."""

from __future__ import annotations

import logging
from typing import Optional

import pandas as pd
import plotly.graph_objects as go
from plotly.subplots import make_subplots

from .regions import CITIES, City, Pollutant, get_pollutant_info
from .stats import (
    DegenerateSeriesError,
    linear_regression,
    min_max_normalize,
    pearson_correlation,
    phase_averages,
    trend_line,
)
from .store import DataStore

logger = logging.getLogger(__name__)

POLLUTANT_COLOR = "#e74c3c"
TRANSIT_COLOR = "steelblue"
BAR_COLOR = "#34495e"


def _window(df: pd.DataFrame, start: Optional[str], end: Optional[str]) -> pd.DataFrame:
    if start is not None:
        df = df[df["ds"] >= pd.Timestamp(start)]
    if end is not None:
        df = df[df["ds"] <= pd.Timestamp(end)]
    return df


def _normalized(df: pd.DataFrame, label: str) -> Optional[pd.DataFrame]:
    out = df.copy()
    try:
        out["normalized"] = min_max_normalize(out["y"]).to_numpy()
    except DegenerateSeriesError as exc:
        logger.warning("[charts] %s not plotted: %s", label, exc)
        return None
    return out


def pollutant_description(pollutant: Pollutant) -> str:
    info = get_pollutant_info(pollutant)
    return f"{info.label}: {info.description}"


def time_series_figure(
    store: DataStore,
    city: City,
    pollutant: Pollutant,
    start: Optional[str] = None,
    end: Optional[str] = None,
) -> go.Figure:
    """
    Normalized pollutant and transit activity over time on two y axes.

    Both series are normalized over the whole year, then cut to [start, end].
    Interpolated pollutant days are drawn as open markers.
    """
    info = get_pollutant_info(pollutant)
    fig = make_subplots(specs=[[{"secondary_y": True}]])

    pol = _normalized(store.pollutant_series(city, pollutant), info.label)
    if pol is not None:
        pol = _window(pol, start, end)
        fig.add_trace(
            go.Scatter(
                x=pol["ds"],
                y=pol["normalized"],
                mode="lines+markers",
                name=f"{info.label} (normalized)",
                line=dict(color=POLLUTANT_COLOR, width=2),
                marker=dict(
                    size=5,
                    symbol=["circle-open" if flag else "circle" for flag in pol["interpolated"]],
                ),
                customdata=pol[["y", "interpolated"]].to_numpy(),
                hovertemplate=(
                    "Date: %{x|%Y-%m-%d}<br>Reading: %{customdata[0]:.5f}"
                    "<br>Normalized: %{y:.5f}<br>Interpolated: %{customdata[1]}<extra></extra>"
                ),
            ),
            secondary_y=False,
        )

    mob = _normalized(store.mobility_series(city), "transit")
    if mob is not None:
        mob = _window(mob, start, end)
        fig.add_trace(
            go.Scatter(
                x=mob["ds"],
                y=mob["normalized"],
                mode="lines",
                name="Transit activity (normalized)",
                line=dict(color=TRANSIT_COLOR, width=2),
                customdata=mob[["y"]].to_numpy(),
                hovertemplate=(
                    "Date: %{x|%Y-%m-%d}<br>Transit change: %{customdata[0]:.2f}%"
                    "<br>Normalized: %{y:.5f}<extra></extra>"
                ),
            ),
            secondary_y=True,
        )

    fig.update_layout(
        title=f"Normalized {info.label} and Transit Activity over Time for {CITIES[city].name}",
        xaxis_title="Date",
        hovermode="x unified",
        height=500,
        template="plotly_white",
    )
    fig.update_yaxes(title_text=f"{info.label} (normalized)", range=[0, 1.05], secondary_y=False)
    fig.update_yaxes(title_text="Transit change (normalized)", range=[0, 1.05], secondary_y=True)
    return fig


def phase_bar_figure(store: DataStore, city: City, pollutant: Pollutant) -> go.Figure:
    """Average pollutant level per lockdown phase."""
    info = get_pollutant_info(pollutant)
    averages = phase_averages(store.pollutant_series(city, pollutant))

    fig = go.Figure(
        go.Bar(
            x=averages["phase"],
            y=averages["average"],
            text=[f"{v:.5f}" if pd.notna(v) else "" for v in averages["average"]],
            textposition="inside",
            marker_color=BAR_COLOR,
            customdata=averages[["start", "end", "n_days"]].to_numpy(),
            hovertemplate=(
                "%{x}<br>%{customdata[0]} to %{customdata[1]}"
                "<br>Average: %{y:.5f}<br>Days: %{customdata[2]}<extra></extra>"
            ),
        )
    )
    fig.update_layout(
        title=f"Average {info.label} Levels by COVID-19 Phase for {CITIES[city].name}",
        xaxis_title="COVID-19 Phase",
        yaxis_title=f"Average {info.label} ({info.unit})",
        height=500,
        template="plotly_white",
    )
    return fig


def scatter_figure(store: DataStore, city: City, pollutant: Pollutant) -> go.Figure:
    """
    Transit change vs pollutant level on aligned days, with OLS trend and Pearson r.

    An undefined regression (constant transit) leaves out the trend line; an
    undefined correlation (either side constant) shows r as n/a.
    """
    info = get_pollutant_info(pollutant)
    merged = store.merged(city, pollutant).dropna(subset=["pollutant_value", "transit_value"])

    fig = go.Figure()
    fig.add_trace(
        go.Scatter(
            x=merged["transit_value"],
            y=merged["pollutant_value"],
            mode="markers",
            name="Daily reading",
            marker=dict(color=POLLUTANT_COLOR, size=7),
            customdata=merged["ds"].dt.strftime("%Y-%m-%d"),
            hovertemplate=(
                "Date: %{customdata}<br>Transit change: %{x}%"
                f"<br>{info.label}: %{{y:.6f}} {info.unit}<extra></extra>"
            ),
        )
    )

    try:
        fit = linear_regression(merged["transit_value"], merged["pollutant_value"])
    except DegenerateSeriesError as exc:
        logger.warning("[charts] %s/%s trend skipped: %s", city.value, pollutant.value, exc)
    else:
        line = trend_line(merged["transit_value"], fit)
        fig.add_trace(
            go.Scatter(
                x=line["x"],
                y=line["y"],
                mode="lines",
                name="Trend",
                line=dict(color=TRANSIT_COLOR, width=4),
            )
        )

    try:
        r_text = f"r = {pearson_correlation(merged['transit_value'], merged['pollutant_value']):.2f}"
    except DegenerateSeriesError as exc:
        logger.warning("[charts] %s/%s correlation undefined: %s", city.value, pollutant.value, exc)
        r_text = "r = n/a"

    fig.add_annotation(
        xref="paper",
        yref="paper",
        x=1.02,
        y=0.95,
        xanchor="left",
        showarrow=False,
        text=f"{r_text}<br><sub>(Pearson correlation coefficient)</sub>",
    )
    fig.update_layout(
        title=f"{info.label} vs Transit Activity for {CITIES[city].name}",
        xaxis_title="Change in Transit Station Visits (%)",
        yaxis_title=f"{info.label} Level ({info.unit})",
        height=500,
        margin=dict(r=160),
        template="plotly_white",
    )
    return fig
