"""Derived chart data for a stratum's Graphs sub-view.

Chart series are never stored on a stratum. They are a pure function of the
stratum id, memoized per id, and drawn with Plotly by
:func:`build_graphs_figure`.
"""

from __future__ import annotations

import zlib
from dataclasses import dataclass
from functools import lru_cache

import numpy as np
import plotly.graph_objects as go
from plotly.subplots import make_subplots

CHART_COLORS: tuple[str, ...] = ("#1E88E5", "#26A69A", "#5C6BC0", "#7E57C2")
BAR_CATEGORIES: tuple[str, ...] = ("Category A", "Category B", "Category C", "Category D", "Category E")
PIE_GROUPS: tuple[str, ...] = ("Group 1", "Group 2", "Group 3")


@dataclass(frozen=True)
class GraphSeries:
    """Chart inputs for one stratum.

    Parameters
    ----------
    months : numpy.ndarray
        Month numbers ``1..12``.
    values : numpy.ndarray
        Seasonal series with a little id-seeded noise.
    trend : numpy.ndarray
        Linear trend line.
    bars : tuple[float, ...]
        One value per :data:`BAR_CATEGORIES` entry.
    pie : tuple[float, ...]
        One value per :data:`PIE_GROUPS` entry.
    """

    months: np.ndarray
    values: np.ndarray
    trend: np.ndarray
    bars: tuple[float, ...]
    pie: tuple[float, ...]


def _readonly(arr: np.ndarray) -> np.ndarray:
    arr.flags.writeable = False
    return arr


@lru_cache(maxsize=64)
def graph_series(stratum_id: str) -> GraphSeries:
    """Return the chart series for ``stratum_id``.

    The result depends only on the id, so repeated calls (and calls from
    different panels) return the same cached object. Arrays are read-only.

    Examples
    --------
    >>> graph_series("stratum-1") is graph_series("stratum-1")
    True
    """
    seed = ord(stratum_id[-1]) if stratum_id else 0
    rng = np.random.default_rng(zlib.crc32(stratum_id.encode("utf-8")))
    i = np.arange(12, dtype=float)

    values = 30 + np.sin(i / 2 + seed / 10) * 20 + rng.uniform(0.0, 10.0, size=12)
    trend = 20 + i * 3 + seed % 5
    bars = (40 + seed % 30, 30 + seed % 20, 50 + seed % 40, 35 + seed % 25, 45 + seed % 35)
    pie = (30 + seed % 20, 25 + seed % 15, 45 + seed % 30)

    return GraphSeries(
        months=_readonly(i + 1),
        values=_readonly(values),
        trend=_readonly(trend),
        bars=tuple(float(b) for b in bars),
        pie=tuple(float(p) for p in pie),
    )


def build_graphs_figure(stratum_id: str, *, height: int = 420) -> go.Figure:
    """Draw the four standard charts (line, bar, area, pie) for a stratum."""
    series = graph_series(stratum_id)
    fig = make_subplots(
        rows=2,
        cols=2,
        specs=[[{"type": "xy"}, {"type": "xy"}], [{"type": "xy"}, {"type": "domain"}]],
        subplot_titles=("Time Series Data", "Category Comparison", "Cumulative Data", "Distribution"),
    )
    fig.add_trace(
        go.Scatter(x=series.months, y=series.values, mode="lines+markers", name="value",
                   line=dict(color=CHART_COLORS[0], width=2)),
        row=1, col=1,
    )
    fig.add_trace(
        go.Scatter(x=series.months, y=series.trend, mode="lines+markers", name="trend",
                   line=dict(color=CHART_COLORS[2], width=2)),
        row=1, col=1,
    )
    fig.add_trace(
        go.Bar(x=list(BAR_CATEGORIES), y=list(series.bars), name="categories",
               marker_color=CHART_COLORS[1]),
        row=1, col=2,
    )
    fig.add_trace(
        go.Scatter(x=series.months, y=series.values, fill="tozeroy", name="cumulative",
                   line=dict(color=CHART_COLORS[3])),
        row=2, col=1,
    )
    fig.add_trace(
        go.Pie(labels=list(PIE_GROUPS), values=list(series.pie), name="distribution",
               marker=dict(colors=list(CHART_COLORS[: len(PIE_GROUPS)])),
               textinfo="label+percent"),
        row=2, col=2,
    )
    fig.update_layout(height=height, showlegend=False, margin=dict(l=30, r=10, t=40, b=30))
    return fig
