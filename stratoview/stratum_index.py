"""Presentation helpers for the composite-index sub-view.

The index score is computed outside this package; these helpers only turn the
stored value and components into the labels, colors and weight shares the
Index view and the info overlay display.
"""

from __future__ import annotations

import html
from typing import Sequence

from .stratum_model import IndexComponent, IndexTabState

# (lower bound, rating word, ring color) from best to worst.
_BANDS: tuple[tuple[float, str, str], ...] = (
    (80, "excellent", "#4CAF50"),
    (60, "good", "#2196F3"),
    (40, "average", "#FFC107"),
    (20, "below average", "#FF9800"),
    (0, "poor", "#F44336"),
)


def _band(value: float) -> tuple[float, str, str]:
    for band in _BANDS:
        if value >= band[0]:
            return band
    return _BANDS[-1]


def rating(value: float) -> str:
    """Return the word describing an index value, e.g. ``"good"`` for 68."""
    return _band(value)[1]


def rating_color(value: float) -> str:
    return _band(value)[2]


def weight_shares(components: Sequence[IndexComponent]) -> list[int]:
    """Each component's weight as a rounded percentage of the total weight."""
    total = sum(c.weight for c in components)
    if total <= 0:
        return [0 for _ in components]
    # Round half up, matching how the shares are printed elsewhere.
    return [int(c.weight * 100 / total + 0.5) for c in components]


def index_html(index: IndexTabState) -> str:
    """Render the Index sub-view as a small HTML fragment."""
    rows = []
    for component, share in zip(index.components, weight_shares(index.components)):
        rows.append(
            "<div style='margin:4px 0'>"
            f"<b>{html.escape(component.name)}</b> {component.value:g} "
            f"<span style='opacity:0.6'>({share}%)</span>"
            f"<div style='height:6px;background:#e2e8f0;border-radius:3px'>"
            f"<div style='height:6px;width:{component.value:g}%;"
            f"background:{rating_color(component.value)};border-radius:3px'></div></div>"
            "</div>"
        )
    return (
        "<div style='padding:8px'>"
        "<div style='font-size:0.8em;opacity:0.7'>Composite Index</div>"
        f"<div style='font-size:2em;font-weight:bold;color:{rating_color(index.value)}'>{index.value:g}</div>"
        f"<div style='margin:6px 0'>{html.escape(index.description)}</div>"
        "<div style='font-weight:600;margin-top:8px'>Component Breakdown</div>"
        + "".join(rows)
        + "<div style='margin-top:8px;font-size:0.9em'>"
        "This composite index is calculated based on weighted components shown above. "
        f"The current value indicates {rating(index.value)} performance.</div>"
        "</div>"
    )
