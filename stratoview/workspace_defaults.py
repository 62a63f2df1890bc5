"""Workspace-wide defaults and factory helpers for new strata.

All tunables live here as module-level constants; constructors elsewhere take
keyword overrides where a session needs something different.
"""

from __future__ import annotations

from typing import Any, Mapping

from .stratum_model import (
    GraphsTabState,
    IndexComponent,
    IndexTabState,
    LayerType,
    Location,
    MapLayer,
    MapTabState,
    Stratum,
    StratumLayout,
    StratumTab,
    StratumTabs,
    first_enabled_tab,
    normalize_enabled_tabs,
)

MAX_STRATA = 4
MIN_STRATA = 1

# Smallest share (percent) of a row/column a layout cell may be given.
MIN_CELL_PERCENT = 15.0

ASSISTANT_REPLY_DELAY_MS = 1000

DEFAULT_LOCATION = Location(name="New York", coordinates=(-74.006, 40.7128))

DEFAULT_LAYERS: tuple[MapLayer, ...] = (
    MapLayer(id="base", name="Base Map", visible=True, type=LayerType.RASTER),
    MapLayer(id="population", name="Population Density", visible=False, type=LayerType.HEATMAP),
    MapLayer(id="roads", name="Roads", visible=False, type=LayerType.LINE),
    MapLayer(id="buildings", name="Buildings", visible=False, type=LayerType.POLYGON),
    MapLayer(id="poi", name="Points of Interest", visible=False, type=LayerType.POINT),
)

DEFAULT_INDEX_VALUE = 72
DEFAULT_INDEX_DESCRIPTION = "Overall performance index based on multiple factors"
DEFAULT_INDEX_COMPONENTS: tuple[IndexComponent, ...] = (
    IndexComponent(name="Environmental", value=65, weight=0.3),
    IndexComponent(name="Economic", value=78, weight=0.4),
    IndexComponent(name="Social", value=70, weight=0.3),
)

SEED_STRATUM_NAME = "Climate Impact Assessment"
SEED_LOCATION = Location(name="Seattle", coordinates=(-122.3321, 47.6062))
SEED_INDEX_VALUE = 68
SEED_INDEX_DESCRIPTION = (
    "Comprehensive assessment of climate change impacts on local ecosystems, "
    "with projections for future scenarios and adaptation strategies."
)
SEED_INDEX_COMPONENTS: tuple[IndexComponent, ...] = (
    IndexComponent(name="Vulnerability", value=72, weight=0.4),
    IndexComponent(name="Adaptation", value=65, weight=0.3),
    IndexComponent(name="Mitigation", value=67, weight=0.3),
)


def stratum_id_for(ordinal: int) -> str:
    """Return the stable id used for the ``ordinal``-th stratum of a session."""
    return f"stratum-{int(ordinal)}"


def create_default_stratum(
    stratum_id: str,
    *,
    position: int,
    name: str | None = None,
    enabled_tabs: Mapping[Any, bool] | None = None,
    location: Location | None = None,
    description: str | None = None,
) -> Stratum:
    """Build a fresh stratum with the default layers and index components.

    Parameters
    ----------
    stratum_id : str
        Identifier for the new stratum.
    position : int
        One-based position the stratum will take; used for the default name.
    name : str, optional
        Display name; defaults to ``"Stratum {position}"``.
    enabled_tabs : mapping, optional
        Tab -> enabled flags. Missing tabs are enabled.
    location : Location, optional
        Initial location; defaults to :data:`DEFAULT_LOCATION`.
    description : str, optional
        Composite-index description.

    Returns
    -------
    Stratum
        A stratum whose active tab is the first enabled one.
    """
    enabled = normalize_enabled_tabs(enabled_tabs)
    return Stratum(
        id=stratum_id,
        name=name or f"Stratum {position}",
        location=location if location is not None else DEFAULT_LOCATION,
        active_tab=first_enabled_tab(enabled),
        layout=StratumLayout.TABS,
        is_expanded=False,
        tabs=StratumTabs(
            map=MapTabState(enabled=enabled[StratumTab.MAP], layers=DEFAULT_LAYERS),
            graphs=GraphsTabState(enabled=enabled[StratumTab.GRAPHS]),
            index=IndexTabState(
                enabled=enabled[StratumTab.INDEX],
                value=DEFAULT_INDEX_VALUE,
                description=description or DEFAULT_INDEX_DESCRIPTION,
                components=DEFAULT_INDEX_COMPONENTS,
            ),
        ),
    )


def create_seed_stratum() -> Stratum:
    """Return the stratum every new session starts with."""
    return Stratum(
        id=stratum_id_for(1),
        name=SEED_STRATUM_NAME,
        location=SEED_LOCATION,
        active_tab=StratumTab.MAP,
        layout=StratumLayout.TABS,
        is_expanded=False,
        tabs=StratumTabs(
            map=MapTabState(enabled=True, layers=DEFAULT_LAYERS),
            graphs=GraphsTabState(enabled=True),
            index=IndexTabState(
                enabled=True,
                value=SEED_INDEX_VALUE,
                description=SEED_INDEX_DESCRIPTION,
                components=SEED_INDEX_COMPONENTS,
            ),
        ),
    )
