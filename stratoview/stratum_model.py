"""Entity model for strata and their sub-view states.

Purpose
-------
This module defines the immutable value types the workspace engine passes
around: ``Stratum`` (one panel), its three sub-view states, ``MapLayer`` and
``Location``. It also owns the enum vocabulary (view modes, per-panel layouts,
tabs and layer kinds) together with the lenient string coercion used by every
public entry point.

Notes
-----
All dataclasses are frozen. Transitions build new values with
:func:`dataclasses.replace`, so a ``Stratum`` held by a renderer never changes
under its feet.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Mapping, Type, TypeVar

E = TypeVar("E", bound=Enum)


class ViewMode(str, Enum):
    """Workspace-level arrangement strategy."""

    SINGLE = "single"
    GRID = "grid"
    COLUMNS = "columns"


class StratumLayout(str, Enum):
    """Whether a stratum's sub-views are tab-switched or shown together."""

    TABS = "tabs"
    SIDE_BY_SIDE = "side-by-side"


class StratumTab(str, Enum):
    """The three sub-views a stratum can show."""

    MAP = "map"
    GRAPHS = "graphs"
    INDEX = "index"


class LayerType(str, Enum):
    """Geometry kind of a map layer."""

    POINT = "point"
    LINE = "line"
    POLYGON = "polygon"
    HEATMAP = "heatmap"
    RASTER = "raster"


TAB_ORDER: tuple[StratumTab, ...] = (StratumTab.MAP, StratumTab.GRAPHS, StratumTab.INDEX)


def coerce_enum(value: Any, enum_type: Type[E]) -> E:
    """Return ``value`` as a member of ``enum_type``.

    Parameters
    ----------
    value : Any
        An enum member, or a string matching a member value or name. Matching
        is case-insensitive and treats ``-``/``_``/space as equivalent, so
        ``"side-by-side"``, ``"SIDE_BY_SIDE"`` and ``"Side by side"`` all map
        to :attr:`StratumLayout.SIDE_BY_SIDE`.
    enum_type : type
        Target enum class.

    Returns
    -------
    Enum
        The matching member.

    Raises
    ------
    ValueError
        If ``value`` does not name a member.

    Examples
    --------
    >>> coerce_enum("Columns", ViewMode)
    <ViewMode.COLUMNS: 'columns'>
    """
    if isinstance(value, enum_type):
        return value
    if isinstance(value, str):
        key = value.strip().lower().replace("_", "-").replace(" ", "-")
        for member in enum_type:
            if key in (member.value, member.name.lower().replace("_", "-")):
                return member
    choices = ", ".join(repr(m.value) for m in enum_type)
    raise ValueError(f"Unknown {enum_type.__name__}: {value!r} (expected one of {choices})")


@dataclass(frozen=True)
class Location:
    """A named geographic position.

    Parameters
    ----------
    name : str
        Display name, e.g. ``"Seattle"``.
    coordinates : tuple[float, float]
        ``(lon, lat)`` in degrees.
    """

    name: str
    coordinates: tuple[float, float]

    def __post_init__(self) -> None:
        lon, lat = self.coordinates
        object.__setattr__(self, "coordinates", (float(lon), float(lat)))

    @property
    def lon(self) -> float:
        return self.coordinates[0]

    @property
    def lat(self) -> float:
        return self.coordinates[1]

    def describe(self) -> str:
        """Return ``"Name (lat, lon)"`` with four decimals, as map captions show it."""
        return f"{self.name} ({self.lat:.4f}, {self.lon:.4f})"


def coerce_location(value: Any) -> Location:
    """Accept a ``Location`` or a ``{"name": ..., "coordinates": (lon, lat)}`` mapping."""
    if isinstance(value, Location):
        return value
    if isinstance(value, Mapping):
        try:
            return Location(name=str(value["name"]), coordinates=tuple(value["coordinates"]))
        except KeyError as exc:
            raise ValueError(f"Location mapping is missing {exc.args[0]!r}") from exc
    raise ValueError(f"Cannot interpret {value!r} as a Location")


@dataclass(frozen=True)
class MapLayer:
    """One toggleable overlay of a stratum's map."""

    id: str
    name: str
    visible: bool
    type: LayerType

    def __post_init__(self) -> None:
        object.__setattr__(self, "type", coerce_enum(self.type, LayerType))


@dataclass(frozen=True)
class MapTabState:
    enabled: bool = True
    layers: tuple[MapLayer, ...] = ()

    @property
    def visible_layers(self) -> tuple[MapLayer, ...]:
        return tuple(layer for layer in self.layers if layer.visible)


@dataclass(frozen=True)
class GraphsTabState:
    """Chart sub-view state.

    Chart series are not stored here; they are derived from the owning
    stratum's id by :func:`stratoview.stratum_graphs.graph_series`.
    """

    enabled: bool = True


@dataclass(frozen=True)
class IndexComponent:
    """A named weighted factor of a composite index."""

    name: str
    value: float
    weight: float

    def __post_init__(self) -> None:
        if not 0 <= self.value <= 100:
            raise ValueError(f"Index component {self.name!r} value must be in [0, 100], got {self.value!r}")
        if not self.weight > 0:
            raise ValueError(f"Index component {self.name!r} weight must be > 0, got {self.weight!r}")


@dataclass(frozen=True)
class IndexTabState:
    """Composite-index sub-view state.

    The score itself is computed elsewhere; the workspace only stores and
    displays it.
    """

    enabled: bool = True
    value: float = 0
    description: str = ""
    components: tuple[IndexComponent, ...] = ()

    def __post_init__(self) -> None:
        if not 0 <= self.value <= 100:
            raise ValueError(f"Index value must be in [0, 100], got {self.value!r}")


@dataclass(frozen=True)
class StratumTabs:
    map: MapTabState = field(default_factory=MapTabState)
    graphs: GraphsTabState = field(default_factory=GraphsTabState)
    index: IndexTabState = field(default_factory=IndexTabState)

    def state_for(self, tab: StratumTab) -> MapTabState | GraphsTabState | IndexTabState:
        """Return the sub-view state for ``tab``."""
        return getattr(self, coerce_enum(tab, StratumTab).value)

    def is_enabled(self, tab: StratumTab) -> bool:
        return self.state_for(tab).enabled

    @property
    def enabled_tabs(self) -> tuple[StratumTab, ...]:
        """Enabled tabs in display order (map, graphs, index)."""
        return tuple(tab for tab in TAB_ORDER if self.is_enabled(tab))


@dataclass(frozen=True)
class Stratum:
    """One workspace panel.

    Parameters
    ----------
    id : str
        Stable identifier, unique within a workspace and never reused.
    name : str
        Display label.
    location : Location
        Geographic position shown by the map sub-view.
    active_tab : StratumTab
        Selected sub-view; must be enabled.
    layout : StratumLayout
        Tab-switched or side-by-side sub-views.
    is_expanded : bool
        Whether the panel currently occupies the workspace alone.
    tabs : StratumTabs
        Sub-view states.

    Raises
    ------
    ValueError
        If no tab is enabled or ``active_tab`` is disabled.
    """

    id: str
    name: str
    location: Location
    active_tab: StratumTab = StratumTab.MAP
    layout: StratumLayout = StratumLayout.TABS
    is_expanded: bool = False
    tabs: StratumTabs = field(default_factory=StratumTabs)

    def __post_init__(self) -> None:
        object.__setattr__(self, "location", coerce_location(self.location))
        object.__setattr__(self, "active_tab", coerce_enum(self.active_tab, StratumTab))
        object.__setattr__(self, "layout", coerce_enum(self.layout, StratumLayout))
        if not self.tabs.enabled_tabs:
            raise ValueError(f"Stratum {self.id!r} must have at least one enabled tab")
        if not self.tabs.is_enabled(self.active_tab):
            raise ValueError(
                f"Stratum {self.id!r} active tab {self.active_tab.value!r} is not enabled"
            )

    @property
    def enabled_tabs(self) -> tuple[StratumTab, ...]:
        return self.tabs.enabled_tabs

    def layer(self, layer_id: str) -> MapLayer | None:
        """Return the map layer with ``layer_id`` or ``None``."""
        for layer in self.tabs.map.layers:
            if layer.id == layer_id:
                return layer
        return None


def first_enabled_tab(enabled: Mapping[StratumTab, bool]) -> StratumTab | None:
    """Return the first enabled tab in display order, or ``None``."""
    for tab in TAB_ORDER:
        if enabled.get(tab, False):
            return tab
    return None


def normalize_enabled_tabs(enabled_tabs: Mapping[Any, bool] | None) -> dict[StratumTab, bool]:
    """Return a complete tab -> enabled mapping.

    Missing keys count as enabled. A request that disables all three tabs
    keeps the index tab enabled so the stratum invariant holds.
    """
    result = {tab: True for tab in TAB_ORDER}
    for key, flag in (enabled_tabs or {}).items():
        result[coerce_enum(key, StratumTab)] = bool(flag)
    if not any(result.values()):
        result[StratumTab.INDEX] = True
    return result
