"""Top-level public API for the ``stratoview`` package.

This module re-exports the notebook-facing surface so users can import from a
single namespace, for example:

>>> from stratoview import Workspace, add_stratum, set_view_mode  # doctest: +SKIP

It exposes the ``Workspace`` controller and its module-level helpers, the
immutable value types, and the catalog and geocoding building blocks for
custom integrations.
"""

from .assistant import AssistantChannel, AssistantMessage
from .catalog import (
    DEFAULT_CATALOG,
    CatalogBrowser,
    CatalogItem,
    ContentFilter,
    SortOption,
    preview_stratum,
    query_catalog,
)
from .geocoding import Geocoder, PlaceholderGeocoder
from .stratum_graphs import build_graphs_figure, graph_series
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
    ViewMode,
)
from .Workspace import Workspace
from .workspace_api import (
    add_from_catalog,
    add_stratum,
    focus_stratum,
    get_active_stratum,
    get_view_mode,
    pan_stratum,
    remove_stratum,
    search_location,
    set_active_stratum,
    set_stratum_layout,
    set_stratum_tab,
    set_view_mode,
    snapshot,
    strata,
    sync_location,
    toggle_layer,
    toggle_location_lock,
    toggle_stratum_expanded,
    update_stratum,
)
from .workspace_arrangement import Arrangement, LayoutCell, LayoutGroup, derive_arrangement
from .workspace_context import current_workspace
from .workspace_defaults import MAX_STRATA, MIN_STRATA, create_default_stratum, create_seed_stratum
from .WorkspaceEvent import WorkspaceEvent
from .WorkspaceSnapshot import WorkspaceSnapshot
