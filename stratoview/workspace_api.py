"""Module-level convenience API for current-workspace workflows.

Purpose
-------
Notebook-facing free functions such as ``add_stratum()`` and
``set_view_mode()``. Each helper delegates to the workspace of the innermost
``with ws:`` block and stores no state of its own.

Architecture
------------
- Current-workspace resolution is handled by :mod:`workspace_context`.
- Every operation is implemented on :class:`Workspace`; the helpers only
  forward arguments.
- ``strata`` is a read-only mapping proxy over the current workspace's strata,
  keyed by stratum id.

Examples
--------
>>> from stratoview import Workspace, add_stratum, set_view_mode
>>> ws = Workspace()
>>> with ws:
...     add_stratum(name="Flood risk")
...     set_view_mode("grid")
>>> len(ws.strata)
2
"""

from __future__ import annotations

from collections.abc import Iterator, Mapping
from typing import TYPE_CHECKING, Any, Optional

from .workspace_context import _require_current_workspace

if TYPE_CHECKING:
    from .catalog import CatalogItem
    from .stratum_model import Location, Stratum, StratumLayout, StratumTab, ViewMode
    from .Workspace import Workspace
    from .WorkspaceSnapshot import WorkspaceSnapshot


class _CurrentStrataProxy(Mapping):
    """Module-level proxy to the current workspace's strata, by id."""

    def _ws(self) -> Workspace:
        return _require_current_workspace()

    def __getitem__(self, key: str) -> Stratum:
        return self._ws().stratum(key)

    def __iter__(self) -> Iterator[str]:
        return iter(self._ws().state.stratum_ids)

    def __len__(self) -> int:
        return len(self._ws().strata)

    def __contains__(self, key: object) -> bool:
        return key in self._ws().state.stratum_ids


strata = _CurrentStrataProxy()


def snapshot() -> WorkspaceSnapshot:
    """Return the current workspace's immutable snapshot."""
    return _require_current_workspace().snapshot()


def get_view_mode() -> ViewMode:
    return _require_current_workspace().view_mode


def get_active_stratum() -> Optional[Stratum]:
    return _require_current_workspace().active_stratum


def add_stratum(
    *,
    name: Optional[str] = None,
    enabled_tabs: Optional[Mapping[Any, bool]] = None,
    location: Location | Mapping[str, Any] | None = None,
    description: Optional[str] = None,
) -> None:
    """Add a stratum to the current workspace.

    Parameters
    ----------
    name : str, optional
        Display name; ``"Stratum {n}"`` by default.
    enabled_tabs : mapping, optional
        Tab -> enabled flags; missing tabs are enabled.
    location : Location or mapping, optional
        Explicit location; otherwise the lock or the default location decides.
    description : str, optional
        Composite-index description.

    Returns
    -------
    None
        A full workspace is left unchanged.
    """
    _require_current_workspace().add_stratum(
        name=name, enabled_tabs=enabled_tabs, location=location, description=description
    )


def add_from_catalog(item: CatalogItem) -> None:
    """Add a stratum seeded from a catalog item's title, contents and location."""
    _require_current_workspace().add_from_catalog(item)


def remove_stratum(stratum_id: str) -> None:
    _require_current_workspace().remove_stratum(stratum_id)


def set_active_stratum(stratum_id: Optional[str]) -> None:
    _require_current_workspace().set_active_stratum(stratum_id)


def update_stratum(stratum_id: str, **updates: Any) -> None:
    """Merge ``updates`` into one stratum.

    Parameters
    ----------
    stratum_id : str
        Target stratum; unknown ids are ignored.
    **updates : Any
        Any of ``name``, ``location``, ``active_tab``, ``layout``,
        ``is_expanded`` or ``tabs``. With the location lock on, a new
        location reaches every stratum.

    Raises
    ------
    TypeError
        If an unknown field name is passed.
    """
    _require_current_workspace().update_stratum(stratum_id, **updates)


def set_stratum_tab(stratum_id: str, tab: StratumTab | str) -> None:
    _require_current_workspace().set_stratum_tab(stratum_id, tab)


def set_stratum_layout(stratum_id: str, layout: StratumLayout | str) -> None:
    _require_current_workspace().set_stratum_layout(stratum_id, layout)


def toggle_stratum_expanded(stratum_id: str) -> None:
    _require_current_workspace().toggle_stratum_expanded(stratum_id)


def focus_stratum(stratum_id: str) -> None:
    """Expand or shrink a stratum the way the panel's expand button does."""
    _require_current_workspace().focus_stratum(stratum_id)


def set_view_mode(mode: ViewMode | str) -> None:
    _require_current_workspace().set_view_mode(mode)


def toggle_layer(stratum_id: str, layer_id: str) -> None:
    _require_current_workspace().toggle_layer(stratum_id, layer_id)


def toggle_location_lock() -> None:
    """Flip the location lock; locking copies the active stratum's location to all."""
    _require_current_workspace().toggle_location_lock()


def sync_location(location: Location | Mapping[str, Any]) -> None:
    _require_current_workspace().sync_location(location)


def search_location(query: str, stratum_id: Optional[str] = None) -> None:
    """Geocode ``query`` for ``stratum_id``, defaulting to the active stratum."""
    ws = _require_current_workspace()
    target = stratum_id if stratum_id is not None else ws.active_stratum_id
    if target is None:
        return
    ws.search_location(query, target)


def pan_stratum(stratum_id: str, dx: float, dy: float) -> None:
    """Shift a stratum's map center by a drag of ``(dx, dy)`` pixels."""
    _require_current_workspace().pan_stratum(stratum_id, dx, dy)
