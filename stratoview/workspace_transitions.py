"""Pure state transitions of the stratum workspace.

Purpose
-------
Every workspace operation is a total function from a
:class:`~stratoview.WorkspaceSnapshot.WorkspaceSnapshot` (plus arguments) to a
new snapshot. Boundary conditions (panel cap, panel floor, unknown ids) return
the input snapshot object unchanged, so callers detect a no-op with ``is``.

Concepts and structure
----------------------
- Count-derived view mode (:func:`view_mode_for_count`) fires only inside
  :func:`add_stratum` and :func:`remove_stratum` and does not touch the
  view-mode history.
- :func:`set_view_mode` keeps a single-slot history in
  ``previous_view_mode``; :func:`focus_stratum` uses it to shrink an expanded
  panel back to the arrangement it came from.
- Location lock: while locked, any location written through
  :func:`update_stratum` lands on every stratum.

Architecture notes
------------------
Nothing here holds state or performs I/O apart from debug logging. The
:class:`~stratoview.Workspace.Workspace` controller is the only caller that
commits results.
"""

from __future__ import annotations

import logging
from dataclasses import fields, replace
from typing import Any, Mapping

from .geocoding import Geocoder
from .stratum_model import (
    Location,
    Stratum,
    StratumLayout,
    StratumTab,
    ViewMode,
    coerce_enum,
    coerce_location,
)
from .workspace_defaults import MAX_STRATA, MIN_STRATA, create_default_stratum, stratum_id_for
from .WorkspaceSnapshot import WorkspaceSnapshot

logger = logging.getLogger(__name__)
if not logger.handlers:
    logger.addHandler(logging.NullHandler())

_UPDATABLE_FIELDS = frozenset(f.name for f in fields(Stratum)) - {"id"}

# Map drag sensitivity: degrees per pixel.
PAN_DEGREES_PER_PIXEL = 0.01


def view_mode_for_count(count: int) -> ViewMode:
    """Return the arrangement implied by a panel count: 1 single, 2-3 columns, 4 grid."""
    if count <= 1:
        return ViewMode.SINGLE
    if count <= 3:
        return ViewMode.COLUMNS
    return ViewMode.GRID


def _replace_stratum(state: WorkspaceSnapshot, stratum_id: str, new: Stratum) -> WorkspaceSnapshot:
    return replace(
        state,
        strata=tuple(new if s.id == stratum_id else s for s in state.strata),
    )


def add_stratum(
    state: WorkspaceSnapshot,
    *,
    name: str | None = None,
    enabled_tabs: Mapping[Any, bool] | None = None,
    location: Location | Mapping[str, Any] | None = None,
    description: str | None = None,
) -> WorkspaceSnapshot:
    """Append a new stratum unless the workspace is full.

    Parameters
    ----------
    state : WorkspaceSnapshot
        Current state.
    name : str, optional
        Display name; defaults to ``"Stratum {n}"`` where ``n`` is the new count.
    enabled_tabs : mapping, optional
        Tab -> enabled flags; missing tabs are enabled.
    location : Location or mapping, optional
        Explicit location. Without one, a locked workspace hands the new
        stratum the first stratum's location; otherwise New York is used.
    description : str, optional
        Composite-index description.

    Returns
    -------
    WorkspaceSnapshot
        New state, or ``state`` itself when four strata already exist.

    Notes
    -----
    The new id is the first unused `stratum-{n}` at or after
    ``state.next_ordinal``, so a seed carrying any id stays unique.
    After insertion the view mode is re-derived from the count. If the
    workspace was in single mode before the call, the new stratum becomes
    active.
    """
    if len(state.strata) >= MAX_STRATA:
        logger.debug("add_stratum ignored: workspace already holds %d strata", len(state.strata))
        return state

    if location is not None:
        resolved = coerce_location(location)
    elif state.location_locked and state.strata:
        resolved = state.strata[0].location
    else:
        resolved = None

    ordinal = state.next_ordinal
    taken = set(state.stratum_ids)
    while stratum_id_for(ordinal) in taken:
        ordinal += 1

    new = create_default_stratum(
        stratum_id_for(ordinal),
        position=len(state.strata) + 1,
        name=name,
        enabled_tabs=enabled_tabs,
        location=resolved,
        description=description,
    )
    strata = state.strata + (new,)
    active = new.id if state.view_mode is ViewMode.SINGLE else state.active_stratum_id
    return replace(
        state,
        strata=strata,
        active_stratum_id=active,
        view_mode=view_mode_for_count(len(strata)),
        next_ordinal=ordinal + 1,
    )


def remove_stratum(state: WorkspaceSnapshot, stratum_id: str) -> WorkspaceSnapshot:
    """Delete a stratum unless it is the last one.

    The view mode is re-derived from the new count. Removing the active
    stratum hands focus to the first remaining one.
    """
    if len(state.strata) <= MIN_STRATA:
        logger.debug("remove_stratum ignored: workspace must keep %d stratum", MIN_STRATA)
        return state
    if state.find(stratum_id) is None:
        logger.debug("remove_stratum ignored: unknown stratum %r", stratum_id)
        return state

    strata = tuple(s for s in state.strata if s.id != stratum_id)
    active = strata[0].id if state.active_stratum_id == stratum_id else state.active_stratum_id
    return replace(
        state,
        strata=strata,
        active_stratum_id=active,
        view_mode=view_mode_for_count(len(strata)),
    )


def set_active_stratum(state: WorkspaceSnapshot, stratum_id: str | None) -> WorkspaceSnapshot:
    """Assign the active stratum id. Membership is the caller's responsibility."""
    if stratum_id == state.active_stratum_id:
        return state
    return replace(state, active_stratum_id=stratum_id)


def _normalize_update(updates: Mapping[str, Any]) -> dict[str, Any]:
    unknown = set(updates) - _UPDATABLE_FIELDS
    if unknown:
        raise TypeError(f"Unknown stratum field(s): {', '.join(sorted(unknown))}")
    out = dict(updates)
    if "location" in out:
        out["location"] = coerce_location(out["location"])
    if "active_tab" in out:
        out["active_tab"] = coerce_enum(out["active_tab"], StratumTab)
    if "layout" in out:
        out["layout"] = coerce_enum(out["layout"], StratumLayout)
    if "is_expanded" in out:
        out["is_expanded"] = bool(out["is_expanded"])
    return out


def _merge(stratum: Stratum, updates: Mapping[str, Any]) -> Stratum | None:
    """Return ``stratum`` with ``updates`` applied, or ``None`` if that breaks the tab invariant."""
    tabs = updates.get("tabs", stratum.tabs)
    enabled = tabs.enabled_tabs
    if not enabled:
        return None
    active = updates.get("active_tab", stratum.active_tab)
    if active not in enabled:
        active = enabled[0]
    return replace(stratum, **{**updates, "active_tab": active})


def update_stratum(state: WorkspaceSnapshot, stratum_id: str, **updates: Any) -> WorkspaceSnapshot:
    """Merge ``updates`` into one stratum.

    Parameters
    ----------
    state : WorkspaceSnapshot
        Current state.
    stratum_id : str
        Target stratum.
    **updates : Any
        Any of ``name``, ``location``, ``active_tab``, ``layout``,
        ``is_expanded``, ``tabs``.

    Returns
    -------
    WorkspaceSnapshot
        New state; ``state`` itself for unknown ids or an update that would
        leave the stratum without an enabled tab.

    Raises
    ------
    TypeError
        If ``updates`` names a field strata do not have.

    Notes
    -----
    When the workspace is location-locked and ``updates`` carries a
    ``location``, that location is written to every stratum; the remaining
    fields still apply to the target only.
    """
    normalized = _normalize_update(updates)
    target = state.find(stratum_id)
    if target is None:
        logger.debug("update_stratum ignored: unknown stratum %r", stratum_id)
        return state
    if not normalized:
        return state

    merged = _merge(target, normalized)
    if merged is None:
        logger.debug("update_stratum ignored: %r would have no enabled tab", stratum_id)
        return state

    new_state = _replace_stratum(state, stratum_id, merged)
    if state.location_locked and "location" in normalized:
        new_state = sync_location(new_state, normalized["location"])
    return new_state


def set_stratum_tab(state: WorkspaceSnapshot, stratum_id: str, tab: StratumTab | str) -> WorkspaceSnapshot:
    """Select a sub-view of one stratum. Disabled tabs are ignored."""
    tab = coerce_enum(tab, StratumTab)
    target = state.find(stratum_id)
    if target is None or not target.tabs.is_enabled(tab):
        logger.debug("set_stratum_tab ignored: %r / %s", stratum_id, tab.value)
        return state
    if target.active_tab is tab:
        return state
    return _replace_stratum(state, stratum_id, replace(target, active_tab=tab))


def set_stratum_layout(
    state: WorkspaceSnapshot, stratum_id: str, layout: StratumLayout | str
) -> WorkspaceSnapshot:
    layout = coerce_enum(layout, StratumLayout)
    target = state.find(stratum_id)
    if target is None or target.layout is layout:
        return state
    return _replace_stratum(state, stratum_id, replace(target, layout=layout))


def toggle_stratum_expanded(state: WorkspaceSnapshot, stratum_id: str) -> WorkspaceSnapshot:
    target = state.find(stratum_id)
    if target is None:
        return state
    return _replace_stratum(state, stratum_id, replace(target, is_expanded=not target.is_expanded))


def set_view_mode(state: WorkspaceSnapshot, mode: ViewMode | str) -> WorkspaceSnapshot:
    """Switch the view mode, remembering the outgoing mode (one level deep)."""
    mode = coerce_enum(mode, ViewMode)
    if mode is state.view_mode:
        return state
    return replace(state, previous_view_mode=state.view_mode, view_mode=mode)


def toggle_layer(state: WorkspaceSnapshot, stratum_id: str, layer_id: str) -> WorkspaceSnapshot:
    """Flip the visibility of one map layer of one stratum."""
    target = state.find(stratum_id)
    if target is None or target.layer(layer_id) is None:
        logger.debug("toggle_layer ignored: %r / %r", stratum_id, layer_id)
        return state
    layers = tuple(
        replace(layer, visible=not layer.visible) if layer.id == layer_id else layer
        for layer in target.tabs.map.layers
    )
    tabs = replace(target.tabs, map=replace(target.tabs.map, layers=layers))
    return _replace_stratum(state, stratum_id, replace(target, tabs=tabs))


def sync_location(state: WorkspaceSnapshot, location: Location | Mapping[str, Any]) -> WorkspaceSnapshot:
    """Assign ``location`` to every stratum."""
    location = coerce_location(location)
    return replace(state, strata=tuple(replace(s, location=location) for s in state.strata))


def toggle_location_lock(state: WorkspaceSnapshot) -> WorkspaceSnapshot:
    """Flip the location lock.

    Locking a workspace with more than one stratum first moves every stratum
    to the active stratum's location (the first stratum's when nothing valid
    is active), within the same transition. Unlocking only flips the flag.
    """
    if not state.location_locked and len(state.strata) > 1:
        anchor = state.active_stratum or state.strata[0]
        state = sync_location(state, anchor.location)
    return replace(state, location_locked=not state.location_locked)


def search_location(
    state: WorkspaceSnapshot, query: str, stratum_id: str, geocoder: Geocoder
) -> WorkspaceSnapshot:
    """Resolve ``query`` and write the result as ``stratum_id``'s location."""
    return update_stratum(state, stratum_id, location=geocoder.resolve(query))


def pan_stratum(state: WorkspaceSnapshot, stratum_id: str, dx: float, dy: float) -> WorkspaceSnapshot:
    """Shift a stratum's map centre by a drag of ``(dx, dy)`` pixels.

    Dragging right moves west, dragging down moves north; the location name is
    kept. Routed through :func:`update_stratum`, so the lock applies.
    """
    target = state.find(stratum_id)
    if target is None:
        return state
    lon, lat = target.location.coordinates
    moved = Location(
        name=target.location.name,
        coordinates=(lon - dx * PAN_DEGREES_PER_PIXEL, lat + dy * PAN_DEGREES_PER_PIXEL),
    )
    return update_stratum(state, stratum_id, location=moved)


def focus_stratum(state: WorkspaceSnapshot, stratum_id: str) -> WorkspaceSnapshot:
    """Expand or shrink a panel, as its focus button does.

    The stratum becomes active. Expanding switches the workspace to single
    mode (recording the outgoing mode); shrinking restores
    ``previous_view_mode`` when it is set and not single. The stratum's
    ``is_expanded`` flag is flipped last.
    """
    target = state.find(stratum_id)
    if target is None:
        return state
    state = set_active_stratum(state, stratum_id)
    if not target.is_expanded:
        if state.view_mode is not ViewMode.SINGLE:
            state = set_view_mode(state, ViewMode.SINGLE)
    elif state.previous_view_mode is not None and state.previous_view_mode is not ViewMode.SINGLE:
        state = set_view_mode(state, state.previous_view_mode)
    return toggle_stratum_expanded(state, stratum_id)
