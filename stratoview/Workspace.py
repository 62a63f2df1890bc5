"""Stratum workspace controller.

Purpose
-------
This module provides ``Workspace``, the one object that owns a session's
workspace state. It holds the current
:class:`~stratoview.WorkspaceSnapshot.WorkspaceSnapshot`, applies the pure
transitions from :mod:`stratoview.workspace_transitions`, and notifies hooks
with a :class:`~stratoview.WorkspaceEvent.WorkspaceEvent` whenever a
transition changed something.

Concepts and structure
----------------------
- ``Workspace`` serializes operations: each method reads the current
  snapshot, computes a whole new one, and commits it in a single assignment.
- ``derive_arrangement`` (from ``workspace_arrangement``) turns the state into
  the layout tree a renderer needs.
- ``WorkspaceLayout`` (from ``workspace_layout``) is built lazily the first
  time the workspace is displayed, so the engine itself needs no notebook.

Important gotchas
-----------------
- Panel cap, panel floor and unknown ids are silent no-ops. Use
  :attr:`Workspace.can_add` / :attr:`Workspace.can_remove` to grey out the
  matching controls.
- Module-level helpers (``stratoview.add_stratum`` and friends) route through
  the current workspace; enter ``with ws:`` first.

Examples
--------
>>> from stratoview import Workspace
>>> ws = Workspace()
>>> ws.add_stratum()
>>> ws.view_mode.value
'columns'
"""

from __future__ import annotations

import logging
import warnings
from collections.abc import Mapping
from typing import Any, Callable, Dict, Hashable, Optional

from IPython.display import display as ipy_display

from . import workspace_transitions as transitions
from .catalog import CatalogItem, stratum_options_for
from .geocoding import Geocoder, PlaceholderGeocoder
from .stratum_model import Location, Stratum, StratumLayout, StratumTab, ViewMode
from .workspace_arrangement import Arrangement, derive_arrangement
from .workspace_context import _pop_current_workspace, _push_current_workspace
from .workspace_defaults import MAX_STRATA, MIN_STRATA
from .workspace_layout import WorkspaceLayout
from .WorkspaceEvent import WorkspaceEvent
from .WorkspaceSnapshot import WorkspaceSnapshot

# Module logger
# - Uses a NullHandler so importing this module never configures global logging.
# - Callers can enable logs via standard logging configuration.
logger = logging.getLogger(__name__)
if not logger.handlers:
    logger.addHandler(logging.NullHandler())

WorkspaceHook = Callable[[WorkspaceEvent], Any]


class Workspace:
    """
    A bounded set of up to four strata with derived layout and location lock.

    Parameters
    ----------
    seed : Stratum, optional
        The stratum the session starts with. Defaults to the
        *Climate Impact Assessment* stratum.
    geocoder : Geocoder, optional
        Resolves ``search_location`` queries. Defaults to
        :class:`~stratoview.geocoding.PlaceholderGeocoder`.
    display : bool, optional
        Display the workspace widget immediately (notebook use).

    Examples
    --------
    >>> ws = Workspace()
    >>> ws.toggle_location_lock()
    >>> ws.location_locked
    True
    """

    __slots__ = ["_state", "_geocoder", "_hooks", "_hook_counter", "_layout", "_has_been_displayed"]

    def __init__(
        self,
        seed: Optional[Stratum] = None,
        *,
        geocoder: Optional[Geocoder] = None,
        display: bool = False,
    ) -> None:
        self._state = WorkspaceSnapshot.initial(seed)
        self._geocoder: Geocoder = geocoder if geocoder is not None else PlaceholderGeocoder()
        self._hooks: Dict[Hashable, WorkspaceHook] = {}
        self._hook_counter = 0
        self._layout: Optional[WorkspaceLayout] = None
        self._has_been_displayed = False
        logger.info("workspace created with seed stratum %r", self._state.strata[0].id)
        if display:
            self._ipython_display_()

    # --- State access ---

    @property
    def state(self) -> WorkspaceSnapshot:
        """The current immutable snapshot."""
        return self._state

    def snapshot(self) -> WorkspaceSnapshot:
        """Alias of :attr:`state`, mirroring the other snapshot-producing APIs."""
        return self._state

    @property
    def strata(self) -> tuple[Stratum, ...]:
        return self._state.strata

    @property
    def active_stratum_id(self) -> Optional[str]:
        return self._state.active_stratum_id

    @property
    def active_stratum(self) -> Optional[Stratum]:
        return self._state.active_stratum

    @property
    def view_mode(self) -> ViewMode:
        return self._state.view_mode

    @property
    def previous_view_mode(self) -> Optional[ViewMode]:
        return self._state.previous_view_mode

    @property
    def location_locked(self) -> bool:
        return self._state.location_locked

    @property
    def geocoder(self) -> Geocoder:
        return self._geocoder

    def stratum(self, stratum_id: str) -> Stratum:
        """Return stratum ``stratum_id`` or raise ``KeyError``."""
        found = self._state.find(stratum_id)
        if found is None:
            raise KeyError(f"Unknown stratum: {stratum_id}")
        return found

    @property
    def can_add(self) -> bool:
        """Whether ``add_stratum`` would add anything (the "add" affordance)."""
        return len(self._state.strata) < MAX_STRATA

    @property
    def can_remove(self) -> bool:
        return len(self._state.strata) > MIN_STRATA

    @property
    def can_expand(self) -> bool:
        """Expand/shrink only makes sense with more than one stratum."""
        return len(self._state.strata) > 1

    def arrangement(self) -> Arrangement:
        """Derive the layout tree for the current state."""
        s = self._state
        return derive_arrangement(s.view_mode, s.strata, s.active_stratum_id)

    # --- Operations ---

    def add_stratum(
        self,
        *,
        name: Optional[str] = None,
        enabled_tabs: Optional[Mapping[Any, bool]] = None,
        location: Optional[Location | Mapping[str, Any]] = None,
        description: Optional[str] = None,
    ) -> None:
        """Add a stratum (no-op when four exist). See :func:`workspace_transitions.add_stratum`."""
        self._apply(
            "add_stratum",
            transitions.add_stratum(
                self._state,
                name=name,
                enabled_tabs=enabled_tabs,
                location=location,
                description=description,
            ),
            name=name,
            location=location,
        )

    def add_from_catalog(self, item: CatalogItem) -> None:
        """Add ``item`` as a new stratum carrying its title, location and contents."""
        self._apply(
            "add_from_catalog",
            transitions.add_stratum(self._state, **stratum_options_for(item)),
            item_id=item.id,
        )

    def remove_stratum(self, stratum_id: str) -> None:
        self._apply("remove_stratum", transitions.remove_stratum(self._state, stratum_id), stratum_id=stratum_id)

    def set_active_stratum(self, stratum_id: Optional[str]) -> None:
        self._apply(
            "set_active_stratum",
            transitions.set_active_stratum(self._state, stratum_id),
            stratum_id=stratum_id,
        )

    def update_stratum(self, stratum_id: str, **updates: Any) -> None:
        """Merge fields into one stratum; a locked location reaches every stratum."""
        self._apply(
            "update_stratum",
            transitions.update_stratum(self._state, stratum_id, **updates),
            stratum_id=stratum_id,
            fields=tuple(sorted(updates)),
        )

    def set_stratum_tab(self, stratum_id: str, tab: StratumTab | str) -> None:
        self._apply("set_stratum_tab", transitions.set_stratum_tab(self._state, stratum_id, tab), stratum_id=stratum_id, tab=tab)

    def set_stratum_layout(self, stratum_id: str, layout: StratumLayout | str) -> None:
        self._apply(
            "set_stratum_layout",
            transitions.set_stratum_layout(self._state, stratum_id, layout),
            stratum_id=stratum_id,
            layout=layout,
        )

    def toggle_stratum_expanded(self, stratum_id: str) -> None:
        self._apply(
            "toggle_stratum_expanded",
            transitions.toggle_stratum_expanded(self._state, stratum_id),
            stratum_id=stratum_id,
        )

    def focus_stratum(self, stratum_id: str) -> None:
        """Expand a panel to fill the workspace, or shrink it back."""
        self._apply("focus_stratum", transitions.focus_stratum(self._state, stratum_id), stratum_id=stratum_id)

    def set_view_mode(self, mode: ViewMode | str) -> None:
        self._apply("set_view_mode", transitions.set_view_mode(self._state, mode), mode=mode)

    def toggle_layer(self, stratum_id: str, layer_id: str) -> None:
        self._apply(
            "toggle_layer",
            transitions.toggle_layer(self._state, stratum_id, layer_id),
            stratum_id=stratum_id,
            layer_id=layer_id,
        )

    def toggle_location_lock(self) -> None:
        self._apply("toggle_location_lock", transitions.toggle_location_lock(self._state))

    def sync_location(self, location: Location | Mapping[str, Any]) -> None:
        self._apply("sync_location", transitions.sync_location(self._state, location), location=location)

    def search_location(self, query: str, stratum_id: str) -> None:
        """Geocode ``query`` and move ``stratum_id`` (or all strata, when locked) there."""
        self._apply(
            "search_location",
            transitions.search_location(self._state, query, stratum_id, self._geocoder),
            query=query,
            stratum_id=stratum_id,
        )

    def pan_stratum(self, stratum_id: str, dx: float, dy: float) -> None:
        """Apply a map drag of ``(dx, dy)`` pixels to a stratum's location."""
        self._apply(
            "pan_stratum",
            transitions.pan_stratum(self._state, stratum_id, dx, dy),
            stratum_id=stratum_id,
            dx=dx,
            dy=dy,
        )

    # --- Hooks ---

    def add_hook(self, callback: WorkspaceHook, hook_id: Optional[Hashable] = None) -> Hashable:
        """Register ``callback(event)`` to run after every state change.

        Parameters
        ----------
        callback : callable
            Receives a :class:`WorkspaceEvent`.
        hook_id : hashable, optional
            Identifier; generated when omitted. Re-using an id replaces the hook.

        Returns
        -------
        hashable
            The hook identifier, for :meth:`remove_hook`.
        """
        if hook_id is None:
            self._hook_counter += 1
            hook_id = f"hook:{self._hook_counter}"
        self._hooks[hook_id] = callback
        return hook_id

    def remove_hook(self, hook_id: Hashable) -> None:
        self._hooks.pop(hook_id, None)

    # --- Internal / Plumbing ---

    def _apply(self, operation: str, new_state: WorkspaceSnapshot, **arguments: Any) -> None:
        """Commit ``new_state`` and notify hooks, unless the transition was a no-op."""
        old_state = self._state
        if new_state is old_state:
            logger.debug("%s: no change", operation)
            return
        self._state = new_state
        logger.debug(
            "%s: strata=%d view_mode=%s active=%s locked=%s",
            operation,
            len(new_state.strata),
            new_state.view_mode.value,
            new_state.active_stratum_id,
            new_state.location_locked,
        )
        event = WorkspaceEvent(operation=operation, before=old_state, after=new_state, arguments=arguments)
        for hook_id, hook in list(self._hooks.items()):
            try:
                hook(event)
            except Exception as exc:
                warnings.warn(f"Workspace hook {hook_id!r} failed after {operation}: {exc}")

    @property
    def layout(self) -> WorkspaceLayout:
        """The widget tree for this workspace, built on first access."""
        if self._layout is None:
            self._layout = WorkspaceLayout(self)
            self.add_hook(self._layout.on_workspace_event, hook_id="layout")
        return self._layout

    def _ipython_display_(self, **kwargs: Any) -> None:
        """IPython display hook: show the workspace widget."""
        self._has_been_displayed = True
        ipy_display(self.layout.output_widget)

    def __enter__(self) -> "Workspace":
        """Make this workspace the target of module-level helpers."""
        _push_current_workspace(self)
        return self

    def __exit__(self, exc_type: Any, exc: Any, tb: Any) -> None:
        _pop_current_workspace(self)

    def __repr__(self) -> str:
        return f"Workspace({self._state!r})"
