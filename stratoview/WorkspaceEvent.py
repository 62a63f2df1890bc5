"""Standardized workspace-change event payloads.

This module defines ``WorkspaceEvent``, the immutable structure the
:class:`~stratoview.Workspace.Workspace` controller hands to its hooks after
every committed transition.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Mapping

from .WorkspaceSnapshot import WorkspaceSnapshot


@dataclass(frozen=True)
class WorkspaceEvent:
    """Normalized change notification emitted by the workspace controller.

    Parameters
    ----------
    operation : str
        Name of the operation that produced the change, e.g. ``"add_stratum"``.
    before : WorkspaceSnapshot
        State prior to the operation.
    after : WorkspaceSnapshot
        State after the operation (the workspace's new current snapshot).
    arguments : Mapping[str, Any]
        Arguments the operation was called with, for debugging.

    Notes
    -----
    Events are only emitted for operations that changed state; no-ops at the
    panel cap, panel floor or with unknown ids are silent.

    Examples
    --------
    >>> from stratoview.WorkspaceSnapshot import WorkspaceSnapshot  # doctest: +SKIP
    >>> s = WorkspaceSnapshot.initial()  # doctest: +SKIP
    >>> WorkspaceEvent("set_view_mode", s, s)  # doctest: +SKIP
    """

    operation: str
    before: WorkspaceSnapshot
    after: WorkspaceSnapshot
    arguments: Mapping[str, Any] = field(default_factory=dict)

    @property
    def count_changed(self) -> bool:
        return len(self.before) != len(self.after)

    @property
    def view_mode_changed(self) -> bool:
        return self.before.view_mode is not self.after.view_mode
