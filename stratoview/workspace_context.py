"""Current-workspace context stack.

Module-level helpers in :mod:`stratoview.workspace_api` act on "the current
workspace", which is whatever ``with ws:`` block is innermost on this thread.
Reaching for the current workspace outside such a block is a setup error and
raises ``RuntimeError`` at the call site.
"""

from __future__ import annotations

import threading
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .Workspace import Workspace

_WORKSPACE_STACK_LOCAL = threading.local()


def _workspace_stack() -> list[Workspace]:
    """Return a thread-local workspace stack."""
    stack = getattr(_WORKSPACE_STACK_LOCAL, "stack", None)
    if stack is None:
        stack = []
        _WORKSPACE_STACK_LOCAL.stack = stack
    return stack


def _current_workspace() -> Workspace | None:
    """Return the most recently pushed Workspace, if any."""
    stack = _workspace_stack()
    if not stack:
        return None
    return stack[-1]


def _require_current_workspace() -> Workspace:
    """Return the current Workspace, or raise if none is active.

    Raises
    ------
    RuntimeError
        If no Workspace is active.
    """
    ws = _current_workspace()
    if ws is None:
        raise RuntimeError("No current Workspace. Use `with ws:` first.")
    return ws


def current_workspace(*, required: bool = True) -> Workspace | None:
    """Return the active Workspace from the context stack.

    Parameters
    ----------
    required : bool, default=True
        If True, raise when no workspace is currently active.

    Returns
    -------
    Workspace or None
        Active workspace, or None when ``required=False`` and no context is active.
    """
    ws = _current_workspace()
    if ws is None and required:
        raise RuntimeError(
            "No active Workspace. Use `with ws:` to set one before calling "
            "module-level workspace helpers."
        )
    return ws


def _push_current_workspace(ws: Workspace) -> None:
    """Push a Workspace onto this thread's stack.

    Parameters
    ----------
    ws : Workspace
        The workspace to mark as current.

    Returns
    -------
    None
    """
    _workspace_stack().append(ws)


def _pop_current_workspace(ws: Workspace) -> None:
    """Remove a specific Workspace from this thread's stack if present.

    Parameters
    ----------
    ws : Workspace
        The workspace to remove, matched by identity.

    Returns
    -------
    None
    """
    stack = _workspace_stack()
    if not stack:
        return
    if stack[-1] is ws:
        stack.pop()
        return
    for i in range(len(stack) - 1, -1, -1):
        if stack[i] is ws:
            del stack[i]
            break
