"""Layout derivation: from view mode and strata to an arrangement tree.

Purpose
-------
``derive_arrangement`` is the pure function the presentation layer calls on
every render. It decides which strata are visible and how they are split into
rows and columns, with default sizes as percentages of the parent extent.

Notes
-----
- Grid mode with three visible panels keeps the fourth slot as an explicit
  empty cell (``stratum_id is None``) instead of widening the third panel.
- Resizing is left to the widget layer; the sizes here are starting
  allocations and never fall below :data:`MIN_CELL_PERCENT`.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterator, Literal, Optional, Sequence, Union

from .stratum_model import Stratum, ViewMode, coerce_enum
from .workspace_defaults import MIN_CELL_PERCENT

Direction = Literal["horizontal", "vertical"]


@dataclass(frozen=True)
class LayoutCell:
    """One slot of the arrangement.

    Parameters
    ----------
    stratum_id : str or None
        Stratum shown in this slot; ``None`` marks an empty slot.
    size : float
        Default share of the parent group, in percent.
    min_size : float
        Smallest share the slot may be resized to, in percent.
    is_active : bool
        Whether the slot shows the active stratum.
    """

    stratum_id: Optional[str]
    size: float
    min_size: float = MIN_CELL_PERCENT
    is_active: bool = False

    @property
    def is_empty(self) -> bool:
        return self.stratum_id is None


@dataclass(frozen=True)
class LayoutGroup:
    """A row (``horizontal``) or column stack (``vertical``) of children."""

    direction: Direction
    children: tuple[Union["LayoutGroup", LayoutCell], ...] = ()
    size: float = 100.0
    min_size: float = MIN_CELL_PERCENT

    def cells(self) -> Iterator[LayoutCell]:
        """Yield cells depth-first, in display order."""
        for child in self.children:
            if isinstance(child, LayoutCell):
                yield child
            else:
                yield from child.cells()


@dataclass(frozen=True)
class Arrangement:
    """Derived layout of a workspace for one render."""

    view_mode: ViewMode
    root: LayoutGroup
    visible_ids: tuple[str, ...]

    def cells(self) -> tuple[LayoutCell, ...]:
        return tuple(self.root.cells())

    @property
    def shape(self) -> tuple[int, ...]:
        """Number of cells per row, e.g. ``(2, 2)`` for a full grid."""
        if self.root.direction == "vertical":
            return tuple(
                len(tuple(row.cells())) if isinstance(row, LayoutGroup) else 1
                for row in self.root.children
            )
        return (len(self.root.children),) if self.root.children else ()


def visible_strata(
    view_mode: ViewMode | str, strata: Sequence[Stratum], active_stratum_id: Optional[str]
) -> tuple[Stratum, ...]:
    """Return the strata shown in ``view_mode``: only the active one in single mode."""
    mode = coerce_enum(view_mode, ViewMode)
    if mode is ViewMode.SINGLE:
        return tuple(s for s in strata if s.id == active_stratum_id)
    return tuple(strata)


def _equal_share(count: int) -> float:
    return max(100.0 / count, MIN_CELL_PERCENT)


def _row(ids: Sequence[Optional[str]], active: Optional[str], *, slots: int, size: float = 100.0) -> LayoutGroup:
    share = _equal_share(slots)
    return LayoutGroup(
        direction="horizontal",
        children=tuple(
            LayoutCell(stratum_id=sid, size=share, is_active=sid is not None and sid == active)
            for sid in ids
        ),
        size=size,
    )


def derive_arrangement(
    view_mode: ViewMode | str,
    strata: Sequence[Stratum],
    active_stratum_id: Optional[str],
) -> Arrangement:
    """Compute the arrangement tree for the current workspace state.

    Parameters
    ----------
    view_mode : ViewMode or str
        Current view mode.
    strata : sequence of Stratum
        All strata, in workspace order.
    active_stratum_id : str or None
        Focused stratum id.

    Returns
    -------
    Arrangement
        Root group plus the ids of the visible strata.

    Examples
    --------
    >>> from stratoview.WorkspaceSnapshot import WorkspaceSnapshot
    >>> s = WorkspaceSnapshot.initial()
    >>> derive_arrangement(s.view_mode, s.strata, s.active_stratum_id).shape
    (1,)
    """
    mode = coerce_enum(view_mode, ViewMode)
    ids = tuple(s.id for s in visible_strata(mode, strata, active_stratum_id))
    count = len(ids)

    if count == 0:
        root = LayoutGroup(direction="horizontal")
    elif count == 1 or mode is not ViewMode.GRID or count == 2:
        root = _row(ids, active_stratum_id, slots=count)
    else:
        top = _row(ids[:2], active_stratum_id, slots=2, size=50.0)
        bottom_ids: tuple[Optional[str], ...] = ids[2:4]
        if len(bottom_ids) == 1:
            bottom_ids = bottom_ids + (None,)
        bottom = _row(bottom_ids, active_stratum_id, slots=2, size=50.0)
        root = LayoutGroup(direction="vertical", children=(top, bottom))

    return Arrangement(view_mode=mode, root=root, visible_ids=ids)
