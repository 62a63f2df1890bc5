"""Immutable snapshot of a workspace's complete state.

A ``WorkspaceSnapshot`` is the single value every workspace transition reads
and produces. The :class:`~stratoview.Workspace.Workspace` controller keeps
exactly one current snapshot and swaps it wholesale on each committed
operation.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterator, Optional

from .stratum_model import Stratum, ViewMode
from .workspace_defaults import create_seed_stratum


@dataclass(frozen=True)
class WorkspaceSnapshot:
    """Immutable record of a full workspace.

    Parameters
    ----------
    strata : tuple[Stratum, ...]
        Panels in display order; between one and four, unique ids.
    active_stratum_id : str or None
        Focused panel id. Not validated against ``strata``.
    view_mode : ViewMode
        Current arrangement strategy.
    previous_view_mode : ViewMode or None
        Mode held immediately before the last user-initiated mode change.
    location_locked : bool
        Whether every stratum tracks one shared location.
    next_ordinal : int
        Ordinal the next added stratum's id is derived from.
    """

    strata: tuple[Stratum, ...]
    active_stratum_id: Optional[str]
    view_mode: ViewMode = ViewMode.SINGLE
    previous_view_mode: Optional[ViewMode] = None
    location_locked: bool = False
    next_ordinal: int = 1

    @classmethod
    def initial(cls, seed: Stratum | None = None) -> "WorkspaceSnapshot":
        """Return the state a new session starts in: one active seeded stratum."""
        stratum = seed if seed is not None else create_seed_stratum()
        return cls(
            strata=(stratum,),
            active_stratum_id=stratum.id,
            view_mode=ViewMode.SINGLE,
            previous_view_mode=None,
            location_locked=False,
            next_ordinal=2,
        )

    def __len__(self) -> int:
        return len(self.strata)

    def __iter__(self) -> Iterator[Stratum]:
        return iter(self.strata)

    @property
    def stratum_ids(self) -> tuple[str, ...]:
        return tuple(s.id for s in self.strata)

    def find(self, stratum_id: Optional[str]) -> Optional[Stratum]:
        """Return the stratum with ``stratum_id`` or ``None``."""
        for stratum in self.strata:
            if stratum.id == stratum_id:
                return stratum
        return None

    @property
    def active_stratum(self) -> Optional[Stratum]:
        return self.find(self.active_stratum_id)

    def __repr__(self) -> str:
        return (
            f"WorkspaceSnapshot(strata={list(self.stratum_ids)}, "
            f"active={self.active_stratum_id!r}, "
            f"view_mode={self.view_mode.value}, "
            f"locked={self.location_locked})"
        )
