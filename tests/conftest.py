from __future__ import annotations

import pytest

from stratoview import Workspace
from stratoview.WorkspaceSnapshot import WorkspaceSnapshot


@pytest.fixture
def snapshot() -> WorkspaceSnapshot:
    """Fresh session state: the seeded stratum only."""
    return WorkspaceSnapshot.initial()


@pytest.fixture
def workspace() -> Workspace:
    return Workspace()
