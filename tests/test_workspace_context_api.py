from __future__ import annotations

import queue
import threading

import pytest

import stratoview as sv
from stratoview import Workspace
from stratoview.stratum_model import ViewMode
from stratoview.workspace_context import current_workspace


def test_module_helpers_require_a_current_workspace() -> None:
    with pytest.raises(RuntimeError, match="No current Workspace"):
        sv.add_stratum()
    with pytest.raises(RuntimeError):
        len(sv.strata)
    assert current_workspace(required=False) is None
    with pytest.raises(RuntimeError, match="No active Workspace"):
        current_workspace()


def test_module_helpers_route_to_innermost_workspace() -> None:
    outer, inner = Workspace(), Workspace()
    with outer:
        sv.add_stratum(name="Outer")
        with inner:
            sv.set_view_mode("grid")
            assert current_workspace() is inner
        assert current_workspace() is outer

    assert [s.name for s in outer.strata] == ["Climate Impact Assessment", "Outer"]
    assert outer.view_mode is ViewMode.COLUMNS
    assert inner.view_mode is ViewMode.GRID
    assert current_workspace(required=False) is None


def test_strata_proxy_maps_ids_to_strata() -> None:
    ws = Workspace()
    with ws:
        sv.add_stratum()
        assert list(sv.strata) == ["stratum-1", "stratum-2"]
        assert "stratum-2" in sv.strata
        assert sv.strata["stratum-1"].location.name == "Seattle"
        assert sv.get_view_mode() is ViewMode.COLUMNS
        assert sv.snapshot() is ws.state


def test_search_location_helper_defaults_to_active_stratum() -> None:
    ws = Workspace()
    with ws:
        sv.search_location("Boston")
        sv.toggle_layer("stratum-1", "poi")
        sv.pan_stratum("stratum-1", 0, 100)
    stratum = ws.active_stratum
    assert stratum.location.name == "Boston"
    assert stratum.location.lat == pytest.approx(42.3601 + 1.0)
    assert stratum.layer("poi").visible is True


def test_current_workspace_is_isolated_per_thread() -> None:
    ws_main, ws_thread = Workspace(), Workspace()
    q: queue.Queue[object] = queue.Queue()

    def _worker() -> None:
        with ws_thread:
            q.put(current_workspace())

    with ws_main:
        t = threading.Thread(target=_worker)
        t.start()
        t.join()
        assert q.get(timeout=1) is ws_thread
        assert current_workspace() is ws_main
