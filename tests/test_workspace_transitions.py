"""Behavior of the pure workspace transitions (snapshot in, snapshot out)."""

from __future__ import annotations

from dataclasses import replace

import pytest

from stratoview import workspace_transitions as t
from stratoview.geocoding import PlaceholderGeocoder
from stratoview.stratum_model import Location, StratumLayout, StratumTab, ViewMode
from stratoview.workspace_defaults import create_default_stratum
from stratoview.WorkspaceSnapshot import WorkspaceSnapshot

TOKYO = Location(name="Tokyo", coordinates=(139.6917, 35.6895))


def _with_strata(state: WorkspaceSnapshot, count: int) -> WorkspaceSnapshot:
    while len(state.strata) < count:
        state = t.add_stratum(state)
    return state


def test_initial_state_has_seed_stratum(snapshot: WorkspaceSnapshot) -> None:
    assert snapshot.stratum_ids == ("stratum-1",)
    assert snapshot.active_stratum_id == "stratum-1"
    assert snapshot.view_mode is ViewMode.SINGLE
    assert snapshot.previous_view_mode is None
    assert snapshot.location_locked is False


def test_seed_plus_three_adds_gives_four_strata_in_grid(snapshot: WorkspaceSnapshot) -> None:
    state = snapshot
    modes = []
    for _ in range(3):
        state = t.add_stratum(state)
        modes.append(state.view_mode)

    assert len(state.strata) == 4
    assert modes == [ViewMode.COLUMNS, ViewMode.COLUMNS, ViewMode.GRID]
    assert [s.name for s in state.strata[1:]] == ["Stratum 2", "Stratum 3", "Stratum 4"]


def test_fifth_add_is_identity(snapshot: WorkspaceSnapshot) -> None:
    full = _with_strata(snapshot, 4)
    assert t.add_stratum(full) is full


def test_add_from_single_mode_activates_new_stratum(snapshot: WorkspaceSnapshot) -> None:
    state = t.add_stratum(snapshot)
    assert state.active_stratum_id == "stratum-2"

    state = t.add_stratum(state)
    # Already in columns mode: focus stays put.
    assert state.active_stratum_id == "stratum-2"


def test_add_does_not_touch_view_mode_history(snapshot: WorkspaceSnapshot) -> None:
    state = t.add_stratum(snapshot)
    assert state.previous_view_mode is None


def test_explicit_add_options(snapshot: WorkspaceSnapshot) -> None:
    state = t.add_stratum(
        snapshot,
        name="Harbor",
        enabled_tabs={"map": False, "graphs": False},
        location={"name": "Tokyo", "coordinates": (139.6917, 35.6895)},
        description="Port activity",
    )
    added = state.strata[-1]
    assert added.name == "Harbor"
    assert added.enabled_tabs == (StratumTab.INDEX,)
    assert added.active_tab is StratumTab.INDEX
    assert added.location == TOKYO
    assert added.tabs.index.description == "Port activity"


def test_remove_sole_stratum_is_identity(snapshot: WorkspaceSnapshot) -> None:
    assert t.remove_stratum(snapshot, "stratum-1") is snapshot


def test_remove_unknown_id_is_identity(snapshot: WorkspaceSnapshot) -> None:
    state = _with_strata(snapshot, 2)
    assert t.remove_stratum(state, "stratum-99") is state


def test_remove_rederives_mode_and_moves_focus(snapshot: WorkspaceSnapshot) -> None:
    state = _with_strata(snapshot, 4)
    state = t.set_active_stratum(state, "stratum-3")
    state = t.remove_stratum(state, "stratum-3")
    assert state.view_mode is ViewMode.COLUMNS
    assert state.active_stratum_id == "stratum-1"

    state = t.remove_stratum(state, "stratum-1")
    state = t.remove_stratum(state, "stratum-2")
    assert state.stratum_ids == ("stratum-4",)
    assert state.view_mode is ViewMode.SINGLE


def test_ids_are_never_reused(snapshot: WorkspaceSnapshot) -> None:
    state = _with_strata(snapshot, 3)
    state = t.remove_stratum(state, "stratum-3")
    state = t.add_stratum(state)
    assert state.stratum_ids == ("stratum-1", "stratum-2", "stratum-4")


def test_custom_seed_id_is_skipped_when_adding() -> None:
    state = WorkspaceSnapshot.initial(create_default_stratum("stratum-2", position=1))
    state = t.add_stratum(state)
    state = t.add_stratum(state)
    assert state.stratum_ids == ("stratum-2", "stratum-3", "stratum-4")

    state = t.remove_stratum(state, "stratum-2")
    assert state.stratum_ids == ("stratum-3", "stratum-4")
    assert state.active_stratum_id == "stratum-3"


def test_set_view_mode_records_previous(snapshot: WorkspaceSnapshot) -> None:
    state = _with_strata(snapshot, 2)
    state = t.set_view_mode(state, "grid")
    assert state.view_mode is ViewMode.GRID
    assert state.previous_view_mode is ViewMode.COLUMNS

    restored = t.set_view_mode(state, state.previous_view_mode)
    assert restored.view_mode is ViewMode.COLUMNS
    assert t.set_view_mode(restored, ViewMode.COLUMNS) is restored


def test_update_stratum_rejects_unknown_fields(snapshot: WorkspaceSnapshot) -> None:
    with pytest.raises(TypeError, match="colour"):
        t.update_stratum(snapshot, "stratum-1", colour="red")


def test_update_stratum_unknown_id_is_identity(snapshot: WorkspaceSnapshot) -> None:
    assert t.update_stratum(snapshot, "nope", name="X") is snapshot


def test_update_stratum_merges_fields(snapshot: WorkspaceSnapshot) -> None:
    state = t.update_stratum(snapshot, "stratum-1", name="Renamed", layout="side-by-side")
    stratum = state.find("stratum-1")
    assert stratum.name == "Renamed"
    assert stratum.layout is StratumLayout.SIDE_BY_SIDE
    assert stratum.location == snapshot.strata[0].location


def test_update_disabling_active_tab_snaps_to_first_enabled(snapshot: WorkspaceSnapshot) -> None:
    seed = snapshot.strata[0]
    tabs = replace(seed.tabs, map=replace(seed.tabs.map, enabled=False))
    state = t.update_stratum(snapshot, seed.id, tabs=tabs)
    assert state.find(seed.id).active_tab is StratumTab.GRAPHS


def test_locked_update_location_reaches_every_stratum(snapshot: WorkspaceSnapshot) -> None:
    state = _with_strata(snapshot, 3)
    state = t.toggle_location_lock(state)
    state = t.update_stratum(state, "stratum-2", location=TOKYO, name="Only me")

    assert all(s.location == TOKYO for s in state.strata)
    assert [s.name for s in state.strata] == ["Climate Impact Assessment", "Only me", "Stratum 3"]


def test_unlocked_update_location_is_local(snapshot: WorkspaceSnapshot) -> None:
    state = _with_strata(snapshot, 2)
    state = t.update_stratum(state, "stratum-2", location=TOKYO)
    assert state.find("stratum-1").location.name == "Seattle"
    assert state.find("stratum-2").location == TOKYO


def test_locking_syncs_to_active_location(snapshot: WorkspaceSnapshot) -> None:
    state = _with_strata(snapshot, 2)
    state = t.update_stratum(state, "stratum-2", location=TOKYO)
    state = t.set_active_stratum(state, "stratum-2")

    locked = t.toggle_location_lock(state)
    assert locked.location_locked is True
    assert all(s.location == TOKYO for s in locked.strata)

    unlocked = t.toggle_location_lock(locked)
    assert unlocked.location_locked is False
    assert unlocked.strata == locked.strata


def test_lock_with_dangling_active_id_uses_first_stratum(snapshot: WorkspaceSnapshot) -> None:
    state = _with_strata(snapshot, 2)
    state = t.update_stratum(state, "stratum-2", location=TOKYO)
    state = t.set_active_stratum(state, "ghost")
    locked = t.toggle_location_lock(state)
    assert all(s.location.name == "Seattle" for s in locked.strata)


def test_locked_add_inherits_first_location_unless_explicit(snapshot: WorkspaceSnapshot) -> None:
    locked = t.toggle_location_lock(snapshot)
    state = t.add_stratum(locked)
    assert state.strata[-1].location.name == "Seattle"

    state = t.add_stratum(state, location=TOKYO)
    assert state.strata[-1].location == TOKYO


def test_set_stratum_tab_ignores_disabled_tabs(snapshot: WorkspaceSnapshot) -> None:
    state = t.add_stratum(snapshot, enabled_tabs={"graphs": False})
    assert t.set_stratum_tab(state, "stratum-2", "graphs") is state

    state = t.set_stratum_tab(state, "stratum-2", "index")
    assert state.find("stratum-2").active_tab is StratumTab.INDEX


def test_toggle_layer_flips_only_that_layer(snapshot: WorkspaceSnapshot) -> None:
    state = t.toggle_layer(snapshot, "stratum-1", "roads")
    layers = {layer.id: layer.visible for layer in state.find("stratum-1").tabs.map.layers}
    assert layers == {"base": True, "population": False, "roads": True, "buildings": False, "poi": False}

    back = t.toggle_layer(state, "stratum-1", "roads")
    assert back.find("stratum-1") == snapshot.find("stratum-1")
    assert t.toggle_layer(snapshot, "stratum-1", "missing") is snapshot


def test_focus_expand_then_shrink_restores_columns(snapshot: WorkspaceSnapshot) -> None:
    state = _with_strata(snapshot, 3)
    assert state.view_mode is ViewMode.COLUMNS

    expanded = t.focus_stratum(state, "stratum-2")
    assert expanded.view_mode is ViewMode.SINGLE
    assert expanded.active_stratum_id == "stratum-2"
    assert expanded.find("stratum-2").is_expanded is True

    shrunk = t.focus_stratum(expanded, "stratum-2")
    assert shrunk.view_mode is ViewMode.COLUMNS
    assert shrunk.find("stratum-2").is_expanded is False


def test_search_location_uses_geocoder(snapshot: WorkspaceSnapshot) -> None:
    state = t.search_location(snapshot, "Chicago", "stratum-1", PlaceholderGeocoder())
    assert state.find("stratum-1").location == Location("Chicago", (-87.6298, 41.8781))


def test_pan_moves_location_and_respects_lock(snapshot: WorkspaceSnapshot) -> None:
    state = _with_strata(snapshot, 2)
    panned = t.pan_stratum(state, "stratum-1", dx=100, dy=-50)
    lon, lat = panned.find("stratum-1").location.coordinates
    assert lon == pytest.approx(-122.3321 - 1.0)
    assert lat == pytest.approx(47.6062 - 0.5)
    assert panned.find("stratum-2").location.name == "New York"

    locked = t.toggle_location_lock(state)
    panned = t.pan_stratum(locked, "stratum-1", dx=10, dy=0)
    assert len({s.location for s in panned.strata}) == 1


def test_toggle_stratum_expanded_only_flips_the_flag(snapshot: WorkspaceSnapshot) -> None:
    state = _with_strata(snapshot, 3)
    toggled = t.toggle_stratum_expanded(state, "stratum-2")
    assert toggled.find("stratum-2").is_expanded is True
    assert toggled.view_mode is ViewMode.COLUMNS
    assert toggled.active_stratum_id == state.active_stratum_id
    assert t.toggle_stratum_expanded(state, "ghost") is state
