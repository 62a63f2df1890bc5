"""Widget surface: controls call the workspace, hooks re-sync the widgets."""

from __future__ import annotations

import ipywidgets as widgets

from stratoview import Workspace
from stratoview.assistant import AssistantChannel
from stratoview.stratum_model import StratumTab, ViewMode
from stratoview.stratum_panel import StratumPanel, stratum_info_html
from stratoview.workspace_layout import WorkspaceLayout


def _host_cells(layout: WorkspaceLayout) -> list[widgets.Widget]:
    """Leaf widgets of the rendered arrangement, in display order."""
    out: list[widgets.Widget] = []

    def walk(node: widgets.Widget) -> None:
        if isinstance(node, widgets.Box) and not any(node is p.root_widget for p in layout.panels.values()):
            for child in node.children:
                walk(child)
            if not node.children:
                out.append(node)
        else:
            out.append(node)

    for child in layout.arrangement_host.children:
        walk(child)
    return out


def test_layout_is_built_lazily_and_registered_as_hook() -> None:
    ws = Workspace()
    assert ws._layout is None
    layout = ws.layout
    assert ws.layout is layout
    assert list(layout.panels) == ["stratum-1"]
    assert layout.view_mode_buttons.value == "single"


def test_workspace_changes_rerender_arrangement() -> None:
    ws = Workspace()
    layout = ws.layout

    layout.add_button.click()
    ws.add_stratum()
    assert list(layout.panels) == ["stratum-1", "stratum-2", "stratum-3"]
    assert layout.view_mode_buttons.value == "columns"
    assert len(_host_cells(layout)) == 3

    layout.view_mode_buttons.value = "grid"
    assert ws.view_mode is ViewMode.GRID
    cells = _host_cells(layout)
    assert len(cells) == 4
    assert not any(cells[-1] is p.root_widget for p in layout.panels.values())

    ws.add_stratum()
    assert layout.add_button.disabled is True

    ws.remove_stratum("stratum-2")
    assert "stratum-2" not in layout.panels
    assert layout.add_button.disabled is False


def test_lock_toggle_and_search_box() -> None:
    ws = Workspace()
    ws.add_stratum()
    layout = ws.layout

    layout.lock_toggle.value = True
    assert ws.location_locked is True
    assert layout.lock_toggle.description == "Synced Locations"

    layout.search_text.value = "Chicago"
    layout.search_button.click()
    assert {s.location.name for s in ws.strata} == {"Chicago"}
    assert layout.search_text.value == ""


def test_panel_gestures_call_the_workspace() -> None:
    ws = Workspace()
    ws.add_stratum()
    layout = ws.layout
    panel = layout.panels["stratum-1"]

    panel.select_button.click()
    assert ws.active_stratum_id == "stratum-1"
    assert panel.select_button.button_style == "primary"

    panel.tab_selector.value = "index"
    assert ws.stratum("stratum-1").active_tab is StratumTab.INDEX
    assert panel.content.children == (panel.index_view,)

    panel._layer_rows["roads"].toggle.value = True
    assert ws.stratum("stratum-1").layer("roads").visible is True

    panel.pan_buttons["east"].click()
    assert ws.stratum("stratum-1").location.lon < -122.3321

    panel.expand_button.click()
    assert ws.view_mode is ViewMode.SINGLE
    assert panel.expand_button.description == "Shrink"
    panel.expand_button.click()
    assert ws.view_mode is ViewMode.COLUMNS

    layout.panels["stratum-2"].remove_button.click()
    assert [s.id for s in ws.strata] == ["stratum-1"]
    assert panel.expand_button.layout.display == "none"


def test_panel_zoom_is_view_local() -> None:
    ws = Workspace()
    panel = StratumPanel(ws, ws.strata[0])
    before = ws.state
    for _ in range(30):
        panel.zoom_in_button.click()
    assert panel.zoom == 20
    panel.set_zoom(-3)
    assert panel.zoom == 1
    assert ws.state is before


def test_info_html_lists_components_and_layers() -> None:
    text = stratum_info_html(Workspace().strata[0])
    assert "Climate Impact Assessment" in text
    assert "Vulnerability: 72 (weight: 40%)" in text
    assert "Base Map (raster)" in text


def test_assistant_sidebar_renders_messages() -> None:
    pending = []
    channel = AssistantChannel(scheduler=lambda _delay, cb: pending.append(cb))
    layout = WorkspaceLayout(Workspace(), channel=channel)

    layout.assistant_input.value = "what changed?"
    layout.assistant_send.click()
    assert "what changed?" in layout.messages_html.value
    assert layout.assistant_input.value == ""

    pending.pop()()
    assert "simulated response" in layout.messages_html.value


def test_catalog_box_adds_selected_item() -> None:
    ws = Workspace()
    layout = ws.layout
    layout.catalog_toggle.value = True
    assert layout.catalog_box.layout.display == "flex"

    layout.catalog_search.value = "transportation"
    (button,) = layout.catalog_results.children
    button.click()
    assert layout.catalog_add_button.disabled is False

    layout.catalog_add_button.click()
    assert ws.strata[-1].name == "Transportation Network Analysis"
    assert layout.catalog_toggle.value is False


def test_catalog_tag_and_institution_filters_narrow_results() -> None:
    layout = WorkspaceLayout(Workspace())
    assert len(layout.catalog_results.children) == 6
    assert layout.clear_filters_button.layout.display == "none"

    layout.tag_checkboxes["urban"].value = True
    assert {b.description for b in layout.catalog_results.children} == {
        "Urban Development Trends",
        "Transportation Network Analysis",
    }
    assert layout.browser.selected_tags == ("urban",)
    assert [b.description for b in layout.active_filters.children] == ["urban ✕"]
    assert layout.clear_filters_button.layout.display == ""

    layout.institution_checkboxes["Urban Mobility Lab"].value = True
    assert [b.description for b in layout.catalog_results.children] == ["Transportation Network Analysis"]

    # Removing a badge unticks the matching checkbox.
    (tag_badge,) = [b for b in layout.active_filters.children if b.description == "urban ✕"]
    tag_badge.click()
    assert layout.tag_checkboxes["urban"].value is False
    assert layout.browser.selected_institutions == ("Urban Mobility Lab",)

    layout.clear_filters_button.click()
    assert layout.institution_checkboxes["Urban Mobility Lab"].value is False
    assert layout.browser.has_active_filters is False
    assert len(layout.catalog_results.children) == 6


def test_catalog_detail_shows_item_preview() -> None:
    layout = WorkspaceLayout(Workspace())
    layout.catalog_search.value = "demographics"
    (button,) = layout.catalog_results.children
    button.click()
    assert "Information: Population Demographics Study" in layout.catalog_detail.value
    assert "Los Angeles" in layout.catalog_detail.value
