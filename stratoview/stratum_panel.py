"""Per-stratum panel widgets.

Purpose
-------
``StratumPanel`` renders one stratum inside the workspace and turns user
gestures into :class:`~stratoview.Workspace.Workspace` calls. It never
mutates a stratum itself: every control writes through the controller, and
:meth:`StratumPanel.update` re-syncs the widgets from the new snapshot.

Concepts and structure
----------------------
- Header: select button (name), info toggle, tabs/side-by-side toggle,
  expand/shrink button (only with more than one stratum), remove button.
- Tab selector listing the enabled sub-views, shown in tabs layout.
- Content: map placeholder with pan/zoom buttons, Plotly charts, index card.
- Layers panel: one checkbox row per map layer, visible for the active
  stratum when its map is showing.
- Info overlay: an HTML summary of the stratum.

Architecture notes
------------------
Widget events fire while :meth:`update` assigns values; ``_suspend_events``
keeps those programmatic writes from looping back into the workspace.
"""

from __future__ import annotations

import html
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Dict, Optional

import ipywidgets as widgets
import plotly.graph_objects as go

from .stratum_graphs import build_graphs_figure
from .stratum_index import index_html, weight_shares
from .stratum_model import LayerType, MapLayer, Stratum, StratumLayout, StratumTab

if TYPE_CHECKING:
    from .Workspace import Workspace

LAYER_ICONS: dict[LayerType, str] = {
    LayerType.POINT: "●",
    LayerType.LINE: "―",
    LayerType.POLYGON: "▢",
    LayerType.HEATMAP: "◍",
    LayerType.RASTER: "◫",
}

TAB_LABELS: dict[StratumTab, str] = {
    StratumTab.MAP: "Map",
    StratumTab.GRAPHS: "Graphs",
    StratumTab.INDEX: "Index",
}

# Pixels one pan button press stands for.
PAN_STEP_PX = 50
MIN_ZOOM, MAX_ZOOM = 1, 20


def stratum_info_html(stratum: Stratum) -> str:
    """HTML summary shown by a panel's info overlay."""
    loc = stratum.location
    parts = [
        f"<h4>Information: {html.escape(stratum.name)}</h4>",
        "<b>Location</b>",
        f"<div>Name: {html.escape(loc.name)}</div>",
        f"<div>Coordinates: {loc.lon}, {loc.lat}</div>",
        "<b>Data Summary</b>",
        f"<div>Active view: {stratum.active_tab.value}</div>",
        f"<div>Layout type: {stratum.layout.value}</div>",
    ]
    index = stratum.tabs.index
    if index.enabled:
        parts.append(f"<div>Index value: {index.value:g}</div>")
        parts.append(f"<div>Description: {html.escape(index.description)}</div>")
        items = "".join(
            f"<li>{html.escape(c.name)}: {c.value:g} (weight: {share}%)</li>"
            for c, share in zip(index.components, weight_shares(index.components))
        )
        parts.append(f"<div>Components:</div><ul>{items}</ul>")
    if stratum.tabs.map.enabled:
        items = "".join(
            f"<li style='opacity:{1.0 if layer.visible else 0.5}'>"
            f"{html.escape(layer.name)} ({layer.type.value})</li>"
            for layer in stratum.tabs.map.layers
        )
        parts.append(f"<b>Map Layers</b><ul>{items}</ul>")
    return "".join(parts)


def map_caption_html(stratum: Stratum, zoom: int) -> str:
    active = stratum.tabs.map.visible_layers
    layers = ", ".join(html.escape(layer.name) for layer in active)
    return (
        "<div style='padding:6px'>"
        f"<div><b>{html.escape(stratum.location.describe())}</b></div>"
        f"<div style='font-size:0.85em;opacity:0.7'>zoom {zoom}</div>"
        + (f"<div style='font-size:0.85em'>Active layers: {layers}</div>" if active else "")
        + "</div>"
    )


@dataclass
class LayerRowModel:
    """Widget bundle for one layer row, bound to a layer id."""

    layer_id: str
    container: widgets.HBox
    toggle: widgets.Checkbox
    label_widget: widgets.HTML


class StratumPanel:
    """Widget tree and gesture handlers for one stratum.

    Parameters
    ----------
    workspace : Workspace
        Controller every gesture is forwarded to.
    stratum : Stratum
        Initial stratum value.
    """

    def __init__(self, workspace: "Workspace", stratum: Stratum) -> None:
        self._workspace = workspace
        self._stratum = stratum
        self.stratum_id = stratum.id
        self.is_active = False
        self.zoom = 10
        self._suspend_events = False
        self._layer_rows: Dict[str, LayerRowModel] = {}
        self._graphs_widget: Optional[go.FigureWidget] = None

        # 1. Header
        self.select_button = widgets.Button(
            description=stratum.name,
            tooltip="Make this stratum active",
            layout=widgets.Layout(flex="1 1 auto", width="auto"),
        )
        self.info_toggle = widgets.ToggleButton(value=False, description="Info", tooltip="Show Information")
        self.layout_toggle = widgets.ToggleButtons(
            options=[("Tabs", StratumLayout.TABS.value), ("Side by side", StratumLayout.SIDE_BY_SIDE.value)],
            value=stratum.layout.value,
            style={"button_width": "90px"},
        )
        self.expand_button = widgets.Button(description="Expand", tooltip="Expand")
        self.remove_button = widgets.Button(description="✕", tooltip="Remove Stratum", layout=widgets.Layout(width="36px"))
        self.header = widgets.HBox(
            [self.select_button, self.info_toggle, self.layout_toggle, self.expand_button, self.remove_button],
            layout=widgets.Layout(width="100%", align_items="center"),
        )

        # 2. Tabs and content
        self.tab_selector = widgets.ToggleButtons(options=[], style={"button_width": "80px"})
        self.content = widgets.Box(layout=widgets.Layout(width="100%", flex="1 1 auto"))

        # 3. Map sub-view
        self.map_caption = widgets.HTML()
        self.zoom_in_button = widgets.Button(description="+", layout=widgets.Layout(width="32px"))
        self.zoom_out_button = widgets.Button(description="−", layout=widgets.Layout(width="32px"))
        self.pan_buttons = {
            direction: widgets.Button(description=label, layout=widgets.Layout(width="32px"))
            for direction, label in (("west", "◀"), ("north", "▲"), ("south", "▼"), ("east", "▶"))
        }
        self.layers_toggle = widgets.ToggleButton(value=False, description="Layers", tooltip="Toggle Layers Panel")
        self.map_view = widgets.VBox(
            [
                self.map_caption,
                widgets.HBox(
                    [self.zoom_in_button, self.zoom_out_button, *self.pan_buttons.values(), self.layers_toggle]
                ),
            ],
            layout=widgets.Layout(flex="1 1 0%", min_height="160px", border="1px solid rgba(15,23,42,0.08)"),
        )

        # 4. Index sub-view
        self.index_view = widgets.HTML(layout=widgets.Layout(flex="1 1 0%"))

        # 5. Overlays
        self.layers_box = widgets.VBox(layout=widgets.Layout(display="none", padding="6px"))
        self.info_html = widgets.HTML(layout=widgets.Layout(display="none", padding="6px"))

        self.root_widget = widgets.VBox(
            [self.header, self.tab_selector, self.content, self.layers_box, self.info_html],
            layout=widgets.Layout(width="100%", height="100%", padding="4px", border="1px solid rgba(15,23,42,0.15)"),
        )

        # Wire up gestures
        self.select_button.on_click(lambda _b: self._workspace.set_active_stratum(self.stratum_id))
        self.expand_button.on_click(lambda _b: self._workspace.focus_stratum(self.stratum_id))
        self.remove_button.on_click(lambda _b: self._workspace.remove_stratum(self.stratum_id))
        self.zoom_in_button.on_click(lambda _b: self.set_zoom(self.zoom + 1))
        self.zoom_out_button.on_click(lambda _b: self.set_zoom(self.zoom - 1))
        self.pan_buttons["west"].on_click(lambda _b: self.pan(-PAN_STEP_PX, 0))
        self.pan_buttons["east"].on_click(lambda _b: self.pan(PAN_STEP_PX, 0))
        self.pan_buttons["north"].on_click(lambda _b: self.pan(0, PAN_STEP_PX))
        self.pan_buttons["south"].on_click(lambda _b: self.pan(0, -PAN_STEP_PX))
        self.tab_selector.observe(self._on_tab_change, names="value")
        self.layout_toggle.observe(self._on_layout_change, names="value")
        self.info_toggle.observe(lambda _c: self._sync_overlays(), names="value")
        self.layers_toggle.observe(lambda _c: self._sync_overlays(), names="value")

        self.update(stratum, is_active=False, can_expand=False)

    @property
    def stratum(self) -> Stratum:
        return self._stratum

    # --- Gestures ---

    def set_zoom(self, zoom: int) -> None:
        """Clamp and apply a zoom level. Zoom is view-local, not workspace state."""
        self.zoom = max(MIN_ZOOM, min(MAX_ZOOM, int(zoom)))
        self.map_caption.value = map_caption_html(self._stratum, self.zoom)

    def pan(self, dx: float, dy: float) -> None:
        """Forward a map drag of ``(dx, dy)`` pixels to the workspace."""
        self._workspace.pan_stratum(self.stratum_id, dx, dy)

    def _on_tab_change(self, change: dict[str, Any]) -> None:
        if self._suspend_events or change.get("new") is None:
            return
        self._workspace.set_stratum_tab(self.stratum_id, change["new"])

    def _on_layout_change(self, change: dict[str, Any]) -> None:
        if self._suspend_events or change.get("new") is None:
            return
        self._workspace.set_stratum_layout(self.stratum_id, change["new"])

    def _on_layer_toggle(self, layer_id: str, change: dict[str, Any]) -> None:
        if self._suspend_events:
            return
        self._workspace.toggle_layer(self.stratum_id, layer_id)

    # --- Sync from state ---

    def update(self, stratum: Stratum, *, is_active: bool, can_expand: bool) -> None:
        """Re-sync every widget with ``stratum``.

        Parameters
        ----------
        stratum : Stratum
            Latest value of this panel's stratum.
        is_active : bool
            Whether the stratum is the workspace's active one.
        can_expand : bool
            Whether the expand/shrink control should be offered.
        """
        self._stratum = stratum
        self.is_active = is_active
        self._suspend_events = True
        try:
            self.select_button.description = stratum.name
            self.select_button.button_style = "primary" if is_active else ""
            self.layout_toggle.value = stratum.layout.value
            self.expand_button.description = "Shrink" if stratum.is_expanded else "Expand"
            self.expand_button.tooltip = self.expand_button.description
            self.expand_button.layout.display = "" if can_expand else "none"

            options = [(TAB_LABELS[tab], tab.value) for tab in stratum.enabled_tabs]
            if list(self.tab_selector.options) != options:
                self.tab_selector.options = options
            self.tab_selector.value = stratum.active_tab.value
            self.tab_selector.layout.display = "" if stratum.layout is StratumLayout.TABS else "none"

            self.map_caption.value = map_caption_html(stratum, self.zoom)
            self.index_view.value = index_html(stratum.tabs.index)
            self.info_html.value = stratum_info_html(stratum)
            self._sync_layer_rows(stratum.tabs.map.layers)
            self.content.children = tuple(self._content_widgets())
            self.content.layout.flex_flow = "row" if stratum.layout is StratumLayout.SIDE_BY_SIDE else "column"
        finally:
            self._suspend_events = False
        self._sync_overlays()

    @property
    def shows_layers_toggle(self) -> bool:
        s = self._stratum
        return s.active_tab is StratumTab.MAP or (
            s.layout is StratumLayout.SIDE_BY_SIDE and s.tabs.map.enabled
        )

    def _content_widgets(self) -> list[widgets.Widget]:
        s = self._stratum
        if s.layout is StratumLayout.SIDE_BY_SIDE:
            return [self._view_for(tab) for tab in s.enabled_tabs]
        return [self._view_for(s.active_tab)]

    def _view_for(self, tab: StratumTab) -> widgets.Widget:
        if tab is StratumTab.MAP:
            return self.map_view
        if tab is StratumTab.GRAPHS:
            return self.graphs_view
        return self.index_view

    @property
    def graphs_view(self) -> go.FigureWidget:
        """Chart widget, built on first use; its data depends only on the id."""
        if self._graphs_widget is None:
            self._graphs_widget = go.FigureWidget(build_graphs_figure(self.stratum_id))
        return self._graphs_widget

    def _sync_overlays(self) -> None:
        s = self._stratum
        self.layers_toggle.layout.display = "" if self.shows_layers_toggle else "none"
        show_layers = self.layers_toggle.value and self.is_active and s.tabs.map.enabled
        self.layers_box.layout.display = "flex" if show_layers else "none"
        self.info_html.layout.display = "block" if self.info_toggle.value else "none"

    def _create_layer_row(self, layer: MapLayer) -> LayerRowModel:
        toggle = widgets.Checkbox(value=layer.visible, indent=False, layout=widgets.Layout(width="28px"))
        label = widgets.HTML(f"{LAYER_ICONS[layer.type]} {html.escape(layer.name)}")
        row = LayerRowModel(
            layer_id=layer.id,
            container=widgets.HBox([toggle, label], layout=widgets.Layout(align_items="center")),
            toggle=toggle,
            label_widget=label,
        )
        toggle.observe(lambda change, lid=layer.id: self._on_layer_toggle(lid, change), names="value")
        return row

    def _sync_layer_rows(self, layers: tuple[MapLayer, ...]) -> None:
        wanted = {layer.id for layer in layers}
        for stale in [lid for lid in self._layer_rows if lid not in wanted]:
            self._layer_rows.pop(stale).toggle.unobserve_all()
        for layer in layers:
            row = self._layer_rows.get(layer.id)
            if row is None:
                row = self._layer_rows[layer.id] = self._create_layer_row(layer)
            row.toggle.value = layer.visible
        header = widgets.HTML("<b>Map Layers</b>")
        self.layers_box.children = (header, *(self._layer_rows[layer.id].container for layer in layers))

    def close(self) -> None:
        """Detach widget observers and close the widget tree."""
        for row in self._layer_rows.values():
            row.toggle.unobserve_all()
        self.root_widget.close()
