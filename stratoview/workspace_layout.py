"""Widget composition for a displayed workspace.

``WorkspaceLayout`` owns the notebook widget tree: a top bar with the global
controls, the arrangement host that places one :class:`StratumPanel` per
visible stratum, a catalog browser and an assistant sidebar. It holds no
workspace state of its own. Every control calls a
:class:`~stratoview.Workspace.Workspace` operation, and the workspace calls
:meth:`WorkspaceLayout.on_workspace_event` after each committed change.
"""

from __future__ import annotations

import html
import logging
from typing import TYPE_CHECKING, Any, Dict, Optional

import ipywidgets as widgets
from IPython.display import display

from .assistant import AssistantChannel, AssistantMessage
from .catalog import CatalogBrowser, CatalogItem, ContentFilter, SortOption, preview_stratum
from .stratum_model import ViewMode
from .stratum_panel import StratumPanel, stratum_info_html
from .workspace_arrangement import LayoutCell, LayoutGroup
from .WorkspaceEvent import WorkspaceEvent

if TYPE_CHECKING:
    from .Workspace import Workspace

logger = logging.getLogger(__name__)
if not logger.handlers:
    logger.addHandler(logging.NullHandler())


class OneShotOutput(widgets.Output):
    """An Output widget that refuses to be displayed twice.

    Two live copies of one widget tree in a notebook fight over the same comm
    channel; the second display attempt raises ``RuntimeError`` instead.
    Call :meth:`reset_display_state` to opt out deliberately.
    """

    __slots__ = ("_displayed",)

    def __init__(self) -> None:
        super().__init__()
        self._displayed = False

    def _repr_mimebundle_(self, include: Any = None, exclude: Any = None, **kwargs: Any) -> Any:
        if self._displayed:
            raise RuntimeError(
                "OneShotOutput has already been displayed. "
                "Display the Workspace again to get a fresh output."
            )
        self._displayed = True
        return super()._repr_mimebundle_(include=include, exclude=exclude, **kwargs)

    @property
    def has_been_displayed(self) -> bool:
        return self._displayed

    def reset_display_state(self) -> None:
        self._displayed = False


def message_html(message: AssistantMessage) -> str:
    align = "flex-end" if message.sender == "user" else "flex-start"
    background = "#1E88E5" if message.sender == "user" else "#f1f5f9"
    color = "white" if message.sender == "user" else "inherit"
    return (
        f"<div style='display:flex;justify-content:{align};margin:4px 0'>"
        f"<div style='max-width:85%;padding:6px 8px;border-radius:8px;"
        f"background:{background};color:{color}'>{html.escape(message.text)}"
        f"<div style='font-size:0.7em;opacity:0.7'>{message.timestamp:%H:%M}</div>"
        "</div></div>"
    )


class WorkspaceLayout:
    """
    Manages the widget hierarchy of a displayed Workspace.

    Responsibilities:
    - Building the top bar (view mode, location lock, search, add, catalog).
    - Turning the derived arrangement into nested HBox/VBox containers.
    - Keeping one StratumPanel per stratum in sync with the snapshot.
    - Hosting the catalog browser and the assistant sidebar.

    Parameters
    ----------
    workspace : Workspace
        Controller the controls call into.
    channel : AssistantChannel, optional
        Assistant conversation; a fresh channel by default.
    browser : CatalogBrowser, optional
        Catalog filter state; the default catalog by default.
    """

    def __init__(
        self,
        workspace: "Workspace",
        *,
        channel: Optional[AssistantChannel] = None,
        browser: Optional[CatalogBrowser] = None,
    ) -> None:
        self._workspace = workspace
        self._panels: Dict[str, StratumPanel] = {}
        self._suspend_events = False
        self.channel = channel if channel is not None else AssistantChannel()
        self.browser = browser if browser is not None else CatalogBrowser()

        # 1. Top bar
        self.title_html = widgets.HTML("<b>Stratum</b>", layout=widgets.Layout(margin="0 12px 0 0"))
        self.view_mode_buttons = widgets.ToggleButtons(
            options=[("Single", ViewMode.SINGLE.value), ("Grid", ViewMode.GRID.value), ("Columns", ViewMode.COLUMNS.value)],
            style={"button_width": "72px"},
        )
        self.lock_toggle = widgets.ToggleButton(value=False, description="Unsynced Locations")
        self.search_text = widgets.Text(placeholder="Search location...", layout=widgets.Layout(width="220px"))
        self.search_button = widgets.Button(description="Search")
        self.add_button = widgets.Button(description="Add Stratum", button_style="primary")
        self.catalog_toggle = widgets.ToggleButton(value=False, description="Catalog")
        self.assistant_toggle = widgets.ToggleButton(value=True, description="Assistant")
        self.top_bar = widgets.HBox(
            [
                self.title_html,
                self.view_mode_buttons,
                self.lock_toggle,
                self.search_text,
                self.search_button,
                self.add_button,
                self.catalog_toggle,
                self.assistant_toggle,
            ],
            layout=widgets.Layout(width="100%", align_items="center", flex_flow="row wrap"),
        )

        # 2. Arrangement host
        self.arrangement_host = widgets.Box(
            layout=widgets.Layout(width="100%", height="70vh", min_height="360px", flex="1 1 auto")
        )

        # 3. Catalog browser
        self.catalog_search = widgets.Text(placeholder="Search catalog...", layout=widgets.Layout(width="100%"))
        self.catalog_filter = widgets.Dropdown(
            options=[(f.value.title(), f.value) for f in ContentFilter],
            value=self.browser.content_filter.value,
            description="Content",
        )
        self.catalog_sort = widgets.Dropdown(
            options=[(s.value.title(), s.value) for s in SortOption],
            value=self.browser.sort.value,
            description="Sort",
        )
        self.institution_checkboxes: Dict[str, widgets.Checkbox] = {
            name: widgets.Checkbox(value=False, description=name, indent=False)
            for name in self.browser.institutions
        }
        self.tag_checkboxes: Dict[str, widgets.Checkbox] = {
            tag: widgets.Checkbox(value=False, description=tag, indent=False, layout=widgets.Layout(width="140px"))
            for tag in self.browser.tags
        }
        self.active_filters = widgets.HBox(layout=widgets.Layout(flex_flow="row wrap"))
        self.clear_filters_button = widgets.Button(
            description="Clear all", layout=widgets.Layout(display="none", width="90px")
        )
        self.catalog_filters = widgets.HBox(
            [
                widgets.VBox([widgets.HTML("<b>Institutions</b>"), *self.institution_checkboxes.values()]),
                widgets.VBox(
                    [
                        widgets.HTML("<b>Tags</b>"),
                        widgets.HBox(list(self.tag_checkboxes.values()), layout=widgets.Layout(flex_flow="row wrap")),
                    ]
                ),
            ],
            layout=widgets.Layout(width="100%"),
        )
        self.catalog_results = widgets.VBox()
        self.catalog_detail = widgets.HTML()
        self.catalog_add_button = widgets.Button(description="Add to Workspace", disabled=True)
        self.catalog_box = widgets.VBox(
            [
                widgets.HTML("<b>Data Catalog</b>"),
                self.catalog_search,
                widgets.HBox([self.catalog_filter, self.catalog_sort]),
                self.catalog_filters,
                widgets.HBox([self.active_filters, self.clear_filters_button], layout=widgets.Layout(align_items="center")),
                self.catalog_results,
                self.catalog_detail,
                self.catalog_add_button,
            ],
            layout=widgets.Layout(
                display="none", width="100%", padding="8px", border="1px solid rgba(15,23,42,0.08)"
            ),
        )

        # 4. Assistant sidebar
        self.messages_html = widgets.HTML()
        self.assistant_input = widgets.Text(placeholder="Ask a question about your data...")
        self.assistant_send = widgets.Button(description="Send")
        self.sidebar = widgets.VBox(
            [
                widgets.HTML("<b>AI Assistant</b>"),
                self.messages_html,
                widgets.HBox([self.assistant_input, self.assistant_send]),
            ],
            layout=widgets.Layout(flex="0 1 320px", min_width="260px", max_width="360px", padding="0 0 0 10px"),
        )

        # 5. Root widget
        self.content_wrapper = widgets.HBox(
            [self.arrangement_host, self.sidebar],
            layout=widgets.Layout(width="100%", align_items="stretch"),
        )
        self.root_widget = widgets.VBox(
            [self.top_bar, self.catalog_box, self.content_wrapper],
            layout=widgets.Layout(width="100%"),
        )

        # Wire up controls
        self.view_mode_buttons.observe(self._on_view_mode_change, names="value")
        self.lock_toggle.observe(self._on_lock_change, names="value")
        self.search_button.on_click(lambda _b: self.submit_search())
        self.add_button.on_click(lambda _b: self._workspace.add_stratum())
        self.catalog_toggle.observe(lambda _c: self._sync_catalog(), names="value")
        self.assistant_toggle.observe(lambda _c: self._sync_sidebar(), names="value")
        self.catalog_search.observe(self._on_catalog_search, names="value")
        self.catalog_filter.observe(self._on_catalog_filter, names="value")
        self.catalog_sort.observe(self._on_catalog_sort, names="value")
        for name, box in self.institution_checkboxes.items():
            box.observe(lambda change, picked=name: self._on_institution_toggle(picked, change), names="value")
        for tag, box in self.tag_checkboxes.items():
            box.observe(lambda change, picked=tag: self._on_tag_toggle(picked, change), names="value")
        self.clear_filters_button.on_click(lambda _b: self.clear_catalog_filters())
        self.catalog_add_button.on_click(lambda _b: self.add_selected_item())
        self.assistant_send.on_click(lambda _b: self.send_assistant_message())
        self.channel.on_message(lambda _m: self._sync_messages())

        self.refresh()
        self._sync_catalog()
        self._sync_messages()

    @property
    def output_widget(self) -> OneShotOutput:
        """Return a fresh OneShotOutput wrapping the layout, ready for display."""
        out = OneShotOutput()
        with out:
            display(self.root_widget)
        return out

    @property
    def panels(self) -> Dict[str, StratumPanel]:
        return dict(self._panels)

    # --- Gestures ---

    def submit_search(self) -> None:
        """Geocode the search box text for the active stratum."""
        query = self.search_text.value.strip()
        active = self._workspace.active_stratum_id
        if not query or active is None:
            return
        self._workspace.search_location(query, active)
        self.search_text.value = ""

    def send_assistant_message(self) -> None:
        if self.channel.send(self.assistant_input.value) is not None:
            self.assistant_input.value = ""

    def add_selected_item(self) -> None:
        if self.browser.add_selected(self._workspace):
            self.browser.deselect()
            self.catalog_toggle.value = False
        self._sync_catalog()

    def _on_view_mode_change(self, change: dict[str, Any]) -> None:
        if self._suspend_events or change.get("new") is None:
            return
        self._workspace.set_view_mode(change["new"])

    def _on_lock_change(self, change: dict[str, Any]) -> None:
        if self._suspend_events:
            return
        self._workspace.toggle_location_lock()

    def _on_catalog_search(self, change: dict[str, Any]) -> None:
        self.browser.search_text = change["new"]
        self._sync_catalog()

    def _on_catalog_filter(self, change: dict[str, Any]) -> None:
        self.browser.content_filter = change["new"]
        self._sync_catalog()

    def _on_catalog_sort(self, change: dict[str, Any]) -> None:
        self.browser.sort = change["new"]
        self._sync_catalog()

    def clear_catalog_filters(self) -> None:
        """Drop every institution and tag filter; search text and sort stay."""
        self.browser.clear_filters()
        self._sync_catalog()

    def _on_institution_toggle(self, institution: str, change: dict[str, Any]) -> None:
        if self._suspend_events:
            return
        self.browser.toggle_institution(institution)
        self._sync_catalog()

    def _on_tag_toggle(self, tag: str, change: dict[str, Any]) -> None:
        if self._suspend_events:
            return
        self.browser.toggle_tag(tag)
        self._sync_catalog()

    def _remove_filter(self, kind: str, value: str) -> None:
        if kind == "institution":
            self.browser.toggle_institution(value)
        else:
            self.browser.toggle_tag(value)
        self._sync_catalog()

    def _on_catalog_select(self, item: CatalogItem) -> None:
        selected = self.browser.selected_item
        if selected is not None and selected.id == item.id:
            self.browser.deselect()
        else:
            self.browser.select(item)
        self._sync_catalog()

    # --- Sync from state ---

    def on_workspace_event(self, event: WorkspaceEvent) -> None:
        """Workspace hook: re-render after a committed transition."""
        logger.debug("layout refresh after %s", event.operation)
        self.refresh()

    def refresh(self) -> None:
        """Re-sync the top bar and rebuild the arrangement from the workspace."""
        ws = self._workspace
        self._suspend_events = True
        try:
            self.view_mode_buttons.value = ws.view_mode.value
            self.lock_toggle.value = ws.location_locked
            self.lock_toggle.description = "Synced Locations" if ws.location_locked else "Unsynced Locations"
            self.lock_toggle.button_style = "info" if ws.location_locked else ""
            self.add_button.disabled = not ws.can_add
        finally:
            self._suspend_events = False
        self._sync_panels()
        self.arrangement_host.children = (self._render_node(ws.arrangement().root),)

    def _sync_panels(self) -> None:
        ws = self._workspace
        current = {s.id for s in ws.strata}
        for stale in [sid for sid in self._panels if sid not in current]:
            self._panels.pop(stale).close()
        for stratum in ws.strata:
            panel = self._panels.get(stratum.id)
            if panel is None:
                panel = self._panels[stratum.id] = StratumPanel(ws, stratum)
            panel.update(
                stratum,
                is_active=stratum.id == ws.active_stratum_id,
                can_expand=ws.can_expand,
            )

    def _render_node(self, node: LayoutGroup | LayoutCell) -> widgets.Widget:
        if isinstance(node, LayoutCell):
            if node.is_empty:
                return widgets.Box(layout=widgets.Layout(flex=f"{node.size:g} 1 0%"))
            panel = self._panels[node.stratum_id]
            panel.root_widget.layout.flex = f"{node.size:g} 1 0%"
            panel.root_widget.layout.min_width = f"{node.min_size:g}%"
            return panel.root_widget
        children = [self._render_node(child) for child in node.children]
        box_layout = widgets.Layout(width="100%", height="100%", flex=f"{node.size:g} 1 0%")
        if node.direction == "vertical":
            return widgets.VBox(children, layout=box_layout)
        return widgets.HBox(children, layout=box_layout)

    def _sync_catalog(self) -> None:
        self.catalog_box.layout.display = "flex" if self.catalog_toggle.value else "none"
        browser = self.browser
        self._suspend_events = True
        try:
            for name, box in self.institution_checkboxes.items():
                box.value = name in browser.selected_institutions
            for tag, box in self.tag_checkboxes.items():
                box.value = tag in browser.selected_tags
        finally:
            self._suspend_events = False

        badges = []
        for kind, values in (("institution", browser.selected_institutions), ("tag", browser.selected_tags)):
            for value in values:
                badge = widgets.Button(description=f"{value} ✕", tooltip=f"Remove {kind} filter", button_style="info")
                badge.on_click(lambda _b, k=kind, v=value: self._remove_filter(k, v))
                badges.append(badge)
        self.active_filters.children = tuple(badges)
        self.clear_filters_button.layout.display = "" if browser.has_active_filters else "none"

        selected = browser.selected_item
        rows = []
        for item in self.browser.results:
            button = widgets.Button(
                description=item.title,
                tooltip=item.institution,
                button_style="info" if selected is not None and selected.id == item.id else "",
                layout=widgets.Layout(width="100%"),
            )
            button.on_click(lambda _b, picked=item: self._on_catalog_select(picked))
            rows.append(button)
        if not rows:
            rows.append(widgets.HTML("<i>No results found. Try adjusting your search or filters.</i>"))
        self.catalog_results.children = tuple(rows)
        if selected is None:
            self.catalog_detail.value = ""
        else:
            contents = ", ".join(tab.value for tab in selected.ordered_contents)
            self.catalog_detail.value = (
                f"<b>{html.escape(selected.title)}</b><div>{html.escape(selected.institution)}</div>"
                f"<div>{html.escape(selected.description)}</div><div>Contents: {contents}</div>"
                f"<hr>{stratum_info_html(preview_stratum(selected))}"
            )
        self.catalog_add_button.disabled = selected is None or not self._workspace.can_add

    def _sync_sidebar(self) -> None:
        self.sidebar.layout.display = "flex" if self.assistant_toggle.value else "none"

    def _sync_messages(self) -> None:
        self.messages_html.value = "".join(message_html(m) for m in self.channel.messages)
