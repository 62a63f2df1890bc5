"""Stratum catalog: item records, the query engine and the browser state.

Purpose
-------
The catalog is a fixed, read-only list of :class:`CatalogItem` records users
pick strata templates from. :func:`query_catalog` derives the ordered result
list from the current filter state; :class:`CatalogBrowser` owns that mutable
filter state (the part a dialog would bind its controls to) and forwards
"add to workspace" to the workspace controller.

Notes
-----
The query is a pure function: identical inputs give identical output and the
input items are never mutated.
"""

from __future__ import annotations

import locale
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Any, Iterable, Optional, Sequence

from .stratum_model import (
    GraphsTabState,
    IndexComponent,
    IndexTabState,
    LayerType,
    Location,
    MapLayer,
    MapTabState,
    Stratum,
    StratumLayout,
    StratumTab,
    StratumTabs,
    coerce_enum,
    first_enabled_tab,
    normalize_enabled_tabs,
)

if TYPE_CHECKING:
    from .Workspace import Workspace


class ContentFilter(str, Enum):
    ALL = "all"
    MAP = "map"
    GRAPHS = "graphs"
    INDEX = "index"

    @property
    def tab(self) -> Optional[StratumTab]:
        """The content type this filter requires, or ``None`` for ``ALL``."""
        return None if self is ContentFilter.ALL else StratumTab(self.value)


class SortOption(str, Enum):
    NEWEST = "newest"
    ALPHABETICAL = "alphabetical"
    RELEVANCE = "relevance"


@dataclass(frozen=True)
class CatalogItem:
    """One read-only catalog entry.

    Parameters
    ----------
    id : int
        Monotonically assigned id; larger means newer.
    title, institution, description : str
        Text fields the search matches against.
    previews : tuple[str, ...]
        Preview image references, first one is the cover.
    contents : frozenset[StratumTab]
        Sub-views the item provides.
    tags : tuple[str, ...]
        Free-form tags.
    location : Location
        Where the item is centred.
    """

    id: int
    title: str
    institution: str
    description: str
    previews: tuple[str, ...]
    contents: frozenset
    tags: tuple[str, ...]
    location: Location

    def __post_init__(self) -> None:
        object.__setattr__(self, "previews", tuple(self.previews))
        object.__setattr__(self, "tags", tuple(self.tags))
        object.__setattr__(self, "contents", frozenset(coerce_enum(c, StratumTab) for c in self.contents))

    def provides(self, tab: StratumTab) -> bool:
        return tab in self.contents

    @property
    def ordered_contents(self) -> tuple[StratumTab, ...]:
        """Contents in tab display order (map, graphs, index)."""
        return tuple(tab for tab in StratumTab if tab in self.contents)


def _contains(haystack: str, needle_lower: str) -> bool:
    return needle_lower in haystack.lower()


def matches_search(item: CatalogItem, search_text: str) -> bool:
    """Case-insensitive substring match over title, institution, description or any tag."""
    if not search_text:
        return True
    needle = search_text.lower()
    return (
        _contains(item.title, needle)
        or _contains(item.institution, needle)
        or _contains(item.description, needle)
        or any(_contains(tag, needle) for tag in item.tags)
    )


def _title_collation_key(item: CatalogItem) -> tuple[str, str]:
    # casefold first so the C locale still orders "apple" before "Banana".
    return (locale.strxfrm(item.title.casefold()), item.title)


def query_catalog(
    items: Iterable[CatalogItem],
    search_text: str = "",
    content_filter: ContentFilter | str = ContentFilter.ALL,
    institutions: Iterable[str] = (),
    tags: Iterable[str] = (),
    sort: SortOption | str = SortOption.NEWEST,
) -> list[CatalogItem]:
    """Filter and order catalog items.

    Parameters
    ----------
    items : iterable of CatalogItem
        Source items, in their underlying order.
    search_text : str, optional
        Substring to look for; empty disables the search predicate.
    content_filter : ContentFilter or str, optional
        ``"all"`` or the content type items must provide.
    institutions : iterable of str, optional
        When non-empty, keep only items from these institutions.
    tags : iterable of str, optional
        When non-empty, keep items carrying at least one of these tags.
    sort : SortOption or str, optional
        ``"newest"`` (id descending), ``"alphabetical"`` (title, locale-aware)
        or ``"relevance"`` (title matches first, otherwise stable).

    Returns
    -------
    list[CatalogItem]
        A new list; ``items`` is not modified.

    Examples
    --------
    >>> [i.id for i in query_catalog(DEFAULT_CATALOG, "urban")]
    [6, 3, 1]
    """
    content = coerce_enum(content_filter, ContentFilter)
    order = coerce_enum(sort, SortOption)
    institution_set = set(institutions)
    tag_set = set(tags)
    required = content.tab

    result = [
        item
        for item in items
        if matches_search(item, search_text)
        and (required is None or item.provides(required))
        and (not institution_set or item.institution in institution_set)
        and (not tag_set or any(tag in tag_set for tag in item.tags))
    ]

    if order is SortOption.NEWEST:
        result.sort(key=lambda item: item.id, reverse=True)
    elif order is SortOption.ALPHABETICAL:
        result.sort(key=_title_collation_key)
    elif search_text:
        needle = search_text.lower()
        # list.sort is stable: non-matching titles keep their relative order.
        result.sort(key=lambda item: not _contains(item.title, needle))
    return result


def unique_institutions(items: Iterable[CatalogItem]) -> list[str]:
    """Institutions in first-seen order."""
    return list(dict.fromkeys(item.institution for item in items))


def unique_tags(items: Iterable[CatalogItem]) -> list[str]:
    """All tags, de-duplicated and sorted."""
    return sorted({tag for item in items for tag in item.tags})


def stratum_options_for(item: CatalogItem) -> dict[str, Any]:
    """Keyword arguments for ``add_stratum`` that reproduce ``item`` as a panel."""
    return {
        "name": item.title,
        "enabled_tabs": {tab: item.provides(tab) for tab in StratumTab},
        "location": item.location,
        "description": item.description,
    }


PREVIEW_LAYERS: tuple[MapLayer, ...] = (
    MapLayer(id="1", name="Base Layer", visible=True, type=LayerType.RASTER),
    MapLayer(id="2", name="Overlay", visible=True, type=LayerType.POLYGON),
)
PREVIEW_INDEX_VALUE = 72
PREVIEW_INDEX_DESCRIPTION = "A composite index based on multiple urban development factors"
PREVIEW_INDEX_COMPONENTS: tuple[IndexComponent, ...] = (
    IndexComponent(name="Infrastructure", value=65, weight=0.3),
    IndexComponent(name="Sustainability", value=80, weight=0.4),
    IndexComponent(name="Accessibility", value=70, weight=0.3),
)


def preview_stratum(item: CatalogItem) -> Stratum:
    """Build the informational stratum the catalog's info view shows for ``item``."""
    enabled = normalize_enabled_tabs({tab: item.provides(tab) for tab in StratumTab})
    return Stratum(
        id=str(item.id),
        name=item.title,
        location=item.location,
        active_tab=first_enabled_tab(enabled),
        layout=StratumLayout.TABS,
        is_expanded=False,
        tabs=StratumTabs(
            map=MapTabState(enabled=enabled[StratumTab.MAP], layers=PREVIEW_LAYERS),
            graphs=GraphsTabState(enabled=enabled[StratumTab.GRAPHS]),
            index=IndexTabState(
                enabled=enabled[StratumTab.INDEX],
                value=PREVIEW_INDEX_VALUE,
                description=PREVIEW_INDEX_DESCRIPTION,
                components=PREVIEW_INDEX_COMPONENTS,
            ),
        ),
    )


class CatalogBrowser:
    """Mutable filter state over a fixed catalog.

    Parameters
    ----------
    items : sequence of CatalogItem, optional
        The catalog to browse; defaults to :data:`DEFAULT_CATALOG`.

    Notes
    -----
    Selections of institutions and tags keep the order they were picked in, so
    "active filter" badges can be listed stably.
    """

    def __init__(self, items: Sequence[CatalogItem] | None = None) -> None:
        self._items: tuple[CatalogItem, ...] = tuple(DEFAULT_CATALOG if items is None else items)
        self.search_text = ""
        self._content_filter = ContentFilter.ALL
        self._sort = SortOption.NEWEST
        self._institutions: list[str] = []
        self._tags: list[str] = []
        self.selected_item: Optional[CatalogItem] = None

    @property
    def items(self) -> tuple[CatalogItem, ...]:
        return self._items

    @property
    def content_filter(self) -> ContentFilter:
        return self._content_filter

    @content_filter.setter
    def content_filter(self, value: ContentFilter | str) -> None:
        self._content_filter = coerce_enum(value, ContentFilter)

    @property
    def sort(self) -> SortOption:
        return self._sort

    @sort.setter
    def sort(self, value: SortOption | str) -> None:
        self._sort = coerce_enum(value, SortOption)

    @property
    def selected_institutions(self) -> tuple[str, ...]:
        return tuple(self._institutions)

    @property
    def selected_tags(self) -> tuple[str, ...]:
        return tuple(self._tags)

    @property
    def institutions(self) -> list[str]:
        return unique_institutions(self._items)

    @property
    def tags(self) -> list[str]:
        return unique_tags(self._items)

    @property
    def results(self) -> list[CatalogItem]:
        """Items matching the current filters, in the current sort order."""
        return query_catalog(
            self._items,
            self.search_text,
            self._content_filter,
            self._institutions,
            self._tags,
            self._sort,
        )

    @property
    def has_active_filters(self) -> bool:
        return bool(self._institutions or self._tags)

    def toggle_institution(self, institution: str) -> None:
        if institution in self._institutions:
            self._institutions.remove(institution)
        else:
            self._institutions.append(institution)

    def toggle_tag(self, tag: str) -> None:
        if tag in self._tags:
            self._tags.remove(tag)
        else:
            self._tags.append(tag)

    def clear_filters(self) -> None:
        """Drop institution and tag selections; search text and sort stay."""
        self._institutions.clear()
        self._tags.clear()

    def select(self, item: CatalogItem) -> None:
        self.selected_item = item

    def deselect(self) -> None:
        self.selected_item = None

    def add_selected(self, workspace: "Workspace") -> bool:
        """Add the selected item to ``workspace`` as a new stratum.

        Returns
        -------
        bool
            ``True`` when a stratum was added; ``False`` with nothing selected
            or when the workspace is full.
        """
        if self.selected_item is None:
            return False
        before = len(workspace.strata)
        workspace.add_from_catalog(self.selected_item)
        return len(workspace.strata) > before


def _item(
    id: int,
    title: str,
    institution: str,
    description: str,
    previews: int,
    contents: Sequence[str],
    tags: Sequence[str],
    place: str,
    lon: float,
    lat: float,
) -> CatalogItem:
    return CatalogItem(
        id=id,
        title=title,
        institution=institution,
        description=description,
        previews=("/placeholder.svg",) * previews,
        contents=frozenset(contents),
        tags=tuple(tags),
        location=Location(name=place, coordinates=(lon, lat)),
    )


DEFAULT_CATALOG: tuple[CatalogItem, ...] = (
    _item(
        1,
        "Urban Development Trends",
        "City Planning Institute",
        "Analysis of urban development patterns across major metropolitan areas, "
        "with focus on sustainable growth and infrastructure planning.",
        2,
        ("map", "graphs", "index"),
        ("urban", "planning", "development", "sustainability"),
        "New York", -74.0060, 40.7128,
    ),
    _item(
        2,
        "Climate Impact Assessment",
        "Environmental Research Center",
        "Comprehensive assessment of climate change impacts on local ecosystems, "
        "with projections for future scenarios and adaptation strategies.",
        3,
        ("map", "graphs", "index"),
        ("climate", "environment", "research", "adaptation"),
        "Seattle", -122.3321, 47.6062,
    ),
    _item(
        3,
        "Transportation Network Analysis",
        "Urban Mobility Lab",
        "Analysis of public transportation networks and traffic patterns, "
        "identifying bottlenecks and opportunities for optimization.",
        1,
        ("map", "graphs"),
        ("transportation", "mobility", "urban", "traffic"),
        "Chicago", -87.6298, 41.8781,
    ),
    _item(
        4,
        "Population Demographics Study",
        "Social Sciences Department",
        "Detailed demographic analysis examining population distribution, density, "
        "age groups, and migration patterns across regions.",
        2,
        ("map", "index"),
        ("demographics", "population", "social", "migration"),
        "Los Angeles", -118.2437, 34.0522,
    ),
    _item(
        5,
        "Economic Development Indicators",
        "Economic Research Institute",
        "Economic indicators tracking across multiple dimensions including employment, "
        "growth sectors, and investment patterns.",
        1,
        ("graphs", "index"),
        ("economy", "development", "finance", "indicators"),
        "Boston", -71.0589, 42.3601,
    ),
    _item(
        6,
        "Land Use Classification",
        "Geographic Information Systems Lab",
        "Detailed classification of land use patterns, zoning regulations, and "
        "development opportunities in urban and suburban areas.",
        2,
        ("map", "index"),
        ("land use", "gis", "zoning", "classification"),
        "San Francisco", -122.4194, 37.7749,
    ),
)
