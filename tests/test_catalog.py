from __future__ import annotations

import pytest

from stratoview import Workspace
from stratoview.catalog import (
    DEFAULT_CATALOG,
    CatalogBrowser,
    CatalogItem,
    ContentFilter,
    SortOption,
    preview_stratum,
    query_catalog,
    unique_institutions,
    unique_tags,
)
from stratoview.stratum_model import Location, StratumTab


def _item(id: int, title: str, **overrides) -> CatalogItem:
    fields = dict(
        id=id,
        title=title,
        institution="Lab",
        description="",
        previews=(),
        contents=frozenset({StratumTab.MAP}),
        tags=(),
        location=Location("X", (0.0, 0.0)),
    )
    fields.update(overrides)
    return CatalogItem(**fields)


def _titles(items) -> list[str]:
    return [item.title for item in items]


def test_default_sort_is_newest_first() -> None:
    assert [i.id for i in query_catalog(DEFAULT_CATALOG)] == [6, 5, 4, 3, 2, 1]


def test_alphabetical_sort_is_case_insensitive() -> None:
    items = [_item(1, "Zebra"), _item(2, "alpha"), _item(3, "Mango")]
    assert _titles(query_catalog(items, sort="alphabetical")) == ["alpha", "Mango", "Zebra"]
    items = [_item(1, "Zebra"), _item(2, "Alpha"), _item(3, "Mango")]
    assert _titles(query_catalog(items, sort=SortOption.ALPHABETICAL)) == ["Alpha", "Mango", "Zebra"]


def test_relevance_puts_title_matches_first() -> None:
    titles = _titles(query_catalog(DEFAULT_CATALOG, "climate", sort="relevance"))
    assert titles[0] == "Climate Impact Assessment"

    urban = _titles(query_catalog(DEFAULT_CATALOG, "urban", sort="relevance"))
    # Title matches first, the rest keep catalog order.
    assert urban == ["Urban Development Trends", "Transportation Network Analysis", "Land Use Classification"]


def test_relevance_without_search_keeps_input_order() -> None:
    assert [i.id for i in query_catalog(DEFAULT_CATALOG, sort="relevance")] == [1, 2, 3, 4, 5, 6]


def test_search_covers_institution_description_and_tags() -> None:
    assert [i.id for i in query_catalog(DEFAULT_CATALOG, "mobility lab")] == [3]
    assert [i.id for i in query_catalog(DEFAULT_CATALOG, "ZONING")] == [6]
    assert [i.id for i in query_catalog(DEFAULT_CATALOG, "migration")] == [4]
    assert query_catalog(DEFAULT_CATALOG, "no such thing") == []


def test_filters_and_together() -> None:
    graphs = query_catalog(DEFAULT_CATALOG, content_filter=ContentFilter.GRAPHS)
    assert [i.id for i in graphs] == [5, 3, 2, 1]

    narrowed = query_catalog(
        DEFAULT_CATALOG,
        content_filter="graphs",
        tags=["urban", "economy"],
        institutions=["Urban Mobility Lab", "Economic Research Institute"],
    )
    assert [i.id for i in narrowed] == [5, 3]


def test_query_is_idempotent_and_does_not_mutate_input() -> None:
    items = list(DEFAULT_CATALOG)
    first = query_catalog(items, "development", sort="alphabetical")
    second = query_catalog(items, "development", sort="alphabetical")
    assert first == second
    assert items == list(DEFAULT_CATALOG)


def test_facets() -> None:
    assert unique_institutions([_item(1, "a", institution="B"), _item(2, "b", institution="A"), _item(3, "c", institution="B")]) == ["B", "A"]
    assert unique_tags([_item(1, "a", tags=("z", "a")), _item(2, "b", tags=("a",))]) == ["a", "z"]


def test_unknown_sort_option_is_rejected() -> None:
    with pytest.raises(ValueError):
        query_catalog(DEFAULT_CATALOG, sort="popularity")


def test_preview_stratum_reflects_item_contents() -> None:
    item = next(i for i in DEFAULT_CATALOG if i.id == 4)
    preview = preview_stratum(item)
    assert preview.name == "Population Demographics Study"
    assert preview.enabled_tabs == (StratumTab.MAP, StratumTab.INDEX)
    assert preview.location.name == "Los Angeles"
    assert preview.tabs.index.value == 72


def test_browser_filter_state() -> None:
    browser = CatalogBrowser()
    assert browser.institutions[0] == "City Planning Institute"
    assert browser.has_active_filters is False

    browser.toggle_tag("urban")
    browser.toggle_institution("Urban Mobility Lab")
    assert browser.selected_tags == ("urban",)
    assert browser.has_active_filters
    assert [i.id for i in browser.results] == [3]

    browser.toggle_institution("Urban Mobility Lab")
    assert [i.id for i in browser.results] == [3, 1]

    browser.search_text = "land"
    browser.sort = "alphabetical"
    browser.clear_filters()
    assert browser.has_active_filters is False
    assert [i.id for i in browser.results] == [6]
    assert browser.sort is SortOption.ALPHABETICAL


def test_browser_add_selected_respects_cap() -> None:
    ws = Workspace()
    browser = CatalogBrowser()
    assert browser.add_selected(ws) is False

    browser.select(DEFAULT_CATALOG[0])
    assert browser.add_selected(ws) is True
    assert ws.strata[-1].name == "Urban Development Trends"

    ws.add_stratum()
    ws.add_stratum()
    assert browser.add_selected(ws) is False
    assert len(ws.strata) == 4
