"""Integration tests for the MCP tool handlers.

Each test runs the full handler path: input validation, business logic and
output serialisation, against a wired AppState with a fake scraper.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

from samsungdocs.errors import ErrorCode, SamsungDocsError
from samsungdocs.populate import populate
from samsungdocs.tools import apis as t_apis
from samsungdocs.tools import cache as t_cache
from samsungdocs.tools import discover as t_discover
from samsungdocs.tools import fetch_page as t_fetch_page
from samsungdocs.tools import list_pages as t_list_pages
from samsungdocs.tools import search as t_search

if TYPE_CHECKING:
    from samsungdocs.state import AppState


class TestSearchHandler:
    async def test_index_hit(self, app_state: AppState) -> None:
        app_state.scraper.bodies = {"/docs/page-2.html": "All about the galaxy remote."}
        await populate(app_state)

        result = await t_search.handle("galaxy", 10, None, app_state)

        assert result["source"] == "index"
        assert [hit["key"] for hit in result["results"]] == ["/docs/page-2.html"]
        assert result["results"][0]["snippet_lines"] == ["All about the galaxy remote."]

    async def test_files_filter(self, app_state: AppState) -> None:
        await populate(app_state)
        result = await t_search.handle("body", 25, ["*page-1.html"], app_state)
        assert [hit["key"] for hit in result["results"]] == ["/docs/page-1.html"]

    async def test_fallback_fetches_matching_titles(self, app_state: AppState) -> None:
        await t_discover.handle("all", False, 3, app_state)

        result = await t_search.handle("Page 7", 10, None, app_state)

        assert result["source"] == "on_demand"
        assert result["results"] == []
        assert len(result["fetched"]) == 3
        assert result["message"]

    async def test_empty_cache_message(self, app_state: AppState) -> None:
        result = await t_search.handle("anything", 10, None, app_state)
        assert result["fetched"] == []
        assert "still being built" in result["message"]

    @pytest.mark.parametrize(("query", "max_results"), [("", 10), ("   ", 10), ("a" * 501, 10), ("ok", 0), ("ok", 26)])
    async def test_invalid_input(self, app_state: AppState, query: str, max_results: int) -> None:
        with pytest.raises(SamsungDocsError) as exc_info:
            await t_search.handle(query, max_results, None, app_state)
        assert exc_info.value.code == ErrorCode.INVALID_INPUT


class TestDiscoverHandler:
    async def test_register_only(self, app_state: AppState) -> None:
        result = await t_discover.handle("all", False, 3, app_state)
        assert result["known_pages"] == 10
        assert result["summary"]["registered"] == 10
        assert result["summary"]["fetched"] == 0
        assert result["already_running"] is False

    async def test_fetch_all(self, app_state: AppState) -> None:
        result = await t_discover.handle("all", True, 5, app_state)
        assert result["summary"]["fetched"] == 10
        assert await app_state.store.count() == 10

    async def test_unknown_section_rejected(self, app_state: AppState) -> None:
        with pytest.raises(SamsungDocsError) as exc_info:
            await t_discover.handle("tizen", False, 3, app_state)
        assert exc_info.value.code == ErrorCode.INVALID_INPUT

    async def test_concurrency_bounds(self, app_state: AppState) -> None:
        with pytest.raises(SamsungDocsError):
            await t_discover.handle("all", True, 11, app_state)


class TestFetchPageHandler:
    async def test_miss_fetches_and_caches(self, app_state: AppState) -> None:
        url = "https://developer.samsung.com/docs/page-3.html"
        first = await t_fetch_page.handle(url, app_state)
        second = await t_fetch_page.handle("/docs/page-3.html", app_state)

        assert first["cached"] is False
        assert second["cached"] is True
        assert first["content"] == second["content"]
        assert second["title"] == "Page 3"
        assert app_state.scraper.fetched == ["/docs/page-3.html"]
        assert app_state.registry.load().pages["/docs/page-3.html"].fetched_at is not None

    async def test_query_variant_is_separate(self, app_state: AppState) -> None:
        await t_fetch_page.handle("/docs/page-3.html", app_state)
        result = await t_fetch_page.handle("/docs/page-3.html?device=signage", app_state)
        assert result["cached"] is False
        assert result["key"] == "/docs/page-3.html?device=signage"

    async def test_fetch_failure_raises(self, app_state: AppState) -> None:
        app_state.scraper.failing = {"/docs/broken.html"}
        with pytest.raises(SamsungDocsError) as exc_info:
            await t_fetch_page.handle("/docs/broken.html", app_state)
        assert exc_info.value.code == ErrorCode.PAGE_FETCH_FAILED

    async def test_off_site_url(self, app_state: AppState) -> None:
        with pytest.raises(SamsungDocsError) as exc_info:
            await t_fetch_page.handle("https://example.com/a.html", app_state)
        assert exc_info.value.code == ErrorCode.URL_NOT_ALLOWED

    @pytest.mark.parametrize("url", ["", "ftp://developer.samsung.com/a", "x" * 2049])
    async def test_invalid_url(self, app_state: AppState, url: str) -> None:
        with pytest.raises(SamsungDocsError) as exc_info:
            await t_fetch_page.handle(url, app_state)
        assert exc_info.value.code == ErrorCode.INVALID_INPUT


class TestListPagesHandler:
    async def test_lists_status(self, app_state: AppState) -> None:
        app_state.scraper.failing = {"/docs/page-0.html"}
        await populate(app_state)

        result = await t_list_pages.handle(None, app_state)

        assert result["count"] == 10
        statuses = {page["key"]: page["status"] for page in result["pages"]}
        assert statuses["/docs/page-0.html"] == "pending"
        assert statuses["/docs/page-1.html"] == "cached"

    async def test_patterns(self, app_state: AppState) -> None:
        await t_discover.handle("all", False, 3, app_state)
        result = await t_list_pages.handle(["*page-1?.html", "*page-9.html", "  "], app_state)
        assert [page["key"] for page in result["pages"]] == ["/docs/page-9.html"]


class TestCacheHandlers:
    async def test_status_then_clear(self, app_state: AppState) -> None:
        await populate(app_state)

        status = await t_cache.handle_status(app_state)
        assert status["cached_pages"] == 10
        assert status["populated_at"].endswith("Z")

        cleared = await t_cache.handle_clear(app_state)
        assert cleared == {"removed": 10}

        status = await t_cache.handle_status(app_state)
        assert status["cached_pages"] == 0
        assert status["known_pages"] == 0
        assert status["populated_at"] == "never"


class TestApiHandlers:
    async def test_list_apis_on_empty_cache(self, app_state: AppState) -> None:
        result = await t_apis.handle_list(None, None, app_state)
        assert result == {"page_count": 0, "entry_count": 0, "groups": {}}

    async def test_overview_device_validated(self, app_state: AppState) -> None:
        with pytest.raises(SamsungDocsError) as exc_info:
            await t_apis.handle_overview(None, "fridge", None, app_state)
        assert exc_info.value.code == ErrorCode.INVALID_INPUT

    async def test_overview_reads_cached_pages(self, app_state: AppState) -> None:
        key = "/api/samsung-product-api-references/tvinfo-api.html"
        await app_state.store.write(key, "# TVInfo API\n\nSince : 6.5\n\nPrivilege Level : Public\n")
        async with app_state.registry.transaction() as registry:
            registry.mark_fetched(key, "TVInfo API", 1)

        result = await t_apis.handle_overview(None, "all", None, app_state)

        assert result["page_count"] == 1
        assert result["apis"][0]["since"] == "6.5"
        assert result["apis"][0]["privilege"] == "Public"
