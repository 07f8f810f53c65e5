"""Shared test fixtures for the samsungdocs test suite."""

from __future__ import annotations

from typing import TYPE_CHECKING

import aiosqlite
import pytest

from samsungdocs.config import Settings
from samsungdocs.populate import PopulateRunner
from samsungdocs.registry import PageRegistry
from samsungdocs.search import SearchIndex
from samsungdocs.state import AppState
from samsungdocs.store import ContentStore

from fakes import FakeScraper, make_links

if TYPE_CHECKING:
    from collections.abc import AsyncIterator
    from pathlib import Path


@pytest.fixture()
def settings(tmp_path: Path) -> Settings:
    return Settings(
        cache={"dir": str(tmp_path / "cache")},
        populate={"on_startup": False, "concurrency": 3},
    )


@pytest.fixture()
async def store() -> AsyncIterator[ContentStore]:
    async with aiosqlite.connect(":memory:") as db:
        content_store = ContentStore(db)
        await content_store.init_db()
        yield content_store


@pytest.fixture()
def index(store: ContentStore) -> SearchIndex:
    search_index = SearchIndex(store)
    store.attach(search_index)
    return search_index


@pytest.fixture()
def page_registry(tmp_path: Path) -> PageRegistry:
    return PageRegistry(tmp_path / "registry.json")


@pytest.fixture()
def scraper() -> FakeScraper:
    return FakeScraper(sections={"section-a": make_links(10)})


@pytest.fixture()
def app_state(
    settings: Settings,
    store: ContentStore,
    index: SearchIndex,
    page_registry: PageRegistry,
    scraper: FakeScraper,
) -> AppState:
    return AppState(
        settings=settings,
        registry=page_registry,
        store=store,
        index=index,
        scraper=scraper,
        runner=PopulateRunner(),
    )
