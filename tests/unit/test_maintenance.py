"""Unit tests for cache clear and cache status."""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING

from samsungdocs.maintenance import cache_status, clear_cache, format_timestamp
from samsungdocs.populate import populate

if TYPE_CHECKING:
    from samsungdocs.state import AppState


def test_format_timestamp() -> None:
    assert format_timestamp(None) == "never"
    assert format_timestamp(0) == "1970-01-01T00:00:00Z"
    assert format_timestamp(1_700_000_000_000) == "2023-11-14T22:13:20Z"


async def test_clear_leaves_never_populated_state(app_state: AppState) -> None:
    app_state.scraper.bodies = {"/docs/page-3.html": "Special ocelot notes."}
    await populate(app_state)
    assert await app_state.index.query("ocelot")

    removed = await clear_cache(app_state)

    assert removed == 10
    assert [key async for key in app_state.store.iter_keys()] == []
    registry = app_state.registry.load()
    assert registry.pages == {}
    assert registry.populated_at is None
    assert await app_state.index.query("ocelot") == []


async def test_clear_on_empty_cache(app_state: AppState) -> None:
    assert await clear_cache(app_state) == 0


async def test_cache_status(app_state: AppState) -> None:
    status = await cache_status(app_state)
    assert status.populated_at == "never"
    assert status.cached_pages == 0
    assert status.known_pages == 0
    assert status.populate_running is False
    assert status.cache_dir == str(app_state.settings.cache.path)

    app_state.scraper.failing = {"/docs/page-0.html"}
    await populate(app_state)
    status = await cache_status(app_state)
    assert status.populated_at != "never"
    assert status.cached_pages == 9
    assert status.known_pages == 10


async def test_clear_waits_for_active_populate(app_state: AppState) -> None:
    gate = asyncio.Event()
    waiting: list[str] = []
    original_fetch = app_state.scraper.fetch_page
    first_batch = {f"/docs/page-{i}.html" for i in range(3)}

    async def gated_fetch(key: str):
        if key not in first_batch:
            waiting.append(key)
            await gate.wait()
        return await original_fetch(key)

    app_state.scraper.fetch_page = gated_fetch  # type: ignore[method-assign]

    run = asyncio.create_task(app_state.runner.run(app_state, concurrency=3))
    while len(waiting) < 3:
        await asyncio.sleep(0)
    assert len(app_state.registry.load().pages) == 10

    clear = asyncio.create_task(clear_cache(app_state))
    for _ in range(5):
        await asyncio.sleep(0)
    assert not clear.done()

    gate.set()
    summary = await run
    assert summary is not None
    assert summary.fetched == 10

    assert await clear == 10
    registry = app_state.registry.load()
    assert registry.pages == {}
    assert registry.populated_at is None
    assert await app_state.store.count() == 0


async def test_populate_skipped_while_clearing(app_state: AppState) -> None:
    async with app_state.runner.exclusive():
        assert await app_state.runner.run(app_state) is None
    assert app_state.registry.load().pages == {}
