"""Populate pipeline: discover → register → fetch stale pages in batches.

Discovered pages are registered as pending before anything is fetched, so a
partial crawl is still listable and resolvable on demand. Stale pages are
fetched in consecutive batches of ``concurrency``; the registry is persisted
after every batch, so a killed process loses at most one batch of progress.
No failure inside a run is fatal: discovery and fetch errors are counted and
logged, and the run carries on.
"""

from __future__ import annotations

import asyncio
import time
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING

import structlog

from samsungdocs.models.page import PopulateSummary
from samsungdocs.models.registry import is_stale
from samsungdocs.scraper import resolve_sections

if TYPE_CHECKING:
    from collections.abc import AsyncIterator, Callable

    from samsungdocs.models.page import DiscoveredLink
    from samsungdocs.protocols import ScraperProtocol
    from samsungdocs.state import AppState

log = structlog.get_logger()

PROGRESS_EVERY = 10


def now_ms() -> int:
    return int(time.time() * 1000)


async def discover_links(
    scraper: ScraperProtocol, section: str
) -> tuple[list[DiscoveredLink], dict[str, int | str]]:
    """Discover pages for every selected entry point; first occurrence of a key wins.

    Returns the merged links and, per section, the page count or the error text.
    """
    links: list[DiscoveredLink] = []
    sections: dict[str, int | str] = {}
    seen: set[str] = set()

    for name, entry_url in resolve_sections(section, scraper.entry_points).items():
        try:
            found = await scraper.discover_links(entry_url)
        except Exception as exc:
            log.warning("discover_failed", section=name, error=str(exc))
            sections[name] = f"error: {exc}"
            continue
        log.info("discover_complete", section=name, pages=len(found))
        sections[name] = len(found)
        for link in found:
            if link.key not in seen:
                seen.add(link.key)
                links.append(link)

    return links, sections


def _all_failed(sections: dict[str, int | str]) -> bool:
    return bool(sections) and all(isinstance(v, str) for v in sections.values())


async def discover_only(state: AppState, section: str) -> PopulateSummary:
    """Discover and register pages without fetching any content."""
    links, sections = await discover_links(state.scraper, section)
    async with state.registry.transaction() as registry:
        registered = sum(registry.register_if_absent(link.key, link.title) for link in links)
        total = len(registry.pages)

    log.info("discover_registered", discovered=len(links), registered=registered, known=total)
    return PopulateSummary(
        sections=sections,
        discovered=len(links),
        registered=registered,
        total=len(links),
        aborted=_all_failed(sections),
    )


class _Progress:
    def __init__(self, summary: PopulateSummary) -> None:
        self.summary = summary

    @property
    def done(self) -> int:
        s = self.summary
        return s.fetched + s.fresh + s.errors

    def record(self, *, ok: bool) -> None:
        if ok:
            self.summary.fetched += 1
        else:
            self.summary.errors += 1
        if self.done % PROGRESS_EVERY == 0 or self.done == self.summary.total:
            self.report()

    def report(self) -> None:
        s = self.summary
        log.info(
            "populate_progress",
            done=self.done,
            total=s.total,
            fetched=s.fetched,
            fresh=s.fresh,
            errors=s.errors,
        )


async def _fetch_one(
    state: AppState,
    link: DiscoveredLink,
    progress: _Progress,
    clock: Callable[[], int],
) -> int | None:
    """Fetch, store and index one page. Returns the fetch timestamp, or None on failure."""
    try:
        page = await state.scraper.fetch_page(link.key)
    except Exception as exc:
        log.warning("populate_fetch_failed", key=link.key, error=str(exc))
        progress.record(ok=False)
        return None

    if not await state.store.write(link.key, page.render()):
        progress.record(ok=False)
        return None

    progress.record(ok=True)
    return clock()


async def populate(
    state: AppState,
    *,
    concurrency: int | None = None,
    section: str | None = None,
    ttl_ms: int | None = None,
    clock: Callable[[], int] = now_ms,
) -> PopulateSummary:
    """Run one full discover/register/fetch pass and return its counts."""
    settings = state.settings
    concurrency = max(1, concurrency or settings.populate.concurrency)
    section = section or settings.populate.section
    ttl_ms = settings.cache.ttl_ms if ttl_ms is None else ttl_ms

    log.info("populate_started", section=section, concurrency=concurrency, ttl_ms=ttl_ms)
    links, sections = await discover_links(state.scraper, section)
    aborted = _all_failed(sections)

    try:
        async with state.registry.transaction() as registry:
            registered = sum(registry.register_if_absent(link.key, link.title) for link in links)
            started_at = clock()
            eligible = [
                link for link in links if is_stale(registry.pages[link.key], started_at, ttl_ms)
            ]
            log.info("populate_registered", known=len(registry.pages), registered=registered)
    except OSError:
        # The in-memory selection stands; unsaved pending entries are re-registered next run.
        log.warning("registry_persist_failed", stage="register", exc_info=True)

    summary = PopulateSummary(
        sections=sections,
        discovered=len(links),
        registered=registered,
        total=len(links),
        fresh=len(links) - len(eligible),
        aborted=aborted,
    )
    progress = _Progress(summary)
    if not eligible:
        progress.report()

    for start in range(0, len(eligible), concurrency):
        batch = eligible[start : start + concurrency]
        fetched_at = await asyncio.gather(
            *(_fetch_one(state, link, progress, clock) for link in batch)
        )
        try:
            async with state.registry.transaction() as registry:
                for link, timestamp in zip(batch, fetched_at, strict=True):
                    if timestamp is not None:
                        registry.mark_fetched(link.key, link.title, timestamp)
        except OSError:
            log.warning("registry_persist_failed", batch_start=start, exc_info=True)

    # Only a completed run over every section counts as a full populate.
    if section == "all" and not aborted:
        try:
            async with state.registry.transaction() as registry:
                registry.populated_at = clock()
        except OSError:
            log.warning("registry_persist_failed", stage="finalize", exc_info=True)

    log.info(
        "populate_complete",
        fetched=summary.fetched,
        fresh=summary.fresh,
        errors=summary.errors,
        total=summary.total,
        aborted=aborted,
    )
    return summary


class PopulateRunner:
    """Single-flight guard: at most one populate run per process."""

    def __init__(self) -> None:
        self._lock = asyncio.Lock()

    @property
    def running(self) -> bool:
        return self._lock.locked()

    async def run(self, state: AppState, **kwargs) -> PopulateSummary | None:
        """Run populate unless one is already active, in which case return None."""
        if self._lock.locked():
            log.info("populate_already_running")
            return None
        async with self._lock:
            return await populate(state, **kwargs)

    @asynccontextmanager
    async def exclusive(self) -> AsyncIterator[None]:
        """Hold off populate runs, first waiting for an active one to finish."""
        if self._lock.locked():
            log.info("populate_wait_for_active_run")
        async with self._lock:
            yield
