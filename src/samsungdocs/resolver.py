"""On-demand resolution for queries the search index cannot answer yet.

Before a full populate has finished, many pages are only registered (pending).
When a search comes back empty, the query is matched against registry titles
and a handful of matching pages are fetched live, cached and indexed, so the
search tool stays useful while the mirror is still being built.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Literal

import structlog

from samsungdocs.errors import ErrorCode, SamsungDocsError
from samsungdocs.models.page import ResolvedPage
from samsungdocs.populate import now_ms

if TYPE_CHECKING:
    from collections.abc import Callable

    from samsungdocs.models.page import FetchedPage
    from samsungdocs.state import AppState

log = structlog.get_logger()

MAX_ON_DEMAND_FETCHES = 3
EXCERPT_CHARS = 500

ResolveStatus = Literal["cache_building", "no_match", "fetched"]


async def fetch_and_cache(
    state: AppState,
    key: str,
    title: str | None = None,
    *,
    clock: Callable[[], int] = now_ms,
) -> FetchedPage:
    """Fetch one page live, write it to the store and mark it fetched.

    Raises SamsungDocsError if the fetch fails or the document cannot be stored.
    """
    page = await state.scraper.fetch_page(key)
    if not await state.store.write(key, page.render()):
        raise SamsungDocsError(
            code=ErrorCode.PAGE_FETCH_FAILED,
            message=f"Fetched {key} but could not write it to the cache",
            suggestion="Check that the cache directory is writable.",
            recoverable=True,
        )
    try:
        async with state.registry.transaction() as registry:
            registry.mark_fetched(key, title or page.title, clock())
    except OSError as exc:
        # A document never outlives its registry entry.
        log.warning("registry_persist_failed", key=key, exc_info=True)
        await state.store.delete(key)
        raise SamsungDocsError(
            code=ErrorCode.PAGE_FETCH_FAILED,
            message=f"Fetched {key} but could not record it in the page registry",
            suggestion="Check that the cache directory is writable.",
            recoverable=True,
        ) from exc
    return page


def match_titles(query: str, titles: dict[str, str]) -> list[str]:
    """Return keys whose title contains any lower-cased query token, in registry order."""
    tokens = [token for token in query.lower().split() if token]
    return [key for key, title in titles.items() if any(t in title.lower() for t in tokens)]


async def resolve_on_demand(
    state: AppState, query: str
) -> tuple[ResolveStatus, list[ResolvedPage]]:
    """Fetch up to three registry pages whose titles match ``query``."""
    registry = state.registry.load()
    if not registry.pages:
        return "cache_building", []

    titles = {key: entry.title for key, entry in registry.pages.items()}
    keys = match_titles(query, titles)[:MAX_ON_DEMAND_FETCHES]
    if not keys:
        return "no_match", []

    resolved: list[ResolvedPage] = []
    for key in keys:
        title = titles[key]
        try:
            page = await fetch_and_cache(state, key, title)
        except Exception as exc:
            log.warning("on_demand_fetch_failed", key=key, error=str(exc))
            resolved.append(ResolvedPage(key=key, title=title, error=str(exc)))
            continue
        resolved.append(
            ResolvedPage(key=key, title=title, excerpt=page.markdown[:EXCERPT_CHARS])
        )

    log.info(
        "on_demand_resolved",
        query=query,
        fetched=sum(1 for r in resolved if r.error is None),
        failed=sum(1 for r in resolved if r.error is not None),
    )
    return "fetched", resolved
