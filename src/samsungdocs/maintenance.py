"""Cache-wide operations: clear and status."""

from __future__ import annotations

from datetime import UTC, datetime
from typing import TYPE_CHECKING

import structlog

from samsungdocs.models.tools import CacheStatusOutput

if TYPE_CHECKING:
    from samsungdocs.state import AppState

log = structlog.get_logger()


async def clear_cache(state: AppState) -> int:
    """Delete every cached document, the registry and the search index.

    Leaves the cache in the never-populated state, so the next startup check
    populates again. An active populate run is allowed to finish first and
    none can start until the clear is done. Returns the number of documents
    removed.
    """
    async with state.runner.exclusive(), state.registry.locked():
        removed = await state.store.clear()  # also resets the search index
        state.registry.delete()
    log.info("cache_cleared", removed=removed)
    return removed


def format_timestamp(epoch_ms: int | None) -> str:
    if epoch_ms is None:
        return "never"
    return datetime.fromtimestamp(epoch_ms / 1000, tz=UTC).isoformat().replace("+00:00", "Z")


async def cache_status(state: AppState) -> CacheStatusOutput:
    registry = state.registry.load()
    return CacheStatusOutput(
        cache_dir=str(state.settings.cache.path),
        populated_at=format_timestamp(registry.populated_at),
        cached_pages=await state.store.count(),
        known_pages=len(registry.pages),
        populate_running=state.runner.running,
    )
