"""Background scheduler coroutine for populate runs."""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING

import structlog

if TYPE_CHECKING:
    from samsungdocs.state import AppState

log = structlog.get_logger()


async def _run_once(state: AppState, trigger: str) -> None:
    try:
        summary = await state.runner.run(state)
    except Exception:
        log.warning("populate_scheduler_error", trigger=trigger, exc_info=True)
        return
    if summary is not None:
        log.info("populate_scheduled_run_complete", trigger=trigger, errors=summary.errors)


async def run_populate_scheduler(state: AppState) -> None:
    """Populate once if the cache was never populated, then on the refresh interval."""
    settings = state.settings.populate

    if settings.on_startup and state.registry.load().populated_at is None:
        log.info("populate_first_run")
        await _run_once(state, "startup")

    while True:
        await asyncio.sleep(settings.refresh_interval_hours * 3600)
        await _run_once(state, "interval")
