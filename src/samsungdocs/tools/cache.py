"""Tool handlers for clear_cache and cache_status."""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog

from samsungdocs.maintenance import cache_status, clear_cache
from samsungdocs.models.tools import ClearCacheOutput

if TYPE_CHECKING:
    from samsungdocs.state import AppState


async def handle_clear(state: AppState) -> dict:
    """Handle a clear_cache tool call."""
    structlog.get_logger().bind(tool="clear_cache").info("handler_called")
    removed = await clear_cache(state)
    return ClearCacheOutput(removed=removed).model_dump(mode="json")


async def handle_status(state: AppState) -> dict:
    """Handle a cache_status tool call."""
    structlog.get_logger().bind(tool="cache_status").info("handler_called")
    status = await cache_status(state)
    return status.model_dump(mode="json")
