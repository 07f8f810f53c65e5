"""Tool handler for discover.

Registers every page linked from the selected entry points. With
``fetch_all`` the full populate pipeline runs instead, through the
single-flight runner shared with the background scheduler.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog

from samsungdocs.errors import ErrorCode, SamsungDocsError
from samsungdocs.models.page import PopulateSummary
from samsungdocs.models.tools import DiscoverInput, DiscoverOutput
from samsungdocs.populate import discover_only

if TYPE_CHECKING:
    from samsungdocs.state import AppState


async def handle(section: str, fetch_all: bool, concurrency: int, state: AppState) -> dict:
    """Handle a discover tool call."""
    log = structlog.get_logger().bind(tool="discover", section=section, fetch_all=fetch_all)
    log.info("handler_called")

    try:
        validated = DiscoverInput(section=section, fetch_all=fetch_all, concurrency=concurrency)
    except ValueError as exc:
        raise SamsungDocsError(
            code=ErrorCode.INVALID_INPUT,
            message=str(exc),
            suggestion=(
                "Use a known section (smarttv-develop, smarttv-api, smarttv-signage-api, "
                "smarttv-design or all) and concurrency between 1 and 10."
            ),
            recoverable=False,
        ) from exc

    already_running = False
    if validated.fetch_all:
        summary = await state.runner.run(
            state, concurrency=validated.concurrency, section=validated.section
        )
        if summary is None:
            already_running = True
            summary = PopulateSummary()
    else:
        summary = await discover_only(state, validated.section)

    output = DiscoverOutput(
        section=validated.section,
        fetch_all=validated.fetch_all,
        already_running=already_running,
        known_pages=len(state.registry.load().pages),
        summary=summary,
    )
    return output.model_dump(mode="json")
