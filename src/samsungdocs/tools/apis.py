"""Tool handlers for list_apis and api_overview.

Both read cached product API reference pages only; nothing is fetched.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog

from samsungdocs.apis import api_overview, list_apis
from samsungdocs.errors import ErrorCode, SamsungDocsError
from samsungdocs.models.tools import ApiFilterInput

if TYPE_CHECKING:
    from samsungdocs.state import AppState


def _validate(files: list[str] | None, since: str | None, device: str = "all") -> ApiFilterInput:
    try:
        return ApiFilterInput(files=files, since=since, device=device)
    except ValueError as exc:
        raise SamsungDocsError(
            code=ErrorCode.INVALID_INPUT,
            message=str(exc),
            suggestion=(
                "Provide glob patterns, a version expression such as '>=6.5' or '>=4,<6', "
                "and device all, tv or signage."
            ),
            recoverable=False,
        ) from exc


async def handle_list(files: list[str] | None, since: str | None, state: AppState) -> dict:
    """Handle a list_apis tool call."""
    log = structlog.get_logger().bind(tool="list_apis", since=since)
    log.info("handler_called")

    validated = _validate(files, since)
    output = await list_apis(state, validated.files, validated.since)
    log.info("list_apis_complete", pages=output.page_count, entries=output.entry_count)
    return output.model_dump(mode="json")


async def handle_overview(
    files: list[str] | None, device: str, since: str | None, state: AppState
) -> dict:
    """Handle an api_overview tool call."""
    log = structlog.get_logger().bind(tool="api_overview", device=device, since=since)
    log.info("handler_called")

    validated = _validate(files, since, device)
    output = await api_overview(state, validated.files, validated.device, validated.since)
    log.info("api_overview_complete", pages=output.page_count, apis=len(output.apis))
    return output.model_dump(mode="json")
