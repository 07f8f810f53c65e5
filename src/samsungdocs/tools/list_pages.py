"""Tool handler for list_pages."""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog

from samsungdocs.errors import ErrorCode, SamsungDocsError
from samsungdocs.globs import build_key_filter
from samsungdocs.models.tools import ListPagesInput, ListPagesOutput, PageListing

if TYPE_CHECKING:
    from samsungdocs.state import AppState


async def handle(files: list[str] | None, state: AppState) -> dict:
    """Handle a list_pages tool call."""
    log = structlog.get_logger().bind(tool="list_pages")
    log.info("handler_called", files=files)

    try:
        validated = ListPagesInput(files=files)
    except ValueError as exc:
        raise SamsungDocsError(
            code=ErrorCode.INVALID_INPUT,
            message=str(exc),
            suggestion="Provide a list of glob patterns such as '*-api*'.",
            recoverable=False,
        ) from exc

    key_filter = build_key_filter(validated.files)
    registry = state.registry.load()
    pages = [
        PageListing(key=entry.key, title=entry.title, status=entry.state.status)
        for key, entry in registry.pages.items()
        if key_filter is None or key_filter(key)
    ]
    return ListPagesOutput(count=len(pages), pages=pages).model_dump(mode="json")
