"""Tool handler for search.

Queries the in-memory index; when nothing matches, falls back to fetching a
few registry pages whose titles match the query. No MCP or FastMCP imports;
server.py handles the MCP wiring.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog

from samsungdocs.errors import ErrorCode, SamsungDocsError
from samsungdocs.globs import build_key_filter
from samsungdocs.models.tools import SearchInput, SearchOutput
from samsungdocs.resolver import resolve_on_demand

if TYPE_CHECKING:
    from samsungdocs.state import AppState

_MESSAGES = {
    "cache_building": (
        "No results. The documentation cache is still being built; "
        "try again shortly or run discover."
    ),
    "no_match": "No results, and no known page title matches the query.",
    "fetched": "No indexed results. Fetched matching pages from the live site.",
}


async def handle(
    query: str, max_results: int, files: list[str] | None, state: AppState
) -> dict:
    """Handle a search tool call."""
    log = structlog.get_logger().bind(tool="search", query=query)
    log.info("handler_called")

    try:
        validated = SearchInput(query=query, max_results=max_results, files=files)
    except ValueError as exc:
        raise SamsungDocsError(
            code=ErrorCode.INVALID_INPUT,
            message=str(exc),
            suggestion="Provide a non-empty query (max 500 chars) and max_results between 1 and 25.",
            recoverable=False,
        ) from exc

    hits = await state.index.query(
        validated.query,
        limit=validated.max_results,
        key_filter=build_key_filter(validated.files),
    )
    if hits:
        log.info("search_complete", hit_count=len(hits))
        return SearchOutput(query=validated.query, source="index", results=hits).model_dump(
            mode="json"
        )

    status, fetched = await resolve_on_demand(state, validated.query)
    log.info("search_fallback", status=status, fetched=len(fetched))
    output = SearchOutput(
        query=validated.query,
        source="on_demand",
        fetched=fetched,
        message=_MESSAGES[status],
    )
    return output.model_dump(mode="json")
