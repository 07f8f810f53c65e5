"""Tool handler for fetch_page.

Serves a page from the content store when it is cached, otherwise fetches it
live, caches it and marks it fetched in the registry.
"""

from __future__ import annotations

from typing import TYPE_CHECKING
from urllib.parse import urlsplit

import structlog

from samsungdocs.errors import ErrorCode, SamsungDocsError
from samsungdocs.keys import page_key
from samsungdocs.models.tools import FetchPageInput, FetchPageOutput
from samsungdocs.resolver import fetch_and_cache
from samsungdocs.search import extract_title

if TYPE_CHECKING:
    from samsungdocs.state import AppState


async def handle(url: str, state: AppState) -> dict:
    """Handle a fetch_page tool call."""
    log = structlog.get_logger().bind(tool="fetch_page", url=url)
    log.info("handler_called")

    try:
        validated = FetchPageInput(url=url)
    except ValueError as exc:
        raise SamsungDocsError(
            code=ErrorCode.INVALID_INPUT,
            message=str(exc),
            suggestion="Provide a documentation path or an https URL (max 2048 chars).",
            recoverable=False,
        ) from exc

    # Check the origin before the key drops the host.
    base_url = state.settings.fetcher.base_url
    host = urlsplit(validated.url).netloc
    if host and host != urlsplit(base_url).netloc:
        raise SamsungDocsError(
            code=ErrorCode.URL_NOT_ALLOWED,
            message=f"URL is not on the documentation site: {validated.url}",
            suggestion=f"Only pages under {base_url} can be fetched.",
            recoverable=False,
        )

    key = page_key(validated.url)
    content = await state.store.read(key)
    if content is not None:
        log.info("cache_hit", key=key)
        return FetchPageOutput(
            key=key, title=extract_title(content), content=content, cached=True
        ).model_dump(mode="json")

    log.info("cache_miss", key=key)
    page = await fetch_and_cache(state, key)
    output = FetchPageOutput(key=page.key, title=page.title, content=page.render(), cached=False)
    return output.model_dump(mode="json")
