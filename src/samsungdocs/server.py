"""MCP server entrypoint.

Responsibilities (and nothing more):
- Configure structlog
- Create AppState via the FastMCP lifespan context manager
- Register tools and the health route
- Start the correct transport (stdio or HTTP)
"""

from __future__ import annotations

import asyncio
import json
import logging
import sys
from contextlib import asynccontextmanager, suppress
from typing import TYPE_CHECKING

import aiosqlite
import structlog
from mcp.server.fastmcp import Context, FastMCP
from mcp.types import CallToolResult, TextContent
from starlette.responses import JSONResponse

import samsungdocs.tools.apis as t_apis
import samsungdocs.tools.cache as t_cache
import samsungdocs.tools.discover as t_discover
import samsungdocs.tools.fetch_page as t_fetch_page
import samsungdocs.tools.list_pages as t_list_pages
import samsungdocs.tools.search as t_search
from samsungdocs import __version__
from samsungdocs.config import Settings
from samsungdocs.errors import SamsungDocsError
from samsungdocs.populate import PopulateRunner
from samsungdocs.registry import PageRegistry
from samsungdocs.schedulers import run_populate_scheduler
from samsungdocs.scraper import Scraper, build_http_client
from samsungdocs.search import SearchIndex
from samsungdocs.state import AppState
from samsungdocs.store import ContentStore
from samsungdocs.transport import HEALTH_PATH, run_http_server

if TYPE_CHECKING:
    from collections.abc import AsyncGenerator, Awaitable

    from starlette.requests import Request

log = structlog.get_logger()

DB_FILENAME = "pages.db"
REGISTRY_FILENAME = "registry.json"


# ---------------------------------------------------------------------------
# Logging setup
# ---------------------------------------------------------------------------


def setup_logging(settings: Settings) -> None:
    """Configure structlog. Called once at startup before any log statements."""
    log_level = logging.getLevelNamesMapping()[settings.logging.level]

    shared_processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.StackInfoRenderer(),
        structlog.processors.TimeStamper(fmt="iso"),
    ]

    if settings.logging.format == "json":
        processors = [
            *shared_processors,
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ]
    else:
        processors = [*shared_processors, structlog.dev.ConsoleRenderer()]

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        context_class=dict,
        # stdout is reserved for the MCP JSON-RPC stream
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=True,
    )


# ---------------------------------------------------------------------------
# Application state
# ---------------------------------------------------------------------------


@asynccontextmanager
async def open_state(settings: Settings) -> AsyncGenerator[AppState, None]:
    """Open the cache directory, database, index and HTTP client as one AppState."""
    cache_dir = settings.cache.path
    cache_dir.mkdir(parents=True, exist_ok=True)

    db = await aiosqlite.connect(str(cache_dir / DB_FILENAME))
    http_client = build_http_client(settings.fetcher)
    try:
        store = ContentStore(db)
        await store.init_db()
        index = SearchIndex(store, settings.search)
        store.attach(index)

        yield AppState(
            settings=settings,
            registry=PageRegistry(cache_dir / REGISTRY_FILENAME),
            store=store,
            index=index,
            scraper=Scraper(http_client, settings.fetcher),
            runner=PopulateRunner(),
        )
    finally:
        await http_client.aclose()
        await db.close()


@asynccontextmanager
async def lifespan(server: FastMCP) -> AsyncGenerator[AppState, None]:
    """Create and tear down all shared resources for the server's lifetime."""
    settings = Settings()
    setup_logging(settings)

    log.info(
        "server_starting",
        version=__version__,
        transport=settings.server.transport,
        cache_dir=str(settings.cache.path),
    )

    async with open_state(settings) as state:
        populate_task = asyncio.create_task(run_populate_scheduler(state))
        log.info(
            "server_started",
            version=__version__,
            cached_pages=await state.store.count(),
            known_pages=len(state.registry.load().pages),
        )
        try:
            yield state
        finally:
            populate_task.cancel()
            with suppress(asyncio.CancelledError):
                await populate_task
            log.info("server_stopping")


# ---------------------------------------------------------------------------
# FastMCP instance and tool registration
# ---------------------------------------------------------------------------

mcp = FastMCP("samsung-docs", lifespan=lifespan)
# FastMCP doesn't expose a version kwarg; set it on the underlying Server
# so the MCP initialize handshake reports our version, not the SDK's.
mcp._mcp_server.version = __version__  # pyright: ignore[reportPrivateUsage]


def _serialise_tool_error(error: SamsungDocsError) -> CallToolResult:
    """Convert a SamsungDocsError to the MCP tool error result envelope."""
    return CallToolResult(
        content=[TextContent(type="text", text=json.dumps(error.to_dict()))],
        isError=True,
    )


async def _call(tool: str, call: Awaitable[dict]) -> object:
    try:
        return await call
    except SamsungDocsError as exc:
        log.warning(
            "tool_error",
            tool=tool,
            code=exc.code,
            message=exc.message,
            recoverable=exc.recoverable,
        )
        return _serialise_tool_error(exc)
    except Exception:
        log.error("tool_unexpected_error", tool=tool, exc_info=True)
        raise


def _state(ctx: Context) -> AppState:
    return ctx.request_context.lifespan_context


@mcp.tool()
async def search(
    query: str, ctx: Context, max_results: int = 10, files: list[str] | None = None
) -> object:
    """Full-text search over the cached Samsung Smart TV documentation.

    ``files`` restricts results to page paths matching any glob pattern
    (``*`` any run of characters, ``?`` one character), e.g. ``["*-api*"]``.
    When nothing is indexed yet, matching pages are fetched live.
    """
    return await _call("search", t_search.handle(query, max_results, files, _state(ctx)))


@mcp.tool()
async def discover(
    ctx: Context, section: str = "all", fetch_all: bool = False, concurrency: int = 3
) -> object:
    """Discover documentation pages from the site navigation.

    Without ``fetch_all`` pages are only registered; with it every stale page
    is fetched and indexed.
    """
    return await _call(
        "discover", t_discover.handle(section, fetch_all, concurrency, _state(ctx))
    )


@mcp.tool()
async def fetch_page(url: str, ctx: Context) -> object:
    """Return the markdown of one documentation page, from cache or live."""
    return await _call("fetch_page", t_fetch_page.handle(url, _state(ctx)))


@mcp.tool()
async def list_pages(ctx: Context, files: list[str] | None = None) -> object:
    """List every known page with its status (pending or cached)."""
    return await _call("list_pages", t_list_pages.handle(files, _state(ctx)))


@mcp.tool()
async def clear_cache(ctx: Context) -> object:
    """Delete every cached page, the page registry and the search index."""
    return await _call("clear_cache", t_cache.handle_clear(_state(ctx)))


@mcp.tool()
async def cache_status(ctx: Context) -> object:
    """Report the cache directory, last full populate time and page counts."""
    return await _call("cache_status", t_cache.handle_status(_state(ctx)))


@mcp.tool()
async def list_apis(
    ctx: Context, files: list[str] | None = None, since: str | None = None
) -> object:
    """List the privileges each product API requires, grouped by privilege level.

    ``since`` filters by the API's first version, e.g. ``">=6.5"`` or ``">=4,<6"``.
    """
    return await _call("list_apis", t_apis.handle_list(files, since, _state(ctx)))


@mcp.tool()
async def api_overview(
    ctx: Context,
    files: list[str] | None = None,
    device: str = "all",
    since: str | None = None,
) -> object:
    """Compact overview of product APIs: WebIDL or method summary per API.

    With ``since`` only methods matching the version expression are listed.
    ``device`` is one of all, tv or signage.
    """
    return await _call(
        "api_overview", t_apis.handle_overview(files, device, since, _state(ctx))
    )


@mcp.custom_route(HEALTH_PATH, methods=["GET"])
async def health(request: Request) -> JSONResponse:
    return JSONResponse({"status": "ok", "version": __version__})


# ---------------------------------------------------------------------------
# Entrypoint
# ---------------------------------------------------------------------------


def serve(settings: Settings | None = None) -> None:
    """Run the MCP server on the configured transport."""
    settings = settings or Settings()

    if settings.server.transport == "http":
        setup_logging(settings)
        run_http_server(mcp, settings)
        return

    mcp.run()


if __name__ == "__main__":
    serve()
