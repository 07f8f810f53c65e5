"""HTTP transport: uvicorn serving the FastMCP streamable app behind request guards."""

from __future__ import annotations

import secrets
from typing import TYPE_CHECKING
from urllib.parse import urlsplit

import structlog
import uvicorn
from starlette.datastructures import Headers
from starlette.responses import PlainTextResponse

if TYPE_CHECKING:
    from mcp.server.fastmcp import FastMCP
    from starlette.types import ASGIApp, Receive, Scope, Send

    from samsungdocs.config import ServerSettings, Settings

log = structlog.get_logger()

SUPPORTED_PROTOCOL_VERSIONS: frozenset[str] = frozenset({"2025-11-25", "2025-06-18", "2025-03-26"})
HEALTH_PATH = "/health"
LOCAL_HOSTS: frozenset[str] = frozenset({"localhost", "127.0.0.1", "::1"})


def is_local_origin(origin: str) -> bool:
    parts = urlsplit(origin)
    return parts.scheme in ("http", "https") and parts.hostname in LOCAL_HOSTS


class MCPSecurityMiddleware:
    """Pure ASGI guard in front of the MCP app.

    ``auth_key`` of None disables bearer auth. The health probe is always
    reachable; every other request must present the key, may only come from a
    local browser origin, and may only announce a protocol version listed in
    SUPPORTED_PROTOCOL_VERSIONS. SSE responses pass through unbuffered.
    """

    def __init__(self, app: ASGIApp, *, auth_key: str | None = None) -> None:
        self.app = app
        self.auth_key = auth_key

    def _authorized(self, headers: Headers) -> bool:
        scheme, _, token = headers.get("authorization", "").partition(" ")
        if scheme.lower() != "bearer" or self.auth_key is None:
            return False
        return secrets.compare_digest(token.encode(), self.auth_key.encode())

    def _rejection(self, scope: Scope) -> PlainTextResponse | None:
        headers = Headers(scope=scope)
        if self.auth_key is not None and scope["path"] != HEALTH_PATH:
            if not self._authorized(headers):
                return PlainTextResponse(
                    "Unauthorized", status_code=401, headers={"WWW-Authenticate": "Bearer"}
                )

        origin = headers.get("origin")
        if origin and not is_local_origin(origin):
            return PlainTextResponse("Forbidden origin", status_code=403)

        version = headers.get("mcp-protocol-version")
        if version and version not in SUPPORTED_PROTOCOL_VERSIONS:
            return PlainTextResponse(f"Unsupported protocol version: {version}", status_code=400)
        return None

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] == "http":
            rejection = self._rejection(scope)
            if rejection is not None:
                log.info("http_request_rejected", path=scope["path"], status=rejection.status_code)
                await rejection(scope, receive, send)
                return
        await self.app(scope, receive, send)


def resolve_auth_key(server: ServerSettings) -> str | None:
    """Return the bearer key to enforce, generating one if auth is on without a key."""
    if not server.auth_enabled:
        return None
    if server.auth_key:
        return server.auth_key
    auth_key = secrets.token_urlsafe(32)
    log.warning("http_auth_key_auto_generated", auth_key=auth_key)
    return auth_key


def run_http_server(mcp: FastMCP, settings: Settings) -> None:
    """Serve the MCP app and its health route over Streamable HTTP."""
    server = settings.server
    auth_key = resolve_auth_key(server)
    if auth_key is None:
        log.warning("http_auth_disabled")

    log.info("http_server_starting", host=server.host, port=server.port, auth=auth_key is not None)
    uvicorn.run(
        MCPSecurityMiddleware(mcp.streamable_http_app(), auth_key=auth_key),
        host=server.host,
        port=server.port,
        log_config=None,  # structlog owns logging
    )
