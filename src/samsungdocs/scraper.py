"""Live site access: entry point discovery and single page rendering.

All network I/O goes through a single Scraper instance that receives an
httpx.AsyncClient via constructor injection; the lifespan owns the client
lifecycle. Only URLs on the configured documentation origin are fetched.
"""

from __future__ import annotations

import re
from typing import TYPE_CHECKING
from urllib.parse import parse_qsl, urlencode, urljoin, urlsplit, urlunsplit

import httpx
import structlog
from bs4 import BeautifulSoup
from markdownify import markdownify

from samsungdocs.errors import ErrorCode, SamsungDocsError
from samsungdocs.keys import absolute_url, page_key
from samsungdocs.models.page import UNTITLED, DiscoveredLink, FetchedPage

if TYPE_CHECKING:
    from bs4 import Tag

    from samsungdocs.config import FetcherSettings

log = structlog.get_logger()

ENTRY_POINTS: dict[str, str] = {
    "smarttv-develop": "/smarttv/develop/specifications/general-specifications.html",
    "smarttv-api": "/smarttv/develop/api-references/samsung-product-api-references.html",
    "smarttv-signage-api": (
        "/smarttv/develop/api-references/samsung-product-api-references-signage.html"
        "?device=signage"
    ),
    "smarttv-design": "/smarttv/design/overview.html",
}

_NAV_LINK_SELECTOR = ".sdp-lnb-menu a.nav-link"
_SKIP_SELECTORS = ["script", "style", "nav", ".sdp-lnb", "header", "footer"]
_CONTENT_SELECTORS = ["main", "article", ".sdp-content", ".doc-content"]
_TITLE_SUFFIX = " | Samsung Developer"


def build_http_client(settings: FetcherSettings) -> httpx.AsyncClient:
    """Create the shared httpx client. Called once at startup."""
    return httpx.AsyncClient(
        follow_redirects=True,
        timeout=httpx.Timeout(settings.timeout_seconds),
        headers={"User-Agent": settings.user_agent},
        limits=httpx.Limits(
            max_connections=10,
            max_keepalive_connections=5,
        ),
    )


def resolve_sections(
    section: str, entry_points: dict[str, str] = ENTRY_POINTS
) -> dict[str, str]:
    """Return the entry points selected by ``section`` ("all" selects every one)."""
    if section == "all":
        return dict(entry_points)
    if section not in entry_points:
        raise SamsungDocsError(
            code=ErrorCode.UNKNOWN_SECTION,
            message=f"Unknown documentation section: {section!r}",
            suggestion=f"Use one of: {', '.join([*entry_points, 'all'])}.",
            recoverable=False,
        )
    return {section: entry_points[section]}


def _clean_markdown(markdown: str) -> str:
    markdown = re.sub(r"[ \t]+\n", "\n", markdown)
    markdown = re.sub(r"\n{3,}", "\n\n", markdown)
    return markdown.strip()


def render_markdown(element: Tag) -> str:
    """Convert a content element to markdown after removing page chrome."""
    for selector in _SKIP_SELECTORS:
        for unwanted in element.select(selector):
            unwanted.decompose()
    return _clean_markdown(markdownify(str(element), heading_style="atx"))


def extract_page_title(soup: BeautifulSoup) -> str:
    if soup.title is None:
        return UNTITLED
    title = soup.title.get_text().replace(_TITLE_SUFFIX, "").strip()
    return title or UNTITLED


class Scraper:
    """Samsung developer site scraper implementing ScraperProtocol."""

    def __init__(self, client: httpx.AsyncClient, settings: FetcherSettings) -> None:
        self._client = client
        self._base_url = settings.base_url.rstrip("/")
        self._origin = urlsplit(self._base_url).netloc

    @property
    def entry_points(self) -> dict[str, str]:
        return ENTRY_POINTS

    async def _get_html(self, url: str) -> BeautifulSoup:
        if urlsplit(url).netloc != self._origin:
            raise SamsungDocsError(
                code=ErrorCode.URL_NOT_ALLOWED,
                message=f"URL is not on the documentation site: {url}",
                suggestion=f"Only pages under {self._base_url} can be fetched.",
                recoverable=False,
            )
        try:
            response = await self._client.get(url)
        except httpx.HTTPError as exc:
            raise SamsungDocsError(
                code=ErrorCode.PAGE_FETCH_FAILED,
                message=f"Network error fetching {url}: {exc}",
                suggestion="The documentation site may be temporarily unavailable.",
                recoverable=True,
            ) from exc

        if response.status_code == 404:
            raise SamsungDocsError(
                code=ErrorCode.PAGE_NOT_FOUND,
                message=f"HTTP 404 fetching {url}",
                suggestion="The page may have moved. Use list_pages or discover to refresh paths.",
                recoverable=False,
            )
        if not response.is_success:
            raise SamsungDocsError(
                code=ErrorCode.PAGE_FETCH_FAILED,
                message=f"HTTP {response.status_code} fetching {url}",
                suggestion="The documentation site may be temporarily unavailable.",
                recoverable=True,
            )

        log.debug("fetch_complete", url=url, content_length=len(response.text))
        return BeautifulSoup(response.text, "html.parser")

    def _to_url(self, url_or_key: str) -> str:
        if url_or_key.startswith(("http://", "https://")):
            return url_or_key
        return absolute_url(url_or_key, self._base_url)

    async def discover_links(self, entry_url: str) -> list[DiscoveredLink]:
        """Collect the pages linked from an entry point's navigation sidebar.

        Query parameters on the entry URL (``device=signage``) are inherited by
        every discovered link that does not set them itself, so signage
        variants stay distinct from their TV counterparts.
        """
        entry = self._to_url(entry_url)
        inherited = parse_qsl(urlsplit(entry).query, keep_blank_values=True)
        soup = await self._get_html(entry)

        links: list[DiscoveredLink] = []
        seen: set[str] = set()
        for anchor in soup.select(_NAV_LINK_SELECTOR):
            raw_href = anchor.get("href")
            if not raw_href or not isinstance(raw_href, str):
                continue
            parts = urlsplit(urljoin(entry, raw_href))
            if parts.netloc != self._origin:
                continue  # External links (tizen.org, onlinedocs, ...)

            params = parse_qsl(parts.query, keep_blank_values=True)
            present = {name for name, _ in params}
            params.extend((name, value) for name, value in inherited if name not in present)
            url = urlunsplit((parts.scheme, parts.netloc, parts.path, urlencode(params), ""))

            key = page_key(url)
            if key in seen:
                continue
            seen.add(key)
            links.append(DiscoveredLink(key=key, title=anchor.get_text(strip=True)))

        return links

    async def fetch_page(self, key: str) -> FetchedPage:
        """Fetch a page and render its main content to markdown."""
        url = self._to_url(key)
        soup = await self._get_html(url)
        title = extract_page_title(soup)

        content = None
        for selector in _CONTENT_SELECTORS:
            content = soup.select_one(selector)
            if content is not None:
                break

        markdown = (
            render_markdown(content) if content is not None else f"No content found for {url}"
        )
        return FetchedPage(key=page_key(url), url=url, title=title, markdown=markdown)
