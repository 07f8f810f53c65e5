"""Protocol interfaces for swappable components.

Tool handlers and AppState reference these protocols, not the concrete
implementations. This allows:
- Tests to use lightweight in-memory implementations (a fake scraper)
- The live site scraper to be replaced without touching the pipeline
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from samsungdocs.models.page import DiscoveredLink, FetchedPage


class StoreListener(Protocol):
    """Receives content store changes so derived state stays in lockstep."""

    def upsert(self, key: str, content: str) -> None: ...

    def discard(self, key: str) -> None: ...

    def reset(self) -> None: ...


class ScraperProtocol(Protocol):
    """Interface for discovering and fetching documentation pages."""

    @property
    def entry_points(self) -> dict[str, str]: ...

    async def discover_links(self, entry_url: str) -> list[DiscoveredLink]: ...

    async def fetch_page(self, key: str) -> FetchedPage: ...
