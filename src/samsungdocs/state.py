"""Application state container.

AppState is created once at server startup (inside the FastMCP lifespan context
manager) and injected into every tool handler via the MCP Context object. It
replaces module-level singletons: the index, the store and the registry are
all reached through it.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from samsungdocs.config import Settings
    from samsungdocs.populate import PopulateRunner
    from samsungdocs.protocols import ScraperProtocol
    from samsungdocs.registry import PageRegistry
    from samsungdocs.search import SearchIndex
    from samsungdocs.store import ContentStore


@dataclass
class AppState:
    """Holds all shared runtime state. Passed to every tool handler."""

    settings: Settings
    registry: PageRegistry
    store: ContentStore
    index: SearchIndex
    scraper: ScraperProtocol
    runner: PopulateRunner
