from __future__ import annotations

from pydantic import BaseModel

# Provenance line written under the heading of every cached document.
SOURCE_PREFIX = "Source:"

UNTITLED = "Untitled"


class DiscoveredLink(BaseModel):
    """A page found in an entry point's navigation sidebar."""

    key: str
    title: str


class FetchedPage(BaseModel):
    """A single page fetched from the live site and rendered to markdown."""

    key: str
    url: str  # Absolute URL the page was fetched from
    title: str
    markdown: str

    def render(self) -> str:
        """Return the document text stored in the content cache."""
        return f"# {self.title}\n\n{SOURCE_PREFIX} {self.url}\n\n{self.markdown}"


class SearchHit(BaseModel):
    """Single ranked result returned by the search index."""

    key: str
    url: str
    title: str
    score: float
    matched_terms: list[str]
    snippet_lines: list[str] = []


class PopulateSummary(BaseModel):
    """Counts reported at the end of a populate run."""

    sections: dict[str, int | str] = {}  # section name → pages found, or error text
    discovered: int = 0
    registered: int = 0
    total: int = 0
    fetched: int = 0
    fresh: int = 0
    errors: int = 0
    aborted: bool = False  # every entry point failed discovery


class ResolvedPage(BaseModel):
    """Outcome of one live fetch made by the on-demand resolver."""

    key: str
    title: str
    excerpt: str | None = None
    error: str | None = None
