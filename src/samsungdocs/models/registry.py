from __future__ import annotations

from typing import Annotated, Literal

from pydantic import BaseModel, Field


class Pending(BaseModel):
    """Known to exist (discovered), never fetched."""

    status: Literal["pending"] = "pending"


class Fetched(BaseModel):
    """Last successful fetch, as a Unix epoch timestamp in milliseconds."""

    status: Literal["cached"] = "cached"
    at: int


PageState = Annotated[Pending | Fetched, Field(discriminator="status")]


class PageEntry(BaseModel):
    key: str
    title: str
    state: PageState = Field(default_factory=Pending)

    @property
    def fetched_at(self) -> int | None:
        return self.state.at if isinstance(self.state, Fetched) else None

    @property
    def pending(self) -> bool:
        return isinstance(self.state, Pending)


class Registry(BaseModel):
    """Every known page plus the watermark of the last completed full populate."""

    populated_at: int | None = None
    pages: dict[str, PageEntry] = {}

    def register_if_absent(self, key: str, title: str) -> bool:
        """Add a pending entry for an unknown key. Returns True if one was added."""
        if key in self.pages:
            return False
        self.pages[key] = PageEntry(key=key, title=title)
        return True

    def mark_fetched(self, key: str, title: str, now: int) -> None:
        self.pages[key] = PageEntry(key=key, title=title, state=Fetched(at=now))


def is_stale(entry: PageEntry, now: int, ttl: int) -> bool:
    """Pending entries are always stale; fetched ones once ``ttl`` ms have elapsed."""
    fetched_at = entry.fetched_at
    if fetched_at is None:
        return True
    return now - fetched_at >= ttl
