"""Input and output models for the MCP tool handlers."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field, field_validator

from samsungdocs.models.page import PopulateSummary, ResolvedPage, SearchHit

Section = Literal[
    "smarttv-develop",
    "smarttv-api",
    "smarttv-signage-api",
    "smarttv-design",
    "all",
]


def _strip_patterns(patterns: list[str] | None) -> list[str] | None:
    if patterns is None:
        return None
    cleaned = [p.strip() for p in patterns if p.strip()]
    return cleaned or None


class SearchInput(BaseModel):
    query: str = Field(min_length=1, max_length=500)
    max_results: int = Field(default=10, ge=1, le=25)
    files: list[str] | None = None

    @field_validator("query")
    @classmethod
    def strip_query(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("query must not be blank")
        return v

    @field_validator("files")
    @classmethod
    def strip_patterns(cls, v: list[str] | None) -> list[str] | None:
        return _strip_patterns(v)


class SearchOutput(BaseModel):
    query: str
    source: Literal["index", "on_demand"]
    results: list[SearchHit] = []
    fetched: list[ResolvedPage] = []
    message: str | None = None


class DiscoverInput(BaseModel):
    section: Section = "all"
    fetch_all: bool = False
    concurrency: int = Field(default=3, ge=1, le=10)


class DiscoverOutput(BaseModel):
    section: str
    fetch_all: bool
    already_running: bool = False
    known_pages: int
    summary: PopulateSummary


class FetchPageInput(BaseModel):
    url: str = Field(min_length=1, max_length=2048)

    @field_validator("url")
    @classmethod
    def validate_url(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("url must not be blank")
        if "://" in v and not v.startswith(("http://", "https://")):
            raise ValueError("Only http and https URLs are supported")
        return v


class FetchPageOutput(BaseModel):
    key: str
    title: str
    content: str
    cached: bool


class ListPagesInput(BaseModel):
    files: list[str] | None = None

    @field_validator("files")
    @classmethod
    def strip_patterns(cls, v: list[str] | None) -> list[str] | None:
        return _strip_patterns(v)


class PageListing(BaseModel):
    key: str
    title: str
    status: Literal["pending", "cached"]


class ListPagesOutput(BaseModel):
    count: int
    pages: list[PageListing]


class ClearCacheOutput(BaseModel):
    removed: int


class CacheStatusOutput(BaseModel):
    cache_dir: str
    populated_at: str  # ISO-8601 UTC, or "never"
    cached_pages: int
    known_pages: int
    populate_running: bool


class ApiFilterInput(BaseModel):
    files: list[str] | None = None
    since: str | None = Field(default=None, max_length=100)
    device: Literal["all", "tv", "signage"] = "all"

    @field_validator("files")
    @classmethod
    def strip_patterns(cls, v: list[str] | None) -> list[str] | None:
        return _strip_patterns(v)


class ApiPrivilege(BaseModel):
    api: str
    key: str
    level: str  # "public" | "partner" | "platform" | "none" | "unknown"
    privilege: str
    device: str | None = None


class ListApisOutput(BaseModel):
    page_count: int
    entry_count: int
    groups: dict[str, list[ApiPrivilege]]


class ApiMethod(BaseModel):
    name: str
    since: str
    signature: str


class ApiOverview(BaseModel):
    api: str
    key: str
    device: str | None = None
    since: str
    privilege: str
    webidl: str | None = None
    summary: str | None = None
    methods: list[ApiMethod] = []


class ApiOverviewOutput(BaseModel):
    page_count: int
    apis: list[ApiOverview]
