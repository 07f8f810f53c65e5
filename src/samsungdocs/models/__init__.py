from __future__ import annotations

from samsungdocs.models.page import (
    DiscoveredLink,
    FetchedPage,
    PopulateSummary,
    ResolvedPage,
    SearchHit,
)
from samsungdocs.models.registry import Fetched, PageEntry, Pending, Registry, is_stale

__all__ = [
    # registry
    "Pending",
    "Fetched",
    "PageEntry",
    "Registry",
    "is_stale",
    # pages
    "DiscoveredLink",
    "FetchedPage",
    "SearchHit",
    "ResolvedPage",
    "PopulateSummary",
]
