"""Product API reference extraction from cached pages.

The API reference pages share a layout: a top-level ``Since : X.Y`` line,
``Privilege Level : ...`` / ``Privilege : <url>`` pairs, one ``#### name``
section per method with its own ``Since`` and a fenced signature, and either a
"Full WebIDL" block or a "Summary of Interfaces and Methods" section.
"""

from __future__ import annotations

import re
from typing import TYPE_CHECKING

from samsungdocs.globs import matches_glob
from samsungdocs.keys import query_params
from samsungdocs.models.tools import (
    ApiMethod,
    ApiOverview,
    ApiOverviewOutput,
    ApiPrivilege,
    ListApisOutput,
)
from samsungdocs.versions import matches_version_filter

if TYPE_CHECKING:
    from samsungdocs.models.registry import PageEntry
    from samsungdocs.state import AppState

DEFAULT_API_PATTERNS = ["*samsung-product-api-references/*-api*"]

LEVEL_ORDER = ("partner", "public", "platform", "none")

_API_SINCE_RE = re.compile(r"\nSince\s*:\s*([\d.]+)")
_SINCE_RE = re.compile(r"Since\s*:\s*([\d.]+)")
_METHOD_SPLIT_RE = re.compile(r"(?=^#### )", re.MULTILINE)
_METHOD_HEADER_RE = re.compile(r"^#### (\w+)")
_SIGNATURE_RE = re.compile(r"```\n([^\n]*?\(.*?\)[^\n]*)\n```")
_LEVEL_RE = re.compile(r"Privilege\s+Level\s*:\s*(Public|Partner|Platform)", re.IGNORECASE)
_PRIVILEGE_RE = re.compile(r"Privilege\s*:\s*(http\S+)", re.IGNORECASE)
_WEBIDL_RE = re.compile(r"## (?:\d+\.\s*)?Full WebIDL\s*\n+```[^\n]*\n(.*?)\n```", re.DOTALL)
_SUMMARY_RE = re.compile(r"## Summary of Interfaces and Methods\s*\n(.*?)(?=\n## )", re.DOTALL)


def extract_api_since(content: str) -> str | None:
    match = _API_SINCE_RE.search(content)
    return match.group(1) if match else None


def extract_methods(content: str) -> list[ApiMethod]:
    """One entry per ``#### name`` section, falling back to the API-level since."""
    api_since = extract_api_since(content) or "unknown"
    methods: list[ApiMethod] = []
    for section in _METHOD_SPLIT_RE.split(content):
        header = _METHOD_HEADER_RE.match(section)
        if not header:
            continue
        since = _SINCE_RE.search(section)
        signature = _SIGNATURE_RE.search(section)
        methods.append(
            ApiMethod(
                name=header.group(1),
                since=since.group(1) if since else api_since,
                signature=signature.group(1).strip() if signature else f"{header.group(1)}()",
            )
        )
    return methods


def extract_privileges(content: str) -> list[tuple[str, str]]:
    """Return deduplicated ``(level, privilege_url)`` pairs in page order.

    Levels and URLs are paired by position; a missing partner falls back to
    the first one found on the page.
    """
    levels = _LEVEL_RE.findall(content)
    privileges = _PRIVILEGE_RE.findall(content)
    pairs: list[tuple[str, str]] = []
    for i in range(max(len(levels), len(privileges))):
        level = (levels[i] if i < len(levels) else levels[0] if levels else "unknown").lower()
        privilege = privileges[i] if i < len(privileges) else privileges[0] if privileges else "unknown"
        if (level, privilege) not in pairs:
            pairs.append((level, privilege))
    return pairs


def device_of(key: str) -> str | None:
    device = query_params(key).get("device")
    return device if device in ("signage", "htv") else None


def _matches_device(key: str, device: str) -> bool:
    if device == "signage":
        return query_params(key).get("device") == "signage"
    if device == "tv":
        return "device" not in query_params(key)
    return True


def _api_entries(state: AppState, files: list[str] | None) -> list[PageEntry]:
    patterns = files or DEFAULT_API_PATTERNS
    registry = state.registry.load()
    return [
        entry
        for key, entry in registry.pages.items()
        if any(matches_glob(key, pattern) for pattern in patterns)
    ]


async def list_apis(
    state: AppState, files: list[str] | None = None, since: str | None = None
) -> ListApisOutput:
    """Privilege requirements per API, grouped by privilege level."""
    entries = _api_entries(state, files)
    groups: dict[str, list[ApiPrivilege]] = {}

    for entry in entries:
        content = await state.store.read(entry.key)
        if content is None:
            continue
        if since:
            api_since = extract_api_since(content)
            if api_since is None or not matches_version_filter(api_since, since):
                continue

        device = device_of(entry.key)
        pairs = extract_privileges(content) or [("none", "-")]
        for level, privilege in pairs:
            groups.setdefault(level, []).append(
                ApiPrivilege(
                    api=entry.title, key=entry.key, level=level, privilege=privilege, device=device
                )
            )

    ordered = {level: groups[level] for level in LEVEL_ORDER if level in groups}
    ordered.update({level: items for level, items in groups.items() if level not in ordered})
    return ListApisOutput(
        page_count=len(entries),
        entry_count=sum(len(items) for items in ordered.values()),
        groups=ordered,
    )


async def api_overview(
    state: AppState,
    files: list[str] | None = None,
    device: str = "all",
    since: str | None = None,
) -> ApiOverviewOutput:
    """Compact per-API overview: WebIDL, summary, or version-filtered methods."""
    entries = [e for e in _api_entries(state, files) if _matches_device(e.key, device)]
    apis: list[ApiOverview] = []

    for entry in entries:
        content = await state.store.read(entry.key)
        if content is None:
            continue

        level = _LEVEL_RE.search(content)
        privilege_url = _PRIVILEGE_RE.search(content)
        if level:
            privilege = level.group(1)
            if privilege_url:
                privilege += f" {privilege_url.group(1)}"
        else:
            privilege = "none"

        overview = ApiOverview(
            api=entry.title,
            key=entry.key,
            device=device_of(entry.key),
            since=extract_api_since(content) or "unknown",
            privilege=privilege,
        )

        if since:
            overview.methods = [
                m for m in extract_methods(content) if matches_version_filter(m.since, since)
            ]
            if not overview.methods:
                continue
        elif webidl := _WEBIDL_RE.search(content):
            overview.webidl = webidl.group(1).strip()
        elif summary := _SUMMARY_RE.search(content):
            overview.summary = summary.group(1).strip()

        apis.append(overview)

    return ApiOverviewOutput(page_count=len(entries), apis=apis)
