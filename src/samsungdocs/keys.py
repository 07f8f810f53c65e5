"""Canonical page keys.

A page key is the site-relative path of a documentation page plus its query
parameters sorted by name and value, e.g.
``/smarttv/develop/api-references/samsung-product-api-references/avplay-api.html?device=signage``.
Query variants of the same path (TV vs. signage) therefore cache and index
independently, and the same logical page always yields the same key.
"""

from __future__ import annotations

from urllib.parse import parse_qsl, urlencode, urljoin, urlsplit


def page_key(url_or_path: str) -> str:
    """Derive the page key for an absolute URL or a site-relative path."""
    parts = urlsplit(url_or_path.strip())
    path = parts.path or "/"
    if not path.startswith("/"):
        path = "/" + path
    params = sorted(parse_qsl(parts.query, keep_blank_values=True))
    if not params:
        return path
    return f"{path}?{urlencode(params)}"


def absolute_url(key: str, base_url: str) -> str:
    return urljoin(base_url.rstrip("/") + "/", key.lstrip("/"))


def query_params(key: str) -> dict[str, str]:
    return dict(parse_qsl(urlsplit(key).query, keep_blank_values=True))
