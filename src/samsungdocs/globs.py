"""Restricted glob matching for page keys.

``*`` matches any run of characters (including none), ``?`` exactly one.
Every other character is literal and the whole key must match.
"""

from __future__ import annotations

import re
from collections.abc import Callable, Sequence
from functools import lru_cache


@lru_cache(maxsize=256)
def _compile(pattern: str) -> re.Pattern[str]:
    parts: list[str] = []
    for char in pattern:
        if char == "*":
            parts.append(".*")
        elif char == "?":
            parts.append(".")
        else:
            parts.append(re.escape(char))
    return re.compile("".join(parts), re.DOTALL)


def matches_glob(subject: str, pattern: str) -> bool:
    return _compile(pattern).fullmatch(subject) is not None


def build_key_filter(patterns: Sequence[str] | None) -> Callable[[str], bool] | None:
    """Return a predicate accepting keys that match any pattern, or None for no filter."""
    if not patterns:
        return None
    compiled = [_compile(p) for p in patterns]
    return lambda key: any(regex.fullmatch(key) is not None for regex in compiled)
