"""Comparator expressions over dotted version strings.

``matches_version_filter("5.0", ">=4,<6.5")`` is True. Clauses are joined by
commas and must all hold. A clause without a recognised operator makes the
whole expression false; nothing in here raises on bad input.
"""

from __future__ import annotations

import re

_CLAUSE_RE = re.compile(r"^(>=|<=|!=|>|<|=)(.+)$")


def _components(version: str) -> list[int] | None:
    try:
        return [int(part) if part else 0 for part in version.strip().split(".")]
    except ValueError:
        return None


def compare_versions(a: str, b: str) -> int | None:
    """Return <0, 0 or >0 like a classic cmp, or None if either side is not numeric.

    Missing trailing components count as 0, so ``"4.0"`` equals ``"4"``.
    """
    pa = _components(a)
    pb = _components(b)
    if pa is None or pb is None:
        return None
    for i in range(max(len(pa), len(pb))):
        na = pa[i] if i < len(pa) else 0
        nb = pb[i] if i < len(pb) else 0
        if na != nb:
            return na - nb
    return 0


def _clause_holds(version: str, clause: str) -> bool:
    match = _CLAUSE_RE.match(clause.strip())
    if not match:
        return False
    op, operand = match.groups()
    cmp = compare_versions(version, operand)
    if cmp is None:
        return False
    if op == ">=":
        return cmp >= 0
    if op == "<=":
        return cmp <= 0
    if op == ">":
        return cmp > 0
    if op == "<":
        return cmp < 0
    if op == "=":
        return cmp == 0
    return cmp != 0


def matches_version_filter(version: str, expression: str) -> bool:
    return all(_clause_holds(version, clause) for clause in expression.split(","))
