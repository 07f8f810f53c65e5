"""In-memory full-text index over the content store.

The index is derived state: it is never persisted and can be rebuilt from the
content store at any time. It is built lazily on the first query after
startup or after a reset, and kept current afterwards through the store's
listener hooks (``upsert`` on every write, ``reset`` on clear).

Scoring is BM25+ over two fields (``title`` and ``body``) with a boost on
title matches. Each query term is expanded to indexed terms it prefixes and
to terms within a bounded Levenshtein distance; expanded terms score less
than exact ones. A document's total is multiplied by the number of distinct
query terms it matched, so documents matching more of the query rank first.
"""

from __future__ import annotations

import asyncio
import math
import re
from collections import Counter
from dataclasses import dataclass
from typing import TYPE_CHECKING

import structlog
from rapidfuzz import process
from rapidfuzz.distance import Levenshtein

from samsungdocs.config import SearchSettings
from samsungdocs.models.page import SOURCE_PREFIX, UNTITLED, SearchHit

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable

    from samsungdocs.store import ContentStore

log = structlog.get_logger()

FIELDS = ("title", "body")

# BM25+ parameters
_K1 = 1.2
_B = 0.7
_DELTA = 0.5

_PREFIX_WEIGHT = 0.375
_FUZZY_WEIGHT = 0.45
_MAX_FUZZY_DISTANCE = 6

_TOKEN_RE = re.compile(r"[^\W_]+")
_TITLE_RE = re.compile(r"^#\s+(.+)$", re.MULTILINE)


def tokenize(text: str) -> list[str]:
    return [token.lower() for token in _TOKEN_RE.findall(text)]


def extract_title(content: str) -> str:
    """Return the text of the first level-1 heading, or a placeholder."""
    match = _TITLE_RE.search(content)
    return match.group(1).strip() if match else UNTITLED


def extract_matching_lines(content: str, terms: Iterable[str], max_lines: int = 5) -> list[str]:
    """Return up to ``max_lines`` trimmed lines containing any of ``terms``.

    The provenance line (``Source: <url>``) is never returned.
    """
    lowered_terms = [t.lower() for t in terms]
    matches: list[str] = []
    for line in content.splitlines():
        lower = line.lower()
        if not any(t in lower for t in lowered_terms):
            continue
        trimmed = line.strip()
        if trimmed and not trimmed.startswith(SOURCE_PREFIX):
            matches.append(trimmed)
            if len(matches) >= max_lines:
                break
    return matches


@dataclass
class _IndexedDocument:
    key: str
    title: str
    field_terms: dict[str, Counter[str]]
    field_lengths: dict[str, int]


class SearchIndex:
    """Incrementally maintained inverted index implementing StoreListener."""

    def __init__(self, store: ContentStore, settings: SearchSettings | None = None) -> None:
        self._store = store
        self._settings = settings or SearchSettings()
        self._docs: dict[str, _IndexedDocument] = {}
        # term → field → key → term frequency
        self._postings: dict[str, dict[str, dict[str, int]]] = {}
        self._total_lengths: dict[str, int] = dict.fromkeys(FIELDS, 0)
        self._vocabulary: list[str] | None = None
        self._built = False
        # Writes arriving while a rebuild is reading the store; applied after it.
        self._pending_writes: dict[str, str] | None = None
        self._rebuild_lock = asyncio.Lock()

    @property
    def built(self) -> bool:
        return self._built

    def __len__(self) -> int:
        return len(self._docs)

    def __contains__(self, key: object) -> bool:
        return key in self._docs

    # ------------------------------------------------------------------
    # Store listener hooks
    # ------------------------------------------------------------------

    def upsert(self, key: str, content: str) -> None:
        """Index ``content`` under ``key``, replacing any previous postings."""
        if self._pending_writes is not None:
            self._pending_writes[key] = content
            return
        if not self._built:
            # The next query rebuilds from the store, which already has this write.
            return
        self._remove(key)
        self._add(key, content)

    def discard(self, key: str) -> None:
        if self._pending_writes is not None:
            self._pending_writes.pop(key, None)
        self._remove(key)

    def reset(self) -> None:
        """Drop everything; the next query rebuilds from the store."""
        self._docs.clear()
        self._postings.clear()
        self._total_lengths = dict.fromkeys(FIELDS, 0)
        self._vocabulary = None
        self._built = False

    # ------------------------------------------------------------------
    # Build
    # ------------------------------------------------------------------

    async def rebuild(self) -> int:
        """Re-derive the whole index from the content store. Returns the document count."""
        async with self._rebuild_lock:
            self.reset()
            self._pending_writes = {}
            try:
                async for key, content in self._store.iter_documents():
                    self._add(key, content)
            finally:
                pending, self._pending_writes = self._pending_writes, None
            for key, content in pending.items():
                self._remove(key)
                self._add(key, content)
            self._built = True

        log.info("search_index_built", documents=len(self._docs))
        return len(self._docs)

    def _add(self, key: str, content: str) -> None:
        title = extract_title(content)
        field_terms = {"title": Counter(tokenize(title)), "body": Counter(tokenize(content))}
        field_lengths = {name: sum(terms.values()) for name, terms in field_terms.items()}
        self._docs[key] = _IndexedDocument(
            key=key, title=title, field_terms=field_terms, field_lengths=field_lengths
        )
        for name, terms in field_terms.items():
            self._total_lengths[name] += field_lengths[name]
            for term, tf in terms.items():
                self._postings.setdefault(term, {}).setdefault(name, {})[key] = tf
        self._vocabulary = None

    def _remove(self, key: str) -> None:
        doc = self._docs.pop(key, None)
        if doc is None:
            return
        for name, terms in doc.field_terms.items():
            self._total_lengths[name] -= doc.field_lengths[name]
            for term in terms:
                by_field = self._postings.get(term)
                if by_field is None:
                    continue
                postings = by_field.get(name)
                if postings is not None:
                    postings.pop(key, None)
                    if not postings:
                        del by_field[name]
                if not by_field:
                    del self._postings[term]
        self._vocabulary = None

    # ------------------------------------------------------------------
    # Query
    # ------------------------------------------------------------------

    async def query(
        self,
        text: str,
        limit: int = 10,
        key_filter: Callable[[str], bool] | None = None,
    ) -> list[SearchHit]:
        """Return up to ``limit`` ranked hits, filtered by ``key_filter`` before limiting."""
        if not self._built:
            await self.rebuild()

        query_terms = list(dict.fromkeys(tokenize(text)))
        if not query_terms or not self._docs:
            return []

        scores: dict[str, float] = {}
        matched_terms: dict[str, dict[str, None]] = {}
        matched_query_terms: dict[str, set[str]] = {}

        for query_term in query_terms:
            for term, weight in self._expand(query_term).items():
                for name, postings in self._postings.get(term, {}).items():
                    boost = self._settings.title_boost if name == "title" else 1.0
                    idf = self._idf(len(postings))
                    for key, tf in postings.items():
                        doc = self._docs[key]
                        score = weight * boost * idf * self._tf_weight(tf, doc, name)
                        scores[key] = scores.get(key, 0.0) + score
                        matched_terms.setdefault(key, {})[term] = None
                        matched_query_terms.setdefault(key, set()).add(query_term)

        ranked = sorted(
            ((key, score * len(matched_query_terms[key])) for key, score in scores.items()),
            key=lambda item: (-item[1], item[0]),
        )
        if key_filter is not None:
            ranked = [(key, score) for key, score in ranked if key_filter(key)]

        hits: list[SearchHit] = []
        for key, score in ranked[:limit]:
            terms = list(matched_terms[key])
            content = await self._store.read(key)
            snippet = (
                extract_matching_lines(content, terms, self._settings.max_snippet_lines)
                if content is not None
                else []
            )
            hits.append(
                SearchHit(
                    key=key,
                    url=key,
                    title=self._docs[key].title,
                    score=round(score, 4),
                    matched_terms=terms,
                    snippet_lines=snippet,
                )
            )
        return hits

    def _expand(self, query_term: str) -> dict[str, float]:
        """Map indexed terms matching ``query_term`` to their weight (1.0 for exact)."""
        expansions: dict[str, float] = {}
        if query_term in self._postings:
            expansions[query_term] = 1.0

        vocabulary = self._get_vocabulary()
        length = len(query_term)

        if self._settings.prefix:
            for term in vocabulary:
                if term != query_term and term.startswith(query_term):
                    distance = len(term) - length
                    weight = _PREFIX_WEIGHT * length / (length + 0.3 * distance)
                    expansions[term] = max(expansions.get(term, 0.0), weight)

        max_distance = min(round(self._settings.fuzzy * length), _MAX_FUZZY_DISTANCE)
        if max_distance > 0:
            for term, distance, _ in process.extract(
                query_term,
                vocabulary,
                scorer=Levenshtein.distance,
                score_cutoff=max_distance,
                limit=None,
            ):
                if term == query_term:
                    continue
                weight = _FUZZY_WEIGHT * length / (length + distance)
                expansions[term] = max(expansions.get(term, 0.0), weight)

        return expansions

    def _get_vocabulary(self) -> list[str]:
        if self._vocabulary is None:
            self._vocabulary = list(self._postings)
        return self._vocabulary

    def _idf(self, document_frequency: int) -> float:
        n = len(self._docs)
        return math.log(1 + (n - document_frequency + 0.5) / (document_frequency + 0.5))

    def _tf_weight(self, tf: int, doc: _IndexedDocument, field_name: str) -> float:
        average = self._total_lengths[field_name] / len(self._docs) or 1.0
        norm = 1 - _B + _B * doc.field_lengths[field_name] / average
        return _DELTA + tf * (_K1 + 1) / (tf + _K1 * norm)
