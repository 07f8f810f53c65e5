"""SQLite content store: one rendered markdown document per page key.

Every write is a single ``INSERT OR REPLACE`` committed on its own, so a
reader sees either the previous document or the new one, never a partial
one. Attached listeners (the search index) are notified on every successful
write and on clear, which keeps the index in lockstep with the store.

Database errors are caught here and degrade gracefully: reads return
``None``, writes are logged and reported to the caller as ``False``.
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import TYPE_CHECKING

import aiosqlite
import structlog

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

    from samsungdocs.protocols import StoreListener

log = structlog.get_logger()

_CREATE_PAGES_TABLE = """
CREATE TABLE IF NOT EXISTS pages (
    key        TEXT PRIMARY KEY,
    content    TEXT NOT NULL,
    written_at TEXT NOT NULL
)
"""


class ContentStore:
    """aiosqlite-backed document store that keeps attached listeners in step."""

    def __init__(self, db: aiosqlite.Connection) -> None:
        self._db = db
        self._listeners: list[StoreListener] = []

    async def init_db(self) -> None:
        """Create tables and set WAL mode. Called once at startup."""
        await self._db.execute("PRAGMA journal_mode = WAL")
        await self._db.execute(_CREATE_PAGES_TABLE)
        await self._db.commit()

    def attach(self, listener: StoreListener) -> None:
        self._listeners.append(listener)

    async def read(self, key: str) -> str | None:
        """Return the cached document, or ``None`` on miss or read failure."""
        try:
            cursor = await self._db.execute("SELECT content FROM pages WHERE key = ?", (key,))
            row = await cursor.fetchone()
            return None if row is None else row[0]
        except aiosqlite.Error:
            log.warning("store_read_error", key=key, exc_info=True)
            return None

    async def write(self, key: str, content: str) -> bool:
        """Overwrite the document for ``key`` and update listeners.

        Returns False if the write failed; listeners are not notified then.
        """
        try:
            await self._db.execute(
                "INSERT OR REPLACE INTO pages (key, content, written_at) VALUES (?, ?, ?)",
                (key, content, datetime.now(UTC).isoformat()),
            )
            await self._db.commit()
        except aiosqlite.Error:
            log.warning("store_write_error", key=key, exc_info=True)
            return False

        for listener in self._listeners:
            listener.upsert(key, content)
        return True

    async def delete(self, key: str) -> bool:
        try:
            cursor = await self._db.execute("DELETE FROM pages WHERE key = ?", (key,))
            await self._db.commit()
        except aiosqlite.Error:
            log.warning("store_delete_error", key=key, exc_info=True)
            return False
        if cursor.rowcount:
            for listener in self._listeners:
                listener.discard(key)
        return bool(cursor.rowcount)

    async def iter_keys(self) -> AsyncIterator[str]:
        """Yield every cached key in key order. Restartable: each call re-queries."""
        try:
            async with self._db.execute("SELECT key FROM pages ORDER BY key") as cursor:
                async for row in cursor:
                    yield row[0]
        except aiosqlite.Error:
            log.warning("store_enumerate_error", exc_info=True)

    async def iter_documents(self) -> AsyncIterator[tuple[str, str]]:
        """Yield ``(key, content)`` pairs; used to rebuild the search index."""
        try:
            async with self._db.execute("SELECT key, content FROM pages ORDER BY key") as cursor:
                async for row in cursor:
                    yield row[0], row[1]
        except aiosqlite.Error:
            log.warning("store_enumerate_error", exc_info=True)

    async def count(self) -> int:
        try:
            cursor = await self._db.execute("SELECT COUNT(*) FROM pages")
            row = await cursor.fetchone()
            return int(row[0]) if row is not None else 0
        except aiosqlite.Error:
            log.warning("store_count_error", exc_info=True)
            return 0

    async def clear(self) -> int:
        """Delete every cached document and reset listeners. Returns the count removed."""
        try:
            cursor = await self._db.execute("DELETE FROM pages")
            removed = cursor.rowcount
            await self._db.commit()
        except aiosqlite.Error:
            log.warning("store_clear_error", exc_info=True)
            removed = 0

        for listener in self._listeners:
            listener.reset()
        log.info("store_cleared", removed=removed)
        return removed
