"""Unit tests for samsungdocs.store."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from samsungdocs.store import ContentStore


class _RecordingListener:
    def __init__(self) -> None:
        self.events: list[tuple[str, ...]] = []

    def upsert(self, key: str, content: str) -> None:
        self.events.append(("upsert", key, content))

    def discard(self, key: str) -> None:
        self.events.append(("discard", key))

    def reset(self) -> None:
        self.events.append(("reset",))


class TestContentStore:
    async def test_write_then_read(self, store: ContentStore) -> None:
        assert await store.write("/a.html", "# A\n\nbody") is True
        assert await store.read("/a.html") == "# A\n\nbody"

    async def test_read_miss_returns_none(self, store: ContentStore) -> None:
        assert await store.read("/missing.html") is None

    async def test_write_overwrites(self, store: ContentStore) -> None:
        await store.write("/a.html", "v1")
        await store.write("/a.html", "v2")
        assert await store.read("/a.html") == "v2"
        assert await store.count() == 1

    async def test_iter_keys_is_restartable(self, store: ContentStore) -> None:
        for key in ("/b.html", "/a.html", "/c.html?device=signage"):
            await store.write(key, key)
        first = [key async for key in store.iter_keys()]
        second = [key async for key in store.iter_keys()]
        assert first == second == ["/a.html", "/b.html", "/c.html?device=signage"]

    async def test_iter_documents(self, store: ContentStore) -> None:
        await store.write("/a.html", "A")
        assert [pair async for pair in store.iter_documents()] == [("/a.html", "A")]

    async def test_delete(self, store: ContentStore) -> None:
        await store.write("/a.html", "A")
        assert await store.delete("/a.html") is True
        assert await store.delete("/a.html") is False
        assert await store.read("/a.html") is None

    async def test_clear_returns_count_and_empties(self, store: ContentStore) -> None:
        await store.write("/a.html", "A")
        await store.write("/b.html", "B")
        assert await store.clear() == 2
        assert await store.count() == 0
        assert [key async for key in store.iter_keys()] == []

    async def test_listeners_follow_writes(self, store: ContentStore) -> None:
        listener = _RecordingListener()
        store.attach(listener)

        await store.write("/a.html", "A")
        await store.delete("/a.html")
        await store.clear()

        assert listener.events == [("upsert", "/a.html", "A"), ("discard", "/a.html"), ("reset",)]
