"""Durable page registry: every known page and when it was last fetched.

The registry is a single JSON file in the cache directory. Loads are
fail-open (a missing or corrupt file reads as an empty registry), saves use
write-temp, fsync and atomic replace so a crash never leaves a truncated file.
"""

from __future__ import annotations

import asyncio
import os
import sys
from contextlib import asynccontextmanager, suppress
from typing import TYPE_CHECKING

import structlog
from pydantic import ValidationError

from samsungdocs.models.registry import Registry

if TYPE_CHECKING:
    from collections.abc import AsyncIterator
    from pathlib import Path

log = structlog.get_logger()


class PageRegistry:
    """File-backed registry with an in-process lock for read-modify-write units."""

    def __init__(self, path: Path) -> None:
        self.path = path
        self._lock = asyncio.Lock()

    def load(self) -> Registry:
        """Return the persisted registry, or an empty one if missing or unreadable."""
        if not self.path.is_file():
            return Registry()
        try:
            return Registry.model_validate_json(self.path.read_bytes())
        except (OSError, ValidationError, ValueError):
            log.warning("registry_load_failed", path=str(self.path), exc_info=True)
            return Registry()

    def save(self, registry: Registry) -> None:
        """Persist the full registry with atomic replace semantics."""
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self.path.with_suffix(self.path.suffix + ".tmp")
        try:
            _write_bytes_fsync(tmp_path, registry.model_dump_json(indent=2).encode("utf-8"))
            os.replace(tmp_path, self.path)
            _fsync_directory(self.path.parent)
        finally:
            with suppress(OSError):
                tmp_path.unlink(missing_ok=True)

    def delete(self) -> None:
        with suppress(FileNotFoundError):
            self.path.unlink()

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[Registry]:
        """Load, yield for mutation, then persist, serialised across writers.

        The registry is only saved if the body exits without raising.
        """
        async with self._lock:
            registry = self.load()
            yield registry
            self.save(registry)

    @asynccontextmanager
    async def locked(self) -> AsyncIterator[None]:
        """Hold the writer lock without loading (used by the cache clear)."""
        async with self._lock:
            yield


def _write_bytes_fsync(path: Path, data: bytes) -> None:
    with path.open("wb") as file_obj:
        file_obj.write(data)
        file_obj.flush()
        os.fsync(file_obj.fileno())


def _fsync_directory(path: Path) -> None:
    if sys.platform == "win32":
        return  # Windows does not support fsync on directory handles
    directory_fd = os.open(path, os.O_RDONLY)
    try:
        os.fsync(directory_fd)
    finally:
        os.close(directory_fd)
