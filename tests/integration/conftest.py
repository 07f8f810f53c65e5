"""Integration test fixtures.

Handler tests use the wired ``app_state`` from tests/conftest.py (in-memory
SQLite, tmp registry, fake scraper). Subprocess tests get an environment that
isolates the cache directory and keeps the server off the network.
"""

from __future__ import annotations

import os
from typing import TYPE_CHECKING

import pytest

if TYPE_CHECKING:
    from pathlib import Path


@pytest.fixture()
def subprocess_env(tmp_path: Path) -> dict[str, str]:
    """Baseline env for stdio MCP subprocess tests.

    Forces stdio transport, points the cache at an empty tmp directory and
    disables the startup populate so nothing is fetched.
    """
    env = os.environ.copy()
    env["SAMSUNGDOCS__SERVER__TRANSPORT"] = "stdio"
    env["SAMSUNGDOCS__CACHE__DIR"] = str(tmp_path / "cache")
    env["SAMSUNGDOCS__POPULATE__ON_STARTUP"] = "false"
    env["SAMSUNGDOCS__FETCHER__BASE_URL"] = "http://127.0.0.1:1"
    env["SAMSUNGDOCS__LOGGING__LEVEL"] = "WARNING"
    return env
