"""
Pytest configuration and fixtures for SightGuard tests.
"""

import sys
from contextlib import asynccontextmanager
from pathlib import Path

import pytest

# Add src directory to path so imports work
src_path = Path(__file__).parent.parent / "src"
sys.path.insert(0, str(src_path))

from sightguard.database.database import Database  # noqa: E402
from sightguard.thresholds.backends.memory_backend import MemoryThresholdBackend  # noqa: E402
from sightguard.thresholds.backends.sqlite_backend import SQLiteThresholdBackend  # noqa: E402


@pytest.fixture(params=["memory", "sqlite"])
def open_backend(request, tmp_path):
    """Return an async context manager yielding a ready threshold backend.

    Tests using this fixture run once against each backend.
    """

    @asynccontextmanager
    async def _open():
        if request.param == "memory":
            backend = MemoryThresholdBackend()
            await backend.initialize()
            yield backend
            return

        database = Database(tmp_path / "thresholds.db")
        assert await database.initialize()
        backend = SQLiteThresholdBackend(database.connection_manager)
        await backend.initialize()
        try:
            yield backend
        finally:
            await backend.close()
            await database.shutdown()

    return _open
