import sqlite3

import pytest

from sightguard.database.database import Database
from sightguard.database.db_connection import ConnectionManager
from sightguard.thresholds import build_threshold_backend
from sightguard.thresholds.backends.memory_backend import MemoryThresholdBackend
from sightguard.thresholds.backends.sqlite_backend import SQLiteThresholdBackend


@pytest.mark.asyncio
async def test_database_initialization_creates_tables(tmp_path):
    db_path = tmp_path / "nested" / "sightguard.db"
    database = Database(db_path)

    assert await database.initialize() is True
    assert database.initialized
    await database.shutdown()

    conn = sqlite3.connect(db_path)
    tables = {row[0] for row in conn.execute("SELECT name FROM sqlite_master WHERE type='table'")}
    conn.close()

    assert {"thresholds", "thresholds_guild", "thresholds_history", "permissions", "schema_version"} <= tables


@pytest.mark.asyncio
async def test_initialize_is_idempotent(tmp_path):
    database = Database(tmp_path / "sightguard.db")

    assert await database.initialize() is True
    assert await database.initialize() is True
    await database.shutdown()
    assert not database.initialized


@pytest.mark.asyncio
async def test_transaction_rolls_back_on_error(tmp_path):
    database = Database(tmp_path / "sightguard.db")
    await database.initialize()
    manager = database.connection_manager

    with pytest.raises(RuntimeError):
        async with manager.transaction() as conn:
            await conn.execute("INSERT INTO thresholds (name, value) VALUES ('Offensive', 0.5)")
            raise RuntimeError("boom")

    async with manager.read() as conn:
        async with conn.execute("SELECT COUNT(*) FROM thresholds") as cursor:
            (count,) = await cursor.fetchone()
    await database.shutdown()

    assert count == 0


@pytest.mark.asyncio
async def test_build_threshold_backend_selection(tmp_path):
    database = Database(tmp_path / "sightguard.db")
    await database.initialize()
    try:
        assert build_threshold_backend("none", database.connection_manager) is None
        assert isinstance(build_threshold_backend("memory", database.connection_manager), MemoryThresholdBackend)
        assert isinstance(build_threshold_backend("sqlite", database.connection_manager), SQLiteThresholdBackend)
    finally:
        await database.shutdown()

    # A closed connection cannot back SQLite storage
    assert isinstance(build_threshold_backend("sqlite", ConnectionManager()), MemoryThresholdBackend)
