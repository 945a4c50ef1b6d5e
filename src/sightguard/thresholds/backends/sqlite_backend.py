"""
SQLite threshold backend on top of the shared aiosqlite connection.

Tables (created by ``SchemaManager``):
- thresholds: global overrides, one row per name
- thresholds_guild: per-guild overrides keyed by (guild_id, name)
- thresholds_history: append-only audit trail
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Dict, List, Optional

import aiosqlite

from sightguard.database.db_connection import ConnectionManager
from sightguard.database.db_schema import SchemaManager
from sightguard.datatypes.threshold_datatypes import ThresholdChange, ThresholdName
from sightguard.exceptions import StoreUnavailableError
from sightguard.thresholds.backends.base import ThresholdBackend
from sightguard.util.logger import get_logger

logger = get_logger("sqlite_threshold_backend")

# Fixed width so that text ordering equals chronological ordering
TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S.%f"


def format_timestamp(value: datetime) -> str:
    return value.astimezone(timezone.utc).strftime(TIMESTAMP_FORMAT)


def parse_timestamp(value: str) -> datetime:
    return datetime.strptime(value, TIMESTAMP_FORMAT).replace(tzinfo=timezone.utc)


def _rows_to_values(rows) -> Dict[ThresholdName, float]:
    values: Dict[ThresholdName, float] = {}
    for raw_name, value in rows:
        try:
            values[ThresholdName(raw_name)] = float(value)
        except ValueError:
            logger.warning("[SQLITE BACKEND] Ignoring unknown threshold row %r", raw_name)
    return values


class SQLiteThresholdBackend(ThresholdBackend):
    """Threshold backend that persists to SQLite through a ``ConnectionManager``."""

    name = "sqlite"

    def __init__(self, connection_manager: ConnectionManager) -> None:
        super().__init__()
        self._connections = connection_manager

    async def initialize(self) -> None:
        try:
            async with self._connections.transaction() as conn:
                await SchemaManager.initialize_schema(conn)
        except aiosqlite.Error as exc:
            raise StoreUnavailableError(f"failed to create threshold tables: {exc}") from exc

    async def fetch_tenant_values(self, tenant_id: str) -> Dict[ThresholdName, float]:
        try:
            async with self._connections.read() as conn:
                async with conn.execute(
                    "SELECT name, value FROM thresholds_guild WHERE guild_id = ?",
                    (tenant_id,),
                ) as cursor:
                    rows = await cursor.fetchall()
        except aiosqlite.Error as exc:
            raise StoreUnavailableError(f"failed to read thresholds for guild {tenant_id}: {exc}") from exc
        return _rows_to_values(rows)

    async def fetch_global_values(self) -> Dict[ThresholdName, float]:
        try:
            async with self._connections.read() as conn:
                async with conn.execute("SELECT name, value FROM thresholds") as cursor:
                    rows = await cursor.fetchall()
        except aiosqlite.Error as exc:
            raise StoreUnavailableError(f"failed to read global thresholds: {exc}") from exc
        return _rows_to_values(rows)

    async def upsert_tenant_value(self, tenant_id: str, name: ThresholdName, value: float) -> None:
        try:
            async with self._connections.transaction() as conn:
                await conn.execute(
                    """
                    INSERT INTO thresholds_guild (guild_id, name, value) VALUES (?, ?, ?)
                    ON CONFLICT(guild_id, name) DO UPDATE SET value = excluded.value
                    """,
                    (tenant_id, name.value, value),
                )
        except aiosqlite.Error as exc:
            raise StoreUnavailableError(f"failed to write {name} for guild {tenant_id}: {exc}") from exc

    async def upsert_global_value(self, name: ThresholdName, value: float) -> None:
        try:
            async with self._connections.transaction() as conn:
                await conn.execute(
                    """
                    INSERT INTO thresholds (name, value) VALUES (?, ?)
                    ON CONFLICT(name) DO UPDATE SET value = excluded.value
                    """,
                    (name.value, value),
                )
        except aiosqlite.Error as exc:
            raise StoreUnavailableError(f"failed to write global {name}: {exc}") from exc

    async def insert_change(
        self,
        name: ThresholdName,
        old_value: Optional[float],
        new_value: float,
        actor_id: Optional[str],
        tenant_id: Optional[str],
    ) -> ThresholdChange:
        timestamp = self.next_timestamp()
        try:
            async with self._connections.transaction() as conn:
                await conn.execute(
                    """
                    INSERT INTO thresholds_history (name, old_value, new_value, user_id, guild_id, created_at)
                    VALUES (?, ?, ?, ?, ?, ?)
                    """,
                    (name.value, old_value, new_value, actor_id, tenant_id, format_timestamp(timestamp)),
                )
        except aiosqlite.Error as exc:
            raise StoreUnavailableError(f"failed to record change of {name}: {exc}") from exc

        return ThresholdChange(
            name=name.value,
            old_value=old_value,
            new_value=new_value,
            actor_id=actor_id,
            tenant_id=tenant_id,
            timestamp=timestamp,
        )

    async def query_changes(
        self,
        tenant_id: Optional[str],
        limit: int,
        name: Optional[ThresholdName] = None,
    ) -> List[ThresholdChange]:
        clauses = ["guild_id IS ?"]
        params: list = [tenant_id]
        if name is not None:
            clauses.append("name = ?")
            params.append(name.value)
        params.append(limit)

        query = (
            "SELECT name, old_value, new_value, user_id, guild_id, created_at FROM thresholds_history "
            f"WHERE {' AND '.join(clauses)} ORDER BY created_at DESC, id DESC LIMIT ?"
        )
        try:
            async with self._connections.read() as conn:
                async with conn.execute(query, params) as cursor:
                    rows = await cursor.fetchall()
        except aiosqlite.Error as exc:
            raise StoreUnavailableError(f"failed to read threshold history: {exc}") from exc

        changes: List[ThresholdChange] = []
        for row in rows:
            try:
                changes.append(
                    ThresholdChange(
                        name=row[0],
                        old_value=row[1],
                        new_value=float(row[2]),
                        actor_id=row[3],
                        tenant_id=row[4],
                        timestamp=parse_timestamp(row[5]),
                    )
                )
            except (TypeError, ValueError):
                logger.warning("[SQLITE BACKEND] Skipping malformed history row %r", tuple(row))
        return changes
