"""
Database coordinator for SightGuard.

Owns the shared ``ConnectionManager`` and runs schema creation once at
startup. Storage backends for thresholds and permissions are handed the
same connection manager.
"""

from __future__ import annotations

from pathlib import Path

from sightguard.database.db_connection import ConnectionManager
from sightguard.database.db_schema import SchemaManager
from sightguard.util.logger import get_logger

logger = get_logger("database")

DB_PATH = Path("./data/sightguard.db").resolve()


class Database:
    """
    Central database coordinator.

    Lifecycle:
        1. ``await initialize()`` at program startup
        2. pass ``connection_manager`` to the storage backends
        3. ``await shutdown()`` at program end
    """

    def __init__(self, db_path: Path = DB_PATH, connection_manager: ConnectionManager | None = None):
        self.db_path = db_path
        self.connection_manager = connection_manager or ConnectionManager()
        self._initialized = False

    @property
    def initialized(self) -> bool:
        return self._initialized

    async def initialize(self) -> bool:
        """
        Open the connection and create the schema.

        Returns:
            True if initialization succeeded, False otherwise
        """
        if self._initialized:
            logger.debug("[DATABASE] Already initialized, skipping")
            return True

        try:
            await self.connection_manager.open(self.db_path)
            async with self.connection_manager.transaction() as db:
                await SchemaManager.initialize_schema(db)

            self._initialized = True
            logger.info("[DATABASE] Database initialized at %s", self.db_path)
            return True

        except Exception as e:
            logger.error("[DATABASE] Database initialization failed: %s", e)
            await self.connection_manager.close()
            return False

    async def shutdown(self) -> None:
        """Close the shared connection."""
        if not self._initialized:
            return

        await self.connection_manager.close()
        self._initialized = False
        logger.info("[DATABASE] Database shutdown complete")
