"""
Database schema initialization.

Creates the threshold, audit and permission tables and records the schema
version. Every statement is idempotent so it is safe to run on each start.
"""

import aiosqlite
from sightguard.util.logger import get_logger

logger = get_logger("database_schema")

SCHEMA_VERSION = 1


class SchemaManager:
    """Creates tables and indexes and tracks the schema version."""

    @staticmethod
    async def initialize_schema(db: aiosqlite.Connection) -> None:
        """
        Create all database tables and indexes.

        Args:
            db: Open database connection
        """
        await SchemaManager._create_tables(db)
        await SchemaManager._create_indexes(db)
        await SchemaManager._update_schema_version(db)
        await db.commit()
        logger.info("[SCHEMA] Database schema initialized")

    @staticmethod
    async def _create_tables(db: aiosqlite.Connection) -> None:
        """Create all required database tables."""
        # Global (tenant-agnostic) threshold overrides
        await db.execute("""
            CREATE TABLE IF NOT EXISTS thresholds (
                name TEXT PRIMARY KEY,
                value REAL NOT NULL
            )
        """)

        # Per-guild threshold overrides
        await db.execute("""
            CREATE TABLE IF NOT EXISTS thresholds_guild (
                guild_id TEXT NOT NULL,
                name TEXT NOT NULL,
                value REAL NOT NULL,
                PRIMARY KEY (guild_id, name)
            )
        """)

        # Audit trail; created_at is written by the application
        await db.execute("""
            CREATE TABLE IF NOT EXISTS thresholds_history (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                name TEXT NOT NULL,
                old_value REAL,
                new_value REAL NOT NULL,
                user_id TEXT,
                guild_id TEXT,
                created_at TEXT NOT NULL
            )
        """)

        # Role whitelist for restricted commands
        await db.execute("""
            CREATE TABLE IF NOT EXISTS permissions (
                guild_id TEXT NOT NULL,
                role_id TEXT NOT NULL,
                PRIMARY KEY (guild_id, role_id)
            )
        """)

        await db.execute("""
            CREATE TABLE IF NOT EXISTS schema_version (
                version INTEGER PRIMARY KEY,
                applied_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
            )
        """)

    @staticmethod
    async def _create_indexes(db: aiosqlite.Connection) -> None:
        """Create indexes backing the filtered history queries."""
        await db.execute("CREATE INDEX IF NOT EXISTS idx_thresholds_history_guild ON thresholds_history(guild_id, created_at DESC)")
        await db.execute("CREATE INDEX IF NOT EXISTS idx_thresholds_history_guild_name ON thresholds_history(guild_id, name, created_at DESC)")
        await db.execute("CREATE INDEX IF NOT EXISTS idx_permissions_guild ON permissions(guild_id)")

    @staticmethod
    async def _update_schema_version(db: aiosqlite.Connection) -> None:
        """Update schema version tracking."""
        await db.execute("INSERT OR IGNORE INTO schema_version (version) VALUES (?)", (SCHEMA_VERSION,))
