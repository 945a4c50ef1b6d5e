"""
Threshold storage for SightGuard.

- **threshold_store.py**: per-guild thresholds with global and default fallback
- **audit_log.py**: append-only history of threshold changes
- **backends/**: the storage interface and its memory and SQLite implementations
"""

from __future__ import annotations

from typing import Optional

from sightguard.database.db_connection import ConnectionManager
from sightguard.thresholds.backends.base import ThresholdBackend
from sightguard.thresholds.backends.memory_backend import MemoryThresholdBackend
from sightguard.thresholds.backends.sqlite_backend import SQLiteThresholdBackend


def build_threshold_backend(
    backend_name: str,
    connection_manager: Optional[ConnectionManager] = None,
) -> Optional[ThresholdBackend]:
    """Select the threshold backend once at startup.

    ``none`` returns None (defaults only, no audit trail). ``sqlite`` needs an
    open connection manager and falls back to memory without one.
    """
    if backend_name == "none":
        return None
    if backend_name == "sqlite" and connection_manager is not None and connection_manager.is_open:
        return SQLiteThresholdBackend(connection_manager)
    return MemoryThresholdBackend()
