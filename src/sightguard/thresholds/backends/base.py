"""
Storage interface for threshold values and their audit trail.

``ThresholdStore`` and ``AuditLog`` are written only against this interface.
Concrete backends are picked once at startup (see ``build_threshold_backend``
in ``sightguard.thresholds``); neither the store nor the audit log knows which
one it is talking to.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Dict, List, Optional

from sightguard.datatypes.threshold_datatypes import ThresholdChange, ThresholdName


class ThresholdBackend(ABC):
    """Persistence backend for threshold overrides and audit records.

    Backends raise ``StoreUnavailableError`` when the underlying storage
    fails. Timestamps of audit records are assigned by the backend and never
    go backwards, even if the wall clock does.
    """

    name: str = "abstract"

    def __init__(self) -> None:
        self._last_timestamp: Optional[datetime] = None

    def next_timestamp(self) -> datetime:
        """Return the current UTC time, clamped to be >= the previous timestamp."""
        now = datetime.now(timezone.utc)
        if self._last_timestamp is not None and now < self._last_timestamp:
            now = self._last_timestamp
        self._last_timestamp = now
        return now

    @abstractmethod
    async def initialize(self) -> None:
        """Create the backing tables or structures. Safe to call more than once."""

    @abstractmethod
    async def fetch_tenant_values(self, tenant_id: str) -> Dict[ThresholdName, float]:
        """Return the values explicitly stored for a tenant."""

    @abstractmethod
    async def fetch_global_values(self) -> Dict[ThresholdName, float]:
        """Return the values explicitly stored in the global scope."""

    @abstractmethod
    async def upsert_tenant_value(self, tenant_id: str, name: ThresholdName, value: float) -> None:
        """Insert or overwrite one tenant-scoped value."""

    @abstractmethod
    async def upsert_global_value(self, name: ThresholdName, value: float) -> None:
        """Insert or overwrite one global value."""

    @abstractmethod
    async def insert_change(
        self,
        name: ThresholdName,
        old_value: Optional[float],
        new_value: float,
        actor_id: Optional[str],
        tenant_id: Optional[str],
    ) -> ThresholdChange:
        """Append one audit record and return it with its assigned timestamp."""

    @abstractmethod
    async def query_changes(
        self,
        tenant_id: Optional[str],
        limit: int,
        name: Optional[ThresholdName] = None,
    ) -> List[ThresholdChange]:
        """Return up to ``limit`` records of one scope, newest first.

        ``tenant_id=None`` selects global-scope records.
        """

    async def close(self) -> None:
        """Release resources held by the backend."""
