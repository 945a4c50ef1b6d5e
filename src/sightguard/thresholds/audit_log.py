"""
Append-only audit trail of threshold changes.

Recording is best-effort relative to the threshold write it describes: a
failed record is reported to the caller but never undoes the write. Without
a backend the log records nothing and every history query is empty.
"""

from __future__ import annotations

from typing import List, Optional

from sightguard.datatypes.threshold_datatypes import ThresholdChange, ThresholdName, canonical_threshold_name
from sightguard.thresholds.backends.base import ThresholdBackend
from sightguard.util.logger import get_logger

logger = get_logger("audit_log")

DEFAULT_HISTORY_LIMIT = 10
MAX_HISTORY_LIMIT = 100


def clamp_history_limit(limit: Optional[int]) -> int:
    """Return ``limit`` if it lies in (0, 100], otherwise the default of 10."""
    if limit is None or limit <= 0 or limit > MAX_HISTORY_LIMIT:
        return DEFAULT_HISTORY_LIMIT
    return limit


class AuditLog:
    """Writes and queries ``ThresholdChange`` records through a ``ThresholdBackend``."""

    def __init__(self, backend: Optional[ThresholdBackend] = None) -> None:
        self.backend = backend

    async def record(
        self,
        name: "str | ThresholdName",
        old_value: Optional[float],
        new_value: float,
        actor_id: Optional[str] = None,
        tenant_id: Optional[str] = None,
    ) -> Optional[ThresholdChange]:
        """Append one audit record.

        Returns the stored record, or None when no backend is configured.

        Raises:
            UnknownThresholdError: If ``name`` is not a threshold name.
            StoreUnavailableError: If the backend fails to persist the record.
        """
        canonical = canonical_threshold_name(name)
        if self.backend is None:
            return None

        change = await self.backend.insert_change(
            canonical,
            old_value,
            float(new_value),
            actor_id or None,
            tenant_id,
        )
        logger.info(
            "[AUDIT LOG] %s changed %s in %s: %s -> %.4f",
            change.actor_id or "unknown user",
            change.name,
            f"guild {tenant_id}" if tenant_id else "global scope",
            "unset" if old_value is None else f"{old_value:.4f}",
            change.new_value,
        )
        return change

    async def history(
        self,
        tenant_id: Optional[str],
        limit: Optional[int] = DEFAULT_HISTORY_LIMIT,
        name: "str | ThresholdName | None" = None,
    ) -> List[ThresholdChange]:
        """Return recent changes for one scope, newest first.

        ``tenant_id=None`` lists global-scope changes; an empty string (no
        guild context) returns nothing.
        """
        name_filter = canonical_threshold_name(name) if name else None
        if self.backend is None or tenant_id == "":
            return []
        return await self.backend.query_changes(tenant_id, clamp_history_limit(limit), name_filter)
