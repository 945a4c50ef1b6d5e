"""
Per-guild detection thresholds with global and compiled-in fallbacks.

Resolution order for each threshold name:
    1. the guild's stored value, if a row exists
    2. the global stored value, if a row exists
    3. the compiled-in default

Whether a row exists decides the fallback, not whether the stored value
happens to equal the default. A guild that was reset to the default keeps
that explicit value even when a global override exists.

An empty tenant id (direct messages) and a store without a backend both
resolve to the compiled defaults without touching storage.
"""

from __future__ import annotations

import asyncio
import weakref
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from sightguard.datatypes.threshold_datatypes import (
    DEFAULT_THRESHOLDS,
    ThresholdName,
    Thresholds,
    ThresholdWrite,
    canonical_threshold_name,
)
from sightguard.exceptions import StoreUnavailableError
from sightguard.thresholds.backends.base import ThresholdBackend
from sightguard.util.logger import get_logger

logger = get_logger("threshold_store")

GLOBAL_SCOPE_KEY = "\x00global"


@dataclass(slots=True)
class ResetAllResult:
    """Outcome of resetting every threshold in one scope.

    Each name is reset independently; a failed name does not undo the others.
    """

    writes: List[ThresholdWrite] = field(default_factory=list)
    failures: Dict[ThresholdName, StoreUnavailableError] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return not self.failures


class ThresholdStore:
    """Reads and writes threshold overrides through a ``ThresholdBackend``.

    Calls for the same tenant are serialised by a per-tenant lock; calls for
    different tenants never wait on each other.
    """

    def __init__(self, backend: Optional[ThresholdBackend] = None) -> None:
        self.backend = backend
        # An entry is dropped once no caller holds its lock
        self._locks: "weakref.WeakValueDictionary[str, asyncio.Lock]" = weakref.WeakValueDictionary()

    @property
    def has_backend(self) -> bool:
        return self.backend is not None

    def _lock_for(self, scope_key: str) -> asyncio.Lock:
        lock = self._locks.get(scope_key)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[scope_key] = lock
        return lock

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def get_effective(self, tenant_id: str) -> Thresholds:
        """Return the effective thresholds for a guild."""
        if self.backend is None or not tenant_id:
            return Thresholds.defaults()

        async with self._lock_for(tenant_id):
            tenant_values = await self.backend.fetch_tenant_values(tenant_id)
            global_values = await self.backend.fetch_global_values()

        resolved: Dict[ThresholdName, float] = {}
        for name in ThresholdName:
            if name in tenant_values:
                resolved[name] = tenant_values[name]
            elif name in global_values:
                resolved[name] = global_values[name]
            else:
                resolved[name] = DEFAULT_THRESHOLDS[name]
        return Thresholds.from_mapping(resolved)

    async def get_global(self) -> Thresholds:
        """Return the global thresholds, defaults where no global row exists."""
        if self.backend is None:
            return Thresholds.defaults()
        async with self._lock_for(GLOBAL_SCOPE_KEY):
            global_values = await self.backend.fetch_global_values()
        return Thresholds.from_mapping(global_values)

    # ------------------------------------------------------------------
    # Tenant writes
    # ------------------------------------------------------------------

    async def set(self, tenant_id: str, name: "str | ThresholdName", value: float) -> ThresholdWrite:
        """Overwrite one tenant-scoped threshold.

        No audit record is written here; recording the change is the
        caller's job.

        Raises:
            UnknownThresholdError: If ``name`` is not a threshold name.
            StoreUnavailableError: If the backend fails.
        """
        canonical = canonical_threshold_name(name)
        value = float(value)

        if self.backend is None or not tenant_id:
            logger.warning(
                "[THRESHOLD STORE] Not persisting %s=%.4f for guild %r: %s",
                canonical, value, tenant_id, "no storage backend" if self.backend is None else "no guild context",
            )
            return ThresholdWrite(canonical, tenant_id or None, None, value, persisted=False)

        async with self._lock_for(tenant_id):
            previous = (await self.backend.fetch_tenant_values(tenant_id)).get(canonical)
            await self.backend.upsert_tenant_value(tenant_id, canonical, value)

        logger.debug("[THRESHOLD STORE] Set %s for guild %s: %s -> %.4f", canonical, tenant_id, previous, value)
        return ThresholdWrite(canonical, tenant_id, previous, value)

    async def reset_one(self, tenant_id: str, name: "str | ThresholdName") -> ThresholdWrite:
        """Set one tenant threshold back to its compiled-in default."""
        canonical = canonical_threshold_name(name)
        return await self.set(tenant_id, canonical, DEFAULT_THRESHOLDS[canonical])

    async def reset_all(self, tenant_id: str) -> ResetAllResult:
        """Reset all four tenant thresholds, each one independently."""
        result = ResetAllResult()
        for name in ThresholdName:
            try:
                result.writes.append(await self.reset_one(tenant_id, name))
            except StoreUnavailableError as exc:
                logger.error("[THRESHOLD STORE] Failed to reset %s for guild %s: %s", name, tenant_id, exc)
                result.failures[name] = exc
        return result

    # ------------------------------------------------------------------
    # Global writes
    # ------------------------------------------------------------------

    async def set_global(self, name: "str | ThresholdName", value: float) -> ThresholdWrite:
        """Overwrite one global threshold used by guilds without their own value."""
        canonical = canonical_threshold_name(name)
        value = float(value)

        if self.backend is None:
            logger.warning("[THRESHOLD STORE] Not persisting global %s=%.4f: no storage backend", canonical, value)
            return ThresholdWrite(canonical, None, None, value, persisted=False)

        async with self._lock_for(GLOBAL_SCOPE_KEY):
            previous = (await self.backend.fetch_global_values()).get(canonical)
            await self.backend.upsert_global_value(canonical, value)

        logger.debug("[THRESHOLD STORE] Set global %s: %s -> %.4f", canonical, previous, value)
        return ThresholdWrite(canonical, None, previous, value)

    async def reset_global_one(self, name: "str | ThresholdName") -> ThresholdWrite:
        canonical = canonical_threshold_name(name)
        return await self.set_global(canonical, DEFAULT_THRESHOLDS[canonical])

    async def reset_global_all(self) -> ResetAllResult:
        result = ResetAllResult()
        for name in ThresholdName:
            try:
                result.writes.append(await self.reset_global_one(name))
            except StoreUnavailableError as exc:
                logger.error("[THRESHOLD STORE] Failed to reset global %s: %s", name, exc)
                result.failures[name] = exc
        return result
