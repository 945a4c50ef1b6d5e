"""In-memory threshold backend. Values live for the lifetime of the process."""

from __future__ import annotations

import collections
from typing import DefaultDict, Dict, List, Optional

from sightguard.datatypes.threshold_datatypes import ThresholdChange, ThresholdName
from sightguard.thresholds.backends.base import ThresholdBackend


class MemoryThresholdBackend(ThresholdBackend):
    """Keeps tenant values, global values and audit records in plain containers."""

    name = "memory"

    def __init__(self) -> None:
        super().__init__()
        self._tenant_values: DefaultDict[str, Dict[ThresholdName, float]] = collections.defaultdict(dict)
        self._global_values: Dict[ThresholdName, float] = {}
        self._changes: List[ThresholdChange] = []

    async def initialize(self) -> None:
        return None

    async def fetch_tenant_values(self, tenant_id: str) -> Dict[ThresholdName, float]:
        return dict(self._tenant_values.get(tenant_id, {}))

    async def fetch_global_values(self) -> Dict[ThresholdName, float]:
        return dict(self._global_values)

    async def upsert_tenant_value(self, tenant_id: str, name: ThresholdName, value: float) -> None:
        self._tenant_values[tenant_id][name] = value

    async def upsert_global_value(self, name: ThresholdName, value: float) -> None:
        self._global_values[name] = value

    async def insert_change(
        self,
        name: ThresholdName,
        old_value: Optional[float],
        new_value: float,
        actor_id: Optional[str],
        tenant_id: Optional[str],
    ) -> ThresholdChange:
        change = ThresholdChange(
            name=name.value,
            old_value=old_value,
            new_value=new_value,
            actor_id=actor_id,
            tenant_id=tenant_id,
            timestamp=self.next_timestamp(),
        )
        self._changes.append(change)
        return change

    async def query_changes(
        self,
        tenant_id: Optional[str],
        limit: int,
        name: Optional[ThresholdName] = None,
    ) -> List[ThresholdChange]:
        # Appends are in timestamp order, so reverse insertion order is newest first
        matches: List[ThresholdChange] = []
        for change in reversed(self._changes):
            if change.tenant_id != tenant_id:
                continue
            if name is not None and change.name != name.value:
                continue
            matches.append(change)
            if len(matches) >= limit:
                break
        return matches
