"""
High level moderation operations used by the command layer.

``ModerationEngine`` owns no state of its own; it combines the threshold
store, the audit log and the API clients so each slash command maps to a
single awaited call.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from sightguard.analysis import score_extractor, verdict_engine
from sightguard.analysis.value_parser import parse_and_validate
from sightguard.datatypes.analysis_datatypes import (
    AdvancedAnalysis,
    Analysis,
    ReasonTag,
    ReverseSearchResult,
    Scores,
)
from sightguard.datatypes.threshold_datatypes import (
    ThresholdChange,
    ThresholdName,
    Thresholds,
    ThresholdWrite,
    canonical_threshold_name,
)
from sightguard.exceptions import StoreUnavailableError
from sightguard.services.reverse_image_client import ReverseImageClient
from sightguard.services.sightengine_client import SightengineClient
from sightguard.thresholds.audit_log import DEFAULT_HISTORY_LIMIT, AuditLog
from sightguard.thresholds.threshold_store import ResetAllResult, ThresholdStore
from sightguard.util.logger import get_logger

logger = get_logger("moderation_engine")

RESET_ALL = "all"


@dataclass(slots=True)
class ThresholdUpdate:
    """A stored threshold write together with its audit outcome.

    ``change`` is None when nothing was recorded, either because the write was
    not persisted or because recording failed (``audit_error`` is then set).
    """

    write: ThresholdWrite
    change: Optional[ThresholdChange] = None
    audit_error: Optional[StoreUnavailableError] = None

    @property
    def audited(self) -> bool:
        return self.change is not None


@dataclass(slots=True)
class ThresholdReset:
    """Outcome of a reset of one or all thresholds in one scope."""

    updates: List[ThresholdUpdate] = field(default_factory=list)
    failures: Dict[ThresholdName, StoreUnavailableError] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return not self.failures


class ModerationEngine:
    """Facade over analysis, threshold storage and auditing."""

    def __init__(
        self,
        store: ThresholdStore,
        audit_log: AuditLog,
        sightengine: Optional[SightengineClient] = None,
        reverse_client: Optional[ReverseImageClient] = None,
    ) -> None:
        self.store = store
        self.audit_log = audit_log
        self.sightengine = sightengine or SightengineClient()
        self.reverse_client = reverse_client or ReverseImageClient()

    # ------------------------------------------------------------------
    # Pure analysis
    # ------------------------------------------------------------------

    @staticmethod
    def extract_scores(document: Any) -> Scores:
        return score_extractor.extract_scores(document)

    @staticmethod
    def extract_advanced(document: Any) -> AdvancedAnalysis:
        return score_extractor.extract_advanced(document)

    @staticmethod
    def compute_verdict(scores: Scores, thresholds: Thresholds) -> Analysis:
        return verdict_engine.compute_verdict(scores, thresholds)

    # ------------------------------------------------------------------
    # Thresholds
    # ------------------------------------------------------------------

    async def resolve_thresholds(self, tenant_id: str) -> Thresholds:
        return await self.store.get_effective(tenant_id)

    async def _audit(self, write: ThresholdWrite, actor_id: Optional[str]) -> ThresholdUpdate:
        """Record a persisted write; audit failures are reported, never raised."""
        update = ThresholdUpdate(write=write)
        if not write.persisted:
            return update
        try:
            update.change = await self.audit_log.record(
                write.name, write.previous, write.value, actor_id, write.tenant_id
            )
        except StoreUnavailableError as exc:
            logger.error("[MODERATION ENGINE] Threshold %s was stored but not audited: %s", write.name, exc)
            update.audit_error = exc
        return update

    async def _audit_reset(self, result: ResetAllResult, actor_id: Optional[str]) -> ThresholdReset:
        reset = ThresholdReset(failures=dict(result.failures))
        for write in result.writes:
            reset.updates.append(await self._audit(write, actor_id))
        return reset

    async def set_threshold(
        self,
        tenant_id: str,
        name: "str | ThresholdName",
        value: "str | float",
        actor_id: Optional[str] = None,
    ) -> ThresholdUpdate:
        """Validate and store one guild threshold, then audit the change.

        Raises:
            UnknownThresholdError: If ``name`` is not a threshold name.
            ParseError: If ``value`` is not a number.
            RangeError: If ``value`` lies outside [0, 1].
            StoreUnavailableError: If the threshold could not be stored.
        """
        canonical = canonical_threshold_name(name)
        parsed = parse_and_validate(value)
        write = await self.store.set(tenant_id, canonical, parsed)
        return await self._audit(write, actor_id)

    async def reset_threshold(
        self,
        tenant_id: str,
        name: "str | ThresholdName",
        actor_id: Optional[str] = None,
    ) -> ThresholdReset:
        """Reset one guild threshold, or all of them when ``name`` is ``"all"``.

        A single-name reset raises on storage failure; a reset of all names
        continues past failures and reports them on the result.
        """
        if isinstance(name, str) and name.strip().lower() == RESET_ALL:
            return await self._audit_reset(await self.store.reset_all(tenant_id), actor_id)

        write = await self.store.reset_one(tenant_id, name)
        return ThresholdReset(updates=[await self._audit(write, actor_id)])

    async def set_global_threshold(
        self,
        name: "str | ThresholdName",
        value: "str | float",
        actor_id: Optional[str] = None,
    ) -> ThresholdUpdate:
        canonical = canonical_threshold_name(name)
        parsed = parse_and_validate(value)
        write = await self.store.set_global(canonical, parsed)
        return await self._audit(write, actor_id)

    async def reset_global_threshold(
        self,
        name: "str | ThresholdName",
        actor_id: Optional[str] = None,
    ) -> ThresholdReset:
        if isinstance(name, str) and name.strip().lower() == RESET_ALL:
            return await self._audit_reset(await self.store.reset_global_all(), actor_id)

        write = await self.store.reset_global_one(name)
        return ThresholdReset(updates=[await self._audit(write, actor_id)])

    async def global_thresholds(self) -> Thresholds:
        return await self.store.get_global()

    # ------------------------------------------------------------------
    # Audit
    # ------------------------------------------------------------------

    async def record_change(
        self,
        name: "str | ThresholdName",
        old_value: Optional[float],
        new_value: float,
        actor_id: Optional[str] = None,
        tenant_id: Optional[str] = None,
    ) -> Optional[ThresholdChange]:
        return await self.audit_log.record(name, old_value, new_value, actor_id, tenant_id)

    async def get_history(
        self,
        tenant_id: Optional[str],
        limit: Optional[int] = DEFAULT_HISTORY_LIMIT,
        name: "str | ThresholdName | None" = None,
    ) -> List[ThresholdChange]:
        return await self.audit_log.history(tenant_id, limit, name)

    # ------------------------------------------------------------------
    # External analysis
    # ------------------------------------------------------------------

    async def analyse_image(self, tenant_id: str, image_url: str) -> Analysis:
        """Score an image with every model and apply the guild's thresholds.

        Raises:
            UpstreamAnalysisError: If the Sightengine call fails.
        """
        document = await self.sightengine.check(image_url)
        scores = self.extract_scores(document)
        thresholds = await self.resolve_thresholds(tenant_id)
        analysis = self.compute_verdict(scores, thresholds)
        logger.debug(
            "[MODERATION ENGINE] Analysed %s for guild %r: allowed=%s reasons=%s",
            image_url, tenant_id, analysis.allowed, analysis.reason_names,
        )
        return analysis

    async def analyse_image_advanced(self, image_url: str) -> AdvancedAnalysis:
        document = await self.sightengine.check(image_url)
        return self.extract_advanced(document)

    async def check_ai_image(self, tenant_id: str, image_url: str) -> Analysis:
        """Run only the AI-generated model and judge only that score."""
        document = await self.sightengine.check_ai_only(image_url)
        scores = self.extract_scores(document)
        thresholds = await self.resolve_thresholds(tenant_id)
        verdict = self.compute_verdict(scores, thresholds)
        reasons = [reason for reason in verdict.reasons if reason is ReasonTag.AI_GENERATED_HIGH]
        return Analysis(allowed=not reasons, reasons=reasons, scores=scores)

    async def reverse_search(self, image_url: str) -> ReverseSearchResult:
        return await self.reverse_client.search(image_url)
