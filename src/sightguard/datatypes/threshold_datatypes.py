"""
Threshold names, defaults and audit records.

This module defines the four canonical threshold names, their compiled-in
defaults, the immutable ``Thresholds`` value object returned by the store and
the ``ThresholdChange`` audit record.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime
from enum import Enum
from typing import Dict, Optional

from sightguard.exceptions import UnknownThresholdError


class ThresholdName(Enum):
    """Enumeration of the tunable decision boundaries."""

    NUDITY_SUGGESTIVE = "NuditySuggestive"
    NUDITY_EXPLICIT = "NudityExplicit"
    OFFENSIVE = "Offensive"
    AI_GENERATED = "AIGenerated"

    def __str__(self) -> str:
        return self.value


CANONICAL_NAMES: tuple[str, ...] = tuple(member.value for member in ThresholdName)

DEFAULT_THRESHOLDS: Dict[ThresholdName, float] = {
    ThresholdName.NUDITY_SUGGESTIVE: 0.75,
    ThresholdName.NUDITY_EXPLICIT: 0.25,
    ThresholdName.OFFENSIVE: 0.25,
    ThresholdName.AI_GENERATED: 0.60,
}

# Lowercased user input -> canonical name
THRESHOLD_ALIASES: Dict[str, ThresholdName] = {
    "nuditysuggestive": ThresholdName.NUDITY_SUGGESTIVE,
    "nudity_suggestive": ThresholdName.NUDITY_SUGGESTIVE,
    "suggestive": ThresholdName.NUDITY_SUGGESTIVE,
    "nudityexplicit": ThresholdName.NUDITY_EXPLICIT,
    "nudity_explicit": ThresholdName.NUDITY_EXPLICIT,
    "explicit": ThresholdName.NUDITY_EXPLICIT,
    "offensive": ThresholdName.OFFENSIVE,
    "offensive_symbols": ThresholdName.OFFENSIVE,
    "offensivesymbols": ThresholdName.OFFENSIVE,
    "aigenerated": ThresholdName.AI_GENERATED,
    "ai_generated": ThresholdName.AI_GENERATED,
    "genai": ThresholdName.AI_GENERATED,
    "ai": ThresholdName.AI_GENERATED,
}

# Human readable labels used in embeds
THRESHOLD_LABELS: Dict[ThresholdName, str] = {
    ThresholdName.NUDITY_EXPLICIT: "Nudity (Explicit)",
    ThresholdName.NUDITY_SUGGESTIVE: "Nudity (Suggestive)",
    ThresholdName.OFFENSIVE: "Offensive",
    ThresholdName.AI_GENERATED: "AI Generated",
}

_FIELD_NAMES: Dict[ThresholdName, str] = {
    ThresholdName.NUDITY_SUGGESTIVE: "nudity_suggestive",
    ThresholdName.NUDITY_EXPLICIT: "nudity_explicit",
    ThresholdName.OFFENSIVE: "offensive",
    ThresholdName.AI_GENERATED: "ai_generated",
}


def canonical_threshold_name(raw: "str | ThresholdName") -> ThresholdName:
    """Normalize a user supplied threshold name.

    Raises:
        UnknownThresholdError: If the name matches no canonical name or alias.
    """
    if isinstance(raw, ThresholdName):
        return raw
    name = THRESHOLD_ALIASES.get(str(raw).strip().lower())
    if name is None:
        raise UnknownThresholdError(str(raw).strip(), CANONICAL_NAMES)
    return name


def default_threshold_value(name: "str | ThresholdName") -> float:
    """Return the compiled-in default for a threshold name."""
    return DEFAULT_THRESHOLDS[canonical_threshold_name(name)]


@dataclass(frozen=True, slots=True)
class Thresholds:
    """The four effective threshold values for one tenant."""

    nudity_suggestive: float = DEFAULT_THRESHOLDS[ThresholdName.NUDITY_SUGGESTIVE]
    nudity_explicit: float = DEFAULT_THRESHOLDS[ThresholdName.NUDITY_EXPLICIT]
    offensive: float = DEFAULT_THRESHOLDS[ThresholdName.OFFENSIVE]
    ai_generated: float = DEFAULT_THRESHOLDS[ThresholdName.AI_GENERATED]

    @classmethod
    def defaults(cls) -> "Thresholds":
        return cls()

    @classmethod
    def from_mapping(cls, values: Dict[ThresholdName, float]) -> "Thresholds":
        """Build from a partial mapping, falling back to defaults for missing names."""
        return cls(**{_FIELD_NAMES[name]: float(value) for name, value in values.items()})

    def get(self, name: "str | ThresholdName") -> float:
        return getattr(self, _FIELD_NAMES[canonical_threshold_name(name)])

    def with_value(self, name: "str | ThresholdName", value: float) -> "Thresholds":
        return replace(self, **{_FIELD_NAMES[canonical_threshold_name(name)]: float(value)})

    def as_dict(self) -> Dict[str, float]:
        """Return ``{canonical name: value}`` in canonical order."""
        return {name.value: getattr(self, _FIELD_NAMES[name]) for name in ThresholdName}


@dataclass(frozen=True, slots=True)
class ThresholdWrite:
    """Outcome of one store write.

    Attributes:
        name: Threshold that was written.
        tenant_id: Tenant scope of the write, ``None`` for the global scope.
        previous: Value stored in that scope before the write, ``None`` if unset.
        value: Value written.
        persisted: False when the write was skipped (no backend or no tenant).
    """

    name: ThresholdName
    tenant_id: Optional[str]
    previous: Optional[float]
    value: float
    persisted: bool = True


@dataclass(frozen=True, slots=True)
class ThresholdChange:
    """Immutable audit record of a threshold set or reset.

    Attributes:
        name: Canonical threshold name.
        old_value: Previously stored value in that scope, ``None`` if there was none.
        new_value: Value written.
        actor_id: User who made the change, if known.
        tenant_id: Guild the change applies to, ``None`` for the global scope.
        timestamp: UTC time assigned by the backend at write time.
    """

    name: str
    old_value: Optional[float]
    new_value: float
    actor_id: Optional[str]
    tenant_id: Optional[str]
    timestamp: datetime
