"""
Result types produced by score extraction and the verdict engine.

None of these are persisted; they are created fresh per request and handed
back to the command layer for presentation.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List


class ReasonTag(Enum):
    """Violated-rule tags, declared in the order the verdict engine emits them."""

    NUDITY_EXPLICIT = "nudity_explicit"
    NUDITY_SUGGESTIVE = "nudity_suggestive"
    OFFENSIVE_SYMBOLS = "offensive_symbols"
    AI_GENERATED_HIGH = "ai_generated_high"

    def __str__(self) -> str:
        return self.value


@dataclass(slots=True)
class Scores:
    """Normalized category scores for one moderation response.

    Attributes:
        nudity_explicit: Max of sexual_activity, sexual_display and erotica.
        nudity_suggestive: Mean of very_suggestive, suggestive and mildly_suggestive.
        offensive: Max over the offensive symbol classes.
        ai_generated: The ``type.ai_generated`` score.
        media_uri: ``media.uri`` from the response, empty when absent.
    """

    nudity_explicit: float = 0.0
    nudity_suggestive: float = 0.0
    offensive: float = 0.0
    ai_generated: float = 0.0
    media_uri: str = ""


@dataclass(slots=True)
class Analysis:
    """Verdict for a single analysis request."""

    allowed: bool
    reasons: List[ReasonTag]
    scores: Scores

    @property
    def reason_names(self) -> List[str]:
        return [reason.value for reason in self.reasons]


@dataclass(slots=True)
class AdvancedAnalysis:
    """Every numeric sub-score per raw category, without thresholds applied."""

    categories: Dict[str, Dict[str, float]] = field(default_factory=dict)
    media_uri: str = ""


@dataclass(slots=True)
class ReverseSearchResult:
    """Flattened reverse image search response.

    Unknown upstream fields are ignored and missing ones stay empty.
    """

    success: bool = False
    message: str = ""
    similar_url: str = ""
    result_text: str = ""
