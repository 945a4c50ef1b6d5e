"""Apply a tenant's thresholds to extracted scores."""

from __future__ import annotations

from typing import List

from sightguard.datatypes.analysis_datatypes import Analysis, ReasonTag, Scores
from sightguard.datatypes.threshold_datatypes import Thresholds


def compute_verdict(scores: Scores, thresholds: Thresholds) -> Analysis:
    """Compare each score with its threshold and build the verdict.

    A score equal to its threshold counts as a violation. Reasons are emitted
    in a fixed order: explicit nudity, suggestive nudity, offensive symbols,
    AI generated.
    """
    rules = (
        (scores.nudity_explicit, thresholds.nudity_explicit, ReasonTag.NUDITY_EXPLICIT),
        (scores.nudity_suggestive, thresholds.nudity_suggestive, ReasonTag.NUDITY_SUGGESTIVE),
        (scores.offensive, thresholds.offensive, ReasonTag.OFFENSIVE_SYMBOLS),
        (scores.ai_generated, thresholds.ai_generated, ReasonTag.AI_GENERATED_HIGH),
    )
    reasons: List[ReasonTag] = [reason for score, threshold, reason in rules if score >= threshold]
    return Analysis(allowed=not reasons, reasons=reasons, scores=scores)
