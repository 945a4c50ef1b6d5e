"""
Tolerant extraction of category scores from raw moderation responses.

The Sightengine response is decoded JSON of no guaranteed shape. Everything
here degrades to zero-signal instead of raising: a missing category, a
non-mapping document or a non-numeric field all read as 0.
"""

from __future__ import annotations

from typing import Any, Dict, Mapping

from sightguard.datatypes.analysis_datatypes import AdvancedAnalysis, Scores

NUDITY_EXPLICIT_FIELDS = ("sexual_activity", "sexual_display", "erotica")
NUDITY_SUGGESTIVE_FIELDS = ("very_suggestive", "suggestive", "mildly_suggestive")
OFFENSIVE_FIELDS = ("nazi", "asian_swastika", "confederate", "supremacist", "terrorist")
AI_GENERATED_FIELD = "ai_generated"

ADVANCED_CATEGORIES = ("nudity", "offensive", "type")


def is_number(value: Any) -> bool:
    # bool is an int subclass but JSON true/false is not a score
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def get_mapping(obj: Any, key: str) -> Mapping[str, Any]:
    """Return ``obj[key]`` when it is a mapping, otherwise an empty dict."""
    if not isinstance(obj, Mapping):
        return {}
    value = obj.get(key)
    return value if isinstance(value, Mapping) else {}


def get_number(obj: Any, key: str) -> float:
    """Return ``obj[key]`` as a float when it is numeric, otherwise 0."""
    if not isinstance(obj, Mapping):
        return 0.0
    value = obj.get(key)
    return float(value) if is_number(value) else 0.0


def get_media_uri(document: Any) -> str:
    uri = get_mapping(document, "media").get("uri")
    return uri if isinstance(uri, str) else ""


def extract_scores(document: Any) -> Scores:
    """Convert a moderation response into the four canonical scores.

    Explicit nudity and offensive symbols use worst-case (max) aggregation.
    Suggestive nudity is the mean of its three indicators with a fixed divisor
    of 3, so absent indicators pull the mean towards zero.
    """
    nudity = get_mapping(document, "nudity")
    offensive = get_mapping(document, "offensive")
    media_type = get_mapping(document, "type")

    return Scores(
        nudity_explicit=max(0.0, *(get_number(nudity, key) for key in NUDITY_EXPLICIT_FIELDS)),
        nudity_suggestive=sum(get_number(nudity, key) for key in NUDITY_SUGGESTIVE_FIELDS) / len(NUDITY_SUGGESTIVE_FIELDS),
        offensive=max(0.0, *(get_number(offensive, key) for key in OFFENSIVE_FIELDS)),
        ai_generated=get_number(media_type, AI_GENERATED_FIELD),
        media_uri=get_media_uri(document),
    )


def extract_numeric_leaves(category: Mapping[str, Any]) -> Dict[str, float]:
    """Return every numeric top-level field of a category, dropping the rest."""
    return {str(key): float(value) for key, value in category.items() if is_number(value)}


def extract_advanced(document: Any) -> AdvancedAnalysis:
    """Collect all numeric sub-scores of the nudity, offensive and type categories.

    Categories without any numeric field are left out of the result.
    """
    result = AdvancedAnalysis(media_uri=get_media_uri(document))
    for category_name in ADVANCED_CATEGORIES:
        leaves = extract_numeric_leaves(get_mapping(document, category_name))
        if leaves:
            result.categories[category_name] = leaves
    return result
