"""
Embed creation utilities for command replies.

Every embed carries the configured footer text so replies are recognisable
as coming from this bot.
"""

from __future__ import annotations

import datetime
from typing import Iterable, List, Optional, Tuple

import discord

from sightguard.configuration.app_configuration import app_config
from sightguard.datatypes.analysis_datatypes import AdvancedAnalysis, Analysis, ReverseSearchResult
from sightguard.datatypes.threshold_datatypes import (
    THRESHOLD_LABELS,
    ThresholdChange,
    ThresholdName,
    Thresholds,
)

# Discord caps an embed at 25 fields and a field value at 1024 characters
MAX_FIELDS = 25
MAX_FIELD_LENGTH = 1024

ANALYSIS_COLOR = discord.Color(0x00BFA5)
ADVANCED_COLOR = discord.Color(0x4CAF50)
AI_CHECK_COLOR = discord.Color(0x3F51B5)
REVERSE_COLOR = discord.Color(0x9C27B0)


def percent(value: float) -> str:
    return f"{value * 100:.0f}%"


def truncate(text: str, limit: int = MAX_FIELD_LENGTH) -> str:
    return text if len(text) <= limit else text[: limit - 3] + "..."


def _base_embed(title: str, description: Optional[str], color: discord.Color) -> discord.Embed:
    embed = discord.Embed(
        title=title,
        description=description,
        color=color,
        timestamp=datetime.datetime.now(datetime.timezone.utc),
    )
    embed.set_footer(text=app_config.footer_text)
    return embed


def build_analysis_embed(image_url: str, analysis: Analysis) -> discord.Embed:
    """Render the standard verdict with all four scores."""
    embed = _base_embed("Image Analysis", f"Analysis results for: {image_url}", ANALYSIS_COLOR)
    embed.add_field(name="Safe Image", value=str(analysis.allowed).lower(), inline=True)
    if analysis.reasons:
        embed.add_field(name="Flagged For", value=", ".join(analysis.reason_names), inline=True)

    scores = analysis.scores
    embed.add_field(
        name="Results",
        value=(
            f"Nudity (Explicit): {percent(scores.nudity_explicit)}\n"
            f"Nudity (Suggestive): {percent(scores.nudity_suggestive)}\n"
            f"Offensive: {percent(scores.offensive)}\n"
            f"AI Generated: {percent(scores.ai_generated)}"
        ),
        inline=False,
    )
    return embed


def build_advanced_embed(image_url: str, advanced: AdvancedAnalysis) -> discord.Embed:
    """Render every numeric sub-score, one field per category."""
    embed = _base_embed("Image Analysis (Advanced)", f"Analysis results for: {image_url}", ADVANCED_COLOR)
    if not advanced.categories:
        embed.add_field(name="Results", value="No scores returned.", inline=False)
        return embed

    for category, leaves in list(advanced.categories.items())[:MAX_FIELDS]:
        lines = [f"{key}: {percent(value)}" for key, value in sorted(leaves.items())]
        embed.add_field(name=category.capitalize(), value=truncate("\n".join(lines)), inline=False)
    return embed


def build_ai_check_embed(image_url: str, analysis: Analysis) -> discord.Embed:
    embed = _base_embed("AI Usage Check", f"Analysis results for: {image_url}", AI_CHECK_COLOR)
    embed.add_field(name="Safe Image", value=str(analysis.allowed).lower(), inline=True)
    embed.add_field(name="AI Generated", value=percent(analysis.scores.ai_generated), inline=True)
    return embed


def build_reverse_embed(image_url: str, result: ReverseSearchResult) -> discord.Embed:
    embed = _base_embed("Reverse Image Search", f"Results for: {image_url}", REVERSE_COLOR)
    embed.add_field(name="Success", value=str(result.success).lower(), inline=True)
    if result.message:
        embed.add_field(name="Message", value=truncate(result.message), inline=False)
    if result.result_text:
        embed.add_field(name="Best Guess", value=truncate(result.result_text), inline=False)
    if result.similar_url:
        embed.add_field(name="Similar Images", value=f"[Open search]({result.similar_url})", inline=False)
    return embed


def build_thresholds_embed(thresholds: Thresholds, scope_label: str) -> discord.Embed:
    """List the effective thresholds for a guild or the global scope."""
    embed = _base_embed("Detection Thresholds", f"Effective thresholds for {scope_label}", discord.Color.blurple())
    for name in (
        ThresholdName.NUDITY_EXPLICIT,
        ThresholdName.NUDITY_SUGGESTIVE,
        ThresholdName.OFFENSIVE,
        ThresholdName.AI_GENERATED,
    ):
        embed.add_field(
            name=f"{THRESHOLD_LABELS[name]} ({name.value})",
            value=percent(thresholds.get(name)),
            inline=True,
        )
    return embed


def format_change(change: ThresholdChange) -> str:
    old = "unset" if change.old_value is None else percent(change.old_value)
    actor = f"<@{change.actor_id}>" if change.actor_id else "unknown"
    when = discord.utils.format_dt(change.timestamp, style="R")
    return f"**{change.name}** {old} → {percent(change.new_value)} by {actor} {when}"


def build_history_embed(changes: Iterable[ThresholdChange], scope_label: str) -> discord.Embed:
    """Render audit records newest first."""
    lines: List[str] = [format_change(change) for change in changes]
    embed = _base_embed("Threshold History", f"Recent changes for {scope_label}", discord.Color.dark_teal())
    if not lines:
        embed.add_field(name="Changes", value="No threshold changes recorded.", inline=False)
        return embed

    # Split into fields so no single value exceeds the field limit
    chunk: List[str] = []
    for line in lines:
        if chunk and len("\n".join(chunk + [line])) > MAX_FIELD_LENGTH:
            embed.add_field(name="Changes", value="\n".join(chunk), inline=False)
            chunk = []
        chunk.append(truncate(line))
    if chunk:
        embed.add_field(name="Changes", value="\n".join(chunk), inline=False)
    return embed


def build_help_embed(commands: Iterable[Tuple[str, str]]) -> discord.Embed:
    embed = _base_embed("SightGuard Commands", None, discord.Color.blurple())
    for usage, description in commands:
        embed.add_field(name=usage, value=description, inline=False)
    return embed


def build_error_embed(message: str) -> discord.Embed:
    return _base_embed("❌ Error", truncate(message, 4096), discord.Color.red())
