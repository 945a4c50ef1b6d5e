"""
Analysis cog: image moderation commands backed by Sightengine.

- /analyse: Score an image and apply this server's thresholds
- /ai: Check only whether an image looks AI generated
- /reverse: Reverse image search

All three are restricted commands; see ``RoleWhitelist.is_allowed_for_restricted``.
"""

import discord
from discord import Option
from discord.ext import commands

from sightguard.bot.bot_helper import context_ids, ensure_restricted_access
from sightguard.exceptions import UpstreamAnalysisError
from sightguard.moderation.moderation_engine import ModerationEngine
from sightguard.permissions.role_whitelist import RoleWhitelist
from sightguard.ui import embeds
from sightguard.util.logger import get_logger

logger = get_logger("analysis_cog")


class AnalysisCog(commands.Cog):
    """Cog for image analysis commands."""

    def __init__(self, bot: discord.Bot, engine: ModerationEngine, whitelist: RoleWhitelist):
        self.bot = bot
        self.engine = engine
        self.whitelist = whitelist
        logger.info("Analysis cog loaded")

    @commands.slash_command(name="analyse", description="Analyse an image for nudity, offensive symbols and AI generation.")
    async def analyse(
        self,
        ctx: discord.ApplicationContext,
        image_url: Option(str, "URL of the image to analyse.", required=True),  # type: ignore
        advanced: Option(bool, "Show every raw sub-score instead of the verdict.", default=False),  # type: ignore
    ) -> None:
        """Run the full model set and reply with the verdict or the raw scores."""
        if not await ensure_restricted_access(ctx, self.whitelist):
            return

        guild_id, _ = context_ids(ctx)
        await ctx.defer()
        try:
            if advanced:
                result = await self.engine.analyse_image_advanced(image_url)
                embed = embeds.build_advanced_embed(image_url, result)
            else:
                analysis = await self.engine.analyse_image(guild_id, image_url)
                embed = embeds.build_analysis_embed(image_url, analysis)
        except UpstreamAnalysisError as exc:
            logger.error("[ANALYSIS] Analysis of %s failed: %s", image_url, exc)
            await ctx.send_followup(embed=embeds.build_error_embed(f"Analysis failed: {exc}"))
            return
        await ctx.send_followup(embed=embed)

    @commands.slash_command(name="ai", description="Check whether an image is likely AI generated.")
    async def ai(
        self,
        ctx: discord.ApplicationContext,
        image_url: Option(str, "URL of the image to check.", required=True),  # type: ignore
    ) -> None:
        if not await ensure_restricted_access(ctx, self.whitelist):
            return

        guild_id, _ = context_ids(ctx)
        await ctx.defer()
        try:
            analysis = await self.engine.check_ai_image(guild_id, image_url)
        except UpstreamAnalysisError as exc:
            logger.error("[ANALYSIS] AI check of %s failed: %s", image_url, exc)
            await ctx.send_followup(embed=embeds.build_error_embed(f"AI check failed: {exc}"))
            return
        await ctx.send_followup(embed=embeds.build_ai_check_embed(image_url, analysis))

    @commands.slash_command(name="reverse", description="Reverse image search an image URL.")
    async def reverse(
        self,
        ctx: discord.ApplicationContext,
        image_url: Option(str, "URL of the image to look up.", required=True),  # type: ignore
    ) -> None:
        if not await ensure_restricted_access(ctx, self.whitelist):
            return

        await ctx.defer()
        try:
            result = await self.engine.reverse_search(image_url)
        except UpstreamAnalysisError as exc:
            logger.error("[ANALYSIS] Reverse search of %s failed: %s", image_url, exc)
            await ctx.send_followup(embed=embeds.build_error_embed(f"Reverse search failed: {exc}"))
            return
        await ctx.send_followup(embed=embeds.build_reverse_embed(image_url, result))


def setup(bot: discord.Bot, engine: ModerationEngine, whitelist: RoleWhitelist) -> None:
    """Register the AnalysisCog with the bot."""
    bot.add_cog(AnalysisCog(bot, engine, whitelist))
