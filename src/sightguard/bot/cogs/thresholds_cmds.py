"""
Thresholds cog: view, tune and audit the detection thresholds.

This cog exposes one slash command group:
- /thresholds list: Show the effective thresholds
- /thresholds set: Change one threshold (decimal or percentage)
- /thresholds reset: Restore one threshold, or ``all``, to the default
- /thresholds history: Show recent changes, newest first

Every subcommand is restricted. The ``global_scope`` option edits the
fallback values used by servers without their own override and is limited
to the bot owner.
"""

import discord
from discord import Option
from discord.ext import commands

from sightguard.bot.bot_helper import OWNER_ONLY_MESSAGE, context_ids, ensure_restricted_access, scope_label
from sightguard.datatypes.threshold_datatypes import CANONICAL_NAMES
from sightguard.exceptions import ParseError, RangeError, StoreUnavailableError, UnknownThresholdError
from sightguard.moderation.moderation_engine import RESET_ALL, ModerationEngine, ThresholdUpdate
from sightguard.permissions.role_whitelist import RoleWhitelist
from sightguard.thresholds.audit_log import DEFAULT_HISTORY_LIMIT, MAX_HISTORY_LIMIT
from sightguard.ui import embeds
from sightguard.util.logger import get_logger

logger = get_logger("thresholds_cog")

GUILD_ONLY_MESSAGE = "Server thresholds can only be changed inside a server."
STORE_FAILED_MESSAGE = "Could not save the threshold right now. Please try again later."
NOT_PERSISTED_NOTE = "\n⚠️ No storage is configured, so this change was not saved."
AUDIT_FAILED_NOTE = "\n⚠️ The change was saved but could not be added to the history."


def describe_update(update: ThresholdUpdate) -> str:
    write = update.write
    line = f"**{write.name.value}** set to {embeds.percent(write.value)}"
    if write.previous is not None:
        line += f" (was {embeds.percent(write.previous)})"
    if not write.persisted:
        line += NOT_PERSISTED_NOTE
    elif update.audit_error is not None:
        line += AUDIT_FAILED_NOTE
    return line


class ThresholdsCog(commands.Cog):
    """Cog for threshold management commands."""

    thresholds = discord.SlashCommandGroup("thresholds", "View and tune detection thresholds")

    def __init__(self, bot: discord.Bot, engine: ModerationEngine, whitelist: RoleWhitelist):
        self.bot = bot
        self.engine = engine
        self.whitelist = whitelist
        logger.info("Thresholds cog loaded")

    async def _check_scope(self, ctx: discord.ApplicationContext, global_scope: bool) -> bool:
        """Apply the access rule for the requested scope, replying on refusal."""
        if not await ensure_restricted_access(ctx, self.whitelist):
            return False
        guild_id, user_id = context_ids(ctx)
        if global_scope and not self.whitelist.is_owner(user_id):
            await ctx.respond(OWNER_ONLY_MESSAGE, ephemeral=True)
            return False
        if not global_scope and not guild_id:
            await ctx.respond(GUILD_ONLY_MESSAGE, ephemeral=True)
            return False
        return True

    @thresholds.command(name="list", description="Show the effective detection thresholds")
    async def list_thresholds(
        self,
        ctx: discord.ApplicationContext,
        global_scope: Option(bool, "Show the global fallback values instead.", default=False),  # type: ignore
    ) -> None:
        if not await ensure_restricted_access(ctx, self.whitelist):
            return

        guild_id, _ = context_ids(ctx)
        try:
            if global_scope:
                values = await self.engine.global_thresholds()
            else:
                values = await self.engine.resolve_thresholds(guild_id)
        except StoreUnavailableError as exc:
            logger.error("[THRESHOLDS] Failed to load thresholds for guild %r: %s", guild_id, exc)
            await ctx.respond("Could not load thresholds right now.", ephemeral=True)
            return
        await ctx.respond(embed=embeds.build_thresholds_embed(values, scope_label(guild_id, global_scope)))

    @thresholds.command(name="set", description="Set a detection threshold (e.g. 0.7 or 70%)")
    async def set_threshold(
        self,
        ctx: discord.ApplicationContext,
        threshold: Option(str, "Threshold name.", autocomplete=discord.utils.basic_autocomplete(CANONICAL_NAMES)),  # type: ignore
        value: Option(str, "New value as a decimal (0.7) or percentage (70%)."),  # type: ignore
        global_scope: Option(bool, "Change the global fallback (owner only).", default=False),  # type: ignore
    ) -> None:
        if not await self._check_scope(ctx, global_scope):
            return

        guild_id, user_id = context_ids(ctx)
        try:
            if global_scope:
                update = await self.engine.set_global_threshold(threshold, value, user_id)
            else:
                update = await self.engine.set_threshold(guild_id, threshold, value, user_id)
        except (UnknownThresholdError, ParseError, RangeError) as exc:
            await ctx.respond(str(exc), ephemeral=True)
            return
        except StoreUnavailableError as exc:
            logger.error("[THRESHOLDS] Failed to set %s for guild %r: %s", threshold, guild_id, exc)
            await ctx.respond(STORE_FAILED_MESSAGE, ephemeral=True)
            return

        await ctx.respond(f"{describe_update(update)} for {scope_label(guild_id, global_scope)}.")

    @thresholds.command(name="reset", description="Reset a threshold, or all of them, to the default")
    async def reset_threshold(
        self,
        ctx: discord.ApplicationContext,
        threshold: Option(  # type: ignore
            str,
            "Threshold name, or 'all'.",
            autocomplete=discord.utils.basic_autocomplete(CANONICAL_NAMES + (RESET_ALL,)),
        ),
        global_scope: Option(bool, "Reset the global fallback (owner only).", default=False),  # type: ignore
    ) -> None:
        if not await self._check_scope(ctx, global_scope):
            return

        guild_id, user_id = context_ids(ctx)
        try:
            if global_scope:
                reset = await self.engine.reset_global_threshold(threshold, user_id)
            else:
                reset = await self.engine.reset_threshold(guild_id, threshold, user_id)
        except UnknownThresholdError as exc:
            await ctx.respond(str(exc), ephemeral=True)
            return
        except StoreUnavailableError as exc:
            logger.error("[THRESHOLDS] Failed to reset %s for guild %r: %s", threshold, guild_id, exc)
            await ctx.respond(STORE_FAILED_MESSAGE, ephemeral=True)
            return

        lines = [describe_update(update) for update in reset.updates]
        lines.extend(f"**{name.value}** could not be reset." for name in reset.failures)
        header = f"Reset thresholds for {scope_label(guild_id, global_scope)}:"
        await ctx.respond("\n".join([header, *lines]))

    @thresholds.command(name="history", description="Show recent threshold changes")
    async def history(
        self,
        ctx: discord.ApplicationContext,
        threshold: Option(  # type: ignore
            str,
            "Only show changes to this threshold.",
            autocomplete=discord.utils.basic_autocomplete(CANONICAL_NAMES),
            default=None,
        ),
        limit: Option(int, f"Number of entries (1-{MAX_HISTORY_LIMIT}).", default=DEFAULT_HISTORY_LIMIT),  # type: ignore
        global_scope: Option(bool, "Show global-scope changes (owner only).", default=False),  # type: ignore
    ) -> None:
        if not await self._check_scope(ctx, global_scope):
            return

        guild_id, _ = context_ids(ctx)
        try:
            changes = await self.engine.get_history(None if global_scope else guild_id, limit, threshold)
        except UnknownThresholdError as exc:
            await ctx.respond(str(exc), ephemeral=True)
            return
        except StoreUnavailableError as exc:
            logger.error("[THRESHOLDS] Failed to load history for guild %r: %s", guild_id, exc)
            await ctx.respond("Could not load the threshold history right now.", ephemeral=True)
            return
        await ctx.respond(embed=embeds.build_history_embed(changes, scope_label(guild_id, global_scope)))


def setup(bot: discord.Bot, engine: ModerationEngine, whitelist: RoleWhitelist) -> None:
    """Register the ThresholdsCog with the bot."""
    bot.add_cog(ThresholdsCog(bot, engine, whitelist))
