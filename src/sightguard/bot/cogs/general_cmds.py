"""
General cog: lifecycle events and utility commands.

- on_ready: log the connection and set the rich presence
- on_application_command_error: log and answer with a generic error
- /ping: Report gateway latency
- /help: List the available commands
"""

import discord
from discord.ext import commands

from sightguard.configuration.app_configuration import app_config
from sightguard.ui import embeds
from sightguard.util.logger import get_logger

logger = get_logger("general_cog")

HELP_LINES = (
    ("/analyse image_url [advanced]", "Analyse an image against this server's thresholds."),
    ("/ai image_url", "Check whether an image is likely AI generated."),
    ("/reverse image_url", "Reverse image search."),
    ("/thresholds list|set|reset|history", "View, tune and audit the detection thresholds."),
    ("/permissions add|remove|list", "Manage roles allowed to use restricted commands."),
    ("/ping", "Check the bot's latency."),
)


class GeneralCog(commands.Cog):
    """Cog containing bot lifecycle handlers and utility commands."""

    def __init__(self, bot: discord.Bot):
        self.bot = bot
        logger.info("General cog loaded")

    @commands.Cog.listener(name="on_ready")
    async def on_ready(self):
        if self.bot.user:
            await self._update_presence()
            logger.info(f"Bot connected as {self.bot.user} (ID: {self.bot.user.id})")
        else:
            logger.warning("Bot partially connected, but user information not yet available.")

    async def _update_presence(self) -> None:
        activity_name = app_config.presence_activity
        if not activity_name:
            return
        await self.bot.change_presence(
            status=discord.Status.online,
            activity=discord.Activity(type=discord.ActivityType.watching, name=activity_name),
        )

    @commands.Cog.listener(name="on_application_command_error")
    async def on_application_command_error(self, ctx: discord.ApplicationContext, error: Exception):
        if isinstance(error, commands.CommandNotFound):
            return

        command_name = getattr(ctx.command, "name", "<unknown>")
        logger.error(f"Error in command '{command_name}': {error}", exc_info=True)

        error_message = "A :bug: showed up while running this command."
        try:
            await ctx.respond(error_message, ephemeral=True)
        except discord.InteractionResponded:
            await ctx.followup.send(error_message, ephemeral=True)

    @commands.slash_command(name="ping", description="Check the bot's latency.")
    async def ping(self, ctx: discord.ApplicationContext) -> None:
        latency_ms = round(self.bot.latency * 1000)
        await ctx.respond(f"Pong! {latency_ms} ms", ephemeral=True)

    @commands.slash_command(name="help", description="List the available commands.")
    async def help_command(self, ctx: discord.ApplicationContext) -> None:
        embed = embeds.build_help_embed(HELP_LINES)
        await ctx.respond(embed=embed, ephemeral=True)


def setup(bot: discord.Bot) -> None:
    """Register the GeneralCog with the bot."""
    bot.add_cog(GeneralCog(bot))
