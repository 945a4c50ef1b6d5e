"""
Permissions cog: manage the role whitelist for restricted commands.

- /permissions add: Allow a role to use restricted commands
- /permissions remove: Revoke a role
- /permissions list: Show the whitelisted roles

Only the bot owner and members with Administrator or Manage Server can
use these commands, and only inside a server.
"""

import discord
from discord import Option
from discord.ext import commands

from sightguard.bot.bot_helper import context_ids, member_permissions_value
from sightguard.exceptions import StoreUnavailableError
from sightguard.permissions.role_whitelist import RoleWhitelist, format_role_list
from sightguard.util.logger import get_logger

logger = get_logger("permissions_cog")

MANAGE_DENIED_MESSAGE = "You need Administrator or Manage Server to manage command permissions."


class PermissionsCog(commands.Cog):
    """Cog for role whitelist management."""

    permissions = discord.SlashCommandGroup("permissions", "Manage which roles may use restricted commands")

    def __init__(self, bot: discord.Bot, whitelist: RoleWhitelist):
        self.bot = bot
        self.whitelist = whitelist
        logger.info("Permissions cog loaded")

    async def _ensure_manage(self, ctx: discord.ApplicationContext) -> bool:
        guild_id, user_id = context_ids(ctx)
        if not guild_id:
            await ctx.respond("This command can only be used in a server.", ephemeral=True)
            return False
        if not self.whitelist.can_manage(guild_id, user_id, member_permissions_value(ctx)):
            await ctx.respond(MANAGE_DENIED_MESSAGE, ephemeral=True)
            return False
        return True

    @permissions.command(name="add", description="Allow a role to use restricted commands")
    async def add(
        self,
        ctx: discord.ApplicationContext,
        role: Option(discord.Role, "Role to allow.", required=True),  # type: ignore
    ) -> None:
        if not await self._ensure_manage(ctx):
            return

        guild_id, _ = context_ids(ctx)
        try:
            roles = await self.whitelist.add_role(guild_id, str(role.id))
        except StoreUnavailableError as exc:
            logger.error("[PERMISSIONS] Failed to add role %s in guild %s: %s", role.id, guild_id, exc)
            await ctx.respond("Could not save the permission change.", ephemeral=True)
            return
        await ctx.respond(f"Added {role.mention}. Allowed roles: {format_role_list(roles)}", ephemeral=True)

    @permissions.command(name="remove", description="Revoke a role's access to restricted commands")
    async def remove(
        self,
        ctx: discord.ApplicationContext,
        role: Option(discord.Role, "Role to revoke.", required=True),  # type: ignore
    ) -> None:
        if not await self._ensure_manage(ctx):
            return

        guild_id, _ = context_ids(ctx)
        try:
            roles = await self.whitelist.remove_role(guild_id, str(role.id))
        except StoreUnavailableError as exc:
            logger.error("[PERMISSIONS] Failed to remove role %s in guild %s: %s", role.id, guild_id, exc)
            await ctx.respond("Could not save the permission change.", ephemeral=True)
            return
        await ctx.respond(f"Removed {role.mention}. Allowed roles: {format_role_list(roles)}", ephemeral=True)

    @permissions.command(name="list", description="Show roles allowed to use restricted commands")
    async def list_roles(self, ctx: discord.ApplicationContext) -> None:
        if not await self._ensure_manage(ctx):
            return

        guild_id, _ = context_ids(ctx)
        try:
            roles = await self.whitelist.list_roles(guild_id)
        except StoreUnavailableError as exc:
            logger.error("[PERMISSIONS] Failed to list roles in guild %s: %s", guild_id, exc)
            await ctx.respond("Could not load the permission list.", ephemeral=True)
            return
        await ctx.respond(f"Allowed roles: {format_role_list(roles)}", ephemeral=True)


def setup(bot: discord.Bot, whitelist: RoleWhitelist) -> None:
    """Register the PermissionsCog with the bot."""
    bot.add_cog(PermissionsCog(bot, whitelist))
