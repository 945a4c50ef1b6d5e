"""
Bot Helper Functions
====================

Shared helpers for the command cogs: reading ids from an application
context and enforcing the restricted-command access rule.
"""

from __future__ import annotations

from typing import List, Tuple

import discord

from sightguard.permissions.role_whitelist import RoleWhitelist
from sightguard.util.logger import get_logger

logger = get_logger("bot_helper")

RESTRICTED_DENIED_MESSAGE = "You don't have permission to use this command."
OWNER_ONLY_MESSAGE = "Only the bot owner can change global thresholds."


def context_ids(ctx: discord.ApplicationContext) -> Tuple[str, str]:
    """Return ``(guild_id, user_id)`` as strings; guild id is empty in DMs."""
    guild_id = str(ctx.guild_id) if ctx.guild_id else ""
    user = getattr(ctx, "user", None) or getattr(ctx, "author", None)
    user_id = str(getattr(user, "id", "") or "")
    return guild_id, user_id


def member_role_ids(ctx: discord.ApplicationContext) -> List[str]:
    user = getattr(ctx, "user", None)
    return [str(role.id) for role in getattr(user, "roles", None) or []]


def member_permissions_value(ctx: discord.ApplicationContext) -> int:
    permissions = getattr(getattr(ctx, "user", None), "guild_permissions", None)
    return int(getattr(permissions, "value", 0) or 0)


async def ensure_restricted_access(ctx: discord.ApplicationContext, whitelist: RoleWhitelist) -> bool:
    """Reply with an ephemeral refusal and return False when access is denied."""
    guild_id, user_id = context_ids(ctx)
    allowed = await whitelist.is_allowed_for_restricted(
        guild_id, user_id, member_role_ids(ctx), member_permissions_value(ctx)
    )
    if not allowed:
        logger.debug("[ACCESS] Denied restricted command for user %s in guild %r", user_id, guild_id)
        await ctx.respond(RESTRICTED_DENIED_MESSAGE, ephemeral=True)
    return allowed


def scope_label(guild_id: str, global_scope: bool = False) -> str:
    if global_scope:
        return "the global scope"
    return "this server" if guild_id else "direct messages (defaults)"
