from types import SimpleNamespace
from unittest.mock import AsyncMock

import pytest

from sightguard.bot import bot_helper
from sightguard.permissions.role_whitelist import PERM_MANAGE_GUILD, JsonFileRoleStorage, RoleWhitelist


def make_ctx(guild_id, user_id, roles=(), permissions=0):
    return SimpleNamespace(
        guild_id=guild_id,
        user=SimpleNamespace(
            id=user_id,
            roles=[SimpleNamespace(id=role) for role in roles],
            guild_permissions=SimpleNamespace(value=permissions),
        ),
        respond=AsyncMock(),
    )


def test_context_ids_are_strings():
    assert bot_helper.context_ids(make_ctx(10, 42)) == ("10", "42")
    assert bot_helper.context_ids(make_ctx(None, 42)) == ("", "42")


def test_member_role_ids_and_permissions():
    ctx = make_ctx(10, 42, roles=[1, 2], permissions=PERM_MANAGE_GUILD)

    assert bot_helper.member_role_ids(ctx) == ["1", "2"]
    assert bot_helper.member_permissions_value(ctx) == PERM_MANAGE_GUILD


def test_dm_user_has_no_roles():
    ctx = SimpleNamespace(guild_id=None, user=SimpleNamespace(id=42))

    assert bot_helper.member_role_ids(ctx) == []
    assert bot_helper.member_permissions_value(ctx) == 0


@pytest.mark.asyncio
async def test_ensure_restricted_access_replies_on_denial():
    whitelist = RoleWhitelist(JsonFileRoleStorage(None), "1")
    ctx = make_ctx(10, 42)

    assert await bot_helper.ensure_restricted_access(ctx, whitelist) is False
    ctx.respond.assert_awaited_once_with(bot_helper.RESTRICTED_DENIED_MESSAGE, ephemeral=True)


@pytest.mark.asyncio
async def test_ensure_restricted_access_passes_silently():
    whitelist = RoleWhitelist(JsonFileRoleStorage(None), "1")
    ctx = make_ctx(10, 42, permissions=PERM_MANAGE_GUILD)

    assert await bot_helper.ensure_restricted_access(ctx, whitelist) is True
    ctx.respond.assert_not_awaited()


def test_scope_label():
    assert bot_helper.scope_label("10") == "this server"
    assert bot_helper.scope_label("") == "direct messages (defaults)"
    assert bot_helper.scope_label("10", global_scope=True) == "the global scope"
