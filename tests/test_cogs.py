"""
Tests for the slash command cogs, driven through fake application contexts.
"""

from types import SimpleNamespace
from unittest.mock import AsyncMock

import discord
import pytest

from sightguard.bot import bot_helper
from sightguard.bot.cogs import analysis_cmds, general_cmds, permissions_cmds, thresholds_cmds
from sightguard.datatypes.analysis_datatypes import ReverseSearchResult
from sightguard.exceptions import UpstreamAnalysisError
from sightguard.moderation.moderation_engine import ModerationEngine
from sightguard.permissions.role_whitelist import PERM_ADMINISTRATOR, JsonFileRoleStorage, RoleWhitelist
from sightguard.thresholds.audit_log import AuditLog
from sightguard.thresholds.backends.memory_backend import MemoryThresholdBackend
from sightguard.thresholds.threshold_store import ThresholdStore

OWNER = "1000"


def make_ctx(guild_id=10, user_id=42, permissions=0, roles=()):
    return SimpleNamespace(
        guild_id=guild_id,
        user=SimpleNamespace(
            id=user_id,
            roles=[SimpleNamespace(id=role) for role in roles],
            guild_permissions=SimpleNamespace(value=permissions),
        ),
        respond=AsyncMock(),
        defer=AsyncMock(),
        send_followup=AsyncMock(),
    )


def make_engine(document=None):
    backend = MemoryThresholdBackend()
    sightengine = SimpleNamespace(
        check=AsyncMock(return_value=document or {}),
        check_ai_only=AsyncMock(return_value=document or {}),
    )
    reverse_client = SimpleNamespace(search=AsyncMock(return_value=ReverseSearchResult(success=True, result_text="cat")))
    return ModerationEngine(ThresholdStore(backend), AuditLog(backend), sightengine, reverse_client)


@pytest.fixture()
def whitelist():
    return RoleWhitelist(JsonFileRoleStorage(None), OWNER)


def test_setup_adds_cogs(whitelist):
    added = []
    fake_bot = SimpleNamespace(add_cog=added.append)
    engine = make_engine()

    general_cmds.setup(fake_bot)
    analysis_cmds.setup(fake_bot, engine, whitelist)
    thresholds_cmds.setup(fake_bot, engine, whitelist)
    permissions_cmds.setup(fake_bot, whitelist)

    assert [type(cog) for cog in added] == [
        general_cmds.GeneralCog,
        analysis_cmds.AnalysisCog,
        thresholds_cmds.ThresholdsCog,
        permissions_cmds.PermissionsCog,
    ]


# ----------------------------------------------------------------------
# /thresholds
# ----------------------------------------------------------------------


@pytest.mark.asyncio
async def test_thresholds_set_by_admin_updates_guild(whitelist):
    engine = make_engine()
    cog = thresholds_cmds.ThresholdsCog(SimpleNamespace(), engine, whitelist)
    ctx = make_ctx(permissions=PERM_ADMINISTRATOR)

    await thresholds_cmds.ThresholdsCog.set_threshold.callback(cog, ctx, "explicit", "70%", False)

    message = ctx.respond.await_args.args[0]
    assert "NudityExplicit" in message
    assert "70%" in message
    assert (await engine.resolve_thresholds("10")).nudity_explicit == pytest.approx(0.7)
    (change,) = await engine.get_history("10")
    assert change.actor_id == "42"


@pytest.mark.asyncio
async def test_thresholds_set_reports_parse_errors(whitelist):
    engine = make_engine()
    cog = thresholds_cmds.ThresholdsCog(SimpleNamespace(), engine, whitelist)
    ctx = make_ctx(permissions=PERM_ADMINISTRATOR)

    await thresholds_cmds.ThresholdsCog.set_threshold.callback(cog, ctx, "Offensive", "lots", False)

    assert "Could not parse" in ctx.respond.await_args.args[0]
    assert ctx.respond.await_args.kwargs["ephemeral"] is True
    assert await engine.get_history("10") == []


@pytest.mark.asyncio
async def test_thresholds_denied_without_role(whitelist):
    engine = make_engine()
    cog = thresholds_cmds.ThresholdsCog(SimpleNamespace(), engine, whitelist)
    ctx = make_ctx(roles=[5])

    await thresholds_cmds.ThresholdsCog.set_threshold.callback(cog, ctx, "Offensive", "0.5", False)

    ctx.respond.assert_awaited_once_with(bot_helper.RESTRICTED_DENIED_MESSAGE, ephemeral=True)
    assert (await engine.resolve_thresholds("10")).offensive == 0.25


@pytest.mark.asyncio
async def test_thresholds_allowed_with_whitelisted_role(whitelist):
    await whitelist.add_role("10", "5")
    engine = make_engine()
    cog = thresholds_cmds.ThresholdsCog(SimpleNamespace(), engine, whitelist)
    ctx = make_ctx(roles=[5])

    await thresholds_cmds.ThresholdsCog.set_threshold.callback(cog, ctx, "Offensive", "0.5", False)

    assert (await engine.resolve_thresholds("10")).offensive == 0.5


@pytest.mark.asyncio
async def test_global_scope_is_owner_only(whitelist):
    engine = make_engine()
    cog = thresholds_cmds.ThresholdsCog(SimpleNamespace(), engine, whitelist)

    admin_ctx = make_ctx(permissions=PERM_ADMINISTRATOR)
    await thresholds_cmds.ThresholdsCog.set_threshold.callback(cog, admin_ctx, "Offensive", "0.5", True)
    admin_ctx.respond.assert_awaited_once_with(bot_helper.OWNER_ONLY_MESSAGE, ephemeral=True)

    owner_ctx = make_ctx(user_id=int(OWNER))
    await thresholds_cmds.ThresholdsCog.set_threshold.callback(cog, owner_ctx, "Offensive", "0.5", True)
    assert (await engine.global_thresholds()).offensive == 0.5
    assert (await engine.resolve_thresholds("77")).offensive == 0.5


@pytest.mark.asyncio
async def test_guild_scope_commands_need_a_guild(whitelist):
    cog = thresholds_cmds.ThresholdsCog(SimpleNamespace(), make_engine(), whitelist)
    ctx = make_ctx(guild_id=None, user_id=int(OWNER))

    await thresholds_cmds.ThresholdsCog.reset_threshold.callback(cog, ctx, "all", False)

    ctx.respond.assert_awaited_once_with(thresholds_cmds.GUILD_ONLY_MESSAGE, ephemeral=True)


@pytest.mark.asyncio
async def test_thresholds_reset_all_lists_every_name(whitelist):
    engine = make_engine()
    cog = thresholds_cmds.ThresholdsCog(SimpleNamespace(), engine, whitelist)
    ctx = make_ctx(permissions=PERM_ADMINISTRATOR)

    await thresholds_cmds.ThresholdsCog.reset_threshold.callback(cog, ctx, "all", False)

    message = ctx.respond.await_args.args[0]
    for name in ("NuditySuggestive", "NudityExplicit", "Offensive", "AIGenerated"):
        assert name in message
    assert len(await engine.get_history("10")) == 4


@pytest.mark.asyncio
async def test_thresholds_list_and_history_send_embeds(whitelist):
    engine = make_engine()
    await engine.set_threshold("10", "AIGenerated", "0.8", actor_id="42")
    cog = thresholds_cmds.ThresholdsCog(SimpleNamespace(), engine, whitelist)

    list_ctx = make_ctx(permissions=PERM_ADMINISTRATOR)
    await thresholds_cmds.ThresholdsCog.list_thresholds.callback(cog, list_ctx, False)
    list_embed = list_ctx.respond.await_args.kwargs["embed"]
    assert list_embed.title == "Detection Thresholds"
    assert any(field.value == "80%" for field in list_embed.fields)

    history_ctx = make_ctx(permissions=PERM_ADMINISTRATOR)
    await thresholds_cmds.ThresholdsCog.history.callback(cog, history_ctx, None, 10, False)
    history_embed = history_ctx.respond.await_args.kwargs["embed"]
    assert history_embed.title == "Threshold History"
    assert "AIGenerated" in history_embed.fields[0].value


# ----------------------------------------------------------------------
# /analyse, /ai, /reverse
# ----------------------------------------------------------------------


@pytest.mark.asyncio
async def test_analyse_sends_verdict_embed(whitelist):
    engine = make_engine({"nudity": {"erotica": 0.9}})
    cog = analysis_cmds.AnalysisCog(SimpleNamespace(), engine, whitelist)
    ctx = make_ctx(permissions=PERM_ADMINISTRATOR)

    await analysis_cmds.AnalysisCog.analyse.callback(cog, ctx, "https://img.example/a.png", False)

    ctx.defer.assert_awaited_once()
    embed = ctx.send_followup.await_args.kwargs["embed"]
    assert isinstance(embed, discord.Embed)
    assert embed.title == "Image Analysis"
    fields = {field.name: field.value for field in embed.fields}
    assert fields["Safe Image"] == "false"
    assert fields["Flagged For"] == "nudity_explicit"


@pytest.mark.asyncio
async def test_analyse_advanced_sends_raw_scores(whitelist):
    engine = make_engine({"nudity": {"erotica": 0.9}})
    cog = analysis_cmds.AnalysisCog(SimpleNamespace(), engine, whitelist)
    ctx = make_ctx(permissions=PERM_ADMINISTRATOR)

    await analysis_cmds.AnalysisCog.analyse.callback(cog, ctx, "https://img.example/a.png", True)

    embed = ctx.send_followup.await_args.kwargs["embed"]
    assert embed.title == "Image Analysis (Advanced)"
    assert "erotica: 90%" in embed.fields[0].value


@pytest.mark.asyncio
async def test_analyse_reports_upstream_failure(whitelist):
    engine = make_engine()
    engine.sightengine.check.side_effect = UpstreamAnalysisError("unexpected status 500")
    cog = analysis_cmds.AnalysisCog(SimpleNamespace(), engine, whitelist)
    ctx = make_ctx(permissions=PERM_ADMINISTRATOR)

    await analysis_cmds.AnalysisCog.analyse.callback(cog, ctx, "https://img.example/a.png", False)

    embed = ctx.send_followup.await_args.kwargs["embed"]
    assert "Analysis failed" in embed.description


@pytest.mark.asyncio
async def test_analyse_denied_in_dm_for_non_owner(whitelist):
    engine = make_engine()
    cog = analysis_cmds.AnalysisCog(SimpleNamespace(), engine, whitelist)
    ctx = make_ctx(guild_id=None, permissions=PERM_ADMINISTRATOR)

    await analysis_cmds.AnalysisCog.analyse.callback(cog, ctx, "https://img.example/a.png", False)

    ctx.respond.assert_awaited_once_with(bot_helper.RESTRICTED_DENIED_MESSAGE, ephemeral=True)
    engine.sightengine.check.assert_not_awaited()


@pytest.mark.asyncio
async def test_reverse_sends_result_embed(whitelist):
    engine = make_engine()
    cog = analysis_cmds.AnalysisCog(SimpleNamespace(), engine, whitelist)
    ctx = make_ctx(user_id=int(OWNER))

    await analysis_cmds.AnalysisCog.reverse.callback(cog, ctx, "https://img.example/a.png")

    embed = ctx.send_followup.await_args.kwargs["embed"]
    assert embed.title == "Reverse Image Search"
    assert any(field.value == "cat" for field in embed.fields)


# ----------------------------------------------------------------------
# /permissions and general commands
# ----------------------------------------------------------------------


@pytest.mark.asyncio
async def test_permissions_add_and_list(whitelist):
    cog = permissions_cmds.PermissionsCog(SimpleNamespace(), whitelist)
    role = SimpleNamespace(id=20, mention="<@&20>")

    add_ctx = make_ctx(permissions=PERM_ADMINISTRATOR)
    await permissions_cmds.PermissionsCog.add.callback(cog, add_ctx, role)
    assert "<@&20>" in add_ctx.respond.await_args.args[0]

    list_ctx = make_ctx(permissions=PERM_ADMINISTRATOR)
    await permissions_cmds.PermissionsCog.list_roles.callback(cog, list_ctx)
    list_ctx.respond.assert_awaited_once_with("Allowed roles: <@&20>", ephemeral=True)


@pytest.mark.asyncio
async def test_permissions_require_admin(whitelist):
    cog = permissions_cmds.PermissionsCog(SimpleNamespace(), whitelist)
    ctx = make_ctx(roles=[20])

    await permissions_cmds.PermissionsCog.add.callback(cog, ctx, SimpleNamespace(id=20, mention="<@&20>"))

    ctx.respond.assert_awaited_once_with(permissions_cmds.MANAGE_DENIED_MESSAGE, ephemeral=True)
    assert await whitelist.list_roles("10") == []


@pytest.mark.asyncio
async def test_ping_reports_latency():
    cog = general_cmds.GeneralCog(SimpleNamespace(latency=0.123))
    ctx = make_ctx()

    await general_cmds.GeneralCog.ping.callback(cog, ctx)

    ctx.respond.assert_awaited_once_with("Pong! 123 ms", ephemeral=True)


@pytest.mark.asyncio
async def test_help_lists_commands():
    cog = general_cmds.GeneralCog(SimpleNamespace())
    ctx = make_ctx()

    await general_cmds.GeneralCog.help_command.callback(cog, ctx)

    embed = ctx.respond.await_args.kwargs["embed"]
    assert len(embed.fields) == len(general_cmds.HELP_LINES)
