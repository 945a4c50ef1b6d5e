"""
SightGuard Image Moderation Bot
===============================

A Discord bot that scores images with Sightengine and flags them against
per-server thresholds, with an audit trail of every threshold change.
"""

import os
import sys
from pathlib import Path


def resolve_base_dir() -> Path:
    """Determine the base directory of the project.

    Resolution order:
    1. SIGHTGUARD_HOME environment variable, if set.
    2. If running in a frozen/compiled context (e.g., PyInstaller, Nuitka), use the executable's directory.
    3. Otherwise, assume running from source and use the grandparent of this file's directory.
    """
    if env_home := os.getenv("SIGHTGUARD_HOME"):
        return Path(env_home).resolve()

    if getattr(sys, "frozen", False) or getattr(sys, "compiled", False):
        return Path(sys.argv[0]).resolve().parent

    return Path(__file__).resolve().parents[2]


BASE_DIR = resolve_base_dir()
os.chdir(BASE_DIR)

import asyncio
from dataclasses import dataclass
from typing import List, Optional

import discord
from dotenv import load_dotenv

from sightguard.configuration.app_configuration import app_config
from sightguard.database.database import Database
from sightguard.moderation.moderation_engine import ModerationEngine
from sightguard.permissions.role_whitelist import JsonFileRoleStorage, RoleWhitelist, SQLiteRoleStorage
from sightguard.thresholds import build_threshold_backend
from sightguard.thresholds.audit_log import AuditLog
from sightguard.thresholds.backends.base import ThresholdBackend
from sightguard.thresholds.threshold_store import ThresholdStore
from sightguard.util.logger import get_logger, handle_exception

logger = get_logger("main")


@dataclass(slots=True)
class Runtime:
    """Long-lived services created at startup and closed at shutdown."""

    database: Optional[Database]
    backend: Optional[ThresholdBackend]
    engine: ModerationEngine
    whitelist: RoleWhitelist


def load_environment() -> str:
    """Load environment variables and return the Discord bot token.

    Raises
    ------
    SystemExit
        If the required ``DISCORD_BOT_TOKEN`` variable is missing.
    """
    load_dotenv(dotenv_path=BASE_DIR / ".env")
    token = os.getenv("DISCORD_BOT_TOKEN")
    if not token:
        logger.critical("'DISCORD_BOT_TOKEN' environment variable not set. Bot cannot start.")
        sys.exit(1)
    return token


def resolve_owner_id() -> str:
    return os.getenv("OWNER_ID", "").strip() or app_config.owner_id


def resolve_debug_guilds() -> Optional[List[int]]:
    """Register commands to a single guild when ``GUILD_ID`` is set."""
    raw = os.getenv("GUILD_ID", "").strip()
    if not raw:
        return None
    try:
        return [int(raw)]
    except ValueError:
        logger.warning("Ignoring invalid GUILD_ID=%r; registering commands globally", raw)
        return None


async def build_runtime() -> Runtime:
    """Open storage and wire the services according to the configured backend."""
    backend_name = app_config.database_backend
    database: Optional[Database] = None

    if backend_name == "sqlite":
        database = Database(app_config.database_path)
        if not await database.initialize():
            logger.error("SQLite unavailable; falling back to in-memory threshold storage")
            database = None

    connection_manager = database.connection_manager if database else None
    backend = build_threshold_backend(backend_name, connection_manager)
    if backend is not None:
        await backend.initialize()
    logger.info("Threshold backend: %s", type(backend).__name__ if backend else "none (defaults only)")

    if connection_manager is not None:
        role_storage = SQLiteRoleStorage(connection_manager)
    else:
        role_storage = JsonFileRoleStorage(app_config.permissions_file_path)
    whitelist = RoleWhitelist(role_storage, resolve_owner_id())
    await whitelist.load()
    if not whitelist.owner_id:
        logger.warning("No OWNER_ID configured; global thresholds cannot be changed")

    engine = ModerationEngine(ThresholdStore(backend), AuditLog(backend))
    return Runtime(database=database, backend=backend, engine=engine, whitelist=whitelist)


def build_intents() -> discord.Intents:
    """Slash commands only need guild and member data."""
    intents = discord.Intents.default()
    intents.guilds = True
    intents.members = True
    return intents


def load_cogs(bot: discord.Bot, runtime: Runtime) -> None:
    from sightguard.bot.cogs import analysis_cmds, general_cmds, permissions_cmds, thresholds_cmds

    general_cmds.setup(bot)
    analysis_cmds.setup(bot, runtime.engine, runtime.whitelist)
    thresholds_cmds.setup(bot, runtime.engine, runtime.whitelist)
    permissions_cmds.setup(bot, runtime.whitelist)

    logger.info("All cogs loaded successfully.")


def create_bot(runtime: Runtime) -> discord.Bot:
    """Instantiate the Discord bot and register all cogs."""
    bot = discord.Bot(intents=build_intents(), debug_guilds=resolve_debug_guilds())
    load_cogs(bot, runtime)
    return bot


async def shutdown_runtime(bot: Optional[discord.Bot], runtime: Optional[Runtime]) -> None:
    """Gracefully close the Discord connection and the storage backends."""
    if bot is not None and not bot.is_closed():
        try:
            await bot.close()
        except Exception as exc:
            logger.exception("Error while closing Discord bot: %s", exc)

    if runtime is not None:
        if runtime.backend is not None:
            await runtime.backend.close()
        if runtime.database is not None:
            await runtime.database.shutdown()

    logger.info("Shutdown complete.")


async def async_main() -> int:
    """Bootstrap storage and the bot, returning an exit code."""
    token = load_environment()

    try:
        runtime = await build_runtime()
    except Exception as exc:
        logger.critical("Failed to initialize storage: %s", exc)
        return 1

    bot: Optional[discord.Bot] = None
    exit_code = 0
    try:
        bot = create_bot(runtime)
        logger.info("Attempting to connect to Discord…")
        await bot.start(token)
    except asyncio.CancelledError:
        logger.info("Discord bot start cancelled; shutting down")
    except Exception as exc:
        logger.critical("Discord bot runtime error: %s", exc)
        exit_code = 1
    finally:
        await shutdown_runtime(bot, runtime)

    return exit_code


def main() -> int:
    """Entrypoint that runs the async runtime and returns the process code."""
    sys.excepthook = handle_exception
    logger.info("Starting SightGuard…")
    try:
        return asyncio.run(async_main())
    except KeyboardInterrupt:
        logger.info("Shutdown requested by user.")
        return 0
    except SystemExit as exit_exc:
        code = exit_exc.code
        if isinstance(code, int):
            return code
        return 1


if __name__ == "__main__":
    sys.exit(main())
