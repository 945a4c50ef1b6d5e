"""
Per-guild whitelist of roles allowed to run restricted commands.

Backing storage is picked once at startup:
- SQLite ``permissions`` table when the database is enabled
- a JSON file (``{"guild_roles": {guild_id: [role_id, ...]}}``) otherwise,
  written atomically through a temporary file and a rename
"""

from __future__ import annotations

import asyncio
import json
import os
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Set

import aiosqlite

from sightguard.database.db_connection import ConnectionManager
from sightguard.exceptions import StoreUnavailableError
from sightguard.util.logger import get_logger

logger = get_logger("role_whitelist")

# Discord permission bits checked for admin access
PERM_ADMINISTRATOR = 1 << 3
PERM_MANAGE_GUILD = 1 << 5

NO_ROLES_TEXT = "(none configured)"


class RoleStorage(ABC):
    """Storage for the guild -> role ids whitelist."""

    async def load(self) -> None:
        """Load persisted data into memory, if the storage keeps a cache."""

    @abstractmethod
    async def add(self, guild_id: str, role_id: str) -> None: ...

    @abstractmethod
    async def remove(self, guild_id: str, role_id: str) -> None: ...

    @abstractmethod
    async def list(self, guild_id: str) -> List[str]: ...


class SQLiteRoleStorage(RoleStorage):
    """Role whitelist stored in the ``permissions`` table."""

    def __init__(self, connection_manager: ConnectionManager) -> None:
        self._connections = connection_manager

    async def add(self, guild_id: str, role_id: str) -> None:
        try:
            async with self._connections.transaction() as conn:
                await conn.execute(
                    "INSERT OR IGNORE INTO permissions (guild_id, role_id) VALUES (?, ?)",
                    (guild_id, role_id),
                )
        except aiosqlite.Error as exc:
            raise StoreUnavailableError(f"failed to add role {role_id} for guild {guild_id}: {exc}") from exc

    async def remove(self, guild_id: str, role_id: str) -> None:
        try:
            async with self._connections.transaction() as conn:
                await conn.execute(
                    "DELETE FROM permissions WHERE guild_id = ? AND role_id = ?",
                    (guild_id, role_id),
                )
        except aiosqlite.Error as exc:
            raise StoreUnavailableError(f"failed to remove role {role_id} for guild {guild_id}: {exc}") from exc

    async def list(self, guild_id: str) -> List[str]:
        try:
            async with self._connections.read() as conn:
                async with conn.execute(
                    "SELECT role_id FROM permissions WHERE guild_id = ? ORDER BY role_id",
                    (guild_id,),
                ) as cursor:
                    rows = await cursor.fetchall()
        except aiosqlite.Error as exc:
            raise StoreUnavailableError(f"failed to list roles for guild {guild_id}: {exc}") from exc
        return [row[0] for row in rows]


class JsonFileRoleStorage(RoleStorage):
    """Role whitelist cached in memory and mirrored to a JSON file.

    With ``file_path=None`` the whitelist only lives in memory.
    """

    def __init__(self, file_path: Optional[Path]) -> None:
        self.file_path = file_path
        self._guild_roles: Dict[str, Set[str]] = {}
        self._lock = asyncio.Lock()

    async def load(self) -> None:
        if self.file_path is None:
            return
        async with self._lock:
            try:
                raw = self.file_path.read_text(encoding="utf-8")
            except FileNotFoundError:
                logger.info("[ROLE WHITELIST] No permissions file at %s, starting empty", self.file_path)
                return
            except OSError as exc:
                raise StoreUnavailableError(f"failed to read {self.file_path}: {exc}") from exc

            try:
                payload = json.loads(raw)
            except json.JSONDecodeError as exc:
                raise StoreUnavailableError(f"invalid permissions file {self.file_path}: {exc}") from exc

            guild_roles = payload.get("guild_roles", {}) if isinstance(payload, dict) else {}
            self._guild_roles = {}
            for guild_id, roles in guild_roles.items():
                cleaned = {str(role).strip() for role in roles or [] if str(role).strip()}
                if cleaned:
                    self._guild_roles[str(guild_id)] = cleaned
            logger.info("[ROLE WHITELIST] Loaded %d guild whitelists from %s", len(self._guild_roles), self.file_path)

    def _write_file(self, guild_roles: Dict[str, Set[str]]) -> None:
        """Blocking atomic write of ``guild_roles``; run through ``asyncio.to_thread``."""
        payload = {"guild_roles": {guild: sorted(roles) for guild, roles in guild_roles.items()}}
        tmp_path = self.file_path.with_name(self.file_path.name + ".tmp")
        try:
            self.file_path.parent.mkdir(parents=True, exist_ok=True)
            tmp_path.write_text(json.dumps(payload, indent=2), encoding="utf-8")
            os.replace(tmp_path, self.file_path)
        except OSError as exc:
            raise StoreUnavailableError(f"failed to write {self.file_path}: {exc}") from exc

    async def _commit(self, guild_id: str, roles: Set[str]) -> None:
        """Persist the new role set for one guild, then swap it into memory.

        The in-memory whitelist is left untouched when the write fails.
        """
        updated = dict(self._guild_roles)
        if roles:
            updated[guild_id] = roles
        else:
            updated.pop(guild_id, None)

        if self.file_path is not None:
            await asyncio.to_thread(self._write_file, updated)
        self._guild_roles = updated

    async def add(self, guild_id: str, role_id: str) -> None:
        async with self._lock:
            roles = set(self._guild_roles.get(guild_id, set()))
            roles.add(role_id)
            await self._commit(guild_id, roles)

    async def remove(self, guild_id: str, role_id: str) -> None:
        async with self._lock:
            roles = set(self._guild_roles.get(guild_id, set()))
            roles.discard(role_id)
            await self._commit(guild_id, roles)

    async def list(self, guild_id: str) -> List[str]:
        return sorted(self._guild_roles.get(guild_id, set()))


def has_admin_permission(permissions_value: int) -> bool:
    """Return True when a permission integer grants Administrator or Manage Server."""
    return bool(permissions_value & PERM_ADMINISTRATOR) or bool(permissions_value & PERM_MANAGE_GUILD)


def format_role_list(role_ids: Iterable[str]) -> str:
    """Render role ids as Discord role mentions."""
    mentions = [f"<@&{role_id.strip()}>" for role_id in role_ids if role_id and role_id.strip()]
    return ", ".join(mentions) if mentions else NO_ROLES_TEXT


class RoleWhitelist:
    """Guild role whitelist plus the access rule for restricted commands."""

    def __init__(self, storage: RoleStorage, owner_id: str = "") -> None:
        self.storage = storage
        self.owner_id = owner_id.strip()

    def is_owner(self, user_id: Optional[str]) -> bool:
        return bool(self.owner_id) and user_id == self.owner_id

    async def load(self) -> None:
        await self.storage.load()

    async def add_role(self, guild_id: str, role_id: str) -> List[str]:
        await self.storage.add(guild_id, role_id)
        logger.info("[ROLE WHITELIST] Added role %s to guild %s", role_id, guild_id)
        return await self.storage.list(guild_id)

    async def remove_role(self, guild_id: str, role_id: str) -> List[str]:
        await self.storage.remove(guild_id, role_id)
        logger.info("[ROLE WHITELIST] Removed role %s from guild %s", role_id, guild_id)
        return await self.storage.list(guild_id)

    async def list_roles(self, guild_id: str) -> List[str]:
        return await self.storage.list(guild_id)

    def can_manage(self, guild_id: str, user_id: Optional[str], permissions_value: int) -> bool:
        """Only the owner or guild admins may edit the whitelist."""
        if self.is_owner(user_id):
            return True
        return bool(guild_id) and has_admin_permission(permissions_value)

    async def is_allowed_for_restricted(
        self,
        guild_id: str,
        user_id: Optional[str],
        role_ids: Iterable[str],
        permissions_value: int = 0,
    ) -> bool:
        """Decide whether a user may run restricted commands.

        Direct messages allow only the owner. In a guild the owner and
        members with Administrator or Manage Server always pass; everyone
        else needs one of the whitelisted roles.
        """
        if not guild_id:
            return self.is_owner(user_id)
        if self.is_owner(user_id) or has_admin_permission(permissions_value):
            return True

        user_roles = {str(role_id) for role_id in role_ids}
        if not user_roles:
            return False
        allowed = set(await self.storage.list(guild_id))
        return bool(allowed & user_roles)
