"""
Practice room locks.

A locked room belongs to one member: everyone else in it is server-muted
until the owner unlocks it or leaves.

The voice-state handler only ever releases locks. ``lock_room`` is the entry
point for external command tooling; the bot itself exposes no commands.
"""

from typing import Any

import discord

from services.db.database import Database
from utils.log_context import get_context_extra

from .base import BaseService
from .config_service import ConfigService
from .db.repository import BaseRepository


class RoomLockService(BaseService):
    """Stores lock ownership and applies the matching voice mutes."""

    def __init__(self, config_service: ConfigService) -> None:
        super().__init__("room_lock")
        self.config_service = config_service
        self.repo = BaseRepository()

    async def _initialize_impl(self) -> None:
        await Database.initialize()

    async def get_lock_owner(self, guild_id: int, channel_id: int | None) -> int | None:
        """Return the member holding the lock on ``channel_id``, if any."""
        if channel_id is None:
            return None
        owner = await self.repo.fetch_value(
            "SELECT owner_id FROM room_locks WHERE guild_id = ? AND channel_id = ?",
            (guild_id, channel_id),
        )
        return int(owner) if owner is not None else None

    async def lock_room(self, guild: Any, member: Any, channel: Any) -> bool:
        """
        Lock ``channel`` for ``member`` and mute the other occupants.

        Returns:
            False if someone else already holds the lock
        """
        owner = await self.get_lock_owner(guild.id, channel.id)
        if owner is not None and owner != member.id:
            return False

        await self.repo.execute(
            "INSERT OR REPLACE INTO room_locks (guild_id, channel_id, owner_id) VALUES (?, ?, ?)",
            (guild.id, channel.id, member.id),
        )
        self.logger.info(
            "Room locked", extra=get_context_extra(guild=guild, user=member, channel=channel)
        )

        for occupant in list(channel.members):
            if occupant.id == member.id or getattr(occupant, "bot", False):
                continue
            await self._set_server_mute(occupant, True)
        return True

    async def unlock_room(self, guild: Any, member_id: int, channel: Any) -> bool:
        """
        Release ``member_id``'s lock on ``channel`` and unmute the room.

        Occupants holding the temp-mute role stay muted.

        Returns:
            True if a lock held by ``member_id`` was released
        """
        released = await self.repo.execute(
            "DELETE FROM room_locks WHERE guild_id = ? AND channel_id = ? AND owner_id = ?",
            (guild.id, channel.id, member_id),
        )
        if not released:
            return False

        self.logger.info(
            "Room unlocked",
            extra=get_context_extra(guild=guild, channel=channel, user_id=str(member_id)),
        )

        temp_muted_role = self.config_service.get_practice_settings().temp_muted_role
        for occupant in list(channel.members):
            voice = getattr(occupant, "voice", None)
            if voice is None or not voice.mute:
                continue
            if any(role.name == temp_muted_role for role in occupant.roles):
                continue
            await self._set_server_mute(occupant, False)
        return True

    async def clear_lock(self, guild_id: int, channel_id: int) -> None:
        """Drop any lock row for a channel that no longer exists."""
        await self.repo.execute(
            "DELETE FROM room_locks WHERE guild_id = ? AND channel_id = ?",
            (guild_id, channel_id),
        )

    async def clear_guild_locks(self, guild_id: int) -> int:
        """Drop every lock row for a guild. Returns the number removed."""
        return await self.repo.execute("DELETE FROM room_locks WHERE guild_id = ?", (guild_id,))

    async def _set_server_mute(self, member: Any, mute: bool) -> None:
        try:
            await member.edit(mute=mute)
        except discord.HTTPException as e:
            # Member may have disconnected between the cache read and the edit
            self.logger.warning(
                "Could not %s member: %s",
                "mute" if mute else "unmute",
                e,
                extra={"user_id": str(member.id)},
            )
