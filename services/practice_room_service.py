"""
Practice room lifecycle service.

Runs on every voice state change: keeps enough free practice rooms around,
releases locks their owners walked away from, keeps practice chat access in
step with voice presence and accumulates practice time.

``add_primary_room`` and ``remove_primary_room`` are the entry points for
external command tooling that registers pre-existing rooms; the bot itself
exposes no commands.
"""

import asyncio
import time
from typing import Any

import discord

from helpers.discord_api import delete_channel
from helpers.live_session import is_live_member
from helpers.practice_chat import find_practice_chat, update_practice_chat_permissions
from helpers.room_capacity import all_rooms_full, find_room_to_reclaim
from helpers.session_accounting import advance_session
from helpers.task_queue import TaskQueue
from services.db.database import Database
from utils.log_context import get_context_extra
from utils.types import (
    OVERFLOW_CHANNELS_FIELD,
    PERMITTED_CHANNELS_FIELD,
    GuildConfig,
    MemberSnapshot,
    PracticeSettings,
    SessionTransition,
    TransitionKind,
)

from .base import BaseService
from .config_service import ConfigService
from .guild_store import GuildConfigRepository
from .practice_time_service import PracticeTimeService
from .room_lock_service import RoomLockService


class PracticeRoomService(BaseService):
    """
    Coordinates room inventory, locks, chat access and session bookkeeping.

    Events for one guild are handled one at a time under a per-guild lock, in
    the order the gateway delivered them, and the steps of one event are
    awaited strictly in order.
    """

    def __init__(
        self,
        config_service: ConfigService,
        guild_store: GuildConfigRepository,
        time_service: PracticeTimeService,
        lock_service: RoomLockService,
        task_queue: TaskQueue,
        bot: Any = None,
    ) -> None:
        super().__init__("practice_rooms")
        self.config_service = config_service
        self.guild_store = guild_store
        self.time_service = time_service
        self.lock_service = lock_service
        self.task_queue = task_queue
        self.bot = bot
        self._guild_locks: dict[int, asyncio.Lock] = {}

    async def _initialize_impl(self) -> None:
        await Database.initialize()

    def _guild_lock(self, guild_id: int) -> asyncio.Lock:
        return self._guild_locks.setdefault(guild_id, asyncio.Lock())

    @property
    def settings(self) -> PracticeSettings:
        return self.config_service.get_practice_settings()

    # ------------------------------------------------------------------
    # Event entry points
    # ------------------------------------------------------------------

    async def handle_voice_state_change(
        self,
        member: Any,
        before: Any,
        after: Any,
    ) -> None:
        """
        Process one voice state change for ``member``.

        Args:
            member: The member whose voice state changed
            before: VoiceState prior to the change
            after: VoiceState after the change
        """
        self._ensure_initialized()
        guild = member.guild
        settings = self.settings

        async with self._guild_lock(guild.id):
            config = await self.guild_store.load(guild.id)

            await self._restore_server_mute(member, after, config, settings)

            if config is None:
                await self._bootstrap_guild(guild.id)
                return

            reclaimed_id = await self._adjust_room_inventory(guild, config, settings)

            await self._release_abandoned_lock(member, before, after, reclaimed_id)

            await update_practice_chat_permissions(
                config.permitted_channel_ids, member, settings, voice_state=after
            )

            await self._account_session(member, before, after, config)

    async def handle_member_update(self, before: Any, after: Any) -> None:
        """Recompute practice chat access after a role change (e.g. Temp Muted)."""
        self._ensure_initialized()
        async with self._guild_lock(after.guild.id):
            config = await self.guild_store.load(after.guild.id)
            if config is None:
                await self._bootstrap_guild(after.guild.id)
                return

            await update_practice_chat_permissions(
                config.permitted_channel_ids, after, self.settings
            )

    async def handle_channel_deleted(self, guild_id: int, channel_id: int) -> None:
        """Forget a permitted room that was deleted outside the bot."""
        self._ensure_initialized()
        async with self._guild_lock(guild_id):
            config = await self.guild_store.load(guild_id)
            if config is None:
                return

            if config.is_permitted(channel_id) or config.is_overflow(channel_id):
                await self.guild_store.remove_from_field(config, PERMITTED_CHANNELS_FIELD, channel_id)
                await self.guild_store.remove_from_field(config, OVERFLOW_CHANNELS_FIELD, channel_id)
                self.logger.info(
                    "Removed deleted channel from practice rooms",
                    extra={"guild_id": str(guild_id), "channel_id": str(channel_id)},
                )
            await self.lock_service.clear_lock(guild_id, channel_id)

    async def handle_guild_removed(self, guild_id: int) -> None:
        """
        Forget transient state for a guild the bot has left.

        Room locks and in-progress sessions are dropped. The guild's
        configuration and practice totals are kept for a later re-invite.
        """
        self._ensure_initialized()
        async with self._guild_lock(guild_id):
            await self.lock_service.clear_guild_locks(guild_id)
            dropped = self.time_service.sessions.discard_guild(guild_id)
        self.logger.info(
            "Dropped transient state for removed guild (%d open session(s))",
            dropped,
            extra={"guild_id": str(guild_id)},
        )

    # ------------------------------------------------------------------
    # Administrative helpers
    # ------------------------------------------------------------------

    async def add_primary_room(self, guild_id: int, channel_id: int) -> GuildConfig:
        """Register a pre-existing voice channel as a primary practice room."""
        self._ensure_initialized()
        async with self._guild_lock(guild_id):
            config = await self.guild_store.load(guild_id)
            if config is None:
                config = await self._bootstrap_guild(guild_id)
            await self.guild_store.add_to_field(config, PERMITTED_CHANNELS_FIELD, channel_id)
        return config

    async def remove_primary_room(self, guild_id: int, channel_id: int) -> bool:
        """Stop treating a channel as a practice room. The channel itself is kept."""
        self._ensure_initialized()
        async with self._guild_lock(guild_id):
            config = await self.guild_store.load(guild_id)
            if config is None or not config.is_permitted(channel_id):
                return False
            await self.guild_store.remove_from_field(config, PERMITTED_CHANNELS_FIELD, channel_id)
            await self.guild_store.remove_from_field(config, OVERFLOW_CHANNELS_FIELD, channel_id)
        return True

    # ------------------------------------------------------------------
    # Event steps
    # ------------------------------------------------------------------

    async def _bootstrap_guild(self, guild_id: int) -> GuildConfig:
        config = self.guild_store.make_default(guild_id)
        await self.guild_store.save(config)
        self.logger.info("Created new guild.", extra={"guild_id": str(guild_id)})
        return config

    async def _restore_server_mute(
        self,
        member: Any,
        after: Any,
        config: GuildConfig | None,
        settings: PracticeSettings,
    ) -> None:
        """Unmute a member who is server-muted in an unlocked practice room.

        This happens when someone leaves a locked room they were muted in.
        """
        channel = getattr(after, "channel", None)
        if channel is None or not getattr(after, "mute", False):
            return
        if config is None or not config.is_permitted(channel.id):
            return
        if any(role.name == settings.temp_muted_role for role in member.roles):
            return
        if await self.lock_service.get_lock_owner(member.guild.id, channel.id) is not None:
            return

        try:
            await member.edit(mute=False)
        except discord.HTTPException as e:
            # Did they leave already?
            self.logger.warning(
                "Could not clear server mute: %s",
                e,
                extra=get_context_extra(guild=member.guild, user=member, channel=channel),
            )

    async def _adjust_room_inventory(
        self,
        guild: Any,
        config: GuildConfig,
        settings: PracticeSettings,
    ) -> int | None:
        """Create or reclaim one overflow room. Returns the reclaimed room id."""
        if not config.permitted_channel_ids:
            return None

        if all_rooms_full(config.permitted_channel_ids, guild, settings.low_bitrate):
            await self._create_overflow_room(guild, config, settings)
            return None

        room = find_room_to_reclaim(
            config.permitted_channel_ids,
            config.overflow_channel_ids,
            guild,
            settings.low_bitrate,
        )
        if room is None:
            return None

        # The store forgets the room before Discord is asked to delete it
        await self.guild_store.remove_from_field(config, PERMITTED_CHANNELS_FIELD, room.id)
        await self.guild_store.remove_from_field(config, OVERFLOW_CHANNELS_FIELD, room.id)
        await self.lock_service.clear_lock(guild.id, room.id)
        await delete_channel(self.task_queue, room, reason="Overflow practice room no longer needed")
        self.logger.info(
            "Reclaimed overflow practice room",
            extra=get_context_extra(guild=guild, channel=room),
        )
        return room.id

    async def _create_overflow_room(
        self,
        guild: Any,
        config: GuildConfig,
        settings: PracticeSettings,
    ) -> Any | None:
        chat = find_practice_chat(guild, settings)
        category = getattr(chat, "category", None) if chat is not None else None

        overwrites: dict[Any, discord.PermissionOverwrite] = {}
        temp_muted = discord.utils.get(guild.roles, name=settings.temp_muted_role)
        if temp_muted is not None:
            overwrites[temp_muted] = discord.PermissionOverwrite(speak=False)
        unverified = discord.utils.get(guild.roles, name=settings.verification_required_role)
        if unverified is not None:
            overwrites[unverified] = discord.PermissionOverwrite(view_channel=False)

        bitrate_limit = getattr(guild, "bitrate_limit", None) or settings.overflow_bitrate
        bitrate = int(min(settings.overflow_bitrate, bitrate_limit))
        if bitrate <= settings.low_bitrate:
            self.logger.warning(
                "Overflow room bitrate %d after the guild limit is not above low_bitrate %d; "
                "the overflow room will count as full",
                bitrate,
                settings.low_bitrate,
                extra=get_context_extra(guild=guild),
            )
        kwargs: dict[str, Any] = {
            "category": category,
            "bitrate": bitrate,
            "overwrites": overwrites,
            "reason": "All practice rooms are occupied",
        }
        if category is not None:
            kwargs["position"] = len(category.channels)

        try:
            room = await guild.create_voice_channel(settings.overflow_room_name, **kwargs)
        except discord.HTTPException:
            self.logger.exception(
                "Failed to create overflow practice room",
                extra=get_context_extra(guild=guild),
            )
            return None

        await self.guild_store.add_to_field(config, OVERFLOW_CHANNELS_FIELD, room.id)
        await self.guild_store.add_to_field(config, PERMITTED_CHANNELS_FIELD, room.id)
        self.logger.info(
            "Created overflow practice room",
            extra=get_context_extra(guild=guild, channel=room),
        )
        return room

    async def _release_abandoned_lock(
        self,
        member: Any,
        before: Any,
        after: Any,
        reclaimed_id: int | None,
    ) -> None:
        old_channel = getattr(before, "channel", None)
        if old_channel is None or old_channel.id == reclaimed_id:
            return
        new_channel = getattr(after, "channel", None)
        if new_channel is not None and new_channel.id == old_channel.id:
            return

        owner = await self.lock_service.get_lock_owner(member.guild.id, old_channel.id)
        if owner != member.id:
            return

        try:
            await self.lock_service.unlock_room(member.guild, member.id, old_channel)
        except Exception as e:
            self.logger.exception(
                "Failed to release lock on abandoned room",
                exc_info=e,
                extra=get_context_extra(guild=member.guild, user=member, channel=old_channel),
            )

    async def _account_session(
        self,
        member: Any,
        before: Any,
        after: Any,
        config: GuildConfig,
    ) -> SessionTransition:
        now = int(time.time())
        guild_id = member.guild.id
        sessions = self.time_service.sessions

        previous = MemberSnapshot.from_voice_state(
            member, before, sessions.get(guild_id, member.id)
        )
        current = MemberSnapshot.from_voice_state(member, after)

        lock_owner = await self.lock_service.get_lock_owner(guild_id, current.channel_id)
        live_now = is_live_member(current, config.permitted_channel_ids, lock_owner)

        transition = advance_session(previous.session, live_now, now)

        if transition.kind is TransitionKind.COMMITTED:
            await self.time_service.save_user_time(current.with_session(previous.session), now)

        sessions.set(guild_id, member.id, transition.session)

        if transition.kind is not TransitionKind.NOOP:
            self.logger.debug(
                "Practice session %s",
                transition.kind.value,
                extra=get_context_extra(
                    guild=member.guild,
                    user=member,
                    transition=transition.kind.value,
                    elapsed_seconds=transition.elapsed_seconds,
                ),
            )
        return transition
