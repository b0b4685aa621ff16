"""
Practice Events Cog

Handles Discord gateway events and delegates to the PracticeRoomService.
"""

from typing import TYPE_CHECKING

import discord
from discord.ext import commands

from utils.logging import get_logger

if TYPE_CHECKING:
    from services.practice_room_service import PracticeRoomService

logger = get_logger(__name__)


class PracticeEvents(commands.Cog):
    """Handles voice, member and channel events for practice rooms."""

    def __init__(self, bot: commands.Bot) -> None:
        self.bot = bot

    @property
    def practice_rooms(self) -> "PracticeRoomService":
        """Get the practice room service from the bot's service container."""
        if not hasattr(self.bot, "services") or self.bot.services is None:
            raise RuntimeError("Bot services not initialized")
        return self.bot.services.practice_rooms

    @commands.Cog.listener()
    async def on_voice_state_update(
        self,
        member: discord.Member,
        before: discord.VoiceState,
        after: discord.VoiceState,
    ) -> None:
        """Run the practice room pipeline for a voice state change."""
        try:
            await self.practice_rooms.handle_voice_state_change(member, before, after)
        except Exception as e:
            logger.exception(
                f"Error handling voice state update for {member} "
                f"(before: {before.channel}, after: {after.channel}): {e}"
            )

    @commands.Cog.listener()
    async def on_member_update(self, before: discord.Member, after: discord.Member) -> None:
        """Re-evaluate practice chat access when a member's roles change."""
        if {r.id for r in before.roles} == {r.id for r in after.roles}:
            return

        try:
            await self.practice_rooms.handle_member_update(before, after)
        except Exception as e:
            logger.exception("Error handling member update for %s", after, exc_info=e)

    @commands.Cog.listener()
    async def on_guild_channel_delete(self, channel: discord.abc.GuildChannel) -> None:
        """Forget practice rooms deleted outside the bot."""
        if not isinstance(channel, discord.VoiceChannel):
            return

        try:
            await self.practice_rooms.handle_channel_deleted(
                guild_id=channel.guild.id, channel_id=channel.id
            )
        except Exception as e:
            logger.exception("Error handling channel deletion for %s", channel, exc_info=e)

    @commands.Cog.listener()
    async def on_guild_remove(self, guild: discord.Guild) -> None:
        """Drop stored state for a guild the bot was removed from."""
        try:
            await self.practice_rooms.handle_guild_removed(guild.id)
        except Exception as e:
            logger.exception("Error purging data for guild %s", guild.id, exc_info=e)


async def setup(bot: commands.Bot) -> None:
    """Set up the Practice Events cog."""
    await bot.add_cog(PracticeEvents(bot))
