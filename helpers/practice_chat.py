"""
Write access to the shared practice text channel.

Members sitting in a permitted practice room get an explicit
``send_messages`` grant on the practice chat; leaving (or becoming unable to
speak) takes it away again. Every change is skipped when the overwrite
already matches, so running the update on an unchanged member makes no
Discord calls.
"""

from collections.abc import Collection
from typing import Any

import discord

from utils.logging import get_logger
from utils.types import MemberSnapshot, PracticeSettings

logger = get_logger(__name__)

_SEND_MESSAGES_ONLY = discord.Permissions(send_messages=True).value


def find_practice_chat(guild: Any, settings: PracticeSettings) -> Any | None:
    return discord.utils.get(guild.text_channels, name=settings.chat_channel_name)


def _find_overwrite(channel: Any, member: Any) -> discord.PermissionOverwrite | None:
    for target, overwrite in channel.overwrites.items():
        if target.id == member.id:
            return overwrite
    return None


def should_have_chat_access(
    snapshot: MemberSnapshot,
    permitted_ids: Collection[int],
    settings: PracticeSettings,
) -> bool:
    """In a permitted room, not both muted and deafened, and not temp-muted."""
    if snapshot.channel_id is None or snapshot.channel_id not in permitted_ids:
        return False
    if snapshot.is_muted and snapshot.is_self_deafened:
        return False
    return settings.temp_muted_role not in snapshot.role_names


async def update_practice_chat_permissions(
    permitted_ids: Collection[int],
    member: Any,
    settings: PracticeSettings,
    voice_state: Any = None,
) -> None:
    """
    Grant or revoke the member's write access to the practice chat.

    Args:
        permitted_ids: Permitted channel ids for the member's guild
        member: The member whose voice state decides access
        settings: Practice settings (chat channel and role names)
        voice_state: Voice state to judge; defaults to ``member.voice``
    """
    chat = find_practice_chat(member.guild, settings)
    if chat is None:
        return

    snapshot = MemberSnapshot.from_voice_state(
        member, voice_state if voice_state is not None else member.voice
    )
    existing = _find_overwrite(chat, member)

    try:
        if should_have_chat_access(snapshot, permitted_ids, settings):
            await _grant(chat, member, existing)
        else:
            await _revoke(chat, member, existing)
    except discord.HTTPException:
        logger.exception(
            "Failed to update practice chat permissions",
            extra={"guild_id": str(member.guild.id), "user_id": str(member.id)},
        )


async def _grant(chat: Any, member: Any, existing: discord.PermissionOverwrite | None) -> None:
    if existing is not None and existing.send_messages is True:
        return

    allow, deny = existing.pair() if existing is not None else (
        discord.Permissions.none(),
        discord.Permissions.none(),
    )
    overwrite = discord.PermissionOverwrite.from_pair(allow, deny)
    overwrite.send_messages = True
    await chat.set_permissions(member, overwrite=overwrite, reason="Joined a practice room")
    logger.debug("Granted practice chat access", extra={"user_id": str(member.id)})


async def _revoke(chat: Any, member: Any, existing: discord.PermissionOverwrite | None) -> None:
    # No overwrite means a moderator already removed it by hand
    if existing is None:
        return

    allow, deny = existing.pair()
    if allow.value == _SEND_MESSAGES_ONLY and deny.value == 0:
        await chat.set_permissions(member, overwrite=None, reason="Left the practice rooms")
        logger.debug("Removed practice chat overwrite", extra={"user_id": str(member.id)})
        return

    if existing.send_messages is not True:
        return

    overwrite = discord.PermissionOverwrite.from_pair(allow, deny)
    overwrite.send_messages = None
    await chat.set_permissions(member, overwrite=overwrite, reason="Left the practice rooms")
    logger.debug("Cleared practice chat send permission", extra={"user_id": str(member.id)})
