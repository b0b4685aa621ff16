"""
Utilities for building structured logging context from Discord objects.

Provides a helper to extract guild_id, user_id and channel_id from
discord.py objects so voice events log consistently.
"""

from typing import Any


def get_context_extra(
    guild: Any = None,
    user: Any = None,
    channel: Any = None,
    **additional: Any,
) -> dict[str, Any]:
    """
    Build a structured logging extra dict from Discord objects.

    Args:
        guild: Guild object
        user: User or Member object
        channel: Channel object
        **additional: Any additional key-value pairs to include

    Returns:
        Dict with guild_id, user_id, channel_id, and any additional fields

    Examples:
        logger.info("Overflow room created", extra=get_context_extra(guild=guild, channel=room))
    """
    extra: dict[str, Any] = {}

    if guild is not None:
        extra["guild_id"] = str(guild.id)
    if user is not None:
        extra["user_id"] = str(user.id)
    if channel is not None:
        extra["channel_id"] = str(channel.id)

    extra.update(additional)

    return extra
