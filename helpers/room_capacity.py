"""
Room inventory decisions for practice rooms.

Pure functions over the guild's permitted room ids and the live channel
cache: whether every primary room is taken, and which auto-created room (if
any) can be reclaimed. Neither function talks to Discord or the database.
"""

from collections.abc import Collection, Iterable
from typing import Any

from utils.types import RoomTier

DEFAULT_LOW_BITRATE = 64000


def room_tier(channel: Any, low_bitrate: int = DEFAULT_LOW_BITRATE) -> RoomTier:
    """Capacity tier of a voice channel: low-bitrate rooms are OVERFLOW tier."""
    bitrate = getattr(channel, "bitrate", None) or 0
    return RoomTier.OVERFLOW if bitrate <= low_bitrate else RoomTier.PRIMARY


def _is_live_occupant(member: Any, channel: Any) -> bool:
    # A cached member whose voice state no longer points here has already left.
    voice = getattr(member, "voice", None)
    if voice is None or voice.channel is None:
        return False
    return voice.channel.id == channel.id


def has_live_occupants(channel: Any) -> bool:
    return any(_is_live_occupant(m, channel) for m in getattr(channel, "members", []))


def resolve_room(guild: Any, channel_id: int) -> Any | None:
    """Return the voice channel for ``channel_id`` or None for a stale id."""
    channel = guild.get_channel(channel_id)
    if channel is None or not hasattr(channel, "bitrate") or not hasattr(channel, "members"):
        return None
    return channel


def all_rooms_full(
    permitted_ids: Iterable[int],
    guild: Any,
    low_bitrate: int = DEFAULT_LOW_BITRATE,
) -> bool:
    """
    Return True when every primary-tier permitted room has someone in it.

    Muted occupants still count: a room someone was just practicing in should
    not be offered to another member. Ids that no longer resolve to a channel
    are skipped and never affect the verdict.

    Args:
        permitted_ids: Ordered permitted channel ids for the guild
        guild: Guild exposing ``get_channel``
        low_bitrate: Bitrate at or below which a room is low-capacity

    Returns:
        True if no primary room is free
    """
    for channel_id in permitted_ids:
        room = resolve_room(guild, channel_id)
        if room is None:
            continue
        if room_tier(room, low_bitrate) is RoomTier.PRIMARY and not has_live_occupants(room):
            return False
    return True


def find_room_to_reclaim(
    permitted_ids: Iterable[int],
    overflow_ids: Collection[int],
    guild: Any,
    low_bitrate: int = DEFAULT_LOW_BITRATE,
) -> Any | None:
    """
    Pick at most one auto-created room to delete.

    Nothing is reclaimed unless at least two permitted rooms are empty. When at
    most one of the empty rooms is primary tier, only a low-capacity overflow
    room may go; otherwise the first empty overflow room goes regardless of
    tier. Rooms missing from ``overflow_ids`` are never returned.

    Args:
        permitted_ids: Ordered permitted channel ids for the guild
        overflow_ids: Ids of rooms the bot created and may delete
        guild: Guild exposing ``get_channel``
        low_bitrate: Bitrate at or below which a room is low-capacity

    Returns:
        The channel to delete, or None
    """
    empty_rooms = []
    for channel_id in permitted_ids:
        room = resolve_room(guild, channel_id)
        if room is not None and not has_live_occupants(room):
            empty_rooms.append(room)

    if len(empty_rooms) < 2:
        return None

    candidates = [room for room in empty_rooms if room.id in overflow_ids]
    primary_empty = [r for r in empty_rooms if room_tier(r, low_bitrate) is RoomTier.PRIMARY]

    if len(primary_empty) <= 1:
        return next(
            (r for r in candidates if room_tier(r, low_bitrate) is RoomTier.OVERFLOW),
            None,
        )
    return next(iter(candidates), None)
