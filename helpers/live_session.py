"""Classification of members who are actively practicing right now."""

from collections.abc import Collection

from utils.types import MemberSnapshot


def is_live_member(
    snapshot: MemberSnapshot,
    permitted_ids: Collection[int],
    lock_owner_id: int | None = None,
) -> bool:
    """
    A member is live when they are:

    1. not a bot (recording bots sit in rooms too)
    2. unmuted
    3. in a permitted room
    4. that is not locked by someone else

    Args:
        snapshot: Member presence for the state being classified
        permitted_ids: Permitted channel ids for the guild
        lock_owner_id: Owner of the lock on the member's room, if locked

    Returns:
        True if the member counts as practicing
    """
    if snapshot.is_bot or snapshot.is_muted:
        return False
    if snapshot.channel_id is None or snapshot.channel_id not in permitted_ids:
        return False
    return lock_owner_id is None or lock_owner_id == snapshot.member_id
