"""
Practice time persistence.

Holds each member's in-progress session start between presence events and
commits finished sessions to the database.

``get_user_total``, ``get_leaderboard`` and ``get_recent_sessions`` are read
entry points for external command tooling; the bot itself exposes no commands.
"""

import time

from services.db.database import Database
from utils.types import MemberSnapshot, SessionStart

from .base import BaseService
from .db.repository import BaseRepository


class SessionRegistry:
    """
    Session start per (guild_id, member_id).

    Discord hands the bot fresh member objects on every event, so the session
    start has to live somewhere that outlasts a single event. Members the
    registry has never seen report ``SessionStart.never_started()``.
    """

    def __init__(self) -> None:
        self._sessions: dict[tuple[int, int], SessionStart] = {}

    def get(self, guild_id: int, member_id: int) -> SessionStart:
        return self._sessions.get((guild_id, member_id), SessionStart.never_started())

    def set(self, guild_id: int, member_id: int, session: SessionStart) -> None:
        self._sessions[(guild_id, member_id)] = session

    def active(self) -> dict[tuple[int, int], SessionStart]:
        """All sessions currently in progress."""
        return {key: s for key, s in self._sessions.items() if s.is_active}

    def discard_guild(self, guild_id: int) -> int:
        """Forget every session in one guild. Returns how many were dropped."""
        keys = [key for key in self._sessions if key[0] == guild_id]
        for key in keys:
            del self._sessions[key]
        return len(keys)

    def clear(self) -> None:
        self._sessions.clear()


class PracticeTimeService(BaseService):
    """Commits practice sessions and answers practice-time queries."""

    def __init__(self, sessions: SessionRegistry | None = None) -> None:
        super().__init__("practice_time")
        self.sessions = sessions or SessionRegistry()
        self.repo = BaseRepository()

    async def _initialize_impl(self) -> None:
        await Database.initialize()

    async def _shutdown_impl(self) -> None:
        """Commit sessions still in progress so a restart loses no time."""
        now = int(time.time())
        open_sessions = self.sessions.active()
        for (guild_id, member_id), session in open_sessions.items():
            snapshot = MemberSnapshot(member_id=member_id, guild_id=guild_id, session=session)
            try:
                await self.save_user_time(snapshot, now)
            except Exception as e:
                self.logger.exception(
                    "Failed to commit open session on shutdown",
                    exc_info=e,
                    extra={"guild_id": str(guild_id), "user_id": str(member_id)},
                )
        if open_sessions:
            self.logger.info("Committed %d open session(s) on shutdown", len(open_sessions))

    async def save_user_time(self, snapshot: MemberSnapshot, now: int | None = None) -> int:
        """
        Add the snapshot's elapsed session time to the member's stored total.

        The member's registry entry is left COMMITTED afterwards.

        Args:
            snapshot: Member snapshot carrying an ACTIVE session
            now: Commit timestamp; defaults to the current time

        Returns:
            Seconds added to the total

        Raises:
            ValueError: If the snapshot's session is not active
        """
        now = int(time.time()) if now is None else int(now)
        session = snapshot.session
        elapsed = max(session.elapsed(now), 0)

        async with self.repo.transaction() as db:
            await db.execute(
                """
                INSERT INTO practice_totals (guild_id, user_id, total_seconds, session_count, last_practiced_at)
                VALUES (?, ?, ?, 1, ?)
                ON CONFLICT(guild_id, user_id) DO UPDATE SET
                    total_seconds = total_seconds + excluded.total_seconds,
                    session_count = session_count + 1,
                    last_practiced_at = excluded.last_practiced_at
                """,
                (snapshot.guild_id, snapshot.member_id, elapsed, now),
            )
            await db.execute(
                """
                INSERT INTO practice_sessions (guild_id, user_id, started_at, ended_at, duration_seconds)
                VALUES (?, ?, ?, ?, ?)
                """,
                (snapshot.guild_id, snapshot.member_id, session.started_at, now, elapsed),
            )

        self.sessions.set(snapshot.guild_id, snapshot.member_id, SessionStart.committed())
        self.logger.info(
            "Committed practice session",
            extra={
                "guild_id": str(snapshot.guild_id),
                "user_id": str(snapshot.member_id),
                "elapsed_seconds": elapsed,
            },
        )
        return elapsed

    async def get_user_total(self, guild_id: int, user_id: int) -> int:
        """Total committed practice seconds for a member (0 if none)."""
        value = await self.repo.fetch_value(
            "SELECT total_seconds FROM practice_totals WHERE guild_id = ? AND user_id = ?",
            (guild_id, user_id),
            default=0,
        )
        return int(value or 0)

    async def get_leaderboard(self, guild_id: int, limit: int = 10) -> list[tuple[int, int]]:
        """Top members by total practice time as (user_id, total_seconds)."""
        rows = await self.repo.fetch_all(
            "SELECT user_id, total_seconds FROM practice_totals "
            "WHERE guild_id = ? ORDER BY total_seconds DESC, user_id ASC LIMIT ?",
            (guild_id, limit),
        )
        return [(int(row["user_id"]), int(row["total_seconds"])) for row in rows]

    async def get_recent_sessions(
        self, guild_id: int, user_id: int, limit: int = 5
    ) -> list[dict[str, int]]:
        """Most recent committed sessions for a member, newest first."""
        rows = await self.repo.fetch_all(
            "SELECT started_at, ended_at, duration_seconds FROM practice_sessions "
            "WHERE guild_id = ? AND user_id = ? ORDER BY ended_at DESC, id DESC LIMIT ?",
            (guild_id, user_id, limit),
        )
        return [dict(row) for row in rows]
