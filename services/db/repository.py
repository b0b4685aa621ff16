"""
Base Repository Pattern for Database Access.

Provides a unified interface for database operations, eliminating
repetitive connection/cursor patterns throughout the codebase.

Usage:
    class PracticeRepository(BaseRepository):
        async def get_total(self, guild_id: int, user_id: int) -> int:
            return await self.fetch_value(
                "SELECT total_seconds FROM practice_totals WHERE guild_id = ? AND user_id = ?",
                (guild_id, user_id),
                default=0,
            )
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import TYPE_CHECKING, Any, TypeVar

from .database import Database

if TYPE_CHECKING:
    from aiosqlite import Row

T = TypeVar("T")


class BaseRepository:
    """
    Base class for repository pattern database access.

    Provides common query methods that handle connection management,
    cursor operations, and result processing uniformly.
    """

    @staticmethod
    @asynccontextmanager
    async def transaction():
        """
        Context manager for explicit transaction control.

        Usage:
            async with BaseRepository.transaction() as db:
                await db.execute("INSERT ...", params)
                await db.execute("UPDATE ...", params)
                # Auto-commits on success, rolls back on exception
        """
        async with Database.get_connection() as db:
            try:
                yield db
                await db.commit()
            except Exception:
                await db.rollback()
                raise

    @staticmethod
    async def fetch_one(
        query: str,
        params: tuple[Any, ...] = (),
    ) -> Row | None:
        """
        Execute a query and return a single row.

        Args:
            query: SQL query string with ? placeholders
            params: Query parameters

        Returns:
            Single row or None if not found
        """
        async with Database.get_connection() as db:
            cursor = await db.execute(query, params)
            return await cursor.fetchone()

    @staticmethod
    async def fetch_all(
        query: str,
        params: tuple[Any, ...] = (),
    ) -> list[Row]:
        """
        Execute a query and return all rows.

        Args:
            query: SQL query string with ? placeholders
            params: Query parameters

        Returns:
            List of rows (empty list if none found)
        """
        async with Database.get_connection() as db:
            cursor = await db.execute(query, params)
            return list(await cursor.fetchall())

    @staticmethod
    async def fetch_value(
        query: str,
        params: tuple[Any, ...] = (),
        default: T = None,
    ) -> T | Any:
        """
        Execute a query and return a single value from the first column.

        Args:
            query: SQL query string with ? placeholders
            params: Query parameters
            default: Default value if no row found

        Returns:
            First column value or default
        """
        row = await BaseRepository.fetch_one(query, params)
        return row[0] if row else default

    @staticmethod
    async def execute(
        query: str,
        params: tuple[Any, ...] = (),
        commit: bool = True,
    ) -> int:
        """
        Execute a write query (INSERT, UPDATE, DELETE).

        Args:
            query: SQL query string with ? placeholders
            params: Query parameters
            commit: Whether to auto-commit (default: True)

        Returns:
            Number of rows affected
        """
        async with Database.get_connection() as db:
            cursor = await db.execute(query, params)
            if commit:
                await db.commit()
            return cursor.rowcount

    @staticmethod
    async def exists(
        query: str,
        params: tuple[Any, ...] = (),
    ) -> bool:
        """
        Check if any rows match the query.

        Args:
            query: SQL query (typically SELECT 1 FROM ... WHERE ...)
            params: Query parameters

        Returns:
            True if at least one row exists
        """
        row = await BaseRepository.fetch_one(query, params)
        return row is not None


# -----------------------------------------------------------------------------
# Snowflake ID Utilities
# -----------------------------------------------------------------------------


def parse_snowflake(value: Any) -> int | None:
    """
    Parse a Discord snowflake ID from various input types.

    Handles strings, ints, and None gracefully.

    Args:
        value: Raw ID value (str, int, or None)

    Returns:
        Integer ID or None if invalid
    """
    if value is None:
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


__all__ = [
    "BaseRepository",
    "parse_snowflake",
]
