"""
Canonical schema definition (version=1).

Schema definitions for the practice room bot's database. This module centralizes
all table creation logic to ensure consistency and avoid duplication.
"""

import aiosqlite

from utils.logging import get_logger

logger = get_logger(__name__)

SCHEMA_VERSION = 1


async def init_schema(db: aiosqlite.Connection) -> None:
    """
    Initialize the database schema with all required tables.

    Args:
        db: An open database connection
    """
    await db.execute("PRAGMA foreign_keys=ON")

    # Schema migrations tracking (single canonical version)
    await db.execute(
        """
        CREATE TABLE IF NOT EXISTS schema_migrations (
            version INTEGER PRIMARY KEY,
            applied_at INTEGER DEFAULT (strftime('%s','now'))
        )
        """
    )
    await db.execute(
        """
        INSERT OR IGNORE INTO schema_migrations (version, applied_at)
        VALUES (?, strftime('%s','now'))
        """,
        (SCHEMA_VERSION,),
    )

    # One row per guild the bot has made first contact with
    await db.execute(
        """
        CREATE TABLE IF NOT EXISTS guild_config (
            guild_id INTEGER PRIMARY KEY,
            created_at INTEGER DEFAULT (strftime('%s','now'))
        )
        """
    )

    # Set-valued guild fields (permitted_channels, overflow_channels).
    # position preserves insertion order within a field.
    await db.execute(
        """
        CREATE TABLE IF NOT EXISTS guild_channels (
            guild_id INTEGER NOT NULL,
            field TEXT NOT NULL,
            channel_id INTEGER NOT NULL,
            position INTEGER NOT NULL,
            PRIMARY KEY (guild_id, field, channel_id),
            FOREIGN KEY (guild_id) REFERENCES guild_config(guild_id) ON DELETE CASCADE
        )
        """
    )
    await db.execute(
        "CREATE INDEX IF NOT EXISTS idx_guild_channels_order ON guild_channels(guild_id, field, position)"
    )

    # Accumulated practice time per member
    await db.execute(
        """
        CREATE TABLE IF NOT EXISTS practice_totals (
            guild_id INTEGER NOT NULL,
            user_id INTEGER NOT NULL,
            total_seconds INTEGER NOT NULL DEFAULT 0,
            session_count INTEGER NOT NULL DEFAULT 0,
            last_practiced_at INTEGER,
            PRIMARY KEY (guild_id, user_id)
        )
        """
    )
    await db.execute(
        "CREATE INDEX IF NOT EXISTS idx_practice_totals_rank ON practice_totals(guild_id, total_seconds DESC)"
    )

    # Committed sessions, one row per commit
    await db.execute(
        """
        CREATE TABLE IF NOT EXISTS practice_sessions (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            guild_id INTEGER NOT NULL,
            user_id INTEGER NOT NULL,
            started_at INTEGER NOT NULL,
            ended_at INTEGER NOT NULL,
            duration_seconds INTEGER NOT NULL
        )
        """
    )
    await db.execute(
        "CREATE INDEX IF NOT EXISTS idx_practice_sessions_user ON practice_sessions(guild_id, user_id, ended_at)"
    )

    # Practice room locks (one owner per room)
    await db.execute(
        """
        CREATE TABLE IF NOT EXISTS room_locks (
            guild_id INTEGER NOT NULL,
            channel_id INTEGER PRIMARY KEY,
            owner_id INTEGER NOT NULL,
            locked_at INTEGER DEFAULT (strftime('%s','now'))
        )
        """
    )
    await db.execute(
        "CREATE INDEX IF NOT EXISTS idx_room_locks_owner ON room_locks(guild_id, owner_id)"
    )

    logger.debug("Schema version %s ensured", SCHEMA_VERSION)
