"""
Persistent guild configuration store.

Guild configuration is only ever read and written through this repository:
``load``/``save`` for whole records and ``add_to_field``/``remove_from_field``
for single set-valued updates. Nothing is cached in-process; every call hits
SQLite so concurrent events always see the latest committed state.
"""

from utils.errors import UnknownFieldError
from utils.logging import get_logger
from utils.types import OVERFLOW_CHANNELS_FIELD, PERMITTED_CHANNELS_FIELD, GuildConfig

from .db.repository import BaseRepository, parse_snowflake

logger = get_logger(__name__)

STORE_FIELDS = (PERMITTED_CHANNELS_FIELD, OVERFLOW_CHANNELS_FIELD)


def _check_field(field: str) -> None:
    if field not in STORE_FIELDS:
        raise UnknownFieldError(f"Unknown guild config field: {field!r}")


class GuildConfigRepository(BaseRepository):
    """Keyed store for :class:`GuildConfig` records."""

    @staticmethod
    def make_default(guild_id: int) -> GuildConfig:
        """Configuration for a guild seen for the first time."""
        return GuildConfig(guild_id=guild_id)

    async def load(self, guild_id: int) -> GuildConfig | None:
        """Return the stored configuration, or None on first contact."""
        if not await self.exists(
            "SELECT 1 FROM guild_config WHERE guild_id = ?", (guild_id,)
        ):
            return None

        rows = await self.fetch_all(
            "SELECT field, channel_id FROM guild_channels "
            "WHERE guild_id = ? ORDER BY position ASC",
            (guild_id,),
        )

        config = GuildConfig(guild_id=guild_id)
        for row in rows:
            channel_id = parse_snowflake(row["channel_id"])
            if channel_id is None:
                continue
            if row["field"] == PERMITTED_CHANNELS_FIELD:
                if channel_id not in config.permitted_channel_ids:
                    config.permitted_channel_ids.append(channel_id)
            elif row["field"] == OVERFLOW_CHANNELS_FIELD:
                config.overflow_channel_ids.add(channel_id)
            else:
                logger.warning(
                    "Ignoring unknown stored field %r",
                    row["field"],
                    extra={"guild_id": str(guild_id)},
                )
        return config

    async def save(self, config: GuildConfig) -> None:
        """Persist the whole configuration, replacing any stored field rows."""
        async with self.transaction() as db:
            await db.execute(
                "INSERT OR IGNORE INTO guild_config (guild_id) VALUES (?)",
                (config.guild_id,),
            )
            await db.execute(
                "DELETE FROM guild_channels WHERE guild_id = ?", (config.guild_id,)
            )
            rows = [
                (config.guild_id, PERMITTED_CHANNELS_FIELD, channel_id, position)
                for position, channel_id in enumerate(
                    dict.fromkeys(config.permitted_channel_ids)
                )
            ]
            rows.extend(
                (config.guild_id, OVERFLOW_CHANNELS_FIELD, channel_id, position)
                for position, channel_id in enumerate(sorted(config.overflow_channel_ids))
            )
            await db.executemany(
                "INSERT INTO guild_channels (guild_id, field, channel_id, position) "
                "VALUES (?, ?, ?, ?)",
                rows,
            )
        logger.debug(
            "Saved guild config with %d permitted channel(s)",
            len(config.permitted_channel_ids),
            extra={"guild_id": str(config.guild_id)},
        )

    async def add_to_field(self, config: GuildConfig, field: str, value: int) -> None:
        """Append ``value`` to a set-valued field, both in the store and on ``config``."""
        _check_field(field)
        async with self.transaction() as db:
            await db.execute(
                "INSERT OR IGNORE INTO guild_config (guild_id) VALUES (?)",
                (config.guild_id,),
            )
            await db.execute(
                """
                INSERT OR IGNORE INTO guild_channels (guild_id, field, channel_id, position)
                SELECT ?, ?, ?, COALESCE(MAX(position), -1) + 1
                FROM guild_channels WHERE guild_id = ? AND field = ?
                """,
                (config.guild_id, field, value, config.guild_id, field),
            )

        if field == PERMITTED_CHANNELS_FIELD:
            if value not in config.permitted_channel_ids:
                config.permitted_channel_ids.append(value)
        else:
            config.overflow_channel_ids.add(value)

    async def remove_from_field(self, config: GuildConfig, field: str, value: int) -> None:
        """Remove ``value`` from a set-valued field, both in the store and on ``config``."""
        _check_field(field)
        await self.execute(
            "DELETE FROM guild_channels WHERE guild_id = ? AND field = ? AND channel_id = ?",
            (config.guild_id, field, value),
        )

        if field == PERMITTED_CHANNELS_FIELD:
            if value in config.permitted_channel_ids:
                config.permitted_channel_ids.remove(value)
        else:
            config.overflow_channel_ids.discard(value)
