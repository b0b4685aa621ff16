"""
Test Factories Module

Centralized factory functions for creating test objects.
Provides DRY utilities for Discord mocks, config fixtures, and DB seeding.
"""

from .config_factories import (
    make_config,
    temp_config_file,
)
from .db_factories import (
    seed_guild_config,
    seed_room_lock,
)
from .discord_factories import (
    FakeBot,
    FakeCategory,
    FakeGuild,
    FakeMember,
    FakeRole,
    FakeTextChannel,
    FakeVoiceChannel,
    FakeVoiceState,
    join_voice,
    leave_voice,
    make_guild,
    make_member,
    make_voice_channel,
)

__all__ = [
    "FakeBot",
    "FakeCategory",
    "FakeGuild",
    "FakeMember",
    "FakeRole",
    "FakeTextChannel",
    "FakeVoiceChannel",
    "FakeVoiceState",
    "join_voice",
    "leave_voice",
    "make_config",
    "make_guild",
    "make_member",
    "make_voice_channel",
    "seed_guild_config",
    "seed_room_lock",
    "temp_config_file",
]
