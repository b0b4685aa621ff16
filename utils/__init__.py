"""
Utilities Package

Common utilities and helper functions for the practice room bot.
"""

from .errors import BotError, ConfigError, DatabaseError, ServiceError, UnknownFieldError
from .logging import get_logger, setup_logging
from .types import (
    GuildConfig,
    MemberSnapshot,
    PracticeSettings,
    RoomTier,
    SessionStart,
    SessionTransition,
    TransitionKind,
)

__all__ = [
    "BotError",
    "ConfigError",
    "DatabaseError",
    "GuildConfig",
    "MemberSnapshot",
    "PracticeSettings",
    "RoomTier",
    "ServiceError",
    "SessionStart",
    "SessionTransition",
    "TransitionKind",
    "UnknownFieldError",
    "get_logger",
    "setup_logging",
]
