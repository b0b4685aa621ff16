"""
Services package for the practice room bot.

This package contains service classes that hold the bot's business logic and
data access. Services are organized by domain and wired together by the
ServiceContainer.
"""

from .base import BaseService
from .config_service import ConfigService
from .guild_store import GuildConfigRepository
from .practice_room_service import PracticeRoomService
from .practice_time_service import PracticeTimeService, SessionRegistry
from .room_lock_service import RoomLockService
from .service_container import ServiceContainer

__all__ = [
    "BaseService",
    "ConfigService",
    "GuildConfigRepository",
    "PracticeRoomService",
    "PracticeTimeService",
    "RoomLockService",
    "ServiceContainer",
    "SessionRegistry",
]
