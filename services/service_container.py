"""
Service Container

Central registry for all bot services providing dependency injection and service lifecycle management.
"""

from typing import TYPE_CHECKING, Optional

from helpers.task_queue import TaskQueue
from utils.logging import get_logger

from .config_service import ConfigService
from .guild_store import GuildConfigRepository
from .practice_room_service import PracticeRoomService
from .practice_time_service import PracticeTimeService
from .room_lock_service import RoomLockService

if TYPE_CHECKING:
    from discord.ext.commands import Bot

    from .base import BaseService


class ServiceContainer:
    """
    Central container for managing all bot services.

    Provides a centralized access point for services throughout the bot,
    handles initialization order, and manages service dependencies.
    """

    def __init__(self, bot: Optional["Bot"] = None, task_workers: int = 2) -> None:
        self.logger = get_logger("services.container")
        self.bot = bot
        self.task_workers = task_workers
        self.guild_store = GuildConfigRepository()
        self.task_queue: TaskQueue | None = None
        self._config: ConfigService | None = None
        self._practice_time: PracticeTimeService | None = None
        self._room_lock: RoomLockService | None = None
        self._practice_rooms: PracticeRoomService | None = None
        self._initialized = False

    @property
    def config(self) -> ConfigService:
        """Get the configuration service."""
        if self._config is None:
            raise RuntimeError("ConfigService not initialized")
        return self._config

    @property
    def practice_time(self) -> PracticeTimeService:
        """Get the practice time service."""
        if self._practice_time is None:
            raise RuntimeError("PracticeTimeService not initialized")
        return self._practice_time

    @property
    def room_lock(self) -> RoomLockService:
        """Get the room lock service."""
        if self._room_lock is None:
            raise RuntimeError("RoomLockService not initialized")
        return self._room_lock

    @property
    def practice_rooms(self) -> PracticeRoomService:
        """Get the practice room service."""
        if self._practice_rooms is None:
            raise RuntimeError("PracticeRoomService not initialized")
        return self._practice_rooms

    def get_all_services(self) -> list["BaseService"]:
        """Get all initialized services for health monitoring."""
        candidates = (
            self._config,
            self._practice_time,
            self._room_lock,
            self._practice_rooms,
        )
        return [service for service in candidates if service is not None]

    async def initialize(self) -> None:
        """Initialize all services in dependency order."""
        if self._initialized:
            self.logger.warning("ServiceContainer already initialized")
            return

        try:
            self.logger.info("Initializing services")

            # Config first (no dependencies)
            self._config = ConfigService()
            await self._config.initialize()

            self.task_queue = TaskQueue()
            await self.task_queue.start(num_workers=self.task_workers)

            self._practice_time = PracticeTimeService()
            await self._practice_time.initialize()

            self._room_lock = RoomLockService(self._config)
            await self._room_lock.initialize()

            self._practice_rooms = PracticeRoomService(
                self._config,
                self.guild_store,
                self._practice_time,
                self._room_lock,
                self.task_queue,
                bot=self.bot,
            )
            await self._practice_rooms.initialize()

            self._initialized = True
            self.logger.info("All services initialized successfully")

        except Exception as e:
            self.logger.exception("Failed to initialize services", exc_info=e)
            raise

    async def cleanup(self) -> None:
        """Clean up all services in reverse dependency order."""
        if not self._initialized:
            return

        self.logger.info("Cleaning up services")

        if self._practice_rooms:
            await self._practice_rooms.shutdown()
            self._practice_rooms = None

        if self._room_lock:
            await self._room_lock.shutdown()
            self._room_lock = None

        # Commits open sessions, so it must run while the database is still usable
        if self._practice_time:
            await self._practice_time.shutdown()
            self._practice_time = None

        if self.task_queue:
            await self.task_queue.stop()
            self.task_queue = None

        if self._config:
            await self._config.shutdown()
            self._config = None

        self._initialized = False
        self.logger.info("Services cleaned up")
