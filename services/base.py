"""
Base service class providing common functionality for all services.
"""

import asyncio
from abc import ABC, abstractmethod
from typing import Any

from utils.errors import ServiceError
from utils.logging import get_logger
from utils.types import ServiceStatus


class BaseService(ABC):
    """
    Abstract base class for all services in the bot.

    Provides logging under ``services.<name>``, a guarded initialize/shutdown
    lifecycle and a health report.
    """

    def __init__(self, name: str) -> None:
        self.name = name
        self.logger = get_logger(f"services.{name}")
        self.status = ServiceStatus.UNINITIALIZED
        self._lock = asyncio.Lock()

    @property
    def _initialized(self) -> bool:
        return self.status is ServiceStatus.READY

    async def initialize(self) -> None:
        """Initialize the service. Ensures single initialization."""
        async with self._lock:
            if self.status is ServiceStatus.READY:
                return

            self.status = ServiceStatus.INITIALIZING
            self.logger.info(f"Initializing {self.name} service")
            try:
                await self._initialize_impl()
            except Exception as e:
                self.status = ServiceStatus.ERROR
                self.logger.exception(
                    "Failed to initialize %s service", self.name, exc_info=e
                )
                raise
            self.status = ServiceStatus.READY
            self.logger.info(f"{self.name} service initialized successfully")

    async def shutdown(self) -> None:
        """Shutdown the service and cleanup resources."""
        if self.status is not ServiceStatus.READY:
            return

        self.logger.info(f"Shutting down {self.name} service")
        try:
            await self._shutdown_impl()
        except Exception as e:
            self.logger.exception(
                "Error during %s service shutdown", self.name, exc_info=e
            )
        finally:
            self.status = ServiceStatus.UNINITIALIZED

    @abstractmethod
    async def _initialize_impl(self) -> None:
        """Subclass-specific initialization logic."""

    async def _shutdown_impl(self) -> None:
        """Subclass-specific shutdown logic. Override if needed."""

    def _ensure_initialized(self) -> None:
        """Raise ServiceError if the service is used before initialize()."""
        if self.status is not ServiceStatus.READY:
            raise ServiceError(f"{self.name} service is not initialized")

    async def health_check(self) -> dict[str, Any]:
        """
        Return health status of this service.

        Returns:
            Dict containing health information
        """
        return {
            "service": self.name,
            "initialized": self._initialized,
            "status": "healthy" if self._initialized else self.status.value,
        }
