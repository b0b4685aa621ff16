"""Configuration service for global bot settings."""

import copy
from typing import Any

from config.config_loader import ConfigLoader
from utils.types import PracticeSettings

from .base import BaseService

# Configuration keys
CONFIG_PRACTICE_SECTION = "practice"


class ConfigService(BaseService):
    """
    Service for read access to the YAML configuration.

    Settings are loaded once at initialization from the shared ConfigLoader
    and exposed through dotted-key lookups and typed views.
    """

    def __init__(self, config_loader: ConfigLoader | None = None) -> None:
        super().__init__("config")
        self._global_config: dict[str, Any] = {}
        self._practice_settings = PracticeSettings()
        self._config_loader = config_loader or ConfigLoader()

    async def _initialize_impl(self) -> None:
        """Load global configuration."""
        config = self._config_loader.load_config()
        # Work on a copy so later coercions do not mutate the shared loader cache
        self._global_config = copy.deepcopy(config) if isinstance(config, dict) else {}
        self._practice_settings = PracticeSettings.from_mapping(
            self._global_config.get(CONFIG_PRACTICE_SECTION)
        )

        if self._global_config:
            self.logger.info("Global configuration loaded successfully")
        else:
            self.logger.warning("Global config empty or missing; using defaults")

    async def get_global_setting(self, key: str, default: Any = None) -> Any:
        """
        Look up a global setting by dotted key, e.g. "practice.low_bitrate".

        Args:
            key: Dotted path into the YAML mapping
            default: Value returned when any path segment is missing

        Returns:
            The configured value or default
        """
        value: Any = self._global_config
        for part in key.split("."):
            if not isinstance(value, dict) or part not in value:
                return default
            value = value[part]
        return value

    def get_practice_settings(self) -> PracticeSettings:
        """Typed practice settings; defaults until the service is initialized."""
        return self._practice_settings
