"""
Config Factories

Provides factory functions for creating test configuration objects and files.
Use these to test config loading, validation, and defaults.
"""

from __future__ import annotations

import contextlib
import os
import tempfile
from pathlib import Path
from typing import TYPE_CHECKING, Any

import yaml

if TYPE_CHECKING:
    from collections.abc import Generator


def make_config(
    logging_level: str = "INFO",
    database_path: str = "practice_rooms.db",
    practice: dict[str, Any] | None = None,
    extra: dict[str, Any] | None = None,
) -> dict[str, Any]:
    """
    Create a configuration dictionary for testing.

    Args:
        logging_level: Logging level string
        database_path: SQLite file path
        practice: Practice settings dict
        extra: Additional top-level keys to merge

    Returns:
        Complete configuration dictionary.
    """
    config: dict[str, Any] = {
        "logging": {"level": logging_level},
        "database": {"path": database_path},
        "practice": practice
        if practice is not None
        else {
            "chat_channel_name": "practice-room-chat",
            "temp_muted_role": "Temp Muted",
            "low_bitrate": 64000,
            "overflow_bitrate": 256000,
        },
    }
    if extra:
        config.update(extra)
    return config


@contextlib.contextmanager
def temp_config_file(
    config: dict[str, Any] | None = None,
    content: str | None = None,
) -> Generator[str, None, None]:
    """
    Create a temporary config file for testing.

    Args:
        config: Configuration dictionary to write as YAML
        content: Raw string content (overrides config dict)

    Yields:
        Path to the temporary config file.
    """
    fd, path = tempfile.mkstemp(suffix=".yaml")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            if content is not None:
                f.write(content)
            else:
                yaml.safe_dump(config if config is not None else make_config(), f)
        yield path
    finally:
        with contextlib.suppress(Exception):
            Path(path).unlink()
