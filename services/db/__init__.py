"""
Database Package

Database access layer for the practice room bot.
"""

from .database import Database
from .repository import BaseRepository, parse_snowflake
from .schema import init_schema

__all__ = [
    "BaseRepository",
    "Database",
    "init_schema",
    "parse_snowflake",
]
