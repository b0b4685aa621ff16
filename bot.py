import os
import time

import discord
from discord.ext import commands
from dotenv import load_dotenv

from config.config_loader import ConfigLoader
from utils.logging import get_logger

# Initialize logger
logger = get_logger(__name__)

# Load environment variables
load_dotenv()

# Load configuration using ConfigLoader
config = ConfigLoader.load_config()

# Configure intents - start from none and enable only what's required
intents = discord.Intents.none()
intents.guilds = True  # Required: Guild events, channels, roles
intents.members = True  # Required: Role updates for practice chat access
intents.voice_states = True  # Required: Voice channel join/leave for practice rooms

# List of initial extensions to load
initial_extensions = [
    "cogs.practice.events",
]


class PracticeBot(commands.Bot):
    """Bot with project-specific attributes and helpers."""

    def __init__(self, *args, **kwargs) -> None:
        super().__init__(*args, **kwargs)

        # Assign the entire config to the bot instance
        self.config = config

        # Initialize uptime tracking
        self.start_time = time.monotonic()
        self.services = None

    async def setup_hook(self) -> None:
        """Initialize the database and services, then load cogs."""
        # Initialize the database
        from services.db.database import Database

        await Database.initialize()

        # Initialize services container
        from services.service_container import ServiceContainer

        self.services = ServiceContainer(self)
        await self.services.initialize()
        logger.info("ServiceContainer initialized")

        for extension in initial_extensions:
            try:
                await self.load_extension(extension)
                logger.info(f"Loaded extension: {extension}")
            except Exception as e:
                logger.exception(f"Failed to load extension {extension}", exc_info=e)
                raise

    async def on_ready(self) -> None:
        logger.info(
            f"Logged in as {self.user} (ID: {getattr(self.user, 'id', '?')}) "
            f"in {len(self.guilds)} guild(s)"
        )

    def uptime(self) -> str:
        """Uptime as H:MM:SS."""
        elapsed = int(time.monotonic() - self.start_time)
        hours, remainder = divmod(elapsed, 3600)
        minutes, seconds = divmod(remainder, 60)
        return f"{hours}:{minutes:02d}:{seconds:02d}"

    async def close(self) -> None:
        """
        Closes the bot and cleans up all resources.
        """
        logger.info("Shutting down the bot.")

        # Cleanup services (commits open practice sessions)
        if self.services:
            try:
                await self.services.cleanup()
                logger.info("Services cleaned up")
            except Exception as e:
                logger.exception("Error cleaning up services", exc_info=e)

        # Call parent close
        await super().close()


def main() -> None:
    # Load sensitive information from .env
    token = os.getenv("DISCORD_TOKEN")
    if not token:
        logger.critical("DISCORD_TOKEN not found in environment variables.")
        raise ValueError("DISCORD_TOKEN not set.")

    bot = PracticeBot(command_prefix=commands.when_mentioned, intents=intents)
    bot.run(token, log_handler=None)


if __name__ == "__main__":
    main()
