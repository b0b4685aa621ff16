"""
Centralized Discord API calls that run through the task queue.

Callers enqueue and move on; failures are logged by the queue worker.
"""

import discord

from helpers.task_queue import TaskQueue
from utils.logging import get_logger

logger = get_logger(__name__)


async def delete_channel(
    queue: TaskQueue, channel: discord.abc.GuildChannel, reason: str | None = None
) -> None:
    async def _task() -> None:
        try:
            await channel.delete(reason=reason)
            logger.info(
                f"Deleted channel '{channel.name}' successfully.",
                extra={"channel_id": str(channel.id)},
            )
        except discord.NotFound:
            logger.warning(
                f"Channel '{channel.id}' not found. It may have already been deleted."
            )
        except discord.Forbidden:
            logger.exception(f"Bot lacks permissions to delete channel '{channel.id}'.")

    try:
        await queue.enqueue(_task)
    except Exception:
        logger.exception(f"Failed to enqueue delete task for channel '{channel.id}'")
