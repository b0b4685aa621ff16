"""
Rate-limited queue for Discord API calls that the caller does not wait on.

Workers pull coroutine factories off an asyncio queue and run them under a
shared ``aiolimiter`` budget. Transient 5xx errors are retried with jittered
backoff; anything else is logged and dropped.
"""

import asyncio
import random
from collections.abc import Awaitable, Callable
from typing import Any

import discord
from aiolimiter import AsyncLimiter

from utils.logging import get_logger

logger = get_logger(__name__)

QueuedCall = Callable[[], Awaitable[Any]]

MAX_RETRIES = 3
BASE_DELAY = 0.5


def _is_transient(exc: Exception) -> bool:
    if isinstance(exc, discord.DiscordServerError):
        return True
    if isinstance(exc, discord.HTTPException):
        status = getattr(exc, "status", None)
        return isinstance(status, int) and 500 <= status < 600
    return False


async def run_task(task: QueuedCall) -> Any:
    """
    Execute one queued call, retrying transient Discord server errors.

    Args:
        task: Zero-argument coroutine factory

    Returns:
        The call's result, or None if it ultimately failed
    """
    attempt = 0
    while True:
        try:
            return await task()
        except Exception as e:
            attempt += 1
            if _is_transient(e) and attempt < MAX_RETRIES:
                delay = BASE_DELAY * (2 ** (attempt - 1))
                delay = delay + random.uniform(0, 0.1 * delay)
                logger.warning(
                    f"Transient error in queued task (attempt {attempt}/{MAX_RETRIES}), retrying in {delay:.2f}s: {e}"
                )
                await asyncio.sleep(delay)
                continue

            logger.exception("Exception in task")
            return None


class TaskQueue:
    """Worker pool draining queued Discord calls under a rate limit."""

    def __init__(self, max_rate: float = 45, time_period: float = 1) -> None:
        self._queue: asyncio.Queue[QueuedCall | None] = asyncio.Queue()
        self._limiter = AsyncLimiter(max_rate=max_rate, time_period=time_period)
        self._workers: set[asyncio.Task] = set()

    @property
    def running(self) -> bool:
        return bool(self._workers)

    async def _worker(self) -> None:
        while True:
            task = await self._queue.get()
            if task is None:
                self._queue.task_done()
                logger.info("Worker received shutdown signal.")
                break
            try:
                async with self._limiter:
                    await run_task(task)
            finally:
                self._queue.task_done()

    async def enqueue(self, task: QueuedCall) -> None:
        """Queue a call for a worker to run later."""
        await self._queue.put(task)
        logger.debug("Task enqueued.")

    async def start(self, num_workers: int = 2) -> None:
        for idx in range(num_workers):
            worker = asyncio.create_task(self._worker(), name=f"task_queue_worker_{idx}")
            self._workers.add(worker)
            worker.add_done_callback(self._workers.discard)
        logger.info(f"Started {num_workers} task queue worker(s).")

    async def stop(self) -> None:
        """Signal all workers to exit once queued calls are drained."""
        if not self._workers:
            return

        workers = list(self._workers)
        for _ in workers:
            await self._queue.put(None)

        await self._queue.join()
        await asyncio.gather(*workers, return_exceptions=True)
        self._workers.clear()

    async def join(self) -> None:
        """Wait until every queued call has been processed."""
        await self._queue.join()


__all__ = [
    "TaskQueue",
    "run_task",
]
