"""
Deferred message deletion.

Non-meow messages and the bot's warning reply stay visible for a short grace
period, then both are deleted. Each deletion runs as a tracked background
task so shutdown can cancel whatever is still pending; a cancelled deletion
simply lapses and the message stays in the channel.
"""
import asyncio
from typing import Iterable

import discord

from meowcord.util.logger import get_logger

logger = get_logger("deletion_scheduler")


class DeletionScheduler:
    """
    Fire-and-forget scheduler for delayed message deletion.

    Attributes:
        tasks (set[asyncio.Task]): Deletion tasks that have not finished yet.
    """

    def __init__(self) -> None:
        self.tasks: set[asyncio.Task[None]] = set()

    @property
    def pending_count(self) -> int:
        return len(self.tasks)

    def schedule(self, messages: Iterable[discord.Message | None], delay: float) -> asyncio.Task[None]:
        """
        Delete ``messages`` after ``delay`` seconds.

        ``None`` entries are skipped, so callers can pass a reply that failed
        to send.

        Returns:
            asyncio.Task: The background task performing the deletions.
        """
        targets = [message for message in messages if message is not None]
        task = asyncio.get_running_loop().create_task(
            self._delete_later(targets, delay), name="meowcord-deferred-delete"
        )
        self.tasks.add(task)
        task.add_done_callback(self.tasks.discard)
        return task

    async def _delete_later(self, messages: list[discord.Message], delay: float) -> None:
        if delay > 0:
            await asyncio.sleep(delay)
        for message in messages:
            await self.delete_quietly(message)

    @staticmethod
    async def delete_quietly(message: discord.Message) -> bool:
        """
        Delete a single message, logging and swallowing expected failures.

        Returns:
            bool: True if the message was deleted.
        """
        try:
            await message.delete()
            return True
        except discord.NotFound:
            logger.debug("Message %s was already deleted.", getattr(message, "id", "?"))
        except discord.Forbidden:
            logger.warning("Missing permission to delete message %s.", getattr(message, "id", "?"))
        except discord.HTTPException as exc:
            logger.warning("Failed to delete message %s: %s", getattr(message, "id", "?"), exc)
        return False

    async def shutdown(self) -> None:
        """Cancel every pending deletion and wait for the tasks to unwind."""
        pending = list(self.tasks)
        for task in pending:
            task.cancel()
        for task in pending:
            try:
                await task
            except asyncio.CancelledError:
                pass
        self.tasks.clear()
        if pending:
            logger.info("Cancelled %d pending deletion(s) on shutdown.", len(pending))
