"""
Enforcement of the meow-only rule.

Called for messages that already failed classification in the enforcement
channel. The strike is persisted before the warning is sent, so a crash in
between can lose a visible reply but never a strike.
"""

import discord

from meowcord.datatypes.discord_datatypes import UserID
from meowcord.scheduler.deletion_scheduler import DeletionScheduler
from meowcord.state.meow_state import MeowStateStore
from meowcord.util.logger import get_logger

logger = get_logger("enforcement")


def format_strike_warning(mention: str, strikes: int) -> str:
    """Return the warning posted in reply to a non-meow message."""
    return f"❌ **Meow?!** {mention}, this is a meow-only zone! That's strike **{strikes}** for you! 😾"


class EnforcementHandler:
    """
    Punishes non-meow messages from non-immune users.

    Parameters
    ----------
    store:
        Store holding strike tallies and immunity flags.
    deletion_scheduler:
        Scheduler used to remove the offending message and the warning.
    deletion_delay:
        Seconds both messages stay visible before deletion.
    """

    def __init__(
        self,
        store: MeowStateStore,
        deletion_scheduler: DeletionScheduler,
        deletion_delay: float,
    ) -> None:
        self.store = store
        self.deletion_scheduler = deletion_scheduler
        self.deletion_delay = deletion_delay

    async def handle_non_meow(self, message: discord.Message) -> int | None:
        """Record a strike, warn the author and schedule both messages for deletion.

        Returns
        -------
        int | None
            The author's new strike count, or None when the author is immune.
        """
        user_id = UserID.from_user(message.author)

        if self.store.is_immune(user_id):
            logger.debug("Ignoring non-meow from immune user %s", user_id)
            return None

        strikes = await self.store.add_strike(user_id)
        logger.info("Non-meow from %s in channel %s (strike %d)", message.author, message.channel.id, strikes)

        warning: discord.Message | None = None
        try:
            warning = await message.reply(format_strike_warning(message.author.mention, strikes))
        except discord.HTTPException as exc:
            logger.warning("Failed to send strike warning to %s: %s", user_id, exc)

        self.deletion_scheduler.schedule([message, warning], self.deletion_delay)
        return strikes
