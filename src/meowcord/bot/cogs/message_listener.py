"""Message listener Cog for Meowcord.

Watches the meow channel and hands every message that is not a valid meow
to the enforcement handler.
"""

import discord
from discord.ext import commands

from meowcord.bot.meow_runtime import MeowRuntime
from meowcord.moderation.meow_classifier import is_valid_meow
from meowcord.util.logger import get_logger

logger = get_logger("message_listener_cog")


class MessageListenerCog(commands.Cog):
    """Cog responsible for enforcing the meow-only rule on new messages."""

    def __init__(self, discord_bot_instance, runtime: MeowRuntime):
        """
        Initialize the message listener cog.

        Parameters
        ----------
        discord_bot_instance:
            The Discord bot instance to attach this cog to.
        runtime:
            Shared store, schedulers and enforcement handler.
        """
        self.bot = discord_bot_instance
        self.runtime = runtime
        logger.info("Message listener cog loaded")

    def _should_enforce(self, message: discord.Message) -> bool:
        """Return True for non-bot guild messages posted in the meow channel."""
        if message.guild is None:
            return False

        if message.author.bot:
            return False

        return self.runtime.is_enforcement_channel(message.channel.id)

    @commands.Cog.listener(name='on_message')
    async def on_message(self, message: discord.Message):
        """
        Classify a new message and punish it if it is not a meow.

        Parameters
        ----------
        message:
            The Discord message that was created.
        """
        if not self._should_enforce(message):
            return

        if is_valid_meow(message.content):
            return

        logger.debug(f"Non-meow from {message.author}: {message.content[:80]!r}")
        try:
            await self.runtime.enforcement.handle_non_meow(message)
        except Exception as e:
            logger.error(f"Error enforcing meow rule on message {message.id}: {e}", exc_info=True)


def setup(discord_bot_instance, runtime: MeowRuntime):
    """Register the MessageListenerCog with the bot."""
    discord_bot_instance.add_cog(MessageListenerCog(discord_bot_instance, runtime))
