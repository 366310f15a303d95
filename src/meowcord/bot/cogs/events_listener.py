"""Lifecycle cog for Meowcord.

On the first ready event the slash commands are published; every ready event
(re)arms the weekly reset and refreshes the bot's presence. Errors raised by
slash commands are logged and answered with a private apology.
"""

import discord
from discord.ext import commands

from meowcord.bot.meow_runtime import MeowRuntime
from meowcord.util.logger import get_logger

logger = get_logger("events_listener_cog")

COMMAND_FAILED_MESSAGE = "😿 Something went wrong while running this command."


class EventsListenerCog(commands.Cog):
    """Ready handling, command registration and slash command error replies."""

    def __init__(self, discord_bot_instance, runtime: MeowRuntime):
        self.bot = discord_bot_instance
        self.runtime = runtime
        self._commands_registered = False

    @commands.Cog.listener(name="on_ready")
    async def on_ready(self):
        """Publish commands once, arm the weekly reset and update presence.

        Discord fires ``on_ready`` again after a reconnect. Registration is
        attempted once per process, successful or not; ``start`` ignores an
        already armed scheduler.
        """
        user = self.bot.user
        logger.info("Ready as %s (ID: %s)", user, getattr(user, "id", "?"))

        if not self._commands_registered:
            self._commands_registered = True
            await self._register_commands()

        self.runtime.weekly_scheduler.start(self.bot)
        await self._update_presence()

    async def _register_commands(self) -> None:
        try:
            await self.bot.sync_commands()
        except Exception as exc:
            logger.error("Slash command registration failed: %s", exc)
            return
        logger.info("Slash commands registered.")

    async def _update_presence(self) -> None:
        guarding = self.runtime.meow_channel_id is not None
        activity = discord.Activity(
            type=discord.ActivityType.watching,
            name="for non-meows 😼" if guarding else "for a meow channel to guard",
        )
        try:
            await self.bot.change_presence(
                status=discord.Status.online if guarding else discord.Status.idle,
                activity=activity,
            )
        except Exception as exc:
            logger.warning("Could not update presence: %s", exc)

    @commands.Cog.listener(name="on_application_command_error")
    async def on_application_command_error(self, ctx: discord.ApplicationContext, error: Exception):
        name = getattr(ctx.command, "name", "<unknown>")
        logger.error("/%s failed: %s", name, error, exc_info=error)

        # respond() switches to a followup once the interaction already has a response
        try:
            await ctx.respond(COMMAND_FAILED_MESSAGE, ephemeral=True)
        except discord.HTTPException as exc:
            logger.warning("Could not report the /%s failure to the user: %s", name, exc)


def setup(discord_bot_instance, runtime: MeowRuntime):
    discord_bot_instance.add_cog(EventsListenerCog(discord_bot_instance, runtime))
