"""
Meow commands cog: slash commands for strikes, immunity and the weekly reset.

Commands
- ``/immune``: owner only; toggles the invoker's own immunity.
- ``/reset``: clears a user's strikes.
- ``/when``: shows when the next weekly reset happens (public reply).
- ``/leaderboard``: owner only; shows current standings.

Every reply except ``/when`` is ephemeral. Owner-only commands reject other
users with an ephemeral message and change nothing.
"""

import discord
from discord import Option
from discord.ext import commands

from meowcord.bot.meow_runtime import MeowRuntime
from meowcord.datatypes.discord_datatypes import UserID
from meowcord.ui.meow_embeds import build_leaderboard_embed, build_next_reset_embed
from meowcord.util.logger import get_logger

logger = get_logger("meow_cmds")

OWNER_ONLY_MESSAGE = "❌ Only the bot owner can use this command!"
NOW_IMMUNE_MESSAGE = "✅ You are now immune to meow enforcement!"
NO_LONGER_IMMUNE_MESSAGE = "🚫 You are no longer immune to meow enforcement!"
NO_STRIKES_RECORDED_MESSAGE = "✅ No strikes recorded yet! Everyone is being good meowers! 😺"


class MeowCommandsCog(commands.Cog):
    """Cog containing the meow bot's slash commands."""

    def __init__(self, discord_bot_instance, runtime: MeowRuntime):
        """
        Parameters
        ----------
        discord_bot_instance:
            Active :class:`discord.Bot` instance.
        runtime:
            Shared store and weekly scheduler.
        """
        self.discord_bot_instance = discord_bot_instance
        self.runtime = runtime
        logger.info("Meow commands cog loaded")

    async def ensure_owner(self, ctx: discord.ApplicationContext) -> bool:
        """Return True if the invoker is an owner; otherwise reply with a private rejection."""
        if self.runtime.is_owner(UserID.from_user(ctx.user)):
            return True
        logger.info("Rejected owner-only command from %s", ctx.user)
        await ctx.respond(OWNER_ONLY_MESSAGE, ephemeral=True)
        return False

    @commands.slash_command(name="immune", description="Toggle immunity from meow enforcement (owner only)")
    async def immune(self, ctx: discord.ApplicationContext) -> None:
        """Flip the invoker's immunity. Existing strikes are not touched."""
        if not await self.ensure_owner(ctx):
            return

        immune = await self.runtime.store.toggle_immunity(UserID.from_user(ctx.user))
        await ctx.respond(NOW_IMMUNE_MESSAGE if immune else NO_LONGER_IMMUNE_MESSAGE, ephemeral=True)

    @commands.slash_command(name="reset", description="Reset a user's strikes")
    async def reset(
        self,
        ctx: discord.ApplicationContext,
        user: Option(discord.User, "The user whose strikes to reset", required=True),  # type: ignore
    ) -> None:
        """Forget every strike the target user collected this week."""
        previous = await self.runtime.store.reset_strikes(UserID.from_user(user))
        if previous:
            await ctx.respond(f"✅ Reset **{previous}** strike(s) for {user}", ephemeral=True)
        else:
            await ctx.respond(f"ℹ️ {user} has no strikes to reset.", ephemeral=True)

    @commands.slash_command(name="when", description="Check when the next weekly reset will occur")
    async def when(self, ctx: discord.ApplicationContext) -> None:
        """Show the next reset instant and how long until it."""
        scheduler = self.runtime.weekly_scheduler
        now = scheduler.now()
        next_reset = scheduler.next_reset(now)
        seconds_remaining = next_reset.timestamp() - now.timestamp()
        await ctx.respond(embed=build_next_reset_embed(next_reset, seconds_remaining))

    @commands.slash_command(name="leaderboard", description="View the current strike leaderboard (owner only)")
    async def leaderboard(self, ctx: discord.ApplicationContext) -> None:
        """Show the top strike holders."""
        if not await self.ensure_owner(ctx):
            return

        entries = self.runtime.store.sorted_tallies(limit=self.runtime.leaderboard_size)
        if not entries:
            await ctx.respond(NO_STRIKES_RECORDED_MESSAGE, ephemeral=True)
            return

        embed = build_leaderboard_embed(entries, self.runtime.weekly_scheduler.next_reset())
        await ctx.respond(embed=embed, ephemeral=True)


def setup(discord_bot_instance, runtime: MeowRuntime) -> None:
    """Register the MeowCommandsCog with the bot."""
    discord_bot_instance.add_cog(MeowCommandsCog(discord_bot_instance, runtime))
