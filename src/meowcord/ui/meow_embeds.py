"""
Embed builders for the meow slash commands.
"""

import datetime
from typing import Sequence

import discord

from meowcord.datatypes.report_datatypes import StrikeEntry
from meowcord.util.format_utils import discord_timestamp, format_leaderboard_lines, format_time_remaining

NEXT_RESET_COLOR = discord.Color(0xFF69B4)
LEADERBOARD_COLOR = discord.Color(0xFF0000)


def build_next_reset_embed(next_reset: datetime.datetime, seconds_remaining: float) -> discord.Embed:
    """
    Create the ``/when`` embed.

    Args:
        next_reset: Instant of the next weekly reset.
        seconds_remaining: Seconds from now until ``next_reset``.

    Returns:
        discord.Embed: Embed with the reset date (as a Discord timestamp) and the time remaining.
    """
    embed = discord.Embed(
        title="📅 Next Weekly Reset",
        description="The next reset will occur on:",
        color=NEXT_RESET_COLOR,
        timestamp=datetime.datetime.now(datetime.timezone.utc),
    )
    embed.add_field(name="🕐 Date & Time", value=discord_timestamp(next_reset, "F"), inline=False)
    embed.add_field(name="⏱️ Time Remaining", value=format_time_remaining(seconds_remaining), inline=False)
    embed.set_footer(text="Strikes will be reset and leaderboard announced!")
    return embed


def build_leaderboard_embed(entries: Sequence[StrikeEntry], next_reset: datetime.datetime) -> discord.Embed:
    """
    Create the ``/leaderboard`` embed.

    Rankings go in the description, which allows 4096 characters; a field's
    1024 would not fit 25 mentions.
    """
    rankings = "\n".join(format_leaderboard_lines(entries)) or "No data"
    embed = discord.Embed(
        title="🏆 Strike Leaderboard",
        description=f"Current standings for non-meow violations\n\n{rankings}",
        color=LEADERBOARD_COLOR,
        timestamp=datetime.datetime.now(datetime.timezone.utc),
    )
    embed.set_footer(text=f"Next reset: {next_reset.strftime('%Y-%m-%d')} at {next_reset.strftime('%H:%M')}")
    return embed
