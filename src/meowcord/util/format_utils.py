from datetime import datetime
from typing import List, Sequence

from meowcord.datatypes.report_datatypes import StrikeEntry

SECONDS_PER_MINUTE = 60
SECONDS_PER_HOUR = 60 * SECONDS_PER_MINUTE
SECONDS_PER_DAY = 24 * SECONDS_PER_HOUR

MEDALS = ("🥇", "🥈", "🥉")


def pluralize(count: int, unit: str) -> str:
    """Return ``"1 day"`` / ``"2 days"`` style text."""
    return f"{count} {unit}{'' if count == 1 else 's'}"


def format_time_remaining(seconds: float) -> str:
    """Describe a duration in days, hours and minutes.

    Zero components are omitted; anything under a minute (including negative
    durations) reads ``"less than a minute"``.

    Args:
        seconds: Duration to describe.

    Returns:
        Text such as ``"2 days, 3 hours, 15 minutes"``.
    """
    total = max(0, int(seconds))
    days, remainder = divmod(total, SECONDS_PER_DAY)
    hours, remainder = divmod(remainder, SECONDS_PER_HOUR)
    minutes = remainder // SECONDS_PER_MINUTE

    parts = []
    if days > 0:
        parts.append(pluralize(days, "day"))
    if hours > 0:
        parts.append(pluralize(hours, "hour"))
    if minutes > 0:
        parts.append(pluralize(minutes, "minute"))

    return ", ".join(parts) or "less than a minute"


def discord_timestamp(value: datetime, style: str = "F") -> str:
    """Return Discord's ``<t:epoch:style>`` markup, rendered in each reader's own timezone."""
    return f"<t:{int(value.timestamp())}:{style}>"


def rank_marker(index: int) -> str:
    """Return the medal for the top three (0-based index) and ``"N."`` for everyone else."""
    if index < len(MEDALS):
        return MEDALS[index]
    return f"{index + 1}."


def format_leaderboard_lines(entries: Sequence[StrikeEntry]) -> List[str]:
    """Render leaderboard rows, e.g. ``"🥇 <@123>: **4** strikes"``."""
    return [
        f"{rank_marker(index)} {entry.user_id.mention()}: **{entry.strikes}** strike{'' if entry.strikes == 1 else 's'}"
        for index, entry in enumerate(entries)
    ]
