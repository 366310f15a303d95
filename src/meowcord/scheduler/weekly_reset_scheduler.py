"""
Weekly strike report and reset.

Once a week, at a configured weekday and hour, the bot posts the week's
standings to the meow channel and clears every tally. The delay to the next
reset is recomputed from the wall clock before every firing rather than
repeating a flat seven-day interval, so daylight-saving changes do not shift
the reset hour.
"""
import asyncio
from datetime import datetime, time, timedelta, tzinfo
from typing import Callable, Sequence

import discord

from meowcord.datatypes.discord_datatypes import ChannelID
from meowcord.datatypes.report_datatypes import StrikeEntry, WeeklyReport
from meowcord.state.meow_state import MeowStateStore
from meowcord.util.format_utils import format_time_remaining
from meowcord.util.logger import get_logger

logger = get_logger("weekly_reset_scheduler")

DAYS_PER_WEEK = 7

# Long sleeps are split so a wall-clock jump (suspend, NTP correction) is noticed within the hour.
MAX_SLEEP_SECONDS = 3600.0

EMPTY_WEEK_ANNOUNCEMENT = "meow 😺"


def compute_next_reset(now: datetime, weekday: int, hour: int) -> datetime:
    """
    Return the next instant matching ``weekday`` at ``hour``:00.

    If today is the target weekday and the hour has not been reached yet the
    reset is today; once the hour has started it rolls over to next week.

    Args:
        now: Current time. Naive values are treated as local time.
        weekday: Target weekday, 0 = Monday … 6 = Sunday.
        hour: Target hour of day, 0-23.

    Returns:
        datetime: The reset instant, in the same timezone as ``now``.
    """
    days_until = (weekday - now.weekday()) % DAYS_PER_WEEK
    if days_until == 0 and now.hour >= hour:
        days_until = DAYS_PER_WEEK

    target_date = now.date() + timedelta(days=days_until)
    return datetime.combine(target_date, time(hour=hour), tzinfo=now.tzinfo)


def seconds_until(target: datetime, now: datetime) -> float:
    """Return the real elapsed seconds from ``now`` to ``target``, DST-aware for local and zoned times."""
    return target.timestamp() - now.timestamp()


def build_weekly_report(entries: Sequence[StrikeEntry]) -> WeeklyReport | None:
    """
    Summarise a week's strikes.

    Returns:
        WeeklyReport | None: None when nobody collected a strike.
    """
    if not entries:
        return None

    ordered = sorted(entries, key=lambda entry: entry.strikes, reverse=True)
    worst = ordered[0]
    least = ordered[-1]

    best = least if len(ordered) > 1 and least.strikes < worst.strikes else None
    return WeeklyReport(
        worst=worst,
        best=best,
        sole_participant=len(ordered) == 1,
        participants=len(ordered),
    )


def format_weekly_announcement(report: WeeklyReport) -> str:
    """Render the weekly report posted to the meow channel."""
    lines = [
        "📊 **Weekly Meow Report** 📊",
        "",
        f"🙀 **Most Non-Meows:** {report.worst.user_id.mention()} with **{report.worst.strikes}** strike(s)!",
    ]
    if report.best is not None:
        lines.append(
            f"😺 **Fewest Non-Meows:** {report.best.user_id.mention()} with only **{report.best.strikes}** strike(s)!"
        )
    elif report.sole_participant:
        lines.append(f"😺 **Only participant:** {report.worst.user_id.mention()}")

    lines.extend(["", "✨ Tallies have been reset! ✨", "", "meow"])
    return "\n".join(lines)


class WeeklyResetScheduler:
    """
    Background task announcing standings and clearing tallies once a week.

    The scheduler is Idle until :meth:`start` arms it; it then sleeps until the
    next reset instant, fires, and immediately re-arms for the following week.

    Attributes:
        store (MeowStateStore): Source of the tallies to report and clear.
        channel_id (ChannelID | None): Channel receiving the report; None disables it.
        weekday (int): Reset weekday, 0 = Monday.
        hour (int): Reset hour of day.
        timezone (tzinfo | None): Zone the weekday/hour refer to; None for local time.
        bot (discord.Bot | None): Client used to reach the channel, set by :meth:`start`.
    """

    def __init__(
        self,
        store: MeowStateStore,
        channel_id: ChannelID | None,
        weekday: int,
        hour: int,
        timezone: tzinfo | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self.store = store
        self.channel_id = channel_id
        self.weekday = weekday
        self.hour = hour
        self.timezone = timezone
        self.bot: discord.Bot | None = None
        self._clock = clock
        self._task: asyncio.Task[None] | None = None

    # --------------------------
    # Time helpers
    # --------------------------
    def now(self) -> datetime:
        if self._clock is not None:
            return self._clock()
        return datetime.now(self.timezone)

    def next_reset(self, now: datetime | None = None) -> datetime:
        return compute_next_reset(now or self.now(), self.weekday, self.hour)

    def time_until_reset(self) -> float:
        """Return seconds until the next reset."""
        now = self.now()
        return seconds_until(self.next_reset(now), now)

    # --------------------------
    # Lifecycle
    # --------------------------
    @property
    def is_armed(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self, bot: discord.Bot) -> None:
        """Arm the scheduler if it is not already running."""
        if self.is_armed:
            logger.warning("Weekly reset scheduler already armed")
            return
        self.bot = bot
        self._task = asyncio.create_task(self._run_loop(), name="meowcord-weekly-reset")

    async def shutdown(self) -> None:
        """Cancel the pending reset and return to Idle."""
        if self._task and not self._task.done():
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
        self._task = None
        logger.info("Weekly reset scheduler shutdown complete")

    async def _sleep_until(self, target: datetime) -> None:
        remaining = seconds_until(target, self.now())
        while remaining > 0:
            await asyncio.sleep(min(remaining, MAX_SLEEP_SECONDS))
            remaining = seconds_until(target, self.now())

    async def _run_loop(self) -> None:
        last_reset: datetime | None = None
        try:
            while True:
                now = self.now()
                if last_reset is not None and last_reset > now:
                    now = last_reset
                target = self.next_reset(now)
                logger.info(
                    "Next weekly reset at %s (in %s)",
                    target.isoformat(timespec="minutes"),
                    format_time_remaining(seconds_until(target, self.now())),
                )

                await self._sleep_until(target)

                try:
                    await self.fire()
                except asyncio.CancelledError:
                    raise
                except Exception as exc:
                    logger.exception("Weekly reset failed: %s", exc)
                last_reset = target
        except asyncio.CancelledError:
            logger.info("Weekly reset loop cancelled")
            raise

    # --------------------------
    # Firing
    # --------------------------
    async def _resolve_channel(self) -> discord.abc.Messageable | None:
        if self.bot is None or self.channel_id is None:
            return None

        channel_id = self.channel_id.to_int()
        channel = self.bot.get_channel(channel_id)
        if channel is not None:
            return channel

        try:
            return await self.bot.fetch_channel(channel_id)
        except (discord.HTTPException, discord.InvalidData) as exc:
            logger.error("Could not fetch meow channel %s for the weekly report: %s", channel_id, exc)
            return None

    async def fire(self) -> bool:
        """
        Post the weekly report and clear the tallies.

        Tallies are only cleared after the report was sent; if the channel
        cannot be reached or the send fails they are kept for next week. Only
        the reported strikes are cleared, so strikes recorded while the
        report is being sent carry over.

        Returns:
            bool: True if tallies were cleared.
        """
        if self.channel_id is None:
            return False

        channel = await self._resolve_channel()
        if channel is None:
            logger.warning("Skipping weekly report: meow channel %s unavailable", self.channel_id)
            return False

        entries = self.store.sorted_tallies()
        report = build_weekly_report(entries)

        try:
            if report is None:
                await channel.send(EMPTY_WEEK_ANNOUNCEMENT)
                logger.info("Weekly reset: no strikes this week")
                return False
            await channel.send(format_weekly_announcement(report))
        except discord.HTTPException as exc:
            logger.error("Failed to send weekly report to %s; tallies kept: %s", self.channel_id, exc)
            return False

        await self.store.clear_reported(entries)
        logger.info(
            "Weekly reset: reported %d participant(s), worst %s with %d strike(s)",
            report.participants,
            report.worst.user_id,
            report.worst.strikes,
        )
        return True
