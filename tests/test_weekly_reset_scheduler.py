"""Tests for weekly_reset_scheduler module."""

import asyncio
from datetime import datetime, timedelta, timezone
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock, patch
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

import discord
import pytest

from meowcord.datatypes.discord_datatypes import ChannelID, UserID
from meowcord.datatypes.report_datatypes import StrikeEntry
from meowcord.scheduler.weekly_reset_scheduler import (
    EMPTY_WEEK_ANNOUNCEMENT,
    WeeklyResetScheduler,
    build_weekly_report,
    compute_next_reset,
    format_weekly_announcement,
    seconds_until,
)

# 2024-01-01 is a Monday
MONDAY = datetime(2024, 1, 1)
CHANNEL = ChannelID(999)


class FakeClock:
    def __init__(self, start: datetime):
        self.current = start

    def __call__(self) -> datetime:
        return self.current


def _bot_with_channel(channel):
    bot = MagicMock()
    bot.get_channel = MagicMock(return_value=channel)
    bot.fetch_channel = AsyncMock(return_value=channel)
    return bot


def _channel():
    channel = MagicMock()
    channel.send = AsyncMock()
    return channel


async def _add(store, user_id: int, strikes: int) -> None:
    for _ in range(strikes):
        await store.add_strike(UserID(user_id))


class TestComputeNextReset:
    """Tests for compute_next_reset."""

    def test_same_day_before_hour(self):
        assert compute_next_reset(MONDAY.replace(hour=10), 0, 12) == datetime(2024, 1, 1, 12)

    def test_same_day_at_hour_rolls_to_next_week(self):
        assert compute_next_reset(MONDAY.replace(hour=12), 0, 12) == datetime(2024, 1, 8, 12)

    def test_same_day_after_hour_rolls_to_next_week(self):
        assert compute_next_reset(MONDAY.replace(hour=12, minute=30), 0, 12) == datetime(2024, 1, 8, 12)

    def test_mid_week(self):
        wednesday = datetime(2024, 1, 3, 8)
        assert compute_next_reset(wednesday, 0, 12) == datetime(2024, 1, 8, 12)

    def test_sunday_night(self):
        sunday = datetime(2024, 1, 7, 23, 59)
        assert compute_next_reset(sunday, 0, 12) == datetime(2024, 1, 8, 12)

    def test_other_weekday_and_hour(self):
        # Friday 18:00
        assert compute_next_reset(MONDAY.replace(hour=10), 4, 18) == datetime(2024, 1, 5, 18)

    def test_result_is_strictly_in_the_future(self):
        now = datetime(2024, 1, 1, 11, 59, 59)
        assert compute_next_reset(now, 0, 12) > now

    def test_keeps_timezone(self):
        now = datetime(2024, 1, 1, 10, tzinfo=timezone.utc)
        result = compute_next_reset(now, 0, 12)
        assert result == datetime(2024, 1, 1, 12, tzinfo=timezone.utc)
        assert result.tzinfo is timezone.utc

    def test_daylight_saving_keeps_wall_clock_hour(self):
        try:
            zone = ZoneInfo("America/New_York")
        except ZoneInfoNotFoundError:
            pytest.skip("timezone database not available")

        now = datetime(2024, 3, 4, 13, tzinfo=zone)
        target = compute_next_reset(now, 0, 12)

        assert target == datetime(2024, 3, 11, 12, tzinfo=zone)
        # Clocks jump forward on 2024-03-10, so the week is one hour shorter
        assert seconds_until(target, now) == (6 * 24 + 22) * 3600


class TestWeeklyReport:
    """Tests for report building and formatting."""

    def test_empty_tallies_have_no_report(self):
        assert build_weekly_report([]) is None

    def test_worst_and_best(self):
        report = build_weekly_report([StrikeEntry(UserID(2), 2), StrikeEntry(UserID(1), 5)])

        assert report.worst == StrikeEntry(UserID(1), 5)
        assert report.best == StrikeEntry(UserID(2), 2)
        assert report.sole_participant is False
        assert report.participants == 2

    def test_sole_participant(self):
        report = build_weekly_report([StrikeEntry(UserID(1), 1)])

        assert report.best is None
        assert report.sole_participant is True

    def test_everyone_tied_has_no_best(self):
        report = build_weekly_report([StrikeEntry(UserID(1), 2), StrikeEntry(UserID(2), 2)])

        assert report.best is None
        assert report.sole_participant is False

    def test_announcement_names_worst_and_best(self):
        report = build_weekly_report([StrikeEntry(UserID(1), 5), StrikeEntry(UserID(2), 2)])

        text = format_weekly_announcement(report)

        assert text.startswith("📊 **Weekly Meow Report** 📊")
        assert "🙀 **Most Non-Meows:** <@1> with **5** strike(s)!" in text
        assert "😺 **Fewest Non-Meows:** <@2> with only **2** strike(s)!" in text
        assert "✨ Tallies have been reset! ✨" in text
        assert text.endswith("meow")

    def test_announcement_for_sole_participant(self):
        text = format_weekly_announcement(build_weekly_report([StrikeEntry(UserID(1), 1)]))

        assert "😺 **Only participant:** <@1>" in text
        assert "Fewest" not in text


class TestFire:
    """Tests for WeeklyResetScheduler.fire."""

    @pytest.mark.asyncio
    async def test_fire_announces_and_clears(self, store):
        await _add(store, 1, 5)
        await _add(store, 2, 2)
        channel = _channel()
        scheduler = WeeklyResetScheduler(store, CHANNEL, 0, 12)
        scheduler.bot = _bot_with_channel(channel)

        assert await scheduler.fire() is True

        channel.send.assert_awaited_once()
        text = channel.send.await_args.args[0]
        assert "<@1> with **5**" in text
        assert "<@2> with only **2**" in text
        assert store.tallies() == {}

    @pytest.mark.asyncio
    async def test_fire_single_participant(self, store):
        await _add(store, 1, 1)
        channel = _channel()
        scheduler = WeeklyResetScheduler(store, CHANNEL, 0, 12)
        scheduler.bot = _bot_with_channel(channel)

        assert await scheduler.fire() is True

        assert "**Only participant:** <@1>" in channel.send.await_args.args[0]
        assert store.tallies() == {}

    @pytest.mark.asyncio
    async def test_fire_keeps_strikes_recorded_while_sending(self, store):
        await _add(store, 1, 3)
        sending = asyncio.Event()
        release = asyncio.Event()

        async def slow_send(content):
            sending.set()
            await release.wait()

        channel = _channel()
        channel.send.side_effect = slow_send
        scheduler = WeeklyResetScheduler(store, CHANNEL, 0, 12)
        scheduler.bot = _bot_with_channel(channel)

        fire_task = asyncio.create_task(scheduler.fire())
        await asyncio.wait_for(sending.wait(), timeout=5)
        await store.add_strike(UserID(2))
        await store.add_strike(UserID(1))
        release.set()

        assert await asyncio.wait_for(fire_task, timeout=5) is True
        text = channel.send.await_args.args[0]
        assert "<@1> with **3**" in text
        assert "<@2>" not in text
        assert store.tallies() == {"1": 1, "2": 1}

    @pytest.mark.asyncio
    async def test_fire_empty_week_sends_plain_meow(self, store):
        channel = _channel()
        scheduler = WeeklyResetScheduler(store, CHANNEL, 0, 12)
        scheduler.bot = _bot_with_channel(channel)

        assert await scheduler.fire() is False

        channel.send.assert_awaited_once_with(EMPTY_WEEK_ANNOUNCEMENT)

    @pytest.mark.asyncio
    async def test_fire_without_channel_is_skipped(self, store):
        await _add(store, 1, 3)
        bot = MagicMock()
        scheduler = WeeklyResetScheduler(store, None, 0, 12)
        scheduler.bot = bot

        assert await scheduler.fire() is False

        bot.get_channel.assert_not_called()
        assert store.tallies() == {"1": 3}

    @pytest.mark.asyncio
    async def test_fire_fetches_uncached_channel(self, store):
        await _add(store, 1, 2)
        channel = _channel()
        bot = _bot_with_channel(channel)
        bot.get_channel.return_value = None
        scheduler = WeeklyResetScheduler(store, CHANNEL, 0, 12)
        scheduler.bot = bot

        assert await scheduler.fire() is True

        bot.fetch_channel.assert_awaited_once_with(999)
        channel.send.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_fire_unreachable_channel_keeps_tallies(self, store):
        await _add(store, 1, 2)
        bot = _bot_with_channel(None)
        bot.fetch_channel = AsyncMock(
            side_effect=discord.NotFound(SimpleNamespace(status=404, reason="Not Found"), "Unknown Channel")
        )
        scheduler = WeeklyResetScheduler(store, CHANNEL, 0, 12)
        scheduler.bot = bot

        assert await scheduler.fire() is False

        assert store.tallies() == {"1": 2}

    @pytest.mark.asyncio
    async def test_fire_send_failure_keeps_tallies(self, store):
        await _add(store, 1, 2)
        channel = _channel()
        channel.send.side_effect = discord.Forbidden(SimpleNamespace(status=403, reason="Forbidden"), "Missing Access")
        scheduler = WeeklyResetScheduler(store, CHANNEL, 0, 12)
        scheduler.bot = _bot_with_channel(channel)

        assert await scheduler.fire() is False

        assert store.tallies() == {"1": 2}


class TestLifecycle:
    """Tests for arming, the run loop and shutdown."""

    def test_time_until_reset_uses_clock(self, store):
        scheduler = WeeklyResetScheduler(store, CHANNEL, 0, 12, clock=FakeClock(MONDAY.replace(hour=10)))

        assert scheduler.next_reset() == datetime(2024, 1, 1, 12)
        assert scheduler.time_until_reset() == 2 * 3600

    @pytest.mark.asyncio
    async def test_start_arms_once_and_shutdown_disarms(self, store):
        scheduler = WeeklyResetScheduler(store, CHANNEL, 0, 12, clock=FakeClock(MONDAY.replace(hour=10)))
        assert not scheduler.is_armed

        bot = MagicMock()
        scheduler.start(bot)
        task = scheduler._task
        assert scheduler.is_armed
        assert scheduler.bot is bot

        scheduler.start(MagicMock())
        assert scheduler._task is task
        assert scheduler.bot is bot

        await scheduler.shutdown()
        assert not scheduler.is_armed
        assert task.cancelled()

    @pytest.mark.asyncio
    async def test_sleep_until_wakes_at_least_hourly(self, store):
        clock = FakeClock(MONDAY.replace(hour=10))
        scheduler = WeeklyResetScheduler(store, CHANNEL, 0, 12, clock=clock)
        delays = []

        async def fake_sleep(delay):
            delays.append(delay)
            clock.current += timedelta(seconds=delay)

        with patch("meowcord.scheduler.weekly_reset_scheduler.asyncio.sleep", side_effect=fake_sleep):
            await scheduler._sleep_until(MONDAY.replace(hour=12, minute=30))

        assert delays == [3600, 3600, 1800]

    @pytest.mark.asyncio
    async def test_run_loop_fires_at_each_weekly_reset(self, store):
        clock = FakeClock(MONDAY.replace(hour=10))
        scheduler = WeeklyResetScheduler(store, CHANNEL, 0, 12, clock=clock)
        real_sleep = asyncio.sleep
        fire_times = []
        fired_twice = asyncio.Event()

        async def fake_sleep_until(target):
            clock.current = target
            await real_sleep(0)

        async def fake_fire():
            fire_times.append(clock.current)
            if len(fire_times) == 2:
                fired_twice.set()
            return True

        scheduler._sleep_until = fake_sleep_until
        scheduler.fire = fake_fire

        scheduler.start(MagicMock())
        await asyncio.wait_for(fired_twice.wait(), timeout=5)
        await scheduler.shutdown()

        assert fire_times[:2] == [datetime(2024, 1, 1, 12), datetime(2024, 1, 8, 12)]

    @pytest.mark.asyncio
    async def test_run_loop_survives_fire_errors(self, store):
        clock = FakeClock(MONDAY.replace(hour=10))
        scheduler = WeeklyResetScheduler(store, CHANNEL, 0, 12, clock=clock)
        real_sleep = asyncio.sleep
        calls = []
        fired_twice = asyncio.Event()

        async def fake_sleep_until(target):
            clock.current = target
            await real_sleep(0)

        async def failing_fire():
            calls.append(clock.current)
            if len(calls) == 2:
                fired_twice.set()
            raise RuntimeError("boom")

        scheduler._sleep_until = fake_sleep_until
        scheduler.fire = failing_fire

        scheduler.start(MagicMock())
        await asyncio.wait_for(fired_twice.wait(), timeout=5)
        await scheduler.shutdown()

        assert calls[:2] == [datetime(2024, 1, 1, 12), datetime(2024, 1, 8, 12)]
