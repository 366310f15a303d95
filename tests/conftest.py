"""
Pytest configuration and fixtures for Meowcord tests.
"""

import sys
from datetime import datetime
from pathlib import Path
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import pytest

# Add src directory to path so imports work
src_path = Path(__file__).parent.parent / "src"
sys.path.insert(0, str(src_path))

from meowcord.bot.meow_runtime import MeowRuntime  # noqa: E402
from meowcord.datatypes.discord_datatypes import ChannelID, UserID  # noqa: E402
from meowcord.moderation.enforcement import EnforcementHandler  # noqa: E402
from meowcord.scheduler.deletion_scheduler import DeletionScheduler  # noqa: E402
from meowcord.scheduler.weekly_reset_scheduler import WeeklyResetScheduler  # noqa: E402
from meowcord.state.meow_state import MeowStateStore  # noqa: E402

MEOW_CHANNEL = 999
OWNER_ID = 1
# 2024-01-01 is a Monday
FIXED_NOW = datetime(2024, 1, 1, 10, 0)


@pytest.fixture
def store(tmp_path):
    """A store backed by files in a temporary directory, already loaded (empty)."""
    state = MeowStateStore(tmp_path / "tallies.json", tmp_path / "immune.json")
    state.load()
    return state


@pytest.fixture
def runtime(store):
    """Runtime guarding channel 999 with user 1 as owner and a frozen Monday 10:00 clock."""
    deletion_scheduler = DeletionScheduler()
    return MeowRuntime(
        store=store,
        enforcement=EnforcementHandler(store, deletion_scheduler, 0),
        deletion_scheduler=deletion_scheduler,
        weekly_scheduler=WeeklyResetScheduler(
            store, ChannelID(MEOW_CHANNEL), weekday=0, hour=12, clock=lambda: FIXED_NOW
        ),
        meow_channel_id=ChannelID(MEOW_CHANNEL),
        owner_ids=frozenset({UserID(OWNER_ID)}),
    )


def _make_message(content: str = "hello", *, author_id: int = 111, channel_id: int = MEOW_CHANNEL, bot: bool = False, guild: bool = True):
    author = SimpleNamespace(id=author_id, bot=bot, mention=f"<@{author_id}>")
    message = MagicMock()
    message.id = 5000 + author_id
    message.content = content
    message.author = author
    message.channel = SimpleNamespace(id=channel_id)
    message.guild = SimpleNamespace(id=1) if guild else None
    message.delete = AsyncMock()
    message.reply = AsyncMock(return_value=SimpleNamespace(id=7000, delete=AsyncMock()))
    return message


@pytest.fixture
def make_message():
    """Factory for fake discord.Message objects with async reply/delete."""
    return _make_message
