"""Tests for building the shared runtime."""

from pathlib import Path

import pytest
import yaml

from meowcord.bot.meow_runtime import build_runtime
from meowcord.configuration.app_configuration import AppConfig
from meowcord.datatypes.discord_datatypes import UserID


@pytest.fixture(autouse=True)
def clear_env(monkeypatch):
    monkeypatch.delenv("MEOW_CHANNEL_ID", raising=False)
    monkeypatch.delenv("MEOW_OWNER_IDS", raising=False)


def _config(tmp_path: Path, **overrides) -> AppConfig:
    payload = {
        "meow_channel_id": "999",
        "owner_ids": ["1"],
        "weekly_reset": {"weekday": "sunday", "hour": 9},
        "deletion_delay_seconds": 2,
        "leaderboard_size": 10,
        "data_dir": str(tmp_path / "data"),
    }
    payload.update(overrides)
    path = tmp_path / "app_config.yml"
    path.write_text(yaml.safe_dump(payload), encoding="utf-8")
    return AppConfig(path)


def test_build_runtime_wires_configuration(tmp_path):
    data_dir = tmp_path / "data"
    data_dir.mkdir()
    (data_dir / "tallies.json").write_text('{"5": 2}', encoding="utf-8")

    runtime = build_runtime(_config(tmp_path))

    assert runtime.store.get_strikes(UserID(5)) == 2
    assert runtime.is_enforcement_channel(999)
    assert not runtime.is_enforcement_channel(998)
    assert runtime.is_owner(UserID(1))
    assert not runtime.is_owner(UserID(5))
    assert runtime.leaderboard_size == 10
    assert runtime.enforcement.deletion_delay == 2
    assert runtime.enforcement.deletion_scheduler is runtime.deletion_scheduler
    assert runtime.weekly_scheduler.weekday == 6
    assert runtime.weekly_scheduler.hour == 9
    assert runtime.weekly_scheduler.channel_id == 999


def test_build_runtime_without_channel_disables_enforcement(tmp_path):
    runtime = build_runtime(_config(tmp_path, meow_channel_id="", owner_ids=[]))

    assert runtime.meow_channel_id is None
    assert not runtime.is_enforcement_channel(999)
    assert runtime.weekly_scheduler.channel_id is None
    assert runtime.owner_ids == frozenset()


@pytest.mark.asyncio
async def test_runtime_shutdown_stops_schedulers(runtime):
    runtime.weekly_scheduler.start(object())
    runtime.deletion_scheduler.schedule([], delay=60)

    await runtime.shutdown()

    assert not runtime.weekly_scheduler.is_armed
    assert runtime.deletion_scheduler.pending_count == 0
