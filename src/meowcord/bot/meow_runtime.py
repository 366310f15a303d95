"""
Shared runtime state for the meow bot.

One ``MeowRuntime`` is built at startup from the application configuration
and handed to every cog, so the store, the schedulers and the enforcement
handler exist exactly once per process.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from meowcord.configuration.app_configuration import AppConfig
from meowcord.datatypes.discord_datatypes import ChannelID, UserID
from meowcord.moderation.enforcement import EnforcementHandler
from meowcord.scheduler.deletion_scheduler import DeletionScheduler
from meowcord.scheduler.weekly_reset_scheduler import WeeklyResetScheduler
from meowcord.state.meow_state import MeowStateStore
from meowcord.util.logger import get_logger

logger = get_logger("meow_runtime")


@dataclass(slots=True)
class MeowRuntime:
    """Components shared by the cogs and the console.

    Attributes:
        store: Strike tallies and immunity flags.
        enforcement: Handler punishing non-meow messages.
        deletion_scheduler: Pending deferred deletions.
        weekly_scheduler: Weekly report and reset task.
        meow_channel_id: Enforcement channel; None disables enforcement.
        owner_ids: Users allowed to run owner-only commands.
        leaderboard_size: Maximum rows shown by ``/leaderboard``.
    """
    store: MeowStateStore
    enforcement: EnforcementHandler
    deletion_scheduler: DeletionScheduler
    weekly_scheduler: WeeklyResetScheduler
    meow_channel_id: ChannelID | None = None
    owner_ids: frozenset[UserID] = field(default_factory=frozenset)
    leaderboard_size: int = 25

    def is_owner(self, user_id: UserID) -> bool:
        return user_id in self.owner_ids

    def is_enforcement_channel(self, channel_id: int) -> bool:
        return self.meow_channel_id is not None and self.meow_channel_id == channel_id

    async def shutdown(self) -> None:
        """Stop the weekly task and drop pending deletions."""
        await self.weekly_scheduler.shutdown()
        await self.deletion_scheduler.shutdown()


def build_runtime(config: AppConfig) -> MeowRuntime:
    """Create the store, schedulers and handler described by ``config`` and load persisted state."""
    store = MeowStateStore(config.tally_file, config.immune_file)
    store.load()

    deletion_scheduler = DeletionScheduler()
    channel_id = config.meow_channel_id
    if channel_id is None:
        logger.warning("No meow channel configured; enforcement and weekly reports are disabled.")

    owner_ids = config.owner_ids
    if not owner_ids:
        logger.warning("No owner ids configured; owner-only commands will reject everyone.")

    return MeowRuntime(
        store=store,
        enforcement=EnforcementHandler(store, deletion_scheduler, config.deletion_delay_seconds),
        deletion_scheduler=deletion_scheduler,
        weekly_scheduler=WeeklyResetScheduler(
            store,
            channel_id,
            weekday=config.reset_weekday,
            hour=config.reset_hour,
            timezone=config.reset_timezone,
        ),
        meow_channel_id=channel_id,
        owner_ids=owner_ids,
        leaderboard_size=config.leaderboard_size,
    )
