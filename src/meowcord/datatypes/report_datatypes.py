"""
Data structures describing strike standings.

``StrikeEntry`` is one row of the tally map; ``WeeklyReport`` is the summary
announced when the weekly reset fires.
"""

from __future__ import annotations

from dataclasses import dataclass

from meowcord.datatypes.discord_datatypes import UserID


@dataclass(slots=True, frozen=True)
class StrikeEntry:
    """A single user's strike count.

    Attributes:
        user_id: The user the strikes belong to.
        strikes: Number of non-meow messages recorded this week (always >= 0).
    """
    user_id: UserID
    strikes: int


@dataclass(slots=True, frozen=True)
class WeeklyReport:
    """Summary of one week's standings.

    Attributes:
        worst: Entry with the most strikes.
        best: Entry with the fewest strikes, or None when it would not differ
            from ``worst`` (single participant or everyone tied).
        sole_participant: True when exactly one user collected strikes.
        participants: Number of users with at least one strike.
    """
    worst: StrikeEntry
    best: StrikeEntry | None
    sole_participant: bool
    participants: int
