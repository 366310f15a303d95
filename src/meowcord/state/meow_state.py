"""
Persistent strike tallies and immunity flags.

Responsibilities:
- Own the two in-memory maps (user id -> strike count, user id -> immune flag)
- Load both from JSON files at startup, tolerating missing or corrupt files
- Write the affected map through to disk after every mutation

Every mutation runs under one ``asyncio.Lock`` so a read-modify-write-persist
sequence is never interleaved with another mutation.
"""

from __future__ import annotations

import asyncio
import json
import os
from pathlib import Path
from typing import Any, Dict, Iterable, List

from meowcord.datatypes.discord_datatypes import UserID
from meowcord.datatypes.report_datatypes import StrikeEntry
from meowcord.util.logger import get_logger

logger = get_logger("meow_state")


def read_json_map(path: Path, label: str) -> Dict[str, Any]:
    """Read a flat JSON object from ``path``.

    Returns an empty mapping when the file does not exist, cannot be read, is
    not valid JSON or is not a JSON object. Failures are logged; the next save
    overwrites the bad file.
    """
    try:
        with path.open("r", encoding="utf-8") as f:
            data = json.load(f)
    except FileNotFoundError:
        logger.info("[MEOW STATE] No %s file at %s; starting empty.", label, path)
        return {}
    except (OSError, ValueError) as exc:
        logger.error("[MEOW STATE] Failed to load %s from %s: %s", label, path, exc)
        return {}

    if not isinstance(data, dict):
        logger.error("[MEOW STATE] %s file %s does not hold a JSON object; starting empty.", label, path)
        return {}
    return data


def write_json_map(path: Path, data: Dict[str, Any], label: str) -> bool:
    """Atomically replace ``path`` with ``data`` as pretty-printed JSON.

    Returns False (after logging) when the write fails; the caller's
    in-memory state is left untouched either way.
    """
    tmp_path = path.with_name(path.name + ".tmp")
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        with tmp_path.open("w", encoding="utf-8") as f:
            json.dump(data, f, indent=2)
        os.replace(tmp_path, path)
        return True
    except (OSError, TypeError, ValueError) as exc:
        logger.error("[MEOW STATE] Failed to save %s to %s: %s", label, path, exc)
        return False


class MeowStateStore:
    """
    Store for strike tallies and immunity flags.

    The in-memory maps are the source of truth; the JSON files are a
    write-through copy used to survive restarts. Reads are plain lookups,
    mutations are coroutines that take the store lock, change the map and
    persist it before releasing the lock.

    Attributes:
        tally_path (Path): JSON file holding ``{user_id: strikes}``.
        immune_path (Path): JSON file holding ``{user_id: true}``.
    """

    def __init__(self, tally_path: Path, immune_path: Path) -> None:
        self.tally_path = Path(tally_path)
        self.immune_path = Path(immune_path)
        self._tallies: Dict[str, int] = {}
        self._immune: Dict[str, bool] = {}
        self._lock = asyncio.Lock()

    # --------------------------
    # Loading
    # --------------------------
    def load(self) -> None:
        """Create the data directories and load both maps, replacing whatever is in memory."""
        for directory in {self.tally_path.parent, self.immune_path.parent}:
            try:
                directory.mkdir(parents=True, exist_ok=True)
            except OSError as exc:
                logger.error("[MEOW STATE] Could not create data directory %s: %s", directory, exc)
        self._tallies = self._coerce_tallies(read_json_map(self.tally_path, "tallies"))
        self._immune = self._coerce_immune(read_json_map(self.immune_path, "immune users"))
        logger.info(
            "[MEOW STATE] Loaded %d tallies and %d immune users",
            len(self._tallies),
            len(self._immune),
        )

    @staticmethod
    def _user_key(key: Any) -> str | None:
        """Return ``key`` in the canonical ``UserID`` form, or None if it is not a user id.

        Every lookup goes through ``str(UserID(...))``, so stored keys are
        normalised the same way on load: ``"007"`` or ``" 7 "`` becomes ``"7"``.
        Keys that are not non-negative integers could never match a Discord
        user and are dropped.
        """
        try:
            return str(UserID(key))
        except ValueError:
            logger.warning("[MEOW STATE] Dropping entry with invalid user id %r", key)
            return None

    @classmethod
    def _coerce_tallies(cls, raw: Dict[str, Any]) -> Dict[str, int]:
        tallies: Dict[str, int] = {}
        for key, value in raw.items():
            if isinstance(value, bool) or not isinstance(value, int) or value < 0:
                logger.warning("[MEOW STATE] Dropping invalid tally %r -> %r", key, value)
                continue
            user_key = cls._user_key(key)
            if user_key is not None and value > 0:
                tallies[user_key] = value
        return tallies

    @classmethod
    def _coerce_immune(cls, raw: Dict[str, Any]) -> Dict[str, bool]:
        immune: Dict[str, bool] = {}
        for key, value in raw.items():
            user_key = cls._user_key(key) if value is True else None
            if user_key is not None:
                immune[user_key] = True
        return immune

    # --------------------------
    # Persistence
    # --------------------------
    def _save_tallies(self) -> bool:
        return write_json_map(self.tally_path, self._tallies, "tallies")

    def _save_immune(self) -> bool:
        return write_json_map(self.immune_path, self._immune, "immune users")

    # --------------------------
    # Strike tallies
    # --------------------------
    def get_strikes(self, user_id: UserID) -> int:
        return self._tallies.get(str(user_id), 0)

    def tallies(self) -> Dict[str, int]:
        """Return a snapshot copy of the tally map."""
        return dict(self._tallies)

    def sorted_tallies(self, limit: int | None = None) -> List[StrikeEntry]:
        """Return tally entries sorted by strike count, highest first.

        Ties keep the order in which users first collected a strike.
        """
        ordered = sorted(self._tallies.items(), key=lambda item: item[1], reverse=True)
        if limit is not None:
            ordered = ordered[:limit]
        return [StrikeEntry(user_id=UserID(user_id), strikes=strikes) for user_id, strikes in ordered]

    async def add_strike(self, user_id: UserID) -> int:
        """Record one strike for ``user_id`` and return the new count."""
        async with self._lock:
            key = str(user_id)
            count = self._tallies.get(key, 0) + 1
            self._tallies[key] = count
            self._save_tallies()
        logger.debug("[MEOW STATE] User %s now has %d strike(s)", user_id, count)
        return count

    async def reset_strikes(self, user_id: UserID) -> int | None:
        """Forget ``user_id``'s strikes.

        Returns:
            int | None: The strike count that was removed, or None if the user had none.
        """
        async with self._lock:
            previous = self._tallies.pop(str(user_id), None)
            if previous is not None:
                self._save_tallies()
        if previous is not None:
            logger.info("[MEOW STATE] Reset %d strike(s) for user %s", previous, user_id)
        return previous

    async def clear_reported(self, entries: Iterable[StrikeEntry]) -> int:
        """Take the reported strikes off the tallies (weekly reset).

        Each entry's count is subtracted rather than the whole map being
        wiped, so strikes recorded after the report was built carry over to
        the next week.

        Returns:
            int: Number of users whose tally reached zero and was removed.
        """
        removed = 0
        async with self._lock:
            for entry in entries:
                key = str(entry.user_id)
                remaining = self._tallies.get(key, 0) - entry.strikes
                if remaining > 0:
                    self._tallies[key] = remaining
                elif self._tallies.pop(key, None) is not None:
                    removed += 1
            self._save_tallies()
        logger.info(
            "[MEOW STATE] Cleared reported tallies for %d user(s), %d carried over",
            removed,
            len(self._tallies),
        )
        return removed

    # --------------------------
    # Immunity
    # --------------------------
    def is_immune(self, user_id: UserID) -> bool:
        return self._immune.get(str(user_id), False)

    def immune_user_ids(self) -> List[str]:
        return list(self._immune)

    async def toggle_immunity(self, user_id: UserID) -> bool:
        """Flip ``user_id``'s immunity and return the new state.

        Existing strikes are left as they are.
        """
        async with self._lock:
            key = str(user_id)
            if self._immune.pop(key, False):
                immune = False
            else:
                self._immune[key] = True
                immune = True
            self._save_immune()
        logger.info("[MEOW STATE] User %s immunity is now %s", user_id, "on" if immune else "off")
        return immune
