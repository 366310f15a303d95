from __future__ import annotations
from pathlib import Path
import fcntl
import os
from typing import Any, Dict
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError
import yaml

from meowcord.datatypes.discord_datatypes import ChannelID, UserID
from meowcord.util.logger import get_logger

logger = get_logger("app_configuration")


CONFIG_PATH = Path("./config/app_config.yml").resolve()

WEEKDAY_NAMES = ("monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday")

DEFAULT_RESET_WEEKDAY = 0  # Monday
DEFAULT_RESET_HOUR = 12
DEFAULT_DELETION_DELAY_SECONDS = 5.0
DEFAULT_LEADERBOARD_SIZE = 25
DEFAULT_DATA_DIR = "./data"


class AppConfig:
    """File-lock based accessor around the YAML application configuration.

    The class caches the contents of ``./config/app_config.yml`` and exposes
    typed properties for every setting the bot needs. Deployment-specific
    identifiers (``MEOW_CHANNEL_ID``, ``MEOW_OWNER_IDS``) may also come from the
    environment, which takes precedence over the YAML file. Invalid values are
    logged and replaced by their defaults so a typo never stops the bot.
    """

    def __init__(self, config_path: Path) -> None:
        self.config_path = config_path
        self._data: Dict[str, Any] = {}
        self.reload()

    # --------------------------
    # Private helpers
    # --------------------------
    def load_from_disk(self) -> Dict[str, Any]:
        try:
            with self.config_path.open("r", encoding="utf-8") as f:
                fcntl.flock(f.fileno(), fcntl.LOCK_SH)
                data = yaml.safe_load(f)
                fcntl.flock(f.fileno(), fcntl.LOCK_UN)
        except FileNotFoundError:
            logger.error("[APP CONFIGURATION] Config file %s not found.", self.config_path)
            return {}
        except Exception as exc:
            logger.error("[APP CONFIGURATION] Failed to load config %s: %s", self.config_path, exc)
            return {}

        if data is None:
            return {}
        if not isinstance(data, dict):
            logger.error("[APP CONFIGURATION] Config %s is not a mapping; ignoring it.", self.config_path)
            return {}
        return data

    def _weekly_reset_section(self) -> Dict[str, Any]:
        section = self.get("weekly_reset", {})
        return section if isinstance(section, dict) else {}

    # --------------------------
    # Public API
    # --------------------------
    def reload(self) -> Dict[str, Any]:
        """Reload configuration from disk and return the loaded mapping (empty on error)."""
        self._data = self.load_from_disk()
        return self._data

    def get(self, key: str, default: Any = None) -> Any:
        """Return a top-level setting, or ``default`` when it is absent."""
        return self._data.get(key, default)

    # --------------------------
    # High-level shortcuts
    # --------------------------
    @property
    def meow_channel_id(self) -> ChannelID | None:
        """Return the enforcement channel, or None when enforcement is disabled."""
        raw = os.getenv("MEOW_CHANNEL_ID") or self.get("meow_channel_id")
        if raw in (None, ""):
            return None
        try:
            return ChannelID(raw)
        except ValueError:
            logger.error("[APP CONFIGURATION] Invalid meow channel id %r; enforcement disabled.", raw)
            return None

    @property
    def owner_ids(self) -> frozenset[UserID]:
        """Return the users allowed to run owner-only commands.

        ``MEOW_OWNER_IDS`` is a comma-separated list; the YAML ``owner_ids`` key
        is a list. Entries that are not snowflakes are skipped.
        """
        env_value = os.getenv("MEOW_OWNER_IDS")
        if env_value:
            raw_ids: list[Any] = [part for part in env_value.split(",") if part.strip()]
        else:
            configured = self.get("owner_ids") or []
            raw_ids = configured if isinstance(configured, list) else [configured]

        owners: set[UserID] = set()
        for raw in raw_ids:
            try:
                owners.add(UserID(raw))
            except ValueError:
                logger.warning("[APP CONFIGURATION] Ignoring invalid owner id %r", raw)
        return frozenset(owners)

    @property
    def reset_weekday(self) -> int:
        """Return the weekly reset weekday (0 = Monday … 6 = Sunday).

        Accepts either a weekday name or an integer in Python's convention.
        """
        value = self._weekly_reset_section().get("weekday", DEFAULT_RESET_WEEKDAY)
        if isinstance(value, str):
            name = value.strip().lower()
            if name in WEEKDAY_NAMES:
                return WEEKDAY_NAMES.index(name)
        elif isinstance(value, int) and not isinstance(value, bool) and 0 <= value <= 6:
            return value
        logger.warning("[APP CONFIGURATION] Invalid weekly_reset.weekday %r; using Monday.", value)
        return DEFAULT_RESET_WEEKDAY

    @property
    def reset_hour(self) -> int:
        """Return the hour of day (0-23) at which the weekly reset fires."""
        value = self._weekly_reset_section().get("hour", DEFAULT_RESET_HOUR)
        if isinstance(value, int) and not isinstance(value, bool) and 0 <= value <= 23:
            return value
        logger.warning("[APP CONFIGURATION] Invalid weekly_reset.hour %r; using %d.", value, DEFAULT_RESET_HOUR)
        return DEFAULT_RESET_HOUR

    @property
    def reset_timezone(self) -> ZoneInfo | None:
        """Return the configured IANA timezone, or None for the host's local time."""
        name = self._weekly_reset_section().get("timezone")
        if not name:
            return None
        try:
            return ZoneInfo(str(name))
        except (ZoneInfoNotFoundError, ValueError):
            logger.warning("[APP CONFIGURATION] Unknown timezone %r; using local time.", name)
            return None

    @property
    def deletion_delay_seconds(self) -> float:
        """Return the grace period before a non-meow and its warning are deleted."""
        value = self.get("deletion_delay_seconds", DEFAULT_DELETION_DELAY_SECONDS)
        try:
            delay = float(value)
        except (TypeError, ValueError):
            delay = -1.0
        if delay < 0:
            logger.warning("[APP CONFIGURATION] Invalid deletion_delay_seconds %r; using default.", value)
            return DEFAULT_DELETION_DELAY_SECONDS
        return delay

    @property
    def leaderboard_size(self) -> int:
        value = self.get("leaderboard_size", DEFAULT_LEADERBOARD_SIZE)
        if isinstance(value, int) and not isinstance(value, bool) and value > 0:
            return value
        logger.warning("[APP CONFIGURATION] Invalid leaderboard_size %r; using default.", value)
        return DEFAULT_LEADERBOARD_SIZE

    @property
    def data_dir(self) -> Path:
        """Return the directory holding the tally and immunity files."""
        return Path(str(self.get("data_dir") or DEFAULT_DATA_DIR)).resolve()

    @property
    def tally_file(self) -> Path:
        return self.data_dir / "tallies.json"

    @property
    def immune_file(self) -> Path:
        return self.data_dir / "immune.json"


# Shared application-wide configuration instance
app_config = AppConfig(CONFIG_PATH)
