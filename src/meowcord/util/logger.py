"""
Logging for Meowcord.

Every module logger writes to two shared handlers: the terminal (through
prompt_toolkit, so the operator console prompt stays intact) at INFO and a
per-session rotating file under ``logs/`` at DEBUG.
"""

import logging
import sys
from datetime import datetime
from functools import lru_cache
from logging.handlers import RotatingFileHandler
from pathlib import Path

from prompt_toolkit import print_formatted_text
from prompt_toolkit.formatted_text import ANSI

LOGS_DIR: Path = (Path(__file__).parents[3] / "logs").resolve()

LOG_FORMAT = "[%(asctime)s] [%(levelname)s] [%(name)s:%(funcName)s:%(lineno)d] %(message)s"
FILE_STAMP_FORMAT = "%Y-%m-%d %H-%M-%S"

LEVEL_COLORS = {
    logging.DEBUG: "\033[36m",
    logging.INFO: "\033[32m",
    logging.WARNING: "\033[33m",
    logging.ERROR: "\033[31m",
    logging.CRITICAL: "\033[38;5;88m",
}
RESET_COLOR = "\033[0m"

# A log file touched this recently belongs to the process we are restarting from
SESSION_REUSE_SECONDS = 60
LOG_MAX_BYTES = 5 * 1024 * 1024
LOG_BACKUP_COUNT = 3

# Library loggers that would drown the console at INFO
QUIET_LIBRARIES = ("discord", "discord.gateway", "discord.client", "discord.http", "websockets", "aiohttp")

_session_log: Path | None = None


class LevelColorFormatter(logging.Formatter):
    """Formatter that paints each line in its level's ANSI colour."""

    def format(self, record: logging.LogRecord) -> str:
        text = super().format(record)
        color = LEVEL_COLORS.get(record.levelno)
        return f"{color}{text}{RESET_COLOR}" if color else text


class PromptToolkitHandler(logging.Handler):
    """Emit records with ``print_formatted_text`` instead of writing to stderr."""

    def emit(self, record: logging.LogRecord) -> None:
        try:
            print_formatted_text(ANSI(self.format(record)))
        except Exception:
            self.handleError(record)


def get_log_filepath() -> Path:
    """
    Return the log file for this session.

    Decided once per process: today's most recently modified log is reused
    when it was written within ``SESSION_REUSE_SECONDS`` (a console restart),
    otherwise a new file named after the current time is used.
    """
    global _session_log

    if _session_log is None:
        now = datetime.now()
        LOGS_DIR.mkdir(parents=True, exist_ok=True)
        todays = list(LOGS_DIR.glob(f"{now:%Y-%m-%d}*.log"))
        latest = max(todays, key=lambda p: p.stat().st_mtime, default=None)
        if latest is not None and now.timestamp() - latest.stat().st_mtime < SESSION_REUSE_SECONDS:
            _session_log = latest
        else:
            _session_log = LOGS_DIR / f"{now.strftime(FILE_STAMP_FORMAT)}.log"

    return _session_log


@lru_cache(maxsize=None)
def shared_handlers() -> tuple[logging.Handler, ...]:
    """Build the console and file handlers once; every logger reuses them."""
    try:
        colorize = sys.stderr.isatty()
    except (AttributeError, ValueError):
        colorize = False

    formatter_cls = LevelColorFormatter if colorize else logging.Formatter
    console = PromptToolkitHandler(level=logging.INFO)
    console.setFormatter(formatter_cls(LOG_FORMAT, datefmt=FILE_STAMP_FORMAT))

    session_file = RotatingFileHandler(
        get_log_filepath(),
        maxBytes=LOG_MAX_BYTES,
        backupCount=LOG_BACKUP_COUNT,
        encoding="utf-8",
    )
    session_file.setLevel(logging.DEBUG)
    session_file.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=FILE_STAMP_FORMAT))

    return console, session_file


def get_logger(name: str) -> logging.Logger:
    """Return the named logger, attaching the shared handlers on first use."""
    logger = logging.getLogger(name)
    if not logger.handlers:
        logger.setLevel(logging.DEBUG)
        logger.propagate = False
        for handler in shared_handlers():
            logger.addHandler(handler)
    return logger


def handle_exception(exception_type, exception_instance, exception_traceback) -> None:
    """``sys.excepthook`` that logs uncaught errors; Ctrl+C keeps the default behaviour."""
    if issubclass(exception_type, KeyboardInterrupt):
        sys.__excepthook__(exception_type, exception_instance, exception_traceback)
        return
    logging.error("Uncaught exception", exc_info=(exception_type, exception_instance, exception_traceback))


for library in QUIET_LIBRARIES:
    library_logger = logging.getLogger(library)
    library_logger.setLevel(logging.ERROR)
    library_logger.propagate = False
    library_logger.handlers = []

sys.excepthook = handle_exception
