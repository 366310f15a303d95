"""
Meowcord
========

A Discord bot that keeps one channel meow-only: messages that are not a meow,
emoji or emoticon earn their author a strike, get deleted after a short grace
period, and count toward a weekly report that resets the tallies.

Run with ``meowcord`` (installed console script) or ``python -m meowcord.main``.
Exit code 42 from the session means "restart"; :func:`main` then re-executes
the interpreter in place.
"""

import os
import sys
from contextlib import AsyncExitStack
from pathlib import Path


def resolve_base_dir() -> Path:
    """Return the directory holding ``.env``, ``config/``, ``data/`` and ``logs/``.

    ``MEOWCORD_HOME`` wins; a frozen build uses the executable's folder; a
    source checkout uses the project root two levels above this package.
    """
    override = os.getenv("MEOWCORD_HOME")
    if override:
        return Path(override).resolve()
    if getattr(sys, "frozen", False):
        return Path(sys.executable).resolve().parent
    return Path(__file__).resolve().parents[2]


BASE_DIR = resolve_base_dir()
# Relative paths in the YAML config (data_dir, config path) resolve against the base dir
os.chdir(BASE_DIR)

import asyncio
import discord
from dotenv import load_dotenv

from meowcord.bot.cogs import events_listener, meow_cmds, message_listener
from meowcord.bot.meow_runtime import MeowRuntime, build_runtime
from meowcord.configuration.app_configuration import app_config
from meowcord.ui.console import ConsoleControl, close_bot_instance, console_session
from meowcord.util.logger import get_logger, handle_exception

logger = get_logger("main")

RESTART_EXIT_CODE = 42
TOKEN_ENV_VAR = "DISCORD_BOT_TOKEN"
COG_MODULES = (events_listener, message_listener, meow_cmds)


def load_environment() -> str:
    """Read ``.env`` and return the bot token, exiting with status 1 when it is absent."""
    load_dotenv(dotenv_path=BASE_DIR / ".env")
    token = os.getenv(TOKEN_ENV_VAR, "").strip()
    if token:
        return token

    logger.critical("%s is not set (checked the environment and %s).", TOKEN_ENV_VAR, BASE_DIR / ".env")
    sys.exit(1)


def build_intents() -> discord.Intents:
    """Default intents plus the privileged message content intent the classifier needs."""
    intents = discord.Intents.default()
    intents.guilds = True
    intents.messages = True
    intents.message_content = True
    return intents


def create_bot(runtime: MeowRuntime) -> discord.Bot:
    """Build the client and attach every cog to ``runtime``.

    Slash commands are not synced automatically; the events listener
    registers them once on the first ready event.
    """
    bot = discord.Bot(intents=build_intents(), auto_sync_commands=False)
    for module in COG_MODULES:
        module.setup(bot, runtime)
    logger.info("Loaded %d cogs.", len(COG_MODULES))
    return bot


async def shutdown_runtime(bot: discord.Bot | None, runtime: MeowRuntime | None) -> None:
    """Disconnect first so no new events arrive, then stop the schedulers."""
    await close_bot_instance(bot, log_close=True)
    if runtime is None:
        return
    try:
        await runtime.shutdown()
    except Exception as exc:
        logger.exception("Scheduler shutdown failed: %s", exc)
    else:
        logger.info("Meowcord stopped.")


async def run_bot_session(
    bot: discord.Bot,
    token: str,
    control: ConsoleControl,
    *,
    use_console: bool = True,
) -> int:
    """Connect and serve until the bot closes, returning 0 on a clean stop and 1 on failure."""
    control.set_bot(bot)
    status = 0
    try:
        async with AsyncExitStack() as stack:
            if use_console:
                await stack.enter_async_context(console_session(control))
            logger.info("Connecting to Discord...")
            await bot.start(token)
    except asyncio.CancelledError:
        logger.info("Session cancelled.")
    except discord.LoginFailure as exc:
        logger.critical("Discord rejected the bot token: %s", exc)
        status = 1
    except Exception as exc:
        logger.critical("Bot session crashed: %s", exc)
        status = 1
    finally:
        control.set_bot(None)
        await shutdown_runtime(bot, control.runtime)
    return status


async def async_main() -> int:
    """Load the token, config and persisted state, then run one bot session."""
    token = load_environment()

    try:
        runtime = build_runtime(app_config)
        bot = create_bot(runtime)
    except Exception as exc:
        logger.critical("Startup failed: %s", exc, exc_info=True)
        return 1

    control = ConsoleControl(runtime)
    status = await run_bot_session(bot, token, control, use_console=sys.stdin.isatty())
    if control.is_restart_requested():
        logger.info("Restart requested from the console.")
        return RESTART_EXIT_CODE
    return status


def _exit_status(code: object) -> int:
    if code is None:
        return 0
    if isinstance(code, int):
        return code
    logger.error("Exiting: %s", code)
    return 1


def main() -> int:
    """Console-script entry point; returns the process exit status."""
    logger.info("Starting Meowcord...")
    try:
        status = asyncio.run(async_main())
    except KeyboardInterrupt:
        logger.info("Interrupted; exiting.")
        return 0
    except SystemExit as exc:
        return _exit_status(exc.code)
    except Exception as exc:
        logger.critical("Unexpected error: %s", exc, exc_info=True)
        return 1

    if status != RESTART_EXIT_CODE:
        return status

    logger.info("Re-executing %s", sys.executable)
    os.execv(sys.executable, [sys.executable, *sys.argv])
    return 0


if __name__ == "__main__":
    sys.excepthook = handle_exception
    sys.exit(main())
