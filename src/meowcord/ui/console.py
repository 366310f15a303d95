"""Operator console for a running Meowcord process.

Runs next to the bot when stdin is a terminal. Commands inspect the meow
state (tallies, immune users, the next weekly reset) and control the process
lifecycle (``restart`` exits with the restart code, ``shutdown`` exits cleanly).
"""

from __future__ import annotations

import asyncio
import os
from collections.abc import AsyncIterator, Awaitable, Callable
from contextlib import asynccontextmanager
from dataclasses import dataclass, field

import discord
from prompt_toolkit import print_formatted_text
from prompt_toolkit.formatted_text import FormattedText
from prompt_toolkit.patch_stdout import patch_stdout
from prompt_toolkit.shortcuts import PromptSession

from meowcord.bot.meow_runtime import MeowRuntime
from meowcord.util.format_utils import format_time_remaining, rank_marker
from meowcord.util.logger import get_logger

logger = get_logger("console")

RULE_WIDTH = 45
PROMPT = "meow> "


def console_print(message: str, style: str = "") -> None:
    """Print through prompt_toolkit so output lands above the active prompt."""
    print_formatted_text(FormattedText([(style, message)]) if style else message)


def print_heading(title: str, style: str = "ansiblue") -> None:
    """Print ``title`` centred in a horizontal rule."""
    console_print(f" {title} ".center(RULE_WIDTH, "─"), style)


class ConsoleControl:
    """Lifecycle flags shared by the console, the bot session and ``main``.

    ``shutdown`` stops the console loop; ``restart`` additionally tells
    ``main`` to re-exec the process once the bot has closed.
    """

    def __init__(self, runtime: MeowRuntime | None = None) -> None:
        self.runtime = runtime
        self._bot: discord.Bot | None = None
        self._shutdown = asyncio.Event()
        self._restart = asyncio.Event()

    @property
    def bot(self) -> discord.Bot | None:
        return self._bot

    def set_bot(self, bot: discord.Bot | None) -> None:
        self._bot = bot

    def request_shutdown(self, *, restart: bool = False) -> None:
        if restart:
            self._restart.set()
        self._shutdown.set()

    def is_shutdown_requested(self) -> bool:
        return self._shutdown.is_set()

    def is_restart_requested(self) -> bool:
        return self._restart.is_set()


async def close_bot_instance(bot: discord.Bot | None, *, log_close: bool = False) -> None:
    """Close ``bot`` unless it is missing or already closed; errors are logged."""
    if bot is None or bot.is_closed():
        return

    try:
        await bot.close()
    except Exception as exc:
        logger.exception("Error while closing the Discord connection: %s", exc)
        return

    if log_close:
        logger.info("Discord connection closed.")


# ==================== Commands ====================

ConsoleHandler = Callable[[ConsoleControl, list[str]], Awaitable[None]]


@dataclass(frozen=True)
class ConsoleCommand:
    name: str
    summary: str
    handler: ConsoleHandler
    aliases: tuple[str, ...] = field(default_factory=tuple)


COMMANDS: dict[str, ConsoleCommand] = {}


def console_command(name: str, summary: str, *aliases: str) -> Callable[[ConsoleHandler], ConsoleHandler]:
    """Register the decorated coroutine under ``name`` and each alias."""

    def register(handler: ConsoleHandler) -> ConsoleHandler:
        command = ConsoleCommand(name=name, summary=summary, handler=handler, aliases=aliases)
        for key in (name, *aliases):
            COMMANDS[key] = command
        return handler

    return register


def _unique_commands() -> list[ConsoleCommand]:
    seen: dict[str, ConsoleCommand] = {}
    for command in COMMANDS.values():
        seen.setdefault(command.name, command)
    return list(seen.values())


@console_command("help", "List console commands", "h", "?")
async def cmd_help(control: ConsoleControl, args: list[str]) -> None:
    print_heading("Commands", "ansigreen")
    for command in _unique_commands():
        names = ", ".join((command.name, *command.aliases))
        console_print(f"  {names:<24} {command.summary}")


@console_command("status", "Connection, meow channel, counters and the next weekly reset", "stat", "info")
async def cmd_status(control: ConsoleControl, args: list[str]) -> None:
    print_heading("Status")

    bot = control.bot
    if bot is None:
        console_print("  Bot:         offline")
    else:
        state = "closed" if bot.is_closed() else f"online ({bot.latency * 1000:.0f}ms)"
        console_print(f"  Bot:         {state}")

    runtime = control.runtime
    if runtime is None:
        return

    scheduler = runtime.weekly_scheduler
    rows = [
        ("Channel", str(runtime.meow_channel_id) if runtime.meow_channel_id else "disabled"),
        ("Strikers", str(len(runtime.store.tallies()))),
        ("Immune", str(len(runtime.store.immune_user_ids()))),
        ("Deletions", f"{runtime.deletion_scheduler.pending_count} pending"),
        (
            "Next reset",
            f"{scheduler.next_reset().isoformat(timespec='minutes')} "
            f"(in {format_time_remaining(scheduler.time_until_reset())}, "
            f"{'armed' if scheduler.is_armed else 'idle'})",
        ),
    ]
    for label, value in rows:
        console_print(f"  {label + ':':<12} {value}")


@console_command("tallies", "Current strike standings", "strikes", "t")
async def cmd_tallies(control: ConsoleControl, args: list[str]) -> None:
    runtime = control.runtime
    if runtime is None:
        console_print("No runtime attached.", "ansiyellow")
        return

    entries = runtime.store.sorted_tallies(limit=runtime.leaderboard_size)
    if not entries:
        console_print("Nobody has a strike this week.", "ansigreen")
        return

    print_heading(f"Strikes ({len(entries)})")
    for index, entry in enumerate(entries):
        console_print(f"  {rank_marker(index)} {entry.user_id}: {entry.strikes}")


@console_command("immune", "Users exempt from enforcement", "i")
async def cmd_immune(control: ConsoleControl, args: list[str]) -> None:
    if control.runtime is None:
        console_print("No runtime attached.", "ansiyellow")
        return

    user_ids = control.runtime.store.immune_user_ids()
    if not user_ids:
        console_print("Nobody is immune.", "ansigreen")
        return
    for user_id in user_ids:
        console_print(f"  • {user_id}")


@console_command("clear", "Clear the terminal", "cls")
async def cmd_clear(control: ConsoleControl, args: list[str]) -> None:
    os.system("cls" if os.name == "nt" else "clear")


@console_command("restart", "Close the bot and start a fresh process", "reboot")
async def cmd_restart(control: ConsoleControl, args: list[str]) -> None:
    console_print("Restarting...", "ansiyellow")
    control.request_shutdown(restart=True)
    await close_bot_instance(control.bot)


@console_command("shutdown", "Close the bot and exit", "stop", "quit", "exit")
async def cmd_shutdown(control: ConsoleControl, args: list[str]) -> None:
    console_print("Shutting down...", "ansiyellow")
    control.request_shutdown()
    await close_bot_instance(control.bot)


# ==================== Loop ====================

async def handle_console_command(line: str, control: ConsoleControl) -> None:
    """Run one console line; unknown names and handler errors are reported, never raised."""
    words = line.split()
    if not words:
        return

    name, args = words[0].lower(), words[1:]
    command = COMMANDS.get(name)
    if command is None:
        console_print(f"Unknown command '{name}' (try 'help').", "ansired")
        return

    try:
        await command.handler(control, args)
    except Exception as exc:
        logger.exception("Console command '%s' failed: %s", name, exc)
        console_print(f"'{name}' failed: {exc}", "ansired")


async def run_console(control: ConsoleControl) -> None:
    """Read and run commands until a shutdown is requested or input ends."""
    session = PromptSession(PROMPT)
    print_heading("Meowcord console", "ansigreen")
    console_print("Type 'help' for commands.", "ansibrightblack")

    with patch_stdout():
        while not control.is_shutdown_requested():
            try:
                line = await session.prompt_async()
            except (EOFError, KeyboardInterrupt):
                console_print("Input closed; shutting down.", "ansiyellow")
                control.request_shutdown()
                await close_bot_instance(control.bot)
                return
            await handle_console_command(line, control)


@asynccontextmanager
async def console_session(control: ConsoleControl) -> AsyncIterator[ConsoleControl]:
    """Run the console as a background task for the duration of the block."""
    task = asyncio.create_task(run_console(control), name="meowcord-console")
    try:
        yield control
    finally:
        control.request_shutdown()
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass
