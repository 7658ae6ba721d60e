# src/flex_dashboard/cli/commands.py

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable

from ..core.actions import ActionOutcome
from ..core.state import AppState
from ..view.renderer import render
from ..view.text import format_view

CommandHandler = Callable[[AppState, list[str]], Awaitable[str]]

logger = logging.getLogger(__name__)


class CommandRegistry:
    """Slash-command registry mapping console input onto dashboard actions."""

    def __init__(self) -> None:
        self._handlers: dict[str, CommandHandler] = {}
        self._help: dict[str, str] = {}

    def register(
        self,
        name: str,
        handler: CommandHandler,
        help_text: str,
        aliases: list[str] | None = None,
    ) -> None:
        aliases = aliases or []
        key = name.lower()
        self._handlers[key] = handler
        self._help[key] = help_text
        for alias in aliases:
            self._handlers[alias.lower()] = handler

    async def handle(self, state: AppState, line: str) -> str | None:
        """
        Handle a string like "/command args".
        Returns a reply string (possibly empty) or None if not a command.
        """
        if not line.startswith("/"):
            return None

        parts = line[1:].split()
        if not parts:
            return "Empty command. Use /help to list available commands."

        name = parts[0].lower()
        args = parts[1:]

        handler = self._handlers.get(name)
        if not handler:
            return f"Unknown command: /{name}. Use /help to list available commands."

        return await handler(state, args)

    def build_help(self) -> str:
        lines = ["Available commands:"]
        for name, help_text in self._help.items():
            lines.append(f"  /{name} - {help_text}")
        return "\n".join(lines)


registry = CommandRegistry()

# Popups already report results; replies only cover what the notifier stays silent about.
_REJECTED_NO_SESSION = "Not signed in yet."


def _row_task_id(state: AppState, ref: str) -> str | None:
    """Resolve a 1-based row number (as shown by /status) or a raw task id."""
    tasks = state.session.tasks
    if ref.isdigit():
        idx = int(ref) - 1
        if 0 <= idx < len(tasks):
            return tasks[idx].id
        return None
    return ref if state.session.find_task(ref) is not None else None


def _split_time_label(args: list[str]) -> tuple[str, str]:
    if "@" not in args:
        return " ".join(args), ""
    idx = len(args) - 1 - args[::-1].index("@")
    return " ".join(args[:idx]), " ".join(args[idx + 1:])


async def cmd_help(state: AppState, args: list[str]) -> str:
    return registry.build_help()


async def cmd_status(state: AppState, args: list[str]) -> str:
    return format_view(render(state.session.tasks, state.session.ledger))


async def cmd_whoami(state: AppState, args: list[str]) -> str:
    return f"User ID: {state.session.user_id or '(not signed in)'}"


async def cmd_add(state: AppState, args: list[str]) -> str:
    """
    /add <name>             -> task without deadline
    /add <name> @ <time>    -> task with a free-form time label

    Only a standalone "@" (the last one) separates the time, so names like
    "Email mom@work" keep their "@".
    """
    name, time_label = _split_time_label(args)
    outcome = await state.actions.add_task(name, time_label)
    if outcome is ActionOutcome.INVALID:
        return "Usage: /add <name> [@ <time>] (name is required)."
    if outcome is ActionOutcome.REJECTED:
        return _REJECTED_NO_SESSION
    return ""


async def cmd_done(state: AppState, args: list[str]) -> str:
    """/done <n> -> toggle completion of row n."""
    if not args:
        return "Usage: /done <n> (row number from /status)."

    task_id = _row_task_id(state, args[0])
    if task_id is None:
        return f"No task #{args[0]}."

    outcome = await state.actions.toggle_task(task_id)
    if outcome is ActionOutcome.REJECTED:
        return _REJECTED_NO_SESSION
    return ""


async def cmd_reset(state: AppState, args: list[str]) -> str:
    outcome = await state.actions.reset_completed()
    if outcome is ActionOutcome.REJECTED:
        return _REJECTED_NO_SESSION
    return ""


async def cmd_reward(state: AppState, args: list[str]) -> str:
    if not state.session.user_id:
        return _REJECTED_NO_SESSION
    # HOLD UP / MISSION INCOMPLETE rejections come with their own popup.
    await state.actions.request_reward()
    return ""


async def cmd_overage(state: AppState, args: list[str]) -> str:
    """/overage <minutes> -> deduct minutes and add them to debt."""
    try:
        minutes = int(args[0]) if args else 0
    except ValueError:
        minutes = 0

    outcome = await state.actions.report_overage(minutes)
    if outcome is ActionOutcome.INVALID:
        return "Usage: /overage <minutes> (a positive whole number)."
    if outcome is ActionOutcome.REJECTED:
        return _REJECTED_NO_SESSION
    return ""


registry.register("help", cmd_help, help_text="Show available commands.", aliases=["h", "?"])
registry.register("status", cmd_status, help_text="Show tasks, progress and balances.", aliases=["s"])
registry.register("whoami", cmd_whoami, help_text="Show the signed-in user id.")
registry.register("add", cmd_add, help_text="Add a task: /add <name> [@ <time>].")
registry.register("done", cmd_done, help_text="Toggle a task: /done <n>.", aliases=["toggle"])
registry.register("reset", cmd_reset, help_text="Remove all completed tasks.")
registry.register("reward", cmd_reward, help_text="Request the daily reward (all tasks must be done).")
registry.register("overage", cmd_overage, help_text="Report screen-time overage: /overage <minutes>.")
