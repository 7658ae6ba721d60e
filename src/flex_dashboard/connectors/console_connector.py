# src/flex_dashboard/connectors/console_connector.py

from __future__ import annotations

import asyncio
import logging
import sys
import threading
from datetime import datetime

from ..cli.commands import registry as command_registry
from ..core.state import AppState
from ..notify.notifier import Popup
from ..view.renderer import ViewModel
from ..view.text import format_popup, format_view

logger = logging.getLogger(__name__)

_EOF = object()


def _ts_local() -> str:
    return datetime.now().astimezone().strftime("%Y-%m-%d %H:%M:%S")


def _print_ts(text: str) -> None:
    print(f"[{_ts_local()}] {text}", flush=True)


def _use_color() -> bool:
    try:
        return sys.stdout.isatty()
    except (AttributeError, ValueError):
        return False


class ConsolePresenter:
    """
    Text presentation layer.

    Rendering is deterministic, so an unchanged view-model is not printed again.
    """

    def __init__(self, *, color: bool | None = None) -> None:
        self._color = _use_color() if color is None else color
        self._last: ViewModel | None = None

    @property
    def last_view(self) -> ViewModel | None:
        return self._last

    def draw(self, view: ViewModel) -> None:
        if view == self._last:
            return
        self._last = view
        _print_ts("\n" + format_view(view, color=self._color))

    def show_popup(self, popup: Popup) -> None:
        _print_ts(format_popup(popup, color=self._color))

    def show_user(self, user_id: str) -> None:
        _print_ts(f"User ID: {user_id}")


def _start_stdin_reader(loop: asyncio.AbstractEventLoop, lines: asyncio.Queue[object]) -> threading.Thread:
    """
    Read stdin on a daemon thread.

    input() cannot be cancelled; a daemon thread keeps it from blocking shutdown.
    """

    def reader() -> None:
        while True:
            try:
                line = input()
            except (EOFError, KeyboardInterrupt):
                loop.call_soon_threadsafe(lines.put_nowait, _EOF)
                return
            except RuntimeError:
                # Loop closed while we were blocked in input().
                return
            try:
                loop.call_soon_threadsafe(lines.put_nowait, line)
            except RuntimeError:
                return

    t = threading.Thread(target=reader, name="stdin-reader", daemon=True)
    t.start()
    return t


async def run_console_loop(state: AppState) -> None:
    logger.info("Console connector started (user=%s).", state.session.user_id)
    _print_ts("[CONSOLE] Use /help for commands. Use /exit to quit.\n")

    lines: asyncio.Queue[object] = asyncio.Queue()
    _start_stdin_reader(asyncio.get_running_loop(), lines)

    while True:
        item = await lines.get()
        if item is _EOF:
            logger.info("Console EOF received, exiting.")
            break

        user_input = str(item).strip()
        if not user_input:
            continue

        if user_input.lower() in ("/exit", "/quit"):
            logger.info("Console exit command received.")
            break

        try:
            reply = await command_registry.handle(state, user_input)
        except Exception:
            logger.exception("Command handler crashed.")
            reply = "Internal error while handling a command."

        if reply is None:
            _print_ts("Commands start with '/'. Use /help to list available commands.")
        elif reply:
            _print_ts(reply)

    logger.info("Console connector finished.")
