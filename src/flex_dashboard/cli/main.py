# src/flex_dashboard/cli/main.py

"""
CLI entrypoint.

Initializes logging, builds AppState, signs in, then runs the sync engine and the
console REPL on one asyncio event loop until /exit, EOF or a signal.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
import signal

from ..cli.bootstrap import create_initial_state, shutdown_state, start_session
from ..config import get_settings
from ..connectors.console_connector import run_console_loop
from ..core.errors import InitializationError
from ..logging_setup import setup_logging

logger = logging.getLogger(__name__)


async def _run(settings) -> int:
    try:
        state = create_initial_state(settings=settings)
    except InitializationError:
        return 1

    stop = asyncio.Event()
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        # Not available on Windows event loops.
        with contextlib.suppress(NotImplementedError, RuntimeError):
            loop.add_signal_handler(sig, stop.set)

    try:
        try:
            await start_session(state)
        except InitializationError:
            return 1

        console = asyncio.create_task(run_console_loop(state), name="console")
        stopper = asyncio.create_task(stop.wait(), name="stop-signal")
        done, pending = await asyncio.wait({console, stopper}, return_when=asyncio.FIRST_COMPLETED)
        if stopper in done:
            logger.info("Signal received, shutting down...")
        for t in pending:
            t.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await t
        return 0
    finally:
        await shutdown_state(state)


def main() -> int:
    settings = get_settings()

    level_name = str(getattr(settings, "log_level", "INFO")).upper()
    console_level = getattr(logging, level_name, logging.INFO)
    setup_logging(log_dir=settings.data_dir, console_level=console_level)

    logger.info("Starting %s (backend=%s)...", settings.app_name, settings.backend)

    try:
        code = asyncio.run(_run(settings))
    except KeyboardInterrupt:
        code = 0

    logger.info("Bye.")
    return code


if __name__ == "__main__":
    raise SystemExit(main())
