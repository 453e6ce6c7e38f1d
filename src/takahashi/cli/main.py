# src/takahashi/cli/main.py

"""
CLI entrypoint.

Initializes logging, builds AppState (which loads and validates the stored
tasks), then starts:
- notification delivery in a background thread,
- the console REPL in the main thread (optional).
"""

from __future__ import annotations

import logging
import signal
import threading

from ..cli.bootstrap import create_initial_state
from ..config import get_settings
from ..connectors.console_connector import ConsoleNotifier, run_console_loop
from ..logging_setup import setup_logging
from ..notifications.delivery import start_notifications_in_background

logger = logging.getLogger(__name__)


def main() -> None:
    settings = get_settings()

    level_name = str(getattr(settings, "log_level", "INFO")).upper()
    console_level = getattr(logging, level_name, logging.INFO)

    log_dir = getattr(settings, "data_dir", ".local/takahashi")
    log_file = setup_logging(log_dir=log_dir, console_level=console_level)

    logger.info("Starting %s... (log: %s)", getattr(settings, "app_name", "takahashi"), log_file)

    state = create_initial_state(settings=settings)

    runner = None
    if state.notifications_authorized:
        runner = start_notifications_in_background(
            state.notification_center,
            ConsoleNotifier(),
            interval_seconds=settings.notification_poll_seconds,
        )

    # Use an Event so main can wait without a busy while-loop.
    stop_main = threading.Event()

    def _handle_signal(signum, _frame) -> None:
        logger.info("Signal %s received, shutting down...", signum)
        stop_main.set()

    # SIGINT stays default while the console runs so Ctrl+C breaks out of input().
    signals = [signal.SIGTERM] if settings.console_enabled else [signal.SIGINT, signal.SIGTERM]
    for signum in signals:
        try:
            signal.signal(signum, _handle_signal)
        except (ValueError, OSError):
            logger.debug("Signal handler for %s not installed.", signum, exc_info=True)

    try:
        if settings.console_enabled:
            run_console_loop(state)
            stop_main.set()
        else:
            logger.info("Console disabled. Delivering reminders only. Press Ctrl+C to stop.")
            stop_main.wait()
    finally:
        if runner is not None:
            runner.stop()
            runner.join(timeout=5.0)
        logger.info("Bye.")


if __name__ == "__main__":
    main()
