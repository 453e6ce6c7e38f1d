# src/takahashi/connectors/console_connector.py

from __future__ import annotations

import logging
import sys
import threading
from datetime import datetime

from ..cli.commands import registry as command_registry
from ..core.state import AppState

logger = logging.getLogger(__name__)


def _ts_local() -> str:
    return datetime.now().astimezone().strftime("%Y-%m-%d %H:%M:%S")


def _print_ts(text: str) -> None:
    print(f"[{_ts_local()}] {text}", flush=True)


class ConsoleNotifier:
    """
    Notifier port for the console: prints due notifications.

    Called from the delivery thread while the REPL waits on input(), so
    writes go through a lock to keep lines whole.
    """

    def __init__(self, stream=None) -> None:
        self._stream = stream
        self._lock = threading.Lock()

    async def send_notification(self, *, title: str, body: str) -> None:
        stream = self._stream or sys.stdout
        with self._lock:
            stream.write(f"\n[{_ts_local()}] [REMINDER] {title}: {body}\n")
            stream.flush()


def run_console_loop(state: AppState) -> None:
    logger.info("Console connector started (tasks=%d).", len(state.task_store.tasks))
    _print_ts("[CONSOLE] Manage tasks with slash commands. Use /help for commands. Use /exit to quit.\n")

    if not state.notifications_authorized:
        _print_ts(
            "[CONSOLE] Notifications are disabled, reminders will not be shown. "
            "Enable them with TAKAHASHI_NOTIFICATIONS_ENABLED=true and restart."
        )

    def emit(text: str) -> None:
        print(f"[{_ts_local()}] {text}", flush=True)

    while True:
        try:
            user_input = input(">>> ").strip()
        except EOFError:
            logger.info("Console EOF received, exiting.")
            break
        except KeyboardInterrupt:
            logger.info("Console KeyboardInterrupt, exiting.")
            print()
            break

        if not user_input:
            continue

        if user_input.lower() in ("/exit", "/quit"):
            logger.info("Console exit command received.")
            break

        if not user_input.startswith("/"):
            _print_ts("Commands start with '/'. Use /help to list them.")
            continue

        try:
            cmd_response = command_registry.handle(state, user_input, emit=emit)
        except Exception:
            logger.exception("Command handler crashed.")
            cmd_response = "Internal error while handling a command."

        if cmd_response is not None:
            _print_ts(cmd_response)

    logger.info("Console connector finished.")
