# src/takahashi/logging_setup.py

"""
Logging for the console app.

The REPL and the notification delivery thread share one terminal. Reminders
are printed by ConsoleNotifier itself, so the console handler keeps the
delivery thread's routine INFO lines (polls, deliveries) out of the prompt and
shows only its problems. The file log keeps everything.
"""

from __future__ import annotations

import logging
import sys
from pathlib import Path

LOG_FILE_NAME = "takahashi.log"

# Minimum console level per logger-name prefix; first match wins.
_CONSOLE_THRESHOLDS: tuple[tuple[str, int], ...] = (
    ("takahashi.notifications.", logging.WARNING),
    ("takahashi.", logging.NOTSET),
)
_OTHER_THRESHOLD = logging.ERROR


class _ConsoleNoiseFilter(logging.Filter):
    def filter(self, record: logging.LogRecord) -> bool:
        for prefix, threshold in _CONSOLE_THRESHOLDS:
            if record.name.startswith(prefix):
                return record.levelno >= threshold
        # py.warnings and third-party loggers
        return record.levelno >= _OTHER_THRESHOLD


def _formatter() -> logging.Formatter:
    return logging.Formatter(
        fmt="%(asctime)s.%(msecs)03d %(levelname)s [%(threadName)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )


def setup_logging(
    *,
    log_dir: str | Path = ".local/takahashi",
    console_level: int = logging.INFO,
    file_level: int = logging.DEBUG,
) -> Path:
    """
    Install the console and file handlers on the root logger.

    Safe to call again: previous root handlers are replaced.
    Returns the log file path.
    """
    log_file = Path(log_dir) / LOG_FILE_NAME
    log_file.parent.mkdir(parents=True, exist_ok=True)

    root = logging.getLogger()
    root.setLevel(min(console_level, file_level))
    for h in list(root.handlers):
        root.removeHandler(h)

    fmt = _formatter()

    console = logging.StreamHandler(sys.stderr)
    console.setLevel(console_level)
    console.setFormatter(fmt)
    console.addFilter(_ConsoleNoiseFilter())
    root.addHandler(console)

    file_handler = logging.FileHandler(log_file, encoding="utf-8")
    file_handler.setLevel(file_level)
    file_handler.setFormatter(fmt)
    root.addHandler(file_handler)

    logging.captureWarnings(True)
    return log_file
