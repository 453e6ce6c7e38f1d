# src/takahashi/cli/bootstrap.py

"""
CLI bootstrap helpers.

This module is the "composition root":
- loads settings once,
- ensures local (gitignored) directories exist,
- wires the key-value store, notification center, reminder scheduler and
  task store into AppState,
- loads persisted tasks and runs the startup validation.
"""

from __future__ import annotations

import logging

from ..config import get_settings
from ..core.state import AppState
from ..notifications.local_center import LocalNotificationCenter
from ..tasks.kv_store import SqliteKeyValueStore
from ..tasks.reminder_scheduler import ReminderScheduler
from ..tasks.task_models import DEFAULT_TITLE_MAX_LENGTH
from ..tasks.task_persistence import PersistenceAdapter
from ..tasks.task_store import TaskStore

logger = logging.getLogger(__name__)


def _ensure_local_dirs(settings) -> None:
    settings.data_dir.mkdir(parents=True, exist_ok=True)
    settings.store_db_path.parent.mkdir(parents=True, exist_ok=True)


def create_initial_state(*, settings=None) -> AppState:
    """
    Create AppState from the provided settings and open the task store.

    Keeping settings injectable makes the app easier to test and avoids hidden global config reads.
    If settings is None, falls back to get_settings().
    """
    if settings is None:
        settings = get_settings()

    _ensure_local_dirs(settings)

    center = LocalNotificationCenter(authorized=bool(getattr(settings, "notifications_enabled", True)))
    authorized = center.request_authorization()

    store = TaskStore(
        PersistenceAdapter(SqliteKeyValueStore(settings.store_db_path)),
        ReminderScheduler(center),
        title_max_length=int(getattr(settings, "title_max_length", DEFAULT_TITLE_MAX_LENGTH)),
    )
    report = store.open()
    if not report.ok:
        logger.warning("Startup validation found %d inconsistencies", len(report.issues))

    return AppState(
        settings=settings,
        task_store=store,
        notification_center=center,
        notifications_authorized=authorized,
    )
