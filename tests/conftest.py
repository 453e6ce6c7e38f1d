# tests/conftest.py

from __future__ import annotations

from pathlib import Path
from types import SimpleNamespace

import pytest

from takahashi.cli.bootstrap import create_initial_state
from takahashi.core.state import AppState
from takahashi.tasks.reminder_scheduler import ReminderScheduler
from takahashi.tasks.task_persistence import PersistenceAdapter
from takahashi.tasks.task_store import TaskStore

from .fakes import FakeClock, MemoryKeyValueStore, RecordingNotificationCenter


@pytest.fixture()
def settings(tmp_path: Path) -> SimpleNamespace:
    """
    Minimal settings object compatible with the bootstrap and commands.

    We intentionally use a SimpleNamespace rather than importing real config,
    to keep unit tests isolated from the environment and any local .env.
    """
    return SimpleNamespace(
        app_name="takahashi-test",
        log_level="DEBUG",
        console_enabled=False,
        data_dir=tmp_path / "data",
        store_db_path=tmp_path / "data" / "store.sqlite3",
        notifications_enabled=True,
        notification_poll_seconds=0.01,
        default_lead_minutes=30,
        title_max_length=30,
    )


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture()
def kv() -> MemoryKeyValueStore:
    return MemoryKeyValueStore()


@pytest.fixture()
def center() -> RecordingNotificationCenter:
    return RecordingNotificationCenter()


@pytest.fixture()
def store(kv: MemoryKeyValueStore, center: RecordingNotificationCenter, clock: FakeClock) -> TaskStore:
    """TaskStore over in-memory fakes, already opened on an empty key-value store."""
    s = TaskStore(PersistenceAdapter(kv), ReminderScheduler(center, clock=clock), clock=clock)
    s.open()
    return s


@pytest.fixture()
def state(settings: SimpleNamespace) -> AppState:
    """
    AppState wired by the real bootstrap.

    NOTE: We keep the real SQLite key-value store and local notification
    center here because the wiring itself is part of what we want to test.
    """
    return create_initial_state(settings=settings)
