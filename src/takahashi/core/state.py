# src/takahashi/core/state.py

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from ..notifications.local_center import LocalNotificationCenter
from ..tasks.task_store import TaskStore


@dataclass(frozen=True, slots=True)
class NoSelection:
    """Nothing picked: the next /add creates a new task."""


@dataclass(frozen=True, slots=True)
class Selected:
    task_id: str


Selection = NoSelection | Selected


@dataclass
class AppState:
    """
    Everything the UI layer needs, built once at startup.

    One instance is created by the bootstrap and passed explicitly to the
    console connector and command handlers; nothing looks it up globally.
    """

    settings: Any
    task_store: TaskStore
    notification_center: LocalNotificationCenter
    selection: Selection = field(default_factory=NoSelection)
    notifications_authorized: bool = True

    def selected_task_id(self) -> str | None:
        match self.selection:
            case Selected(task_id=task_id):
                return task_id
            case _:
                return None

    def clear_selection_if_gone(self) -> None:
        """Drop a selection that points at a task which no longer exists."""
        task_id = self.selected_task_id()
        if task_id is None:
            return
        if all(t.id != task_id for t in self.task_store.tasks):
            self.selection = NoSelection()
