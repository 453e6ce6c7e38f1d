# src/takahashi/tasks/task_models.py

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from enum import IntEnum
from typing import Any

DEFAULT_TITLE_MAX_LENGTH = 30


class LeadTime(IntEnum):
    """How long before a deadline a reminder fires (minutes)."""

    MIN_5 = 5
    MIN_10 = 10
    MIN_15 = 15
    MIN_30 = 30
    HOUR_1 = 60
    HOUR_2 = 120
    HOUR_3 = 180
    HOUR_6 = 360

    @property
    def seconds(self) -> int:
        return int(self.value) * 60

    @property
    def label(self) -> str:
        minutes = int(self.value)
        if minutes < 60:
            return f"{minutes} minutes before"
        hours = minutes // 60
        return "1 hour before" if hours == 1 else f"{hours} hours before"

    @classmethod
    def parse(cls, raw: int | float | str) -> LeadTime:
        try:
            if isinstance(raw, bool) or (isinstance(raw, float) and not raw.is_integer()):
                raise ValueError(raw)
            return cls(int(raw))
        except (TypeError, ValueError):
            allowed = ", ".join(str(int(m)) for m in cls)
            raise ValueError(f"lead time must be one of: {allowed} (got {raw!r})") from None


def new_id() -> str:
    return uuid.uuid4().hex


def normalize_title(raw: str, max_length: int = DEFAULT_TITLE_MAX_LENGTH) -> str:
    """Strip and clip a title; empty titles are rejected."""
    title = (raw or "").strip()
    if not title:
        raise ValueError("title is required")
    return title[: max(1, int(max_length))]


@dataclass(frozen=True, slots=True, eq=False)
class Subtask:
    """Equal when ids match; compare to_dict() for content."""

    title: str
    deadline: float | None = None
    memo: str | None = None
    id: str = field(default_factory=new_id)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Subtask):
            return NotImplemented
        return self.id == other.id

    def __hash__(self) -> int:
        return hash(("subtask", self.id))

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {"id": self.id, "title": self.title}
        if self.deadline is not None:
            out["deadline"] = float(self.deadline)
        if self.memo is not None:
            out["memo"] = self.memo
        return out

    @classmethod
    def from_dict(cls, raw: Any) -> Subtask:
        if not isinstance(raw, dict):
            raise ValueError("subtask record must be an object")
        sid = raw.get("id")
        title = raw.get("title")
        if not isinstance(sid, str) or not sid:
            raise ValueError("subtask id missing")
        if not isinstance(title, str):
            raise ValueError(f"subtask {sid} has no title")

        deadline = raw.get("deadline")
        if deadline is not None:
            if isinstance(deadline, bool) or not isinstance(deadline, (int, float)):
                raise ValueError(f"subtask {sid} has invalid deadline")
            deadline = float(deadline)

        memo = raw.get("memo")
        if memo is not None and not isinstance(memo, str):
            raise ValueError(f"subtask {sid} has invalid memo")

        return cls(id=sid, title=title, deadline=deadline, memo=memo)


@dataclass(frozen=True, slots=True, eq=False)
class Task:
    """Equal when ids match; subtasks are ordered."""

    title: str
    subtasks: tuple[Subtask, ...] = ()
    id: str = field(default_factory=new_id)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Task):
            return NotImplemented
        return self.id == other.id

    def __hash__(self) -> int:
        return hash(("task", self.id))

    def find_subtask(self, subtask_id: str) -> Subtask | None:
        for st in self.subtasks:
            if st.id == subtask_id:
                return st
        return None

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "subtasks": [st.to_dict() for st in self.subtasks],
        }

    @classmethod
    def from_dict(cls, raw: Any) -> Task:
        if not isinstance(raw, dict):
            raise ValueError("task record must be an object")
        tid = raw.get("id")
        title = raw.get("title")
        subtasks = raw.get("subtasks")
        if not isinstance(tid, str) or not tid:
            raise ValueError("task id missing")
        if not isinstance(title, str):
            raise ValueError(f"task {tid} has no title")
        if not isinstance(subtasks, list):
            raise ValueError(f"task {tid} has no subtask list")
        return cls(id=tid, title=title, subtasks=tuple(Subtask.from_dict(s) for s in subtasks))


@dataclass(frozen=True, slots=True)
class Reminder:
    """One pending lead-time reminder registered for a subtask."""

    id: str
    subtask_id: str
    subtask_title: str
    trigger_at: float
    lead_minutes: int
    task_title: str | None = None

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {
            "id": self.id,
            "subtask_id": self.subtask_id,
            "subtask_title": self.subtask_title,
            "trigger_at": float(self.trigger_at),
            "lead_minutes": int(self.lead_minutes),
        }
        if self.task_title is not None:
            out["task_title"] = self.task_title
        return out

    @classmethod
    def from_dict(cls, raw: Any) -> Reminder:
        if not isinstance(raw, dict):
            raise ValueError("reminder record must be an object")
        try:
            task_title = raw.get("task_title")
            return cls(
                id=str(raw["id"]),
                subtask_id=str(raw["subtask_id"]),
                subtask_title=str(raw.get("subtask_title") or ""),
                trigger_at=float(raw["trigger_at"]),
                lead_minutes=int(raw.get("lead_minutes") or 0),
                task_title=None if task_title is None else str(task_title),
            )
        except (KeyError, TypeError, ValueError) as e:
            raise ValueError(f"invalid reminder record: {e}") from e
