# src/takahashi/tasks/task_validator.py

from __future__ import annotations

"""
Structural checks over a loaded task collection.

The validator only reports. It never repairs or mutates the collection;
callers decide what to do with the report.
"""

import logging
import time
from collections import Counter, defaultdict
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from enum import StrEnum

from .task_models import Subtask, Task

logger = logging.getLogger(__name__)


class InconsistencyKind(StrEnum):
    DUPLICATE_TASK = "duplicate_task"
    DUPLICATE_SUBTASK = "duplicate_subtask"
    EMPTY_TASK = "empty_task"
    ORPHANED_SUBTASK = "orphaned_subtask"


@dataclass(frozen=True, slots=True)
class Inconsistency:
    kind: InconsistencyKind
    task_title: str | None
    subtask_title: str | None
    task_id: str | None = None
    subtask_id: str | None = None

    def describe(self) -> str:
        task = self.task_title if self.task_title is not None else "<none>"
        sub = self.subtask_title if self.subtask_title is not None else "<none>"
        return f"{self.kind.value}: task={task!r} subtask={sub!r}"


@dataclass(frozen=True, slots=True)
class OverdueSubtask:
    task: Task
    subtask: Subtask


@dataclass(slots=True)
class ValidationReport:
    issues: list[Inconsistency] = field(default_factory=list)
    overdue: list[OverdueSubtask] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.issues

    def of_kind(self, kind: InconsistencyKind) -> list[Inconsistency]:
        return [i for i in self.issues if i.kind == kind]


def validate_tasks(
    tasks: Sequence[Task],
    *,
    reminder_index: Mapping[str, str] | None = None,
    now: float | None = None,
) -> ValidationReport:
    """
    Check that every subtask is reachable through exactly one owning task.

    reminder_index maps subtask id -> subtask title for every subtask that
    still has pending reminders. A subtask id found there but owned by no task
    is an orphan (the owning record was lost, e.g. a truncated blob).

    Subtasks with deadline <= now are collected into report.overdue.
    """
    if now is None:
        now = time.time()

    report = ValidationReport()
    owners: dict[str, list[Task]] = defaultdict(list)
    task_ids: Counter[str] = Counter()

    for task in tasks:
        task_ids[task.id] += 1
        if task_ids[task.id] > 1:
            report.issues.append(
                Inconsistency(
                    kind=InconsistencyKind.DUPLICATE_TASK,
                    task_title=task.title,
                    subtask_title=None,
                    task_id=task.id,
                )
            )

        if not task.subtasks:
            report.issues.append(
                Inconsistency(
                    kind=InconsistencyKind.EMPTY_TASK,
                    task_title=task.title,
                    subtask_title=None,
                    task_id=task.id,
                )
            )

        for subtask in task.subtasks:
            owners[subtask.id].append(task)
            # First occurrence is the owner; every further one is a duplicate.
            if len(owners[subtask.id]) > 1:
                report.issues.append(
                    Inconsistency(
                        kind=InconsistencyKind.DUPLICATE_SUBTASK,
                        task_title=task.title,
                        subtask_title=subtask.title,
                        task_id=task.id,
                        subtask_id=subtask.id,
                    )
                )

            if subtask.deadline is not None and subtask.deadline <= now:
                report.overdue.append(OverdueSubtask(task=task, subtask=subtask))

    for subtask_id, subtask_title in (reminder_index or {}).items():
        if subtask_id not in owners:
            report.issues.append(
                Inconsistency(
                    kind=InconsistencyKind.ORPHANED_SUBTASK,
                    task_title=None,
                    subtask_title=subtask_title,
                    subtask_id=subtask_id,
                )
            )

    for issue in report.issues:
        logger.warning("Inconsistency found: %s", issue.describe())

    if report.overdue:
        logger.info("Validation found %d overdue subtasks", len(report.overdue))

    return report
