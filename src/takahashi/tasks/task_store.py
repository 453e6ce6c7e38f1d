# src/takahashi/tasks/task_store.py

from __future__ import annotations

import dataclasses
import logging
import time
from collections.abc import Callable

from .reminder_scheduler import ReminderScheduler
from .task_models import DEFAULT_TITLE_MAX_LENGTH, LeadTime, Subtask, Task, normalize_title
from .task_persistence import PersistenceAdapter
from .task_validator import ValidationReport, validate_tasks

logger = logging.getLogger(__name__)

TasksObserver = Callable[[tuple[Task, ...]], None]


class TaskNotFoundError(LookupError):
    pass


class SubtaskNotFoundError(LookupError):
    pass


class TaskStore:
    """
    In-memory source of truth for the task collection.

    Every mutation:
    - updates the in-memory collection,
    - schedules/cancels reminders for the affected subtasks,
    - flushes tasks and the reminder registry through the persistence adapter,
    - notifies observers with the new snapshot.

    Persistence and reminder failures are logged and never roll back memory.

    Thread-safety:
    - none; all mutations are expected on one thread (the UI loop)
    """

    def __init__(
        self,
        persistence: PersistenceAdapter,
        scheduler: ReminderScheduler,
        *,
        title_max_length: int = DEFAULT_TITLE_MAX_LENGTH,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._persistence = persistence
        self._scheduler = scheduler
        self._title_max_length = int(title_max_length)
        self._clock = clock
        self._tasks: list[Task] = []
        self._observers: list[TasksObserver] = []

    @property
    def scheduler(self) -> ReminderScheduler:
        return self._scheduler

    def open(self) -> ValidationReport:
        """Load persisted state, re-arm pending reminders, validate once."""
        self._tasks = self._persistence.load()
        owned = {st.id for t in self._tasks for st in t.subtasks}
        self._scheduler.restore(self._persistence.load_reminders(), owned=owned)
        logger.info("TaskStore ready tasks=%d", len(self._tasks))
        return self.validate()

    # ---- read side ----

    @property
    def tasks(self) -> tuple[Task, ...]:
        return tuple(self._tasks)

    def subscribe(self, observer: TasksObserver) -> Callable[[], None]:
        self._observers.append(observer)

        def unsubscribe() -> None:
            if observer in self._observers:
                self._observers.remove(observer)

        return unsubscribe

    def get_task(self, task_id: str) -> Task:
        return self._tasks[self._task_index(task_id)]

    def find_task_by_title(self, title: str) -> Task | None:
        for t in self._tasks:
            if t.title == title:
                return t
        return None

    def new_subtask(self, title: str, deadline: float | None = None, memo: str | None = None) -> Subtask:
        return Subtask(
            title=normalize_title(title, self._title_max_length),
            deadline=None if deadline is None else float(deadline),
            memo=memo,
        )

    # ---- low-level helpers ----

    def _task_index(self, task_id: str) -> int:
        for i, t in enumerate(self._tasks):
            if t.id == task_id:
                return i
        raise TaskNotFoundError(f"no task with id {task_id}")

    @staticmethod
    def _subtask_index(task: Task, subtask_id: str) -> int:
        for i, st in enumerate(task.subtasks):
            if st.id == subtask_id:
                return i
        raise SubtaskNotFoundError(f"task {task.id} has no subtask {subtask_id}")

    def _ensure_new_subtask_id(self, subtask_id: str) -> None:
        for t in self._tasks:
            if t.find_subtask(subtask_id) is not None:
                raise ValueError(f"subtask {subtask_id} already belongs to task {t.id}")

    def _flush(self) -> None:
        self._scheduler.prune(self._clock())
        self._persistence.save(self._tasks)
        self._persistence.save_reminders(self._scheduler.reminders())

        snapshot = self.tasks
        for observer in list(self._observers):
            try:
                observer(snapshot)
            except Exception:
                logger.exception("Tasks observer failed")

    # ---- mutations ----

    def add_task(self, title: str, first_subtask: Subtask, lead: LeadTime | int = LeadTime.MIN_5) -> Task:
        lead_time = LeadTime.parse(lead)
        self._ensure_new_subtask_id(first_subtask.id)
        task = Task(title=normalize_title(title, self._title_max_length), subtasks=(first_subtask,))
        self._tasks.append(task)
        logger.info("Task added id=%s title=%s", task.id, task.title)

        self._scheduler.schedule(first_subtask, lead_time, task_title=task.title)
        self._flush()
        return task

    def add_subtask(self, task_id: str, subtask: Subtask, lead: LeadTime | int = LeadTime.MIN_5) -> Subtask:
        lead_time = LeadTime.parse(lead)
        idx = self._task_index(task_id)
        self._ensure_new_subtask_id(subtask.id)
        task = self._tasks[idx]
        self._tasks[idx] = dataclasses.replace(task, subtasks=(*task.subtasks, subtask))
        logger.info("Subtask added task=%s subtask=%s", task_id, subtask.id)

        self._scheduler.schedule(subtask, lead_time, task_title=task.title)
        self._flush()
        return subtask

    def update_subtask(
        self,
        task_id: str,
        subtask_id: str,
        new_title: str,
        new_memo: str | None,
    ) -> Subtask:
        """Edit title/memo in place. Pending reminders keep their trigger times."""
        idx = self._task_index(task_id)
        task = self._tasks[idx]
        sidx = self._subtask_index(task, subtask_id)
        updated = dataclasses.replace(
            task.subtasks[sidx],
            title=normalize_title(new_title, self._title_max_length),
            memo=new_memo,
        )
        subtasks = list(task.subtasks)
        subtasks[sidx] = updated
        self._tasks[idx] = dataclasses.replace(task, subtasks=tuple(subtasks))
        logger.debug("Subtask updated task=%s subtask=%s", task_id, subtask_id)
        self._scheduler.retitle(subtask_id, updated.title)

        self._flush()
        return updated

    def update_deadline(
        self,
        task_id: str,
        subtask_id: str,
        deadline: float | None,
        lead: LeadTime | int = LeadTime.MIN_5,
    ) -> Subtask:
        """Change (or clear) a deadline; old reminders are cancelled first."""
        lead_time = LeadTime.parse(lead)
        idx = self._task_index(task_id)
        task = self._tasks[idx]
        sidx = self._subtask_index(task, subtask_id)
        updated = dataclasses.replace(
            task.subtasks[sidx],
            deadline=None if deadline is None else float(deadline),
        )
        subtasks = list(task.subtasks)
        subtasks[sidx] = updated
        self._tasks[idx] = dataclasses.replace(task, subtasks=tuple(subtasks))
        logger.info("Subtask deadline changed task=%s subtask=%s deadline=%s", task_id, subtask_id, deadline)

        self._scheduler.cancel_all(subtask_id)
        self._scheduler.schedule(updated, lead_time, task_title=task.title)
        self._flush()
        return updated

    def delete_subtask(self, task_id: str, subtask_id: str) -> bool:
        """
        Remove a subtask and cancel its reminders.

        A task without subtasks is not kept: removing the last subtask removes
        the task too. Returns True when that happened.
        """
        idx = self._task_index(task_id)
        task = self._tasks[idx]
        self._subtask_index(task, subtask_id)

        remaining = tuple(st for st in task.subtasks if st.id != subtask_id)
        task_removed = not remaining
        if task_removed:
            del self._tasks[idx]
            logger.info("Task removed with its last subtask task=%s subtask=%s", task_id, subtask_id)
        else:
            self._tasks[idx] = dataclasses.replace(task, subtasks=remaining)
            logger.info("Subtask removed task=%s subtask=%s", task_id, subtask_id)

        self._scheduler.cancel_all(subtask_id)
        self._flush()
        return task_removed

    def delete_task(self, task_id: str) -> Task:
        idx = self._task_index(task_id)
        task = self._tasks.pop(idx)
        logger.info("Task removed id=%s subtasks=%d", task_id, len(task.subtasks))

        for st in task.subtasks:
            self._scheduler.cancel_all(st.id)
        self._flush()
        return task

    # ---- consistency ----

    def validate(self) -> ValidationReport:
        """Report structural problems and send one overdue notice per past-due subtask."""
        report = validate_tasks(
            self._tasks,
            reminder_index=self._scheduler.reminder_index(),
            now=self._clock(),
        )
        for item in report.overdue:
            self._scheduler.notify_overdue(item.subtask, task_title=item.task.title)
        return report
