# src/takahashi/tasks/reminder_scheduler.py

"""
Reminder scheduler.

Turns (subtask, lead time) pairs into notification requests and keeps a
per-subtask registry of what is pending, so reminders can be cancelled when a
subtask is deleted or its deadline changes.

When a reminder actually fires is the notification center's business.
"""

from __future__ import annotations

import dataclasses
import logging
import time
from collections.abc import Callable, Collection, Iterable

from ..core.ports import NotificationCenter
from ..notifications.local_center import NotificationRequest
from .task_models import LeadTime, Reminder, Subtask

logger = logging.getLogger(__name__)

REMINDER_TITLE = "Subtask deadline approaching"
OVERDUE_TITLE = "Subtask is overdue"


def trigger_time(deadline: float, lead: LeadTime | int) -> float:
    return float(deadline) - LeadTime.parse(lead).seconds


def _reminder_body(subtask_title: str, lead_minutes: int) -> str:
    try:
        label = LeadTime(lead_minutes).label
    except ValueError:
        return f"{subtask_title} is due soon."
    return f"{subtask_title} is due in {label.removesuffix(' before')}."


class ReminderScheduler:
    def __init__(self, center: NotificationCenter, *, clock: Callable[[], float] = time.time) -> None:
        self._center = center
        self._clock = clock
        # subtask id -> {reminder id -> Reminder}
        self._registry: dict[str, dict[str, Reminder]] = {}

    # ---- registry views ----

    def pending_for(self, subtask_id: str) -> list[Reminder]:
        return sorted(self._registry.get(subtask_id, {}).values(), key=lambda r: r.trigger_at)

    def reminders(self) -> list[Reminder]:
        out = [r for by_id in self._registry.values() for r in by_id.values()]
        out.sort(key=lambda r: (r.trigger_at, r.id))
        return out

    def reminder_index(self) -> dict[str, str]:
        """subtask id -> subtask title, for every subtask with pending reminders."""
        out: dict[str, str] = {}
        for subtask_id, by_id in self._registry.items():
            for r in by_id.values():
                out[subtask_id] = r.subtask_title
                break
        return out

    def _remember(self, reminder: Reminder) -> None:
        self._registry.setdefault(reminder.subtask_id, {})[reminder.id] = reminder

    def _forget(self, subtask_id: str, reminder_id: str) -> None:
        by_id = self._registry.get(subtask_id)
        if by_id is None:
            return
        by_id.pop(reminder_id, None)
        if not by_id:
            del self._registry[subtask_id]

    # ---- scheduling ----

    def _submit(self, reminder: Reminder, request: NotificationRequest, *, keep_on_reject: bool = False) -> None:
        def on_complete(error: Exception | None) -> None:
            if error is None:
                return
            logger.error(
                "Reminder registration failed subtask=%s reminder=%s: %s",
                reminder.subtask_id,
                reminder.id,
                error,
            )
            if not keep_on_reject:
                self._forget(reminder.subtask_id, reminder.id)

        try:
            self._center.add(request, on_complete)
        except Exception as e:
            on_complete(e)

    def schedule(
        self,
        subtask: Subtask,
        lead: LeadTime | int,
        *,
        task_title: str | None = None,
    ) -> Reminder | None:
        """
        Register a reminder at deadline - lead.

        Every call creates a new, independent reminder; callers that want to
        replace existing ones must cancel_all() first.
        """
        lead_time = LeadTime.parse(lead)
        if subtask.deadline is None:
            logger.debug("Subtask %s has no deadline; no reminder scheduled", subtask.id)
            return None

        trigger_at = trigger_time(subtask.deadline, lead_time)
        request = NotificationRequest(
            title=REMINDER_TITLE,
            body=_reminder_body(subtask.title, int(lead_time)),
            trigger_at=trigger_at,
        )
        reminder = Reminder(
            id=request.id,
            subtask_id=subtask.id,
            subtask_title=subtask.title,
            trigger_at=trigger_at,
            lead_minutes=int(lead_time),
            task_title=task_title,
        )

        if trigger_at <= self._clock():
            logger.info("Reminder for subtask %s is already past its trigger time", subtask.id)

        self._remember(reminder)
        self._submit(reminder, request)
        if reminder.id in self._registry.get(subtask.id, {}):
            logger.info(
                "Reminder scheduled subtask=%s lead=%smin trigger_at=%s",
                subtask.id,
                int(lead_time),
                trigger_at,
            )
            return reminder
        return None

    def cancel_all(self, subtask_id: str) -> int:
        by_id = self._registry.pop(subtask_id, None)
        if not by_id:
            return 0
        try:
            self._center.remove_pending(list(by_id))
        except Exception:
            logger.exception("remove_pending failed subtask=%s", subtask_id)
        logger.info("Cancelled %d reminders for subtask %s", len(by_id), subtask_id)
        return len(by_id)

    def notify_overdue(self, subtask: Subtask, *, task_title: str | None = None) -> None:
        """Immediate one-off notice; not tracked in the registry."""
        request = NotificationRequest(
            title=OVERDUE_TITLE,
            body=f"{subtask.title} is past its deadline.",
            trigger_at=None,
        )

        def on_complete(error: Exception | None) -> None:
            if error is not None:
                logger.error("Overdue notification failed subtask=%s: %s", subtask.id, error)

        try:
            self._center.add(request, on_complete)
        except Exception as e:
            on_complete(e)

    # ---- persistence helpers ----

    def prune(self, now: float | None = None) -> int:
        """Drop registry entries whose trigger time has passed."""
        if now is None:
            now = self._clock()
        expired = [r for r in self.reminders() if r.trigger_at < now]
        for r in expired:
            self._forget(r.subtask_id, r.id)
        return len(expired)

    def retitle(self, subtask_id: str, title: str) -> int:
        """Refresh the stored subtask title of pending entries; nothing is rescheduled."""
        by_id = self._registry.get(subtask_id)
        if not by_id:
            return 0
        for rid, r in list(by_id.items()):
            by_id[rid] = dataclasses.replace(r, subtask_title=title)
        return len(by_id)

    def restore(self, reminders: Iterable[Reminder], *, owned: Collection[str] | None = None) -> int:
        """
        Re-seed the registry from persisted reminders.

        Entries still in the future are re-submitted to the center, which
        does not keep requests across restarts. With `owned` given, entries for
        other subtask ids are kept in the registry (so validation can report
        them) but never armed. A center that rejects a re-submission leaves
        the entry in place for a later session.

        Returns how many were re-submitted.
        """
        now = self._clock()
        resubmitted = 0
        for r in reminders:
            self._remember(r)
            if r.trigger_at < now:
                continue
            if owned is not None and r.subtask_id not in owned:
                logger.warning("Reminder %s belongs to unknown subtask %s; not re-armed", r.id, r.subtask_id)
                continue
            request = NotificationRequest(
                title=REMINDER_TITLE,
                body=_reminder_body(r.subtask_title, r.lead_minutes),
                trigger_at=r.trigger_at,
                id=r.id,
            )
            self._submit(r, request, keep_on_reject=True)
            resubmitted += 1
        if resubmitted:
            logger.info("Restored %d pending reminders", resubmitted)
        return resubmitted
