# tests/test_reminder_scheduler.py

from __future__ import annotations

import pytest

from takahashi.tasks.reminder_scheduler import (
    OVERDUE_TITLE,
    REMINDER_TITLE,
    ReminderScheduler,
    trigger_time,
)
from takahashi.tasks.task_models import LeadTime, Reminder, Subtask

from .fakes import FakeClock, RecordingNotificationCenter


def test_trigger_time_is_deadline_minus_lead() -> None:
    assert trigger_time(10_000.0, LeadTime.MIN_30) == 10_000.0 - 1800
    assert trigger_time(10_000.0, 360) == 10_000.0 - 6 * 3600
    with pytest.raises(ValueError):
        trigger_time(10_000.0, 7)


def test_schedule_registers_request_at_trigger_time(
    center: RecordingNotificationCenter, clock: FakeClock
) -> None:
    scheduler = ReminderScheduler(center, clock=clock)
    deadline = clock.now + 3600
    st = Subtask(title="Buy milk", deadline=deadline)

    reminder = scheduler.schedule(st, LeadTime.MIN_30, task_title="Groceries")

    assert reminder is not None
    assert reminder.trigger_at == deadline - 1800
    assert reminder.task_title == "Groceries"
    [request] = center.added
    assert request.id == reminder.id
    assert request.trigger_at == deadline - 1800
    assert request.title == REMINDER_TITLE
    assert request.body == "Buy milk is due in 30 minutes."
    assert scheduler.pending_for(st.id) == [reminder]
    assert scheduler.reminder_index() == {st.id: "Buy milk"}


def test_schedule_without_deadline_does_nothing(center: RecordingNotificationCenter) -> None:
    scheduler = ReminderScheduler(center)
    assert scheduler.schedule(Subtask(title="Someday"), LeadTime.MIN_5) is None
    assert center.added == []
    assert scheduler.reminders() == []


def test_repeated_scheduling_creates_independent_reminders(
    center: RecordingNotificationCenter, clock: FakeClock
) -> None:
    scheduler = ReminderScheduler(center, clock=clock)
    st = Subtask(title="Buy milk", deadline=clock.now + 7200)

    first = scheduler.schedule(st, LeadTime.MIN_30)
    second = scheduler.schedule(st, LeadTime.MIN_30)

    assert first is not None and second is not None
    assert first.id != second.id
    assert len(center.added) == 2
    assert len(scheduler.pending_for(st.id)) == 2


def test_cancel_all_removes_every_pending_reminder_of_the_subtask(
    center: RecordingNotificationCenter, clock: FakeClock
) -> None:
    scheduler = ReminderScheduler(center, clock=clock)
    milk = Subtask(title="Buy milk", deadline=clock.now + 7200)
    eggs = Subtask(title="Buy eggs", deadline=clock.now + 7200)
    scheduler.schedule(milk, LeadTime.MIN_5)
    scheduler.schedule(milk, LeadTime.HOUR_1)
    kept = scheduler.schedule(eggs, LeadTime.MIN_5)

    assert scheduler.cancel_all(milk.id) == 2
    assert scheduler.cancel_all(milk.id) == 0

    assert len(center.removed) == 2
    assert center.pending_ids() == {kept.id}
    assert scheduler.pending_for(milk.id) == []
    assert scheduler.reminders() == [kept]


def test_rejected_registration_is_logged_and_dropped(clock: FakeClock, caplog) -> None:
    scheduler = ReminderScheduler(RecordingNotificationCenter(reject=True), clock=clock)
    st = Subtask(title="Buy milk", deadline=clock.now + 3600)

    assert scheduler.schedule(st, LeadTime.MIN_30) is None
    assert scheduler.reminders() == []
    assert any("Reminder registration failed" in r.getMessage() for r in caplog.records)


def test_raising_platform_does_not_escape(clock: FakeClock, caplog) -> None:
    scheduler = ReminderScheduler(RecordingNotificationCenter(raise_on_add=True), clock=clock)
    st = Subtask(title="Buy milk", deadline=clock.now + 3600)

    assert scheduler.schedule(st, LeadTime.MIN_30) is None
    scheduler.notify_overdue(st)
    assert any("Overdue notification failed" in r.getMessage() for r in caplog.records)


def test_past_trigger_is_still_submitted(center: RecordingNotificationCenter, clock: FakeClock) -> None:
    scheduler = ReminderScheduler(center, clock=clock)
    st = Subtask(title="Soon", deadline=clock.now + 60)

    reminder = scheduler.schedule(st, LeadTime.MIN_10)

    assert reminder is not None
    assert reminder.trigger_at < clock.now
    assert len(center.added) == 1


def test_overdue_notice_is_immediate_and_untracked(
    center: RecordingNotificationCenter, clock: FakeClock
) -> None:
    scheduler = ReminderScheduler(center, clock=clock)
    st = Subtask(title="Pay rent", deadline=clock.now - 10)

    scheduler.notify_overdue(st)

    [request] = center.added
    assert request.trigger_at is None
    assert request.title == OVERDUE_TITLE
    assert request.body == "Pay rent is past its deadline."
    assert scheduler.reminders() == []


def test_prune_drops_expired_entries(center: RecordingNotificationCenter, clock: FakeClock) -> None:
    scheduler = ReminderScheduler(center, clock=clock)
    st = Subtask(title="Buy milk", deadline=clock.now + 3600)
    scheduler.schedule(st, LeadTime.MIN_30)

    assert scheduler.prune() == 0
    clock.advance(1801)
    assert scheduler.prune() == 1
    assert scheduler.reminders() == []


def test_restore_resubmits_only_future_reminders(
    center: RecordingNotificationCenter, clock: FakeClock
) -> None:
    future = Reminder(
        id="r-future",
        subtask_id="s1",
        subtask_title="Buy milk",
        trigger_at=clock.now + 100,
        lead_minutes=60,
    )
    past = Reminder(
        id="r-past",
        subtask_id="s2",
        subtask_title="Buy eggs",
        trigger_at=clock.now - 100,
        lead_minutes=5,
    )
    scheduler = ReminderScheduler(center, clock=clock)

    assert scheduler.restore([future, past]) == 1

    [request] = center.added
    assert request.id == "r-future"
    assert request.body == "Buy milk is due in 1 hour."
    assert scheduler.reminder_index() == {"s1": "Buy milk", "s2": "Buy eggs"}
