# tests/test_notification_delivery.py

from __future__ import annotations

import asyncio
import time

import pytest

from takahashi.notifications.delivery import deliver_due, run_notification_loop
from takahashi.notifications.local_center import (
    LocalNotificationCenter,
    NotificationError,
    NotificationRequest,
)

from .fakes import FakeClock, FakeNotifier


def test_unauthorized_center_rejects_requests() -> None:
    center = LocalNotificationCenter(authorized=False)
    assert center.request_authorization() is False

    outcomes: list[Exception | None] = []
    center.add(NotificationRequest(title="t", body="b"), outcomes.append)
    assert isinstance(outcomes[0], NotificationError)
    assert center.pending() == []

    with pytest.raises(NotificationError):
        center.add(NotificationRequest(title="t", body="b"))


def test_pop_due_returns_due_requests_in_trigger_order(clock: FakeClock) -> None:
    center = LocalNotificationCenter(clock=clock)
    later = NotificationRequest(title="later", body="", trigger_at=clock.now - 10)
    earlier = NotificationRequest(title="earlier", body="", trigger_at=clock.now - 20)
    future = NotificationRequest(title="future", body="", trigger_at=clock.now + 60)
    now = NotificationRequest(title="now", body="")
    for r in (later, earlier, future, now):
        center.add(r, lambda err: None)

    assert [r.title for r in center.pop_due()] == ["now", "earlier", "later"]
    assert center.pending() == [future]
    assert center.pop_due() == []

    clock.advance(60)
    assert center.pop_due() == [future]


def test_remove_pending_ignores_unknown_ids(clock: FakeClock) -> None:
    center = LocalNotificationCenter(clock=clock)
    r = NotificationRequest(title="t", body="b", trigger_at=clock.now + 5)
    center.add(r)
    center.remove_pending([r.id, "unknown"])
    assert center.pending() == []


@pytest.mark.asyncio
async def test_deliver_due_keeps_going_after_a_failed_send(clock: FakeClock) -> None:
    center = LocalNotificationCenter(clock=clock)
    center.add(NotificationRequest(title="broken", body="x", trigger_at=clock.now - 2))
    center.add(NotificationRequest(title="fine", body="y", trigger_at=clock.now - 1))
    notifier = FakeNotifier(fail_titles={"broken"})

    assert await deliver_due(center, notifier) == 1
    assert [n.title for n in notifier.shown] == ["fine"]
    # Failed deliveries are dropped, not retried.
    assert center.pending() == []


@pytest.mark.asyncio
async def test_loop_delivers_due_notification_once() -> None:
    center = LocalNotificationCenter()
    center.add(NotificationRequest(title="Subtask deadline approaching", body="ping", trigger_at=time.time() - 1))
    future = NotificationRequest(title="later", body="", trigger_at=time.time() + 3600)
    center.add(future)
    notifier = FakeNotifier()

    runner = asyncio.create_task(run_notification_loop(center, notifier, interval_seconds=0.01))

    await asyncio.sleep(0.05)
    runner.cancel()
    with pytest.raises(asyncio.CancelledError):
        await runner

    assert [n.body for n in notifier.shown] == ["ping"]
    assert center.pending() == [future]


@pytest.mark.asyncio
async def test_loop_stops_when_stop_event_is_set() -> None:
    center = LocalNotificationCenter()
    notifier = FakeNotifier()
    stop_event = asyncio.Event()

    runner = asyncio.create_task(
        run_notification_loop(center, notifier, interval_seconds=0.01, stop_event=stop_event)
    )
    await asyncio.sleep(0.02)
    center.add(NotificationRequest(title="late", body="still delivered"))
    await asyncio.sleep(0.05)
    stop_event.set()

    await asyncio.wait_for(runner, timeout=1.0)
    assert [n.body for n in notifier.shown] == ["still delivered"]
