# src/takahashi/notifications/local_center.py

from __future__ import annotations

import logging
import threading
import time
import uuid
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field

from ..core.ports import CompletionCallback

logger = logging.getLogger(__name__)


class NotificationError(RuntimeError):
    """The notification platform refused a request."""


@dataclass(frozen=True, slots=True)
class NotificationRequest:
    """
    A titled message to show at trigger_at (POSIX seconds).

    trigger_at=None means "as soon as possible".
    """

    title: str
    body: str
    trigger_at: float | None = None
    id: str = field(default_factory=lambda: uuid.uuid4().hex)

    def is_due(self, now: float) -> bool:
        return self.trigger_at is None or self.trigger_at <= now


class LocalNotificationCenter:
    """
    In-process notification platform.

    Keeps pending requests in memory until the delivery loop pops them.
    Requests whose trigger time already passed are delivered on the next poll.

    Thread-safety:
    - add/remove run on the console thread, pop_due on the delivery thread;
      the pending map is guarded by a lock
    """

    def __init__(self, *, authorized: bool = True, clock: Callable[[], float] = time.time) -> None:
        self._authorized = bool(authorized)
        self._clock = clock
        self._pending: dict[str, NotificationRequest] = {}
        self._lock = threading.Lock()

    def request_authorization(self) -> bool:
        if not self._authorized:
            logger.warning("Notification authorization denied; reminders are disabled.")
        return self._authorized

    def add(self, request: NotificationRequest, on_complete: CompletionCallback | None = None) -> None:
        error: Exception | None = None
        if not self._authorized:
            error = NotificationError("notifications are not authorized")
        else:
            with self._lock:
                self._pending[request.id] = request
            if request.trigger_at is not None and request.trigger_at <= self._clock():
                logger.debug("Notification %s trigger already passed; due immediately", request.id)

        if on_complete is not None:
            on_complete(error)
        elif error is not None:
            raise error

    def remove_pending(self, request_ids: Iterable[str]) -> None:
        with self._lock:
            for rid in request_ids:
                self._pending.pop(rid, None)

    def pending(self) -> list[NotificationRequest]:
        with self._lock:
            items = list(self._pending.values())
        items.sort(key=lambda r: r.trigger_at if r.trigger_at is not None else float("-inf"))
        return items

    def pop_due(self, now: float | None = None) -> list[NotificationRequest]:
        if now is None:
            now = self._clock()
        with self._lock:
            due = [r for r in self._pending.values() if r.is_due(now)]
            for r in due:
                del self._pending[r.id]
        due.sort(key=lambda r: r.trigger_at if r.trigger_at is not None else float("-inf"))
        return due
