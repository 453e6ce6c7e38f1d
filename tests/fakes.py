# tests/fakes.py

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field

from takahashi.core.ports import CompletionCallback, Notifier
from takahashi.notifications.local_center import NotificationError, NotificationRequest


class FakeClock:
    """Manually advanced clock (POSIX seconds)."""

    def __init__(self, now: float = 1_800_000_000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class MemoryKeyValueStore:
    """In-memory KeyValueStore; `fail_writes` makes set() raise like a full disk."""

    def __init__(self, data: dict[str, str] | None = None) -> None:
        self.data: dict[str, str] = dict(data or {})
        self.fail_writes = False
        self.writes = 0

    def get(self, key: str) -> str | None:
        return self.data.get(key)

    def set(self, key: str, value: str) -> None:
        if self.fail_writes:
            raise OSError("disk full")
        self.writes += 1
        self.data[key] = value

    def delete(self, key: str) -> None:
        self.data.pop(key, None)

    def keys(self) -> list[str]:
        return sorted(self.data)


class RecordingNotificationCenter:
    """
    NotificationCenter that records requests.

    - reject=True reports every add() as failed through the completion callback
    - raise_on_add=True raises synchronously instead
    """

    def __init__(self, *, reject: bool = False, raise_on_add: bool = False) -> None:
        self.reject = reject
        self.raise_on_add = raise_on_add
        self.added: list[NotificationRequest] = []
        self.removed: list[str] = []

    def request_authorization(self) -> bool:
        return not self.reject

    def add(self, request: NotificationRequest, on_complete: CompletionCallback | None = None) -> None:
        if self.raise_on_add:
            raise NotificationError("platform unavailable")
        if self.reject:
            if on_complete is not None:
                on_complete(NotificationError("rejected"))
            return
        self.added.append(request)
        if on_complete is not None:
            on_complete(None)

    def remove_pending(self, request_ids: Iterable[str]) -> None:
        self.removed.extend(request_ids)

    def pending_ids(self) -> set[str]:
        return {r.id for r in self.added} - set(self.removed)


@dataclass(slots=True)
class ShownNotification:
    title: str
    body: str


@dataclass(slots=True)
class FakeNotifier(Notifier):
    """Notifier that records what would have been shown; fail_titles raise on send."""

    shown: list[ShownNotification] = field(default_factory=list)
    fail_titles: set[str] = field(default_factory=set)

    async def send_notification(self, *, title: str, body: str) -> None:
        if title in self.fail_titles:
            raise RuntimeError("display failed")
        self.shown.append(ShownNotification(title=title, body=body))
