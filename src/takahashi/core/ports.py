# src/takahashi/core/ports.py

from __future__ import annotations

"""
Ports (interfaces) used by the core.

The task store and reminder scheduler depend on Protocols instead of concrete
storage or notification backends, so both can be swapped in tests.
"""

from collections.abc import Awaitable, Callable, Iterable
from typing import Any, Protocol

# Called once a notification request has been accepted (None) or rejected (the error).
CompletionCallback = Callable[[Exception | None], None]


class KeyValueStore(Protocol):
    """Process-local key-value blob store."""

    def get(self, key: str) -> str | None: ...
    def set(self, key: str, value: str) -> None: ...
    def delete(self, key: str) -> None: ...
    def keys(self) -> list[str]: ...


class NotificationCenter(Protocol):
    """
    Platform side of reminders.

    Requests are fire-and-forget: the outcome is reported through on_complete,
    an implementation may also raise synchronously.
    """

    def request_authorization(self) -> bool: ...

    def add(self, request: Any, on_complete: CompletionCallback | None = None) -> None: ...

    def remove_pending(self, request_ids: Iterable[str]) -> None: ...


class Notifier(Protocol):
    """Connector-side port: how a due notification is shown to the user."""

    def send_notification(self, *, title: str, body: str) -> Awaitable[None]: ...
