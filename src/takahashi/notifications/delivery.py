# src/takahashi/notifications/delivery.py

from __future__ import annotations

"""
Notification delivery.

A small polling loop that:
- pops due requests from the local notification center,
- hands each one to an injected notifier port.

Presentation (console output, formatting) belongs to the notifier, not the loop.
"""

import asyncio
import contextlib
import logging
import threading
from dataclasses import dataclass

from ..core.ports import Notifier
from .local_center import LocalNotificationCenter

logger = logging.getLogger(__name__)


async def deliver_due(center: LocalNotificationCenter, notifier: Notifier, *, now: float | None = None) -> int:
    """Deliver everything that is due now. Returns how many were shown."""
    delivered = 0
    for request in center.pop_due(now):
        try:
            await notifier.send_notification(title=request.title, body=request.body)
            delivered += 1
            logger.info("Notification delivered id=%s title=%s", request.id, request.title)
        except Exception:
            logger.exception("Notification delivery failed id=%s", request.id)
    return delivered


async def run_notification_loop(
        center: LocalNotificationCenter,
        notifier: Notifier,
        *,
        interval_seconds: float = 1.0,
        stop_event: asyncio.Event | None = None,
) -> None:
    """
    Simple polling delivery loop.

    Every interval_seconds deliver all due requests. A failed delivery is
    logged and dropped; the loop keeps running.

    To stop the loop, cancel the coroutine/task or set stop_event.
    """
    sleep_s = max(0.01, float(interval_seconds))

    while stop_event is None or not stop_event.is_set():
        try:
            await deliver_due(center, notifier)
        except Exception:
            logger.exception("pop_due failed")

        if stop_event is None:
            await asyncio.sleep(sleep_s)
        else:
            with contextlib.suppress(asyncio.TimeoutError):
                await asyncio.wait_for(stop_event.wait(), timeout=sleep_s)


@dataclass(slots=True)
class NotificationBackgroundRunner:
    thread: threading.Thread
    loop: asyncio.AbstractEventLoop
    stop_event: asyncio.Event

    def stop(self) -> None:
        try:
            self.loop.call_soon_threadsafe(self.stop_event.set)
        except Exception:
            logger.debug("Failed to signal notification loop stop.", exc_info=True)

    def join(self, timeout: float | None = None) -> None:
        self.thread.join(timeout=timeout)


def start_notifications_in_background(
    center: LocalNotificationCenter,
    notifier: Notifier,
    *,
    interval_seconds: float = 1.0,
) -> NotificationBackgroundRunner | None:
    """
    Run the delivery loop in a background thread with its own event loop.

    The console REPL blocks on input(), so delivery cannot share its thread.
    """
    ready = threading.Event()
    holder: dict[str, object] = {}

    def runner() -> None:
        loop = asyncio.new_event_loop()
        asyncio.set_event_loop(loop)
        stop_event = asyncio.Event()

        holder["loop"] = loop
        holder["stop_event"] = stop_event
        ready.set()

        try:
            loop.run_until_complete(
                run_notification_loop(
                    center,
                    notifier,
                    interval_seconds=interval_seconds,
                    stop_event=stop_event,
                )
            )
        finally:
            with contextlib.suppress(Exception):
                loop.stop()
            with contextlib.suppress(Exception):
                loop.close()

    t = threading.Thread(target=runner, name="takahashi-notifications", daemon=True)
    t.start()

    ready.wait(timeout=5.0)
    loop = holder.get("loop")
    stop_event = holder.get("stop_event")

    if not isinstance(loop, asyncio.AbstractEventLoop) or not isinstance(stop_event, asyncio.Event):
        logger.error("Notification thread did not initialize properly.")
        return None

    logger.info("Notification delivery thread started (interval=%.2fs).", interval_seconds)
    return NotificationBackgroundRunner(thread=t, loop=loop, stop_event=stop_event)
