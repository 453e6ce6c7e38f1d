# src/takahashi/tasks/task_persistence.py

from __future__ import annotations

import contextlib
import json
import logging
from collections.abc import Iterable, Sequence

from ..core.ports import KeyValueStore
from .task_models import Reminder, Task

logger = logging.getLogger(__name__)

TASKS_KEY = "tasks"
REMINDERS_KEY = "reminders"


def encode_tasks(tasks: Iterable[Task]) -> str:
    return json.dumps([t.to_dict() for t in tasks], ensure_ascii=False)


def decode_tasks(blob: str) -> list[Task]:
    """Strict decode: any malformed record fails the whole collection."""
    data = json.loads(blob)
    if not isinstance(data, list):
        raise ValueError("task collection must be a list")
    return [Task.from_dict(item) for item in data]


class PersistenceAdapter:
    """
    Load/save the whole task collection as one JSON blob under a single key.

    Nothing here raises to the caller:
    - load() degrades to an empty collection on missing or undecodable state
    - save() logs and returns False when the write fails
    """

    def __init__(
        self,
        kv: KeyValueStore,
        *,
        key: str = TASKS_KEY,
        reminders_key: str = REMINDERS_KEY,
    ) -> None:
        self._kv = kv
        self._key = key
        self._reminders_key = reminders_key

    @property
    def key(self) -> str:
        return self._key

    def load(self) -> list[Task]:
        try:
            blob = self._kv.get(self._key)
        except Exception:
            logger.exception("Failed to read stored tasks key=%s", self._key)
            return []

        if blob is None:
            logger.info("No stored tasks key=%s", self._key)
            return []

        try:
            tasks = decode_tasks(blob)
        except (ValueError, TypeError) as e:
            # json.JSONDecodeError is a ValueError.
            logger.warning(
                "Stored tasks could not be decoded (%s); starting with an empty collection. "
                "Raw data kept under key=%s.corrupt",
                e,
                self._key,
            )
            with contextlib.suppress(Exception):
                self._kv.set(f"{self._key}.corrupt", blob)
            return []

        logger.info("Loaded %d tasks key=%s", len(tasks), self._key)
        return tasks

    def save(self, tasks: Sequence[Task]) -> bool:
        try:
            self._kv.set(self._key, encode_tasks(tasks))
        except Exception:
            logger.exception("Failed to save %d tasks; keeping in-memory state", len(tasks))
            return False
        logger.debug("Saved %d tasks key=%s", len(tasks), self._key)
        return True

    def load_reminders(self) -> list[Reminder]:
        try:
            blob = self._kv.get(self._reminders_key)
        except Exception:
            logger.exception("Failed to read stored reminders key=%s", self._reminders_key)
            return []
        if blob is None:
            return []

        try:
            data = json.loads(blob)
            if not isinstance(data, list):
                raise ValueError("reminder registry must be a list")
            return [Reminder.from_dict(item) for item in data]
        except (ValueError, TypeError) as e:
            logger.warning("Stored reminders could not be decoded (%s); ignoring them.", e)
            return []

    def save_reminders(self, reminders: Iterable[Reminder]) -> bool:
        items = [r.to_dict() for r in reminders]
        try:
            self._kv.set(self._reminders_key, json.dumps(items, ensure_ascii=False))
        except Exception:
            logger.exception("Failed to save %d reminders", len(items))
            return False
        return True
