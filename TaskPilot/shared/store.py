"""
Schedule and settings storage interfaces plus in-memory implementations
"""

from __future__ import annotations

import logging
import threading
from abc import ABC, abstractmethod
from collections.abc import Callable
from datetime import date
from typing import Any

from TaskPilot.shared.errors import TaskNotFoundError
from TaskPilot.shared.models import ScheduledTask, TaskData, TimeSlot, UserSettings

logger = logging.getLogger(__name__)

ChangeListener = Callable[[str, dict[str, Any]], None]


class ScheduleStore(ABC):
    """Ordered collection of scheduled tasks.

    Listings are sorted by slot start ascending. Listeners registered with
    ``subscribe`` are called as ``listener(event, payload)`` after every change,
    where event is one of ``added``, ``updated``, ``removed`` or ``cleared``.
    """

    def __init__(self):
        self._listeners: list[ChangeListener] = []

    @abstractmethod
    def list_all(self) -> list[ScheduledTask]:
        pass

    @abstractmethod
    def get(self, task_id: str) -> ScheduledTask | None:
        pass

    @abstractmethod
    def save(self, scheduled: ScheduledTask) -> ScheduledTask:
        """Insert or replace a scheduled task"""
        pass

    @abstractmethod
    def remove(self, task_id: str) -> None:
        pass

    @abstractmethod
    def clear(self) -> None:
        pass

    def list_range(self, start: date, end: date) -> list[ScheduledTask]:
        """Tasks dated within [start, end] inclusive"""
        return [t for t in self.list_all() if start <= t.time_slot.date <= end]

    def list_for_day(self, day: date) -> list[ScheduledTask]:
        return self.list_range(day, day)

    def list_incomplete(self) -> list[ScheduledTask]:
        return [t for t in self.list_all() if not t.is_completed]

    def list_completed(self) -> list[ScheduledTask]:
        return [t for t in self.list_all() if t.is_completed]

    def add(self, task: TaskData, slot: TimeSlot, created_at: int = 0) -> ScheduledTask:
        return self.save(ScheduledTask(task=task, time_slot=slot, created_at=created_at))

    def update(self, task_id: str, **fields: Any) -> ScheduledTask:
        """Replace fields of a stored task. Nested models may be given as dicts."""
        current = self.get(task_id)
        if current is None:
            raise TaskNotFoundError(task_id)
        data = current.model_dump()
        data.update(fields)
        data["id"] = task_id
        updated = ScheduledTask.model_validate(data)
        return self.save(updated)

    def mark_complete(self, task_id: str) -> ScheduledTask:
        return self.update(task_id, is_completed=True)

    def mark_incomplete(self, task_id: str) -> ScheduledTask:
        return self.update(task_id, is_completed=False)

    def subscribe(self, listener: ChangeListener) -> Callable[[], None]:
        """Register a change listener; returns a function that unregisters it"""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _notify(self, event: str, payload: dict[str, Any]) -> None:
        for listener in list(self._listeners):
            try:
                listener(event, payload)
            except Exception as e:
                logger.error(f"Schedule listener failed on {event}: {e}", exc_info=True)


class InMemoryScheduleStore(ScheduleStore):
    """Process-local store, used for tests and when Redis is unavailable"""

    def __init__(self, tasks: list[ScheduledTask] | None = None):
        super().__init__()
        self._lock = threading.Lock()
        self._tasks: dict[str, ScheduledTask] = {t.id: t for t in tasks or []}

    def list_all(self) -> list[ScheduledTask]:
        with self._lock:
            return sorted(self._tasks.values(), key=ScheduledTask.sort_key)

    def get(self, task_id: str) -> ScheduledTask | None:
        with self._lock:
            return self._tasks.get(task_id)

    def save(self, scheduled: ScheduledTask) -> ScheduledTask:
        with self._lock:
            event = "updated" if scheduled.id in self._tasks else "added"
            self._tasks[scheduled.id] = scheduled
        logger.info(f"Task {scheduled.id} {event} at {scheduled.time_slot.label()}")
        self._notify(event, scheduled.model_dump(mode="json"))
        return scheduled

    def remove(self, task_id: str) -> None:
        with self._lock:
            if task_id not in self._tasks:
                raise TaskNotFoundError(task_id)
            del self._tasks[task_id]
        logger.info(f"Task {task_id} removed")
        self._notify("removed", {"id": task_id})

    def clear(self) -> None:
        with self._lock:
            self._tasks.clear()
        self._notify("cleared", {})


class SettingsStore(ABC):
    @abstractmethod
    def get_settings(self) -> UserSettings:
        pass

    @abstractmethod
    def save_settings(self, settings: UserSettings) -> UserSettings:
        pass

    def update_settings(self, **fields: Any) -> UserSettings:
        data = self.get_settings().model_dump()
        data.update(fields)
        return self.save_settings(UserSettings.model_validate(data))


class InMemorySettingsStore(SettingsStore):
    def __init__(self, settings: UserSettings | None = None):
        self._settings = settings or UserSettings()

    def get_settings(self) -> UserSettings:
        return self._settings

    def save_settings(self, settings: UserSettings) -> UserSettings:
        self._settings = settings
        return settings
