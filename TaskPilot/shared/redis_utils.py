"""
Redis-backed schedule and settings storage for TaskPilot
"""

from __future__ import annotations

import json
import logging
from datetime import date
from typing import Any

try:
    import redis
except ImportError:
    raise ImportError("Redis is required. Install with: pip install redis")

from TaskPilot.shared.errors import TaskNotFoundError
from TaskPilot.shared.models import ScheduledTask, TimeSlot, UserSettings
from TaskPilot.shared.store import ScheduleStore, SettingsStore

logger = logging.getLogger(__name__)


class RedisConfig:
    """Redis configuration"""

    def __init__(
        self,
        host: str = "localhost",
        port: int = 6379,
        db: int = 0,
        url: str | None = None,
    ):
        self.host = host
        self.port = port
        self.db = db
        self.url = url or f"redis://{host}:{port}/{db}"


class RedisKeys:
    """Redis key patterns"""

    TASK = "taskpilot:task:{task_id}"
    TASKS_BY_START = "taskpilot:tasks:by_start"
    TASK_EVENTS = "taskpilot:tasks:events"
    SETTINGS = "taskpilot:settings"


def slot_score(slot: TimeSlot) -> int:
    """Minutes since 0001-01-01 at the slot start; orders slots without timezones"""
    return slot.date.toordinal() * 1440 + slot.start_time.hour * 60 + slot.start_time.minute


def create_redis(config: RedisConfig) -> redis.Redis:
    return redis.Redis.from_url(config.url, decode_responses=True)


class RedisScheduleStore(ScheduleStore):
    """Scheduled tasks as JSON documents indexed by a start-time sorted set"""

    def __init__(self, config: RedisConfig | None = None, client: redis.Redis | None = None):
        super().__init__()
        self.config = config or RedisConfig()
        self.redis = client if client is not None else create_redis(self.config)

    def ping(self) -> bool:
        return bool(self.redis.ping())

    def _load(self, raw: str | None) -> ScheduledTask | None:
        if not raw:
            return None
        try:
            return ScheduledTask.model_validate_json(raw)
        except ValueError as e:
            logger.error(f"Skipping unreadable task document: {e}")
            return None

    def _load_many(self, task_ids: list[str]) -> list[ScheduledTask]:
        if not task_ids:
            return []
        keys = [RedisKeys.TASK.format(task_id=task_id) for task_id in task_ids]
        loaded = (self._load(raw) for raw in self.redis.mget(keys))
        return [task for task in loaded if task is not None]

    def list_all(self) -> list[ScheduledTask]:
        task_ids = self.redis.zrange(RedisKeys.TASKS_BY_START, 0, -1)
        return self._load_many(list(task_ids))

    def list_range(self, start: date, end: date) -> list[ScheduledTask]:
        low = start.toordinal() * 1440
        high = (end.toordinal() + 1) * 1440
        task_ids = self.redis.zrangebyscore(RedisKeys.TASKS_BY_START, low, f"({high}")
        return self._load_many(list(task_ids))

    def get(self, task_id: str) -> ScheduledTask | None:
        return self._load(self.redis.get(RedisKeys.TASK.format(task_id=task_id)))

    def save(self, scheduled: ScheduledTask) -> ScheduledTask:
        key = RedisKeys.TASK.format(task_id=scheduled.id)
        event = "updated" if self.redis.exists(key) else "added"
        pipe = self.redis.pipeline()
        pipe.set(key, scheduled.model_dump_json())
        pipe.zadd(RedisKeys.TASKS_BY_START, {scheduled.id: slot_score(scheduled.time_slot)})
        pipe.execute()
        logger.info(f"Task {scheduled.id} {event} at {scheduled.time_slot.label()}")
        self._publish(event, scheduled.model_dump(mode="json"))
        return scheduled

    def remove(self, task_id: str) -> None:
        key = RedisKeys.TASK.format(task_id=task_id)
        if not self.redis.exists(key):
            raise TaskNotFoundError(task_id)
        pipe = self.redis.pipeline()
        pipe.delete(key)
        pipe.zrem(RedisKeys.TASKS_BY_START, task_id)
        pipe.execute()
        logger.info(f"Task {task_id} removed")
        self._publish("removed", {"id": task_id})

    def clear(self) -> None:
        task_ids = list(self.redis.zrange(RedisKeys.TASKS_BY_START, 0, -1))
        keys = [RedisKeys.TASK.format(task_id=task_id) for task_id in task_ids]
        self.redis.delete(*keys, RedisKeys.TASKS_BY_START)
        logger.info(f"Cleared {len(task_ids)} tasks")
        self._publish("cleared", {})

    def _publish(self, event: str, payload: dict[str, Any]) -> None:
        try:
            self.redis.publish(
                RedisKeys.TASK_EVENTS, json.dumps({"type": event, "payload": payload})
            )
        except redis.RedisError as e:
            logger.error(f"Failed to publish {event} event: {e}")
        self._notify(event, payload)


class RedisSettingsStore(SettingsStore):
    def __init__(self, config: RedisConfig | None = None, client: redis.Redis | None = None):
        self.config = config or RedisConfig()
        self.redis = client if client is not None else create_redis(self.config)

    def get_settings(self) -> UserSettings:
        raw = self.redis.get(RedisKeys.SETTINGS)
        if raw:
            return UserSettings.model_validate_json(raw)
        return UserSettings()

    def save_settings(self, settings: UserSettings) -> UserSettings:
        self.redis.set(RedisKeys.SETTINGS, settings.model_dump_json())
        logger.info(f"Settings updated: {settings.model_dump()}")
        return settings


# Global instances
_schedule_store: RedisScheduleStore | None = None
_settings_store: RedisSettingsStore | None = None


def get_redis_schedule_store(config: RedisConfig | None = None) -> RedisScheduleStore:
    """Get or create the Redis schedule store"""
    global _schedule_store
    if _schedule_store is None:
        _schedule_store = RedisScheduleStore(config or RedisConfig())
    return _schedule_store


def get_redis_settings_store(config: RedisConfig | None = None) -> RedisSettingsStore:
    """Get or create the Redis settings store"""
    global _settings_store
    if _settings_store is None:
        _settings_store = RedisSettingsStore(config or RedisConfig())
    return _settings_store


def reset_redis_stores() -> None:
    global _schedule_store, _settings_store
    _schedule_store = None
    _settings_store = None
