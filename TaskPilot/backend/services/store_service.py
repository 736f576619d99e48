"""
Application-wide collaborators for the API: stores, analyzer, clock.

Each provider is a plain function so routes can depend on it and tests can
replace it through ``app.dependency_overrides``.
"""

from __future__ import annotations

import logging
from datetime import datetime

import redis

from TaskPilot.agents.base import get_llm
from TaskPilot.agents.config import (
    SchedulerConfig,
    get_analyzer_config,
    get_scheduler_config,
    get_system_config,
)
from TaskPilot.agents.task_analyzer import TaskAnalyzer
from TaskPilot.shared.redis_utils import RedisConfig, RedisScheduleStore, RedisSettingsStore
from TaskPilot.shared.store import (
    InMemoryScheduleStore,
    InMemorySettingsStore,
    ScheduleStore,
    SettingsStore,
)

logger = logging.getLogger(__name__)

_store: ScheduleStore | None = None
_settings_store: SettingsStore | None = None
_analyzer: TaskAnalyzer | None = None


def init_stores(config: RedisConfig | None = None) -> None:
    """Connect the Redis stores, falling back to in-memory storage"""
    global _store, _settings_store
    config = config or RedisConfig(url=get_system_config().redis_url)
    try:
        store = RedisScheduleStore(config)
        store.ping()
        _store = store
        _settings_store = RedisSettingsStore(config, client=store.redis)
        logger.info(f"Redis connected successfully at {config.url}")
    except redis.RedisError as e:
        logger.error(f"Failed to connect to Redis: {e}")
        logger.warning("Running without Redis - using in-memory storage only")
        _store = InMemoryScheduleStore()
        _settings_store = InMemorySettingsStore()


def close_stores() -> None:
    global _store, _settings_store
    if isinstance(_store, RedisScheduleStore):
        _store.redis.close()
    _store = None
    _settings_store = None


def get_store() -> ScheduleStore:
    global _store
    if _store is None:
        _store = InMemoryScheduleStore()
    return _store


def get_settings_store() -> SettingsStore:
    global _settings_store
    if _settings_store is None:
        _settings_store = InMemorySettingsStore()
    return _settings_store


def get_analyzer() -> TaskAnalyzer:
    global _analyzer
    if _analyzer is None:
        config = get_analyzer_config()
        _analyzer = TaskAnalyzer(get_llm(config), config)
    return _analyzer


def get_scheduler() -> SchedulerConfig:
    return get_scheduler_config(get_system_config().energy_profile)


def get_now() -> datetime:
    return datetime.now()
