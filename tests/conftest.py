# Test configuration and fixtures
import os
from unittest.mock import Mock

import pytest

from TaskPilot.shared.models import ScheduledTask
from TaskPilot.shared.store import InMemoryScheduleStore, InMemorySettingsStore
from tests.utils.factories import NOW, make_slot, make_task

# Set test environment variables
os.environ["REDIS_URL"] = "redis://localhost:6379/15"
os.environ["OLLAMA_BASE_URL"] = "http://localhost:11434"
os.environ["TESTING"] = "1"  # Signal that we're in test mode


@pytest.fixture
def now():
    return NOW


@pytest.fixture
def sample_task():
    """High mental load, one hour task."""
    return make_task()


@pytest.fixture
def occupied_morning():
    """An existing booking on 2024-01-01 09:00-10:00."""
    return ScheduledTask(
        id="existing1",
        task=make_task(description="Team meeting"),
        time_slot=make_slot("09:00", "10:00"),
    )


@pytest.fixture
def memory_store():
    return InMemoryScheduleStore()


@pytest.fixture
def settings_store():
    return InMemorySettingsStore()


@pytest.fixture
def mock_redis():
    """Mock Redis client for testing."""
    mock_redis = Mock()
    mock_redis.ping.return_value = True
    mock_redis.get.return_value = None
    mock_redis.set.return_value = True
    mock_redis.exists.return_value = 0
    mock_redis.zrange.return_value = []
    mock_redis.zrangebyscore.return_value = []
    mock_redis.mget.return_value = []
    mock_redis.publish.return_value = 0
    return mock_redis


@pytest.fixture
def mock_llm():
    """Mock LLM client returning a well-formed analysis."""
    mock_llm = Mock()
    mock_llm.chat.return_value = (
        '{"taskType": "work", "estimatedDuration": 60, "mentalLoad": "high", '
        '"deadline": null, "priority": 0.8, "reasoning": "Needs focus"}'
    )
    mock_llm.model = "test-model"
    return mock_llm
