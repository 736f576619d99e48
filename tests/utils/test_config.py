"""
Test configuration and constants for TaskPilot tests.
"""

import os
from typing import Any

# Test environment configuration
TEST_CONFIG = {
    "api_base_url": "http://localhost:8000/api/v1",
    "ollama_url": "http://localhost:11434",
    "redis_url": "redis://localhost:6379/15",
    "test_timeout": 30,
}

# Test categories
TEST_CATEGORIES = {
    "unit": "Fast, isolated tests with mocked dependencies",
    "integration": "Tests that verify component interactions",
    "api": "Backend API endpoint tests",
}


def get_test_config() -> dict[str, Any]:
    """Get test configuration with environment overrides."""
    config = TEST_CONFIG.copy()

    for key in config:
        env_key = f"TEST_{key.upper()}"
        if env_key in os.environ:
            config[key] = os.environ[env_key]

    return config

