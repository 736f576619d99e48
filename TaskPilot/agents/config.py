"""
Configuration settings for TaskPilot scheduling and task analysis
"""

import os
from dataclasses import dataclass, field
from datetime import time


@dataclass
class SchedulerConfig:
    """Configuration for slot suggestion and the time picker"""

    day_start: time = time(6, 0)
    day_end: time = time(22, 0)
    step_minutes: int = 30
    horizon_days: int = 7
    load_hours: dict[str, int] = field(
        default_factory=lambda: {"high": 9, "medium": 14, "low": 17}
    )
    fallback_hour: int = 10


@dataclass
class AnalyzerConfig:
    """Configuration for the language-model task analyzer"""

    llm_provider: str = "ollama"
    model: str = "gemma3:27b"
    temperature: float = 0.2
    max_tokens: int = 1024
    timeout: float = 30.0
    default_duration: int = 30


@dataclass
class SystemConfig:
    """Overall system configuration"""

    debug: bool = False
    ollama_host: str = "http://localhost:11434"
    anthropic_url: str = "https://api.anthropic.com/v1/messages"
    anthropic_api_key: str = ""
    redis_url: str = "redis://localhost:6379/0"
    energy_profile: str = "standard"


# Energy profiles: hour of day per mental load
ENERGY_PROFILES = {
    "standard": {
        "high": 9,
        "medium": 14,
        "low": 17,
        "fallback": 10,
        "description": "Focus work in the morning, light tasks late afternoon",
    },
    "early_bird": {
        "high": 7,
        "medium": 11,
        "low": 15,
        "fallback": 8,
        "description": "Everything shifted towards an early start",
    },
    "night_owl": {
        "high": 11,
        "medium": 16,
        "low": 19,
        "fallback": 12,
        "description": "Late start, light tasks in the evening",
    },
}

DEFAULT_MODELS = {
    "ollama": "gemma3:27b",
    "anthropic": "claude-sonnet-4-5",
}


def get_scheduler_config(profile: str = "standard") -> SchedulerConfig:
    """Get scheduler configuration for a specific energy profile"""
    if profile not in ENERGY_PROFILES:
        profile = "standard"

    config = ENERGY_PROFILES[profile]
    return SchedulerConfig(
        load_hours={
            "high": config["high"],
            "medium": config["medium"],
            "low": config["low"],
        },
        fallback_hour=config["fallback"],
    )


def get_analyzer_config() -> AnalyzerConfig:
    """Get analyzer configuration with environment overrides"""
    provider = os.getenv("TASKPILOT_LLM_PROVIDER", "ollama").lower()
    if provider not in DEFAULT_MODELS:
        provider = "ollama"
    return AnalyzerConfig(
        llm_provider=provider,
        model=os.getenv("TASKPILOT_MODEL", DEFAULT_MODELS[provider]),
        timeout=float(os.getenv("TASKPILOT_LLM_TIMEOUT", 30)),
    )


def get_system_config() -> SystemConfig:
    """Get system configuration from the environment"""
    return SystemConfig(
        debug=os.getenv("TASKPILOT_DEBUG", "").lower() in {"1", "true", "yes"},
        ollama_host=os.getenv("OLLAMA_BASE_URL", "http://localhost:11434"),
        anthropic_api_key=os.getenv("ANTHROPIC_API_KEY", ""),
        redis_url=os.getenv("REDIS_URL", "redis://localhost:6379/0"),
        energy_profile=os.getenv("TASKPILOT_PROFILE", "standard"),
    )
