"""LLM-backed task analysis package.

This module uses lazy imports so that the scheduling core can read its
configuration without pulling in the Ollama and HTTP client stack.
"""

from __future__ import annotations

from typing import Any

__all__ = [
    "LlmWrapper",
    "AnthropicWrapper",
    "get_llm",
    "TaskAnalyzer",
    "format_task_summary",
    "PromptBuilder",
    "SchedulerConfig",
    "AnalyzerConfig",
    "get_scheduler_config",
    "get_analyzer_config",
]


def __getattr__(name: str) -> Any:
    """
    Lazily import LLM clients and the analyzer on first access.
    """
    if name in {"LlmWrapper", "AnthropicWrapper", "get_llm"}:
        from .base import AnthropicWrapper, LlmWrapper, get_llm

        mapping = {
            "LlmWrapper": LlmWrapper,
            "AnthropicWrapper": AnthropicWrapper,
            "get_llm": get_llm,
        }
        return mapping[name]

    if name in {"TaskAnalyzer", "format_task_summary"}:
        from .task_analyzer import TaskAnalyzer, format_task_summary

        mapping = {
            "TaskAnalyzer": TaskAnalyzer,
            "format_task_summary": format_task_summary,
        }
        return mapping[name]

    if name == "PromptBuilder":
        from .prompt_builder import PromptBuilder

        return PromptBuilder

    if name in {
        "SchedulerConfig",
        "AnalyzerConfig",
        "get_scheduler_config",
        "get_analyzer_config",
    }:
        from . import config

        return getattr(config, name)

    raise AttributeError(f"module 'TaskPilot.agents' has no attribute {name!r}")
