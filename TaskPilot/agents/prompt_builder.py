"""
Prompt builder for the task analyzer.
"""

from datetime import datetime

from TaskPilot.shared.models import TaskType

TASK_TYPES = ", ".join(t.value for t in TaskType)


class PromptBuilder:
    """Builds analysis prompts for free-text task descriptions"""

    def get_system_prompt(self, now: datetime | None = None) -> str:
        current_date = (now or datetime.now()).strftime("%A %B %d, %Y %H:%M")
        return f"""You turn short task descriptions into structured scheduling data.

CORE RULES:
- Respond ONLY with one JSON object, no other text
- Do not have conversations
- Do not make up deadlines that the description does not imply
- The current date and time is {current_date}"""

    def get_analysis_prompt(self, description: str) -> str:
        return f"""Analyze this task and extract structured information: "{description}"

Provide your analysis in this exact JSON format:
{{
  "taskType": "one of: {TASK_TYPES}",
  "estimatedDuration": number in minutes (realistic estimate),
  "mentalLoad": "low, medium, or high",
  "deadline": "if mentioned, in format YYYY-MM-DD HH:mm, otherwise null",
  "priority": number between 0.0 and 1.0,
  "reasoning": "brief explanation of your analysis"
}}

Consider:
- Mental load: How much focus/energy does this require?
- Duration: Be realistic - include breaks for longer tasks
- Priority: Based on urgency, importance, and mental load
- Task type: Categorize appropriately

Respond ONLY with the JSON, no other text."""

    def build_messages(self, description: str, now: datetime | None = None) -> list[dict]:
        return [
            {"role": "system", "content": self.get_system_prompt(now)},
            {"role": "user", "content": self.get_analysis_prompt(description)},
        ]
