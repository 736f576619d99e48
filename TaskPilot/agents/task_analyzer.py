"""
Task analyzer: free-text task description in, structured TaskData out.

Unusable model output degrades to a default TaskData (reported as a fallback
result); LLM or network failures are reported as errors.
"""

from __future__ import annotations

import json
import logging
import re
from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from TaskPilot.agents.config import AnalyzerConfig
from TaskPilot.agents.prompt_builder import PromptBuilder
from TaskPilot.shared.errors import AnalysisError
from TaskPilot.shared.models import (
    DEADLINE_FORMAT,
    AnalysisResult,
    MentalLoad,
    TaskData,
    TaskType,
)

logger = logging.getLogger(__name__)


class TaskAnalysisResponse(BaseModel):
    """The JSON object the model is asked to produce.

    Only the numbers are strict. An off-list task type becomes ``personal``,
    an off-list mental load becomes unset (the suggester then uses its fallback
    hour) and a deadline that is not a date becomes unset.
    """

    model_config = ConfigDict(extra="ignore")

    taskType: TaskType = TaskType.PERSONAL
    estimatedDuration: int = Field(gt=0)
    mentalLoad: MentalLoad | None = None
    deadline: datetime | None = None
    priority: float = Field(ge=0.0, le=1.0)
    reasoning: str = ""

    @field_validator("taskType", mode="before")
    @classmethod
    def _lenient_task_type(cls, value):
        try:
            return TaskType(value)
        except ValueError:
            logger.warning(f"Unknown task type {value!r}, using personal")
            return TaskType.PERSONAL

    @field_validator("mentalLoad", mode="before")
    @classmethod
    def _lenient_mental_load(cls, value):
        if value is None:
            return None
        try:
            return MentalLoad(value)
        except ValueError:
            logger.warning(f"Unknown mental load {value!r}, leaving it unset")
            return None

    @field_validator("deadline", mode="before")
    @classmethod
    def _lenient_deadline(cls, value):
        if value is None or isinstance(value, datetime):
            return value
        text = str(value).strip()
        if not text or text.lower() in {"null", "none"}:
            return None
        for parse in (
            lambda s: datetime.strptime(s, DEADLINE_FORMAT),
            datetime.fromisoformat,
        ):
            try:
                return parse(text)
            except ValueError:
                continue
        logger.warning(f"Ignoring deadline that is not a date: {text!r}")
        return None

    @field_validator("reasoning", mode="before")
    @classmethod
    def _reasoning_text(cls, value):
        return "" if value is None else str(value)

    def to_task(self, description: str) -> TaskData:
        return TaskData(
            description=description,
            task_type=self.taskType,
            estimated_duration=self.estimatedDuration,
            mental_load=self.mentalLoad,
            deadline=self.deadline,
            priority=self.priority,
            reasoning=self.reasoning,
        )


def extract_json(text: str) -> dict:
    """Pull the JSON object out of a model reply.

    Accepts a bare object, a ```json fenced block, or prose around a single
    ``{ ... }`` span. Raises ValueError when nothing parses.
    """
    text = text.strip()
    try:
        parsed = json.loads(text)
        if isinstance(parsed, dict):
            return parsed
    except json.JSONDecodeError:
        pass

    m = re.search(r"```(?:json)?\s*(\{.*?\})\s*```", text, re.DOTALL)
    if m:
        try:
            return json.loads(m.group(1))
        except json.JSONDecodeError:
            pass

    start = text.find("{")
    end = text.rfind("}") + 1
    if start == -1 or end <= start:
        raise ValueError("No JSON found in response")
    parsed = json.loads(text[start:end])
    if not isinstance(parsed, dict):
        raise ValueError("Response JSON is not an object")
    return parsed


def default_task(description: str, reason: str, duration: int = 30) -> TaskData:
    return TaskData(
        description=description,
        task_type=TaskType.PERSONAL,
        estimated_duration=duration,
        mental_load=MentalLoad.MEDIUM,
        deadline=None,
        priority=0.5,
        reasoning=f"Failed to parse API response: {reason}",
    )


class TaskAnalyzer:
    """Runs the analysis prompt through an LLM client exposing ``chat(messages) -> str``"""

    def __init__(self, llm, config: AnalyzerConfig | None = None):
        self.llm = llm
        self.config = config or AnalyzerConfig()
        self.prompts = PromptBuilder()
        self.metrics = {"total_llm_calls": 0, "fallbacks": 0, "errors": 0}

    def analyze(
        self,
        description: str,
        now: datetime | None = None,
        default_duration: int | None = None,
    ) -> AnalysisResult:
        description = (description or "").strip()
        if not description:
            raise ValueError("Task description must not be empty")

        messages = self.prompts.build_messages(description, now)
        self.metrics["total_llm_calls"] += 1
        try:
            reply = self.llm.chat(messages, json_mode=True)
        except Exception as e:
            self.metrics["errors"] += 1
            logger.error(f"Task analysis failed: {e}")
            return AnalysisResult.error(str(e))

        try:
            parsed = TaskAnalysisResponse.model_validate(extract_json(reply))
            task = parsed.to_task(description)
        except (ValueError, ValidationError) as e:
            self.metrics["fallbacks"] += 1
            reason = str(e).splitlines()[0]
            logger.warning(f"Parse error, using default task data: {reason}")
            logger.debug(f"Unparseable model reply: {reply}")
            duration = default_duration or self.config.default_duration
            return AnalysisResult.fallback(
                default_task(description, reason, duration), reason
            )

        load = task.mental_load.value if task.mental_load else "unset"
        logger.info(
            f"Analyzed task: type={task.task_type.value} "
            f"duration={task.estimated_duration}m load={load}"
        )
        return AnalysisResult.ok(task)

    def analyze_or_raise(self, description: str, now: datetime | None = None) -> TaskData:
        """Like :meth:`analyze` but raises AnalysisError instead of returning an error result"""
        result = self.analyze(description, now)
        if result.task is None:
            raise AnalysisError(result.reason or "Task analysis failed")
        return result.task


def format_duration(minutes: int) -> str:
    if minutes >= 60:
        return f"{minutes // 60}h {minutes % 60}m"
    return f"{minutes}m"


def format_task_summary(task: TaskData) -> str:
    """Human readable summary of an analyzed task"""
    mental_load = task.mental_load.value if task.mental_load else "unknown"
    lines = [
        "Task Analysis:",
        f"- Type: {task.task_type.value}",
        f"- Duration: {format_duration(task.estimated_duration)}",
        f"- Mental Load: {mental_load}",
        f"- Priority: {task.priority * 100:.0f}%",
    ]
    if task.deadline is not None:
        lines.append(f"- Deadline: {task.deadline:%Y-%m-%d %H:%M}")
    lines.append("")
    lines.append(task.reasoning)
    return "\n".join(lines)
