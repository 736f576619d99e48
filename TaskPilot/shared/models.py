from __future__ import annotations

import datetime as dt
import uuid
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

DEADLINE_FORMAT = "%Y-%m-%d %H:%M"


def epoch_millis(moment: dt.datetime) -> int:
    return int(moment.timestamp() * 1000)


class TaskType(str, Enum):
    WORK = "work"
    STUDY = "study"
    PERSONAL = "personal"
    HOUSEHOLD = "household"
    CREATIVE = "creative"
    EXERCISE = "exercise"
    SOCIAL = "social"

    @classmethod
    def _missing_(cls, value: object):
        if isinstance(value, str):
            # Normalize to lowercase before lookup
            value = value.strip().lower()
            for member in cls:
                if member.value == value:
                    return member
        return None


class MentalLoad(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"

    @classmethod
    def _missing_(cls, value: object):
        if isinstance(value, str):
            value = value.strip().lower()
            for member in cls:
                if member.value == value:
                    return member
        return None


class TimeSlot(BaseModel):
    """A start/end time-of-day pair on one calendar date.

    Slots never cross midnight and always have a positive duration.
    """

    model_config = ConfigDict(frozen=True)

    start_time: dt.time
    end_time: dt.time
    date: dt.date

    @model_validator(mode="after")
    def _check_positive_duration(self) -> TimeSlot:
        if self.start_time >= self.end_time:
            raise ValueError(
                f"start_time ({self.start_time}) must be before end_time ({self.end_time})"
            )
        return self

    @classmethod
    def from_start(cls, date: dt.date, start: dt.time, minutes: int) -> TimeSlot:
        """Build a slot of ``minutes`` length starting at ``start`` on ``date``."""
        if minutes <= 0:
            raise ValueError(f"Slot duration must be positive, got {minutes}")
        begin = dt.datetime.combine(date, start)
        end = begin + dt.timedelta(minutes=minutes)
        if end.date() != date:
            raise ValueError(
                f"A {minutes} minute slot starting at {start} crosses midnight"
            )
        return cls(start_time=start, end_time=end.time(), date=date)

    @property
    def duration_minutes(self) -> int:
        delta = dt.datetime.combine(self.date, self.end_time) - self.to_datetime()
        return int(delta.total_seconds() // 60)

    def to_datetime(self) -> dt.datetime:
        return dt.datetime.combine(self.date, self.start_time)

    def end_datetime(self) -> dt.datetime:
        return dt.datetime.combine(self.date, self.end_time)

    def overlaps(self, other: TimeSlot) -> bool:
        # Dates are not compared here; callers scope both slots to one date.
        return self.start_time < other.end_time and self.end_time > other.start_time

    def conflicts_with(self, other: TimeSlot) -> bool:
        """Date-aware variant of :meth:`overlaps`."""
        return self.date == other.date and self.overlaps(other)

    def label(self) -> str:
        return f"{self.date.isoformat()} {self.start_time:%H:%M}-{self.end_time:%H:%M}"


class TaskData(BaseModel):
    """Structured attributes extracted from a free-text task description."""

    model_config = ConfigDict(frozen=True)

    description: str
    task_type: TaskType = TaskType.PERSONAL
    estimated_duration: int = Field(default=30, gt=0, description="Minutes")
    mental_load: MentalLoad | None = MentalLoad.MEDIUM
    deadline: dt.datetime | None = None
    priority: float = Field(default=0.5, ge=0.0, le=1.0)
    reasoning: str = ""

    @field_validator("deadline", mode="before")
    @classmethod
    def _parse_deadline(cls, value):
        if value is None:
            return None
        if isinstance(value, str):
            value = value.strip()
            if not value or value.lower() in {"null", "none"}:
                return None
            try:
                return dt.datetime.strptime(value, DEADLINE_FORMAT)
            except ValueError:
                # Let pydantic try ISO 8601
                return value
        return value


class ScheduledTask(BaseModel):
    """A task committed to a time slot. Owned by the schedule store."""

    id: str = Field(default_factory=lambda: str(uuid.uuid4())[:8])
    task: TaskData
    time_slot: TimeSlot
    is_completed: bool = False
    # Epoch millis, stamped by whoever creates the task from its own clock
    created_at: int = 0

    @property
    def date(self) -> dt.date:
        return self.time_slot.date

    def sort_key(self) -> tuple[dt.date, dt.time, int]:
        return (self.time_slot.date, self.time_slot.start_time, self.created_at)


class UserSettings(BaseModel):
    user_name: str = ""
    notifications_enabled: bool = True
    dark_mode_enabled: bool = False
    default_task_duration: int = Field(default=30, gt=0)


class AnalysisStatus(str, Enum):
    OK = "ok"
    FALLBACK = "fallback"
    ERROR = "error"


class AnalysisResult(BaseModel):
    """Outcome of analysing a task description.

    ``ok`` carries the parsed task, ``fallback`` carries a default task plus the
    reason parsing failed, ``error`` carries only the reason.
    """

    status: AnalysisStatus
    task: TaskData | None = None
    reason: str | None = None

    @property
    def usable(self) -> bool:
        return self.task is not None

    @classmethod
    def ok(cls, task: TaskData) -> AnalysisResult:
        return cls(status=AnalysisStatus.OK, task=task)

    @classmethod
    def fallback(cls, task: TaskData, reason: str) -> AnalysisResult:
        return cls(status=AnalysisStatus.FALLBACK, task=task, reason=reason)

    @classmethod
    def error(cls, reason: str) -> AnalysisResult:
        return cls(status=AnalysisStatus.ERROR, reason=reason)
