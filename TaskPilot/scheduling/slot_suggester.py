"""
Default time slot suggestion based on a task's mental load.

High-focus work lands in the morning, medium load in the early afternoon and
light tasks late in the day. The caller always supplies ``now``.
"""

from __future__ import annotations

import logging
from datetime import datetime, time, timedelta

from TaskPilot.agents.config import SchedulerConfig
from TaskPilot.shared.models import MentalLoad, TaskData, TimeSlot

logger = logging.getLogger(__name__)

LATEST_END = time(23, 59)


def suggested_hour(mental_load: MentalLoad | str | None, config: SchedulerConfig) -> int:
    """Hour of day for a mental load; unknown or unset loads use the fallback hour."""
    if isinstance(mental_load, MentalLoad):
        key = mental_load.value
    elif isinstance(mental_load, str):
        key = mental_load.strip().lower()
    else:
        key = ""
    return config.load_hours.get(key, config.fallback_hour)


class SlotSuggester:
    """Maps a task to its default slot on today's or tomorrow's date"""

    def __init__(self, config: SchedulerConfig | None = None):
        self.config = config or SchedulerConfig()

    def latest_start(self, duration: int) -> time:
        """Latest step-aligned start at which ``duration`` minutes end by 23:59.

        Raises ValueError when the task is longer than a day.
        """
        last_minute = LATEST_END.hour * 60 + LATEST_END.minute
        if duration > last_minute:
            raise ValueError(f"A {duration} min task does not fit in one day")
        step = self.config.step_minutes
        minutes = (last_minute - duration) // step * step
        return time(minutes // 60, minutes % 60)

    def suggest(self, task: TaskData, now: datetime) -> TimeSlot:
        hour = suggested_hour(task.mental_load, self.config)
        start = time(hour, 0)
        duration = task.estimated_duration

        latest = self.latest_start(duration)
        if start > latest:
            logger.warning(
                f"{duration} min task starting {start:%H:%M} would cross midnight; "
                f"starting it at {latest:%H:%M} instead"
            )
            start = latest

        # Past today's suggested window -> tomorrow
        window_end = datetime.combine(now.date(), start) + timedelta(minutes=duration)
        date = now.date()
        if now > window_end:
            date = date + timedelta(days=1)

        slot = TimeSlot.from_start(date, start, duration)
        logger.debug(f"Suggested {slot.label()} for mental load {task.mental_load}")
        return slot


def suggest_time_slot(
    task: TaskData, now: datetime, config: SchedulerConfig | None = None
) -> TimeSlot:
    """Suggest the default slot for ``task`` as seen at ``now``."""
    return SlotSuggester(config).suggest(task, now)
