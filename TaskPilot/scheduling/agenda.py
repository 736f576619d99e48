"""
Upcoming-task overview grouped by day.
"""

from __future__ import annotations

from collections.abc import Iterable
from datetime import date, timedelta

from TaskPilot.shared.models import ScheduledTask


def upcoming_by_day(
    tasks: Iterable[ScheduledTask], today: date, days: int = 7
) -> dict[date, list[ScheduledTask]]:
    """Group tasks falling in the ``days`` calendar days from ``today``.

    Days come out in calendar order and tasks within a day by start time.
    Days without tasks are omitted.
    """
    window = {today + timedelta(days=i) for i in range(days)}
    grouped: dict[date, list[ScheduledTask]] = {}
    for entry in sorted(tasks, key=ScheduledTask.sort_key):
        if entry.time_slot.date in window:
            grouped.setdefault(entry.time_slot.date, []).append(entry)
    return grouped


def count_scheduled(grouped: dict[date, list[ScheduledTask]]) -> int:
    return sum(len(entries) for entries in grouped.values())
