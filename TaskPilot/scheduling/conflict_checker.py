"""
Overlap detection against already scheduled tasks and day slot enumeration.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta

from TaskPilot.shared.models import ScheduledTask, TimeSlot

DAY_START = time(6, 0)
DAY_END = time(22, 0)
STEP_MINUTES = 30


@dataclass(frozen=True)
class SlotOption:
    """A candidate slot as offered in the time picker"""

    slot: TimeSlot
    occupied: bool
    suggested: bool = False

    @property
    def selectable(self) -> bool:
        return not self.occupied


def scope_to_date(existing: Iterable[ScheduledTask], day: date) -> list[ScheduledTask]:
    """Return the scheduled tasks that fall on ``day``."""
    return [entry for entry in existing if entry.time_slot.date == day]


def has_conflict(candidate: TimeSlot, existing: Iterable[ScheduledTask]) -> bool:
    """True if ``candidate`` overlaps any same-date entry of ``existing``."""
    return any(
        candidate.overlaps(entry.time_slot)
        for entry in scope_to_date(existing, candidate.date)
    )


def conflicting_tasks(
    candidate: TimeSlot, existing: Iterable[ScheduledTask]
) -> list[ScheduledTask]:
    return [
        entry
        for entry in scope_to_date(existing, candidate.date)
        if candidate.overlaps(entry.time_slot)
    ]


def available_slots(
    day: date,
    duration_minutes: int,
    existing: Iterable[ScheduledTask] = (),
    day_start: time = DAY_START,
    day_end: time = DAY_END,
    step_minutes: int = STEP_MINUTES,
    free_only: bool = False,
) -> Iterator[TimeSlot]:
    """Yield ``duration_minutes`` long slots starting every ``step_minutes`` in [day_start, day_end).

    Every candidate is yielded unless ``free_only`` is set, in which case slots
    that conflict with ``existing`` are skipped. Slots that would run past
    midnight are never produced.
    """
    if duration_minutes <= 0:
        raise ValueError(f"duration_minutes must be positive, got {duration_minutes}")
    if step_minutes <= 0:
        raise ValueError(f"step_minutes must be positive, got {step_minutes}")

    scoped = scope_to_date(existing, day) if free_only else []
    cursor = datetime.combine(day, day_start)
    limit = datetime.combine(day, day_end)
    step = timedelta(minutes=step_minutes)
    length = timedelta(minutes=duration_minutes)

    while cursor < limit:
        if (cursor + length).date() != day:
            break
        slot = TimeSlot(
            start_time=cursor.time(), end_time=(cursor + length).time(), date=day
        )
        if not (free_only and has_conflict(slot, scoped)):
            yield slot
        cursor += step


def annotate_slots(
    day: date,
    duration_minutes: int,
    existing: Iterable[ScheduledTask],
    suggested: TimeSlot | None = None,
    day_start: time = DAY_START,
    day_end: time = DAY_END,
    step_minutes: int = STEP_MINUTES,
) -> list[SlotOption]:
    """Every candidate slot of ``day`` flagged as occupied and/or suggested."""
    scoped = scope_to_date(existing, day)
    suggested_start = (
        suggested.start_time if suggested is not None and suggested.date == day else None
    )
    return [
        SlotOption(
            slot=slot,
            occupied=has_conflict(slot, scoped),
            suggested=slot.start_time == suggested_start,
        )
        for slot in available_slots(
            day,
            duration_minutes,
            day_start=day_start,
            day_end=day_end,
            step_minutes=step_minutes,
        )
    ]


class ConflictChecker:
    """Conflict checks bound to one snapshot of scheduled tasks"""

    def __init__(self, existing: Iterable[ScheduledTask] = ()):
        self.existing = list(existing)

    def has_conflict(self, candidate: TimeSlot) -> bool:
        return has_conflict(candidate, self.existing)

    def conflicts(self, candidate: TimeSlot) -> list[ScheduledTask]:
        return conflicting_tasks(candidate, self.existing)

    def for_date(self, day: date) -> ConflictChecker:
        return ConflictChecker(scope_to_date(self.existing, day))

    def free_slots(self, day: date, duration_minutes: int, **kwargs) -> list[TimeSlot]:
        return list(
            available_slots(
                day, duration_minutes, self.existing, free_only=True, **kwargs
            )
        )
