"""Time slot scheduling core.

Suggestion, conflict checking and the interactive scheduling session. None of
these modules perform I/O.
"""

from __future__ import annotations

from .agenda import count_scheduled, upcoming_by_day
from .conflict_checker import (
    ConflictChecker,
    SlotOption,
    annotate_slots,
    available_slots,
    has_conflict,
    scope_to_date,
)
from .session import (
    DayOption,
    SchedulingSession,
    SessionPhase,
    SessionState,
    transition,
)
from .slot_suggester import SlotSuggester, suggest_time_slot

__all__ = [
    "ConflictChecker",
    "DayOption",
    "SchedulingSession",
    "SessionPhase",
    "SessionState",
    "SlotOption",
    "SlotSuggester",
    "annotate_slots",
    "available_slots",
    "count_scheduled",
    "has_conflict",
    "scope_to_date",
    "suggest_time_slot",
    "transition",
    "upcoming_by_day",
]
