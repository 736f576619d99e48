"""
Interactive scheduling session.

A session walks a user from picking a day, to picking a time on that day, to
confirming (which yields the ScheduledTask to persist) or cancelling. The
transitions are a pure function over immutable SessionState snapshots;
SchedulingSession is the mutable holder that callers interact with.

Sessions are not thread-safe; confine each one to a single caller.
"""

from __future__ import annotations

import logging
import uuid
from collections.abc import Iterable
from dataclasses import dataclass, field, replace
from datetime import date, datetime, timedelta
from enum import Enum

from TaskPilot.agents.config import SchedulerConfig
from TaskPilot.scheduling.conflict_checker import (
    SlotOption,
    annotate_slots,
    has_conflict,
    scope_to_date,
)
from TaskPilot.shared.errors import InvalidTransition
from TaskPilot.shared.models import ScheduledTask, TaskData, TimeSlot, epoch_millis

logger = logging.getLogger(__name__)


class SessionPhase(str, Enum):
    CHOOSING_DAY = "choosing_day"
    CHOOSING_TIME = "choosing_time"
    RESOLVED = "resolved"
    CANCELLED = "cancelled"

    @property
    def terminal(self) -> bool:
        return self in (SessionPhase.RESOLVED, SessionPhase.CANCELLED)


# Events


@dataclass(frozen=True)
class SelectDay:
    day: date


@dataclass(frozen=True)
class SelectTime:
    slot: TimeSlot


@dataclass(frozen=True)
class Back:
    pass


@dataclass(frozen=True)
class Confirm:
    at: datetime | None = None


@dataclass(frozen=True)
class Cancel:
    pass


SessionEvent = SelectDay | SelectTime | Back | Confirm | Cancel


@dataclass(frozen=True)
class SessionState:
    task: TaskData
    suggested_slot: TimeSlot
    today: date
    existing: tuple[ScheduledTask, ...] = ()
    horizon_days: int = 7
    phase: SessionPhase = SessionPhase.CHOOSING_DAY
    selected_day: date | None = None
    pending_slot: TimeSlot | None = None
    result: ScheduledTask | None = None

    @property
    def days(self) -> list[date]:
        return [self.today + timedelta(days=i) for i in range(self.horizon_days)]

    @property
    def scoped_existing(self) -> list[ScheduledTask]:
        if self.selected_day is None:
            return []
        return scope_to_date(self.existing, self.selected_day)

    @property
    def suggested_slot_for_day(self) -> TimeSlot | None:
        """The suggestion, but only while browsing the originally suggested date."""
        if self.selected_day == self.suggested_slot.date:
            return self.suggested_slot
        return None


def transition(
    state: SessionState, event: SessionEvent
) -> tuple[SessionState, ScheduledTask | None]:
    """Apply ``event`` to ``state``.

    Returns the next state and, on confirmation, the committed ScheduledTask.
    A selection rejected for conflicting returns ``state`` itself unchanged.
    Raises InvalidTransition when the event is not allowed in the current phase.
    """
    phase = state.phase
    if phase.terminal:
        raise InvalidTransition(_action_name(event), phase.value, "session is finished")

    if isinstance(event, Cancel):
        return replace(state, phase=SessionPhase.CANCELLED, pending_slot=None), None

    if isinstance(event, SelectDay):
        if phase is not SessionPhase.CHOOSING_DAY:
            raise InvalidTransition("select a day", phase.value)
        if event.day not in state.days:
            raise InvalidTransition(
                "select a day",
                phase.value,
                f"{event.day} is outside {state.days[0]}..{state.days[-1]}",
            )
        return (
            replace(
                state,
                phase=SessionPhase.CHOOSING_TIME,
                selected_day=event.day,
                pending_slot=None,
            ),
            None,
        )

    if isinstance(event, SelectTime):
        if phase is not SessionPhase.CHOOSING_TIME:
            raise InvalidTransition("select a time", phase.value)
        if event.slot.date != state.selected_day:
            raise InvalidTransition(
                "select a time",
                phase.value,
                f"slot date {event.slot.date} is not the selected day {state.selected_day}",
            )
        if has_conflict(event.slot, state.scoped_existing):
            return state, None
        return replace(state, pending_slot=event.slot), None

    if isinstance(event, Back):
        if phase is not SessionPhase.CHOOSING_TIME:
            raise InvalidTransition("go back", phase.value)
        return (
            replace(
                state,
                phase=SessionPhase.CHOOSING_DAY,
                selected_day=None,
                pending_slot=None,
            ),
            None,
        )

    if isinstance(event, Confirm):
        if phase is not SessionPhase.CHOOSING_TIME or state.pending_slot is None:
            raise InvalidTransition("confirm", phase.value, "no time selected")
        committed = ScheduledTask(
            task=state.task,
            time_slot=state.pending_slot,
            created_at=epoch_millis(event.at) if event.at else 0,
        )
        return replace(state, phase=SessionPhase.RESOLVED, result=committed), committed

    raise TypeError(f"Unknown session event: {event!r}")


def _action_name(event: SessionEvent) -> str:
    return {
        SelectDay: "select a day",
        SelectTime: "select a time",
        Back: "go back",
        Confirm: "confirm",
        Cancel: "cancel",
    }.get(type(event), type(event).__name__)


@dataclass(frozen=True)
class DayOption:
    day: date
    is_today: bool
    is_suggested: bool
    is_selected: bool


class SchedulingSession:
    """Holds one user's walk through day and time selection for a single task"""

    def __init__(
        self,
        task: TaskData,
        suggested_slot: TimeSlot,
        existing: Iterable[ScheduledTask] = (),
        today: date | None = None,
        config: SchedulerConfig | None = None,
        session_id: str | None = None,
    ):
        self.config = config or SchedulerConfig()
        self.session_id = session_id or str(uuid.uuid4())[:8]
        self._state = SessionState(
            task=task,
            suggested_slot=suggested_slot,
            today=today or suggested_slot.date,
            existing=tuple(existing),
            horizon_days=self.config.horizon_days,
        )
        self.history: list[SessionPhase] = [self._state.phase]

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def phase(self) -> SessionPhase:
        return self._state.phase

    @property
    def task(self) -> TaskData:
        return self._state.task

    @property
    def suggested_slot(self) -> TimeSlot:
        return self._state.suggested_slot

    @property
    def selected_day(self) -> date | None:
        return self._state.selected_day

    @property
    def pending_slot(self) -> TimeSlot | None:
        return self._state.pending_slot

    @property
    def suggested_slot_for_day(self) -> TimeSlot | None:
        return self._state.suggested_slot_for_day

    @property
    def result(self) -> ScheduledTask | None:
        return self._state.result

    @property
    def is_finished(self) -> bool:
        return self._state.phase.terminal

    def _apply(self, event: SessionEvent) -> tuple[SessionState, ScheduledTask | None]:
        previous = self._state
        self._state, committed = transition(previous, event)
        if self._state.phase is not previous.phase:
            self.history.append(self._state.phase)
            logger.debug(
                f"Session {self.session_id}: {previous.phase.value} -> {self._state.phase.value}"
            )
        return previous, committed

    def day_options(self) -> list[DayOption]:
        state = self._state
        return [
            DayOption(
                day=day,
                is_today=day == state.today,
                is_suggested=day == state.suggested_slot.date,
                is_selected=day == state.selected_day,
            )
            for day in state.days
        ]

    def time_options(self) -> list[SlotOption]:
        state = self._state
        if state.phase is not SessionPhase.CHOOSING_TIME:
            raise InvalidTransition("list times", state.phase.value)
        return annotate_slots(
            state.selected_day,
            state.task.estimated_duration,
            state.scoped_existing,
            suggested=state.suggested_slot_for_day,
            day_start=self.config.day_start,
            day_end=self.config.day_end,
            step_minutes=self.config.step_minutes,
        )

    def select_day(self, day: date) -> None:
        self._apply(SelectDay(day))

    def select_time(self, slot: TimeSlot) -> bool:
        """Hold ``slot`` as the pending selection. Returns False if it is occupied."""
        previous, _ = self._apply(SelectTime(slot))
        accepted = self._state is not previous
        if not accepted:
            logger.debug(f"Session {self.session_id}: {slot.label()} is occupied")
        return accepted

    def back(self) -> None:
        self._apply(Back())

    def confirm(self, now: datetime | None = None) -> ScheduledTask:
        """Commit the pending slot; ``now`` stamps the task's creation time."""
        _, committed = self._apply(Confirm(now))
        logger.info(
            f"Session {self.session_id} resolved: "
            f"{committed.task.description!r} at {committed.time_slot.label()}"
        )
        return committed

    def cancel(self) -> None:
        self._apply(Cancel())
        logger.info(f"Session {self.session_id} cancelled")
