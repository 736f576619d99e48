import datetime as dt
from datetime import date, datetime, time, timedelta
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel

from TaskPilot.agents.config import SchedulerConfig
from TaskPilot.agents.task_analyzer import TaskAnalyzer, format_task_summary
from TaskPilot.backend.services.session_service import (
    SessionNotFound,
    SessionRegistry,
    get_session_registry,
)
from TaskPilot.backend.services.store_service import (
    get_analyzer,
    get_now,
    get_scheduler,
    get_settings_store,
    get_store,
)
from TaskPilot.scheduling.conflict_checker import conflicting_tasks
from TaskPilot.scheduling.session import SchedulingSession, SessionPhase
from TaskPilot.scheduling.slot_suggester import SlotSuggester
from TaskPilot.shared.errors import AnalysisError, InvalidTransition
from TaskPilot.shared.models import (
    AnalysisStatus,
    ScheduledTask,
    TaskData,
    TimeSlot,
)
from TaskPilot.shared.store import ScheduleStore, SettingsStore

router = APIRouter(prefix="/api/v1/sessions", tags=["sessions"])


class OpenSessionRequest(BaseModel):
    description: Optional[str] = None
    task: Optional[TaskData] = None


class DaySelection(BaseModel):
    date: dt.date


class TimeSelection(BaseModel):
    start_time: time


class DayOptionView(BaseModel):
    date: dt.date
    is_today: bool
    is_suggested: bool
    is_selected: bool


class TimeOptionView(BaseModel):
    slot: TimeSlot
    occupied: bool
    suggested: bool


class SessionView(BaseModel):
    id: str
    phase: SessionPhase
    task: TaskData
    summary: str
    suggested_slot: TimeSlot
    selected_day: Optional[date] = None
    pending_slot: Optional[TimeSlot] = None
    days: List[DayOptionView] = []
    times: List[TimeOptionView] = []
    result: Optional[ScheduledTask] = None
    analysis_status: Optional[AnalysisStatus] = None
    analysis_reason: Optional[str] = None
    accepted: Optional[bool] = None


def session_view(session: SchedulingSession, **extra) -> SessionView:
    days = []
    times = []
    if not session.is_finished:
        days = [
            DayOptionView(
                date=option.day,
                is_today=option.is_today,
                is_suggested=option.is_suggested,
                is_selected=option.is_selected,
            )
            for option in session.day_options()
        ]
    if session.phase is SessionPhase.CHOOSING_TIME:
        times = [
            TimeOptionView(slot=o.slot, occupied=o.occupied, suggested=o.suggested)
            for o in session.time_options()
        ]
    return SessionView(
        id=session.session_id,
        phase=session.phase,
        task=session.task,
        summary=format_task_summary(session.task),
        suggested_slot=session.suggested_slot,
        selected_day=session.selected_day,
        pending_slot=session.pending_slot,
        days=days,
        times=times,
        result=session.result,
        **extra,
    )


def _missing(session_id: str) -> HTTPException:
    return HTTPException(status_code=404, detail=f"Session not found: {session_id}")


@router.post("", response_model=SessionView, status_code=201)
def open_session(
    request: OpenSessionRequest,
    store: ScheduleStore = Depends(get_store),
    settings_store: SettingsStore = Depends(get_settings_store),
    analyzer: TaskAnalyzer = Depends(get_analyzer),
    registry: SessionRegistry = Depends(get_session_registry),
    config: SchedulerConfig = Depends(get_scheduler),
    now: datetime = Depends(get_now),
):
    """Analyze a task (or take given task data) and open a session on its suggested slot"""
    status = None
    reason = None
    task = request.task
    if task is None:
        if not request.description or not request.description.strip():
            raise HTTPException(status_code=422, detail="description or task is required")
        default_duration = settings_store.get_settings().default_task_duration
        result = analyzer.analyze(request.description, now, default_duration)
        if result.task is None:
            raise AnalysisError(result.reason or "Task analysis failed")
        task, status, reason = result.task, result.status, result.reason

    try:
        suggested = SlotSuggester(config).suggest(task, now)
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e))
    today = now.date()
    existing = store.list_range(today, today + timedelta(days=config.horizon_days))
    session = registry.open(
        SchedulingSession(task, suggested, existing, today=today, config=config)
    )
    return session_view(session, analysis_status=status, analysis_reason=reason)


@router.get("/{session_id}", response_model=SessionView)
def get_session(
    session_id: str, registry: SessionRegistry = Depends(get_session_registry)
):
    try:
        with registry.locked(session_id) as session:
            return session_view(session)
    except SessionNotFound:
        raise _missing(session_id)


@router.post("/{session_id}/day", response_model=SessionView)
def select_day(
    session_id: str,
    selection: DaySelection,
    registry: SessionRegistry = Depends(get_session_registry),
):
    try:
        with registry.locked(session_id) as session:
            session.select_day(selection.date)
            return session_view(session)
    except SessionNotFound:
        raise _missing(session_id)


@router.post("/{session_id}/time", response_model=SessionView)
def select_time(
    session_id: str,
    selection: TimeSelection,
    registry: SessionRegistry = Depends(get_session_registry),
):
    """Hold a start time on the selected day; ``accepted`` is false if it is occupied"""
    try:
        with registry.locked(session_id) as session:
            if session.selected_day is None:
                raise InvalidTransition("select a time", session.phase.value, "no day selected")
            try:
                slot = TimeSlot.from_start(
                    session.selected_day,
                    selection.start_time,
                    session.task.estimated_duration,
                )
            except ValueError as e:
                raise HTTPException(status_code=422, detail=str(e))
            accepted = session.select_time(slot)
            return session_view(session, accepted=accepted)
    except SessionNotFound:
        raise _missing(session_id)


@router.post("/{session_id}/back", response_model=SessionView)
def go_back(
    session_id: str, registry: SessionRegistry = Depends(get_session_registry)
):
    try:
        with registry.locked(session_id) as session:
            session.back()
            return session_view(session)
    except SessionNotFound:
        raise _missing(session_id)


@router.post("/{session_id}/confirm", response_model=SessionView)
def confirm(
    session_id: str,
    store: ScheduleStore = Depends(get_store),
    registry: SessionRegistry = Depends(get_session_registry),
    now: datetime = Depends(get_now),
):
    """Commit the held slot and persist the scheduled task.

    A slot booked in the store since the session opened gives 409 and the
    session stays in choosing_time.
    """
    try:
        with registry.locked(session_id) as session:
            pending = session.pending_slot
            if pending is not None:
                clashes = conflicting_tasks(pending, store.list_for_day(pending.date))
                if clashes:
                    raise HTTPException(
                        status_code=409,
                        detail={
                            "message": f"{pending.label()} was booked in the meantime",
                            "conflicts": [t.id for t in clashes],
                        },
                    )
            committed = session.confirm(now)
            store.save(committed)
            return session_view(session)
    except SessionNotFound:
        raise _missing(session_id)


@router.post("/{session_id}/cancel", response_model=SessionView)
def cancel(
    session_id: str, registry: SessionRegistry = Depends(get_session_registry)
):
    try:
        with registry.locked(session_id) as session:
            session.cancel()
            return session_view(session)
    except SessionNotFound:
        raise _missing(session_id)
