import datetime as dt
from datetime import timedelta
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel, ValidationError

from TaskPilot.backend.services.store_service import get_now, get_store
from TaskPilot.scheduling.agenda import count_scheduled, upcoming_by_day
from TaskPilot.scheduling.conflict_checker import conflicting_tasks
from TaskPilot.shared.models import ScheduledTask, TaskData, TimeSlot, epoch_millis
from TaskPilot.shared.store import ScheduleStore

router = APIRouter(prefix="/api/v1/tasks", tags=["tasks"])

UPDATABLE_FIELDS = {"task", "time_slot", "is_completed"}


class CreateTaskRequest(BaseModel):
    task: TaskData
    time_slot: TimeSlot


class AgendaDay(BaseModel):
    date: dt.date
    tasks: List[ScheduledTask]


class Agenda(BaseModel):
    days: List[AgendaDay]
    total: int


def _get_or_404(store: ScheduleStore, task_id: str) -> ScheduledTask:
    task = store.get(task_id)
    if task is None:
        raise HTTPException(status_code=404, detail=f"Task not found: {task_id}")
    return task


def _reject_conflicts(
    store: ScheduleStore, slot: TimeSlot, ignore_id: Optional[str] = None
) -> None:
    others = [t for t in store.list_for_day(slot.date) if t.id != ignore_id]
    clashes = conflicting_tasks(slot, others)
    if clashes:
        raise HTTPException(
            status_code=409,
            detail={
                "message": f"{slot.label()} overlaps existing tasks",
                "conflicts": [t.id for t in clashes],
            },
        )


@router.get("", response_model=List[ScheduledTask])
def get_tasks(
    completed: Optional[bool] = None, store: ScheduleStore = Depends(get_store)
):
    """Get all scheduled tasks ordered by start, optionally filtered by completion"""
    if completed is True:
        return store.list_completed()
    if completed is False:
        return store.list_incomplete()
    return store.list_all()


@router.get("/upcoming", response_model=Agenda)
def get_upcoming(
    days: int = Query(default=7, ge=1, le=31),
    store: ScheduleStore = Depends(get_store),
    now: dt.datetime = Depends(get_now),
):
    """Tasks for the next ``days`` calendar days grouped by date"""
    today = now.date()
    grouped = upcoming_by_day(
        store.list_range(today, today + timedelta(days=days - 1)), today, days
    )
    return Agenda(
        days=[AgendaDay(date=day, tasks=tasks) for day, tasks in grouped.items()],
        total=count_scheduled(grouped),
    )


@router.get("/day/{day}", response_model=List[ScheduledTask])
def get_tasks_for_day(day: dt.date, store: ScheduleStore = Depends(get_store)):
    return store.list_for_day(day)


@router.post("", response_model=ScheduledTask, status_code=201)
def create_task(
    request: CreateTaskRequest,
    store: ScheduleStore = Depends(get_store),
    now: dt.datetime = Depends(get_now),
):
    """Book a task directly into a slot, refusing overlaps"""
    _reject_conflicts(store, request.time_slot)
    return store.add(request.task, request.time_slot, created_at=epoch_millis(now))


@router.get("/{task_id}", response_model=ScheduledTask)
def get_task(task_id: str, store: ScheduleStore = Depends(get_store)):
    return _get_or_404(store, task_id)


@router.patch("/{task_id}", response_model=ScheduledTask)
def update_task(
    task_id: str, updates: Dict[str, Any], store: ScheduleStore = Depends(get_store)
):
    """Update a task; moving it to another slot is checked for overlaps"""
    current = _get_or_404(store, task_id)
    unknown = set(updates) - UPDATABLE_FIELDS
    if unknown:
        raise HTTPException(
            status_code=422, detail=f"Fields cannot be updated: {sorted(unknown)}"
        )
    if isinstance(updates.get("task"), dict):
        updates["task"] = {**current.task.model_dump(), **updates["task"]}
    if "time_slot" in updates:
        try:
            slot = TimeSlot.model_validate(updates["time_slot"])
        except ValidationError as e:
            raise HTTPException(status_code=422, detail=str(e))
        if slot != current.time_slot:
            _reject_conflicts(store, slot, ignore_id=task_id)
    try:
        return store.update(task_id, **updates)
    except ValidationError as e:
        raise HTTPException(status_code=422, detail=str(e))


@router.delete("/{task_id}")
def delete_task(task_id: str, store: ScheduleStore = Depends(get_store)):
    _get_or_404(store, task_id)
    store.remove(task_id)
    return {"message": "Task deleted successfully"}


@router.post("/{task_id}/complete", response_model=ScheduledTask)
def complete_task(task_id: str, store: ScheduleStore = Depends(get_store)):
    return store.mark_complete(task_id)


@router.post("/{task_id}/incomplete", response_model=ScheduledTask)
def reopen_task(task_id: str, store: ScheduleStore = Depends(get_store)):
    return store.mark_incomplete(task_id)
