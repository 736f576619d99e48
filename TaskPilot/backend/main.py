"""
TaskPilot FastAPI Backend
Task analysis and slot scheduling API
"""

from fastapi import Depends, FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel
from datetime import datetime
import logging

from TaskPilot.agents.config import SchedulerConfig
from TaskPilot.agents.task_analyzer import TaskAnalyzer, format_task_summary
from TaskPilot.backend.routes import sessions, tasks
from TaskPilot.backend.services.store_service import (
    close_stores,
    get_analyzer,
    get_now,
    get_scheduler,
    get_settings_store,
    get_store,
    init_stores,
)
from TaskPilot.scheduling.slot_suggester import SlotSuggester
from TaskPilot.shared.errors import AnalysisError, InvalidTransition, TaskNotFoundError
from TaskPilot.shared.models import AnalysisResult, TimeSlot, UserSettings
from TaskPilot.shared.redis_utils import RedisScheduleStore
from TaskPilot.shared.store import ScheduleStore, SettingsStore

# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

# Initialize FastAPI app
app = FastAPI(
    title="TaskPilot API",
    description="Personal task analysis and time slot scheduling",
    version="1.0.0",
)

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=[
        "http://localhost:3000",
        "http://localhost:5173",
    ],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(tasks.router)
app.include_router(sessions.router)


class AnalyzeRequest(BaseModel):
    description: str


class AnalyzeResponse(BaseModel):
    analysis: AnalysisResult
    summary: str
    suggested_slot: TimeSlot


# Error handlers


@app.exception_handler(InvalidTransition)
async def invalid_transition_handler(request: Request, exc: InvalidTransition):
    logger.warning(f"Rejected session call: {exc}")
    return JSONResponse(status_code=409, content={"detail": str(exc)})


@app.exception_handler(TaskNotFoundError)
async def task_not_found_handler(request: Request, exc: TaskNotFoundError):
    return JSONResponse(status_code=404, content={"detail": str(exc)})


@app.exception_handler(AnalysisError)
async def analysis_error_handler(request: Request, exc: AnalysisError):
    return JSONResponse(
        status_code=502,
        content={"detail": f"Task analysis failed, please try again: {exc.reason}"},
    )


# API Endpoints


@app.get("/")
def root(store: ScheduleStore = Depends(get_store)):
    """Health check endpoint"""
    return {
        "status": "healthy",
        "service": "TaskPilot API",
        "version": "1.0.0",
        "storage": "redis" if isinstance(store, RedisScheduleStore) else "memory",
    }


@app.post("/api/v1/analyze", response_model=AnalyzeResponse)
def analyze_task(
    request: AnalyzeRequest,
    analyzer: TaskAnalyzer = Depends(get_analyzer),
    settings_store: SettingsStore = Depends(get_settings_store),
    config: SchedulerConfig = Depends(get_scheduler),
    now: datetime = Depends(get_now),
):
    """Analyze a free-text task and suggest its default slot"""
    if not request.description.strip():
        raise HTTPException(status_code=422, detail="description must not be empty")
    default_duration = settings_store.get_settings().default_task_duration
    result = analyzer.analyze(request.description, now, default_duration)
    if result.task is None:
        raise AnalysisError(result.reason or "Task analysis failed")
    try:
        suggested = SlotSuggester(config).suggest(result.task, now)
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e))
    return AnalyzeResponse(
        analysis=result,
        summary=format_task_summary(result.task),
        suggested_slot=suggested,
    )


@app.get("/api/v1/settings", response_model=UserSettings)
def get_settings(settings_store: SettingsStore = Depends(get_settings_store)):
    """Get current user settings"""
    return settings_store.get_settings()


@app.post("/api/v1/settings", response_model=UserSettings)
def save_settings(
    settings: UserSettings, settings_store: SettingsStore = Depends(get_settings_store)
):
    """Save user settings"""
    return settings_store.save_settings(settings)


@app.on_event("startup")
async def startup_event():
    """Connect storage on startup"""
    init_stores()
    logger.info("TaskPilot API started")


@app.on_event("shutdown")
async def shutdown_event():
    close_stores()
    logger.info("TaskPilot API stopped")


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=8000)
