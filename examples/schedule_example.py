#!/usr/bin/env python3
"""
Example script: analyze a task with a local Ollama model and walk through a
scheduling session against the in-memory store.
"""

import os
import sys
from datetime import datetime

# Add the parent directory to the path so we can import TaskPilot modules
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from TaskPilot.agents.base import get_llm
from TaskPilot.agents.config import get_analyzer_config, get_scheduler_config
from TaskPilot.agents.task_analyzer import TaskAnalyzer, format_task_summary
from TaskPilot.scheduling.session import SchedulingSession
from TaskPilot.scheduling.slot_suggester import SlotSuggester
from TaskPilot.shared.store import InMemoryScheduleStore


def main():
    description = " ".join(sys.argv[1:]) or "Prepare slides for Friday's team review"
    now = datetime.now()

    print("🗓️  TaskPilot Scheduling Example")
    print("=" * 50)

    config = get_analyzer_config()
    analyzer = TaskAnalyzer(get_llm(config), config)
    result = analyzer.analyze(description, now)
    if result.task is None:
        print(f"❌ Analysis failed: {result.reason}")
        return 1
    if result.reason:
        print(f"⚠️  Using default task data: {result.reason}")
    print(format_task_summary(result.task))

    scheduler = get_scheduler_config(os.getenv("TASKPILOT_PROFILE", "standard"))
    suggested = SlotSuggester(scheduler).suggest(result.task, now)
    print(f"\nSuggested slot: {suggested.label()}")

    store = InMemoryScheduleStore()
    session = SchedulingSession(
        result.task, suggested, store.list_all(), today=now.date(), config=scheduler
    )
    session.select_day(suggested.date)
    free = [o for o in session.time_options() if o.selectable]
    print(f"{len(free)} free start times on {suggested.date}")

    if not session.select_time(suggested):
        session.select_time(free[0].slot)
    scheduled = store.save(session.confirm(now))
    print(f"✅ Scheduled {scheduled.id} at {scheduled.time_slot.label()}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
