"""
Exception types shared across TaskPilot components
"""


class TaskPilotError(Exception):
    """Base class for TaskPilot errors"""


class InvalidTransition(TaskPilotError):
    """A scheduling session transition was called in a state that does not allow it.

    This signals a caller bug, not bad data.
    """

    def __init__(self, action: str, phase: str, detail: str = ""):
        self.action = action
        self.phase = phase
        message = f"Cannot {action} while session is {phase}"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)


class AnalysisError(TaskPilotError):
    """Task text analysis failed (network, API or unusable model output)."""

    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(reason)


class TaskNotFoundError(TaskPilotError, KeyError):
    def __init__(self, task_id: str):
        self.task_id = task_id
        super().__init__(f"Task not found: {task_id}")

    def __str__(self) -> str:
        return self.args[0]
