"""Task session tracking.

This package provides the session engine and its persistence:
- Start/pause/stop/resume/switch with at most one running task
- Accidental-tap discard for sessions closed within a few seconds
- Atomic JSON file persistence with a backup copy
- Summaries, name queries and CSV export

Example:
    from tasktimer.sessions import SessionService, SwitchAction

    service = SessionService(storage_path="tasksessions.json")
    service.start_task("Study")
    service.switch_to_task("Write", SwitchAction.PAUSE_CURRENT)
"""

from datetime import timedelta

from tasktimer.sessions.errors import (
    EmptyTaskNameError,
    InvalidSessionOperationError,
    NoTaskRunningError,
    SessionAlreadyClosedError,
    SessionError,
    SessionStorageError,
    TaskAlreadyRunningError,
)
from tasktimer.sessions.service import SessionService
from tasktimer.sessions.storage import SessionStorage
from tasktimer.sessions.types import SessionEndKind, SwitchAction, TaskSession


def format_duration(value: timedelta | int | float) -> str:
    """Format a duration into a human-readable string.

    Args:
        value: A timedelta or a number of seconds

    Returns:
        Formatted string like "1h 23m" or "45m 12s"
    """
    seconds = int(value.total_seconds()) if isinstance(value, timedelta) else int(value)
    if seconds < 0:
        return "0s"

    hours = seconds // 3600
    minutes = (seconds % 3600) // 60
    secs = seconds % 60

    parts = []
    if hours > 0:
        parts.append(f"{hours}h")
    if minutes > 0:
        parts.append(f"{minutes}m")
    if secs > 0 and hours == 0:  # Only show seconds if under an hour
        parts.append(f"{secs}s")

    return " ".join(parts) if parts else "0s"


__all__ = [
    # Service
    "SessionService",
    # Types
    "TaskSession",
    "SessionEndKind",
    "SwitchAction",
    # Storage
    "SessionStorage",
    # Errors
    "SessionError",
    "InvalidSessionOperationError",
    "TaskAlreadyRunningError",
    "NoTaskRunningError",
    "SessionAlreadyClosedError",
    "EmptyTaskNameError",
    "SessionStorageError",
    # Formatting
    "format_duration",
]
