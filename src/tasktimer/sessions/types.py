"""Type definitions for tracked task sessions.

This module defines the Pydantic model for one block of work on a task,
along with the enumerations the engine uses to close sessions.
"""

from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from tasktimer.sessions.errors import SessionAlreadyClosedError


class SessionEndKind(str, Enum):
    """How a session was closed.

    Attributes:
        STOPPED: The task was finished.
        PAUSED: The task was set aside and may be resumed later.
    """

    STOPPED = "stopped"
    PAUSED = "paused"


class SwitchAction(str, Enum):
    """What to do with the running session when switching to another task."""

    PAUSE_CURRENT = "pause"
    STOP_CURRENT = "stop"


# Stored field names, matched case-insensitively and without underscores.
# "uid" is the identifier key used by older session files.
_FIELD_KEYS: dict[str, str] = {
    "id": "id",
    "uid": "id",
    "taskname": "task_name",
    "starttime": "start_time",
    "endtime": "end_time",
    "endkind": "end_kind",
}

# Older files stored the end kind as its ordinal
_LEGACY_END_KINDS: dict[int, SessionEndKind] = {
    0: SessionEndKind.STOPPED,
    1: SessionEndKind.PAUSED,
}


class TaskSession(BaseModel):
    """One contiguous block of work on a named task.

    A session without ``end_time`` is running. ``end_time`` and ``end_kind``
    are set together, once, by :meth:`close`. ``end_kind`` stays ``None`` on
    legacy records that were closed before the distinction existed.

    Attributes:
        id: Unique session identifier.
        task_name: Human-chosen task label.
        start_time: When the session started (UTC).
        end_time: When the session ended (UTC), or None while running.
        end_kind: Whether the session was stopped or paused.
    """

    model_config = ConfigDict(extra="ignore")

    id: str = Field(..., frozen=True, description="Unique session identifier")
    task_name: str = Field(..., description="Task label")
    start_time: datetime = Field(..., frozen=True, description="Session start (UTC)")
    end_time: datetime | None = Field(
        default=None,
        description="Session end (UTC), None while running"
    )
    end_kind: SessionEndKind | None = Field(
        default=None,
        description="Stopped or paused, None while running or for legacy records"
    )

    @model_validator(mode="before")
    @classmethod
    def _normalize_keys(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        normalized: dict[str, Any] = {}
        for key, value in data.items():
            canonical = _FIELD_KEYS.get(str(key).replace("_", "").lower())
            if canonical is not None:
                normalized[canonical] = value
        return normalized

    @field_validator("id", mode="before")
    @classmethod
    def _id_as_string(cls, value: Any) -> Any:
        if value is None:
            return value
        return str(value)

    @field_validator("task_name")
    @classmethod
    def _strip_task_name(cls, value: str) -> str:
        return value.strip()

    @field_validator("start_time", "end_time")
    @classmethod
    def _as_utc(cls, value: datetime | None) -> datetime | None:
        if value is None:
            return None
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)

    @field_validator("end_kind", mode="before")
    @classmethod
    def _parse_end_kind(cls, value: Any) -> Any:
        if isinstance(value, int) and not isinstance(value, bool):
            if value not in _LEGACY_END_KINDS:
                raise ValueError(f"Unknown end kind ordinal: {value}")
            return _LEGACY_END_KINDS[value]
        if isinstance(value, str):
            return value.strip().lower()
        return value

    @model_validator(mode="after")
    def _check_end(self) -> "TaskSession":
        """Reject an end kind without an end time, and an end before the start."""
        if self.end_time is None:
            if self.end_kind is not None:
                raise ValueError(f"end_kind '{self.end_kind.value}' is set but end_time is missing")
        elif self.end_time < self.start_time:
            raise ValueError("end_time is earlier than start_time")
        return self

    @property
    def is_running(self) -> bool:
        return self.end_time is None

    @property
    def duration(self) -> timedelta | None:
        """Time between start and end, or None while running."""
        if self.end_time is None:
            return None
        return self.end_time - self.start_time

    @property
    def status(self) -> str:
        """Display status: RUNNING, PAUSED or STOPPED."""
        if self.end_time is None:
            return "RUNNING"
        if self.end_kind == SessionEndKind.PAUSED:
            return "PAUSED"
        return "STOPPED"

    def elapsed(self, now: datetime) -> timedelta:
        """Duration if closed, otherwise time elapsed up to ``now``."""
        if self.end_time is not None:
            return self.end_time - self.start_time
        return now - self.start_time

    def close(self, at: datetime, kind: SessionEndKind) -> None:
        """Set the end time and end kind together.

        Raises:
            SessionAlreadyClosedError: If the session already ended.
        """
        if self.end_time is not None:
            raise SessionAlreadyClosedError(
                f"Session '{self.task_name}' ({self.id}) has already ended."
            )
        self.end_time = at
        self.end_kind = kind
