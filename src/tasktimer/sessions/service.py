"""Session service: the task timer state machine.

This module provides the SessionService class, which owns the in-memory
session list and the running-session pointer, enforces that at most one
task runs at a time, and saves after every change.
"""

import logging
import math
import uuid
from datetime import timedelta
from pathlib import Path

from tasktimer.clock import Clock, SystemClock
from tasktimer.config import settings
from tasktimer.sessions.errors import (
    EmptyTaskNameError,
    NoTaskRunningError,
    TaskAlreadyRunningError,
)
from tasktimer.sessions.export import write_csv
from tasktimer.sessions.storage import SessionStorage
from tasktimer.sessions.types import SessionEndKind, SwitchAction, TaskSession

logger = logging.getLogger(__name__)


class SessionService:
    """Service for starting, pausing and stopping tracked tasks.

    The SessionService handles:
    - Start/stop/pause/resume/switch transitions
    - Discarding accidental taps (closed within the threshold)
    - Summaries and task name queries
    - Persistence after every mutation

    Example:
        service = SessionService(storage_path="sessions.json")
        service.start_task("Study")
        ...
        service.stop_current_task()
    """

    def __init__(
        self,
        storage: SessionStorage | None = None,
        storage_path: str | Path | None = None,
        clock: Clock | None = None,
        accidental_tap_seconds: float | None = None,
    ) -> None:
        """Initialize the session service.

        Args:
            storage: Storage backend. Built from ``storage_path`` if omitted.
            storage_path: Path to the JSON session file.
            clock: Source of the current instant.
            accidental_tap_seconds: Sessions closed sooner than this are dropped.
        """
        self._storage = storage or SessionStorage(storage_path or settings.get_data_file())
        self._clock = clock or SystemClock()
        if accidental_tap_seconds is None:
            accidental_tap_seconds = settings.accidental_tap_seconds
        self._accidental_tap = timedelta(seconds=accidental_tap_seconds)

        self._sessions: list[TaskSession] = []
        self._current: TaskSession | None = None

        self._load_sessions()

    @property
    def storage_path(self) -> Path:
        """Get the storage file path."""
        return self._storage.path

    @property
    def current_session(self) -> TaskSession | None:
        """The running session, if any."""
        return self._current

    def _load_sessions(self) -> None:
        """Load sessions from storage and adopt the running one."""
        self._sessions = self._storage.load()

        running = [s for s in self._sessions if s.end_time is None]
        self._current = running[0] if running else None
        if len(running) > 1:
            logger.warning(
                f"Found {len(running)} running sessions, adopting '{running[0].task_name}' ({running[0].id})"
            )
        logger.info(f"Loaded {len(self._sessions)} sessions")

    def _save_sessions(self) -> None:
        self._storage.save(self._sessions)

    # -- transitions ----------------------------------------------------

    def start_task(self, task_name: str) -> TaskSession:
        """Start a new session for a task.

        Args:
            task_name: Name of the task; surrounding whitespace is removed.

        Returns:
            The new running session.

        Raises:
            TaskAlreadyRunningError: If a task is already running.
            EmptyTaskNameError: If the name is empty after trimming.
        """
        if self._current is not None:
            raise TaskAlreadyRunningError(self._current.task_name)

        name = (task_name or "").strip()
        if not name:
            raise EmptyTaskNameError()

        session = TaskSession(
            id=str(uuid.uuid4()),
            task_name=name,
            start_time=self._clock.now(),
        )
        self._sessions.append(session)
        self._current = session
        self._save_sessions()

        logger.info(f"Started task: {session.task_name} ({session.id})")
        return session

    def stop_current_task(self) -> TaskSession | None:
        """Stop the running task.

        Returns:
            The stopped session, or None if it was discarded as an accidental tap.

        Raises:
            NoTaskRunningError: If nothing is running.
        """
        return self._end_current(SessionEndKind.STOPPED)

    def pause_current_task(self) -> TaskSession | None:
        """Pause the running task so it shows up as resumable.

        Returns:
            The paused session, or None if it was discarded as an accidental tap.

        Raises:
            NoTaskRunningError: If nothing is running.
        """
        return self._end_current(SessionEndKind.PAUSED)

    def _end_current(self, kind: SessionEndKind) -> TaskSession | None:
        session = self._current
        if session is None:
            raise NoTaskRunningError()

        now = self._clock.now()
        elapsed = now - session.start_time
        self._current = None

        # A clock that moved backwards is discarded too, so end never precedes start
        if elapsed < self._accidental_tap or elapsed < timedelta(0):
            self._sessions.remove(session)
            self._save_sessions()
            logger.info(
                f"Discarded accidental start of '{session.task_name}' "
                f"({elapsed.total_seconds():.1f}s)"
            )
            return None

        session.close(now, kind)
        self._save_sessions()
        logger.info(f"Task {kind.value}: {session.task_name} ({elapsed.total_seconds():.0f}s)")
        return session

    def resume_task(self, task_name: str) -> TaskSession:
        """Resume a task by starting a fresh session under the same name.

        Paused sessions are never reopened; continuity is only in the name.
        """
        return self.start_task(task_name)

    def switch_to_task(self, task_name: str, action: SwitchAction) -> TaskSession:
        """Close the running task (if any) and start another.

        Switching to the task that is already running (case-insensitive) is
        a no-op and returns the running session.

        Args:
            task_name: Task to switch to.
            action: Whether to pause or stop the running task.

        Returns:
            The session now running.

        Raises:
            EmptyTaskNameError: If the name is empty after trimming.
        """
        name = (task_name or "").strip()
        if not name:
            raise EmptyTaskNameError()

        current = self._current
        if current is None:
            return self.start_task(name)

        if current.task_name.casefold() == name.casefold():
            logger.debug(f"Already running '{current.task_name}', nothing to switch")
            return current

        if SwitchAction(action) == SwitchAction.PAUSE_CURRENT:
            self.pause_current_task()
        else:
            self.stop_current_task()

        return self.start_task(name)

    def clear_all_sessions(self) -> int:
        """Remove every session and save an empty collection.

        Returns:
            Number of sessions removed.
        """
        count = len(self._sessions)
        self._sessions.clear()
        self._current = None
        self._save_sessions()

        logger.info(f"Cleared {count} sessions")
        return count

    # -- queries ----------------------------------------------------------

    def get_all_sessions(self) -> tuple[TaskSession, ...]:
        """Return all sessions in stored order as a read-only view."""
        return tuple(self._sessions)

    def get_current_elapsed(self) -> timedelta | None:
        """Elapsed time of the running session, or None if nothing runs."""
        if self._current is None:
            return None
        return self._current.elapsed(self._clock.now())

    def get_summary_by_task(self, include_running: bool = False) -> dict[str, timedelta]:
        """Total time per task name, rounded to the nearest minute.

        Args:
            include_running: Count the running session up to now.

        Returns:
            Mapping of task name (case-sensitive) to total duration.
        """
        totals: dict[str, timedelta] = {}
        now = self._clock.now()

        for session in self._sessions:
            if session.duration is not None:
                spent = session.duration
            elif include_running and session is self._current:
                spent = session.elapsed(now)
            else:
                continue
            totals[session.task_name] = totals.get(session.task_name, timedelta()) + spent

        return {name: _round_to_minute(total) for name, total in totals.items()}

    def get_known_task_names(self) -> list[str]:
        """Distinct non-empty task names, sorted."""
        return sorted({s.task_name for s in self._sessions if s.task_name})

    def get_resumable_task_names(self) -> list[str]:
        """Task names whose latest closed session was paused and that are not running.

        Names are grouped case-insensitively; the most recently ended session
        of each group decides and provides the spelling.
        """
        running: set[str] = set()
        latest: dict[str, TaskSession] = {}

        for session in self._sessions:
            if not session.task_name:
                continue
            key = session.task_name.casefold()
            if session.end_time is None:
                running.add(key)
                continue
            best = latest.get(key)
            if best is None or session.end_time > best.end_time:
                latest[key] = session

        names = [
            session.task_name
            for key, session in latest.items()
            if key not in running and session.end_kind == SessionEndKind.PAUSED
        ]
        return sorted(names, key=lambda n: (n.casefold(), n))

    # -- export -------------------------------------------------------------

    def export_csv(self, directory: str | Path) -> Path:
        """Write every session to a new time-stamped CSV file.

        Args:
            directory: Directory to write into, created if missing.

        Returns:
            Path of the written file.
        """
        return write_csv(self._sessions, directory, self._clock.now())


def _round_to_minute(value: timedelta) -> timedelta:
    minutes = math.floor(value.total_seconds() / 60 + 0.5)
    return timedelta(minutes=minutes)
