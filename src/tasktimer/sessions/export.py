"""CSV export of task sessions."""

import csv
import logging
from datetime import datetime
from pathlib import Path
from typing import Iterable

from tasktimer.sessions.types import TaskSession

logger = logging.getLogger(__name__)

CSV_HEADER = [
    "Date",
    "Task",
    "Start (UTC)",
    "Start (Local)",
    "End (UTC)",
    "End (Local)",
    "Duration (min)",
    "Status",
]

_UTC_FORMAT = "%Y-%m-%dT%H:%M:%SZ"
_LOCAL_FORMAT = "%Y-%m-%d %H:%M:%S"


def session_row(session: TaskSession) -> list[str]:
    """Render one session as a CSV row; end and duration are blank while running."""
    local_start = session.start_time.astimezone()
    row = [
        local_start.date().isoformat(),
        session.task_name,
        session.start_time.strftime(_UTC_FORMAT),
        local_start.strftime(_LOCAL_FORMAT),
    ]

    if session.end_time is not None and session.duration is not None:
        row += [
            session.end_time.strftime(_UTC_FORMAT),
            session.end_time.astimezone().strftime(_LOCAL_FORMAT),
            f"{session.duration.total_seconds() / 60:.2f}",
        ]
    else:
        row += ["", "", ""]

    row.append(session.status)
    return row


def total_minutes(sessions: Iterable[TaskSession]) -> float:
    """Sum the durations of all closed sessions, in minutes."""
    return sum(
        s.duration.total_seconds() / 60 for s in sessions if s.duration is not None
    )


def export_filename(directory: Path, generated_at: datetime) -> Path:
    """Pick a fresh time-stamped file name inside ``directory``.

    A numeric suffix is appended when an export from the same second exists.
    """
    stem = f"tasksessions_{generated_at.astimezone():%Y%m%d_%H%M%S}"
    candidate = directory / f"{stem}.csv"
    counter = 1
    while candidate.exists():
        candidate = directory / f"{stem}_{counter}.csv"
        counter += 1
    return candidate


def write_csv(sessions: list[TaskSession], directory: str | Path, generated_at: datetime) -> Path:
    """Write sessions to a new CSV file.

    Args:
        sessions: Sessions in the order they should appear.
        directory: Target directory, created if missing.
        generated_at: Timestamp embedded in the file name.

    Returns:
        Path of the written file.
    """
    directory = Path(directory)
    directory.mkdir(parents=True, exist_ok=True)
    path = export_filename(directory, generated_at)

    with open(path, "w", newline="", encoding="utf-8") as f:
        writer = csv.writer(f)
        writer.writerow(CSV_HEADER)
        for session in sessions:
            writer.writerow(session_row(session))
        writer.writerow(["", "TOTAL", "", "", "", "", f"{total_minutes(sessions):.2f}", ""])

    logger.info(f"Exported {len(sessions)} sessions to {path}")
    return path
