"""JSON file persistence for task sessions.

This module loads and saves the full session list as a pretty-printed
JSON array. Saves go through a temporary file and an atomic replace so an
interrupted write never corrupts the last durable copy, and the previous
copy is kept as a backup.
"""

import json
import logging
import os
import shutil
from pathlib import Path

from filelock import FileLock

from tasktimer.sessions.errors import SessionStorageError
from tasktimer.sessions.types import TaskSession

logger = logging.getLogger(__name__)


class SessionStorage:
    """JSON file-based storage for task sessions.

    Reading never raises: a missing file is the normal first-run state, and
    an unreadable one is logged and treated the same way. Writing raises
    :class:`SessionStorageError` only when both the atomic replace and the
    fallback rename fail.

    Example:
        storage = SessionStorage("/path/to/tasksessions.json")
        sessions = storage.load()
        storage.save(sessions)
    """

    def __init__(self, path: str | Path) -> None:
        """Initialize the session storage.

        Args:
            path: Path to the JSON storage file.
        """
        self._path = Path(path)
        self._backup_path = self._path.with_name(self._path.name + ".bak")
        self._temp_path = self._path.with_name(self._path.name + ".tmp")
        self._lock = FileLock(str(self._path.with_suffix(".lock")))

    @property
    def path(self) -> Path:
        """Get the storage file path."""
        return self._path

    @property
    def backup_path(self) -> Path:
        """Get the path holding the previous durable copy."""
        return self._backup_path

    @property
    def temp_path(self) -> Path:
        return self._temp_path

    def load(self) -> list[TaskSession]:
        """Load all sessions from storage.

        Returns:
            Sessions in stored order, or an empty list if the file is
            missing or cannot be read.
        """
        if not self._path.exists():
            logger.debug(f"No session file at {self._path}, starting empty")
            return []

        try:
            with self._lock:
                content = self._path.read_text(encoding="utf-8")
            if not content.strip():
                return []

            data = json.loads(content)
            if not isinstance(data, list):
                raise ValueError(f"expected a JSON array, got {type(data).__name__}")

            sessions = [TaskSession.model_validate(item) for item in data]
        except Exception as e:
            logger.warning(f"Could not read session file {self._path}, starting empty: {e!r}")
            return []

        logger.debug(f"Loaded {len(sessions)} sessions from {self._path}")
        return sessions

    def save(self, sessions: list[TaskSession]) -> None:
        """Save all sessions to storage.

        Args:
            sessions: Full list of sessions to write.

        Raises:
            SessionStorageError: If the sessions could not be written.
        """
        content = json.dumps(
            [session.model_dump(mode="json") for session in sessions],
            indent=2,
        )
        self._path.parent.mkdir(parents=True, exist_ok=True)

        with self._lock:
            try:
                try:
                    self._temp_path.write_text(content, encoding="utf-8")
                except OSError as e:
                    raise SessionStorageError(
                        f"Could not write temporary file {self._temp_path}: {e}"
                    ) from e

                try:
                    self._replace()
                except OSError as e:
                    logger.warning(f"Atomic replace of {self._path} failed, using fallback: {e}")
                    self._fallback_replace()
            finally:
                self._remove_temp()

        logger.debug(f"Saved {len(sessions)} sessions to {self._path}")

    def _replace(self) -> None:
        """Back up the durable file, then atomically move the temp file over it."""
        if self._path.exists():
            shutil.copy2(self._path, self._backup_path)
        os.replace(self._temp_path, self._path)

    def _fallback_replace(self) -> None:
        """Best-effort backup followed by a plain move. Not crash-atomic."""
        if self._path.exists():
            try:
                shutil.copyfile(self._path, self._backup_path)
            except OSError as e:
                logger.warning(f"Could not back up {self._path}: {e}")

        try:
            shutil.move(str(self._temp_path), str(self._path))
        except OSError as e:
            raise SessionStorageError(f"Could not save sessions to {self._path}: {e}") from e

    def _remove_temp(self) -> None:
        try:
            self._temp_path.unlink(missing_ok=True)
        except OSError as e:
            logger.warning(f"Could not remove temporary file {self._temp_path}: {e}")
