"""Exceptions raised by the session engine and its storage."""


class SessionError(Exception):
    """Base class for failures surfaced to the caller."""


class InvalidSessionOperationError(SessionError):
    """The requested transition is not allowed in the current state."""


class TaskAlreadyRunningError(InvalidSessionOperationError):
    """A task is started while another one is still running."""

    def __init__(self, task_name: str) -> None:
        self.task_name = task_name
        super().__init__(f"A task is already running: '{task_name}'. Stop it first.")


class NoTaskRunningError(InvalidSessionOperationError):
    """Stop or pause was requested with nothing running."""

    def __init__(self) -> None:
        super().__init__("No task is currently running.")


class SessionAlreadyClosedError(InvalidSessionOperationError):
    """A session that already has an end time was closed again."""


class EmptyTaskNameError(SessionError, ValueError):
    """The task name is empty or only whitespace."""

    def __init__(self) -> None:
        super().__init__("Task name cannot be empty.")


class SessionStorageError(SessionError):
    """The session file could not be written, even through the fallback path."""
