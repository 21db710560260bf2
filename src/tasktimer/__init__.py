"""TaskTimer - track time spent on named tasks from the command line."""

from importlib.metadata import version, PackageNotFoundError

try:
    __version__ = version("tasktimer")
except PackageNotFoundError:
    __version__ = "0.0.0-dev"

from tasktimer.clock import Clock, ManualClock, SystemClock
from tasktimer.sessions import SessionService, SessionStorage, TaskSession

__all__ = ["SessionService", "SessionStorage", "TaskSession", "Clock", "SystemClock", "ManualClock"]
