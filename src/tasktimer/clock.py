"""Time sources used by the session engine.

The engine only ever asks for "now", so tests can drive it with a
:class:`ManualClock` instead of the wall clock.
"""

from datetime import datetime, timedelta, timezone
from typing import Protocol


class Clock(Protocol):
    """Anything that can report the current instant as an aware UTC datetime."""

    def now(self) -> datetime:
        ...


class SystemClock:
    """Wall clock in UTC."""

    def now(self) -> datetime:
        return datetime.now(timezone.utc)


class ManualClock:
    """A clock that only moves when told to.

    Example:
        clock = ManualClock(datetime(2024, 1, 1, 9, 0, tzinfo=timezone.utc))
        clock.advance(seconds=5)
    """

    def __init__(self, start: datetime | None = None) -> None:
        self._now = _as_utc(start) if start is not None else datetime.now(timezone.utc)

    def now(self) -> datetime:
        return self._now

    def set(self, instant: datetime) -> None:
        """Jump to an absolute instant."""
        self._now = _as_utc(instant)

    def advance(self, seconds: float = 0, **kwargs: float) -> datetime:
        """Move forward by a duration and return the new instant.

        Args:
            seconds: Seconds to advance.
            **kwargs: Any other ``timedelta`` keyword (minutes, hours, ...).
        """
        self._now = self._now + timedelta(seconds=seconds, **kwargs)
        return self._now


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)
