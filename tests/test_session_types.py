"""Tests for the TaskSession model."""

from datetime import datetime, timedelta, timezone

import pytest
from pydantic import ValidationError

from tasktimer.sessions import SessionAlreadyClosedError, SessionEndKind, TaskSession

T0 = datetime(2024, 3, 1, 9, 0, tzinfo=timezone.utc)


def _session(**overrides) -> TaskSession:
    data = {"id": "s-1", "task_name": "Study", "start_time": T0}
    data.update(overrides)
    return TaskSession(**data)


class TestTaskSessionParsing:
    """Tolerant parsing of stored records."""

    def test_field_names_match_case_insensitively(self):
        """PascalCase and upper-case keys map onto the model fields."""
        session = TaskSession.model_validate({
            "UID": "abc",
            "TASKNAME": "  Study  ",
            "StartTime": "2024-03-01T09:00:00Z",
            "EndTime": "2024-03-01T09:30:00Z",
            "EndKind": "Paused",
        })

        assert session.id == "abc"
        assert session.task_name == "Study"
        assert session.start_time == T0
        assert session.end_time == T0 + timedelta(minutes=30)
        assert session.end_kind == SessionEndKind.PAUSED

    def test_legacy_ordinal_end_kind(self):
        """Integer end kinds from older files are understood."""
        assert _session(end_time=T0, end_kind=0).end_kind == SessionEndKind.STOPPED
        assert _session(end_time=T0, end_kind=1).end_kind == SessionEndKind.PAUSED

    def test_unknown_end_kind_rejected(self):
        with pytest.raises(ValidationError):
            _session(end_time=T0, end_kind=7)

    def test_naive_timestamps_are_utc(self):
        """Timestamps without an offset are read as UTC."""
        session = TaskSession.model_validate({
            "id": "x",
            "task_name": "Study",
            "start_time": "2024-03-01T09:00:00",
        })

        assert session.start_time.tzinfo is not None
        assert session.start_time == T0

    def test_missing_end_kind_stays_unset(self):
        """Legacy closed records keep end_kind as None rather than defaulting to stopped."""
        session = _session(end_time=T0 + timedelta(minutes=5))

        assert session.end_kind is None
        assert session.status == "STOPPED"

    def test_end_kind_without_end_time_rejected(self):
        """A running session cannot carry an end kind."""
        with pytest.raises(ValidationError):
            _session(end_kind=SessionEndKind.PAUSED)
        with pytest.raises(ValidationError):
            TaskSession.model_validate({
                "id": "x",
                "task_name": "Study",
                "start_time": "2024-03-01T09:00:00Z",
                "end_kind": "paused",
            })

    def test_end_before_start_rejected(self):
        with pytest.raises(ValidationError):
            _session(end_time=T0 - timedelta(seconds=1), end_kind=SessionEndKind.STOPPED)

    def test_zero_length_session_allowed(self):
        assert _session(end_time=T0, end_kind=SessionEndKind.STOPPED).duration == timedelta(0)

    def test_unknown_fields_ignored(self):
        session = TaskSession.model_validate({
            "id": "x",
            "task_name": "Study",
            "start_time": T0.isoformat(),
            "Duration": "00:05:00",
        })

        assert session.task_name == "Study"


class TestTaskSessionBehavior:
    """Derived values and closing."""

    def test_running_session(self):
        session = _session()

        assert session.is_running
        assert session.duration is None
        assert session.status == "RUNNING"
        assert session.elapsed(T0 + timedelta(seconds=42)) == timedelta(seconds=42)

    def test_close_sets_end_and_kind_together(self):
        session = _session()
        session.close(T0 + timedelta(minutes=10), SessionEndKind.PAUSED)

        assert session.end_time == T0 + timedelta(minutes=10)
        assert session.end_kind == SessionEndKind.PAUSED
        assert session.duration == timedelta(minutes=10)
        assert session.status == "PAUSED"

    def test_close_twice_raises(self):
        session = _session()
        session.close(T0 + timedelta(minutes=1), SessionEndKind.STOPPED)

        with pytest.raises(SessionAlreadyClosedError):
            session.close(T0 + timedelta(minutes=2), SessionEndKind.PAUSED)
        assert session.end_kind == SessionEndKind.STOPPED

    def test_identity_and_start_are_frozen(self):
        session = _session()

        with pytest.raises(ValidationError):
            session.id = "other"
        with pytest.raises(ValidationError):
            session.start_time = T0 + timedelta(hours=1)

    def test_json_dump_uses_lowercase_enum(self):
        session = _session()
        session.close(T0 + timedelta(minutes=1), SessionEndKind.PAUSED)

        data = session.model_dump(mode="json")

        assert set(data) == {"id", "task_name", "start_time", "end_time", "end_kind"}
        assert data["end_kind"] == "paused"
