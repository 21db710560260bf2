"""Tests for the command-line interface and interactive menu."""

import json
import sys
from datetime import datetime, timezone

import pytest

from tasktimer import cli
from tasktimer.clock import ManualClock
from tasktimer.sessions import SessionEndKind, SessionService

T0 = datetime(2024, 3, 1, 9, 0, tzinfo=timezone.utc)


def _run_cli(monkeypatch, data_file, *argv: str) -> int:
    """Invoke the CLI entry point and return its exit code."""
    monkeypatch.setattr(sys, "argv", ["tasktimer", "--data-file", str(data_file), *argv])
    with pytest.raises(SystemExit) as exc_info:
        cli.main()
    return exc_info.value.code


def _feed_input(monkeypatch, *responses: str) -> None:
    """Answer console prompts with the given responses, in order."""
    answers = iter(responses)
    monkeypatch.setattr(cli.console, "input", lambda prompt="": next(answers))


class TestCommands:
    def test_start_and_status(self, monkeypatch, tmp_path, capsys):
        data_file = tmp_path / "sessions.json"

        assert _run_cli(monkeypatch, data_file, "start", "Study") == 0
        assert _run_cli(monkeypatch, data_file, "status") == 0

        out = capsys.readouterr().out
        assert "Started" in out
        assert "Currently running" in out
        stored = json.loads(data_file.read_text(encoding="utf-8"))
        assert stored[0]["task_name"] == "Study"
        assert stored[0]["end_time"] is None

    def test_start_while_running_fails(self, monkeypatch, tmp_path, capsys):
        data_file = tmp_path / "sessions.json"
        _run_cli(monkeypatch, data_file, "start", "Study")

        assert _run_cli(monkeypatch, data_file, "start", "Write") == 1
        assert "already running" in capsys.readouterr().out

    def test_switch_to_running_task_reports_already_running(self, monkeypatch, tmp_path, capsys):
        data_file = tmp_path / "sessions.json"
        _run_cli(monkeypatch, data_file, "start", "Study")

        assert _run_cli(monkeypatch, data_file, "start", "study", "--pause-current") == 0

        out = capsys.readouterr().out
        assert "Already running" in out
        assert "Switched" not in out
        assert len(json.loads(data_file.read_text(encoding="utf-8"))) == 1

    def test_stop_right_after_start_is_discarded(self, monkeypatch, tmp_path, capsys):
        data_file = tmp_path / "sessions.json"
        _run_cli(monkeypatch, data_file, "start", "Study")

        assert _run_cli(monkeypatch, data_file, "stop") == 0
        assert "Discarded" in capsys.readouterr().out
        assert json.loads(data_file.read_text(encoding="utf-8")) == []

    def test_stop_with_nothing_running(self, monkeypatch, tmp_path, capsys):
        assert _run_cli(monkeypatch, tmp_path / "sessions.json", "stop") == 1
        assert "No task is currently running" in capsys.readouterr().out

    def test_export_writes_csv(self, monkeypatch, tmp_path, capsys):
        data_file = tmp_path / "sessions.json"
        export_dir = tmp_path / "out"
        _run_cli(monkeypatch, data_file, "start", "Study")

        assert _run_cli(monkeypatch, data_file, "export", "--dir", str(export_dir), "--no-open") == 0
        assert len(list(export_dir.glob("tasksessions_*.csv"))) == 1
        assert "Export successful" in capsys.readouterr().out

    def test_clear_with_yes(self, monkeypatch, tmp_path, capsys):
        data_file = tmp_path / "sessions.json"
        _run_cli(monkeypatch, data_file, "start", "Study")

        assert _run_cli(monkeypatch, data_file, "clear", "--yes") == 0
        assert json.loads(data_file.read_text(encoding="utf-8")) == []

    def test_clear_cancelled(self, monkeypatch, tmp_path, capsys):
        data_file = tmp_path / "sessions.json"
        _run_cli(monkeypatch, data_file, "start", "Study")
        _feed_input(monkeypatch, "no")

        assert _run_cli(monkeypatch, data_file, "clear") == 0
        assert len(json.loads(data_file.read_text(encoding="utf-8"))) == 1

    def test_names_when_empty(self, monkeypatch, tmp_path, capsys):
        assert _run_cli(monkeypatch, tmp_path / "sessions.json", "names") == 0
        assert "No task names" in capsys.readouterr().out


class TestMenu:
    @pytest.fixture
    def clock(self) -> ManualClock:
        return ManualClock(T0)

    @pytest.fixture
    def service(self, tmp_path, clock) -> SessionService:
        return SessionService(storage_path=tmp_path / "sessions.json", clock=clock, accidental_tap_seconds=3)

    def test_start_from_menu(self, monkeypatch, service):
        _feed_input(monkeypatch, "1", "Study", "9")

        cli.run_menu(service)

        assert service.current_session.task_name == "Study"

    def test_errors_keep_the_loop_running(self, monkeypatch, service, capsys):
        _feed_input(monkeypatch, "3", "1", "Study", "9")

        cli.run_menu(service)

        assert "No task is currently running" in capsys.readouterr().out
        assert service.current_session.task_name == "Study"

    def test_start_while_running_offers_switch(self, monkeypatch, service, clock):
        first = service.start_task("Study")
        clock.advance(minutes=10)
        _feed_input(monkeypatch, "1", "Write", "1", "9")

        cli.run_menu(service)

        assert first.end_kind == SessionEndKind.PAUSED
        assert service.current_session.task_name == "Write"

    def test_start_same_task_reports_already_running(self, monkeypatch, service, clock, capsys):
        first = service.start_task("Study")
        clock.advance(minutes=10)
        _feed_input(monkeypatch, "1", " STUDY ", "9")

        cli.run_menu(service)

        out = capsys.readouterr().out
        assert "Already running" in out
        assert "Switched" not in out
        assert service.current_session is first
        assert first.end_time is None

    def test_switch_can_be_cancelled(self, monkeypatch, service, clock):
        first = service.start_task("Study")
        _feed_input(monkeypatch, "1", "Write", "3", "9")

        cli.run_menu(service)

        assert service.current_session is first

    def test_resume_from_menu(self, monkeypatch, service, clock):
        service.start_task("Write")
        clock.advance(minutes=10)
        service.pause_current_task()
        _feed_input(monkeypatch, "4", "1", "9")

        cli.run_menu(service)

        assert service.current_session.task_name == "Write"
        assert len(service.get_all_sessions()) == 2

    def test_eof_exits(self, monkeypatch, service):
        def _eof(prompt=""):
            raise EOFError

        monkeypatch.setattr(cli.console, "input", _eof)

        cli.run_menu(service)
