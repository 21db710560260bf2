"""Command-line interface for TaskTimer.

TaskTimer tracks time spent on named tasks.

CONCEPTS:
---------
- SESSION: One contiguous block of work on a task. A task name can have
           many sessions over time.

- PAUSE:   Ends the running session but marks the task as resumable.

- STOP:    Ends the running session and marks the task as finished.

- TAP:     A session stopped or paused within a few seconds of starting.
           It is treated as a mistake and discarded.
"""

import argparse
import logging
import os
import subprocess
import sys
from datetime import timedelta
from pathlib import Path
from typing import NoReturn

from rich.console import Console
from rich.logging import RichHandler
from rich.markdown import Markdown
from rich.table import Table

from tasktimer import __version__
from tasktimer.config import settings
from tasktimer.sessions import (
    SessionError,
    SessionService,
    SwitchAction,
    TaskSession,
    format_duration,
)

logger = logging.getLogger(__name__)

console = Console()

# Help text shown by the version command
WELCOME_TEXT = f"""
# TaskTimer v{__version__}

Track time spent on named tasks.

```bash
tasktimer                        # Interactive menu
tasktimer start "Study"          # Start a task
tasktimer pause                  # Pause the running task
tasktimer resume                 # List tasks you can resume
tasktimer summary                # Time per task
tasktimer export                 # Write a CSV file
```
"""

MENU_OPTIONS = [
    ("1", "Start new task"),
    ("2", "Pause current task"),
    ("3", "Stop current task"),
    ("4", "Resume task"),
    ("5", "List all sessions"),
    ("6", "Show summary by task"),
    ("7", "Clear all session data"),
    ("8", "Export sessions to CSV"),
    ("9", "Exit"),
]


def setup_logging(verbose: bool = False) -> None:
    """Configure logging."""
    level = logging.DEBUG if verbose else logging.WARNING
    fmt = "%(name)s: %(message)s" if verbose else "%(message)s"
    logging.basicConfig(
        level=level,
        format=fmt,
        handlers=[RichHandler(rich_tracebacks=True, console=console, show_path=verbose)],
    )


def _get_service(args: argparse.Namespace) -> SessionService:
    """Build the session service for the configured data file."""
    data_file = getattr(args, "data_file", None) or settings.get_data_file()
    return SessionService(storage_path=data_file)


def _format_hms(value: timedelta) -> str:
    """Format a duration as HH:MM:SS."""
    total = max(int(value.total_seconds()), 0)
    hours, rest = divmod(total, 3600)
    minutes, secs = divmod(rest, 60)
    return f"{hours:02d}:{minutes:02d}:{secs:02d}"


def _status_style(status: str) -> str:
    return {"RUNNING": "green", "PAUSED": "yellow"}.get(status, "dim")


def _switch_action(args: argparse.Namespace) -> SwitchAction | None:
    if getattr(args, "pause_current", False):
        return SwitchAction.PAUSE_CURRENT
    if getattr(args, "stop_current", False):
        return SwitchAction.STOP_CURRENT
    return None


def _print_closed(session: TaskSession | None, verb: str) -> None:
    if session is None:
        console.print("[yellow]Discarded:[/yellow] task ran only a few seconds, nothing was recorded")
        return
    duration = session.duration or timedelta()
    console.print(f"[green]Task {verb}:[/green] {session.task_name} ({format_duration(duration)})")


def _print_status(service: SessionService) -> None:
    current = service.current_session
    if current is None:
        console.print("[dim]No task is currently running.[/dim]")
        return
    elapsed = service.get_current_elapsed() or timedelta()
    console.print(
        f"Currently running: [bold]{current.task_name}[/bold] "
        f"({elapsed.total_seconds() / 60:.1f} min)"
    )


def _print_sessions(service: SessionService) -> None:
    sessions = sorted(service.get_all_sessions(), key=lambda s: s.start_time, reverse=True)
    if not sessions:
        console.print("[yellow]No sessions recorded yet.[/yellow]")
        return

    table = Table(title="Sessions")
    table.add_column("Status")
    table.add_column("Task", style="white")
    table.add_column("Start", style="cyan")
    table.add_column("End", style="cyan")
    table.add_column("Duration", style="magenta", justify="right")

    for session in sessions:
        start = session.start_time.astimezone().strftime("%Y-%m-%d %H:%M:%S")
        end = session.end_time.astimezone().strftime("%Y-%m-%d %H:%M:%S") if session.end_time else "-"
        duration = (
            f"{session.duration.total_seconds() / 60:.1f} min" if session.duration is not None else "RUNNING"
        )
        style = _status_style(session.status)
        table.add_row(f"[{style}]{session.status}[/{style}]", session.task_name, start, end, duration)

    console.print(table)


def _print_summary(service: SessionService, include_running: bool) -> None:
    summary = service.get_summary_by_task(include_running=include_running)
    if not summary:
        console.print("[yellow]No sessions to summarize.[/yellow]")
        return

    table = Table(title="Time by Task")
    table.add_column("Task", style="white")
    table.add_column("Minutes", style="magenta", justify="right")
    table.add_column("Total", style="cyan", justify="right")

    for name in sorted(summary):
        total = summary[name]
        table.add_row(name, f"{total.total_seconds() / 60:.1f}", _format_hms(total))

    console.print(table)


def _open_file(path: Path) -> None:
    """Open a file with the system viewer, ignoring failures."""
    try:
        if sys.platform == "win32":
            os.startfile(str(path))  # type: ignore[attr-defined]
        elif sys.platform == "darwin":
            subprocess.Popen(["open", str(path)])
        else:
            subprocess.Popen(["xdg-open", str(path)])
    except OSError as e:
        logger.debug(f"Could not open {path}: {e}")


# Commands
def cmd_start(args: argparse.Namespace) -> None:
    """Start a task, optionally switching away from the running one."""
    service = _get_service(args)
    action = _switch_action(args)

    previous = service.current_session
    if action is not None and previous is not None:
        session = service.switch_to_task(args.name, action)
        if session is previous:
            console.print(f"[yellow]Already running:[/yellow] {session.task_name}")
        else:
            console.print(f"[green]Switched:[/green] {previous.task_name} -> {session.task_name}")
        return

    session = service.start_task(args.name)
    console.print(f"[green]Started:[/green] {session.task_name}")


def cmd_stop(args: argparse.Namespace) -> None:
    """Stop the running task."""
    service = _get_service(args)
    _print_closed(service.stop_current_task(), "stopped")


def cmd_pause(args: argparse.Namespace) -> None:
    """Pause the running task."""
    service = _get_service(args)
    _print_closed(service.pause_current_task(), "paused")


def cmd_resume(args: argparse.Namespace) -> None:
    """Resume a paused task, or list the tasks that can be resumed."""
    service = _get_service(args)
    names = service.get_resumable_task_names()

    if not args.name:
        if not names:
            console.print("[yellow]No past tasks to resume yet.[/yellow]")
            return
        console.print("[bold]Resumable tasks:[/bold]")
        for name in names:
            console.print(f"  {name}")
        return

    action = _switch_action(args)
    if action is not None and service.current_session is not None:
        session = service.switch_to_task(args.name, action)
    else:
        session = service.resume_task(args.name)
    console.print(f"[green]Now running:[/green] {session.task_name}")


def cmd_status(args: argparse.Namespace) -> None:
    """Show the running task."""
    _print_status(_get_service(args))


def cmd_list(args: argparse.Namespace) -> None:
    """List all sessions, newest first."""
    _print_sessions(_get_service(args))


def cmd_summary(args: argparse.Namespace) -> None:
    """Show total time per task."""
    include_running = args.include_running or settings.summary_include_running
    _print_summary(_get_service(args), include_running)


def cmd_names(args: argparse.Namespace) -> None:
    """List known or resumable task names."""
    service = _get_service(args)
    names = service.get_resumable_task_names() if args.resumable else service.get_known_task_names()
    if not names:
        console.print("[yellow]No task names.[/yellow]")
        return
    for name in names:
        console.print(name)


def cmd_export(args: argparse.Namespace) -> None:
    """Export all sessions to a CSV file."""
    service = _get_service(args)
    directory = Path(args.dir) if args.dir else settings.get_exports_dir()
    path = service.export_csv(directory)

    console.print("[green]Export successful![/green]")
    console.print(f"File saved to: {path}")

    should_open = settings.open_exports if args.open is None else args.open
    if should_open:
        _open_file(path)


def cmd_clear(args: argparse.Namespace) -> None:
    """Delete all recorded sessions."""
    service = _get_service(args)

    if not args.yes:
        console.print("[yellow]WARNING: This will permanently delete ALL recorded sessions.[/yellow]")
        response = console.input("Type YES to confirm, or anything else to cancel: ").strip().lower()
        if response not in ("yes", "y"):
            console.print("[dim]Cancelled. No data was deleted.[/dim]")
            return

    count = service.clear_all_sessions()
    console.print(f"[green]Cleared {count} sessions[/green]")


def cmd_version(args: argparse.Namespace) -> None:
    """Show version information."""
    console.print(Markdown(WELCOME_TEXT))
    console.print(f"Data file: {getattr(args, 'data_file', None) or settings.get_data_file()}")


def cmd_menu(args: argparse.Namespace) -> None:
    """Run the interactive menu."""
    run_menu(_get_service(args))


# Interactive menu
def _prompt_switch_action(current: TaskSession) -> SwitchAction | None:
    """Ask what to do with the running task. Returns None on cancel."""
    console.print()
    console.print(f"A task is currently running: '{current.task_name}'.")
    console.print("What do you want to do with it?")
    console.print("1) Pause it")
    console.print("2) Stop it")
    console.print("3) Cancel")
    choice = console.input("Choose: ").strip()

    if choice == "3":
        return None
    return SwitchAction.PAUSE_CURRENT if choice == "1" else SwitchAction.STOP_CURRENT


def _menu_start(service: SessionService, name: str | None = None) -> None:
    if name is None:
        name = console.input("Enter task name: ")

    current = service.current_session
    if current is not None and current.task_name.casefold() == name.strip().casefold():
        console.print(f"[yellow]Already running:[/yellow] {current.task_name}")
        return

    if current is not None:
        action = _prompt_switch_action(current)
        if action is None:
            console.print("[dim]Cancelled.[/dim]")
            return
        session = service.switch_to_task(name, action)
        console.print(f"[green]Switched to '{session.task_name}'.[/green]")
        return

    session = service.start_task(name)
    console.print(f"[green]Started:[/green] {session.task_name}")


def _menu_resume(service: SessionService) -> None:
    names = service.get_resumable_task_names()
    if not names:
        console.print("[yellow]No past tasks to resume yet.[/yellow]")
        return

    console.print("Select a task to resume:")
    for i, name in enumerate(names, start=1):
        console.print(f"{i}) {name}")

    raw = console.input("Enter number: ").strip()
    if not raw.isdigit() or not 1 <= int(raw) <= len(names):
        console.print("[red]Invalid selection.[/red]")
        return

    task_name = names[int(raw) - 1]
    if service.current_session is not None:
        _menu_start(service, task_name)
        return

    session = service.resume_task(task_name)
    console.print(f"[green]Now running:[/green] {session.task_name}")


def _menu_clear(service: SessionService) -> None:
    console.print("[yellow]WARNING: This will permanently delete ALL recorded sessions.[/yellow]")
    response = console.input("Type YES to confirm, or anything else to cancel: ").strip().lower()
    if response in ("yes", "y"):
        service.clear_all_sessions()
        console.print("All session data has been cleared.")
    else:
        console.print("[dim]Cancelled. No data was deleted.[/dim]")


def _menu_export(service: SessionService) -> None:
    path = service.export_csv(settings.get_exports_dir())
    console.print("[green]Export successful![/green]")
    console.print(f"File saved to: {path}")
    if settings.open_exports:
        _open_file(path)


def run_menu(service: SessionService) -> None:
    """Run the numbered menu until the user exits.

    Errors from the service are shown and the loop keeps running.
    """
    handlers = {
        "1": lambda: _menu_start(service),
        "2": lambda: _print_closed(service.pause_current_task(), "paused"),
        "3": lambda: _print_closed(service.stop_current_task(), "stopped"),
        "4": lambda: _menu_resume(service),
        "5": lambda: _print_sessions(service),
        "6": lambda: _print_summary(service, settings.summary_include_running),
        "7": lambda: _menu_clear(service),
        "8": lambda: _menu_export(service),
    }

    while True:
        console.print()
        console.rule("[bold]Task Timer[/bold]")
        _print_status(service)
        console.print()
        for key, label in MENU_OPTIONS:
            console.print(f"{key}) {label}")
        console.print()

        try:
            choice = console.input("Choose an option: ").strip()
        except (EOFError, KeyboardInterrupt):
            console.print()
            return

        if choice == "9":
            return

        handler = handlers.get(choice)
        if handler is None:
            console.print("[red]Invalid choice.[/red]")
            continue

        try:
            handler()
        except SessionError as e:
            console.print(f"[red]Error:[/red] {e}")
        except (EOFError, KeyboardInterrupt):
            console.print()
            return


def main() -> NoReturn:
    """Main entry point for the TaskTimer CLI."""
    parser = argparse.ArgumentParser(
        prog="tasktimer",
        description="TaskTimer - track time spent on named tasks",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Show detailed output")
    parser.add_argument(
        "--data-file",
        type=Path,
        help="Session file to use (default: ~/.tasktimer/tasksessions.json)",
    )

    subparsers = parser.add_subparsers(dest="command", metavar="COMMAND")

    # Menu command
    menu_parser = subparsers.add_parser(
        "menu",
        help="Interactive menu (default when no command is given)",
    )
    menu_parser.set_defaults(func=cmd_menu)

    # Start command
    start_parser = subparsers.add_parser(
        "start",
        help="Start a task",
        description="Start tracking a task. Fails if another task is running, "
                    "unless --pause-current or --stop-current is given.",
    )
    start_parser.add_argument("name", help="Task name")
    start_switch = start_parser.add_mutually_exclusive_group()
    start_switch.add_argument(
        "--pause-current", action="store_true",
        help="Pause the running task first"
    )
    start_switch.add_argument(
        "--stop-current", action="store_true",
        help="Stop the running task first"
    )
    start_parser.set_defaults(func=cmd_start)

    # Stop command
    stop_parser = subparsers.add_parser(
        "stop",
        help="Stop the running task"
    )
    stop_parser.set_defaults(func=cmd_stop)

    # Pause command
    pause_parser = subparsers.add_parser(
        "pause",
        help="Pause the running task"
    )
    pause_parser.set_defaults(func=cmd_pause)

    # Resume command
    resume_parser = subparsers.add_parser(
        "resume",
        help="Resume a paused task",
        description="Start a new session for a paused task. Without a name, "
                    "lists the tasks that can be resumed.",
    )
    resume_parser.add_argument("name", nargs="?", help="Task name to resume")
    resume_switch = resume_parser.add_mutually_exclusive_group()
    resume_switch.add_argument(
        "--pause-current", action="store_true",
        help="Pause the running task first"
    )
    resume_switch.add_argument(
        "--stop-current", action="store_true",
        help="Stop the running task first"
    )
    resume_parser.set_defaults(func=cmd_resume)

    # Status command
    status_parser = subparsers.add_parser(
        "status",
        help="Show the running task"
    )
    status_parser.set_defaults(func=cmd_status)

    # List command
    list_parser = subparsers.add_parser(
        "list",
        help="List all sessions"
    )
    list_parser.set_defaults(func=cmd_list)

    # Summary command
    summary_parser = subparsers.add_parser(
        "summary",
        help="Show time per task"
    )
    summary_parser.add_argument(
        "--include-running", action="store_true",
        help="Count the running task's elapsed time"
    )
    summary_parser.set_defaults(func=cmd_summary)

    # Names command
    names_parser = subparsers.add_parser(
        "names",
        help="List task names"
    )
    names_parser.add_argument(
        "--resumable", action="store_true",
        help="Only names that can be resumed"
    )
    names_parser.set_defaults(func=cmd_names)

    # Export command
    export_parser = subparsers.add_parser(
        "export",
        help="Export sessions to CSV"
    )
    export_parser.add_argument(
        "--dir",
        help="Directory to write into (default: ./Exports)"
    )
    export_parser.add_argument(
        "--open", action=argparse.BooleanOptionalAction, default=None,
        help="Open the file after exporting"
    )
    export_parser.set_defaults(func=cmd_export)

    # Clear command
    clear_parser = subparsers.add_parser(
        "clear",
        help="Delete all sessions"
    )
    clear_parser.add_argument(
        "-y", "--yes", action="store_true",
        help="Skip confirmation"
    )
    clear_parser.set_defaults(func=cmd_clear)

    # Version command
    version_parser = subparsers.add_parser(
        "version",
        help="Show version information"
    )
    version_parser.set_defaults(func=cmd_version)

    args = parser.parse_args()
    setup_logging(args.verbose)

    # No command given - run the menu
    if args.command is None:
        args.func = cmd_menu

    try:
        args.func(args)
    except SessionError as e:
        console.print(f"[red]Error:[/red] {e}")
        sys.exit(1)

    sys.exit(0)


if __name__ == "__main__":
    main()
