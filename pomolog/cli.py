from __future__ import annotations

import argparse
from datetime import date
import logging
from pathlib import Path
import sys
from typing import Any, TextIO

from .clock import Clock, RealClock, ThreadTicker
from .config import LOG_LEVELS, AppConfig, load_config
from .db import PomologDB
from .errors import PersistenceFailure, ValidationError
from .exporting import export_sessions_csv
from .formatting import format_countdown, format_focus_time, format_session_type
from .logging_setup import setup_logging
from .models import SESSION_BREAK, SESSION_WORK
from .notifier import Notifier
from .session_log import SessionLog
from .settings import ensure_settings, merge_settings
from .stats import StatsAggregator
from .tasks import TaskStore
from .timer import STATUS_MESSAGES, PHASE_IDLE, PomodoroTimer

DEFAULT_OUT_DIR = Path(__file__).resolve().parent / "out"


def parse_day(value: str) -> date:
    try:
        return date.fromisoformat(value.strip())
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"invalid date: {value} (expected YYYY-MM-DD)") from exc


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="pomolog",
        description="Pomolog: pomodoro timer with tasks, session log and daily stats",
    )
    parser.add_argument("--db", default=None, help="SQLite database path (default pomolog/data/pomolog.sqlite)")
    parser.add_argument("--user", type=int, default=None, help="user id (default 1)")
    parser.add_argument(
        "--log-level",
        default=None,
        type=str.upper,
        choices=LOG_LEVELS,
        help="logging level (default WARNING)",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    start_parser = subparsers.add_parser("start", help="run the timer in the foreground")
    start_parser.add_argument("--notify", action="store_true", help="send desktop notifications")
    start_parser.add_argument("--no-sound", action="store_true", help="disable the terminal bell")

    tasks_parser = subparsers.add_parser("tasks", help="manage tasks")
    tasks_sub = tasks_parser.add_subparsers(dest="tasks_command", required=True)
    add_parser = tasks_sub.add_parser("add", help="add a task")
    add_parser.add_argument("title", help="task title")
    tasks_sub.add_parser("list", help="list tasks")
    for name, text in (("done", "mark a task completed"), ("undo", "mark a task open"), ("rm", "delete a task")):
        item_parser = tasks_sub.add_parser(name, help=text)
        item_parser.add_argument("task_id", type=int, help="task id")

    sessions_parser = subparsers.add_parser("sessions", help="list sessions")
    sessions_parser.add_argument("--date", type=parse_day, default=None, help="only sessions started on YYYY-MM-DD")

    stats_parser = subparsers.add_parser("stats", help="show daily stats")
    stats_parser.add_argument("--date", type=parse_day, default=None, help="day to show (default today)")
    stats_parser.add_argument("--days", type=int, default=None, help="show N days ending on --date")

    settings_parser = subparsers.add_parser("settings", help="show or change timer settings")
    settings_sub = settings_parser.add_subparsers(dest="settings_command", required=True)
    settings_sub.add_parser("show", help="print current settings")
    set_parser = settings_sub.add_parser("set", help="change settings")
    set_parser.add_argument("--work", dest="work_duration", type=int, default=None, help="work seconds")
    set_parser.add_argument("--break", dest="break_duration", type=int, default=None, help="short break seconds")
    set_parser.add_argument(
        "--long-break",
        dest="long_break_duration",
        type=int,
        default=None,
        help="long break seconds",
    )
    set_parser.add_argument(
        "--sessions",
        dest="sessions_before_long_break",
        type=int,
        default=None,
        help="work sessions before a long break",
    )
    set_parser.add_argument(
        "--auto-breaks",
        dest="auto_start_breaks",
        action=argparse.BooleanOptionalAction,
        default=None,
        help="start breaks automatically",
    )
    set_parser.add_argument(
        "--auto-pomodoros",
        dest="auto_start_pomodoros",
        action=argparse.BooleanOptionalAction,
        default=None,
        help="start work sessions automatically",
    )

    export_parser = subparsers.add_parser("export", help="export sessions as CSV")
    export_parser.add_argument("--out-dir", default=str(DEFAULT_OUT_DIR), help="output directory (default pomolog/out)")

    serve_parser = subparsers.add_parser("serve", help="run the REST API")
    serve_parser.add_argument("--host", default="127.0.0.1", help="bind address")
    serve_parser.add_argument("--port", type=int, default=8765, help="port")

    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        config = load_config().with_overrides(db_path=args.db, user_id=args.user, log_level=args.log_level)
    except ValueError as exc:
        parser.error(str(exc))
    setup_logging(config.log_level)

    if args.command == "serve":
        return _handle_serve(args, config)

    db = PomologDB(config.db_path, journal_mode=config.journal_mode)
    try:
        if args.command == "start":
            return _handle_start(args, db, config)
        if args.command == "tasks":
            return _handle_tasks(args, db, config, parser)
        if args.command == "sessions":
            return _handle_sessions(args, db, config)
        if args.command == "stats":
            return _handle_stats(args, db, config, parser)
        if args.command == "settings":
            return _handle_settings(args, db, config, parser)
        if args.command == "export":
            return _handle_export(args, db, config)
    except PersistenceFailure as exc:
        print(f"storage error: {exc}", file=sys.stderr)
        return 1

    parser.print_help()
    return 2


def render_listener(stream: TextIO) -> Any:
    """Return a timer listener that redraws the countdown on one line."""

    def on_event(event: str, payload: dict[str, Any]) -> None:
        if event == "transition":
            kind = SESSION_WORK if payload["next_is_work_session"] else SESSION_BREAK
            stream.write(f"\nNext: {format_session_type(kind, payload['is_long_break'])}\n")
        line = f"{STATUS_MESSAGES[payload['status_label']]:<16} {format_countdown(payload['remaining_seconds'])}"
        stream.write(f"\r{line}")
        if event in {"reset", "paused"}:
            stream.write("\n")
        stream.flush()

    return on_event


def run_until_interrupted(timer: PomodoroTimer, clock: Clock, poll_seconds: float = 0.5) -> int:
    """Start ``timer`` and wait until it goes idle; Ctrl-C abandons the current session."""
    timer.start()
    try:
        while timer.state().phase != PHASE_IDLE:
            clock.sleep(poll_seconds)
    except KeyboardInterrupt:
        timer.reset()
        return 130
    return 0


def _build_services(db: PomologDB, clock: Clock | None = None) -> tuple[StatsAggregator, SessionLog, TaskStore]:
    stats = StatsAggregator(db, clock=clock)
    session_log = SessionLog(db, stats, clock=clock)
    tasks = TaskStore(db, stats=stats, clock=clock)
    return stats, session_log, tasks


def _handle_start(args: argparse.Namespace, db: PomologDB, config: AppConfig) -> int:
    clock = RealClock()
    _, session_log, _ = _build_services(db, clock)
    notifier = Notifier(
        stream=sys.stdout,
        desktop=bool(args.notify or config.notify),
        sound=not bool(args.no_sound),
    )
    timer = PomodoroTimer(
        session_log=session_log,
        settings=ensure_settings(db, config.user_id),
        user_id=config.user_id,
        ticker=ThreadTicker(),
        notifier=notifier,
        listener=render_listener(sys.stdout),
    )
    return run_until_interrupted(timer, clock)


def _handle_tasks(
    args: argparse.Namespace,
    db: PomologDB,
    config: AppConfig,
    parser: argparse.ArgumentParser,
) -> int:
    _, _, tasks = _build_services(db)

    if args.tasks_command == "add":
        try:
            task = tasks.create_task(config.user_id, args.title)
        except ValidationError as exc:
            parser.error(str(exc))
        print(f"Task added: #{task.id} {task.title}")
        return 0

    if args.tasks_command == "list":
        items = tasks.list_tasks(config.user_id)
        if not items:
            print("No tasks.")
            return 0
        for item in items:
            mark = "x" if item.completed else " "
            print(f"[{mark}] #{item.id} {item.title}")
        return 0

    if args.tasks_command == "rm":
        if not tasks.delete_task(args.task_id):
            print(f"Task not found: #{args.task_id}", file=sys.stderr)
            return 1
        print(f"Task deleted: #{args.task_id}")
        return 0

    updated = tasks.update_task(args.task_id, completed=(args.tasks_command == "done"))
    if updated is None:
        print(f"Task not found: #{args.task_id}", file=sys.stderr)
        return 1
    state = "completed" if updated.completed else "open"
    print(f"Task #{updated.id} marked {state}")
    return 0


def _handle_sessions(args: argparse.Namespace, db: PomologDB, config: AppConfig) -> int:
    _, session_log, _ = _build_services(db)
    if args.date is not None:
        items = session_log.sessions_for_day(config.user_id, args.date)
    else:
        items = session_log.list_sessions(config.user_id)

    if not items:
        print("No sessions.")
        return 0

    for item in items:
        start_text = item.start_time.astimezone().strftime("%Y-%m-%d %H:%M:%S")
        if item.is_open:
            state_text = "open"
        else:
            state_text = "completed" if item.completed else "abandoned"
        print(
            f"#{item.id} | {start_text} | {format_session_type(item.type)} | "
            f"{format_countdown(item.duration)} | {state_text}"
        )
    return 0


def _handle_stats(
    args: argparse.Namespace,
    db: PomologDB,
    config: AppConfig,
    parser: argparse.ArgumentParser,
) -> int:
    stats, _, _ = _build_services(db)

    if args.days is None:
        daily = stats.get_daily_stats(config.user_id, args.date)
        print(f"[{daily.day.isoformat()}]")
        print(f"Pomodoros: {daily.completed_pomodoros}")
        print(f"Focus time: {format_focus_time(daily.total_focus_time)}")
        print(f"Tasks completed: {daily.tasks_completed}")
        return 0

    if args.days < 1:
        parser.error("--days must be at least 1")
    for item in stats.history(config.user_id, days=args.days, end=args.date):
        print(
            f"{item.day.isoformat()} | pomodoros {item.completed_pomodoros} | "
            f"focus {format_focus_time(item.total_focus_time)} | tasks {item.tasks_completed}"
        )
    return 0


def _handle_settings(
    args: argparse.Namespace,
    db: PomologDB,
    config: AppConfig,
    parser: argparse.ArgumentParser,
) -> int:
    current = ensure_settings(db, config.user_id)

    if args.settings_command == "set":
        changes = {
            "work_duration": args.work_duration,
            "break_duration": args.break_duration,
            "long_break_duration": args.long_break_duration,
            "sessions_before_long_break": args.sessions_before_long_break,
            "auto_start_breaks": args.auto_start_breaks,
            "auto_start_pomodoros": args.auto_start_pomodoros,
        }
        try:
            updated = merge_settings(current, changes)
        except ValidationError as exc:
            parser.error(str(exc))
        current = db.save_settings(config.user_id, updated)
        logging.getLogger("pomolog.cli").info("Settings saved for user %s", config.user_id)

    for key, value in current.to_dict().items():
        print(f"{key}: {value}")
    return 0


def _handle_export(args: argparse.Namespace, db: PomologDB, config: AppConfig) -> int:
    csv_path = export_sessions_csv(db, Path(args.out_dir), user_id=config.user_id)
    print(f"CSV exported: {csv_path}")
    return 0


def _handle_serve(args: argparse.Namespace, config: AppConfig) -> int:
    import uvicorn

    from .api.app import create_app
    from .api.timer_service import build_notifier

    app = create_app(
        db_path=config.db_path,
        notifier=build_notifier(config.notify),
        journal_mode=config.journal_mode,
    )
    uvicorn.run(app, host=args.host, port=args.port, log_level=config.log_level.lower())
    return 0
