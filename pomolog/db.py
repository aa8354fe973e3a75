from __future__ import annotations

from contextlib import contextmanager
from datetime import date, datetime, timezone
import os
from pathlib import Path
import sqlite3
from typing import Iterator

from .errors import PersistenceFailure
from .models import DailyStats, Session, SessionType, Task
from .settings import TimerSettings


def _to_utc_text(value: datetime) -> str:
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    value = value.astimezone(timezone.utc)
    return value.strftime("%Y-%m-%dT%H:%M:%S")


def _from_utc_text(text: str) -> datetime:
    return datetime.strptime(text, "%Y-%m-%dT%H:%M:%S").replace(tzinfo=timezone.utc)


_TASK_COLUMNS = "id, user_id, title, completed, created_at"
_SESSION_COLUMNS = "id, user_id, type, duration, start_time, end_time, completed"
_STATS_COLUMNS = "user_id, day, completed_pomodoros, total_focus_time, tasks_completed"


class PomologDB:
    """SQLite implementation of the ``Storage`` contract."""

    def __init__(self, db_path: Path, journal_mode: str | None = None) -> None:
        self.db_path = Path(db_path)
        raw_mode = (journal_mode or os.getenv("POMOLOG_JOURNAL_MODE") or "MEMORY").strip()
        self.journal_mode = raw_mode.upper() if raw_mode else "MEMORY"
        try:
            self.db_path.parent.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise PersistenceFailure(f"cannot create database directory: {exc}") from exc
        self.init_schema()

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self.db_path)
        conn.row_factory = sqlite3.Row
        self._apply_journal_mode(conn)
        conn.execute("PRAGMA synchronous=NORMAL")
        return conn

    def _apply_journal_mode(self, conn: sqlite3.Connection) -> None:
        try:
            conn.execute(f"PRAGMA journal_mode={self.journal_mode}")
        except sqlite3.OperationalError:
            conn.execute("PRAGMA journal_mode=MEMORY")

    @contextmanager
    def _transaction(self) -> Iterator[sqlite3.Connection]:
        conn: sqlite3.Connection | None = None
        try:
            conn = self._connect()
            with conn:
                yield conn
        except sqlite3.Error as exc:
            raise PersistenceFailure(f"sqlite operation failed: {exc}") from exc
        finally:
            if conn is not None:
                conn.close()

    def init_schema(self) -> None:
        with self._transaction() as conn:
            conn.executescript(
                """
                CREATE TABLE IF NOT EXISTS tasks (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    user_id INTEGER NOT NULL,
                    title TEXT NOT NULL,
                    completed INTEGER NOT NULL DEFAULT 0 CHECK (completed IN (0, 1)),
                    created_at TEXT NOT NULL
                );

                CREATE INDEX IF NOT EXISTS idx_tasks_user ON tasks(user_id);

                CREATE TABLE IF NOT EXISTS sessions (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    user_id INTEGER NOT NULL,
                    type TEXT NOT NULL CHECK (type IN ('work', 'break')),
                    duration INTEGER NOT NULL CHECK (duration > 0),
                    start_time TEXT NOT NULL,
                    end_time TEXT,
                    completed INTEGER NOT NULL DEFAULT 0 CHECK (completed IN (0, 1))
                );

                CREATE INDEX IF NOT EXISTS idx_sessions_user_start ON sessions(user_id, start_time);

                CREATE TABLE IF NOT EXISTS settings (
                    user_id INTEGER PRIMARY KEY,
                    work_duration INTEGER NOT NULL,
                    break_duration INTEGER NOT NULL,
                    long_break_duration INTEGER NOT NULL,
                    sessions_before_long_break INTEGER NOT NULL,
                    auto_start_breaks INTEGER NOT NULL,
                    auto_start_pomodoros INTEGER NOT NULL
                );

                CREATE TABLE IF NOT EXISTS daily_stats (
                    user_id INTEGER NOT NULL,
                    day TEXT NOT NULL,
                    completed_pomodoros INTEGER NOT NULL DEFAULT 0,
                    total_focus_time INTEGER NOT NULL DEFAULT 0,
                    tasks_completed INTEGER NOT NULL DEFAULT 0,
                    PRIMARY KEY (user_id, day)
                );
                """
            )

    # tasks

    def create_task(self, user_id: int, title: str, completed: bool, created_at: datetime) -> Task:
        with self._transaction() as conn:
            cur = conn.execute(
                "INSERT INTO tasks (user_id, title, completed, created_at) VALUES (?, ?, ?, ?)",
                (user_id, title, 1 if completed else 0, _to_utc_text(created_at)),
            )
            row = conn.execute(
                f"SELECT {_TASK_COLUMNS} FROM tasks WHERE id = ?", (cur.lastrowid,)
            ).fetchone()
        return _row_to_task(row)

    def get_task(self, task_id: int) -> Task | None:
        with self._transaction() as conn:
            row = conn.execute(f"SELECT {_TASK_COLUMNS} FROM tasks WHERE id = ?", (task_id,)).fetchone()
        return _row_to_task(row) if row else None

    def list_tasks(self, user_id: int | None = None) -> list[Task]:
        query = f"SELECT {_TASK_COLUMNS} FROM tasks"
        params: list[object] = []
        if user_id is not None:
            query += " WHERE user_id = ?"
            params.append(user_id)
        query += " ORDER BY id ASC"
        with self._transaction() as conn:
            rows = conn.execute(query, params).fetchall()
        return [_row_to_task(row) for row in rows]

    def update_task(
        self,
        task_id: int,
        title: str | None = None,
        completed: bool | None = None,
    ) -> Task | None:
        assignments: list[str] = []
        params: list[object] = []
        if title is not None:
            assignments.append("title = ?")
            params.append(title)
        if completed is not None:
            assignments.append("completed = ?")
            params.append(1 if completed else 0)

        with self._transaction() as conn:
            if assignments:
                conn.execute(
                    f"UPDATE tasks SET {', '.join(assignments)} WHERE id = ?",
                    [*params, task_id],
                )
            row = conn.execute(f"SELECT {_TASK_COLUMNS} FROM tasks WHERE id = ?", (task_id,)).fetchone()
        return _row_to_task(row) if row else None

    def delete_task(self, task_id: int) -> bool:
        with self._transaction() as conn:
            cur = conn.execute("DELETE FROM tasks WHERE id = ?", (task_id,))
        return cur.rowcount > 0

    # sessions

    def create_session(
        self,
        user_id: int,
        session_type: SessionType,
        duration: int,
        start_time: datetime,
    ) -> Session:
        with self._transaction() as conn:
            cur = conn.execute(
                "INSERT INTO sessions (user_id, type, duration, start_time, end_time, completed) "
                "VALUES (?, ?, ?, ?, NULL, 0)",
                (user_id, session_type, int(duration), _to_utc_text(start_time)),
            )
            row = conn.execute(
                f"SELECT {_SESSION_COLUMNS} FROM sessions WHERE id = ?", (cur.lastrowid,)
            ).fetchone()
        return _row_to_session(row)

    def get_session(self, session_id: int) -> Session | None:
        with self._transaction() as conn:
            row = conn.execute(
                f"SELECT {_SESSION_COLUMNS} FROM sessions WHERE id = ?", (session_id,)
            ).fetchone()
        return _row_to_session(row) if row else None

    def list_sessions(self, user_id: int | None = None) -> list[Session]:
        query = f"SELECT {_SESSION_COLUMNS} FROM sessions"
        params: list[object] = []
        if user_id is not None:
            query += " WHERE user_id = ?"
            params.append(user_id)
        query += " ORDER BY start_time ASC, id ASC"
        return self._read_sessions(query, params)

    def list_sessions_between(
        self,
        user_id: int | None,
        start: datetime,
        end: datetime,
    ) -> list[Session]:
        clauses = ["start_time >= ?", "start_time < ?"]
        params: list[object] = [_to_utc_text(start), _to_utc_text(end)]
        if user_id is not None:
            clauses.append("user_id = ?")
            params.append(user_id)
        query = (
            f"SELECT {_SESSION_COLUMNS} FROM sessions "
            f"WHERE {' AND '.join(clauses)} "
            "ORDER BY start_time ASC, id ASC"
        )
        return self._read_sessions(query, params)

    def close_session(self, session_id: int, end_time: datetime, completed: bool) -> Session | None:
        with self._transaction() as conn:
            cur = conn.execute(
                "UPDATE sessions SET end_time = ?, completed = ? WHERE id = ? AND end_time IS NULL",
                (_to_utc_text(end_time), 1 if completed else 0, session_id),
            )
            if cur.rowcount == 0:
                return None
            row = conn.execute(
                f"SELECT {_SESSION_COLUMNS} FROM sessions WHERE id = ?", (session_id,)
            ).fetchone()
        return _row_to_session(row)

    def _read_sessions(self, query: str, params: list[object]) -> list[Session]:
        with self._transaction() as conn:
            rows = conn.execute(query, params).fetchall()
        return [_row_to_session(row) for row in rows]

    # settings

    def get_settings(self, user_id: int) -> TimerSettings | None:
        with self._transaction() as conn:
            row = conn.execute("SELECT * FROM settings WHERE user_id = ?", (user_id,)).fetchone()
        if not row:
            return None
        payload = dict(row)
        payload["auto_start_breaks"] = bool(payload["auto_start_breaks"])
        payload["auto_start_pomodoros"] = bool(payload["auto_start_pomodoros"])
        return TimerSettings.from_dict(payload)

    def save_settings(self, user_id: int, settings: TimerSettings) -> TimerSettings:
        with self._transaction() as conn:
            conn.execute(
                """
                INSERT INTO settings (
                    user_id,
                    work_duration,
                    break_duration,
                    long_break_duration,
                    sessions_before_long_break,
                    auto_start_breaks,
                    auto_start_pomodoros
                )
                VALUES (?, ?, ?, ?, ?, ?, ?)
                ON CONFLICT(user_id) DO UPDATE SET
                    work_duration = excluded.work_duration,
                    break_duration = excluded.break_duration,
                    long_break_duration = excluded.long_break_duration,
                    sessions_before_long_break = excluded.sessions_before_long_break,
                    auto_start_breaks = excluded.auto_start_breaks,
                    auto_start_pomodoros = excluded.auto_start_pomodoros
                """,
                (
                    user_id,
                    settings.work_duration,
                    settings.break_duration,
                    settings.long_break_duration,
                    settings.sessions_before_long_break,
                    1 if settings.auto_start_breaks else 0,
                    1 if settings.auto_start_pomodoros else 0,
                ),
            )
        return settings

    # daily stats

    def get_daily_stats(self, user_id: int, day: date) -> DailyStats | None:
        with self._transaction() as conn:
            row = conn.execute(
                f"SELECT {_STATS_COLUMNS} FROM daily_stats WHERE user_id = ? AND day = ?",
                (user_id, day.isoformat()),
            ).fetchone()
        return _row_to_stats(row) if row else None

    def increment_daily_stats(
        self,
        user_id: int,
        day: date,
        completed_pomodoros: int = 0,
        total_focus_time: int = 0,
        tasks_completed: int = 0,
    ) -> DailyStats:
        with self._transaction() as conn:
            conn.execute(
                """
                INSERT INTO daily_stats (user_id, day, completed_pomodoros, total_focus_time, tasks_completed)
                VALUES (?, ?, ?, ?, ?)
                ON CONFLICT(user_id, day) DO UPDATE SET
                    completed_pomodoros = completed_pomodoros + excluded.completed_pomodoros,
                    total_focus_time = total_focus_time + excluded.total_focus_time,
                    tasks_completed = tasks_completed + excluded.tasks_completed
                """,
                (user_id, day.isoformat(), completed_pomodoros, total_focus_time, tasks_completed),
            )
            row = conn.execute(
                f"SELECT {_STATS_COLUMNS} FROM daily_stats WHERE user_id = ? AND day = ?",
                (user_id, day.isoformat()),
            ).fetchone()
        return _row_to_stats(row)

    def list_daily_stats(self, user_id: int, start: date, end: date) -> list[DailyStats]:
        with self._transaction() as conn:
            rows = conn.execute(
                f"SELECT {_STATS_COLUMNS} FROM daily_stats "
                "WHERE user_id = ? AND day >= ? AND day <= ? "
                "ORDER BY day ASC",
                (user_id, start.isoformat(), end.isoformat()),
            ).fetchall()
        return [_row_to_stats(row) for row in rows]


def _row_to_task(row: sqlite3.Row) -> Task:
    return Task(
        id=int(row["id"]),
        user_id=int(row["user_id"]),
        title=row["title"],
        completed=bool(row["completed"]),
        created_at=_from_utc_text(row["created_at"]),
    )


def _row_to_session(row: sqlite3.Row) -> Session:
    return Session(
        id=int(row["id"]),
        user_id=int(row["user_id"]),
        type=row["type"],
        duration=int(row["duration"]),
        start_time=_from_utc_text(row["start_time"]),
        end_time=_from_utc_text(row["end_time"]) if row["end_time"] else None,
        completed=bool(row["completed"]),
    )


def _row_to_stats(row: sqlite3.Row) -> DailyStats:
    return DailyStats(
        user_id=int(row["user_id"]),
        day=date.fromisoformat(row["day"]),
        completed_pomodoros=int(row["completed_pomodoros"]),
        total_focus_time=int(row["total_focus_time"]),
        tasks_completed=int(row["tasks_completed"]),
    )


def default_db_path() -> Path:
    return Path(__file__).resolve().parent / "data" / "pomolog.sqlite"
