from __future__ import annotations

from dataclasses import replace
from datetime import date, datetime
import threading
from typing import Protocol

from .models import DailyStats, Session, SessionType, Task
from .settings import TimerSettings


class Storage(Protocol):
    """CRUD contract shared by the session log, stats aggregator and task store.

    Not-found is reported as ``None`` (or ``False`` for deletes), never raised.
    Backend failures surface as ``PersistenceFailure``.
    """

    def create_task(self, user_id: int, title: str, completed: bool, created_at: datetime) -> Task:
        ...

    def get_task(self, task_id: int) -> Task | None:
        ...

    def list_tasks(self, user_id: int | None = None) -> list[Task]:
        ...

    def update_task(
        self,
        task_id: int,
        title: str | None = None,
        completed: bool | None = None,
    ) -> Task | None:
        ...

    def delete_task(self, task_id: int) -> bool:
        ...

    def create_session(
        self,
        user_id: int,
        session_type: SessionType,
        duration: int,
        start_time: datetime,
    ) -> Session:
        ...

    def get_session(self, session_id: int) -> Session | None:
        ...

    def list_sessions(self, user_id: int | None = None) -> list[Session]:
        ...

    def list_sessions_between(
        self,
        user_id: int | None,
        start: datetime,
        end: datetime,
    ) -> list[Session]:
        ...

    def close_session(self, session_id: int, end_time: datetime, completed: bool) -> Session | None:
        """Close an open session. Returns ``None`` when missing or already closed."""
        ...

    def get_settings(self, user_id: int) -> TimerSettings | None:
        ...

    def save_settings(self, user_id: int, settings: TimerSettings) -> TimerSettings:
        ...

    def get_daily_stats(self, user_id: int, day: date) -> DailyStats | None:
        ...

    def increment_daily_stats(
        self,
        user_id: int,
        day: date,
        completed_pomodoros: int = 0,
        total_focus_time: int = 0,
        tasks_completed: int = 0,
    ) -> DailyStats:
        ...

    def list_daily_stats(self, user_id: int, start: date, end: date) -> list[DailyStats]:
        ...


class MemoryStorage:
    """Dict-backed storage; every operation holds one lock."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._tasks: dict[int, Task] = {}
        self._sessions: dict[int, Session] = {}
        self._settings: dict[int, TimerSettings] = {}
        self._daily_stats: dict[tuple[int, date], DailyStats] = {}
        self._next_task_id = 1
        self._next_session_id = 1

    def create_task(self, user_id: int, title: str, completed: bool, created_at: datetime) -> Task:
        with self._lock:
            task = Task(
                id=self._next_task_id,
                user_id=user_id,
                title=title,
                completed=completed,
                created_at=created_at,
            )
            self._next_task_id += 1
            self._tasks[task.id] = task
            return task

    def get_task(self, task_id: int) -> Task | None:
        with self._lock:
            return self._tasks.get(task_id)

    def list_tasks(self, user_id: int | None = None) -> list[Task]:
        with self._lock:
            items = sorted(self._tasks.values(), key=lambda t: t.id)
        if user_id is None:
            return items
        return [t for t in items if t.user_id == user_id]

    def update_task(
        self,
        task_id: int,
        title: str | None = None,
        completed: bool | None = None,
    ) -> Task | None:
        with self._lock:
            task = self._tasks.get(task_id)
            if task is None:
                return None
            if title is not None:
                task = replace(task, title=title)
            if completed is not None:
                task = replace(task, completed=completed)
            self._tasks[task_id] = task
            return task

    def delete_task(self, task_id: int) -> bool:
        with self._lock:
            return self._tasks.pop(task_id, None) is not None

    def create_session(
        self,
        user_id: int,
        session_type: SessionType,
        duration: int,
        start_time: datetime,
    ) -> Session:
        with self._lock:
            session = Session(
                id=self._next_session_id,
                user_id=user_id,
                type=session_type,
                duration=duration,
                start_time=start_time,
            )
            self._next_session_id += 1
            self._sessions[session.id] = session
            return session

    def get_session(self, session_id: int) -> Session | None:
        with self._lock:
            return self._sessions.get(session_id)

    def list_sessions(self, user_id: int | None = None) -> list[Session]:
        with self._lock:
            items = sorted(self._sessions.values(), key=lambda s: (s.start_time, s.id))
        if user_id is None:
            return items
        return [s for s in items if s.user_id == user_id]

    def list_sessions_between(
        self,
        user_id: int | None,
        start: datetime,
        end: datetime,
    ) -> list[Session]:
        return [s for s in self.list_sessions(user_id) if start <= s.start_time < end]

    def close_session(self, session_id: int, end_time: datetime, completed: bool) -> Session | None:
        with self._lock:
            session = self._sessions.get(session_id)
            if session is None or session.end_time is not None:
                return None
            closed = replace(session, end_time=end_time, completed=completed)
            self._sessions[session_id] = closed
            return closed

    def get_settings(self, user_id: int) -> TimerSettings | None:
        with self._lock:
            return self._settings.get(user_id)

    def save_settings(self, user_id: int, settings: TimerSettings) -> TimerSettings:
        with self._lock:
            self._settings[user_id] = settings
            return settings

    def get_daily_stats(self, user_id: int, day: date) -> DailyStats | None:
        with self._lock:
            return self._daily_stats.get((user_id, day))

    def increment_daily_stats(
        self,
        user_id: int,
        day: date,
        completed_pomodoros: int = 0,
        total_focus_time: int = 0,
        tasks_completed: int = 0,
    ) -> DailyStats:
        with self._lock:
            current = self._daily_stats.get((user_id, day)) or DailyStats(user_id=user_id, day=day)
            updated = replace(
                current,
                completed_pomodoros=current.completed_pomodoros + completed_pomodoros,
                total_focus_time=current.total_focus_time + total_focus_time,
                tasks_completed=current.tasks_completed + tasks_completed,
            )
            self._daily_stats[(user_id, day)] = updated
            return updated

    def list_daily_stats(self, user_id: int, start: date, end: date) -> list[DailyStats]:
        with self._lock:
            items = [
                stats
                for (owner, day), stats in self._daily_stats.items()
                if owner == user_id and start <= day <= end
            ]
        return sorted(items, key=lambda s: s.day)
