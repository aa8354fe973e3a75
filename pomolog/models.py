from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Any, Literal

SessionType = Literal["work", "break"]

SESSION_WORK: SessionType = "work"
SESSION_BREAK: SessionType = "break"
SESSION_TYPES: frozenset[str] = frozenset({SESSION_WORK, SESSION_BREAK})


@dataclass(frozen=True)
class Task:
    id: int
    user_id: int
    title: str
    completed: bool
    created_at: datetime

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "title": self.title,
            "completed": self.completed,
            "created_at": self.created_at,
        }


@dataclass(frozen=True)
class Session:
    id: int
    user_id: int
    type: SessionType
    duration: int
    start_time: datetime
    end_time: datetime | None = None
    completed: bool = False

    @property
    def is_open(self) -> bool:
        return self.end_time is None

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "type": self.type,
            "duration": self.duration,
            "start_time": self.start_time,
            "end_time": self.end_time,
            "completed": self.completed,
        }


@dataclass(frozen=True)
class DailyStats:
    user_id: int
    day: date
    completed_pomodoros: int = 0
    total_focus_time: int = 0
    tasks_completed: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "user_id": self.user_id,
            "day": self.day,
            "completed_pomodoros": self.completed_pomodoros,
            "total_focus_time": self.total_focus_time,
            "tasks_completed": self.tasks_completed,
        }
