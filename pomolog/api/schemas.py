from __future__ import annotations

from datetime import date, datetime
from typing import Literal

from pydantic import BaseModel, Field


class TaskOut(BaseModel):
    id: int
    user_id: int
    title: str
    completed: bool
    created_at: datetime


class TaskCreate(BaseModel):
    user_id: int = 1
    title: str
    completed: bool = False


class TaskUpdate(BaseModel):
    title: str | None = None
    completed: bool | None = None


class SessionOut(BaseModel):
    id: int
    user_id: int
    type: Literal["work", "break"]
    duration: int
    start_time: datetime
    end_time: datetime | None = None
    completed: bool


class SettingsOut(BaseModel):
    work_duration: int
    break_duration: int
    long_break_duration: int
    sessions_before_long_break: int
    auto_start_breaks: bool
    auto_start_pomodoros: bool


class SettingsUpdate(BaseModel):
    user_id: int = 1
    work_duration: int | None = None
    break_duration: int | None = None
    long_break_duration: int | None = None
    sessions_before_long_break: int | None = None
    auto_start_breaks: bool | None = None
    auto_start_pomodoros: bool | None = None


class DailyStatsOut(BaseModel):
    user_id: int
    day: date
    completed_pomodoros: int
    total_focus_time: int
    tasks_completed: int


class TimerStateOut(BaseModel):
    phase: Literal["idle", "running", "paused", "expired"]
    remaining_seconds: int
    total_seconds: int
    is_running: bool
    is_work_session: bool
    session_ordinal: int
    status_label: Literal["Ready", "Focusing", "Break", "Paused"]
    status_message: str
    is_long_break: bool
    current_session_id: int | None = None


class TimerCommand(BaseModel):
    user_id: int = 1


class FileResult(BaseModel):
    path: str


class HealthOut(BaseModel):
    status: str = Field(default="ok")
    version: str


class MetaOut(BaseModel):
    app: str
    version: str
    db_path: str
    platform: str
