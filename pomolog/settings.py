from __future__ import annotations

from dataclasses import dataclass, fields, replace
from typing import TYPE_CHECKING, Any, Mapping

from .errors import ValidationError

if TYPE_CHECKING:
    from .storage import Storage

DEFAULT_WORK_DURATION = 25 * 60
DEFAULT_BREAK_DURATION = 5 * 60
DEFAULT_LONG_BREAK_DURATION = 15 * 60
DEFAULT_SESSIONS_BEFORE_LONG_BREAK = 4

DURATION_FIELDS = ("work_duration", "break_duration", "long_break_duration")


def parse_bool(value: Any, default: bool) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return value != 0
    if isinstance(value, str):
        normalized = value.strip().lower()
        if normalized in {"1", "true", "yes", "y", "on"}:
            return True
        if normalized in {"0", "false", "no", "n", "off", ""}:
            return False
    return default


@dataclass(frozen=True)
class TimerSettings:
    work_duration: int = DEFAULT_WORK_DURATION
    break_duration: int = DEFAULT_BREAK_DURATION
    long_break_duration: int = DEFAULT_LONG_BREAK_DURATION
    sessions_before_long_break: int = DEFAULT_SESSIONS_BEFORE_LONG_BREAK
    auto_start_breaks: bool = False
    auto_start_pomodoros: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "work_duration": self.work_duration,
            "break_duration": self.break_duration,
            "long_break_duration": self.long_break_duration,
            "sessions_before_long_break": self.sessions_before_long_break,
            "auto_start_breaks": self.auto_start_breaks,
            "auto_start_pomodoros": self.auto_start_pomodoros,
        }

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> TimerSettings:
        return cls(
            work_duration=int(payload.get("work_duration", DEFAULT_WORK_DURATION)),
            break_duration=int(payload.get("break_duration", DEFAULT_BREAK_DURATION)),
            long_break_duration=int(payload.get("long_break_duration", DEFAULT_LONG_BREAK_DURATION)),
            sessions_before_long_break=int(
                payload.get("sessions_before_long_break", DEFAULT_SESSIONS_BEFORE_LONG_BREAK)
            ),
            auto_start_breaks=parse_bool(payload.get("auto_start_breaks", False), False),
            auto_start_pomodoros=parse_bool(payload.get("auto_start_pomodoros", False), False),
        )


SETTINGS_FIELDS = tuple(f.name for f in fields(TimerSettings))


def default_stored_settings() -> TimerSettings:
    """Settings written for a user that has none yet."""
    return TimerSettings(auto_start_breaks=True, auto_start_pomodoros=True)


def validate_settings(settings: TimerSettings) -> TimerSettings:
    problems: list[str] = []
    for name in DURATION_FIELDS:
        value = getattr(settings, name)
        if isinstance(value, bool) or not isinstance(value, int):
            problems.append(f"{name} must be an integer number of seconds")
        elif value <= 0:
            problems.append(f"{name} must be greater than zero")

    sessions = settings.sessions_before_long_break
    if isinstance(sessions, bool) or not isinstance(sessions, int):
        problems.append("sessions_before_long_break must be an integer")
    elif sessions < 1:
        problems.append("sessions_before_long_break must be at least 1")

    for name in ("auto_start_breaks", "auto_start_pomodoros"):
        if not isinstance(getattr(settings, name), bool):
            problems.append(f"{name} must be a boolean")

    if problems:
        raise ValidationError("; ".join(problems), problems)
    return settings


def merge_settings(current: TimerSettings, changes: Mapping[str, Any]) -> TimerSettings:
    """Apply a partial update and validate the result. ``None`` values are ignored."""
    unknown = sorted(set(changes) - set(SETTINGS_FIELDS))
    if unknown:
        raise ValidationError(f"unknown settings: {', '.join(unknown)}")
    patch = {key: value for key, value in changes.items() if value is not None}
    return validate_settings(replace(current, **patch))


def ensure_settings(storage: Storage, user_id: int) -> TimerSettings:
    existing = storage.get_settings(user_id)
    if existing is not None:
        return existing
    return storage.save_settings(user_id, default_stored_settings())
