"""Decides what follows a finished work or break session."""

from __future__ import annotations

from dataclasses import dataclass

from .settings import TimerSettings


@dataclass(frozen=True)
class SessionDecision:
    next_is_work_session: bool
    next_duration: int
    is_long_break: bool
    should_auto_start: bool


def decide_next_session(
    is_work_session: bool,
    session_ordinal: int,
    settings: TimerSettings,
) -> SessionDecision:
    """Return the session that follows the one that just ended.

    After a work session the break is long when ``session_ordinal`` is a
    multiple of ``sessions_before_long_break``. After a break the next session
    is always work. ``settings`` must already be validated.
    """
    if is_work_session:
        is_long_break = session_ordinal % settings.sessions_before_long_break == 0
        return SessionDecision(
            next_is_work_session=False,
            next_duration=settings.long_break_duration if is_long_break else settings.break_duration,
            is_long_break=is_long_break,
            should_auto_start=settings.auto_start_breaks,
        )

    return SessionDecision(
        next_is_work_session=True,
        next_duration=settings.work_duration,
        is_long_break=False,
        should_auto_start=settings.auto_start_pomodoros,
    )
