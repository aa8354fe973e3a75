"""Pomodoro countdown state machine.

One ``PomodoroTimer`` owns the countdown of one user. It is driven by a
``Ticker`` calling :meth:`PomodoroTimer.tick` once per second, asks
:func:`decide_next_session` what follows an expired session, and records
sessions through the :class:`SessionLog`.

Every public method runs under one re-entrant lock, so ticks, user actions
and settings updates are applied one at a time. Persistence errors propagate
to the caller after the in-memory transition has been applied.
"""

from __future__ import annotations

from dataclasses import dataclass
import logging
import threading
from typing import Any, Callable, Literal, Mapping, Optional

from .clock import Ticker
from .models import SESSION_BREAK, SESSION_WORK
from .notifier import NotifierLike
from .policy import SessionDecision, decide_next_session
from .session_log import SessionLog
from .settings import TimerSettings, merge_settings, validate_settings

TimerPhase = Literal["idle", "running", "paused", "expired"]
StatusLabel = Literal["Ready", "Focusing", "Break", "Paused"]

PHASE_IDLE: TimerPhase = "idle"
PHASE_RUNNING: TimerPhase = "running"
PHASE_PAUSED: TimerPhase = "paused"
PHASE_EXPIRED: TimerPhase = "expired"

STATUS_READY: StatusLabel = "Ready"
STATUS_FOCUSING: StatusLabel = "Focusing"
STATUS_BREAK: StatusLabel = "Break"
STATUS_PAUSED: StatusLabel = "Paused"

STATUS_MESSAGES: dict[str, str] = {
    STATUS_READY: "Ready to start",
    STATUS_FOCUSING: "Focusing...",
    STATUS_BREAK: "Take a break!",
    STATUS_PAUSED: "Paused",
}

TimerListener = Callable[[str, dict[str, Any]], None]


@dataclass(frozen=True)
class TimerState:
    """Immutable snapshot of the countdown."""

    phase: TimerPhase
    remaining_seconds: int
    total_seconds: int
    is_work_session: bool
    session_ordinal: int
    status_label: StatusLabel
    is_long_break: bool
    current_session_id: int | None

    @property
    def is_running(self) -> bool:
        return self.phase == PHASE_RUNNING

    def to_dict(self) -> dict[str, Any]:
        return {
            "phase": self.phase,
            "remaining_seconds": self.remaining_seconds,
            "total_seconds": self.total_seconds,
            "is_running": self.is_running,
            "is_work_session": self.is_work_session,
            "session_ordinal": self.session_ordinal,
            "status_label": self.status_label,
            "status_message": STATUS_MESSAGES[self.status_label],
            "is_long_break": self.is_long_break,
            "current_session_id": self.current_session_id,
        }


class PomodoroTimer:
    def __init__(
        self,
        *,
        session_log: SessionLog,
        settings: TimerSettings | None = None,
        user_id: int = 1,
        ticker: Ticker | None = None,
        notifier: NotifierLike | None = None,
        listener: TimerListener | None = None,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self._settings = validate_settings(settings or TimerSettings())
        self._session_log = session_log
        self._user_id = user_id
        self._ticker = ticker
        self._notifier = notifier
        self._listener = listener
        self._logger = logger or logging.getLogger("pomolog.timer")
        self._lock = threading.RLock()

        self._phase: TimerPhase = PHASE_IDLE
        self._is_work_session = True
        self._session_ordinal = 1
        self._is_long_break = False
        self._total_seconds = self._settings.work_duration
        self._remaining_seconds = self._total_seconds
        self._status_label: StatusLabel = STATUS_READY
        self._current_session_id: int | None = None
        self._run_id = 0

    @property
    def user_id(self) -> int:
        return self._user_id

    @property
    def settings(self) -> TimerSettings:
        with self._lock:
            return self._settings

    def state(self) -> TimerState:
        with self._lock:
            return self._snapshot()

    def start(self) -> TimerState:
        with self._lock:
            if self._phase == PHASE_RUNNING:
                return self._snapshot()

            self._phase = PHASE_RUNNING
            self._status_label = STATUS_FOCUSING if self._is_work_session else STATUS_BREAK
            self._start_ticker()
            self._logger.info(
                "Timer started: user=%s work=%s remaining=%ss",
                self._user_id,
                self._is_work_session,
                self._remaining_seconds,
            )
            self._emit("started")

            if self._current_session_id is None:
                self._open_current_session()
            return self._snapshot()

    def pause(self) -> TimerState:
        with self._lock:
            if self._phase != PHASE_RUNNING:
                return self._snapshot()

            self._phase = PHASE_PAUSED
            self._status_label = STATUS_PAUSED
            self._stop_ticker()
            self._logger.info(
                "Timer paused: user=%s remaining=%ss",
                self._user_id,
                self._remaining_seconds,
            )
            self._emit("paused")
            return self._snapshot()

    def reset(self) -> TimerState:
        with self._lock:
            abandoned_id = self._current_session_id
            self._current_session_id = None
            self._stop_ticker()

            self._phase = PHASE_IDLE
            self._is_work_session = True
            self._is_long_break = False
            self._total_seconds = self._settings.work_duration
            self._remaining_seconds = self._total_seconds
            self._status_label = STATUS_READY
            self._logger.info("Timer reset: user=%s abandoned_session=%s", self._user_id, abandoned_id)
            self._emit("reset")

            if abandoned_id is not None:
                self._session_log.close_session(abandoned_id, completed=False)
            return self._snapshot()

    def tick(self) -> TimerState:
        with self._lock:
            if self._phase != PHASE_RUNNING:
                return self._snapshot()

            self._remaining_seconds = max(0, self._remaining_seconds - 1)
            if self._remaining_seconds > 0:
                self._emit("tick")
                return self._snapshot()

            self._phase = PHASE_EXPIRED
            self._emit("expired")
            self._complete_session()
            return self._snapshot()

    def update_settings(self, changes: Mapping[str, Any]) -> TimerSettings:
        """Merge ``changes`` into the active settings.

        An idle countdown is retimed when the duration of its own session kind
        changed. Running and paused countdowns keep their current length.
        """
        with self._lock:
            previous = self._settings
            updated = merge_settings(previous, changes)
            self._settings = updated

            if self._phase == PHASE_IDLE:
                field = self._duration_field()
                if getattr(updated, field) != getattr(previous, field):
                    self._total_seconds = getattr(updated, field)
                    self._remaining_seconds = self._total_seconds

            self._logger.info("Timer settings updated: user=%s %s", self._user_id, updated.to_dict())
            self._emit("settings_updated", settings=updated.to_dict())
            return updated

    def _complete_session(self) -> None:
        finished_id = self._current_session_id
        self._current_session_id = None
        was_work = self._is_work_session

        decision = decide_next_session(was_work, self._session_ordinal, self._settings)
        if decision.next_is_work_session and not was_work:
            self._session_ordinal += 1
        self._is_work_session = decision.next_is_work_session
        self._is_long_break = decision.is_long_break
        self._total_seconds = decision.next_duration
        self._remaining_seconds = decision.next_duration

        if decision.should_auto_start:
            self._phase = PHASE_RUNNING
            self._status_label = STATUS_FOCUSING if self._is_work_session else STATUS_BREAK
        else:
            self._phase = PHASE_IDLE
            self._status_label = STATUS_READY if self._is_work_session else STATUS_BREAK
            self._stop_ticker()

        self._logger.info(
            "Session finished: user=%s session=%s next_work=%s long_break=%s auto_start=%s",
            self._user_id,
            finished_id,
            decision.next_is_work_session,
            decision.is_long_break,
            decision.should_auto_start,
        )
        self._emit(
            "transition",
            finished_session_id=finished_id,
            next_is_work_session=decision.next_is_work_session,
            next_duration=decision.next_duration,
            is_long_break=decision.is_long_break,
            should_auto_start=decision.should_auto_start,
        )
        self._notify(decision)

        try:
            if finished_id is not None:
                self._session_log.close_session(finished_id, completed=True)
        finally:
            if decision.should_auto_start:
                self._open_current_session()

    def _start_ticker(self) -> None:
        if self._ticker is None:
            return
        self._run_id += 1
        run_id = self._run_id
        self._ticker.start(lambda: self._tick_for_run(run_id))

    def _stop_ticker(self) -> None:
        self._run_id += 1
        if self._ticker is not None:
            self._ticker.stop()

    def _tick_for_run(self, run_id: int) -> None:
        with self._lock:
            # A tick that was already waiting when its run was stopped is dropped.
            if run_id != self._run_id:
                return
            self.tick()

    def _open_current_session(self) -> None:
        session_type = SESSION_WORK if self._is_work_session else SESSION_BREAK
        self._current_session_id = self._session_log.open_session(
            self._user_id,
            session_type,
            self._total_seconds,
        )

    def _duration_field(self) -> str:
        if self._is_work_session:
            return "work_duration"
        return "long_break_duration" if self._is_long_break else "break_duration"

    def _notify(self, decision: SessionDecision) -> None:
        if self._notifier is None:
            return
        if decision.next_is_work_session:
            title, body = "Focus time!", "Time to get back to work."
        elif decision.is_long_break:
            title, body = "Break time!", "Take a long break."
        else:
            title, body = "Break time!", "Take a short break."
        try:
            self._notifier.notify(title, body)
        except Exception as exc:
            self._logger.warning("Notification failed: %s", exc)

    def _emit(self, event: str, **payload: Any) -> None:
        if self._listener is None:
            return
        try:
            self._listener(event, {**self._snapshot().to_dict(), **payload})
        except Exception:
            self._logger.exception("Timer listener failed on %s", event)

    def _snapshot(self) -> TimerState:
        return TimerState(
            phase=self._phase,
            remaining_seconds=self._remaining_seconds,
            total_seconds=self._total_seconds,
            is_work_session=self._is_work_session,
            session_ordinal=self._session_ordinal,
            status_label=self._status_label,
            is_long_break=self._is_long_break,
            current_session_id=self._current_session_id,
        )
