from __future__ import annotations

from datetime import date, datetime, time as dtime, timedelta
import logging
from typing import Optional

from .clock import Clock, RealClock
from .models import SESSION_TYPES, SESSION_WORK, Session, SessionType
from .stats import StatsAggregator
from .storage import Storage


class SessionLog:
    """Opens and closes persisted sessions and feeds completed focus time to the stats.

    This is the only writer of ``Session.end_time``.
    """

    def __init__(
        self,
        storage: Storage,
        stats: StatsAggregator,
        clock: Clock | None = None,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self._storage = storage
        self._stats = stats
        self._clock = clock or RealClock()
        self._logger = logger or logging.getLogger("pomolog.session_log")

    def open_session(self, user_id: int, session_type: SessionType, duration: int) -> int:
        if session_type not in SESSION_TYPES:
            raise ValueError(f"unknown session type: {session_type}")
        session = self._storage.create_session(
            user_id=user_id,
            session_type=session_type,
            duration=int(duration),
            start_time=self._clock.now(),
        )
        self._logger.info(
            "Session opened: id=%s user=%s type=%s duration=%ss",
            session.id,
            user_id,
            session_type,
            session.duration,
        )
        return session.id

    def close_session(
        self,
        session_id: int,
        end_time: datetime | None = None,
        *,
        completed: bool = True,
    ) -> Session | None:
        """Set ``end_time`` on an open session.

        Completed work sessions add their planned duration to today's stats.
        Closing an unknown id returns ``None``; closing an already closed
        session returns it unchanged. Neither touches the stats.
        """
        closed = self._storage.close_session(session_id, end_time or self._clock.now(), completed)
        if closed is None:
            existing = self._storage.get_session(session_id)
            if existing is None:
                self._logger.info("Close ignored: session %s does not exist", session_id)
            else:
                self._logger.info("Close ignored: session %s already closed", session_id)
            return existing

        self._logger.info(
            "Session closed: id=%s type=%s completed=%s",
            closed.id,
            closed.type,
            closed.completed,
        )
        if closed.type == SESSION_WORK and closed.completed:
            self._stats.record_completed_focus(closed.user_id, closed.duration)
        return closed

    def get_session(self, session_id: int) -> Session | None:
        return self._storage.get_session(session_id)

    def list_sessions(self, user_id: int | None = None) -> list[Session]:
        return self._storage.list_sessions(user_id)

    def sessions_for_day(self, user_id: int | None, day: date) -> list[Session]:
        """Sessions started on ``day`` in the clock's timezone."""
        tz = self._clock.now().tzinfo
        start = datetime.combine(day, dtime.min).replace(tzinfo=tz)
        return self._storage.list_sessions_between(user_id, start, start + timedelta(days=1))
