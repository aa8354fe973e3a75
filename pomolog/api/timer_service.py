from __future__ import annotations

import logging
import queue
from threading import Lock
from typing import Any, Callable, Mapping

from ..clock import Clock, RealClock, ThreadTicker, Ticker
from ..notifier import Notifier, NotifierLike, NullNotifier
from ..session_log import SessionLog
from ..settings import TimerSettings, ensure_settings
from ..stats import StatsAggregator
from ..storage import Storage
from ..tasks import TaskStore
from ..timer import PomodoroTimer, TimerState

TickerFactory = Callable[[], Ticker]


class TimerService:
    """Owns the collaborators and one ``PomodoroTimer`` per user for an app instance."""

    def __init__(
        self,
        storage: Storage,
        clock: Clock | None = None,
        ticker_factory: TickerFactory | None = None,
        notifier: NotifierLike | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        self.storage = storage
        self.clock = clock or RealClock()
        self.stats = StatsAggregator(storage, clock=self.clock)
        self.session_log = SessionLog(storage, self.stats, clock=self.clock)
        self.tasks = TaskStore(storage, stats=self.stats, clock=self.clock)
        self._ticker_factory = ticker_factory or ThreadTicker
        self._notifier = notifier or NullNotifier()
        self._logger = logger or logging.getLogger("pomolog.api")
        self._lock = Lock()
        self._timers: dict[int, PomodoroTimer] = {}
        self._subscribers: list[queue.Queue[dict[str, Any]]] = []

    def timer_for(self, user_id: int) -> PomodoroTimer:
        with self._lock:
            timer = self._timers.get(user_id)
            if timer is None:
                timer = PomodoroTimer(
                    session_log=self.session_log,
                    settings=ensure_settings(self.storage, user_id),
                    user_id=user_id,
                    ticker=self._ticker_factory(),
                    notifier=self._notifier,
                    listener=self._listener_for(user_id),
                )
                self._timers[user_id] = timer
            return timer

    def state(self, user_id: int) -> TimerState:
        return self.timer_for(user_id).state()

    def start(self, user_id: int) -> TimerState:
        return self.timer_for(user_id).start()

    def pause(self, user_id: int) -> TimerState:
        return self.timer_for(user_id).pause()

    def reset(self, user_id: int) -> TimerState:
        return self.timer_for(user_id).reset()

    def get_settings(self, user_id: int) -> TimerSettings:
        with self._lock:
            timer = self._timers.get(user_id)
        if timer is not None:
            return timer.settings
        return ensure_settings(self.storage, user_id)

    def update_settings(self, user_id: int, changes: Mapping[str, Any]) -> TimerSettings:
        # Validation happens inside the timer before anything is stored.
        updated = self.timer_for(user_id).update_settings(changes)
        return self.storage.save_settings(user_id, updated)

    def shutdown(self) -> None:
        with self._lock:
            timers = list(self._timers.values())
        for timer in timers:
            if timer.state().current_session_id is not None:
                self._logger.info("Shutting down with an open session for user %s", timer.user_id)
            timer.pause()

    def subscribe(self) -> queue.Queue[dict[str, Any]]:
        q: queue.Queue[dict[str, Any]] = queue.Queue(maxsize=200)
        with self._lock:
            self._subscribers.append(q)
        return q

    def unsubscribe(self, q: queue.Queue[dict[str, Any]]) -> None:
        with self._lock:
            self._subscribers = [item for item in self._subscribers if item is not q]

    def _listener_for(self, user_id: int) -> Callable[[str, dict[str, Any]], None]:
        def on_event(event: str, payload: dict[str, Any]) -> None:
            self._broadcast({"event": event, "user_id": user_id, **payload})

        return on_event

    def _broadcast(self, event: dict[str, Any]) -> None:
        with self._lock:
            alive: list[queue.Queue[dict[str, Any]]] = []
            for q in self._subscribers:
                try:
                    q.put_nowait(event)
                    alive.append(q)
                except queue.Full:
                    continue
            self._subscribers = alive


def build_notifier(enabled: bool) -> NotifierLike:
    if not enabled:
        return NullNotifier()
    return Notifier(desktop=True)
