from __future__ import annotations

from datetime import date, timedelta
import logging
from typing import Optional

from .clock import Clock, RealClock
from .models import DailyStats
from .storage import Storage


class StatsAggregator:
    """Per-day counters, incremented when events happen.

    Counters are never rebuilt from session history; a day with no events
    reads back as zeros.
    """

    def __init__(
        self,
        storage: Storage,
        clock: Clock | None = None,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self._storage = storage
        self._clock = clock or RealClock()
        self._logger = logger or logging.getLogger("pomolog.stats")

    def today(self) -> date:
        return self._clock.now().date()

    def record_completed_focus(self, user_id: int, duration_seconds: int) -> DailyStats:
        day = self.today()
        stats = self._storage.increment_daily_stats(
            user_id,
            day,
            completed_pomodoros=1,
            total_focus_time=max(0, int(duration_seconds)),
        )
        self._logger.info(
            "Focus recorded: user=%s day=%s pomodoros=%s focus=%ss",
            user_id,
            day,
            stats.completed_pomodoros,
            stats.total_focus_time,
        )
        return stats

    def record_task_completed(self, user_id: int) -> DailyStats:
        day = self.today()
        stats = self._storage.increment_daily_stats(user_id, day, tasks_completed=1)
        self._logger.info(
            "Task completion recorded: user=%s day=%s tasks=%s",
            user_id,
            day,
            stats.tasks_completed,
        )
        return stats

    def get_daily_stats(self, user_id: int, day: date | None = None) -> DailyStats:
        target = day or self.today()
        stats = self._storage.get_daily_stats(user_id, target)
        if stats is None:
            return DailyStats(user_id=user_id, day=target)
        return stats

    def history(self, user_id: int, days: int = 7, end: date | None = None) -> list[DailyStats]:
        """Return one entry per day, oldest first, ending on ``end`` (default today)."""
        last = end or self.today()
        count = max(1, int(days))
        first = last - timedelta(days=count - 1)
        stored = {item.day: item for item in self._storage.list_daily_stats(user_id, first, last)}

        items: list[DailyStats] = []
        for offset in range(count):
            day = first + timedelta(days=offset)
            items.append(stored.get(day) or DailyStats(user_id=user_id, day=day))
        return items
