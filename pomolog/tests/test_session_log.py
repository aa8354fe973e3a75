from __future__ import annotations

from datetime import date, datetime, timezone
import unittest

from pomolog.clock import FakeClock
from pomolog.session_log import SessionLog
from pomolog.stats import StatsAggregator
from pomolog.storage import MemoryStorage


class TestSessionLog(unittest.TestCase):
    def setUp(self) -> None:
        self.clock = FakeClock(start=datetime(2026, 4, 2, 8, 0, tzinfo=timezone.utc))
        self.storage = MemoryStorage()
        self.stats = StatsAggregator(self.storage, clock=self.clock)
        self.log = SessionLog(self.storage, self.stats, clock=self.clock)

    def test_open_session_records_start_time(self) -> None:
        session_id = self.log.open_session(1, "work", 1500)
        session = self.log.get_session(session_id)
        assert session is not None
        self.assertEqual(session.start_time, self.clock.now())
        self.assertTrue(session.is_open)
        self.assertFalse(session.completed)

    def test_open_rejects_unknown_type(self) -> None:
        with self.assertRaises(ValueError):
            self.log.open_session(1, "nap", 60)  # type: ignore[arg-type]

    def test_close_twice_counts_once(self) -> None:
        session_id = self.log.open_session(1, "work", 1500)
        self.clock.advance(1500)

        first = self.log.close_session(session_id)
        assert first is not None
        self.assertEqual(first.end_time, self.clock.now())

        self.clock.advance(60)
        second = self.log.close_session(session_id)
        assert second is not None
        self.assertEqual(second.end_time, first.end_time)

        daily = self.stats.get_daily_stats(1)
        self.assertEqual(daily.completed_pomodoros, 1)
        self.assertEqual(daily.total_focus_time, 1500)

    def test_close_unknown_id_returns_none(self) -> None:
        self.assertIsNone(self.log.close_session(404))
        self.assertEqual(self.stats.get_daily_stats(1).completed_pomodoros, 0)

    def test_break_and_abandoned_sessions_do_not_count(self) -> None:
        break_id = self.log.open_session(1, "break", 300)
        self.log.close_session(break_id)
        work_id = self.log.open_session(1, "work", 1500)
        closed = self.log.close_session(work_id, completed=False)

        assert closed is not None
        self.assertFalse(closed.completed)
        self.assertEqual(self.stats.get_daily_stats(1).completed_pomodoros, 0)

    def test_sessions_for_day(self) -> None:
        self.log.open_session(1, "work", 1500)
        self.clock.advance(24 * 3600)
        self.log.open_session(1, "work", 1500)
        self.log.open_session(2, "work", 1500)

        self.assertEqual(len(self.log.sessions_for_day(1, date(2026, 4, 2))), 1)
        self.assertEqual(len(self.log.sessions_for_day(1, date(2026, 4, 3))), 1)
        self.assertEqual(len(self.log.sessions_for_day(None, date(2026, 4, 3))), 2)
        self.assertEqual(self.log.sessions_for_day(1, date(2026, 4, 4)), [])


if __name__ == "__main__":
    unittest.main()
