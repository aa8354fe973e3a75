from __future__ import annotations

import unittest

from pomolog.policy import decide_next_session
from pomolog.settings import TimerSettings


class TestSessionPolicy(unittest.TestCase):
    def test_long_break_every_nth_work_session(self) -> None:
        for every in range(1, 7):
            settings = TimerSettings(sessions_before_long_break=every)
            for ordinal in range(1, 25):
                decision = decide_next_session(True, ordinal, settings)
                self.assertFalse(decision.next_is_work_session)
                self.assertEqual(decision.is_long_break, ordinal % every == 0, (every, ordinal))
                expected = settings.long_break_duration if ordinal % every == 0 else settings.break_duration
                self.assertEqual(decision.next_duration, expected)

    def test_break_is_always_followed_by_work(self) -> None:
        settings = TimerSettings(work_duration=1200)
        for ordinal in (1, 4, 8):
            decision = decide_next_session(False, ordinal, settings)
            self.assertTrue(decision.next_is_work_session)
            self.assertFalse(decision.is_long_break)
            self.assertEqual(decision.next_duration, 1200)

    def test_auto_start_follows_the_matching_flag(self) -> None:
        settings = TimerSettings(auto_start_breaks=True, auto_start_pomodoros=False)
        self.assertTrue(decide_next_session(True, 1, settings).should_auto_start)
        self.assertFalse(decide_next_session(False, 1, settings).should_auto_start)

        settings = TimerSettings(auto_start_breaks=False, auto_start_pomodoros=True)
        self.assertFalse(decide_next_session(True, 1, settings).should_auto_start)
        self.assertTrue(decide_next_session(False, 1, settings).should_auto_start)


if __name__ == "__main__":
    unittest.main()
