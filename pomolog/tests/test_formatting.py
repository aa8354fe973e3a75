from __future__ import annotations

import unittest

from pomolog.formatting import format_countdown, format_focus_time, format_session_type


class TestFormatting(unittest.TestCase):
    def test_countdown(self) -> None:
        self.assertEqual(format_countdown(1500), "25:00")
        self.assertEqual(format_countdown(59), "00:59")
        self.assertEqual(format_countdown(3725), "01:02:05")
        self.assertEqual(format_countdown(-3), "00:00")

    def test_focus_time(self) -> None:
        self.assertEqual(format_focus_time(0), "0m")
        self.assertEqual(format_focus_time(45 * 60), "45m")
        self.assertEqual(format_focus_time(2 * 3600), "2h")
        self.assertEqual(format_focus_time(75 * 60), "1h 15m")

    def test_session_type(self) -> None:
        self.assertEqual(format_session_type("work"), "Focus")
        self.assertEqual(format_session_type("break"), "Short Break")
        self.assertEqual(format_session_type("break", is_long_break=True), "Long Break")
        self.assertEqual(format_session_type("work", is_long_break=True), "Focus")
        self.assertEqual(format_session_type("other"), "other")


if __name__ == "__main__":
    unittest.main()
