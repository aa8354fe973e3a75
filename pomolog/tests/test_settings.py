from __future__ import annotations

import unittest

from pomolog.errors import ValidationError
from pomolog.settings import (
    TimerSettings,
    ensure_settings,
    merge_settings,
    parse_bool,
    validate_settings,
)
from pomolog.storage import MemoryStorage


class TestValidateSettings(unittest.TestCase):
    def test_defaults_are_valid(self) -> None:
        settings = TimerSettings()
        self.assertIs(validate_settings(settings), settings)
        self.assertEqual(
            (settings.work_duration, settings.break_duration, settings.long_break_duration),
            (1500, 300, 900),
        )
        self.assertEqual(settings.sessions_before_long_break, 4)

    def test_rejects_bad_values(self) -> None:
        bad = [
            TimerSettings(work_duration=0),
            TimerSettings(break_duration=-1),
            TimerSettings(long_break_duration=0),
            TimerSettings(sessions_before_long_break=0),
            TimerSettings(work_duration=True),
        ]
        for settings in bad:
            with self.assertRaises(ValidationError, msg=repr(settings)):
                validate_settings(settings)

    def test_problems_are_collected(self) -> None:
        with self.assertRaises(ValidationError) as ctx:
            validate_settings(TimerSettings(work_duration=0, sessions_before_long_break=0))
        self.assertEqual(len(ctx.exception.problems), 2)


class TestMergeSettings(unittest.TestCase):
    def test_partial_update_ignores_none(self) -> None:
        merged = merge_settings(TimerSettings(), {"work_duration": 600, "break_duration": None})
        self.assertEqual(merged.work_duration, 600)
        self.assertEqual(merged.break_duration, 300)

    def test_unknown_key_rejected(self) -> None:
        with self.assertRaises(ValidationError):
            merge_settings(TimerSettings(), {"snooze": 5})

    def test_round_trip_dict(self) -> None:
        settings = TimerSettings(work_duration=1800, auto_start_pomodoros=True)
        self.assertEqual(TimerSettings.from_dict(settings.to_dict()), settings)


class TestEnsureSettings(unittest.TestCase):
    def test_first_read_stores_defaults_with_auto_start(self) -> None:
        storage = MemoryStorage()
        settings = ensure_settings(storage, 7)
        self.assertTrue(settings.auto_start_breaks)
        self.assertTrue(settings.auto_start_pomodoros)
        self.assertEqual(storage.get_settings(7), settings)

    def test_existing_settings_kept(self) -> None:
        storage = MemoryStorage()
        storage.save_settings(1, TimerSettings(work_duration=60))
        self.assertEqual(ensure_settings(storage, 1).work_duration, 60)


class TestParseBool(unittest.TestCase):
    def test_values(self) -> None:
        self.assertTrue(parse_bool("yes", False))
        self.assertTrue(parse_bool(" ON ", False))
        self.assertFalse(parse_bool("0", True))
        self.assertTrue(parse_bool(1, False))
        self.assertTrue(parse_bool("maybe", True))


if __name__ == "__main__":
    unittest.main()
