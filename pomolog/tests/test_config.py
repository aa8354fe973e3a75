from __future__ import annotations

from pathlib import Path
import unittest

from pomolog.config import load_config
from pomolog.db import default_db_path


class TestConfig(unittest.TestCase):
    def test_defaults(self) -> None:
        config = load_config({})
        self.assertEqual(config.db_path, default_db_path())
        self.assertEqual(config.user_id, 1)
        self.assertEqual(config.log_level, "WARNING")
        self.assertFalse(config.notify)
        self.assertIsNone(config.journal_mode)

    def test_environment_values(self) -> None:
        config = load_config(
            {
                "POMOLOG_DB": "/tmp/p.sqlite",
                "POMOLOG_USER_ID": "3",
                "POMOLOG_LOG_LEVEL": "debug",
                "POMOLOG_NOTIFY": "yes",
                "POMOLOG_JOURNAL_MODE": "wal",
            }
        )
        self.assertEqual(config.db_path, Path("/tmp/p.sqlite"))
        self.assertEqual(config.user_id, 3)
        self.assertEqual(config.log_level, "DEBUG")
        self.assertTrue(config.notify)
        self.assertEqual(config.journal_mode, "wal")

    def test_invalid_values(self) -> None:
        with self.assertRaises(ValueError):
            load_config({"POMOLOG_USER_ID": "abc"})
        with self.assertRaises(ValueError):
            load_config({"POMOLOG_LOG_LEVEL": "chatty"})

    def test_overrides_skip_none(self) -> None:
        config = load_config({"POMOLOG_USER_ID": "3"}).with_overrides(
            db_path="x.sqlite",
            user_id=None,
            log_level="info",
        )
        self.assertEqual(config.db_path, Path("x.sqlite"))
        self.assertEqual(config.user_id, 3)
        self.assertEqual(config.log_level, "INFO")


if __name__ == "__main__":
    unittest.main()
