from __future__ import annotations

import io
from types import SimpleNamespace
import unittest
from unittest import mock

from pomolog.notifier import Notifier


class TestNotifier(unittest.TestCase):
    def test_fallback_when_command_fails(self) -> None:
        stream = io.StringIO()
        notifier = Notifier(stream=stream)

        with mock.patch("pomolog.notifier.platform.system", return_value="Linux"), mock.patch(
            "pomolog.notifier.shutil.which", return_value="/usr/bin/notify-send"
        ), mock.patch(
            "pomolog.notifier.subprocess.run", return_value=SimpleNamespace(returncode=1)
        ):
            notifier.notify("Break time!", "Take a short break.")

        self.assertIn("[notify] Break time!: Take a short break.", stream.getvalue())

    def test_no_fallback_when_command_succeeds(self) -> None:
        stream = io.StringIO()
        notifier = Notifier(stream=stream)

        with mock.patch("pomolog.notifier.platform.system", return_value="Linux"), mock.patch(
            "pomolog.notifier.shutil.which", return_value="/usr/bin/notify-send"
        ), mock.patch(
            "pomolog.notifier.subprocess.run", return_value=SimpleNamespace(returncode=0)
        ) as run:
            notifier.notify("Focus time!", "Time to get back to work.")

        self.assertEqual(stream.getvalue(), "")
        self.assertEqual(run.call_args.args[0], ["notify-send", "Focus time!", "Time to get back to work."])

    def test_console_only_with_bell(self) -> None:
        stream = io.StringIO()
        notifier = Notifier(stream=stream, desktop=False, sound=True)

        with mock.patch("pomolog.notifier.subprocess.run") as run:
            notifier.notify("Focus time!", "Time to get back to work.")

        run.assert_not_called()
        self.assertEqual(stream.getvalue(), "\a[notify] Focus time!: Time to get back to work.\n")

    def test_command_error_falls_back(self) -> None:
        stream = io.StringIO()
        notifier = Notifier(stream=stream)

        with mock.patch("pomolog.notifier.platform.system", return_value="Darwin"), mock.patch(
            "pomolog.notifier.shutil.which", return_value="/usr/bin/osascript"
        ), mock.patch("pomolog.notifier.subprocess.run", side_effect=OSError("denied")):
            notifier.notify("Break time!", 'Say "hi"')

        self.assertIn("[notify] Break time!", stream.getvalue())


if __name__ == "__main__":
    unittest.main()
