from __future__ import annotations

import platform
import shutil
import subprocess
import sys
from typing import Protocol, TextIO


class NotifierLike(Protocol):
    def notify(self, title: str, message: str) -> None:
        ...


class Notifier:
    """Best-effort desktop notification with a console fallback."""

    def __init__(
        self,
        stream: TextIO | None = None,
        desktop: bool = True,
        sound: bool = False,
    ) -> None:
        self.stream = stream or sys.stdout
        self.desktop = desktop
        self.sound = sound

    def notify(self, title: str, message: str) -> None:
        if self.sound:
            self.stream.write("\a")

        sent = self._send_desktop(title, message) if self.desktop else False
        if not sent:
            self.stream.write(f"[notify] {title}: {message}\n")
        self.stream.flush()

    def _send_desktop(self, title: str, message: str) -> bool:
        system_name = platform.system().lower()
        try:
            if system_name == "darwin" and shutil.which("osascript"):
                script = (
                    "display notification "
                    f"\"{self._escape(message)}\" with title \"{self._escape(title)}\""
                )
                result = subprocess.run(
                    ["osascript", "-e", script],
                    check=False,
                    stdout=subprocess.DEVNULL,
                    stderr=subprocess.DEVNULL,
                )
                return result.returncode == 0
            if system_name == "linux" and shutil.which("notify-send"):
                result = subprocess.run(
                    ["notify-send", title, message],
                    check=False,
                    stdout=subprocess.DEVNULL,
                    stderr=subprocess.DEVNULL,
                )
                return result.returncode == 0
        except Exception:
            return False
        return False

    @staticmethod
    def _escape(text: str) -> str:
        return text.replace("\\", "\\\\").replace('"', '\\"')


class NullNotifier:
    def notify(self, title: str, message: str) -> None:
        return None
