from __future__ import annotations

from datetime import datetime, timedelta, timezone
import logging
import threading
import time
from typing import Callable, Optional, Protocol

TickCallback = Callable[[], None]


class Clock(Protocol):
    def now(self) -> datetime:
        ...

    def sleep(self, seconds: float) -> None:
        ...


class RealClock:
    def now(self) -> datetime:
        return datetime.now().astimezone()

    def sleep(self, seconds: float) -> None:
        time.sleep(max(0.0, seconds))


class FakeClock:
    def __init__(
        self,
        start: datetime | None = None,
        interrupt_on_sleep_call: int | None = None,
    ) -> None:
        base = start or datetime(2026, 1, 1, tzinfo=timezone.utc)
        if base.tzinfo is None:
            base = base.replace(tzinfo=timezone.utc)
        self._current = base
        self._interrupt_on_sleep_call = interrupt_on_sleep_call
        self._sleep_calls = 0

    def now(self) -> datetime:
        return self._current

    def sleep(self, seconds: float) -> None:
        self._sleep_calls += 1
        if (
            self._interrupt_on_sleep_call is not None
            and self._sleep_calls >= self._interrupt_on_sleep_call
        ):
            raise KeyboardInterrupt
        self.advance(seconds)

    def advance(self, seconds: float) -> None:
        self._current += timedelta(seconds=max(0.0, seconds))


class Ticker(Protocol):
    """Cancellable repeating schedule that drives ``PomodoroTimer.tick``."""

    @property
    def active(self) -> bool:
        ...

    def start(self, callback: TickCallback) -> None:
        ...

    def stop(self) -> None:
        ...


class ThreadTicker:
    """Calls the callback once per ``interval`` seconds on a daemon thread.

    ``start`` while active is a no-op. ``stop`` may be called from inside the
    callback; the worker exits once the callback returns.
    """

    def __init__(self, interval: float = 1.0, logger: Optional[logging.Logger] = None) -> None:
        if interval <= 0:
            raise ValueError("interval must be greater than zero")
        self.interval = float(interval)
        self._logger = logger or logging.getLogger("pomolog.ticker")
        self._lock = threading.Lock()
        self._stop_event: threading.Event | None = None
        self._worker: threading.Thread | None = None

    @property
    def active(self) -> bool:
        with self._lock:
            return self._stop_event is not None and not self._stop_event.is_set()

    def start(self, callback: TickCallback) -> None:
        with self._lock:
            if self._stop_event is not None and not self._stop_event.is_set():
                return
            stop_event = threading.Event()
            self._stop_event = stop_event
            self._worker = threading.Thread(
                target=self._run,
                args=(callback, stop_event),
                name="pomolog-ticker",
                daemon=True,
            )
            self._worker.start()

    def stop(self) -> None:
        with self._lock:
            if self._stop_event is not None:
                self._stop_event.set()

    def _run(self, callback: TickCallback, stop_event: threading.Event) -> None:
        while not stop_event.wait(self.interval):
            try:
                callback()
            except Exception:
                # The countdown keeps going when a side channel (storage, listener) fails.
                self._logger.exception("Tick callback failed")


class FakeTicker:
    """Manually driven ticker for tests; each ``advance`` step is one second."""

    def __init__(self, clock: FakeClock | None = None) -> None:
        self.clock = clock
        self.start_calls = 0
        self.stop_calls = 0
        self._callback: TickCallback | None = None

    @property
    def active(self) -> bool:
        return self._callback is not None

    def start(self, callback: TickCallback) -> None:
        if self._callback is not None:
            return
        self.start_calls += 1
        self._callback = callback

    def stop(self) -> None:
        if self._callback is None:
            return
        self.stop_calls += 1
        self._callback = None

    def advance(self, ticks: int = 1) -> int:
        fired = 0
        for _ in range(max(0, ticks)):
            callback = self._callback
            if callback is None:
                break
            if self.clock is not None:
                self.clock.advance(1.0)
            callback()
            fired += 1
        return fired
