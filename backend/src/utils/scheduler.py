"""Deferred callbacks for dialog timers."""

import threading
from typing import Callable, Protocol


class TimerHandle(Protocol):
    def cancel(self) -> None: ...


class Scheduler(Protocol):
    def call_later(self, delay_ms: int, callback: Callable[[], None]) -> TimerHandle: ...


class ThreadingScheduler:
    """Runs callbacks on daemon timer threads."""

    def call_later(self, delay_ms: int, callback: Callable[[], None]) -> threading.Timer:
        timer = threading.Timer(max(delay_ms, 0) / 1000.0, callback)
        timer.daemon = True
        timer.start()
        return timer
