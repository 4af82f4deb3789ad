from __future__ import annotations

import threading
from typing import Callable


class _TimerCall:
    """Handle for one pending threading.Timer."""

    def __init__(self, timer: threading.Timer):
        self._timer = timer

    def cancel(self) -> None:
        self._timer.cancel()


class TimerScheduler:
    """
    Headless scheduler backed by `threading.Timer`.

    Each call runs on its own short-lived daemon timer thread. Callers that
    touch shared state must take their own lock inside the callback (the
    engine components do).
    """

    def call_later(self, delay_s: float, callback: Callable[[], None]) -> _TimerCall:
        timer = threading.Timer(max(0.0, delay_s), callback)
        timer.daemon = True
        timer.start()
        return _TimerCall(timer)
