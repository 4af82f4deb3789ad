"""
Scheduling contracts used by the engine.

The engine never owns threads or event loops. Timed work (replay ticks,
staleness polls) is delegated to a `Scheduler` injected by the composition
root:

- :class:`telemetry_app.runtime.timer_scheduler.TimerScheduler` for headless
  use (threading.Timer)
- :class:`telemetry_app.ui.qt_scheduler.QtScheduler` for the desktop UI
  (callbacks on the GUI thread)

Tests use a manual scheduler that fires callbacks when virtual time advances.
"""

from __future__ import annotations

import time
from typing import Callable, Protocol


class ScheduledCall(Protocol):
    """Handle of one pending delayed call."""

    def cancel(self) -> None:
        """Prevent the call from firing if it has not fired yet."""
        ...


class Scheduler(Protocol):
    """Runs a callback once after a delay."""

    def call_later(self, delay_s: float, callback: Callable[[], None]) -> ScheduledCall:
        """
        Schedule `callback` to run once after `delay_s` seconds.

        Returns
        -------
        ScheduledCall
            Handle that can cancel the call.
        """
        ...


def wall_clock_ms() -> float:
    """Default clock for arrival tracking, in milliseconds."""
    return time.monotonic() * 1000.0
