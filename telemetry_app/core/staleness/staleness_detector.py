from __future__ import annotations

import threading
from datetime import datetime
from typing import Callable, Optional

from telemetry_app.core.scheduling import ScheduledCall, Scheduler, wall_clock_ms
from telemetry_app.domain.events import StalenessEvent, StalenessTransition
from telemetry_app.utils.logger import get_logger

logger = get_logger(__name__)

DEFAULT_THRESHOLD_MS = 10_000.0
DEFAULT_POLL_MS = 1_000.0


class StalenessDetector:
    """
    Advisory "no fresh data" alert.

    The detector remembers the wall-clock time of the last cursor advance and,
    on a fixed poll interval, raises a boolean alert when more than
    `threshold_ms` has elapsed since then. The next arrival clears it.

    The alert never halts playback and never mutates data. Transitions are
    reported through the optional `on_transition` callback (the runtime
    forwards them to the notification layer).

    Parameters
    ----------
    scheduler
        Runs the periodic poll task.
    threshold_ms
        Elapsed time after which the feed counts as stale.
    poll_interval_ms
        Poll period.
    clock
        Returns the current wall-clock time in milliseconds.
    on_transition
        Called with a `StalenessEvent` whenever the alert is raised or cleared.
    lock
        Re-entrant lock shared with the owning engine.
    """

    def __init__(
        self,
        scheduler: Scheduler,
        threshold_ms: float = DEFAULT_THRESHOLD_MS,
        poll_interval_ms: float = DEFAULT_POLL_MS,
        clock: Callable[[], float] = wall_clock_ms,
        on_transition: Optional[Callable[[StalenessEvent], None]] = None,
        lock: Optional[threading.RLock] = None,
    ):
        if threshold_ms <= 0 or poll_interval_ms <= 0:
            raise ValueError("threshold_ms and poll_interval_ms must be positive")
        self._scheduler = scheduler
        self._threshold_ms = float(threshold_ms)
        self._poll_ms = float(poll_interval_ms)
        self._clock = clock
        self._on_transition = on_transition
        self._lock = lock or threading.RLock()

        # Only an armed detector raises the alert (live mode).
        self.armed = True
        self._last_arrival: Optional[float] = None
        self._alert = False
        self._machine_id = ""
        self._running = False
        self._generation = 0
        self._pending: Optional[ScheduledCall] = None

    @property
    def alert(self) -> bool:
        return self._alert

    @property
    def last_arrival_ms(self) -> Optional[float]:
        return self._last_arrival

    @property
    def threshold_ms(self) -> float:
        return self._threshold_ms

    @property
    def running(self) -> bool:
        return self._running

    def mark_arrival(self, machine_id: Optional[str] = None) -> None:
        """Record a cursor advance now; clears a raised alert."""
        with self._lock:
            self._last_arrival = self._clock()
            if machine_id:
                self._machine_id = machine_id
            if self._alert:
                self._alert = False
                self._emit(StalenessTransition.CLEARED, 0.0)

    def elapsed_ms(self) -> Optional[float]:
        """Milliseconds since the last arrival (None before any baseline)."""
        with self._lock:
            if self._last_arrival is None:
                return None
            return self._clock() - self._last_arrival

    def poll(self) -> bool:
        """
        Evaluate staleness once.

        Returns
        -------
        bool
            The alert after this evaluation.
        """
        with self._lock:
            elapsed = self.elapsed_ms()
            if self.armed and elapsed is not None and elapsed > self._threshold_ms and not self._alert:
                self._alert = True
                logger.warning("No sample for %.0f ms (threshold %.0f ms)", elapsed, self._threshold_ms)
                self._emit(StalenessTransition.RAISED, elapsed)
            return self._alert

    def start(self) -> None:
        """
        Start the periodic poll task.

        Before any sample has arrived, the start time is the baseline, so a
        feed that never delivers still raises the alert.
        """
        with self._lock:
            if self._running:
                return
            self._running = True
            if self._last_arrival is None:
                self._last_arrival = self._clock()
            self._schedule_poll()

    def stop(self) -> None:
        """Cancel the poll task; a poll already in flight is discarded."""
        with self._lock:
            self._running = False
            self._generation += 1
            if self._pending is not None:
                self._pending.cancel()
                self._pending = None

    def reset(self) -> None:
        """Forget the last arrival and clear the alert without emitting events."""
        with self._lock:
            self._alert = False
            self._last_arrival = self._clock() if self._running else None

    def _schedule_poll(self) -> None:
        generation = self._generation
        self._pending = self._scheduler.call_later(
            self._poll_ms / 1000.0, lambda: self._on_poll(generation)
        )

    def _on_poll(self, generation: int) -> None:
        with self._lock:
            if generation != self._generation or not self._running:
                return
            self._pending = None
            self._schedule_poll()
            self.poll()

    def _emit(self, transition: StalenessTransition, elapsed: float) -> None:
        if self._on_transition is None:
            return
        self._on_transition(
            StalenessEvent(
                machine_id=self._machine_id,
                transition=transition,
                timestamp=datetime.now(),
                elapsed_ms=elapsed,
                threshold_ms=self._threshold_ms,
            )
        )
