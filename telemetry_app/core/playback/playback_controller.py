"""
Playback state machine.

One controller serves both source modes through an explicit
:class:`~telemetry_app.domain.models.PlaybackMode` flag:

Replay mode transition table
----------------------------
============  ===========================  =====================
operation     from                         to
============  ===========================  =====================
play()        STOPPED, PAUSED              PLAYING
pause()       PLAYING                      PAUSED (reason USER)
reset()       any                          STOPPED, cursor 0
tick          PLAYING, cursor < last       PLAYING, cursor + 1
tick          PLAYING, cursor == last      PAUSED (END_OF_SEQUENCE)
set_speed()   any                          unchanged
seek()        any                          unchanged, cursor moved
============  ===========================  =====================

Live mode
---------
No timer. The cursor is pinned to the newest sample and advances
synchronously through :meth:`PlaybackController.on_append`. `play`, `pause`,
`set_speed` and `seek` raise :class:`PlaybackModeError`.

Tick ordering
-------------
At most one tick is pending at a time. Every scheduled tick carries the
generation number current when it was scheduled; `pause`, `reset`, mode
changes, loads and `shutdown` bump the generation, so a tick that fires after
any of them is discarded instead of moving the cursor.
"""

from __future__ import annotations

import threading
from typing import Callable, Iterable, Optional, Tuple

from telemetry_app.core.scheduling import ScheduledCall, Scheduler
from telemetry_app.core.state.sequence_store import SequenceStore
from telemetry_app.domain.errors import (
    IndexOutOfRangeError,
    InvalidSpeedError,
    NoDataError,
    PlaybackModeError,
)
from telemetry_app.domain.models import PauseReason, PlaybackMode, PlaybackState
from telemetry_app.utils.logger import get_logger

logger = get_logger(__name__)

DEFAULT_SPEEDS: Tuple[float, ...] = (0.5, 1.0, 2.0, 10.0)
BASE_TICK_MS = 1000.0


class PlaybackController:
    """
    Cursor owner for one session.

    Parameters
    ----------
    store
        Sequence the cursor indexes into.
    scheduler
        Runs delayed tick callbacks in replay mode.
    allowed_speeds
        Discrete set of legal speed factors.
    speed
        Initial speed factor (must be in `allowed_speeds`).
    mode
        Initial source mode.
    on_advance
        Called with the new cursor after every tick or live append.
    on_state_change
        Called with the new state after every transition.
    lock
        Re-entrant lock shared with the owning engine. Timer callbacks take it
        before touching the cursor.
    """

    def __init__(
        self,
        store: SequenceStore,
        scheduler: Scheduler,
        allowed_speeds: Iterable[float] = DEFAULT_SPEEDS,
        speed: float = 1.0,
        mode: PlaybackMode = PlaybackMode.REPLAY,
        on_advance: Optional[Callable[[int], None]] = None,
        on_state_change: Optional[Callable[[PlaybackState], None]] = None,
        lock: Optional[threading.RLock] = None,
    ):
        self._store = store
        self._scheduler = scheduler
        self._allowed = tuple(sorted(float(s) for s in allowed_speeds))
        if float(speed) not in self._allowed:
            raise InvalidSpeedError(speed, self._allowed)
        self._speed = float(speed)
        self._mode = mode
        self._on_advance = on_advance
        self._on_state_change = on_state_change
        self._lock = lock or threading.RLock()

        self._state = PlaybackState.STOPPED
        self._pause_reason: Optional[PauseReason] = None
        self._cursor: Optional[int] = self._initial_cursor()
        self._generation = 0
        self._pending: Optional[ScheduledCall] = None
        self._closed = False

    # --- read-only state ---
    @property
    def state(self) -> PlaybackState:
        return self._state

    @property
    def mode(self) -> PlaybackMode:
        return self._mode

    @property
    def cursor(self) -> Optional[int]:
        return self._cursor

    @property
    def speed(self) -> float:
        return self._speed

    @property
    def allowed_speeds(self) -> Tuple[float, ...]:
        return self._allowed

    @property
    def pause_reason(self) -> Optional[PauseReason]:
        return self._pause_reason

    @property
    def tick_interval_s(self) -> float:
        """Delay between replay ticks at the current speed."""
        return BASE_TICK_MS / self._speed / 1000.0

    @property
    def progress_percent(self) -> float:
        """Position of the cursor in the sequence, 0 when empty."""
        n = len(self._store)
        if self._cursor is None or n == 0:
            return 0.0
        return (self._cursor + 1) / n * 100.0

    # --- mode / data lifecycle ---
    def set_mode(self, mode: PlaybackMode) -> None:
        """
        Switch source mode.

        Any pending tick is discarded, the state returns to STOPPED and the
        cursor is re-derived from the store.
        """
        with self._lock:
            self._invalidate_tick()
            self._mode = mode
            self._pause_reason = None
            self._cursor = self._initial_cursor()
            self._set_state(PlaybackState.STOPPED)

    def sequence_replaced(self) -> None:
        """Re-initialise after the store was loaded wholesale."""
        with self._lock:
            self._invalidate_tick()
            self._pause_reason = None
            self._cursor = self._initial_cursor()
            self._set_state(PlaybackState.STOPPED)

    # --- user operations ---
    def play(self) -> None:
        """
        Start or resume replay.

        Raises
        ------
        PlaybackModeError
            In live mode.
        NoDataError
            If the store is empty.
        """
        with self._lock:
            self._require_replay("play")
            if self._store.is_empty:
                raise NoDataError("Cannot play an empty sequence")
            if self._state is PlaybackState.PLAYING:
                return
            if self._cursor is None:
                self._cursor = 0
            self._pause_reason = None
            self._set_state(PlaybackState.PLAYING)
            self._schedule_tick()

    def pause(self) -> None:
        """Freeze the cursor. No-op unless playing."""
        with self._lock:
            self._require_replay("pause")
            if self._state is not PlaybackState.PLAYING:
                return
            self._invalidate_tick()
            self._pause_reason = PauseReason.USER
            self._set_state(PlaybackState.PAUSED)

    def reset(self) -> None:
        """Return to STOPPED with the cursor at 0 (None if the store is empty)."""
        with self._lock:
            self._invalidate_tick()
            self._pause_reason = None
            self._cursor = None if self._store.is_empty else 0
            self._set_state(PlaybackState.STOPPED)

    def set_speed(self, factor: float) -> None:
        """
        Change the replay speed; applies from the next scheduled tick.

        Raises
        ------
        PlaybackModeError
            In live mode.
        InvalidSpeedError
            If `factor` is not an allowed speed. The previous speed is kept.
        """
        with self._lock:
            self._require_replay("set_speed")
            try:
                value = float(factor)
            except (TypeError, ValueError):
                raise InvalidSpeedError(factor, self._allowed) from None
            if value not in self._allowed:
                raise InvalidSpeedError(factor, self._allowed)
            self._speed = value

    def seek(self, index: int) -> None:
        """
        Move the cursor to `index` without changing the state.

        Seeking back from an end-of-sequence pause turns it into an ordinary
        user pause.

        Raises
        ------
        PlaybackModeError
            In live mode.
        IndexOutOfRangeError
            If `index` is outside [0, length).
        """
        with self._lock:
            self._require_replay("seek")
            n = len(self._store)
            if not 0 <= index < n:
                raise IndexOutOfRangeError(f"Seek index {index} outside [0, {n})")
            self._cursor = index
            if (
                self._state is PlaybackState.PAUSED
                and self._pause_reason is PauseReason.END_OF_SEQUENCE
                and index < n - 1
            ):
                self._pause_reason = PauseReason.USER

    def on_append(self) -> None:
        """
        Pin the cursor to the newest sample after a successful live append.

        Raises
        ------
        PlaybackModeError
            In replay mode.
        """
        with self._lock:
            if self._mode is not PlaybackMode.LIVE:
                raise PlaybackModeError("Samples can only be appended in live mode")
            self._cursor = self._store.last_index
            if self._state is not PlaybackState.PLAYING:
                self._set_state(PlaybackState.PLAYING)
            if self._on_advance is not None and self._cursor is not None:
                self._on_advance(self._cursor)

    def shutdown(self) -> None:
        """Cancel the pending tick; later ticks are discarded."""
        with self._lock:
            self._closed = True
            self._invalidate_tick()

    # --- internals ---
    def _initial_cursor(self) -> Optional[int]:
        if self._store.is_empty:
            return None
        if self._mode is PlaybackMode.LIVE:
            return self._store.last_index
        return 0

    def _require_replay(self, op: str) -> None:
        if self._mode is not PlaybackMode.REPLAY:
            raise PlaybackModeError(f"{op}() is not available in live mode")

    def _set_state(self, state: PlaybackState) -> None:
        if state is self._state:
            return
        logger.debug("Playback %s -> %s", self._state.value, state.value)
        self._state = state
        if self._on_state_change is not None:
            self._on_state_change(state)

    def _invalidate_tick(self) -> None:
        self._generation += 1
        if self._pending is not None:
            self._pending.cancel()
            self._pending = None

    def _schedule_tick(self) -> None:
        if self._closed:
            return
        if self._pending is not None:
            self._pending.cancel()
        generation = self._generation
        self._pending = self._scheduler.call_later(
            self.tick_interval_s, lambda: self._on_tick(generation)
        )

    def _on_tick(self, generation: int) -> None:
        with self._lock:
            if generation != self._generation or self._state is not PlaybackState.PLAYING:
                logger.debug("Discarding stale tick (generation %s)", generation)
                return
            self._pending = None

            last = self._store.last_index
            if last is None or self._cursor is None or self._cursor >= last:
                self._generation += 1
                self._pause_reason = PauseReason.END_OF_SEQUENCE
                self._set_state(PlaybackState.PAUSED)
                logger.info("End of sequence reached at index %s", self._cursor)
                return

            self._cursor += 1
            self._schedule_tick()
            if self._on_advance is not None:
                self._on_advance(self._cursor)
