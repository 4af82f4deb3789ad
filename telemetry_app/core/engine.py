from __future__ import annotations

import threading
from typing import Any, Callable, Iterable, List, Optional

from telemetry_app.core.analytics.window_aggregator import DEFAULT_WINDOW_SIZE, WindowAggregator
from telemetry_app.core.playback.playback_controller import DEFAULT_SPEEDS, PlaybackController
from telemetry_app.core.scheduling import Scheduler, wall_clock_ms
from telemetry_app.core.staleness.staleness_detector import (
    DEFAULT_POLL_MS,
    DEFAULT_THRESHOLD_MS,
    StalenessDetector,
)
from telemetry_app.core.state.sequence_store import SequenceStore
from telemetry_app.core.visualization.preparer import (
    DEFAULT_OVERVIEW_POINTS,
    VisualizationData,
    prepare_visualization,
)
from telemetry_app.domain.errors import PlaybackModeError
from telemetry_app.domain.events import StalenessEvent
from telemetry_app.domain.models import (
    EngineSnapshot,
    KpiSnapshot,
    PauseReason,
    PlaybackMode,
    Sample,
)
from telemetry_app.export.table_export import export_samples
from telemetry_app.utils.logger import get_logger

logger = get_logger(__name__)

_OVERVIEW = object()


class TelemetryEngine:
    """
    Thread-safe facade over the replay and analytics components.

    'TelemetryEngine' composes and coordinates:
    - the sequence store (sample history)
    - the playback controller (cursor, state machine, replay timer)
    - the window aggregator (KPI snapshot of the trailing window)
    - the staleness detector (advisory "no fresh data" alert)
    - the visualization preparer (decimated chart series)

    Concurrency Model
    -----------------
    All reads/writes are guarded by a single re-entrant lock shared with the
    playback controller and staleness detector, so scheduler callbacks and
    calls from the UI or ingest thread see consistent state. The store is only
    mutated by :meth:`load_replay` / :meth:`append_live`.

    Design Notes
    ------------
    - The KPI snapshot is recomputed whenever the cursor changes and replaced
      wholesale; :meth:`current_snapshot` never computes on read.
    - No I/O happens inside the engine; samples arrive pre-decoded.
    - :meth:`shutdown` cancels the replay timer and the staleness poller as
      a unit so no callback fires into a torn-down session.

    Parameters
    ----------
    scheduler
        Runs replay ticks and staleness polls.
    window_size
        Trailing KPI window length in samples.
    allowed_speeds
        Discrete replay speed factors.
    default_speed
        Initial replay speed.
    staleness_threshold_ms, staleness_poll_ms
        Staleness detector settings.
    overview_max_points
        Default point budget for :meth:`prepare_visualization`.
    clock
        Wall clock in milliseconds (injectable for tests).
    on_staleness
        Receives staleness transitions (e.g. EventBus.publish_staleness).
    mode
        Initial source mode.
    """

    def __init__(
        self,
        scheduler: Scheduler,
        window_size: int = DEFAULT_WINDOW_SIZE,
        allowed_speeds: Iterable[float] = DEFAULT_SPEEDS,
        default_speed: float = 1.0,
        staleness_threshold_ms: float = DEFAULT_THRESHOLD_MS,
        staleness_poll_ms: float = DEFAULT_POLL_MS,
        overview_max_points: Optional[int] = DEFAULT_OVERVIEW_POINTS,
        clock: Callable[[], float] = wall_clock_ms,
        on_staleness: Optional[Callable[[StalenessEvent], None]] = None,
        mode: PlaybackMode = PlaybackMode.LIVE,
    ):
        self._lock = threading.RLock()
        self.store = SequenceStore()
        self.aggregator = WindowAggregator(window_size=window_size)
        self.overview_max_points = overview_max_points
        self.staleness = StalenessDetector(
            scheduler=scheduler,
            threshold_ms=staleness_threshold_ms,
            poll_interval_ms=staleness_poll_ms,
            clock=clock,
            on_transition=on_staleness,
            lock=self._lock,
        )
        self.staleness.armed = mode is PlaybackMode.LIVE
        self.playback = PlaybackController(
            store=self.store,
            scheduler=scheduler,
            allowed_speeds=allowed_speeds,
            speed=default_speed,
            mode=mode,
            on_advance=self._on_advance,
            lock=self._lock,
        )
        self._kpis = KpiSnapshot.no_data()

    # --- lifecycle ---
    def start(self) -> None:
        """Start the staleness poller."""
        with self._lock:
            self.staleness.start()

    def shutdown(self) -> None:
        """Cancel the replay timer and the staleness poller."""
        with self._lock:
            self.playback.shutdown()
            self.staleness.stop()
            logger.info("Engine shut down")

    # --- sources ---
    def load_replay(self, samples: Iterable[Sample]) -> None:
        """
        Load a finite sequence and switch to replay mode.

        Raises
        ------
        EmptySequenceError
            If `samples` is empty. The previous session is left untouched.
        OutOfOrderError, MachineMismatchError
            If the sequence is not ordered or mixes machines.
        """
        with self._lock:
            self.store.load(samples)
            if self.playback.mode is not PlaybackMode.REPLAY:
                self.playback.set_mode(PlaybackMode.REPLAY)
            else:
                self.playback.sequence_replaced()
            self.staleness.reset()
            self.staleness.armed = False
            self._recompute()
            logger.info(
                "Loaded replay of %d samples for machine %s", len(self.store), self.store.machine_id
            )

    def start_live(self) -> None:
        """Clear the store and switch to live mode."""
        with self._lock:
            self.store.clear()
            self.playback.set_mode(PlaybackMode.LIVE)
            self.staleness.reset()
            self.staleness.armed = True
            self._recompute()
            logger.info("Live mode started")

    def append_live(self, sample: Sample) -> None:
        """
        Append one live sample; the cursor follows it synchronously.

        Raises
        ------
        PlaybackModeError
            In replay mode (the replay sequence is immutable).
        OutOfOrderError, MachineMismatchError
            If the sample violates ordering or machine ownership; it is not
            stored and the session continues.
        """
        with self._lock:
            if self.playback.mode is not PlaybackMode.LIVE:
                raise PlaybackModeError("append_live() is not available in replay mode")
            self.store.append(sample)
            self.playback.on_append()

    # --- playback ---
    def play(self) -> None:
        with self._lock:
            self.playback.play()

    def pause(self) -> None:
        with self._lock:
            self.playback.pause()

    def reset(self) -> None:
        with self._lock:
            self.playback.reset()
            self._recompute()

    def set_speed(self, factor: float) -> None:
        with self._lock:
            self.playback.set_speed(factor)

    def seek(self, index: int) -> None:
        with self._lock:
            self.playback.seek(index)
            self._recompute()

    # --- queries ---
    @property
    def kpis(self) -> KpiSnapshot:
        with self._lock:
            return self._kpis

    @property
    def pause_reason(self) -> Optional[PauseReason]:
        with self._lock:
            return self.playback.pause_reason

    def current_snapshot(self) -> EngineSnapshot:
        """
        Return the sample at the cursor, its KPIs and the staleness alert.

        Returns
        -------
        EngineSnapshot
            Consistent snapshot; `sample` is None when there is no data.
        """
        with self._lock:
            cursor = self.playback.cursor
            sample = self.store.at(cursor) if cursor is not None else None
            return EngineSnapshot(
                sample=sample,
                kpis=self._kpis,
                staleness_alert=self.staleness.alert,
                mode=self.playback.mode,
                state=self.playback.state,
                cursor=cursor,
                length=len(self.store),
                speed=self.playback.speed,
                progress_percent=self.playback.progress_percent,
            )

    def current_window(self) -> List[Sample]:
        """Samples of the KPI window ending at the cursor."""
        with self._lock:
            return self.aggregator.window(self.store, self.playback.cursor)

    def history(self) -> List[Sample]:
        """All samples up to and including the cursor."""
        with self._lock:
            cursor = self.playback.cursor
            if cursor is None:
                return []
            return self.store.slice(0, cursor + 1)

    def prepare_visualization(
        self,
        start: int,
        end: int,
        field: str,
        max_points: Any = _OVERVIEW,
    ) -> VisualizationData:
        """
        Decimated chart series for `field` over [start, end).

        `max_points` defaults to the configured overview budget; pass None
        for an unbounded series (sparklines).
        """
        with self._lock:
            budget = self.overview_max_points if max_points is _OVERVIEW else max_points
            return prepare_visualization(self.store, start, end, field, budget)

    def export_current_window(self, delimiter: str = ",") -> str:
        """Delimited text table of the current KPI window."""
        return export_samples(self.current_window(), delimiter=delimiter)

    # --- internals ---
    def _on_advance(self, cursor: int) -> None:
        self._recompute()
        self.staleness.mark_arrival(self.store.machine_id)

    def _recompute(self) -> None:
        self._kpis = self.aggregator.aggregate(self.store, self.playback.cursor)
