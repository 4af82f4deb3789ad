"""
Sliding-window KPI aggregation.

This module turns the trailing window of samples ending at the cursor into a
:class:`~telemetry_app.domain.models.KpiSnapshot`. The computations are pure
functions over already-resident samples; no I/O and no state.

Window definition
-----------------
Up to `window_size` samples ending at the cursor inclusive. Near the start of
the sequence the window is simply shorter: no padding and no look-ahead.

Counter resets
--------------
`kwh_total` and `count_total` are cumulative registers. A decrease inside the
window is a reset, never a negative contribution:

- ``energy_delta`` uses max - min over the window, which absorbs a single
  reset approximately.
- ``count_delta`` sums only the non-negative step-to-step increments.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Sequence

from telemetry_app.core.state.sequence_store import SequenceStore
from telemetry_app.domain.models import KpiSnapshot, MachineState, Sample

DEFAULT_WINDOW_SIZE = 60
SAMPLES_PER_MINUTE = 60.0


def _mean(values: Sequence[float]) -> float:
    return sum(values) / len(values)


def _percent_in(window: Sequence[Sample], state: MachineState) -> float:
    hits = sum(1 for s in window if s.state == state)
    return hits / len(window) * 100.0


def phase_imbalance(sample: Sample) -> float:
    """
    Relative spread of the three phase currents of one sample.

    Returns
    -------
    float
        (max - min) / mean * 100, or 0.0 when the mean current is 0.
    """
    currents = (sample.ir, sample.iy, sample.ib)
    mean = sum(currents) / 3.0
    if mean == 0:
        return 0.0
    return (max(currents) - min(currents)) / mean * 100.0


def counter_delta(values: Sequence[int]) -> int:
    """
    Increase of a cumulative counter across `values`, skipping resets.

    A step where the counter goes down is treated as a discontinuity and
    contributes nothing.
    """
    total = 0
    for prev, cur in zip(values, values[1:]):
        step = cur - prev
        if step > 0:
            total += step
    return total


def compute_kpis(window: Sequence[Sample], current: Sample) -> KpiSnapshot:
    """
    Compute the KPI set for a non-empty window.

    Parameters
    ----------
    window
        Samples of the trailing window, oldest first.
    current
        Sample at the cursor (the last window element); phase imbalance is
        computed from it alone.

    Returns
    -------
    KpiSnapshot
        Snapshot with every field populated, or :meth:`KpiSnapshot.no_data`
        if `window` is empty.
    """
    n = len(window)
    if n == 0:
        return KpiSnapshot.no_data()

    kwh = [s.kwh_total for s in window]
    temps = [s.temp_c for s in window]
    pf_active = [s.pf for s in window if s.state in (MachineState.RUN, MachineState.IDLE)]

    units = counter_delta([s.count_total for s in window])
    if n >= 2:
        throughput = units / (n / SAMPLES_PER_MINUTE)
    else:
        throughput = 0.0

    return KpiSnapshot(
        sample_count=n,
        uptime_percent=_percent_in(window, MachineState.RUN),
        idle_percent=_percent_in(window, MachineState.IDLE),
        off_percent=_percent_in(window, MachineState.OFF),
        avg_power=_mean([s.kw for s in window]),
        energy_delta=max(kwh) - min(kwh),
        avg_pf=_mean(pf_active) if pf_active else 0.0,
        throughput=throughput,
        count_delta=units,
        phase_imbalance=phase_imbalance(current),
        max_temp=max(temps),
        min_temp=min(temps),
    )


def temperature_level(temp_c: float, high_c: float = 60.0, normal_c: float = 45.0) -> str:
    """
    Classify a temperature for display.

    Returns
    -------
    str
        "HIGH" above `high_c`, "NORMAL" above `normal_c`, else "LOW".
    """
    if temp_c > high_c:
        return "HIGH"
    if temp_c > normal_c:
        return "NORMAL"
    return "LOW"


@dataclass(frozen=True)
class WindowAggregator:
    """
    Compute KPIs over the trailing window ending at a cursor.

    Parameters
    ----------
    window_size
        Maximum number of samples in the window (60 = one minute at 1 Hz).
    """

    window_size: int = DEFAULT_WINDOW_SIZE

    def __post_init__(self) -> None:
        if self.window_size < 1:
            raise ValueError(f"window_size must be >= 1, got {self.window_size}")

    def window_bounds(self, cursor: int) -> tuple:
        """Return [start, end) of the window ending at `cursor` inclusive."""
        start = max(0, cursor - self.window_size + 1)
        return start, cursor + 1

    def window(self, store: SequenceStore, cursor: Optional[int]) -> list:
        """Samples of the window ending at `cursor`; empty when cursor is None."""
        if cursor is None or store.is_empty:
            return []
        start, end = self.window_bounds(cursor)
        return store.slice(start, end)

    def aggregate(self, store: SequenceStore, cursor: Optional[int]) -> KpiSnapshot:
        """
        Compute the KPI snapshot for `cursor`.

        Returns
        -------
        KpiSnapshot
            `KpiSnapshot.no_data()` when the store is empty or the cursor is
            undefined.

        Raises
        ------
        IndexOutOfRangeError
            If `cursor` is outside the stored sequence.
        """
        window = self.window(store, cursor)
        if not window:
            return KpiSnapshot.no_data()
        return compute_kpis(window, window[-1])
