"""
Domain models and enums.

This module defines the core domain-level types used across the system:
- Machine operating states and health statuses
- The telemetry `Sample` (one reading per second from a single machine)
- Playback states, modes and pause reasons
- `KpiSnapshot`, the derived analytics computed over a trailing window
- `EngineSnapshot`, what the presentation layer reads on every refresh

These are designed as immutable (frozen) dataclasses so they can be shared
safely between the engine, runtime threads and the UI.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Optional, Tuple


class MachineState(str, Enum):
    """
    Discrete operating mode of the machine.

    Members
    -------
    RUN : str
        Machine is producing.
    IDLE : str
        Machine is powered and ready but not producing.
    STOP : str
        Machine was stopped (distinct from OFF; counted in no uptime bucket).
    OFF : str
        Machine is powered off.
    """

    RUN = "RUN"
    IDLE = "IDLE"
    STOP = "STOP"
    OFF = "OFF"


class HealthStatus(str, Enum):
    """
    Health classification reported with each sample.

    Members
    -------
    OK : str
        Normal operation.
    WARNING : str
        Abnormal condition requiring attention.
    FAULT : str
        Machine reports a fault.
    """

    OK = "OK"
    WARNING = "WARNING"
    FAULT = "FAULT"


class PlaybackState(str, Enum):
    """State of the playback controller."""

    STOPPED = "STOPPED"
    PLAYING = "PLAYING"
    PAUSED = "PAUSED"


class PlaybackMode(str, Enum):
    """
    Source mode of the engine.

    Members
    -------
    REPLAY : str
        A finite, immutable sequence is replayed by a timer.
    LIVE : str
        The sequence grows as samples arrive; the cursor follows the newest one.
    """

    REPLAY = "REPLAY"
    LIVE = "LIVE"


class PauseReason(str, Enum):
    """Why playback is currently paused."""

    USER = "USER"
    END_OF_SEQUENCE = "END_OF_SEQUENCE"


# Numeric sample fields that can be selected for charts.
NUMERIC_FIELDS: Tuple[str, ...] = (
    "vr",
    "vy",
    "vb",
    "ir",
    "iy",
    "ib",
    "kw",
    "kwh_total",
    "pf",
    "count_total",
    "temp_c",
)


@dataclass(frozen=True)
class Sample:
    """
    One telemetry reading from a single machine.

    Parameters
    ----------
    ts
        Timestamp in milliseconds since the Unix epoch. Non-decreasing within
        a sequence.
    machine_id
        Machine identifier, constant within one session.
    state
        Discrete operating mode.
    mode
        Auxiliary operating label (opaque to the engine).
    status
        Health classification.
    vr, vy, vb
        Per-phase voltages (V).
    ir, iy, ib
        Per-phase currents (A).
    kw
        Instantaneous active power.
    kwh_total
        Cumulative energy register (non-decreasing except at a meter reset).
    pf
        Power factor in [0, 1].
    count_total
        Cumulative unit counter (non-decreasing except at a counter reset).
    temp_c
        Temperature in degrees Celsius.
    alarm_code
        Present only while an alarm is active.
    """

    ts: int
    machine_id: str
    state: MachineState
    mode: str
    status: HealthStatus
    vr: float
    vy: float
    vb: float
    ir: float
    iy: float
    ib: float
    kw: float
    kwh_total: float
    pf: float
    count_total: int
    temp_c: float
    alarm_code: Optional[str] = None

    @property
    def timestamp(self) -> datetime:
        """Sample time as a timezone-aware UTC datetime."""
        return datetime.fromtimestamp(self.ts / 1000.0, tz=timezone.utc)

    def value_of(self, field_name: str) -> float:
        """
        Return the value of a numeric field by name.

        Raises
        ------
        KeyError
            If `field_name` is not one of :data:`NUMERIC_FIELDS`.
        """
        if field_name not in NUMERIC_FIELDS:
            raise KeyError(field_name)
        return float(getattr(self, field_name))


@dataclass(frozen=True)
class KpiSnapshot:
    """
    Derived KPIs computed over one trailing window.

    A snapshot has no lifecycle of its own: the engine replaces it wholesale
    whenever the cursor moves. When the window is empty every KPI is None
    (see :meth:`no_data`); consumers must check :attr:`has_data`.

    Parameters
    ----------
    sample_count
        Number of samples in the window that produced this snapshot.
    uptime_percent, idle_percent, off_percent
        Share of window samples in RUN / IDLE / OFF, as percentages.
    avg_power
        Mean `kw` over the window.
    energy_delta
        max(kwh_total) - min(kwh_total) over the window.
    avg_pf
        Mean power factor over RUN/IDLE samples (0 when there are none).
    throughput
        Units per minute over the window.
    count_delta
        Units produced over the window, ignoring counter resets.
    phase_imbalance
        Current spread of the cursor sample, in percent of mean current.
    max_temp, min_temp
        Temperature extrema over the window.
    """

    sample_count: int
    uptime_percent: Optional[float] = None
    idle_percent: Optional[float] = None
    off_percent: Optional[float] = None
    avg_power: Optional[float] = None
    energy_delta: Optional[float] = None
    avg_pf: Optional[float] = None
    throughput: Optional[float] = None
    count_delta: Optional[int] = None
    phase_imbalance: Optional[float] = None
    max_temp: Optional[float] = None
    min_temp: Optional[float] = None

    @classmethod
    def no_data(cls) -> "KpiSnapshot":
        """Explicit result for an empty window."""
        return cls(sample_count=0)

    @property
    def has_data(self) -> bool:
        return self.sample_count > 0


@dataclass(frozen=True)
class EngineSnapshot:
    """
    Consistent view of the engine for one UI refresh.

    Parameters
    ----------
    sample
        Sample at the cursor, or None when there is no data.
    kpis
        KPIs of the window ending at the cursor.
    staleness_alert
        True while no sample has arrived within the staleness threshold.
    mode, state
        Playback mode and state.
    cursor
        Cursor index, or None when the store is empty.
    length
        Number of samples in the store.
    speed
        Current replay speed factor.
    progress_percent
        Position of the cursor within the sequence (0 when empty).
    """

    sample: Optional[Sample]
    kpis: KpiSnapshot
    staleness_alert: bool
    mode: PlaybackMode
    state: PlaybackState
    cursor: Optional[int]
    length: int
    speed: float
    progress_percent: float = 0.0
