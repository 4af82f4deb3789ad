from __future__ import annotations

from typing import List, Optional, Tuple

from telemetry_app.core.analytics.window_aggregator import temperature_level
from telemetry_app.core.visualization.preparer import VisualizationData
from telemetry_app.domain.models import (
    EngineSnapshot,
    HealthStatus,
    KpiSnapshot,
    PauseReason,
    PlaybackMode,
    PlaybackState,
)

NO_VALUE = "--"

# (title, value text, level) where level is 'OK' | 'WARNING' | 'CRITICAL' | 'MUTED'
KpiCard = Tuple[str, str, str]
DetailRow = Tuple[str, str]


def fmt(value: Optional[float], decimals: int = 1, unit: str = "") -> str:
    """Format an optional number for display; None becomes a placeholder."""
    if value is None:
        return NO_VALUE
    text = f"{value:.{decimals}f}"
    return f"{text} {unit}" if unit else text


def status_level(status: Optional[HealthStatus]) -> str:
    if status is None:
        return "MUTED"
    if status is HealthStatus.FAULT:
        return "CRITICAL"
    if status is HealthStatus.WARNING:
        return "WARNING"
    return "OK"


def temperature_card_level(temp_c: Optional[float], high_c: float = 60.0, normal_c: float = 45.0) -> str:
    if temp_c is None:
        return "MUTED"
    return {"HIGH": "CRITICAL", "NORMAL": "WARNING"}.get(temperature_level(temp_c, high_c, normal_c), "OK")


def kpi_cards(kpis: KpiSnapshot, temp_high_c: float = 60.0, temp_normal_c: float = 45.0) -> List[KpiCard]:
    """
    Build the KPI card contents for one snapshot.

    Every card shows the placeholder when the window is empty.
    """
    neutral = "OK" if kpis.has_data else "MUTED"
    imbalance_level = neutral
    if kpis.phase_imbalance is not None and kpis.phase_imbalance > 10.0:
        imbalance_level = "WARNING"

    return [
        ("Uptime", fmt(kpis.uptime_percent, 1, "%"), neutral),
        ("Idle", fmt(kpis.idle_percent, 1, "%"), neutral),
        ("Off", fmt(kpis.off_percent, 1, "%"), neutral),
        ("Avg Power", fmt(kpis.avg_power, 2, "kW"), neutral),
        ("Energy", fmt(kpis.energy_delta, 2, "kWh"), neutral),
        ("Avg PF", fmt(kpis.avg_pf, 3), neutral),
        ("Throughput", fmt(kpis.throughput, 1, "u/min"), neutral),
        ("Units", fmt(kpis.count_delta, 0), neutral),
        ("Phase Imbalance", fmt(kpis.phase_imbalance, 1, "%"), imbalance_level),
        ("Max Temp", fmt(kpis.max_temp, 1, "°C"), temperature_card_level(kpis.max_temp, temp_high_c, temp_normal_c)),
        ("Min Temp", fmt(kpis.min_temp, 1, "°C"), neutral),
    ]


def header_text(snapshot: EngineSnapshot) -> str:
    s = snapshot.sample
    if s is None:
        return "No data"
    return f"{s.machine_id}  |  {s.state.value}  |  {s.mode}  |  {s.timestamp.strftime('%Y-%m-%d %H:%M:%S')} UTC"


def staleness_text(snapshot: EngineSnapshot) -> Tuple[str, str]:
    """Staleness badge text and level."""
    if snapshot.mode is PlaybackMode.REPLAY:
        return "Replay", "MUTED"
    if snapshot.staleness_alert:
        return "No fresh data", "CRITICAL"
    return "Live", "OK"


def playback_text(snapshot: EngineSnapshot, pause_reason: Optional[PauseReason] = None) -> str:
    if snapshot.mode is PlaybackMode.LIVE:
        return "LIVE"
    if snapshot.state is PlaybackState.PAUSED and pause_reason is PauseReason.END_OF_SEQUENCE:
        return "END"
    return snapshot.state.value


def progress_text(snapshot: EngineSnapshot) -> str:
    if snapshot.cursor is None:
        return f"0 / 0 ({fmt(0.0)}%)"
    return f"{snapshot.cursor + 1} / {snapshot.length} ({fmt(snapshot.progress_percent)}%)"


def speed_label(factor: float) -> str:
    return f"{factor:g}x"


def detail_rows(snapshot: EngineSnapshot) -> List[DetailRow]:
    """Field/value rows describing the sample at the cursor."""
    s = snapshot.sample
    if s is None:
        return []
    return [
        ("Machine", s.machine_id),
        ("State", s.state.value),
        ("Mode", s.mode),
        ("Status", s.status.value),
        ("Voltage R/Y/B", f"{s.vr:.1f} / {s.vy:.1f} / {s.vb:.1f} V"),
        ("Current R/Y/B", f"{s.ir:.2f} / {s.iy:.2f} / {s.ib:.2f} A"),
        ("Power", f"{s.kw:.2f} kW"),
        ("Energy total", f"{s.kwh_total:.2f} kWh"),
        ("Power factor", f"{s.pf:.3f}"),
        ("Count total", str(s.count_total)),
        ("Temperature", f"{s.temp_c:.1f} °C"),
        ("Alarm", s.alarm_code or NO_VALUE),
    ]


def series_xy(data: VisualizationData) -> Tuple[List[float], List[float]]:
    """x = original sample index, y = value; ready for a pyqtgraph curve."""
    return [float(p.index) for p in data.points], [p.value for p in data.points]


def domain_text(data: VisualizationData, decimals: int = 2) -> str:
    d = data.domain
    if d is None:
        return NO_VALUE
    return (
        f"min {d.min:.{decimals}f}  max {d.max:.{decimals}f}  "
        f"mean {d.mean:.{decimals}f}  current {d.current:.{decimals}f}"
    )
