"""
Unit tests for telemetry_app.ui.adapters.snapshot_view (pure formatting).
"""

from __future__ import annotations

import pytest

from telemetry_app.core.analytics.window_aggregator import compute_kpis
from telemetry_app.core.state.sequence_store import SequenceStore
from telemetry_app.core.visualization.preparer import prepare_visualization
from telemetry_app.domain.models import (
    EngineSnapshot,
    HealthStatus,
    KpiSnapshot,
    PauseReason,
    PlaybackMode,
    PlaybackState,
)
from telemetry_app.ui.adapters.snapshot_view import (
    NO_VALUE,
    detail_rows,
    domain_text,
    fmt,
    header_text,
    kpi_cards,
    playback_text,
    progress_text,
    series_xy,
    speed_label,
    staleness_text,
    status_level,
    temperature_card_level,
)


def _snap(sample=None, **kw) -> EngineSnapshot:
    base = dict(
        sample=sample,
        kpis=KpiSnapshot.no_data(),
        staleness_alert=False,
        mode=PlaybackMode.REPLAY,
        state=PlaybackState.STOPPED,
        cursor=None,
        length=0,
        speed=1.0,
        progress_percent=0.0,
    )
    base.update(kw)
    return EngineSnapshot(**base)


def test_fmt() -> None:
    assert fmt(None) == NO_VALUE
    assert fmt(3.14159, 2) == "3.14"
    assert fmt(11, 1, "kW") == "11.0 kW"


def test_kpi_cards_placeholders_when_empty() -> None:
    cards = kpi_cards(KpiSnapshot.no_data())
    assert all(text == NO_VALUE for _, text, _ in cards)
    assert all(level == "MUTED" for _, _, level in cards)


def test_kpi_cards_values(make_sample) -> None:
    samples = [make_sample(i, temp_c=65.0 if i == 1 else 40.0) for i in range(3)]
    cards = {title: (text, level) for title, text, level in kpi_cards(compute_kpis(samples, samples[-1]))}
    assert cards["Uptime"] == ("100.0 %", "OK")
    assert cards["Avg Power"][0] == "10.00 kW"
    assert cards["Max Temp"] == ("65.0 °C", "CRITICAL")
    assert cards["Units"][0] == "2"


def test_phase_imbalance_card_warns(make_sample) -> None:
    s = make_sample(0, ir=10, iy=12, ib=8)
    cards = {title: level for title, _, level in kpi_cards(compute_kpis([s], s))}
    assert cards["Phase Imbalance"] == "WARNING"


@pytest.mark.parametrize(
    "status, level",
    [(HealthStatus.OK, "OK"), (HealthStatus.WARNING, "WARNING"), (HealthStatus.FAULT, "CRITICAL"), (None, "MUTED")],
)
def test_status_level(status, level) -> None:
    assert status_level(status) == level


def test_temperature_card_level() -> None:
    assert temperature_card_level(None) == "MUTED"
    assert temperature_card_level(61.0) == "CRITICAL"
    assert temperature_card_level(50.0) == "WARNING"
    assert temperature_card_level(30.0) == "OK"


def test_header_and_details(make_sample) -> None:
    s = make_sample(0)
    assert header_text(_snap()) == "No data"
    assert header_text(_snap(s)).startswith("M-01  |  RUN  |  AUTO  |  2026-01-01 10:00:00")
    rows = dict(detail_rows(_snap(s)))
    assert rows["Alarm"] == NO_VALUE
    assert rows["Power"] == "10.00 kW"
    assert detail_rows(_snap()) == []


def test_staleness_text() -> None:
    assert staleness_text(_snap()) == ("Replay", "MUTED")
    assert staleness_text(_snap(mode=PlaybackMode.LIVE)) == ("Live", "OK")
    assert staleness_text(_snap(mode=PlaybackMode.LIVE, staleness_alert=True)) == ("No fresh data", "CRITICAL")


def test_playback_and_progress_text(make_sample) -> None:
    assert playback_text(_snap(mode=PlaybackMode.LIVE)) == "LIVE"
    assert playback_text(_snap(state=PlaybackState.PLAYING)) == "PLAYING"
    paused = _snap(state=PlaybackState.PAUSED)
    assert playback_text(paused, PauseReason.END_OF_SEQUENCE) == "END"
    assert playback_text(paused, PauseReason.USER) == "PAUSED"

    assert progress_text(_snap()) == "0 / 0 (0.0%)"
    assert progress_text(_snap(make_sample(0), cursor=4, length=10, progress_percent=50.0)) == "5 / 10 (50.0%)"


def test_speed_label() -> None:
    assert speed_label(0.5) == "0.5x"
    assert speed_label(10.0) == "10x"


def test_series_and_domain_text(make_samples) -> None:
    store = SequenceStore()
    store.load(make_samples(4))
    data = prepare_visualization(store, 0, 4, "count_total", None)
    xs, ys = series_xy(data)
    assert xs == [0.0, 1.0, 2.0, 3.0]
    assert ys == [0.0, 1.0, 2.0, 3.0]
    assert domain_text(data, 0) == "min 0  max 3  mean 2  current 3"

    empty = prepare_visualization(store, 2, 2, "kw", None)
    assert domain_text(empty) == NO_VALUE
