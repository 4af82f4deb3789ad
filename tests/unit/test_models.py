"""
Unit tests for telemetry_app.domain.models.

Covers:
- Sample.timestamp is a UTC datetime derived from integer milliseconds
- Sample.value_of selects numeric fields and rejects others
- KpiSnapshot.no_data() is the explicit empty result
"""

from __future__ import annotations

from datetime import datetime, timezone

import pytest

from telemetry_app.domain.models import NUMERIC_FIELDS, KpiSnapshot


def test_sample_timestamp_is_utc(make_sample) -> None:
    s = make_sample(0)
    assert s.timestamp == datetime(2026, 1, 1, 10, 0, 0, tzinfo=timezone.utc)


def test_value_of_numeric_fields(make_sample) -> None:
    s = make_sample(3, kw=12.5, count_total=42)
    assert s.value_of("kw") == 12.5
    assert s.value_of("count_total") == 42.0
    for name in NUMERIC_FIELDS:
        assert isinstance(s.value_of(name), float)


@pytest.mark.parametrize("name", ["machine_id", "state", "alarm_code", "nope"])
def test_value_of_rejects_non_numeric(make_sample, name: str) -> None:
    with pytest.raises(KeyError):
        make_sample(0).value_of(name)


def test_kpi_no_data_has_every_kpi_none() -> None:
    k = KpiSnapshot.no_data()
    assert k.sample_count == 0
    assert k.has_data is False
    assert k.avg_power is None
    assert k.energy_delta is None
    assert k.throughput is None
    assert k.phase_imbalance is None
