"""
Unit tests for telemetry_app.transport.ndjson.

Covers record decoding (field order, timestamp formats, enum labels, range
checks), the SSE prefix, concatenated objects and encoding.
"""

from __future__ import annotations

import json

import pytest

from telemetry_app.domain.errors import SampleDecodeError
from telemetry_app.domain.models import HealthStatus, MachineState
from telemetry_app.transport.jsonl_reader import iter_samples
from telemetry_app.transport.ndjson import (
    decode_sample,
    encode_sample,
    iter_json_objects,
    sample_from_dict,
    sample_to_dict,
)


def _record(**overrides):
    rec = {
        "ts": "2026-01-01T10:00:00Z",
        "machine_id": "M-01",
        "state": "RUN",
        "mode": "AUTO",
        "status": "OK",
        "vr": 231.2,
        "vy": 229.8,
        "vb": 230.4,
        "ir": 10.0,
        "iy": 12.0,
        "ib": 8.0,
        "kw": 11.5,
        "kwh_total": 1502.25,
        "pf": 0.92,
        "count_total": 4410,
        "temp_c": 47.3,
    }
    rec.update(overrides)
    return rec


def test_decode_iso_timestamp_and_enums() -> None:
    s = decode_sample(json.dumps(_record()))
    assert s.ts == 1_767_261_600_000
    assert s.state is MachineState.RUN
    assert s.status is HealthStatus.OK
    assert s.count_total == 4410
    assert s.alarm_code is None


def test_decode_integer_ms_timestamp_and_lowercase_labels() -> None:
    s = sample_from_dict(_record(ts=1_767_261_601_000, state="idle", status="warning"))
    assert s.ts == 1_767_261_601_000
    assert s.state is MachineState.IDLE
    assert s.status is HealthStatus.WARNING


def test_naive_iso_timestamp_is_utc() -> None:
    assert sample_from_dict(_record(ts="2026-01-01T10:00:00")).ts == 1_767_261_600_000


def test_field_order_does_not_matter() -> None:
    rec = _record()
    reversed_rec = dict(reversed(list(rec.items())))
    assert sample_from_dict(reversed_rec) == sample_from_dict(rec)


def test_alarm_code_kept_and_empty_is_none() -> None:
    assert sample_from_dict(_record(alarm_code="E42")).alarm_code == "E42"
    assert sample_from_dict(_record(alarm_code="")).alarm_code is None


def test_sse_prefix_is_stripped() -> None:
    s = decode_sample("data: " + json.dumps(_record()))
    assert s.machine_id == "M-01"


@pytest.mark.parametrize(
    "overrides",
    [
        {"pf": 1.2},
        {"pf": -0.1},
        {"kw": -1.0},
        {"state": "RUNNING"},
        {"status": "BROKEN"},
        {"count_total": 1.5},
        {"vr": "n/a"},
        {"ts": "yesterday"},
        {"ts": True},
    ],
)
def test_range_and_shape_checks(overrides) -> None:
    with pytest.raises(SampleDecodeError):
        sample_from_dict(_record(**overrides))


def test_missing_field() -> None:
    rec = _record()
    del rec["temp_c"]
    with pytest.raises(SampleDecodeError, match="temp_c"):
        sample_from_dict(rec)


@pytest.mark.parametrize("line", ["not json", "[1, 2]", "", "data: "])
def test_decode_rejects_non_objects(line: str) -> None:
    with pytest.raises(SampleDecodeError):
        decode_sample(line)


def test_decode_error_is_value_error() -> None:
    with pytest.raises(ValueError):
        decode_sample("{")


def test_iter_json_objects_concatenated() -> None:
    objs = list(iter_json_objects('{"a": 1}{"b": 2} {"c": 3}'))
    assert objs == [{"a": 1}, {"b": 2}, {"c": 3}]


def test_encode_writes_integer_ms(make_sample) -> None:
    s = make_sample(2, alarm_code="E1")
    payload = json.loads(encode_sample(s))
    assert payload["ts"] == s.ts
    assert payload["state"] == "RUN"
    assert payload == sample_to_dict(s)
    assert decode_sample(encode_sample(s)) == s


@pytest.mark.parametrize(
    "overrides",
    [
        {"kw": float("nan")},
        {"kwh_total": float("inf")},
        {"temp_c": float("-inf")},
        {"ir": float("nan")},
        {"ts": float("nan")},
        {"count_total": float("inf")},
    ],
)
def test_non_finite_numbers_are_rejected(overrides) -> None:
    line = json.dumps(_record(**overrides))
    assert "NaN" in line or "Infinity" in line
    with pytest.raises(SampleDecodeError):
        decode_sample(line)


def test_reader_skips_non_finite_lines() -> None:
    lines = [
        json.dumps(_record(ts=1000)),
        '{"ts": 2000, "machine_id": "M-01", "state": "RUN", "mode": "AUTO", "status": "OK",'
        ' "vr": 230, "vy": 230, "vb": 230, "ir": 10, "iy": 10, "ib": 10, "kw": NaN,'
        ' "kwh_total": Infinity, "pf": 0.9, "count_total": 1, "temp_c": NaN}',
        json.dumps(_record(ts=3000)),
    ]
    decoded = list(iter_samples(lines))
    assert [lineno for lineno, _ in decoded] == [1, 3]
    assert all(s.kw == 11.5 for _, s in decoded)


def test_large_integer_counter_is_exact() -> None:
    s = decode_sample(json.dumps(_record(count_total=2**53 + 1)))
    assert s.count_total == 2**53 + 1


def test_integral_float_counter_is_accepted() -> None:
    assert decode_sample(json.dumps(_record(count_total=4410.0))).count_total == 4410
