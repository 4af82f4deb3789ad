"""
Unit tests for telemetry_app.transport.jsonl_reader.

Malformed lines must be skipped individually without aborting the read.
"""

from __future__ import annotations

import logging

import pytest

from telemetry_app.transport.jsonl_reader import iter_samples, read_samples
from telemetry_app.transport.ndjson import encode_sample


def test_read_samples_skips_bad_lines(tmp_path, make_sample, caplog) -> None:
    path = tmp_path / "stream.jsonl"
    lines = [
        encode_sample(make_sample(0)),
        "",
        "{broken",
        encode_sample(make_sample(1)),
        '{"ts": 1}',
        encode_sample(make_sample(2)),
    ]
    path.write_text("\n".join(lines) + "\n", encoding="utf-8")

    with caplog.at_level(logging.WARNING, logger="telemetry_app"):
        samples = read_samples(path)

    assert [s.count_total for s in samples] == [0, 1, 2]
    assert "Skipping line 3" in caplog.text
    assert "Skipping line 5" in caplog.text


def test_iter_samples_reports_line_numbers(make_sample) -> None:
    lines = ["", encode_sample(make_sample(0)), "x", encode_sample(make_sample(1))]
    assert [n for n, _ in iter_samples(lines)] == [2, 4]


def test_missing_file(tmp_path) -> None:
    with pytest.raises(FileNotFoundError):
        read_samples(tmp_path / "nope.jsonl")
