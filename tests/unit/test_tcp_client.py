"""
Unit tests for telemetry_app.transport.tcp_client.TCPNDJSONClient.

These tests validate transport behavior without performing real network I/O:
- connect() uses socket.socket with correct settings
- lines() yields complete lines from streamed chunks
- lines() raises ConnectionError when the server closes
- samples() decodes valid lines and skips malformed lines

Approach
--------
We use a lightweight fake socket and monkeypatch socket.socket to return it.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, List, Tuple

import pytest

from telemetry_app.transport.ndjson import encode_sample
from telemetry_app.transport.tcp_client import MAX_LINE_BYTES, TCPNDJSONClient


@dataclass
class FakeSocket:
    """
    Simple fake socket for deterministic recv behavior.

    Parameters
    ----------
    recv_chunks
        Byte chunks returned on successive recv() calls. When exhausted,
        recv() returns b"" to simulate server close.
    """

    recv_chunks: List[bytes]
    connected_to: Tuple[str, int] | None = None
    timeout_history: List[Any] = field(default_factory=list)
    closed: bool = False

    def settimeout(self, value) -> None:
        self.timeout_history.append(value)

    def connect(self, addr: Tuple[str, int]) -> None:
        self.connected_to = addr

    def recv(self, n: int) -> bytes:
        if self.recv_chunks:
            return self.recv_chunks.pop(0)
        return b""

    def close(self) -> None:
        self.closed = True


def _connected(monkeypatch, chunks: List[bytes]) -> Tuple[TCPNDJSONClient, FakeSocket]:
    fake = FakeSocket(recv_chunks=chunks)
    monkeypatch.setattr("socket.socket", lambda *a, **k: fake)
    client = TCPNDJSONClient(host="127.0.0.1", port=9999, timeout_s=1.5)
    client.connect()
    return client, fake


def test_connect_uses_timeout_then_streaming_mode(monkeypatch) -> None:
    client, fake = _connected(monkeypatch, [])
    assert fake.connected_to == ("127.0.0.1", 9999)
    assert fake.timeout_history == [1.5, None]


def test_lines_reassembles_split_chunks(monkeypatch) -> None:
    client, _ = _connected(monkeypatch, [b'{"a":', b' 1}\n{"b": 2}\n\n{"c"', b": 3}\n"])
    it = client.lines()
    assert next(it) == '{"a": 1}'
    assert next(it) == '{"b": 2}'
    assert next(it) == '{"c": 3}'
    with pytest.raises(ConnectionError):
        next(it)


def test_lines_requires_connect() -> None:
    with pytest.raises(RuntimeError):
        next(TCPNDJSONClient().lines())


def test_samples_skips_malformed_lines(monkeypatch, make_sample) -> None:
    payload = (
        encode_sample(make_sample(0)) + "\n" + "garbage\n" + encode_sample(make_sample(1)) + "\n"
    ).encode("utf-8")
    client, _ = _connected(monkeypatch, [payload])

    got = []
    with pytest.raises(ConnectionError):
        for s in client.samples():
            got.append(s)
    assert [s.count_total for s in got] == [0, 1]


def test_close_is_idempotent(monkeypatch) -> None:
    client, fake = _connected(monkeypatch, [])
    client.close()
    client.close()
    assert fake.closed


def test_lines_gives_up_on_unterminated_flood(monkeypatch) -> None:
    client, _ = _connected(monkeypatch, [b'{"ok": 1}\n', b"x" * (MAX_LINE_BYTES + 1)])
    it = client.lines()
    assert next(it) == '{"ok": 1}'
    with pytest.raises(ConnectionError, match="No newline"):
        next(it)
