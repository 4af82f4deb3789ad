"""
Unit tests for feed_simulator.transport.tcp_server.

The client socket is replaced by a fake so no port is bound.
"""

from __future__ import annotations

import json

import pytest

from feed_simulator.transport.tcp_server import TCPPublishServer


class FakeClientSocket:
    def __init__(self, fail: bool = False):
        self.sent = b""
        self.fail = fail
        self.closed = False

    def sendall(self, data: bytes) -> None:
        if self.fail:
            raise BrokenPipeError("client gone")
        self.sent += data

    def close(self) -> None:
        self.closed = True


def test_send_without_client_returns_false(make_sample) -> None:
    server = TCPPublishServer()
    assert server.has_client is False
    assert server.send(make_sample(0)) is False


def test_send_writes_one_ndjson_line(make_sample) -> None:
    server = TCPPublishServer()
    sock = FakeClientSocket()
    server._client_sock = sock

    assert server.send(make_sample(0)) is True
    assert sock.sent.endswith(b"\n")
    assert json.loads(sock.sent.decode("utf-8"))["machine_id"] == "M-01"


def test_disconnect_during_send_drops_client(make_sample) -> None:
    server = TCPPublishServer()
    sock = FakeClientSocket(fail=True)
    server._client_sock = sock

    assert server.send(make_sample(0)) is False
    assert sock.closed
    assert server.has_client is False


def test_accept_before_start_raises() -> None:
    with pytest.raises(RuntimeError):
        TCPPublishServer().accept_one()


def test_close_is_idempotent() -> None:
    server = TCPPublishServer()
    sock = FakeClientSocket()
    server._client_sock = sock
    server.close()
    server.close()
    assert sock.closed
