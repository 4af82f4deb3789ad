from __future__ import annotations

import socket
import threading
from dataclasses import dataclass, field
from typing import Optional

from feed_simulator.transport.server_config import HOST, PORT
from telemetry_app.domain.models import Sample
from telemetry_app.transport.ndjson import encode_sample
from telemetry_app.utils.logger import get_logger

logger = get_logger("feed_simulator.tcp_server")


@dataclass
class TCPPublishServer:
    """
    Single-client TCP server that publishes samples as NDJSON.

    Behavior
    --------
    - Binds and listens on (host, port)
    - Accepts one TCP client at a time
    - Sends samples to the connected client as UTF-8 NDJSON lines
    - If a new client connects, any previous client is closed and replaced

    Concurrency Model
    -----------------
    The server protects access to the client socket using a threading lock so
    that accept/send/close can be called safely from different threads.

    Parameters
    ----------
    host
        Interface to bind on. Defaults to :data:`~feed_simulator.transport.server_config.HOST`.
    port
        Port to bind on. Defaults to :data:`~feed_simulator.transport.server_config.PORT`.
    """

    host: str = HOST
    port: int = PORT

    _server_sock: Optional[socket.socket] = None
    _client_sock: Optional[socket.socket] = None
    _lock: threading.Lock = field(default_factory=threading.Lock)

    @property
    def has_client(self) -> bool:
        with self._lock:
            return self._client_sock is not None

    def start(self) -> None:
        """
        Create, bind, and listen on the server socket.

        Raises
        ------
        OSError
            If binding or listening fails (e.g., port already in use).
        """
        self._server_sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        self._server_sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        self._server_sock.bind((self.host, self.port))
        self._server_sock.listen(1)
        logger.info("Feed server listening on %s:%d", self.host, self.port)

    def accept_one(self) -> None:
        """
        Accept a single client connection.

        If another client is already connected, it is closed and replaced.
        """
        if not self._server_sock:
            raise RuntimeError("Server not started")

        client, addr = self._server_sock.accept()
        with self._lock:
            if self._client_sock:
                _close_quietly(self._client_sock)
            self._client_sock = client
        logger.info("Client connected from %s", addr)

    def send(self, sample: Sample) -> bool:
        """
        Send one sample as an NDJSON line to the connected client.

        Returns
        -------
        bool
            False if there is no client or the client disconnected during send.
        """
        data = (encode_sample(sample) + "\n").encode("utf-8")

        with self._lock:
            sock = self._client_sock

        if not sock:
            return False

        try:
            sock.sendall(data)
        except OSError:
            with self._lock:
                _close_quietly(sock)
                if self._client_sock is sock:
                    self._client_sock = None
            logger.info("Client disconnected")
            return False
        return True

    def close(self) -> None:
        """Close client and server sockets. Safe to call multiple times."""
        with self._lock:
            if self._client_sock:
                _close_quietly(self._client_sock)
                self._client_sock = None
        if self._server_sock:
            _close_quietly(self._server_sock)
            self._server_sock = None


def _close_quietly(sock: socket.socket) -> None:
    try:
        sock.close()
    except OSError as e:
        logger.debug("socket close failed: %r", e)
