from __future__ import annotations

import socket
from dataclasses import dataclass
from typing import Iterator, Optional

from telemetry_app.domain.errors import SampleDecodeError
from telemetry_app.domain.models import Sample
from telemetry_app.transport.client_config import HOST, PORT, TIMEOUT_S
from telemetry_app.transport.ndjson import decode_sample
from telemetry_app.utils.logger import get_logger

logger = get_logger(__name__)

RECV_BYTES = 4096
MAX_LINE_BYTES = 64 * 1024


@dataclass
class TCPNDJSONClient:
    """
    TCP client that receives NDJSON samples from a live feed publisher.

    This transport adapter connects to a TCP server (e.g., the feed simulator)
    and yields:
    - raw NDJSON lines via :meth:`lines`
    - decoded samples via :meth:`samples`

    Notes
    -----
    - This class is an infrastructure component. Reconnection lives in the
      receiver thread, not here and not in the engine.
    - Malformed lines are logged and skipped in :meth:`samples`.

    Parameters
    ----------
    host
        Remote host address of the NDJSON stream server.
    port
        Remote TCP port.
    timeout_s
        Connection timeout (seconds) used for initial connect only.
    """

    host: str = HOST
    port: int = PORT
    timeout_s: float = TIMEOUT_S

    _sock: Optional[socket.socket] = None

    def connect(self) -> None:
        """
        Open a TCP connection to the configured host/port.

        A timeout is applied for the connect operation only; afterwards the
        socket is switched to blocking mode for continuous streaming.
        """
        sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        sock.settimeout(self.timeout_s)
        sock.connect((self.host, self.port))
        sock.settimeout(None)  # streaming mode
        self._sock = sock
        logger.info("Connected to live feed at %s:%s", self.host, self.port)

    def lines(self) -> Iterator[str]:
        """
        Yield complete NDJSON lines from the socket stream.

        A peer that sends more than :data:`MAX_LINE_BYTES` without a newline
        is treated as broken, so the receiver thread reconnects.

        Raises
        ------
        RuntimeError
            If called before :meth:`connect`.
        ConnectionError
            If the remote side closes the connection or a line is too long.
        """
        if not self._sock:
            raise RuntimeError("Not connected")

        pending = bytearray()
        while True:
            chunk = self._sock.recv(RECV_BYTES)
            if not chunk:
                raise ConnectionError("Live feed closed the connection")
            pending.extend(chunk)

            *complete, rest = pending.split(b"\n")
            pending = bytearray(rest)
            if len(pending) > MAX_LINE_BYTES:
                raise ConnectionError(f"No newline within {MAX_LINE_BYTES} bytes")

            for raw in complete:
                text = raw.decode("utf-8", errors="replace").strip()
                if text:
                    yield text

    def samples(self) -> Iterator[Sample]:
        """
        Yield decoded samples from the NDJSON stream.

        Malformed lines are logged and skipped (per-sample isolation).
        """
        for line in self.lines():
            try:
                yield decode_sample(line)
            except SampleDecodeError as e:
                logger.warning("Bad line %r: %s", line[:200], e)

    def close(self) -> None:
        """Close the underlying socket if open."""
        if self._sock:
            try:
                self._sock.close()
            except OSError as e:
                logger.debug("Socket close failed: %r", e)
            self._sock = None
