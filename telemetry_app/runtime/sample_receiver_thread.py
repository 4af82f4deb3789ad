from __future__ import annotations

import threading
from dataclasses import dataclass
from queue import Full, Queue
from typing import Callable, Optional

from telemetry_app.domain.models import Sample
from telemetry_app.transport.tcp_client import TCPNDJSONClient
from telemetry_app.utils.logger import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class SampleReceiverConfig:
    """
    Configuration for the sample receiver thread.

    Parameters
    ----------
    host
        TCP server host.
    port
        TCP server port.
    reconnect_delay_s
        Delay in seconds between reconnect attempts after a failure.
    connect_timeout_s
        TCP connect timeout (seconds) used during the connect phase.
    """

    host: str
    port: int
    reconnect_delay_s: float = 0.5
    connect_timeout_s: float = 5.0


class SampleReceiverThread:
    """
    Dedicated I/O thread that receives decoded samples from a TCP NDJSON feed.

    Responsibilities
    ----------------
    - Own and manage the TCP connection lifecycle.
    - Auto-reconnect on failures until stopped (the reconnection policy lives
      here, never in the engine).
    - Push decoded samples into the single append queue using a non-blocking
      put (drops the newest sample if the queue is full).

    Stop Behavior
    -------------
    :meth:`stop` sets the shared stop event and closes the TCP client socket
    to break any blocking receive.

    Parameters
    ----------
    cfg
        Receiver configuration (host/port/reconnect/timeout).
    samples_q
        Append queue consumed by the ingest worker.
    stop_event
        Shared stop event used to stop all runtime threads.
    client_factory
        Builds the transport client (replaceable in tests).
    """

    def __init__(
        self,
        cfg: SampleReceiverConfig,
        samples_q: "Queue[Sample]",
        stop_event: threading.Event,
        client_factory: Optional[Callable[[SampleReceiverConfig], TCPNDJSONClient]] = None,
    ):
        self._cfg = cfg
        self._q = samples_q
        self._stop = stop_event
        self._client_factory = client_factory or (
            lambda c: TCPNDJSONClient(host=c.host, port=c.port, timeout_s=c.connect_timeout_s)
        )
        self._thread = threading.Thread(target=self._run, name="sample-receiver", daemon=True)
        self._client: Optional[TCPNDJSONClient] = None
        self.dropped = 0

    def start(self) -> None:
        """Start the receiver thread if not already running."""
        if not self._thread.is_alive():
            self._thread.start()

    def stop(self) -> None:
        """Signal the receiver thread to stop and close the TCP client if present."""
        self._stop.set()
        client = self._client
        if client:
            client.close()

    def join(self, timeout: float | None = 2.0) -> None:
        self._thread.join(timeout=timeout)

    def _run(self) -> None:
        """
        Connection loop: connect, receive samples, and reconnect on errors.

        Errors are logged and the loop retries after `reconnect_delay_s`.
        """
        while not self._stop.is_set():
            try:
                self._client = self._client_factory(self._cfg)
                self._client.connect()

                for sample in self._client.samples():
                    if self._stop.is_set():
                        break
                    try:
                        self._q.put_nowait(sample)
                    except Full:
                        self.dropped += 1

            except (OSError, RuntimeError) as e:
                if self._stop.is_set():
                    break
                logger.warning("Live feed connection/recv error: %r", e, exc_info=True)
                self._stop.wait(self._cfg.reconnect_delay_s)

            finally:
                if self._client:
                    self._client.close()
                self._client = None
