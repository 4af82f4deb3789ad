from __future__ import annotations

import threading
from dataclasses import dataclass
from queue import Queue
from typing import Optional

from telemetry_app.core.engine import TelemetryEngine
from telemetry_app.domain.models import Sample
from telemetry_app.notification.notification_thread import NotificationWorkerThread
from telemetry_app.runtime.event_bus import EventBus
from telemetry_app.runtime.ingest_worker_thread import IngestWorkerThread
from telemetry_app.runtime.notification_adapter_thread import NotificationAdapterThread
from telemetry_app.runtime.sample_receiver_thread import SampleReceiverConfig, SampleReceiverThread
from telemetry_app.services.controller import IngestController
from telemetry_app.utils.logger import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class AppRuntimeConfig:
    """
    Runtime configuration for thread orchestration and transport connection.

    Parameters
    ----------
    live
        Whether to run the live-feed threads (receiver + ingest worker).
        In replay mode only the notification adapter runs.
    feed_host
        TCP host of the live feed server.
    feed_port
        TCP port of the live feed server.
    reconnect_delay_s
        Delay (seconds) between reconnect attempts after network errors.
    connect_timeout_s
        TCP connect timeout (seconds) used during initial connect.
    queue_size
        Capacity of the append queue between receiver and ingest worker.
    """

    live: bool
    feed_host: str
    feed_port: int
    reconnect_delay_s: float = 0.5
    connect_timeout_s: float = 5.0
    queue_size: int = 5000


class AppRuntime:
    """
    Thread supervisor for the live feed and notification delivery.

    This class owns:
    - a shared stop event
    - the append queue between the receiver and the ingest worker
    - thread lifecycles (start/stop/join)
    - event bus integration (StalenessEvent -> notifications)

    Thread Topology
    ---------------
    1) SampleReceiverThread (I/O)
       - owns the TCP connection and its reconnect policy
       - decodes NDJSON lines
       - pushes samples into `samples_q`

    2) IngestWorkerThread (single appender)
       - consumes decoded samples
       - invokes IngestController.handle_sample()
       - the engine appends, advances the cursor and refreshes staleness

    3) NotificationAdapterThread (adapter)
       - consumes StalenessEvent from the EventBus queue
       - emits NotificationEvent into NotificationWorkerThread

    Notes
    -----
    - All threads are daemon threads; `stop()` + `join()` are still used for clean shutdown.
    - Backpressure policy:
      - Receiver drops newest samples if the queue is full.
      - EventBus drops if overloaded.
    """

    def __init__(
        self,
        cfg: AppRuntimeConfig,
        engine: TelemetryEngine,
        bus: EventBus,
        notifier: Optional[NotificationWorkerThread] = None,
    ):
        self._cfg = cfg
        self._engine = engine
        self._stop = threading.Event()
        self.controller = IngestController(engine=engine)

        self.samples_q: "Queue[Sample]" = Queue(maxsize=cfg.queue_size)

        self._receiver: Optional[SampleReceiverThread] = None
        self._ingest: Optional[IngestWorkerThread] = None
        if cfg.live:
            self._receiver = SampleReceiverThread(
                SampleReceiverConfig(
                    host=cfg.feed_host,
                    port=cfg.feed_port,
                    reconnect_delay_s=cfg.reconnect_delay_s,
                    connect_timeout_s=cfg.connect_timeout_s,
                ),
                samples_q=self.samples_q,
                stop_event=self._stop,
            )
            self._ingest = IngestWorkerThread(
                controller=self.controller,
                samples_q=self.samples_q,
                stop_event=self._stop,
            )

        self._notify_adapter: Optional[NotificationAdapterThread] = None
        if notifier is not None:
            self._notify_adapter = NotificationAdapterThread(
                bus=bus,
                engine=engine,
                notifier=notifier,
                stop_event=self._stop,
            )

    def _threads(self):
        return [t for t in (self._receiver, self._ingest, self._notify_adapter) if t is not None]

    def start(self) -> None:
        """
        Start the engine poller and all runtime threads.

        Threads start in order: receiver, ingest worker, notification adapter.
        """
        self._engine.start()
        for t in self._threads():
            t.start()
        logger.info("Runtime started (live=%s)", self._cfg.live)

    def stop(self) -> None:
        """
        Stop all runtime threads and shut the engine down.

        Stop is cooperative: threads check the stop event and exit. The
        receiver also closes its socket to unblock recv.
        """
        threads = self._threads()
        for t in threads:
            t.stop()
        for t in threads:
            t.join(timeout=2.0)
        self._engine.shutdown()
        logger.info(
            "Runtime stopped (accepted=%d, rejected=%d)",
            self.controller.accepted,
            self.controller.rejected,
        )
