from __future__ import annotations

import threading
from queue import Empty, Queue

from telemetry_app.domain.errors import TelemetryError
from telemetry_app.domain.models import Sample
from telemetry_app.services.controller import IngestController
from telemetry_app.utils.logger import get_logger

logger = get_logger(__name__)


class IngestWorkerThread:
    """
    Single consumer of the live append queue.

    Every producer (the TCP receiver, or any future source) puts samples on
    one queue; this thread is the only writer into the engine, so appends are
    serialized ahead of the sequence store.

    Concurrency Model
    -----------------
    - The thread polls the queue with a timeout to remain responsive to stop signals.
    - Engine errors on one sample are logged so the thread keeps running.

    Parameters
    ----------
    controller
        Ingest controller used to append samples.
    samples_q
        Queue of decoded samples.
    stop_event
        Thread stop signal. When set, the worker exits its loop.
    """

    def __init__(
        self,
        controller: IngestController,
        samples_q: "Queue[Sample]",
        stop_event: threading.Event,
    ):
        self._controller = controller
        self._q = samples_q
        self._stop = stop_event
        self._thread = threading.Thread(target=self._run, name="ingest-worker", daemon=True)

    def start(self) -> None:
        if not self._thread.is_alive():
            self._thread.start()

    def stop(self) -> None:
        self._stop.set()

    def join(self, timeout: float | None = 2.0) -> None:
        self._thread.join(timeout=timeout)

    def _run(self) -> None:
        while not self._stop.is_set():
            try:
                sample = self._q.get(timeout=0.5)
            except Empty:
                continue

            try:
                self._controller.handle_sample(sample)
            except TelemetryError as e:
                logger.error("handle_sample failed: %r", e)
