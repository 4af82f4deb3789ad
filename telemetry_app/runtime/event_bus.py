from __future__ import annotations

from dataclasses import dataclass, field
from queue import Full, Queue

from telemetry_app.domain.events import StalenessEvent


@dataclass
class EventBus:
    """
    In-process event bus for staleness events using a thread-safe queue.

    The bus provides a simple producer/consumer mechanism:
    - The engine's staleness detector publishes via :meth:`publish_staleness`.
    - Consumers (e.g., the notification adapter thread) read from
      :attr:`staleness_q`.

    Concurrency Model
    -----------------
    Python's :class:`queue.Queue` is thread-safe. Multiple producers may call
    :meth:`publish_staleness` concurrently without additional locking.

    Backpressure Policy
    -------------------
    If the queue is full, events are dropped (best-effort). Notification
    delivery must never block a scheduler callback inside the engine.

    Attributes
    ----------
    staleness_q
        Bounded queue of staleness events. Consumers should drain this queue in a loop.
    dropped
        Number of events dropped because the queue was full.
    """

    staleness_q: "Queue[StalenessEvent]" = field(default_factory=lambda: Queue(maxsize=1000))
    dropped: int = 0

    def publish_staleness(self, ev: StalenessEvent) -> None:
        """
        Publish a staleness event to the queue (non-blocking).

        Parameters
        ----------
        ev
            StalenessEvent to publish.
        """
        try:
            self.staleness_q.put_nowait(ev)
        except Full:
            self.dropped += 1
