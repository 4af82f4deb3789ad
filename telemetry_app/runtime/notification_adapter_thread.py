from __future__ import annotations

import threading
from queue import Empty

from telemetry_app.core.engine import TelemetryEngine
from telemetry_app.domain.events import StalenessEvent, StalenessTransition
from telemetry_app.notification.base import NotificationEvent
from telemetry_app.notification.notification_thread import NotificationWorkerThread
from telemetry_app.notification.payload import build_staleness_payload
from telemetry_app.runtime.event_bus import EventBus


def to_notification(engine: TelemetryEngine, ev: StalenessEvent) -> NotificationEvent:
    """Wrap a staleness event and the current engine snapshot for delivery."""
    payload = build_staleness_payload(engine.current_snapshot(), ev)
    return NotificationEvent(
        type="staleness_event",
        payload=payload,
        severity="WARNING" if ev.transition is StalenessTransition.RAISED else "OK",
        source=ev.machine_id,
        ts=ev.timestamp.isoformat(timespec="seconds"),
    )


class NotificationAdapterThread:
    """
    Adapter thread that bridges StalenessEvent -> NotificationWorkerThread.

    Responsibilities
    ----------------
    - Consume `EventBus.staleness_q`.
    - Build a webhook payload with the current engine snapshot.
    - Emit `NotificationEvent` objects into `NotificationWorkerThread`.

    The engine publishes from inside scheduler callbacks; building payloads
    here keeps those callbacks short.

    Parameters
    ----------
    bus
        Event bus providing the staleness queue.
    engine
        Engine used to snapshot context for the payload.
    notifier
        Notification worker responsible for actual sending.
    stop_event
        Stop signal for the thread.
    """

    def __init__(
        self,
        bus: EventBus,
        engine: TelemetryEngine,
        notifier: NotificationWorkerThread,
        stop_event: threading.Event,
    ):
        self._bus = bus
        self._engine = engine
        self._notifier = notifier
        self._stop = stop_event
        self._thread = threading.Thread(target=self._run, name="notification-adapter", daemon=True)

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
                ev = self._bus.staleness_q.get(timeout=0.5)
            except Empty:
                continue
            self._notifier.emit(to_notification(self._engine, ev))
