from __future__ import annotations

import queue
import threading
from dataclasses import dataclass
from typing import List, Union

import requests

from telemetry_app.notification.base import NotificationEvent, Notifier
from telemetry_app.utils.logger import get_logger

logger = get_logger(__name__)

_STOP = object()


@dataclass(frozen=True)
class NotificationThreadConfig:
    """
    Parameters
    ----------
    max_queue
        Pending events kept before :meth:`NotificationWorkerThread.emit` drops.
    retry_count
        Extra attempts per notifier after the first failure.
    retry_backoff_s
        First retry delay; doubles on every further attempt.
    poll_timeout_s
        Queue poll interval, bounds how long a stop request can go unseen.
    """

    max_queue: int = 2000
    retry_count: int = 3
    retry_backoff_s: float = 0.5
    poll_timeout_s: float = 0.5

    def backoff(self, attempt: int) -> float:
        return self.retry_backoff_s * (2 ** attempt)


class NotificationWorkerThread:
    """
    Deliver staleness notifications off the engine's callback threads.

    :meth:`emit` never blocks: a full queue drops the new event with a
    warning. Each event goes to every notifier in turn; a notifier that keeps
    failing after `retry_count` retries is skipped for that event only.
    Stopping interrupts a pending backoff.

    Attributes
    ----------
    delivered, failed
        Per-notifier delivery outcomes since start.
    """

    def __init__(self, notifiers: List[Notifier], cfg: NotificationThreadConfig | None = None):
        self._notifiers = notifiers
        self._cfg = cfg or NotificationThreadConfig()
        self._q: "queue.Queue[Union[NotificationEvent, object]]" = queue.Queue(maxsize=self._cfg.max_queue)
        self._stop = threading.Event()
        self._thread = threading.Thread(target=self._run, name="notification-worker", daemon=True)
        self.delivered = 0
        self.failed = 0

    def start(self) -> None:
        if not self._thread.is_alive():
            self._thread.start()

    def stop(self) -> None:
        self._stop.set()
        try:
            self._q.put_nowait(_STOP)
        except queue.Full:
            logger.debug("Notification queue full at stop; worker exits on next poll")
        if self._thread.is_alive():
            self._thread.join(timeout=2.0)

    def emit(self, event: NotificationEvent) -> None:
        try:
            self._q.put_nowait(event)
        except queue.Full:
            logger.warning("Notification queue full, dropping %s from %s", event.type, event.source)

    def _run(self) -> None:
        while not self._stop.is_set():
            try:
                item = self._q.get(timeout=self._cfg.poll_timeout_s)
            except queue.Empty:
                continue
            if item is _STOP:
                return

            for notifier in self._notifiers:
                if self._send_with_retries(notifier, item):
                    self.delivered += 1
                else:
                    self.failed += 1

    def _send_with_retries(self, notifier: Notifier, event: NotificationEvent) -> bool:
        attempts = self._cfg.retry_count + 1
        for attempt in range(attempts):
            try:
                notifier.notify(event)
                return True
            except (requests.RequestException, OSError) as e:
                if attempt + 1 == attempts:
                    logger.error("Giving up on %s after %d attempts: %r", event.type, attempts, e)
                    return False
                logger.warning("Delivery of %s failed (attempt %d/%d): %r", event.type, attempt + 1, attempts, e)
                if self._stop.wait(self._cfg.backoff(attempt)):
                    return False
        return False
