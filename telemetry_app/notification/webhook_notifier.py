from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Optional

import requests

from telemetry_app.notification.base import NotificationEvent
from telemetry_app.utils.logger import get_logger

logger = get_logger(__name__)

USER_AGENT = "machine-telemetry-dashboard/0.1"


@dataclass(frozen=True)
class WebhookConfig:
    """
    Where and how staleness notifications are POSTed.

    Parameters
    ----------
    url
        Receiver endpoint, e.g. ``http://127.0.0.1:8000/events``.
    timeout_s
        Per-request timeout (connect and read).
    verify_tls
        Verify the receiver's certificate on https URLs.
    auth_header
        Full Authorization header value ("Bearer <token>"), or None.
    """

    url: str
    timeout_s: float = 2.0
    verify_tls: bool = True
    auth_header: Optional[str] = None


def build_headers(cfg: WebhookConfig, event: NotificationEvent) -> Dict[str, str]:
    """Request headers for one delivery; event metadata travels as X- headers."""
    headers = {
        "Content-Type": "application/json",
        "User-Agent": USER_AGENT,
        "X-Telemetry-Event": event.type,
    }
    if event.severity:
        headers["X-Telemetry-Severity"] = event.severity
    if cfg.auth_header:
        headers["Authorization"] = cfg.auth_header
    return headers


class WebhookNotifier:
    """
    Deliver one :class:`NotificationEvent` as a JSON POST.

    A single attempt per call: non-2xx answers raise ``requests.HTTPError``
    and network failures raise ``requests.RequestException``. Retrying is the
    job of the notification worker thread.

    Parameters
    ----------
    cfg
        Endpoint settings.
    session
        Optional ``requests.Session`` for connection reuse; module-level
        ``requests.post`` is used otherwise.
    """

    def __init__(self, cfg: WebhookConfig, session: Optional[requests.Session] = None):
        self._cfg = cfg
        self._session = session

    @property
    def url(self) -> str:
        return self._cfg.url

    def notify(self, event: NotificationEvent) -> None:
        send = requests.post if self._session is None else self._session.post
        response = send(
            self._cfg.url,
            json=event.payload,
            headers=build_headers(self._cfg, event),
            timeout=self._cfg.timeout_s,
            verify=self._cfg.verify_tls,
        )
        response.raise_for_status()
        logger.debug("Delivered %s to %s (%s)", event.type, self._cfg.url, response.status_code)
