from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional, Protocol


@dataclass(frozen=True)
class NotificationEvent:
    """
    Outbound message handed to notifiers.

    Notifiers only see this envelope; the staleness detector and engine types
    stay behind the adapter thread.

    Parameters
    ----------
    type
        Message kind, e.g. "staleness_event".
    payload
        JSON-serializable body.
    severity
        "WARNING" when the feed went stale, "OK" when it recovered.
    source
        Machine id the message is about.
    ts
        ISO-8601 time of the underlying transition.
    """

    type: str
    payload: Dict[str, Any]
    severity: Optional[str] = None
    source: Optional[str] = None
    ts: Optional[str] = None


class Notifier(Protocol):
    """Anything with ``notify(event)``; errors propagate to the caller."""

    def notify(self, event: NotificationEvent) -> None:
        ...
