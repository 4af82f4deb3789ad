"""
Staleness event domain models.

A `StalenessEvent` represents *what happened* (the feed went stale, or
recovered) at a specific time, while the detector's boolean alert represents
*what is currently true*.

Events are used for:
- logging
- outbound notifications (webhook)
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum


class StalenessTransition(str, Enum):
    """
    Staleness alert lifecycle transition.

    Members
    -------
    RAISED : str
        No sample arrived within the threshold.
    CLEARED : str
        A sample arrived again after the alert was raised.
    """

    RAISED = "RAISED"
    CLEARED = "CLEARED"


@dataclass(frozen=True)
class StalenessEvent:
    """
    Event emitted when the staleness alert changes.

    Parameters
    ----------
    machine_id
        Machine of the monitored sequence ("" before any sample arrived).
    transition
        RAISED or CLEARED.
    timestamp
        Wall-clock time of the transition.
    elapsed_ms
        Milliseconds since the last arrival when the transition happened.
    threshold_ms
        Configured staleness threshold.
    """

    machine_id: str
    transition: StalenessTransition
    timestamp: datetime
    elapsed_ms: float
    threshold_ms: float
