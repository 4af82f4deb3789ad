from __future__ import annotations

from dataclasses import dataclass

from telemetry_app.core.engine import TelemetryEngine
from telemetry_app.domain.errors import MachineMismatchError, OutOfOrderError
from telemetry_app.domain.models import Sample
from telemetry_app.utils.logger import get_logger

logger = get_logger(__name__)


@dataclass
class IngestController:
    """
    Orchestrate ingestion of live samples into the engine.

    Responsibilities
    ----------------
    - Accept decoded samples from the single append queue.
    - Append each one to the engine (which advances the cursor, recomputes
      KPIs and refreshes the staleness detector).
    - Isolate per-sample data errors: a sample that is out of order or from
      another machine is logged and dropped, and the stream continues.

    Notes
    -----
    This controller contains orchestration logic only. The ordering policy
    is "drop": the store never reorders and nothing here buffers samples.

    Parameters
    ----------
    engine
        Engine receiving the samples.
    """

    engine: TelemetryEngine
    accepted: int = 0
    rejected: int = 0

    def handle_sample(self, sample: Sample) -> bool:
        """
        Append one sample.

        Returns
        -------
        bool
            True if the sample was stored, False if it was rejected.
        """
        try:
            self.engine.append_live(sample)
        except (OutOfOrderError, MachineMismatchError) as e:
            self.rejected += 1
            logger.warning("Rejected sample: %s", e)
            return False

        self.accepted += 1
        return True
