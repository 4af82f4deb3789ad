from __future__ import annotations

from pathlib import Path
from typing import Iterable, Iterator, List, Tuple

from telemetry_app.domain.errors import SampleDecodeError
from telemetry_app.domain.models import Sample
from telemetry_app.transport.ndjson import decode_sample
from telemetry_app.utils.logger import get_logger

logger = get_logger(__name__)


def iter_samples(lines: Iterable[str]) -> Iterator[Tuple[int, Sample]]:
    """
    Decode NDJSON lines, skipping blank and malformed ones.

    Yields
    ------
    tuple of (int, Sample)
        1-based line number and decoded sample.
    """
    for lineno, line in enumerate(lines, start=1):
        if not line.strip():
            continue
        try:
            yield lineno, decode_sample(line)
        except SampleDecodeError as e:
            logger.warning("Skipping line %d: %s", lineno, e)


def read_samples(path: str | Path) -> List[Sample]:
    """
    Read a JSONL replay file in bulk.

    Malformed lines are logged and skipped; ordering is not changed here
    (the sequence store validates it on load).

    Raises
    ------
    FileNotFoundError
        If `path` does not exist.
    """
    p = Path(path).expanduser().resolve()
    with p.open("r", encoding="utf-8") as f:
        samples = [s for _, s in iter_samples(f)]
    logger.info("Read %d samples from %s", len(samples), p)
    return samples
