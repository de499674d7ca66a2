from __future__ import annotations

import csv
import logging
from datetime import datetime, timedelta
from typing import IO, Iterator, List, Tuple

import numpy as np

from .config import GeneratorConfig

logger = logging.getLogger(__name__)

HEADER = ["ts", "tag", "value"]


def series_tags(scale: int) -> List[str]:
    return [f"host_{i}" for i in range(scale)]


def iter_timestamps(start: datetime, end: datetime, interval: int) -> Iterator[datetime]:
    """Yield timestamps from start (inclusive) to end (exclusive)."""
    step = timedelta(seconds=interval)
    ts = start
    while ts < end:
        yield ts
        ts += step


def iter_rows(config: GeneratorConfig) -> Iterator[Tuple[str, str, int]]:
    """Yield ``(ts, tag, value)`` rows, one per series for every timestamp."""
    config.validate()
    rng = np.random.default_rng(config.seed)
    tags = series_tags(config.scale)

    for ts in iter_timestamps(config.start, config.end, config.interval):
        formatted = ts.isoformat()
        values = rng.integers(0, config.limit, size=len(tags))
        for tag, value in zip(tags, values):
            yield formatted, tag, int(value)


def write_csv(config: GeneratorConfig, stream: IO[str]) -> int:
    """Write the header and every row to ``stream``; returns the number of data rows."""
    writer = csv.writer(stream, lineterminator="\n")
    writer.writerow(HEADER)
    count = 0
    for row in iter_rows(config):
        writer.writerow(row)
        count += 1
    stream.flush()
    logger.info("Generated %d rows across %d series", count, config.scale)
    return count
