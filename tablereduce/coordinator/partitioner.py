"""
Partitioner
Splits a table into contiguous, near-equal index ranges, one per worker
"""

import logging
from dataclasses import dataclass
from typing import List, Optional

import psutil

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Partition:
    """Half-open row range [start, end) assigned to one worker"""
    partition_id: int
    start: int
    end: int

    @property
    def size(self) -> int:
        return self.end - self.start


def default_worker_count(fallback_workers: int = 4) -> int:
    """
    Platform concurrency level, or the fallback when it is unreported

    Args:
        fallback_workers: Used when the platform reports None or 0

    Raises:
        ValueError: If fallback_workers is below 1
    """
    if fallback_workers < 1:
        raise ValueError(f"fallback_workers must be >= 1, got {fallback_workers}")

    reported: Optional[int] = psutil.cpu_count(logical=True)
    if not reported:
        logger.info(f"CPU count unreported, using fallback of {fallback_workers} workers")
        return fallback_workers
    return reported


def partition(total_rows: int, worker_count: int) -> List[Partition]:
    """
    Split total_rows into worker_count contiguous ranges

    The last range absorbs the remainder. When there are fewer rows than
    workers the worker count is clamped to the row count (minimum one range,
    so an empty table yields a single empty partition).

    Raises:
        ValueError: If worker_count < 1 or total_rows < 0
    """
    if worker_count < 1:
        raise ValueError(f"worker_count must be >= 1, got {worker_count}")
    if total_rows < 0:
        raise ValueError(f"total_rows must be >= 0, got {total_rows}")

    workers = min(worker_count, max(total_rows, 1))
    chunk_size = total_rows // workers

    partitions = []
    for i in range(workers):
        start = i * chunk_size
        end = total_rows if i == workers - 1 else (i + 1) * chunk_size
        partitions.append(Partition(partition_id=i, start=start, end=end))

    logger.debug(f"Partitioned {total_rows} rows into {workers} ranges of ~{chunk_size}")
    return partitions
