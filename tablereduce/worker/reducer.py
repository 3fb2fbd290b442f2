"""
Parallel Reducer
Runs a per-row accumulator over each partition on its own worker and merges
the partial results into a single value
"""

import logging
import threading
import time
from typing import Any, Callable, List, Sequence

from tablereduce.coordinator.partitioner import Partition
from tablereduce.exceptions import ReductionError
from tablereduce.worker.dispatch import Dispatcher, PoolDispatcher

logger = logging.getLogger(__name__)


class _MergeSink:
    """Shared final accumulator; the lock is owned by one reduce call"""

    def __init__(self, initial):
        self.value = initial
        self.merges = 0
        self.lock = threading.Lock()


class ParallelReducer:
    """Chunked map-and-combine over a read-only row sequence"""

    def __init__(self, dispatcher: Dispatcher = None):
        self.dispatcher = dispatcher or PoolDispatcher()

    def reduce(self, rows: Sequence, partitions: List[Partition],
               per_row_op: Callable[[Any, Any], Any],
               combine: Callable[[Any, Any], Any],
               identity: Callable[[], Any]) -> Any:
        """
        Reduce rows partition by partition

        Args:
            rows: Frozen, indexable row sequence shared by every worker
            partitions: Non-overlapping ranges covering rows exactly once
            per_row_op: (partial, row) -> partial, applied to every row of a range
            combine: (a, b) -> merged, associative
            identity: Factory for a fresh empty partial result

        Returns:
            The merged final result. Merge order is not fixed, so ordered
            outputs must be sorted by the caller.

        Raises:
            ReductionError: If any worker fails; no partial result is returned
        """
        start_time = time.time()
        sink = _MergeSink(identity())

        def make_task(part: Partition):
            def task():
                partial = identity()
                for index in range(part.start, part.end):
                    partial = per_row_op(partial, rows[index])
                # Lock held only for the merge, never during the scan
                with sink.lock:
                    sink.value = combine(sink.value, partial)
                    sink.merges += 1
                logger.debug(f"Partition {part.partition_id}: merged {part.size} rows")
            return task

        try:
            self.dispatcher.run([make_task(p) for p in partitions])
        except Exception as e:
            logger.error(f"Reduction failed on {self.dispatcher.name} backend: {e}")
            raise ReductionError(f"Reduction failed: {e}") from e

        execution_time = int((time.time() - start_time) * 1000)
        logger.debug(f"Reduced {len(partitions)} partitions ({sink.merges} merges) in {execution_time}ms")
        return sink.value
