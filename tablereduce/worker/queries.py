"""
Query operations expressed as reducer calls.

Each query takes the reducer, the frozen rows and the partition plan, plus
small accessor callables that pull keys and values out of a row. Accessors
return None for rows that should not take part.
"""

from dataclasses import dataclass
from typing import Any, Callable, List, Optional, Sequence, Tuple

from tablereduce.coordinator.partitioner import Partition
from tablereduce.worker.reducer import ParallelReducer


@dataclass(frozen=True)
class Aggregate:
    """Global sum/count/average result"""
    total: float
    count: int

    @property
    def average(self) -> float:
        return self.total / self.count if self.count > 0 else 0.0


def _concat(a: list, b: list) -> list:
    return a + b


def _rank_descending(pairs: List[Tuple[Any, Any]]) -> List[Tuple[Any, Any]]:
    # Ties broken by label so every backend yields the same order
    return sorted(pairs, key=lambda pair: (-pair[1], pair[0]))


def exact_match(reducer: ParallelReducer, rows: Sequence, partitions: List[Partition],
                key_fn: Callable[[Any], Any], target: Any) -> Tuple:
    """Rows whose key equals target. Order is not promised."""

    def per_row(partial, row):
        if key_fn(row) == target:
            partial.append(row)
        return partial

    return tuple(reducer.reduce(rows, partitions, per_row, _concat, list))


def grouped_extremum(rows: Sequence, key_fn: Callable[[Any], Any],
                     value_fn: Callable[[Any], Any],
                     threshold: Any) -> Tuple[Tuple[Any, Any], ...]:
    """
    Maximum value per group, keeping groups whose maximum exceeds threshold

    Runs single-threaded: the group set is small next to the row count.

    Returns:
        (key, max) pairs sorted ascending by key
    """
    maxima = {}
    for row in rows:
        value = value_fn(row)
        if value is None:
            continue
        key = key_fn(row)
        if key not in maxima or value > maxima[key]:
            maxima[key] = value

    return tuple((key, maxima[key]) for key in sorted(maxima) if maxima[key] > threshold)


def threshold_rank(reducer: ParallelReducer, rows: Sequence, partitions: List[Partition],
                   label_fn: Callable[[Any], Any], value_fn: Callable[[Any], Any],
                   threshold: Any, top_k: Optional[int] = None,
                   inclusive: bool = True) -> Tuple[Tuple[Any, Any], ...]:
    """
    (label, value) pairs at or above threshold, ranked descending

    Args:
        inclusive: Keep values equal to threshold; False keeps only values above it
        top_k: Truncate the ranked list; None keeps everything
    """

    def per_row(partial, row):
        value = value_fn(row)
        if value is not None and (value >= threshold if inclusive else value > threshold):
            partial.append((label_fn(row), value))
        return partial

    ranked = _rank_descending(reducer.reduce(rows, partitions, per_row, _concat, list))
    if top_k is not None:
        ranked = ranked[:max(top_k, 0)]
    return tuple(ranked)


def sum_average(reducer: ParallelReducer, rows: Sequence, partitions: List[Partition],
                value_fn: Callable[[Any], Any]) -> Aggregate:
    """Sum and count of every non-None value"""

    def per_row(partial, row):
        value = value_fn(row)
        if value is None:
            return partial
        return (partial[0] + value, partial[1] + 1)

    def combine(a, b):
        return (a[0] + b[0], a[1] + b[1])

    total, count = reducer.reduce(rows, partitions, per_row, combine, lambda: (0, 0))
    return Aggregate(total=total, count=count)


def growth_rates(reducer: ParallelReducer, rows: Sequence, partitions: List[Partition],
                 label_fn: Callable[[Any], Any],
                 lookup_fn: Callable[[Any, Any], Any],
                 start_key: Any, end_key: Any) -> Tuple[Tuple[Any, float], ...]:
    """
    Percentage change between two keyed lookups per row, ranked descending

    A row contributes only when both lookups exist and the baseline is positive.
    """

    def per_row(partial, row):
        start = lookup_fn(row, start_key)
        end = lookup_fn(row, end_key)
        if start is not None and end is not None and start > 0:
            partial.append((label_fn(row), (end - start) / start * 100.0))
        return partial

    return tuple(_rank_descending(reducer.reduce(rows, partitions, per_row, _concat, list)))


def custom(reducer: ParallelReducer, rows: Sequence, partitions: List[Partition],
           per_row_op: Callable[[Any, Any], Any], combine: Callable[[Any, Any], Any],
           identity: Callable[[], Any]) -> Any:
    """Caller-supplied reduction; the caller owns any post-merge ordering"""
    return reducer.reduce(rows, partitions, per_row_op, combine, identity)
