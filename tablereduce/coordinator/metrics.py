"""
Performance metrics collection for loads and queries.
"""

import json
import threading
import time
from collections import deque
from dataclasses import asdict, dataclass
from typing import Deque, Dict, List, Optional

import psutil

DEFAULT_MAX_HISTORY = 1000


@dataclass
class QueryMetrics:
    """Metrics for a single query execution."""

    query_id: int
    kind: str
    mode: str
    backend: str
    worker_count: int
    partition_count: int
    rows_scanned: int
    start_time: float
    end_time: float = 0.0
    memory_rss_bytes: int = 0
    success: bool = True

    @property
    def total_time_ms(self) -> float:
        """Total query time in milliseconds."""
        return (self.end_time - self.start_time) * 1000.0

    def to_dict(self) -> dict:
        """Convert metrics to dictionary."""
        data = asdict(self)
        data['total_time_ms'] = self.total_time_ms
        return data

    def save_to_file(self, filepath: str):
        """Save metrics to JSON file."""
        with open(filepath, 'w') as f:
            json.dump(self.to_dict(), f, indent=2)


@dataclass
class LoadMetrics:
    """Metrics for one bulk load."""

    files_requested: int
    files_loaded: int
    rows_loaded: int
    rows_skipped: int
    start_time: float
    end_time: float = 0.0

    @property
    def total_time_ms(self) -> float:
        return (self.end_time - self.start_time) * 1000.0

    def to_dict(self) -> dict:
        data = asdict(self)
        data['total_time_ms'] = self.total_time_ms
        return data


class MetricsCollector:
    """Collects and manages metrics for queries and loads."""

    def __init__(self, max_history: int = DEFAULT_MAX_HISTORY):
        """
        Args:
            max_history: Query and load records kept; the oldest are dropped first
        """
        if max_history < 1:
            raise ValueError(f"max_history must be >= 1, got {max_history}")
        self.max_history = max_history
        self.query_metrics: Dict[int, QueryMetrics] = {}
        self.load_metrics: Deque[LoadMetrics] = deque(maxlen=max_history)
        self.process = psutil.Process()
        self.lock = threading.Lock()
        self._next_id = 0

    def get_memory_usage(self) -> int:
        """Get current resident memory in bytes."""
        return self.process.memory_info().rss

    def start_query(self, kind: str, mode: str, backend: str, worker_count: int,
                    partition_count: int, rows_scanned: int) -> QueryMetrics:
        """Begin tracking a new query."""
        with self.lock:
            query_id = self._next_id
            self._next_id += 1
            metrics = QueryMetrics(
                query_id=query_id,
                kind=kind,
                mode=mode,
                backend=backend,
                worker_count=worker_count,
                partition_count=partition_count,
                rows_scanned=rows_scanned,
                start_time=time.perf_counter()
            )
            self.query_metrics[query_id] = metrics
            while len(self.query_metrics) > self.max_history:
                del self.query_metrics[next(iter(self.query_metrics))]
            return metrics

    def end_query(self, query_id: int, success: bool = True) -> Optional[QueryMetrics]:
        """Mark query completion and sample memory usage."""
        with self.lock:
            metrics = self.query_metrics.get(query_id)
            if metrics is not None:
                metrics.end_time = time.perf_counter()
                metrics.success = success
                metrics.memory_rss_bytes = self.get_memory_usage()
            return metrics

    def record_load(self, metrics: LoadMetrics):
        with self.lock:
            self.load_metrics.append(metrics)

    def get_metrics(self, query_id: int) -> Optional[QueryMetrics]:
        """Retrieve metrics for a specific query."""
        return self.query_metrics.get(query_id)

    def history(self) -> List[QueryMetrics]:
        with self.lock:
            return [self.query_metrics[k] for k in sorted(self.query_metrics)]
