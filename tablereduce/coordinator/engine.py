"""
Analytics Engine
Loads delimited files into a frozen table and runs partitioned queries on it
"""

import logging
import os
import time
from dataclasses import dataclass
from enum import Enum
from typing import Any, Iterable, List, NamedTuple, Optional, Tuple, Union

from tablereduce.common.record_parser import parse_line
from tablereduce.common.schema import Schema
from tablereduce.config import EngineConfig
from tablereduce.coordinator.metrics import LoadMetrics, MetricsCollector
from tablereduce.coordinator.partitioner import partition
from tablereduce.coordinator.table_store import TableStore
from tablereduce.exceptions import LoadError, ParseSkip, QueryError, TableFrozenError
from tablereduce.worker import queries
from tablereduce.worker.dispatch import Dispatcher, SerialDispatcher, get_dispatcher
from tablereduce.worker.reducer import ParallelReducer

logger = logging.getLogger(__name__)


class QueryKind(Enum):
    """Supported query operations"""
    EXACT_MATCH = "exact_match"
    GROUPED_EXTREMUM = "grouped_extremum"
    THRESHOLD_RANK = "threshold_rank"
    SUM_AVERAGE = "sum_average"
    GROWTH_RATES = "growth_rates"
    CUSTOM = "custom"


# Required keyword parameters per query kind
REQUIRED_PARAMS = {
    QueryKind.EXACT_MATCH: ('key_fn', 'target'),
    QueryKind.GROUPED_EXTREMUM: ('key_fn', 'value_fn', 'threshold'),
    QueryKind.THRESHOLD_RANK: ('label_fn', 'value_fn', 'threshold'),
    QueryKind.SUM_AVERAGE: ('value_fn',),
    QueryKind.GROWTH_RATES: ('label_fn', 'lookup_fn', 'start_key', 'end_key'),
    QueryKind.CUSTOM: ('per_row_op', 'combine', 'identity'),
}


class LoadReport(NamedTuple):
    """Outcome of a bulk load"""
    row_count: int
    warnings: List[str]


@dataclass(frozen=True)
class QueryResult:
    """Immutable query outcome handed back to the caller"""
    kind: QueryKind
    value: Any
    rows_scanned: int
    partition_count: int
    worker_count: int
    backend: str
    elapsed_ms: float


class _FileLoad(NamedTuple):
    path: str
    rows: List[Any]
    skipped: int
    error: Optional[str]


class AnalyticsEngine:
    """Collaborator-facing entry point over one schema"""

    def __init__(self, schema: Schema, config: EngineConfig = None,
                 dispatcher: Dispatcher = None, metrics: MetricsCollector = None):
        """
        Args:
            schema: Field layout of the rows to load
            config: Worker count, fallback and backend settings
            dispatcher: Overrides the backend named in config
            metrics: Shared metrics collector; a private one is created if omitted
        """
        self.schema = schema
        self.config = config or EngineConfig()
        self.dispatcher = dispatcher or get_dispatcher(self.config.backend)
        self.metrics = metrics or MetricsCollector()
        self.table = TableStore()

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------

    def _load_file(self, path: str) -> _FileLoad:
        """Parse one file into rows; read failures are reported, not raised"""
        rows = []
        skipped = 0
        try:
            with open(path, 'r', encoding='utf-8', errors='ignore') as f:
                for line in f:
                    if not line.strip() or self.schema.is_metadata(line):
                        continue
                    try:
                        rows.append(self.schema.build_row(parse_line(line, delimiter=self.schema.delimiter)))
                    except ParseSkip:
                        skipped += 1
        except OSError as e:
            logger.warning(f"Could not read {path}: {e}")
            return _FileLoad(path, [], 0, f"Could not read {path}: {e}")

        return _FileLoad(path, rows, skipped, None)

    def _load_workers(self) -> int:
        if isinstance(self.dispatcher, SerialDispatcher):
            return 1
        return self.config.resolve_workers()

    def load_from_files(self, paths: Iterable[str]) -> LoadReport:
        """
        Load every file concurrently into the table, then freeze it

        Files are split into at most `workers` contiguous groups, one task per
        group. Each file is parsed independently and appended as one batch
        under the table lock, so row order within a file is kept while the
        order between files is not.

        Raises:
            TableFrozenError: If the table was already loaded
            LoadError: A loader worker failed; the table is left empty and unfrozen
        """
        if self.table.frozen:
            raise TableFrozenError("Table already loaded; create a new engine to reload")

        paths = [str(p) for p in paths]
        load_metrics = LoadMetrics(
            files_requested=len(paths), files_loaded=0, rows_loaded=0,
            rows_skipped=0, start_time=time.perf_counter()
        )

        def make_task(group: List[str]):
            def task():
                loaded = []
                for path in group:
                    result = self._load_file(path)
                    if result.error is None:
                        self.table.append(result.rows)
                    loaded.append(result)
                return loaded
            return task

        groups = [paths[p.start:p.end] for p in partition(len(paths), self._load_workers())]
        try:
            grouped_results = self.dispatcher.run([make_task(g) for g in groups])
        except Exception as e:
            # Discard rows appended by the groups that did finish
            self.table = TableStore()
            logger.error(f"Load failed on {self.dispatcher.name} backend: {e}")
            raise LoadError(f"Load failed: {e}") from e
        self.table.freeze()

        results = [r for group in grouped_results for r in group]
        warnings = [r.error for r in results if r.error is not None]
        load_metrics.files_loaded = len(paths) - len(warnings)
        load_metrics.rows_loaded = self.table.size()
        load_metrics.rows_skipped = sum(r.skipped for r in results)
        load_metrics.end_time = time.perf_counter()
        self.metrics.record_load(load_metrics)

        logger.info(
            f"Loaded {load_metrics.rows_loaded} rows from {load_metrics.files_loaded}/{len(paths)} files "
            f"({load_metrics.rows_skipped} lines skipped) in {load_metrics.total_time_ms:.1f}ms"
        )
        return LoadReport(self.table.size(), warnings)

    def load_rows(self, rows: Iterable) -> LoadReport:
        """Load rows that were parsed elsewhere, then freeze the table"""
        if self.table.frozen:
            raise TableFrozenError("Table already loaded; create a new engine to reload")
        self.table.append(rows)
        self.table.freeze()
        logger.info(f"Loaded {self.table.size()} pre-built rows")
        return LoadReport(self.table.size(), [])

    def load_directory(self, root: str, suffix: str = '.csv') -> LoadReport:
        """Recursively load every file under root ending with suffix"""
        if not os.path.isdir(root):
            message = f"Data directory not found: {root}"
            logger.warning(message)
            report = self.load_from_files([])
            return LoadReport(report.row_count, [message])

        paths = []
        for dirpath, _dirnames, filenames in os.walk(root):
            for filename in filenames:
                if filename.endswith(suffix):
                    paths.append(os.path.join(dirpath, filename))
        paths.sort()

        logger.info(f"Found {len(paths)} '{suffix}' files under {root}")
        return self.load_from_files(paths)

    def get_table_size(self) -> int:
        return self.table.size()

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def _plan(self, workers: Optional[int], serial: bool) -> Tuple[Dispatcher, int]:
        if serial:
            return SerialDispatcher(), 1
        if workers is not None and workers < 1:
            raise QueryError(f"workers must be >= 1, got {workers}")
        return self.dispatcher, workers if workers is not None else self.config.resolve_workers()

    def run_query(self, kind: Union[QueryKind, str], workers: Optional[int] = None,
                  serial: bool = False, **params) -> QueryResult:
        """
        Run one query over the loaded table

        Args:
            kind: QueryKind or its string value
            workers: Worker count override for this call
            serial: Run as a single partition in the calling thread
            **params: Query parameters, see REQUIRED_PARAMS

        Raises:
            QueryError: Unknown kind or missing parameters
            ReductionError: A worker failed
        """
        try:
            kind = QueryKind(kind)
        except ValueError:
            raise QueryError(f"Unknown query kind: {kind!r}") from None

        missing = [name for name in REQUIRED_PARAMS[kind] if name not in params]
        if missing:
            raise QueryError(f"{kind.value} query missing parameters: {', '.join(missing)}")

        dispatcher, worker_count = self._plan(workers, serial)
        rows = self.table.rows()
        partitions = partition(len(rows), worker_count)
        reducer = ParallelReducer(dispatcher)

        mode = 'serial' if serial else 'parallel'
        query_metrics = self.metrics.start_query(
            kind.value, mode, dispatcher.name, worker_count, len(partitions), len(rows)
        )

        success = False
        try:
            value = self._execute(kind, reducer, rows, partitions, params)
            success = True
        finally:
            self.metrics.end_query(query_metrics.query_id, success=success)

        logger.debug(
            f"{kind.value} over {len(rows)} rows, {len(partitions)} partitions "
            f"({mode}/{dispatcher.name}) in {query_metrics.total_time_ms:.2f}ms"
        )
        return QueryResult(
            kind=kind,
            value=value,
            rows_scanned=len(rows),
            partition_count=len(partitions),
            worker_count=worker_count,
            backend=dispatcher.name,
            elapsed_ms=query_metrics.total_time_ms,
        )

    def _execute(self, kind: QueryKind, reducer: ParallelReducer, rows, partitions, params) -> Any:
        if kind is QueryKind.EXACT_MATCH:
            return queries.exact_match(reducer, rows, partitions, params['key_fn'], params['target'])
        if kind is QueryKind.GROUPED_EXTREMUM:
            return queries.grouped_extremum(rows, params['key_fn'], params['value_fn'], params['threshold'])
        if kind is QueryKind.THRESHOLD_RANK:
            return queries.threshold_rank(
                reducer, rows, partitions, params['label_fn'], params['value_fn'], params['threshold'],
                top_k=params.get('top_k'), inclusive=params.get('inclusive', True)
            )
        if kind is QueryKind.SUM_AVERAGE:
            return queries.sum_average(reducer, rows, partitions, params['value_fn'])
        if kind is QueryKind.GROWTH_RATES:
            return queries.growth_rates(
                reducer, rows, partitions, params['label_fn'], params['lookup_fn'],
                params['start_key'], params['end_key']
            )
        return queries.custom(
            reducer, rows, partitions, params['per_row_op'], params['combine'], params['identity']
        )
