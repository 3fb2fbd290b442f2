"""
Parallel chunked reduction over in-memory tables loaded from delimited files
"""

from tablereduce.common.record_parser import parse_line
from tablereduce.common.schema import FieldSpec, Schema
from tablereduce.config import EngineConfig
from tablereduce.coordinator.engine import AnalyticsEngine, LoadReport, QueryKind, QueryResult
from tablereduce.exceptions import (
    LoadError,
    ParseSkip,
    QueryError,
    ReductionError,
    TableFrozenError,
    TableReduceError,
)

__version__ = "0.1.0"

__all__ = [
    'AnalyticsEngine',
    'EngineConfig',
    'FieldSpec',
    'LoadError',
    'LoadReport',
    'ParseSkip',
    'QueryError',
    'QueryKind',
    'QueryResult',
    'ReductionError',
    'Schema',
    'TableFrozenError',
    'TableReduceError',
    'parse_line',
]
