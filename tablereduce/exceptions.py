"""
Exception hierarchy for the table reduction engine.
"""


class TableReduceError(Exception):
    """Base class for engine errors"""


class ParseSkip(TableReduceError):
    """A line could not be turned into a row and is dropped from the load"""


class TableFrozenError(TableReduceError):
    """Raised when rows are appended to a table that has finished loading"""


class QueryError(TableReduceError, ValueError):
    """Unknown query kind or missing query parameters"""


class ReductionError(TableReduceError, RuntimeError):
    """A worker failed and the whole reduction was abandoned"""


class LoadError(TableReduceError, RuntimeError):
    """A loader worker failed; the partial load was discarded"""
