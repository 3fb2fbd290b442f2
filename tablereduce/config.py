"""
Engine configuration, read from the environment with CLI overrides on top
"""

import os
from dataclasses import dataclass, replace
from typing import Optional

from tablereduce.coordinator.partitioner import default_worker_count
from tablereduce.worker.dispatch import DISPATCHERS

DEFAULT_FALLBACK_WORKERS = 4
DEFAULT_BACKEND = 'pool'
DEFAULT_LOG_LEVEL = 'INFO'


@dataclass(frozen=True)
class EngineConfig:
    """
    Attributes:
        workers: Explicit worker count; None means the platform default
        fallback_workers: Worker count when the platform reports none
        backend: Dispatch strategy name ('serial', 'pool' or 'thread')
        log_level: Logging level name used by the CLI and scripts
    """
    workers: Optional[int] = None
    fallback_workers: int = DEFAULT_FALLBACK_WORKERS
    backend: str = DEFAULT_BACKEND
    log_level: str = DEFAULT_LOG_LEVEL

    def __post_init__(self):
        if self.workers is not None and self.workers < 1:
            raise ValueError(f"workers must be >= 1, got {self.workers}")
        if self.fallback_workers < 1:
            raise ValueError(f"fallback_workers must be >= 1, got {self.fallback_workers}")
        if self.backend not in DISPATCHERS:
            raise ValueError(f"Unknown backend '{self.backend}', expected one of {sorted(DISPATCHERS)}")

    @classmethod
    def from_env(cls) -> 'EngineConfig':
        workers = os.getenv('TABLEREDUCE_WORKERS')
        return cls(
            workers=int(workers) if workers else None,
            fallback_workers=int(os.getenv('TABLEREDUCE_FALLBACK_WORKERS', DEFAULT_FALLBACK_WORKERS)),
            backend=os.getenv('TABLEREDUCE_BACKEND', DEFAULT_BACKEND),
            log_level=os.getenv('TABLEREDUCE_LOG_LEVEL', DEFAULT_LOG_LEVEL).upper(),
        )

    def with_overrides(self, **overrides) -> 'EngineConfig':
        """Copy with every non-None override applied"""
        return replace(self, **{k: v for k, v in overrides.items() if v is not None})

    def resolve_workers(self) -> int:
        if self.workers is not None:
            return self.workers
        return default_worker_count(self.fallback_workers)
