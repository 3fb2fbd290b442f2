"""
Dispatch strategies: run N independent tasks, join them, return their results.

Every strategy returns results in task order and re-raises the first task
failure only after all tasks have been joined.
"""

import logging
import threading
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Callable, Dict, List, Sequence

logger = logging.getLogger(__name__)

Task = Callable[[], Any]


class Dispatcher:
    """Base class for worker dispatch strategies"""

    name = 'base'

    def run(self, tasks: Sequence[Task]) -> List[Any]:
        raise NotImplementedError


class SerialDispatcher(Dispatcher):
    """Runs every task in the calling thread"""

    name = 'serial'

    def run(self, tasks: Sequence[Task]) -> List[Any]:
        return [task() for task in tasks]


class PoolDispatcher(Dispatcher):
    """Fresh thread pool per call, sized to the number of tasks"""

    name = 'pool'

    def run(self, tasks: Sequence[Task]) -> List[Any]:
        if not tasks:
            return []

        with ThreadPoolExecutor(max_workers=len(tasks), thread_name_prefix='tablereduce') as executor:
            futures = [executor.submit(task) for task in tasks]

        # Leaving the with-block joined every worker
        errors = [f.exception() for f in futures if f.exception() is not None]
        if errors:
            raise errors[0]
        return [f.result() for f in futures]


class ThreadDispatcher(Dispatcher):
    """One explicit threading.Thread per task, joined in order"""

    name = 'thread'

    def run(self, tasks: Sequence[Task]) -> List[Any]:
        results: List[Any] = [None] * len(tasks)
        errors: List[BaseException] = []
        errors_lock = threading.Lock()

        def worker(index: int, task: Task):
            try:
                results[index] = task()
            except Exception as e:
                with errors_lock:
                    errors.append(e)

        threads = [
            threading.Thread(target=worker, args=(i, task), name=f'tablereduce-{i}')
            for i, task in enumerate(tasks)
        ]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        if errors:
            raise errors[0]
        return results


DISPATCHERS: Dict[str, type] = {
    SerialDispatcher.name: SerialDispatcher,
    PoolDispatcher.name: PoolDispatcher,
    ThreadDispatcher.name: ThreadDispatcher,
}


def get_dispatcher(name: str) -> Dispatcher:
    """
    Resolve a dispatcher by backend name

    Raises:
        ValueError: If the backend name is unknown
    """
    try:
        return DISPATCHERS[name]()
    except KeyError:
        raise ValueError(
            f"Unknown backend '{name}', expected one of {sorted(DISPATCHERS)}"
        ) from None
