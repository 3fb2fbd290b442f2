"""
Table Store
Append-only in-memory row collection. Loaders append concurrently under a
lock; once frozen, the rows are shared read-only with every query worker.
"""

import threading
from typing import Iterable, Iterator, Sequence

from tablereduce.exceptions import TableFrozenError


class TableStore:
    """Ordered, append-only collection of immutable rows"""

    def __init__(self):
        self._rows = []
        self._frozen = False
        self.lock = threading.Lock()

    def append(self, rows: Iterable) -> int:
        """
        Append a batch of rows as one unit

        Returns:
            Number of rows appended

        Raises:
            TableFrozenError: If the table has already been frozen
        """
        batch = list(rows)
        with self.lock:
            if self._frozen:
                raise TableFrozenError("Cannot append to a frozen table")
            self._rows.extend(batch)
        return len(batch)

    def freeze(self):
        """Finish loading; the table is read-only from here on"""
        with self.lock:
            if not self._frozen:
                self._rows = tuple(self._rows)
                self._frozen = True

    @property
    def frozen(self) -> bool:
        return self._frozen

    def size(self) -> int:
        return len(self._rows)

    def row_at(self, index: int):
        return self._rows[index]

    def iterate(self) -> Iterator:
        return iter(self._rows)

    def rows(self) -> Sequence:
        """Indexed read-only view of all rows (a tuple once frozen)"""
        if self._frozen:
            return self._rows
        with self.lock:
            return tuple(self._rows)

    def __len__(self):
        return self.size()

    def __iter__(self):
        return self.iterate()

    def __getitem__(self, index):
        return self.row_at(index)
