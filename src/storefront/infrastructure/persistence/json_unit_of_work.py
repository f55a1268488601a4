"""JSON-file-backed unit of work.

Each unit of work loads ``products.json``, ``orders.json`` and
``sequences.json`` into memory, lets the repositories work on that copy,
and writes the touched files back on ``commit()``.  Abandoning the unit
of work drops the in-memory copy, except for id counters: an id handed
out inside a rolled-back unit of work stays used.

Units of work on the same data directory are serialized across threads
and processes by an exclusive ``flock`` on ``.storefront.lock``, held
from ``__enter__`` to ``__exit__``, so a stock check and the decrement
that follows it can never interleave with another request.
"""

from __future__ import annotations

import fcntl
import os
from pathlib import Path
from typing import IO

from storefront.domain.repository.unit_of_work import UnitOfWork
from storefront.infrastructure.persistence.json_order_repository import (
    JsonOrderRepository,
)
from storefront.infrastructure.persistence.json_product_repository import (
    JsonProductRepository,
)
from storefront.infrastructure.persistence.json_table import JsonSequences, JsonTable

LOCK_FILE_NAME = ".storefront.lock"


class JsonUnitOfWork(UnitOfWork):

    def __init__(self, data_dir: Path) -> None:
        self._data_dir = data_dir
        self._lock_file: IO[str] | None = None
        self._products_table = JsonTable(data_dir / "products.json")
        self._orders_table = JsonTable(data_dir / "orders.json")
        self._sequences_table = JsonTable(data_dir / "sequences.json")
        self.products = JsonProductRepository(self._products_table)
        self.orders = JsonOrderRepository(
            self._orders_table, JsonSequences(self._sequences_table)
        )

    def commit(self) -> None:
        self._write(self._products_table, self._orders_table, self._sequences_table)

    def rollback(self) -> None:
        self._write(self._sequences_table)
        for table in self._tables():
            table.discard()

    def _write(self, *tables: JsonTable) -> None:
        # Stage every file first so a serialization error cannot leave
        # one table written and the other not.
        staged: list[tuple[Path, JsonTable]] = []
        try:
            for table in tables:
                tmp = table.stage()
                if tmp is not None:
                    staged.append((tmp, table))
            for tmp, table in staged:
                os.replace(tmp, table.file_path)
                table.dirty = False
        finally:
            # Replaced files are already gone; anything left is a stray.
            for tmp, _ in staged:
                tmp.unlink(missing_ok=True)

    def _tables(self) -> tuple[JsonTable, ...]:
        return (self._products_table, self._orders_table, self._sequences_table)

    def _begin(self) -> None:
        self._data_dir.mkdir(parents=True, exist_ok=True)
        lock_file = open(self._data_dir / LOCK_FILE_NAME, "w")
        try:
            fcntl.flock(lock_file.fileno(), fcntl.LOCK_EX)
            for table in self._tables():
                table.load()
        except BaseException:
            lock_file.close()
            raise
        self._lock_file = lock_file

    def _end(self) -> None:
        lock_file, self._lock_file = self._lock_file, None
        if lock_file is None:
            return
        try:
            fcntl.flock(lock_file.fileno(), fcntl.LOCK_UN)
        finally:
            lock_file.close()
