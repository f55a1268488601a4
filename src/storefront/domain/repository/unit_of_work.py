"""Abstract unit of work.

A unit of work groups every repository change made by one use case into
a single atomic commit.  Handlers use it as a context manager::

    with uow:
        ...
        uow.commit()

Leaving the block without calling ``commit()`` (normally, or because an
exception escaped) discards every change made inside it.  Implementations
must also serialize concurrent units of work that touch the same data so
read-then-write sequences (stock check + decrement) cannot interleave.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Callable

from storefront.domain.repository.order_repository import OrderRepository
from storefront.domain.repository.product_repository import ProductRepository


class UnitOfWork(ABC):

    products: ProductRepository
    orders: OrderRepository

    def __enter__(self) -> UnitOfWork:
        self._begin()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        try:
            self.rollback()
        finally:
            self._end()

    @abstractmethod
    def commit(self) -> None:
        """Make every change since ``__enter__`` durable."""

    @abstractmethod
    def rollback(self) -> None:
        """Discard uncommitted changes.  A no-op after ``commit()``."""

    def _begin(self) -> None:
        """Hook: acquire locks / load state."""

    def _end(self) -> None:
        """Hook: release whatever ``_begin`` acquired."""


UnitOfWorkFactory = Callable[[], UnitOfWork]
