"""Application service: Delete Order use case.

Only pending orders can be deleted.  Deleting removes every line item
with the order; an unpaid order still holds its reserved stock, which
is released first.
"""

from __future__ import annotations

import structlog

from storefront.domain.exceptions import EntityNotFoundError
from storefront.domain.repository.unit_of_work import UnitOfWorkFactory
from storefront.domain.service.stock_ledger import StockLedger

logger = structlog.get_logger(__name__)


class DeleteOrderHandler:

    def __init__(self, uow_factory: UnitOfWorkFactory) -> None:
        self._uow_factory = uow_factory

    def handle(self, order_id: int, user_id: str) -> None:
        with self._uow_factory() as uow:
            order = uow.orders.get_for_user(order_id, user_id)
            if order is None:
                raise EntityNotFoundError(f"Order #{order_id} not found")

            order.ensure_deletable()
            if order.is_payment_pending:
                StockLedger(uow.products).release_for_order(order)

            uow.orders.delete(order)
            uow.commit()

        logger.info("order_deleted", order_id=order_id, user_id=user_id)
