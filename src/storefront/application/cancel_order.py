"""Application service: Cancel Order use case.

Releases the stock held by every line item, then moves the order to
cancelled / failed.  Paid orders cannot be cancelled, and an order that
is already cancelled is rejected so its stock is never released twice.
"""

from __future__ import annotations

import structlog

from storefront.application.dto import OrderDTO
from storefront.application.mapping import order_to_dto
from storefront.domain.exceptions import EntityNotFoundError
from storefront.domain.repository.unit_of_work import UnitOfWorkFactory
from storefront.domain.service.stock_ledger import StockLedger

logger = structlog.get_logger(__name__)


class CancelOrderHandler:

    def __init__(self, uow_factory: UnitOfWorkFactory) -> None:
        self._uow_factory = uow_factory

    def handle(self, order_id: int, user_id: str) -> OrderDTO:
        with self._uow_factory() as uow:
            order = uow.orders.get_for_user(order_id, user_id)
            if order is None:
                raise EntityNotFoundError(f"Order #{order_id} not found")

            # Validate the transition before touching stock.
            order.cancel()
            StockLedger(uow.products).release_for_order(order)

            uow.orders.save(order)
            uow.commit()

        logger.info("order_cancelled", order_id=order_id, user_id=user_id)
        return order_to_dto(order)
