"""Application service: Complete Payment use case.

Manual (or simulated) settlement of an unpaid order, for flows where no
gateway notification will arrive.
"""

from __future__ import annotations

import time
from typing import Callable

import structlog

from storefront.application.dto import OrderDTO
from storefront.application.mapping import order_to_dto
from storefront.domain.exceptions import EntityNotFoundError
from storefront.domain.repository.unit_of_work import UnitOfWorkFactory

logger = structlog.get_logger(__name__)


class CompletePaymentHandler:

    def __init__(
        self,
        uow_factory: UnitOfWorkFactory,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._uow_factory = uow_factory
        self._clock = clock

    def handle(
        self,
        order_id: int,
        user_id: str,
        payment_type: str | None = None,
        transaction_id: str | None = None,
    ) -> OrderDTO:
        with self._uow_factory() as uow:
            order = uow.orders.get_for_user(order_id, user_id)
            if order is None:
                raise EntityNotFoundError(f"Order #{order_id} not found")

            order.complete(
                payment_type=payment_type,
                transaction_id=transaction_id or f"manual-{int(self._clock())}",
            )
            uow.orders.save(order)
            uow.commit()

        logger.info(
            "order_payment_completed",
            order_id=order_id,
            payment_type=order.payment_type,
            transaction_id=order.transaction_id,
        )
        return order_to_dto(order)
