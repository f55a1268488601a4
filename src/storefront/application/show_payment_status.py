"""Application service: Show Payment Status use case (query)."""

from __future__ import annotations

from storefront.application.dto import PaymentStatusDTO
from storefront.application.mapping import payment_status_to_dto
from storefront.domain.exceptions import EntityNotFoundError
from storefront.domain.repository.unit_of_work import UnitOfWorkFactory


class ShowPaymentStatusHandler:

    def __init__(self, uow_factory: UnitOfWorkFactory) -> None:
        self._uow_factory = uow_factory

    def handle(self, order_id: int, user_id: str) -> PaymentStatusDTO:
        with self._uow_factory() as uow:
            order = uow.orders.get_for_user(order_id, user_id)
        if order is None:
            raise EntityNotFoundError(f"Order #{order_id} not found")
        return payment_status_to_dto(order)
