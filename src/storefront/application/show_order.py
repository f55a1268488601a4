"""Application service: Show Order / List Orders use cases (queries)."""

from __future__ import annotations

from storefront.application.dto import OrderDTO
from storefront.application.mapping import order_to_dto
from storefront.domain.exceptions import EntityNotFoundError
from storefront.domain.repository.unit_of_work import UnitOfWorkFactory


class ShowOrderHandler:

    def __init__(self, uow_factory: UnitOfWorkFactory) -> None:
        self._uow_factory = uow_factory

    def handle(self, order_id: int, user_id: str) -> OrderDTO:
        with self._uow_factory() as uow:
            order = uow.orders.get_for_user(order_id, user_id)
        if order is None:
            raise EntityNotFoundError(f"Order #{order_id} not found")
        return order_to_dto(order)


class ListOrdersHandler:

    def __init__(self, uow_factory: UnitOfWorkFactory) -> None:
        self._uow_factory = uow_factory

    def handle(self, user_id: str) -> list[OrderDTO]:
        with self._uow_factory() as uow:
            orders = uow.orders.list_for_user(user_id)
        return [order_to_dto(order) for order in orders]
