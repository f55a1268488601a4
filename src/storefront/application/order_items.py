"""Application services: maintain the line items of a pending order.

Each change keeps the stock ledger in step with the order: adding an
item reserves its quantity, changing a quantity reserves (or releases)
the difference, and removing an item releases its quantity.  Items can
only be changed while the order is pending and unpaid.
"""

from __future__ import annotations

from storefront.application.dto import OrderDTO
from storefront.application.mapping import order_to_dto
from storefront.domain.exceptions import EntityNotFoundError
from storefront.domain.model.order import Order, OrderLineItem
from storefront.domain.model.value_objects import Quantity
from storefront.domain.repository.order_repository import OrderRepository
from storefront.domain.repository.unit_of_work import UnitOfWorkFactory
from storefront.domain.service.stock_ledger import StockLedger


def _owned_order_for_item(orders: OrderRepository, item_id: int, user_id: str) -> Order:
    order = orders.get_by_item_id(item_id)
    if order is None or order.user_id != user_id:
        raise EntityNotFoundError(f"Order item #{item_id} not found")
    return order


class AddOrderItemHandler:

    def __init__(self, uow_factory: UnitOfWorkFactory) -> None:
        self._uow_factory = uow_factory

    def handle(self, order_id: int, user_id: str, product_id: str, quantity: int) -> OrderDTO:
        qty = Quantity(quantity)
        with self._uow_factory() as uow:
            order = uow.orders.get_for_user(order_id, user_id)
            if order is None:
                raise EntityNotFoundError(f"Order #{order_id} not found")

            product = StockLedger(uow.products).reserve(product_id, qty.value)
            order.add_item(
                OrderLineItem(
                    product_id=product.id,
                    product_name=product.name,
                    quantity=qty,
                    unit_price=product.price,
                )
            )
            uow.orders.save(order)
            uow.commit()
        return order_to_dto(order)


class UpdateOrderItemHandler:

    def __init__(self, uow_factory: UnitOfWorkFactory) -> None:
        self._uow_factory = uow_factory

    def handle(self, item_id: int, user_id: str, quantity: int) -> OrderDTO:
        qty = Quantity(quantity)
        with self._uow_factory() as uow:
            order = _owned_order_for_item(uow.orders, item_id, user_id)
            item = order.find_item(item_id)
            old_quantity = item.quantity.value

            order.change_item_quantity(item_id, qty)
            StockLedger(uow.products).adjust(item.product_id, old_quantity, qty.value)

            uow.orders.save(order)
            uow.commit()
        return order_to_dto(order)


class RemoveOrderItemHandler:

    def __init__(self, uow_factory: UnitOfWorkFactory) -> None:
        self._uow_factory = uow_factory

    def handle(self, item_id: int, user_id: str) -> OrderDTO:
        with self._uow_factory() as uow:
            order = _owned_order_for_item(uow.orders, item_id, user_id)
            item = order.remove_item(item_id)
            StockLedger(uow.products).release(item.product_id, item.quantity.value)

            uow.orders.save(order)
            uow.commit()
        return order_to_dto(order)
