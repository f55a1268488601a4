"""Abstract repository for Order aggregate."""

from __future__ import annotations

from abc import ABC, abstractmethod

from storefront.domain.model.order import Order


class OrderRepository(ABC):

    @abstractmethod
    def get_by_id(self, order_id: int) -> Order | None:
        """Return an order by its ID, or None if not found."""

    def get_for_user(self, order_id: int, user_id: str) -> Order | None:
        """Return the order only if it belongs to *user_id*."""
        order = self.get_by_id(order_id)
        if order is None or order.user_id != user_id:
            return None
        return order

    @abstractmethod
    def get_by_item_id(self, item_id: int) -> Order | None:
        """Return the order that owns the given line item, or None."""

    @abstractmethod
    def get_by_gateway_order_id(self, gateway_order_id: str) -> Order | None:
        """Return the order whose payment session used this identifier."""

    @abstractmethod
    def list_for_user(self, user_id: str) -> list[Order]:
        """Return the user's orders, newest first."""

    @abstractmethod
    def save(self, order: Order) -> None:
        """Persist a new or updated order.

        Assigns ``order.id`` and the ids of new line items.
        """

    @abstractmethod
    def delete(self, order: Order) -> None:
        """Remove the order together with its line items."""
