"""Tests for line-item maintenance on pending orders."""

import pytest

from storefront.application.checkout import CheckoutHandler
from storefront.application.complete_payment import CompletePaymentHandler
from storefront.application.dto import OrderItemSpec
from storefront.application.order_items import (
    AddOrderItemHandler,
    RemoveOrderItemHandler,
    UpdateOrderItemHandler,
)
from storefront.domain.exceptions import (
    EntityNotFoundError,
    InsufficientStockError,
    InvalidStateError,
    ValidationError,
)
from storefront.domain.model.product import Product
from storefront.domain.model.value_objects import Money
from storefront.domain.service.payment_gateway import Buyer
from tests.fakes import FakePaymentGateway, FakeUnitOfWork


def _setup() -> tuple[FakeUnitOfWork, int, int]:
    """Check out 2 Widgets; return (uow, order_id, item_id)."""
    uow = FakeUnitOfWork([
        Product(id="1", name="Widget", price=Money.of("10.00"), stock=5),
        Product(id="2", name="Gadget", price=Money.of("2.50"), stock=4),
    ])
    checkout = CheckoutHandler(lambda: uow, FakePaymentGateway(), clock=lambda: 1_700_000_000)
    result = checkout.handle(Buyer("user-1"), [OrderItemSpec("1", 2)])
    return uow, result.order.id, result.order.items[0].id


class TestAddItem:

    def test_reserves_and_appends(self):
        uow, order_id, _ = _setup()
        dto = AddOrderItemHandler(lambda: uow).handle(order_id, "user-1", "2", 3)

        assert len(dto.items) == 2
        assert dto.items[1].subtotal == "7.50"
        assert dto.total_price == "27.50"
        assert uow.stock_of("2") == 1

    def test_insufficient_stock(self):
        uow, order_id, _ = _setup()
        with pytest.raises(InsufficientStockError):
            AddOrderItemHandler(lambda: uow).handle(order_id, "user-1", "2", 5)
        assert uow.stock_of("2") == 4
        assert len(uow.orders.get_by_id(order_id).items) == 1

    def test_zero_quantity_rejected(self):
        uow, order_id, _ = _setup()
        with pytest.raises(ValidationError):
            AddOrderItemHandler(lambda: uow).handle(order_id, "user-1", "2", 0)

    def test_paid_order_rejected_without_stock_change(self):
        uow, order_id, _ = _setup()
        CompletePaymentHandler(lambda: uow).handle(order_id, "user-1")
        with pytest.raises(InvalidStateError):
            AddOrderItemHandler(lambda: uow).handle(order_id, "user-1", "2", 1)
        assert uow.stock_of("2") == 4


class TestUpdateItem:

    def test_increase_reserves_difference(self):
        uow, _, item_id = _setup()
        dto = UpdateOrderItemHandler(lambda: uow).handle(item_id, "user-1", 5)

        assert dto.items[0].quantity == 5
        assert dto.items[0].subtotal == "50.00"
        assert uow.stock_of("1") == 0

    def test_decrease_releases_difference(self):
        uow, _, item_id = _setup()
        UpdateOrderItemHandler(lambda: uow).handle(item_id, "user-1", 1)
        assert uow.stock_of("1") == 4

    def test_increase_beyond_stock_changes_nothing(self):
        uow, order_id, item_id = _setup()
        with pytest.raises(InsufficientStockError):
            UpdateOrderItemHandler(lambda: uow).handle(item_id, "user-1", 6)
        assert uow.stock_of("1") == 3
        assert uow.orders.get_by_id(order_id).items[0].quantity.value == 2

    def test_other_users_item_not_found(self):
        uow, _, item_id = _setup()
        with pytest.raises(EntityNotFoundError):
            UpdateOrderItemHandler(lambda: uow).handle(item_id, "user-2", 1)


class TestRemoveItem:

    def test_releases_stock(self):
        uow, order_id, item_id = _setup()
        dto = RemoveOrderItemHandler(lambda: uow).handle(item_id, "user-1")

        assert dto.items == []
        assert dto.total_price == "0.00"
        assert uow.stock_of("1") == 5

    def test_unknown_item(self):
        uow, _, _ = _setup()
        with pytest.raises(EntityNotFoundError):
            RemoveOrderItemHandler(lambda: uow).handle(999, "user-1")
