"""Tests for the webhook reconciler (Payment Notification use case)."""

import pytest

from storefront.application.checkout import CheckoutHandler
from storefront.application.dto import OrderItemSpec, PaymentNotification
from storefront.application.handle_payment_notification import (
    OUTCOME_FAILED,
    OUTCOME_IGNORED,
    OUTCOME_PAID,
    OUTCOME_PENDING,
    OUTCOME_UNCHANGED,
    PaymentNotificationHandler,
    target_payment_status,
)
from storefront.domain.exceptions import (
    EntityNotFoundError,
    InvalidSignatureError,
    PaymentGatewayError,
    ValidationError,
)
from storefront.domain.model.order import Order, OrderLineItem, OrderStatus, PaymentStatus
from storefront.domain.model.product import Product
from storefront.domain.model.value_objects import Money, Quantity
from storefront.domain.service.payment_gateway import Buyer
from tests.fakes import FakePaymentGateway, FakeUnitOfWork, notification_payload


def _setup(items: list[OrderItemSpec] | None = None):
    """Check out one order and return (handler, uow, order_id, gateway_order_id)."""
    uow = FakeUnitOfWork([
        Product(id="1", name="Widget", price=Money.of("10.00"), stock=5),
        Product(id="2", name="Gadget", price=Money.of("2.50"), stock=10),
    ])
    gateway = FakePaymentGateway()
    checkout = CheckoutHandler(lambda: uow, gateway, clock=lambda: 1_700_000_000)
    result = checkout.handle(Buyer("user-1"), items or [OrderItemSpec("1", 3)])
    order = uow.orders.get_by_id(result.order.id)
    handler = PaymentNotificationHandler(lambda: uow, gateway)
    return handler, uow, order.id, order.gateway_order_id


def _notify(handler, gateway_order_id, status, **kwargs):
    payload = notification_payload(gateway_order_id, status, **kwargs)
    return handler.handle(PaymentNotification.from_payload(payload))


class TestStatusMapping:

    @pytest.mark.parametrize("status, fraud, expected", [
        ("settlement", None, PaymentStatus.PAID),
        ("capture", "accept", PaymentStatus.PAID),
        ("capture", "challenge", None),
        ("capture", None, None),
        ("pending", None, PaymentStatus.UNPAID),
        ("deny", None, PaymentStatus.FAILED),
        ("expire", None, PaymentStatus.FAILED),
        ("cancel", None, PaymentStatus.FAILED),
        ("refund", None, None),
    ])
    def test_target_payment_status(self, status, fraud, expected):
        assert target_payment_status(status, fraud) == expected


class TestSettlement:

    def test_settlement_marks_paid(self):
        handler, uow, order_id, gid = _setup()
        result = _notify(handler, gid, "settlement", payment_type="gopay", transaction_id="txn-42")

        assert result.outcome == OUTCOME_PAID
        order = uow.orders.get_by_id(order_id)
        assert order.payment_status == PaymentStatus.PAID
        assert order.status == OrderStatus.COMPLETED
        assert order.payment_type == "gopay"
        assert order.transaction_id == "txn-42"
        assert uow.stock_of("1") == 2

    def test_capture_accept_marks_paid(self):
        handler, uow, order_id, gid = _setup()
        result = _notify(handler, gid, "capture", fraud_status="accept")
        assert result.outcome == OUTCOME_PAID
        assert uow.orders.get_by_id(order_id).is_paid

    def test_capture_challenge_ignored(self):
        handler, uow, order_id, gid = _setup()
        result = _notify(handler, gid, "capture", fraud_status="challenge")
        assert result.outcome == OUTCOME_IGNORED
        assert uow.orders.get_by_id(order_id).payment_status == PaymentStatus.UNPAID

    @pytest.mark.parametrize("status, fraud", [
        ("capture", "challenge"),
        ("authorize", None),
        ("refund", None),
    ])
    def test_ignored_status_still_records_payment_details(self, status, fraud):
        handler, uow, order_id, gid = _setup()
        result = _notify(
            handler, gid, status,
            fraud_status=fraud, payment_type="credit_card", transaction_id="tx-42",
        )

        assert result.outcome == OUTCOME_IGNORED
        order = uow.orders.get_by_id(order_id)
        assert order.payment_type == "credit_card"
        assert order.transaction_id == "tx-42"
        assert order.payment_status == PaymentStatus.UNPAID
        assert uow.stock_of("1") == 2

    def test_ignored_status_on_paid_order_keeps_details(self):
        handler, uow, order_id, gid = _setup()
        _notify(handler, gid, "settlement", payment_type="gopay", transaction_id="txn-1")
        result = _notify(handler, gid, "refund", payment_type="credit_card", transaction_id="tx-42")

        assert result.outcome == OUTCOME_IGNORED
        order = uow.orders.get_by_id(order_id)
        assert order.payment_type == "gopay"
        assert order.transaction_id == "txn-1"


class TestFailure:

    def test_expire_releases_every_line(self):
        handler, uow, order_id, gid = _setup([OrderItemSpec("1", 2), OrderItemSpec("2", 4)])
        assert uow.stock_of("1") == 3
        assert uow.stock_of("2") == 6

        result = _notify(handler, gid, "expire", gross_amount="30.00")

        assert result.outcome == OUTCOME_FAILED
        order = uow.orders.get_by_id(order_id)
        assert order.payment_status == PaymentStatus.FAILED
        assert order.status == OrderStatus.CANCELLED
        assert uow.stock_of("1") == 5
        assert uow.stock_of("2") == 10

    @pytest.mark.parametrize("status", ["deny", "cancel"])
    def test_other_failure_statuses(self, status):
        handler, uow, _, gid = _setup()
        assert _notify(handler, gid, status).outcome == OUTCOME_FAILED
        assert uow.stock_of("1") == 5


class TestReplay:

    def test_expire_replay_releases_once(self):
        handler, uow, _, gid = _setup()
        _notify(handler, gid, "expire")
        result = _notify(handler, gid, "expire")

        assert result.outcome == OUTCOME_UNCHANGED
        assert uow.stock_of("1") == 5

    def test_late_failure_after_paid_is_unchanged(self):
        handler, uow, order_id, gid = _setup()
        _notify(handler, gid, "settlement", transaction_id="txn-1")
        result = _notify(handler, gid, "expire", transaction_id="txn-2")

        assert result.outcome == OUTCOME_UNCHANGED
        order = uow.orders.get_by_id(order_id)
        assert order.is_paid
        assert order.transaction_id == "txn-1"
        assert uow.stock_of("1") == 2

    def test_pending_is_noop(self):
        handler, uow, order_id, gid = _setup()
        result = _notify(handler, gid, "pending")
        assert result.outcome == OUTCOME_PENDING
        assert uow.orders.get_by_id(order_id).payment_status == PaymentStatus.UNPAID


class TestRejections:

    def test_invalid_signature_changes_nothing(self):
        handler, uow, order_id, gid = _setup()
        payload = notification_payload(gid, "settlement")
        payload["signature_key"] = "0" * 128

        with pytest.raises(InvalidSignatureError, match="Invalid signature key"):
            handler.handle(PaymentNotification.from_payload(payload))
        assert uow.orders.get_by_id(order_id).payment_status == PaymentStatus.UNPAID

    def test_signature_from_other_key_rejected(self):
        handler, _, _, gid = _setup()
        with pytest.raises(InvalidSignatureError):
            _notify(handler, gid, "settlement", server_key="someone-else")

    def test_unknown_order(self):
        handler, _, _, _ = _setup()
        with pytest.raises(EntityNotFoundError, match="Order not found"):
            _notify(handler, "999-1700000000", "settlement")

    def test_falls_back_to_local_order_id_without_stored_identifier(self):
        handler, uow, _, _ = _setup()
        order = Order.open("user-2")
        order.add_item(OrderLineItem("2", "Gadget", Quantity(1), Money.of("2.50")))
        uow.orders.save(order)

        result = _notify(handler, f"{order.id}-1600000000", "settlement", gross_amount="2.50")

        assert result.order_id == order.id
        assert uow.orders.get_by_id(order.id).is_paid

    def test_identifier_of_another_attempt_is_not_resolved_by_prefix(self):
        handler, uow, order_id, gid = _setup()
        assert gid == f"{order_id}-1700000000"

        with pytest.raises(EntityNotFoundError, match="Order not found"):
            _notify(handler, f"{order_id}-1600000000", "expire")

        order = uow.orders.get_by_id(order_id)
        assert order.payment_status == PaymentStatus.UNPAID
        assert order.status == OrderStatus.PENDING
        assert uow.stock_of("1") == 2


class TestReusedOrderIds:

    def test_stale_notification_after_gateway_timeout_rollback(self):
        uow = FakeUnitOfWork([Product(id="1", name="Widget", price=Money.of("10.00"), stock=5)])
        gateway = FakePaymentGateway(fail_with="Payment gateway timed out")
        clock = iter([100, 200])
        checkout = CheckoutHandler(lambda: uow, gateway, clock=lambda: next(clock))

        with pytest.raises(PaymentGatewayError):
            checkout.handle(Buyer("alice"), [OrderItemSpec("1", 1)])
        assert gateway.requests[0].gateway_order_id == "1-100"

        gateway.fail_with = None
        result = checkout.handle(Buyer("bob"), [OrderItemSpec("1", 3)])
        bob_order = uow.orders.get_by_id(result.order.id)
        assert bob_order.id == 1
        assert bob_order.gateway_order_id == "1-200"

        handler = PaymentNotificationHandler(lambda: uow, gateway)
        with pytest.raises(EntityNotFoundError, match="Order not found"):
            _notify(handler, "1-100", "expire", gross_amount="10.00")

        bob_order = uow.orders.get_by_id(result.order.id)
        assert bob_order.payment_status == PaymentStatus.UNPAID
        assert bob_order.status == OrderStatus.PENDING
        assert uow.stock_of("1") == 2

    def test_stale_notification_for_order_holding_a_reused_id(self):
        handler, uow, _, _ = _setup()
        bob_order = Order(id=7, user_id="bob", gateway_order_id="7-200")
        bob_order.add_item(OrderLineItem("2", "Gadget", Quantity(4), Money.of("2.50")))
        uow.orders.save(bob_order)

        with pytest.raises(EntityNotFoundError, match="Order not found"):
            _notify(handler, "7-100", "expire", gross_amount="10.00")

        stored = uow.orders.get_by_id(7)
        assert stored.payment_status == PaymentStatus.UNPAID
        assert stored.status == OrderStatus.PENDING
        assert uow.stock_of("2") == 10


class TestNotificationPayload:

    def test_missing_fields_reported(self):
        with pytest.raises(ValidationError) as exc_info:
            PaymentNotification.from_payload({"order_id": "1-1"})
        assert exc_info.value.errors["signature_key"] == ["The signature key field is required."]
        assert "order_id" not in exc_info.value.errors

    def test_non_object_rejected(self):
        with pytest.raises(ValidationError):
            PaymentNotification.from_payload(["settlement"])

    def test_numeric_values_coerced_to_strings(self):
        payload = notification_payload("1-1", "settlement")
        payload["status_code"] = 200
        notification = PaymentNotification.from_payload(payload)
        assert notification.status_code == "200"
