"""Application service: Payment Notification use case (webhook reconciler).

Maps an asynchronous provider notification onto the order's payment
state machine::

    unpaid --capture(accept)/settlement--> paid       (order completed)
    unpaid --deny/expire/cancel----------> failed     (order cancelled,
                                                       stock released)
    unpaid --pending---------------------> unpaid     (no-op)

PAID and FAILED are terminal.  Providers redeliver notifications, so a
notification for an order that is already terminal is acknowledged
without touching its status or its stock.  The check and the transition
run inside one unit of work, which serializes concurrent deliveries.
"""

from __future__ import annotations

import structlog

from storefront.application.dto import NotificationResultDTO, PaymentNotification
from storefront.domain.exceptions import EntityNotFoundError, InvalidSignatureError
from storefront.domain.model.order import Order, PaymentStatus
from storefront.domain.repository.order_repository import OrderRepository
from storefront.domain.repository.unit_of_work import UnitOfWorkFactory
from storefront.domain.service.payment_gateway import PaymentGateway, local_order_id
from storefront.domain.service.stock_ledger import StockLedger

logger = structlog.get_logger(__name__)

OUTCOME_PAID = "paid"
OUTCOME_FAILED = "failed"
OUTCOME_PENDING = "pending"
OUTCOME_IGNORED = "ignored"
OUTCOME_UNCHANGED = "unchanged"

_FAILURE_STATUSES = frozenset({"deny", "expire", "cancel"})


def target_payment_status(
    transaction_status: str, fraud_status: str | None
) -> PaymentStatus | None:
    """Translate a provider transaction status; None means "no rule"."""
    status = transaction_status.strip().lower()
    if status == "capture":
        if (fraud_status or "").strip().lower() == "accept":
            return PaymentStatus.PAID
        return None
    if status == "settlement":
        return PaymentStatus.PAID
    if status == "pending":
        return PaymentStatus.UNPAID
    if status in _FAILURE_STATUSES:
        return PaymentStatus.FAILED
    return None


class PaymentNotificationHandler:

    def __init__(
        self,
        uow_factory: UnitOfWorkFactory,
        payment_gateway: PaymentGateway,
    ) -> None:
        self._uow_factory = uow_factory
        self._payment_gateway = payment_gateway

    def handle(self, notification: PaymentNotification) -> NotificationResultDTO:
        log = logger.bind(
            gateway_order_id=notification.order_id,
            transaction_status=notification.transaction_status,
        )

        if not self._payment_gateway.verify_signature(
            notification.order_id,
            notification.status_code,
            notification.gross_amount,
            notification.signature_key,
        ):
            log.error("webhook_signature_invalid")
            raise InvalidSignatureError("Invalid signature key")

        with self._uow_factory() as uow:
            order = self._resolve_order(uow.orders, notification.order_id)
            if order is None:
                log.error("webhook_order_not_found")
                raise EntityNotFoundError("Order not found")

            outcome = self._apply(order, notification, StockLedger(uow.products))

            uow.orders.save(order)
            uow.commit()

        log.info(
            "webhook_processed",
            order_id=order.id,
            outcome=outcome,
            status=order.status.value,
            payment_status=order.payment_status.value,
        )
        return NotificationResultDTO(
            order_id=order.id,  # type: ignore[arg-type]
            outcome=outcome,
            status=order.status.value,
            payment_status=order.payment_status.value,
        )

    @staticmethod
    def _apply(order: Order, notification: PaymentNotification, ledger: StockLedger) -> str:
        target = target_payment_status(notification.transaction_status, notification.fraud_status)

        if order.is_terminal:
            # Redelivery (or a late notification) for a settled order; the
            # details it settled with are kept.
            if target is None:
                return OUTCOME_IGNORED
            logger.info(
                "webhook_transition_skipped",
                order_id=order.id,
                payment_status=order.payment_status.value,
                requested=target.value,
            )
            return OUTCOME_UNCHANGED

        order.record_payment_details(notification.payment_type, notification.transaction_id)
        if target is None:
            return OUTCOME_IGNORED

        if target == PaymentStatus.PAID:
            order.mark_paid()
            return OUTCOME_PAID
        if target == PaymentStatus.FAILED:
            ledger.release_for_order(order)
            order.mark_failed()
            return OUTCOME_FAILED
        return OUTCOME_PENDING

    @staticmethod
    def _resolve_order(orders: OrderRepository, gateway_order_id: str) -> Order | None:
        order = orders.get_by_gateway_order_id(gateway_order_id)
        if order is not None:
            return order
        order_id = local_order_id(gateway_order_id)
        if order_id is None:
            return None
        order = orders.get_by_id(order_id)
        if order is None:
            return None
        # The id prefix only stands for orders that never submitted another id.
        if order.gateway_order_id not in (None, gateway_order_id):
            logger.warning(
                "webhook_gateway_order_id_mismatch",
                order_id=order.id,
                stored_gateway_order_id=order.gateway_order_id,
            )
            return None
        return order
