"""Application service: Checkout use case.

Turns a cart into a pending order in one unit of work:

1. Validate the cart (field errors, no exception per line).
2. Open a pending / unpaid order for the buyer.
3. For each line, in input order: reserve stock through the ledger and
   append a line item with the product's current price (snapshot).
4. Ask the payment gateway for a hosted payment session, submitting an
   identifier that is unique per attempt.
5. Commit.

Any failure before the commit (unknown product, insufficient stock or
gateway error) leaves the unit of work uncommitted, so no order, no
line item and no stock change survives.
"""

from __future__ import annotations

import time
from typing import Callable

import structlog

from storefront.application.dto import (
    CheckoutResultDTO,
    OrderItemSpec,
    PaymentSessionDTO,
)
from storefront.application.mapping import order_to_dto
from storefront.application.validation import validate_item_specs
from storefront.domain.exceptions import PaymentGatewayError
from storefront.domain.model.order import Order, OrderLineItem
from storefront.domain.model.value_objects import Quantity
from storefront.domain.repository.unit_of_work import UnitOfWorkFactory
from storefront.domain.service.payment_gateway import (
    Buyer,
    PaymentGateway,
    PaymentItem,
    PaymentSession,
    PaymentSessionRequest,
    gateway_order_id_for,
)
from storefront.domain.service.stock_ledger import StockLedger

logger = structlog.get_logger(__name__)


class CheckoutHandler:

    def __init__(
        self,
        uow_factory: UnitOfWorkFactory,
        payment_gateway: PaymentGateway,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._uow_factory = uow_factory
        self._payment_gateway = payment_gateway
        self._clock = clock

    def handle(self, buyer: Buyer, item_specs: list[OrderItemSpec]) -> CheckoutResultDTO:
        with self._uow_factory() as uow:
            validate_item_specs(item_specs, uow.products)

            order = Order.open(buyer.user_id)
            ledger = StockLedger(uow.products)

            for spec in item_specs:
                product = ledger.reserve(str(spec.product_id).strip(), spec.quantity)
                order.add_item(
                    OrderLineItem(
                        product_id=product.id,
                        product_name=product.name,
                        quantity=Quantity(spec.quantity),
                        unit_price=product.price,  # <-- price snapshot
                    )
                )

            # The order needs its id before the gateway can be called.
            uow.orders.save(order)
            session = self._start_payment(order, buyer)
            uow.orders.save(order)
            uow.commit()

        logger.info(
            "checkout_completed",
            order_id=order.id,
            user_id=order.user_id,
            gateway_order_id=order.gateway_order_id,
            total_price=str(order.total_price),
            items=len(order.items),
        )

        return CheckoutResultDTO(
            order=order_to_dto(order),
            payment=PaymentSessionDTO(
                snap_token=session.token,
                payment_url=session.redirect_url,
            ),
            total_price=str(order.total_price),
            total_items=len(order.items),
            total_quantity=order.total_quantity,
        )

    def _start_payment(self, order: Order, buyer: Buyer) -> PaymentSession:
        gateway_order_id = gateway_order_id_for(order.id, int(self._clock()))  # type: ignore[arg-type]
        request = PaymentSessionRequest(
            gateway_order_id=gateway_order_id,
            gross_amount=order.total_price,
            buyer=buyer,
            items=[
                PaymentItem(
                    id=item.product_id,
                    name=item.product_name,
                    price=item.unit_price,
                    quantity=item.quantity.value,
                )
                for item in order.items
            ],
        )

        try:
            session = self._payment_gateway.create_session(request)
        except PaymentGatewayError as exc:
            logger.warning(
                "payment_session_failed",
                order_id=order.id,
                gateway_order_id=gateway_order_id,
                error=str(exc),
            )
            raise

        order.attach_payment_session(session.token, session.redirect_url, gateway_order_id)
        return session
