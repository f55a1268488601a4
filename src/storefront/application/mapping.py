"""Domain -> DTO mapping shared by the order use cases."""

from __future__ import annotations

from storefront.application.dto import OrderDTO, OrderLineItemDTO, PaymentStatusDTO
from storefront.domain.model.order import Order


def order_to_dto(order: Order) -> OrderDTO:
    return OrderDTO(
        id=order.id,  # type: ignore[arg-type]
        user_id=order.user_id,
        status=order.status.value,
        payment_status=order.payment_status.value,
        items=[
            OrderLineItemDTO(
                id=item.id,  # type: ignore[arg-type]
                product_id=item.product_id,
                product_name=item.product_name,
                quantity=item.quantity.value,
                unit_price=str(item.unit_price),
                subtotal=str(item.subtotal),
            )
            for item in order.items
        ],
        total_price=str(order.total_price),
        total_quantity=order.total_quantity,
        currency=order.currency,
        snap_token=order.snap_token,
        payment_url=order.payment_url,
        payment_type=order.payment_type,
        transaction_id=order.transaction_id,
        total_amount=None if order.total_amount is None else str(order.total_amount),
        created_at=order.created_at.isoformat(),
    )


def payment_status_to_dto(order: Order) -> PaymentStatusDTO:
    return PaymentStatusDTO(
        order_id=order.id,  # type: ignore[arg-type]
        status=order.status.value,
        payment_status=order.payment_status.value,
        payment_type=order.payment_type,
        transaction_id=order.transaction_id,
        total_amount=None if order.total_amount is None else str(order.total_amount),
        snap_token=order.snap_token,
        is_paid=order.is_paid,
        is_payment_pending=order.is_payment_pending,
        is_payment_failed=order.is_payment_failed,
    )
