"""HTTP routes: checkout, payment, order maintenance and the webhook.

Route functions are plain ``def`` so FastAPI runs them in its thread
pool; the JSON store and the gateway client both block.
"""

from __future__ import annotations

from dataclasses import asdict
from typing import Any

import structlog
from fastapi import APIRouter, Body, Depends, Header, HTTPException, Request

from storefront.application.cancel_order import CancelOrderHandler
from storefront.application.checkout import CheckoutHandler
from storefront.application.checkout_summary import CheckoutSummaryHandler
from storefront.application.complete_payment import CompletePaymentHandler
from storefront.application.delete_order import DeleteOrderHandler
from storefront.application.dto import PaymentNotification
from storefront.application.handle_payment_notification import PaymentNotificationHandler
from storefront.application.order_items import (
    AddOrderItemHandler,
    RemoveOrderItemHandler,
    UpdateOrderItemHandler,
)
from storefront.application.show_order import ListOrdersHandler, ShowOrderHandler
from storefront.application.show_payment_status import ShowPaymentStatusHandler
from storefront.application.show_stock import ShowStockHandler
from storefront.domain.exceptions import DomainException
from storefront.domain.repository.unit_of_work import UnitOfWorkFactory
from storefront.domain.service.payment_gateway import Buyer, PaymentGateway
from storefront.infrastructure.http.responses import envelope, fail, ok
from storefront.infrastructure.http.schemas import (
    AddOrderItemRequest,
    CartRequest,
    CompletePaymentRequest,
    UpdateOrderItemRequest,
)

logger = structlog.get_logger(__name__)


# --- Dependencies -------------------------------------------------------------


def require_access_key(
    request: Request,
    x_access_key: str | None = Header(default=None),
) -> None:
    expected = request.app.state.settings.access_key
    if expected and x_access_key != expected:
        raise HTTPException(status_code=401, detail="Unauthorized. Invalid access key.")


def current_buyer(
    x_user_id: str | None = Header(default=None),
    x_user_name: str | None = Header(default=None),
    x_user_email: str | None = Header(default=None),
) -> Buyer:
    """Identity established upstream by the token-issuing service."""
    if not x_user_id or not x_user_id.strip():
        raise HTTPException(status_code=401, detail="Unauthenticated.")
    return Buyer(user_id=x_user_id.strip(), name=x_user_name, email=x_user_email)


def uow_factory(request: Request) -> UnitOfWorkFactory:
    return request.app.state.uow_factory


def gateway(request: Request) -> PaymentGateway:
    return request.app.state.payment_gateway


router = APIRouter(dependencies=[Depends(require_access_key)])
webhook_router = APIRouter()


# --- Catalog ------------------------------------------------------------------


@router.get("/products", dependencies=[Depends(current_buyer)])
def list_products(uow: UnitOfWorkFactory = Depends(uow_factory)):
    lines = ShowStockHandler(uow).handle()
    return ok("Products retrieved successfully", [asdict(line) for line in lines])


# --- Checkout -----------------------------------------------------------------


@router.post("/checkout")
def checkout(
    cart: CartRequest,
    buyer: Buyer = Depends(current_buyer),
    uow: UnitOfWorkFactory = Depends(uow_factory),
    payment_gateway: PaymentGateway = Depends(gateway),
):
    result = CheckoutHandler(uow, payment_gateway).handle(buyer, cart.to_specs())
    return ok(
        "Checkout successful! Please proceed to payment.",
        {
            "order": asdict(result.order),
            "payment": asdict(result.payment),
            "summary": {
                "total_price": result.total_price,
                "total_items": result.total_items,
                "total_quantity": result.total_quantity,
            },
        },
        status_code=201,
    )


@router.post("/checkout/summary", dependencies=[Depends(current_buyer)])
def checkout_summary(cart: CartRequest, uow: UnitOfWorkFactory = Depends(uow_factory)):
    summary = CheckoutSummaryHandler(uow).handle(cart.to_specs())
    body = envelope(
        summary.success,
        "Checkout summary generated" if summary.success else "Some items have issues",
        data={
            "items": [asdict(line) for line in summary.items],
            "summary": {
                "total_price": summary.total_price,
                "total_quantity": summary.total_quantity,
                "total_items": summary.total_items,
            },
        },
    )
    body["errors"] = summary.errors
    return body


# --- Payment ------------------------------------------------------------------


@router.get("/payment/{order_id}/status")
def payment_status(
    order_id: int,
    buyer: Buyer = Depends(current_buyer),
    uow: UnitOfWorkFactory = Depends(uow_factory),
):
    dto = ShowPaymentStatusHandler(uow).handle(order_id, buyer.user_id)
    return ok("Payment status retrieved successfully", asdict(dto))


@router.post("/payment/{order_id}/complete")
def complete_payment(
    order_id: int,
    body: CompletePaymentRequest | None = None,
    buyer: Buyer = Depends(current_buyer),
    uow: UnitOfWorkFactory = Depends(uow_factory),
):
    body = body or CompletePaymentRequest()
    dto = CompletePaymentHandler(uow).handle(
        order_id,
        buyer.user_id,
        payment_type=body.payment_type,
        transaction_id=body.transaction_id,
    )
    return ok("Payment completed successfully", asdict(dto))


# --- Orders -------------------------------------------------------------------


@router.get("/orders")
def list_orders(buyer: Buyer = Depends(current_buyer), uow: UnitOfWorkFactory = Depends(uow_factory)):
    orders = ListOrdersHandler(uow).handle(buyer.user_id)
    return ok("Orders retrieved successfully", [asdict(dto) for dto in orders])


@router.get("/orders/{order_id}")
def show_order(
    order_id: int,
    buyer: Buyer = Depends(current_buyer),
    uow: UnitOfWorkFactory = Depends(uow_factory),
):
    dto = ShowOrderHandler(uow).handle(order_id, buyer.user_id)
    return ok("Order retrieved successfully", asdict(dto))


@router.post("/orders/{order_id}/cancel")
def cancel_order(
    order_id: int,
    buyer: Buyer = Depends(current_buyer),
    uow: UnitOfWorkFactory = Depends(uow_factory),
):
    dto = CancelOrderHandler(uow).handle(order_id, buyer.user_id)
    return ok("Order cancelled successfully", asdict(dto))


@router.delete("/orders/{order_id}")
def delete_order(
    order_id: int,
    buyer: Buyer = Depends(current_buyer),
    uow: UnitOfWorkFactory = Depends(uow_factory),
):
    DeleteOrderHandler(uow).handle(order_id, buyer.user_id)
    return ok("Order deleted successfully")


@router.post("/order-items")
def add_order_item(
    body: AddOrderItemRequest,
    buyer: Buyer = Depends(current_buyer),
    uow: UnitOfWorkFactory = Depends(uow_factory),
):
    dto = AddOrderItemHandler(uow).handle(body.order_id, buyer.user_id, body.product_id, body.quantity)
    return ok("Order item created successfully", asdict(dto), status_code=201)


@router.patch("/order-items/{item_id}")
def update_order_item(
    item_id: int,
    body: UpdateOrderItemRequest,
    buyer: Buyer = Depends(current_buyer),
    uow: UnitOfWorkFactory = Depends(uow_factory),
):
    dto = UpdateOrderItemHandler(uow).handle(item_id, buyer.user_id, body.quantity)
    return ok("Order item updated successfully", asdict(dto))


@router.delete("/order-items/{item_id}")
def remove_order_item(
    item_id: int,
    buyer: Buyer = Depends(current_buyer),
    uow: UnitOfWorkFactory = Depends(uow_factory),
):
    dto = RemoveOrderItemHandler(uow).handle(item_id, buyer.user_id)
    return ok("Order item deleted successfully", asdict(dto))


# --- Webhook ------------------------------------------------------------------


@webhook_router.post("/webhooks/midtrans")
def midtrans_notification(
    payload: Any = Body(...),
    uow: UnitOfWorkFactory = Depends(uow_factory),
    payment_gateway: PaymentGateway = Depends(gateway),
):
    handler = PaymentNotificationHandler(uow, payment_gateway)
    try:
        result = handler.handle(PaymentNotification.from_payload(payload))
    except DomainException:
        raise
    except Exception:
        logger.exception("webhook_processing_failed")
        return fail(500, "Webhook processing failed")
    return ok("Webhook processed successfully", asdict(result))
