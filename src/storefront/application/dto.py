"""Data Transfer Objects: plain containers that cross layer boundaries.

DTOs carry data between the CLI / HTTP layers and the application layer
without exposing domain internals to the outside world.  Money values
are rendered as strings with two decimals (e.g. "30.00").
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from storefront.domain.exceptions import ValidationError


@dataclass(frozen=True)
class OrderItemSpec:
    """Input: what the customer asked for (product id + quantity)."""

    product_id: str
    quantity: int


@dataclass(frozen=True)
class OrderLineItemDTO:
    id: int
    product_id: str
    product_name: str
    quantity: int
    unit_price: str
    subtotal: str


@dataclass(frozen=True)
class OrderDTO:
    id: int
    user_id: str
    status: str
    payment_status: str
    items: list[OrderLineItemDTO]
    total_price: str
    total_quantity: int
    currency: str
    snap_token: str | None
    payment_url: str | None
    payment_type: str | None
    transaction_id: str | None
    total_amount: str | None
    created_at: str


@dataclass(frozen=True)
class PaymentSessionDTO:
    snap_token: str
    payment_url: str | None


@dataclass(frozen=True)
class CheckoutResultDTO:
    order: OrderDTO
    payment: PaymentSessionDTO
    total_price: str
    total_items: int
    total_quantity: int


@dataclass(frozen=True)
class SummaryLineDTO:
    product_id: str
    product_name: str
    product_price: str
    quantity: int
    subtotal: str
    stock_available: int
    stock_sufficient: bool


@dataclass(frozen=True)
class CheckoutSummaryDTO:
    items: list[SummaryLineDTO]
    total_price: str
    total_quantity: int
    total_items: int
    errors: list[str] = field(default_factory=list)

    @property
    def success(self) -> bool:
        return not self.errors


@dataclass(frozen=True)
class PaymentStatusDTO:
    order_id: int
    status: str
    payment_status: str
    payment_type: str | None
    transaction_id: str | None
    total_amount: str | None
    snap_token: str | None
    is_paid: bool
    is_payment_pending: bool
    is_payment_failed: bool


@dataclass(frozen=True)
class PaymentNotification:
    """Input: an asynchronous status notification from the provider."""

    order_id: str
    status_code: str
    gross_amount: str
    signature_key: str
    transaction_status: str
    fraud_status: str | None = None
    payment_type: str | None = None
    transaction_id: str | None = None

    REQUIRED_FIELDS = (
        "order_id",
        "status_code",
        "gross_amount",
        "signature_key",
        "transaction_status",
    )

    @classmethod
    def from_payload(cls, payload: Any) -> PaymentNotification:
        """Build a notification from decoded JSON, rejecting malformed input."""
        if not isinstance(payload, dict):
            raise ValidationError("Notification payload must be a JSON object")

        errors: dict[str, list[str]] = {}
        for name in cls.REQUIRED_FIELDS:
            value = payload.get(name)
            if value is None or str(value).strip() == "":
                errors[name] = [f"The {name.replace('_', ' ')} field is required."]
        if errors:
            raise ValidationError("Invalid notification payload", errors)

        def optional(name: str) -> str | None:
            value = payload.get(name)
            return None if value is None else str(value)

        return cls(
            order_id=str(payload["order_id"]),
            status_code=str(payload["status_code"]),
            gross_amount=str(payload["gross_amount"]),
            signature_key=str(payload["signature_key"]),
            transaction_status=str(payload["transaction_status"]),
            fraud_status=optional("fraud_status"),
            payment_type=optional("payment_type"),
            transaction_id=optional("transaction_id"),
        )


@dataclass(frozen=True)
class NotificationResultDTO:
    order_id: int
    outcome: str
    status: str
    payment_status: str


@dataclass(frozen=True)
class StockLineDTO:
    product_id: str
    product_name: str
    price: str
    stock: int
