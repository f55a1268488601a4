"""Order aggregate, the core of the domain.

The Order is an aggregate root that owns its line items.  All business
invariants of the checkout / payment lifecycle are enforced here:

- a line item's subtotal is always ``quantity * unit_price``
- the order total is derived from its line items, never stored
  (``total_amount`` is only the snapshot submitted to the payment provider)
- payment status only moves from UNPAID to a terminal state (PAID or
  FAILED) and never leaves it
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum

from storefront.domain.exceptions import (
    EntityNotFoundError,
    InvalidStateError,
    ValidationError,
)
from storefront.domain.model.value_objects import DEFAULT_CURRENCY, Money, Quantity


class OrderStatus(Enum):
    PENDING = "pending"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class PaymentStatus(Enum):
    UNPAID = "unpaid"
    PAID = "paid"
    FAILED = "failed"


TERMINAL_PAYMENT_STATUSES = frozenset({PaymentStatus.PAID, PaymentStatus.FAILED})

MANUAL_PAYMENT_TYPE = "manual"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def compute_subtotal(quantity: Quantity, unit_price: Money) -> Money:
    """The only way a line item subtotal is ever produced."""
    return unit_price * quantity.value


@dataclass
class OrderLineItem:
    """Captures the price snapshot of a product at the time it was ordered.

    ``unit_price`` never changes after creation (price lock).  ``subtotal``
    is recomputed on every quantity change and checked on construction,
    so a reconstituted item with a tampered subtotal is rejected.
    """

    product_id: str
    product_name: str
    quantity: Quantity
    unit_price: Money  # locked at order time
    subtotal: Money | None = None
    id: int | None = None

    def __post_init__(self) -> None:
        expected = compute_subtotal(self.quantity, self.unit_price)
        if self.subtotal is None:
            self.subtotal = expected
        elif self.subtotal != expected:
            raise ValidationError(
                f"Subtotal {self.subtotal} for {self.product_name} does not match "
                f"{self.quantity} x {self.unit_price}"
            )

    def change_quantity(self, quantity: Quantity) -> None:
        self.quantity = quantity
        self.subtotal = compute_subtotal(quantity, self.unit_price)


@dataclass
class Order:
    """Aggregate root for customer orders.

    Use ``Order.open()`` for new orders.  The ``__init__`` is intentionally
    simple so the repository can reconstitute persisted orders without
    re-validating state transitions.
    """

    id: int | None
    user_id: str
    items: list[OrderLineItem] = field(default_factory=list)
    status: OrderStatus = OrderStatus.PENDING
    payment_status: PaymentStatus = PaymentStatus.UNPAID
    snap_token: str | None = None
    payment_url: str | None = None
    gateway_order_id: str | None = None
    payment_type: str | None = None
    transaction_id: str | None = None
    total_amount: Money | None = None  # provider-facing snapshot only
    created_at: datetime = field(default_factory=_utcnow)
    updated_at: datetime = field(default_factory=_utcnow)

    # --- Factory (used for NEW orders only) -----------------------------------

    @staticmethod
    def open(user_id: str) -> Order:
        """Start a new pending, unpaid order for *user_id*."""
        if not user_id or not str(user_id).strip():
            raise ValidationError("User is required", {"user_id": ["The user id is required."]})
        return Order(id=None, user_id=str(user_id).strip())

    # --- Line items -----------------------------------------------------------

    def add_item(self, item: OrderLineItem) -> None:
        self._assert_editable()
        self.items.append(item)
        self._touch()

    def find_item(self, item_id: int) -> OrderLineItem:
        for item in self.items:
            if item.id == item_id:
                return item
        raise EntityNotFoundError(f"Order item #{item_id} not found in order #{self.id}")

    def change_item_quantity(self, item_id: int, quantity: Quantity) -> OrderLineItem:
        self._assert_editable()
        item = self.find_item(item_id)
        item.change_quantity(quantity)
        self._touch()
        return item

    def remove_item(self, item_id: int) -> OrderLineItem:
        self._assert_editable()
        item = self.find_item(item_id)
        self.items.remove(item)
        self._touch()
        return item

    # --- Payment lifecycle ----------------------------------------------------

    def attach_payment_session(
        self, snap_token: str, payment_url: str | None, gateway_order_id: str
    ) -> None:
        """Record a freshly created payment session.

        ``total_amount`` is snapshotted from the derived total so the
        amount the provider was asked to collect is kept on file.
        """
        if self.payment_status != PaymentStatus.UNPAID:
            raise InvalidStateError(
                f"Cannot start a payment for order #{self.id}: "
                f"payment status is {self.payment_status.value}"
            )
        self.snap_token = snap_token
        self.payment_url = payment_url
        self.gateway_order_id = gateway_order_id
        self.total_amount = self.total_price
        self._touch()

    def record_payment_details(
        self, payment_type: str | None, transaction_id: str | None
    ) -> None:
        """Store what the provider told us about the transaction."""
        if payment_type is not None:
            self.payment_type = payment_type
        if transaction_id is not None:
            self.transaction_id = transaction_id
        self._touch()

    def mark_paid(self) -> None:
        """Transition UNPAID -> PAID (and the order to COMPLETED)."""
        if self.payment_status != PaymentStatus.UNPAID:
            raise InvalidStateError("Order payment is not pending")
        self.payment_status = PaymentStatus.PAID
        self.status = OrderStatus.COMPLETED
        self._touch()

    def mark_failed(self) -> None:
        """Transition UNPAID -> FAILED (and the order to CANCELLED).

        Stock release must happen alongside this call, coordinated by
        the application handler through the stock ledger.
        """
        if self.payment_status != PaymentStatus.UNPAID:
            raise InvalidStateError("Order payment is not pending")
        self.payment_status = PaymentStatus.FAILED
        self.status = OrderStatus.CANCELLED
        self._touch()

    def complete(self, payment_type: str | None, transaction_id: str) -> None:
        """Manual completion; keeps details already set by the provider."""
        self.mark_paid()
        if self.payment_type is None:
            self.payment_type = payment_type or MANUAL_PAYMENT_TYPE
        if self.transaction_id is None:
            self.transaction_id = transaction_id

    def cancel(self) -> None:
        if self.payment_status == PaymentStatus.PAID:
            raise InvalidStateError("Cannot cancel paid order")
        if self.payment_status == PaymentStatus.FAILED or self.status == OrderStatus.CANCELLED:
            raise InvalidStateError(f"Order #{self.id} is already cancelled")
        self.mark_failed()

    def ensure_deletable(self) -> None:
        if self.status != OrderStatus.PENDING:
            raise InvalidStateError(
                f"Only pending orders can be deleted (order #{self.id} is {self.status.value})"
            )

    # --- Computed properties --------------------------------------------------

    @property
    def currency(self) -> str:
        if self.items:
            return self.items[0].unit_price.currency
        return DEFAULT_CURRENCY

    @property
    def total_price(self) -> Money:
        result = Money.zero(self.currency)
        for item in self.items:
            result = result + item.subtotal
        return result

    @property
    def total_quantity(self) -> int:
        return sum(item.quantity.value for item in self.items)

    @property
    def is_paid(self) -> bool:
        return self.payment_status == PaymentStatus.PAID

    @property
    def is_payment_pending(self) -> bool:
        return self.payment_status == PaymentStatus.UNPAID

    @property
    def is_payment_failed(self) -> bool:
        return self.payment_status == PaymentStatus.FAILED

    @property
    def is_terminal(self) -> bool:
        return self.payment_status in TERMINAL_PAYMENT_STATUSES

    # --- Internal helpers -----------------------------------------------------

    def _assert_editable(self) -> None:
        if self.status != OrderStatus.PENDING or self.payment_status != PaymentStatus.UNPAID:
            raise InvalidStateError(
                f"Order #{self.id} can no longer be modified "
                f"(status={self.status.value}, payment_status={self.payment_status.value})"
            )

    def _touch(self) -> None:
        self.updated_at = _utcnow()
