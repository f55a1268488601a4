"""JSON-backed implementation of OrderRepository.

Line items are stored inline with their order.  Order ids and line item
ids come from persistent counters, so an id is never handed out twice.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal

from storefront.domain.model.order import (
    Order,
    OrderLineItem,
    OrderStatus,
    PaymentStatus,
)
from storefront.domain.model.value_objects import DEFAULT_CURRENCY, Money, Quantity
from storefront.domain.repository.order_repository import OrderRepository
from storefront.infrastructure.persistence.json_table import JsonSequences, JsonTable


class JsonOrderRepository(OrderRepository):

    def __init__(self, table: JsonTable, sequences: JsonSequences) -> None:
        self._table = table
        self._sequences = sequences

    # --- OrderRepository interface --------------------------------------------

    def get_by_id(self, order_id: int) -> Order | None:
        for raw in self._table.records:
            if raw["id"] == order_id:
                return self._to_domain(raw)
        return None

    def get_by_item_id(self, item_id: int) -> Order | None:
        for raw in self._table.records:
            if any(i["id"] == item_id for i in raw["items"]):
                return self._to_domain(raw)
        return None

    def get_by_gateway_order_id(self, gateway_order_id: str) -> Order | None:
        for raw in self._table.records:
            if raw.get("gateway_order_id") == gateway_order_id:
                return self._to_domain(raw)
        return None

    def list_for_user(self, user_id: str) -> list[Order]:
        orders = [
            self._to_domain(raw)
            for raw in self._table.records
            if raw["user_id"] == user_id
        ]
        return sorted(orders, key=lambda o: (o.created_at, o.id), reverse=True)

    def save(self, order: Order) -> None:
        records = self._table.records

        if order.id is None:
            order.id = self._sequences.next_value(
                "orders", floor=max((raw["id"] for raw in records), default=0)
            )

        for item in order.items:
            if item.id is None:
                item.id = self._sequences.next_value("order_items", floor=self._max_item_id())

        # Upsert: replace if exists, otherwise append
        for i, raw in enumerate(records):
            if raw["id"] == order.id:
                records[i] = self._to_raw(order)
                break
        else:
            records.append(self._to_raw(order))
        self._table.dirty = True

    def delete(self, order: Order) -> None:
        self._table.records = [raw for raw in self._table.records if raw["id"] != order.id]
        self._table.dirty = True

    # --- Serialization --------------------------------------------------------

    def _max_item_id(self) -> int:
        return max(
            (item["id"] for raw in self._table.records for item in raw["items"]),
            default=0,
        )

    @staticmethod
    def _to_raw(order: Order) -> dict:
        return {
            "id": order.id,
            "user_id": order.user_id,
            "status": order.status.value,
            "payment_status": order.payment_status.value,
            "snap_token": order.snap_token,
            "payment_url": order.payment_url,
            "gateway_order_id": order.gateway_order_id,
            "payment_type": order.payment_type,
            "transaction_id": order.transaction_id,
            "total_amount": None if order.total_amount is None else str(order.total_amount.amount),
            "currency": order.currency,
            "created_at": order.created_at.isoformat(),
            "updated_at": order.updated_at.isoformat(),
            "items": [
                {
                    "id": item.id,
                    "product_id": item.product_id,
                    "product_name": item.product_name,
                    "quantity": item.quantity.value,
                    "unit_price": str(item.unit_price.amount),
                    "subtotal": str(item.subtotal.amount),  # type: ignore[union-attr]
                    "currency": item.unit_price.currency,
                }
                for item in order.items
            ],
        }

    @staticmethod
    def _to_domain(raw: dict) -> Order:
        items = [
            OrderLineItem(
                id=i["id"],
                product_id=i["product_id"],
                product_name=i["product_name"],
                quantity=Quantity(i["quantity"]),
                unit_price=Money(Decimal(i["unit_price"]), i.get("currency", DEFAULT_CURRENCY)),
                subtotal=Money(Decimal(i["subtotal"]), i.get("currency", DEFAULT_CURRENCY)),
            )
            for i in raw["items"]
        ]
        total_amount = raw.get("total_amount")
        return Order(
            id=raw["id"],
            user_id=raw["user_id"],
            items=items,
            status=OrderStatus(raw["status"]),
            payment_status=PaymentStatus(raw["payment_status"]),
            snap_token=raw.get("snap_token"),
            payment_url=raw.get("payment_url"),
            gateway_order_id=raw.get("gateway_order_id"),
            payment_type=raw.get("payment_type"),
            transaction_id=raw.get("transaction_id"),
            total_amount=(
                None
                if total_amount is None
                else Money(Decimal(total_amount), raw.get("currency", DEFAULT_CURRENCY))
            ),
            created_at=datetime.fromisoformat(raw["created_at"]),
            updated_at=datetime.fromisoformat(raw.get("updated_at", raw["created_at"])),
        )
