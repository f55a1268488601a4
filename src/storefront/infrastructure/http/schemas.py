"""Typed request bodies for the HTTP API."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from storefront.application.dto import OrderItemSpec


class CartItem(BaseModel):
    model_config = ConfigDict(coerce_numbers_to_str=True)

    product_id: str = Field(min_length=1)
    quantity: int = Field(ge=1)

    def to_spec(self) -> OrderItemSpec:
        return OrderItemSpec(product_id=self.product_id, quantity=self.quantity)


class CartRequest(BaseModel):
    items: list[CartItem] = Field(min_length=1)

    def to_specs(self) -> list[OrderItemSpec]:
        return [item.to_spec() for item in self.items]


class CompletePaymentRequest(BaseModel):
    payment_type: str | None = None
    transaction_id: str | None = None


class AddOrderItemRequest(BaseModel):
    model_config = ConfigDict(coerce_numbers_to_str=True)

    order_id: int
    product_id: str = Field(min_length=1)
    quantity: int = Field(ge=1)


class UpdateOrderItemRequest(BaseModel):
    quantity: int = Field(ge=1)
