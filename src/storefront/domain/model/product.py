"""Product aggregate: a sellable catalog entry and its stock count.

``stock`` is the number of units that can still be sold.  Checkout takes
units out with ``reserve()``; cancellation, payment failure and line
removal put them back with ``release()``.
"""

from __future__ import annotations

from dataclasses import dataclass

from storefront.domain.exceptions import InsufficientStockError, ValidationError
from storefront.domain.model.value_objects import Money


@dataclass
class Product:
    """Stock is a non-negative int; the price is whatever Money accepts."""

    id: str
    name: str
    price: Money
    stock: int = 0
    description: str | None = None

    def __post_init__(self) -> None:
        if isinstance(self.stock, bool) or not isinstance(self.stock, int):
            raise ValidationError(
                f"Stock must be an integer, got {type(self.stock).__name__}"
            )
        if self.stock < 0:
            raise ValidationError(f"Stock for {self.name} cannot be negative")

    def update_price(self, new_price: Money) -> None:
        """Reprice the product.  Existing line items keep their own unit price."""
        if not new_price.is_positive:
            raise ValidationError("Product price must be greater than zero")
        self.price = new_price

    def set_stock(self, quantity: int) -> None:
        if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity < 0:
            raise ValidationError("Stock must be a non-negative integer")
        self.stock = quantity

    # --- Stock ledger ---------------------------------------------------------

    def has_stock_for(self, quantity: int) -> bool:
        return self.stock >= quantity

    def reserve(self, quantity: int) -> None:
        """Take *quantity* units out of stock.

        Raises InsufficientStockError before mutating if the stock
        cannot cover the request.
        """
        if quantity <= 0:
            raise ValidationError("Reservation quantity must be positive")
        if not self.has_stock_for(quantity):
            raise InsufficientStockError(self.name, quantity, self.stock)
        self.stock -= quantity

    def release(self, quantity: int) -> None:
        """Put *quantity* units back into stock (undo of ``reserve``)."""
        if quantity <= 0:
            raise ValidationError("Release quantity must be positive")
        self.stock += quantity
