"""Domain service: Stock Ledger.

Coordinates stock movements between orders and the Product aggregate.
Every movement re-reads the product through the repository of the
current unit of work, so the check and the decrement happen against the
same snapshot and are committed (or discarded) together with the order
change that caused them.
"""

from __future__ import annotations

from storefront.domain.exceptions import EntityNotFoundError
from storefront.domain.model.order import Order
from storefront.domain.model.product import Product
from storefront.domain.repository.product_repository import ProductRepository


class StockLedger:

    def __init__(self, product_repo: ProductRepository) -> None:
        self._product_repo = product_repo

    def reserve(self, product_id: str, quantity: int) -> Product:
        """Decrement stock for *product_id*.

        Raises InsufficientStockError (via the aggregate) when the current
        stock cannot cover *quantity*; nothing is saved in that case.
        """
        product = self._load(product_id)
        product.reserve(quantity)
        self._product_repo.save(product)
        return product

    def release(self, product_id: str, quantity: int) -> Product:
        """Return *quantity* units of *product_id* to stock."""
        product = self._load(product_id)
        product.release(quantity)
        self._product_repo.save(product)
        return product

    def adjust(self, product_id: str, old_quantity: int, new_quantity: int) -> None:
        """Reserve or release the difference when a line quantity changes."""
        diff = new_quantity - old_quantity
        if diff > 0:
            self.reserve(product_id, diff)
        elif diff < 0:
            self.release(product_id, -diff)

    def release_for_order(self, order: Order) -> None:
        """Release the stock held by every line item of *order*."""
        for line in order.items:
            self.release(line.product_id, line.quantity.value)

    def _load(self, product_id: str) -> Product:
        product = self._product_repo.get_by_id(product_id)
        if product is None:
            raise EntityNotFoundError(f"Product not found: '{product_id}'")
        return product
