"""Application service: Set Stock use case (catalog stock adjustment)."""

from __future__ import annotations

from storefront.domain.exceptions import EntityNotFoundError
from storefront.domain.repository.unit_of_work import UnitOfWorkFactory


class SetStockHandler:

    def __init__(self, uow_factory: UnitOfWorkFactory) -> None:
        self._uow_factory = uow_factory

    def handle(self, product_id: str, quantity: int) -> None:
        """Overwrite the stock level of a product."""
        with self._uow_factory() as uow:
            product = uow.products.get_by_id(product_id)
            if product is None:
                raise EntityNotFoundError(f"Product with ID '{product_id}' not found")

            product.set_stock(quantity)
            uow.products.save(product)
            uow.commit()
