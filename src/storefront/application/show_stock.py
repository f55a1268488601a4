"""Application service: Show Stock use case (query)."""

from __future__ import annotations

from storefront.application.dto import StockLineDTO
from storefront.domain.repository.unit_of_work import UnitOfWorkFactory


class ShowStockHandler:

    def __init__(self, uow_factory: UnitOfWorkFactory) -> None:
        self._uow_factory = uow_factory

    def handle(self) -> list[StockLineDTO]:
        with self._uow_factory() as uow:
            products = uow.products.list_all()
        return [
            StockLineDTO(
                product_id=product.id,
                product_name=product.name,
                price=str(product.price),
                stock=product.stock,
            )
            for product in products
        ]
