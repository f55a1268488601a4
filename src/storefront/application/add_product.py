"""Application service: Add Product use case."""

from __future__ import annotations

from storefront.domain.exceptions import ValidationError
from storefront.domain.model.product import Product
from storefront.domain.model.value_objects import Money
from storefront.domain.repository.unit_of_work import UnitOfWorkFactory


class AddProductHandler:

    def __init__(self, uow_factory: UnitOfWorkFactory) -> None:
        self._uow_factory = uow_factory

    def handle(
        self,
        name: str,
        price: str,
        stock: int = 0,
        description: str | None = None,
    ) -> Product:
        """Add a new product to the catalog."""
        if not name or not name.strip():
            raise ValidationError("Product name is required", {"name": ["The name field is required."]})

        with self._uow_factory() as uow:
            if uow.products.get_by_name(name.strip()) is not None:
                raise ValidationError(f"Product '{name}' already exists")

            product = Product(
                id=uow.products.next_id(),
                name=name.strip(),
                price=Money.of(price),
                stock=stock,
                description=description,
            )
            uow.products.save(product)
            uow.commit()
        return product
