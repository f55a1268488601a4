"""Application service: Checkout Summary use case (query).

A dry run of checkout: prices every line of the cart against the current
catalog and flags lines the stock cannot cover.  Nothing is reserved and
nothing is written.
"""

from __future__ import annotations

from storefront.application.dto import CheckoutSummaryDTO, OrderItemSpec, SummaryLineDTO
from storefront.application.validation import validate_item_specs
from storefront.domain.model.order import compute_subtotal
from storefront.domain.model.value_objects import Money, Quantity
from storefront.domain.repository.unit_of_work import UnitOfWorkFactory


class CheckoutSummaryHandler:

    def __init__(self, uow_factory: UnitOfWorkFactory) -> None:
        self._uow_factory = uow_factory

    def handle(self, item_specs: list[OrderItemSpec]) -> CheckoutSummaryDTO:
        # Only the shape is validated here; unknown products are reported
        # per line in ``errors`` instead of failing the whole summary.
        validate_item_specs(item_specs)

        lines: list[SummaryLineDTO] = []
        errors: list[str] = []
        total: Money | None = None
        total_quantity = 0

        with self._uow_factory() as uow:
            for spec in item_specs:
                product_id = str(spec.product_id).strip()
                product = uow.products.get_by_id(product_id)
                if product is None:
                    errors.append(f"Product ID {product_id} not found")
                    continue

                subtotal = compute_subtotal(Quantity(spec.quantity), product.price)
                total = subtotal if total is None else total + subtotal
                total_quantity += spec.quantity

                lines.append(
                    SummaryLineDTO(
                        product_id=product.id,
                        product_name=product.name,
                        product_price=str(product.price),
                        quantity=spec.quantity,
                        subtotal=str(subtotal),
                        stock_available=product.stock,
                        stock_sufficient=product.has_stock_for(spec.quantity),
                    )
                )

        return CheckoutSummaryDTO(
            items=lines,
            total_price=str(total if total is not None else Money.zero()),
            total_quantity=total_quantity,
            total_items=len(lines),
            errors=errors,
        )
