"""Cart validation shared by checkout and checkout summary.

Errors are collected per field (``items.<index>.<field>``) instead of
failing on the first problem, so a client can highlight every bad line.
"""

from __future__ import annotations

from storefront.application.dto import OrderItemSpec
from storefront.domain.exceptions import ValidationError
from storefront.domain.repository.product_repository import ProductRepository

MAX_CART_ITEMS = 100


def validate_item_specs(
    item_specs: list[OrderItemSpec],
    product_repo: ProductRepository | None = None,
) -> None:
    """Raise ValidationError if the cart is malformed.

    With *product_repo* given, every product id must also exist.
    """
    errors: dict[str, list[str]] = {}

    if not item_specs:
        errors["items"] = ["The items field is required."]
    elif len(item_specs) > MAX_CART_ITEMS:
        errors["items"] = [f"The items field must not have more than {MAX_CART_ITEMS} items."]

    for index, spec in enumerate(item_specs or []):
        prefix = f"items.{index}"
        product_id = str(spec.product_id).strip() if spec.product_id is not None else ""
        if not product_id:
            errors[f"{prefix}.product_id"] = ["The product id field is required."]
        elif product_repo is not None and product_repo.get_by_id(product_id) is None:
            errors[f"{prefix}.product_id"] = ["The selected product id is invalid."]

        quantity = spec.quantity
        if isinstance(quantity, bool) or not isinstance(quantity, int):
            errors[f"{prefix}.quantity"] = ["The quantity must be an integer."]
        elif quantity < 1:
            errors[f"{prefix}.quantity"] = ["The quantity must be at least 1."]

    if errors:
        raise ValidationError("Validation failed", errors)
