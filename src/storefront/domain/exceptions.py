"""Domain-level exceptions.

All business rule violations are expressed as subclasses of DomainException
so the CLI and HTTP layers can catch them uniformly and display
user-friendly messages.
"""

from __future__ import annotations


class DomainException(Exception):
    """Base class for all domain errors."""


class ValidationError(DomainException):
    """Malformed input or a violated invariant.

    ``errors`` optionally maps a field path (e.g. ``items.0.quantity``)
    to the messages reported for that field.
    """

    def __init__(self, message: str, errors: dict[str, list[str]] | None = None) -> None:
        super().__init__(message)
        self.errors = dict(errors or {})


class EntityNotFoundError(DomainException):
    """A requested entity does not exist (or is not owned by the caller)."""


class InsufficientStockError(DomainException):
    """Requested quantity exceeds the product's available stock."""

    def __init__(self, product_name: str, requested: int, available: int) -> None:
        super().__init__(
            f"Insufficient stock for {product_name}. "
            f"Requested: {requested}, available: {available}"
        )
        self.product_name = product_name
        self.requested = requested
        self.available = available


class InvalidStateError(DomainException):
    """The operation is not permitted in the order's current state."""


class InvalidSignatureError(DomainException):
    """A payment notification failed signature verification."""


class PaymentGatewayError(DomainException):
    """The external payment provider failed or returned garbage."""
