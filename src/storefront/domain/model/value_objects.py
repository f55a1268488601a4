"""Value Objects shared across the domain.

Money and Quantity are immutable and compared by value.  Both refuse to
be constructed from an invalid value, so a price or a line quantity that
exists is always usable.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from functools import total_ordering

from storefront.domain.exceptions import ValidationError

# Prices are quoted in rupiah; the payment provider settles in IDR only.
DEFAULT_CURRENCY = "IDR"

_TWO_PLACES = Decimal("0.01")


@total_ordering
@dataclass(frozen=True)
class Money:
    """A non-negative amount in one currency.

    The amount is kept exactly as given.  It is rounded half-up to two
    places only on the way out: ``str()`` for display and DTOs,
    ``quantize()`` for the payment provider.
    """

    amount: Decimal
    currency: str = DEFAULT_CURRENCY

    def __post_init__(self) -> None:
        if not isinstance(self.amount, Decimal):
            raise ValidationError(
                f"Money needs a Decimal amount, got {type(self.amount).__name__}"
            )
        if not self.amount.is_finite() or self.amount < 0:
            raise ValidationError(f"Money amount must be a finite, non-negative number: {self.amount}")

    def __add__(self, other: Money) -> Money:
        return Money(self.amount + self._same_currency(other).amount, self.currency)

    def __sub__(self, other: Money) -> Money:
        remaining = self.amount - self._same_currency(other).amount
        if remaining < 0:
            raise ValidationError(f"Cannot subtract {other} from {self}: result would be negative")
        return Money(remaining, self.currency)

    def __mul__(self, quantity: int) -> Money:
        if isinstance(quantity, bool) or not isinstance(quantity, int):
            raise TypeError(f"Money can only be multiplied by an int, got {type(quantity).__name__}")
        return Money(self.amount * quantity, self.currency)

    def __lt__(self, other: Money) -> bool:
        return self.amount < self._same_currency(other).amount

    def __str__(self) -> str:
        return f"{self.quantize():.2f}"

    @property
    def is_positive(self) -> bool:
        return self.amount > 0

    def quantize(self) -> Decimal:
        return self.amount.quantize(_TWO_PLACES, rounding=ROUND_HALF_UP)

    def _same_currency(self, other: Money) -> Money:
        if other.currency != self.currency:
            raise ValidationError(f"Currency mismatch: {self.currency} vs {other.currency}")
        return other

    @staticmethod
    def of(amount: str | int | Decimal, currency: str = DEFAULT_CURRENCY) -> Money:
        """Parse user or storage input ("15000", "15000.50", 15000)."""
        try:
            value = Decimal(str(amount).strip())
        except (InvalidOperation, ValueError) as exc:
            raise ValidationError(f"Invalid money amount: {amount!r}") from exc
        return Money(value, currency)

    @staticmethod
    def zero(currency: str = DEFAULT_CURRENCY) -> Money:
        return Money(Decimal("0"), currency)


@dataclass(frozen=True)
class Quantity:
    """Number of units on an order line; always a whole number >= 1."""

    value: int

    def __post_init__(self) -> None:
        if isinstance(self.value, bool) or not isinstance(self.value, int):
            raise ValidationError(f"Quantity must be an integer, got {self.value!r}")
        if self.value < 1:
            raise ValidationError(f"Quantity must be at least 1, got {self.value}")

    def __str__(self) -> str:
        return str(self.value)
