"""Port for the external payment provider.

The checkout handler asks the gateway for a hosted payment session and
the notification handler asks it to authenticate webhook payloads.  The
concrete provider client lives in the infrastructure layer.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field

from storefront.domain.model.value_objects import Money


@dataclass(frozen=True)
class Buyer:
    """Contact details forwarded to the provider's payment page."""

    user_id: str
    name: str | None = None
    email: str | None = None


@dataclass(frozen=True)
class PaymentItem:
    id: str
    name: str
    price: Money
    quantity: int


@dataclass(frozen=True)
class PaymentSessionRequest:
    gateway_order_id: str
    gross_amount: Money
    buyer: Buyer
    items: list[PaymentItem] = field(default_factory=list)


@dataclass(frozen=True)
class PaymentSession:
    token: str
    redirect_url: str | None = None


def gateway_order_id_for(order_id: int, attempt: int) -> str:
    """Identifier submitted to the provider; unique per checkout attempt."""
    return f"{order_id}-{attempt}"


def local_order_id(gateway_order_id: str) -> int | None:
    """Recover the local order id from a submitted identifier, if possible."""
    head = gateway_order_id.split("-", 1)[0].strip()
    if not head.isdigit():
        return None
    return int(head)


class PaymentGateway(ABC):

    @abstractmethod
    def create_session(self, request: PaymentSessionRequest) -> PaymentSession:
        """Create a hosted payment session.

        Raises PaymentGatewayError on network, timeout or provider errors.
        """

    @abstractmethod
    def verify_signature(
        self,
        order_id: str,
        status_code: str,
        gross_amount: str,
        signature_key: str,
    ) -> bool:
        """Return True if *signature_key* authenticates the notification."""
