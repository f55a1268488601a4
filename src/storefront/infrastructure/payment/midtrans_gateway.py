"""Midtrans Snap implementation of the PaymentGateway port.

Snap sessions are created with ``POST /snap/v1/transactions`` using HTTP
basic auth (server key as user name, empty password).  Notifications are
authenticated with::

    sha512(order_id + status_code + gross_amount + server_key)

rendered as lowercase hex and sent as ``signature_key``.
"""

from __future__ import annotations

import hashlib
import hmac

import httpx
import structlog

from storefront.domain.exceptions import PaymentGatewayError
from storefront.domain.model.value_objects import Money
from storefront.domain.service.payment_gateway import (
    PaymentGateway,
    PaymentSession,
    PaymentSessionRequest,
)

logger = structlog.get_logger(__name__)

SANDBOX_BASE_URL = "https://app.sandbox.midtrans.com"
PRODUCTION_BASE_URL = "https://app.midtrans.com"

MAX_ITEM_NAME_LENGTH = 50


def compute_signature(order_id: str, status_code: str, gross_amount: str, server_key: str) -> str:
    payload = f"{order_id}{status_code}{gross_amount}{server_key}"
    return hashlib.sha512(payload.encode("utf-8")).hexdigest()


def _amount(money: Money) -> int | float:
    """Snap wants plain numbers; whole amounts must be sent as integers."""
    value = money.quantize()
    if value == value.to_integral_value():
        return int(value)
    return float(value)


class MidtransGateway(PaymentGateway):

    def __init__(
        self,
        server_key: str,
        is_production: bool = False,
        timeout: float = 10.0,
        client: httpx.Client | None = None,
    ) -> None:
        self._server_key = server_key
        self._base_url = PRODUCTION_BASE_URL if is_production else SANDBOX_BASE_URL
        self._timeout = timeout
        self._client = client or httpx.Client(timeout=timeout)

    # --- PaymentGateway interface ---------------------------------------------

    def create_session(self, request: PaymentSessionRequest) -> PaymentSession:
        if not self._server_key:
            raise PaymentGatewayError("Failed to create payment: gateway server key is not configured")

        log = logger.bind(gateway_order_id=request.gateway_order_id)
        try:
            response = self._client.post(
                f"{self._base_url}/snap/v1/transactions",
                json=self._build_payload(request),
                auth=(self._server_key, ""),
                headers={"Accept": "application/json"},
                timeout=self._timeout,
            )
            response.raise_for_status()
            data = response.json()
        except httpx.HTTPStatusError as exc:
            detail = self._error_detail(exc.response)
            log.error("midtrans_session_rejected", status_code=exc.response.status_code, detail=detail)
            raise PaymentGatewayError(f"Failed to create payment: {detail}") from exc
        except httpx.HTTPError as exc:
            log.error("midtrans_unreachable", error=str(exc))
            raise PaymentGatewayError(f"Failed to create payment: {exc}") from exc
        except ValueError as exc:
            raise PaymentGatewayError("Failed to create payment: invalid response body") from exc

        token = data.get("token") if isinstance(data, dict) else None
        if not token:
            raise PaymentGatewayError("Failed to create payment: response has no token")

        log.info("midtrans_session_created")
        return PaymentSession(
            token=token,
            redirect_url=data.get("redirect_url") or self.payment_url_for(token),
        )

    def verify_signature(
        self,
        order_id: str,
        status_code: str,
        gross_amount: str,
        signature_key: str,
    ) -> bool:
        if not self._server_key:
            return False
        expected = compute_signature(order_id, status_code, gross_amount, self._server_key)
        return hmac.compare_digest(expected.encode("utf-8"), signature_key.encode("utf-8"))

    # --- Helpers --------------------------------------------------------------

    def payment_url_for(self, token: str) -> str:
        return f"{self._base_url}/snap/v2/vtweb/{token}"

    def close(self) -> None:
        self._client.close()

    @staticmethod
    def _build_payload(request: PaymentSessionRequest) -> dict:
        customer: dict[str, str] = {"first_name": request.buyer.name or request.buyer.user_id}
        if request.buyer.email:
            customer["email"] = request.buyer.email

        return {
            "transaction_details": {
                "order_id": request.gateway_order_id,
                "gross_amount": _amount(request.gross_amount),
            },
            "customer_details": customer,
            "item_details": [
                {
                    "id": item.id,
                    "price": _amount(item.price),
                    "quantity": item.quantity,
                    "name": item.name[:MAX_ITEM_NAME_LENGTH],
                }
                for item in request.items
            ],
        }

    @staticmethod
    def _error_detail(response: httpx.Response) -> str:
        try:
            body = response.json()
        except ValueError:
            return f"HTTP {response.status_code}"
        messages = body.get("error_messages") if isinstance(body, dict) else None
        if messages:
            return "; ".join(str(m) for m in messages)
        return f"HTTP {response.status_code}"
