"""End-to-end tests of the HTTP API with in-memory fakes."""

import pytest
from fastapi.testclient import TestClient

from storefront.domain.model.product import Product
from storefront.domain.model.value_objects import Money
from storefront.infrastructure.config import Settings
from storefront.infrastructure.http.app import create_app
from tests.fakes import FakePaymentGateway, FakeUnitOfWork, notification_payload

HEADERS = {"X-User-Id": "user-1", "X-User-Name": "Alice"}


@pytest.fixture
def uow() -> FakeUnitOfWork:
    return FakeUnitOfWork([
        Product(id="1", name="Widget", price=Money.of("10.00"), stock=5),
        Product(id="2", name="Gadget", price=Money.of("2.50"), stock=10),
    ])


@pytest.fixture
def gateway() -> FakePaymentGateway:
    return FakePaymentGateway()


@pytest.fixture
def client(tmp_path, uow, gateway) -> TestClient:
    app = create_app(Settings(data_dir=tmp_path), lambda: uow, gateway)
    return TestClient(app)


def _checkout(client: TestClient, items=None) -> dict:
    response = client.post("/checkout", json={"items": items or [{"product_id": "1", "quantity": 3}]}, headers=HEADERS)
    assert response.status_code == 201, response.text
    return response.json()["data"]


class TestCheckoutEndpoint:

    def test_checkout_success(self, client, uow):
        body = client.post(
            "/checkout", json={"items": [{"product_id": 1, "quantity": 3}]}, headers=HEADERS
        ).json()

        assert body["success"] is True
        assert body["message"] == "Checkout successful! Please proceed to payment."
        assert body["data"]["summary"] == {"total_price": "30.00", "total_items": 1, "total_quantity": 3}
        assert body["data"]["payment"]["snap_token"].startswith("snap-")
        assert body["data"]["order"]["items"][0]["subtotal"] == "30.00"
        assert uow.stock_of("1") == 2

    def test_insufficient_stock_is_400(self, client, uow):
        response = client.post("/checkout", json={"items": [{"product_id": "1", "quantity": 6}]}, headers=HEADERS)

        assert response.status_code == 400
        assert response.json() == {
            "success": False,
            "message": "Insufficient stock for Widget. Requested: 6, available: 5",
        }
        assert uow.stock_of("1") == 5

    def test_unknown_product_is_422_with_field_errors(self, client):
        response = client.post("/checkout", json={"items": [{"product_id": "99", "quantity": 1}]}, headers=HEADERS)

        assert response.status_code == 422
        assert response.json()["errors"] == {"items.0.product_id": ["The selected product id is invalid."]}

    def test_malformed_body_is_422(self, client):
        response = client.post("/checkout", json={"items": [{"product_id": "1", "quantity": 0}]}, headers=HEADERS)

        assert response.status_code == 422
        body = response.json()
        assert body["success"] is False
        assert "items.0.quantity" in body["errors"]

    def test_gateway_failure_is_502(self, tmp_path, uow):
        app = create_app(Settings(data_dir=tmp_path), lambda: uow, FakePaymentGateway(fail_with="Failed to create payment: boom"))
        response = TestClient(app).post(
            "/checkout", json={"items": [{"product_id": "1", "quantity": 1}]}, headers=HEADERS
        )

        assert response.status_code == 502
        assert response.json()["message"] == "Failed to create payment: boom"
        assert uow.stock_of("1") == 5

    def test_missing_user_is_401(self, client):
        response = client.post("/checkout", json={"items": [{"product_id": "1", "quantity": 1}]})
        assert response.status_code == 401
        assert response.json() == {"success": False, "message": "Unauthenticated."}

    def test_summary_reports_errors(self, client):
        response = client.post(
            "/checkout/summary",
            json={"items": [{"product_id": "1", "quantity": 2}, {"product_id": "99", "quantity": 1}]},
            headers=HEADERS,
        )

        body = response.json()
        assert response.status_code == 200
        assert body["success"] is False
        assert body["errors"] == ["Product ID 99 not found"]
        assert body["data"]["summary"]["total_price"] == "20.00"


class TestAccessKey:

    def test_wrong_key_rejected(self, tmp_path, uow, gateway):
        app = create_app(Settings(data_dir=tmp_path, access_key="secret"), lambda: uow, gateway)
        client = TestClient(app)

        assert client.get("/products", headers=HEADERS).status_code == 401
        response = client.get("/products", headers={**HEADERS, "X-Access-Key": "secret"})
        assert response.status_code == 200
        assert response.json()["data"][0]["product_name"] == "Widget"

    def test_webhook_does_not_need_access_key(self, tmp_path, uow, gateway):
        app = create_app(Settings(data_dir=tmp_path, access_key="secret"), lambda: uow, gateway)
        response = TestClient(app).post("/webhooks/midtrans", json={})
        assert response.status_code == 422


class TestOrderEndpoints:

    def test_payment_status_and_complete(self, client):
        order_id = _checkout(client)["order"]["id"]

        status = client.get(f"/payment/{order_id}/status", headers=HEADERS).json()["data"]
        assert status["payment_status"] == "unpaid"
        assert status["is_payment_pending"] is True

        response = client.post(f"/payment/{order_id}/complete", headers=HEADERS)
        assert response.status_code == 200
        assert response.json()["data"]["payment_type"] == "manual"

    def test_other_users_order_is_404(self, client):
        order_id = _checkout(client)["order"]["id"]
        response = client.get(f"/orders/{order_id}", headers={"X-User-Id": "user-2"})
        assert response.status_code == 404

    def test_cancel_then_cancel_again(self, client, uow):
        order_id = _checkout(client)["order"]["id"]

        assert client.post(f"/orders/{order_id}/cancel", headers=HEADERS).status_code == 200
        assert uow.stock_of("1") == 5
        assert client.post(f"/orders/{order_id}/cancel", headers=HEADERS).status_code == 400
        assert uow.stock_of("1") == 5

    def test_item_maintenance(self, client, uow):
        order = _checkout(client)["order"]
        item_id = order["items"][0]["id"]

        response = client.patch(f"/order-items/{item_id}", json={"quantity": 1}, headers=HEADERS)
        assert response.json()["data"]["total_price"] == "10.00"
        assert uow.stock_of("1") == 4

        response = client.post(
            "/order-items", json={"order_id": order["id"], "product_id": "2", "quantity": 2}, headers=HEADERS
        )
        assert response.status_code == 201
        assert uow.stock_of("2") == 8

        response = client.delete(f"/order-items/{item_id}", headers=HEADERS)
        assert response.json()["data"]["total_price"] == "5.00"
        assert uow.stock_of("1") == 5

    def test_list_and_delete(self, client, uow):
        order_id = _checkout(client)["order"]["id"]
        assert [o["id"] for o in client.get("/orders", headers=HEADERS).json()["data"]] == [order_id]

        assert client.delete(f"/orders/{order_id}", headers=HEADERS).status_code == 200
        assert client.get("/orders", headers=HEADERS).json()["data"] == []
        assert uow.stock_of("1") == 5


class TestWebhookEndpoint:

    def test_settlement(self, client, uow):
        order_id = _checkout(client)["order"]["id"]
        gid = uow.orders.get_by_id(order_id).gateway_order_id

        response = client.post("/webhooks/midtrans", json=notification_payload(gid, "settlement"))

        assert response.status_code == 200
        assert response.json()["message"] == "Webhook processed successfully"
        assert response.json()["data"]["outcome"] == "paid"
        assert uow.orders.get_by_id(order_id).is_paid

    def test_expire_replay_is_acknowledged(self, client, uow):
        order_id = _checkout(client)["order"]["id"]
        gid = uow.orders.get_by_id(order_id).gateway_order_id
        payload = notification_payload(gid, "expire")

        assert client.post("/webhooks/midtrans", json=payload).json()["data"]["outcome"] == "failed"
        replay = client.post("/webhooks/midtrans", json=payload)
        assert replay.status_code == 200
        assert replay.json()["data"]["outcome"] == "unchanged"
        assert uow.stock_of("1") == 5

    def test_bad_signature_is_403(self, client, uow):
        order_id = _checkout(client)["order"]["id"]
        gid = uow.orders.get_by_id(order_id).gateway_order_id
        payload = notification_payload(gid, "settlement")
        payload["gross_amount"] = "1.00"

        response = client.post("/webhooks/midtrans", json=payload)
        assert response.status_code == 403
        assert response.json()["message"] == "Invalid signature key"
        assert not uow.orders.get_by_id(order_id).is_paid

    def test_unknown_order_is_404(self, client):
        response = client.post("/webhooks/midtrans", json=notification_payload("404-1", "settlement"))
        assert response.status_code == 404
        assert response.json()["message"] == "Order not found"

    def test_unexpected_error_is_500(self, client, gateway, monkeypatch):
        def explode(*args, **kwargs):
            raise RuntimeError("disk on fire")

        monkeypatch.setattr(gateway, "verify_signature", explode)
        response = client.post("/webhooks/midtrans", json=notification_payload("1-1", "settlement"))
        assert response.status_code == 500
        assert response.json() == {"success": False, "message": "Webhook processing failed"}


def test_health(client):
    assert client.get("/health").json() == {"status": "ok", "service": "storefront"}
