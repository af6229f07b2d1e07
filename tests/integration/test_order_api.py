from decimal import Decimal

import pytest

from modules.orders.constants import OrderStatus

pytestmark = pytest.mark.integration

URL = "/api/v1/orders/"


@pytest.fixture()
def create_order(auth_client, customer, product):
    def _create(quantity=3, **extra):
        payload = {
            "customer_id": str(customer.id),
            "items": [
                {
                    "product_id": str(product.id),
                    "quantity": quantity,
                    "home_or_away": "AWAY",
                    "print_name": "SAKA",
                    "print_number": "7",
                }
            ],
        }
        payload.update(extra)
        return auth_client.post(URL, payload, format="json")

    return _create


class TestCreateOrder:
    def test_create_reserves_stock(self, create_order, product):
        response = create_order(quantity=3)
        assert response.status_code == 201
        data = response.json()
        assert data["order_number"].startswith("ORD-")
        assert data["status"] == OrderStatus.CREATED
        assert Decimal(data["total_amount"]) == Decimal("300.00")
        assert data["items"][0]["print_name"] == "SAKA"
        assert data["items"][0]["home_or_away"] == "AWAY"
        assert data["status_history"][0]["new_status"] == OrderStatus.CREATED
        product.refresh_from_db()
        assert product.quantity == 2

    def test_insufficient_stock(self, create_order, product):
        create_order(quantity=3)
        response = create_order(quantity=3)
        assert response.status_code == 409
        error = response.json()["errors"][0]
        assert error["code"] == "insufficient_stock"
        assert "Available: 2, Required: 3" in error["detail"]

    def test_empty_items(self, auth_client, customer):
        response = auth_client.post(
            URL, {"customer_id": str(customer.id), "items": []}, format="json"
        )
        assert response.status_code == 400
        assert response.json()["errors"][0]["attr"] == "items"

    def test_unknown_customer(self, create_order, customer):
        customer.is_active = False
        customer.save()
        assert create_order().status_code == 404

    def test_idempotency_key_header(self, auth_client, customer, product):
        payload = {
            "customer_id": str(customer.id),
            "items": [{"product_id": str(product.id), "quantity": 1}],
        }
        first = auth_client.post(URL, payload, format="json", HTTP_IDEMPOTENCY_KEY="k-1")
        second = auth_client.post(URL, payload, format="json", HTTP_IDEMPOTENCY_KEY="k-1")
        assert first.json()["id"] == second.json()["id"]
        product.refresh_from_db()
        assert product.quantity == 4


class TestOrderLifecycle:
    def test_status_flow(self, auth_client, create_order):
        order_id = create_order().json()["id"]
        url = f"{URL}{order_id}/status/"

        assert auth_client.patch(url, {"status": "paid"}, format="json").status_code == 200
        response = auth_client.patch(url, {"status": "DELIVERED"}, format="json")
        assert response.json()["status"] == OrderStatus.DELIVERED

        response = auth_client.patch(url, {"status": "CANCELLED"}, format="json")
        assert response.status_code == 409
        assert response.json()["errors"][0]["code"] == "invalid_state"

    def test_cancel_returns_stock(self, auth_client, create_order, product):
        order_id = create_order().json()["id"]
        auth_client.patch(f"{URL}{order_id}/status/", {"status": "CANCELLED"}, format="json")
        product.refresh_from_db()
        assert product.quantity == 5

    def test_delete_delivered_forbidden(self, auth_client, create_order):
        order_id = create_order().json()["id"]
        for status in ("PAID", "DELIVERED"):
            auth_client.patch(f"{URL}{order_id}/status/", {"status": status}, format="json")
        response = auth_client.delete(f"{URL}{order_id}/")
        assert response.status_code == 409
        assert response.json()["errors"][0]["code"] == "cannot_delete"

    def test_delete_hides_order(self, auth_client, create_order, product):
        order_id = create_order().json()["id"]
        assert auth_client.delete(f"{URL}{order_id}/").status_code == 204
        assert auth_client.get(f"{URL}{order_id}/").status_code == 404
        assert auth_client.get(URL).json()["count"] == 0
        product.refresh_from_db()
        assert product.quantity == 5

    def test_update_items(self, auth_client, create_order, product):
        order_id = create_order(quantity=3).json()["id"]
        response = auth_client.put(
            f"{URL}{order_id}/",
            {"items": [{"product_id": str(product.id), "quantity": 5}], "notes": "size swap"},
            format="json",
        )
        assert response.status_code == 200
        assert response.json()["items"][0]["quantity"] == 5
        assert response.json()["notes"] == "size swap"
        product.refresh_from_db()
        assert product.quantity == 0

    def test_payment_update(self, auth_client, create_order):
        order_id = create_order().json()["id"]
        response = auth_client.patch(
            f"{URL}{order_id}/payment/",
            {"payment_status": "PARTIALLY_PAID", "payment_method": "BANK_TRANSFER"},
            format="json",
        )
        assert response.status_code == 200
        assert response.json()["payment_status"] == "PARTIALLY_PAID"
        assert response.json()["status"] == OrderStatus.CREATED


class TestOrderQueries:
    def test_list_filter_by_status(self, auth_client, create_order):
        paid_id = create_order(quantity=1).json()["id"]
        create_order(quantity=1)
        auth_client.patch(f"{URL}{paid_id}/status/", {"status": "PAID"}, format="json")

        response = auth_client.get(URL, {"status": "PAID"})
        assert [o["id"] for o in response.json()["results"]] == [paid_id]

    def test_search(self, auth_client, create_order):
        create_order(quantity=1, notes="deliver after 6pm")
        assert len(auth_client.get(f"{URL}search/", {"q": "6pm"}).json()) == 1
        assert len(auth_client.get(f"{URL}search/", {"q": "nguyen"}).json()) == 1
        assert auth_client.get(f"{URL}search/", {"q": ""}).json() == []

    def test_recent_limit(self, auth_client, create_order):
        for _ in range(3):
            create_order(quantity=1)
        assert len(auth_client.get(f"{URL}recent/", {"limit": 2}).json()) == 2

    def test_statistics(self, auth_client, create_order):
        create_order(quantity=1)
        cancelled_id = create_order(quantity=2).json()["id"]
        auth_client.patch(
            f"{URL}{cancelled_id}/status/", {"status": "CANCELLED"}, format="json"
        )

        data = auth_client.get(f"{URL}statistics/").json()

        assert data["total_orders"] == 2
        assert Decimal(data["total_revenue"]) == Decimal("300.00")
        assert Decimal(data["average_order_value"]) == Decimal("150.00")
        assert data["orders_by_status"]["CANCELLED"]["count"] == 1

    def test_statistics_bad_window(self, auth_client):
        response = auth_client.get(
            f"{URL}statistics/", {"start_date": "2026-02-01", "end_date": "2026-01-01"}
        )
        assert response.status_code == 400
