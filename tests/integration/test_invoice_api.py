from datetime import timedelta
from decimal import Decimal

import pytest
from django.utils import timezone

from modules.invoices.constants import InvoiceStatus

pytestmark = pytest.mark.integration

URL = "/api/v1/invoices/"


@pytest.fixture()
def order_id(auth_client, customer, product):
    response = auth_client.post(
        "/api/v1/orders/",
        {"customer_id": str(customer.id), "items": [{"product_id": str(product.id), "quantity": 2}]},
        format="json",
    )
    return response.json()["id"]


class TestInvoiceAPI:
    def test_create_from_order(self, auth_client, order_id, customer):
        response = auth_client.post(URL, {"order_id": order_id}, format="json")
        assert response.status_code == 201
        data = response.json()
        assert data["invoice_number"].startswith("INV-")
        assert data["customer_id"] == str(customer.id)
        assert Decimal(data["total_amount"]) == Decimal("200.00")
        assert data["status"] == InvoiceStatus.ISSUED

    def test_one_invoice_per_order(self, auth_client, order_id):
        auth_client.post(URL, {"order_id": order_id}, format="json")
        response = auth_client.post(URL, {"order_id": order_id}, format="json")
        assert response.status_code == 409

    def test_manual_invoice(self, auth_client, customer):
        response = auth_client.post(
            URL,
            {"customer_id": str(customer.id), "total_amount": "75.00", "notes": "Printing fee"},
            format="json",
        )
        assert response.status_code == 201
        assert response.json()["order_id"] is None
        assert response.json()["order_number"] is None

    def test_missing_target(self, auth_client):
        assert auth_client.post(URL, {"notes": "x"}, format="json").status_code == 400

    def test_pay_marks_order_paid(self, auth_client, order_id):
        invoice_id = auth_client.post(URL, {"order_id": order_id}, format="json").json()["id"]

        response = auth_client.post(
            f"{URL}{invoice_id}/pay/", {"payment_method": "CARD"}, format="json"
        )
        assert response.status_code == 200
        assert response.json()["status"] == InvoiceStatus.PAID

        order = auth_client.get(f"/api/v1/orders/{order_id}/").json()
        assert order["payment_status"] == "PAID"
        assert order["payment_method"] == "CARD"

        again = auth_client.post(f"{URL}{invoice_id}/pay/", {}, format="json")
        assert again.status_code == 409
        assert auth_client.delete(f"{URL}{invoice_id}/").status_code == 409

    def test_cancel_then_reissue(self, auth_client, order_id):
        invoice_id = auth_client.post(URL, {"order_id": order_id}, format="json").json()["id"]
        assert auth_client.delete(f"{URL}{invoice_id}/").status_code == 204
        assert auth_client.get(f"{URL}{invoice_id}/").json()["status"] == InvoiceStatus.CANCELLED
        assert auth_client.post(URL, {"order_id": order_id}, format="json").status_code == 201

    def test_status_endpoint(self, auth_client, order_id):
        invoice_id = auth_client.post(URL, {"order_id": order_id}, format="json").json()["id"]
        response = auth_client.patch(f"{URL}{invoice_id}/status/", {"status": "overdue"}, format="json")
        assert response.status_code == 200
        assert response.json()["status"] == InvoiceStatus.OVERDUE

    def test_list_filter_by_status(self, auth_client, order_id, customer):
        auth_client.post(URL, {"order_id": order_id}, format="json")
        auth_client.post(
            URL, {"customer_id": str(customer.id), "total_amount": "10"}, format="json"
        )
        manual = auth_client.get(URL, {"status": "ISSUED"}).json()
        assert manual["count"] == 2


class TestInvoiceReporting:
    @pytest.fixture()
    def invoices(self, auth_client, order_id, customer):
        """One paid invoice for the order plus an unpaid manual one past its due date."""
        paid = auth_client.post(URL, {"order_id": order_id}, format="json").json()
        auth_client.post(f"{URL}{paid['id']}/pay/", {"payment_method": "CARD"}, format="json")
        late = auth_client.post(
            URL,
            {
                "customer_id": str(customer.id),
                "total_amount": "50.00",
                "due_date": str(timezone.localdate() - timedelta(days=3)),
            },
            format="json",
        ).json()
        return paid, late

    def test_lookup_by_number(self, auth_client, invoices):
        paid, _ = invoices
        response = auth_client.get(f"{URL}code/{paid['invoice_number'].lower()}/")
        assert response.status_code == 200
        assert response.json()["id"] == paid["id"]

    def test_unknown_number(self, auth_client):
        response = auth_client.get(f"{URL}code/INV-20260101-000000/")
        assert response.status_code == 404
        assert response.json()["errors"][0]["code"] == "not_found"

    def test_pending_and_overdue(self, auth_client, invoices, customer):
        _, late = invoices
        on_time = auth_client.post(
            URL,
            {
                "customer_id": str(customer.id),
                "total_amount": "10.00",
                "due_date": str(timezone.localdate() + timedelta(days=3)),
            },
            format="json",
        ).json()

        pending = {i["id"] for i in auth_client.get(f"{URL}pending/").json()}
        overdue = [i["id"] for i in auth_client.get(f"{URL}overdue/").json()]

        assert pending == {late["id"], on_time["id"]}
        assert overdue == [late["id"]]

    def test_recent(self, auth_client, invoices):
        assert len(auth_client.get(f"{URL}recent/", {"limit": 1}).json()) == 1

    def test_statistics(self, auth_client, invoices):
        data = auth_client.get(f"{URL}statistics/").json()

        assert data["total_invoices"] == 2
        assert Decimal(data["total_amount"]) == Decimal("250.00")
        assert Decimal(data["average_invoice_value"]) == Decimal("125.00")
        assert Decimal(data["paid_amount"]) == Decimal("200.00")
        assert Decimal(data["outstanding_amount"]) == Decimal("50.00")
        assert data["invoices_by_status"][InvoiceStatus.PAID]["count"] == 1
        assert Decimal(data["invoices_by_payment_method"]["CARD"]["amount"]) == Decimal("200.00")

    def test_report(self, auth_client, invoices):
        data = auth_client.get(f"{URL}report/").json()

        month = timezone.localdate().replace(day=1).isoformat()
        assert {(row["month"], row["status"], row["count"]) for row in data["rows"]} == {
            (month, InvoiceStatus.PAID, 1),
            (month, InvoiceStatus.ISSUED, 1),
        }
        assert data["summary"]["total_invoices"] == 2
        assert Decimal(data["summary"]["total_amount"]) == Decimal("250.00")

    def test_report_filtered_by_status(self, auth_client, invoices):
        data = auth_client.get(f"{URL}report/", {"status": "paid"}).json()
        assert [row["status"] for row in data["rows"]] == [InvoiceStatus.PAID]
        assert Decimal(data["summary"]["total_amount"]) == Decimal("200.00")

    def test_report_rejects_unknown_status(self, auth_client):
        assert auth_client.get(f"{URL}report/", {"status": "LOST"}).status_code == 400
