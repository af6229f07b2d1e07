"""Every failure renders as ``{"type": ..., "errors": [{"code", "detail", "attr"}]}``."""

import pytest

pytestmark = pytest.mark.integration


def _assert_standard(data):
    assert "type" in data
    assert isinstance(data["errors"], list)
    assert data["errors"]
    assert {"code", "detail", "attr"} <= set(data["errors"][0])


class TestErrorFormat:
    def test_auth_error(self, api_client):
        response = api_client.get("/api/v1/orders/")
        assert response.status_code == 401
        _assert_standard(response.json())

    def test_malformed_json(self, auth_client):
        response = auth_client.post(
            "/api/v1/customers/", data="{", content_type="application/json"
        )
        assert response.status_code == 400
        _assert_standard(response.json())

    @pytest.mark.parametrize("body", ["[1, 2]", '"text"', "42"])
    def test_json_body_must_be_an_object(self, auth_client, body):
        response = auth_client.post(
            "/api/v1/customers/", data=body, content_type="application/json"
        )
        assert response.status_code == 400
        data = response.json()
        _assert_standard(data)
        assert data["type"] == "validation_error"
        assert data["errors"][0]["attr"] == "non_field_errors"

    def test_dto_validation_error(self, auth_client):
        response = auth_client.post("/api/v1/products/", {"name": "X"}, format="json")
        assert response.status_code == 400
        data = response.json()
        _assert_standard(data)
        assert data["type"] == "validation_error"
        assert {e["attr"] for e in data["errors"]} >= {"team_name", "size", "price"}

    def test_domain_not_found(self, auth_client):
        response = auth_client.get("/api/v1/pre-orders/00000000-0000-0000-0000-000000000000/")
        assert response.status_code == 404
        data = response.json()
        _assert_standard(data)
        assert data["errors"][0]["code"] == "not_found"

    def test_nested_item_error_attr(self, auth_client, customer, product):
        response = auth_client.post(
            "/api/v1/orders/",
            {"customer_id": str(customer.id), "items": [{"product_id": str(product.id), "quantity": 0}]},
            format="json",
        )
        assert response.status_code == 400
        assert response.json()["errors"][0]["attr"] == "items.0.quantity"
