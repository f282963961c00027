"""
Tests for the HTTP surface in `api/`.

Covers:
- Business failures come back in the body with success=false.
- Successful sales are serialized with items and installments.
- Listing installments sweeps overdue rows.
- Malformed bodies are rejected by request validation.
"""

from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from api.main import app


@pytest.fixture
def client(db):
    return TestClient(app)


def _sale_body(quantity, **overrides):
    body = {
        "customer_name": "Ana Souza",
        "sale_date": "2025-03-10",
        "installments_count": 3,
        "items": [
            {"product_id": "P", "product_name": "Silver ring", "quantity": quantity, "unit_price": "100.00"}
        ],
    }
    body.update(overrides)
    return body


def test_health(client) -> None:
    response = client.get("/health")

    assert response.status_code == 200
    assert response.json()["status"] == "healthy"


def test_validate_stock_reports_all_problems(client, db) -> None:
    db.add_product("P", 1, title="Silver ring")

    response = client.post(
        "/api/v1/stock/validate",
        json={
            "items": [
                {"product_id": "P", "product_name": "Silver ring", "quantity": 2},
                {"product_name": "Custom piece", "quantity": 1},
            ]
        },
    )

    assert response.status_code == 200
    body = response.json()
    assert body["is_valid"] is False
    assert len(body["violations"]) == 2
    assert body["shortages"] == [
        {"product_id": "P", "product_name": "Silver ring", "requested": 2, "available": 1}
    ]


def test_create_sale_success(client, db) -> None:
    db.add_product("P", 5)

    response = client.post("/api/v1/sales", json=_sale_body(3))

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["state"] == "committed"
    assert body["sale"]["total_amount"] == "300.00"
    assert len(body["sale"]["items"]) == 1
    assert [inst["amount"] for inst in body["sale"]["installments"]] == ["100.00", "100.00", "100.00"]
    assert db.stock_of("P") == 2


def test_create_sale_failure_is_returned_in_body(client, db) -> None:
    db.add_product("P", 2)

    response = client.post("/api/v1/sales", json=_sale_body(3))

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is False
    assert body["sale"] is None
    assert "available: 2" in body["error"]
    assert db.rows("sales") == []


def test_create_sale_rejects_malformed_body(client) -> None:
    response = client.post("/api/v1/sales", json={"customer_name": "Ana"})

    assert response.status_code == 422


def test_get_update_and_delete_sale(client, db) -> None:
    db.add_product("P", 5)
    sale_id = client.post("/api/v1/sales", json=_sale_body(1)).json()["sale"]["sale_id"]

    assert client.get(f"/api/v1/sales/{sale_id}").json()["customer_name"] == "Ana Souza"
    assert client.get("/api/v1/sales/missing").status_code == 404

    update = client.patch(f"/api/v1/sales/{sale_id}", json={"payment_status": "paid"})
    assert update.json() == {"success": True, "error": None}

    assert len(client.get("/api/v1/sales").json()) == 1

    delete = client.delete(f"/api/v1/sales/{sale_id}")
    assert delete.json()["success"] is True
    assert db.stock_of("P") == 5


def test_installment_listing_and_status(client, db) -> None:
    db.add_product("P", 5)
    client.post("/api/v1/sales", json=_sale_body(1, sale_date="2020-01-10"))

    installments = client.get("/api/v1/installments").json()

    assert [inst["status"] for inst in installments] == ["overdue", "overdue", "overdue"]

    first_id = installments[0]["installment_id"]
    response = client.patch(
        f"/api/v1/installments/{first_id}/status",
        json={"status": "paid", "payment_method": "pix"},
    )
    assert response.json() == {"success": True, "error": None}
    assert next(r for r in db.rows("installments") if r["id"] == first_id)["payment_method"] == "pix"
