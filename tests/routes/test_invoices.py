"""
Tests for invoice endpoints.

Tests cover:
- Creation (recipient identity required, line items, totals)
- Sent/received visibility across users
- Owner-only mutations
- Error responses
"""

import pytest
from fastapi.testclient import TestClient

from backend.main import app
from tests.fakes import make_user

client = TestClient(app)

ALICE = make_user("alice", phone="1111111111")
BOB = make_user("bob", phone="+91 98765 43210")
CAROL = make_user("carol", email="carol@example.com")


@pytest.fixture
def db(api_db):
    api_db.seed(
        "profiles",
        {"id": "alice", "full_name": "Alice", "phone": "1111111111", "email": None},
        {"id": "bob", "full_name": "Bob", "phone": "9876543210", "email": None},
        {"id": "carol", "full_name": "Carol", "phone": None, "email": "carol@example.com"},
    )
    return api_db


def _create_customer(**fields):
    response = client.post("/customers", json={"name": "Bob Traders", **fields})
    assert response.status_code == 201
    return response.json()["customer"]


def _create_invoice(**fields):
    payload = {
        "number": "INV-1",
        "items": [
            {"name": "Design", "qty": 2, "rate": 100},
            {"name": "Hosting", "qty": 1, "rate": 50},
        ],
    }
    payload.update(fields)
    return client.post("/invoices", json=payload)


class TestCreateInvoice:
    """Tests for POST /invoices"""

    def test_create_success(self, db, login):
        login(ALICE)
        customer = _create_customer(phone="+91-98765 43210")

        response = _create_invoice(customer_id=customer["id"])

        assert response.status_code == 201
        data = response.json()
        assert data["status"] == "CREATED"
        invoice = data["invoice"]
        assert invoice["type"] == "sent"
        assert invoice["recipient_phone"] == "9876543210"
        assert invoice["total"] == 250
        assert [i["name"] for i in invoice["invoice_items"]] == ["Design", "Hosting"]
        assert invoice["customers"]["name"] == "Bob Traders"

    def test_customer_without_contact_rejected(self, db, login):
        login(ALICE)
        customer = _create_customer()

        response = _create_invoice(customer_id=customer["id"])

        assert response.status_code == 400
        assert response.json()["detail"]["error"] == "invalid_request"
        assert db.rows("invoices") == []
        assert db.rows("messages") == []

    def test_override_without_customer(self, db, login):
        login(ALICE)

        response = _create_invoice(recipient_email="Carol@Example.com")

        assert response.status_code == 201
        assert response.json()["invoice"]["recipient_email"] == "carol@example.com"

    def test_invalid_override_rejected(self, db, login):
        login(ALICE)

        response = _create_invoice(recipient_phone="12345")

        assert response.status_code == 400
        assert db.count("invoices", "insert") == 0

    def test_missing_number_is_validation_error(self, db, login):
        login(ALICE)

        response = client.post("/invoices", json={"recipient_phone": "9876543210"})

        assert response.status_code == 422
        assert response.json()["error"] == "validation_error"

    def test_database_error(self, db, login):
        from postgrest.exceptions import APIError

        login(ALICE)
        db.fail("invoices", "insert", APIError({"message": "insert violates constraint", "code": "23514"}))

        response = _create_invoice(recipient_phone="9876543210")

        assert response.status_code == 400
        assert response.json()["detail"] == {
            "error": "database_error",
            "details": "insert violates constraint",
        }


class TestVisibility:
    """The same invoice seen by its sender, its recipient and a stranger."""

    def test_sent_received_and_hidden(self, db, login):
        login(ALICE)
        customer = _create_customer(phone="+91-98765 43210")
        invoice_id = _create_invoice(customer_id=customer["id"]).json()["invoice"]["id"]

        login(BOB)
        listing = client.get("/invoices").json()
        assert listing["count"] == 1
        assert listing["invoices"][0]["id"] == invoice_id
        assert listing["invoices"][0]["type"] == "received"

        detail = client.get(f"/invoices/{invoice_id}")
        assert detail.status_code == 200
        assert detail.json()["type"] == "received"
        assert detail.json()["total"] == 250

        messages = client.get("/messages").json()
        assert messages["unread_count"] == 1
        assert messages["messages"][0]["title"] == "New invoice INV-1 from Alice"

        login(CAROL)
        assert client.get("/invoices").json() == {"invoices": [], "count": 0}
        response = client.get(f"/invoices/{invoice_id}")
        assert response.status_code == 404
        assert response.json()["detail"]["error"] == "not_found"

        login(ALICE)
        listing = client.get("/invoices").json()
        assert [i["type"] for i in listing["invoices"]] == ["sent"]

    def test_recipient_cannot_modify(self, db, login):
        login(ALICE)
        invoice_id = _create_invoice(recipient_phone="9876543210").json()["invoice"]["id"]

        login(BOB)
        assert client.patch(f"/invoices/{invoice_id}", json={"status": "paid"}).status_code == 404
        assert client.delete(f"/invoices/{invoice_id}").status_code == 404
        assert client.post(f"/invoices/{invoice_id}/items", json={"name": "X"}).status_code == 404


class TestOwnerMutations:

    def test_update(self, db, login):
        login(ALICE)
        invoice_id = _create_invoice(recipient_phone="9876543210").json()["invoice"]["id"]

        response = client.patch(f"/invoices/{invoice_id}", json={"status": "paid", "notes": "Thanks"})

        assert response.status_code == 200
        invoice = response.json()["invoice"]
        assert invoice["status"] == "paid"
        assert invoice["notes"] == "Thanks"
        assert invoice["total"] == 250

    def test_update_blank_number(self, db, login):
        login(ALICE)
        invoice_id = _create_invoice(recipient_phone="9876543210").json()["invoice"]["id"]

        response = client.patch(f"/invoices/{invoice_id}", json={"number": "  "})

        assert response.status_code == 400

    def test_line_items_and_delete(self, db, login):
        login(ALICE)
        invoice_id = _create_invoice(recipient_phone="9876543210", items=[]).json()["invoice"]["id"]

        added = client.post(f"/invoices/{invoice_id}/items", json={"name": "Audit", "qty": 1, "rate": 900})
        assert added.status_code == 201
        item_id = added.json()["item"]["id"]
        assert client.get(f"/invoices/{invoice_id}").json()["total"] == 900

        removed = client.delete(f"/invoices/{invoice_id}/items/{item_id}")
        assert removed.status_code == 200
        assert removed.json()["id"] == item_id

        deleted = client.delete(f"/invoices/{invoice_id}")
        assert deleted.status_code == 200
        assert client.get(f"/invoices/{invoice_id}").status_code == 404
