"""Tests for client and invoice management."""
from __future__ import annotations

from datetime import date, timedelta

import pytest

from stagepass.extensions import db
from stagepass.models import Client, Invoice, InvoiceLineItem, today


@pytest.fixture
def venue(app):
    client = Client(name="Blue Note Jazz Club", email="booking@bluenote.com", type="venue")
    db.session.add(client)
    db.session.commit()
    return client


def _create(client, headers, venue, **overrides):
    payload = {
        "client_id": venue.client_id,
        "issue_date": "2024-01-15",
        "payment_terms": "Net 30",
        "tax_rate": 8.75,
        "items": [
            {"description": "Live Performance - Evening Show", "quantity": 1,
             "rate_cents": 250000, "category": "performance"},
            {"description": "Sound Check & Rehearsal", "quantity": 2,
             "rate_cents": 20000, "category": "performance"},
        ],
    }
    payload.update(overrides)
    return client.post("/artist/invoices", json=payload, headers=headers)


# --- Clients ---


def test_add_client(client, auth_headers) -> None:
    response = client.post(
        "/artist/clients",
        json={"name": "Atlantic Records", "email": "Payments@Atlantic.com", "type": "label",
              "phone": "(212) 555-0456"},
        headers=auth_headers,
    )

    assert response.status_code == 201
    body = response.get_json()["client"]
    assert body["email"] == "payments@atlantic.com"
    assert body["type"] == "label"
    assert body["address"] is None


def test_add_client_unknown_type_400(client, auth_headers) -> None:
    response = client.post(
        "/artist/clients",
        json={"name": "X", "email": "x@example.com", "type": "promoter"},
        headers=auth_headers,
    )

    assert response.status_code == 400


def test_update_and_get_client(client, auth_headers, venue) -> None:
    response = client.put(
        f"/artist/clients/{venue.client_id}",
        json={"notes": "Prefers wire transfer", "city": "New York"},
        headers=auth_headers,
    )
    assert response.status_code == 200

    fetched = client.get(f"/artist/clients/{venue.client_id}", headers=auth_headers).get_json()["client"]
    assert fetched["notes"] == "Prefers wire transfer"
    assert fetched["city"] == "New York"
    assert fetched["invoices"] == []


def test_get_client_not_found(client, auth_headers) -> None:
    response = client.get("/artist/clients/404", headers=auth_headers)

    assert response.status_code == 404


def test_list_clients_by_type(client, auth_headers, venue) -> None:
    db.session.add(Client(name="Sarah Johnson", email="sarah@example.com", type="artist"))
    db.session.commit()

    response = client.get("/artist/clients?type=artist", headers=auth_headers)

    assert [c["name"] for c in response.get_json()["clients"]] == ["Sarah Johnson"]


# --- Invoices ---


def test_create_invoice_computes_totals(client, auth_headers, venue) -> None:
    response = _create(client, auth_headers, venue)

    assert response.status_code == 201
    invoice = response.get_json()["invoice"]
    assert invoice["invoice_number"] == "INV-2024-001"
    assert invoice["status"] == "draft"
    assert invoice["due_date"] == "2024-02-14"
    assert [i["amount_cents"] for i in invoice["items"]] == [250000, 40000]
    assert invoice["subtotal_cents"] == 290000
    assert invoice["tax_cents"] == 25375
    assert invoice["total_cents"] == 315375
    assert invoice["client_name"] == "Blue Note Jazz Club"
    assert invoice["reminders_sent"] == 0


def test_invoice_numbers_increase_within_year(client, auth_headers, venue) -> None:
    first = _create(client, auth_headers, venue).get_json()["invoice"]
    second = _create(client, auth_headers, venue).get_json()["invoice"]
    client.delete(f"/artist/invoices/{first['id']}", headers=auth_headers)
    third = _create(client, auth_headers, venue).get_json()["invoice"]
    next_year = _create(client, auth_headers, venue, issue_date="2025-01-02").get_json()["invoice"]

    assert second["invoice_number"] == "INV-2024-002"
    assert third["invoice_number"] == "INV-2024-003"
    assert next_year["invoice_number"] == "INV-2025-001"


def test_create_invoice_default_tax_rate(client, auth_headers, venue) -> None:
    payload_items = [{"description": "Guest verse", "quantity": 1, "rate_cents": 100000,
                      "category": "collaboration"}]

    response = _create(client, auth_headers, venue, items=payload_items, tax_rate=None)

    # explicit null is not a number
    assert response.status_code == 400

    response = client.post(
        "/artist/invoices",
        json={"client_id": venue.client_id, "issue_date": "2024-05-01", "items": payload_items},
        headers=auth_headers,
    )
    invoice = response.get_json()["invoice"]
    assert invoice["tax_rate"] == 8.75
    assert invoice["total_cents"] == 108750
    assert invoice["due_date"] == "2024-05-31"


def test_create_invoice_unknown_client_400(client, auth_headers) -> None:
    response = client.post(
        "/artist/invoices",
        json={"client_id": 99, "items": [{"description": "x", "rate_cents": 1}]},
        headers=auth_headers,
    )

    assert response.status_code == 400


@pytest.mark.parametrize("items", [
    [],
    [{"description": "", "rate_cents": 100}],
    [{"description": "Session", "quantity": 0, "rate_cents": 100}],
    [{"description": "Session", "rate_cents": 100, "category": "catering"}],
    [{"description": "Session", "rate_cents": "lots"}],
])
def test_create_invoice_invalid_items_400(client, auth_headers, venue, items) -> None:
    response = _create(client, auth_headers, venue, items=items)

    assert response.status_code == 400
    assert response.get_json()["error"] == "invalid_payload"
    assert Invoice.query.count() == 0


def test_update_invoice_recomputes_totals(client, auth_headers, venue) -> None:
    invoice = _create(client, auth_headers, venue).get_json()["invoice"]

    response = client.put(
        f"/artist/invoices/{invoice['id']}",
        json={
            "tax_rate": 0,
            "items": [{"description": "Music Production Services", "quantity": 40,
                       "rate_cents": 10000, "category": "recording"}],
        },
        headers=auth_headers,
    )

    assert response.status_code == 200
    updated = response.get_json()["invoice"]
    assert updated["subtotal_cents"] == 400000
    assert updated["tax_cents"] == 0
    assert updated["total_cents"] == 400000
    assert len(updated["items"]) == 1
    assert InvoiceLineItem.query.count() == 1


def test_update_invoice_terms_moves_due_date(client, auth_headers, venue) -> None:
    invoice = _create(client, auth_headers, venue).get_json()["invoice"]

    response = client.put(
        f"/artist/invoices/{invoice['id']}", json={"payment_terms": "Net 15"}, headers=auth_headers
    )

    assert response.get_json()["invoice"]["due_date"] == "2024-01-30"


def test_update_invoice_invalid_status_leaves_invoice_unchanged(client, auth_headers, venue) -> None:
    invoice = _create(client, auth_headers, venue).get_json()["invoice"]

    response = client.put(
        f"/artist/invoices/{invoice['id']}",
        json={"notes": "changed", "status": "lost"},
        headers=auth_headers,
    )

    assert response.status_code == 400
    fetched = client.get(f"/artist/invoices/{invoice['id']}", headers=auth_headers).get_json()["invoice"]
    assert fetched["notes"] is None


def test_send_mark_paid_and_remind(client, auth_headers, venue) -> None:
    invoice_id = _create(client, auth_headers, venue).get_json()["invoice"]["id"]

    sent = client.post(f"/artist/invoices/{invoice_id}/send", headers=auth_headers).get_json()["invoice"]
    assert sent["status"] == "sent"
    assert sent["sent_date"] == today().isoformat()

    client.post(f"/artist/invoices/{invoice_id}/remind", headers=auth_headers)
    reminded = client.post(f"/artist/invoices/{invoice_id}/remind", headers=auth_headers).get_json()["invoice"]
    assert reminded["reminders_sent"] == 2
    assert reminded["last_reminder_at"] is not None

    paid = client.post(
        f"/artist/invoices/{invoice_id}/mark-paid",
        json={"paid_date": "2024-02-10", "payment_method": "Wire Transfer"},
        headers=auth_headers,
    ).get_json()["invoice"]
    assert paid["status"] == "paid"
    assert paid["paid_date"] == "2024-02-10"
    assert paid["payment_method"] == "Wire Transfer"

    resend = client.post(f"/artist/invoices/{invoice_id}/send", headers=auth_headers)
    assert resend.status_code == 409


def test_mark_paid_requires_method(client, auth_headers, venue) -> None:
    invoice_id = _create(client, auth_headers, venue).get_json()["invoice"]["id"]

    response = client.post(f"/artist/invoices/{invoice_id}/mark-paid", json={}, headers=auth_headers)

    assert response.status_code == 400


def test_list_invoices_filters(client, auth_headers, venue) -> None:
    label = Client(name="Atlantic Records", email="payments@atlantic.com", type="label")
    db.session.add(label)
    db.session.commit()

    _create(client, auth_headers, venue)
    _create(client, auth_headers, label, issue_date="2024-02-01", status="sent", items=[
        {"description": "Studio Session - Lead Vocals", "quantity": 8, "rate_cents": 15000,
         "category": "recording"},
    ])

    def numbers(query: str) -> list[str]:
        response = client.get(f"/artist/invoices{query}", headers=auth_headers)
        return [inv["invoice_number"] for inv in response.get_json()["invoices"]]

    assert numbers("") == ["INV-2024-002", "INV-2024-001"]
    assert numbers("?status=sent") == ["INV-2024-002"]
    assert numbers("?start=2024-01-01&end=2024-01-31") == ["INV-2024-001"]
    assert numbers("?end=2024-02-01") == ["INV-2024-002", "INV-2024-001"]
    assert numbers("?q=atlantic") == ["INV-2024-002"]
    assert numbers("?q=vocals") == ["INV-2024-002"]
    assert numbers("?q=inv-2024-001") == ["INV-2024-001"]


def test_list_invoices_bad_date_400(client, auth_headers) -> None:
    response = client.get("/artist/invoices?start=yesterday", headers=auth_headers)

    assert response.status_code == 400
    assert response.get_json()["error"] == "invalid_payload"


def test_invoice_stats_endpoint(client, auth_headers, venue) -> None:
    this_month = today().replace(day=1)
    _create(client, auth_headers, venue, issue_date=this_month.isoformat(), status="sent")
    _create(client, auth_headers, venue, issue_date=(this_month - timedelta(days=1)).isoformat(),
            status="overdue")

    stats = client.get("/artist/invoices/stats", headers=auth_headers).get_json()["stats"]

    assert stats["total_invoices"] == 2
    assert stats["total_outstanding_cents"] == 2 * 315375
    assert stats["overdue_amount_cents"] == 315375
    assert stats["this_month_revenue_cents"] == 315375
    assert stats["last_month_revenue_cents"] == 315375


def test_delete_invoice(client, auth_headers, venue) -> None:
    invoice_id = _create(client, auth_headers, venue).get_json()["invoice"]["id"]

    response = client.delete(f"/artist/invoices/{invoice_id}", headers=auth_headers)

    assert response.status_code == 200
    assert db.session.get(Invoice, invoice_id) is None
    assert InvoiceLineItem.query.count() == 0
    assert client.delete(f"/artist/invoices/{invoice_id}", headers=auth_headers).status_code == 404


def test_invoice_search_is_literal_and_folds_case(client, auth_headers, venue) -> None:
    cafe = Client(name="Café Wha?", email="booking@cafewha.com", type="venue")
    db.session.add(cafe)
    db.session.commit()
    _create(client, auth_headers, venue)
    _create(client, auth_headers, cafe, items=[
        {"description": "Acoustic set - 50% deposit", "quantity": 1, "rate_cents": 60000},
    ])

    def numbers(text: str) -> list[str]:
        response = client.get("/artist/invoices", query_string={"q": text}, headers=auth_headers)
        return [inv["invoice_number"] for inv in response.get_json()["invoices"]]

    assert numbers("%") == ["INV-2024-002"]
    assert numbers("50%") == ["INV-2024-002"]
    assert numbers("_") == []
    assert numbers("CAFÉ") == ["INV-2024-002"]
