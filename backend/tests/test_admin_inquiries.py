import csv
import io

from conftest import consult_inquiry, start_inquiry
from app.services.inquiry_service import CSV_HEADERS


def _submitted(client, email="claire@example.com", services=("renovation",)):
    inquiry_id = start_inquiry(client, email=email)
    client.put(f"/api/inquiries/{inquiry_id}/context", json={"selectedServices": list(services)})
    client.put(f"/api/inquiries/{inquiry_id}/path", json={"selectedPath": "general"})
    assert client.post(f"/api/inquiries/{inquiry_id}/submit").status_code == 200
    return inquiry_id


def test_list_filters_and_paginates(client, admin_headers):
    _submitted(client, "a@example.com", ("renovation",))
    _submitted(client, "b@example.com", ("extension",))
    start_inquiry(client, email="draft@example.com")

    response = client.get(
        "/api/admin/inquiries",
        params={"status": "submitted", "limit": 1},
        headers=admin_headers,
    )

    assert response.status_code == 200
    data = response.json()["data"]
    assert len(data["inquiries"]) == 1
    assert data["pagination"]["total"] == 2
    assert data["pagination"]["totalPages"] == 2
    assert data["filters"]["services"] == ["extension", "renovation"]
    assert "draft" in data["filters"]["statuses"]


def test_list_searches_and_filters_by_service(client, admin_headers):
    _submitted(client, "alice@example.com", ("renovation",))
    _submitted(client, "bob@example.com", ("extension",))

    by_service = client.get("/api/admin/inquiries", params={"service": "extension"}, headers=admin_headers)
    by_search = client.get("/api/admin/inquiries", params={"q": "ALICE"}, headers=admin_headers)
    everything = client.get("/api/admin/inquiries", params={"status": "all"}, headers=admin_headers)

    assert [i["email"] for i in by_service.json()["data"]["inquiries"]] == ["bob@example.com"]
    assert [i["email"] for i in by_search.json()["data"]["inquiries"]] == ["alice@example.com"]
    assert everything.json()["data"]["pagination"]["total"] == 2


def test_csv_export(client, admin_headers):
    _submitted(client, "alice@example.com", ("renovation", "extension"))

    response = client.get("/api/admin/inquiries/export", headers=admin_headers)

    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/csv")
    assert "attachment" in response.headers["content-disposition"]
    rows = list(csv.reader(io.StringIO(response.text)))
    assert rows[0] == CSV_HEADERS
    assert len(rows) == 2
    assert rows[1][2] == "Claire Martin"
    assert rows[1][7] == "renovation; extension"


def test_status_update_follows_transition_table(client, admin_headers):
    inquiry_id = _submitted(client)

    reviewed = client.patch(
        f"/api/admin/inquiries/{inquiry_id}/status",
        json={"status": "reviewed", "note": "Called the client"},
        headers=admin_headers,
    )
    backwards = client.patch(
        f"/api/admin/inquiries/{inquiry_id}/status",
        json={"status": "draft"},
        headers=admin_headers,
    )

    assert reviewed.status_code == 200
    data = reviewed.json()["data"]
    assert data["status"] == "reviewed"
    assert data["reviewedBy"] == "admin@atelier.test"
    assert data["adminNotes"][0]["text"] == "Called the client"
    assert backwards.status_code == 409


def test_status_update_rejects_unknown_status(client, admin_headers):
    inquiry_id = _submitted(client)

    response = client.patch(
        f"/api/admin/inquiries/{inquiry_id}/status",
        json={"status": "archived"},
        headers=admin_headers,
    )

    assert response.status_code == 400


def _set_status(client, headers, inquiry_id, status):
    return client.patch(f"/api/admin/inquiries/{inquiry_id}/status", json={"status": status}, headers=headers)


def test_general_inquiry_cannot_take_payment_statuses(client, admin_headers):
    inquiry_id = start_inquiry(client)
    client.put(f"/api/inquiries/{inquiry_id}/path", json={"selectedPath": "general"})

    responses = [
        _set_status(client, admin_headers, inquiry_id, status)
        for status in ("paid", "payment_pending", "consultation_pending_payment")
    ]

    assert [r.status_code for r in responses] == [409, 409, 409]
    inquiry = client.get(f"/api/inquiries/{inquiry_id}").json()["data"]
    assert inquiry["status"] == "draft"
    assert "paymentStatus" not in inquiry


def test_consult_inquiry_is_marked_paid_only_after_payment(client, admin_headers, gateway):
    inquiry_id = consult_inquiry(client)
    session_id = client.post(
        "/api/stripe/create-checkout-session",
        json={"inquiryId": inquiry_id, "duration": 60},
    ).json()["data"]["sessionId"]

    early = _set_status(client, admin_headers, inquiry_id, "paid")

    assert early.status_code == 409
    assert client.get(f"/api/inquiries/{inquiry_id}").json()["data"]["status"] == "payment_pending"

    gateway.mark_paid(session_id)
    client.post(f"/api/stripe/verify-payment/{inquiry_id}")
    finalized = _set_status(client, admin_headers, inquiry_id, "invoice_finalized")

    assert finalized.status_code == 200
    assert finalized.json()["data"]["status"] == "invoice_finalized"


def test_bulk_status_reports_skipped(client, admin_headers):
    submitted_id = _submitted(client)
    draft_id = start_inquiry(client, email="draft@example.com")

    response = client.patch(
        "/api/admin/inquiries/bulk-status",
        json={"ids": [submitted_id, draft_id], "status": "reviewed"},
        headers=admin_headers,
    )

    assert response.status_code == 200
    data = response.json()["data"]
    assert data["updated"] == [submitted_id]
    assert [s["id"] for s in data["skipped"]] == [draft_id]


def test_notes_and_delete(client, admin_headers, assets):
    inquiry_id = start_inquiry(client)
    client.put(
        f"/api/inquiries/{inquiry_id}/context",
        data={"description": "Attic"},
        files=[("documents", ("plan.pdf", b"%PDF", "application/pdf"))],
    )

    noted = client.post(
        f"/api/admin/inquiries/{inquiry_id}/notes",
        json={"text": "Budget seems low"},
        headers=admin_headers,
    )
    deleted = client.delete(f"/api/admin/inquiries/{inquiry_id}", headers=admin_headers)

    assert noted.status_code == 200
    assert noted.json()["data"]["adminNotes"][0]["author"]["email"] == "admin@atelier.test"
    assert deleted.status_code == 200
    assert assets.deleted == assets.uploaded
    assert client.get(f"/api/inquiries/{inquiry_id}").status_code == 404


def test_bulk_delete(client, admin_headers):
    ids = [start_inquiry(client, email=f"user{i}@example.com") for i in range(3)]

    response = client.post("/api/admin/inquiries/bulk-delete", json={"ids": ids[:2]}, headers=admin_headers)

    assert response.status_code == 200
    assert response.json()["data"]["deleted"] == 2
    assert client.get(f"/api/inquiries/{ids[2]}").status_code == 200


def test_bulk_delete_discards_uploaded_documents(client, admin_headers, assets):
    inquiry_id = start_inquiry(client)
    client.put(
        f"/api/inquiries/{inquiry_id}/context",
        data={"description": "Loft conversion"},
        files=[("documents", ("plan.pdf", b"%PDF", "application/pdf"))],
    )
    assert len(assets.uploaded) == 1

    response = client.post("/api/admin/inquiries/bulk-delete", json={"ids": [inquiry_id]}, headers=admin_headers)

    assert response.json()["data"]["deleted"] == 1
    assert assets.deleted == assets.uploaded
