from conftest import consult_inquiry, start_inquiry


def test_identity_step_applies_defaults(client):
    response = client.post("/api/inquiries", json={"email": "  Claire@Example.COM "})

    assert response.status_code == 201
    data = response.json()["data"]
    assert data["clientType"] == "private"
    assert data["email"] == "claire@example.com"
    assert data["status"] == "draft"
    assert data["step"] == 1


def test_identity_step_rejects_bad_email(client):
    response = client.post("/api/inquiries", json={"email": "not-an-email"})

    assert response.status_code == 400
    assert response.json()["success"] is False


def test_context_step_normalizes_services(client):
    inquiry_id = start_inquiry(client)

    response = client.put(
        f"/api/inquiries/{inquiry_id}/context",
        json={"selectedServices": '["renovation", "extension", "renovation"]', "budget": 150000},
    )

    assert response.status_code == 200
    data = response.json()["data"]
    assert data["selectedServices"] == ["renovation", "extension"]
    assert data["budget"] == "150000"
    assert data["timeline"] == "asap"
    assert data["step"] == 2


def test_context_step_uploads_documents(client, assets):
    inquiry_id = start_inquiry(client)

    response = client.put(
        f"/api/inquiries/{inquiry_id}/context",
        data={"selectedServices[]": ["interior"], "description": "Loft conversion"},
        files=[
            ("documents", ("plan.pdf", b"%PDF-1.4", "application/pdf")),
            ("documents", ("photo.png", b"\x89PNG", "image/png")),
        ],
    )

    assert response.status_code == 200
    data = response.json()["data"]
    assert data["selectedServices"] == ["interior"]
    assert len(data["documentUrls"]) == 2
    assert all(url.startswith(f"https://assets.test/inquiries/{inquiry_id}/") for url in data["documentUrls"])


def test_context_step_rejects_unsupported_document(client, assets):
    inquiry_id = start_inquiry(client)

    response = client.put(
        f"/api/inquiries/{inquiry_id}/context",
        data={"description": "x"},
        files=[("documents", ("run.exe", b"MZ", "application/x-msdownload"))],
    )

    assert response.status_code == 400
    assert assets.uploaded == []


def test_general_path_submits_once(client):
    inquiry_id = start_inquiry(client)
    assert client.put(f"/api/inquiries/{inquiry_id}/path", json={"selectedPath": "general"}).status_code == 200

    first = client.post(f"/api/inquiries/{inquiry_id}/submit")
    second = client.post(f"/api/inquiries/{inquiry_id}/submit")

    assert first.status_code == 200
    assert first.json()["data"]["status"] == "submitted"
    assert first.json()["data"]["step"] == 4
    assert second.status_code == 409


def test_path_is_locked_after_submission(client):
    inquiry_id = start_inquiry(client)
    client.put(f"/api/inquiries/{inquiry_id}/path", json={"selectedPath": "general"})
    client.post(f"/api/inquiries/{inquiry_id}/submit")

    response = client.put(f"/api/inquiries/{inquiry_id}/path", json={"selectedPath": "consult"})

    assert response.status_code == 409


def test_invalid_path_is_rejected(client):
    inquiry_id = start_inquiry(client)

    response = client.put(f"/api/inquiries/{inquiry_id}/path", json={"selectedPath": "premium"})

    assert response.status_code == 400


def test_consult_path_cannot_be_submitted_directly(client):
    inquiry_id = consult_inquiry(client)

    response = client.post(f"/api/inquiries/{inquiry_id}/submit")

    assert response.status_code == 409


def test_consultation_details_require_consult_path(client):
    inquiry_id = start_inquiry(client)
    client.put(f"/api/inquiries/{inquiry_id}/path", json={"selectedPath": "general"})

    response = client.put(f"/api/inquiries/{inquiry_id}/consultation", json={"duration": 60})

    assert response.status_code == 409


def test_consultation_details_saved(client):
    inquiry_id = consult_inquiry(client)

    response = client.put(
        f"/api/inquiries/{inquiry_id}/consultation",
        json={"duration": "90", "roadmapReport": True, "selectedDate": "2026-11-02"},
    )

    assert response.status_code == 200
    details = response.json()["data"]["consultationDetails"]
    assert details["duration"] == 90
    assert details["roadmapReport"] is True
    assert details["format"] == "online"


def test_switching_to_general_drops_consultation_details(client):
    inquiry_id = consult_inquiry(client)
    client.put(f"/api/inquiries/{inquiry_id}/consultation", json={"duration": 30})

    response = client.put(f"/api/inquiries/{inquiry_id}/path", json={"selectedPath": "general"})

    assert response.status_code == 200
    data = response.json()["data"]
    assert data["selectedPath"] == "general"
    assert "consultationDetails" not in data
    assert client.post(f"/api/inquiries/{inquiry_id}/submit").status_code == 200


def test_consultation_duration_must_be_known(client):
    inquiry_id = consult_inquiry(client)

    response = client.put(f"/api/inquiries/{inquiry_id}/consultation", json={"duration": 45})

    assert response.status_code == 400


def test_malformed_inquiry_id_is_not_found(client):
    response = client.get("/api/inquiries/not-an-object-id")

    assert response.status_code == 404
    assert response.json() == {"success": False, "message": "Inquiry not found"}
