import json


def _create(client, headers, title="Maison Bleue", tag="Commercial", files=None, **fields):
    data = {"title": title, "tag": tag, **fields}
    response = client.post("/api/admin/projects", data=data, files=files or [], headers=headers)
    assert response.status_code == 201, response.text
    return response.json()["data"]


def test_create_uploads_cover_images_and_plans(client, admin_headers, assets):
    project = _create(
        client,
        admin_headers,
        info=json.dumps({"surface": "120 m2", "programme": "Offices"}),
        files=[
            ("coverImage", ("cover.jpg", b"jpg", "image/jpeg")),
            ("images", ("a.png", b"png", "image/png")),
            ("images", ("b.png", b"png", "image/png")),
            ("plans", ("plan.pdf", b"%PDF", "application/pdf")),
        ],
    )

    assert project["slug"] == "maison-bleue"
    assert project["status"] == "draft"
    assert project["coverImage"].startswith("https://assets.test/projects/covers/")
    assert len(project["images"]) == 2
    assert len(project["plans"]) == 1
    assert project["info"]["surface"] == "120 m2"
    assert len(assets.uploaded) == 4


def test_residential_projects_never_keep_plans(client, admin_headers, assets):
    project = _create(
        client,
        admin_headers,
        tag="Residential",
        plans=json.dumps(["https://assets.test/old-plan.pdf"]),
        files=[("plans", ("plan.pdf", b"%PDF", "application/pdf"))],
    )

    assert project["plans"] == []
    assert assets.uploaded == []


def test_switching_to_residential_orphans_plans(client, admin_headers, assets):
    project = _create(client, admin_headers, files=[("plans", ("plan.pdf", b"%PDF", "application/pdf"))])
    plan_url = project["plans"][0]

    response = client.put(
        f"/api/admin/projects/{project['_id']}",
        json={"tag": "Residential"},
        headers=admin_headers,
    )

    assert response.status_code == 200
    assert response.json()["data"]["plans"] == []
    assert assets.deleted == [plan_url]


def test_duplicate_titles_get_suffixed_slugs(client, admin_headers):
    slugs = [_create(client, admin_headers, title="Villa Été")["slug"] for _ in range(3)]

    assert slugs == ["villa-été", "villa-été-1", "villa-été-2"]


def test_update_removes_deleted_images(client, admin_headers, assets):
    project = _create(
        client,
        admin_headers,
        files=[
            ("images", ("a.png", b"png", "image/png")),
            ("images", ("b.png", b"png", "image/png")),
        ],
    )
    first, second = project["images"]

    response = client.put(
        f"/api/admin/projects/{project['_id']}",
        data={"deletedImages[]": [first], "title": "Maison Rouge"},
        headers=admin_headers,
    )

    assert response.status_code == 200
    data = response.json()["data"]
    assert data["images"] == [second]
    assert data["slug"] == "maison-rouge"
    assert assets.deleted == [first]


def test_delete_single_image(client, admin_headers, assets):
    project = _create(client, admin_headers, files=[("coverImage", ("c.jpg", b"jpg", "image/jpeg"))])
    cover = project["coverImage"]

    missing = client.delete(
        f"/api/admin/projects/{project['_id']}/image",
        params={"type": "gallery", "url": cover},
        headers=admin_headers,
    )
    removed = client.delete(
        f"/api/admin/projects/{project['_id']}/image",
        params={"type": "cover", "url": cover},
        headers=admin_headers,
    )

    assert missing.status_code == 404
    assert removed.status_code == 200
    assert removed.json()["data"]["coverImage"] is None
    assert assets.deleted == [cover]


def test_failed_upload_leaves_no_assets(client, admin_headers, assets):
    assets.fail_uploads = True

    response = client.post(
        "/api/admin/projects",
        data={"title": "Atelier", "tag": "Commercial"},
        files=[("coverImage", ("c.jpg", b"jpg", "image/jpeg"))],
        headers=admin_headers,
    )

    assert response.status_code == 502
    assert client.get("/api/admin/projects", headers=admin_headers).json()["data"]["pagination"]["total"] == 0


def test_public_listing_shows_published_only(client, admin_headers):
    draft = _create(client, admin_headers, title="Draft House")
    published = _create(client, admin_headers, title="Open House", tag="Residential")
    client.patch(f"/api/admin/projects/{published['_id']}/publish", headers=admin_headers)

    listing = client.get("/api/projects").json()
    by_tag = client.get("/api/projects", params={"tag": "Commercial"}).json()

    assert [p["slug"] for p in listing["data"]] == ["open-house"]
    assert by_tag["data"] == []
    assert client.get("/api/projects/open-house").status_code == 200
    assert client.get(f"/api/projects/{draft['slug']}").status_code == 404


def test_delete_project_discards_assets(client, admin_headers, assets):
    project = _create(
        client,
        admin_headers,
        files=[
            ("coverImage", ("c.jpg", b"jpg", "image/jpeg")),
            ("images", ("a.png", b"png", "image/png")),
        ],
    )

    response = client.delete(f"/api/admin/projects/{project['_id']}", headers=admin_headers)

    assert response.status_code == 200
    assert sorted(assets.deleted) == sorted(assets.uploaded)
    assert client.get(f"/api/admin/projects/{project['_id']}", headers=admin_headers).status_code == 404


def test_project_requires_known_tag(client, admin_headers):
    response = client.post("/api/admin/projects", json={"title": "X", "tag": "Industrial"}, headers=admin_headers)

    assert response.status_code == 400
