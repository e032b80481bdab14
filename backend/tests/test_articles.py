import json


def _create_blog(client, headers, title="Designing with light", files=None, **fields):
    response = client.post(
        "/api/admin/blogs",
        data={"title": title, **fields},
        files=files or [],
        headers=headers,
    )
    assert response.status_code == 201, response.text
    return response.json()["data"]


def test_blog_defaults(client, admin_headers):
    blog = _create_blog(client, admin_headers, author="")

    assert blog["author"] == "Admin"
    assert blog["status"] == "draft"
    assert blog["slug"] == "designing-with-light"


def test_blog_cover_upload_and_replacement(client, admin_headers, assets):
    blog = _create_blog(client, admin_headers, files=[("coverImage", ("c.jpg", b"jpg", "image/jpeg"))])
    old_url = blog["coverImage"]["url"]
    assert blog["coverImage"]["source"] == "uploaded"

    response = client.put(
        f"/api/admin/blogs/{blog['_id']}",
        data={"excerpt": "New excerpt"},
        files=[("coverImage", ("d.jpg", b"jpg", "image/jpeg"))],
        headers=admin_headers,
    )

    assert response.status_code == 200
    data = response.json()["data"]
    assert data["coverImage"]["url"] != old_url
    assert data["excerpt"] == "New excerpt"
    assert assets.deleted == [old_url]


def test_blog_external_cover_must_be_https(client, admin_headers):
    response = client.post(
        "/api/admin/blogs",
        json={"title": "Light", "coverImage": {"url": "http://example.com/a.jpg", "source": "external"}},
        headers=admin_headers,
    )

    assert response.status_code == 400


def test_blog_external_cover_is_not_discarded(client, admin_headers, assets):
    blog = _create_blog(
        client,
        admin_headers,
        coverImage=json.dumps({"url": "https://images.example.com/a.jpg", "source": "external"}),
    )

    client.delete(f"/api/admin/blogs/{blog['_id']}", headers=admin_headers)

    assert assets.deleted == []


def test_blog_remove_cover(client, admin_headers, assets):
    blog = _create_blog(client, admin_headers, files=[("coverImage", ("c.jpg", b"jpg", "image/jpeg"))])

    response = client.put(
        f"/api/admin/blogs/{blog['_id']}",
        json={"removeCoverImage": True},
        headers=admin_headers,
    )

    assert response.json()["data"]["coverImage"] is None
    assert assets.deleted == [blog["coverImage"]["url"]]


def test_blog_publication_and_public_reads(client, admin_headers):
    blog = _create_blog(client, admin_headers, category="Interiors")
    _create_blog(client, admin_headers, title="Hidden draft", category="Urbanism")

    assert client.get(f"/api/blogs/{blog['slug']}").status_code == 404
    client.patch(f"/api/admin/blogs/{blog['_id']}/publish", headers=admin_headers)

    public = client.get("/api/blogs").json()["data"]
    admin_view = client.get("/api/admin/blogs", headers=admin_headers).json()["data"]

    assert [b["slug"] for b in public["blogs"]] == [blog["slug"]]
    assert client.get(f"/api/blogs/{blog['slug']}").json()["data"]["category"] == "Interiors"
    assert admin_view["categories"] == ["Interiors", "Urbanism"]

    client.patch(f"/api/admin/blogs/{blog['_id']}/unpublish", headers=admin_headers)
    assert client.get("/api/blogs").json()["data"]["blogs"] == []


def test_news_defaults_published_at(client, admin_headers):
    response = client.post(
        "/api/admin/news",
        json={"title": "Studio wins award", "source": "Le Moniteur", "status": "published"},
        headers=admin_headers,
    )

    assert response.status_code == 201
    item = response.json()["data"]
    assert item["publishedAt"]
    assert item["slug"] == "studio-wins-award"

    listing = client.get("/api/news").json()["data"]
    assert [n["slug"] for n in listing["news"]] == ["studio-wins-award"]


def test_news_update_and_delete(client, admin_headers):
    item = client.post("/api/admin/news", json={"title": "Old title"}, headers=admin_headers).json()["data"]

    updated = client.put(f"/api/admin/news/{item['_id']}", json={"title": "New title"}, headers=admin_headers)
    deleted = client.delete(f"/api/admin/news/{item['_id']}", headers=admin_headers)

    assert updated.json()["data"]["slug"] == "new-title"
    assert deleted.status_code == 200
    assert client.get(f"/api/admin/news/{item['_id']}", headers=admin_headers).status_code == 404
