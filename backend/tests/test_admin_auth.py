from datetime import timedelta

from conftest import ADMIN_EMAIL, ADMIN_PASSWORD
from app.utils.security import create_access_token, create_refresh_token, decode_token


def test_login_returns_tokens_and_cookies(client, admin):
    response = client.post("/api/auth/login", json={"email": " Admin@Atelier.test ", "password": ADMIN_PASSWORD})

    assert response.status_code == 200
    data = response.json()["data"]
    assert data["admin"]["email"] == ADMIN_EMAIL
    assert "password" not in data["admin"]
    assert decode_token(data["accessToken"]).sub == str(admin["_id"])
    assert "accessToken" in response.cookies
    assert "refreshToken" in response.cookies


def test_login_rejects_wrong_password(client, admin):
    response = client.post("/api/auth/login", json={"email": ADMIN_EMAIL, "password": "wrong-password"})

    assert response.status_code == 401
    assert response.json()["message"] == "Invalid email or password"


def test_me_requires_token(client):
    response = client.get("/api/auth/me")

    assert response.status_code == 401
    assert response.json()["success"] is False


def test_me_with_bearer_token(client, admin_headers):
    response = client.get("/api/auth/me", headers=admin_headers)

    assert response.status_code == 200
    assert response.json()["data"]["email"] == ADMIN_EMAIL


def test_expired_access_token_is_rejected(client, admin):
    token = create_access_token(str(admin["_id"]), admin["email"], admin["role"], expires_delta=timedelta(seconds=-5))

    response = client.get("/api/auth/me", headers={"Authorization": f"Bearer {token}"})

    assert response.status_code == 401


def test_refresh_token_cannot_access_admin_routes(client, admin):
    token = create_refresh_token(str(admin["_id"]), admin["email"], admin["role"])

    response = client.get("/api/auth/me", headers={"Authorization": f"Bearer {token}"})

    assert response.status_code == 401


def test_refresh_issues_new_access_token(client, admin):
    refresh_token = create_refresh_token(str(admin["_id"]), admin["email"], admin["role"])

    response = client.post("/api/auth/refresh", json={"refreshToken": refresh_token})

    assert response.status_code == 200
    access_token = response.json()["data"]["accessToken"]
    assert decode_token(access_token).email == ADMIN_EMAIL


def test_refresh_rejects_access_token(client, admin):
    access_token = create_access_token(str(admin["_id"]), admin["email"], admin["role"])

    response = client.post("/api/auth/refresh", json={"refreshToken": access_token})

    assert response.status_code == 401


def test_refresh_without_token(client):
    response = client.post("/api/auth/refresh")

    assert response.status_code == 401


def test_admin_routes_are_protected(client):
    for path in (
        "/api/admin/inquiries",
        "/api/admin/projects",
        "/api/admin/blogs",
        "/api/admin/news",
        "/api/admin/testimonials",
        "/api/dashboard/stats",
    ):
        assert client.get(path).status_code == 401, path
