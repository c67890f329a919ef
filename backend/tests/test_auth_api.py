from fastapi.testclient import TestClient

from conftest import register
from openleaf.main import app


def test_register_starts_session(client):
    user = register(client, "alice")
    assert user["username"] == "alice"
    assert user["email"] == "alice@example.com"

    resp = client.get("/api/auth/me")
    assert resp.status_code == 200
    assert resp.json()["user"]["id"] == user["id"]


def test_register_rejects_missing_fields_and_short_password(client):
    resp = client.post("/api/auth/register", json={"username": "bob", "email": "bob@example.com"})
    assert resp.status_code == 400
    assert resp.json()["detail"] == "All fields are required"

    resp = client.post(
        "/api/auth/register", json={"username": "bob", "email": "bob@example.com", "password": "12345"}
    )
    assert resp.status_code == 400
    assert "at least 6" in resp.json()["detail"]


def test_register_rejects_existing_username_or_email(client):
    register(client, "carol")
    resp = client.post(
        "/api/auth/register",
        json={"username": "carol", "email": "other@example.com", "password": "password123"},
    )
    assert resp.status_code == 400
    assert resp.json()["detail"] == "User already exists"


def test_login_and_logout(client):
    register(client, "dave")
    client.post("/api/auth/logout")
    assert client.get("/api/auth/me").status_code == 401

    bad = client.post("/api/auth/login", json={"email": "dave@example.com", "password": "wrong-password"})
    assert bad.status_code == 401
    assert bad.json()["detail"] == "Invalid credentials"

    good = client.post("/api/auth/login", json={"email": "dave@example.com", "password": "password123"})
    assert good.status_code == 200
    assert good.json()["success"] is True
    assert client.get("/api/auth/me").status_code == 200


def test_login_requires_email_and_password(client):
    resp = client.post("/api/auth/login", json={"email": "someone@example.com"})
    assert resp.status_code == 400


def test_api_requires_session(client):
    anonymous = TestClient(app)
    for path in ("/api/books", "/api/stats", "/api/favorites", "/api/my-books", "/api/progress/1"):
        resp = anonymous.get(path)
        assert resp.status_code == 401, path
        assert resp.json()["detail"] == "Authentication required"


def test_health_sets_request_id(client):
    resp = client.get("/health", headers={"X-Request-ID": "abc123"})
    assert resp.json() == {"status": "ok"}
    assert resp.headers["X-Request-ID"] == "abc123"
