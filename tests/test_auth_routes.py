from unittest.mock import MagicMock

from fastapi.testclient import TestClient

from ChatBackend.app import app
from ChatBackend.database import get_db
from ChatBackend.rate_limiters import auth_rate_limiter
from ChatBackend.rate_limiters.auth_rate_limiter import RateLimitDecision


def test_root(client):
    res = client.get("/")
    assert res.status_code == 200
    assert "message" in res.json()


def test_register_and_login(client):
    res = client.post("/register", json={"email": " New.User@Example.com ", "password": "pw"})
    assert res.status_code == 201
    body = res.json()
    assert body["message"] == "User registered successfully"
    assert body["user"]["email"] == "new.user@example.com"

    res = client.post("/login", json={"email": "new.user@example.com", "password": "pw"})
    assert res.status_code == 200
    assert res.json() == {"message": "Login successful", "user": body["user"]}


def test_register_duplicate_and_missing_fields(client):
    client.post("/register", json={"email": "dup@example.com", "password": "pw"})

    res = client.post("/register", json={"email": "dup@example.com", "password": "pw"})
    assert res.status_code == 400
    assert res.json() == {"error": "User already exists"}

    res = client.post("/register", json={"email": "x@example.com"})
    assert res.status_code == 400
    assert res.json() == {"error": "Email and password are required"}


def test_login_failures(client, register):
    register("known@example.com", "right")
    res = client.post("/login", json={"email": "known@example.com", "password": "wrong"})
    assert res.status_code == 401
    assert res.json() == {"error": "Invalid credentials"}
    assert client.post("/login", json={"password": "right"}).status_code == 400


def test_users_excludes_current_user(client, register):
    a = register("a@example.com")
    b = register("b@example.com")
    res = client.get(f"/users/{a}")
    assert res.status_code == 200
    assert res.json() == [{"id": b, "email": "b@example.com"}]


def test_rate_limited_login_returns_429(client, monkeypatch):
    limiter = MagicMock()
    limiter.check.return_value = RateLimitDecision(allowed=False, wait_seconds=12)
    monkeypatch.setattr(auth_rate_limiter, "_singleton", limiter)

    res = client.post("/login", json={"email": "a@example.com", "password": "pw"})
    assert res.status_code == 429
    assert res.headers["Retry-After"] == "12"
    assert "error" in res.json()


def test_unknown_route_uses_error_body(client):
    res = client.get("/does-not-exist")
    assert res.status_code == 404
    assert "error" in res.json()


def test_storage_failure_is_a_generic_500():
    def _broken_db():
        raise RuntimeError("database is down")
        yield  # pragma: no cover

    app.dependency_overrides[get_db] = _broken_db
    try:
        with TestClient(app, raise_server_exceptions=False) as test_client:
            res = test_client.get("/unread-count/1")
    finally:
        app.dependency_overrides.clear()
    assert res.status_code == 500
    assert res.json() == {"error": "Internal Server Error"}
