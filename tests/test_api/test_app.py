# tests/test_api/test_app.py

import uuid

import pytest
from fastapi.testclient import TestClient

from memberhub.db.session import get_async_db
from memberhub.main import create_app
from memberhub.schemas.auth import TokenResponse
from tests.fixtures.fakes import FakeDB


@pytest.fixture()
def app():
    application = create_app()

    async def _db():
        yield FakeDB()

    application.dependency_overrides[get_async_db] = _db
    return application


@pytest.fixture()
def client(app):
    # No context manager: lifespan (Redis/DB connections) is not started.
    return TestClient(app)


def test_healthz(client):
    r = client.get("/healthz")
    assert r.status_code == 200
    assert r.json() == {"ok": True}


def test_root_reports_name_and_version(client):
    body = client.get("/").json()
    assert body["name"] == "MemberHub API"
    assert "version" in body


def test_security_headers_present(client):
    r = client.get("/healthz")
    assert r.headers["X-Content-Type-Options"] == "nosniff"
    assert r.headers["X-Frame-Options"] == "DENY"
    assert "frame-ancestors 'none'" in r.headers["Content-Security-Policy"]
    assert "server" not in {k.lower() for k in r.headers.keys()}


def test_request_id_generated_and_echoed(client):
    generated = client.get("/healthz").headers["X-Request-ID"]
    assert uuid.UUID(generated).version == 4

    supplied = str(uuid.uuid4())
    assert client.get("/healthz", headers={"X-Request-ID": supplied}).headers["X-Request-ID"] == supplied

    assert client.get("/healthz", headers={"X-Request-ID": "not-a-uuid"}).headers["X-Request-ID"] != "not-a-uuid"


def test_unknown_route_is_problem_json(client):
    r = client.get("/api/v1/nope")
    assert r.status_code == 404
    assert r.headers["content-type"].startswith("application/problem+json")
    body = r.json()
    assert body["status"] == 404
    assert body["instance"].endswith("/api/v1/nope")


def test_validation_error_is_problem_json(client):
    r = client.get("/api/v1/content?limit=1000")
    assert r.status_code == 422
    assert r.json()["title"] == "Validation error"
    assert r.json()["errors"]


def test_missing_credentials_on_protected_route(client):
    r = client.get("/api/v1/user")
    assert r.status_code in (401, 403)
    assert r.headers["content-type"].startswith("application/problem+json")


def test_invalid_bearer_token_is_401(client):
    r = client.get("/api/v1/user", headers={"Authorization": "Bearer not-a-jwt"})
    assert r.status_code == 401
    assert r.json()["detail"] == "Invalid token."


def test_v1_routes_are_mounted(app):
    paths = {route.path for route in app.routes}
    for expected in (
        "/api/v1/auth/signin",
        "/api/v1/user/updateTier",
        "/api/v1/content",
        "/api/v1/content/pollVote",
        "/api/v1/comments",
        "/api/v1/feed",
        "/api/v1/stats",
        "/api/v1/store/checkout",
        "/api/v1/admin/content",
        "/api/v1/admin/videos/upload",
        "/api/v1/admin/videos/secure-url",
    ):
        assert expected in paths


def test_signin_is_rate_limited(app, client, monkeypatch, ratelimit_on):
    import memberhub.api.v1.routers.auth as auth_mod

    async def _fake_login(payload, db):
        return TokenResponse(access_token="tok", expires_in=60)

    monkeypatch.setattr(auth_mod, "login_user", _fake_login, raising=False)

    ip = "198.51.100.7"
    statuses = [
        client.post(
            "/api/v1/auth/signin",
            json={"email": "fan@example.com", "password": "pw"},
            headers={"X-Forwarded-For": ip},
        ).status_code
        for _ in range(12)
    ]
    assert statuses[0] == 200
    assert 429 in statuses
