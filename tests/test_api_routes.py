"""
tests/test_api_routes.py -- Integration tests for the auth and protected routes.

These tests exercise the full stack: FastAPI routing -> request validation ->
AuthService -> UserStore -> exception handlers -> response serialization.

Coverage:
  - Register: 200 text, 409 on duplicate, 422 on invalid bodies
  - Login: 200 token, 401 identical for wrong password and unknown user
  - Protected routes: 200 with bearer token, 401 without / with bad tokens

Fixtures used (from conftest.py):
  - api_client: TestClient over the real app with an isolated in-memory store.
    Each test registers its own usernames because the client is module-scoped.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from unittest.mock import patch

from fastapi.testclient import TestClient

from auth.errors import StorageUnavailable
from auth.models import User
from auth.tokens import TokenIssuer
from core.config import get_settings


def _register(client: TestClient, username: str, password: str = "s3cret"):
    return client.post("/auth/register", json={"username": username, "password": password})


def _login_token(client: TestClient, username: str, password: str = "s3cret") -> str:
    resp = client.post("/auth/login", json={"username": username, "password": password})
    assert resp.status_code == 200, resp.text
    return resp.json()["token"]


class TestRegister:
    def test_register_returns_confirmation(self, api_client: TestClient) -> None:
        resp = _register(api_client, "reg-alice")
        assert resp.status_code == 200, resp.text
        assert resp.text == "User registered successfully"
        assert resp.headers["content-type"].startswith("text/plain")

    def test_duplicate_returns_409(self, api_client: TestClient) -> None:
        assert _register(api_client, "reg-dup").status_code == 200
        resp = _register(api_client, "reg-dup", password="other")
        assert resp.status_code == 409, resp.text
        assert resp.json()["error"]["code"] == "duplicate_username"

    def test_register_does_not_issue_token(self, api_client: TestClient) -> None:
        resp = _register(api_client, "reg-notoken")
        assert "token" not in resp.text

    def test_missing_password_returns_422(self, api_client: TestClient) -> None:
        resp = api_client.post("/auth/register", json={"username": "reg-nopw"})
        assert resp.status_code == 422
        assert resp.json()["error"]["code"] == "validation_error"

    def test_blank_username_returns_422(self, api_client: TestClient) -> None:
        resp = _register(api_client, "   ")
        assert resp.status_code == 422

    def test_overlong_password_returns_422_without_echo(self, api_client: TestClient) -> None:
        password = "x" * 73
        resp = _register(api_client, "reg-long", password=password)
        assert resp.status_code == 422
        assert password not in resp.text


class TestLogin:
    def test_register_then_login(self, api_client: TestClient) -> None:
        _register(api_client, "login-alice")
        resp = api_client.post("/auth/login", json={"username": "login-alice", "password": "s3cret"})
        assert resp.status_code == 200, resp.text
        assert resp.headers["cache-control"] == "no-store"
        token = resp.json()["token"]
        claims = api_client.app.state.token_issuer.validate(token)
        assert claims.subject == "login-alice"

    def test_wrong_password_returns_401(self, api_client: TestClient) -> None:
        _register(api_client, "login-bob")
        resp = api_client.post("/auth/login", json={"username": "login-bob", "password": "wrong"})
        assert resp.status_code == 401
        assert resp.json()["error"]["code"] == "bad_credentials"
        assert resp.headers["www-authenticate"] == "Bearer"

    def test_unknown_user_indistinguishable(self, api_client: TestClient) -> None:
        _register(api_client, "login-carol")
        wrong_pw = api_client.post("/auth/login", json={"username": "login-carol", "password": "wrong"})
        unknown = api_client.post("/auth/login", json={"username": "login-nobody", "password": "wrong"})
        assert wrong_pw.status_code == unknown.status_code == 401
        assert wrong_pw.json() == unknown.json()


class TestProtectedRoutes:
    def test_hello_with_token(self, api_client: TestClient) -> None:
        _register(api_client, "hello-alice")
        token = _login_token(api_client, "hello-alice")
        resp = api_client.get("/hello", headers={"Authorization": f"Bearer {token}"})
        assert resp.status_code == 200
        assert resp.text == "Hello, authenticated user!"

    def test_success_with_token(self, api_client: TestClient) -> None:
        _register(api_client, "success-alice")
        token = _login_token(api_client, "success-alice")
        resp = api_client.get("/Success", headers={"Authorization": f"Bearer {token}"})
        assert resp.status_code == 200
        assert resp.text == "Hello, authenticated user Successfully!"

    def test_hello_without_header(self, api_client: TestClient) -> None:
        resp = api_client.get("/hello")
        assert resp.status_code == 401
        assert resp.json()["error"]["code"] == "unauthorized"
        assert resp.headers["www-authenticate"] == "Bearer"

    def test_non_bearer_scheme(self, api_client: TestClient) -> None:
        resp = api_client.get("/hello", headers={"Authorization": "Basic YWxpY2U6czNjcmV0"})
        assert resp.status_code == 401
        assert resp.json()["error"]["code"] == "unauthorized"

    def test_malformed_token(self, api_client: TestClient) -> None:
        resp = api_client.get("/hello", headers={"Authorization": "Bearer not-a-jwt"})
        assert resp.status_code == 401
        assert resp.json()["error"]["code"] == "malformed_token"

    def test_expired_token(self, api_client: TestClient) -> None:
        then = datetime.now(timezone.utc) - timedelta(hours=2)
        stale = TokenIssuer(secret_key=get_settings().secret_key, ttl_seconds=60, clock=lambda: then)
        token = stale.issue(User(username="expired-alice", hashed_password="x"))
        resp = api_client.get("/hello", headers={"Authorization": f"Bearer {token}"})
        assert resp.status_code == 401
        assert resp.json()["error"]["code"] == "token_expired"

    def test_foreign_signature(self, api_client: TestClient) -> None:
        foreign = TokenIssuer(secret_key="not-the-server-key-but-long-enough-000000", ttl_seconds=60)
        token = foreign.issue(User(username="forged", hashed_password="x"))
        resp = api_client.get("/Success", headers={"Authorization": f"Bearer {token}"})
        assert resp.status_code == 401
        assert resp.json()["error"]["code"] == "invalid_signature"

    def test_token_accepted_without_user_lookup(self, api_client: TestClient) -> None:
        """Tokens are self-contained: no server lookup happens on protected routes."""
        token = api_client.app.state.token_issuer.issue(User(username="never-registered", hashed_password="x"))
        resp = api_client.get("/hello", headers={"Authorization": f"Bearer {token}"})
        assert resp.status_code == 200


class TestStorageFailure:
    def test_login_with_store_down_returns_503(self, api_client: TestClient) -> None:
        store = api_client.app.state.user_store
        with patch.object(store, "find_by_username", side_effect=StorageUnavailable()):
            resp = api_client.post("/auth/login", json={"username": "any", "password": "s3cret"})
        assert resp.status_code == 503
        assert resp.json()["error"]["code"] == "storage_unavailable"

    def test_register_with_store_down_returns_503(self, api_client: TestClient) -> None:
        store = api_client.app.state.user_store
        with patch.object(store, "register", side_effect=StorageUnavailable()):
            resp = _register(api_client, "down-alice")
        assert resp.status_code == 503
