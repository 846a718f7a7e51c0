"""
tests/conftest.py -- Shared test fixtures for authshim.

This module provides:
  - _make_test_store(): creates an isolated SQLite credential store in a temp dir
  - _patch_lifespan(): wires the test store into app.state, bypassing real startup
  - api_client: TestClient over the real FastAPI app
  - hasher / issuer / service: unit-level components with a cheap bcrypt cost

Design: each client gets a throwaway SQLite file (not :memory:) because
TestClient runs sync route handlers in a thread pool. A :memory: DB is
per-connection and would present a blank schema to each worker thread.

DEBUG and BCRYPT_ROUNDS must be set before any app import so get_settings()
auto-generates SECRET_KEY instead of raising, and hashing stays fast.
"""

from __future__ import annotations

import os
from collections.abc import Generator
from contextlib import asynccontextmanager
from pathlib import Path

# CRITICAL: Set before any api/core import -- api.main reads settings at import.
os.environ.setdefault("DEBUG", "true")
os.environ.setdefault("BCRYPT_ROUNDS", "4")

import pytest
from fastapi.testclient import TestClient

from api.main import app, install_auth
from auth.passwords import PasswordHasher
from auth.service import AuthService
from auth.store import InMemoryUserStore, UserStore
from auth.tokens import TokenIssuer
from core.config import get_settings

TEST_SECRET = "test-secret-key-that-is-long-enough-0123456789"

# ---------------------------------------------------------------------------
# Store helpers
# ---------------------------------------------------------------------------


def _make_test_store(db_dir: Path) -> UserStore:
    """Create an isolated file-backed SQLite store under db_dir."""
    return UserStore(db_url=f"sqlite:///{db_dir / 'auth.db'}")


def _patch_lifespan(store: UserStore):
    """Return an async context manager that replaces the real lifespan.

    Builds the real hasher/issuer/service from settings but points them at
    the pre-created test store instead of the configured DATABASE_URL.
    """

    @asynccontextmanager
    async def test_lifespan(app):
        install_auth(app, get_settings(), store)
        yield

    return test_lifespan


# ---------------------------------------------------------------------------
# Module-scoped client -- one TestClient per test module for speed
# ---------------------------------------------------------------------------


@pytest.fixture(scope="module")
def api_client(tmp_path_factory: pytest.TempPathFactory) -> Generator[TestClient, None, None]:
    """Yield a TestClient over the real app with an isolated credential store.

    Each test module gets its own DB file, so usernames registered in one
    module are invisible to the others.
    """
    store = _make_test_store(tmp_path_factory.mktemp("auth"))
    app.router.lifespan_context = _patch_lifespan(store)

    with TestClient(app, raise_server_exceptions=True) as client:
        yield client

    store.close()


# ---------------------------------------------------------------------------
# Unit-level components
# ---------------------------------------------------------------------------


@pytest.fixture(scope="session")
def hasher() -> PasswordHasher:
    return PasswordHasher(rounds=4)


@pytest.fixture
def issuer() -> TokenIssuer:
    return TokenIssuer(secret_key=TEST_SECRET, ttl_seconds=3600)


@pytest.fixture
def service(hasher: PasswordHasher, issuer: TokenIssuer) -> AuthService:
    return AuthService(store=InMemoryUserStore(), hasher=hasher, issuer=issuer)
