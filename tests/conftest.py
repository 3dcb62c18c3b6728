"""
tests/conftest.py -- Shared test fixtures for cvshare integration tests.

This module provides:
  - FakeIdentityVerifier: stands in for Google; maps token strings to claims
  - make_test_stores(): creates isolated in-memory DBs for users + CVs
  - _patch_lifespan(): wires test services into app.state, bypassing real startup
  - api_client: TestClient over the real app with isolated stores
  - register_user(): helper that registers through the API and returns (id, token)

Design: Named shared-memory SQLite URIs (not plain :memory:) are required
because TestClient runs route handlers in a thread pool. Plain :memory: DBs
are per-connection and would present a blank schema to each worker thread.
The named URI format (file:name?mode=memory&cache=shared&uri=true) shares
one in-memory instance across all connections in the same process.

SECRET_KEY must be set before any core/auth import so get_settings() loads a
real key instead of the fallback.
"""

from __future__ import annotations

import itertools
import os
from collections.abc import Generator
from contextlib import asynccontextmanager

# CRITICAL: Set before any core/auth import so get_settings() sees it.
os.environ.setdefault("SECRET_KEY", "test-secret-key-for-cvshare-suite-0123456789")

import pytest
from fastapi.testclient import TestClient

from api.main import app
from auth.models import FederatedClaims
from auth.service import AuthGateway
from auth.store import UserStore
from auth.tokens import TokenService
from core.config import get_settings
from core.errors import FederatedAuthFailedError
from cvs.store import CVStore

STRONG_PASSWORD = "Passw0rdOK"

_db_counter = itertools.count()


class FakeIdentityVerifier:
    """Identity oracle double: known tokens map to claims, anything else fails."""

    def __init__(self, tokens: dict[str, FederatedClaims] | None = None) -> None:
        self.tokens = dict(tokens or {})
        self.enabled = True

    def verify(self, token: str) -> FederatedClaims:
        try:
            return self.tokens[token]
        except KeyError:
            raise FederatedAuthFailedError() from None


# ---------------------------------------------------------------------------
# Store helpers
# ---------------------------------------------------------------------------


def memory_db_url(name: str) -> str:
    """Return a unique named shared-memory SQLite URL."""
    return f"sqlite:///file:{name}_{next(_db_counter)}?mode=memory&cache=shared&uri=true"


def make_test_stores(db_suffix: str) -> tuple[UserStore, CVStore]:
    """Create isolated named shared-memory SQLite stores for test isolation.

    Args:
        db_suffix: Appended to the DB name so test modules don't share state.
    """
    user_store = UserStore(db_url=memory_db_url(f"test_users_{db_suffix}"))
    cv_store = CVStore(db_url=memory_db_url(f"test_cvs_{db_suffix}"))
    return user_store, cv_store


def _patch_lifespan(user_store: UserStore, cv_store: CVStore, identity: FakeIdentityVerifier):
    """Return an async context manager that replaces the real lifespan.

    Wires pre-created test stores and a fake identity oracle into app.state so
    TestClient routes see isolated test DBs and never call Google.
    """

    @asynccontextmanager
    async def test_lifespan(app):
        tokens = TokenService(get_settings().secret_key)
        app.state.user_store = user_store
        app.state.cv_store = cv_store
        app.state.tokens = tokens
        app.state.identity = identity
        app.state.auth = AuthGateway(user_store, tokens, identity)
        yield

    return test_lifespan


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def identity() -> FakeIdentityVerifier:
    return FakeIdentityVerifier()


@pytest.fixture
def stores() -> Generator[tuple[UserStore, CVStore], None, None]:
    user_store, cv_store = make_test_stores("unit")
    yield user_store, cv_store
    user_store.close()
    cv_store.close()


@pytest.fixture
def api_client(identity: FakeIdentityVerifier) -> Generator[TestClient, None, None]:
    """Yield a TestClient over the real app with fresh in-memory stores.

    Function-scoped: every test starts from an empty database.
    """
    user_store, cv_store = make_test_stores("api")
    app.router.lifespan_context = _patch_lifespan(user_store, cv_store, identity)

    with TestClient(app, raise_server_exceptions=True) as client:
        yield client

    user_store.close()
    cv_store.close()


def register_user(client: TestClient, username: str, email: str, password: str = STRONG_PASSWORD) -> tuple[int, str]:
    """Register through the API and return (user_id, token)."""
    resp = client.post(
        "/api/v1/register",
        json={"username": username, "email": email, "password": password, "contactNumber": "+1 555 0100"},
    )
    assert resp.status_code == 201, resp.text
    data = resp.json()
    return data["id"], data["token"]


@pytest.fixture
def register(api_client: TestClient):
    """Return register_user bound to the api_client."""

    def _register(username: str, email: str, password: str = STRONG_PASSWORD) -> tuple[int, str]:
        return register_user(api_client, username, email, password)

    return _register
