"""
tests/conftest.py -- Shared test fixtures for MarkStash auth tests.

This module provides:
  - FakeClock: a settable seconds-since-epoch clock for simulating days passing
  - store / hasher / issuer / sessions / auth_service: isolated unit fixtures
  - api: TestClient on the real app with a patched lifespan and a fake clock

Design: Named shared-memory SQLite URIs (not plain :memory:) are used for the
API fixture because TestClient runs sync route handlers in a thread pool.
Plain :memory: DBs are per-connection and would present a blank schema to each
worker thread. The named URI format (file:name?mode=memory&cache=shared&uri=true)
shares one in-memory instance across all connections in the same process.

Environment must be set before any api/auth/core import: get_settings() is
cached on first call and api.limiter reads it at import time.
"""

from __future__ import annotations

import os
import time
import uuid
from collections.abc import Generator
from contextlib import asynccontextmanager
from dataclasses import dataclass

# CRITICAL: configure before importing application modules.
TEST_SECRET_KEY = "test-secret-key-0123456789abcdef0123456789abcdef"
os.environ.setdefault("DEBUG", "true")
os.environ.setdefault("SECRET_KEY", TEST_SECRET_KEY)
os.environ.setdefault("BCRYPT_ROUNDS", "4")
os.environ.setdefault("RATE_LIMIT_ENABLED", "false")
os.environ.setdefault("SESSION_PURGE_INTERVAL_SECONDS", "0")

import pytest
from fastapi.testclient import TestClient

from api.main import app
from auth.passwords import PasswordHasher
from auth.service import AuthService
from auth.sessions import SessionManager
from auth.store import UserStore
from auth.tokens import TokenIssuer

# ---------------------------------------------------------------------------
# Clock
# ---------------------------------------------------------------------------


class FakeClock:
    """Callable returning a controllable 'now' in seconds since the epoch."""

    def __init__(self, start: float | None = None) -> None:
        self.now = time.time() if start is None else start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


DAY = 24 * 60 * 60


# ---------------------------------------------------------------------------
# Unit fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def store() -> Generator[UserStore, None, None]:
    s = UserStore("sqlite:///:memory:")
    yield s
    s.close()


@pytest.fixture(scope="session")
def hasher() -> PasswordHasher:
    # Minimum bcrypt cost keeps the suite fast.
    return PasswordHasher(rounds=4)


@pytest.fixture
def secret_key() -> str:
    return TEST_SECRET_KEY


@pytest.fixture
def issuer(secret_key: str) -> TokenIssuer:
    return TokenIssuer(secret_key=secret_key, expire_seconds=3600)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def sessions(store: UserStore, clock: FakeClock) -> SessionManager:
    return SessionManager(store, ttl_seconds=10 * DAY, clock=clock)


@pytest.fixture
def auth_service(store, hasher, issuer, sessions) -> AuthService:
    return AuthService(store=store, hasher=hasher, issuer=issuer, sessions=sessions)


# ---------------------------------------------------------------------------
# API fixture
# ---------------------------------------------------------------------------


@dataclass
class ApiHarness:
    client: TestClient
    clock: FakeClock
    store: UserStore
    auth: AuthService


def _patch_lifespan(store: UserStore, auth: AuthService):
    """Return an async context manager that replaces the real lifespan.

    Wires pre-created test components into app.state so TestClient routes see
    an isolated DB and a fake clock rather than the configured database.
    """

    @asynccontextmanager
    async def test_lifespan(app):
        app.state.user_store = store
        app.state.auth_service = auth
        app.state.purge_task = None
        yield

    return test_lifespan


@pytest.fixture
def api(hasher: PasswordHasher) -> Generator[ApiHarness, None, None]:
    """Yield an ApiHarness around the real FastAPI app.

    Each test gets its own named shared-memory DB and clock, so tests that
    advance time cannot affect one another.
    """
    db_url = f"sqlite:///file:test_auth_{uuid.uuid4().hex}?mode=memory&cache=shared&uri=true"
    test_store = UserStore(db_url)
    clock = FakeClock()
    auth = AuthService(
        store=test_store,
        hasher=hasher,
        issuer=TokenIssuer(secret_key=TEST_SECRET_KEY, expire_seconds=3600),
        sessions=SessionManager(test_store, ttl_seconds=10 * DAY, clock=clock),
    )

    app.router.lifespan_context = _patch_lifespan(test_store, auth)

    with TestClient(app, raise_server_exceptions=True) as client:
        yield ApiHarness(client=client, clock=clock, store=test_store, auth=auth)

    test_store.close()
