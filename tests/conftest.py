"""
tests/conftest.py -- Shared test fixtures for FollowGraph tests.

This module provides:
  - make_context(): an AppContext with a fixed test key and a fresh database
  - ctx / users / graph: unit-test fixtures over an in-memory SQLite engine
  - file_ctx / file_users: the same over a file-backed database, for threads
  - api_client: TestClient over the real app with a patched lifespan

Design: the API fixture uses named shared-memory SQLite URIs (not plain
:memory:) because TestClient runs sync route handlers in a thread pool.
Plain :memory: DBs are per-connection and would present a blank schema to
each worker thread. Each test gets its own database name, so tests never
see each other's follow edges.

DEBUG must be set before any api/ import so get_settings() auto-generates
HMAC_KEY instead of raising ValueError.
"""

from __future__ import annotations

import os
import uuid
from collections.abc import Generator
from contextlib import asynccontextmanager
from dataclasses import dataclass
from uuid import UUID

# CRITICAL: Set DEBUG before any core/api import so get_settings() can
# auto-generate HMAC_KEY in dev mode instead of raising ValueError.
os.environ.setdefault("DEBUG", "true")

import pytest
from fastapi.testclient import TestClient

from api.main import app
from auth.models import Identity, User
from auth.store import UserStore
from auth.tokens import issue_token
from core.config import Settings
from core.context import AppContext
from core.database import create_db_engine, init_db
from social.store import FollowGraph

TEST_KEY = "test-hmac-key-0123456789abcdef0123456789abcdef"


def make_context(db_url: str = "sqlite:///:memory:") -> AppContext:
    settings = Settings(debug=True, hmac_key=TEST_KEY, database_url=db_url)
    engine = create_db_engine(db_url)
    init_db(engine)
    return AppContext(settings=settings, engine=engine)


@dataclass
class Users:
    """Seeded users: alice and bob have bios, carol has nothing set."""

    alice: UUID
    bob: UUID
    carol: UUID

    def identity(self, name: str) -> Identity:
        return Identity(user_id=getattr(self, name))


def _seed(ctx: AppContext) -> Users:
    store = UserStore(ctx.engine)
    return Users(
        alice=store.create_user(User(username="alice", bio="Writes Python", image="https://img.example/alice.png")),
        bob=store.create_user(User(username="bob", bio="Writes SQL")),
        carol=store.create_user(User(username="carol")),
    )


# ---------------------------------------------------------------------------
# Unit-test fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def ctx() -> Generator[AppContext, None, None]:
    context = make_context()
    yield context
    context.close()


@pytest.fixture
def users(ctx: AppContext) -> Users:
    return _seed(ctx)


@pytest.fixture
def graph(ctx: AppContext) -> FollowGraph:
    return FollowGraph(ctx.engine)


# ---------------------------------------------------------------------------
# API fixture
# ---------------------------------------------------------------------------


def _patch_lifespan(context: AppContext):
    """Return a lifespan that installs context instead of building one from env."""

    @asynccontextmanager
    async def test_lifespan(app):
        app.state.ctx = context
        yield

    return test_lifespan


@dataclass
class ApiHarness:
    client: TestClient
    ctx: AppContext
    users: Users

    def auth(self, name: str) -> dict[str, str]:
        token = issue_token(getattr(self.users, name), TEST_KEY)
        return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def api_client() -> Generator[ApiHarness, None, None]:
    """Yield an ApiHarness wired to a private shared-memory database."""
    db_url = f"sqlite:///file:test_api_{uuid.uuid4().hex}?mode=memory&cache=shared&uri=true"
    context = make_context(db_url)
    seeded = _seed(context)

    original_lifespan = app.router.lifespan_context
    app.router.lifespan_context = _patch_lifespan(context)
    try:
        with TestClient(app, raise_server_exceptions=True) as client:
            yield ApiHarness(client=client, ctx=context, users=seeded)
    finally:
        app.router.lifespan_context = original_lifespan
        context.close()


@pytest.fixture
def file_ctx(tmp_path) -> Generator[AppContext, None, None]:
    """An AppContext over a file-backed SQLite database, for multi-threaded tests."""
    context = make_context(f"sqlite:///{tmp_path / 'followgraph.db'}")
    yield context
    context.close()


@pytest.fixture
def file_users(file_ctx: AppContext) -> Users:
    return _seed(file_ctx)
