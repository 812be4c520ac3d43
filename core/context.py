"""
core/context.py -- The process-wide application context.

AppContext bundles the two things every request shares: immutable settings
(including the signing key) and the database engine with its connection
pool. It is built once at startup and passed by reference into the
components that need it. Nothing reads it from a global; the API keeps it on
app.state.ctx and the CLI builds its own.

Tests swap in a context with a test key and an in-memory database without
touching process state.
"""

from __future__ import annotations

from dataclasses import dataclass

from sqlalchemy.engine import Engine

from core.config import Settings
from core.database import create_db_engine, init_db


@dataclass(frozen=True)
class AppContext:
    settings: Settings
    engine: Engine

    @property
    def hmac_key(self) -> str:
        return self.settings.hmac_key

    def close(self) -> None:
        self.engine.dispose()


def build_context(settings: Settings) -> AppContext:
    """Create the engine for settings.database_url and ensure the schema exists."""
    engine = create_db_engine(settings.database_url)
    init_db(engine)
    return AppContext(settings=settings, engine=engine)
