"""
tests/test_database.py -- Unit tests for core/database.py engine helpers.

Covers:
  - create_db_engine() accepts SQLite and rejects backends without an
    ON CONFLICT DO NOTHING insert, naming the supported URLs
  - insert_ignoring_duplicates() refuses an unknown dialect
  - ping() reports a reachable database
"""

from __future__ import annotations

from types import SimpleNamespace

import pytest

from core.database import create_db_engine, follows, insert_ignoring_duplicates, ping


def test_sqlite_engine_enables_foreign_keys(tmp_path) -> None:
    engine = create_db_engine(f"sqlite:///{tmp_path / 'fk.db'}")
    try:
        with engine.connect() as conn:
            assert conn.exec_driver_sql("PRAGMA foreign_keys").scalar_one() == 1
        assert ping(engine) is True
    finally:
        engine.dispose()


@pytest.mark.parametrize("url", ["mysql+pymysql://u:p@localhost/db", "oracle://u:p@localhost/db"])
def test_unsupported_backend_rejected(url: str) -> None:
    with pytest.raises(ValueError, match="sqlite:///"):
        create_db_engine(url)


def test_insert_ignoring_duplicates_unknown_dialect() -> None:
    engine = SimpleNamespace(dialect=SimpleNamespace(name="mssql"))
    with pytest.raises(ValueError, match="mssql"):
        insert_ignoring_duplicates(engine, follows)
