"""
auth/store.py -- SQLAlchemy Core persistence layer for users.

Pattern: Repository + Data Mapper (same as social/store.py).
UserStore is the repository; _row_to_user is the mapper. Route and
dependency code never touches SQL directly.

The users table is not owned by this service -- account creation, passwords
and profile editing are handled elsewhere. This store reads it, and offers
create/delete so the CLI and tests can populate it.

Security:
  All queries use bound parameters. No f-strings in SQL.

Layer rule: no imports from api/ or social/.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import Optional
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.engine import Engine

from auth.models import User
from core.database import users

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class UserStore:
    """Repository for User rows.

    Usage:
        store = UserStore(ctx.engine)
        user_id = store.create_user(User(username="alice"))
        store.exists(user_id)  # True
    """

    def __init__(self, engine: Engine) -> None:
        self.engine = engine

    def create_user(self, user: User) -> UUID:
        """Insert a new user and return its id.

        Raises sqlalchemy.exc.IntegrityError if the username already exists.
        """
        user_id = user.id or uuid.uuid4()
        with self.engine.connect() as conn:
            conn.execute(
                users.insert().values(
                    id=user_id,
                    username=user.username,
                    bio=user.bio,
                    image=user.image,
                    created_at=_now_iso(),
                )
            )
            conn.commit()
        return user_id

    def exists(self, user_id: UUID) -> bool:
        """Return True if a user row with this id is present.

        Used on every authenticated request, so it selects only the key.
        """
        with self.engine.connect() as conn:
            row = conn.execute(select(users.c.id).where(users.c.id == user_id)).first()
        return row is not None

    def get_by_id(self, user_id: UUID) -> Optional[User]:
        """Look up a user by primary key. Returns None if not found."""
        with self.engine.connect() as conn:
            row = conn.execute(users.select().where(users.c.id == user_id)).fetchone()
        return _row_to_user(row) if row is not None else None

    def get_by_username(self, username: str) -> Optional[User]:
        """Look up a user by exact username (case-sensitive). Returns None if not found."""
        with self.engine.connect() as conn:
            row = conn.execute(users.select().where(users.c.username == username)).fetchone()
        return _row_to_user(row) if row is not None else None

    def list_users(self) -> list[User]:
        """Return all users ordered by username."""
        with self.engine.connect() as conn:
            rows = conn.execute(users.select().order_by(users.c.username)).fetchall()
        return [_row_to_user(r) for r in rows]

    def delete_user(self, user_id: UUID) -> bool:
        """Permanently delete a user. Returns True if deleted, False if not found.

        Follow edges in both directions go with it (ON DELETE CASCADE), and
        any token issued to the user stops authenticating on its next use.
        """
        with self.engine.connect() as conn:
            result = conn.execute(users.delete().where(users.c.id == user_id))
            conn.commit()
        return result.rowcount > 0


# ---------------------------------------------------------------------------
# Row mapper (Data Mapper pattern)
# ---------------------------------------------------------------------------


def _row_to_user(row) -> User:
    return User(
        id=row.id,
        username=row.username,
        bio=row.bio,
        image=row.image,
        created_at=row.created_at,
    )
