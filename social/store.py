"""
social/store.py -- The follow graph: mutations and viewer-relative profiles.

Pattern: Repository + Data Mapper (same as auth/store.py). FollowGraph is the
repository; _row_to_profile is the mapper.

Mutations (follow / unfollow):
  Each call is one transaction: change the edge, resolve the target
  username, commit. The write comes first and looks the target up in a
  subquery, so the transaction is already open (and holds the write lock
  on SQLite, where pysqlite only emits BEGIN before DML) when the profile
  row is read. An unknown username writes nothing and raises NotFound,
  which rolls the transaction back. A concurrent call may supersede the
  returned profile immediately afterwards; that is expected.

  Re-following is a no-op (INSERT ... ON CONFLICT DO NOTHING), and so is
  unfollowing an edge that does not exist.

  Self-follow is refused by the database CHECK constraint, not by comparing
  ids here first. The only job of this module is to recognise that specific
  violation and raise Forbidden. Every other database failure becomes an
  opaque StorageError, logged in full.

Reads (get_profile / list_profiles):
  One SELECT each. "following" is a correlated EXISTS over follows, so the
  user row and the edge state come from the same snapshot.

Layer rule: no imports from api/.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import String, Uuid, exists, false, literal, select
from sqlalchemy.engine import Connection, Engine
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from auth.models import Identity
from core.database import SELF_FOLLOW_CONSTRAINT, follows, insert_ignoring_duplicates, users
from core.errors import Forbidden, NotFound, StorageError
from social.models import FollowEdge, Profile

logger = logging.getLogger("followgraph.social")


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def _is_self_follow_violation(exc: IntegrityError) -> bool:
    """Return True if exc was raised by the user_cannot_follow_self constraint.

    PostgreSQL drivers expose the constraint name on orig.diag; SQLite only
    puts it in the message ("CHECK constraint failed: user_cannot_follow_self").
    """
    diag = getattr(exc.orig, "diag", None)
    constraint_name = getattr(diag, "constraint_name", None)
    if constraint_name is not None:
        return constraint_name == SELF_FOLLOW_CONSTRAINT
    return SELF_FOLLOW_CONSTRAINT in str(exc.orig)


def _following_column(viewer: Optional[Identity]):
    if viewer is None:
        return false().label("following")
    return (
        exists()
        .where(follows.c.followed_id == users.c.id, follows.c.follower_id == viewer.user_id)
        .correlate(users)
        .label("following")
    )


def _profile_query(viewer: Optional[Identity]):
    return select(users.c.username, users.c.bio, users.c.image, _following_column(viewer))


class FollowGraph:
    """Repository for follow edges and the profiles they decorate.

    Usage:
        graph = FollowGraph(ctx.engine)
        graph.follow(identity, "bob")       # Profile(username="bob", following=True)
        graph.get_profile(None, "bob")      # anonymous: following=False
    """

    def __init__(self, engine: Engine) -> None:
        self.engine = engine

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def follow(self, follower: Identity, username: str) -> Profile:
        """Make follower follow username. Idempotent.

        Raises NotFound if username does not exist, Forbidden on a
        self-follow, StorageError on any other database failure.
        """
        try:
            with self.engine.begin() as conn:
                conn.execute(
                    insert_ignoring_duplicates(self.engine, follows).from_select(
                        ["follower_id", "followed_id", "created_at"],
                        select(
                            literal(follower.user_id, Uuid),
                            users.c.id,
                            literal(_now_iso(), String),
                        ).where(users.c.username == username),
                    )
                )
                target = self._resolve(conn, username)
        except IntegrityError as e:
            if _is_self_follow_violation(e):
                logger.info("User %s attempted to follow themselves", follower.user_id)
                raise Forbidden() from None
            logger.exception("Integrity error while %s followed %r", follower.user_id, username)
            raise StorageError(str(e)) from e
        except SQLAlchemyError as e:
            logger.exception("Database error while %s followed %r", follower.user_id, username)
            raise StorageError(str(e)) from e
        return _row_to_profile(target, following=True)

    def unfollow(self, follower: Identity, username: str) -> Profile:
        """Remove the edge follower -> username if present.

        Raises NotFound if username does not exist, StorageError on database
        failure. A missing edge is not an error.
        """
        try:
            with self.engine.begin() as conn:
                conn.execute(
                    follows.delete().where(
                        follows.c.follower_id == follower.user_id,
                        follows.c.followed_id.in_(select(users.c.id).where(users.c.username == username)),
                    )
                )
                target = self._resolve(conn, username)
        except SQLAlchemyError as e:
            logger.exception("Database error while %s unfollowed %r", follower.user_id, username)
            raise StorageError(str(e)) from e
        return _row_to_profile(target, following=False)

    def _resolve(self, conn: Connection, username: str):
        row = conn.execute(
            select(users.c.id, users.c.username, users.c.bio, users.c.image).where(users.c.username == username)
        ).fetchone()
        if row is None:
            raise NotFound(f"No user named {username!r}")
        return row

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def get_profile(self, viewer: Optional[Identity], username: str) -> Profile:
        """Return username's profile as seen by viewer. Raises NotFound."""
        try:
            with self.engine.connect() as conn:
                row = conn.execute(_profile_query(viewer).where(users.c.username == username)).fetchone()
        except SQLAlchemyError as e:
            logger.exception("Database error while loading profile %r", username)
            raise StorageError(str(e)) from e
        if row is None:
            raise NotFound(f"No user named {username!r}")
        return _row_to_profile(row, following=bool(row.following))

    def list_profiles(self, viewer: Optional[Identity]) -> list[Profile]:
        """Return every profile except the viewer's own, ordered by username."""
        query = _profile_query(viewer)
        if viewer is not None:
            query = query.where(users.c.id != viewer.user_id)
        try:
            with self.engine.connect() as conn:
                rows = conn.execute(query.order_by(users.c.username)).fetchall()
        except SQLAlchemyError as e:
            logger.exception("Database error while listing profiles")
            raise StorageError(str(e)) from e
        return [_row_to_profile(r, following=bool(r.following)) for r in rows]

    def edges_from(self, follower_id) -> list[FollowEdge]:
        """Return every edge leaving follower_id, oldest first."""
        with self.engine.connect() as conn:
            rows = conn.execute(
                select(follows.c.follower_id, follows.c.followed_id)
                .where(follows.c.follower_id == follower_id)
                .order_by(follows.c.created_at)
            ).fetchall()
        return [FollowEdge(follower_id=r.follower_id, followed_id=r.followed_id) for r in rows]


# ---------------------------------------------------------------------------
# Row mapper (Data Mapper pattern)
# ---------------------------------------------------------------------------


def _row_to_profile(row, following: bool) -> Profile:
    return Profile(username=row.username, bio=row.bio, image=row.image, following=following)
