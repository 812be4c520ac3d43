"""
auth/models.py -- Domain dataclasses for authentication entities.

Pattern: Data class (pure data container, zero logic beyond trivial
accessors). Stores, the token codec and the resolver do the work.

Layer rule: no imports from api/ or social/.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional
from uuid import UUID


@dataclass
class User:
    """A row of the users table, as far as this service reads it.

    id is None before the record is written; UserStore.create_user assigns a
    random UUID when the caller does not supply one.
    """

    username: str
    id: Optional[UUID] = None
    bio: Optional[str] = None
    image: Optional[str] = None
    created_at: str = ""  # ISO 8601, set by store on insert


@dataclass(frozen=True)
class SessionClaims:
    """The signed payload of a session token.

    On the wire this is {"user_id": "<uuid>", "exp": <unix seconds>}.
    There is no server-side record of issuance.
    """

    user_id: UUID
    expires_at: int

    def is_expired(self, now: int) -> bool:
        return self.expires_at < now


@dataclass(frozen=True)
class Identity:
    """An authenticated principal, derived per request from a verified token."""

    user_id: UUID


@dataclass(frozen=True)
class Viewer:
    """Outcome of optional authentication.

    Only two states exist here: anonymous (no credential was sent) and
    authenticated. The third outcome, a credential that was sent but is
    invalid, never becomes a Viewer -- it raises Unauthorized instead.
    """

    identity: Optional[Identity] = None

    @classmethod
    def anonymous(cls) -> "Viewer":
        return cls(identity=None)

    @property
    def is_anonymous(self) -> bool:
        return self.identity is None

    @property
    def user_id(self) -> Optional[UUID]:
        return self.identity.user_id if self.identity is not None else None
