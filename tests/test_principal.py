"""
tests/test_principal.py -- Unit tests for the credential pipeline in auth/dependencies.py.

Covers:
  - required auth: missing header, wrong scheme, non-UTF-8 bytes, bad token,
    expired token, deleted user, database failure -> Unauthorized
  - optional auth: missing header -> anonymous; any present-but-invalid
    header -> Unauthorized (never silently anonymous)
  - success path returns the token's user id for str and bytes headers
"""

from __future__ import annotations

import uuid
from unittest.mock import patch

import pytest
from sqlalchemy.exc import OperationalError

from auth.dependencies import authenticate, authenticate_optional
from auth.models import Identity, Viewer
from auth.store import UserStore
from auth.tokens import issue_token
from core.errors import Unauthorized

NOW = 1_700_000_000


def _bearer(ctx, user_id, lifetime: int = 3600, now: int = NOW) -> str:
    return f"Bearer {issue_token(user_id, ctx.hmac_key, lifetime_seconds=lifetime, now=now)}"


class TestRequired:
    def test_valid_header(self, ctx, users) -> None:
        assert authenticate(ctx, _bearer(ctx, users.alice), now=NOW) == Identity(user_id=users.alice)

    def test_valid_header_as_bytes(self, ctx, users) -> None:
        header = _bearer(ctx, users.bob).encode("utf-8")
        assert authenticate(ctx, header, now=NOW).user_id == users.bob

    def test_missing_header(self, ctx, users) -> None:
        with pytest.raises(Unauthorized):
            authenticate(ctx, None, now=NOW)

    @pytest.mark.parametrize("prefix", ["Token ", "bearer ", "Bearer", "Basic ", ""])
    def test_wrong_scheme(self, ctx, users, prefix: str) -> None:
        token = issue_token(users.alice, ctx.hmac_key, now=NOW)
        with pytest.raises(Unauthorized):
            authenticate(ctx, f"{prefix}{token}", now=NOW)

    def test_non_utf8_bytes(self, ctx, users) -> None:
        with pytest.raises(Unauthorized):
            authenticate(ctx, b"Bearer \xff\xfe\xfd", now=NOW)

    def test_token_signed_with_other_key(self, ctx, users) -> None:
        token = issue_token(users.alice, "x" * 48, now=NOW)
        with pytest.raises(Unauthorized):
            authenticate(ctx, f"Bearer {token}", now=NOW)

    def test_expired_token(self, ctx, users) -> None:
        """The codec accepts it; the resolver must not."""
        header = _bearer(ctx, users.alice, lifetime=60, now=NOW - 3600)
        with pytest.raises(Unauthorized):
            authenticate(ctx, header, now=NOW)

    def test_token_valid_until_exact_expiry(self, ctx, users) -> None:
        header = _bearer(ctx, users.alice, lifetime=60, now=NOW - 60)
        assert authenticate(ctx, header, now=NOW).user_id == users.alice

    def test_unknown_user(self, ctx, users) -> None:
        with pytest.raises(Unauthorized):
            authenticate(ctx, _bearer(ctx, uuid.uuid4()), now=NOW)

    def test_deleted_user_token_stops_working(self, ctx, users) -> None:
        header = _bearer(ctx, users.carol)
        assert authenticate(ctx, header, now=NOW).user_id == users.carol
        UserStore(ctx.engine).delete_user(users.carol)
        with pytest.raises(Unauthorized):
            authenticate(ctx, header, now=NOW)

    def test_database_error_is_unauthorized(self, ctx, users) -> None:
        header = _bearer(ctx, users.alice)
        with patch.object(UserStore, "exists", side_effect=OperationalError("SELECT", {}, Exception("down"))):
            with pytest.raises(Unauthorized):
                authenticate(ctx, header, now=NOW)

    def test_uses_wall_clock_by_default(self, ctx, users) -> None:
        token = issue_token(users.alice, ctx.hmac_key)
        assert authenticate(ctx, f"Bearer {token}").user_id == users.alice


class TestOptional:
    def test_absent_header_is_anonymous(self, ctx, users) -> None:
        viewer = authenticate_optional(ctx, None, now=NOW)
        assert viewer == Viewer.anonymous()
        assert viewer.is_anonymous
        assert viewer.user_id is None

    def test_valid_header_is_authenticated(self, ctx, users) -> None:
        viewer = authenticate_optional(ctx, _bearer(ctx, users.alice), now=NOW)
        assert not viewer.is_anonymous
        assert viewer.identity == Identity(user_id=users.alice)

    @pytest.mark.parametrize("header", ["", "Bearer ", "Bearer garbage", "Token abc", b"\xff"])
    def test_malformed_header_is_rejected_not_anonymous(self, ctx, users, header) -> None:
        with pytest.raises(Unauthorized):
            authenticate_optional(ctx, header, now=NOW)

    def test_expired_header_is_rejected_not_anonymous(self, ctx, users) -> None:
        header = _bearer(ctx, users.alice, lifetime=1, now=NOW - 10)
        with pytest.raises(Unauthorized):
            authenticate_optional(ctx, header, now=NOW)
