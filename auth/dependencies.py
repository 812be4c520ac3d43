"""
auth/dependencies.py -- Resolve the Authorization header into a principal.

Two entry points share one validation pipeline:

  authenticate()          -- required auth. No header -> Unauthorized.
  authenticate_optional() -- optional auth. No header -> Viewer.anonymous().
                             A header that IS present goes through the same
                             pipeline and any failure propagates.

The second one is NOT "try authenticate, return None on error". Absent and
invalid are different outcomes: a client that sent a broken or expired token
must hear about it instead of being silently served the anonymous view.

Pipeline (stops at the first failure, every failure is the same opaque
Unauthorized -- the client never learns which check failed):
  1. header is valid UTF-8 and starts with "Bearer "
  2. token signature and algorithm verify (auth/tokens.py)
  3. exp is not in the past, checked against the clock now
  4. the user still exists -- the only revocation available to stateless
     tokens (delete the user and their tokens stop working)
  5. -> Identity(user_id)

get_identity() / get_viewer() adapt these to FastAPI Depends(). They read
the raw header bytes so step 1 sees exactly what the client sent.

Layer rule: no imports from api/ or social/. May import fastapi because this
module is part of the FastAPI dependency injection system.
"""

from __future__ import annotations

import logging
import time
from typing import Optional, Union

from fastapi import Request
from sqlalchemy.exc import SQLAlchemyError

from auth.models import Identity, Viewer
from auth.store import UserStore
from auth.tokens import InvalidToken, verify_token
from core.context import AppContext
from core.errors import Unauthorized

logger = logging.getLogger("followgraph.auth")

SCHEME_PREFIX = "Bearer "

HeaderValue = Union[str, bytes, None]


def _token_from_header(header: Union[str, bytes]) -> str:
    if isinstance(header, bytes):
        try:
            header = header.decode("utf-8")
        except UnicodeDecodeError:
            logger.debug("Authorization header was not valid UTF-8")
            raise Unauthorized("Authorization header was not valid UTF-8") from None

    if not header.startswith(SCHEME_PREFIX):
        logger.debug("Authorization header did not start with %r", SCHEME_PREFIX)
        raise Unauthorized("Authorization header has the wrong scheme")

    return header[len(SCHEME_PREFIX) :]


def authenticate(ctx: AppContext, header: HeaderValue, now: Optional[int] = None) -> Identity:
    """Require a valid credential. Raises Unauthorized on any problem, including absence."""
    if header is None:
        raise Unauthorized("Authorization header missing")

    token = _token_from_header(header)

    try:
        claims = verify_token(token, ctx.hmac_key)
    except InvalidToken:
        raise Unauthorized("Token failed verification") from None

    current = int(time.time()) if now is None else now
    if claims.is_expired(current):
        logger.debug("Token expired at %d (now %d)", claims.expires_at, current)
        raise Unauthorized("Token expired")

    try:
        known = UserStore(ctx.engine).exists(claims.user_id)
    except SQLAlchemyError:
        logger.exception("Database error while checking token owner")
        raise Unauthorized("User lookup failed") from None
    if not known:
        logger.debug("Token refers to unknown user %s", claims.user_id)
        raise Unauthorized("Token owner no longer exists")

    return Identity(user_id=claims.user_id)


def authenticate_optional(ctx: AppContext, header: HeaderValue, now: Optional[int] = None) -> Viewer:
    """Allow anonymous access, but reject a credential that was sent and is invalid."""
    if header is None:
        return Viewer.anonymous()
    return Viewer(identity=authenticate(ctx, header, now=now))


# ---------------------------------------------------------------------------
# FastAPI dependencies
# ---------------------------------------------------------------------------


def _raw_authorization(request: Request) -> Optional[bytes]:
    """Return the raw Authorization header bytes, or None if it was not sent."""
    for name, value in request.headers.raw:
        if name.lower() == b"authorization":
            return value
    return None


def get_identity(request: Request) -> Identity:
    """Require authentication.

    Use as a FastAPI dependency:
        @router.post("/protected")
        def route(identity: Identity = Depends(get_identity)): ...
    """
    return authenticate(request.app.state.ctx, _raw_authorization(request))


def get_viewer(request: Request) -> Viewer:
    """Optional authentication. Anonymous only when no Authorization header was sent."""
    return authenticate_optional(request.app.state.ctx, _raw_authorization(request))
