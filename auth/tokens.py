"""
auth/tokens.py -- Signing and verification of stateless session tokens.

Security design decisions:
  JWT: python-jose with HS384 (HMAC-SHA-384). Tokens carry only user_id and
       exp. The key is always passed in by the caller (it lives in the
       AppContext); this module never reads configuration itself.

  Algorithm confusion: the JOSE header is parsed first and its "alg" must be
       exactly HS384 before any signature work happens. A token relabelled
       as "none", HS256 or RS256 is rejected even if the attacker managed to
       produce a valid signature for the substituted algorithm. jwt.decode is
       additionally restricted to algorithms=[HS384].

  Uniform failure: every problem (bad structure, wrong algorithm, bad
       signature, malformed claims) raises the same InvalidToken with no
       detail. The reason is logged at DEBUG for operators only.

  Expiry: verify_token() deliberately does NOT check exp. The resolver
       compares it against the clock at verification time
       (auth/dependencies.py), so a codec round-trip is independent of time.

  Revocation: none. A token is valid until it expires. The resolver's user
       existence check is the only way to cut a session short (delete the
       user). Replacing this module and the resolver with an opaque session
       id looked up in a server-side table would trade statelessness for
       revocability.

Layer rule: no imports from api/ or social/.
"""

from __future__ import annotations

import logging
import time
from typing import Optional
from uuid import UUID

from jose import JWTError, jwt

from auth.models import SessionClaims
from core.config import DEFAULT_SESSION_LENGTH_SECONDS

logger = logging.getLogger("followgraph.auth")

ALGORITHM = "HS384"

# Expiry is checked by the resolver, not here. The remaining jose checks
# (iat/nbf/aud/iss/sub/jti) do not apply to our claims.
_DECODE_OPTIONS = {
    "verify_signature": True,
    "verify_exp": False,
    "verify_aud": False,
    "verify_iat": False,
    "verify_nbf": False,
    "verify_iss": False,
    "verify_sub": False,
    "verify_jti": False,
    "verify_at_hash": False,
}


class InvalidToken(Exception):
    """The token could not be verified. Carries no detail by design."""


# ---------------------------------------------------------------------------
# Encode
# ---------------------------------------------------------------------------


def sign_claims(claims: SessionClaims, key: str) -> str:
    """Encode claims as a compact HS384 JWT signed with key."""
    payload = {"user_id": str(claims.user_id), "exp": int(claims.expires_at)}
    return jwt.encode(payload, key, algorithm=ALGORITHM)


def issue_token(
    user_id: UUID,
    key: str,
    lifetime_seconds: int = DEFAULT_SESSION_LENGTH_SECONDS,
    now: Optional[int] = None,
) -> str:
    """Sign a session token for user_id that expires lifetime_seconds from now.

    The expiry is embedded in the token; nothing is recorded server-side.
    """
    issued_at = int(time.time()) if now is None else now
    return sign_claims(SessionClaims(user_id=user_id, expires_at=issued_at + lifetime_seconds), key)


# ---------------------------------------------------------------------------
# Decode / verify
# ---------------------------------------------------------------------------


def verify_token(token: str, key: str) -> SessionClaims:
    """Verify token against key and return its claims.

    Raises InvalidToken on any failure. Does not check expiry.
    """
    try:
        header = jwt.get_unverified_header(token)
    except JWTError as e:
        logger.debug("JWT header parsing error: %s", e)
        raise InvalidToken() from None

    # Must happen before signature verification: never let the token choose
    # how it is verified.
    if header.get("alg") != ALGORITHM:
        logger.debug("JWT declared algorithm %r, expected %s", header.get("alg"), ALGORITHM)
        raise InvalidToken()

    try:
        payload = jwt.decode(token, key, algorithms=[ALGORITHM], options=_DECODE_OPTIONS)
    except JWTError as e:
        logger.debug("JWT verification error: %s", e)
        raise InvalidToken() from None

    return _claims_from_payload(payload)


def _claims_from_payload(payload: dict) -> SessionClaims:
    exp = payload.get("exp")
    # bool is an int subclass; a JSON true is not a timestamp.
    if not isinstance(exp, int) or isinstance(exp, bool):
        logger.debug("JWT exp claim missing or not an integer")
        raise InvalidToken()
    try:
        user_id = UUID(str(payload["user_id"]))
    except (KeyError, ValueError):
        logger.debug("JWT user_id claim missing or not a UUID")
        raise InvalidToken() from None
    return SessionClaims(user_id=user_id, expires_at=exp)
