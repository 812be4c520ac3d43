"""
core/errors.py -- Error taxonomy shared by auth/, social/ and api/.

Every error carries the HTTP status and machine-readable code it maps to, so
the single FastAPI handler in api/main.py can render any of them without a
lookup table. Messages are fixed per class: callers never see which check
failed, only the category.

  Unauthorized  401  missing, malformed, expired or unverifiable credential,
                     or the authenticated user no longer exists
  Forbidden     403  attempted self-follow
  NotFound      404  target username does not resolve to a user
  StorageError  500  any other persistence failure

Layer rule: core/ is the kernel. No imports from api/, auth/, or social/.
"""

from __future__ import annotations


class FollowGraphError(Exception):
    """Base class for every error the service surfaces to a client."""

    status_code: int = 500
    code: str = "internal_error"
    message: str = "An unexpected error occurred."

    def __init__(self, message: str | None = None) -> None:
        # The constructor message is for server-side logs only. Responses
        # always use the class-level message.
        super().__init__(message or self.message)


class Unauthorized(FollowGraphError):
    status_code = 401
    code = "unauthorized"
    message = "Authentication required."


class Forbidden(FollowGraphError):
    status_code = 403
    code = "forbidden"
    message = "You cannot follow yourself."


class NotFound(FollowGraphError):
    status_code = 404
    code = "not_found"
    message = "Profile not found."


class StorageError(FollowGraphError):
    """Persistence failure. Detail is logged, never returned to the client."""

    status_code = 500
    code = "internal_error"
    message = "An unexpected error occurred."
