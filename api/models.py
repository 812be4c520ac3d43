"""
API request and response models for FollowGraph REST endpoints.

These Pydantic v2 models define the HTTP transport contract for the API layer.
They are intentionally separate from the dataclasses in social/models.py,
which own the internal domain representation. Route handlers map between the
two.

Successful responses share one envelope: {"success": true, "data": ...}.
Errors use {"error": {"code", "message", "detail"}}.
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict

from social.models import Profile

# ---------------------------------------------------------------------------
# Profiles
# ---------------------------------------------------------------------------


class ProfileResponse(BaseModel):
    """A public profile. bio and image are null when unset."""

    model_config = ConfigDict(frozen=True)

    username: str
    bio: Optional[str] = None
    image: Optional[str] = None
    following: bool

    @classmethod
    def from_domain(cls, profile: Profile) -> "ProfileResponse":
        return cls(
            username=profile.username,
            bio=profile.bio,
            image=profile.image,
            following=profile.following,
        )


class ProfileBody(BaseModel):
    """Envelope for a single profile."""

    success: bool = True
    data: ProfileResponse


class ProfilesBody(BaseModel):
    """Envelope for a list of profiles."""

    success: bool = True
    data: list[ProfileResponse]


# ---------------------------------------------------------------------------
# Errors
# ---------------------------------------------------------------------------


class ErrorDetail(BaseModel):
    """Machine-readable error payload."""

    model_config = ConfigDict(frozen=True)

    code: str
    message: str
    detail: Optional[str] = None


class ErrorResponse(BaseModel):
    """Top-level error envelope returned on 4xx/5xx responses."""

    model_config = ConfigDict(frozen=True)

    error: ErrorDetail


# ---------------------------------------------------------------------------
# Health
# ---------------------------------------------------------------------------


class HealthResponse(BaseModel):
    """Response for GET /api/health."""

    model_config = ConfigDict(frozen=True)

    status: str = "healthy"
    version: str
    components: dict[str, str]
