"""
api/routes/profiles.py -- Profile and follow REST endpoints.

Routes (mounted under /api by api/main.py):
  GET    /profiles                      -- list profiles (optional auth)
  GET    /profiles/{username}           -- one profile (requires auth)
  POST   /profiles/{username}/follow    -- follow (requires auth)
  DELETE /profiles/{username}/follow    -- unfollow (requires auth)

Auth policy:
  get_viewer treats a missing Authorization header as anonymous, but a header
  that is present and invalid still fails with 401. get_identity fails with
  401 for both.

Errors raised by social/store.py (NotFound, Forbidden, StorageError) and
auth/dependencies.py (Unauthorized) are rendered by the FollowGraphError
handler in api/main.py.

Handlers are plain def functions: FastAPI runs them in its thread pool, so
blocking database calls never stall the event loop.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Request

from api.models import ProfileBody, ProfileResponse, ProfilesBody
from auth.dependencies import get_identity, get_viewer
from auth.models import Identity, Viewer
from social.store import FollowGraph

router = APIRouter()


def _graph(request: Request) -> FollowGraph:
    return FollowGraph(request.app.state.ctx.engine)


@router.get("/profiles", response_model=ProfilesBody)
def list_profiles(request: Request, viewer: Viewer = Depends(get_viewer)) -> ProfilesBody:
    """Return every profile except the caller's own.

    Anonymous callers see all users with following=false.
    """
    profiles = _graph(request).list_profiles(viewer.identity)
    return ProfilesBody(data=[ProfileResponse.from_domain(p) for p in profiles])


@router.get("/profiles/{username}", response_model=ProfileBody)
def get_profile(request: Request, username: str, identity: Identity = Depends(get_identity)) -> ProfileBody:
    """Return one profile with following computed for the caller. 404 if unknown."""
    profile = _graph(request).get_profile(identity, username)
    return ProfileBody(data=ProfileResponse.from_domain(profile))


@router.post("/profiles/{username}/follow", response_model=ProfileBody)
def follow_user(request: Request, username: str, identity: Identity = Depends(get_identity)) -> ProfileBody:
    """Follow username. Following an already-followed user succeeds. 403 on self-follow."""
    profile = _graph(request).follow(identity, username)
    return ProfileBody(data=ProfileResponse.from_domain(profile))


@router.delete("/profiles/{username}/follow", response_model=ProfileBody)
def unfollow_user(request: Request, username: str, identity: Identity = Depends(get_identity)) -> ProfileBody:
    """Unfollow username. Unfollowing a user you do not follow succeeds."""
    profile = _graph(request).unfollow(identity, username)
    return ProfileBody(data=ProfileResponse.from_domain(profile))
