"""
social/models.py -- Domain dataclasses for the follow graph.

Pure data containers. social/store.py owns every rule about how edges are
created and how profiles are computed.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional
from uuid import UUID


@dataclass(frozen=True)
class FollowEdge:
    """follower_id follows followed_id.

    An edge has no identity beyond the ordered pair. follower_id never
    equals followed_id; the database rejects such a row.
    """

    follower_id: UUID
    followed_id: UUID


@dataclass
class Profile:
    """A user's public attributes plus whether the viewer follows them.

    following is derived at query time and never stored. It is always False
    for an anonymous viewer.
    """

    username: str
    bio: Optional[str] = None
    image: Optional[str] = None
    following: bool = False
