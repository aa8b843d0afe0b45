from __future__ import annotations

"""
MemberHub • Content Schemas
===========================

`ContentOut` is the per-viewer rendering of a content row: the gate decides
whether `playback_url` / `media_url` are present and whether `is_locked` is
set. Admin write payloads carry the raw gating columns.
"""

from datetime import datetime
from typing import Dict, List, Optional

from pydantic import BaseModel, Field, constr, field_validator

from memberhub.db.models.comment import MAX_COMMENT_LENGTH
from memberhub.schemas.enums import ContentType, MembershipTier
from memberhub.services.signing import check_resource_id


def _check_video_id(v: Optional[str]) -> Optional[str]:
    # Stored ids are signed into CDN paths on every read.
    if v is not None:
        check_resource_id(v)
    return v


# ──────────────────────────────────────────────────────────────
# Read models
# ──────────────────────────────────────────────────────────────
class ContentOut(BaseModel):
    id: str
    title: str
    description: Optional[str] = None
    type: str
    category: Optional[str] = None
    tags: List[str] = []
    tier: str
    is_locked: bool
    required_tier: Optional[str] = None
    video_id: Optional[str] = None
    playback_url: Optional[str] = None
    thumbnail_url: Optional[str] = None
    media_url: Optional[str] = None
    url_expires: Optional[int] = None
    poll_options: Optional[Dict[str, int]] = None
    poll_multiple_choice: bool = False
    poll_ends_at: Optional[datetime] = None
    likes: int = 0
    comments: int = 0
    liked_by_me: bool = False
    created_at: Optional[datetime] = None


class ContentList(BaseModel):
    items: List[ContentOut]
    total: int


class LikeRequest(BaseModel):
    content_id: str = Field(..., alias="contentId")

    model_config = {"populate_by_name": True}


class LikeResponse(BaseModel):
    liked: bool
    likes: int


class PollVoteRequest(BaseModel):
    content_id: str = Field(..., alias="contentId")
    option: constr(strip_whitespace=True, min_length=1, max_length=200)

    model_config = {"populate_by_name": True}


class PollVoteResponse(BaseModel):
    poll_options: Dict[str, int]


class CommentCreate(BaseModel):
    content_id: str = Field(..., alias="contentId")
    text: constr(strip_whitespace=True, min_length=1, max_length=MAX_COMMENT_LENGTH)
    parent_comment_id: Optional[str] = Field(None, alias="parentCommentId")

    model_config = {"populate_by_name": True}


class CommentOut(BaseModel):
    id: str
    content_id: str
    user_id: str
    username: Optional[str] = None
    parent_id: Optional[str] = None
    text: str
    created_at: Optional[datetime] = None


class FeedAddRequest(BaseModel):
    content_id: str = Field(..., alias="contentId")

    model_config = {"populate_by_name": True}


class StatsOut(BaseModel):
    subscribers: int
    posts: int


# ──────────────────────────────────────────────────────────────
# Admin write models
# ──────────────────────────────────────────────────────────────
class ContentCreate(BaseModel):
    title: constr(strip_whitespace=True, min_length=1, max_length=300)
    description: Optional[str] = None
    type: ContentType = ContentType.POST
    category: Optional[constr(strip_whitespace=True, max_length=64)] = None
    tags: List[str] = []
    tier: MembershipTier = MembershipTier.BASIC
    is_locked: bool = True
    video_id: Optional[constr(strip_whitespace=True, min_length=1, max_length=64)] = None
    media_url: Optional[constr(strip_whitespace=True, max_length=1024)] = None
    poll_options: Optional[List[constr(strip_whitespace=True, min_length=1, max_length=200)]] = None
    poll_multiple_choice: bool = False
    poll_ends_at: Optional[datetime] = None
    add_to_feed: bool = False

    @field_validator("poll_options")
    @classmethod
    def _unique_options(cls, v):
        if v is not None and len(set(v)) != len(v):
            raise ValueError("poll options must be unique")
        return v

    @field_validator("video_id")
    @classmethod
    def _signable_video_id(cls, v):
        return _check_video_id(v)


class ContentUpdate(BaseModel):
    """Partial update; omitted fields are left alone.

    `title`, `tier`, `tags` and `is_locked` may be omitted but not nulled.
    """

    title: Optional[constr(strip_whitespace=True, min_length=1, max_length=300)] = None
    description: Optional[str] = None
    category: Optional[constr(strip_whitespace=True, max_length=64)] = None
    tags: Optional[List[str]] = None
    tier: Optional[MembershipTier] = None
    is_locked: Optional[bool] = None
    video_id: Optional[constr(strip_whitespace=True, min_length=1, max_length=64)] = None
    media_url: Optional[constr(strip_whitespace=True, max_length=1024)] = None
    poll_ends_at: Optional[datetime] = None

    @field_validator("title", "tier", "tags", "is_locked")
    @classmethod
    def _not_null(cls, v, info):
        if v is None:
            raise ValueError(f"{info.field_name} cannot be null")
        return v

    @field_validator("video_id")
    @classmethod
    def _signable_video_id(cls, v):
        return _check_video_id(v)
