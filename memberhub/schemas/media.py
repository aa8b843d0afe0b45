from __future__ import annotations

"""
MemberHub • Bunny.net video schemas
===================================

Shapes for the admin video endpoints. `BunnyVideo` mirrors the subset of the
Stream API video object the admin screens use; unknown upstream fields are
ignored.
"""

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, constr

from memberhub.schemas.enums import MediaKind


class BunnyVideo(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    guid: str
    title: Optional[str] = None
    length: Optional[int] = None
    status: Optional[int] = None
    date_uploaded: Optional[str] = Field(None, alias="dateUploaded")
    views: Optional[int] = None
    storage_size: Optional[int] = Field(None, alias="storageSize")


class BunnyVideoPage(BaseModel):
    items: List[BunnyVideo]
    total_items: int
    page: int
    per_page: int


class VideoOut(BaseModel):
    video_id: str
    title: Optional[str] = None
    embed_url: Optional[str] = None
    playback_url: Optional[str] = None
    thumbnail_url: Optional[str] = None
    expires: Optional[int] = None


class VideoList(BaseModel):
    items: List[VideoOut]
    total_items: int
    page: int
    per_page: int


class CreateSessionRequest(BaseModel):
    title: constr(strip_whitespace=True, min_length=1, max_length=300)


class CreateSessionResponse(BaseModel):
    video_id: str
    library_id: str
    embed_url: str


class RenameVideoRequest(BaseModel):
    title: constr(strip_whitespace=True, min_length=1, max_length=300)


class SecureUrlRequest(BaseModel):
    video_id: constr(strip_whitespace=True, min_length=1, max_length=64) = Field(..., alias="videoId")
    kind: MediaKind = Field(MediaKind.VIDEO, alias="type")

    model_config = ConfigDict(populate_by_name=True)


class SecureUrlResponse(BaseModel):
    url: str
    expires: int
