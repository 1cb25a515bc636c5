"""
Shutterfeed Backend — Photo Schemas
====================================

What:  Response models for photos (full detail and compact summary) and the
       request model for tagging.

Two representations:
    PhotoResponse  → GET /api/photos, /api/photos/{id}; includes comments,
                     likes, sharing list, mentions and tags
    PhotoSummary   → embedded in feed entries, favorites and user pages
"""

import uuid
from datetime import datetime
from typing import List

from pydantic import Field

from app.schemas.comment import CommentResponse
from app.schemas.common import ApiModel
from app.schemas.user import UserSummary


class PhotoSummary(ApiModel):
    id: uuid.UUID = Field(alias="_id")
    user: UserSummary = Field(description="Owner")
    file: str = Field(description="URL path of the stored image")
    caption: str = ""
    date_uploaded: datetime


class Rect(ApiModel):
    x: float
    y: float
    width: float = Field(ge=0)
    height: float = Field(ge=0)


class TagRequest(ApiModel):
    """Body of POST /api/photos/{id}/tags."""
    user_id: uuid.UUID
    rect: Rect


class TagResponse(ApiModel):
    id: int = Field(alias="_id")
    user: UserSummary
    rect: Rect


class PhotoResponse(PhotoSummary):
    comments: List[CommentResponse] = Field(default_factory=list)
    likes: List[UserSummary] = Field(default_factory=list)
    shared_with: List[UserSummary] = Field(default_factory=list)
    mentions: List[UserSummary] = Field(default_factory=list)
    tags: List[TagResponse] = Field(default_factory=list)
    like_count: int = 0
    comment_count: int = 0
