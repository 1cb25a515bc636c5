"""
Shutterfeed Backend — Activity Feed Schemas
============================================

What:  Response models for GET /api/activities and the user detail page.

A feed entry carries the author, the referenced photo (if any) and the
referenced comment (if any). A comment entry also embeds the photo that the
comment belongs to, so the client can render "X commented on <photo>" from
one payload.
"""

import uuid
from datetime import datetime
from typing import List, Optional

from pydantic import Field

from app.models.activity import ActivityKind
from app.schemas.common import ApiModel
from app.schemas.photo import PhotoSummary, PhotoResponse
from app.schemas.user import UserResponse, UserSummary


class ActivityComment(ApiModel):
    id: uuid.UUID = Field(alias="_id")
    text: str
    date_created: datetime
    photo: Optional[PhotoSummary] = None


class ActivityResponse(ApiModel):
    id: uuid.UUID = Field(alias="_id")
    kind: ActivityKind = Field(alias="type")
    user: UserSummary
    photo: Optional[PhotoSummary] = None
    comment: Optional[ActivityComment] = None
    created_at: datetime = Field(alias="date")


class UserDetailResponse(ApiModel):
    """GET /api/users/{id}: the profile plus a few derived highlights."""
    user: UserResponse
    most_recent_photo: Optional[PhotoSummary] = None
    most_commented_photo: Optional[PhotoResponse] = None
    mentioned_photos: List[PhotoSummary] = Field(default_factory=list)
    last_activity: Optional[ActivityResponse] = None
