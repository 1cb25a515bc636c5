"""
Shutterfeed Backend — Comment Schemas
======================================

What:  Request/response models for POST /api/comments/{photo_id}.

Wire contract:
    request  { "text": "nice @userA", "mentions": ["<user id>", ...]? }
    response { "_id", "photo", "text", "user": {...}, "mentions": [{...}],
               "dateCreated" }

`text` is optional at the schema level on purpose: a missing or blank text
must come back as a 400 "Comment text is required" from the service, not as
FastAPI's generic 422.
"""

import uuid
from datetime import datetime
from typing import Annotated, List, Optional

from pydantic import BeforeValidator, Field

from app.schemas.common import ApiModel, coerce_id_list
from app.schemas.user import UserSummary


class CommentCreate(ApiModel):
    text: Optional[str] = Field(default=None, description="Free text; @username tokens become mentions")
    mentions: Annotated[Optional[List[str]], BeforeValidator(coerce_id_list)] = Field(
        default=None,
        description=(
            "Explicit mention list (user ids). When present, text parsing is skipped "
            "and every id must exist."
        ),
    )


class CommentResponse(ApiModel):
    id: uuid.UUID = Field(alias="_id")
    photo_id: uuid.UUID = Field(alias="photo")
    text: str
    user: UserSummary = Field(description="Author")
    mentions: List[UserSummary] = Field(default_factory=list)
    date_created: datetime
