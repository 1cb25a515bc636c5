"""
Shutterfeed Backend — ORM Models

Importing this package registers every table with Base.metadata, which is
what Alembic autogeneration and the test suite's create_all() rely on.
"""

from app.models.associations import (  # noqa: F401
    comment_mentions,
    photo_likes,
    photo_mentions,
    photo_shares,
    user_favorites,
)
from app.models.activity import Activity, ActivityKind
from app.models.comment import Comment
from app.models.photo import Photo, PhotoTag
from app.models.user import User

__all__ = ["Activity", "ActivityKind", "Comment", "Photo", "PhotoTag", "User"]
