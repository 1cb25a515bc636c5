"""
Shutterfeed Backend — Activity SQLAlchemy Model
================================================

What:  ORM model for the append-only `activities` log behind the feed.
Who:   Written only by ActivityService.record; read by ActivityService.recent
       and the user detail page.

Rows are never updated. The only mutation is the database nulling
photo_id / comment_id when the referenced row disappears; in practice the
services delete activities that point at a deleted comment or photo.
"""

import enum
import uuid
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Optional

from sqlalchemy import DateTime, Enum, ForeignKey, Index, Uuid, text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.database import Base

if TYPE_CHECKING:
    from app.models.comment import Comment
    from app.models.photo import Photo
    from app.models.user import User


class ActivityKind(str, enum.Enum):
    """The fixed set of events the feed knows about."""

    PHOTO_UPLOAD = "PHOTO_UPLOAD"
    COMMENT_ADDED = "COMMENT_ADDED"
    USER_REGISTERED = "USER_REGISTERED"
    USER_LOGIN = "USER_LOGIN"
    USER_LOGOUT = "USER_LOGOUT"


class Activity(Base):

    __tablename__ = "activities"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        primary_key=True,
        default=uuid.uuid4,
    )

    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    # Stored as VARCHAR rather than a native enum type; adding a
    # kind is then a code change, not a schema migration.
    kind: Mapped[ActivityKind] = mapped_column(
        Enum(ActivityKind, native_enum=False, length=32, name="activity_kind"),
        nullable=False,
    )

    photo_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid,
        ForeignKey("photos.id", ondelete="SET NULL"),
        nullable=True,
    )

    comment_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid,
        ForeignKey("comments.id", ondelete="SET NULL"),
        nullable=True,
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        server_default=text("CURRENT_TIMESTAMP"),
    )

    user: Mapped["User"] = relationship("User", foreign_keys=[user_id])
    photo: Mapped[Optional["Photo"]] = relationship("Photo")
    comment: Mapped[Optional["Comment"]] = relationship("Comment")

    __table_args__ = (
        Index("idx_activities_created_at", created_at.desc()),
    )

    def __repr__(self) -> str:
        return f"<Activity(id={self.id}, kind='{self.kind.value}', user_id={self.user_id})>"
