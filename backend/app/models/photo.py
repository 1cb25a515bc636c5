"""
Shutterfeed Backend — Photo SQLAlchemy Models
==============================================

What:  ORM models for the `photos` and `photo_tags` tables.
Who:   Used by PhotoService, CommentService and the visibility evaluator.

Table Design Rationale:
    - owner_id: exactly one owner; the owner always sees their own photo
    - file_path: relative storage reference returned by FileService
    - comments: ordered by creation time; the photo's comment list IS the
      set of comment rows pointing at it
    - likes / shared_with / mentions: reference sets in association tables
    - shared_with empty = public; non-empty = owner + listed users only
    - mentions only grows; deleting a comment does not retract it

    Index on uploaded_at DESC:
        Backs the feed ordering (likes desc, then newest first).
"""

import uuid
from datetime import datetime, timezone
from typing import TYPE_CHECKING, List

from sqlalchemy import DateTime, Float, ForeignKey, Index, String, Text, Uuid, text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.database import Base

if TYPE_CHECKING:
    from app.models.comment import Comment
    from app.models.user import User


class Photo(Base):
    """
    An uploaded photo.

    Lifecycle:
        1. Created by upload (PHOTO_UPLOAD activity recorded)
        2. Mutated by comments (comment list, mention set), likes and tags
        3. Deleted by its owner, or when the owner account is deleted;
           comments, activities and favorites pointing at it go first

    Relationship collections are never lazy-loaded (async sessions cannot);
    services request them explicitly with selectinload().
    """

    __tablename__ = "photos"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        primary_key=True,
        default=uuid.uuid4,
    )

    owner_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    file_path: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        comment="Relative path from storage root to the uploaded image",
    )

    caption: Mapped[str] = mapped_column(Text, nullable=False, default="")

    uploaded_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        server_default=text("CURRENT_TIMESTAMP"),
    )

    # ── Relationships ─────────────────────────────────────────────────────
    owner: Mapped["User"] = relationship(
        "User",
        back_populates="photos",
        foreign_keys=[owner_id],
    )

    comments: Mapped[List["Comment"]] = relationship(
        "Comment",
        back_populates="photo",
        order_by="Comment.created_at",
    )

    likes: Mapped[List["User"]] = relationship("User", secondary="photo_likes")
    shared_with: Mapped[List["User"]] = relationship("User", secondary="photo_shares")
    mentions: Mapped[List["User"]] = relationship("User", secondary="photo_mentions")

    tags: Mapped[List["PhotoTag"]] = relationship(
        "PhotoTag",
        back_populates="photo",
        order_by="PhotoTag.id",
    )

    __table_args__ = (
        Index("idx_photos_uploaded_at", uploaded_at.desc()),
    )

    @property
    def shared_with_ids(self) -> List[uuid.UUID]:
        return [user.id for user in self.shared_with]

    @property
    def like_count(self) -> int:
        return len(self.likes)

    @property
    def comment_count(self) -> int:
        return len(self.comments)

    def __repr__(self) -> str:
        return f"<Photo(id={self.id}, owner_id={self.owner_id})>"


class PhotoTag(Base):
    """A user tagged inside a rectangle of a photo (owner-only action)."""

    __tablename__ = "photo_tags"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)

    photo_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("photos.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
    )

    x: Mapped[float] = mapped_column(Float, nullable=False)
    y: Mapped[float] = mapped_column(Float, nullable=False)
    width: Mapped[float] = mapped_column(Float, nullable=False)
    height: Mapped[float] = mapped_column(Float, nullable=False)

    photo: Mapped["Photo"] = relationship("Photo", back_populates="tags")
    user: Mapped["User"] = relationship("User")
