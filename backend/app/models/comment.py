"""
Shutterfeed Backend — Comment SQLAlchemy Model
===============================================

What:  ORM model representing the `comments` table.
Who:   Written by CommentService.add_comment, removed by delete_comment.

A comment is immutable once created. Its `mentions` are resolved once, at
creation time, from the `@username` tokens in `text` (or from an explicit
id list supplied by the client) and are never re-resolved later, even if a
username changes hands.
"""

import uuid
from datetime import datetime, timezone
from typing import TYPE_CHECKING, List

from sqlalchemy import DateTime, ForeignKey, Index, Text, Uuid
from sqlalchemy import text as sa_text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.database import Base

if TYPE_CHECKING:
    from app.models.photo import Photo
    from app.models.user import User


class Comment(Base):

    __tablename__ = "comments"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        primary_key=True,
        default=uuid.uuid4,
    )

    photo_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("photos.id", ondelete="CASCADE"),
        nullable=False,
    )

    author_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    text: Mapped[str] = mapped_column(Text, nullable=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        server_default=sa_text("CURRENT_TIMESTAMP"),
    )

    photo: Mapped["Photo"] = relationship("Photo", back_populates="comments")
    author: Mapped["User"] = relationship("User")
    mentions: Mapped[List["User"]] = relationship("User", secondary="comment_mentions")

    # Comments are always read per photo, oldest first.
    __table_args__ = (
        Index("idx_comments_photo_created", photo_id, created_at),
    )

    def __repr__(self) -> str:
        return f"<Comment(id={self.id}, photo_id={self.photo_id}, author_id={self.author_id})>"
