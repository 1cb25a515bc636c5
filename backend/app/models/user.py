"""
Shutterfeed Backend — User SQLAlchemy Model
============================================

What:  ORM model representing the `users` table.
Who:   Used by UserService (registration, profile, favorites, cascade delete),
       the mention resolver (username lookup) and the activity recorder
       (last-activity pointer).

Table Design Rationale:
    - username: unique and case-sensitive; "@Bob" and "@bob" are different users
    - password_hash: bcrypt output, never the raw password
    - last_activity_id: back-reference to the newest Activity row; nulled
      when that Activity is deleted
    - favorites: a set of photo references (user_favorites), not ownership
"""

import uuid
from datetime import datetime, timezone
from typing import TYPE_CHECKING, List, Optional

from sqlalchemy import DateTime, ForeignKey, String, Text, Uuid, text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.database import Base

if TYPE_CHECKING:
    from app.models.photo import Photo


class User(Base):
    """
    A registered account.

    Lifecycle:
        1. Created at registration (USER_REGISTERED activity recorded)
        2. Mutated on profile edit, favoriting, and every recorded activity
        3. Deleted together with everything it owns or authored
           (see UserService.delete_user for the order)
    """

    __tablename__ = "users"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        primary_key=True,
        default=uuid.uuid4,
    )

    username: Mapped[str] = mapped_column(
        String(64),
        nullable=False,
        unique=True,
        index=True,
        comment="Unique, case-sensitive handle used for @mentions",
    )

    first_name: Mapped[str] = mapped_column(String(100), nullable=False)
    last_name: Mapped[str] = mapped_column(String(100), nullable=False)

    password_hash: Mapped[str] = mapped_column(
        String(128),
        nullable=False,
        comment="bcrypt hash of the account password",
    )

    location: Mapped[str] = mapped_column(Text, nullable=False, default="")
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")
    occupation: Mapped[str] = mapped_column(Text, nullable=False, default="")

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        server_default=text("CURRENT_TIMESTAMP"),
    )

    # users ←→ activities reference each other; use_alter breaks the cycle
    # for CREATE TABLE ordering.
    last_activity_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid,
        ForeignKey(
            "activities.id",
            ondelete="SET NULL",
            use_alter=True,
            name="fk_users_last_activity_id",
        ),
        nullable=True,
        default=None,
    )

    # ── Relationships ─────────────────────────────────────────────────────
    photos: Mapped[List["Photo"]] = relationship(
        "Photo",
        back_populates="owner",
        foreign_keys="Photo.owner_id",
    )

    favorites: Mapped[List["Photo"]] = relationship(
        "Photo",
        secondary="user_favorites",
    )

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"

    def __repr__(self) -> str:
        return f"<User(id={self.id}, username='{self.username}')>"
