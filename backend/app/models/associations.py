"""
Shutterfeed Backend — Association Tables
=========================================

What:  Plain SQLAlchemy Tables backing every many-to-many reference set.
How:   Each table has a composite primary key, so a pair can appear at most
       once. That makes likes, shares, mentions and favorites true sets at
       the storage layer; no handler ever has to de-duplicate them.

    photo_likes       photo ←→ user who liked it
    photo_shares      photo ←→ user on its visibility allow-list
    photo_mentions    photo ←→ user mentioned in any of its comments
    comment_mentions  comment ←→ user resolved from its text
    user_favorites    user ←→ favorited photo
"""

from sqlalchemy import Column, ForeignKey, Table, Uuid

from app.database import Base


photo_likes = Table(
    "photo_likes",
    Base.metadata,
    Column("photo_id", Uuid, ForeignKey("photos.id", ondelete="CASCADE"), primary_key=True),
    Column("user_id", Uuid, ForeignKey("users.id", ondelete="CASCADE"), primary_key=True),
)

photo_shares = Table(
    "photo_shares",
    Base.metadata,
    Column("photo_id", Uuid, ForeignKey("photos.id", ondelete="CASCADE"), primary_key=True),
    Column("user_id", Uuid, ForeignKey("users.id", ondelete="CASCADE"), primary_key=True),
)

photo_mentions = Table(
    "photo_mentions",
    Base.metadata,
    Column("photo_id", Uuid, ForeignKey("photos.id", ondelete="CASCADE"), primary_key=True),
    Column("user_id", Uuid, ForeignKey("users.id", ondelete="CASCADE"), primary_key=True),
)

comment_mentions = Table(
    "comment_mentions",
    Base.metadata,
    Column("comment_id", Uuid, ForeignKey("comments.id", ondelete="CASCADE"), primary_key=True),
    Column("user_id", Uuid, ForeignKey("users.id", ondelete="CASCADE"), primary_key=True),
)

user_favorites = Table(
    "user_favorites",
    Base.metadata,
    Column("user_id", Uuid, ForeignKey("users.id", ondelete="CASCADE"), primary_key=True),
    Column("photo_id", Uuid, ForeignKey("photos.id", ondelete="CASCADE"), primary_key=True),
)
