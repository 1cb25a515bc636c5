"""Initial Shutterfeed schema

Revision ID: 001
Revises: None
Create Date: 2026-10-18 00:00:00.000000+00:00

What:  Creates users, photos, photo_tags, comments, activities and the
       association tables for likes, shares, mentions and favorites.
How:   users.last_activity_id → activities.id is added after both tables
       exist (the two reference each other).

Rollback: downgrade() drops everything (destructive).
"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

ACTIVITY_KINDS = ("PHOTO_UPLOAD", "COMMENT_ADDED", "USER_REGISTERED", "USER_LOGIN", "USER_LOGOUT")


def _timestamp(name: str) -> sa.Column:
    return sa.Column(
        name,
        sa.DateTime(timezone=True),
        nullable=False,
        server_default=sa.text("CURRENT_TIMESTAMP"),
    )


def _reference_set(name: str, left: str, left_table: str) -> None:
    op.create_table(
        name,
        sa.Column(left, sa.Uuid(), sa.ForeignKey(f"{left_table}.id", ondelete="CASCADE"), primary_key=True),
        sa.Column("user_id", sa.Uuid(), sa.ForeignKey("users.id", ondelete="CASCADE"), primary_key=True),
    )


def upgrade() -> None:
    # ── users ─────────────────────────────────────────────────────────────
    op.create_table(
        "users",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("username", sa.String(64), nullable=False,
                  comment="Unique, case-sensitive handle used for @mentions"),
        sa.Column("first_name", sa.String(100), nullable=False),
        sa.Column("last_name", sa.String(100), nullable=False),
        sa.Column("password_hash", sa.String(128), nullable=False,
                  comment="bcrypt hash of the account password"),
        sa.Column("location", sa.Text(), nullable=False, server_default=sa.text("''")),
        sa.Column("description", sa.Text(), nullable=False, server_default=sa.text("''")),
        sa.Column("occupation", sa.Text(), nullable=False, server_default=sa.text("''")),
        _timestamp("created_at"),
        sa.Column("last_activity_id", sa.Uuid(), nullable=True),
    )
    op.create_index("ix_users_username", "users", ["username"], unique=True)

    # ── photos ────────────────────────────────────────────────────────────
    op.create_table(
        "photos",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("owner_id", sa.Uuid(), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("file_path", sa.String(255), nullable=False,
                  comment="Relative path from storage root to the uploaded image"),
        sa.Column("caption", sa.Text(), nullable=False, server_default=sa.text("''")),
        _timestamp("uploaded_at"),
    )
    op.create_index("ix_photos_owner_id", "photos", ["owner_id"])
    op.create_index("idx_photos_uploaded_at", "photos", [sa.text("uploaded_at DESC")])

    op.create_table(
        "photo_tags",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("photo_id", sa.Uuid(), sa.ForeignKey("photos.id", ondelete="CASCADE"), nullable=False),
        sa.Column("user_id", sa.Uuid(), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("x", sa.Float(), nullable=False),
        sa.Column("y", sa.Float(), nullable=False),
        sa.Column("width", sa.Float(), nullable=False),
        sa.Column("height", sa.Float(), nullable=False),
    )
    op.create_index("ix_photo_tags_photo_id", "photo_tags", ["photo_id"])

    # ── comments ──────────────────────────────────────────────────────────
    op.create_table(
        "comments",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("photo_id", sa.Uuid(), sa.ForeignKey("photos.id", ondelete="CASCADE"), nullable=False),
        sa.Column("author_id", sa.Uuid(), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("text", sa.Text(), nullable=False),
        _timestamp("created_at"),
    )
    op.create_index("ix_comments_author_id", "comments", ["author_id"])
    op.create_index("idx_comments_photo_created", "comments", ["photo_id", "created_at"])

    # ── activities ────────────────────────────────────────────────────────
    op.create_table(
        "activities",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("user_id", sa.Uuid(), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("kind", sa.Enum(*ACTIVITY_KINDS, name="activity_kind", native_enum=False, length=32),
                  nullable=False),
        sa.Column("photo_id", sa.Uuid(), sa.ForeignKey("photos.id", ondelete="SET NULL"), nullable=True),
        sa.Column("comment_id", sa.Uuid(), sa.ForeignKey("comments.id", ondelete="SET NULL"), nullable=True),
        _timestamp("created_at"),
    )
    op.create_index("ix_activities_user_id", "activities", ["user_id"])
    op.create_index("idx_activities_created_at", "activities", [sa.text("created_at DESC")])

    with op.batch_alter_table("users") as batch:
        batch.create_foreign_key(
            "fk_users_last_activity_id", "activities",
            ["last_activity_id"], ["id"], ondelete="SET NULL",
        )

    # ── reference sets ────────────────────────────────────────────────────
    _reference_set("photo_likes", "photo_id", "photos")
    _reference_set("photo_shares", "photo_id", "photos")
    _reference_set("photo_mentions", "photo_id", "photos")
    _reference_set("comment_mentions", "comment_id", "comments")
    _reference_set("user_favorites", "photo_id", "photos")


def downgrade() -> None:
    for name in ("user_favorites", "comment_mentions", "photo_mentions", "photo_shares", "photo_likes"):
        op.drop_table(name)
    with op.batch_alter_table("users") as batch:
        batch.drop_constraint("fk_users_last_activity_id", type_="foreignkey")
    op.drop_table("activities")
    op.drop_table("comments")
    op.drop_table("photo_tags")
    op.drop_table("photos")
    op.drop_table("users")
