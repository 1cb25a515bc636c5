"""
Shutterfeed Backend — Loader Options and Response Builders
===========================================================

What:  The eager-loading options each response shape needs, next to the
       functions that turn loaded ORM objects into Pydantic responses.
How:   A service selects with e.g. `*PHOTO_DETAIL_OPTIONS`, then hands the
       rows to `photo_response()`. Keeping the two side by side means a
       builder never touches a relationship its query did not load (async
       sessions cannot lazy-load).

This mirrors "populate" in document stores: references are expanded to
display identity (name/username) instead of returning raw ids.
"""

from sqlalchemy.orm import selectinload

from app.models.activity import Activity
from app.models.comment import Comment
from app.models.photo import Photo, PhotoTag
from app.models.user import User
from app.schemas.activity import ActivityComment, ActivityResponse
from app.schemas.comment import CommentResponse
from app.schemas.photo import PhotoResponse, PhotoSummary, Rect, TagResponse
from app.schemas.user import UserResponse, UserSummary


# ══════════════════════════════════════════════════════════════════════════
# Loader Options
# ══════════════════════════════════════════════════════════════════════════

COMMENT_OPTIONS = (
    selectinload(Comment.author),
    selectinload(Comment.mentions),
)

PHOTO_SUMMARY_OPTIONS = (
    selectinload(Photo.owner),
)

PHOTO_LIST_OPTIONS = (
    selectinload(Photo.owner),
    selectinload(Photo.likes),
    selectinload(Photo.shared_with),
    selectinload(Photo.comments).selectinload(Comment.author),
    selectinload(Photo.comments).selectinload(Comment.mentions),
)

PHOTO_DETAIL_OPTIONS = PHOTO_LIST_OPTIONS + (
    selectinload(Photo.mentions),
    selectinload(Photo.tags).selectinload(PhotoTag.user),
)

ACTIVITY_OPTIONS = (
    selectinload(Activity.user),
    selectinload(Activity.photo).selectinload(Photo.owner),
    selectinload(Activity.comment).selectinload(Comment.photo).selectinload(Photo.owner),
)


# ══════════════════════════════════════════════════════════════════════════
# Builders
# ══════════════════════════════════════════════════════════════════════════

def file_url(relative_path: str) -> str:
    return f"/api/files/{relative_path}"


def user_summary(user: User) -> UserSummary:
    return UserSummary(
        id=user.id,
        first_name=user.first_name,
        last_name=user.last_name,
        username=user.username,
    )


def user_response(user: User) -> UserResponse:
    return UserResponse(
        id=user.id,
        first_name=user.first_name,
        last_name=user.last_name,
        username=user.username,
        location=user.location,
        description=user.description,
        occupation=user.occupation,
        created_at=user.created_at,
        last_activity_id=user.last_activity_id,
    )


def comment_response(comment: Comment) -> CommentResponse:
    """Needs COMMENT_OPTIONS loaded."""
    return CommentResponse(
        id=comment.id,
        photo_id=comment.photo_id,
        text=comment.text,
        user=user_summary(comment.author),
        mentions=[user_summary(user) for user in comment.mentions],
        date_created=comment.created_at,
    )


def photo_summary(photo: Photo) -> PhotoSummary:
    """Needs PHOTO_SUMMARY_OPTIONS loaded."""
    return PhotoSummary(
        id=photo.id,
        user=user_summary(photo.owner),
        file=file_url(photo.file_path),
        caption=photo.caption,
        date_uploaded=photo.uploaded_at,
    )


def photo_response(photo: Photo, detail: bool = False) -> PhotoResponse:
    """
    Needs PHOTO_LIST_OPTIONS loaded, or PHOTO_DETAIL_OPTIONS when `detail`
    is set (adds mentions and tags).
    """
    return PhotoResponse(
        id=photo.id,
        user=user_summary(photo.owner),
        file=file_url(photo.file_path),
        caption=photo.caption,
        date_uploaded=photo.uploaded_at,
        comments=[comment_response(comment) for comment in photo.comments],
        likes=[user_summary(user) for user in photo.likes],
        shared_with=[user_summary(user) for user in photo.shared_with],
        mentions=[user_summary(user) for user in photo.mentions] if detail else [],
        tags=[
            TagResponse(
                id=tag.id,
                user=user_summary(tag.user),
                rect=Rect(x=tag.x, y=tag.y, width=tag.width, height=tag.height),
            )
            for tag in photo.tags
        ] if detail else [],
        like_count=photo.like_count,
        comment_count=photo.comment_count,
    )


def activity_response(activity: Activity) -> ActivityResponse:
    """Needs ACTIVITY_OPTIONS loaded."""
    comment = None
    if activity.comment is not None:
        comment = ActivityComment(
            id=activity.comment.id,
            text=activity.comment.text,
            date_created=activity.comment.created_at,
            photo=photo_summary(activity.comment.photo) if activity.comment.photo else None,
        )
    return ActivityResponse(
        id=activity.id,
        kind=activity.kind,
        user=user_summary(activity.user),
        photo=photo_summary(activity.photo) if activity.photo is not None else None,
        comment=comment,
        created_at=activity.created_at,
    )
