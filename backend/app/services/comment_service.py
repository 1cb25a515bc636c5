"""
Shutterfeed Backend — Comment Pipeline
=======================================

What:  Orchestrates comment creation and deletion.
Who:   Called by the /api/comments route handlers.

Creation Flow (POST /api/comments/{photo_id}):
    ┌──────────┐   ┌──────────┐   ┌────────────┐   ┌──────────┐   ┌──────────┐
    │ Validate │──▶│  Photo   │──▶│ Visibility │──▶│ Mentions │──▶│ Fan-out  │
    │  text    │   │  lookup  │   │   check    │   │ resolve  │   │  writes  │
    └──────────┘   └──────────┘   └────────────┘   └──────────┘   └──────────┘
        400            404             403              400

    Fan-out writes: insert comment → union mentions into the photo's
    mention set → record COMMENT_ADDED activity (which also moves the
    author's last-activity pointer). All three are flushed into the
    request transaction and committed together by get_db_session, so a
    failure half-way leaves nothing behind.

Deletion Flow (DELETE /api/comments/{id}):
    404 if missing, 403 unless requester wrote the comment or owns its
    photo. Activities that reference the comment are deleted with it. The
    photo's mention set is left as it is; it never shrinks.

Concurrency:
    Two comments posted on the same photo at the same time both survive:
    each comment is its own row, so there is no shared list to overwrite.
    Mention unions insert one row per (photo, user) pair; if two requests
    add the same pair concurrently the second commit fails on the primary
    key and that request returns a 500 without persisting anything.
"""

import logging
import uuid
from typing import List, Optional, Sequence

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.exceptions import (
    AuthorizationError,
    DatabaseError,
    NotFoundError,
    ShutterfeedError,
    ValidationError,
)
from app.models.activity import Activity, ActivityKind
from app.models.associations import comment_mentions
from app.models.comment import Comment
from app.models.photo import Photo
from app.models.user import User
from app.schemas.comment import CommentResponse
from app.services.activity_service import activity_service
from app.services.mention_service import (
    parse_mentions,
    resolve_explicit_mentions,
    resolve_mentions,
)
from app.services.presenters import COMMENT_OPTIONS, comment_response
from app.services.visibility import can_view, same_id

logger = logging.getLogger(__name__)


class CommentService:
    """
    Business logic layer for comments.

    Error Handling Strategy:
        Application errors (ValidationError, NotFoundError,
        AuthorizationError) propagate unchanged. Anything else raised while
        talking to the store is logged and wrapped in DatabaseError.
    """

    async def add_comment(
        self,
        db: AsyncSession,
        photo_id: uuid.UUID,
        author_id: uuid.UUID,
        text: Optional[str],
        explicit_mentions: Optional[Sequence[str]] = None,
    ) -> CommentResponse:
        """
        Create a comment on a photo.

        Args:
            db: Async database session (injected by FastAPI)
            photo_id: Photo being commented on
            author_id: Authenticated user posting the comment
            text: Comment body; must contain a non-whitespace character
            explicit_mentions: User ids picked in the UI. When non-empty,
                text parsing is skipped and every id must exist.

        Returns:
            CommentResponse with author and mentions as display identities

        Raises:
            ValidationError: blank text, or an unknown/malformed explicit mention
            NotFoundError: photo does not exist
            AuthorizationError: author cannot see the photo
            DatabaseError: unexpected store failure
        """
        # ── Step 1: Validate text (no database access yet) ────────────────
        if text is None or not text.strip():
            raise ValidationError(message="Comment text is required", field="text")

        try:
            # ── Step 2: Photo lookup ──────────────────────────────────────
            result = await db.execute(
                select(Photo)
                .where(Photo.id == photo_id)
                .options(selectinload(Photo.shared_with), selectinload(Photo.mentions))
                .execution_options(populate_existing=True)
            )
            photo = result.scalar_one_or_none()
            if photo is None:
                raise NotFoundError(resource="photo", resource_id=str(photo_id))

            # ── Step 3: Visibility ────────────────────────────────────────
            if not can_view(photo, author_id):
                raise AuthorizationError(message="Not authorized to comment on this photo")

            # ── Step 4: Resolve mentions ──────────────────────────────────
            mentioned = await self._resolve(db, text, explicit_mentions)

            # ── Step 5: Persist the comment ───────────────────────────────
            comment = Comment(
                photo_id=photo.id,
                author_id=author_id,
                text=text,
                mentions=mentioned,
            )
            db.add(comment)
            await db.flush()

            # ── Step 6: Union mentions into the photo ─────────────────────
            # The comment row itself is the photo's comment-list entry.
            already = {user.id for user in photo.mentions}
            for user in mentioned:
                if user.id not in already:
                    photo.mentions.append(user)
                    already.add(user.id)
            await db.flush()

            # ── Step 7: Record activity ───────────────────────────────────
            await activity_service.record(
                db,
                user_id=author_id,
                kind=ActivityKind.COMMENT_ADDED,
                photo_id=photo.id,
                comment_id=comment.id,
            )

            logger.info(
                "Comment %s added to photo %s by %s (%d mention(s))",
                comment.id, photo.id, author_id, len(mentioned),
            )

            # ── Step 8: Expand author and mentions ────────────────────────
            return comment_response(await self._load(db, comment.id))

        except ShutterfeedError:
            raise
        except Exception as e:
            logger.error("Unexpected error adding comment to photo %s: %s", photo_id, str(e), exc_info=True)
            raise DatabaseError(
                message="Could not save the comment. Please try again.",
                context={"photo_id": str(photo_id), "error_type": type(e).__name__},
            )

    async def delete_comment(
        self,
        db: AsyncSession,
        comment_id: uuid.UUID,
        requester_id: uuid.UUID,
    ) -> None:
        """
        Delete a comment and the activities that reference it.

        Raises:
            NotFoundError: comment does not exist
            AuthorizationError: requester is neither the author nor the
                owner of the commented photo
        """
        try:
            comment = await db.get(Comment, comment_id)
            if comment is None:
                raise NotFoundError(resource="comment", resource_id=str(comment_id))

            if not same_id(comment.author_id, requester_id):
                photo = await db.get(Photo, comment.photo_id)
                if photo is None or not same_id(photo.owner_id, requester_id):
                    raise AuthorizationError(message="Not authorized to delete this comment")

            await activity_service.purge(db, Activity.comment_id == comment.id)
            await db.execute(
                delete(comment_mentions).where(comment_mentions.c.comment_id == comment.id)
            )
            await db.execute(delete(Comment).where(Comment.id == comment.id))
            await db.flush()

            logger.info("Comment %s deleted by %s", comment_id, requester_id)

        except ShutterfeedError:
            raise
        except Exception as e:
            logger.error("Unexpected error deleting comment %s: %s", comment_id, str(e), exc_info=True)
            raise DatabaseError(
                message="Could not delete the comment. Please try again.",
                context={"comment_id": str(comment_id), "error_type": type(e).__name__},
            )

    async def list_comments(
        self,
        db: AsyncSession,
        photo_id: uuid.UUID,
        viewer_id: uuid.UUID,
    ) -> List[CommentResponse]:
        """Comments on a visible photo, oldest first."""
        result = await db.execute(
            select(Photo).where(Photo.id == photo_id).options(selectinload(Photo.shared_with))
        )
        photo = result.scalar_one_or_none()
        if photo is None:
            raise NotFoundError(resource="photo", resource_id=str(photo_id))
        if not can_view(photo, viewer_id):
            raise AuthorizationError(message="Not authorized to view this photo")

        result = await db.execute(
            select(Comment)
            .where(Comment.photo_id == photo_id)
            .options(*COMMENT_OPTIONS)
            .order_by(Comment.created_at)
        )
        return [comment_response(comment) for comment in result.scalars().all()]

    # ── Helpers ───────────────────────────────────────────────────────────

    async def _resolve(
        self,
        db: AsyncSession,
        text: str,
        explicit_mentions: Optional[Sequence[str]],
    ) -> List[User]:
        if explicit_mentions:
            return await resolve_explicit_mentions(db, explicit_mentions)
        return await resolve_mentions(db, parse_mentions(text))

    async def _load(self, db: AsyncSession, comment_id: uuid.UUID) -> Comment:
        result = await db.execute(
            select(Comment)
            .where(Comment.id == comment_id)
            .options(*COMMENT_OPTIONS)
            .execution_options(populate_existing=True)
        )
        return result.scalar_one()


# ── Singleton Instance ────────────────────────────────────────────────────
comment_service = CommentService()
