"""
Shutterfeed Backend — Photo Service
====================================

What:  Upload, listing, detail, likes, tags and deletion of photos.
Who:   Called by the /api/photos route handlers; `purge_photos` is also used
       by UserService when an account is deleted.

Upload Workflow (POST /api/photos):
    ┌──────────────┐   ┌───────────────┐   ┌─────────────┐   ┌──────────────┐
    │ Check share  │──▶│ FileService   │──▶│ Insert row  │──▶│ PHOTO_UPLOAD │
    │ list users   │   │ validate+store│   │ + share set │   │  activity    │
    └──────────────┘   └───────────────┘   └─────────────┘   └──────────────┘
         400               400/500               500              500

    The share list is checked before anything touches the disk. If the
    insert or activity fails, the stored file is removed again.

Feed ordering:
    Most liked first, newest first among equal like counts. Only photos the
    viewer may see are ever selected (visibility filter in SQL).

Deletion:
    Rows go leaves first (activities → comments → reference sets → tags →
    photo). The stored file is returned to the caller, which removes it
    after the transaction has been committed.
"""

import logging
import uuid
from typing import List, Optional, Sequence

from sqlalchemy import delete, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.exceptions import (
    AuthorizationError,
    DatabaseError,
    NotFoundError,
    ShutterfeedError,
    ValidationError,
)
from app.models.activity import Activity, ActivityKind
from app.models.associations import (
    comment_mentions,
    photo_likes,
    photo_mentions,
    photo_shares,
    user_favorites,
)
from app.models.comment import Comment
from app.models.photo import Photo, PhotoTag
from app.models.user import User
from app.schemas.photo import PhotoResponse, Rect
from app.services.activity_service import activity_service
from app.services.file_service import file_service
from app.services.presenters import (
    PHOTO_DETAIL_OPTIONS,
    PHOTO_LIST_OPTIONS,
    photo_response,
)
from app.services.visibility import can_view, same_id, visible_to

logger = logging.getLogger(__name__)


class PhotoService:
    """
    Business logic layer for photos.

    Every read takes the viewer's id and applies the visibility rule, so a
    route can never hand out a photo the caller is not allowed to see.
    """

    # ── Upload ────────────────────────────────────────────────────────────

    async def upload_photo(
        self,
        db: AsyncSession,
        owner_id: uuid.UUID,
        filename: str,
        content: bytes,
        caption: Optional[str] = "",
        shared_with: Optional[Sequence[str]] = None,
        content_length: Optional[int] = None,
    ) -> PhotoResponse:
        """
        Store an uploaded image and create the photo.

        Args:
            shared_with: user ids allowed to see the photo; None or empty
                makes it public

        Raises:
            ValidationError: bad file, or an unknown user in `shared_with`
            FileStorageError: the file could not be written
            DatabaseError: unexpected store failure
        """
        share_users = await self._resolve_share_list(db, shared_with or [])

        absolute_path, relative_path = await file_service.validate_and_store(
            filename=filename,
            content=content,
            content_length=content_length,
        )

        try:
            photo = Photo(
                owner_id=owner_id,
                file_path=relative_path,
                caption=(caption or "").strip(),
                shared_with=share_users,
            )
            db.add(photo)
            await db.flush()

            await activity_service.record(
                db,
                user_id=owner_id,
                kind=ActivityKind.PHOTO_UPLOAD,
                photo_id=photo.id,
            )

            logger.info(
                "Photo %s uploaded by %s (%s)",
                photo.id, owner_id,
                f"shared with {len(share_users)}" if share_users else "public",
            )
            return photo_response(await self._load(db, photo.id, PHOTO_DETAIL_OPTIONS), detail=True)

        except ShutterfeedError:
            await file_service.cleanup_file(absolute_path)
            raise
        except Exception as e:
            await file_service.cleanup_file(absolute_path)
            logger.error("Unexpected error saving photo for %s: %s", owner_id, str(e), exc_info=True)
            raise DatabaseError(
                message="Could not save the photo. Please try again.",
                context={"error_type": type(e).__name__},
            )

    # ── Reads ─────────────────────────────────────────────────────────────

    async def list_photos(
        self,
        db: AsyncSession,
        viewer_id: uuid.UUID,
        owner_id: Optional[uuid.UUID] = None,
    ) -> List[PhotoResponse]:
        """
        Photos the viewer may see, most liked first, then newest first.

        Args:
            owner_id: restrict to one owner's photos (404 if no such user)
        """
        if owner_id is not None and await db.get(User, owner_id) is None:
            raise NotFoundError(resource="user", resource_id=str(owner_id))

        like_count = (
            select(func.count())
            .select_from(photo_likes)
            .where(photo_likes.c.photo_id == Photo.id)
            .correlate(Photo)
            .scalar_subquery()
        )

        try:
            query = (
                select(Photo)
                .where(visible_to(viewer_id))
                .options(*PHOTO_LIST_OPTIONS)
                .execution_options(populate_existing=True)
            )
            if owner_id is not None:
                query = query.where(Photo.owner_id == owner_id)
            query = query.order_by(like_count.desc(), Photo.uploaded_at.desc())

            result = await db.execute(query)
            return [photo_response(photo) for photo in result.scalars().all()]

        except Exception as e:
            logger.error("Database error listing photos: %s", str(e), exc_info=True)
            raise DatabaseError(
                message="Could not retrieve photos. Please try again.",
                context={"error_type": type(e).__name__},
            )

    async def get_photo(
        self,
        db: AsyncSession,
        photo_id: uuid.UUID,
        viewer_id: uuid.UUID,
    ) -> PhotoResponse:
        photo = await self._get_visible(db, photo_id, viewer_id)
        return photo_response(photo, detail=True)

    # ── Likes ─────────────────────────────────────────────────────────────

    async def like_photo(
        self,
        db: AsyncSession,
        photo_id: uuid.UUID,
        user_id: uuid.UUID,
    ) -> PhotoResponse:
        """
        Raises:
            NotFoundError: no such photo
            AuthorizationError: the user cannot see the photo
            ValidationError: already liked
        """
        photo = await self._get_visible(db, photo_id, user_id)
        if any(same_id(liker, user_id) for liker in photo.likes):
            raise ValidationError(message="Photo already liked", field="likes")

        user = await db.get(User, user_id)
        if user is None:
            raise NotFoundError(resource="user", resource_id=str(user_id))
        photo.likes.append(user)
        await db.flush()

        logger.info("Photo %s liked by %s", photo_id, user_id)
        return photo_response(await self._load(db, photo_id, PHOTO_DETAIL_OPTIONS), detail=True)

    async def unlike_photo(
        self,
        db: AsyncSession,
        photo_id: uuid.UUID,
        user_id: uuid.UUID,
    ) -> PhotoResponse:
        """
        Remove the user's like; a photo that was not liked is returned unchanged.

        Raises:
            NotFoundError: no such photo
            AuthorizationError: the user cannot see the photo
        """
        photo = await self._get_visible(db, photo_id, user_id)

        remaining = [liker for liker in photo.likes if not same_id(liker, user_id)]
        if len(remaining) != len(photo.likes):
            photo.likes = remaining
            await db.flush()
            logger.info("Photo %s unliked by %s", photo_id, user_id)

        return photo_response(await self._load(db, photo_id, PHOTO_DETAIL_OPTIONS), detail=True)

    # ── Tags ──────────────────────────────────────────────────────────────

    async def add_tag(
        self,
        db: AsyncSession,
        photo_id: uuid.UUID,
        requester_id: uuid.UUID,
        user_id: uuid.UUID,
        rect: Rect,
    ) -> PhotoResponse:
        """
        Tag `user_id` inside `rect`. Only the photo's owner may tag.

        Raises:
            NotFoundError: no such photo, or no such tagged user
            AuthorizationError: requester does not own the photo
        """
        photo = await db.get(Photo, photo_id)
        if photo is None:
            raise NotFoundError(resource="photo", resource_id=str(photo_id))
        if not same_id(photo.owner_id, requester_id):
            raise AuthorizationError(message="Not authorized to tag this photo")
        if await db.get(User, user_id) is None:
            raise NotFoundError(resource="user", resource_id=str(user_id))

        db.add(PhotoTag(
            photo_id=photo.id,
            user_id=user_id,
            x=rect.x,
            y=rect.y,
            width=rect.width,
            height=rect.height,
        ))
        await db.flush()

        logger.info("User %s tagged in photo %s", user_id, photo_id)
        return photo_response(await self._load(db, photo_id, PHOTO_DETAIL_OPTIONS), detail=True)

    # ── Deletion ──────────────────────────────────────────────────────────

    async def delete_photo(
        self,
        db: AsyncSession,
        photo_id: uuid.UUID,
        requester_id: uuid.UUID,
    ) -> str:
        """
        Delete a photo and everything hanging off it.

        Returns:
            Relative path of the stored file, for removal after commit

        Raises:
            NotFoundError: no such photo
            AuthorizationError: requester does not own the photo
        """
        photo = await db.get(Photo, photo_id)
        if photo is None:
            raise NotFoundError(resource="photo", resource_id=str(photo_id))
        if not same_id(photo.owner_id, requester_id):
            raise AuthorizationError(message="Not authorized to delete this photo")

        try:
            paths = await self.purge_photos(db, [photo.id])
        except ShutterfeedError:
            raise
        except Exception as e:
            logger.error("Unexpected error deleting photo %s: %s", photo_id, str(e), exc_info=True)
            raise DatabaseError(
                message="Could not delete the photo. Please try again.",
                context={"photo_id": str(photo_id), "error_type": type(e).__name__},
            )

        logger.info("Photo %s deleted by %s", photo_id, requester_id)
        return paths[0]

    async def purge_photos(self, db: AsyncSession, photo_ids: Sequence[uuid.UUID]) -> List[str]:
        """
        Delete photos with their comments, activities, reference sets and
        tags, leaves first. Returns the stored file paths of the photos.
        """
        photo_ids = list(photo_ids)
        if not photo_ids:
            return []

        result = await db.execute(select(Photo.file_path).where(Photo.id.in_(photo_ids)))
        paths = list(result.scalars().all())

        result = await db.execute(select(Comment.id).where(Comment.photo_id.in_(photo_ids)))
        comment_ids = list(result.scalars().all())

        condition = Activity.photo_id.in_(photo_ids)
        if comment_ids:
            condition = or_(condition, Activity.comment_id.in_(comment_ids))
        await activity_service.purge(db, condition)

        if comment_ids:
            await db.execute(
                delete(comment_mentions).where(comment_mentions.c.comment_id.in_(comment_ids))
            )
            await db.execute(delete(Comment).where(Comment.id.in_(comment_ids)))

        for table in (photo_likes, photo_shares, photo_mentions, user_favorites):
            await db.execute(delete(table).where(table.c.photo_id.in_(photo_ids)))
        await db.execute(delete(PhotoTag).where(PhotoTag.photo_id.in_(photo_ids)))
        await db.execute(delete(Photo).where(Photo.id.in_(photo_ids)))
        await db.flush()

        return paths

    # ── Helpers ───────────────────────────────────────────────────────────

    async def _load(
        self,
        db: AsyncSession,
        photo_id: uuid.UUID,
        options: Sequence,
    ) -> Optional[Photo]:
        result = await db.execute(
            select(Photo)
            .where(Photo.id == photo_id)
            .options(*options)
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def _get_visible(
        self,
        db: AsyncSession,
        photo_id: uuid.UUID,
        viewer_id: uuid.UUID,
    ) -> Photo:
        photo = await self._load(db, photo_id, PHOTO_DETAIL_OPTIONS)
        if photo is None:
            raise NotFoundError(resource="photo", resource_id=str(photo_id))
        if not can_view(photo, viewer_id):
            raise AuthorizationError(message="Not authorized to view this photo")
        return photo

    async def _resolve_share_list(
        self,
        db: AsyncSession,
        raw_ids: Sequence[str],
    ) -> List[User]:
        """Every id must name an existing user; the first miss is reported."""
        ids: List[uuid.UUID] = []
        for raw in raw_ids:
            try:
                user_id = uuid.UUID(str(raw).strip())
            except ValueError:
                raise ValidationError(
                    message=f"User id '{raw}' in sharedWith is not a valid identifier",
                    field="sharedWith",
                )
            if user_id not in ids:
                ids.append(user_id)
        if not ids:
            return []

        result = await db.execute(select(User).where(User.id.in_(ids)))
        by_id = {user.id: user for user in result.scalars().all()}
        for user_id in ids:
            if user_id not in by_id:
                raise ValidationError(
                    message=f"User '{user_id}' in sharedWith does not exist",
                    field="sharedWith",
                )
        return [by_id[user_id] for user_id in ids]


# ── Singleton Instance ────────────────────────────────────────────────────
photo_service = PhotoService()
