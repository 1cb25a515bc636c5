"""
Shutterfeed Backend — User Service
===================================

What:  Accounts (register, login, logout, profile), the user detail page,
       favorites, and account deletion.
Who:   Called by the /api/auth and /api/users route handlers.

Every auth event is an activity:
    register → USER_REGISTERED, login → USER_LOGIN, logout → USER_LOGOUT

Account deletion order (one transaction, leaves first):
    1. Owned photos, through PhotoService.purge_photos
    2. Comments the user wrote on other people's photos, with their activities
    3. The user's remaining activities
    4. References to the user held by other rows: likes, share lists,
       mentions, favorites, tags
    5. The user row

    A photo shared only with the deleted user stays private: its owner is
    put on the share list in the user's place, so removing the last entry
    never turns a private photo public.
"""

import logging
import uuid
from typing import List

from sqlalchemy import delete, func, insert, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.exceptions import (
    AuthenticationError,
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
from app.schemas.activity import UserDetailResponse
from app.schemas.common import MessageResponse
from app.schemas.photo import PhotoSummary
from app.schemas.user import (
    AuthResponse,
    ProfileUpdate,
    RegisterRequest,
    UserResponse,
    UserSummary,
)
from app.services.activity_service import activity_service
from app.services.auth_service import auth_service
from app.services.photo_service import photo_service
from app.services.presenters import (
    PHOTO_LIST_OPTIONS,
    PHOTO_SUMMARY_OPTIONS,
    photo_response,
    photo_summary,
    user_response,
    user_summary,
)
from app.services.visibility import can_view, visible_to

logger = logging.getLogger(__name__)

PROFILE_FIELDS = ("first_name", "last_name", "location", "occupation", "description")

FAVORITES_OPTIONS = (selectinload(User.favorites),)


class UserService:

    # ══════════════════════════════════════════════════════════════════════
    # Authentication
    # ══════════════════════════════════════════════════════════════════════

    async def register(self, db: AsyncSession, data: RegisterRequest) -> AuthResponse:
        """
        Create an account and log it in.

        Raises:
            ValidationError: username already taken
        """
        existing = await db.execute(select(User.id).where(User.username == data.username))
        if existing.scalar_one_or_none() is not None:
            raise ValidationError(message="Username already exists", field="username")

        user = User(
            username=data.username,
            first_name=data.first_name,
            last_name=data.last_name,
            password_hash=auth_service.hash_password(data.password),
            location=data.location,
            occupation=data.occupation,
            description=data.description,
        )
        db.add(user)
        try:
            await db.flush()
        except IntegrityError:
            # Lost a race with a concurrent registration of the same name
            raise ValidationError(message="Username already exists", field="username")

        await activity_service.record(db, user_id=user.id, kind=ActivityKind.USER_REGISTERED)

        logger.info("User registered: %s (%s)", user.username, user.id)
        return AuthResponse(token=auth_service.issue_token(user.id), user=user_response(user))

    async def authenticate(self, db: AsyncSession, username: str, password: str) -> AuthResponse:
        """
        Check credentials and issue a token.

        Raises:
            AuthenticationError: unknown username or wrong password (the
                message does not say which)
        """
        result = await db.execute(select(User).where(User.username == username))
        user = result.scalar_one_or_none()
        if user is None or not auth_service.verify_password(password, user.password_hash):
            logger.info("Failed login attempt for username=%r", username)
            raise AuthenticationError(message="Invalid credentials")

        await activity_service.record(db, user_id=user.id, kind=ActivityKind.USER_LOGIN)

        logger.info("User logged in: %s", user.username)
        return AuthResponse(token=auth_service.issue_token(user.id), user=user_response(user))

    async def logout(self, db: AsyncSession, user_id: uuid.UUID) -> MessageResponse:
        await activity_service.record(db, user_id=user_id, kind=ActivityKind.USER_LOGOUT)
        return MessageResponse(message="Logged out successfully")

    # ══════════════════════════════════════════════════════════════════════
    # Profiles
    # ══════════════════════════════════════════════════════════════════════

    async def get_profile(self, db: AsyncSession, user_id: uuid.UUID) -> UserResponse:
        return user_response(await self._get_user(db, user_id))

    async def list_users(self, db: AsyncSession) -> List[UserSummary]:
        result = await db.execute(select(User).order_by(User.last_name, User.first_name))
        return [user_summary(user) for user in result.scalars().all()]

    async def update_profile(
        self,
        db: AsyncSession,
        user_id: uuid.UUID,
        data: ProfileUpdate,
    ) -> UserResponse:
        """Apply only the non-blank fields of `data`."""
        user = await self._get_user(db, user_id)
        changed = []
        for field in PROFILE_FIELDS:
            value = getattr(data, field)
            if value is not None and value.strip():
                setattr(user, field, value.strip())
                changed.append(field)
        if changed:
            await db.flush()
            logger.info("Profile of %s updated: %s", user_id, ", ".join(changed))
        return user_response(user)

    async def get_user_detail(
        self,
        db: AsyncSession,
        user_id: uuid.UUID,
        viewer_id: uuid.UUID,
    ) -> UserDetailResponse:
        """
        Profile plus highlights, all filtered by what the viewer may see:
            most_recent_photo     newest visible photo owned by the user
            most_commented_photo  visible owned photo with the most comments
                                  (newest wins a tie; None if no comments)
            mentioned_photos      visible photos the user is mentioned on
            last_activity         the user's newest activity
        """
        user = await self._get_user(db, user_id)

        try:
            result = await db.execute(
                select(Photo)
                .where(Photo.owner_id == user_id, visible_to(viewer_id))
                .options(*PHOTO_SUMMARY_OPTIONS)
                .order_by(Photo.uploaded_at.desc())
                .limit(1)
            )
            most_recent = result.scalar_one_or_none()

            comment_count = (
                select(func.count(Comment.id))
                .where(Comment.photo_id == Photo.id)
                .correlate(Photo)
                .scalar_subquery()
            )
            result = await db.execute(
                select(Photo)
                .where(Photo.owner_id == user_id, visible_to(viewer_id), comment_count > 0)
                .options(*PHOTO_LIST_OPTIONS)
                .execution_options(populate_existing=True)
                .order_by(comment_count.desc(), Photo.uploaded_at.desc())
                .limit(1)
            )
            most_commented = result.scalar_one_or_none()

            result = await db.execute(
                select(Photo)
                .join(photo_mentions, photo_mentions.c.photo_id == Photo.id)
                .where(photo_mentions.c.user_id == user_id, visible_to(viewer_id))
                .options(*PHOTO_SUMMARY_OPTIONS)
                .order_by(Photo.uploaded_at.desc())
            )
            mentioned = result.scalars().all()

            last_activity = await activity_service.latest_for_user(db, user_id)

        except ShutterfeedError:
            raise
        except Exception as e:
            logger.error("Database error building detail for user %s: %s", user_id, str(e), exc_info=True)
            raise DatabaseError(
                message="Could not load the user page. Please try again.",
                context={"user_id": str(user_id), "error_type": type(e).__name__},
            )

        return UserDetailResponse(
            user=user_response(user),
            most_recent_photo=photo_summary(most_recent) if most_recent else None,
            most_commented_photo=photo_response(most_commented) if most_commented else None,
            mentioned_photos=[photo_summary(photo) for photo in mentioned],
            last_activity=last_activity,
        )

    # ══════════════════════════════════════════════════════════════════════
    # Favorites
    # ══════════════════════════════════════════════════════════════════════

    async def list_favorites(self, db: AsyncSession, user_id: uuid.UUID) -> List[PhotoSummary]:
        """Favorited photos the user can still see, newest first."""
        result = await db.execute(
            select(Photo)
            .join(user_favorites, user_favorites.c.photo_id == Photo.id)
            .where(user_favorites.c.user_id == user_id, visible_to(user_id))
            .options(*PHOTO_SUMMARY_OPTIONS)
            .order_by(Photo.uploaded_at.desc())
        )
        return [photo_summary(photo) for photo in result.scalars().all()]

    async def add_favorite(
        self,
        db: AsyncSession,
        user_id: uuid.UUID,
        photo_id: uuid.UUID,
    ) -> List[uuid.UUID]:
        """
        Returns:
            The user's favorite photo ids after the change

        Raises:
            NotFoundError: no such photo
            AuthorizationError: the user cannot see the photo
            ValidationError: already a favorite
        """
        result = await db.execute(
            select(Photo)
            .where(Photo.id == photo_id)
            .options(*PHOTO_LIST_OPTIONS)
            .execution_options(populate_existing=True)
        )
        photo = result.scalar_one_or_none()
        if photo is None:
            raise NotFoundError(resource="photo", resource_id=str(photo_id))
        if not can_view(photo, user_id):
            raise AuthorizationError(message="Not authorized to view this photo")

        # Loaded after the photo: reloading the photo graph repopulates any
        # User in it and would discard an already loaded favorites list.
        user = await self._get_user(db, user_id, with_favorites=True)
        if any(favorite.id == photo.id for favorite in user.favorites):
            raise ValidationError(message="Photo already in favorites", field="favorites")

        user.favorites.append(photo)
        await db.flush()
        return [favorite.id for favorite in user.favorites]

    async def remove_favorite(
        self,
        db: AsyncSession,
        user_id: uuid.UUID,
        photo_id: uuid.UUID,
    ) -> List[uuid.UUID]:
        """Removing a photo that is not a favorite is a no-op."""
        user = await self._get_user(db, user_id, with_favorites=True)
        remaining = [favorite for favorite in user.favorites if favorite.id != photo_id]
        if len(remaining) != len(user.favorites):
            user.favorites = remaining
            await db.flush()
        return [favorite.id for favorite in remaining]

    # ══════════════════════════════════════════════════════════════════════
    # Account deletion
    # ══════════════════════════════════════════════════════════════════════

    async def delete_user(self, db: AsyncSession, user_id: uuid.UUID) -> List[str]:
        """
        Delete the account and everything it owns or authored.

        Returns:
            Relative paths of the stored files of the deleted photos, for
            removal after commit
        """
        user = await self._get_user(db, user_id)

        try:
            result = await db.execute(select(Photo.id).where(Photo.owner_id == user_id))
            paths = await photo_service.purge_photos(db, list(result.scalars().all()))

            result = await db.execute(select(Comment.id).where(Comment.author_id == user_id))
            comment_ids = list(result.scalars().all())
            if comment_ids:
                await activity_service.purge(db, Activity.comment_id.in_(comment_ids))
                await db.execute(
                    delete(comment_mentions).where(comment_mentions.c.comment_id.in_(comment_ids))
                )
                await db.execute(delete(Comment).where(Comment.id.in_(comment_ids)))

            await activity_service.purge(db, Activity.user_id == user_id)

            await self._keep_shared_photos_private(db, user_id)
            for table in (photo_likes, photo_shares, photo_mentions, comment_mentions, user_favorites):
                await db.execute(delete(table).where(table.c.user_id == user_id))
            await db.execute(delete(PhotoTag).where(PhotoTag.user_id == user_id))

            await db.execute(delete(User).where(User.id == user.id))
            await db.flush()

        except ShutterfeedError:
            raise
        except Exception as e:
            logger.error("Unexpected error deleting user %s: %s", user_id, str(e), exc_info=True)
            raise DatabaseError(
                message="Could not delete the account. Please try again.",
                context={"user_id": str(user_id), "error_type": type(e).__name__},
            )

        logger.info("User %s deleted (%d photo(s))", user_id, len(paths))
        return paths

    # ── Helpers ───────────────────────────────────────────────────────────

    async def _get_user(
        self,
        db: AsyncSession,
        user_id: uuid.UUID,
        with_favorites: bool = False,
    ) -> User:
        query = select(User).where(User.id == user_id)
        if with_favorites:
            query = query.options(*FAVORITES_OPTIONS).execution_options(populate_existing=True)
        result = await db.execute(query)
        user = result.scalar_one_or_none()
        if user is None:
            raise NotFoundError(resource="user", resource_id=str(user_id))
        return user

    async def _keep_shared_photos_private(self, db: AsyncSession, user_id: uuid.UUID) -> None:
        share_count = (
            select(func.count())
            .select_from(photo_shares)
            .where(photo_shares.c.photo_id == Photo.id)
            .correlate(Photo)
            .scalar_subquery()
        )
        shared_with_user = select(photo_shares.c.photo_id).where(photo_shares.c.user_id == user_id)
        result = await db.execute(
            select(Photo.id, Photo.owner_id)
            .where(Photo.id.in_(shared_with_user), share_count == 1)
        )
        rows = result.all()
        if rows:
            await db.execute(
                insert(photo_shares),
                [{"photo_id": photo_id, "user_id": owner_id} for photo_id, owner_id in rows],
            )


# ── Singleton Instance ────────────────────────────────────────────────────
user_service = UserService()
