"""
Shutterfeed Backend — Activity Recorder
========================================

What:  Append-only log of user actions and the read side of the feed.
Who:   record() is called by the comment, photo and user services;
       recent() backs GET /api/activities and the user detail page.

Write contract:
    record(db, user_id, kind, photo_id?, comment_id?) appends one row with
    the current timestamp and moves the user's last_activity_id to it.
    The row is flushed, not committed; it joins the caller's transaction.

Read contract:
    recent(db, limit, user_id?) returns newest-first entries, each expanded
    with the author, the referenced photo, and the referenced comment
    together with the photo that comment belongs to.
"""

import logging
import uuid
from typing import List, Optional

from sqlalchemy import ColumnElement, delete, desc, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.exceptions import DatabaseError, NotFoundError, ShutterfeedError
from app.models.activity import Activity, ActivityKind
from app.models.user import User
from app.schemas.activity import ActivityResponse
from app.services.presenters import ACTIVITY_OPTIONS, activity_response

logger = logging.getLogger(__name__)


class ActivityService:
    """Stateless; every call receives the request's session."""

    async def record(
        self,
        db: AsyncSession,
        user_id: uuid.UUID,
        kind: ActivityKind,
        photo_id: Optional[uuid.UUID] = None,
        comment_id: Optional[uuid.UUID] = None,
    ) -> Activity:
        """
        Append an activity and point the user's last_activity_id at it.

        Raises:
            NotFoundError: `user_id` does not name an existing user
        """
        user = await db.get(User, user_id)
        if user is None:
            raise NotFoundError(resource="user", resource_id=str(user_id))

        activity = Activity(
            user_id=user_id,
            kind=kind,
            photo_id=photo_id,
            comment_id=comment_id,
        )
        db.add(activity)
        await db.flush()

        user.last_activity_id = activity.id
        await db.flush()

        logger.info("Activity %s recorded for user %s", kind.value, user_id)
        return activity

    async def recent(
        self,
        db: AsyncSession,
        limit: Optional[int] = None,
        user_id: Optional[uuid.UUID] = None,
    ) -> List[ActivityResponse]:
        """Newest-first feed, optionally restricted to one user."""
        limit = limit or settings.activity_feed_default_limit
        try:
            query = (
                select(Activity)
                .options(*ACTIVITY_OPTIONS)
                .execution_options(populate_existing=True)
            )
            if user_id is not None:
                query = query.where(Activity.user_id == user_id)
            query = query.order_by(desc(Activity.created_at)).limit(limit)

            result = await db.execute(query)
            return [activity_response(activity) for activity in result.scalars().all()]

        except ShutterfeedError:
            raise
        except Exception as e:
            logger.error("Database error reading activity feed: %s", str(e), exc_info=True)
            raise DatabaseError(
                message="Could not retrieve activities. Please try again.",
                context={"error_type": type(e).__name__},
            )

    async def purge(self, db: AsyncSession, condition: ColumnElement[bool]) -> int:
        """
        Delete activities matching `condition`.

        Users whose last_activity_id points at a deleted row get it nulled
        first; SQLite does not enforce the SET NULL foreign key.

        Returns:
            Number of activities deleted
        """
        result = await db.execute(select(Activity.id).where(condition))
        activity_ids = list(result.scalars().all())
        if not activity_ids:
            return 0
        await db.execute(
            update(User)
            .where(User.last_activity_id.in_(activity_ids))
            .values(last_activity_id=None)
        )
        await db.execute(delete(Activity).where(Activity.id.in_(activity_ids)))
        logger.debug("Purged %d activities", len(activity_ids))
        return len(activity_ids)

    async def latest_for_user(
        self, db: AsyncSession, user_id: uuid.UUID
    ) -> Optional[ActivityResponse]:
        entries = await self.recent(db, limit=1, user_id=user_id)
        return entries[0] if entries else None


# ── Singleton Instance ────────────────────────────────────────────────────
activity_service = ActivityService()
