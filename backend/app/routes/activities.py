"""
Shutterfeed Backend — Activity Feed Route Handlers
===================================================

What:  GET /api/activities (site-wide) and GET /api/activities/user/{id}.
How:   Newest first; `limit` defaults to ACTIVITY_FEED_DEFAULT_LIMIT (5).
"""

import uuid
from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db_session
from app.schemas.activity import ActivityResponse
from app.schemas.common import ErrorResponse
from app.services.activity_service import activity_service
from app.services.auth_service import get_current_user_id

router = APIRouter(prefix="/api/activities", tags=["Activities"])


@router.get(
    "",
    response_model=List[ActivityResponse],
    responses={401: {"description": "Not logged in", "model": ErrorResponse}},
    summary="Recent activity across all users",
)
async def recent_activities(
    limit: Optional[int] = Query(default=None, ge=1, le=100, description="Number of entries"),
    _: uuid.UUID = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db_session),
) -> List[ActivityResponse]:
    return await activity_service.recent(db=db, limit=limit)


@router.get(
    "/user/{user_id}",
    response_model=List[ActivityResponse],
    responses={401: {"description": "Not logged in", "model": ErrorResponse}},
    summary="Recent activity of one user",
)
async def user_activities(
    user_id: uuid.UUID,
    limit: Optional[int] = Query(default=None, ge=1, le=100, description="Number of entries"),
    _: uuid.UUID = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db_session),
) -> List[ActivityResponse]:
    return await activity_service.recent(db=db, limit=limit, user_id=user_id)
