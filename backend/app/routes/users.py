"""
Shutterfeed Backend — User Route Handlers
==========================================

What:  User directory, user detail page, profile edits, favorites, and
       account deletion.

Route order matters: /favorites and /profile are declared before /{user_id}
so the literal segments are never parsed as an id.
"""

import logging
import uuid
from typing import List

from fastapi import APIRouter, BackgroundTasks, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db_session
from app.schemas.activity import UserDetailResponse
from app.schemas.common import ErrorResponse, MessageResponse
from app.schemas.photo import PhotoSummary
from app.schemas.user import ProfileUpdate, UserResponse, UserSummary
from app.services.auth_service import get_current_user_id
from app.services.file_service import file_service
from app.services.user_service import user_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/users", tags=["Users"])


@router.get(
    "",
    response_model=List[UserSummary],
    summary="List all users",
)
async def list_users(db: AsyncSession = Depends(get_db_session)) -> List[UserSummary]:
    return await user_service.list_users(db=db)


# ── Favorites ─────────────────────────────────────────────────────────────

@router.get(
    "/favorites",
    response_model=List[PhotoSummary],
    responses={401: {"description": "Not logged in", "model": ErrorResponse}},
    summary="Current user's favorite photos",
)
async def list_favorites(
    user_id: uuid.UUID = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db_session),
) -> List[PhotoSummary]:
    return await user_service.list_favorites(db=db, user_id=user_id)


@router.post(
    "/favorites/{photo_id}",
    response_model=List[uuid.UUID],
    responses={
        200: {"description": "Favorite photo ids after the change"},
        400: {"description": "Photo already in favorites", "model": ErrorResponse},
        403: {"description": "Photo not visible to the user", "model": ErrorResponse},
        404: {"description": "Photo not found", "model": ErrorResponse},
    },
    summary="Add a photo to favorites",
)
async def add_favorite(
    photo_id: uuid.UUID,
    user_id: uuid.UUID = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db_session),
) -> List[uuid.UUID]:
    return await user_service.add_favorite(db=db, user_id=user_id, photo_id=photo_id)


@router.delete(
    "/favorites/{photo_id}",
    response_model=List[uuid.UUID],
    summary="Remove a photo from favorites",
)
async def remove_favorite(
    photo_id: uuid.UUID,
    user_id: uuid.UUID = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db_session),
) -> List[uuid.UUID]:
    return await user_service.remove_favorite(db=db, user_id=user_id, photo_id=photo_id)


# ── Profile & account ─────────────────────────────────────────────────────

@router.put(
    "/profile",
    response_model=UserResponse,
    summary="Update the current user's profile",
    description="Only non-empty fields are applied; everything else is left as it is.",
)
async def update_profile(
    body: ProfileUpdate,
    user_id: uuid.UUID = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db_session),
) -> UserResponse:
    return await user_service.update_profile(db=db, user_id=user_id, data=body)


@router.delete(
    "",
    response_model=MessageResponse,
    summary="Delete the current user's account",
    description=(
        "Deletes the account, its photos (with their comments and activities), "
        "its comments and activities, and every reference other rows hold to it."
    ),
)
async def delete_account(
    background_tasks: BackgroundTasks,
    user_id: uuid.UUID = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db_session),
) -> MessageResponse:
    paths = await user_service.delete_user(db=db, user_id=user_id)
    for path in paths:
        background_tasks.add_task(file_service.cleanup_file, path)
    return MessageResponse(message="User account deleted successfully")


@router.get(
    "/{user_id}",
    response_model=UserDetailResponse,
    responses={404: {"description": "User not found", "model": ErrorResponse}},
    summary="User detail page",
    description=(
        "Profile plus the newest and most-commented photos the caller can see, "
        "photos the user is mentioned on, and the user's last activity."
    ),
)
async def get_user(
    user_id: uuid.UUID,
    viewer_id: uuid.UUID = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db_session),
) -> UserDetailResponse:
    return await user_service.get_user_detail(db=db, user_id=user_id, viewer_id=viewer_id)
