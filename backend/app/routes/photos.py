"""
Shutterfeed Backend — Photo Route Handlers
===========================================

What:  Upload, feed, detail, likes, tags and deletion of photos.
Who:   Called by the frontend home feed, user photo pages and photo detail.

Upload Request Flow:
    1. Client sends multipart/form-data: `photo` (file), `caption`,
       `sharedWith` (JSON array string of user ids, optional)
    2. `sharedWith` is normalized by coerce_id_list; malformed → 400
    3. PhotoService validates the share list, then the file, then stores
    4. 201 Created with the full photo

Every read passes the caller's id down so visibility is always enforced.
"""

import logging
import uuid
from typing import List, Optional

from fastapi import APIRouter, BackgroundTasks, Depends, File, Form, UploadFile
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db_session
from app.exceptions import ValidationError
from app.schemas.common import ErrorResponse, MessageResponse, coerce_id_list
from app.schemas.photo import PhotoResponse, TagRequest
from app.services.auth_service import get_current_user_id
from app.services.file_service import file_service
from app.services.photo_service import photo_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/photos", tags=["Photos"])


@router.get(
    "",
    response_model=List[PhotoResponse],
    responses={401: {"description": "Not logged in", "model": ErrorResponse}},
    summary="Photo feed",
    description="Photos visible to the caller, most liked first, then newest first.",
)
async def list_photos(
    viewer_id: uuid.UUID = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db_session),
) -> List[PhotoResponse]:
    return await photo_service.list_photos(db=db, viewer_id=viewer_id)


@router.post(
    "",
    status_code=201,
    response_model=PhotoResponse,
    responses={
        201: {"description": "Photo uploaded", "model": PhotoResponse},
        400: {"description": "Invalid file or unknown user in sharedWith", "model": ErrorResponse},
        401: {"description": "Not logged in", "model": ErrorResponse},
    },
    summary="Upload a photo",
    description=(
        "Multipart upload of a JPEG, PNG or GIF image (max 10MB). An empty or "
        "missing sharedWith makes the photo public."
    ),
)
async def upload_photo(
    photo: UploadFile = File(..., description="Image file (JPEG, PNG or GIF)"),
    caption: str = Form(default=""),
    shared_with: Optional[str] = Form(
        default=None,
        alias="sharedWith",
        description='JSON array of user ids, e.g. ["<id>", "<id>"]',
    ),
    owner_id: uuid.UUID = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db_session),
) -> PhotoResponse:
    try:
        share_ids = coerce_id_list(shared_with) or []
    except ValueError as e:
        raise ValidationError(message=str(e), field="sharedWith")

    content = await photo.read()
    logger.info(
        "Received upload: filename=%s, size=%d bytes, shared_with=%d",
        photo.filename or "unknown", len(content), len(share_ids),
    )

    try:
        return await photo_service.upload_photo(
            db=db,
            owner_id=owner_id,
            filename=photo.filename or "",
            content=content,
            caption=caption,
            shared_with=share_ids,
            content_length=photo.size,
        )
    finally:
        await photo.close()


@router.get(
    "/user/{user_id}",
    response_model=List[PhotoResponse],
    responses={404: {"description": "User not found", "model": ErrorResponse}},
    summary="A user's photos visible to the caller",
)
async def list_user_photos(
    user_id: uuid.UUID,
    viewer_id: uuid.UUID = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db_session),
) -> List[PhotoResponse]:
    return await photo_service.list_photos(db=db, viewer_id=viewer_id, owner_id=user_id)


@router.get(
    "/{photo_id}",
    response_model=PhotoResponse,
    responses={
        403: {"description": "Photo not visible to the caller", "model": ErrorResponse},
        404: {"description": "Photo not found", "model": ErrorResponse},
    },
    summary="Photo detail",
)
async def get_photo(
    photo_id: uuid.UUID,
    viewer_id: uuid.UUID = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db_session),
) -> PhotoResponse:
    return await photo_service.get_photo(db=db, photo_id=photo_id, viewer_id=viewer_id)


@router.post(
    "/{photo_id}/tags",
    response_model=PhotoResponse,
    responses={
        403: {"description": "Only the owner may tag", "model": ErrorResponse},
        404: {"description": "Photo or tagged user not found", "model": ErrorResponse},
    },
    summary="Tag a user in a photo",
)
async def add_tag(
    photo_id: uuid.UUID,
    body: TagRequest,
    requester_id: uuid.UUID = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db_session),
) -> PhotoResponse:
    return await photo_service.add_tag(
        db=db,
        photo_id=photo_id,
        requester_id=requester_id,
        user_id=body.user_id,
        rect=body.rect,
    )


@router.post(
    "/{photo_id}/like",
    response_model=PhotoResponse,
    responses={
        400: {"description": "Photo already liked", "model": ErrorResponse},
        403: {"description": "Photo not visible to the caller", "model": ErrorResponse},
        404: {"description": "Photo not found", "model": ErrorResponse},
    },
    summary="Like a photo",
)
async def like_photo(
    photo_id: uuid.UUID,
    user_id: uuid.UUID = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db_session),
) -> PhotoResponse:
    return await photo_service.like_photo(db=db, photo_id=photo_id, user_id=user_id)


@router.delete(
    "/{photo_id}/like",
    response_model=PhotoResponse,
    responses={
        403: {"description": "Photo not visible to the caller", "model": ErrorResponse},
        404: {"description": "Photo not found", "model": ErrorResponse},
    },
    summary="Remove a like",
)
async def unlike_photo(
    photo_id: uuid.UUID,
    user_id: uuid.UUID = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db_session),
) -> PhotoResponse:
    return await photo_service.unlike_photo(db=db, photo_id=photo_id, user_id=user_id)


@router.delete(
    "/{photo_id}",
    response_model=MessageResponse,
    responses={
        403: {"description": "Only the owner may delete", "model": ErrorResponse},
        404: {"description": "Photo not found", "model": ErrorResponse},
    },
    summary="Delete a photo",
    description="Deletes the photo with its comments and activities; the stored file is removed afterwards.",
)
async def delete_photo(
    photo_id: uuid.UUID,
    background_tasks: BackgroundTasks,
    requester_id: uuid.UUID = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db_session),
) -> MessageResponse:
    path = await photo_service.delete_photo(db=db, photo_id=photo_id, requester_id=requester_id)
    background_tasks.add_task(file_service.cleanup_file, path)
    return MessageResponse(message="Photo deleted successfully")
