"""
Shutterfeed Backend — Comment Route Handlers
=============================================

What:  GET/POST /api/comments/{photo_id} and DELETE /api/comments/{comment_id}.
How:   Thin wrappers around CommentService; see that module for the
       creation and deletion flows.

Status codes for POST:
    201  comment created
    400  missing/blank text, or an unknown/malformed explicit mention
    401  not logged in
    403  photo not visible to the author
    404  photo not found
"""

import logging
import uuid
from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db_session
from app.schemas.comment import CommentCreate, CommentResponse
from app.schemas.common import ErrorResponse, MessageResponse
from app.services.auth_service import get_current_user_id
from app.services.comment_service import comment_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/comments", tags=["Comments"])


@router.get(
    "/{photo_id}",
    response_model=List[CommentResponse],
    responses={
        403: {"description": "Photo not visible to the caller", "model": ErrorResponse},
        404: {"description": "Photo not found", "model": ErrorResponse},
    },
    summary="Comments on a photo, oldest first",
)
async def list_comments(
    photo_id: uuid.UUID,
    viewer_id: uuid.UUID = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db_session),
) -> List[CommentResponse]:
    return await comment_service.list_comments(db=db, photo_id=photo_id, viewer_id=viewer_id)


@router.post(
    "/{photo_id}",
    status_code=201,
    response_model=CommentResponse,
    responses={
        201: {"description": "Comment created", "model": CommentResponse},
        400: {"description": "Blank text or invalid mention", "model": ErrorResponse},
        401: {"description": "Not logged in", "model": ErrorResponse},
        403: {"description": "Photo not visible to the author", "model": ErrorResponse},
        404: {"description": "Photo not found", "model": ErrorResponse},
    },
    summary="Comment on a photo",
    description=(
        "Creates a comment. `@username` tokens in the text become mentions, "
        "unless an explicit `mentions` id list is supplied, in which case every "
        "id must name an existing user."
    ),
)
async def add_comment(
    photo_id: uuid.UUID,
    body: CommentCreate,
    author_id: uuid.UUID = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db_session),
) -> CommentResponse:
    return await comment_service.add_comment(
        db=db,
        photo_id=photo_id,
        author_id=author_id,
        text=body.text,
        explicit_mentions=body.mentions,
    )


@router.delete(
    "/{comment_id}",
    response_model=MessageResponse,
    responses={
        403: {"description": "Neither author nor photo owner", "model": ErrorResponse},
        404: {"description": "Comment not found", "model": ErrorResponse},
    },
    summary="Delete a comment",
)
async def delete_comment(
    comment_id: uuid.UUID,
    requester_id: uuid.UUID = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db_session),
) -> MessageResponse:
    await comment_service.delete_comment(db=db, comment_id=comment_id, requester_id=requester_id)
    return MessageResponse(message="Comment deleted successfully")
