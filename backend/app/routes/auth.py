"""
Shutterfeed Backend — Auth Route Handlers
==========================================

What:  POST /api/auth/register, /api/auth/login, /api/auth/logout and
       GET /api/auth/profile.
How:   Thin handlers; UserService does the work, auth_service supplies the
       caller's identity for the authenticated endpoints.

Clients send the returned token as `Authorization: Bearer <token>`.
"""

import logging
import uuid

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db_session
from app.schemas.common import ErrorResponse, MessageResponse
from app.schemas.user import AuthResponse, LoginRequest, RegisterRequest, UserResponse
from app.services.auth_service import get_current_user_id
from app.services.user_service import user_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth", tags=["Auth"])


@router.post(
    "/register",
    status_code=201,
    response_model=AuthResponse,
    responses={
        201: {"description": "Account created and logged in", "model": AuthResponse},
        400: {"description": "Username already exists", "model": ErrorResponse},
    },
    summary="Create an account",
)
async def register(
    body: RegisterRequest,
    db: AsyncSession = Depends(get_db_session),
) -> AuthResponse:
    return await user_service.register(db=db, data=body)


@router.post(
    "/login",
    response_model=AuthResponse,
    responses={
        200: {"description": "Credentials accepted", "model": AuthResponse},
        401: {"description": "Invalid credentials", "model": ErrorResponse},
    },
    summary="Log in with username and password",
)
async def login(
    body: LoginRequest,
    db: AsyncSession = Depends(get_db_session),
) -> AuthResponse:
    return await user_service.authenticate(db=db, username=body.username, password=body.password)


@router.post(
    "/logout",
    response_model=MessageResponse,
    responses={401: {"description": "Not logged in", "model": ErrorResponse}},
    summary="Log out",
    description=(
        "Records a logout activity. Tokens are stateless; the client discards "
        "its copy."
    ),
)
async def logout(
    user_id: uuid.UUID = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db_session),
) -> MessageResponse:
    return await user_service.logout(db=db, user_id=user_id)


@router.get(
    "/profile",
    response_model=UserResponse,
    responses={401: {"description": "Not logged in", "model": ErrorResponse}},
    summary="Current user's profile",
)
async def profile(
    user_id: uuid.UUID = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db_session),
) -> UserResponse:
    return await user_service.get_profile(db=db, user_id=user_id)
