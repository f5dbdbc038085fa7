"""
OneSim Backend: User Route Handlers
===================================

What:  GET /api/students, POST /api/login, POST /api/signup.
How:   Thin handlers; UserService does validation, lookups and hashing.
Who:   Called by the login/signup screens and the teacher dashboard.
"""

import logging
from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from onesim.config import Settings
from onesim.database import get_db_session
from onesim.dependencies import get_password_hasher, get_settings
from onesim.schemas.common import ErrorResponse, MessageResponse
from onesim.schemas.user import LoginRequest, LoginResponse, SignupRequest, StudentItem
from onesim.services.password_hasher import PasswordHasher
from onesim.services.user_service import user_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["Users"])


@router.get(
    "/students",
    response_model=List[StudentItem],
    responses={500: {"description": "Server error", "model": ErrorResponse}},
    summary="List student accounts",
)
async def list_students(db: AsyncSession = Depends(get_db_session)) -> List[StudentItem]:
    return await user_service.list_students(db)


@router.post(
    "/login",
    response_model=LoginResponse,
    responses={
        400: {"description": "Missing field", "model": ErrorResponse},
        401: {"description": "Invalid email or password", "model": ErrorResponse},
        404: {"description": "Unknown user (legacy mode only)", "model": ErrorResponse},
    },
    summary="Check credentials",
    description="One-shot credential check by (email, role). No session or token is issued.",
)
async def login(
    payload: LoginRequest,
    db: AsyncSession = Depends(get_db_session),
    hasher: PasswordHasher = Depends(get_password_hasher),
    app_settings: Settings = Depends(get_settings),
) -> LoginResponse:
    return await user_service.login(
        db,
        payload,
        hasher,
        reveal_unknown_user=app_settings.login_reveal_unknown_user,
    )


@router.post(
    "/signup",
    status_code=201,
    response_model=MessageResponse,
    responses={
        400: {"description": "Missing field or email already registered", "model": ErrorResponse},
        500: {"description": "Server error", "model": ErrorResponse},
    },
    summary="Create an account",
)
async def signup(
    payload: SignupRequest,
    db: AsyncSession = Depends(get_db_session),
    hasher: PasswordHasher = Depends(get_password_hasher),
) -> MessageResponse:
    await user_service.signup(db, payload, hasher)
    return MessageResponse(message="User created successfully!")
