"""
HealthAPI Backend — User Route Handlers
=========================================

What:  POST /users (register), GET /users (current account),
       DELETE /users (delete account and all owned data).
"""

import logging

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db_session
from app.dependencies import get_current_user
from app.models.user import User
from app.schemas.common import ErrorResponse
from app.schemas.user import RegisterRequest, UserResponse
from app.services.auth_service import auth_service
from app.services.user_service import user_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/users", tags=["Users"])


@router.post(
    "",
    response_model=UserResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        400: {"description": "Invalid email or password policy violation", "model": ErrorResponse},
        409: {"description": "Email already registered", "model": ErrorResponse},
        503: {"description": "Confirmation email could not be sent", "model": ErrorResponse},
    },
    summary="Register a new account",
    description=(
        "Creates an unverified account and emails a confirmation link. "
        "The account cannot log in until the link has been opened."
    ),
)
async def register(
    body: RegisterRequest,
    db: AsyncSession = Depends(get_db_session),
) -> UserResponse:
    user = await auth_service.register(db, email=body.email, password=body.password)
    return UserResponse.model_validate(user)


@router.get(
    "",
    response_model=UserResponse,
    responses={401: {"description": "Missing or invalid access token", "model": ErrorResponse}},
    summary="Get the current account",
)
async def get_current_account(
    user: User = Depends(get_current_user),
) -> UserResponse:
    return UserResponse.model_validate(user)


@router.delete(
    "",
    response_model=UserResponse,
    responses={401: {"description": "Missing or invalid access token", "model": ErrorResponse}},
    summary="Delete the current account",
    description="Deletes the account together with its profile, measurements and sessions.",
)
async def delete_account(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> UserResponse:
    deleted = await user_service.delete_account(db, user)
    return UserResponse.model_validate(deleted)
