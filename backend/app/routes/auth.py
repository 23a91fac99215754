"""
HealthAPI Backend — Authentication Route Handlers
===================================================

What:  HTTP surface of the credential lifecycle.
How:   Each handler validates the body (Pydantic), calls one AuthService
       method and shapes the response. Status mapping lives on the
       exceptions; the only route-specific override is resend-confirmation,
       which reports an already-confirmed account as 404.

Endpoint Inventory:
    POST  /auth/resend-confirmation     send the confirmation email again
    GET   /auth/confirmation/{token}    confirm the email address
    POST  /auth                         login → token pair (201)
    PATCH /auth                         logout one session (bearer)
    PATCH /auth/tokens                  rotate the refresh token
    PATCH /auth/credentials             change email and/or password (bearer)
    PATCH /auth/reset-password          email a reset code
    PATCH /auth/reset-password-confirm  set a new password with the code
"""

import logging

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db_session
from app.dependencies import get_current_user
from app.exceptions import AlreadyConfirmedError
from app.models.user import User
from app.schemas.auth import (
    EmailRequest,
    LoginRequest,
    ResetPasswordConfirmRequest,
    TokenPairResponse,
    TokenRequest,
    UpdateCredentialsRequest,
)
from app.schemas.common import ErrorResponse, MessageResponse
from app.schemas.user import UserResponse
from app.services.auth_service import auth_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["Auth"])


@router.post(
    "/resend-confirmation",
    response_model=MessageResponse,
    responses={
        404: {"description": "Unknown email or account already confirmed", "model": ErrorResponse},
        503: {"description": "Email could not be sent", "model": ErrorResponse},
    },
    summary="Resend the confirmation email",
)
async def resend_confirmation(
    body: EmailRequest,
    db: AsyncSession = Depends(get_db_session),
) -> MessageResponse:
    try:
        await auth_service.send_confirmation(db, body.email)
    except AlreadyConfirmedError as e:
        raise AlreadyConfirmedError(
            message=e.message,
            context=e.context,
            status_code=status.HTTP_404_NOT_FOUND,
        ) from e
    return MessageResponse(message="confirmation email sent")


@router.get(
    "/confirmation/{token}",
    response_model=MessageResponse,
    responses={
        400: {"description": "Invalid/expired token or already confirmed", "model": ErrorResponse},
        404: {"description": "No account for the token's email", "model": ErrorResponse},
    },
    summary="Confirm an email address",
    description="Target of the link in the confirmation email.",
)
async def confirm_email(
    token: str,
    db: AsyncSession = Depends(get_db_session),
) -> MessageResponse:
    await auth_service.confirm(db, token)
    return MessageResponse(message="email confirmed")


@router.post(
    "",
    response_model=TokenPairResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        400: {"description": "Account not verified", "model": ErrorResponse},
        401: {"description": "Wrong password", "model": ErrorResponse},
        404: {"description": "Unknown email", "model": ErrorResponse},
    },
    summary="Log in",
)
async def login(
    body: LoginRequest,
    db: AsyncSession = Depends(get_db_session),
) -> TokenPairResponse:
    pair = await auth_service.login(db, email=body.email, password=body.password)
    return TokenPairResponse(access_token=pair.access_token, refresh_token=pair.refresh_token)


@router.patch(
    "",
    response_model=MessageResponse,
    responses={
        400: {"description": "Refresh token invalid or not live", "model": ErrorResponse},
        401: {"description": "Missing or invalid access token", "model": ErrorResponse},
    },
    summary="Log out one session",
    description="Invalidates the given refresh token; other sessions stay valid.",
)
async def logout(
    body: TokenRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> MessageResponse:
    await auth_service.logout(db, user_id=user.id, refresh_token=body.refresh_token)
    return MessageResponse(message="logged out")


@router.patch(
    "/tokens",
    response_model=TokenPairResponse,
    responses={400: {"description": "Refresh token invalid or not live", "model": ErrorResponse}},
    summary="Rotate the refresh token",
    description="Exchanges a refresh token for a new access/refresh pair. The old token stops working.",
)
async def refresh_tokens(
    body: TokenRequest,
    db: AsyncSession = Depends(get_db_session),
) -> TokenPairResponse:
    pair = await auth_service.refresh(db, refresh_token=body.refresh_token)
    return TokenPairResponse(access_token=pair.access_token, refresh_token=pair.refresh_token)


@router.patch(
    "/credentials",
    response_model=UserResponse,
    responses={
        401: {"description": "Missing or invalid access token", "model": ErrorResponse},
        409: {"description": "Email already registered", "model": ErrorResponse},
    },
    summary="Change email and/or password",
    description=(
        "A new email must be confirmed again. Any change signs out every session."
    ),
)
async def update_credentials(
    body: UpdateCredentialsRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> UserResponse:
    updated = await auth_service.update_credentials(
        db, user, email=body.email, password=body.password
    )
    return UserResponse.model_validate(updated)


@router.patch(
    "/reset-password",
    response_model=MessageResponse,
    responses={
        400: {"description": "Account not verified", "model": ErrorResponse},
        404: {"description": "Unknown email", "model": ErrorResponse},
    },
    summary="Request a password reset code",
)
async def reset_password(
    body: EmailRequest,
    db: AsyncSession = Depends(get_db_session),
) -> MessageResponse:
    await auth_service.request_reset(db, body.email)
    return MessageResponse(message="verification code sent")


@router.patch(
    "/reset-password-confirm",
    response_model=MessageResponse,
    responses={
        400: {"description": "Invalid/expired code or account not verified", "model": ErrorResponse},
        404: {"description": "Unknown email", "model": ErrorResponse},
    },
    summary="Set a new password with a reset code",
    description="On success every session of the account is signed out.",
)
async def reset_password_confirm(
    body: ResetPasswordConfirmRequest,
    db: AsyncSession = Depends(get_db_session),
) -> MessageResponse:
    await auth_service.confirm_reset(db, email=body.email, code=body.code, new_password=body.password)
    return MessageResponse(message="password changed")
