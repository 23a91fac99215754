"""HealthAPI Backend — Profile Route Handlers (GET/PATCH /profiles)."""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db_session
from app.dependencies import get_current_user
from app.models.user import User
from app.schemas.common import ErrorResponse
from app.schemas.profile import ProfileResponse, ProfileUpdateRequest
from app.services.profile_service import profile_service

router = APIRouter(prefix="/profiles", tags=["Profiles"])

_AUTH_RESPONSES = {401: {"description": "Missing or invalid access token", "model": ErrorResponse}}


@router.get("", response_model=ProfileResponse, responses=_AUTH_RESPONSES, summary="Get my profile")
async def get_profile(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> ProfileResponse:
    profile = await profile_service.get_profile(db, user.id)
    return ProfileResponse.model_validate(profile)


@router.patch(
    "",
    response_model=ProfileResponse,
    responses=_AUTH_RESPONSES,
    summary="Update my profile",
    description="Only fields present in the body are changed; height may be set to null.",
)
async def update_profile(
    body: ProfileUpdateRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> ProfileResponse:
    profile = await profile_service.update_profile(
        db, user.id, body.model_dump(exclude_unset=True)
    )
    return ProfileResponse.model_validate(profile)
