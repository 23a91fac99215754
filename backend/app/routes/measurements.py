"""
HealthAPI Backend — Measurement Route Handlers
================================================

What:  CRUD for the current user's body measurements.
Who:   Bearer-authenticated clients; records of other users answer 404.

Pagination:
    GET /measurements?limit=&offset= returns newest first; the total is in
    the body and in the X-Total-Count header.
"""

import uuid

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db_session
from app.dependencies import get_current_user
from app.models.user import User
from app.schemas.common import ErrorResponse
from app.schemas.measurement import (
    MeasurementCreateRequest,
    MeasurementListResponse,
    MeasurementResponse,
    MeasurementUpdateRequest,
)
from app.services.measurement_service import measurement_service

router = APIRouter(prefix="/measurements", tags=["Measurements"])

_ERRORS = {
    401: {"description": "Missing or invalid access token", "model": ErrorResponse},
    404: {"description": "Measurement not found", "model": ErrorResponse},
}


@router.post(
    "",
    response_model=MeasurementResponse,
    status_code=status.HTTP_201_CREATED,
    responses={401: _ERRORS[401]},
    summary="Record a measurement",
)
async def create_measurement(
    body: MeasurementCreateRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> MeasurementResponse:
    measurement = await measurement_service.create(db, user.id, body.model_dump())
    return MeasurementResponse.model_validate(measurement)


@router.get(
    "",
    response_model=MeasurementListResponse,
    responses={401: _ERRORS[401]},
    summary="List my measurements (newest first)",
)
async def list_measurements(
    response: Response,
    limit: int = Query(default=50, ge=1, le=200, description="Items per page"),
    offset: int = Query(default=0, ge=0, description="Items to skip"),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> MeasurementListResponse:
    measurements, total = await measurement_service.list_for_user(db, user.id, limit=limit, offset=offset)
    response.headers["X-Total-Count"] = str(total)
    return MeasurementListResponse(
        measurements=[MeasurementResponse.model_validate(m) for m in measurements],
        total_count=total,
    )


@router.get(
    "/{measurement_id}",
    response_model=MeasurementResponse,
    responses=_ERRORS,
    summary="Get one measurement",
)
async def get_measurement(
    measurement_id: uuid.UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> MeasurementResponse:
    measurement = await measurement_service.get(db, user.id, measurement_id)
    return MeasurementResponse.model_validate(measurement)


@router.patch(
    "/{measurement_id}",
    response_model=MeasurementResponse,
    responses=_ERRORS,
    summary="Update a measurement",
    description="Only fields present in the body are changed; circumferences may be set to null.",
)
async def update_measurement(
    measurement_id: uuid.UUID,
    body: MeasurementUpdateRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> MeasurementResponse:
    measurement = await measurement_service.update(
        db, user.id, measurement_id, body.model_dump(exclude_unset=True)
    )
    return MeasurementResponse.model_validate(measurement)


@router.delete(
    "/{measurement_id}",
    response_model=MeasurementResponse,
    responses=_ERRORS,
    summary="Delete a measurement",
)
async def delete_measurement(
    measurement_id: uuid.UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> MeasurementResponse:
    measurement = await measurement_service.delete(db, user.id, measurement_id)
    return MeasurementResponse.model_validate(measurement)
