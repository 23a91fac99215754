"""
HealthAPI Backend — Measurement Schemas
=========================================

What:  Contracts for the measurement CRUD endpoints.
Units: weight in kilograms, circumferences in centimetres.
"""

import uuid
from datetime import datetime
from typing import List, Optional

from pydantic import Field

from app.schemas.common import CamelModel

# Positive, bounded values reject unit mix-ups (grams, millimetres)
_WEIGHT = dict(gt=0, le=700)
_CIRCUMFERENCE = dict(gt=0, le=400)


class MeasurementCreateRequest(CamelModel):
    weight: float = Field(**_WEIGHT, description="Body weight in kg")
    chest: Optional[float] = Field(default=None, **_CIRCUMFERENCE)
    waist: Optional[float] = Field(default=None, **_CIRCUMFERENCE)
    hips: Optional[float] = Field(default=None, **_CIRCUMFERENCE)
    thigh: Optional[float] = Field(default=None, **_CIRCUMFERENCE)
    biceps: Optional[float] = Field(default=None, **_CIRCUMFERENCE)


class MeasurementUpdateRequest(CamelModel):
    """Partial update; only fields present in the body are changed."""

    weight: Optional[float] = Field(default=None, **_WEIGHT)
    chest: Optional[float] = Field(default=None, **_CIRCUMFERENCE)
    waist: Optional[float] = Field(default=None, **_CIRCUMFERENCE)
    hips: Optional[float] = Field(default=None, **_CIRCUMFERENCE)
    thigh: Optional[float] = Field(default=None, **_CIRCUMFERENCE)
    biceps: Optional[float] = Field(default=None, **_CIRCUMFERENCE)


class MeasurementResponse(CamelModel):
    id: uuid.UUID
    user_id: uuid.UUID
    weight: float
    chest: Optional[float] = None
    waist: Optional[float] = None
    hips: Optional[float] = None
    thigh: Optional[float] = None
    biceps: Optional[float] = None
    created_at: datetime


class MeasurementListResponse(CamelModel):
    measurements: List[MeasurementResponse]
    total_count: int
