"""
HealthAPI Backend — Measurement Service
=========================================

What:  CRUD over a user's body measurements.
Who:   Called by the /measurements route handlers.

Ownership:
    Every query filters on user_id. A measurement that exists but belongs
    to someone else is indistinguishable from a missing one (404), so ids
    cannot be probed across accounts.

Query plan (list):
    SELECT * FROM measurements WHERE user_id = :uid ORDER BY created_at DESC
    → idx_measurements_user_created
"""

import logging
import uuid
from typing import Any, Dict, List, Tuple

from sqlalchemy import desc, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.exceptions import NotFoundError, ValidationError
from app.models.measurement import Measurement

logger = logging.getLogger(__name__)


class MeasurementService:
    async def create(
        self, db: AsyncSession, user_id: uuid.UUID, values: Dict[str, Any]
    ) -> Measurement:
        measurement = Measurement(id=uuid.uuid4(), user_id=user_id, **values)
        db.add(measurement)
        await db.flush()
        logger.info("Measurement %s recorded for user %s", measurement.id, user_id)
        return measurement

    async def list_for_user(
        self, db: AsyncSession, user_id: uuid.UUID, limit: int = 50, offset: int = 0
    ) -> Tuple[List[Measurement], int]:
        """Return one page of measurements (newest first) and the user's total count."""
        result = await db.execute(
            select(Measurement)
            .where(Measurement.user_id == user_id)
            .order_by(desc(Measurement.created_at))
            .limit(limit)
            .offset(offset)
        )
        measurements = list(result.scalars().all())

        count_result = await db.execute(
            select(func.count(Measurement.id)).where(Measurement.user_id == user_id)
        )
        return measurements, count_result.scalar() or 0

    async def get(
        self, db: AsyncSession, user_id: uuid.UUID, measurement_id: uuid.UUID
    ) -> Measurement:
        """
        Raises:
            NotFoundError: no such measurement for this user
        """
        result = await db.execute(
            select(Measurement).where(
                Measurement.id == measurement_id,
                Measurement.user_id == user_id,
            )
        )
        measurement = result.scalar_one_or_none()
        if measurement is None:
            raise NotFoundError(resource="measurement", resource_id=str(measurement_id))
        return measurement

    async def update(
        self,
        db: AsyncSession,
        user_id: uuid.UUID,
        measurement_id: uuid.UUID,
        changes: Dict[str, Any],
    ) -> Measurement:
        """
        Apply a partial update. `changes` holds only the fields the client sent.

        Raises:
            NotFoundError: no such measurement for this user
            ValidationError: weight explicitly set to null
        """
        if "weight" in changes and changes["weight"] is None:
            raise ValidationError(message="weight cannot be null", field="weight")

        measurement = await self.get(db, user_id, measurement_id)
        for field, value in changes.items():
            setattr(measurement, field, value)
        await db.flush()
        return measurement

    async def delete(
        self, db: AsyncSession, user_id: uuid.UUID, measurement_id: uuid.UUID
    ) -> Measurement:
        measurement = await self.get(db, user_id, measurement_id)
        await db.delete(measurement)
        await db.flush()
        logger.info("Measurement %s deleted", measurement_id)
        return measurement


measurement_service = MeasurementService()
