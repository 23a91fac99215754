"""HealthAPI Backend — Profile Service."""

import logging
import uuid
from typing import Any, Dict

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.profile import Profile

logger = logging.getLogger(__name__)


class ProfileService:
    async def get_profile(self, db: AsyncSession, user_id: uuid.UUID) -> Profile:
        """
        Return the user's profile.

        Every account gets a profile at registration; one is created here only
        for rows that predate that rule.
        """
        result = await db.execute(select(Profile).where(Profile.user_id == user_id))
        profile = result.scalar_one_or_none()
        if profile is None:
            profile = Profile(user_id=user_id)
            db.add(profile)
            await db.flush()
            logger.info("Created missing profile for user %s", user_id)
        return profile

    async def update_profile(
        self, db: AsyncSession, user_id: uuid.UUID, changes: Dict[str, Any]
    ) -> Profile:
        """Apply a partial update; fields absent from `changes` keep their value."""
        profile = await self.get_profile(db, user_id)
        for field, value in changes.items():
            setattr(profile, field, value)
        await db.flush()
        await db.refresh(profile)
        return profile


profile_service = ProfileService()
