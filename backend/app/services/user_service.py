"""
HealthAPI Backend — User Service
==================================

What:  Account-level operations that are not part of the credential lifecycle.
Who:   Called by the /users route handlers.
"""

import logging

from sqlalchemy import delete
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.measurement import Measurement
from app.models.profile import Profile
from app.models.user import RefreshToken, User

logger = logging.getLogger(__name__)


class UserService:
    async def delete_account(self, db: AsyncSession, user: User) -> User:
        """
        Delete the user and everything they own.

        Owned rows are deleted explicitly before the user. The foreign keys also
        cascade, but SQLite only enforces them when PRAGMA foreign_keys is on,
        and the result must not depend on that.
        """
        for model in (Measurement, Profile, RefreshToken):
            await db.execute(
                delete(model)
                .where(model.user_id == user.id)
                .execution_options(synchronize_session=False)
            )
        await db.delete(user)
        await db.flush()
        logger.info("Account %s deleted", user.id)
        return user


user_service = UserService()
