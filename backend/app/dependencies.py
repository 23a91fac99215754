"""
HealthAPI Backend — Shared FastAPI Dependencies
=================================================

What:  `get_current_user` for every route that requires a logged-in user.
How:   HTTPBearer(auto_error=False) extracts the token so that a missing
       header produces our own 401 JSON body instead of FastAPI's 403.
"""

from typing import Optional

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db_session
from app.exceptions import UnauthorizedError
from app.models.user import User
from app.services.authorization import authorize
from app.services.credential_store import credential_store
from app.services.token_codec import token_codec

bearer_scheme = HTTPBearer(auto_error=False)


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    db: AsyncSession = Depends(get_db_session),
) -> User:
    token = credentials.credentials if credentials else None
    result = await authorize(db, token, token_codec, credential_store)
    if not result.authorized:
        raise UnauthorizedError(context={"reason": result.reason})
    return result.user
