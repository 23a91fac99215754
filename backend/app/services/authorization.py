"""
HealthAPI Backend — Request Authorization
===========================================

What:  Turns an `Authorization: Bearer <access token>` value into the user
       the request acts for.
Why:   Every protected route needs the same three checks (token present,
       token valid, user still exists); a pure function with an explicit
       result type keeps them testable without FastAPI.
How:   authorize() never raises for client mistakes; it returns an
       AuthorizationResult with either the user or a failure reason.
       The FastAPI dependency (app/dependencies.py) maps failures to 401.
"""

import logging
import uuid
from dataclasses import dataclass
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from app.exceptions import InvalidTokenError
from app.models.user import User
from app.services.credential_store import CredentialStore
from app.services.token_codec import TokenCodec

logger = logging.getLogger(__name__)

MISSING_TOKEN = "missing_token"
INVALID_TOKEN = "invalid_token"
UNKNOWN_USER = "unknown_user"


@dataclass(frozen=True)
class AuthorizationResult:
    user: Optional[User] = None
    reason: Optional[str] = None

    @property
    def authorized(self) -> bool:
        return self.user is not None


async def authorize(
    db: AsyncSession,
    token: Optional[str],
    codec: TokenCodec,
    store: CredentialStore,
) -> AuthorizationResult:
    """Resolve an access token to its user, or explain why it cannot be resolved."""
    if not token:
        return AuthorizationResult(reason=MISSING_TOKEN)

    try:
        claims = codec.decode_access_token(token)
        user_id = uuid.UUID(claims.subject)
    except (InvalidTokenError, ValueError):
        return AuthorizationResult(reason=INVALID_TOKEN)

    # Access tokens outlive account deletion until they expire
    user = await store.get_by_id(db, user_id)
    if user is None:
        logger.info("Access token for deleted user %s rejected", user_id)
        return AuthorizationResult(reason=UNKNOWN_USER)

    return AuthorizationResult(user=user)
