"""
HealthAPI Backend — Token Codec
=================================

What:  Issues and verifies signed, time-limited tokens of three kinds:
       access, refresh and email confirmation.
Why:   A pure function over secrets + claims; no database access, so every
       failure mode (tampering, expiry, kind confusion) is unit-testable.
How:   JWT (PyJWT, HMAC) with claims:
           sub   user id (access, refresh) or email (confirmation)
           kind  "access" | "refresh" | "confirmation"
           iat   issued-at
           exp   expiry
           jti   random identifier (refresh only; the credential-store key)

Kind separation:
    Each kind is signed with its own secret and carries a `kind` claim.
    A leaked access token fails signature verification when presented as a
    refresh token; even with a misconfigured shared secret the kind check
    still rejects it.
"""

import logging
import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Optional

import jwt

from app.config import settings
from app.exceptions import InvalidTokenError

logger = logging.getLogger(__name__)


class TokenKind(str, Enum):
    ACCESS = "access"
    REFRESH = "refresh"
    CONFIRMATION = "confirmation"


@dataclass(frozen=True)
class TokenClaims:
    """Verified contents of a token."""

    subject: str
    kind: TokenKind
    issued_at: datetime
    expires_at: datetime
    token_id: Optional[str] = None


@dataclass(frozen=True)
class IssuedToken:
    """Encoded token plus the claims it was built from."""

    token: str
    claims: TokenClaims


class TokenCodec:
    """
    Signs and verifies tokens.

    Lifetimes are in seconds. A non-positive lifetime produces a token that is
    already expired, which is how expiry is exercised in tests.
    """

    def __init__(
        self,
        access_secret: str,
        refresh_secret: str,
        confirmation_secret: str,
        access_ttl: int = 900,
        refresh_ttl: int = 604_800,
        confirmation_ttl: int = 86_400,
        algorithm: str = "HS256",
    ):
        self._secrets = {
            TokenKind.ACCESS: access_secret,
            TokenKind.REFRESH: refresh_secret,
            TokenKind.CONFIRMATION: confirmation_secret,
        }
        self._ttls = {
            TokenKind.ACCESS: access_ttl,
            TokenKind.REFRESH: refresh_ttl,
            TokenKind.CONFIRMATION: confirmation_ttl,
        }
        self.algorithm = algorithm

    # ── Issue ─────────────────────────────────────────────────────────────

    def issue_access_token(self, user_id: uuid.UUID) -> IssuedToken:
        return self._issue(TokenKind.ACCESS, str(user_id))

    def issue_refresh_token(self, user_id: uuid.UUID) -> IssuedToken:
        """Refresh tokens get a fresh random jti; only stored jtis are usable."""
        return self._issue(TokenKind.REFRESH, str(user_id), token_id=str(uuid.uuid4()))

    def issue_confirmation_token(self, email: str) -> IssuedToken:
        return self._issue(TokenKind.CONFIRMATION, email)

    def _issue(self, kind: TokenKind, subject: str, token_id: Optional[str] = None) -> IssuedToken:
        issued_at = datetime.now(timezone.utc).replace(microsecond=0)
        expires_at = issued_at + timedelta(seconds=self._ttls[kind])
        payload = {
            "sub": subject,
            "kind": kind.value,
            "iat": issued_at,
            "exp": expires_at,
        }
        if token_id is not None:
            payload["jti"] = token_id
        token = jwt.encode(payload, self._secrets[kind], algorithm=self.algorithm)
        return IssuedToken(
            token=token,
            claims=TokenClaims(
                subject=subject,
                kind=kind,
                issued_at=issued_at,
                expires_at=expires_at,
                token_id=token_id,
            ),
        )

    # ── Verify ────────────────────────────────────────────────────────────

    def decode_access_token(self, token: str) -> TokenClaims:
        return self._decode(TokenKind.ACCESS, token)

    def decode_refresh_token(self, token: str) -> TokenClaims:
        claims = self._decode(TokenKind.REFRESH, token)
        if not claims.token_id:
            raise InvalidTokenError(context={"reason": "missing jti", "kind": "refresh"})
        return claims

    def decode_confirmation_token(self, token: str) -> TokenClaims:
        return self._decode(TokenKind.CONFIRMATION, token)

    def _decode(self, kind: TokenKind, token: str) -> TokenClaims:
        """
        Verify signature, expiry and kind.

        Raises:
            InvalidTokenError: bad signature, malformed token, missing claims,
                wrong kind or expiry in the past. The PyJWT reason is kept in
                the exception context for logging only.
        """
        try:
            payload = jwt.decode(
                token,
                self._secrets[kind],
                algorithms=[self.algorithm],
                options={"require": ["sub", "kind", "iat", "exp"]},
            )
        except jwt.PyJWTError as e:
            logger.debug("Rejected %s token: %s", kind.value, type(e).__name__)
            raise InvalidTokenError(context={"reason": type(e).__name__, "kind": kind.value})

        if payload.get("kind") != kind.value:
            raise InvalidTokenError(
                context={"reason": "wrong kind", "kind": kind.value, "got": payload.get("kind")}
            )

        return TokenClaims(
            subject=str(payload["sub"]),
            kind=kind,
            issued_at=datetime.fromtimestamp(payload["iat"], tz=timezone.utc),
            expires_at=datetime.fromtimestamp(payload["exp"], tz=timezone.utc),
            token_id=payload.get("jti"),
        )


token_codec = TokenCodec(
    access_secret=settings.access_token_secret,
    refresh_secret=settings.refresh_token_secret,
    confirmation_secret=settings.confirmation_token_secret,
    access_ttl=settings.access_token_ttl,
    refresh_ttl=settings.refresh_token_ttl,
    confirmation_ttl=settings.confirmation_token_ttl,
    algorithm=settings.jwt_algorithm,
)
