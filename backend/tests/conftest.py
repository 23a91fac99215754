"""
HealthAPI Backend — Test Configuration (conftest.py)
======================================================

What:  Shared pytest fixtures for the entire test suite.
How:   A fresh in-memory SQLite database (aiosqlite) per test, an in-memory
       email outbox instead of SMTP, and an HTTPX AsyncClient bound to the
       FastAPI app with the session dependency pointed at that database.

Fixture Hierarchy (all function-scoped):
    db_engine ─▶ session_factory ─▶ db_session        (service tests)
                                 └▶ test_client       (endpoint tests)
    outbox ─▶ auth_service_under_test / test_client
"""

import os

# Settings are read at import time, so the environment must be prepared
# before anything from `app` is imported.
os.environ["DATABASE_URL"] = "sqlite+aiosqlite://"
os.environ["DB_CREATE_ALL"] = "false"
os.environ["SMTP_HOST"] = ""
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["RATE_LIMIT_REQUESTS"] = "10000"
os.environ["LOG_LEVEL"] = "WARNING"

import re
from typing import List, Optional

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

import app.models  # noqa: F401  registers every table on Base.metadata
from app.database import Base, get_db_session
from app.models import RefreshToken, User
from app.services.auth_service import AuthService
from app.services.credential_store import CredentialStore
from app.services.email_base import EmailTransport, OutgoingEmail
from app.services.email_service import Mailer
from app.services.password_hasher import PasswordHasher
from app.services.token_codec import TokenCodec

TEST_PASSWORD = "Passw0rd!"
NEW_PASSWORD = "N3wPassw0rd#"

_LINK_RE = re.compile(r"/auth/confirmation/(\S+)")
_CODE_RE = re.compile(r"verification code is: (\d{6})")


# ══════════════════════════════════════════════════════════════════════════
# Email outbox
# ══════════════════════════════════════════════════════════════════════════

class RecordingTransport(EmailTransport):
    """Keeps every message in memory instead of delivering it."""

    def __init__(self):
        self.sent: List[OutgoingEmail] = []

    async def send(self, message: OutgoingEmail) -> None:
        self.sent.append(message)

    def last_to(self, recipient: str) -> OutgoingEmail:
        for message in reversed(self.sent):
            if message.recipient == recipient:
                return message
        raise AssertionError(f"no email sent to {recipient}")

    def confirmation_token(self, recipient: str) -> str:
        match = _LINK_RE.search(self.last_to(recipient).body)
        assert match, "last email has no confirmation link"
        return match.group(1)

    def reset_code(self, recipient: str) -> str:
        match = _CODE_RE.search(self.last_to(recipient).body)
        assert match, "last email has no verification code"
        return match.group(1)


class FailingTransport(EmailTransport):
    """Simulates a mail relay that stays down after retries."""

    async def send(self, message: OutgoingEmail) -> None:
        from app.exceptions import NotificationError

        raise NotificationError(context={"smtp_host": "test"})


@pytest.fixture
def outbox() -> RecordingTransport:
    return RecordingTransport()


# ══════════════════════════════════════════════════════════════════════════
# Database
# ══════════════════════════════════════════════════════════════════════════

@pytest_asyncio.fixture
async def db_engine():
    """In-memory SQLite; StaticPool keeps the single connection (and its data) alive."""
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(db_engine):
    return async_sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def db_session(session_factory):
    async with session_factory() as session:
        yield session


# ══════════════════════════════════════════════════════════════════════════
# Services
# ══════════════════════════════════════════════════════════════════════════

@pytest.fixture
def codec() -> TokenCodec:
    return TokenCodec(
        access_secret="test-access-secret",
        refresh_secret="test-refresh-secret",
        confirmation_secret="test-confirmation-secret",
    )


@pytest.fixture
def hasher() -> PasswordHasher:
    return PasswordHasher(rounds=4)


@pytest.fixture
def store() -> CredentialStore:
    return CredentialStore()


@pytest.fixture
def auth_service_under_test(store, codec, hasher, outbox) -> AuthService:
    return AuthService(
        store=store,
        tokens=codec,
        hasher=hasher,
        mailer=Mailer(transport=outbox, confirmation_host="http://test"),
        reset_code_ttl=900,
    )


async def register_verified(
    service: AuthService,
    db: AsyncSession,
    outbox: RecordingTransport,
    email: str = "alice@example.com",
    password: str = TEST_PASSWORD,
):
    """Register and confirm an account through the service; returns the user."""
    user = await service.register(db, email, password)
    await service.confirm(db, outbox.confirmation_token(email))
    return user


async def count_users_with_email(db: AsyncSession, email: str) -> int:
    result = await db.execute(select(func.count(User.id)).where(User.email == email))
    return result.scalar() or 0


async def has_refresh_token(db: AsyncSession, user_id, token_id) -> bool:
    result = await db.execute(
        select(RefreshToken.id).where(RefreshToken.id == token_id, RefreshToken.user_id == user_id)
    )
    return result.scalar_one_or_none() is not None


async def count_refresh_tokens(db: AsyncSession, user_id) -> int:
    result = await db.execute(
        select(func.count(RefreshToken.id)).where(RefreshToken.user_id == user_id)
    )
    return result.scalar() or 0


# ══════════════════════════════════════════════════════════════════════════
# HTTP client
# ══════════════════════════════════════════════════════════════════════════

@pytest_asyncio.fixture
async def test_client(session_factory, outbox, monkeypatch):
    """
    HTTPX AsyncClient talking to the FastAPI app in-process.

    The session dependency is replaced by one bound to the test database
    (same commit/rollback semantics) and the mailer sends to `outbox`.
    """
    from app.main import app
    from app.services.auth_service import auth_service

    async def override_get_db_session():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db_session] = override_get_db_session
    monkeypatch.setattr(auth_service.mailer, "transport", outbox)

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client

    app.dependency_overrides.clear()


async def api_register_and_login(
    client: AsyncClient,
    outbox: RecordingTransport,
    email: str = "alice@example.com",
    password: str = TEST_PASSWORD,
    confirm: bool = True,
) -> Optional[dict]:
    """Register (and by default confirm and log in) through the API; returns the token pair."""
    response = await client.post("/users", json={"email": email, "password": password})
    assert response.status_code == 201, response.text
    if not confirm:
        return None
    token = outbox.confirmation_token(email)
    response = await client.get(f"/auth/confirmation/{token}")
    assert response.status_code == 200, response.text
    response = await client.post("/auth", json={"email": email, "password": password})
    assert response.status_code == 201, response.text
    return response.json()


def bearer(tokens: dict) -> dict:
    return {"Authorization": f"Bearer {tokens['accessToken']}"}
