"""Test fixtures for the credvault backend."""
from __future__ import annotations

import os
import re
from collections.abc import AsyncIterator
from dataclasses import dataclass, field

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine

os.environ.setdefault("JWT_SECRET_KEY", "test-secret-key")
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///./test.db")
os.environ.setdefault("BCRYPT_ROUNDS", "4")
os.environ.setdefault("SESSION_COOKIE_SECURE", "false")
os.environ.setdefault("SESSION_COOKIE_SAMESITE", "lax")
os.environ.setdefault("FRONTEND_URL", "http://frontend.test")

from credvault.api.deps import get_notifier
from credvault.core.config import get_settings
from credvault.core.security import SessionTokenIssuer
from credvault.db.base import Base
from credvault.db.session import dispose_engine, get_sessionmaker
from credvault.main import app
from credvault.models import PasswordResetToken, User  # noqa: F401

_RESET_LINK = re.compile(r"/resetpassword/([0-9a-f-]+)")


@dataclass
class SentEmail:
    subject: str
    html_body: str
    recipient: str
    sender: str

    @property
    def reset_secret(self) -> str:
        match = _RESET_LINK.search(self.html_body)
        assert match, "reset link missing from email body"
        return match.group(1)


@dataclass
class RecordingNotifier:
    """In-memory notifier that records every message it is asked to send."""

    fail: bool = False
    sent: list[SentEmail] = field(default_factory=list)

    async def send(self, subject: str, html_body: str, recipient: str, sender: str) -> bool:
        self.sent.append(SentEmail(subject, html_body, recipient, sender))
        return not self.fail


@pytest.fixture(scope="session")
def db_url(tmp_path_factory: pytest.TempPathFactory) -> str:
    """Provide a temporary SQLite database URL for the test session."""
    db_path = tmp_path_factory.mktemp("db") / "test.db"
    return f"sqlite+aiosqlite:///{db_path}"


@pytest_asyncio.fixture()
async def reset_database(db_url: str) -> AsyncIterator[None]:
    """Drop and recreate the database schema for an isolated test."""
    os.environ["DATABASE_URL"] = db_url
    get_settings.cache_clear()
    get_settings()

    await dispose_engine()
    engine = create_async_engine(db_url)
    async with engine.begin() as connection:
        await connection.run_sync(Base.metadata.drop_all)
        await connection.run_sync(Base.metadata.create_all)
    await engine.dispose()
    yield
    await dispose_engine()


@pytest_asyncio.fixture()
async def session(reset_database: None) -> AsyncIterator[AsyncSession]:
    async with get_sessionmaker()() as db_session:
        yield db_session


@pytest.fixture()
def issuer() -> SessionTokenIssuer:
    return SessionTokenIssuer("test-secret-key")


@pytest.fixture()
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest_asyncio.fixture()
async def app_context(
    reset_database: None, notifier: RecordingNotifier
) -> AsyncIterator[dict[str, object]]:
    """Yield an async client wired to a recording notifier."""
    app.dependency_overrides[get_notifier] = lambda: notifier
    transport = ASGITransport(app=app)
    try:
        async with AsyncClient(transport=transport, base_url="http://test") as client:
            yield {"client": client, "notifier": notifier}
    finally:
        app.dependency_overrides.pop(get_notifier, None)
