"""Common API dependencies."""

from __future__ import annotations

import uuid
from collections.abc import AsyncGenerator
from functools import lru_cache
from typing import Annotated

from fastapi import Depends, Request
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.ext.asyncio import AsyncSession

from credvault.core import errors
from credvault.core.config import get_settings
from credvault.core.security import SessionTokenIssuer
from credvault.db.session import get_session
from credvault.services.notification_service import Notifier, SmtpNotifier

settings = get_settings()

oauth2_scheme = OAuth2PasswordBearer(
    tokenUrl=f"{settings.api_v1_prefix}/users/login", auto_error=False
)


async def get_db_session() -> AsyncGenerator[AsyncSession, None]:
    """Provide an async database session."""
    async for session in get_session():
        yield session


@lru_cache
def get_token_issuer() -> SessionTokenIssuer:
    """Build the process-wide session token issuer once."""
    current = get_settings()
    return SessionTokenIssuer(
        current.jwt_secret_key,
        algorithm=current.jwt_algorithm,
        ttl=current.session_token_ttl,
    )


def get_notifier() -> Notifier:
    return SmtpNotifier(get_settings())


def get_session_token(
    request: Request,
    bearer: Annotated[str | None, Depends(oauth2_scheme)],
) -> str | None:
    """Prefer an explicit bearer header; otherwise use the session cookie."""
    return bearer or request.cookies.get(get_settings().session_cookie_name)


async def get_current_user_id(
    token: Annotated[str | None, Depends(get_session_token)],
    issuer: Annotated[SessionTokenIssuer, Depends(get_token_issuer)],
) -> uuid.UUID:
    """Authenticate the request via its session token."""
    user_id = issuer.verify(token)
    if user_id is None:
        raise errors.AuthenticationError("Not authorized, please log in")
    return user_id


DbSession = Annotated[AsyncSession, Depends(get_db_session)]
TokenIssuer = Annotated[SessionTokenIssuer, Depends(get_token_issuer)]
CurrentUserId = Annotated[uuid.UUID, Depends(get_current_user_id)]
