"""Password reset token services.

A user has at most one pending reset token. Only the SHA-256 hash of the
secret is stored; the plaintext leaves this module once, in the reset email.
Functions here flush but never commit, so the caller decides the transaction
boundary.
"""
from __future__ import annotations

import hashlib
import logging
import secrets
import uuid
from datetime import datetime

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from credvault.core import errors
from credvault.core.config import get_settings
from credvault.core.security import as_utc, utcnow
from credvault.models.password_reset import PasswordResetToken

logger = logging.getLogger(__name__)

INVALID_TOKEN_MESSAGE = "Invalid or expired token"


def hash_token(raw: str) -> str:
    return hashlib.sha256(raw.encode("utf-8")).hexdigest()


def generate_secret(user_id: uuid.UUID) -> str:
    """Return 32 random bytes as hex, suffixed with the user id for uniqueness."""
    return secrets.token_hex(32) + str(user_id)


async def get_token_for_user(
    session: AsyncSession, user_id: uuid.UUID
) -> PasswordResetToken | None:
    result = await session.execute(
        select(PasswordResetToken).where(PasswordResetToken.user_id == user_id)
    )
    return result.scalars().first()


async def delete_tokens_for_user(session: AsyncSession, user_id: uuid.UUID) -> int:
    result = await session.execute(
        delete(PasswordResetToken)
        .where(PasswordResetToken.user_id == user_id)
        .execution_options(synchronize_session=False)
    )
    return result.rowcount or 0


async def create_token_record(
    session: AsyncSession,
    *,
    user_id: uuid.UUID,
    token_hash: str,
    created_at: datetime,
    expires_at: datetime,
) -> PasswordResetToken:
    record = PasswordResetToken(
        user_id=user_id,
        token_hash=token_hash,
        created_at=created_at,
        expires_at=expires_at,
    )
    session.add(record)
    await session.flush()
    return record


async def pop_unexpired_token(
    session: AsyncSession, token_hash: str, *, now: datetime
) -> uuid.UUID | None:
    """Delete the matching live token and return its user id in one statement."""
    result = await session.execute(
        delete(PasswordResetToken)
        .where(
            PasswordResetToken.token_hash == token_hash,
            PasswordResetToken.expires_at > now,
        )
        .returning(PasswordResetToken.user_id)
        .execution_options(synchronize_session=False)
    )
    return result.scalar_one_or_none()


async def request_reset(
    session: AsyncSession, user_id: uuid.UUID, *, now: datetime | None = None
) -> str:
    """Replace any pending token for the user and return the new plaintext secret."""
    created_at = as_utc(now or utcnow())
    superseded = await delete_tokens_for_user(session, user_id)
    if superseded:
        logger.info("Superseded pending password reset for user %s", user_id)

    raw_token = generate_secret(user_id)
    await create_token_record(
        session,
        user_id=user_id,
        token_hash=hash_token(raw_token),
        created_at=created_at,
        expires_at=created_at + get_settings().reset_token_ttl,
    )
    logger.info("Password reset requested for user %s", user_id)
    return raw_token


async def consume_reset_token(
    session: AsyncSession, token: str, *, now: datetime | None = None
) -> uuid.UUID:
    """Consume a reset secret and return the user it belongs to.

    Unknown, already used and expired secrets fail identically.
    """
    if not token:
        raise errors.AuthenticationError(INVALID_TOKEN_MESSAGE)
    user_id = await pop_unexpired_token(
        session, hash_token(token), now=as_utc(now or utcnow())
    )
    if user_id is None:
        raise errors.AuthenticationError(INVALID_TOKEN_MESSAGE)
    logger.info("Password reset token consumed for user %s", user_id)
    return user_id
