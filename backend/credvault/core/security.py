"""Security utilities for password hashing and session tokens."""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import Any

import bcrypt
from jose import JWTError, jwt

from credvault.core.config import get_settings

BCRYPT_MAX_BYTES = 72


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Check a password against its hash using bcrypt."""
    try:
        return bcrypt.checkpw(plain_password.encode(), hashed_password.encode())
    except (ValueError, TypeError):  # guard against malformed hashes
        return False


def get_password_hash(password: str) -> str:
    """Hash a password for storage using bcrypt."""
    salt = bcrypt.gensalt(rounds=get_settings().bcrypt_rounds)
    return bcrypt.hashpw(password.encode(), salt).decode()


def utcnow() -> datetime:
    return datetime.now(UTC)


def as_utc(value: datetime) -> datetime:
    """Normalize to aware UTC; naive values (as returned by SQLite) are taken as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


def is_expired(expires_at: datetime, now: datetime) -> bool:
    """Return True once ``now`` has reached ``expires_at``."""
    return as_utc(now) >= as_utc(expires_at)


@dataclass(frozen=True)
class SessionToken:
    """A signed session credential and its validity window."""

    value: str
    subject_id: uuid.UUID
    issued_at: datetime
    expires_at: datetime


class SessionTokenIssuer:
    """Issue and verify stateless, signed session tokens.

    The signing key is supplied at construction. Rotating it invalidates all
    outstanding tokens.
    """

    def __init__(
        self,
        secret_key: str,
        *,
        algorithm: str = "HS256",
        ttl: timedelta = timedelta(hours=24),
    ) -> None:
        if not secret_key:
            raise ValueError("A session signing key is required")
        self._secret_key = secret_key
        self._algorithm = algorithm
        self.ttl = ttl

    def issue(self, user_id: uuid.UUID, *, now: datetime | None = None) -> SessionToken:
        issued_at = as_utc(now or utcnow()).replace(microsecond=0)
        expires_at = issued_at + self.ttl
        claims: dict[str, Any] = {
            "sub": str(user_id),
            "iat": int(issued_at.timestamp()),
            "exp": int(expires_at.timestamp()),
        }
        value = jwt.encode(claims, self._secret_key, algorithm=self._algorithm)
        return SessionToken(
            value=value,
            subject_id=user_id,
            issued_at=issued_at,
            expires_at=expires_at,
        )

    def verify(self, token: str | None, *, now: datetime | None = None) -> uuid.UUID | None:
        """Return the bound user id, or None if the token must not be trusted."""
        if not token:
            return None
        try:
            # expiry is checked below against the caller-supplied clock
            claims = jwt.decode(
                token,
                self._secret_key,
                algorithms=[self._algorithm],
                options={"verify_exp": False},
            )
        except JWTError:
            return None

        subject = claims.get("sub")
        expires = claims.get("exp")
        if not isinstance(subject, str) or not isinstance(expires, (int, float)):
            return None
        try:
            user_id = uuid.UUID(subject)
        except ValueError:
            return None

        expires_at = datetime.fromtimestamp(expires, UTC)
        if is_expired(expires_at, now or utcnow()):
            return None
        return user_id


__all__ = [
    "BCRYPT_MAX_BYTES",
    "SessionToken",
    "SessionTokenIssuer",
    "as_utc",
    "get_password_hash",
    "is_expired",
    "utcnow",
    "verify_password",
]
